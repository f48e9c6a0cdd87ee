# core/tools - 공용 도구
"""
공용 유틸리티 (파일 I/O, 시간)

구조:
    core/tools/io/    - 파일 입출력
    core/tools/time/  - 시계 추상화, UTC/ISO-8601 변환
"""
