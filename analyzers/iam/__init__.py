"""
analyzers/iam - IAM 분석기

Tools:
    - unused_access: 미사용 권한/역할/비밀번호/Access Key 탐지
"""
