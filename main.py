"""
main.py - aws-unused-analyzer 콘솔 엔트리포인트

Usage:
    $ aws-unused-analyzer -u 90
    $ python main.py --help
"""

from cli.app import cli


def main() -> None:
    """aws-unused-analyzer 실행 (종료 코드는 cli가 sys.exit로 전달)"""
    cli(prog_name="aws-unused-analyzer")


if __name__ == "__main__":
    main()
