"""
실행 권한 확인 모듈
root 실행 거부, sudo 사용 가능 여부 확인
"""

import os
from rich.console import Console
from .errors import RunningAsRoot, EscalationUnavailable
from .logger import get_logger
from .runner import CommandRunner

console = Console()


class PrivilegeGuard:
    """권한 확인 클래스

    에이전트는 일반 사용자로 실행하고 필요한 명령만 sudo 로 실행한다.
    """

    def __init__(self, runner: CommandRunner):
        self.runner = runner
        self.logger = get_logger()

    def check_running_user(self):
        """root 실행 여부 확인"""
        if os.geteuid() == 0:
            raise RunningAsRoot(
                "This script should not be run as root for security reasons. "
                "Run as a regular user with sudo access."
            )
        self.logger.debug(f"Running as uid {os.geteuid()}")

    def check_escalation_available(self):
        """sudo 사용 가능 여부 확인 (필요 시 비밀번호 입력)"""
        if self.runner.succeeds(["sudo", "-n", "true"]):
            self.logger.debug("Passwordless sudo available")
            return

        self.logger.info("This script requires sudo access. You may be prompted for your password.")
        result = self.runner.run(["sudo", "-v"], capture=False)
        if result.returncode != 0:
            raise EscalationUnavailable("Failed to obtain sudo access")

        console.print("[green]✓ sudo 권한 확인 완료[/green]")

    def check(self):
        """전체 권한 확인"""
        self.check_running_user()
        self.check_escalation_available()
