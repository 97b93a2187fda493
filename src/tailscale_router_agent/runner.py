"""
외부 명령 실행 모듈
sudo 자동 부착, 로그용 명령어 마스킹
"""

import subprocess
from typing import List, Optional, Sequence, Union
from .errors import CommandError
from .logger import get_logger

# 값이 로그에 남으면 안 되는 옵션
SENSITIVE_FLAGS = ("--auth-key", "--authkey")

Command = Union[str, Sequence[str]]


def mask_argument(arg: str) -> str:
    """민감한 옵션 값을 가린다"""
    for flag in SENSITIVE_FLAGS:
        if arg.startswith(flag + "="):
            return f"{flag}=********"
    return arg


def format_command(cmd: Command) -> str:
    """로그 출력용 명령어 문자열"""
    if isinstance(cmd, str):
        return cmd
    masked: List[str] = []
    hide_next = False
    for arg in cmd:
        if hide_next:
            masked.append("********")
            hide_next = False
            continue
        if arg in SENSITIVE_FLAGS:
            hide_next = True
        masked.append(mask_argument(arg))
    return " ".join(masked)


class CommandRunner:
    """subprocess 래퍼"""

    def __init__(self, use_sudo: bool = True, debug: bool = False):
        self.use_sudo = use_sudo
        self.debug = debug
        self.logger = get_logger()

    def _prepare(self, cmd: Command, sudo: bool) -> Command:
        if not (sudo and self.use_sudo):
            return cmd
        if isinstance(cmd, str):
            return "sudo " + cmd
        return ["sudo"] + list(cmd)

    def run(self,
            cmd: Command,
            sudo: bool = False,
            input: Optional[str] = None,
            check: bool = False,
            capture: bool = True,
            shell: bool = False) -> subprocess.CompletedProcess:
        """명령 실행

        Args:
            cmd: 실행할 명령 (shell=True 이면 문자열)
            sudo: sudo 로 실행 여부 (use_sudo=False 이면 무시)
            input: 표준입력으로 전달할 텍스트
            check: 실패 시 CommandError 발생
            capture: 출력 캡처 여부 (대화형 명령은 False)
            shell: 셸을 통해 실행
        """
        full_cmd = self._prepare(cmd, sudo)
        display = format_command(full_cmd)
        self.logger.debug(f"Running: {display}")

        try:
            result = subprocess.run(
                full_cmd,
                input=input,
                capture_output=capture,
                text=True,
                shell=shell
            )
        except FileNotFoundError as e:
            self.logger.debug(f"Command not found: {display}")
            if check:
                raise CommandError(display, 127, str(e)) from e
            return subprocess.CompletedProcess(full_cmd, 127, "", str(e))

        if result.returncode != 0:
            self.logger.debug(f"Exit status {result.returncode}: {display}")
            if check:
                raise CommandError(display, result.returncode, result.stderr)

        return result

    def succeeds(self, cmd: Command, sudo: bool = False) -> bool:
        """명령이 0 으로 종료되는지 확인"""
        return self.run(cmd, sudo=sudo).returncode == 0
