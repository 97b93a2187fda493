"""
대화형 입력 모듈
Rich Prompt 기반, 잘못된 입력은 올바른 값이 들어올 때까지 재입력
"""

from typing import Callable
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from .logger import get_logger
from .errors import ValidationError
from .secret import AuthKey
from .validators import ensure_auth_key

console = Console()


class Prompter:
    """사용자 입력 클래스"""

    def __init__(self):
        self.logger = get_logger()

    def ask(self, message: str, password: bool = False) -> str:
        return Prompt.ask(message, console=console, password=password)

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, console=console, default=default)

    def ask_validated(self, message: str, checker: Callable[[str], str]) -> str:
        """검증을 통과할 때까지 반복 입력

        checker 는 정규화된 값을 돌려주거나 ValidationError 를 발생시킨다.
        """
        while True:
            try:
                return checker(self.ask(message))
            except ValidationError as e:
                console.print(f"[red]잘못된 입력입니다. 다시 입력해주세요. ({escape(str(e))})[/red]")
                self.logger.debug(f"Rejected input for prompt: {message}")

    def ask_auth_key(self) -> AuthKey:
        """Auth Key 입력 (화면에 표시하지 않음)"""
        console.print("Tailscale Auth Key 를 입력하세요 (입력 내용은 표시되지 않습니다)")
        while True:
            try:
                return AuthKey(ensure_auth_key(self.ask("Auth Key", password=True)))
            except ValidationError as e:
                console.print(f"[red]{escape(str(e))}[/red]")
                self.logger.warning("Invalid auth key format entered")
