"""
커널 파라미터 설정 모듈
sysctl 설정 파일에 없는 키만 추가하고 리로드 (idempotent)
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from rich.console import Console
from .errors import CommandError, ConfigWriteError, ReloadFailed
from .logger import get_logger
from .runner import CommandRunner

console = Console()

FORWARDING_SETTINGS = [
    "net.ipv4.ip_forward=1",
    "net.ipv6.conf.all.forwarding=1",
]

LEGACY_SOURCE_ROUTE_SETTINGS = [
    "net.ipv4.conf.all.accept_source_route=1",
    "net.ipv6.conf.all.accept_source_route=1",
]


@dataclass(frozen=True)
class ConfigLine:
    """key=value 설정 한 줄"""
    key: str
    value: str

    @classmethod
    def parse(cls, text: str) -> "ConfigLine":
        key, sep, value = text.rpartition("=")
        if not sep or not key.strip():
            raise ValueError(f"Not a key=value line: {text!r}")
        return cls(key.strip(), value.strip())

    def render(self) -> str:
        return f"{self.key}={self.value}"


def build_forwarding_lines(legacy_source_route: bool = False) -> List[ConfigLine]:
    """서브넷 라우터에 필요한 sysctl 목록"""
    settings = list(FORWARDING_SETTINGS)
    if legacy_source_route:
        settings += LEGACY_SOURCE_ROUTE_SETTINGS
    return [ConfigLine.parse(s) for s in settings]


class IdempotentConfigWriter:
    """sysctl 형식 설정 파일 writer

    인스턴스 하나가 한 번의 실행에 해당한다. 백업은 파일마다 최초 한 번만 만든다.
    """

    def __init__(self, runner: CommandRunner, reload_command: Optional[Sequence[str]] = None):
        self.runner = runner
        self.reload_command = list(reload_command or ["sysctl", "-p"])
        self.logger = get_logger()
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.backups: Dict[str, Optional[str]] = {}

    def backup_path(self, file_path: str) -> str:
        return f"{file_path}.backup.{self.timestamp}"

    def backup(self, file_path: str) -> Optional[str]:
        """타임스탬프 백업 (실행당 1회)"""
        if file_path in self.backups:
            return self.backups[file_path]
        if not os.path.exists(file_path):
            self.logger.debug(f"{file_path} does not exist, no backup needed")
            self.backups[file_path] = None
            return None

        target = self.backup_path(file_path)
        try:
            self.runner.run(["cp", "-p", file_path, target], sudo=True, check=True)
        except CommandError as e:
            raise ConfigWriteError(f"Failed to back up {file_path}: {e}") from e

        self.backups[file_path] = target
        self.logger.info(f"Backed up {os.path.basename(file_path)} to {target}")
        return target

    def _read_lines(self, file_path: str) -> List[str]:
        if not os.path.exists(file_path):
            return []
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read().splitlines()
        except OSError as e:
            raise ConfigWriteError(f"Failed to read {file_path}: {e}") from e

    def has_key(self, file_path: str, key: str) -> bool:
        """키로 시작하는 줄이 있는지 확인"""
        return any(line.startswith(key) for line in self._read_lines(file_path))

    def _append(self, file_path: str, line: ConfigLine):
        try:
            self.runner.run(
                ["tee", "-a", file_path],
                sudo=True,
                input=line.render() + "\n",
                check=True
            )
        except CommandError as e:
            raise ConfigWriteError(f"Failed to append {line.key} to {file_path}: {e}") from e

    def reload(self, file_path: str):
        """설정 리로드"""
        try:
            self.runner.run(self.reload_command + [file_path], sudo=True, check=True)
        except CommandError as e:
            raise ReloadFailed(f"Failed to apply settings from {file_path}: {e}") from e
        self.logger.info(f"Reloaded {file_path}")

    def apply(self, file_path: str, lines: Sequence[ConfigLine]) -> int:
        """없는 키만 추가 후 리로드, 추가된 줄 수 반환"""
        self.backup(file_path)

        applied = 0
        for line in lines:
            if self.has_key(file_path, line.key):
                console.print(f"  [green]✓[/green] {line.key}: 이미 설정됨")
                self.logger.info(f"{line.key} already configured in {os.path.basename(file_path)}")
                continue
            self._append(file_path, line)
            applied += 1
            console.print(f"  [green]✓[/green] {line.render()}: 추가")
            self.logger.info(f"Added {line.render()} to {os.path.basename(file_path)}")

        self.reload(file_path)
        return applied
