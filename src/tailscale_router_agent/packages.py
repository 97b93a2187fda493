"""
패키지 관리 모듈 (apt)
설치되지 않은 패키지만 설치 (idempotent)
"""

from typing import List, Sequence
from rich.console import Console
from .errors import CommandError, PackageInstallError
from .logger import get_logger
from .runner import CommandRunner

console = Console()


class PackageManager:
    """apt 패키지 관리 클래스"""

    def __init__(self, runner: CommandRunner, update_index: bool = True):
        self.runner = runner
        self.update_index = update_index
        self.logger = get_logger()

    def is_installed(self, package: str) -> bool:
        """dpkg 기준 설치 여부 확인"""
        result = self.runner.run(["dpkg-query", "-W", "-f=${Status}", package])
        installed = result.returncode == 0 and "install ok installed" in (result.stdout or "")
        self.logger.debug(f"{package} installed: {installed}")
        return installed

    def update(self):
        """패키지 목록 갱신"""
        self.logger.info("Updating package list...")
        try:
            self.runner.run(["apt-get", "update"], sudo=True, check=True)
        except CommandError as e:
            raise PackageInstallError(f"Failed to update package list: {e}") from e

    def install(self, package: str):
        """패키지 설치"""
        self.logger.info(f"Installing {package}...")
        try:
            self.runner.run(["apt-get", "install", "-y", package], sudo=True, check=True)
        except CommandError as e:
            raise PackageInstallError(f"Failed to install {package}: {e}") from e
        console.print(f"  [green]✓[/green] {package}: 설치 완료")

    def ensure(self, packages: Sequence[str]) -> List[str]:
        """필요한 패키지 설치, 새로 설치한 목록 반환"""
        console.print("\n[bold cyan]환경 설정 중...[/bold cyan]\n")
        self.logger.info("Setting up environment...")

        if self.update_index:
            self.update()

        installed = []
        for package in packages:
            if self.is_installed(package):
                console.print(f"  [green]✓[/green] {package}: 이미 설치됨")
                self.logger.info(f"{package} is already installed")
                continue
            self.install(package)
            installed.append(package)

        self.logger.info("Environment setup completed")
        return installed
