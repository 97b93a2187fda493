"""
Tailscale 관리 모듈
클라이언트 설치, tailscaled 서비스, tailscale up/status
"""

import re
import time
from typing import List, Optional
import requests
from rich.console import Console
from .errors import BringUpFailed, CommandError, InstallError, ServiceError
from .logger import get_logger
from .runner import CommandRunner
from .secret import AuthKey
from .validators import SubnetSet

console = Console()

PENDING_ROUTE_PATTERN = re.compile(r"route.*pending", re.IGNORECASE)


def compose_up_args(auth_key: AuthKey, subnets: SubnetSet, exit_node: bool) -> List[str]:
    """tailscale up 인자 구성"""
    args = [
        f"--auth-key={auth_key.reveal()}",
        "--accept-routes",
    ]

    if len(subnets) > 0:
        args.append(f"--advertise-routes={subnets.serialize()}")

    if exit_node:
        args.append("--advertise-exit-node")

    return args


def has_pending_routes(status_output: str) -> bool:
    """관리자 승인 대기 중인 라우트 여부"""
    return bool(PENDING_ROUTE_PATTERN.search(status_output or ""))


class TailscaleClient:
    """Tailscale 클라이언트 관리 클래스"""

    def __init__(self,
                 runner: CommandRunner,
                 binary: str = "tailscale",
                 service: str = "tailscaled",
                 install_url: str = "https://tailscale.com/install.sh",
                 download_timeout: int = 60,
                 settle_seconds: float = 2.0):
        self.runner = runner
        self.binary = binary
        self.service = service
        self.install_url = install_url
        self.download_timeout = download_timeout
        self.settle_seconds = settle_seconds
        self.logger = get_logger()

    def is_installed(self) -> bool:
        """Tailscale 클라이언트 설치 확인"""
        installed = self.runner.succeeds(["which", self.binary])
        self.logger.debug(f"Tailscale installed: {installed}")
        return installed

    def is_running(self) -> bool:
        """tailscale status 가 성공하는지 확인"""
        return self.runner.succeeds([self.binary, "status"], sudo=True)

    def install_client(self):
        """설치 스크립트를 받아 sh 로 실행"""
        console.print("[cyan]Tailscale 클라이언트 설치 중...[/cyan]")
        self.logger.info("Downloading and installing Tailscale...")

        try:
            response = requests.get(self.install_url, timeout=self.download_timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise InstallError(f"Failed to download Tailscale installer: {e}") from e

        try:
            self.runner.run(["sh"], input=response.text, check=True)
        except CommandError as e:
            raise InstallError(f"Failed to install Tailscale: {e}") from e

        console.print("[green]✓ Tailscale 클라이언트 설치 완료[/green]")
        self.logger.info("Tailscale client installed successfully")

    def start_service(self):
        """tailscaled 활성화 및 시작"""
        for action in ("enable", "start"):
            try:
                self.runner.run(["systemctl", action, self.service], sudo=True, check=True)
            except CommandError as e:
                raise ServiceError(f"Failed to {action} {self.service} service: {e}") from e
            self.logger.debug(f"{self.service} {action}d")

        # 서비스 준비 대기
        if self.settle_seconds:
            time.sleep(self.settle_seconds)

    def up(self, args: List[str]):
        """tailscale up 실행"""
        try:
            self.runner.run([self.binary, "up"] + args, sudo=True, check=True, capture=False)
        except CommandError as e:
            raise BringUpFailed(f"Failed to connect to Tailscale (exit status {e.returncode})") from e

    def status(self) -> str:
        """tailscale status 출력"""
        result = self.runner.run([self.binary, "status"], sudo=True)
        return result.stdout or ""

    def get_ip(self) -> Optional[str]:
        """Tailscale IPv4 주소"""
        result = self.runner.run([self.binary, "ip", "-4"], sudo=True)
        if result.returncode != 0:
            return None
        ip = (result.stdout or "").strip()
        return ip or None

    def show_status(self):
        """상태 및 IP 표시"""
        console.print("\n[bold]=== Tailscale Status ===[/bold]")
        console.print(self.status())

        ip = self.get_ip()
        console.print("[bold]=== IP Address ===[/bold]")
        console.print(ip or "N/A")
        self.logger.info(f"Tailscale IP: {ip or 'N/A'}")
