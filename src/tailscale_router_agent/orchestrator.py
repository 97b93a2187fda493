"""
서브넷 라우터 설정 오케스트레이터
패키지 → 커널 파라미터/NIC → Tailscale 설치 → 입력 수집 → 연결 순으로 실행
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from rich.console import Console
from rich.panel import Panel
from .config import Config
from .logger import get_logger
from .netdev import NetDeviceOptimizer
from .packages import PackageManager
from .privilege import PrivilegeGuard
from .prompts import Prompter
from .runner import CommandRunner, mask_argument
from .secret import AuthKey
from .sysctl import IdempotentConfigWriter, build_forwarding_lines
from .validators import SubnetSet, ensure_cidr
from .vpn import TailscaleClient, compose_up_args, has_pending_routes

console = Console()


class Stage(Enum):
    """실행 단계"""
    NOT_STARTED = "not_started"
    PACKAGES_READY = "packages_ready"
    NETWORK_CONFIGURED = "network_configured"
    AUTH_KEY_COLLECTED = "auth_key_collected"
    SUBNETS_COLLECTED = "subnets_collected"
    CONNECTED = "connected"


@dataclass
class SetupState:
    """실행 결과 (단계마다 갱신)"""
    stage: Stage = Stage.NOT_STARTED
    installed_packages: List[str] = field(default_factory=list)
    sysctl_backup: Optional[str] = None
    sysctl_applied: int = 0
    device: Optional[str] = None
    subnets: SubnetSet = field(default_factory=SubnetSet)
    exit_node: bool = False
    up_args: List[str] = field(default_factory=list)
    pending_routes: bool = False
    reconfigured: bool = True
    steps: List[dict] = field(default_factory=list)

    def advance(self, stage: Stage, message: str = ""):
        self.stage = stage
        self.steps.append({"step": stage.value, "status": "success", "message": message})


class ConnectionOrchestrator:
    """설정 전체 흐름 관리 클래스"""

    def __init__(self,
                 config: Config,
                 runner: Optional[CommandRunner] = None,
                 prompter: Optional[Prompter] = None):
        self.config = config
        self.logger = get_logger()
        self.runner = runner or CommandRunner(use_sudo=config.agent.use_sudo)
        self.prompter = prompter or Prompter()
        self.state = SetupState()

        self.guard = PrivilegeGuard(self.runner)
        self.packages = PackageManager(self.runner, update_index=config.packages.update_index)
        self.writer = IdempotentConfigWriter(self.runner, reload_command=config.sysctl.reload_command)
        self.optimizer = NetDeviceOptimizer(
            self.runner,
            feature=config.netdev.feature,
            extra_features=config.netdev.extra_features,
            dispatcher_service=config.netdev.dispatcher_service,
            dispatcher_hook=config.netdev.dispatcher_hook,
        )
        self.vpn = TailscaleClient(
            self.runner,
            binary=config.vpn.binary,
            service=config.vpn.service,
            install_url=config.vpn.install_url,
            download_timeout=config.vpn.download_timeout,
            settle_seconds=config.vpn.settle_seconds,
        )

    def setup_packages(self):
        """필수 패키지 설치"""
        self.state.installed_packages = self.packages.ensure(self.config.packages.required)
        self.state.advance(Stage.PACKAGES_READY, ", ".join(self.state.installed_packages) or "변경 없음")

    def configure_network(self):
        """커널 파라미터 및 NIC 최적화"""
        console.print("\n[bold cyan]네트워크 최적화 설정 중...[/bold cyan]\n")
        self.logger.info("Configuring network optimizations...")

        console.print("최신 Tailscale 은 accept_source_route 설정이 필요하지 않습니다.")
        console.print("이전 버전에서만 필요했으며 보안상 고려사항이 있습니다.")
        legacy = self.prompter.confirm(
            "legacy source route 설정을 추가하시겠습니까? (라우팅 문제가 있을 때만)",
            default=self.config.sysctl.legacy_source_route
        )
        if legacy:
            self.logger.info("Adding legacy source route settings...")

        path = self.config.sysctl.path
        self.state.sysctl_applied = self.writer.apply(path, build_forwarding_lines(legacy))
        self.state.sysctl_backup = self.writer.backups.get(path)

        self.state.device = self.optimizer.optimize()
        self.state.advance(Stage.NETWORK_CONFIGURED, self.state.device or "장치 없음")

    def prepare_client(self) -> bool:
        """Tailscale 설치 및 서비스 시작, 재설정하지 않으면 False"""
        console.print("\n[bold cyan]Tailscale 설치 및 설정 중...[/bold cyan]\n")
        self.logger.info("Installing and configuring Tailscale...")

        if self.vpn.is_installed():
            self.logger.info("Tailscale is already installed")
            if self.vpn.is_running():
                self.logger.warning("Tailscale appears to already be configured and running")
                if not self.prompter.confirm("다시 설정하시겠습니까?", default=False):
                    self.logger.info("Skipping Tailscale configuration")
                    return False
        else:
            self.vpn.install_client()

        self.vpn.start_service()
        return True

    def collect_subnets(self):
        """광고할 서브넷 입력 (최소 1개)"""
        first = self.prompter.ask_validated("첫 번째 서브넷 CIDR (예: 192.168.1.0/24)", ensure_cidr)
        self.state.subnets.add(first)

        while self.prompter.confirm("서브넷을 추가하시겠습니까?", default=False):
            cidr = self.prompter.ask_validated("서브넷 CIDR", ensure_cidr)
            if cidr in self.state.subnets:
                console.print(f"[yellow]{cidr} 는 이미 추가되었습니다.[/yellow]")
                continue
            self.state.subnets.add(cidr)

        self.state.advance(Stage.SUBNETS_COLLECTED, self.state.subnets.serialize())

    def connect(self, auth_key: AuthKey):
        """tailscale up 실행"""
        args = compose_up_args(auth_key, self.state.subnets, self.state.exit_node)
        self.state.up_args = [mask_argument(arg) for arg in args]

        subnet_list = " ".join(self.state.subnets)
        self.logger.info(f"Connecting to Tailscale with subnets: {subnet_list}")
        try:
            self.vpn.up(args)
        finally:
            args.clear()
            auth_key.clear()

    def check_route_approval(self):
        """승인 대기 라우트 확인"""
        self.logger.info("Checking route approval status...")
        self.state.pending_routes = has_pending_routes(self.vpn.status())
        if self.state.pending_routes:
            self.logger.warning("Some advertised routes are pending approval")
            console.print(Panel.fit(
                "[bold yellow]⚠️  일부 라우트가 승인 대기 중입니다.[/bold yellow]\n"
                f"{self.config.vpn.admin_url} 에서\n"
                "이 장치의 광고 라우트를 승인하세요.",
                border_style="yellow"
            ))

    def run(self) -> SetupState:
        """메인 실행 로직, 실패 시 AgentError 전파"""
        self.logger.info("Starting Tailscale setup")

        self.guard.check()
        self.setup_packages()
        self.configure_network()

        if not self.prepare_client():
            self.state.reconfigured = False
            self.state.advance(Stage.CONNECTED, "기존 설정 유지")
            return self.state

        auth_key = self.prompter.ask_auth_key()
        try:
            self.state.advance(Stage.AUTH_KEY_COLLECTED)

            self.collect_subnets()
            self.state.exit_node = self.prompter.confirm("Exit node 로 설정하시겠습니까?", default=False)

            self.connect(auth_key)
        finally:
            auth_key.clear()

        self.check_route_approval()
        self.state.advance(Stage.CONNECTED, "연결 완료")
        self.logger.info("Tailscale setup completed successfully!")

        self.vpn.show_status()
        return self.state
