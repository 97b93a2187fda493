"""
NIC 최적화 모듈
기본 라우트 인터페이스의 UDP GRO forwarding 설정 및 재부팅 후 유지
"""

import os
from typing import List, Optional, Sequence
from rich.console import Console
from .errors import CommandError, ConfigWriteError, DispatcherUnavailable, OffloadError, UnsupportedFeature
from .logger import get_logger
from .runner import CommandRunner

console = Console()

DISPATCHER_SCRIPT = """#!/bin/sh
# Tailscale network optimizations
# Auto-generated by tailscale-router-agent

NETDEV=$(ip route show default | awk '/default/ {{ print $5; exit }}')
if [ -n "$NETDEV" ] && ethtool -k "$NETDEV" | grep -q "{feature}"; then
    ethtool -K "$NETDEV" {settings}
fi
"""


def parse_default_device(output: str) -> Optional[str]:
    """ip route show default 출력에서 인터페이스 이름 추출"""
    for line in output.splitlines():
        fields = line.split()
        if "default" not in fields:
            continue
        if "dev" in fields:
            index = fields.index("dev")
            if index + 1 < len(fields):
                return fields[index + 1]
        if len(fields) >= 5:
            return fields[4]
    return None


class NetDeviceOptimizer:
    """NIC 오프로드 설정 클래스"""

    def __init__(self,
                 runner: CommandRunner,
                 feature: str = "rx-udp-gro-forwarding",
                 extra_features: Optional[Sequence[str]] = None,
                 dispatcher_service: str = "networkd-dispatcher",
                 dispatcher_hook: str = "/etc/networkd-dispatcher/routable.d/50-tailscale"):
        self.runner = runner
        self.feature = feature
        self.extra_features = list(extra_features if extra_features is not None else ["rx-gro-list off"])
        self.dispatcher_service = dispatcher_service
        self.dispatcher_hook = dispatcher_hook
        self.logger = get_logger()

    def feature_settings(self) -> List[str]:
        """ethtool -K 인자 (장치 이름 제외)"""
        settings = [self.feature, "on"]
        for extra in self.extra_features:
            settings.extend(extra.split())
        return settings

    def detect_default_device(self) -> Optional[str]:
        """기본 라우트 인터페이스 감지"""
        result = self.runner.run(["ip", "route", "show", "default"])
        if result.returncode != 0:
            return None
        device = parse_default_device(result.stdout or "")
        self.logger.debug(f"Default network device: {device}")
        return device

    def apply_offload_settings(self, device: str):
        """지원되는 경우에만 오프로드 기능 설정"""
        result = self.runner.run(["ethtool", "-k", device], sudo=True)
        if result.returncode != 0 or self.feature not in (result.stdout or ""):
            raise UnsupportedFeature(device, self.feature)

        try:
            self.runner.run(["ethtool", "-K", device] + self.feature_settings(), sudo=True, check=True)
        except CommandError as e:
            raise OffloadError(f"Failed to configure ethtool settings for {device}: {e}") from e

        console.print(f"  [green]✓[/green] {device}: {self.feature} on")
        self.logger.info(f"Enabled {self.feature} on {device}")

    def render_dispatcher_script(self) -> str:
        return DISPATCHER_SCRIPT.format(
            feature=self.feature,
            settings=" ".join(self.feature_settings())
        )

    def persist_offload_settings(self, device: str) -> str:
        """networkd-dispatcher 훅 생성 (재부팅 후에도 유지)"""
        if not self.runner.succeeds(["systemctl", "is-enabled", self.dispatcher_service]):
            raise DispatcherUnavailable(
                f"{self.dispatcher_service} is not enabled. "
                "Network optimizations may not persist after reboot"
            )

        try:
            self.runner.run(["mkdir", "-p", os.path.dirname(self.dispatcher_hook)], sudo=True, check=True)
            self.runner.run(
                ["tee", self.dispatcher_hook],
                sudo=True,
                input=self.render_dispatcher_script(),
                check=True
            )
            self.runner.run(["chmod", "755", self.dispatcher_hook], sudo=True, check=True)
        except CommandError as e:
            raise ConfigWriteError(f"Failed to write {self.dispatcher_hook}: {e}") from e

        self.logger.info(f"Persistent network optimizations configured for {device} ({self.dispatcher_hook})")
        return self.dispatcher_hook

    def optimize(self) -> Optional[str]:
        """감지 → 설정 → 유지, 설정된 장치 이름 반환"""
        device = self.detect_default_device()
        if not device:
            self.logger.warning("Could not determine default network device, skipping ethtool optimizations")
            return None

        self.logger.info(f"Configuring network optimizations for device: {device}")

        try:
            self.apply_offload_settings(device)
        except OffloadError as e:
            self.logger.warning(str(e))

        try:
            self.persist_offload_settings(device)
        except DispatcherUnavailable as e:
            self.logger.warning(str(e))

        return device
