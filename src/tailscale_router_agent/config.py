"""
설정 관리 모듈
YAML/JSON 기반 설정 파일 관리 및 기본값 제공
"""

import os
import yaml
import json
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict
from .errors import ConfigError


@dataclass
class PackagesConfig:
    """필수 패키지 설정"""
    required: list = field(default_factory=lambda: ["ethtool", "curl", "systemd"])
    update_index: bool = True


@dataclass
class SysctlConfig:
    """커널 파라미터 설정"""
    path: str = "/etc/sysctl.conf"
    # accept_source_route 는 최신 Tailscale 에서 불필요, 기본 비활성화
    legacy_source_route: bool = False
    reload_command: list = field(default_factory=lambda: ["sysctl", "-p"])


@dataclass
class NetDevConfig:
    """NIC 오프로드 설정"""
    feature: str = "rx-udp-gro-forwarding"
    extra_features: list = field(default_factory=lambda: ["rx-gro-list off"])
    dispatcher_service: str = "networkd-dispatcher"
    dispatcher_hook: str = "/etc/networkd-dispatcher/routable.d/50-tailscale"


@dataclass
class VPNConfig:
    """Tailscale 설정"""
    binary: str = "tailscale"
    service: str = "tailscaled"
    install_url: str = "https://tailscale.com/install.sh"
    download_timeout: int = 60
    settle_seconds: float = 2.0
    admin_url: str = "https://login.tailscale.com/admin/machines"


@dataclass
class AgentConfig:
    """에이전트 설정"""
    log_file: str = "/var/log/tailscale-setup.log"
    log_level: str = "INFO"
    use_sudo: bool = True


class Config:
    """전체 설정 관리 클래스"""

    DEFAULT_CONFIG_PATHS = [
        "/etc/tailscale-router-agent/config.yaml",
        "~/.tailscale-router-agent/config.yaml",
        "./config.yaml",
    ]

    SECTIONS = ("packages", "sysctl", "netdev", "vpn", "agent")

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.packages = PackagesConfig()
        self.sysctl = SysctlConfig()
        self.netdev = NetDevConfig()
        self.vpn = VPNConfig()
        self.agent = AgentConfig()

        if config_path:
            self.load(config_path)
        else:
            self._load_from_default_paths()

    def _load_from_default_paths(self):
        """기본 경로에서 설정 파일 로드"""
        for path in self.DEFAULT_CONFIG_PATHS:
            expanded_path = os.path.expanduser(path)
            if os.path.exists(expanded_path):
                self.load(expanded_path)
                return

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        return cls(path)

    def load(self, path: str):
        """설정 파일 로드"""
        path = os.path.expanduser(path)
        if not os.path.exists(path):
            return

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.endswith('.json'):
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e

        self._update_from_dict(data)
        self.config_path = path

    def _update_from_dict(self, data: Dict[str, Any]):
        """딕셔너리에서 설정 업데이트 (알 수 없는 키는 무시)"""
        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping of sections")

        for section in self.SECTIONS:
            values = data.get(section) or {}
            if not isinstance(values, dict):
                raise ConfigError(f"Config section '{section}' must be a mapping, got {type(values).__name__}")
            target = getattr(self, section)
            for key, value in values.items():
                if hasattr(target, key):
                    setattr(target, key, value)

    def save(self, path: Optional[str] = None):
        """설정 파일 저장"""
        save_path = path or self.config_path or self.DEFAULT_CONFIG_PATHS[0]
        save_path = os.path.expanduser(save_path)

        os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)

        data = self.to_dict()

        with open(save_path, 'w', encoding='utf-8') as f:
            if save_path.endswith('.json'):
                json.dump(data, f, indent=2)
            else:
                yaml.dump(data, f, default_flow_style=False, allow_unicode=True)

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {section: asdict(getattr(self, section)) for section in self.SECTIONS}

    def create_sample(self, output_path: str):
        """샘플 설정 파일 생성"""
        template = """# Tailscale Router Agent Configuration File
# 이 파일을 config.yaml 로 복사하여 사용하세요
# Auth Key 와 서브넷은 실행 시 입력받으며 파일에 저장하지 않습니다

# 필수 패키지
packages:
  required:
    - "ethtool"
    - "curl"
    - "systemd"
  update_index: true  # apt-get update 실행 여부

# 커널 파라미터
sysctl:
  path: "/etc/sysctl.conf"
  legacy_source_route: false  # accept_source_route 추가 여부 (라우팅 문제가 있을 때만)
  reload_command: ["sysctl", "-p"]

# NIC 오프로드 (UDP GRO forwarding)
netdev:
  feature: "rx-udp-gro-forwarding"
  extra_features:
    - "rx-gro-list off"
  dispatcher_service: "networkd-dispatcher"
  dispatcher_hook: "/etc/networkd-dispatcher/routable.d/50-tailscale"

# Tailscale
vpn:
  binary: "tailscale"
  service: "tailscaled"
  install_url: "https://tailscale.com/install.sh"
  download_timeout: 60
  settle_seconds: 2
  admin_url: "https://login.tailscale.com/admin/machines"

# 에이전트 설정
agent:
  log_file: "/var/log/tailscale-setup.log"
  log_level: "INFO"  # DEBUG, INFO, WARN, ERROR
  use_sudo: true
"""

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(template)
