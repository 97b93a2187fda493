"""
에이전트 예외 정의
치명적 오류와 경고로 처리되는 오류를 구분
"""

from typing import Optional


class AgentError(Exception):
    """에이전트 기본 예외"""


class PrivilegeError(AgentError):
    """권한 관련 오류 (치명적)"""


class RunningAsRoot(PrivilegeError):
    """root 로 실행됨"""


class EscalationUnavailable(PrivilegeError):
    """sudo 권한 상승 불가"""


class ValidationError(AgentError):
    """입력값 형식 오류 (재입력으로 복구)"""


class ConfigError(AgentError):
    """설정 파일 형식 오류"""


class ConfigWriteError(AgentError):
    """설정 파일 백업/쓰기 실패"""


class ReloadFailed(AgentError):
    """설정 리로드 실패 - 파일에는 기록됐지만 커널에는 미적용 상태"""


class OffloadError(AgentError):
    """NIC 오프로드 설정 실패 (경고로 처리)"""


class UnsupportedFeature(OffloadError):
    """장치가 오프로드 기능을 지원하지 않음"""

    def __init__(self, device: str, feature: str):
        super().__init__(f"Device {device} does not support {feature}")
        self.device = device
        self.feature = feature


class DispatcherUnavailable(AgentError):
    """networkd-dispatcher 비활성화 (경고로 처리)"""


class PackageInstallError(AgentError):
    """패키지 설치 실패"""


class ServiceError(AgentError):
    """systemd 서비스 제어 실패"""


class InstallError(AgentError):
    """VPN 클라이언트 설치 실패"""


class BringUpFailed(AgentError):
    """tailscale up 실패"""


class CommandError(AgentError):
    """외부 명령 실행 실패"""

    def __init__(self, command: str, returncode: int, stderr: Optional[str] = None):
        message = f"Command failed ({returncode}): {command}"
        if stderr:
            message += f"\n{stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr or ""
