"""
권한 확인 모듈 테스트
"""

import pytest
from tailscale_router_agent.errors import EscalationUnavailable, PrivilegeError, RunningAsRoot
from tailscale_router_agent.privilege import PrivilegeGuard


def test_root_is_rejected(fake_runner, monkeypatch):
    """root 실행 거부"""
    monkeypatch.setattr("tailscale_router_agent.privilege.os.geteuid", lambda: 0)
    with pytest.raises(RunningAsRoot):
        PrivilegeGuard(fake_runner).check_running_user()


def test_regular_user_allowed(fake_runner, non_root):
    """일반 사용자 허용"""
    PrivilegeGuard(fake_runner).check_running_user()


def test_passwordless_sudo(fake_runner):
    """sudo -n 성공 시 재입력 없음"""
    PrivilegeGuard(fake_runner).check_escalation_available()
    assert fake_runner.commands() == ["sudo -n true"]


def test_sudo_prompt_success(fake_runner):
    """sudo -n 실패 → sudo -v 로 재확인"""
    fake_runner.add("sudo -n true", returncode=1)
    PrivilegeGuard(fake_runner).check_escalation_available()
    assert fake_runner.commands() == ["sudo -n true", "sudo -v"]


def test_sudo_unavailable(fake_runner):
    """sudo 권한 없음"""
    fake_runner.add("sudo -n true", returncode=1)
    fake_runner.add("sudo -v", returncode=1)
    with pytest.raises(EscalationUnavailable) as excinfo:
        PrivilegeGuard(fake_runner).check_escalation_available()
    assert isinstance(excinfo.value, PrivilegeError)
