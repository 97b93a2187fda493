"""
오케스트레이터 시나리오 테스트
"""

import pytest
from conftest import FakeRunner, ScriptedPrompter
from tailscale_router_agent.config import Config
from tailscale_router_agent.errors import BringUpFailed, ReloadFailed, RunningAsRoot
from tailscale_router_agent.orchestrator import ConnectionOrchestrator, Stage
from tailscale_router_agent.secret import AuthKey

KEY = "tskey-abc1234567890123456"


class RecordingPrompter(ScriptedPrompter):
    """발급된 AuthKey 를 보관"""

    def ask_auth_key(self):
        self.auth_key = super().ask_auth_key()
        return self.auth_key


@pytest.fixture
def config(tmp_path):
    cfg = Config(str(tmp_path / "missing.yaml"))
    cfg.sysctl.path = str(tmp_path / "sysctl.conf")
    cfg.vpn.settle_seconds = 0
    return cfg


@pytest.fixture
def fresh_host(monkeypatch):
    """패키지는 설치되어 있고 Tailscale 은 없는 호스트"""
    runner = FakeRunner()
    runner.add("dpkg-query", stdout="install ok installed")
    runner.add("ip route show default", stdout="default via 10.0.0.1 dev eth0 proto dhcp metric 100\n")
    runner.add("ethtool -k eth0", stdout="rx-udp-gro-forwarding: off\n")
    runner.add("systemctl is-enabled", returncode=1)
    runner.add("which tailscale", returncode=1)
    runner.add("tailscale status", stdout="100.64.0.1  router  user@  linux  -\n")
    runner.add("tailscale ip -4", stdout="100.64.0.1\n")

    class Response:
        text = "#!/bin/sh\n"

        def raise_for_status(self):
            pass

    monkeypatch.setattr("tailscale_router_agent.vpn.requests.get", lambda url, timeout: Response())
    return runner


def test_end_to_end_single_subnet(config, fresh_host, non_root):
    """서브넷 1개, exit node 없음 → CONNECTED"""
    prompter = RecordingPrompter(answers=[KEY, "192.168.1.0/24"], confirms=[False, False, False])
    state = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter).run()

    assert state.stage == Stage.CONNECTED
    assert state.device == "eth0"
    assert state.sysctl_applied == 2
    assert state.pending_routes == False
    assert state.up_args == ["--auth-key=********", "--accept-routes", "--advertise-routes=192.168.1.0/24"]

    up = fresh_host.find("tailscale up")
    assert up["cmd"] == ["tailscale", "up", f"--auth-key={KEY}", "--accept-routes",
                         "--advertise-routes=192.168.1.0/24"]
    assert "--advertise-exit-node" not in up["cmd"]
    assert prompter.auth_key.cleared

    stages = [step["step"] for step in state.steps]
    assert stages == [s.value for s in (Stage.PACKAGES_READY, Stage.NETWORK_CONFIGURED,
                                        Stage.AUTH_KEY_COLLECTED, Stage.SUBNETS_COLLECTED,
                                        Stage.CONNECTED)]


def test_multiple_subnets_exit_node_and_reprompt(config, fresh_host, non_root):
    """잘못된 입력 재요청, 서브넷 여러 개, exit node"""
    prompter = RecordingPrompter(
        answers=["tskey-short", KEY, "999.1.1.1/24", "10.0.0.0/24", "192.168.1.0/33", "192.168.1.0/24"],
        confirms=[False, True, False, True],
    )
    state = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter).run()

    assert state.stage == Stage.CONNECTED
    assert state.subnets.serialize() == "10.0.0.0/24,192.168.1.0/24"
    assert state.exit_node == True
    up = fresh_host.find("tailscale up")["cmd"]
    assert "--advertise-routes=10.0.0.0/24,192.168.1.0/24" in up
    assert up[-1] == "--advertise-exit-node"


def test_unsupported_offload_still_connects(config, fresh_host, non_root):
    """오프로드 미지원이어도 CONNECTED"""
    fresh_host.add("ethtool -k eth0", stdout="rx-gro-list: off\n")
    prompter = ScriptedPrompter(answers=[KEY, "192.168.1.0/24"], confirms=[False, False, False])
    state = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter).run()

    assert state.stage == Stage.CONNECTED
    assert fresh_host.find("ethtool -K") is None


def test_legacy_source_route_opt_in(config, fresh_host, non_root):
    """legacy source route 선택 시 4개 추가"""
    prompter = ScriptedPrompter(answers=[KEY, "192.168.1.0/24"], confirms=[True, False, False])
    state = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter).run()

    assert state.sysctl_applied == 4
    inputs = [call["input"] for call in fresh_host.calls if call["cmd"][:2] == ["tee", "-a"]]
    assert "net.ipv4.conf.all.accept_source_route=1\n" in inputs


def test_pending_routes_warning(config, fresh_host, non_root):
    """승인 대기 라우트는 경고만"""
    fresh_host.add("tailscale status", stdout="# Some routes are pending approval\n")
    prompter = ScriptedPrompter(answers=[KEY, "192.168.1.0/24"], confirms=[False, False, False])
    state = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter).run()

    assert state.pending_routes == True
    assert state.stage == Stage.CONNECTED


def test_bring_up_failure_clears_key(config, fresh_host, non_root):
    """tailscale up 실패 시에도 키 제거"""
    fresh_host.add("tailscale up", returncode=1)
    prompter = RecordingPrompter(answers=[KEY, "192.168.1.0/24"], confirms=[False, False, False])
    orchestrator = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter)

    with pytest.raises(BringUpFailed):
        orchestrator.run()

    assert prompter.auth_key.cleared
    assert orchestrator.state.stage == Stage.SUBNETS_COLLECTED


def test_reload_failure_aborts(config, fresh_host, non_root):
    """sysctl 리로드 실패는 치명적"""
    fresh_host.add("sysctl -p", returncode=255)
    prompter = ScriptedPrompter(confirms=[False])
    orchestrator = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter)

    with pytest.raises(ReloadFailed):
        orchestrator.run()

    assert orchestrator.state.stage == Stage.PACKAGES_READY
    assert fresh_host.find("tailscale") is None


def test_root_aborts_before_any_change(config, fresh_host, monkeypatch):
    """root 실행 시 즉시 중단"""
    monkeypatch.setattr("tailscale_router_agent.privilege.os.geteuid", lambda: 0)
    orchestrator = ConnectionOrchestrator(config, runner=fresh_host, prompter=ScriptedPrompter())

    with pytest.raises(RunningAsRoot):
        orchestrator.run()

    assert fresh_host.calls == []
    assert orchestrator.state.stage == Stage.NOT_STARTED


def test_existing_install_not_reconfigured(config, fresh_host, non_root):
    """이미 실행 중이고 재설정 거부 시 기존 연결 유지"""
    fresh_host.add("which tailscale", returncode=0)
    prompter = ScriptedPrompter(confirms=[False, False])
    state = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter).run()

    assert state.stage == Stage.CONNECTED
    assert state.reconfigured == False
    assert fresh_host.find("tailscale up") is None
    assert fresh_host.find("sh") is None


def test_existing_install_reconfigured(config, fresh_host, non_root):
    """이미 설치된 경우 설치 스크립트 생략"""
    fresh_host.add("which tailscale", returncode=0)
    prompter = ScriptedPrompter(answers=[KEY, "192.168.1.0/24"], confirms=[False, True, False, False])
    state = ConnectionOrchestrator(config, runner=fresh_host, prompter=prompter).run()

    assert state.stage == Stage.CONNECTED
    assert state.reconfigured == True
    assert fresh_host.find("sh") is None
    assert fresh_host.find("systemctl start tailscaled") is not None
