"""
공용 테스트 fixture
"""

import subprocess
from typing import List, Optional

import pytest

from tailscale_router_agent.errors import CommandError
from tailscale_router_agent.logger import init_logger
from tailscale_router_agent.prompts import Prompter
from tailscale_router_agent.runner import CommandRunner, format_command


class FakeRunner(CommandRunner):
    """명령을 실행하지 않고 기록만 하는 runner"""

    def __init__(self):
        super().__init__(use_sudo=False)
        self.calls: List[dict] = []
        self.responses = {}

    def add(self, prefix: str, returncode: int = 0, stdout: str = "", stderr: str = ""):
        self.responses[prefix] = (returncode, stdout, stderr)

    def _lookup(self, text: str):
        matches = [p for p in self.responses if text.startswith(p)]
        if not matches:
            return 0, "", ""
        return self.responses[max(matches, key=len)]

    def run(self, cmd, sudo=False, input=None, check=False, capture=True, shell=False):
        text = cmd if isinstance(cmd, str) else " ".join(cmd)
        self.calls.append({"cmd": cmd, "sudo": sudo, "input": input})
        returncode, stdout, stderr = self._lookup(text)
        if returncode != 0 and check:
            raise CommandError(format_command(cmd), returncode, stderr)
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

    def commands(self) -> List[str]:
        return [c["cmd"] if isinstance(c["cmd"], str) else " ".join(c["cmd"]) for c in self.calls]

    def find(self, prefix: str) -> Optional[dict]:
        for call, text in zip(self.calls, self.commands()):
            if text.startswith(prefix):
                return call
        return None


class ScriptedPrompter(Prompter):
    """미리 정해진 답을 돌려주는 prompter"""

    def __init__(self, answers=None, confirms=None):
        super().__init__()
        self.answers = list(answers or [])
        self.confirms = list(confirms or [])
        self.asked: List[str] = []

    def ask(self, message, password=False):
        self.asked.append(message)
        return self.answers.pop(0)

    def confirm(self, message, default=False):
        self.asked.append(message)
        if not self.confirms:
            return default
        return self.confirms.pop(0)


@pytest.fixture(autouse=True)
def agent_logger(tmp_path):
    """테스트마다 임시 로그 파일 사용"""
    return init_logger(str(tmp_path / "setup.log"), "DEBUG", False)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def non_root(monkeypatch):
    monkeypatch.setattr("tailscale_router_agent.privilege.os.geteuid", lambda: 1000)
