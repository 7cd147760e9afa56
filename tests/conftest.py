import subprocess
from typing import List, Optional

import pytest

from pvdfr.errors import CommandError
from pvdfr.system.commands import CommandRunner


class FakeRunner(CommandRunner):
    """Records commands instead of running them; files live in a dict."""

    def __init__(self, files: Optional[dict] = None):
        super().__init__(use_sudo=False)
        self.commands: List[List[str]] = []
        self.inputs = {}
        self.files = dict(files or {})
        self.rules = []

    def on(self, *prefix, returncode=0, stdout="", stderr=""):
        self.rules.insert(0, (list(prefix), returncode, stdout, stderr))
        return self

    def run(self, args, check=True, input=None, privileged=True):
        cmd = list(args)
        self.commands.append(cmd)
        if input is not None:
            self.inputs[tuple(cmd)] = input

        returncode, stdout, stderr = 0, "", ""
        for prefix, rc, out, err in self.rules:
            if cmd[:len(prefix)] == prefix:
                returncode, stdout, stderr = rc, out, err
                break

        if returncode != 0 and check:
            raise CommandError(cmd, returncode, stdout, stderr)
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

    def read_file(self, path):
        return self.files.get(path, "")

    def write_file(self, path, content):
        self.commands.append(["tee", path])
        self.files[path] = content

    def ran(self, *prefix) -> bool:
        return any(cmd[:len(prefix)] == list(prefix) for cmd in self.commands)

    def count(self, *prefix) -> int:
        return sum(1 for cmd in self.commands if cmd[:len(prefix)] == list(prefix))

    def index(self, *prefix) -> int:
        for i, cmd in enumerate(self.commands):
            if cmd[:len(prefix)] == list(prefix):
                return i
        raise ValueError(f"{prefix} was not run")


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def systemd_runner():
    """A FakeRunner on which every managed unit resolves to its first candidate."""
    fake = FakeRunner()
    for unit in ["smbd.service", "nfs-kernel-server.service", "ssh.service"]:
        fake.on("systemctl", "show", "-p", "LoadState", unit, stdout="LoadState=loaded\n")
    return fake
