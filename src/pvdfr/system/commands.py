import logging
import shlex
import subprocess
from typing import Dict, List, Optional

from pvdfr.errors import CommandError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs host commands, escalating through sudo when asked to."""

    def __init__(self, use_sudo: bool = True, env: Optional[Dict[str, str]] = None):
        self.use_sudo = use_sudo
        self.env = env

    def run(self, args: List[str], check: bool = True, input: Optional[str] = None,
            privileged: bool = True) -> subprocess.CompletedProcess:
        cmd = list(args)
        if privileged and self.use_sudo:
            cmd = ["sudo"] + cmd

        logger.debug(f"Running: {shlex.join(cmd)}")
        try:
            result = subprocess.run(cmd, input=input, capture_output=True, text=True, env=self.env)
        except FileNotFoundError as e:
            raise CommandError(cmd, 127, stderr=str(e))

        if result.returncode != 0:
            logger.debug(f"Exit code {result.returncode}: {result.stderr.strip()}")
            if check:
                raise CommandError(cmd, result.returncode, result.stdout, result.stderr)
        return result

    def succeeds(self, args: List[str], privileged: bool = False) -> bool:
        return self.run(args, check=False, privileged=privileged).returncode == 0

    def read_file(self, path: str) -> str:
        """Read a host file; a missing file reads as empty."""
        try:
            with open(path, "r") as f:
                return f.read()
        except FileNotFoundError:
            return ""
        except PermissionError:
            return self.run(["cat", path]).stdout

    def write_file(self, path: str, content: str):
        self.run(["tee", path], input=content)
