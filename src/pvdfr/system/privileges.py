import logging
import os

from pvdfr.errors import PrivilegeError
from pvdfr.system.commands import CommandRunner

logger = logging.getLogger(__name__)


class PrivilegeGuard:
    """Refuses to run as root and requires working sudo rights."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def check(self):
        if os.geteuid() == 0:
            raise PrivilegeError("This tool should not be run as root; run it as a sudo-capable user")

        # sudo -v refreshes the credential cache so later commands do not prompt
        result = self.runner.run(["sudo", "-v"], check=False, privileged=False)
        if result.returncode != 0:
            raise PrivilegeError("User does not have sudo privileges")
        logger.info("Privilege check passed")
