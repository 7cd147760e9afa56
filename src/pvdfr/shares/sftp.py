import logging
import os
from typing import List, Optional

from pvdfr.config.settings import config
from pvdfr.errors import CommandError, ShareConfigurationError
from pvdfr.shares import principals
from pvdfr.shares.models import ServicePrincipal, SFTPAccess
from pvdfr.system.commands import CommandRunner
from pvdfr.systemd.manager import SystemdManager

logger = logging.getLogger(__name__)


def block_markers(username: str):
    return f"# BEGIN pvdfr sftp {username}", f"# END pvdfr sftp {username}"


def render_match_block(username: str, chroot: str) -> str:
    begin, end = block_markers(username)
    return "\n".join([
        begin,
        f"Match User {username}",
        f"    ChrootDirectory {chroot}",
        "    ForceCommand internal-sftp",
        "    PasswordAuthentication yes",
        "    AllowTcpForwarding no",
        "    AllowAgentForwarding no",
        "    PermitTunnel no",
        "    X11Forwarding no",
        end,
    ]) + "\n"


def merge_match_block(content: str, username: str, block: str) -> str:
    """Drop any previous managed block for username and append block at the end.

    Match blocks extend to the next Match line or EOF, so the managed block
    always goes last.
    """
    begin, end = block_markers(username)
    kept = []
    inside = False
    for line in content.splitlines():
        if line.strip() == begin:
            inside = True
            continue
        if inside:
            if line.strip() == end:
                inside = False
            continue
        kept.append(line)

    while kept and not kept[-1].strip():
        kept.pop()
    text = "\n".join(kept)
    if text:
        text += "\n\n"
    return text + block


def chroot_components(root: str, chroot: str) -> List[str]:
    """root and every directory below it down to chroot, top first."""
    root = os.path.normpath(root)
    path = os.path.normpath(chroot)
    components = [path]
    while path != root and path != os.path.dirname(path):
        path = os.path.dirname(path)
        components.append(path)
    return list(reversed(components))


class SFTPManager:
    def __init__(self, runner: CommandRunner, systemd: Optional[SystemdManager] = None,
                 sshd_config_path: Optional[str] = None):
        self.runner = runner
        self.systemd = systemd or SystemdManager(runner)
        self.sshd_config_path = sshd_config_path or config.sshd_config_path

    @property
    def candidate_path(self) -> str:
        return f"{self.sshd_config_path}.pvdfr-new"

    def ensure_principal(self, access: SFTPAccess, chroot: str) -> ServicePrincipal:
        principal = ServicePrincipal(username=access.username, group=access.group, home=chroot)
        principals.ensure_user(self.runner, principal)
        return principal

    def prepare_chroot(self, access: SFTPAccess, chroot: str, root: str) -> str:
        """sshd refuses a chroot that is not root-owned, so uploads go one level down."""
        upload = os.path.join(chroot, access.upload_dir)
        self.runner.run(["mkdir", "-p", upload])
        self.runner.run(["chown", "root:root", chroot])
        self.runner.run(["chmod", "0755", chroot])
        self.check_chroot(root, chroot)
        self.runner.run(["chown", f"{access.username}:{access.group}", upload])
        self.runner.run(["chmod", "0755", upload])
        return upload

    def check_chroot(self, root: str, chroot: str):
        """Every directory from root down to chroot must be root:root and not group or world writable."""
        for path in chroot_components(root, chroot):
            result = self.runner.run(["stat", "-c", "%U:%G %a", path])
            fields = result.stdout.split()
            if len(fields) != 2 or not fields[1].isdigit():
                raise ShareConfigurationError(f"Cannot read ownership of {path}: {result.stdout.strip()!r}")
            owner, mode = fields
            if owner != "root:root" or int(mode, 8) & 0o022:
                raise ShareConfigurationError(
                    f"sshd would refuse ChrootDirectory {chroot}: {path} is {owner} mode {mode}, "
                    f"must be root:root and not group or world writable"
                )

    def set_password(self, username: str, password: str):
        principals.set_login_password(self.runner, username, password)

    def write_config(self, username: str, chroot: str) -> bool:
        """Install the Match block only if sshd accepts the resulting config.

        A broken sshd_config would lock operators out on restart, so the
        candidate is validated beside the live file and only then moved over it.
        """
        current = self.runner.read_file(self.sshd_config_path)
        updated = merge_match_block(current, username, render_match_block(username, chroot))
        if updated == current:
            logger.info(f"{self.sshd_config_path} already has the SFTP block for {username}")
            return False

        self.runner.write_file(self.candidate_path, updated)
        try:
            self.runner.run(["sshd", "-t", "-f", self.candidate_path])
        except CommandError as e:
            self.runner.run(["rm", "-f", self.candidate_path], check=False)
            raise ShareConfigurationError(f"sshd rejected the new configuration, live config left untouched: {e}") from e

        self.runner.run(["mv", self.candidate_path, self.sshd_config_path])
        return True

    def restart_service(self) -> str:
        return self.systemd.manage_service("ssh", "restart")
