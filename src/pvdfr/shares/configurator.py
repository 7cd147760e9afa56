import logging
import os
from typing import Callable, Optional

from pvdfr.config.models import ProvisionConfig
from pvdfr.config.settings import config as settings
from pvdfr.errors import ProvisionError, ShareConfigurationError
from pvdfr.shares import principals
from pvdfr.shares.credentials import get_password
from pvdfr.shares.models import Protocol, ServicePrincipal, ShareResult, StepFailure
from pvdfr.shares.nfs import NFSManager
from pvdfr.shares.sftp import SFTPManager
from pvdfr.shares.smb import SMBManager
from pvdfr.storage.models import MountedVolume
from pvdfr.system.commands import CommandRunner
from pvdfr.systemd.manager import SystemdManager

logger = logging.getLogger(__name__)


def resolve_path(volume: MountedVolume, path: str) -> str:
    """Resolve a share path against the mounted volume; it must stay inside it."""
    root = os.path.normpath(volume.mount_point)
    resolved = os.path.normpath(path if os.path.isabs(path) else os.path.join(root, path))
    if os.path.commonpath([root, resolved]) != root:
        raise ShareConfigurationError(f"{path} is outside the mounted volume {root}")
    return resolved


class ShareConfigurator:
    """Configures SMB, NFS and SFTP on top of a mounted volume.

    Each protocol is independent: a failure is recorded in the result and the
    next protocol still runs.
    """

    def __init__(self, runner: CommandRunner, provision_config: ProvisionConfig,
                 systemd: Optional[SystemdManager] = None,
                 smb: Optional[SMBManager] = None,
                 nfs: Optional[NFSManager] = None,
                 sftp: Optional[SFTPManager] = None,
                 password_source: Callable[[str, str, bool], str] = get_password,
                 notify: Optional[Callable[[str], None]] = None):
        self.runner = runner
        self.config = provision_config
        systemd = systemd or SystemdManager(runner)
        self.smb = smb or SMBManager(runner, systemd)
        self.nfs = nfs or NFSManager(runner, systemd)
        self.sftp = sftp or SFTPManager(runner, systemd)
        self.password_source = password_source
        self.notify = notify or logger.info

    def configure(self, volume: MountedVolume) -> ShareResult:
        result = ShareResult()
        protocols = [
            (Protocol.SMB, self.config.smb.enabled, self._configure_smb),
            (Protocol.NFS, self.config.nfs.enabled, self._configure_nfs),
            (Protocol.SFTP, self.config.sftp.enabled, self._configure_sftp),
        ]

        for protocol, enabled, handler in protocols:
            if not enabled:
                logger.info(f"{protocol.value} disabled, skipping")
                continue
            self.notify(f"Setting up {protocol.value.upper()} share...")
            try:
                handler(volume, result)
            except (ProvisionError, OSError) as e:
                logger.error(f"{protocol.value} configuration failed: {e}")
                result.failures.append(StepFailure(step="shares", protocol=protocol, message=str(e)))
                continue
            result.succeeded.append(protocol)

        return result

    def _password(self, env_var: str, label: str) -> str:
        return self.password_source(env_var, label, self.config.interactive)

    def _configure_smb(self, volume: MountedVolume, result: ShareResult):
        smb_config = self.config.smb
        shares = [
            share.model_copy(update={"path": resolve_path(volume, share.path)})
            for share in smb_config.resolved_shares()
        ]
        password = self._password(settings.smb_password_env, f"Samba password for {smb_config.user}")

        self.smb.backup()
        principals.ensure_group(self.runner, smb_config.group)
        principals.ensure_user(self.runner, ServicePrincipal(username=smb_config.user))
        principals.add_to_group(self.runner, smb_config.user, smb_config.group)

        for share in shares:
            self.smb.prepare_path(share, smb_config.group)
        self.smb.write_shares(shares, smb_config.group)
        self.smb.validate()

        self.smb.set_password(smb_config.user, password)
        self.smb.restart_service()
        result.smb_shares = [share.name for share in shares]

    def _configure_nfs(self, volume: MountedVolume, result: ShareResult):
        exports = [
            export.model_copy(update={"path": resolve_path(volume, export.path)})
            for export in self.config.nfs.exports
        ]
        for export in exports:
            self.nfs.prepare_path(export)
        self.nfs.write_exports(exports)
        self.nfs.apply()
        result.nfs_exports = [export.path for export in exports]

    def _configure_sftp(self, volume: MountedVolume, result: ShareResult):
        access = self.config.sftp.access
        chroot = resolve_path(volume, access.chroot)
        if chroot == os.path.normpath(volume.mount_point):
            raise ShareConfigurationError("SFTP chroot must be a subdirectory of the mounted volume")
        password = self._password(settings.sftp_password_env, f"SFTP password for {access.username}")

        self.sftp.ensure_principal(access, chroot)
        self.sftp.prepare_chroot(access, chroot, volume.mount_point)
        self.sftp.set_password(access.username, password)
        self.sftp.write_config(access.username, chroot)
        self.sftp.restart_service()
        result.sftp_user = access.username
