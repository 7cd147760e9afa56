import getpass
import os
from typing import List, Optional

from pydantic import BaseModel, Field

from pvdfr.config.settings import config
from pvdfr.shares.models import NFSExport, SFTPAccess, SMBShare

DEFAULT_PACKAGES = [
    "lvm2",
    "parted",
    "samba",
    "samba-common-bin",
    "nfs-kernel-server",
    "openssh-server",
    "fail2ban",
    "ufw",
    "curl",
    "wget",
    "vim",
    "htop",
]

CRITICAL_PACKAGES = ["lvm2", "parted", "samba", "nfs-kernel-server"]


def _operator_name() -> str:
    return os.getenv("SUDO_USER") or getpass.getuser()


class StorageConfig(BaseModel):
    device: Optional[str] = None
    mount_point: str = config.mount_point
    vg_name: str = config.vg_name
    lv_name: str = config.lv_name
    fs_type: str = config.fs_type
    wipe_megabytes: int = 100
    partition_poll_attempts: int = 30
    partition_poll_interval: float = 1.0


class PackagesConfig(BaseModel):
    install: List[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    critical: List[str] = Field(default_factory=lambda: list(CRITICAL_PACKAGES))
    upgrade: bool = True


class SMBConfig(BaseModel):
    enabled: bool = True
    user: str = ""
    group: str = "storage"
    shares: Optional[List[SMBShare]] = None

    def resolved_shares(self) -> List[SMBShare]:
        """The configured shares, or the single ``[storage]`` share for the operator.

        The default share lives one level below the mount point: the mount
        point itself must stay root-owned for the SFTP chroot below it.
        """
        if self.shares is not None:
            return self.shares
        return [SMBShare(name="storage", path="share", valid_users=[self.user])]


class NFSConfig(BaseModel):
    enabled: bool = True
    exports: List[NFSExport] = Field(default_factory=lambda: [NFSExport(path=".")])


class SFTPConfig(BaseModel):
    enabled: bool = True
    access: SFTPAccess = Field(default_factory=SFTPAccess)


class FirewallConfig(BaseModel):
    enabled: bool = True
    nfs_service_alias: bool = True


class MenuConfig(BaseModel):
    enabled: bool = True
    path: str = config.menu_path
    state_path: str = config.state_path


class ProvisionConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    packages: PackagesConfig = Field(default_factory=PackagesConfig)
    smb: SMBConfig = Field(default_factory=SMBConfig)
    nfs: NFSConfig = Field(default_factory=NFSConfig)
    sftp: SFTPConfig = Field(default_factory=SFTPConfig)
    firewall: FirewallConfig = Field(default_factory=FirewallConfig)
    menu: MenuConfig = Field(default_factory=MenuConfig)
    interactive: bool = True

    def model_post_init(self, __context) -> None:
        if not self.smb.user:
            self.smb.user = _operator_name()
