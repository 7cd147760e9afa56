from enum import Enum
from typing import List, Optional
from pydantic import BaseModel

class Protocol(str, Enum):
    SMB = "smb"
    NFS = "nfs"
    SFTP = "sftp"

class ServicePrincipal(BaseModel):
    username: str
    group: Optional[str] = None
    shell: str = "/usr/sbin/nologin"
    home: Optional[str] = None

class SMBShare(BaseModel):
    name: str
    path: str
    comment: Optional[str] = None
    read_only: bool = False
    browsable: bool = True
    guest_ok: bool = False
    valid_users: List[str] = []
    create_mask: str = "0775"
    directory_mask: str = "0775"

class NFSExport(BaseModel):
    path: str
    clients: str = "*"
    read_only: bool = False
    sync: bool = True
    root_squash: bool = True

class SFTPAccess(BaseModel):
    username: str = "sftpuser"
    group: str = "sftpusers"
    chroot: str = "sftp"
    upload_dir: str = "uploads"

class StepFailure(BaseModel):
    step: str
    protocol: Optional[Protocol] = None
    message: str

class ShareResult(BaseModel):
    succeeded: List[Protocol] = []
    failures: List[StepFailure] = []
    smb_shares: List[str] = []
    nfs_exports: List[str] = []
    sftp_user: Optional[str] = None
