from typing import List, Optional
from pydantic import BaseModel

from pvdfr.shares.models import Protocol

class ServerState(BaseModel):
    """What the provisioner set up, as recorded for the operator menu."""
    mount_point: str
    lv_path: Optional[str] = None
    protocols: List[Protocol] = []
    smb_shares: List[str] = []
    nfs_exports: List[str] = []
    sftp_user: Optional[str] = None
    sftp_upload_dir: Optional[str] = None
