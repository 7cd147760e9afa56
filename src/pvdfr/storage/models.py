from enum import Enum
from typing import List, Optional
from pydantic import BaseModel

class Partition(BaseModel):
    name: str
    path: str
    size: int
    fstype: Optional[str] = None
    mountpoint: Optional[str] = None

class Disk(BaseModel):
    name: str
    path: str
    size: int
    model: Optional[str] = None
    serial: Optional[str] = None
    rotational: bool = False
    partitions: List[Partition] = []
    is_system: bool = False  # True if it holds /, /boot or swap
    available: bool = False  # True if no partitions and no filesystem

class FormatState(str, Enum):
    UNCHECKED = "unchecked"
    UNMOUNTED = "unmounted"
    WIPED = "wiped"
    PARTITIONED = "partitioned"
    PHYSICAL_VOLUME = "physical_volume"
    VOLUME_GROUP = "volume_group"
    LOGICAL_VOLUME = "logical_volume"
    FORMATTED = "formatted"
    MOUNTED = "mounted"
    PERSISTED = "persisted"

FORMAT_ORDER = list(FormatState)

class VolumeStack(BaseModel):
    device: str
    partition: str
    vg_name: str
    lv_name: str
    fs_type: str = "ext4"

    @property
    def lv_path(self) -> str:
        return f"/dev/{self.vg_name}/{self.lv_name}"

class MountedVolume(BaseModel):
    """Proof that the volume is mounted and persisted; shares require one."""
    device: str
    lv_path: str
    mount_point: str
    fs_type: str

class FstabEntry(BaseModel):
    spec: str
    mount_point: str
    fs_type: str
    options: str = "defaults"
    dump: int = 0
    passno: int = 2

    def render(self) -> str:
        return f"{self.spec} {self.mount_point} {self.fs_type} {self.options} {self.dump} {self.passno}"
