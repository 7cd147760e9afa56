import logging
import os
import re
import stat
import time
from typing import Callable, List, Optional, Tuple

from pvdfr.config.models import StorageConfig
from pvdfr.errors import CommandError, DeviceFormatError, DeviceNotFoundError
from pvdfr.hwosinfo.hw import get_mounts
from pvdfr.storage.fstab import FstabManager
from pvdfr.storage.models import (
    FORMAT_ORDER,
    FormatState,
    FstabEntry,
    MountedVolume,
    VolumeStack,
)
from pvdfr.system.commands import CommandRunner

logger = logging.getLogger(__name__)


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except (FileNotFoundError, NotADirectoryError):
        return False


def partition_path(device: str, number: int) -> str:
    """/dev/sdb -> /dev/sdb1, /dev/nvme0n1 -> /dev/nvme0n1p1."""
    separator = "p" if device[-1].isdigit() else ""
    return f"{device}{separator}{number}"


def belongs_to(node: str, device: str) -> bool:
    """True if node is device itself or one of its partitions."""
    separator = "p" if device[-1].isdigit() else ""
    return node == device or re.fullmatch(re.escape(device + separator) + r"\d+", node) is not None


# mkfs flag that overwrites an existing signature; ext2/3/4 use -F
MKFS_FORCE_FLAGS = {
    "xfs": "-f",
    "btrfs": "-f",
}


def mkfs_command(fs_type: str, target: str) -> List[str]:
    return [f"mkfs.{fs_type}", MKFS_FORCE_FLAGS.get(fs_type, "-F"), target]


def mapper_path(vg_name: str, lv_name: str) -> str:
    return f"/dev/mapper/{vg_name.replace('-', '--')}-{lv_name.replace('-', '--')}"


class BlockDeviceFormatter:
    """Turns a raw block device into a mounted, persisted LVM-backed filesystem.

    The device walks FormatState strictly forward:
    UNCHECKED -> UNMOUNTED -> WIPED -> PARTITIONED -> PHYSICAL_VOLUME ->
    VOLUME_GROUP -> LOGICAL_VOLUME -> FORMATTED -> MOUNTED -> PERSISTED.

    Unless forced, ensure() first probes the host and resumes from the
    furthest state already reached, so a re-run never wipes a device that
    already carries the configured volume. Any failure is fatal and nothing
    is rolled back.
    """

    def __init__(self, runner: CommandRunner, device: str, storage: Optional[StorageConfig] = None,
                 fstab: Optional[FstabManager] = None, notify: Optional[Callable[[str], None]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.runner = runner
        self.storage = storage or StorageConfig()
        self.stack = VolumeStack(
            device=device,
            partition=partition_path(device, 1),
            vg_name=self.storage.vg_name,
            lv_name=self.storage.lv_name,
            fs_type=self.storage.fs_type,
        )
        self.fstab = fstab or FstabManager(runner)
        self.notify = notify or logger.info
        self.sleep = sleep
        self.state = FormatState.UNCHECKED

    @property
    def device(self) -> str:
        return self.stack.device

    @property
    def mount_point(self) -> str:
        return self.storage.mount_point

    def ensure(self, force: bool = False) -> MountedVolume:
        self.check_device()
        start = FormatState.UNCHECKED if force else self.probe()
        if start != FormatState.UNCHECKED:
            self.notify(f"{self.stack.lv_path} already provisioned up to '{start.value}', resuming")

        for target, action in self._transitions():
            if FORMAT_ORDER.index(target) <= FORMAT_ORDER.index(start):
                self.state = max(self.state, target, key=FORMAT_ORDER.index)
                continue
            self._advance(target, action)

        return MountedVolume(
            device=self.device,
            lv_path=self.stack.lv_path,
            mount_point=self.mount_point,
            fs_type=self.stack.fs_type,
        )

    def check_device(self):
        if not is_block_device(self.device):
            raise DeviceNotFoundError(self.device)

    def probe(self) -> FormatState:
        """Furthest state this device has already reached for our volume stack."""
        volume_groups = [vg for pv, vg in self._physical_volumes() if pv == self.stack.partition]
        if self.stack.vg_name not in volume_groups:
            return FormatState.UNCHECKED
        lv = f"{self.stack.vg_name}/{self.stack.lv_name}"
        if not self.runner.succeeds(["lvs", lv], privileged=True):
            return FormatState.VOLUME_GROUP

        result = self.runner.run(["blkid", "-s", "TYPE", "-o", "value", self.stack.lv_path], check=False)
        if result.stdout.strip() != self.stack.fs_type:
            return FormatState.LOGICAL_VOLUME
        if self._volume_mounted():
            return FormatState.MOUNTED
        return FormatState.FORMATTED

    def _transitions(self) -> List[Tuple[FormatState, Callable[[], None]]]:
        return [
            (FormatState.UNMOUNTED, self._unmount),
            (FormatState.WIPED, self._wipe),
            (FormatState.PARTITIONED, self._partition),
            (FormatState.PHYSICAL_VOLUME, self._create_physical_volume),
            (FormatState.VOLUME_GROUP, self._create_volume_group),
            (FormatState.LOGICAL_VOLUME, self._create_logical_volume),
            (FormatState.FORMATTED, self._format),
            (FormatState.MOUNTED, self._mount),
            (FormatState.PERSISTED, self._persist),
        ]

    def _advance(self, target: FormatState, action: Callable[[], None]):
        logger.debug(f"{self.device}: {self.state.value} -> {target.value}")
        try:
            action()
        except CommandError as e:
            raise DeviceFormatError(self.device, target.value, e) from e
        self.state = target

    def _unmount(self):
        for node, mountpoint in get_mounts().items():
            if belongs_to(node, self.device):
                self.notify(f"{node} is mounted on {mountpoint}. Unmounting...")
                self.runner.run(["umount", "-l", node])

    def _wipe(self):
        self.notify("Clearing up previous setup...")
        self._release_lvm()
        self.runner.run(["wipefs", "-a", self.device])
        self.runner.run([
            "dd", "if=/dev/zero", f"of={self.device}", "bs=1M",
            f"count={self.storage.wipe_megabytes}", "conv=fsync", "status=none",
        ])

    def _partition(self):
        self.notify(f"Creating partition on {self.device}...")
        self.runner.run(["parted", "-s", self.device, "mklabel", "gpt"])
        self.runner.run(["parted", "-s", self.device, "mkpart", "primary", "0%", "100%"])
        self.runner.run(["parted", "-s", self.device, "set", "1", "lvm", "on"])
        self.wait_for_partition()

    def wait_for_partition(self):
        """Poll until the kernel exposes the new partition node."""
        partition = self.stack.partition
        for attempt in range(self.storage.partition_poll_attempts):
            self.runner.run(["partprobe", self.device], check=False)
            self.runner.run(["udevadm", "settle"], check=False)
            if is_block_device(partition):
                logger.debug(f"{partition} appeared after {attempt + 1} attempt(s)")
                return
            self.sleep(self.storage.partition_poll_interval)
        raise DeviceFormatError(
            self.device, FormatState.PARTITIONED.value,
            TimeoutError(f"partition {partition} did not appear"),
        )

    def _create_physical_volume(self):
        self.notify(f"Creating physical volume on {self.stack.partition}...")
        self.runner.run(["pvcreate", "-ff", "-y", self.stack.partition])

    def _create_volume_group(self):
        self.notify(f"Creating volume group {self.stack.vg_name}...")
        self.runner.run(["vgcreate", self.stack.vg_name, self.stack.partition])

    def _create_logical_volume(self):
        # Takes every free extent; nothing is left for snapshots or growth
        self.notify(f"Creating logical volume {self.stack.lv_name}...")
        self.runner.run(["lvcreate", "-y", "-l", "100%FREE", "-n", self.stack.lv_name, self.stack.vg_name])

    def _format(self):
        self.notify(f"Formatting {self.stack.lv_path} as {self.stack.fs_type}...")
        self.runner.run(mkfs_command(self.stack.fs_type, self.stack.lv_path))

    def _mount(self):
        self.notify(f"Mounting storage on {self.mount_point}...")
        self.runner.run(["mkdir", "-p", self.mount_point])
        self.runner.run(["mount", self.stack.lv_path, self.mount_point])

    def _persist(self):
        self.fstab.ensure(FstabEntry(
            spec=self.stack.lv_path,
            mount_point=self.mount_point,
            fs_type=self.stack.fs_type,
        ))

    def teardown(self):
        """Reset the device: unmount, drop the fstab record, remove LVM, wipe signatures."""
        self.check_device()
        try:
            if self._volume_mounted():
                self.runner.run(["umount", "-l", self.mount_point])
            self._unmount()
            self.fstab.remove(self.stack.lv_path, self.mount_point)
            self._release_lvm()
            self.runner.run(["wipefs", "-a", self.device])
        except CommandError as e:
            raise DeviceFormatError(self.device, FormatState.UNCHECKED.value, e) from e
        self.state = FormatState.UNCHECKED

    def _physical_volumes(self) -> List[Tuple[str, str]]:
        result = self.runner.run(["pvs", "--noheadings", "-o", "pv_name,vg_name"], check=False)
        volumes = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if parts:
                volumes.append((parts[0], parts[1] if len(parts) > 1 else ""))
        return volumes

    def _release_lvm(self):
        """Remove volume groups and physical volumes left on the device by earlier runs."""
        mounts = get_mounts()
        for pv, vg in self._physical_volumes():
            if not belongs_to(pv, self.device):
                continue
            if vg:
                lvs = self.runner.run(["lvs", "--noheadings", "-o", "lv_path", vg], check=False)
                for lv_path in lvs.stdout.split():
                    for node in mounts:
                        if self._same_device(node, lv_path, vg):
                            self.runner.run(["umount", "-l", node])
                self.notify(f"Removing stale volume group {vg}...")
                self.runner.run(["vgchange", "-an", vg])
                self.runner.run(["vgremove", "-f", vg])
            self.runner.run(["pvremove", "-ff", "-y", pv])

    def _volume_mounted(self) -> bool:
        for node, mountpoint in get_mounts().items():
            if mountpoint == self.mount_point and \
                    self._same_device(node, self.stack.lv_path, self.stack.vg_name):
                return True
        return False

    @staticmethod
    def _same_device(node: str, lv_path: str, vg_name: str) -> bool:
        if node == lv_path:
            return True
        lv_name = os.path.basename(lv_path)
        if node == mapper_path(vg_name, lv_name):
            return True
        return os.path.realpath(node) == os.path.realpath(lv_path)
