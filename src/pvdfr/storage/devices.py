from typing import List
from pvdfr.hwosinfo.hw import get_disks as get_raw_disks
from pvdfr.storage.models import Disk, Partition

SYSTEM_MOUNTPOINTS = ["/", "/boot", "/boot/efi", "/etc", "/var", "/usr"]

def get_system_disks() -> List[Disk]:
    """
    Parse lsblk output into Disk models, skipping loop and ram devices.
    A disk is a system disk if any of its partitions backs a system mount or swap.
    """
    disks = []

    for device in get_raw_disks():
        name = device.get("name", "")
        if name.startswith("loop") or name.startswith("ram") or device.get("type") == "rom":
            continue

        raw_partitions = device.get("children", [])
        partitions = []
        is_system = device.get("mountpoint") in SYSTEM_MOUNTPOINTS

        for p in raw_partitions:
            mountpoint = p.get("mountpoint")
            if mountpoint in SYSTEM_MOUNTPOINTS or p.get("fstype") == "swap":
                is_system = True

            partitions.append(Partition(
                name=p.get("name"),
                path=p.get("path"),
                size=int(p.get("size") or 0),
                fstype=p.get("fstype"),
                mountpoint=mountpoint
            ))

        disks.append(Disk(
            name=name,
            path=device.get("path") or f"/dev/{name}",
            size=int(device.get("size") or 0),
            model=device.get("model"),
            serial=device.get("serial"),
            rotational=bool(device.get("rota")),
            partitions=partitions,
            is_system=is_system,
            available=not is_system and not raw_partitions and not device.get("fstype")
        ))

    return disks

def get_unused_disks() -> List[Disk]:
    """Returns only disks marked as available."""
    return [d for d in get_system_disks() if d.available]

def format_size(size: int) -> str:
    value = float(size)
    for unit in ["B", "K", "M", "G", "T"]:
        if value < 1024 or unit == "T":
            return f"{value:.1f}{unit}" if unit != "B" else f"{int(value)}B"
        value /= 1024
