import json
import socket
import subprocess
from typing import Dict, List

import psutil


def get_disks() -> List[dict]:
    """Return lsblk's block device tree (sizes in bytes, partitions under 'children')."""
    cmd = ["lsblk", "-J", "-b", "-o", "NAME,PATH,SIZE,MODEL,SERIAL,ROTA,TYPE,FSTYPE,MOUNTPOINT"]
    output = subprocess.check_output(cmd).decode()
    return json.loads(output)["blockdevices"]


def get_mounts() -> Dict[str, str]:
    """Map every mounted device node to its mount point."""
    return {part.device: part.mountpoint for part in psutil.disk_partitions(all=True)}


def get_usage(path: str) -> dict:
    usage = psutil.disk_usage(path)
    return {
        'total': usage.total,
        'used': usage.used,
        'free': usage.free,
        'percentage': usage.percent,
    }


def get_host_ip() -> str:
    """Primary IPv4 address of the host, as clients would reach it."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packet is sent; connect() only selects the outbound interface
        s.connect(('1.1.1.1', 1))
        ip = s.getsockname()[0]
    except OSError:
        ip = '127.0.0.1'
    finally:
        s.close()

    if ip != '127.0.0.1':
        return ip

    for interface, addrs in psutil.net_if_addrs().items():
        if interface == 'lo':
            continue
        for addr in addrs:
            if addr.family == socket.AF_INET and not addr.address.startswith('127.'):
                return addr.address
    return '127.0.0.1'
