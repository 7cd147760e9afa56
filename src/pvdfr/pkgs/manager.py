import logging
from typing import List

from pvdfr.errors import UnsupportedDistributionError
from pvdfr.hwosinfo.os import get_os_info
from pvdfr.pkgs.base import PackageManager
from pvdfr.pkgs.debian import DebianPackageManager
from pvdfr.pkgs.models import PackageStatus
from pvdfr.system.commands import CommandRunner

logger = logging.getLogger(__name__)


def get_package_manager(runner: CommandRunner) -> PackageManager:
    os_info = get_os_info()
    distro = os_info.get('id')
    like = os_info.get('id_like', '').split()
    if distro in ["debian", "ubuntu"] or "debian" in like:
        return DebianPackageManager(runner)
    else:
        raise UnsupportedDistributionError(f"Unsupported distribution: {distro}")


def get_package_status(pm: PackageManager, packages: List[str], critical: List[str]) -> List[PackageStatus]:
    return [
        PackageStatus(
            name=name,
            critical=name in critical,
            installed=pm.is_installed(name)
        )
        for name in packages
    ]
