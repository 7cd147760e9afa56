import logging
from typing import List, Optional

from pvdfr.errors import CommandError, PackageInstallError, PackageVerificationError
from pvdfr.pkgs.base import PackageManager

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Brings the OS package set up to date and verifies the critical subset.

    Verification failure is fatal: a partially installed toolchain is not a
    safe base for wiping a device.
    """

    def __init__(self, pm: PackageManager, packages: List[str], critical: Optional[List[str]] = None,
                 upgrade: bool = True):
        self.pm = pm
        self.packages = list(packages)
        self.critical = list(critical) if critical is not None else list(packages)
        self.upgrade = upgrade

    def ensure(self):
        try:
            self.pm.refresh()
            if self.upgrade:
                self.pm.upgrade()
            self.pm.install(self.packages)
        except CommandError as e:
            raise PackageInstallError(f"Failed to install packages: {e}") from e

        self.verify()

    def verify(self) -> List[str]:
        missing = []
        for package in self.critical:
            if self.pm.is_installed(package):
                logger.info(f"{package} is installed correctly")
            else:
                logger.error(f"{package} is not installed properly")
                missing.append(package)

        if missing:
            raise PackageVerificationError(missing)
        return list(self.critical)
