from typing import List

from pvdfr.pkgs.base import PackageManager

APT_ENV = ["env", "DEBIAN_FRONTEND=noninteractive"]


class DebianPackageManager(PackageManager):
    def refresh(self):
        self.runner.run(APT_ENV + ["apt-get", "update"])

    def upgrade(self):
        self.runner.run(APT_ENV + ["apt-get", "upgrade", "-y"])

    def install(self, packages: List[str]):
        self.runner.run(APT_ENV + ["apt-get", "install", "-y"] + list(packages))

    def is_installed(self, package: str) -> bool:
        result = self.runner.run(
            ["dpkg-query", "-W", "-f=${Status}", package], check=False, privileged=False
        )
        return result.returncode == 0 and result.stdout.strip() == "install ok installed"
