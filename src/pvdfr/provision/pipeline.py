import logging
from typing import Callable, List, Optional, TypeVar

from pvdfr.config.models import ProvisionConfig
from pvdfr.errors import ProvisionAborted, ProvisionError
from pvdfr.firewall.ufw import FirewallConfigurator
from pvdfr.hwosinfo.hw import get_host_ip
from pvdfr.menu.facade import ManagementFacade, connection_info
from pvdfr.menu.models import ServerState
from pvdfr.pkgs.installer import PackageInstaller
from pvdfr.pkgs.manager import get_package_manager
from pvdfr.provision.models import ProvisionReport
from pvdfr.provision.status import Reporter
from pvdfr.shares.configurator import ShareConfigurator
from pvdfr.shares.models import Protocol, ShareResult, StepFailure
from pvdfr.storage.formatter import BlockDeviceFormatter
from pvdfr.storage.models import MountedVolume
from pvdfr.system.commands import CommandRunner
from pvdfr.system.privileges import PrivilegeGuard
from pvdfr.systemd.manager import SystemdManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Provisioner:
    """Runs the provisioning steps in order.

    privileges -> packages -> storage are fatal: the first failure raises
    ProvisionAborted and nothing after it runs. shares -> firewall -> menu
    are degraded: failures are collected into the report and the run goes on.
    """

    def __init__(self, provision_config: ProvisionConfig, device: str,
                 runner: Optional[CommandRunner] = None,
                 reporter: Optional[Reporter] = None,
                 force_wipe: bool = False,
                 guard: Optional[PrivilegeGuard] = None,
                 installer: Optional[PackageInstaller] = None,
                 formatter: Optional[BlockDeviceFormatter] = None,
                 shares: Optional[ShareConfigurator] = None,
                 firewall: Optional[FirewallConfigurator] = None,
                 facade: Optional[ManagementFacade] = None,
                 host_ip: Callable[[], str] = get_host_ip):
        self.config = provision_config
        self.device = device
        self.runner = runner or CommandRunner()
        self.reporter = reporter or Reporter()
        self.force_wipe = force_wipe
        self.guard = guard or PrivilegeGuard(self.runner)
        self._installer = installer
        self.formatter = formatter or BlockDeviceFormatter(
            self.runner, device, self.config.storage, notify=self.reporter.info
        )
        self.shares = shares or ShareConfigurator(
            self.runner, self.config, SystemdManager(self.runner), notify=self.reporter.info
        )
        self.firewall = firewall or FirewallConfigurator(self.runner)
        self.facade = facade or ManagementFacade(self.runner, self.config.menu.path, self.config.menu.state_path)
        self.host_ip = host_ip

    @property
    def installer(self) -> PackageInstaller:
        # Built lazily: picking the package backend reads os-release
        if self._installer is None:
            packages = self.config.packages
            self._installer = PackageInstaller(
                get_package_manager(self.runner), packages.install, packages.critical, packages.upgrade
            )
        return self._installer

    def run(self) -> ProvisionReport:
        report = ProvisionReport(device=self.device)
        self.reporter.info(f"Creating storage container on {self.device}")

        self._fatal("privileges", "(1) Checking privileges...", "Privileges verified", self.guard.check)
        self._fatal("packages", "(2) Installing required packages...", "Packages installed and verified",
                    lambda: self.installer.ensure())
        volume = self._fatal("storage", f"(3) Setting up storage device {self.device}",
                             "Storage setup completed successfully",
                             lambda: self.formatter.ensure(force=self.force_wipe))
        report.volume = volume

        share_result = self._configure_shares(volume)
        report.protocols = list(share_result.succeeded)
        report.failures.extend(share_result.failures)

        report.failures.extend(self._configure_firewall(share_result.succeeded))

        state = self._state(volume, share_result)
        report.failures.extend(self._install_menu(state))

        report.connection_info = connection_info(state, self.host_ip())
        self._summarize(report)
        return report

    def _fatal(self, step: str, start: str, done: str, action: Callable[[], T]) -> T:
        self.reporter.info(start)
        try:
            value = action()
        except (ProvisionError, OSError) as e:
            self.reporter.error(f"{step}: {e}")
            raise ProvisionAborted(step, e) from e
        self.reporter.success(done)
        return value

    def _configure_shares(self, volume: MountedVolume) -> ShareResult:
        self.reporter.info("(4) Configuring shares...")
        result = self.shares.configure(volume)
        for protocol in result.succeeded:
            self.reporter.success(f"{protocol.value.upper()} share setup completed")
        for failure in result.failures:
            self.reporter.warning(f"{failure.protocol.value.upper()} share setup failed: {failure.message}")
        return result

    def _configure_firewall(self, protocols: List[Protocol]) -> List[StepFailure]:
        if not self.config.firewall.enabled:
            self.reporter.info("(5) Firewall configuration disabled, skipping")
            return []
        self.reporter.info("(5) Setting up firewall...")
        try:
            self.firewall.ensure(protocols, self.config.firewall.nfs_service_alias)
        except ProvisionError as e:
            self.reporter.warning(f"Firewall setup failed: {e}")
            return [StepFailure(step="firewall", message=str(e))]
        self.reporter.success("Firewall setup completed")
        return []

    def _install_menu(self, state: ServerState) -> List[StepFailure]:
        if not self.config.menu.enabled:
            return []
        self.reporter.info("(6) Installing management menu...")
        try:
            self.facade.install(state)
        except (ProvisionError, OSError) as e:
            self.reporter.warning(f"Management menu installation failed: {e}")
            return [StepFailure(step="menu", message=str(e))]
        self.reporter.success(f"Management menu installed at {self.facade.menu_path}")
        return []

    def _state(self, volume: MountedVolume, share_result: ShareResult) -> ServerState:
        upload_dir = self.config.sftp.access.upload_dir if share_result.sftp_user else None
        return ServerState(
            mount_point=volume.mount_point,
            lv_path=volume.lv_path,
            protocols=share_result.succeeded,
            smb_shares=share_result.smb_shares,
            nfs_exports=share_result.nfs_exports,
            sftp_user=share_result.sftp_user,
            sftp_upload_dir=upload_dir,
        )

    def _summarize(self, report: ProvisionReport):
        self.reporter.rule()
        if report.degraded:
            self.reporter.warning("Storage Server Setup Completed with errors:")
            for failure in report.failures:
                scope = failure.protocol.value.upper() if failure.protocol else failure.step
                self.reporter.warning(f"  {scope}: {failure.message}")
        else:
            self.reporter.success("Storage Server Setup Completed!")
        for line in report.connection_info:
            self.reporter.info(line)
        self.reporter.info("Remember to:")
        self.reporter.info("1. Configure fail2ban for additional security")
        self.reporter.info("2. Set up regular backups")
        self.reporter.info("3. Monitor storage usage")
        self.reporter.rule()
