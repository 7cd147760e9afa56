import logging
import subprocess

import click

from pvdfr.cli.shares import shares
from pvdfr.cli.system import system
from pvdfr.config.settings import config as settings


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log every host command.")
@click.pass_context
def main(ctx, verbose):
    """Storage server provisioning CLI"""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

main.add_command(shares)
main.add_command(system)


def choose_device(interactive: bool) -> str:
    """Prompt for the target device, listing candidates first."""
    if not interactive:
        return settings.default_device

    from pvdfr.storage.devices import format_size, get_system_disks
    try:
        disks = get_system_disks()
    except (subprocess.CalledProcessError, FileNotFoundError):
        disks = []

    if disks:
        click.echo("Available storage devices:")
        for disk in disks:
            marker = " (system)" if disk.is_system else ""
            click.echo(f"  {disk.path}  {format_size(disk.size)}  {disk.model or ''}{marker}")
    return click.prompt("Enter storage device to use", default=settings.default_device)


@main.command()
@click.argument("device", required=False)
@click.option("--config", "config_path", help="Path to the provisioning file.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask before touching the device.")
@click.option("--force-wipe", is_flag=True, help="Wipe and rebuild even if the volume already exists.")
@click.option("--non-interactive", is_flag=True, help="Never prompt; passwords come from the environment.")
@click.option("--no-smb", is_flag=True, help="Skip Samba.")
@click.option("--no-nfs", is_flag=True, help="Skip NFS.")
@click.option("--no-sftp", is_flag=True, help="Skip SFTP.")
@click.option("--no-firewall", is_flag=True, help="Leave the firewall alone.")
@click.option("--no-menu", is_flag=True, help="Do not install the management menu.")
@click.pass_context
def provision(ctx, device, config_path, yes, force_wipe, non_interactive,
              no_smb, no_nfs, no_sftp, no_firewall, no_menu):
    """Provision DEVICE as a SMB/NFS/SFTP storage server."""
    from pvdfr.config.loader import load_config
    from pvdfr.errors import ProvisionAborted
    from pvdfr.provision.pipeline import Provisioner

    provision_config = load_config(config_path)
    if non_interactive:
        provision_config.interactive = False
    provision_config.smb.enabled &= not no_smb
    provision_config.nfs.enabled &= not no_nfs
    provision_config.sftp.enabled &= not no_sftp
    provision_config.firewall.enabled &= not no_firewall
    provision_config.menu.enabled &= not no_menu

    click.echo("=" * 42)
    click.echo("   pvDFR - Storage Server Setup   ")
    click.echo("=" * 42)

    device = device or provision_config.storage.device or choose_device(provision_config.interactive)

    if not yes:
        if not provision_config.interactive:
            raise click.UsageError("--yes is required with --non-interactive")
        click.confirm(f"All data on {device} may be destroyed. Continue?", abort=True)

    provisioner = Provisioner(provision_config, device, force_wipe=force_wipe)
    try:
        report = provisioner.run()
    except ProvisionAborted:
        ctx.exit(1)
    ctx.exit(2 if report.degraded else 0)


@main.command()
@click.argument("device")
@click.option("--config", "config_path", help="Path to the provisioning file.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def reset(device, config_path, yes):
    """Tear down the storage volume on DEVICE."""
    from pvdfr.config.loader import load_config
    from pvdfr.errors import ProvisionError
    from pvdfr.storage.formatter import BlockDeviceFormatter
    from pvdfr.system.commands import CommandRunner
    from pvdfr.system.privileges import PrivilegeGuard

    provision_config = load_config(config_path)
    if not yes:
        click.confirm(f"Remove the storage volume and wipe {device}?", abort=True)

    runner = CommandRunner()
    try:
        PrivilegeGuard(runner).check()
        BlockDeviceFormatter(runner, device, provision_config.storage).teardown()
    except ProvisionError as e:
        raise click.ClickException(str(e))
    click.echo(f"Storage volume on {device} removed.")


@main.command()
@click.option("--state", "state_path", default=settings.state_path, help="Provisioning state file.")
def menu(state_path):
    """Interactive management menu."""
    from pvdfr.errors import ProvisionError
    from pvdfr.menu.facade import ManagementMenu, load_state
    from pvdfr.system.commands import CommandRunner
    from pvdfr.systemd.manager import SystemdManager

    try:
        state = load_state(state_path)
    except ProvisionError as e:
        raise click.ClickException(str(e))
    ManagementMenu(state, SystemdManager(CommandRunner())).run()
