import click

@click.group()
@click.pass_context
def system(ctx):
    """System commands"""
    pass

@system.command(name='disks')
@click.option('--free', 'show_free', is_flag=True, help='Show only unused disks.')
def list_disks(show_free):
    """Show block devices that could be provisioned."""
    from pvdfr.storage.devices import format_size, get_system_disks, get_unused_disks
    disks = get_unused_disks() if show_free else get_system_disks()

    if not disks:
        click.echo("No disks found.")
        return

    for disk in disks:
        flags = []
        if disk.is_system:
            flags.append("system")
        if disk.available:
            flags.append("free")
        click.echo(f"{disk.path} - {format_size(disk.size)} - {disk.model or 'N/A'} - {','.join(flags) or 'in use'}")

@system.command(name='packages')
@click.option('--config', 'config_path', help='Path to the provisioning file.')
def list_packages(config_path):
    """Show which provisioning packages are installed."""
    from pvdfr.config.loader import load_config
    from pvdfr.errors import UnsupportedDistributionError
    from pvdfr.pkgs.manager import get_package_manager, get_package_status
    from pvdfr.system.commands import CommandRunner

    packages = load_config(config_path).packages
    try:
        pm = get_package_manager(CommandRunner())
    except UnsupportedDistributionError as e:
        raise click.ClickException(str(e))

    for status in get_package_status(pm, packages.install, packages.critical):
        state = "installed" if status.installed else "missing"
        marker = " (critical)" if status.critical else ""
        click.echo(f"{status.name}: {state}{marker}")
