import click

@click.group()
def shares():
    """Inspect configured shares."""
    pass

@shares.group()
def samba():
    """Samba shares."""
    pass

@samba.command(name="list")
def list_samba_shares():
    """List Samba shares."""
    from pvdfr.shares.smb import SMBManager
    from pvdfr.system.commands import CommandRunner
    manager = SMBManager(CommandRunner())
    shares = manager.list_shares()
    if not shares:
        click.echo("No shares found.")
        return

    for share in shares:
        click.echo(f"Name: {share.name}")
        click.echo(f"  Path: {share.path}")
        click.echo(f"  Read Only: {share.read_only}")
        click.echo(f"  Guest OK: {share.guest_ok}")
        click.echo("-" * 20)

@samba.command(name="status")
def status_samba():
    """Get the status of the Samba service."""
    from pvdfr.system.commands import CommandRunner
    from pvdfr.systemd.manager import SystemdManager
    status = SystemdManager(CommandRunner()).get_service_status("smb")
    click.echo(f"Samba service status: {status.active_state}")

@shares.group()
def nfs():
    """NFS exports."""
    pass

@nfs.command(name="list")
def list_nfs_exports():
    """List NFS exports."""
    from pvdfr.shares.nfs import NFSManager
    from pvdfr.system.commands import CommandRunner
    exports = NFSManager(CommandRunner()).list_exports()
    if not exports:
        click.echo("No exports found.")
        return
    for line in exports:
        click.echo(line)
