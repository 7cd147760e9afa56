import logging
import os
import shutil
import sys
from typing import Callable, List, Optional

import click
import yaml

from pvdfr.errors import ProvisionError
from pvdfr.hwosinfo.hw import get_host_ip, get_usage
from pvdfr.menu.models import ServerState
from pvdfr.shares.models import Protocol
from pvdfr.storage.devices import format_size
from pvdfr.system.commands import CommandRunner
from pvdfr.systemd.manager import SystemdManager

logger = logging.getLogger(__name__)

PROTOCOL_SERVICES = {
    Protocol.SMB: "smb",
    Protocol.NFS: "nfs",
    Protocol.SFTP: "ssh",
}

MENU_ENTRIES = [
    ("1", "Show storage usage"),
    ("2", "Show service status"),
    ("3", "Restart services"),
    ("4", "List shares"),
    ("5", "Show connection info"),
    ("q", "Quit"),
]


def connection_info(state: ServerState, host: str) -> List[str]:
    """Connection strings for the protocols that were actually configured."""
    lines = [f"Storage Location: {state.mount_point}"]
    if Protocol.SMB in state.protocols:
        for share in state.smb_shares:
            lines.append(f"Samba Share: //{host}/{share}")
    if Protocol.NFS in state.protocols:
        for path in state.nfs_exports:
            lines.append(f"NFS Share: {host}:{path}")
    if Protocol.SFTP in state.protocols and state.sftp_user:
        lines.append(f"SFTP: sftp {state.sftp_user}@{host} (upload to /{state.sftp_upload_dir or ''})")
    return lines


def load_state(path: str) -> ServerState:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ProvisionError(f"No provisioning state at {path}; run 'pvdfr provision' first")
    return ServerState.model_validate(data)


def dump_state(state: ServerState) -> str:
    return yaml.safe_dump(state.model_dump(mode="json"), sort_keys=False)


class ManagementFacade:
    """Installs the operator menu: a state file plus a launcher script."""

    def __init__(self, runner: CommandRunner, menu_path: str, state_path: str):
        self.runner = runner
        self.menu_path = menu_path
        self.state_path = state_path

    def launcher_script(self) -> str:
        executable = shutil.which("pvdfr") or f"{sys.executable} -m pvdfr.cli"
        return f'#!/bin/sh\nexec {executable} menu --state {self.state_path} "$@"\n'

    def install(self, state: ServerState):
        self.runner.run(["mkdir", "-p", os.path.dirname(self.state_path)])
        self.runner.write_file(self.state_path, dump_state(state))
        self.runner.run(["mkdir", "-p", os.path.dirname(self.menu_path)])
        self.runner.write_file(self.menu_path, self.launcher_script())
        self.runner.run(["chmod", "0755", self.menu_path])
        logger.info(f"Management menu installed at {self.menu_path}")


class ManagementMenu:
    """Interactive menu; restarting services is its only mutating action."""

    def __init__(self, state: ServerState, systemd: SystemdManager,
                 echo: Callable[[str], None] = click.echo,
                 prompt: Optional[Callable[[str], str]] = None):
        self.state = state
        self.systemd = systemd
        self.echo = echo
        self.prompt = prompt or (lambda text: click.prompt(text, default="q", show_default=False))
        self.actions = {
            "1": self.show_usage,
            "2": self.show_status,
            "3": self.restart_services,
            "4": self.list_shares,
            "5": self.show_connection_info,
        }

    def services(self) -> List[str]:
        keys = [PROTOCOL_SERVICES[p] for p in self.state.protocols]
        if "ssh" not in keys:
            keys.append("ssh")
        return keys

    def run(self):
        while True:
            self.echo("")
            self.echo("=== Storage Server Management ===")
            for key, label in MENU_ENTRIES:
                self.echo(f"  {key}) {label}")
            choice = self.prompt("Select an option").strip().lower()

            if choice in ("q", "quit", "exit"):
                return
            action = self.actions.get(choice)
            if action is None:
                self.echo(f"Invalid choice: {choice!r}")
                return
            action()

    def show_usage(self):
        try:
            usage = get_usage(self.state.mount_point)
        except OSError as e:
            self.echo(f"Cannot read usage of {self.state.mount_point}: {e}")
            return
        self.echo(
            f"{self.state.mount_point}: {format_size(usage['used'])} used of "
            f"{format_size(usage['total'])} ({usage['percentage']}%), {format_size(usage['free'])} free"
        )

    def show_status(self):
        for status in self.systemd.list_services(self.services()):
            self.echo(f"{status.name} ({status.unit or 'n/a'}): {status.active_state} [{status.unit_file_state}]")

    def restart_services(self):
        for key in self.services():
            try:
                unit = self.systemd.manage_service(key, "restart")
                self.echo(f"Restarted {unit}")
            except ProvisionError as e:
                self.echo(f"Failed to restart {key}: {e}")

    def list_shares(self):
        if Protocol.SMB in self.state.protocols:
            for share in self.state.smb_shares:
                self.echo(f"SMB  [{share}]")
        if Protocol.NFS in self.state.protocols:
            for path in self.state.nfs_exports:
                self.echo(f"NFS  {path}")
        if Protocol.SFTP in self.state.protocols and self.state.sftp_user:
            self.echo(f"SFTP {self.state.sftp_user}")
        if not self.state.protocols:
            self.echo("No shares configured.")

    def show_connection_info(self):
        for line in connection_info(self.state, get_host_ip()):
            self.echo(line)
