import configparser
import io
import logging
import os
from typing import Dict, List, Optional

from pvdfr.config.settings import config
from pvdfr.errors import CommandError, ShareConfigurationError
from pvdfr.shares.models import SMBShare
from pvdfr.system.commands import CommandRunner
from pvdfr.systemd.manager import SystemdManager

logger = logging.getLogger(__name__)

# Unprivileged identity that owns everything reachable through a guest share
GUEST_USER = "nobody"
GUEST_GROUP = "nogroup"


def _yes_no(value: bool) -> str:
    return 'yes' if value else 'no'


def _str_to_bool(val: str) -> bool:
    return val.lower() in ('yes', 'true', '1', 'on')


def render_section(share: SMBShare, group: str) -> Dict[str, str]:
    """smb.conf options for one share; share.path must already be absolute."""
    section = {'path': share.path}
    if share.comment:
        section['comment'] = share.comment
    section.update({
        'browseable': _yes_no(share.browsable),
        'read only': _yes_no(share.read_only),
        'guest ok': _yes_no(share.guest_ok),
        'create mask': share.create_mask,
        'directory mask': share.directory_mask,
    })
    if share.guest_ok:
        section['force user'] = GUEST_USER
        section['force group'] = GUEST_GROUP
    else:
        section['valid users'] = " ".join(share.valid_users) if share.valid_users else f"@{group}"
        section['force group'] = group
    return section


class SMBManager:
    def __init__(self, runner: CommandRunner, systemd: Optional[SystemdManager] = None,
                 conf_path: Optional[str] = None):
        self.runner = runner
        self.systemd = systemd or SystemdManager(runner)
        self.conf_path = conf_path or config.smb_conf_path

    @property
    def backup_path(self) -> str:
        return f"{self.conf_path}.backup"

    def _load(self) -> configparser.ConfigParser:
        # smb.conf uses %-macros (%m, %U) that interpolation would choke on
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        content = self.runner.read_file(self.conf_path)
        try:
            parser.read_string(content)
        except configparser.Error as e:
            raise ShareConfigurationError(f"Cannot parse {self.conf_path}: {e}") from e
        if not parser.has_section('global'):
            parser['global'] = {
                'workgroup': 'WORKGROUP',
                'server string': 'Storage Server',
                'security': 'user',
                'map to guest': 'Bad User',
            }
        return parser

    def list_shares(self) -> List[SMBShare]:
        if not os.path.exists(self.conf_path):
            return []
        try:
            parser = self._load()
        except ShareConfigurationError:
            return []

        shares = []
        for section in parser.sections():
            if section.lower() in ('global', 'printers', 'print$'):
                continue
            options = parser[section]
            shares.append(SMBShare(
                name=section,
                path=options.get('path', 'N/A'),
                comment=options.get('comment', ''),
                read_only=_str_to_bool(options.get('read only', 'yes')),
                browsable=_str_to_bool(options.get('browseable', options.get('browsable', 'yes'))),
                guest_ok=_str_to_bool(options.get('guest ok', 'no')),
                valid_users=options.get('valid users', '').split(),
            ))
        return shares

    def backup(self) -> bool:
        """Keep the first pre-provisioning copy of smb.conf; later runs leave it alone."""
        if os.path.exists(self.backup_path) or not os.path.exists(self.conf_path):
            return False
        self.runner.run(["cp", "-p", self.conf_path, self.backup_path])
        logger.info(f"Backed up {self.conf_path} to {self.backup_path}")
        return True

    def write_shares(self, shares: List[SMBShare], group: str):
        """Merge one section per share, replacing any section of the same name."""
        parser = self._load()
        for share in shares:
            if parser.has_section(share.name):
                parser.remove_section(share.name)
            parser[share.name] = render_section(share, group)

        buffer = io.StringIO()
        parser.write(buffer)
        self.runner.write_file(self.conf_path, buffer.getvalue())

    def prepare_path(self, share: SMBShare, group: str):
        self.runner.run(["mkdir", "-p", share.path])
        if share.guest_ok:
            self.runner.run(["chown", "-R", f"{GUEST_USER}:{GUEST_GROUP}", share.path])
            self.runner.run(["chmod", "-R", "0775", share.path])
        else:
            self.runner.run(["chgrp", "-R", group, share.path])
            self.runner.run(["chmod", "2775", share.path])

    def validate(self):
        try:
            self.runner.run(["testparm", "-s", self.conf_path])
        except CommandError as e:
            raise ShareConfigurationError(f"Samba configuration is invalid: {e}") from e

    def set_password(self, username: str, password: str):
        """Register username in Samba's own credential store.

        smbpasswd -s reads the new password twice from stdin, the same
        confirmation an interactive prompt would ask for.
        """
        self.runner.run(["smbpasswd", "-a", "-s", username], input=f"{password}\n{password}\n")
        self.runner.run(["smbpasswd", "-e", username])
        logger.info(f"Samba credentials set for {username}")

    def restart_service(self) -> str:
        return self.systemd.restart_and_enable("smb")
