import logging
from typing import Iterable, List

from pvdfr.errors import CommandError, FirewallError
from pvdfr.firewall.models import FirewallRule
from pvdfr.shares.models import Protocol
from pvdfr.system.commands import CommandRunner

logger = logging.getLogger(__name__)

SSH_RULES = [FirewallRule(port="22", label="SSH")]

PROTOCOL_RULES = {
    Protocol.SMB: [
        FirewallRule(port="139", label="Samba NetBIOS"),
        FirewallRule(port="445", label="Samba SMB"),
    ],
    Protocol.NFS: [
        FirewallRule(port="111", label="NFS portmapper"),
        FirewallRule(port="2049", label="NFS"),
    ],
    # SFTP rides on the SSH port, which is always open
    Protocol.SFTP: [],
}

NFS_SERVICE_ALIAS = FirewallRule(port="nfs", transport=None, label="NFS service")


def rules_for(protocols: Iterable[Protocol], nfs_service_alias: bool = True) -> List[FirewallRule]:
    """SSH plus the ports of the given protocols, nothing more."""
    rules = list(SSH_RULES)
    enabled = set(protocols)
    for protocol in Protocol:
        if protocol in enabled:
            rules.extend(PROTOCOL_RULES[protocol])
    if Protocol.NFS in enabled and nfs_service_alias:
        rules.append(NFS_SERVICE_ALIAS)
    return rules


class FirewallConfigurator:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def ensure(self, protocols: Iterable[Protocol], nfs_service_alias: bool = True) -> List[FirewallRule]:
        """Allow the rules, then enable ufw.

        Rules go in first so the operator's SSH session is already allowed
        when the firewall comes up. ufw skips rules it already has.
        """
        rules = rules_for(protocols, nfs_service_alias)
        try:
            for rule in rules:
                self.runner.run(self.allow_command(rule))
                logger.info(f"Allowed {rule.target} ({rule.label})")
            self.runner.run(["ufw", "--force", "enable"])
        except CommandError as e:
            raise FirewallError(f"Failed to configure firewall: {e}") from e
        return rules

    @staticmethod
    def allow_command(rule: FirewallRule) -> List[str]:
        if rule.transport:
            return ["ufw", "allow", rule.target, "comment", rule.label]
        return ["ufw", "allow", "from", "any", "to", "any", "port", rule.port, "comment", rule.label]
