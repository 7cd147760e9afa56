# Dictionary of managed services.
# Key: protocol/service ID used by the provisioner and the menu
# Value: List of possible systemd unit names (first loaded unit wins)

MANAGED_SERVICES = {
    "smb": ["smbd.service", "smb.service"],
    "nfs": ["nfs-kernel-server.service", "nfs-server.service"],
    "ssh": ["ssh.service", "sshd.service"],
}
