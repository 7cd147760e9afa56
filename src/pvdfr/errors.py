import shlex
from typing import List, Optional


class ProvisionError(Exception):
    """Base class for every error raised while provisioning the host."""


class CommandError(ProvisionError):
    def __init__(self, cmd: List[str], returncode: int, stdout: str = "", stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        detail = self.stderr.strip() or self.stdout.strip()
        message = f"Command '{shlex.join(self.cmd)}' failed with exit code {returncode}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class PrivilegeError(ProvisionError, PermissionError):
    pass


class UnsupportedDistributionError(ProvisionError):
    pass


class PackageInstallError(ProvisionError):
    pass


class PackageVerificationError(ProvisionError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Packages not installed properly: {', '.join(self.missing)}")


class DeviceNotFoundError(ProvisionError):
    def __init__(self, device: str):
        self.device = device
        super().__init__(f"Device {device} not found or not a block device")


class DeviceFormatError(ProvisionError):
    def __init__(self, device: str, state: str, cause: Optional[Exception] = None):
        self.device = device
        self.state = state
        self.cause = cause
        message = f"Failed to reach state {state} on {device}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ShareConfigurationError(ProvisionError):
    pass


class CredentialsError(ShareConfigurationError):
    pass


class FirewallError(ProvisionError):
    pass


class ProvisionAborted(ProvisionError):
    """Raised by the pipeline when a fatal step fails."""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"Step '{step}' failed: {cause}")
