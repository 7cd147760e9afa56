import logging
from typing import List, Optional

from pvdfr.errors import ProvisionError
from pvdfr.system.commands import CommandRunner
from pvdfr.systemd.models import SystemdServiceStatus
from pvdfr.systemd.registry import MANAGED_SERVICES

logger = logging.getLogger(__name__)

ACTIONS = ["start", "stop", "restart", "enable", "disable", "reload"]


class SystemdManager:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def resolve_unit(self, service_key: str) -> Optional[str]:
        """Resolves the actual systemd unit name from the registry list."""
        if service_key not in MANAGED_SERVICES:
            logger.info(f"Service {service_key} not found in registry, candidates: {list(MANAGED_SERVICES)}")
            return None

        for unit in MANAGED_SERVICES[service_key]:
            # 'systemctl show' reports LoadState even for inactive units
            res = self.runner.run(["systemctl", "show", "-p", "LoadState", unit], check=False, privileged=False)
            if "LoadState=loaded" in res.stdout:
                return unit
        return None

    def get_service_status(self, service_key: str) -> SystemdServiceStatus:
        unit = self.resolve_unit(service_key)
        if not unit:
            return SystemdServiceStatus(
                name=service_key,
                load_state="not-found",
                active_state="inactive",
                sub_state="dead",
                unit_file_state="disabled"
            )

        props = ["LoadState", "ActiveState", "SubState", "UnitFileState", "Description", "MainPID", "ActiveEnterTimestamp"]
        cmd = ["systemctl", "show", "--no-pager"] + [f"-p{p}" for p in props] + [unit]
        result = self.runner.run(cmd, check=False, privileged=False)

        data = {}
        for line in result.stdout.splitlines():
            if "=" in line:
                k, v = line.split("=", 1)
                data[k] = v.strip()

        return SystemdServiceStatus(
            name=service_key,
            unit=unit,
            description=data.get("Description"),
            load_state=data.get("LoadState", "unknown"),
            active_state=data.get("ActiveState", "unknown"),
            sub_state=data.get("SubState", "unknown"),
            unit_file_state=data.get("UnitFileState") or "unknown",
            main_pid=int(data.get("MainPID") or 0),
            since=data.get("ActiveEnterTimestamp") or None
        )

    def list_services(self, keys: Optional[List[str]] = None) -> List[SystemdServiceStatus]:
        return [self.get_service_status(key) for key in (keys or list(MANAGED_SERVICES))]

    def manage_service(self, service_key: str, action: str) -> str:
        """Run a systemctl action on the service; returns the unit acted on."""
        if action not in ACTIONS:
            raise ValueError(f"Invalid action: {action}")

        unit = self.resolve_unit(service_key)
        if not unit:
            raise ProvisionError(f"Service {service_key} not found or not installed.")

        self.runner.run(["systemctl", action, unit])
        logger.info(f"systemctl {action} {unit}")
        return unit

    def restart_and_enable(self, service_key: str) -> str:
        unit = self.manage_service(service_key, "restart")
        self.runner.run(["systemctl", "enable", unit])
        return unit
