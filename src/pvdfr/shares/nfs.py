import logging
from typing import List, Optional

from pvdfr.config.settings import config
from pvdfr.shares.models import NFSExport
from pvdfr.system.commands import CommandRunner
from pvdfr.systemd.manager import SystemdManager

logger = logging.getLogger(__name__)


def export_options(export: NFSExport) -> List[str]:
    options = [
        "ro" if export.read_only else "rw",
        "sync" if export.sync else "async",
        "no_subtree_check",
        "root_squash" if export.root_squash else "no_root_squash",
    ]
    return options


def render_export(export: NFSExport) -> str:
    return f"{export.path} {export.clients}({','.join(export_options(export))})"


def merge_exports(content: str, exports: List[NFSExport]) -> str:
    """Replace the line for each exported path, appending paths not yet exported."""
    rendered = {export.path: render_export(export) for export in exports}
    written = set()
    result = []

    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#") and stripped.split()[0] in rendered:
            path = stripped.split()[0]
            # later lines for an already rewritten path are duplicates
            if path not in written:
                result.append(rendered[path])
                written.add(path)
            continue
        result.append(line)

    for path, line in rendered.items():
        if path not in written:
            result.append(line)

    return "\n".join(result) + "\n"


def parse_exports(content: str) -> List[str]:
    lines = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            lines.append(stripped)
    return lines


class NFSManager:
    def __init__(self, runner: CommandRunner, systemd: Optional[SystemdManager] = None,
                 exports_path: Optional[str] = None):
        self.runner = runner
        self.systemd = systemd or SystemdManager(runner)
        self.exports_path = exports_path or config.exports_path

    def list_exports(self) -> List[str]:
        return parse_exports(self.runner.read_file(self.exports_path))

    def write_exports(self, exports: List[NFSExport]) -> bool:
        current = self.runner.read_file(self.exports_path)
        updated = merge_exports(current, exports)
        if updated == current:
            logger.info(f"{self.exports_path} already up to date")
            return False
        self.runner.write_file(self.exports_path, updated)
        return True

    def prepare_path(self, export: NFSExport):
        self.runner.run(["mkdir", "-p", export.path])

    def apply(self) -> str:
        self.runner.run(["exportfs", "-ra"])
        return self.systemd.restart_and_enable("nfs")
