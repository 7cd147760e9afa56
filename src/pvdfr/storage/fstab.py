import logging
from typing import Optional

from pvdfr.config.settings import config
from pvdfr.storage.models import FstabEntry
from pvdfr.system.commands import CommandRunner

logger = logging.getLogger(__name__)


def merge_entry(content: str, entry: FstabEntry) -> Optional[str]:
    """Return fstab content holding exactly one record for entry's mount point.

    Records with the same device or mount point are replaced in place; the
    first one keeps its position, the rest are dropped. Returns None when the
    file already holds exactly the wanted record and nothing else conflicting.
    """
    wanted = entry.render()
    lines = content.splitlines()
    result = []
    replaced = False
    changed = False

    for line in lines:
        stripped = line.strip()
        parts = stripped.split()
        if stripped and not stripped.startswith("#") and len(parts) >= 2 \
                and (parts[0] == entry.spec or parts[1] == entry.mount_point):
            if not replaced:
                result.append(wanted)
                replaced = True
                changed = changed or " ".join(parts) != wanted
            else:
                changed = True
            continue
        result.append(line)

    if not replaced:
        result.append(wanted)
        changed = True

    if not changed:
        return None
    return "\n".join(result) + "\n"


def remove_entry(content: str, spec: str, mount_point: str) -> Optional[str]:
    lines = content.splitlines()
    kept = []
    for line in lines:
        parts = line.strip().split()
        if len(parts) >= 2 and not parts[0].startswith("#") \
                and (parts[0] == spec or parts[1] == mount_point):
            continue
        kept.append(line)
    if len(kept) == len(lines):
        return None
    return "\n".join(kept) + "\n"


class FstabManager:
    def __init__(self, runner: CommandRunner, path: Optional[str] = None):
        self.runner = runner
        self.path = path or config.fstab_path

    def ensure(self, entry: FstabEntry) -> bool:
        """Persist entry; returns True if the file was changed."""
        updated = merge_entry(self.runner.read_file(self.path), entry)
        if updated is None:
            logger.info(f"fstab already has {entry.render()}")
            return False
        self.runner.write_file(self.path, updated)
        logger.info(f"Persisted mount record {entry.render()}")
        return True

    def remove(self, spec: str, mount_point: str) -> bool:
        updated = remove_entry(self.runner.read_file(self.path), spec, mount_point)
        if updated is None:
            return False
        self.runner.write_file(self.path, updated)
        return True
