import shlex
from typing import Dict, Optional

from pvdfr.config.settings import config


def get_os_info(path: Optional[str] = None) -> Dict[str, str]:
    """Parse os-release into a dict with lowercase keys (``id``, ``id_like``, ...)."""
    info = {}
    try:
        with open(path or config.os_release_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                parts = shlex.split(value)
                info[key.lower()] = parts[0] if parts else ""
    except FileNotFoundError:
        pass
    return info
