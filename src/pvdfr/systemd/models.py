from typing import Optional
from pydantic import BaseModel

class SystemdServiceStatus(BaseModel):
    name: str
    unit: Optional[str] = None
    description: Optional[str] = None
    load_state: str = "unknown"
    active_state: str = "unknown"
    sub_state: str = "unknown"
    unit_file_state: str = "unknown"
    main_pid: int = 0
    since: Optional[str] = None
