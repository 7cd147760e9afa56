from typing import List, Optional
from pydantic import BaseModel

from pvdfr.shares.models import Protocol, StepFailure
from pvdfr.storage.models import MountedVolume

class ProvisionReport(BaseModel):
    device: str
    volume: Optional[MountedVolume] = None
    protocols: List[Protocol] = []
    failures: List[StepFailure] = []
    connection_info: List[str] = []

    @property
    def degraded(self) -> bool:
        return bool(self.failures)
