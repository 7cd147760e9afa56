from typing import Optional
from pydantic import BaseModel

class FirewallRule(BaseModel):
    port: str  # number or a named service from /etc/services
    transport: Optional[str] = "tcp"
    label: str

    @property
    def target(self) -> str:
        return f"{self.port}/{self.transport}" if self.transport else self.port
