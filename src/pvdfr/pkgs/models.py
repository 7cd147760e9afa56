from pydantic import BaseModel

class PackageStatus(BaseModel):
    name: str
    critical: bool = False
    installed: bool = False
