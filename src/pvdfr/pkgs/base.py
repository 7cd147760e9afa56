from abc import ABC, abstractmethod
from typing import List

from pvdfr.system.commands import CommandRunner


class PackageManager(ABC):
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    @abstractmethod
    def refresh(self):
        pass

    @abstractmethod
    def upgrade(self):
        pass

    @abstractmethod
    def install(self, packages: List[str]):
        pass

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        pass
