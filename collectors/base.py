"""Base collector interface"""
from abc import ABC, abstractmethod

from metrics.accumulator import Accumulator


class BaseCollector(ABC):
    """Base class for all collectors driven by the host loop"""

    def __init__(self, config=None, name: str = "", description: str = ""):
        self.config = config
        self._name = name
        self._description = description

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description or f"{self.name} collector"

    @property
    def sample_config(self) -> str:
        """Commented configuration block shown to users"""
        return ""

    @abstractmethod
    def collect(self):
        """Run one collection cycle and return its result"""
        pass

    @abstractmethod
    def gather(self, acc: Accumulator) -> None:
        """Run one collection cycle and hand the result to acc"""
        pass
