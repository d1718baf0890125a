"""Registry of collector factories"""
from typing import Callable, Dict, List

from collectors.base import BaseCollector
from logging_config import get_logger
from metrics.accumulator import Accumulator


logger = get_logger(__name__)

CollectorFactory = Callable[..., BaseCollector]


class CollectorRegistry:
    """Maps collector names to factories and drives a gather over all of them"""

    def __init__(self, config=None):
        self.config = config
        self._factories: Dict[str, CollectorFactory] = {}
        self._collectors: Dict[str, BaseCollector] = {}

    def add(self, name: str, factory: CollectorFactory) -> None:
        """Register a factory called with the registry config"""
        if name in self._factories:
            raise ValueError(f"Collector already registered: {name}")
        self._factories[name] = factory
        logger.info("Registered collector", collector=name)

    def names(self) -> List[str]:
        return list(self._factories.keys())

    def create(self, name: str) -> BaseCollector:
        """Build a fresh collector instance"""
        try:
            factory = self._factories[name]
        except KeyError:
            raise KeyError(f"Unknown collector: {name}") from None
        return factory(self.config)

    def get_collector(self, name: str) -> BaseCollector:
        """Collector instance for name, created on first use"""
        if name not in self._collectors:
            self._collectors[name] = self.create(name)
        return self._collectors[name]

    def gather_all(self, acc: Accumulator) -> int:
        """Run every collector once, returns the number that failed"""
        failures = 0
        for name in self.names():
            try:
                collector = self.get_collector(name)
                logger.debug("Collecting metrics", collector=name, event_type="collection_start")
                collector.gather(acc)
            except Exception as e:
                failures += 1
                logger.error("Collector failed", collector=name, error=str(e), event_type="collection_error")
                # Continue with other collectors even if one fails
        return failures
