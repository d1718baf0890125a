"""Sinks that receive collected metrics"""
from abc import ABC, abstractmethod
from typing import List

from logging_config import get_logger
from metrics.models import Metric


class Accumulator(ABC):
    """Receives metrics and errors from collectors"""

    @abstractmethod
    def record(self, metric: Metric) -> None:
        pass

    @abstractmethod
    def add_error(self, error: Exception) -> None:
        pass


class MemoryAccumulator(Accumulator):
    """Keeps everything it receives in lists"""

    def __init__(self):
        self.metrics: List[Metric] = []
        self.errors: List[Exception] = []

    def record(self, metric: Metric) -> None:
        self.metrics.append(metric)

    def add_error(self, error: Exception) -> None:
        self.errors.append(error)


class LoggingSink(Accumulator):
    """Writes each metric as a structured log event"""

    def __init__(self, logger_name: str = "metrics.sink"):
        self.logger = get_logger(logger_name)

    def record(self, metric: Metric) -> None:
        self.logger.info(
            "Metric recorded",
            metric=metric.name,
            tags=metric.tags,
            fields=metric.fields,
            timestamp=metric.timestamp.isoformat(),
            event_type="metric"
        )

    def add_error(self, error: Exception) -> None:
        self.logger.error(
            "Collector error",
            error=str(error),
            error_type=type(error).__name__,
            event_type="collection_error"
        )
