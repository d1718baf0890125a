"""Process listing collector built on the ps command"""
import time
from datetime import datetime, timezone
from typing import Optional

from collectors.base import BaseCollector
from collectors.errors import CollectionError
from collectors.ps_parser import parse_output
from logging_config import get_logger, log_error, log_metrics_collection
from metrics.accumulator import Accumulator
from metrics.models import ExecutionSpec, Metric, Snapshot
from utils.command import CommandRunner


logger = get_logger(__name__)

METRIC_NAME = "ps"
FIELD_NAME = "fields"
PLUGIN_TAG = "ps"

DESCRIPTION = "Read information about the processes running on the host."

SAMPLE_CONFIG = """
  ## Timeout for command to complete.
  #timeout = "5s"
"""


def build_command(spec: ExecutionSpec) -> str:
    """Command line for the listing tool, selectors are trusted constants"""
    return " ".join([spec.executable, spec.process_selection, spec.info_selection])


class PSCollector(BaseCollector):
    """Snapshots every process on the host using ps"""

    def __init__(self, config=None, runner: Optional[CommandRunner] = None,
                 spec: Optional[ExecutionSpec] = None):
        super().__init__(config, "ps", DESCRIPTION)
        if spec is None:
            timeout = config.timeout_seconds if config is not None else ExecutionSpec.timeout
            spec = ExecutionSpec(timeout=timeout)
        self.spec = spec
        self.runner = runner or CommandRunner()

    @property
    def sample_config(self) -> str:
        return SAMPLE_CONFIG

    def collect(self) -> Snapshot:
        """Run ps and parse its output. Raises CollectionError."""
        start = time.monotonic()
        output = self.runner.run(build_command(self.spec), self.spec.timeout)

        result = parse_output(output.decode("utf-8", errors="replace"))
        snapshot = Snapshot(records=tuple(result.records))

        log_metrics_collection(logger, self.name, len(snapshot), time.monotonic() - start, result.rejected)
        return snapshot

    def gather(self, acc: Accumulator) -> None:
        """Record one snapshot metric in acc, or report the failure to it and re-raise"""
        try:
            payload = self.collect().to_payload()
        except CollectionError as e:
            acc.add_error(e)
            log_error(logger, e, {"collector": self.name, "phase": "gather"})
            raise

        acc.record(Metric(
            name=METRIC_NAME,
            tags={"plugin": PLUGIN_TAG},
            fields={FIELD_NAME: payload.decode("utf-8")},
            timestamp=datetime.now(timezone.utc),
        ))


def register(registry) -> None:
    """Register the ps collector factory"""
    registry.add("ps", PSCollector)
