"""Process snapshot models"""
import json
import math
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Iterator, Tuple

from collectors.errors import SerializationError

DEFAULT_EXECUTABLE = "/bin/ps"
DEFAULT_PROCESS_SELECTION = "-axo"
DEFAULT_INFO_SELECTION = "pid=,ppid=,comm=,args=,nlwp=,rss=,vsz=,%mem=,%cpu=,ruser=,stat="


@dataclass(frozen=True)
class ProcessRecord:
    """One process as reported by ps"""
    pid: int
    ppid: int
    command: str
    args: str
    threads: int
    rss: int
    vsize: int
    mem: float
    cpu: float
    user: str
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class Snapshot:
    """Ordered process records from a single collection cycle"""
    records: Tuple[ProcessRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ProcessRecord]:
        return iter(self.records)

    def to_payload(self) -> bytes:
        """Encode the records as a UTF-8 JSON array"""
        try:
            text = json.dumps([r.to_dict() for r in self.records], allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"unable to encode snapshot: {e}") from e
        return text.encode("utf-8")


@dataclass(frozen=True)
class ExecutionSpec:
    """How the listing command is invoked"""
    process_selection: str = DEFAULT_PROCESS_SELECTION
    info_selection: str = DEFAULT_INFO_SELECTION
    executable: str = DEFAULT_EXECUTABLE
    timeout: float = 5.0

    def __post_init__(self):
        if not (math.isfinite(self.timeout) and self.timeout > 0):
            raise ValueError(f"timeout must be positive, got {self.timeout}")


@dataclass
class Metric:
    """Single metric handed to a sink"""
    name: str
    tags: Dict[str, str]
    fields: Dict[str, Any]
    timestamp: datetime
