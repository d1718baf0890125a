"""Configuration for the ps exporter"""
import math
import re
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def _finite(seconds: float, value) -> float:
    if not math.isfinite(seconds):
        raise ValueError(f"duration must be finite, got {value!r}")
    return seconds


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse a duration such as "5s", "250ms" or "1m30s" into seconds.

    Plain numbers are taken as seconds.
    """
    if isinstance(value, (int, float)):
        return _finite(float(value), value)

    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        seconds = None
    if seconds is not None:
        return _finite(seconds, value)

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return _finite(total, value)


class Config(BaseSettings):
    """Settings for the ps collector and its host loop"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Collector settings
    timeout: str = Field(default="5s", description="Timeout for the ps command to complete")

    # Host loop
    collection_interval: int = Field(default=10, ge=1, description="Collection interval in seconds")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Log file (console only when unset)")

    @field_validator("timeout", mode="before")
    @classmethod
    def validate_timeout(cls, v):
        if isinstance(v, (int, float)):
            v = f"{v}s"
        if not isinstance(v, str):
            raise ValueError("timeout must be a duration string")
        seconds = parse_duration(v)
        if seconds <= 0:
            raise ValueError("timeout must be greater than zero")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_file")
    @classmethod
    def ensure_log_directory(cls, v):
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def timeout_seconds(self) -> float:
        """Timeout as a number of seconds"""
        return parse_duration(self.timeout)
