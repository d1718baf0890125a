"""Parse `ps -axo pid=,ppid=,comm=,args=,nlwp=,rss=,vsz=,%mem=,%cpu=,ruser=,stat=` output.

Each line is split into whitespace separated tokens. pid and ppid are read
from the left, the seven fixed trailing columns (threads through status) from
the right. The first token in between is the command name and everything
else up to the trailing columns is the argument string, with its original
spacing kept.

A command name that itself contains whitespace cannot be told apart from its
arguments; its tail ends up in args. Lines that do not fit the layout are
dropped without failing the batch.
"""
import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

from collectors.errors import LineRejected
from logging_config import get_logger
from metrics.models import ProcessRecord


logger = get_logger(__name__)

_TOKEN = re.compile(r"\S+")
_INTEGER = re.compile(r"[0-9]+")
_DECIMAL = re.compile(r"[0-9]+(?:\.[0-9]+)?")

_LEADING = 2   # pid, ppid
_TRAILING = 7  # threads, rss, vsize, mem, cpu, user, status
MIN_TOKENS = _LEADING + 2 + _TRAILING


class RawFields(NamedTuple):
    """Textual columns of one ps line"""
    pid: str
    ppid: str
    command: str
    args: str
    threads: str
    rss: str
    vsize: str
    mem: str
    cpu: str
    user: str
    status: str


@dataclass
class ParseResult:
    records: List[ProcessRecord]
    rejected: int = 0


def parse_line(line: str) -> RawFields:
    """Split one line into its columns. Raises LineRejected."""
    spans: List[Tuple[int, int]] = [m.span() for m in _TOKEN.finditer(line)]
    if len(spans) < MIN_TOKENS:
        raise LineRejected(f"expected at least {MIN_TOKENS} columns, got {len(spans)}")

    tokens = [line[start:end] for start, end in spans]
    pid, ppid = tokens[0], tokens[1]
    if not (_INTEGER.fullmatch(pid) and _INTEGER.fullmatch(ppid)):
        raise LineRejected(f"non-numeric process id in {pid!r} {ppid!r}")

    command = tokens[2]
    args_start = spans[3][0]
    args_end = spans[-_TRAILING - 1][1]
    args = line[args_start:args_end]

    return RawFields(pid, ppid, command, args, *tokens[-_TRAILING:])


def _to_int(name: str, value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise LineRejected(f"{name} is not an integer: {value!r}")
    return int(value)


def _to_float(name: str, value: str) -> float:
    if not _DECIMAL.fullmatch(value):
        raise LineRejected(f"{name} is not a number: {value!r}")
    return float(value)


def decode_record(raw: RawFields) -> ProcessRecord:
    """Convert textual columns into a ProcessRecord. Raises LineRejected."""
    return ProcessRecord(
        pid=_to_int("pid", raw.pid),
        ppid=_to_int("ppid", raw.ppid),
        command=raw.command,
        args=raw.args,
        threads=_to_int("threads", raw.threads),
        rss=_to_int("rss", raw.rss),
        vsize=_to_int("vsize", raw.vsize),
        mem=_to_float("mem", raw.mem),
        cpu=_to_float("cpu", raw.cpu),
        user=raw.user,
        status=raw.status,
    )


def parse_lines(text: str, result: Optional[ParseResult] = None) -> List[RawFields]:
    """Return the columns of every line that fits the layout, in order.

    Blank lines are ignored. Lines that do not fit are counted in result
    when one is given.
    """
    matched = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            matched.append(parse_line(line))
        except LineRejected as e:
            if result is not None:
                result.rejected += 1
            logger.debug("Skipping ps line", line=line, reason=str(e))
    return matched


def parse_output(text: str) -> ParseResult:
    """Parse and decode full ps output, dropping lines that do not fit"""
    result = ParseResult(records=[])
    for raw in parse_lines(text, result):
        try:
            result.records.append(decode_record(raw))
        except LineRejected as e:
            result.rejected += 1
            logger.debug("Skipping ps record", pid=raw.pid, reason=str(e))
    return result
