"""Run external commands under a hard deadline"""
import math
import os
import shlex
import subprocess
import time
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import psutil

from collectors.errors import CommandMalformedError, CommandTimeoutError, ExecutionError
from logging_config import get_logger


logger = get_logger(__name__)


class DeadlineExceeded(Exception):
    """Raised by a process handle when wait() runs past its timeout"""


class ProcessHandle(ABC):
    """A spawned child process"""

    @property
    @abstractmethod
    def pid(self) -> int:
        pass

    @abstractmethod
    def wait(self, timeout: float) -> Tuple[int, bytes]:
        """Wait for exit and return (returncode, stdout). Raises DeadlineExceeded."""
        pass

    @abstractmethod
    def kill(self) -> None:
        """Forcefully terminate the process and reap it"""
        pass


class ProcessProvider(ABC):
    """Spawns child processes"""

    @abstractmethod
    def spawn(self, argv: List[str]) -> ProcessHandle:
        pass


class SubprocessHandle(ProcessHandle):
    """ProcessHandle backed by subprocess.Popen"""

    def __init__(self, proc: subprocess.Popen):
        self._proc = proc

    @property
    def pid(self) -> int:
        return self._proc.pid

    def wait(self, timeout: float) -> Tuple[int, bytes]:
        try:
            stdout, _ = self._proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise DeadlineExceeded(str(e)) from e
        return self._proc.returncode, stdout or b""

    def kill(self) -> None:
        # Children first, they would be reparented once the parent is gone
        try:
            children = psutil.Process(self._proc.pid).children(recursive=True)
        except psutil.NoSuchProcess:
            children = []
        for child in children:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass

        self._proc.kill()
        self._proc.communicate()


class SubprocessProvider(ProcessProvider):
    """Spawns real processes with stdout captured and stderr discarded.

    Children run in the C locale so numeric columns always use a decimal point.
    """

    def spawn(self, argv: List[str]) -> ProcessHandle:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            env={**os.environ, "LC_ALL": "C"},
        )
        return SubprocessHandle(proc)


def split_command(command: str) -> List[str]:
    """Split a command line using shell quoting rules"""
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise CommandMalformedError(f"unable to split command {command!r}: {e}") from e
    if not argv:
        raise CommandMalformedError(f"empty command {command!r}")
    return argv


class CommandRunner:
    """Runs a command line and returns its standard output.

    The call either returns the full output of a process that exited with
    status 0 before the deadline, or raises one of CommandMalformedError,
    CommandTimeoutError or ExecutionError. A process that times out or whose
    wait fails is killed before the error is raised.
    """

    def __init__(self, provider: Optional[ProcessProvider] = None):
        self.provider = provider or SubprocessProvider()

    def run(self, command: str, timeout: float) -> bytes:
        if not (math.isfinite(timeout) and timeout > 0):
            raise ValueError(f"timeout must be positive, got {timeout}")

        argv = split_command(command)

        start = time.monotonic()
        try:
            handle = self.provider.spawn(argv)
        except OSError as e:
            logger.error("Command spawn failed", command=command, error=str(e), event_type="command_spawn_error")
            raise ExecutionError(f"unable to start {argv[0]}: {e}") from e

        logger.debug("Command started", command=command, pid=handle.pid, timeout=timeout)

        try:
            returncode, stdout = handle.wait(timeout)
        except DeadlineExceeded:
            handle.kill()
            logger.warning("Command timed out", command=command, pid=handle.pid, timeout=timeout,
                           event_type="command_timeout")
            raise CommandTimeoutError(command, timeout)
        except Exception as e:
            handle.kill()
            logger.error("Command wait failed", command=command, pid=handle.pid, error=str(e),
                         event_type="command_wait_error")
            raise ExecutionError(f"waiting for {argv[0]} failed: {e}") from e

        duration = time.monotonic() - start
        if returncode != 0:
            logger.warning("Command failed", command=command, exit_code=returncode,
                           duration_seconds=round(duration, 3), event_type="command_failed")
            raise ExecutionError(f"{argv[0]} exited with status {returncode}", exit_code=returncode)

        logger.debug("Command completed", command=command, bytes=len(stdout),
                     duration_seconds=round(duration, 3))
        return stdout
