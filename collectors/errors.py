"""Error types raised during a collection cycle"""
from typing import Optional


class CollectionError(Exception):
    """Base class for errors that abort a whole collection cycle"""


class CommandMalformedError(CollectionError):
    """The command line could not be split into an executable and arguments"""


class CommandTimeoutError(CollectionError):
    """The child process did not finish before its deadline and was killed"""

    def __init__(self, command: str, timeout: float):
        super().__init__(f"command timed out after {timeout:g}s: {command}")
        self.command = command
        self.timeout = timeout


class ExecutionError(CollectionError):
    """The child process could not be started or exited with a non-zero status"""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class SerializationError(CollectionError):
    """The snapshot could not be encoded into its payload"""


class LineRejected(Exception):
    """A single output line did not fit the expected layout (internal, never surfaced)"""
