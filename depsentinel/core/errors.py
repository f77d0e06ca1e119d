"""Exception hierarchy for depsentinel.

Every fatal condition of a run is an :class:`ErrorExit`; the CLI is the only
place that turns one into a process exit code.
"""

from __future__ import annotations


class DepsentinelError(Exception):
    """Base exception for all depsentinel errors."""


class ErrorExit(DepsentinelError):
    """Abort the run with *exit_code*, optionally printing usage first."""

    def __init__(
        self,
        message: str = "",
        *,
        exit_code: int = 1,
        print_help: bool = False,
        cause: BaseException | None = None,
    ) -> None:
        self.message = message
        self.exit_code = exit_code
        self.print_help = print_help
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class CleanExit(ErrorExit):
    """Stop the pipeline successfully (e.g. after printing the version)."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message, exit_code=0)


class UsageError(ErrorExit):
    """Malformed invocation: bad argument count or shape."""

    def __init__(self, message: str) -> None:
        super().__init__(message, exit_code=1, print_help=True)


class InvalidPathError(ErrorExit):
    """The manifest path matches no known manifest name."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"invalid path arg: {path}", exit_code=3, print_help=True)


class InvalidStdinError(ErrorExit):
    """Stdin is an interactive terminal instead of a pipe or redirect."""

    def __init__(self) -> None:
        super().__init__(
            "StdIn is invalid, either empty or another reason", exit_code=1, print_help=True
        )


class LockFileError(ErrorExit):
    """The Gopkg.lock file could not be loaded or holds no lock data."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, exit_code=1, print_help=True, cause=cause)


class ExclusionFileError(ErrorExit):
    """The exclusion list file exists but cannot be read or parsed."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, exit_code=1, cause=cause)


class LookupFailedError(ErrorExit):
    """The vulnerability lookup failed; the audit cannot produce a report."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__("Error auditing packages", exit_code=1, print_help=True, cause=cause)


class CacheCleanError(ErrorExit):
    """Removing the local result cache failed."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__("cleaning cache", exit_code=1, cause=cause)
