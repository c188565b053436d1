"""Error taxonomy for the fetch-persist-execute cycle.

Every ``CertManagerError`` is recoverable: the scheduler logs it, waits
the retry interval, and starts the cycle over from FETCHING.  The only
fatal error is ``StartupConfigError``, raised before the loop starts.
"""

from __future__ import annotations

from pathlib import Path


class CertManagerError(RuntimeError):
    """Base class for recoverable per-cycle failures."""

    stage = "unknown"


class TransportError(CertManagerError):
    """Network, TLS or DNS failure while calling the lookup endpoint."""

    stage = "fetch"

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class MalformedResponseError(CertManagerError):
    """Response body matched neither the data nor the error envelope.

    ``body`` is already truncated and has private key values redacted.
    """

    stage = "fetch"

    def __init__(self, message: str, *, body: str = "") -> None:
        super().__init__(f"{message}: {body}" if body else message)
        self.body = body


class RemoteError(CertManagerError):
    """The API answered with a well-formed error envelope."""

    stage = "fetch"

    def __init__(
        self,
        title: str,
        detail: str | None = None,
        *,
        code: str | None = None,
        status: int | None = None,
    ) -> None:
        self.title = title
        self.detail = detail or ""
        self.code = code
        self.status = status
        super().__init__(f"{self.title}...{self.detail}")


class PersistenceError(CertManagerError):
    """Writing the bundle or the key to disk failed."""

    stage = "persist"

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ExecutionError(CertManagerError):
    """The post-fetch command could not be run or exited non-zero."""

    stage = "execute"

    def __init__(
        self, message: str, *, command: str = "", returncode: int | None = None
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class StartupConfigError(RuntimeError):
    """Raised when the configuration cannot be used to start the loop.

    This error must not be caught and retried; the process should exit.
    """
