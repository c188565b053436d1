"""Scheduler loop — fetch, persist, run the post-fetch command, sleep.

The loop drives one cycle at a time:

    FETCHING -> PERSISTING -> (EXECUTING) -> SLEEPING -> FETCHING ...

Any stage failure goes to BACKOFF, waits the fixed retry interval, and
starts over from FETCHING with nothing carried forward.  The files left
on disk by the previous successful cycle are not touched by a failed
fetch.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

from cyclecert.config import ManagerConfig
from cyclecert.core.cycle_machine import CycleMachine
from cyclecert.core.errors import CertManagerError
from cyclecert.core.executor import PostFetchCommand
from cyclecert.core.writer import persist
from cyclecert.models.certificate import CertificateArtifact
from cyclecert.models.cycle import (
    CycleReport,
    CycleState,
    FetchOutcome,
    PersistedPaths,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_INTERVAL = timedelta(minutes=5)

Writer = Callable[[CertificateArtifact, Path, str | None], PersistedPaths]


class Fetcher(Protocol):
    """Anything with the ``CertificateClient.fetch`` signature."""

    endpoint: str

    def fetch(self) -> FetchOutcome:
        ...


class Sleeper:
    """Interruptible sleep backed by a ``threading.Event``.

    ``stop()`` wakes any pending ``sleep()`` immediately and makes every
    later one return at once.
    """

    def __init__(self) -> None:
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def sleep(self, duration: timedelta) -> bool:
        """Wait for *duration*; return ``False`` if interrupted by ``stop()``.

        Non-positive durations return immediately.
        """
        seconds = duration.total_seconds()
        if seconds <= 0:
            return not self.stopped
        seconds = min(seconds, threading.TIMEOUT_MAX)
        return not self._stopped.wait(seconds)

    def stop(self) -> None:
        self._stopped.set()


def clamp_duration(duration: timedelta) -> timedelta:
    """Negative or zero waits mean "fetch again now"."""
    return duration if duration > timedelta(0) else timedelta(0)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CertificateScheduler:
    """Runs the certificate cycle until stopped.

    Parameters
    ----------
    config:
        The validated effective configuration, shared read-only.
    client:
        Performs the lookup; usually a ``CertificateClient``.
    writer:
        Persists an artifact; defaults to ``cyclecert.core.writer.persist``.
    command:
        Post-fetch command.  Built from ``config.post_fetch_command`` when
        omitted; the EXECUTING state is skipped when there is none.
    sleeper:
        Waits between cycles and after failures.
    clock:
        Returns the current UTC time; used for the refetch schedule.
    """

    def __init__(
        self,
        config: ManagerConfig,
        client: Fetcher,
        *,
        writer: Writer = persist,
        command: PostFetchCommand | None = None,
        sleeper: Sleeper | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._client = client
        self._writer = writer
        if command is None and config.post_fetch_command:
            command = PostFetchCommand(config.post_fetch_command)
        self._command = command
        self._sleeper = sleeper or Sleeper()
        self._clock = clock
        self.machine = CycleMachine()
        self.retry_interval = timedelta(seconds=config.retry_interval_seconds)

    # ------------------------------------------------------------------
    # One cycle
    # ------------------------------------------------------------------

    def run_cycle(self) -> CycleReport:
        """Run FETCHING through EXECUTING once, without waiting.

        Returns a report; on success ``sleep_for`` is the clamped time
        until the next fetch.  On failure the machine is left in BACKOFF.
        """
        if self.machine.state is not CycleState.FETCHING:
            self.machine.transition(CycleState.FETCHING, reason="new cycle")

        logger.info(
            "Fetching certificate for %s from %s",
            self._config.identity,
            self._client.endpoint,
        )
        outcome = self._client.fetch()
        if not outcome.ok:
            return self._fail(
                CycleState.FETCHING,
                outcome.error,
                f"Failed to fetch certificate from {self._client.endpoint}",
            )

        artifact = outcome.artifact
        logger.info(
            "Successfully fetched certificate bundle for %s (generated %s).",
            ", ".join(artifact.domains),
            artifact.issued_at.isoformat(),
        )

        self.machine.transition(CycleState.PERSISTING)
        output_dir = self._config.certificate_path
        override = self._config.filename
        try:
            written = self._writer(artifact, output_dir, override)
        except CertManagerError as exc:
            return self._fail(
                CycleState.PERSISTING,
                exc,
                "Failed to write certificate to "
                f"{artifact.certificate_filepath(output_dir, override)} and "
                f"{artifact.key_filepath(output_dir, override)}",
            )
        logger.info(
            "Wrote certificate bundle to %s and key to %s",
            written.certificate,
            written.key,
        )

        command_ran = False
        if self._command is not None:
            self.machine.transition(CycleState.EXECUTING)
            try:
                self._command.run()
            except CertManagerError as exc:
                return self._fail(
                    CycleState.EXECUTING, exc, "Post-fetch command failed"
                )
            command_ran = True

        sleep_for = self._schedule(artifact)
        self.machine.transition(CycleState.SLEEPING, reason="cycle complete")
        return CycleReport(
            succeeded=True,
            written=written,
            sleep_for=sleep_for,
            command_ran=command_ran,
        )

    def _schedule(self, artifact: CertificateArtifact) -> timedelta:
        now = self._clock()
        if artifact.issued_at > now:
            logger.warning(
                "Certificate generation time %s is in the future.",
                artifact.issued_at.isoformat(),
            )
        remaining = artifact.duration_until_refetch(self._config.refresh_days, now)
        sleep_for = clamp_duration(remaining)
        if sleep_for == timedelta(0):
            logger.warning(
                "Refetch was due %s ago (refresh_days=%d); fetching again now.",
                -remaining,
                self._config.refresh_days,
            )
        else:
            logger.info(
                "Next fetch in %d days (at %s).",
                sleep_for.days,
                artifact.refetch_at(self._config.refresh_days).isoformat(),
            )
        return sleep_for

    def _fail(
        self, state: CycleState, error: CertManagerError, context: str
    ) -> CycleReport:
        logger.error("%s: %s", context, error)
        self.machine.transition(CycleState.BACKOFF, reason=f"{state.value} failed")
        return CycleReport(succeeded=False, failed_state=state, error=str(error))

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run_forever(self, max_cycles: int | None = None) -> list[CycleReport]:
        """Repeat cycles until ``stop()`` is called or *max_cycles* ran.

        Returns the reports of every cycle that ran.
        """
        reports: list[CycleReport] = []
        while not self._sleeper.stopped:
            if max_cycles is not None and len(reports) >= max_cycles:
                break
            report = self.run_cycle()
            reports.append(report)

            if report.succeeded:
                wait = report.sleep_for
            else:
                wait = self.retry_interval
                logger.info("Retrying in %d seconds...", int(wait.total_seconds()))

            if not self._sleeper.sleep(wait):
                logger.info("Stop requested; leaving the certificate loop.")
                break
        return reports

    def stop(self) -> None:
        """Interrupt the current wait and end ``run_forever``."""
        self._sleeper.stop()
