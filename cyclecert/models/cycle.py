"""Scheduler state models — the fetch/persist/execute/sleep cycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from cyclecert.core.errors import CertManagerError
from cyclecert.models.certificate import CertificateArtifact


class CycleState(str, Enum):
    """States of the scheduler loop."""

    FETCHING = "fetching"
    PERSISTING = "persisting"
    EXECUTING = "executing"
    SLEEPING = "sleeping"
    BACKOFF = "backoff"


# Every failure goes through BACKOFF and back to FETCHING; nothing resumes
# mid-cycle.
VALID_TRANSITIONS: dict[CycleState, set[CycleState]] = {
    CycleState.FETCHING: {CycleState.PERSISTING, CycleState.BACKOFF},
    CycleState.PERSISTING: {
        CycleState.EXECUTING,
        CycleState.SLEEPING,
        CycleState.BACKOFF,
    },
    CycleState.EXECUTING: {CycleState.SLEEPING, CycleState.BACKOFF},
    CycleState.SLEEPING: {CycleState.FETCHING},
    CycleState.BACKOFF: {CycleState.FETCHING},
}


class FetchSuccess(BaseModel):
    """The lookup returned a usable certificate."""

    model_config = ConfigDict(frozen=True)

    artifact: CertificateArtifact

    @property
    def ok(self) -> bool:
        return True


class FetchFailure(BaseModel):
    """The lookup failed; ``error`` says why."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: CertManagerError

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return str(self.error)


FetchOutcome = FetchSuccess | FetchFailure


class PersistedPaths(BaseModel):
    """Files written for one certificate generation."""

    model_config = ConfigDict(frozen=True)

    certificate: Path
    key: Path


class CycleReport(BaseModel):
    """Result of a single pass through the cycle."""

    model_config = ConfigDict(frozen=True)

    succeeded: bool
    failed_state: CycleState | None = None
    error: str | None = None
    written: PersistedPaths | None = None
    sleep_for: timedelta = timedelta(0)
    command_ran: bool = False


class CycleTransition(BaseModel):
    """Records a single state transition of the scheduler."""

    model_config = ConfigDict(frozen=True)

    from_state: CycleState
    to_state: CycleState
    reason: str = ""
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
