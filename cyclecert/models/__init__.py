"""cyclecert data models — all Pydantic v2, all frozen (immutable)."""

from cyclecert.models.certificate import (
    CERTIFICATE_EXTENSION,
    FIXED_VALIDITY_DAYS,
    KEY_EXTENSION,
    CertificateArtifact,
)
from cyclecert.models.cycle import (
    VALID_TRANSITIONS,
    CycleReport,
    CycleState,
    CycleTransition,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    PersistedPaths,
)
from cyclecert.models.envelopes import DataEnvelope, ErrorEnvelope, RemoteErrorDetail

__all__ = [
    # certificate
    "CERTIFICATE_EXTENSION",
    "FIXED_VALIDITY_DAYS",
    "KEY_EXTENSION",
    "CertificateArtifact",
    # envelopes
    "DataEnvelope",
    "ErrorEnvelope",
    "RemoteErrorDetail",
    # cycle
    "VALID_TRANSITIONS",
    "CycleReport",
    "CycleState",
    "CycleTransition",
    "FetchFailure",
    "FetchOutcome",
    "FetchSuccess",
    "PersistedPaths",
]
