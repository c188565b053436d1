"""Certificate artifact — one fetched certificate generation.

The artifact is built only by decoding a data envelope from the lookup
endpoint.  It is frozen after construction and discarded at the end of
the cycle that fetched it.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)

# Issuer's validity window, counted from the generation timestamp.
FIXED_VALIDITY_DAYS = 90

CERTIFICATE_EXTENSION = "ca-bundle"
KEY_EXTENSION = "key"
STEM_SEPARATOR = "_"
DOT_SUBSTITUTE = "_"


class CertificateArtifact(BaseModel):
    """In-memory certificate bundle, private key and issuance time.

    ``issued_at`` is read from ``events.generated`` on the wire.  The
    private key is held as a ``SecretStr`` so it never shows up in
    ``repr()`` or log output; call ``private_key.get_secret_value()`` to
    write it out.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    domains: list[str] = Field(min_length=1)
    bundle: str = Field(min_length=1)
    private_key: SecretStr
    issued_at: datetime = Field(
        validation_alias=AliasChoices("issued_at", AliasPath("events", "generated")),
    )
    hub_id: str | None = None

    @field_validator("domains")
    @classmethod
    def _no_blank_domains(cls, value: list[str]) -> list[str]:
        if any(not d.strip() for d in value):
            raise ValueError("domains must not contain empty entries")
        return value

    @field_validator("private_key")
    @classmethod
    def _key_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("private_key must not be empty")
        return value

    @field_validator("issued_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    # ------------------------------------------------------------------
    # Filenames
    # ------------------------------------------------------------------

    def stem(self, filename_override: str | None = None) -> str:
        """Return the filename base shared by the bundle and the key."""
        if filename_override:
            return filename_override
        joined = STEM_SEPARATOR.join(self.domains)
        return joined.replace(".", DOT_SUBSTITUTE)

    def certificate_filename(self, filename_override: str | None = None) -> str:
        return f"{self.stem(filename_override)}.{CERTIFICATE_EXTENSION}"

    def key_filename(self, filename_override: str | None = None) -> str:
        return f"{self.stem(filename_override)}.{KEY_EXTENSION}"

    def certificate_filepath(
        self, output_dir: Path | str, filename_override: str | None = None
    ) -> Path:
        return Path(output_dir) / self.certificate_filename(filename_override)

    def key_filepath(
        self, output_dir: Path | str, filename_override: str | None = None
    ) -> Path:
        return Path(output_dir) / self.key_filename(filename_override)

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(days=FIXED_VALIDITY_DAYS)

    def refetch_at(self, refresh_lead_days: int) -> datetime:
        """Return the moment the certificate should be fetched again.

        Lead times beyond the representable calendar saturate to the
        earliest (or, for negative leads, latest) datetime.
        """
        try:
            return self.expires_at - timedelta(days=refresh_lead_days)
        except OverflowError:
            bound = datetime.min if refresh_lead_days > 0 else datetime.max
            return bound.replace(tzinfo=timezone.utc)

    def duration_until_refetch(
        self, refresh_lead_days: int, now: datetime | None = None
    ) -> timedelta:
        """Return the signed time remaining until :meth:`refetch_at`.

        Zero or negative means the refetch is already due.  Callers that
        sleep on this value must clamp it first.
        """
        now = now or datetime.now(timezone.utc)
        return self.refetch_at(refresh_lead_days) - now
