"""Wire shapes returned by the certificate lookup endpoint.

The API wraps every response in either ``{"data": ...}`` or
``{"error": ...}`` with no discriminator field, so these models are
matched structurally by ``cyclecert.core.envelope``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from cyclecert.models.certificate import CertificateArtifact


class DataEnvelope(BaseModel):
    """Success shape: a single ``data`` field holding the certificate."""

    model_config = ConfigDict(frozen=True)

    data: CertificateArtifact


class RemoteErrorDetail(BaseModel):
    """Body of an error envelope."""

    model_config = ConfigDict(frozen=True)

    title: str
    detail: str | None = None
    code: str | None = None
    status: int | None = None
    source: Any = None

    @field_validator("code", mode="before")
    @classmethod
    def _code_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def message(self) -> str:
        return f"{self.title}...{self.detail or ''}"


class ErrorEnvelope(BaseModel):
    """Failure shape: a single ``error`` field."""

    model_config = ConfigDict(frozen=True)

    error: RemoteErrorDetail
