"""Tests for CertificateArtifact — filenames, refetch schedule, validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from cyclecert.models.certificate import FIXED_VALIDITY_DAYS, CertificateArtifact


class TestFilenames:
    def test_example_domains(self, artifact: CertificateArtifact, tmp_path: Path):
        assert artifact.certificate_filepath(tmp_path) == tmp_path / "cycle_io_petrichor_io.ca-bundle"
        assert artifact.key_filepath(tmp_path) == tmp_path / "cycle_io_petrichor_io.key"

    @pytest.mark.parametrize(
        "domains",
        [
            ["a.io"],
            ["www.example.co.uk", "example.co.uk"],
            ["no-dots"],
            ["*.wild.example.com"],
        ],
    )
    def test_paths_share_stem_and_differ(self, make_artifact, tmp_path: Path, domains):
        art = make_artifact(domains=domains)
        cert = art.certificate_filepath(tmp_path)
        key = art.key_filepath(tmp_path)
        assert cert != key
        assert cert.stem == key.stem
        assert cert.suffix == ".ca-bundle"
        assert key.suffix == ".key"

    @pytest.mark.parametrize(
        "domains", [["a.io"], ["x.y.z", "q.r"], ["..."], ["sub.domain.example.com"]]
    )
    def test_stem_has_no_dots(self, make_artifact, domains):
        assert "." not in make_artifact(domains=domains).stem()

    def test_override_used_verbatim(self, artifact: CertificateArtifact, tmp_path: Path):
        assert artifact.stem("my.cert") == "my.cert"
        assert artifact.certificate_filepath(tmp_path, "my.cert") == tmp_path / "my.cert.ca-bundle"
        assert artifact.key_filepath(tmp_path, "my.cert") == tmp_path / "my.cert.key"

    def test_empty_override_falls_back_to_domains(self, artifact: CertificateArtifact):
        assert artifact.stem("") == "cycle_io_petrichor_io"

    def test_accepts_string_output_dir(self, artifact: CertificateArtifact):
        assert artifact.certificate_filepath("/etc/certs") == Path("/etc/certs/cycle_io_petrichor_io.ca-bundle")


class TestRefetchSchedule:
    def test_expires_after_validity_window(self, artifact: CertificateArtifact, issued_at: datetime):
        assert artifact.expires_at == issued_at + timedelta(days=FIXED_VALIDITY_DAYS)

    def test_duration_is_target_minus_now(self, artifact: CertificateArtifact, issued_at: datetime):
        remaining = artifact.duration_until_refetch(14, now=issued_at)
        assert remaining == timedelta(days=FIXED_VALIDITY_DAYS - 14)

    def test_larger_lead_means_shorter_duration(self, artifact: CertificateArtifact, issued_at: datetime):
        now = issued_at + timedelta(days=3, hours=5)
        durations = [artifact.duration_until_refetch(lead, now=now) for lead in range(0, 120, 7)]
        assert durations == sorted(durations, reverse=True)
        assert len(set(durations)) == len(durations)

    def test_overdue_certificate_gives_non_positive_duration(
        self, artifact: CertificateArtifact, issued_at: datetime
    ):
        now = issued_at + timedelta(days=80)
        assert artifact.duration_until_refetch(14, now=now) <= timedelta(0)

    def test_lead_longer_than_validity_is_negative(self, artifact: CertificateArtifact, issued_at: datetime):
        assert artifact.duration_until_refetch(FIXED_VALIDITY_DAYS + 1, now=issued_at) < timedelta(0)

    @pytest.mark.parametrize("lead", [1_000_000, 10**12])
    def test_lead_beyond_calendar_is_negative(self, artifact: CertificateArtifact, issued_at: datetime, lead: int):
        assert artifact.refetch_at(lead) == datetime.min.replace(tzinfo=timezone.utc)
        assert artifact.duration_until_refetch(lead, now=issued_at) < timedelta(0)

    def test_future_issued_at_not_masked(self, make_artifact):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        art = make_artifact(issued_at=now + timedelta(days=30))
        assert art.duration_until_refetch(14, now=now) == timedelta(days=FIXED_VALIDITY_DAYS - 14 + 30)

    def test_defaults_to_current_time(self, make_artifact):
        art = make_artifact(issued_at=datetime.now(timezone.utc))
        remaining = art.duration_until_refetch(14)
        assert timedelta(days=75) < remaining <= timedelta(days=76)


class TestValidation:
    def test_wire_alias_for_issued_at(self, certificate_payload, issued_at: datetime):
        art = CertificateArtifact.model_validate(certificate_payload())
        assert art.issued_at == issued_at
        assert art.hub_id == "hub-123"

    def test_naive_timestamp_is_utc(self, make_artifact):
        art = make_artifact(issued_at=datetime(2026, 1, 1, 12, 0))
        assert art.issued_at.tzinfo is not None
        assert art.issued_at.utcoffset() == timedelta(0)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"domains": []},
            {"domains": [""]},
            {"bundle": ""},
            {"private_key": ""},
        ],
    )
    def test_empty_required_fields_rejected(self, make_artifact, overrides):
        with pytest.raises(ValidationError):
            make_artifact(**overrides)

    def test_frozen(self, artifact: CertificateArtifact):
        with pytest.raises(ValidationError):
            artifact.bundle = "other"

    def test_private_key_hidden_from_repr(self, artifact: CertificateArtifact, private_key_text: str):
        assert "supersecretkey" not in repr(artifact)
        assert "supersecretkey" not in str(artifact)
        assert artifact.private_key.get_secret_value() == private_key_text
