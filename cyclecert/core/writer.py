"""Persistence writer — bundle and key files under the computed paths.

Layout: ``{output_dir}/{stem}.ca-bundle`` and ``{output_dir}/{stem}.key``.

Each file is written to a temporary sibling and moved into place with
``os.replace`` so readers never see a half-written file.  The pair is not
atomic as a whole: if the key fails after the bundle succeeded the call
still fails and the caller must retry both.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from cyclecert.core.errors import PersistenceError
from cyclecert.models.certificate import CertificateArtifact
from cyclecert.models.cycle import PersistedPaths

logger = logging.getLogger(__name__)

BUNDLE_MODE = 0o644
KEY_MODE = 0o600


def _write_atomic(target: Path, content: str, mode: int) -> None:
    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def persist(
    artifact: CertificateArtifact,
    output_dir: Path | str,
    filename_override: str | None = None,
) -> PersistedPaths:
    """Write the bundle and private key of *artifact* into *output_dir*.

    Raises
    ------
    PersistenceError
        If the directory cannot be created or either file cannot be
        written.  The message names the path, never the key content.
    """
    output_dir = Path(output_dir)
    cert_path = artifact.certificate_filepath(output_dir, filename_override)
    key_path = artifact.key_filepath(output_dir, filename_override)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PersistenceError(
            f"Failed to create certificate directory {output_dir}: {exc.strerror or exc}",
            path=output_dir,
        ) from exc

    for path, content, mode in (
        (cert_path, artifact.bundle, BUNDLE_MODE),
        (key_path, artifact.private_key.get_secret_value(), KEY_MODE),
    ):
        try:
            _write_atomic(path, content, mode)
        except (OSError, UnicodeError) as exc:
            reason = getattr(exc, "strerror", None) or exc.__class__.__name__
            raise PersistenceError(
                f"Failed to write {path}: {reason}",
                path=path,
            ) from exc
        logger.debug("Wrote %s", path)

    return PersistedPaths(certificate=cert_path, key=key_path)
