"""cyclecert: keeps a Cycle-issued TLS certificate and key on disk.

Fetches the certificate bundle and private key for one domain (or DNS
zone/record) of a hub from the Cycle API, writes them under a
deterministic filename, optionally runs a reload command, and refetches
shortly before the certificate expires.
"""

__version__ = "0.3.0"
__author__ = "Petrichor, Inc."
__description__ = "Fetches and refreshes TLS certificates issued by the Cycle API"

from cyclecert.core.client import CertificateClient
from cyclecert.core.scheduler import CertificateScheduler
from cyclecert.models.certificate import CertificateArtifact

__all__ = [
    "CertificateArtifact",
    "CertificateClient",
    "CertificateScheduler",
    "__version__",
]
