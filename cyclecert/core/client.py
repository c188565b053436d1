"""Certificate client — the authenticated lookup against the Cycle API.

One synchronous GET per call.  The client never retries; retry policy
lives in the scheduler.
"""

from __future__ import annotations

import logging

import httpx

from cyclecert import __version__
from cyclecert.config import ManagerConfig
from cyclecert.core.envelope import decode_envelope
from cyclecert.core.errors import CertManagerError, TransportError
from cyclecert.models.cycle import FetchFailure, FetchOutcome, FetchSuccess

logger = logging.getLogger(__name__)

HUB_HEADER = "X-Hub-Id"


def build_http_client(
    config: ManagerConfig, *, transport: httpx.BaseTransport | None = None
) -> httpx.Client:
    """Create an ``httpx.Client`` carrying the API key and hub headers."""
    api_key = config.api_key.get_secret_value() if config.api_key else ""
    headers = {
        "Authorization": f"Bearer {api_key}",
        HUB_HEADER: config.hub_id,
        "Accept": "application/json",
        "User-Agent": f"cyclecert/{__version__}",
    }
    return httpx.Client(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers=headers,
        transport=transport,
    )


def lookup_params(config: ManagerConfig) -> dict[str, str]:
    """Query parameters selecting the certificate; domain wins over record."""
    if config.domain:
        params = {"domain": config.domain}
        if config.wildcard:
            params["wildcard"] = "true"
        return params
    if config.record is not None:
        return {
            "zone_id": config.record.zone_id,
            "record_id": config.record.record_id,
        }
    return {}


class CertificateClient:
    """Fetches the current certificate for the configured identity.

    Parameters
    ----------
    config:
        The validated effective configuration.
    http_client:
        Optional pre-built client (tests pass one backed by
        ``httpx.MockTransport``).  Built from *config* otherwise.
    """

    def __init__(
        self, config: ManagerConfig, *, http_client: httpx.Client | None = None
    ) -> None:
        self._config = config
        self._http = http_client or build_http_client(config)

    @property
    def endpoint(self) -> str:
        return self._config.lookup_url

    def fetch(self) -> FetchOutcome:
        """Look up the certificate and decode the response envelope."""
        params = lookup_params(self._config)
        logger.debug("GET %s params=%s", self.endpoint, params)

        try:
            response = self._http.get(self.endpoint, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return FetchFailure(
                error=TransportError(
                    f"Request to {self.endpoint} failed: {exc.__class__.__name__}: {exc}",
                    url=self.endpoint,
                )
            )

        logger.debug("Lookup answered HTTP %d", response.status_code)
        try:
            artifact = decode_envelope(response.content)
        except CertManagerError as exc:
            return FetchFailure(error=exc)
        return FetchSuccess(artifact=artifact)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> CertificateClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
