import logging
import time
from typing import Optional

import requests
from pydantic import ValidationError

from songlib.domain.errors import (
    UpstreamBadRequest,
    UpstreamDecodeError,
    UpstreamInternalError,
    UpstreamStatusError,
    UpstreamUnavailable,
)
from songlib.models.dto import SongDetail
from songlib.observability.metrics import record_metadata_lookup
from songlib.observability.tracing import mark_lookup_outcome, metadata_lookup_span
from songlib.settings import AppSettings

logger = logging.getLogger(__name__)

# Connect phase gets a short budget of its own; the read timeout is the configured one
_MAX_CONNECT_TIMEOUT = 3.05


class MetadataClient:
    def __init__(self, settings: AppSettings, session: Optional[requests.Session] = None):
        """Client for the external song metadata API (``GET {base}/info``).

        :param settings: application settings providing the base URL and timeout.
        :param session: optional pre-built session, mostly for tests.
        """
        self.base_url = settings.external_api
        self.timeout = settings.metadata_timeout_seconds
        self.session = session or requests.Session()
        if not self.base_url:
            logger.warning("EXTERNAL_API is not configured; metadata lookups will fail.")

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _timeouts(self):
        return (min(_MAX_CONNECT_TIMEOUT, self.timeout), self.timeout)

    def _finish(self, span, outcome: str, elapsed: Optional[float] = None) -> None:
        record_metadata_lookup(outcome, elapsed)
        mark_lookup_outcome(span, outcome)

    def fetch_info(self, group: str, song: str) -> SongDetail:
        """Fetch release date, lyrics and link for a group/song pair.

        Raises a subclass of ``UpstreamFailure`` on any problem: network or
        timeout errors, non-200 statuses and undecodable payloads are all
        reported with distinct types.
        """
        if not self.base_url:
            record_metadata_lookup("unconfigured")
            raise UpstreamUnavailable("external API base URL is not configured")

        with metadata_lookup_span(group, song) as span:
            return self._fetch(span, group, song)

    def _fetch(self, span, group: str, song: str) -> SongDetail:
        url = f"{self.base_url}/info"
        context = {"group": group, "song": song}
        logger.info("Fetching song info", extra=context)
        started = time.monotonic()
        try:
            # requests handles query escaping of the parameters
            response = self.session.get(
                url,
                params={"group": group, "song": song},
                headers={"Accept": "application/json"},
                timeout=self._timeouts(),
            )
        except requests.exceptions.Timeout as exc:
            self._finish(span, "timeout", time.monotonic() - started)
            logger.error("Timeout while fetching song info from %s", url,
                         extra={**context, "metadata_outcome": "timeout"})
            raise UpstreamUnavailable("external API timed out") from exc
        except requests.exceptions.RequestException as exc:
            self._finish(span, "network_error", time.monotonic() - started)
            logger.error("Failed to fetch data from external API %s: %s", url, exc,
                         extra={**context, "metadata_outcome": "network_error"})
            raise UpstreamUnavailable() from exc
        elapsed = time.monotonic() - started
        context["metadata_elapsed_ms"] = round(elapsed * 1000, 1)

        status = response.status_code
        if status != 200:
            outcome = f"status_{status}"
            self._finish(span, outcome, elapsed)
            logger.error("Unexpected status code from external API: %d", status,
                         extra={**context, "metadata_outcome": outcome})
            if status == 400:
                raise UpstreamBadRequest()
            if status >= 500:
                raise UpstreamInternalError(f"external API returned status {status}")
            raise UpstreamStatusError(f"unexpected status code: {status}")

        decode_failure = {**context, "metadata_outcome": "decode_error"}
        try:
            payload = response.json()
        except ValueError as exc:
            self._finish(span, "decode_error", elapsed)
            logger.error("Failed to decode external API response: %s", exc, extra=decode_failure)
            raise UpstreamDecodeError() from exc
        if not isinstance(payload, dict):
            self._finish(span, "decode_error", elapsed)
            logger.error("External API returned %s instead of an object", type(payload).__name__,
                         extra=decode_failure)
            raise UpstreamDecodeError()

        try:
            detail = SongDetail.model_validate(payload)
        except ValidationError as exc:
            self._finish(span, "decode_error", elapsed)
            logger.error("External API payload failed validation: %s", exc, extra=decode_failure)
            raise UpstreamDecodeError() from exc

        self._finish(span, "success", elapsed)
        logger.info("Fetched song info in %.3fs", elapsed, extra={**context, "metadata_outcome": "success"})
        return detail

    def close(self) -> None:
        self.session.close()


__all__ = ["MetadataClient"]
