"""
Demographic (Person) service client.
The Person record owns names, birth date and addresses; this service only keeps
the patient id in step with it.

Reads degrade to ``None`` when the service is unreachable. Voiding does not:
a failed remote void is reported so the caller can abort its own void.
"""
import logging
from typing import Optional
import httpx
from ..core.config import settings
from ..core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

PEOPLE_PATH = "/api/demographic/people"


class DemographicClient:
    """HTTP client for the external demographic service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url if base_url is not None else settings.DEMOGRAPHIC_SERVICE_URL
        self.timeout = timeout if timeout is not None else settings.DEMOGRAPHIC_TIMEOUT
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _headers(correlation_id: Optional[str]) -> dict:
        return {settings.CORRELATION_ID_HEADER: correlation_id} if correlation_id else {}

    def get_person(
        self,
        person_id: int,
        include_voided: bool = False,
        correlation_id: Optional[str] = None,
    ) -> Optional[dict]:
        """Fetch a Person, or None if it is missing or the service is unavailable."""
        if not self.base_url:
            logger.debug("Demographic service not configured; person %s left empty", person_id)
            return None
        include = "true" if include_voided else "false"
        try:
            with self._client() as client:
                resp = client.get(
                    f"{PEOPLE_PATH}/{person_id}/{include}",
                    headers=self._headers(correlation_id),
                )
                if resp.status_code == 404:
                    return None
                resp.raise_for_status()
                if not resp.content:
                    return None
                return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Demographic service unavailable for person %s: %s", person_id, exc)
            return None

    def delete_person(self, person_id: int, void_reason: str, correlation_id: Optional[str] = None) -> None:
        """Void the Person on the remote side. Raises ExternalServiceError on any failure."""
        if not self.base_url:
            logger.warning("Demographic service not configured; skipping remote void of person %s", person_id)
            return
        logger.info("Voiding person with ID: %s", person_id)
        try:
            with self._client() as client:
                resp = client.request(
                    "DELETE",
                    f"{PEOPLE_PATH}/{person_id}",
                    json={"void_reason": void_reason},
                    headers=self._headers(correlation_id),
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Error voiding person %s: %s", person_id, exc)
            raise ExternalServiceError(f"Error voiding person {person_id}: {exc}") from exc


demographic_client = DemographicClient()
