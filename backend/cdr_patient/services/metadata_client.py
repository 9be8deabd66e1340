"""
Location / metadata lookup client.
Read-only reference data; every failure degrades to an empty result.
"""
import logging
from typing import Optional
import httpx
from ..core.config import settings

logger = logging.getLogger(__name__)

LOCATIONS_PATH = "/api/metadata/locations"


class MetadataClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url if base_url is not None else settings.METADATA_SERVICE_URL
        self.timeout = timeout if timeout is not None else settings.METADATA_TIMEOUT
        self.transport = transport

    def get_location(self, location_id: int, correlation_id: Optional[str] = None) -> Optional[dict]:
        if not self.base_url:
            return None
        headers = {settings.CORRELATION_ID_HEADER: correlation_id} if correlation_id else {}
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(f"{LOCATIONS_PATH}/{location_id}", headers=headers)
                if resp.status_code == 404:
                    return None
                resp.raise_for_status()
                return resp.json() if resp.content else None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Metadata service unavailable for location %s: %s", location_id, exc)
            return None


metadata_client = MetadataClient()
