# greenghost/services/zip_lookup.py
from dataclasses import dataclass
from typing import Optional
import logging

import httpx

from greenghost.config import settings
from greenghost.errors import ValidationFailed
from greenghost.utils.email_validator import is_valid_zip

logger = logging.getLogger(__name__)


@dataclass
class ZipPlace:
    zip_code: str
    city: str
    state: str
    state_abbreviation: str
    latitude: float
    longitude: float


class ZipLookupService:
    """
    Resolves US ZIP codes to a place for the waitlist map.
    One retry on transport errors and 5xx responses; 404 means unknown ZIP.
    """

    def __init__(self, base_url: str = None, attempts: int = 2, timeout: float = 10.0, transport: httpx.AsyncBaseTransport = None):
        self.base_url = (base_url or settings.ZIP_LOOKUP_URL).rstrip("/")
        self.attempts = attempts
        self.timeout = timeout
        self.transport = transport

    async def lookup(self, zip_code: str) -> Optional[ZipPlace]:
        if not is_valid_zip(zip_code):
            raise ValidationFailed("ZIP code must be exactly 5 digits")

        last_error = None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, self.attempts + 1):
                try:
                    response = await client.get(f"{self.base_url}/{zip_code}")
                    if response.status_code == 404:
                        return None
                    response.raise_for_status()
                    return _parse_place(zip_code, response.json())
                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500:
                        raise
                    last_error = e
                except httpx.TransportError as e:
                    last_error = e
                logger.warning(f"ZIP lookup for {zip_code} failed (attempt {attempt}/{self.attempts}): {last_error}")

        raise last_error


def _parse_place(zip_code: str, data: dict) -> Optional[ZipPlace]:
    places = data.get("places") or []
    if not places:
        return None
    place = places[0]
    return ZipPlace(
        zip_code=zip_code,
        city=place.get("place name", ""),
        state=place.get("state", ""),
        state_abbreviation=place.get("state abbreviation", ""),
        latitude=float(place.get("latitude", 0)),
        longitude=float(place.get("longitude", 0)),
    )


def get_zip_lookup() -> ZipLookupService:
    return ZipLookupService()
