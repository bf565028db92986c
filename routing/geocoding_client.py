#Purpose: Reverse geocoding adapter (coordinates -> display address).
#Talks to a Nominatim compatible /reverse endpoint and returns the display name.
#No caching here; RouteEstimator owns the geocode cache.

from dotenv import load_dotenv
import os
from typing import Optional
import requests

from rides.errors import ExternalServiceError

load_dotenv()
DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org"
USER_AGENT = "RideShareApp/1.0" #Nominatim usage policy requires an identifying agent


class GeocodingError(ExternalServiceError):
    pass


class NominatimClient:
    def __init__(self, base_url: Optional[str] = None, timeout: float = 5,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or os.getenv("NOMINATIM_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def reverse(self, latitude: float, longitude: float) -> str:
        """Return the display name for a coordinate, or raise GeocodingError."""
        try:
            response = self.session.get(
                f"{self.base_url}/reverse",
                params={"lat": latitude, "lon": longitude, "format": "json"},
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise GeocodingError(f"reverse geocoding failed: {exc}") from exc
        except ValueError as exc:
            raise GeocodingError("geocoder returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise GeocodingError(f"geocoder returned {type(data).__name__} instead of an object")
        name = data.get("display_name")
        if not name:
            raise GeocodingError(data.get("error", "no address found for coordinates"))
        return name
