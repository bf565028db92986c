#Purpose: The OSRM "adapter/client".
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route)
#timeouts and error handling
#parsing response JSON into our internal shape
#It should not contain caching, fallback or fare rules.


from dotenv import load_dotenv
import json
import math
import os
import time
from typing import List, Tuple, Dict, Any, Optional
import requests

from rides.errors import ExternalServiceError

# Read OSRM base URL from environment
# Example in .env:
# OSRM_BASE_URL=http://router.project-osrm.org
load_dotenv()
DEFAULT_BASE_URL = "https://router.project-osrm.org"

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]

class OSRMError(ExternalServiceError):
    """Raised for any OSRM failure: transport, timeout, non-Ok code, bad body."""
    pass

class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lon) → OSRM (lon,lat)
    - Return normalized outputs

    """
    def __init__(self, base_url: Optional[str] = None, profile: str = "driving", timeout: float = 5,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or os.getenv("OSRM_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout #the time to wait for a response from OSRM before giving up
        self.profile = profile #the mode of transportation (driving, walking, cycling)
        self.session = session or requests.Session()

    def format_coordinates(self, coords: List[LatLon]) -> str:
        """Convert list of (lat, lon) to OSRM format 'lon,lat;lon,lat;...'"""
        return ';'.join([f"{lon},{lat}" for lat, lon in coords])

    def compute_route(self, coordinates: List[LatLon]) -> Dict[str, Any]:
        """
            calls the OSRM /route endpoint with the given coordinates and
            returns distance, duration and the full route geometry

            Returns:
                {
                    "distance": float, # in meters
                    "duration": float, # in seconds
                    "geometry": dict,  # GeoJSON LineString
                }
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(coordinates)}"

        #requests applies `timeout` per connect and per socket read, so a server
        #that trickles bytes could run past it. The body is streamed against a
        #total deadline instead; worst case is one read timeout past the deadline.
        deadline = time.monotonic() + self.timeout
        try:
            with self.session.get(
                url,
                params={
                    "overview": "full",
                    "geometries": "geojson",
                },
                timeout=(self.timeout, self.timeout),
                stream=True,
            ) as response:
                body = bytearray()
                for chunk in response.iter_content(chunk_size=16 * 1024):
                    body.extend(chunk)
                    if time.monotonic() > deadline:
                        raise OSRMError(f"OSRM timed out after {self.timeout}s")
            data = json.loads(body) #OSRM answers with JSON even on 4xx, carrying code/message
        except requests.Timeout as exc:
            raise OSRMError(f"OSRM timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise OSRMError(f"OSRM request failed: {exc}") from exc
        except ValueError as exc:
            raise OSRMError("OSRM returned a non-JSON body") from exc

        #validating OSRM response
        if not isinstance(data, dict):
            raise OSRMError(f"OSRM returned {type(data).__name__} instead of an object")
        if data.get("code") != "Ok":
            raise OSRMError(f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}")

        try:
            route = data["routes"][0] #take the first route (OSRM may return alternatives)
            distance = float(route["distance"])
            duration = float(route["duration"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise OSRMError("OSRM response is missing route data") from exc

        #json accepts NaN/Infinity, which would poison rounding and fares downstream
        for name, value in (("distance", distance), ("duration", duration)):
            if not math.isfinite(value) or value < 0:
                raise OSRMError(f"OSRM returned an invalid route {name}: {value!r}")

        return {
            "distance": distance,
            "duration": duration,
            "geometry": route.get("geometry"),
        }
