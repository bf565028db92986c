import json
import threading
import time

import pytest
import requests

from accounts.auth import TokenAuthenticator
from accounts.models import Caller, Role
from dispatch.lifecycle import GroupLifecycle
from dispatch.queries import RideQueries
from rides.fares import FareCalculator
from rides.matching.engine import MatchingEngine
from rides.models import RideStatus
from rides.store import InMemoryRecordStore
from routing.geocoding_client import GeocodingError
from routing.osrm_client import OSRMError
from routing.route_service import RouteEstimator

# Berlin, roughly 3 km apart
CENTRAL = (52.5251, 13.3694)
ALEX = (52.5219, 13.4132)


class ManualClock:
    """Seconds that only move when the test says so."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeOSRM:
    """
    Answers every route with the same distance/duration, or fails on demand.
    """

    def __init__(self, distance: float = 3250.0, duration: float = 600.0):
        self.distance = distance
        self.duration = duration
        self.fail = False
        self.calls = []
        self._lock = threading.Lock()

    def compute_route(self, coordinates):
        with self._lock:
            self.calls.append(list(coordinates))
        if self.fail:
            raise OSRMError("OSRM timed out after 5s")
        (lat1, lon1), (lat2, lon2) = coordinates
        return {
            "distance": self.distance,
            "duration": self.duration,
            "geometry": {"type": "LineString", "coordinates": [[lon1, lat1], [lon2, lat2]]},
        }


class FakeGeocoder:
    def __init__(self, address: str = "Alexanderplatz, Mitte, Berlin"):
        self.address = address
        self.fail = False
        self.calls = 0

    def reverse(self, latitude, longitude):
        self.calls += 1
        if self.fail:
            raise GeocodingError("reverse geocoding failed: 503")
        return self.address


class FakeResponse:
    """
    Minimal requests.Response: JSON-encodes `payload` (NaN allowed, like a
    misbehaving server would send), or serves `raw` bytes as is.
    """

    def __init__(self, payload=None, status_code=200, raw=None, chunks=None, chunk_delay=0.0):
        self.body = raw if raw is not None else json.dumps(payload).encode()
        self.status_code = status_code
        self.chunks = chunks
        self.chunk_delay = chunk_delay

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def iter_content(self, chunk_size=1):
        pieces = self.chunks or [self.body]
        for piece in pieces:
            if self.chunk_delay:
                time.sleep(self.chunk_delay)
            yield piece

    def json(self):
        return json.loads(self.body)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, headers=None, timeout=None, stream=False):
        self.requests.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


def assert_group_link(ride):
    """A grouped ride is never requested; an in-progress or completed ride always has a group."""
    if ride.status == RideStatus.REQUESTED:
        assert ride.group is None, f"requested ride {ride.id} is linked to {ride.group}"
    if ride.status in (RideStatus.IN_PROGRESS, RideStatus.COMPLETED):
        assert ride.group is not None, f"{ride.status.value} ride {ride.id} has no group"


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def fake_osrm():
    return FakeOSRM()


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder()


@pytest.fixture
def estimator(fake_osrm, fake_geocoder, clock):
    return RouteEstimator(osrm=fake_osrm, geocoder=fake_geocoder, clock=clock)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def fares():
    return FareCalculator()


@pytest.fixture
def engine(store, estimator, fares):
    return MatchingEngine(store, estimator, fares=fares)


@pytest.fixture
def lifecycle(store, fares):
    return GroupLifecycle(store, fares=fares)


@pytest.fixture
def queries(store):
    return RideQueries(store)


@pytest.fixture
def driver():
    return Caller.new("driver_1", Role.DRIVER)


@pytest.fixture
def other_driver():
    return Caller.new("driver_2", Role.DRIVER)


@pytest.fixture
def rider_caller():
    return Caller.new("rider_a", Role.RIDER)


@pytest.fixture
def authenticator():
    return TokenAuthenticator("test-secret-with-at-least-32-bytes!")


@pytest.fixture
def matched_group(engine):
    """Two riders on the same corridor -> one matched group."""
    engine.request_ride("rider_a", "Central Station", "Alexanderplatz", CENTRAL, ALEX)
    result = engine.request_ride("rider_b", "central station", "alexanderplatz", CENTRAL, ALEX)
    assert result.matched
    return result.group
