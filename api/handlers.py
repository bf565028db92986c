"""
Purpose: The produced API surface (one method per client call).
What it does:
Each handler authenticates the caller's credential, runs one engine
operation and returns a JSON-ready dict. Rejections are RideShareError
subclasses; call() wraps any handler into an ApiResponse with the HTTP
status the client expects, so a transport layer only has to forward it.

HTTP routing and process startup live outside this package.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging

from accounts.auth import TokenAuthenticator
from accounts.models import Caller, Role
from config import Settings, load_settings
from dispatch.lifecycle import GroupLifecycle
from dispatch.queries import RideQueries
from rides.errors import RideShareError
from rides.fares import FareCalculator
from rides.matching.engine import MatchingEngine
from rides.store import InMemoryRecordStore, RecordStore
from routing.geocoding_client import NominatimClient
from routing.osrm_client import OSRMClient
from routing.route_service import RouteEstimator
from . import serializers

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "input": 400,
    "unauthenticated": 401,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "external_service": 502,
}


@dataclass(frozen=True)
class ApiResponse:
    status: int
    body: Any


class RideShareAPI:
    def __init__(
        self,
        authenticator: TokenAuthenticator,
        engine: MatchingEngine,
        lifecycle: GroupLifecycle,
        queries: RideQueries,
    ):
        self.authenticator = authenticator
        self.engine = engine
        self.lifecycle = lifecycle
        self.queries = queries

    # ---- rider calls ----

    def create_ride(self, credential: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        caller = self.authenticator.authenticate(credential)
        result = self.engine.request_ride(
            caller.identity,
            payload.get("pickupLocation"),
            payload.get("dropLocation"),
            payload.get("pickupCoords"),
            payload.get("dropCoords"),
        )
        body: Dict[str, Any] = {"message": result.message, "routeInfo": result.route.to_dict()}
        if result.matched:
            body["group"] = serializers.serialize_group(result.group)
        else:
            body["ride"] = serializers.serialize_ride(result.ride)
        return body

    def list_pending(self, credential: str):
        self.authenticator.authenticate(credential)
        return serializers.serialize_rides(self.queries.pending_rides())

    def current_ride(self, credential: str):
        caller = self.authenticator.authenticate(credential)
        return serializers.serialize_current_ride(self.queries.current_ride(caller.identity))

    def ride_history(self, credential: str):
        caller = self.authenticator.authenticate(credential)
        return serializers.serialize_rides(self.queries.rider_history(caller.identity))

    def fare_summary(self, credential: str):
        caller = self.authenticator.authenticate(credential)
        return serializers.serialize_fare_summary(self.queries.fare_summary(caller.identity))

    # ---- driver calls ----

    def list_driver_eligible(self, credential: str):
        self._driver(credential)
        return serializers.serialize_rides(self.queries.driver_eligible_rides())

    def driver_stats(self, credential: str):
        caller = self._driver(credential)
        return serializers.serialize_driver_stats(self.queries.driver_stats(caller.identity))

    def accept_group(self, credential: str, group_id: str):
        caller = self.authenticator.authenticate(credential)
        group = self.lifecycle.accept(group_id, caller)
        return {"message": "Group accepted", "group": serializers.serialize_group(group)}

    def complete_group(self, credential: str, group_id: str):
        caller = self.authenticator.authenticate(credential)
        group = self.lifecycle.complete(group_id, caller)
        return {"message": "Ride group marked as completed", "group": serializers.serialize_group(group)}

    def list_unassigned_groups(self, credential: str):
        self.authenticator.authenticate(credential)
        return serializers.serialize_groups(self.queries.unassigned_groups())

    def list_matched_groups(self, credential: str):
        self.authenticator.authenticate(credential)
        return serializers.serialize_groups(self.queries.active_groups())

    def driver_group_history(self, credential: str):
        caller = self._driver(credential)
        return serializers.serialize_groups(self.queries.driver_history(caller.identity))

    # ---- process lifetime ----

    def start(self) -> None:
        """Start background work (the route/geocode cache sweep)."""
        self.engine.estimator.start_sweeper()

    def close(self) -> None:
        self.engine.estimator.stop_sweeper()

    # ---- transport helper ----

    def call(self, handler: Callable[..., Any], *args, success_status: int = 200, **kwargs) -> ApiResponse:
        """
        Run `handler` and map the outcome to a status + body.
        Unexpected exceptions are logged and reported as 500 without details.
        """
        try:
            return ApiResponse(status=success_status, body=handler(*args, **kwargs))
        except RideShareError as exc:
            return ApiResponse(status=STATUS_BY_KIND.get(exc.kind, 400), body=exc.to_dict())
        except Exception:
            logger.exception("unhandled error in %s", getattr(handler, "__name__", handler))
            return ApiResponse(status=500, body={"kind": "error", "message": "Internal error"})

    def _driver(self, credential: str) -> Caller:
        return self.authenticator.authenticate(credential).require(Role.DRIVER, "Access denied")


def build_api(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    *,
    start: bool = True,
) -> RideShareAPI:
    """
    Wire the engine from settings. Uses the in-memory store unless one is given.
    The returned API is already started (cache sweep running) unless start=False;
    call close() on shutdown.
    """
    settings = settings or load_settings()
    routing_policy = settings.routing_policy()

    estimator = RouteEstimator(
        osrm=OSRMClient(base_url=settings.osrm_base_url, timeout=routing_policy.provider_timeout_seconds),
        geocoder=NominatimClient(base_url=settings.nominatim_base_url, timeout=routing_policy.provider_timeout_seconds),
        policy=routing_policy,
    )
    store = store or InMemoryRecordStore()
    fares = FareCalculator(settings.fare_policy())

    api = RideShareAPI(
        authenticator=TokenAuthenticator(settings.jwt_secret),
        engine=MatchingEngine(store, estimator, fares=fares, policy=settings.matching_policy()),
        lifecycle=GroupLifecycle(store, fares=fares),
        queries=RideQueries(store),
    )
    if start:
        api.start()
    return api
