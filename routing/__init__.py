#Marks routing as a package.
#Re-exports the public APIs (RouteEstimator, OSRMClient, estimate_eta, label
#formatters) so other modules import from routing without knowing internal file names.
#No business logic.

from .osrm_client import OSRMClient, OSRMError
from .geocoding_client import NominatimClient, GeocodingError
from .eta_service import estimate_eta, haversine_meters
from .formatting import format_distance, format_duration
from .route_cache import TtlCache, CacheSweeper
from .route_service import RouteEstimator, RouteEstimate
from .policy import RoutingPolicy, default_routing_policy

__all__ = [
           "OSRMClient",
           "OSRMError",
           "NominatimClient",
           "GeocodingError",
           "estimate_eta",
           "haversine_meters",
           "format_distance",
           "format_duration",
           "TtlCache",
           "CacheSweeper",
           "RouteEstimator",
           "RouteEstimate",
           "RoutingPolicy",
           "default_routing_policy",
             ]
