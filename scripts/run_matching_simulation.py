"""
Fire a burst of concurrent ride requests at the matching engine and report
how they paired up. Runs offline by default (geometric route estimates);
pass --osrm to route through the OSRM server configured in .env.

    python -m scripts.run_matching_simulation --riders 40 --corridors 3
"""

import argparse
import logging
import random
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

from config import configure_logging, load_settings
from rides.fares import FareCalculator
from rides.matching.engine import MatchingEngine, MatchResult
from rides.store import InMemoryRecordStore
from routing.osrm_client import OSRMClient, OSRMError
from routing.route_service import RouteEstimator

logger = logging.getLogger("simulation")

# (pickup address, pickup coords, drop address, drop coords)
CORRIDORS: List[Tuple[str, Tuple[float, float], str, Tuple[float, float]]] = [
    ("Central Station", (52.5251, 13.3694), "Alexanderplatz", (52.5219, 13.4132)),
    ("Airport Terminal 1", (52.3667, 13.5033), "Potsdamer Platz", (52.5096, 13.3759)),
    ("University Main Gate", (52.4577, 13.2902), "Kurfuerstendamm", (52.5037, 13.3310)),
    ("Harbour Road", (52.4986, 13.4456), "Tech Park", (52.5447, 13.3530)),
]


class OfflineOSRM:
    """Stands in for OSRM when running without a routing server."""

    def compute_route(self, coordinates):
        raise OSRMError("offline simulation")


def run(riders: int, corridors: int, use_osrm: bool, seed: int) -> List[MatchResult]:
    settings = load_settings()
    rng = random.Random(seed)

    osrm = OSRMClient(base_url=settings.osrm_base_url) if use_osrm else OfflineOSRM()
    estimator = RouteEstimator(osrm=osrm, policy=settings.routing_policy())
    store = InMemoryRecordStore()
    engine = MatchingEngine(store, estimator, fares=FareCalculator(settings.fare_policy()),
                            policy=settings.matching_policy())

    def request(index: int) -> MatchResult:
        pickup, pickup_coords, drop, drop_coords = CORRIDORS[rng.randrange(corridors)]
        return engine.request_ride(f"rider_{index}", pickup, drop, pickup_coords, drop_coords)

    estimator.start_sweeper()
    try:
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(request, range(riders)))
    finally:
        estimator.stop_sweeper()

    groups = store.groups.find({})
    waiting = [result for result in results if not result.matched]

    print("\n--- Matching Results ---")
    print(f"Requests: {riders}")
    print(f"Groups formed: {len(groups)}")
    print(f"Still waiting: {len(waiting)}\n")

    for group in groups:
        print(f"{group.pickup_location.address} -> {group.drop_location.address}: "
              f"{', '.join(group.riders)} | {group.distance}, {group.duration} | "
              f"total {group.total_fare}, each {group.per_person_fare}")

    return results


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--riders", type=int, default=20)
    parser.add_argument("--corridors", type=int, default=2, choices=range(1, len(CORRIDORS) + 1))
    parser.add_argument("--osrm", action="store_true", help="use the configured OSRM server")
    parser.add_argument("--seed", type=int, default=7)
    args = parser.parse_args()

    configure_logging(load_settings().log_level)
    run(args.riders, args.corridors, args.osrm, args.seed)


if __name__ == "__main__":
    main()
