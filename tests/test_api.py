import pytest

from api.handlers import RideShareAPI, build_api
from config import Settings
from rides.store import InMemoryRecordStore

from conftest import ALEX, CENTRAL


def coords(point):
    return {"latitude": point[0], "longitude": point[1]}


def ride_payload(pickup="Main St", drop="Airport"):
    return {
        "pickupLocation": pickup,
        "dropLocation": drop,
        "pickupCoords": coords(CENTRAL),
        "dropCoords": coords(ALEX),
    }


@pytest.fixture
def api(authenticator, engine, lifecycle, queries):
    return RideShareAPI(authenticator, engine, lifecycle, queries)


@pytest.fixture
def tokens(authenticator):
    return {
        name: "Bearer " + authenticator.issue_token(name, role)
        for name, role in [("rider_a", "rider"), ("rider_b", "rider"), ("driver_1", "driver"), ("driver_2", "driver")]
    }


def test_create_ride_waiting_then_matched(api, tokens):
    first = api.call(api.create_ride, tokens["rider_a"], ride_payload(), success_status=201)

    assert first.status == 201
    assert first.body["message"] == "Ride requested. Waiting for a match"
    assert first.body["ride"]["status"] == "requested"
    assert first.body["routeInfo"] == {
        "distance": "3.3km",
        "distanceValue": 3250,
        "duration": "10 min",
        "durationValue": 600,
        "route": first.body["routeInfo"]["route"],
        "source": "osrm",
    }

    second = api.call(api.create_ride, tokens["rider_b"], ride_payload("main st", "airport"), success_status=201)

    assert second.body["message"] == "Matched with another rider!"
    group = second.body["group"]
    assert group["riders"] == ["rider_b", "rider_a"]
    assert group["totalFare"] == 33
    assert group["perPersonFare"] == 17


def test_full_driver_flow(api, tokens):
    api.create_ride(tokens["rider_a"], ride_payload())
    api.create_ride(tokens["rider_b"], ride_payload())

    unassigned = api.call(api.list_unassigned_groups, tokens["driver_1"])
    group_id = unassigned.body[0]["_id"]

    accepted = api.call(api.accept_group, tokens["driver_1"], group_id)
    assert accepted.status == 200
    assert accepted.body["message"] == "Group accepted"
    assert accepted.body["group"]["status"] == "in_progress"

    taken = api.call(api.accept_group, tokens["driver_2"], group_id)
    assert taken.status == 409
    assert taken.body["kind"] == "conflict"

    wrong_driver = api.call(api.complete_group, tokens["driver_2"], group_id)
    assert wrong_driver.status == 403

    done = api.call(api.complete_group, tokens["driver_1"], group_id)
    assert done.body["message"] == "Ride group marked as completed"

    summary = api.call(api.fare_summary, tokens["rider_a"])
    assert summary.body["totalFare"] == 33
    assert summary.body["perPersonFare"] == 17

    stats = api.call(api.driver_stats, tokens["driver_1"])
    assert stats.body == {"driver": "driver_1", "completedGroups": 1, "completedRides": 2, "earnings": 33}

    history = api.call(api.driver_group_history, tokens["driver_1"])
    assert [group["_id"] for group in history.body] == [group_id]


def test_current_ride(api, tokens):
    assert api.call(api.current_ride, tokens["rider_a"]).body is None

    api.create_ride(tokens["rider_a"], ride_payload())
    current = api.call(api.current_ride, tokens["rider_a"]).body

    assert current["status"] == "requested"
    assert current["coRiders"] == 0
    assert current["totalFare"] == 33


def test_status_codes(api, tokens):
    assert api.call(api.list_pending, "Bearer nonsense").status == 401
    assert api.call(api.list_driver_eligible, tokens["rider_a"]).status == 403
    assert api.call(api.list_driver_eligible, tokens["rider_a"]).body["message"] == "Access denied"
    assert api.call(api.accept_group, tokens["driver_1"], "missing").status == 404
    assert api.call(api.fare_summary, tokens["rider_a"]).status == 404

    bad = ride_payload()
    bad["pickupCoords"] = {"latitude": 123.0, "longitude": 13.4}
    response = api.call(api.create_ride, tokens["rider_a"], bad)
    assert response.status == 400
    assert response.body["kind"] == "input"


def test_unexpected_errors_become_500(api):
    def explode():
        raise RuntimeError("boom")

    response = api.call(explode)

    assert response.status == 500
    assert "boom" not in response.body["message"]


def test_build_api_wires_shared_store():
    store = InMemoryRecordStore()
    api = build_api(Settings(jwt_secret="wiring-secret-with-at-least-32-bytes"), store=store, start=False)

    assert api.engine.store is store
    assert api.lifecycle.store is store
    assert api.queries.store is store
    assert api.engine.policy.mode == "address"
    assert not api.engine.estimator.sweeper.running


def test_built_api_runs_the_cache_sweep_until_closed():
    api = build_api(Settings(jwt_secret="wiring-secret-with-at-least-32-bytes"))
    sweeper = api.engine.estimator.sweeper
    try:
        assert sweeper.running
        assert sweeper.interval_seconds == 15 * 60
        assert sweeper.caches == [api.engine.estimator.route_cache, api.engine.estimator.geocode_cache]
    finally:
        api.close()

    assert not sweeper.running
