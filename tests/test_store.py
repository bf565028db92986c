from datetime import datetime, timedelta, timezone

import pytest

from rides.errors import NotFoundError
from rides.models import Location, Ride, RideStatus
from rides.store import AnyOf, Contains, In, InMemoryCollection, Ne, matches

PICKUP = Location(52.5251, 13.3694, "Berlin Central Station, Europaplatz 1")
DROP = Location(52.5219, 13.4132, "Alexanderplatz, Mitte")


def make_ride(rider, **overrides):
    fields = dict(rider=rider, pickup_location=PICKUP, drop_location=DROP)
    fields.update(overrides)
    return Ride(**fields)


@pytest.fixture
def rides():
    return InMemoryCollection("rides")


def test_contains_is_case_insensitive_and_literal():
    ride = make_ride("a")

    assert matches(ride, {"pickup_location.address": Contains("central STATION")})
    assert not matches(ride, {"pickup_location.address": Contains("Central.*Station")})
    assert matches(Ride(rider="a", pickup_location=Location(0, 0, "a.b"), drop_location=DROP),
                   {"pickup_location.address": Contains("a.b")})


def test_operators():
    ride = make_ride("a", status=RideStatus.MATCHED, group="g1")

    assert matches(ride, {"status": In([RideStatus.MATCHED, RideStatus.IN_PROGRESS])})
    assert not matches(ride, {"status": In([RideStatus.REQUESTED])})
    assert matches(ride, {"rider": Ne("b")})
    assert not matches(ride, {"rider": Ne("a")})
    assert matches(ride, {"group": "g1", "driver": None})


def test_any_of_on_list_fields():
    class Record:
        riders = ["a", "b"]

    assert matches(Record(), {"riders": AnyOf(["b", "z"])})
    assert not matches(Record(), {"riders": AnyOf(["z"])})


def test_find_returns_newest_first(rides):
    now = datetime.now(timezone.utc)
    rides.create(make_ride("old", created_at=now - timedelta(minutes=5)))
    rides.create(make_ride("new", created_at=now))
    rides.create(make_ride("tie", created_at=now))

    assert [ride.rider for ride in rides.find({})] == ["tie", "new", "old"]
    assert rides.find_one({"rider": Ne("tie")}).rider == "new"


def test_timestamps_are_utc_aware(rides):
    ride = rides.create(make_ride("a"))

    assert ride.created_at.utcoffset() == timedelta(0)
    # default timestamps sort alongside explicit aware ones
    rides.create(make_ride("b", created_at=datetime.now(timezone.utc) - timedelta(hours=1)))
    assert [r.rider for r in rides.find({})] == ["a", "b"]


def test_returned_records_are_copies(rides):
    created = rides.create(make_ride("a"))
    created.status = RideStatus.COMPLETED

    fetched = rides.get(created.id)
    fetched.fare = 999

    assert rides.get(created.id).status == RideStatus.REQUESTED
    assert rides.get(created.id).fare == 0


def test_create_rejects_duplicate_ids(rides):
    ride = rides.create(make_ride("a"))

    with pytest.raises(ValueError):
        rides.create(ride)


def test_save_requires_existing_record(rides):
    with pytest.raises(NotFoundError):
        rides.save(make_ride("ghost"))


def test_update_if_applies_only_when_expected_state_holds(rides):
    ride = rides.create(make_ride("a"))

    claimed = rides.update_if(ride.id, {"status": RideStatus.REQUESTED}, {"status": RideStatus.MATCHED})
    assert claimed.status == RideStatus.MATCHED

    # second claim loses
    assert rides.update_if(ride.id, {"status": RideStatus.REQUESTED}, {"status": RideStatus.MATCHED}) is None
    assert rides.update_if("missing", {}, {"fare": 1}) is None


def test_update_many_is_scoped_by_query(rides):
    first = rides.create(make_ride("a", status=RideStatus.MATCHED, group="g1"))
    rides.create(make_ride("b", status=RideStatus.MATCHED, group="g2"))
    rides.create(make_ride("a", status=RideStatus.COMPLETED, group="g0"))

    updated = rides.update_many(
        {"rider": In(["a", "b"]), "status": RideStatus.MATCHED, "group": "g1"},
        {"status": RideStatus.IN_PROGRESS},
    )

    assert updated == 1
    assert rides.get(first.id).status == RideStatus.IN_PROGRESS
    assert len(rides.find({"status": RideStatus.MATCHED})) == 1


def test_delete(rides):
    ride = rides.create(make_ride("a"))
    rides.delete(ride.id)
    rides.delete(ride.id)

    assert rides.get(ride.id) is None
    assert len(rides) == 0
