import random
import threading

import pytest

from accounts.models import Caller, Role
from dispatch.lifecycle import GroupLifecycle
from rides.errors import ConflictError, ForbiddenError, NotFoundError
from rides.fares import FareCalculator
from rides.models import GroupStatus, RideStatus
from rides.policy import FarePolicy

from conftest import assert_group_link


def group_rides(store, group):
    return store.rides.find({"group": group.id})


def test_accept_assigns_driver_and_starts_rides(lifecycle, store, matched_group, driver):
    accepted = lifecycle.accept(matched_group.id, driver)

    assert accepted.status == GroupStatus.IN_PROGRESS
    assert accepted.driver == "driver_1"
    # distance based fare stands unless the re-roll is enabled
    assert (accepted.total_fare, accepted.per_person_fare) == (33, 17)

    rides = group_rides(store, matched_group)
    assert len(rides) == 2
    assert all(ride.status == RideStatus.IN_PROGRESS and ride.driver == "driver_1" for ride in rides)


def test_complete_finishes_group_and_rides(lifecycle, store, matched_group, driver):
    lifecycle.accept(matched_group.id, driver)

    completed = lifecycle.complete(matched_group.id, driver)

    assert completed.status == GroupStatus.COMPLETED
    rides = group_rides(store, matched_group)
    assert all(ride.status == RideStatus.COMPLETED for ride in rides)
    for ride in rides:
        assert_group_link(ride)


def test_riders_cannot_accept(lifecycle, store, matched_group, rider_caller):
    with pytest.raises(ForbiddenError):
        lifecycle.accept(matched_group.id, rider_caller)

    assert store.groups.get(matched_group.id).status == GroupStatus.MATCHED


def test_accept_unknown_group(lifecycle, driver):
    with pytest.raises(NotFoundError):
        lifecycle.accept("no-such-group", driver)


def test_second_driver_gets_conflict(lifecycle, store, matched_group, driver, other_driver):
    lifecycle.accept(matched_group.id, driver)

    with pytest.raises(ConflictError):
        lifecycle.accept(matched_group.id, other_driver)

    assert store.groups.get(matched_group.id).driver == "driver_1"


def test_only_assigned_driver_completes(lifecycle, store, matched_group, driver, other_driver):
    lifecycle.accept(matched_group.id, driver)

    with pytest.raises(ForbiddenError):
        lifecycle.complete(matched_group.id, other_driver)

    assert store.groups.get(matched_group.id).status == GroupStatus.IN_PROGRESS


def test_cannot_complete_before_accept(lifecycle, matched_group, driver):
    # nobody is assigned yet, so driver_1 is not the group's driver
    with pytest.raises(ForbiddenError):
        lifecycle.complete(matched_group.id, driver)


def test_complete_twice_is_a_conflict(lifecycle, store, matched_group, driver):
    lifecycle.accept(matched_group.id, driver)
    lifecycle.complete(matched_group.id, driver)
    before = group_rides(store, matched_group)

    with pytest.raises(ConflictError):
        lifecycle.complete(matched_group.id, driver)

    assert group_rides(store, matched_group) == before


def test_completed_group_cannot_be_accepted(lifecycle, matched_group, driver, other_driver):
    lifecycle.accept(matched_group.id, driver)
    lifecycle.complete(matched_group.id, driver)

    with pytest.raises(ConflictError):
        lifecycle.accept(matched_group.id, other_driver)


def test_accept_leaves_other_rides_of_the_riders_alone(engine, lifecycle, store, matched_group, driver):
    """
    rider_a has an unrelated ride in flight; only the group's rides move.
    """
    unrelated = engine.request_ride("rider_a", "Zoo", "Tegel", (52.50, 13.33), (52.55, 13.29))

    lifecycle.accept(matched_group.id, driver)

    assert store.rides.get(unrelated.ride.id).status == RideStatus.REQUESTED


def test_reroll_on_accept_when_enabled(store, matched_group, driver):
    fares = FareCalculator(FarePolicy(reroll_on_accept=True), rng=random.Random(3))
    lifecycle = GroupLifecycle(store, fares=fares)

    accepted = lifecycle.accept(matched_group.id, driver)

    assert 80 <= accepted.total_fare <= 150
    assert accepted.per_person_fare == round(accepted.total_fare / 2, 2)


def test_failed_ride_update_restores_group(lifecycle, store, matched_group, driver, monkeypatch):
    def broken_update_many(query, patch):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(store.rides, "update_many", broken_update_many)

    with pytest.raises(RuntimeError):
        lifecycle.accept(matched_group.id, driver)

    group = store.groups.get(matched_group.id)
    assert group.status == GroupStatus.MATCHED
    assert group.driver is None
    assert (group.total_fare, group.per_person_fare) == (33, 17)


def test_racing_drivers_only_one_wins(store, matched_group):
    lifecycle = GroupLifecycle(store)
    drivers = [Caller.new(f"driver_{i}", Role.DRIVER) for i in range(8)]
    barrier = threading.Barrier(len(drivers))
    winners, conflicts = [], []

    def take(caller):
        barrier.wait()
        try:
            winners.append(lifecycle.accept(matched_group.id, caller))
        except ConflictError:
            conflicts.append(caller)

    threads = [threading.Thread(target=take, args=(caller,)) for caller in drivers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(winners) == 1
    assert len(conflicts) == len(drivers) - 1
    winner = winners[0].driver
    assert all(ride.driver == winner for ride in group_rides(store, matched_group))
