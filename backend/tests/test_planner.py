from datetime import date, timedelta

import pytest
from fastapi import HTTPException

from delivery_planner.services.batch_lifecycle import allocate
from delivery_planner.services.planner import (
    allocation_planner_view,
    calculate_route,
    list_unallocated,
    plan_route,
    route_planner_view,
    upcoming_orders,
)

from conftest import PLANNING_DATE


@pytest.fixture
def pool(world, make_orders):
    c = world.clients
    a, b, c_, d, e, f = make_orders(
        (c["c1"], "PO-A", {"po_date": date(2026, 3, 1)}),
        (c["c3"], "PO-B", {"po_date": date(2026, 3, 2), "scheduled_date": PLANNING_DATE - timedelta(days=2)}),
        (c["c2"], "PO-C", {"po_date": date(2026, 3, 3)}),
        (c["c1"], "PO-D", {"po_date": date(2026, 3, 1), "scheduled_date": PLANNING_DATE + timedelta(days=3)}),
        (c["c2"], "PO-E", {"delivery_type": "Pickup"}),
        (c["c3"], "PO-F", {"po_date": date(2026, 3, 1), "scheduled_date": PLANNING_DATE + timedelta(days=20)}),
    )
    return {"A": a, "B": b, "C": c_, "D": d, "E": e, "F": f}


def test_list_unallocated_prices_po_date_order(run_db, pool):
    group = run_db(lambda db: list_unallocated(db, PLANNING_DATE))

    assert [stop.po_number for stop in group.orders] == ["PO-A", "PO-B", "PO-C"]
    assert [stop.drop_cost for stop in group.orders] == [1000, 500, 500]
    assert group.batch_cost == 2000
    assert group.total_value == 3000
    assert group.overdue_count == 1
    assert [stop.is_overdue for stop in group.orders] == [False, True, False]
    assert group.recommended_vehicle == "l300"
    assert group.recommended_vehicle_label == "L300 Van"
    assert [(z.name, z.count) for z in group.zone_summary] == [("Zone One", 2), ("Zone Two", 1)]


def test_list_unallocated_empty(run_db, world):
    assert run_db(lambda db: list_unallocated(db, PLANNING_DATE)) is None


def test_list_unallocated_skips_allocated(run_db, pool):
    run_db(lambda db: allocate(db, order_ids=[pool["A"]], planned_date=PLANNING_DATE, vehicle_type="l300"))

    group = run_db(lambda db: list_unallocated(db, PLANNING_DATE))

    assert [stop.po_number for stop in group.orders] == ["PO-B", "PO-C"]
    # PO-B is now the first stop and pays its own zone rate
    assert group.orders[0].drop_cost == 2000


def test_plan_route_sequences_then_prices(run_db, pool):
    route = run_db(lambda db: plan_route(db, PLANNING_DATE))

    # overdue PO-B goes first, then nearest to 8 km is PO-A (5 km), then PO-C (3 km)
    assert [stop.po_number for stop in route.orders] == ["PO-B", "PO-A", "PO-C"]
    assert [stop.route_sequence for stop in route.orders] == [1, 2, 3]
    assert [stop.leg_distance_km for stop in route.orders] == [8, 3, 2]
    assert [stop.drop_cost for stop in route.orders] == [2000, 500, 250]
    assert route.estimated_cost == 2750
    assert route.total_route_km == 21
    assert route.max_distance == 8
    assert route.overdue_count == 1
    assert route.oldest_po_date == date(2026, 3, 1)
    assert route.orders[0].days_until_due == -2


def test_views_price_the_same_pool_differently(run_db, pool):
    preview = run_db(lambda db: list_unallocated(db, PLANNING_DATE))
    route = run_db(lambda db: plan_route(db, PLANNING_DATE))

    assert preview.batch_cost != route.estimated_cost


def test_upcoming_window(run_db, pool):
    days = run_db(lambda db: upcoming_orders(db, PLANNING_DATE))

    assert len(days) == 1
    day = days[0]
    assert day.scheduled_date == PLANNING_DATE + timedelta(days=3)
    assert day.day_name == day.scheduled_date.strftime("%A")
    assert day.days_from_now == 3
    assert day.order_count == 1
    assert day.total_rate == 1000
    assert day.zone_count == 1
    assert [stop.po_number for stop in day.orders] == ["PO-D"]


def test_route_planner_summary(run_db, pool):
    view = run_db(lambda db: route_planner_view(db, PLANNING_DATE))

    assert view.summary.total_pending == 3
    assert view.summary.total_zones == 2
    assert view.summary.due_today == 2
    assert view.summary.overdue_orders == 1
    assert view.summary.total_estimated_cost == 2750
    assert len(view.upcoming) == 1


def test_calculate_route_groups_by_zone(run_db, pool):
    result = run_db(lambda db: calculate_route(db, [pool["C"], pool["B"], pool["A"]]))

    assert [stop.po_number for stop in result.route] == ["PO-A", "PO-C", "PO-B"]
    assert [stop.drop_cost for stop in result.route] == [1000, 250, 500]
    assert [stop.cumulative_cost for stop in result.route] == [1000, 1250, 1750]
    assert result.total_cost == 1750
    assert result.total_orders == 3
    assert result.zones_covered == 2


def test_calculate_route_unknown_order(run_db, pool):
    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: calculate_route(db, [pool["A"], 999]))

    assert exc.value.status_code == 404


def test_allocation_planner_view(run_db, world, pool):
    run_db(lambda db: allocate(
        db, order_ids=[pool["A"], pool["C"]], planned_date=PLANNING_DATE,
        vehicle_type="l300", vehicle_id=world.vehicles["van"],
    ))

    view = run_db(lambda db: allocation_planner_view(db, PLANNING_DATE))

    assert view.unallocated.order_count == 1
    assert len(view.batches) == 1
    batch = view.batches[0]
    assert batch.vehicle_name == "Van 1"
    assert batch.vehicle_type_label == "L300 Van"
    assert [member.po_number for member in batch.orders] == ["PO-A", "PO-C"]
    assert batch.total_rate == 1250
    assert view.summary.allocated_orders == 2
    assert {vehicle.plate_number for vehicle in view.vehicles} == {"AAA 111", "BBB 222"}
