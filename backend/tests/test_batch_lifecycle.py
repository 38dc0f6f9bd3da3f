from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from delivery_planner.models import AuditLog, DeliveryBatch, DeliveryOrder
from delivery_planner.services.batch_lifecycle import (
    allocate,
    complete_batch,
    delete_batch,
    generate_batch_number,
    load_batch,
    remove_from_batch,
    start_delivery,
)

from conftest import PLANNING_DATE


@pytest.fixture
def seven_orders(world, make_orders):
    c = world.clients
    return make_orders(
        (c["c1"], "PO-1", {}),
        (c["c1"], "PO-2", {}),
        (c["c2"], "PO-3", {}),
        (c["c3"], "PO-4", {}),
        (c["c3"], "PO-5", {}),
        (c["c2"], "PO-6", {}),
        (c["c2"], "PO-7", {}),
    )


def _allocate(run_db, order_ids, vehicle_type="l300", **kwargs):
    return run_db(lambda db: allocate(
        db, order_ids=order_ids, planned_date=PLANNING_DATE, vehicle_type=vehicle_type, **kwargs
    ))


def _orders(run_db, ids):
    async def fetch(db):
        result = await db.execute(select(DeliveryOrder).where(DeliveryOrder.id.in_(ids)))
        return {order.id: order for order in result.unique().scalars().all()}
    return run_db(fetch)


def _count(run_db, model):
    async def fetch(db):
        return (await db.execute(select(func.count(model.id)))).scalar()
    return run_db(fetch)


def test_allocate_prices_submitted_order(run_db, world, seven_orders):
    o = seven_orders
    batch = _allocate(run_db, [o[4], o[1], o[6]])

    # o5 (zone 2, area 20) first: 2000; o2 area 10 after area 20: 500; o7 area 10 again: 250
    assert batch.order_count == 3
    assert batch.total_rate == Decimal("2750")
    assert batch.zone_id == world.zones["Z2"]
    assert batch.total_value == Decimal("3000")
    assert batch.total_distance_km == Decimal("16")
    assert batch.status == "planned"
    assert batch.batch_number == "BTH-260310-001"

    members = _orders(run_db, [o[4], o[1], o[6]])
    assert [members[i].total_rate for i in (o[4], o[1], o[6])] == [Decimal("2000"), Decimal("500"), Decimal("250")]
    assert [members[i].additional_rate_type for i in (o[4], o[1], o[6])] == ["none", "drop_other_zone", "drop_same_zone"]
    assert members[o[4]].base_rate == Decimal("2000")
    assert members[o[1]].base_rate == Decimal("0")
    assert all(member.status == "confirmed" and member.batch_id == batch.id for member in members.values())
    assert sum(member.total_rate for member in members.values()) == batch.total_rate


def test_allocate_order_matters(run_db, seven_orders):
    o = seven_orders
    first = _allocate(run_db, [o[4], o[1], o[6]])
    second = _allocate(run_db, [o[0], o[3], o[5]])

    # ascending id order would have priced 1000 + 500 + 500
    assert first.total_rate == Decimal("2750")
    assert second.total_rate == Decimal("2000")


def test_repeat_client_recorded_as_none(run_db, seven_orders):
    o = seven_orders
    _allocate(run_db, [o[0], o[2], o[1]])

    repeat = _orders(run_db, [o[1]])[o[1]]
    assert repeat.total_rate == Decimal("0")
    assert repeat.additional_rate_type == "none"
    assert repeat.additional_rate == Decimal("0")
    assert repeat.base_rate == Decimal("0")


def test_batch_numbers_increment_per_date(run_db, seven_orders):
    o = seven_orders
    first = _allocate(run_db, [o[0]])
    second = _allocate(run_db, [o[1]])
    other_day = run_db(lambda db: allocate(
        db, order_ids=[o[2]], planned_date=PLANNING_DATE + timedelta(days=1), vehicle_type="truck"
    ))

    assert first.batch_number == "BTH-260310-001"
    assert second.batch_number == "BTH-260310-002"
    assert other_day.batch_number == "BTH-260311-001"
    assert run_db(lambda db: generate_batch_number(db, PLANNING_DATE)) == "BTH-260310-003"


def test_allocate_records_vehicle(run_db, world, seven_orders):
    batch = _allocate(run_db, [seven_orders[0]], vehicle_type="truck", vehicle_id=world.vehicles["truck"])

    assert batch.vehicle_id == world.vehicles["truck"]
    assert batch.vehicle_type == "truck"


@pytest.mark.parametrize("order_ids, status_code", [
    ([], 400),
    ([999], 404),
])
def test_allocate_rejects_bad_selection(run_db, seven_orders, order_ids, status_code):
    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, order_ids)

    assert exc.value.status_code == status_code
    assert _count(run_db, DeliveryBatch) == 0


def test_allocate_rejects_duplicates(run_db, seven_orders):
    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, [seven_orders[0], seven_orders[0]])

    assert exc.value.status_code == 400


def test_allocate_with_unknown_id_changes_nothing(run_db, seven_orders):
    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, [seven_orders[0], 999])

    assert exc.value.status_code == 404
    order = _orders(run_db, [seven_orders[0]])[seven_orders[0]]
    assert order.batch_id is None
    assert order.status == "pending"


def test_allocate_rejects_allocated_orders(run_db, seven_orders):
    _allocate(run_db, [seven_orders[0]])

    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, [seven_orders[1], seven_orders[0]])

    assert exc.value.status_code == 409
    assert _count(run_db, DeliveryBatch) == 1
    assert _orders(run_db, [seven_orders[1]])[seven_orders[1]].batch_id is None


def test_allocate_needs_zone_of_first_order(run_db, world, make_orders):
    ids = make_orders((world.clients["c5"], "PO-X", {}), (world.clients["c1"], "PO-Y", {}))

    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, ids)

    assert exc.value.status_code == 400
    assert _count(run_db, DeliveryBatch) == 0
    assert all(order.batch_id is None for order in _orders(run_db, ids).values())


def test_allocate_rejects_pickup(run_db, world, make_orders):
    ids = make_orders((world.clients["c1"], "PO-P", {"delivery_type": "Pickup"}))

    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, ids)

    assert exc.value.status_code == 400


def test_allocate_rejects_unknown_vehicle(run_db, seven_orders):
    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, [seven_orders[0]], vehicle_id=999)

    assert exc.value.status_code == 404


def test_allocate_writes_audit_log(run_db, seven_orders):
    batch = _allocate(run_db, [seven_orders[0], seven_orders[2]])

    async def fetch(db):
        return (await db.execute(select(AuditLog))).scalars().all()

    logs = run_db(fetch)
    assert len(logs) == 1
    assert logs[0].action == "allocate"
    assert logs[0].resource_id == batch.id
    assert logs[0].new_value["order_ids"] == [seven_orders[0], seven_orders[2]]


def test_remove_reprices_by_distance(run_db, seven_orders):
    o = seven_orders
    batch = _allocate(run_db, [o[0], o[3], o[2]])
    assert batch.total_rate == Decimal("1000") + Decimal("500") + Decimal("500")

    updated = run_db(lambda db: remove_from_batch(db, o[3]))

    # remaining by distance: o3 (3 km) first at 1000, o1 (5 km) same area 250
    assert updated.id == batch.id
    assert updated.order_count == 2
    assert updated.total_rate == Decimal("1250")
    assert updated.total_value == Decimal("2000")

    orders = _orders(run_db, [o[0], o[2], o[3]])
    assert orders[o[2]].total_rate == Decimal("1000")
    assert orders[o[2]].base_rate == Decimal("1000")
    assert orders[o[0]].total_rate == Decimal("250")
    assert orders[o[0]].additional_rate_type == "drop_same_zone"

    released = orders[o[3]]
    assert released.batch_id is None
    assert released.status == "pending"
    assert released.total_rate == Decimal("0")
    assert released.base_rate == Decimal("0")
    assert released.additional_rate_type == "none"


def test_removing_last_member_deletes_batch(run_db, seven_orders):
    batch = _allocate(run_db, [seven_orders[0]])

    assert run_db(lambda db: remove_from_batch(db, seven_orders[0])) is None

    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: load_batch(db, batch.id))
    assert exc.value.status_code == 404
    assert _count(run_db, DeliveryBatch) == 0


def test_remove_unbatched_order(run_db, seven_orders):
    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: remove_from_batch(db, seven_orders[0]))

    assert exc.value.status_code == 400


def test_remove_from_started_batch_is_rejected(run_db, seven_orders):
    batch = _allocate(run_db, [seven_orders[0], seven_orders[1]])
    run_db(lambda db: start_delivery(db, batch.id))

    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: remove_from_batch(db, seven_orders[0]))

    assert exc.value.status_code == 409
    assert _orders(run_db, [seven_orders[0]])[seven_orders[0]].batch_id == batch.id


def test_delete_batch_releases_members(run_db, seven_orders):
    o = seven_orders
    batch = _allocate(run_db, [o[0], o[3], o[5]])

    assert run_db(lambda db: delete_batch(db, batch.id)) == 3

    assert _count(run_db, DeliveryBatch) == 0
    for order in _orders(run_db, [o[0], o[3], o[5]]).values():
        assert order.batch_id is None
        assert order.status == "pending"
        assert order.total_rate == Decimal("0")


def test_delete_unknown_batch(run_db, world):
    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: delete_batch(db, 999))

    assert exc.value.status_code == 404


def test_start_and_complete(run_db, world, make_orders):
    c = world.clients
    on_time, late = make_orders(
        (c["c1"], "PO-A", {"scheduled_date": PLANNING_DATE}),
        (c["c2"], "PO-B", {"scheduled_date": PLANNING_DATE - timedelta(days=1)}),
    )
    batch = _allocate(run_db, [on_time, late])

    started = run_db(lambda db: start_delivery(db, batch.id))
    assert started.status == "in_transit"
    assert started.total_rate == batch.total_rate
    assert {o.status for o in _orders(run_db, [on_time, late]).values()} == {"in_transit"}

    completed = run_db(lambda db: complete_batch(db, batch.id, PLANNING_DATE))
    assert completed.status == "completed"
    assert completed.actual_date == PLANNING_DATE

    orders = _orders(run_db, [on_time, late])
    assert orders[on_time].status == "on_time"
    assert orders[late].status == "delayed"
    assert orders[on_time].actual_date == PLANNING_DATE


def test_state_guards(run_db, seven_orders):
    batch = _allocate(run_db, [seven_orders[0]])

    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: complete_batch(db, batch.id, PLANNING_DATE))
    assert exc.value.status_code == 409

    run_db(lambda db: start_delivery(db, batch.id))

    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: start_delivery(db, batch.id))
    assert exc.value.status_code == 409

    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: delete_batch(db, batch.id))
    assert exc.value.status_code == 409


def test_batch_number_past_999(run_db, world):
    async def seed(db):
        for suffix in ("998", "999", "1000"):
            db.add(DeliveryBatch(
                batch_number=f"BTH-260310-{suffix}", planned_date=PLANNING_DATE, vehicle_type="l300"
            ))
        await db.commit()

    run_db(seed)

    assert run_db(lambda db: generate_batch_number(db, PLANNING_DATE)) == "BTH-260310-1001"


@pytest.fixture
def break_audit(monkeypatch):
    """Call to make every later audit write raise, after the operation has already written"""
    def boom(*args, **kwargs):
        raise RuntimeError("disk full")

    def _break():
        monkeypatch.setattr("delivery_planner.services.batch_lifecycle.record_audit", boom)

    return _break


def test_allocate_failure_after_flush_rolls_back(run_db, seven_orders, break_audit):
    ids = [seven_orders[0], seven_orders[2]]
    break_audit()

    with pytest.raises(HTTPException) as exc:
        _allocate(run_db, ids)

    assert exc.value.status_code == 500
    assert _count(run_db, DeliveryBatch) == 0
    assert _count(run_db, AuditLog) == 0
    for order in _orders(run_db, ids).values():
        assert order.batch_id is None
        assert order.status == "pending"
        assert order.total_rate == Decimal("0")


def test_remove_failure_after_release_rolls_back(run_db, seven_orders, break_audit):
    o = seven_orders
    batch = _allocate(run_db, [o[0], o[3], o[2]])
    break_audit()

    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: remove_from_batch(db, o[3]))

    assert exc.value.status_code == 500
    stored = run_db(lambda db: load_batch(db, batch.id))
    assert stored.order_count == 3
    assert stored.total_rate == Decimal("2000")
    orders = _orders(run_db, [o[0], o[2], o[3]])
    assert all(order.batch_id == batch.id and order.status == "confirmed" for order in orders.values())
    assert orders[o[3]].total_rate == Decimal("500")


@pytest.mark.parametrize("operation", [delete_batch, start_delivery])
def test_failed_transition_leaves_batch_planned(run_db, seven_orders, break_audit, operation):
    batch = _allocate(run_db, [seven_orders[0], seven_orders[1]])
    break_audit()

    with pytest.raises(HTTPException) as exc:
        run_db(lambda db: operation(db, batch.id))

    assert exc.value.status_code == 500
    assert run_db(lambda db: load_batch(db, batch.id)).status == "planned"
    orders = _orders(run_db, [seven_orders[0], seven_orders[1]])
    assert all(order.batch_id == batch.id and order.status == "confirmed" for order in orders.values())
