import asyncio
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

_scratch = tempfile.mkdtemp(prefix="delivery-planner-tests-")
os.environ.setdefault("LOG_DIR", os.path.join(_scratch, "logs"))
os.environ.setdefault("SQLITE_DATABASE_URI", "sqlite:///" + os.path.join(_scratch, "unused.db"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from delivery_planner.db.init_db import init_db
from delivery_planner.models import Area, Client, DeliveryOrder, DeliveryOrderItem, Vehicle, Zone


PLANNING_DATE = date(2026, 3, 10)


@dataclass
class World:
    """Ids of the reference data every test starts from.

    Zone Z1 (base 1000): areas A10, A11. Zone Z2 (base 2000): area A20.
    Clients: c1 A10 5km, c2 A10 3km, c3 A20 8km, c4 A11 no distance, c5 no area 12km.
    """
    zones: Dict[str, int] = field(default_factory=dict)
    areas: Dict[str, int] = field(default_factory=dict)
    clients: Dict[str, int] = field(default_factory=dict)
    vehicles: Dict[str, int] = field(default_factory=dict)


async def seed_world(db: AsyncSession) -> World:
    world = World()

    zones = {"Z1": Zone(code="Z1", name="Zone One", base_rate=Decimal("1000")),
             "Z2": Zone(code="Z2", name="Zone Two", base_rate=Decimal("2000"))}
    db.add_all(zones.values())
    await db.flush()

    areas = {"A10": Area(zone_id=zones["Z1"].id, name="Area 10", code="A10"),
             "A11": Area(zone_id=zones["Z1"].id, name="Area 11", code="A11"),
             "A20": Area(zone_id=zones["Z2"].id, name="Area 20", code="A20")}
    db.add_all(areas.values())
    await db.flush()

    clients = {
        "c1": Client(code="c1", name="Client 1", area_id=areas["A10"].id, distance_km=Decimal("5")),
        "c2": Client(code="c2", name="Client 2", area_id=areas["A10"].id, distance_km=Decimal("3")),
        "c3": Client(code="c3", name="Client 3", area_id=areas["A20"].id, distance_km=Decimal("8")),
        "c4": Client(code="c4", name="Client 4", area_id=areas["A11"].id, distance_km=None),
        "c5": Client(code="c5", name="Client 5", area_id=None, distance_km=Decimal("12")),
    }
    db.add_all(clients.values())

    vehicles = {"van": Vehicle(code="V1", name="Van 1", type="l300", plate_number="AAA 111"),
                "truck": Vehicle(code="V2", name="Truck 1", type="truck", plate_number="BBB 222"),
                "retired": Vehicle(code="V3", name="Old van", type="l300", plate_number="CCC 333", is_active=False)}
    db.add_all(vehicles.values())
    await db.flush()

    world.zones = {key: zone.id for key, zone in zones.items()}
    world.areas = {key: area.id for key, area in areas.items()}
    world.clients = {key: client.id for key, client in clients.items()}
    world.vehicles = {key: vehicle.id for key, vehicle in vehicles.items()}
    return world


async def add_order(
    db: AsyncSession,
    client_id: int,
    po_number: str,
    *,
    po_date: date = date(2026, 3, 1),
    scheduled_date: date = PLANNING_DATE,
    amount: str = "1000",
    quantity: int = 1,
    delivery_type: Optional[str] = None,
) -> int:
    order = DeliveryOrder(
        po_number=po_number,
        po_date=po_date,
        scheduled_date=scheduled_date,
        client_id=client_id,
        delivery_type=delivery_type,
        status="pending",
        items=[],
    )
    item = DeliveryOrderItem(
        part_number=f"P-{po_number}",
        unit_price=Decimal(amount) / quantity,
        quantity=quantity,
    )
    item.total_price = item.calculate_total()
    order.items.append(item)
    order.recalculate_totals()
    db.add(order)
    await db.flush()
    return order.id


@pytest.fixture
def engine(tmp_path: Path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_db(bind=test_engine))
    yield test_engine
    asyncio.run(test_engine.dispose())


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def world(session_factory) -> World:
    async def seed():
        async with session_factory() as db:
            seeded = await seed_world(db)
            await db.commit()
            return seeded

    return asyncio.run(seed())


@pytest.fixture
def make_orders(session_factory):
    """Insert orders given as (client_id, po_number, kwargs) and return their ids in order"""
    def _make(*rows):
        async def insert():
            async with session_factory() as db:
                ids = []
                for client_id, po_number, kwargs in rows:
                    ids.append(await add_order(db, client_id, po_number, **kwargs))
                await db.commit()
                return ids

        return asyncio.run(insert())

    return _make


@pytest.fixture
def run_db(session_factory):
    """Run ``fn(db)`` in a fresh session and return its result"""
    def _run(fn):
        async def scenario():
            async with session_factory() as db:
                return await fn(db)

        return asyncio.run(scenario())

    return _run


@pytest.fixture
def api_client(session_factory) -> TestClient:
    from delivery_planner.core.deps import get_db
    from delivery_planner.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
