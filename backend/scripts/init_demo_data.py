"""
Demo data
- clears every table (schema kept)
- zones, areas, clients, vehicles
- pending delivery orders around today, including one overdue and one pickup
"""

import asyncio
import sys
import os
from datetime import date, timedelta
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from delivery_planner.db.session import SessionLocal
from delivery_planner.db.init_db import init_db
from delivery_planner.models import (
    Zone, Area, Client, Vehicle, DeliveryOrder, DeliveryOrderItem
)


async def clear_all_data(db: AsyncSession):
    """Delete all rows, children first"""
    print("🗑️  Clearing data...")

    tables_to_clear = [
        "audit_logs",
        "delivery_order_items",
        "delivery_orders",
        "delivery_batches",
        "vehicles",
        "clients",
        "areas",
        "zones",
    ]

    for table in tables_to_clear:
        await db.execute(text(f"DELETE FROM {table}"))
        print(f"   ✓ {table}")

    await db.commit()
    print("   done\n")


async def create_reference_data(db: AsyncSession) -> dict:
    """Zones -> areas -> clients, and the vehicle catalog"""
    print("🗺️  Creating zones, areas and clients...")

    zones = {
        "NL": Zone(code="NL", name="North Luzon", base_rate=Decimal("3500")),
        "ML": Zone(code="ML", name="Metro Laguna", base_rate=Decimal("1800")),
    }
    db.add_all(zones.values())
    await db.flush()

    areas = {
        "TAR": Area(zone_id=zones["NL"].id, name="Tarlac", code="TAR"),
        "PAM": Area(zone_id=zones["NL"].id, name="Pampanga", code="PAM"),
        "STR": Area(zone_id=zones["ML"].id, name="Sta. Rosa", code="STR"),
        "CAL": Area(zone_id=zones["ML"].id, name="Calamba", code="CAL"),
    }
    db.add_all(areas.values())
    await db.flush()

    client_rows = [
        ("C-TAR-01", "Tarlac Motors", "TAR", "118.5", "08:00-15:00"),
        ("C-TAR-02", "Capas Auto Supply", "TAR", "104.0", "08:00-16:00"),
        ("C-PAM-01", "San Fernando Parts", "PAM", "67.2", "07:00-17:00"),
        ("C-STR-01", "Sta. Rosa Assembly", "STR", "38.0", "06:00-14:00"),
        ("C-CAL-01", "Calamba Components", "CAL", "54.5", "08:00-17:00"),
        ("C-CAL-02", "Canlubang Plant 2", "CAL", None, None),
    ]
    clients = {}
    for code, name, area_code, distance, cutoff in client_rows:
        clients[code] = Client(
            code=code,
            name=name,
            area_id=areas[area_code].id,
            distance_km=Decimal(distance) if distance else None,
            cutoff_time=cutoff,
        )
    db.add_all(clients.values())

    db.add_all([
        Vehicle(code="V-01", name="L300 #1", type="l300", plate_number="NBC 1234", max_value=Decimal("150000")),
        Vehicle(code="V-02", name="L300 #2", type="l300", plate_number="NBC 5678", max_value=Decimal("150000")),
        Vehicle(code="V-03", name="Forward 6W", type="truck", plate_number="RAB 9012", max_value=Decimal("2000000")),
    ])
    await db.flush()
    print(f"   {len(zones)} zones, {len(areas)} areas, {len(clients)} clients, 3 vehicles\n")
    return clients


async def create_demo_orders(db: AsyncSession, clients: dict) -> int:
    print("📋 Creating delivery orders...")
    today = date.today()

    # (po, client, po offset, scheduled offset, delivery type, [(part, price, qty)])
    rows = [
        ("PO-1001", "C-TAR-01", -6, -1, None, [("BRK-220", "1250.00", 24)]),
        ("PO-1002", "C-TAR-02", -5, 0, None, [("FLT-010", "320.00", 60), ("FLT-020", "410.00", 30)]),
        ("PO-1003", "C-PAM-01", -5, 0, "ADD", [("GSK-118", "95.50", 200)]),
        ("PO-1004", "C-STR-01", -4, 0, None, [("ECU-900", "18500.00", 4)]),
        ("PO-1005", "C-CAL-01", -3, 0, None, [("HSE-330", "780.00", 40)]),
        ("PO-1006", "C-TAR-01", -3, 0, None, [("BRK-221", "1310.00", 12)]),
        ("PO-1007", "C-CAL-02", -2, 0, "Pickup", [("CLP-004", "45.00", 500)]),
        ("PO-1008", "C-STR-01", -1, 2, None, [("ECU-901", "19250.00", 2)]),
        ("PO-1009", "C-PAM-01", -1, 3, None, [("GSK-119", "99.00", 150)]),
    ]

    for po_number, client_code, po_offset, scheduled_offset, delivery_type, lines in rows:
        order = DeliveryOrder(
            po_number=po_number,
            po_date=today + timedelta(days=po_offset),
            scheduled_date=today + timedelta(days=scheduled_offset),
            client_id=clients[client_code].id,
            delivery_type=delivery_type,
            status="pending",
            items=[],
        )
        for part_number, unit_price, quantity in lines:
            item = DeliveryOrderItem(part_number=part_number, unit_price=Decimal(unit_price), quantity=quantity)
            item.total_price = item.calculate_total()
            order.items.append(item)
        order.recalculate_totals()
        db.add(order)

    await db.flush()
    print(f"   {len(rows)} orders\n")
    return len(rows)


async def main():
    print("=" * 60)
    print("🚀 Delivery Planner - demo data")
    print("=" * 60 + "\n")

    await init_db()

    async with SessionLocal() as db:
        try:
            await clear_all_data(db)
            clients = await create_reference_data(db)
            await create_demo_orders(db, clients)
            await db.commit()
        except Exception as e:
            await db.rollback()
            print(f"❌ Failed: {e}")
            raise

    print("✅ Demo data ready")


if __name__ == "__main__":
    asyncio.run(main())
