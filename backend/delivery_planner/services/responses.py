"""Response builders shared by the planner services and the endpoints."""

from typing import Iterable

from delivery_planner.models.delivery_batch import DeliveryBatch
from delivery_planner.models.delivery_order import DeliveryOrder
from delivery_planner.models.vehicle import Vehicle
from delivery_planner.schemas.delivery_batch import BatchMemberResponse, BatchResponse
from delivery_planner.schemas.delivery_order import DeliveryOrderItemResponse, DeliveryOrderResponse
from delivery_planner.schemas.vehicle import VehicleResponse


def _money(value) -> float:
    return float(value or 0)


def build_order_response(order: DeliveryOrder) -> DeliveryOrderResponse:
    client = order.client
    area = client.area if client else None
    zone = client.zone if client else None
    return DeliveryOrderResponse(
        id=order.id,
        po_number=order.po_number,
        po_date=order.po_date,
        scheduled_date=order.scheduled_date,
        actual_date=order.actual_date,
        status=order.status,
        delivery_type=order.delivery_type,
        client_id=order.client_id,
        client_code=client.code if client else "",
        client_name=(client.name or "") if client else "",
        area_name=area.name if area else "",
        zone_name=zone.name if zone else "Unassigned",
        distance_km=float(client.distance) if client else 0,
        batch_id=order.batch_id,
        base_rate=_money(order.base_rate),
        additional_rate_type=order.additional_rate_type or "none",
        additional_rate=_money(order.additional_rate),
        total_rate=_money(order.total_rate),
        drop_cost=float(order.drop_cost),
        total_items=order.total_items or 0,
        total_quantity=order.total_quantity or 0,
        total_amount=_money(order.total_amount),
        days_variance=order.days_variance,
        remarks=order.remarks,
        items=[
            DeliveryOrderItemResponse(
                id=item.id,
                part_number=item.part_number,
                description=item.description,
                unit_price=_money(item.unit_price),
                quantity=item.quantity,
                total_price=_money(item.total_price),
            )
            for item in order.items
        ],
        created_at=order.created_at,
    )


def build_member_response(order: DeliveryOrder) -> BatchMemberResponse:
    return BatchMemberResponse(
        id=order.id,
        po_number=order.po_number,
        client_code=order.client.code if order.client else "",
        scheduled_date=order.scheduled_date,
        status=order.status,
        distance_km=float(order.client.distance) if order.client else 0,
        total_amount=_money(order.total_amount),
        total_items=order.total_items or 0,
        base_rate=_money(order.base_rate),
        additional_rate_type=order.additional_rate_type or "none",
        additional_rate=_money(order.additional_rate),
        total_rate=_money(order.total_rate),
    )


def build_batch_response(batch: DeliveryBatch, members: Iterable[DeliveryOrder] = ()) -> BatchResponse:
    """Batch with its members; members must be loaded by the caller."""
    return BatchResponse(
        id=batch.id,
        batch_number=batch.batch_number,
        planned_date=batch.planned_date,
        actual_date=batch.actual_date,
        zone_id=batch.zone_id,
        zone_name=batch.zone.name if batch.zone else "Unknown",
        zone_code=batch.zone.code if batch.zone else "-",
        vehicle_id=batch.vehicle_id,
        vehicle_name=batch.vehicle.display_name if batch.vehicle else None,
        vehicle_type=batch.vehicle_type,
        vehicle_type_label=batch.vehicle_type_label,
        order_count=batch.order_count or 0,
        total_items=batch.total_items or 0,
        total_value=_money(batch.total_value),
        total_rate=_money(batch.total_rate),
        total_distance_km=_money(batch.total_distance_km),
        status=batch.status,
        status_color=batch.status_color,
        notes=batch.notes,
        created_at=batch.created_at,
        orders=[build_member_response(order) for order in members],
    )


def build_vehicle_response(vehicle: Vehicle) -> VehicleResponse:
    return VehicleResponse(
        id=vehicle.id,
        code=vehicle.code,
        name=vehicle.name,
        display_name=vehicle.display_name,
        type=vehicle.type,
        type_label=vehicle.type_label,
        plate_number=vehicle.plate_number,
        max_value=float(vehicle.max_value) if vehicle.max_value is not None else None,
        max_weight_kg=float(vehicle.max_weight_kg) if vehicle.max_weight_kg is not None else None,
        notes=vehicle.notes,
        is_active=bool(vehicle.is_active),
    )
