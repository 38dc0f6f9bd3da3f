"""Greedy nearest-neighbour route sequencing.

Stops only carry a distance from the depot, so "nearest" means the smallest
difference in depot distance from the current position. Overdue stops get a
priority key of 0 and are always taken next. Ties go to the stop seen first
in the remaining candidates. The sequencer never backtracks and makes no
optimality claim.
"""

from __future__ import annotations

from typing import Sequence

from delivery_planner.services.models import ZERO, RoutePlan, Stop


def _priority(stop: Stop, current_distance) -> object:
    if stop.is_overdue:
        return ZERO
    return abs(stop.distance - current_distance)


def nearest_neighbor_order(stops: Sequence[Stop]) -> list[Stop]:
    """Return stops in greedy nearest-neighbour order starting from the depot."""
    remaining = list(stops)
    ordered: list[Stop] = []
    current_distance = ZERO

    while remaining:
        # min() keeps the first of equal keys
        next_index = min(range(len(remaining)), key=lambda idx: _priority(remaining[idx], current_distance))
        next_stop = remaining.pop(next_index)
        ordered.append(next_stop)
        current_distance = next_stop.distance

    return ordered


def measure_route(ordered: Sequence[Stop]) -> RoutePlan:
    """Leg distances and route length for an already ordered sequence.

    The first leg is measured from the depot. total_route_km adds the farthest
    stop distance as an approximation of the return trip.
    """
    legs = []
    previous = ZERO
    for stop in ordered:
        legs.append(abs(stop.distance - previous))
        previous = stop.distance

    max_distance = max((stop.distance for stop in ordered), default=ZERO)
    total = sum(legs, ZERO) + max_distance
    return RoutePlan(
        stops=tuple(ordered),
        leg_distances=tuple(legs),
        total_route_km=total,
        max_distance=max_distance,
        metadata={"strategy": "nearest_neighbor", "stop_count": len(ordered)},
    )


def sequence_route(stops: Sequence[Stop]) -> RoutePlan:
    """Sequence candidate stops and measure the resulting route."""
    return measure_route(nearest_neighbor_order(stops))
