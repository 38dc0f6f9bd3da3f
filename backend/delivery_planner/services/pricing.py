"""Hybrid drop-cost pricing.

Prices an ordered sequence of stops as a left fold. The fold carries the set
of client ids already charged and the area id of the previous stop:

* stop 0 costs its zone base rate;
* a later stop whose client was already seen costs 0;
* otherwise a stop in the same (non-null) area as the previous stop costs the
  same-zone drop rate, and any other stop costs the other-zone drop rate.

The previous area advances on every stop, including free repeat-client stops.
Order matters: reversing a sequence generally changes the total.

``price_stops`` is the only pricing entry point for previews, allocation,
batch recomputation and route planning. ``price_stops_by_adjacency`` is the
narrower variant used by bulk delivery confirmation, which never applied the
repeat-client rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import reduce
from typing import Iterable, Optional

from delivery_planner.core.config import settings
from delivery_planner.services.models import ZERO, ChargeKind, PricingResult, Stop, StopCharge


@dataclass(frozen=True, slots=True)
class _Fold:
    seen_clients: frozenset
    previous_area_id: Optional[int]
    charges: tuple[StopCharge, ...]


def _charge_for(
    stop: Stop,
    fold: _Fold,
    *,
    same_zone_rate: Decimal,
    other_zone_rate: Decimal,
    repeat_client_discount: bool,
) -> StopCharge:
    if not fold.charges:
        return StopCharge(stop=stop, cost=Decimal(str(stop.zone_base_rate or ZERO)), kind=ChargeKind.FIRST_STOP)
    if repeat_client_discount and stop.client_id is not None and stop.client_id in fold.seen_clients:
        return StopCharge(stop=stop, cost=ZERO, kind=ChargeKind.REPEAT_CLIENT)
    if (
        stop.area_id is not None
        and fold.previous_area_id is not None
        and stop.area_id == fold.previous_area_id
    ):
        return StopCharge(stop=stop, cost=same_zone_rate, kind=ChargeKind.SAME_ZONE)
    return StopCharge(stop=stop, cost=other_zone_rate, kind=ChargeKind.OTHER_ZONE)


def _fold_prices(
    stops: Iterable[Stop],
    *,
    same_zone_rate: Optional[Decimal],
    other_zone_rate: Optional[Decimal],
    repeat_client_discount: bool,
) -> PricingResult:
    same_zone_rate = Decimal(str(same_zone_rate if same_zone_rate is not None else settings.DROP_SAME_ZONE_RATE))
    other_zone_rate = Decimal(str(other_zone_rate if other_zone_rate is not None else settings.DROP_OTHER_ZONE_RATE))

    def step(fold: _Fold, stop: Stop) -> _Fold:
        charge = _charge_for(
            stop,
            fold,
            same_zone_rate=same_zone_rate,
            other_zone_rate=other_zone_rate,
            repeat_client_discount=repeat_client_discount,
        )
        seen = fold.seen_clients
        if stop.client_id is not None and charge.kind is not ChargeKind.REPEAT_CLIENT:
            seen = seen | {stop.client_id}
        return _Fold(
            seen_clients=seen,
            previous_area_id=stop.area_id,
            charges=fold.charges + (charge,),
        )

    final = reduce(step, stops, _Fold(seen_clients=frozenset(), previous_area_id=None, charges=()))
    total = sum((charge.cost for charge in final.charges), ZERO)
    return PricingResult(charges=final.charges, total=total)


def price_stops(
    stops: Iterable[Stop],
    *,
    same_zone_rate: Optional[Decimal] = None,
    other_zone_rate: Optional[Decimal] = None,
) -> PricingResult:
    """Price an ordered stop sequence; returns per-stop charges and the total."""
    return _fold_prices(
        stops,
        same_zone_rate=same_zone_rate,
        other_zone_rate=other_zone_rate,
        repeat_client_discount=True,
    )


def price_stops_by_adjacency(
    stops: Iterable[Stop],
    *,
    same_zone_rate: Optional[Decimal] = None,
    other_zone_rate: Optional[Decimal] = None,
) -> PricingResult:
    """Area-adjacency pricing only: repeat clients are charged like any other drop."""
    return _fold_prices(
        stops,
        same_zone_rate=same_zone_rate,
        other_zone_rate=other_zone_rate,
        repeat_client_discount=False,
    )
