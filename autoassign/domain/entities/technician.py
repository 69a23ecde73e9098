"""Technician entity — a field worker who can be assigned work orders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from autoassign.domain.value_objects.enums import ShiftStatus
from autoassign.domain.value_objects.geo_point import GeoPoint

GENERALIST_TAGS = frozenset({"general", "generalist"})


@dataclass(frozen=True)
class Shift:
    start: datetime
    end: datetime
    status: ShiftStatus = ShiftStatus.SCHEDULED

    def covers(self, moment: datetime) -> bool:
        return self.status == ShiftStatus.SCHEDULED and self.start <= moment <= self.end


@dataclass(frozen=True)
class PerformanceStats:
    """Historical metrics, each a 0..1 ratio. Missing values are None."""

    completion_rate: float | None = None
    sla_adherence_rate: float | None = None

    def is_empty(self) -> bool:
        return self.completion_rate is None and self.sla_adherence_rate is None


@dataclass
class Technician:
    id: str
    name: str
    location_id: str | None = None
    location: GeoPoint | None = None
    specializations: set[str] = field(default_factory=set)
    active_work_orders: int = 0
    max_concurrent_orders: int | None = None
    shifts: list[Shift] = field(default_factory=list)
    performance: PerformanceStats | None = None
    registered_at: datetime | None = None

    def has_specialization(self, specialization: str) -> bool:
        return specialization in self.specializations

    def is_generalist(self) -> bool:
        return not self.specializations or bool(self.specializations & GENERALIST_TAGS)

    def is_on_shift(self, moment: datetime) -> bool:
        return any(shift.covers(moment) for shift in self.shifts)

    def is_at_capacity(self) -> bool:
        if not self.max_concurrent_orders:
            return False
        return self.active_work_orders >= self.max_concurrent_orders
