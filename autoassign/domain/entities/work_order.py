"""WorkOrder entity — a unit of maintenance work awaiting a technician."""

from dataclasses import dataclass

from autoassign.domain.value_objects.geo_point import GeoPoint


@dataclass
class WorkOrder:
    id: str
    status: str
    priority: str | None = None
    location_id: str | None = None
    location: GeoPoint | None = None
    service_category_id: str | None = None
    required_specialization: str | None = None
    assigned_technician_id: str | None = None

    def is_assigned(self) -> bool:
        return self.assigned_technician_id is not None
