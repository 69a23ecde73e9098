"""Pytest configuration and shared fixtures."""

import pytest

from autoassign.domain.entities.work_order import WorkOrder
from autoassign.domain.value_objects.geo_point import GeoPoint


@pytest.fixture
def depot():
    """Work-order site used as the distance origin in most tests."""
    return GeoPoint(lat=0.0, lng=0.0)


@pytest.fixture
def electrical_order(depot):
    return WorkOrder(
        id="wo-1",
        status="Open",
        priority="high",
        location_id="loc-1",
        location=depot,
        service_category_id="cat-electrical",
        required_specialization="electrical",
    )
