"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

import uuid
from datetime import datetime, time

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoassign.adapters.persistence.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class ServiceCategoryModel(Base):
    __tablename__ = "service_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    specialization_required: Mapped[str | None] = mapped_column(String(100), nullable=True)


class TechnicianModel(Base):
    __tablename__ = "technicians"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    location_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    specializations: Mapped[list[str]] = mapped_column(
        ARRAY(String(100)), nullable=False, default=list
    )
    max_concurrent_orders: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completion_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    sla_adherence_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    shifts: Mapped[list["ShiftModel"]] = relationship(back_populates="technician")

    __table_args__ = (
        Index("idx_technicians_status", "status"),
        Index("idx_technicians_location", "location_id"),
    )


class ShiftModel(Base):
    __tablename__ = "shifts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    technician_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("technicians.id", ondelete="CASCADE"), nullable=False
    )
    start_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")

    technician: Mapped["TechnicianModel"] = relationship(back_populates="shifts")

    __table_args__ = (Index("idx_shifts_technician", "technician_id"),)


class WorkOrderModel(Base):
    __tablename__ = "work_orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    work_order_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="Open")
    priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    customer_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    customer_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    service_category_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("service_categories.id"), nullable=True
    )
    assigned_technician_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("technicians.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    service_category: Mapped[ServiceCategoryModel | None] = relationship()

    __table_args__ = (
        Index("idx_work_orders_status", "status"),
        Index("idx_work_orders_technician", "assigned_technician_id"),
    )


class AutoAssignmentRuleModel(Base):
    __tablename__ = "auto_assignment_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    weight_availability: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    weight_specialization: Mapped[int] = mapped_column(Integer, nullable=False, default=25)
    weight_proximity: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    weight_workload: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    weight_performance: Mapped[int] = mapped_column(Integer, nullable=False, default=10)

    max_distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    require_specialization_match: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    respect_max_concurrent_orders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    allowed_locations: Mapped[list[str] | None] = mapped_column(ARRAY(String(36)), nullable=True)
    allowed_service_categories: Mapped[list[str] | None] = mapped_column(
        ARRAY(String(100)), nullable=True
    )
    priority_levels: Mapped[list[str] | None] = mapped_column(ARRAY(String(20)), nullable=True)

    fallback_action: Mapped[str] = mapped_column(String(20), nullable=False, default="queue")
    fallback_user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_rules_active_priority", "is_active", "priority"),)


class AutoAssignmentLogModel(Base):
    __tablename__ = "auto_assignment_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    work_order_id: Mapped[str] = mapped_column(String(36), nullable=False)
    rule_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("auto_assignment_rules.id", ondelete="SET NULL"), nullable=True
    )
    assigned_technician_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    assignment_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    availability_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    specialization_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    proximity_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    workload_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    performance_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    candidates_evaluated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    candidates_data: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=list)

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    fallback_action_taken: Mapped[str | None] = mapped_column(String(20), nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    execution_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_logs_work_order", "work_order_id"),
        Index("idx_logs_assigned_at", "assigned_at"),
    )


class AutoAssignmentSettingsModel(Base):
    __tablename__ = "auto_assignment_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    auto_assignment_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_assign_on_status: Mapped[list[str]] = mapped_column(
        ARRAY(String(30)), nullable=False, default=lambda: ["Open"]
    )
    notify_on_fallback: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notification_channels: Mapped[list[str]] = mapped_column(
        ARRAY(String(20)), nullable=False, default=lambda: ["in_app"]
    )
    max_candidates_to_evaluate: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    cache_technician_data_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    business_hours_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    business_hours_start: Mapped[time] = mapped_column(Time, nullable=False, default=time(8, 0))
    business_hours_end: Mapped[time] = mapped_column(Time, nullable=False, default=time(18, 0))
    business_days: Mapped[list[int]] = mapped_column(
        ARRAY(Integer), nullable=False, default=lambda: [1, 2, 3, 4, 5]
    )
    max_auto_assignments_per_run: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    assignment_retry_delay_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    queue_max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    queue_item_ttl_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class AssignmentQueueModel(Base):
    __tablename__ = "assignment_queue"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    work_order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_queue_status_priority", "status", "priority"),
        Index("idx_queue_work_order", "work_order_id"),
        # At most one open item per work order
        Index(
            "uq_queue_open_work_order",
            "work_order_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'processing')"),
        ),
    )
