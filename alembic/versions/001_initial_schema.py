"""Initial schema — work orders, technicians and auto-assignment tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-16
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.func.now(),
    )


def upgrade() -> None:
    # Service categories
    op.create_table(
        "service_categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False),
        sa.Column("specialization_required", sa.String(100), nullable=True),
    )

    # Technicians
    op.create_table(
        "technicians",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("location_id", sa.String(36), nullable=True),
        sa.Column("lat", sa.Float, nullable=True),
        sa.Column("lng", sa.Float, nullable=True),
        sa.Column(
            "specializations", ARRAY(sa.String(100)), nullable=False, server_default="{}"
        ),
        sa.Column("max_concurrent_orders", sa.Integer, nullable=True),
        sa.Column("completion_rate", sa.Float, nullable=True),
        sa.Column("sla_adherence_rate", sa.Float, nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("idx_technicians_status", "technicians", ["status"])
    op.create_index("idx_technicians_location", "technicians", ["location_id"])

    # Shifts
    op.create_table(
        "shifts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "technician_id",
            sa.String(36),
            sa.ForeignKey("technicians.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
    )
    op.create_index("idx_shifts_technician", "shifts", ["technician_id"])

    # Work orders
    op.create_table(
        "work_orders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("work_order_number", sa.String(50), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="Open"),
        sa.Column("priority", sa.String(20), nullable=True),
        sa.Column("location_id", sa.String(36), nullable=True),
        sa.Column("customer_lat", sa.Float, nullable=True),
        sa.Column("customer_lng", sa.Float, nullable=True),
        sa.Column(
            "service_category_id",
            sa.String(36),
            sa.ForeignKey("service_categories.id"),
            nullable=True,
        ),
        sa.Column(
            "assigned_technician_id",
            sa.String(36),
            sa.ForeignKey("technicians.id"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_work_orders_status", "work_orders", ["status"])
    op.create_index("idx_work_orders_technician", "work_orders", ["assigned_technician_id"])

    # Auto-assignment rules
    op.create_table(
        "auto_assignment_rules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("weight_availability", sa.Integer, nullable=False, server_default="30"),
        sa.Column("weight_specialization", sa.Integer, nullable=False, server_default="25"),
        sa.Column("weight_proximity", sa.Integer, nullable=False, server_default="20"),
        sa.Column("weight_workload", sa.Integer, nullable=False, server_default="15"),
        sa.Column("weight_performance", sa.Integer, nullable=False, server_default="10"),
        sa.Column("max_distance_km", sa.Float, nullable=True),
        sa.Column(
            "require_specialization_match", sa.Boolean, nullable=False, server_default="false"
        ),
        sa.Column(
            "respect_max_concurrent_orders", sa.Boolean, nullable=False, server_default="true"
        ),
        sa.Column("allowed_locations", ARRAY(sa.String(36)), nullable=True),
        sa.Column("allowed_service_categories", ARRAY(sa.String(100)), nullable=True),
        sa.Column("priority_levels", ARRAY(sa.String(20)), nullable=True),
        sa.Column("fallback_action", sa.String(20), nullable=False, server_default="queue"),
        sa.Column("fallback_user_id", sa.String(36), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index(
        "idx_rules_active_priority", "auto_assignment_rules", ["is_active", "priority"]
    )

    # Auto-assignment logs (append-only)
    op.create_table(
        "auto_assignment_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("work_order_id", sa.String(36), nullable=False),
        sa.Column(
            "rule_id",
            sa.String(36),
            sa.ForeignKey("auto_assignment_rules.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("assigned_technician_id", sa.String(36), nullable=True),
        sa.Column("assignment_score", sa.Float, nullable=True),
        sa.Column("availability_score", sa.Float, nullable=True),
        sa.Column("specialization_score", sa.Float, nullable=True),
        sa.Column("proximity_score", sa.Float, nullable=True),
        sa.Column("workload_score", sa.Float, nullable=True),
        sa.Column("performance_score", sa.Float, nullable=True),
        sa.Column("candidates_evaluated", sa.Integer, nullable=False, server_default="0"),
        sa.Column("candidates_data", JSONB, nullable=False, server_default="[]"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("failure_reason", sa.Text, nullable=True),
        sa.Column("fallback_action_taken", sa.String(20), nullable=True),
        _timestamp("assigned_at"),
        sa.Column("execution_time_ms", sa.Integer, nullable=True),
    )
    op.create_index("idx_logs_work_order", "auto_assignment_logs", ["work_order_id"])
    op.create_index("idx_logs_assigned_at", "auto_assignment_logs", ["assigned_at"])

    # Global settings (single row)
    op.create_table(
        "auto_assignment_settings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("auto_assignment_enabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "auto_assign_on_status", ARRAY(sa.String(30)), nullable=False, server_default="{Open}"
        ),
        sa.Column("notify_on_fallback", sa.Boolean, nullable=False, server_default="true"),
        sa.Column(
            "notification_channels", ARRAY(sa.String(20)), nullable=False, server_default="{in_app}"
        ),
        sa.Column("max_candidates_to_evaluate", sa.Integer, nullable=False, server_default="50"),
        sa.Column("cache_technician_data_minutes", sa.Integer, nullable=False, server_default="5"),
        sa.Column("business_hours_only", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("business_hours_start", sa.Time, nullable=False, server_default="08:00"),
        sa.Column("business_hours_end", sa.Time, nullable=False, server_default="18:00"),
        sa.Column("business_days", ARRAY(sa.Integer), nullable=False, server_default="{1,2,3,4,5}"),
        sa.Column("max_auto_assignments_per_run", sa.Integer, nullable=False, server_default="50"),
        sa.Column(
            "assignment_retry_delay_minutes", sa.Integer, nullable=False, server_default="15"
        ),
        sa.Column("queue_max_retries", sa.Integer, nullable=False, server_default="3"),
        sa.Column("queue_item_ttl_hours", sa.Integer, nullable=False, server_default="24"),
        _timestamp("updated_at"),
    )

    # Assignment queue
    op.create_table(
        "assignment_queue",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "work_order_id",
            sa.String(36),
            sa.ForeignKey("work_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        _timestamp("added_at"),
        sa.Column("retry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_retries", sa.Integer, nullable=False, server_default="3"),
        _timestamp("next_retry_at", nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _timestamp("assigned_at", nullable=True),
        sa.Column("failed_reason", sa.Text, nullable=True),
    )
    op.create_index(
        "idx_queue_status_priority", "assignment_queue", ["status", "priority"]
    )
    op.create_index("idx_queue_work_order", "assignment_queue", ["work_order_id"])
    op.create_index(
        "uq_queue_open_work_order",
        "assignment_queue",
        ["work_order_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'processing')"),
    )


def downgrade() -> None:
    op.drop_table("assignment_queue")
    op.drop_table("auto_assignment_settings")
    op.drop_table("auto_assignment_logs")
    op.drop_table("auto_assignment_rules")
    op.drop_table("work_orders")
    op.drop_table("shifts")
    op.drop_table("technicians")
    op.drop_table("service_categories")
