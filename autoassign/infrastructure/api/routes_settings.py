"""Global auto-assignment settings endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import time

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.persistence.database import get_session
from autoassign.adapters.persistence.repositories import SqlSettingsRepository
from autoassign.domain.value_objects.enums import NotificationChannel
from autoassign.infrastructure.api.dependencies import get_settings_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auto-assign/settings", tags=["settings"])


class SettingsUpdate(BaseModel):
    """Partial update: omitted fields keep their stored value."""

    auto_assignment_enabled: bool | None = None
    auto_assign_on_status: list[str] | None = None
    notify_on_fallback: bool | None = None
    notification_channels: list[NotificationChannel] | None = None
    max_candidates_to_evaluate: int | None = Field(default=None, ge=0)
    cache_technician_data_minutes: int | None = Field(default=None, ge=0)
    business_hours_only: bool | None = None
    business_hours_start: time | None = None
    business_hours_end: time | None = None
    business_days: list[int] | None = None
    max_auto_assignments_per_run: int | None = Field(default=None, ge=1)
    assignment_retry_delay_minutes: int | None = Field(default=None, ge=0)
    queue_max_retries: int | None = Field(default=None, ge=1)
    queue_item_ttl_hours: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_days_and_window(self):
        if self.business_days is not None and any(d < 1 or d > 7 for d in self.business_days):
            raise ValueError("business_days must be ISO weekday numbers 1-7")
        if (
            self.business_hours_start is not None
            and self.business_hours_end is not None
            and self.business_hours_end <= self.business_hours_start
        ):
            raise ValueError("business_hours_end must be after business_hours_start")
        return self


@router.get("")
async def get_settings(settings_repo: SqlSettingsRepository = Depends(get_settings_repo)):
    return asdict(await settings_repo.get())


@router.put("")
async def update_settings(
    body: SettingsUpdate,
    settings_repo: SqlSettingsRepository = Depends(get_settings_repo),
    session: AsyncSession = Depends(get_session),
):
    """Merge the given fields into the stored settings row."""
    current = await settings_repo.get()
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    updated = await settings_repo.save(replace(current, **changes))
    await session.commit()
    logger.info("Auto-assignment settings updated: %s", ", ".join(sorted(changes)) or "no changes")
    return asdict(updated)
