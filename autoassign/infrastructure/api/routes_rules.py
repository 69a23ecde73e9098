"""Rule administration endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.persistence.database import get_session
from autoassign.adapters.persistence.repositories import SqlRuleRepository
from autoassign.domain.entities.rule import (
    MAX_WEIGHT,
    MIN_WEIGHT,
    AutoAssignmentRule,
    RuleValidationError,
)
from autoassign.domain.value_objects.enums import FallbackAction
from autoassign.infrastructure.api.dependencies import get_rule_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auto-assign/rules", tags=["rules"])


# ── Request schemas ─────────────────────────────────────────────────

class RuleIn(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    is_active: bool = True
    priority: int = 0

    weight_availability: int = Field(default=30, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    weight_specialization: int = Field(default=25, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    weight_proximity: int = Field(default=20, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    weight_workload: int = Field(default=15, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    weight_performance: int = Field(default=10, ge=MIN_WEIGHT, le=MAX_WEIGHT)

    max_distance_km: float | None = Field(default=None, ge=0)
    require_specialization_match: bool = False
    respect_max_concurrent_orders: bool = True

    allowed_locations: list[str] | None = None
    allowed_service_categories: list[str] | None = None
    priority_levels: list[str] | None = None

    fallback_action: FallbackAction = FallbackAction.QUEUE
    fallback_user_id: str | None = None


class RuleActiveIn(BaseModel):
    is_active: bool


# ── Endpoints ───────────────────────────────────────────────────────

@router.get("")
async def list_rules(rule_repo: SqlRuleRepository = Depends(get_rule_repo)):
    """All rules in evaluation order (priority ascending)."""
    rules = await rule_repo.get_all()
    return {"total": len(rules), "rules": [asdict(r) for r in rules]}


@router.post("", status_code=201)
async def create_rule(
    body: RuleIn,
    rule_repo: SqlRuleRepository = Depends(get_rule_repo),
    session: AsyncSession = Depends(get_session),
):
    """Create a rule. Weights are validated before anything is written."""
    rule = AutoAssignmentRule(id=None, **body.model_dump())
    try:
        rule.validate()
    except RuleValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    saved = await rule_repo.save(rule)
    await session.commit()
    logger.info("Created rule %s (%s)", saved.name, saved.id)
    return asdict(saved)


@router.patch("/{rule_id}/active")
async def set_rule_active(
    rule_id: str,
    body: RuleActiveIn,
    rule_repo: SqlRuleRepository = Depends(get_rule_repo),
    session: AsyncSession = Depends(get_session),
):
    """Enable or disable a rule."""
    if not await rule_repo.set_active(rule_id, body.is_active):
        raise HTTPException(status_code=404, detail="Rule not found")
    await session.commit()
    return {"status": "ok", "rule_id": rule_id, "is_active": body.is_active}


@router.put("/{rule_id}")
async def update_rule(
    rule_id: str,
    body: RuleIn,
    rule_repo: SqlRuleRepository = Depends(get_rule_repo),
    session: AsyncSession = Depends(get_session),
):
    """Replace a rule's definition. Later evaluations use the new weights."""
    if await rule_repo.get_by_id(rule_id) is None:
        raise HTTPException(status_code=404, detail="Rule not found")

    rule = AutoAssignmentRule(id=rule_id, **body.model_dump())
    try:
        rule.validate()
    except RuleValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    saved = await rule_repo.save(rule)
    await session.commit()
    logger.info("Updated rule %s (%s)", saved.name, saved.id)
    return asdict(saved)


@router.delete("/{rule_id}")
async def delete_rule(
    rule_id: str,
    rule_repo: SqlRuleRepository = Depends(get_rule_repo),
    session: AsyncSession = Depends(get_session),
):
    """Delete a rule. Existing logs keep their score breakdown."""
    if not await rule_repo.delete(rule_id):
        raise HTTPException(status_code=404, detail="Rule not found")
    await session.commit()
    logger.info("Deleted rule %s", rule_id)
    return {"status": "ok", "rule_id": rule_id}
