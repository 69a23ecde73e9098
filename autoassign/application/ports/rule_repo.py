"""Port interface for auto-assignment rule persistence."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.rule import AutoAssignmentRule


class RuleRepository(ABC):
    @abstractmethod
    async def get_active(self) -> list[AutoAssignmentRule]:
        ...

    @abstractmethod
    async def get_all(self) -> list[AutoAssignmentRule]:
        ...

    @abstractmethod
    async def get_by_id(self, rule_id: str) -> AutoAssignmentRule | None:
        ...

    @abstractmethod
    async def save(self, rule: AutoAssignmentRule) -> AutoAssignmentRule:
        ...

    @abstractmethod
    async def set_active(self, rule_id: str, is_active: bool) -> bool:
        """Toggle a rule. Returns False if the rule does not exist."""
        ...

    @abstractmethod
    async def delete(self, rule_id: str) -> bool:
        """Remove a rule; its logs keep their snapshot. False if it does not exist."""
        ...
