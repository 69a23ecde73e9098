"""Port interface for the global auto-assignment settings row."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.settings import AutoAssignmentSettings


class SettingsRepository(ABC):
    @abstractmethod
    async def get(self) -> AutoAssignmentSettings:
        """Return the settings row, or defaults (engine disabled) when absent."""
        ...

    @abstractmethod
    async def save(self, settings: AutoAssignmentSettings) -> AutoAssignmentSettings:
        ...
