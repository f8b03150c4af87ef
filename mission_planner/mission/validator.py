"""
Mission validation

Structural checks run before export or anything that treats the mission
as flight-ready. They never block incremental editing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .models import Land, Mission, ReturnToHome, Takeoff


class ValidationErrorKind(Enum):
    """Structural problems that make a mission unflyable"""
    EMPTY_MISSION = "Mission cannot be empty"
    MUST_START_WITH_TAKEOFF = "Mission must start with takeoff"
    MUST_END_WITH_LAND_OR_RTH = "Mission must end with land or return to home"


class MissionValidationError(Exception):
    """Raised when a mission that must be flight-ready is not"""

    def __init__(self, kind: ValidationErrorKind):
        super().__init__(kind.value)
        self.kind = kind


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate(): at most one structural error plus warnings"""
    error: Optional[ValidationErrorKind] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> Optional[str]:
        return self.error.value if self.error else None

    def to_dict(self) -> dict:
        return {
            'valid': self.ok,
            'error': self.error.name if self.error else None,
            'message': self.message,
            'warnings': list(self.warnings),
        }


def validate(mission: Mission) -> ValidationResult:
    """
    Validate mission structure

    Checks, in order: non-empty, starts with takeoff, ends with land or
    return-to-home. Per-command parameter problems are reported as
    warnings and don't fail validation.
    """
    warnings = []
    for i, command in enumerate(mission):
        for msg in command.check():
            warnings.append(f"Command {i}: {msg}")

    if len(mission) == 0:
        return ValidationResult(ValidationErrorKind.EMPTY_MISSION, warnings)

    if not isinstance(mission.commands[0], Takeoff):
        return ValidationResult(ValidationErrorKind.MUST_START_WITH_TAKEOFF, warnings)

    if not isinstance(mission.commands[-1], (Land, ReturnToHome)):
        return ValidationResult(ValidationErrorKind.MUST_END_WITH_LAND_OR_RTH, warnings)

    return ValidationResult(None, warnings)


def ensure_valid(mission: Mission) -> ValidationResult:
    """
    Validate and raise on a structural error

    Raises:
        MissionValidationError: If the mission isn't flight-ready
    """
    result = validate(mission)
    if result.error is not None:
        raise MissionValidationError(result.error)
    return result
