from __future__ import annotations

from typing import Any


class VibeFormsError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class NotFound(VibeFormsError):
    status_code = 404
    code = "not_found"


class NotPublished(VibeFormsError):
    status_code = 403
    code = "not_published"


class UnauthorizedOwner(VibeFormsError):
    status_code = 403
    code = "unauthorized_owner"


class InvalidDefinition(VibeFormsError):
    """A form definition failed structural checks; carries every message."""

    code = "invalid_definition"

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages))
        self.messages = list(messages)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.messages}


class ValidationFailed(VibeFormsError):
    status_code = 422
    code = "validation_failed"

    def __init__(self, violations: list[dict[str, str]]) -> None:
        super().__init__(f"{len(violations)} field(s) failed validation")
        self.violations = list(violations)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "violations": self.violations}


class ConditionalCycleError(VibeFormsError):
    code = "conditional_cycle"

    def __init__(self, cycle: list[str]) -> None:
        super().__init__("conditional cycle: " + " -> ".join(cycle))
        self.cycle = list(cycle)


class NotificationDeliveryFailed(VibeFormsError):
    """Raised inside a delivery task; the dispatcher logs and discards it."""

    code = "notification_delivery_failed"
