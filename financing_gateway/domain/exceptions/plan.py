"""Plan-related domain exceptions."""

from .base import DomainException


class PlanNotFoundException(DomainException):
    """Raised when a plan cannot be found."""

    def __init__(self, plan_id: str):
        super().__init__(
            message=f"Plan not found: {plan_id}",
            code="PLAN_NOT_FOUND",
        )
        self.plan_id = plan_id


class InvalidTransitionException(DomainException):
    """Raised when the plan's current state does not permit an action."""

    def __init__(self, plan_id: str, status: str, action: str, detail: str | None = None):
        message = f"Cannot {action} plan {plan_id} with status: {status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(
            message=message,
            code="INVALID_TRANSITION",
        )
        self.plan_id = plan_id
        self.status = status
        self.action = action


class InvalidPlanRequestException(DomainException):
    """Raised when a plan creation request is invalid."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_PLAN_REQUEST",
        )
