"""Dealership application state machine.

States are NONE (status absent), PENDING, APPROVED and REJECTED. Every
function takes the current status and returns the next one, or raises
ForbiddenTransitionError. Persistence is the caller's job.
"""

from domain.model.errors import ForbiddenTransitionError, ValidationError
from domain.model.user import DealershipApplicationStatus

Status = DealershipApplicationStatus

DECISIONS = (Status.APPROVED, Status.REJECTED)


def _name(status: Status | None) -> str:
    return status.value if status else 'none'


def submit_application(current: Status | None) -> Status:
    """NONE or REJECTED -> PENDING."""
    if current in (Status.PENDING, Status.APPROVED):
        raise ForbiddenTransitionError(
            f"Cannot apply while an application is {current.value}", current=current.value,
        )
    return Status.PENDING


def respond_to_application(current: Status | None, decision: Status) -> Status:
    """PENDING or REJECTED -> APPROVED or REJECTED.

    An approved application is immutable through this path whatever the
    decision; use revoke().
    """
    if current == Status.APPROVED:
        raise ForbiddenTransitionError("Cannot modify an already approved application", current=current.value)

    try:
        decision = Status(decision)
    except ValueError:
        raise ValidationError(f"Invalid decision: {decision}", field='decision')
    if decision not in DECISIONS:
        raise ValidationError("Decision must be approved or rejected", field='decision')

    if current is None:
        raise ForbiddenTransitionError("No dealership application to respond to", current=_name(current))
    return decision


def revoke(current: Status | None) -> Status:
    """APPROVED -> REJECTED."""
    if current != Status.APPROVED:
        raise ForbiddenTransitionError("Only approved applications can be revoked", current=_name(current))
    return Status.REJECTED
