"""Dealership application service — persists state machine transitions.

Callers are assumed to be authorized already (admin checks live with the
controllers). Each transition is a conditional write on the status that was
read, so two racing decisions cannot both succeed.
"""

import logging

from domain.model import dealership
from domain.model.errors import NotFoundError
from domain.model.user import DealershipApplicationStatus, Role, User
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)


def apply_for_dealership(repo: UserRepository, user_id: str) -> User:
    """Submit (or re-submit after rejection) a dealership application."""
    user = _load(repo, user_id)
    status = dealership.submit_application(user.dealership_application_status)
    return _transition(repo, user, {
        'dealership_application_status': status,
        'apply_for_dealership': True,
    })


def respond_to_application(
    repo: UserRepository,
    user_id: str,
    decision: DealershipApplicationStatus,
    promote_on_approval: bool = False,
) -> User:
    """Admin decision on a pending or rejected application.

    Raises:
        ForbiddenTransitionError: application already approved, or never submitted
        ValidationError: decision is not approved/rejected
        ConcurrentModificationError: status changed since it was read
    """
    user = _load(repo, user_id)
    status = dealership.respond_to_application(user.dealership_application_status, decision)
    fields = {'dealership_application_status': status}
    if promote_on_approval and status == DealershipApplicationStatus.APPROVED and user.role == Role.USER:
        fields['role'] = Role.DEALER
    return _transition(repo, user, fields)


def revoke_application(repo: UserRepository, user_id: str, promote_on_approval: bool = False) -> User:
    """Revoke an approved application, leaving it rejected."""
    user = _load(repo, user_id)
    status = dealership.revoke(user.dealership_application_status)
    fields = {'dealership_application_status': status}
    if promote_on_approval and user.role == Role.DEALER:
        fields['role'] = Role.USER
    return _transition(repo, user, fields)


def _load(repo: UserRepository, user_id: str) -> User:
    user = repo.get_by_id(user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def _transition(repo: UserRepository, user: User, fields: dict) -> User:
    previous = user.dealership_application_status
    updated = repo.update(
        user.id,
        fields,
        skip_validation=True,
        expected={'dealership_application_status': previous},
    )
    if not updated:
        raise NotFoundError(f"User {user.id} not found")

    logger.info("Dealership application status changed", extra={
        "userId": user.id,
        "from": previous.value if previous else None,
        "to": fields['dealership_application_status'].value,
    })
    for key, value in fields.items():
        setattr(user, key, value)
    return user
