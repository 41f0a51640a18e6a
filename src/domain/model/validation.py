"""Field validation rules for user records.

Called explicitly by the user service before writes and by repositories on
updates that do not skip validation.
"""

import re

from domain.model.errors import ValidationError
from domain.model.user import DealershipApplicationStatus, Role, UserDraft

NAME_MIN_LENGTH = 4
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 50
PASSWORD_SYMBOLS = '!@#$%^&*'

_EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
_PASSWORD_ALLOWED_RE = re.compile(r'^[A-Za-z\d!@#$%^&*]+$')


def validate_name(name: str | None) -> str:
    name = (name or '').strip()
    if not name:
        raise ValidationError("Name is required", field='name')
    if len(name) < NAME_MIN_LENGTH:
        raise ValidationError(f"Name cannot be less than {NAME_MIN_LENGTH} characters", field='name')
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name cannot be more than {NAME_MAX_LENGTH} characters", field='name')
    return name


def validate_email(email: str | None) -> str:
    email = (email or '').strip()
    if not email:
        raise ValidationError("Email is required", field='email')
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email address", field='email')
    return email


def validate_password(password: str | None) -> str:
    """Enforce the password complexity policy and return the trimmed password."""
    password = (password or '').strip()
    if not password:
        raise ValidationError("Password is required", field='password')
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters", field='password')
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_LENGTH} characters", field='password')
    if not re.search(r'[A-Z]', password):
        raise ValidationError("Password must contain at least one uppercase letter", field='password')
    if not any(c in PASSWORD_SYMBOLS for c in password):
        raise ValidationError("Password must contain at least one special character", field='password')
    if not _PASSWORD_ALLOWED_RE.match(password):
        raise ValidationError("Invalid password", field='password')
    return password


def validate_password_pair(password: str | None, password_confirm: str | None) -> str:
    password = validate_password(password)
    if not password_confirm:
        raise ValidationError("Confirm password is required", field='password_confirm')
    if password != password_confirm.strip():
        raise ValidationError("Passwords do not match", field='password_confirm')
    return password


def validate_draft(draft: UserDraft) -> tuple[str, str, str]:
    """Validate a registration draft. Returns normalized (name, email, password)."""
    name = validate_name(draft.name)
    email = validate_email(draft.email)
    password = validate_password_pair(draft.password, draft.password_confirm)
    return name, email, password


def validate_fields(fields: dict) -> None:
    """Validate the user-input fields present in a partial update."""
    if 'name' in fields:
        validate_name(fields['name'])
    if 'email' in fields:
        validate_email(fields['email'])
    if 'role' in fields:
        try:
            Role(fields['role'])
        except ValueError:
            choices = ', '.join(r.value for r in Role)
            raise ValidationError(f"Invalid role. Choose from: {choices}", field='role')
    status = fields.get('dealership_application_status')
    if status is not None:
        try:
            DealershipApplicationStatus(status)
        except ValueError:
            choices = ', '.join(s.value for s in DealershipApplicationStatus)
            raise ValidationError(
                f"Invalid dealership application status. Choose from: {choices}",
                field='dealership_application_status',
            )
    photo = fields.get('profile_photo')
    if photo is not None and not isinstance(photo, str):
        raise ValidationError("Profile photo must be a string", field='profile_photo')
