"""
Error kinds for signup and role management.

Business-rule failures carry a stable ``message_id`` so that callers (and
logs) can tell them apart without string matching. Storage failures are a
separate family (``StoreLookupError``) and are never remapped into the
business-rule kinds.
"""

from __future__ import annotations


class SignupError(Exception):
    """Base class for signup business-rule failures."""

    message_id = "api.user.create_user.app_error"
    default_message = "User creation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class SignupDisabledError(SignupError):
    """Email signup or user creation is switched off."""

    message_id = "api.user.create_user.signup_email_disabled.app_error"
    default_message = "User sign-up with email is disabled"


class OpenServerDisabledError(SignupError):
    message_id = "api.user.create_user.no_open_server.app_error"
    default_message = "This server does not allow signups without an invitation"


class SignupLinkInvalidError(SignupError):
    message_id = "api.user.create_user.signup_link_invalid.app_error"
    default_message = "The signup link does not appear to be valid"


class SignupLinkExpiredError(SignupError):
    message_id = "api.user.create_user.signup_link_expired.app_error"
    default_message = "The signup link has expired"


class AcceptedDomainError(SignupError):
    """The e-mail domain is not on the signup allow-list."""

    message_id = "api.user.create_user.accepted_domain.app_error"
    default_message = "The email you provided does not belong to an accepted domain"


class EmailTakenError(SignupError):
    message_id = "api.user.create_user.email_taken.app_error"
    default_message = "An account with that email already exists"


class UsernameTakenError(SignupError):
    message_id = "api.user.create_user.username_taken.app_error"
    default_message = "An account with that username already exists"


class InvalidSignupInputError(SignupError):
    message_id = "api.user.create_user.invalid_input.app_error"
    default_message = "Invalid user details"


class InvalidRoleError(ValueError):
    """A role string is not one of the known roles."""

    message_id = "api.user.update_roles.invalid_role.app_error"


class StoreLookupError(LookupError):
    """
    A store could not find the requested record.

    ``where`` names the store method that failed (e.g. ``SQLiteTeamRepo.get_by_id``)
    so the origin survives all the way to the HTTP response.
    """

    def __init__(self, where: str, detail: str) -> None:
        super().__init__(f"{where}: {detail}")
        self.where = where
        self.detail = detail
