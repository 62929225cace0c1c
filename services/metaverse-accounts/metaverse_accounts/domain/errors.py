"""Expected, user-facing failures raised while granting tokens."""

from __future__ import annotations


class TokenGrantError(Exception):
    """Base class for grant failures rendered to the caller as an error body."""

    outcome: str = "failed"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownAccount(TokenGrantError):
    outcome = "unknown_account"

    def __init__(self, message: str = "Unknown user") -> None:
        super().__init__(message)


class AuthenticationFailed(TokenGrantError):
    outcome = "authentication_failed"

    def __init__(self, message: str = "Login failed") -> None:
        super().__init__(message)


class RefreshFailed(TokenGrantError):
    outcome = "refresh_failed"

    def __init__(self, message: str = "Cannot refresh") -> None:
        super().__init__(message)


class UnsupportedGrant(TokenGrantError):
    outcome = "unsupported_grant"

    def __init__(self, grant_type: str) -> None:
        super().__init__(f"Cannot process '{grant_type}'")
        self.grant_type = grant_type


class UnknownGrant(TokenGrantError):
    outcome = "unknown_grant"

    def __init__(self, grant_type: str) -> None:
        super().__init__(f"Unknown grant type: {grant_type}")
        self.grant_type = grant_type


class InvalidRequest(TokenGrantError):
    outcome = "invalid_request"

    def __init__(self, parameter: str) -> None:
        super().__init__(f"Missing parameter: {parameter}")
        self.parameter = parameter


class AccountExistsError(ValueError):
    """Raised when registering a username that is already taken."""
