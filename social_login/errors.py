"""Errors raised while reconciling OAuth payloads."""


class SocialLoginError(Exception):
    """Base class for reconciliation errors."""


class ValidationError(SocialLoginError):
    """A user-correctable conflict, e.g. a uniqueness violation.

    Attached to a field of the account the way a form error would be, so
    callers can render it next to the offending value.
    """

    def __init__(self, field: str, code: str, message: str | None = None):
        self.field = field
        self.code = code
        self.message = message or f"{field} is invalid ({code})"
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "code": self.code, "message": self.message}


class UnsupportedProviderError(SocialLoginError, ValueError):
    """The payload names a provider that cannot be reconciled."""

    def __init__(self, provider: object):
        self.provider = provider
        super().__init__(f"Unsupported OAuth provider: {provider!r}")


class AvatarFetchError(SocialLoginError):
    """The provider's media endpoint could not be queried."""
