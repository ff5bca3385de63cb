"""Infrastructure layer errors."""


class AdapterError(Exception):
    """Base infrastructure error."""

    pass


class ProviderError(AdapterError):
    """External provider error."""

    pass


class GoogleOAuthError(ProviderError):
    """Token or profile exchange with Google failed."""

    pass


class ProviderDeniedError(ProviderError):
    """The provider redirected back without a grant (denied or cancelled)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Provider did not grant access: {reason}")
