"""Google infrastructure providers."""

from dishka import Scope, provide
import logfire

from tally.adapter.google.client import GoogleOAuthClient, RealGoogleOAuthClient
from tally.config import Settings
from tally.util.di.base import ProviderBase


class GoogleProvider(ProviderBase):
    """Google component base."""

    __mock_component__ = "google"


class ProdGoogleProvider(GoogleProvider):
    """Production Google provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_google_oauth_client(self, settings: Settings) -> GoogleOAuthClient:
        """Provide Google OAuth client.

        Missing credentials do not fail here; the client is simply never
        registered with the auth service (see ``OAuthAggregatorProvider``).
        """
        google = settings.auth.google
        if not google.configured:
            logfire.warn(
                "Google OAuth credentials not configured; federated login disabled"
            )

        return RealGoogleOAuthClient(
            client_id=google.client_id or "",
            client_secret=google.client_secret or "",
            redirect_uri=settings.auth.google_callback_url,
        )
