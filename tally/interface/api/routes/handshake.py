"""Google sign-in popup handshake routes."""

import logging
from urllib.parse import urlencode

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from tally.adapter.error import ProviderError
from tally.application.usecase.auth import (
    CompleteHandshakeUseCase,
    StartHandshakeUseCase,
)
from tally.application.usecase.auth.complete_handshake import CompleteHandshakeRequest
from tally.application.usecase.auth.start_handshake import StartHandshakeRequest
from tally.config import Settings
from tally.domain.error import FederatedLoginDisabledError, UnverifiedEmailError
from tally.domain.value import HandshakeState
from tally.interface.api.pages import cancelled_page, failure_page, success_page

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/handshake", tags=["handshake"], route_class=DishkaRoute)

CANCEL_PATH = "/handshake/cancel"


def _cancel_redirect(state: str | None) -> RedirectResponse:
    url = CANCEL_PATH
    if state:
        url = f"{url}?{urlencode({'state': state})}"
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get("/start")
async def start_handshake(
    start_handshake_use_case: FromDishka[StartHandshakeUseCase],
    prompt: str | None = None,
    access_type: str | None = None,
    include_granted_scopes: bool | None = None,
    login_hint: str | None = None,
    authuser: str | None = None,
    approval_prompt: str | None = None,
    unique: str | None = None,
    force_selection: bool = False,
) -> RedirectResponse:
    """Begin the Google sign-in handshake inside the popup.

    Returns:
        HTTP 302 redirect to Google's account chooser

    Raises:
        HTTPException: 503 if Google sign-in is not configured

    Example:
        GET /handshake/start?unique=k3j2h1&force_selection=true
    """
    try:
        result = await start_handshake_use_case.execute(
            StartHandshakeRequest(
                prompt=prompt,
                access_type=access_type,
                include_granted_scopes=include_granted_scopes,
                login_hint=login_hint,
                authuser=authuser,
                approval_prompt=approval_prompt,
                unique=unique,
                force_selection=force_selection,
            )
        )
    except FederatedLoginDisabledError as e:
        logger.warning(f"Handshake start rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        )

    logger.info(
        f"Handshake started: unique={result.unique_id}, prompt={result.prompt}"
    )
    return RedirectResponse(
        url=result.authorization_url, status_code=status.HTTP_302_FOUND
    )


@router.get("/callback")
async def handshake_callback(
    request: Request,
    complete_handshake_use_case: FromDishka[CompleteHandshakeUseCase],
    settings: FromDishka[Settings],
):
    """Handle Google's redirect back into the popup.

    A denied or failed provider exchange goes to the cancel page. Internal
    failures render a 500 page and deliver no token.

    Example:
        GET /handshake/callback?code=4/0Ab...&state=eyJjbGllbnRVUkwiOi...
    """
    params = dict(request.query_params)
    raw_state = params.get("state")
    state = HandshakeState.decode(raw_state)

    try:
        result = await complete_handshake_use_case.execute(
            CompleteHandshakeRequest(callback_params=params)
        )
    except (ProviderError, FederatedLoginDisabledError, UnverifiedEmailError) as e:
        logger.info(f"Handshake cancelled at provider: {e}")
        return _cancel_redirect(raw_state)
    except Exception as e:
        logger.exception(f"Handshake failed during user resolution: {e}")
        return failure_page(state, settings.api, settings.auth.popup_close_delay_ms)

    logger.info(
        f"Handshake completed for user {result.user.id} ({result.resolution.value})"
    )
    return success_page(
        token=result.token,
        user=result.user.to_message(),
        state=state,
        api=settings.api,
        close_delay_ms=settings.auth.popup_close_delay_ms,
    )


@router.get("/cancel")
async def cancel_handshake(settings: FromDishka[Settings], state: str | None = None):
    """Tell the opener the sign-in was cancelled, then close the popup."""
    return cancelled_page(
        HandshakeState.decode(state),
        settings.api,
        settings.auth.popup_close_delay_ms,
    )
