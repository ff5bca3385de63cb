"""Terminal pages rendered into the sign-in popup.

Each page posts one message to its opener window, restricted to a single
target origin, and then closes itself.
"""

import html
import json
from typing import Any

from fastapi.responses import HTMLResponse

from tally.config import APISettings
from tally.domain.value import HandshakeState

# The popup must stay reachable from its opener and run one inline script
TERMINAL_PAGE_HEADERS = {
    "Cache-Control": "no-store",
    "Cross-Origin-Opener-Policy": "unsafe-none",
    "Cross-Origin-Embedder-Policy": "unsafe-none",
    "Content-Security-Policy": (
        "default-src 'none'; script-src 'unsafe-inline'; style-src 'unsafe-inline'"
    ),
}

_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>
      body {{ font-family: Arial, sans-serif; max-width: 500px; margin: 30px auto;
             text-align: center; line-height: 1.6; }}
    </style>
    <script>
      (function () {{
        var message = {message};
        var targetOrigin = {origin};
        try {{
          if (window.opener) {{
            window.opener.postMessage(message, targetOrigin);
          }}
        }} catch (e) {{}}
        setTimeout(function () {{ window.close(); }}, {delay});
      }})();
    </script>
  </head>
  <body>
    <h2>{title}</h2>
    {body}
    <p>This window will close automatically.</p>
  </body>
</html>
"""


def _script_literal(value: Any) -> str:
    """JSON literal safe to embed inside a <script> element."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def target_origin(state: HandshakeState | None, api: APISettings) -> str:
    """Origin a terminal page may post to.

    The origin carried in state is honoured only if it is allow-listed.
    """
    if state is None:
        return api.frontend_url
    return state.origin_within(api.allowed_client_origins, api.frontend_url)


def render_terminal_page(
    *,
    title: str,
    body: str,
    message: dict[str, Any],
    origin: str,
    close_delay_ms: int,
    status_code: int = 200,
) -> HTMLResponse:
    """Render a self-closing page that posts ``message`` to ``origin``.

    Args:
        title: Page title
        body: Pre-escaped HTML body fragment
        message: Payload for the opener window
        origin: Exact target origin for postMessage
        close_delay_ms: Delay before the window closes itself
        status_code: HTTP status of the response
    """
    content = _PAGE.format(
        title=html.escape(title),
        body=body,
        message=_script_literal(message),
        origin=_script_literal(origin),
        delay=int(close_delay_ms),
    )
    return HTMLResponse(
        content=content, status_code=status_code, headers=TERMINAL_PAGE_HEADERS
    )


def success_page(
    token: str,
    user: dict[str, Any],
    state: HandshakeState | None,
    api: APISettings,
    close_delay_ms: int,
) -> HTMLResponse:
    """Page delivering ``{token, user, uniqueId}`` to the opener."""
    message: dict[str, Any] = {"token": token, "user": user}
    if state is not None:
        message["uniqueId"] = state.unique_id

    switch_url = "/handshake/start?force_selection=true"
    if state is not None:
        switch_url += f"&unique={html.escape(state.unique_id, quote=True)}"

    body = (
        f"<p>Signed in as <strong>{html.escape(user.get('username', ''))}</strong>.</p>"
        f'<p><a href="{switch_url}">Use a different account</a></p>'
    )
    return render_terminal_page(
        title="Authentication Successful",
        body=body,
        message=message,
        origin=target_origin(state, api),
        close_delay_ms=close_delay_ms,
    )


def cancelled_page(
    state: HandshakeState | None, api: APISettings, close_delay_ms: int
) -> HTMLResponse:
    """Page delivering ``{cancelled: true, uniqueId}`` to the opener."""
    message: dict[str, Any] = {"cancelled": True}
    if state is not None:
        message["uniqueId"] = state.unique_id

    return render_terminal_page(
        title="Authentication Cancelled",
        body="<p>Authentication was cancelled.</p>",
        message=message,
        origin=target_origin(state, api),
        close_delay_ms=close_delay_ms,
    )


def failure_page(
    state: HandshakeState | None, api: APISettings, close_delay_ms: int
) -> HTMLResponse:
    """500 page for internal failures; the opener sees a cancellation."""
    message: dict[str, Any] = {"cancelled": True, "error": "server_error"}
    if state is not None:
        message["uniqueId"] = state.unique_id

    return render_terminal_page(
        title="Authentication Failed",
        body="<p>Something went wrong while signing you in. Please try again.</p>",
        message=message,
        origin=target_origin(state, api),
        close_delay_ms=close_delay_ms,
        status_code=500,
    )
