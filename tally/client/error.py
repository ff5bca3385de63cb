"""Client bridge errors."""


class BridgeError(Exception):
    """Base popup bridge error."""

    pass


class PopupBlockedError(BridgeError):
    """The browser refused to open the sign-in popup."""

    pass


class PopupAccessError(BridgeError):
    """The popup can no longer be read (closed or navigated cross-origin)."""

    pass
