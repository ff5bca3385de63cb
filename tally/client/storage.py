"""Client-side session storage."""

from abc import ABC, abstractmethod

TOKEN_KEY = "token"
USER_KEY = "user"
FORCE_SELECTION_KEY = "forceAccountSelection"
AUTH_IN_PROGRESS_KEY = "googleAuthInProgress"


class ClientStorage(ABC):
    """String key/value store persisted across reloads (localStorage)."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    def pop(self, key: str) -> str | None:
        """Read and remove a value."""
        value = self.get(key)
        if value is not None:
            self.remove(key)
        return value


class InMemoryClientStorage(ClientStorage):
    """In-memory storage for tests and headless clients."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})
        self.writes: list[tuple[str, str]] = []

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value
        self.writes.append((key, value))

    def remove(self, key: str) -> None:
        self._items.pop(key, None)
