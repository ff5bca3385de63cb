"""Utility layer errors."""


class UtilError(Exception):
    """Base utility error."""

    pass


class ConfigurationError(UtilError):
    """Configuration error."""

    pass


class PersistenceUnavailableError(ConfigurationError):
    """No usable persistence store is configured."""

    pass


class DependencyInjectionError(UtilError):
    """Dependency injection error."""

    pass
