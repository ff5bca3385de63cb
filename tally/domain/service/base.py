"""Base service class for domain services."""


class Service:
    """Base class for domain services.

    Domain services hold logic that spans entities or talks to collaborators
    through repository and client interfaces.
    """

    pass
