"""Base use case."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


class BaseUseCase(ABC, Generic[RequestT, ResponseT]):
    """One application operation: a request model in, a response out.

    Use cases orchestrate domain services and hold no state between calls.
    """

    @abstractmethod
    async def execute(self, request: RequestT) -> ResponseT:
        pass
