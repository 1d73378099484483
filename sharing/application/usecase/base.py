"""Base use case."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


class BaseUseCase(ABC, Generic[RequestT, ResponseT]):
    """One API operation: authenticate, validate, then call domain services.

    Requests carry the caller's raw identity token. Argument checks that
    need no store access run before any domain service is called.
    """

    @abstractmethod
    async def execute(self, request: RequestT) -> ResponseT:
        pass
