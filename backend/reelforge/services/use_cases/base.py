"""
Base use case class.

Each use case encapsulates a single business operation and is independent
of HTTP, storage or other infrastructure details, so the same operation
can be driven from a route, a background task or a test.

Example:
    >>> class RunProductionUseCase(UseCase[PipelineRequest, PipelineResult]):
    ...     async def execute(self, request: PipelineRequest) -> PipelineResult:
    ...         return await self.router.route(request)
"""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


class UseCase(ABC, Generic[RequestT, ResponseT]):
    """
    Base use case abstract class.

    Type Parameters:
        RequestT: Type of the input request object
        ResponseT: Type of the output response object
    """

    @abstractmethod
    async def execute(self, request: RequestT) -> ResponseT:
        """
        Execute the use case and return a response.

        Args:
            request: Request object containing all required input data

        Returns:
            Response object containing operation results

        Raises:
            Domain exceptions (ReelForgeError subclasses). Translating them
            to HTTP responses is the route's responsibility.
        """
        pass
