"""
Abstract work-queue gateway.

Dispatch is fire-and-forget: send() returns once the message is accepted by
the queue. Nothing in the portal consumes the queue; the external executor
does.
"""

from abc import ABC, abstractmethod

from writerid_portal.schemas.messages import QueueMessage


class QueueService(ABC):

    @abstractmethod
    async def send(self, message: QueueMessage) -> None:
        """Enqueues one message; raises QueueError on failure."""
        ...

    async def close(self) -> None:
        return None
