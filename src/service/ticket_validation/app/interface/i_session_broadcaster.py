"""
Session Broadcaster Interface

Distributes session snapshots and notifications from the session controllers
to SSE endpoints within the same process.
"""

from typing import Protocol

from anyio.streams.memory import MemoryObjectReceiveStream


class ISessionBroadcaster(Protocol):
    async def subscribe(self, *, ticket_id: str) -> MemoryObjectReceiveStream[dict]:
        """
        Subscribe to session events of one ticket

        Returns:
            MemoryObjectReceiveStream that will receive event dictionaries
        """
        ...

    def publish(self, *, ticket_id: str, event_data: dict) -> None:
        """
        Publish event to all subscribers of this ticket

        Note:
            - Never blocks; called from timer callbacks
            - Drops event if subscriber stream is full
        """
        ...

    async def unsubscribe(self, *, ticket_id: str, stream: MemoryObjectReceiveStream[dict]) -> None:
        """Safe to call with a non-existent stream"""
        ...

    def subscriber_count(self, *, ticket_id: str) -> int:
        """Open streams for this ticket"""
        ...
