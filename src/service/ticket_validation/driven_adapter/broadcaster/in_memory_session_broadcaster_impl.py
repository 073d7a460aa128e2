"""
In-memory Session Broadcaster Implementation

Distributes session snapshots and notifications from session controllers to
SSE endpoints of the same process.
"""

from anyio import ClosedResourceError, WouldBlock, create_memory_object_stream
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from src.platform.logging.loguru_io import Logger


class InMemorySessionBroadcasterImpl:
    """
    In-memory pub/sub keyed by ticket id

    Memory Management:
    - Stream max buffer: 10 events per subscriber
    - Drop policy: drop the event for a subscriber whose buffer is full
    - Cleanup: remove empty lists on unsubscribe and close streams
    """

    def __init__(self, *, max_buffer_size: int = 10) -> None:
        self.max_buffer_size = max_buffer_size
        # ticket_id -> list of (send_stream, receive_stream) tuples
        self._subscribers: dict[
            str, list[tuple[MemoryObjectSendStream[dict], MemoryObjectReceiveStream[dict]]]
        ] = {}

    def subscriber_count(self, *, ticket_id: str) -> int:
        return len(self._subscribers.get(ticket_id, []))

    async def subscribe(self, *, ticket_id: str) -> MemoryObjectReceiveStream[dict]:
        send_stream, receive_stream = create_memory_object_stream[dict](
            max_buffer_size=self.max_buffer_size
        )
        self._subscribers.setdefault(ticket_id, []).append((send_stream, receive_stream))
        Logger.base.debug(
            f'📡 [BROADCASTER] Subscribed to ticket {ticket_id} '
            f'(total subscribers: {len(self._subscribers[ticket_id])})'
        )
        return receive_stream

    def publish(self, *, ticket_id: str, event_data: dict) -> None:
        subscribers = self._subscribers.get(ticket_id)
        if not subscribers:
            return

        dropped = 0
        for send_stream, _ in subscribers:
            try:
                send_stream.send_nowait(event_data)
            except WouldBlock:
                # Slow consumer; the next snapshot supersedes this one
                dropped += 1
            except ClosedResourceError:
                dropped += 1

        if dropped:
            Logger.base.warning(
                f'⚠️ [BROADCASTER] Dropped {dropped} event(s) for ticket {ticket_id} '
                f'(type={event_data.get("event_type")})'
            )

    async def unsubscribe(self, *, ticket_id: str, stream: MemoryObjectReceiveStream[dict]) -> None:
        subscribers = self._subscribers.get(ticket_id)
        if subscribers is None:
            return

        for i, (send_stream, receive_stream) in enumerate(subscribers):
            if receive_stream is stream:
                await send_stream.aclose()
                await receive_stream.aclose()
                subscribers.pop(i)
                Logger.base.debug(
                    f'📡 [BROADCASTER] Unsubscribed from ticket {ticket_id} '
                    f'(remaining: {len(subscribers)})'
                )
                break

        if not subscribers:
            del self._subscribers[ticket_id]
