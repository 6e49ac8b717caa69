"""In-process pub/sub for pushing progress events to websocket clients.

Subscribers join named rooms (``company:<id>``, ``user:<id>``, ...). A
publish to several rooms reaches each subscriber at most once. Delivery is
best effort: a subscriber whose queue is full misses the event.
"""
import asyncio
import heapq
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from app.settings import settings

logger = logging.getLogger(__name__)

QUEUE_SIZE = 256


def company_room(company_id: Optional[str]) -> Optional[str]:
    return f"company:{company_id}" if company_id else None


def user_room(user_id: Optional[str]) -> Optional[str]:
    return f"user:{user_id}" if user_id else None


def make_event(event: str, data: Any) -> Dict:
    return {"event": event, "data": data, "timestamp": datetime.now(timezone.utc).isoformat()}


class Subscription:
    def __init__(self, broker: "ProgressBroker", rooms: Iterable[str]):
        self._broker = broker
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        self.rooms: Set[str] = set()
        self.closed = False
        self.join(*rooms)

    def join(self, *rooms: str) -> None:
        for room in rooms:
            if room and room not in self.rooms:
                self.rooms.add(room)
                self._broker._rooms.setdefault(room, set()).add(self)

    def leave(self, *rooms: str) -> None:
        for room in rooms:
            if room in self.rooms:
                self.rooms.discard(room)
                members = self._broker._rooms.get(room)
                if members is not None:
                    members.discard(self)
                    if not members:
                        del self._broker._rooms[room]

    def deliver(self, message: Dict) -> bool:
        try:
            self.queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            logger.warning("Dropping %s for slow subscriber", message.get("event"))
            return False

    async def get(self) -> Dict:
        return await self.queue.get()

    def close(self) -> None:
        if self.closed:
            return
        self.leave(*list(self.rooms))
        self._broker._subscriptions.discard(self)
        self.closed = True


class ProgressBroker:
    def __init__(self, progress_ttl: Optional[int] = None):
        self._rooms: Dict[str, Set[Subscription]] = {}
        self._subscriptions: Set[Subscription] = set()
        self._progress: Dict[Tuple[str, str], Tuple[float, Dict]] = {}
        self._expiry: List[Tuple[float, Tuple[str, str]]] = []
        self.progress_ttl = progress_ttl

    def subscribe(self, *rooms: str) -> Subscription:
        sub = Subscription(self, rooms)
        self._subscriptions.add(sub)
        return sub

    def connection_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, room: Optional[str], event: str, data: Any) -> int:
        return self.publish_many([room], event, data)

    def publish_many(self, rooms: Iterable[Optional[str]], event: str, data: Any) -> int:
        targets: Set[Subscription] = set()
        for room in rooms:
            if room:
                targets.update(self._rooms.get(room, ()))
        if not targets:
            return 0
        message = make_event(event, data)
        return sum(1 for sub in targets if sub.deliver(message))

    def publish_all(self, event: str, data: Any) -> int:
        message = make_event(event, data)
        return sum(1 for sub in list(self._subscriptions) if sub.deliver(message))

    def set_progress(self, kind: str, item_id: str, data: Dict) -> Dict:
        ttl = self.progress_ttl if self.progress_ttl is not None else settings.PROGRESS_TTL_SECONDS
        entry = {**data, "timestamp": datetime.now(timezone.utc).isoformat()}
        key = (kind, item_id)
        expires_at = time.monotonic() + ttl
        self._progress[key] = (expires_at, entry)
        heapq.heappush(self._expiry, (expires_at, key))
        self._purge_expired()
        return entry

    def _purge_expired(self) -> None:
        now = time.monotonic()
        while self._expiry and self._expiry[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiry)
            cached = self._progress.get(key)
            if cached is not None and cached[0] == expires_at:
                del self._progress[key]

    def get_progress(self, kind: str, item_id: str) -> Optional[Dict]:
        cached = self._progress.get((kind, item_id))
        if cached is None:
            return None
        expires_at, entry = cached
        if time.monotonic() >= expires_at:
            del self._progress[(kind, item_id)]
            return None
        return entry

    def clear(self) -> None:
        for sub in list(self._subscriptions):
            sub.close()
        self._progress.clear()
        self._expiry.clear()


broker = ProgressBroker()
