# append-only event log + best effort push to subscribers
import asyncio
import logging
import threading
from typing import Callable, List

import httpx
from pydantic import BaseModel

from .config import NOTIFY_TIMEOUT
from .models import EventRecord

logger = logging.getLogger(__name__)

Listener = Callable[[EventRecord], None]


class EventLog:
    """
    Append-only record of what the ledger did. Listeners are called with
    each new record right after it is appended; they must not block.
    """

    def __init__(self) -> None:
        self._records: List[EventRecord] = []
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def append(self, event: BaseModel) -> EventRecord:
        with self._lock:
            rec = EventRecord(
                seq=len(self._records),
                kind=type(event).__name__,
                payload=event.model_dump(),
            )
            self._records.append(rec)
            listeners = list(self._listeners)

        # the record is committed; a broken listener must not fail the caller
        for listener in listeners:
            try:
                listener(rec)
            except Exception as exc:
                logger.warning("event %d listener %r failed: %s", rec.seq, listener, exc)
        return rec

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def since(self, seq: int = 0) -> List[EventRecord]:
        with self._lock:
            return list(self._records[max(seq, 0):])

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


async def publish_to_subscribers(rec: EventRecord, subscribers: List[str]) -> None:
    """
    Best effort: a subscriber that is down just misses the push, it can
    still catch up by polling /events.
    """
    if not subscribers:
        return

    async with httpx.AsyncClient(timeout=NOTIFY_TIMEOUT) as client:
        tasks = [client.post(url, json=rec.model_dump()) for url in subscribers]
        results = await asyncio.gather(*tasks, return_exceptions=True)

    for url, res in zip(subscribers, results):
        if isinstance(res, Exception):
            logger.warning("event %d not delivered to %s: %s", rec.seq, url, res)
        elif res.is_error:
            logger.warning("event %d rejected by %s: HTTP %d", rec.seq, url, res.status_code)


async def notify_loop(queue: "asyncio.Queue[EventRecord]", subscribers: List[str]) -> None:
    """
    Background task: drain the queue filled by the ledger's event listener
    and push every record, in order, to the subscribers.
    """
    while True:
        rec = await queue.get()
        try:
            await publish_to_subscribers(rec, subscribers)
        finally:
            queue.task_done()
