# channel.py
import queue
import threading
from typing import Optional

from .events import Event

_PUT_POLL = 0.5


class EventChannel:
    """Single-slot handoff from the ingress adapters to the engine.

    Capacity is one event: an adapter blocks in ``put`` until the engine has
    taken the previous event, so a slow engine stalls both adapters.
    """

    def __init__(self):
        self._queue: "queue.Queue[Event]" = queue.Queue(maxsize=1)

    def put(self, event: Event, stop: threading.Event) -> bool:
        while not stop.is_set():
            try:
                self._queue.put(event, timeout=_PUT_POLL)
                return True
            except queue.Full:
                continue
        return False

    def get(self, timeout: Optional[float] = None) -> Optional[Event]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
