# ingress.py
#
# One reader thread per frame source. Each thread blocks on its own source,
# validates what it reads and hands the result to the engine through the
# shared EventChannel. Read failures become IngressError events; the thread
# itself only stops when the bridge is stopped.
import threading
from typing import Optional

from .channel import EventChannel
from .errors import MalformedFrame
from .ethernet import EthernetFrame
from .events import Event, IngressError, LocalFrame, RemoteFrame, Source, format_endpoint
from .log import get_logger

log = get_logger("ingress")

ERROR_BACKOFF = 0.1  # seconds to wait after a failed read


class IngressAdapter:
    source: Source

    def __init__(self, channel: EventChannel, stop: threading.Event, error_backoff: float = ERROR_BACKOFF):
        self.channel = channel
        self.stop = stop
        self.error_backoff = error_backoff
        self.read_failed = False
        self._thread: Optional[threading.Thread] = None

    def read_event(self) -> Event:
        raise NotImplementedError

    def poll_once(self) -> Event:
        """Read one item from the source and turn it into an event."""
        self.read_failed = False
        try:
            return self.read_event()
        except MalformedFrame as e:
            return IngressError(str(e), self.source)
        except OSError as e:
            self.read_failed = True
            return IngressError(f"read failed: {e}", self.source)

    def _loop(self) -> None:
        log.debug(f"{self.source.value} reader started")
        while not self.stop.is_set():
            event = self.poll_once()
            if self.stop.is_set():
                break
            if not self.channel.put(event, self.stop):
                break
            if self.read_failed:
                self.stop.wait(self.error_backoff)
        log.debug(f"{self.source.value} reader stopped")

    def start(self) -> None:
        self._thread = threading.Thread(target=self._loop, name=f"ingress-{self.source.value}", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class LocalIngress(IngressAdapter):
    source = Source.LOCAL

    def __init__(self, link, channel: EventChannel, stop: threading.Event, **kwargs):
        super().__init__(channel, stop, **kwargs)
        self.link = link

    def read_event(self) -> Event:
        raw = self.link.read_frame()
        return LocalFrame(EthernetFrame.from_bytes(raw))


class RemoteIngress(IngressAdapter):
    source = Source.REMOTE

    def __init__(self, transport, channel: EventChannel, stop: threading.Event, **kwargs):
        super().__init__(channel, stop, **kwargs)
        self.transport = transport

    def read_event(self) -> Event:
        raw, addr = self.transport.read_datagram()
        try:
            frame = EthernetFrame.from_bytes(raw)
        except MalformedFrame as e:
            raise MalformedFrame(f"{format_endpoint(addr)}: {e}") from e
        return RemoteFrame(frame, addr)
