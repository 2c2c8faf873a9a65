# engine.py
#
# Forwarding engine: the only consumer of the event channel and the only
# owner of the peer table.
#
#   RemoteFrame -> inject into the local link, learn src MAC -> endpoint
#   LocalFrame  -> broadcast: every known peer
#                  unicast:   the learned endpoint, or dropped if unknown
#   IngressError -> logged
import threading
import time
from typing import Callable, Dict, List, Optional

from .channel import EventChannel
from .events import Endpoint, Event, IngressError, LocalFrame, RemoteFrame, format_endpoint
from .log import TRACE, get_logger
from .peer_table import STALE_AFTER, SWEEP_INTERVAL, PeerTable
from .status import BridgeStatus

log = get_logger("engine")

IDLE_WAKEUP = 1.0  # seconds the loop waits for an event before re-checking stop/sweep


class ForwardingEngine:
    def __init__(
        self,
        link,
        transport,
        channel: EventChannel,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = SWEEP_INTERVAL,
        stale_after: float = STALE_AFTER,
        status: Optional[BridgeStatus] = None,
    ):
        self.link = link
        self.transport = transport
        self.channel = channel
        self.clock = clock
        self.sweep_interval = sweep_interval
        self.stale_after = stale_after
        self.status = status if status is not None else BridgeStatus()

        self.peers = PeerTable()
        self.last_sweep = clock()
        self._stop = threading.Event()

    # ---------- Loop ----------
    def run(self) -> None:
        log.info("forwarding engine started")
        while not self._stop.is_set():
            event = self.channel.get(timeout=IDLE_WAKEUP)
            if event is None:
                self.maybe_sweep(self.clock())
                continue
            self.handle(event)
        log.info("forwarding engine stopped")

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def handle(self, event: Event) -> None:
        now = self.clock()
        self.maybe_sweep(now)

        if isinstance(event, RemoteFrame):
            self._handle_remote(event, now)
        elif isinstance(event, LocalFrame):
            self._handle_local(event)
        elif isinstance(event, IngressError):
            self._count("ingress_errors")
            log.error(f"receive error ({event.source.value}): {event.cause}")
        else:
            raise TypeError(f"unexpected event {event!r}")

    # ---------- Eviction ----------
    def maybe_sweep(self, now: float) -> bool:
        if now - self.last_sweep < self.sweep_interval:
            return False
        self.last_sweep = now
        self._count("sweeps")
        evicted = self.peers.sweep(now, self.stale_after)
        if evicted:
            self._count("peers_evicted", len(evicted))
            log.debug(f"evicted stale peers: {', '.join(evicted)}")
            self._publish_peers()
        return True

    # ---------- Forwarding ----------
    def _handle_remote(self, event: RemoteFrame, now: float) -> None:
        frame, addr = event.frame, event.endpoint
        self._count("rx_remote")
        if log.isEnabledFor(TRACE):
            log.log(TRACE, f"IN {format_endpoint(addr)}: {frame.describe()}")

        try:
            self.link.write_frame(frame.data)
            self._count("tx_local")
        except OSError as e:
            self._count("tx_errors")
            log.warning(f"send packet error (local link): {e}")

        previous = self.peers.lookup(frame.src_mac)
        if self.peers.learn(frame.src_mac, addr, now):
            self._count("peers_learned")
            log.info(f"new peer: mac={frame.src_mac} endpoint={format_endpoint(addr)}")
            log.debug(f"peers: {[mac for mac, _ in self.peers.entries()]}")
            self._publish_peers()
        elif previous != addr:
            log.info(f"peer moved: mac={frame.src_mac} {format_endpoint(previous)} -> {format_endpoint(addr)}")
            self._publish_peers()

    def destinations(self, event: LocalFrame) -> List[Endpoint]:
        frame = event.frame
        if frame.is_broadcast:
            return self.peers.all_endpoints()
        endpoint = self.peers.lookup(frame.dst_mac)
        if endpoint is None:
            return []
        return [endpoint]

    def _handle_local(self, event: LocalFrame) -> None:
        frame = event.frame
        self._count("rx_local")
        if log.isEnabledFor(TRACE):
            log.log(TRACE, f"OUT: {frame.describe()}")

        endpoints = self.destinations(event)
        if not endpoints and not frame.is_broadcast:
            self._count("dropped_unknown")
            return

        for endpoint in endpoints:
            try:
                self.transport.write_datagram(frame.data, endpoint)
                self._count("tx_remote")
            except OSError as e:
                self._count("tx_errors")
                log.warning(f"send packet error ({format_endpoint(endpoint)}): {e}")

    # ---------- Status ----------
    @property
    def stats(self) -> Dict[str, int]:
        return self.status.stats()

    def _count(self, name: str, n: int = 1) -> None:
        self.status.count(name, n)

    def _publish_peers(self) -> None:
        self.status.publish_peers(self.peers.entries())
