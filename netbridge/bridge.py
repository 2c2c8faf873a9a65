# bridge.py
import threading
import time
from typing import Callable, Optional

from werkzeug.serving import BaseWSGIServer

from .channel import EventChannel
from .config import BridgeConfig
from .engine import ForwardingEngine
from .ingress import LocalIngress, RemoteIngress
from .log import get_logger
from .status import BridgeStatus, serve_api

log = get_logger("bridge")


class Bridge:
    """Wires a local link and a UDP transport to one forwarding engine."""

    def __init__(self, config: BridgeConfig, link, transport, clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.link = link
        self.transport = transport

        self.stop_event = threading.Event()
        self.channel = EventChannel()
        self.status = BridgeStatus(interface=config.interface, mode=config.mode)
        self.engine = ForwardingEngine(
            link,
            transport,
            self.channel,
            clock=clock,
            sweep_interval=config.sweep_interval,
            stale_after=config.stale_after,
            status=self.status,
        )
        self.adapters = [
            LocalIngress(link, self.channel, self.stop_event),
            RemoteIngress(transport, self.channel, self.stop_event),
        ]
        self.api_server: Optional[BaseWSGIServer] = None

    def start(self) -> None:
        # the API binds first so a busy port aborts before any reader runs
        if self.config.api_port is not None:
            self.api_server = serve_api(self.status, self.config.api_host, self.config.api_port)
            log.info(f"REST API on {self.config.api_host}:{self.api_server.server_port}")
        for adapter in self.adapters:
            adapter.start()

    def run(self) -> None:
        self.engine.run()

    def stop(self) -> None:
        self.stop_event.set()
        self.engine.stop()

    def close(self) -> None:
        self.stop()
        if self.api_server is not None:
            self.api_server.shutdown()
            self.api_server.server_close()
            self.api_server = None
        self.link.close()
        self.transport.close()
        for adapter in self.adapters:
            adapter.join(timeout=1.0)
