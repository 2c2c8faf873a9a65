# status.py
#
# Read-only view of the bridge for the REST API. The engine pushes counters
# and peer snapshots here; the API thread only ever sees copies.
import threading
from typing import Dict, List, Tuple

from flask import Flask, jsonify
from werkzeug.serving import BaseWSGIServer, make_server

from .errors import ApiError
from .events import Endpoint

STAT_NAMES = (
    "rx_local",
    "rx_remote",
    "tx_local",
    "tx_remote",
    "tx_errors",
    "ingress_errors",
    "dropped_unknown",
    "peers_learned",
    "peers_evicted",
    "sweeps",
)


class BridgeStatus:
    def __init__(self, interface: str = "", mode: str = ""):
        self.interface = interface
        self.mode = mode
        self._lock = threading.Lock()
        self._stats: Dict[str, int] = {name: 0 for name in STAT_NAMES}
        self._peers: List[Tuple[str, Endpoint]] = []

    def count(self, name: str, n: int = 1) -> None:
        with self._lock:
            self._stats[name] += n

    def publish_peers(self, peers: List[Tuple[str, Endpoint]]) -> None:
        with self._lock:
            self._peers = list(peers)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._stats)

    def peers(self) -> List[Tuple[str, Endpoint]]:
        with self._lock:
            return list(self._peers)


def create_api(status: BridgeStatus) -> Flask:
    app = Flask(__name__)

    @app.get("/health")
    def health():
        return {
            "ok": True,
            "interface": status.interface,
            "mode": status.mode,
            "peers": len(status.peers()),
        }

    @app.get("/stats")
    def stats():
        return status.stats()

    @app.get("/peers")
    def peers():
        return jsonify([{"mac": mac, "ip": ip, "port": port} for mac, (ip, port) in status.peers()])

    return app


def serve_api(status: BridgeStatus, host: str, port: int) -> BaseWSGIServer:
    """Bind the API in the calling thread, then serve it from a daemon thread."""
    app = create_api(status)
    try:
        server = make_server(host, port, app, threaded=True)
    except OSError as e:
        raise ApiError(f"bind status API {host}:{port}: {e}") from e
    except SystemExit:
        # werkzeug exits instead of raising when the address is taken
        raise ApiError(f"bind status API {host}:{port}: address unavailable") from None
    t = threading.Thread(target=server.serve_forever, name="status-api", daemon=True)
    t.start()
    return server
