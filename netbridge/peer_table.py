# peer_table.py
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .events import Endpoint

SWEEP_INTERVAL = 30.0  # seconds between staleness checks
STALE_AFTER = 60.0  # seconds of silence before a peer is forgotten


@dataclass
class PeerEntry:
    endpoint: Endpoint
    last_activity: float


class PeerTable:
    """MAC -> (remote endpoint, last seen) learned from remote traffic.

    Not thread-safe. Owned by the forwarding engine's loop; nothing else holds
    a reference to it.
    """

    def __init__(self):
        self.table: Dict[str, PeerEntry] = {}

    def learn(self, mac: str, endpoint: Endpoint, now: float) -> bool:
        """Record a sighting of ``mac`` at ``endpoint``. Returns True for a new MAC."""
        is_new = mac not in self.table
        self.table[mac] = PeerEntry(endpoint, now)
        return is_new

    def lookup(self, mac: str) -> Optional[Endpoint]:
        entry = self.table.get(mac)
        if entry is None:
            return None
        return entry.endpoint

    def all_endpoints(self) -> List[Endpoint]:
        return [entry.endpoint for entry in self.table.values()]

    def sweep(self, now: float, stale_after: float = STALE_AFTER) -> List[str]:
        """Drop every entry silent for at least ``stale_after`` seconds."""
        to_delete = [mac for mac, entry in self.table.items() if now - entry.last_activity >= stale_after]
        for mac in to_delete:
            del self.table[mac]
        return to_delete

    def entries(self) -> List[Tuple[str, Endpoint]]:
        return [(mac, entry.endpoint) for mac, entry in self.table.items()]

    def __len__(self) -> int:
        return len(self.table)

    def __contains__(self, mac: str) -> bool:
        return mac in self.table
