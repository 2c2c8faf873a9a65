# ethernet.py
import struct
from dataclasses import dataclass

from scapy.all import Ether

from .errors import MalformedFrame

ETH_ALEN = 6
ETH_HEADER_LEN = 14
MAX_FRAME_LEN = 65535
BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"

_ETH = struct.Struct("!6s6sH")


def mac_bytes_to_str(b: bytes) -> str:
    return ":".join(f"{x:02x}" for x in b)


def mac_str_to_bytes(s: str) -> bytes:
    parts = s.split(":")
    if len(parts) != ETH_ALEN:
        raise ValueError(f"not a MAC address: {s!r}")
    return bytes(int(x, 16) for x in parts)


@dataclass(frozen=True)
class EthernetFrame:
    """
    A validated Ethernet frame. ``data`` is the frame exactly as it was read
    and is what gets forwarded:
    +-----------------+-----------------+------------+----------+
    | 6B dst_mac      | 6B src_mac      | 2B type    | payload  |
    +-----------------+-----------------+------------+----------+
    """

    data: bytes
    dst_mac: str
    src_mac: str
    eth_type: int

    @classmethod
    def from_bytes(cls, raw: bytes) -> "EthernetFrame":
        if len(raw) < ETH_HEADER_LEN:
            raise MalformedFrame(f"frame too short ({len(raw)} bytes)")
        dst, src, eth_type = _ETH.unpack_from(raw, 0)
        return cls(bytes(raw), mac_bytes_to_str(dst), mac_bytes_to_str(src), eth_type)

    @property
    def is_broadcast(self) -> bool:
        return self.dst_mac == BROADCAST_MAC

    def describe(self) -> str:
        return Ether(self.data).summary()

    def __len__(self) -> int:
        return len(self.data)
