# interface.py
#
# Local link endpoints. Both kinds expose the same three calls to the bridge:
#   read_frame() -> bytes      (blocking)
#   write_frame(bytes)
#   close()
import fcntl
import os
import socket
import struct

from scapy.all import get_if_hwaddr, get_if_list

from .errors import LinkError
from .ethernet import MAX_FRAME_LEN
from .log import get_logger

log = get_logger("interface")

TUN_DEVICE = "/dev/net/tun"
TUNSETIFF = 0x400454CA
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16

ETH_P_ALL = 0x0003
PACKET_OUTGOING = 4

LINK_MODES = ("tap", "raw")


class TapLink:
    """A tap device without packet info: every read/write is exactly one frame."""

    def __init__(self, name: str, device: str = TUN_DEVICE):
        if len(name.encode()) >= IFNAMSIZ:
            raise LinkError(f"interface name too long: {name}")
        self.name = name
        self.fd = os.open(device, os.O_RDWR)
        try:
            ifr = struct.pack("16sH22s", name.encode(), IFF_TAP | IFF_NO_PI, b"\x00" * 22)
            fcntl.ioctl(self.fd, TUNSETIFF, ifr)
        except OSError:
            os.close(self.fd)
            raise

    def read_frame(self) -> bytes:
        return os.read(self.fd, MAX_FRAME_LEN)

    def write_frame(self, frame: bytes) -> None:
        os.write(self.fd, frame)

    def close(self) -> None:
        try:
            os.close(self.fd)
        except OSError:
            pass


class RawLink:
    """AF_PACKET capture on an existing interface."""

    def __init__(self, name: str):
        if name not in get_if_list():
            raise LinkError(f"no such interface: {name}")
        self.name = name
        self.sock = socket.socket(socket.AF_PACKET, socket.SOCK_RAW, socket.htons(ETH_P_ALL))
        try:
            self.sock.bind((name, 0))
        except OSError:
            self.sock.close()
            raise
        log.info(f"raw capture on {name} (MAC={get_if_hwaddr(name)})")

    def read_frame(self) -> bytes:
        while True:
            raw, addr = self.sock.recvfrom(MAX_FRAME_LEN)
            # addr: (ifname, proto, pkttype, hatype, addr)
            # skip our own transmissions, including frames the bridge injected
            if len(addr) >= 3 and addr[2] == PACKET_OUTGOING:
                continue
            return raw

    def write_frame(self, frame: bytes) -> None:
        self.sock.send(frame)

    def close(self) -> None:
        self.sock.close()


def open_link(name: str, mode: str = "tap"):
    if mode not in LINK_MODES:
        raise LinkError(f"unknown link mode: {mode}")
    try:
        if mode == "tap":
            link = TapLink(name)
        else:
            link = RawLink(name)
    except OSError as e:
        raise LinkError(f"create {mode} interface {name}: {e}") from e
    log.info(f"local link {name} ({mode}) ready")
    return link
