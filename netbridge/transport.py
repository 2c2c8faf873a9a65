# transport.py
import errno
import socket
from typing import Tuple

from .errors import TransportError
from .ethernet import MAX_FRAME_LEN
from .events import Endpoint
from .log import get_logger

log = get_logger("transport")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8889


class UdpTransport:
    """UDP socket carrying raw Ethernet frames, one frame per datagram.

    The engine thread sends while the remote reader thread receives; plain
    datagram sockets allow that without extra locking.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.closed = False
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self.sock.bind((host, port))
        except OSError as e:
            self.sock.close()
            raise TransportError(f"bind udp socket {host}:{port}: {e}") from e
        log.info(f"listening on udp {host}:{self.address[1]}")

    @property
    def address(self) -> Endpoint:
        return self.sock.getsockname()

    def read_datagram(self) -> Tuple[bytes, Endpoint]:
        data, addr = self.sock.recvfrom(MAX_FRAME_LEN)
        if self.closed:
            raise OSError(errno.EBADF, "transport closed")
        return data, addr

    def write_datagram(self, data: bytes, endpoint: Endpoint) -> None:
        self.sock.sendto(data, endpoint)

    def close(self) -> None:
        self.closed = True
        # wakes a reader blocked in recvfrom; unconnected UDP reports ENOTCONN
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()
