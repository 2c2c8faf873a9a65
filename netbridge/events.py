# events.py
import enum
from dataclasses import dataclass
from typing import Tuple, Union

from .ethernet import EthernetFrame

# (ip, port) as returned by socket.recvfrom
Endpoint = Tuple[str, int]


class Source(enum.Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class LocalFrame:
    frame: EthernetFrame


@dataclass(frozen=True)
class RemoteFrame:
    frame: EthernetFrame
    endpoint: Endpoint


@dataclass(frozen=True)
class IngressError:
    cause: str
    source: Source


Event = Union[LocalFrame, RemoteFrame, IngressError]


def format_endpoint(endpoint: Endpoint) -> str:
    return f"{endpoint[0]}:{endpoint[1]}"
