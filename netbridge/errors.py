# errors.py


class BridgeError(Exception):
    pass


class StartupError(BridgeError):
    """Fatal: raised before the forwarding engine starts, ends the process."""


class ConfigError(StartupError):
    pass


class LinkError(StartupError):
    pass


class TransportError(StartupError):
    pass


class MalformedFrame(BridgeError, ValueError):
    """Bytes that cannot be read as an Ethernet frame."""


class ApiError(StartupError):
    pass
