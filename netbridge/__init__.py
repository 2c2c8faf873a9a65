"""Software Ethernet bridge: a local link tunnelled to UDP peers."""

__version__ = "0.1.0"
