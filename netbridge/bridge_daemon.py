# bridge_daemon.py
import signal
import sys
from typing import List, Optional

from .bridge import Bridge
from .config import parse_args
from .errors import StartupError
from .interface import open_link
from .log import get_logger, setup_logging
from .transport import UdpTransport

log = get_logger("daemon")


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = parse_args(argv)
        setup_logging(config.log_level)
    except (StartupError, ValueError) as e:
        print(f"netbridge: {e}", file=sys.stderr)
        return 1

    log.info(f"interface_name={config.interface} mode={config.mode}")
    link = transport = None
    try:
        link = open_link(config.interface, config.mode)
        transport = UdpTransport(config.host, config.port)
    except StartupError as e:
        log.error(str(e))
        if link is not None:
            link.close()
        return 1

    bridge = Bridge(config, link, transport)

    def on_signal(signum, frame):
        log.info(f"received {signal.Signals(signum).name}, stopping")
        bridge.stop()

    signal.signal(signal.SIGINT, on_signal)
    signal.signal(signal.SIGTERM, on_signal)

    try:
        try:
            bridge.start()
        except StartupError as e:
            log.error(str(e))
            return 1
        bridge.run()
    finally:
        bridge.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
