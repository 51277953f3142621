"""
Agent Daemon

Runs the agent in two phases:

1. Bootstrap: privilege check, Device and WireGuard resolution, native
   config write, interface activation. Any failure here is fatal.
2. Heartbeat: announce liveness to the hub until the process is stopped.

The resolved records are frozen into a ProvisionedConfig at the end of
bootstrap and only read afterwards.
"""

import signal
from typing import Optional

from .heartbeat import HeartbeatTransmitter
from .resolver import ConfigResolver, ProvisionedConfig
from .system import bring_up_interface, interface_name, require_root
from .wireguard_conf import write_conf
from ..utils.config import settings
from ..utils.exceptions import RDAgentError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class AgentDaemon:
    """
    Main agent process.
    """

    def __init__(
        self,
        resolver: Optional[ConfigResolver] = None,
        interface: Optional[str] = None,
        wg_quick_bin: Optional[str] = None,
    ):
        self.resolver = resolver or ConfigResolver()
        self.interface = interface or settings.INTERFACE
        self.wg_quick_bin = wg_quick_bin
        self.config: Optional[ProvisionedConfig] = None
        self.transmitter: Optional[HeartbeatTransmitter] = None

    def bootstrap(self) -> ProvisionedConfig:
        capability = require_root()

        try:
            config = self.resolver.resolve()
        finally:
            self.resolver.close()
        device, wireguard = config.device, config.wireguard

        # Addressing errors must surface before the host is touched.
        self.transmitter = HeartbeatTransmitter(device, wireguard)

        path = write_conf(wireguard)
        bring_up_interface(
            capability,
            interface_name(str(path), self.interface),
            wg_quick_bin=self.wg_quick_bin,
        )

        logger.info(f"Using config file: {device.file}")
        logger.info(f"Using UUID: {device.uuid}")
        logger.info(f"Using fleet: {device.fleet_uuid}")
        logger.info(f"Using API URL: {device.api_url}")
        logger.info(f"Using Wireguard config file: {wireguard.wireguard_file}")
        logger.info(f"Using Device IP: {self.transmitter.target.bind_host}")
        logger.info(f"Using Hub IP: {self.transmitter.target.hub_host}")
        logger.info(f"Using Hub Port: {self.transmitter.target.hub_port}")

        self.config = config
        return config

    def start(self):
        """Bootstrap, then send heartbeats until stop() is called."""
        self.bootstrap()
        self.transmitter.run()

    def stop(self):
        logger.info("Stopping agent...")
        if self.transmitter:
            self.transmitter.stop()


def main() -> int:
    """Entry point. Returns the process exit status."""
    daemon = AgentDaemon()

    def _handle_exit(signum, frame):
        daemon.stop()

    signal.signal(signal.SIGTERM, _handle_exit)

    try:
        daemon.start()
    except RDAgentError as e:
        logger.critical(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        daemon.stop()
    return 0
