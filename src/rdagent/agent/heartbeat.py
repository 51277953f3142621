"""
Heartbeat Transmitter

Announces device liveness to the hub: binds a UDP socket on the device's
tunnel address and sends the 16 raw bytes of the device UUID to the hub
endpoint at a fixed interval, forever.

Retries use the same constant interval as the heartbeat itself, with no
backoff and no retry limit. The tunnel interface may come up some time after
the agent starts, and an unattended device must keep trying. Log output is
edge-triggered: one line when binding or sending starts failing, one when it
works again.
"""

import socket
import threading
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..schemas.models import Device, WireGuard
from ..utils.config import settings
from ..utils.exceptions import ConfigurationError, HeartbeatError, NoEndpointError, NoPeerError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class HeartbeatTarget:
    bind_host: str
    bind_port: int
    hub_host: str
    hub_port: int


def parse_endpoint(endpoint: str) -> Tuple[str, int]:
    """Split "host:port" or "[v6]:port"."""
    host, sep, port = endpoint.strip().rpartition(":")
    host = host.strip("[]")
    if not sep or not host:
        raise HeartbeatError(f"Invalid endpoint format: {endpoint!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise HeartbeatError(f"Invalid hub port format: {endpoint!r}") from None
    if not 0 < port_number <= 65535:
        raise HeartbeatError(f"Hub port out of range: {endpoint!r}")
    return host, port_number


def heartbeat_target(wireguard: WireGuard, port: Optional[int] = None) -> HeartbeatTarget:
    """
    Derive addressing from a resolved WireGuard record: the device address
    from the interface, the hub from the first peer's endpoint. The local port
    defaults to the hub port.
    """
    if not wireguard.peers:
        raise NoPeerError("WireGuard configuration has no peers; no hub to send heartbeats to")
    hub = wireguard.peers[0]
    if not hub.endpoint:
        raise NoEndpointError("First WireGuard peer has no endpoint; no hub to send heartbeats to")

    hub_host, hub_port = parse_endpoint(hub.endpoint)
    device_ip = wireguard.interface.address.split("/")[0].strip()
    if not device_ip:
        raise HeartbeatError("Invalid device IP format: interface address is empty")

    return HeartbeatTarget(
        bind_host=device_ip,
        bind_port=hub_port if port is None else port,
        hub_host=hub_host,
        hub_port=hub_port,
    )


def bind_udp(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    return sock


class HeartbeatTransmitter:
    """
    BINDING -> SENDING loop over one UDP socket.

    ``binder`` and ``sleep`` exist for tests; by default the interval wait is
    an Event wait so that ``stop()`` takes effect at the next tick.
    """

    def __init__(
        self,
        device: Device,
        wireguard: WireGuard,
        interval: Optional[float] = None,
        port: Optional[int] = None,
        binder: Optional[Callable[[str, int], socket.socket]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.target = heartbeat_target(
            wireguard, port if port is not None else settings.HEARTBEAT_PORT
        )
        try:
            self.device_uuid = uuid.UUID(device.uuid)
        except ValueError as e:
            raise ConfigurationError(f"Unable to parse UUID {device.uuid!r}: {e}") from e
        self.payload = self.device_uuid.bytes

        self.interval = settings.HEARTBEAT_INTERVAL if interval is None else interval
        self._binder = binder or bind_udp
        self._sleep = sleep or self._wait
        self._stop_event = threading.Event()

    def _wait(self, interval: float):
        self._stop_event.wait(timeout=interval)

    def stop(self):
        self._stop_event.set()

    def bind(self) -> Optional[socket.socket]:
        """Bind, retrying every interval until it works or stop() is called."""
        host, port = self.target.bind_host, self.target.bind_port
        logger.info(f"Creating UDP socket {host}:{port}")

        failing = False
        while not self._stop_event.is_set():
            try:
                sock = self._binder(host, port)
            except OSError as e:
                if not failing:
                    logger.warning(f"Unable to bind socket, retrying every {self.interval}s: {e}")
                    failing = True
                else:
                    logger.debug(f"Bind still failing: {e}")
                self._sleep(self.interval)
                continue
            logger.info(f"Bound socket to {host}:{port}")
            return sock
        return None

    def run(self):
        sock = self.bind()
        if sock is None:
            return

        hub = (self.target.hub_host, self.target.hub_port)
        logger.info(f"Sending heartbeat packet to {hub[0]}:{hub[1]}")

        healthy = None  # None until the first attempt
        try:
            while not self._stop_event.is_set():
                try:
                    sock.sendto(self.payload, hub)
                except OSError as e:
                    if healthy is not False:
                        logger.warning(f"Unable to send heartbeat packet, retrying every {self.interval}s: {e}")
                    healthy = False
                else:
                    if healthy is None:
                        logger.info(f"Successfully sent heartbeat packet with UUID: {self.device_uuid}")
                        logger.info(f"Sending heartbeat packet every {self.interval}s...")
                    elif healthy is False:
                        logger.info("Heartbeat recovered")
                    healthy = True
                self._sleep(self.interval)
        finally:
            sock.close()
