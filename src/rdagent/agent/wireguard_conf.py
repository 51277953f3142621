"""
WireGuard Native Config Codec

Maps the structured Interface/Peer model to and from the ini-like ``.conf``
format read by wg-quick:

    [Interface]
    PrivateKey = <key>
    Address = 10.8.0.2/32
    ListenPort = 51820

    [Peer]
    PublicKey = <key>
    AllowedIPs = 10.8.0.1/32,10.8.0.0/24
    Endpoint = hub.example.com:51820

Decoding never fails. Unknown directives are skipped so that options added
by hand (DNS, PersistentKeepalive, ...) do not break parsing, and fields that
never appear keep their zero value.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..schemas.models import Interface, Peer, WireGuard
from ..utils.exceptions import ConfigurationError
from ..utils.files import atomic_write
from ..utils.logging import get_logger

logger = get_logger(__name__)

INTERFACE_HEADER = "[Interface]"
PEER_HEADER = "[Peer]"


# ---------- Encoding ----------

def encode(interface: Interface, peers: Sequence[Peer]) -> str:
    lines = [
        INTERFACE_HEADER,
        f"PrivateKey = {interface.private_key}",
        f"Address = {interface.address}",
    ]
    if interface.listen_port is not None:
        lines.append(f"ListenPort = {interface.listen_port}")

    for peer in peers:
        lines.append("")
        lines.append(PEER_HEADER)
        lines.append(f"PublicKey = {peer.public_key}")
        lines.append(f"AllowedIPs = {','.join(peer.allowed_ips)}")
        if peer.endpoint is not None:
            lines.append(f"Endpoint = {peer.endpoint}")

    return "\n".join(lines) + "\n"


# ---------- Decoding ----------

def _parse_port(value: str) -> Optional[int]:
    try:
        port = int(value)
    except ValueError:
        return None
    if 0 <= port <= 65535:
        return port
    return None


def _assign_interface(interface: Interface, key: str, value: str) -> None:
    if key == "privatekey":
        interface.private_key = value
    elif key == "address":
        interface.address = value
    elif key == "listenport":
        interface.listen_port = _parse_port(value)


def _assign_peer(peer: Peer, key: str, value: str) -> None:
    if key == "publickey":
        peer.public_key = value
    elif key == "allowedips":
        peer.allowed_ips = [ip.strip() for ip in value.split(",") if ip.strip()]
    elif key == "endpoint":
        peer.endpoint = value


def decode(text: str) -> Tuple[Interface, List[Peer]]:
    interface = Interface()
    peers: List[Peer] = []
    current = None  # Interface, Peer, or None before the first header

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if line == INTERFACE_HEADER:
            current = interface
            continue
        if line.startswith(PEER_HEADER):
            current = Peer()
            peers.append(current)
            continue
        if line.startswith("["):
            # Unknown section; its keys belong to nobody.
            current = None
            continue
        if current is None or "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()
        if current is interface:
            _assign_interface(interface, key, value)
        else:
            _assign_peer(current, key, value)

    return interface, peers


# ---------- Files ----------

def write_conf(wireguard: WireGuard) -> Path:
    """
    Write the native config for ``wireguard`` to its ``wireguard_file``.
    The file holds the private key, so it is created with mode 0600.
    """
    if not wireguard.wireguard_file:
        raise ConfigurationError("WireGuard native config path is not set")

    path = Path(wireguard.wireguard_file)
    conf = encode(wireguard.interface, wireguard.peers)
    try:
        atomic_write(path, conf, mode=0o600)
    except OSError as e:
        raise ConfigurationError(f"Unable to write WireGuard configuration {path}: {e}") from e

    logger.info(f"Wrote WireGuard configuration to {path}")
    return path


def load_conf(wireguard: WireGuard, path: Union[str, Path, None] = None) -> WireGuard:
    """
    Return a copy of ``wireguard`` whose interface and peers come from the
    native config at ``path`` (default: ``wireguard.wireguard_file``).
    """
    path = Path(path or wireguard.wireguard_file)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Unable to read WireGuard configuration {path}: {e}") from e

    interface, peers = decode(text)
    return wireguard.model_copy(update={"interface": interface, "peers": peers})
