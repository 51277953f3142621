"""
Host Integration

Privilege precondition and tunnel activation through wg-quick.
"""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..utils.config import settings
from ..utils.exceptions import ActivationError, PrivilegeError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RootCapability:
    """Proof that the privilege check passed. Only require_root() creates one."""
    uid: int


def require_root() -> RootCapability:
    """
    Check once, at process entry, that we run as root.
    WireGuard interfaces cannot be configured otherwise.
    """
    uid = os.geteuid() if hasattr(os, "geteuid") else -1
    if uid != 0:
        raise PrivilegeError("This program must be run as root.")
    return RootCapability(uid=uid)


def interface_name(conf_path: str, override: Optional[str] = None) -> str:
    """wg-quick names the interface after the config file: /etc/wireguard/rd0.conf -> rd0."""
    return override or Path(conf_path).stem


def bring_up_interface(
    capability: RootCapability,
    interface: str,
    wg_quick_bin: Optional[str] = None,
    timeout: int = 60,
) -> None:
    """Run ``wg-quick up <interface>``; any failure is an ActivationError."""
    cmd = [wg_quick_bin or settings.WG_QUICK_BIN, "up", interface]
    logger.info(f"Bringing up interface {interface}: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ActivationError(f"Unable to run {cmd[0]}: {e}") from e

    if result.returncode != 0:
        logger.error(f"{cmd[0]} failed: {result.stderr}")
        raise ActivationError(
            f"{cmd[0]} up {interface} exited with status {result.returncode}: {result.stderr.strip()}"
        )
    logger.info(f"Interface {interface} is up")
