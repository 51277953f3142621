"""
Configuration Resolver

Bootstrap state machine that converges on a complete Device identity and a
complete WireGuard peer configuration before any network resource is opened.

Both entities go through the same states:

    LOADING -> VALIDATING -> RESOLVED
    LOADING | VALIDATING -> REMEDIATING -> RESOLVED
    any step -> FATAL

Remediation is a single control plane fetch. It is only attempted for the
gaps a fresh device is expected to have: a missing device UUID, or no local
WireGuard document yet. Everything else is fatal and raises ResolutionError.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .client import ControlPlaneClient
from .store import load_entity, save_entity
from ..schemas.models import Device, WireGuard
from ..schemas.validation import ValidationErrorKind, validate_device, validate_wireguard
from ..utils.config import settings
from ..utils.exceptions import (
    CommunicationError,
    DecodeError,
    NotSetError,
    ResolutionError,
    StoreError,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ResolutionState(str, Enum):
    LOADING = "loading"
    VALIDATING = "validating"
    REMEDIATING = "remediating"
    RESOLVED = "resolved"
    FATAL = "fatal"


class ResolutionMachine:
    """Tracks the state of one entity's resolution."""

    def __init__(self, entity: str):
        self.entity = entity
        self.state = ResolutionState.LOADING

    def advance(self, state: ResolutionState):
        logger.debug(f"{self.entity}: {self.state.value} -> {state.value}")
        self.state = state

    def fatal(self, message: str) -> ResolutionError:
        self.advance(ResolutionState.FATAL)
        logger.error(message)
        return ResolutionError(message)


@dataclass(frozen=True)
class ProvisionedConfig:
    """
    Resolved pair handed from bootstrap to the heartbeat phase.

    Only the pair is frozen. The models inside are read-only by convention:
    nothing after bootstrap assigns to them.
    """
    device: Device
    wireguard: WireGuard


class ConfigResolver:
    """
    Resolves the Device and WireGuard documents.

    The WireGuard phase needs a resolved Device: a freshly fetched peer
    configuration is stamped with the device's creation time and UUID.
    """

    def __init__(
        self,
        client: Optional[ControlPlaneClient] = None,
        device_file: Optional[str] = None,
        wireguard_file: Optional[str] = None,
        wireguard_conf_file: Optional[str] = None,
        wireguard_api_url: Optional[str] = None,
    ):
        self.client = client or ControlPlaneClient(timeout=settings.FETCH_TIMEOUT)
        self.device_file = device_file or settings.DEVICE_FILE
        self.wireguard_file = wireguard_file or settings.WIREGUARD_FILE
        self.wireguard_conf_file = wireguard_conf_file or settings.WIREGUARD_CONF_FILE
        self.wireguard_api_url = wireguard_api_url or settings.WIREGUARD_API_URL

        self.device_machine = ResolutionMachine("device")
        self.wireguard_machine = ResolutionMachine("wireguard")

    # ---------- Device ----------

    def resolve_device(self) -> Device:
        machine = self.device_machine = ResolutionMachine("device")

        try:
            device = load_entity(Device, self.device_file)
        except (StoreError, DecodeError) as e:
            raise machine.fatal(f"Unable to read configuration file: {e}") from e
        logger.info(f"Using device config file: {self.device_file}")

        machine.advance(ResolutionState.VALIDATING)
        try:
            validate_device(device)
        except NotSetError as e:
            return self._remediate_device(device, e.kind)

        machine.advance(ResolutionState.RESOLVED)
        logger.info(
            f"Device config validated: {device.describe()}",
            extra={"extra_data": device.model_dump(mode="json")},
        )
        return device

    def _remediate_device(self, device: Device, kind: ValidationErrorKind) -> Device:
        machine = self.device_machine

        # Business rule: no automatic remediation without a fleet. UuidNotSet
        # is diagnosed first, so the fleet is checked here for that case too.
        if kind is ValidationErrorKind.FLEET_NOT_SET or not device.fleet_uuid:
            raise machine.fatal(
                "Fleet not set in configuration file. Device does not know which "
                "fleet it belongs to. Cannot continue..."
            )

        if kind is ValidationErrorKind.UUID_NOT_SET:
            machine.advance(ResolutionState.REMEDIATING)
            logger.info("Device UUID not set in configuration file, fetching...")
            try:
                fetched = self.client.fetch(device)
            except (CommunicationError, DecodeError) as e:
                raise machine.fatal(f"Unable to fetch configuration: {e}") from e
            # The fetched record is taken as-is, without re-validation.
            machine.advance(ResolutionState.RESOLVED)
            logger.info(
            f"Successfully fetched configuration: {fetched.describe()}",
            extra={"extra_data": fetched.model_dump(mode="json")},
        )
            return fetched

        raise machine.fatal(f"Unhandled error validating configuration file: {kind.description}")

    # ---------- WireGuard ----------

    def new_wireguard(self, device: Device) -> WireGuard:
        """Seed record posted to the control plane on first boot."""
        api_url = self.wireguard_api_url or f"{device.api_url.rstrip('/')}/wireguard"
        return WireGuard(
            created_at=device.created_at,
            device_uuid=device.uuid,
            api_url=api_url,
            file=self.wireguard_file,
            wireguard_file=self.wireguard_conf_file,
        )

    def resolve_wireguard(self, device: Device) -> WireGuard:
        machine = self.wireguard_machine = ResolutionMachine("wireguard")

        try:
            wireguard = load_entity(WireGuard, self.wireguard_file)
        except (StoreError, DecodeError) as e:
            # Expected on first boot: there is no local peer configuration yet.
            logger.error(f"Unable to read WireGuard configuration file: {e}")
            wireguard = self._fetch_wireguard(device)
        else:
            logger.info("WireGuard config loaded successfully.")
            machine.advance(ResolutionState.VALIDATING)
            try:
                validate_wireguard(wireguard)
            except NotSetError as e:
                raise machine.fatal(
                    f"Invalid WireGuard configuration file {self.wireguard_file}: {e}"
                ) from e

        wireguard = wireguard.model_copy(update={"device_uuid": device.uuid})
        machine.advance(ResolutionState.RESOLVED)
        logger.info(
            f"WireGuard config resolved: {wireguard.describe()}",
            extra={"extra_data": wireguard.model_dump(mode="json")},
        )
        return wireguard

    def _fetch_wireguard(self, device: Device) -> WireGuard:
        machine = self.wireguard_machine
        machine.advance(ResolutionState.REMEDIATING)

        logger.info("Fetching new WireGuard configuration...")
        try:
            fetched = self.client.fetch(self.new_wireguard(device))
        except (CommunicationError, DecodeError) as e:
            raise machine.fatal(f"Unable to fetch new WireGuard configuration: {e}") from e
        logger.info("Successfully fetched new WireGuard configuration.")

        # Must be persisted before anything is activated.
        try:
            save_entity(fetched, self.wireguard_file)
        except StoreError as e:
            raise machine.fatal(f"Unable to save new WireGuard configuration: {e}") from e
        logger.info("Successfully saved new WireGuard configuration.")
        return fetched

    # ---------- Both ----------

    def resolve(self) -> ProvisionedConfig:
        device = self.resolve_device()
        wireguard = self.resolve_wireguard(device)
        return ProvisionedConfig(device=device, wireguard=wireguard)

    def close(self):
        self.client.close()
