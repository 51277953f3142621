"""
Validation Error Taxonomy

Closed set of reasons a loaded entity is incomplete, and the checks that
produce them.

Checks run in a fixed order and stop at the first unmet one, so the result is
a single deterministic diagnosis. The resolver branches on that diagnosis,
which makes the order part of the contract: an empty Device is reported as
CreatedAtNotSet, a Device with only a timestamp as UuidNotSet.
"""

from enum import Enum
from typing import Union

from .models import Device, WireGuard
from ..utils.exceptions import NotSetError


class ValidationErrorKind(str, Enum):
    CREATED_AT_NOT_SET = "CreatedAtNotSet"
    UUID_NOT_SET = "UuidNotSet"
    FLEET_NOT_SET = "FleetNotSet"
    API_URL_NOT_SET = "ApiUrlNotSet"
    FILE_NOT_SET = "FileNotSet"
    PRIVATE_KEY_NOT_SET = "PrivateKeyNotSet"
    ADDRESS_NOT_SET = "AddressNotSet"
    PEERS_NOT_SET = "PeersNotSet"
    WIREGUARD_FILE_NOT_SET = "WireguardFileNotSet"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ValidationErrorKind.CREATED_AT_NOT_SET: "Created At is not set",
    ValidationErrorKind.UUID_NOT_SET: "UUID is not set",
    ValidationErrorKind.FLEET_NOT_SET: "Fleet is not set",
    ValidationErrorKind.API_URL_NOT_SET: "API URL is not set",
    ValidationErrorKind.FILE_NOT_SET: "File is not set",
    ValidationErrorKind.PRIVATE_KEY_NOT_SET: "Private Key is not set",
    ValidationErrorKind.ADDRESS_NOT_SET: "Address is not set",
    ValidationErrorKind.PEERS_NOT_SET: "Peers is not set",
    ValidationErrorKind.WIREGUARD_FILE_NOT_SET: "Wireguard File is not set",
}


def validate_device(device: Device) -> Device:
    """Return ``device`` if complete, else raise NotSetError for the first missing field."""
    if device.created_at == 0:
        raise NotSetError(ValidationErrorKind.CREATED_AT_NOT_SET)
    if not device.uuid:
        raise NotSetError(ValidationErrorKind.UUID_NOT_SET)
    if not device.fleet_uuid:
        raise NotSetError(ValidationErrorKind.FLEET_NOT_SET)
    if not device.api_url:
        raise NotSetError(ValidationErrorKind.API_URL_NOT_SET)
    if not device.file:
        raise NotSetError(ValidationErrorKind.FILE_NOT_SET)
    return device


def validate_wireguard(wireguard: WireGuard) -> WireGuard:
    """Return ``wireguard`` if complete, else raise NotSetError for the first missing field."""
    if wireguard.created_at == 0:
        raise NotSetError(ValidationErrorKind.CREATED_AT_NOT_SET)
    if not wireguard.interface.private_key:
        raise NotSetError(ValidationErrorKind.PRIVATE_KEY_NOT_SET)
    if not wireguard.interface.address:
        raise NotSetError(ValidationErrorKind.ADDRESS_NOT_SET)
    if not wireguard.peers:
        raise NotSetError(ValidationErrorKind.PEERS_NOT_SET)
    if not wireguard.api_url:
        raise NotSetError(ValidationErrorKind.API_URL_NOT_SET)
    if not wireguard.file:
        raise NotSetError(ValidationErrorKind.FILE_NOT_SET)
    if not wireguard.wireguard_file:
        raise NotSetError(ValidationErrorKind.WIREGUARD_FILE_NOT_SET)
    return wireguard


def validate(entity: Union[Device, WireGuard]) -> Union[Device, WireGuard]:
    if isinstance(entity, Device):
        return validate_device(entity)
    if isinstance(entity, WireGuard):
        return validate_wireguard(entity)
    raise TypeError(f"No validation defined for {type(entity).__name__}")
