"""
Entity Schemas

Defines the two entities the agent resolves at bootstrap: the Device identity
and the WireGuard peer configuration.

Every field has a zero value (0, "", [] or None) so that a partially written
document always loads; completeness is checked separately by
``rdagent.schemas.validation``. Documents are written with snake_case keys and
camelCase keys are accepted on input.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _null_is_unset(cls, data):
        # `uuid:` with no value in YAML loads as None; treat it as absent.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# === Device Identity ===

class Device(_Document):
    """Identity record of this device within its fleet."""
    created_at: int = 0
    uuid: str = ""
    fleet_uuid: str = ""
    api_url: str = ""
    file: str = ""

    def describe(self) -> str:
        return f"uuid: {self.uuid}, fleet: {self.fleet_uuid}, api_url: {self.api_url}"


# === WireGuard Peer Configuration ===

class Interface(_Document):
    """The local end of the tunnel."""
    private_key: str = ""
    address: str = ""  # CIDR, e.g. "10.8.0.2/32"
    listen_port: Optional[int] = Field(default=None, ge=0, le=65535)


class Peer(_Document):
    """A remote end of the tunnel. The first peer is the hub."""
    public_key: str = ""
    allowed_ips: List[str] = Field(default_factory=list)
    endpoint: Optional[str] = None  # "host:port", resolved by the daemon

    @field_validator("allowed_ips")
    @classmethod
    def _drop_blank_ips(cls, value: List[str]) -> List[str]:
        # A blank entry cannot be written to AllowedIPs and read back.
        return [ip.strip() for ip in value if ip.strip()]


class WireGuard(_Document):
    """
    Peer configuration for the tunnel daemon.

    ``file`` is where this structured document lives; ``wireguard_file`` is
    the derived native ``.conf`` consumed by wg-quick.
    """
    created_at: int = 0
    uuid: str = ""
    device_uuid: str = ""
    interface: Interface = Field(default_factory=Interface)
    peers: List[Peer] = Field(default_factory=list)
    api_url: str = ""
    file: str = ""
    wireguard_file: str = ""

    def describe(self) -> str:
        hub = self.peers[0].endpoint if self.peers else None
        return (
            f"device: {self.device_uuid}, address: {self.interface.address}, "
            f"peers: {len(self.peers)}, hub: {hub}, conf: {self.wireguard_file}"
        )
