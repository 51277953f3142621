"""
Configuration Resolver Tests

Covers the Device and WireGuard state machines: which gaps are remediated by a
control plane fetch and which end in a fatal state.
"""

import pytest
from unittest.mock import Mock, patch

from rdagent.agent.client import ControlPlaneClient
from rdagent.agent.resolver import ConfigResolver, ProvisionedConfig, ResolutionState
from rdagent.agent.store import load_entity
from rdagent.schemas.models import Device, WireGuard
from rdagent.utils.exceptions import (
    DecodeError,
    NetworkError,
    ResolutionError,
    ServerError,
)

from conftest import DEVICE_UUID


@pytest.fixture
def client():
    return Mock(spec=ControlPlaneClient)


@pytest.fixture
def make_resolver(tmp_path, client):
    def _make(**kwargs):
        options = dict(
            client=client,
            device_file=str(tmp_path / "device.yaml"),
            wireguard_file=str(tmp_path / "wireguard.yaml"),
            wireguard_conf_file=str(tmp_path / "rd0.conf"),
        )
        options.update(kwargs)
        return ConfigResolver(**options)
    return _make


# === Device ===

class TestDeviceResolution:

    def test_valid_device_resolves_without_fetch(self, make_resolver, client, write_yaml, device_doc):
        write_yaml("device.yaml", device_doc)
        resolver = make_resolver()

        device = resolver.resolve_device()

        assert device == Device(**device_doc)
        assert resolver.device_machine.state is ResolutionState.RESOLVED
        client.fetch.assert_not_called()

    def test_missing_document_is_fatal(self, make_resolver, client):
        resolver = make_resolver()
        with pytest.raises(ResolutionError):
            resolver.resolve_device()
        assert resolver.device_machine.state is ResolutionState.FATAL
        client.fetch.assert_not_called()

    def test_undecodable_document_is_fatal(self, make_resolver, tmp_path):
        (tmp_path / "device.yaml").write_text("- not\n- a mapping\n")
        resolver = make_resolver()
        with pytest.raises(ResolutionError) as exc_info:
            resolver.resolve_device()
        assert isinstance(exc_info.value.__cause__, DecodeError)

    def test_non_utf8_document_is_fatal(self, make_resolver, client, tmp_path):
        (tmp_path / "device.yaml").write_bytes(b"\xff")
        resolver = make_resolver()
        with pytest.raises(ResolutionError) as exc_info:
            resolver.resolve_device()
        assert isinstance(exc_info.value.__cause__, DecodeError)
        assert resolver.device_machine.state is ResolutionState.FATAL
        client.fetch.assert_not_called()

    @pytest.mark.parametrize("overrides", [
        {"fleet_uuid": ""},
        {"fleet_uuid": "", "uuid": ""},
        {"fleet_uuid": "", "api_url": ""},
        {"fleet_uuid": "", "created_at": 0, "uuid": ""},
    ])
    def test_missing_fleet_is_fatal_and_never_fetches(
        self, make_resolver, client, write_yaml, device_doc, overrides
    ):
        device_doc.update(overrides)
        write_yaml("device.yaml", device_doc)
        resolver = make_resolver()

        with pytest.raises(ResolutionError):
            resolver.resolve_device()

        assert resolver.device_machine.state is ResolutionState.FATAL
        client.fetch.assert_not_called()

    def test_missing_uuid_fetches_once(self, make_resolver, client, write_yaml, device_doc):
        partial = dict(device_doc, uuid="")
        write_yaml("device.yaml", partial)
        client.fetch.return_value = Device(**device_doc)
        resolver = make_resolver()

        device = resolver.resolve_device()

        client.fetch.assert_called_once_with(Device(**partial))
        assert device.uuid == DEVICE_UUID
        assert resolver.device_machine.state is ResolutionState.RESOLVED

    def test_fetched_device_is_not_revalidated(self, make_resolver, client, write_yaml, device_doc):
        write_yaml("device.yaml", dict(device_doc, uuid=""))
        incomplete = Device(uuid=DEVICE_UUID, fleet_uuid="fleet-42")
        client.fetch.return_value = incomplete

        assert make_resolver().resolve_device() is incomplete

    @pytest.mark.parametrize("error", [
        NetworkError("refused"),
        ServerError("boom", status_code=500),
        DecodeError("garbage"),
    ])
    def test_failed_fetch_is_fatal(self, make_resolver, client, write_yaml, device_doc, error):
        write_yaml("device.yaml", dict(device_doc, uuid=""))
        client.fetch.side_effect = error
        resolver = make_resolver()

        with pytest.raises(ResolutionError) as exc_info:
            resolver.resolve_device()

        assert exc_info.value.__cause__ is error
        assert resolver.device_machine.state is ResolutionState.FATAL
        client.fetch.assert_called_once()

    @pytest.mark.parametrize("overrides", [
        {"created_at": 0},
        {"api_url": ""},
        {"file": ""},
    ])
    def test_other_gaps_are_fatal(self, make_resolver, client, write_yaml, device_doc, overrides):
        write_yaml("device.yaml", dict(device_doc, **overrides))
        resolver = make_resolver()

        with pytest.raises(ResolutionError, match="Unhandled"):
            resolver.resolve_device()
        client.fetch.assert_not_called()


# === WireGuard ===

class TestWireGuardResolution:

    def test_valid_document_resolves_and_is_stamped(self, make_resolver, client, write_yaml, device_doc, wireguard_doc):
        wireguard_doc["device_uuid"] = "stale"
        write_yaml("wireguard.yaml", wireguard_doc)
        resolver = make_resolver()

        wireguard = resolver.resolve_wireguard(Device(**device_doc))

        assert wireguard.device_uuid == DEVICE_UUID
        assert wireguard.peers == WireGuard(**wireguard_doc).peers
        assert resolver.wireguard_machine.state is ResolutionState.RESOLVED
        client.fetch.assert_not_called()

    def test_empty_peers_is_fatal(self, make_resolver, client, write_yaml, device_doc, wireguard_doc):
        wireguard_doc["peers"] = []
        write_yaml("wireguard.yaml", wireguard_doc)
        resolver = make_resolver()

        with pytest.raises(ResolutionError, match="Peers is not set"):
            resolver.resolve_wireguard(Device(**device_doc))

        assert resolver.wireguard_machine.state is ResolutionState.FATAL
        client.fetch.assert_not_called()

    def test_first_boot_fetches_and_saves(self, make_resolver, client, tmp_path, device_doc, wireguard_doc):
        client.fetch.return_value = WireGuard(**wireguard_doc)
        resolver = make_resolver()
        device = Device(**device_doc)

        wireguard = resolver.resolve_wireguard(device)

        seed = client.fetch.call_args[0][0]
        assert seed.created_at == device.created_at
        assert seed.device_uuid == device.uuid
        assert seed.api_url == "https://api.example.com/device/wireguard"
        assert seed.file == str(tmp_path / "wireguard.yaml")
        assert seed.wireguard_file == str(tmp_path / "rd0.conf")
        assert seed.peers == []

        saved = load_entity(WireGuard, tmp_path / "wireguard.yaml")
        assert saved == WireGuard(**wireguard_doc)
        assert wireguard.device_uuid == device.uuid
        assert resolver.wireguard_machine.state is ResolutionState.RESOLVED

    def test_configured_wireguard_api_url(self, make_resolver, client, device_doc, wireguard_doc):
        client.fetch.return_value = WireGuard(**wireguard_doc)
        make_resolver(wireguard_api_url="https://peers.example.com/v1").resolve_wireguard(Device(**device_doc))
        assert client.fetch.call_args[0][0].api_url == "https://peers.example.com/v1"

    def test_corrupt_document_is_refetched(self, make_resolver, client, tmp_path, device_doc, wireguard_doc):
        (tmp_path / "wireguard.yaml").write_text("peers: {broken")
        client.fetch.return_value = WireGuard(**wireguard_doc)

        make_resolver().resolve_wireguard(Device(**device_doc))

        client.fetch.assert_called_once()

    def test_non_utf8_document_is_refetched(self, make_resolver, client, tmp_path, device_doc, wireguard_doc):
        (tmp_path / "wireguard.yaml").write_bytes(b"peers: \xff\n")
        client.fetch.return_value = WireGuard(**wireguard_doc)

        wireguard = make_resolver().resolve_wireguard(Device(**device_doc))

        client.fetch.assert_called_once()
        assert wireguard.peers == WireGuard(**wireguard_doc).peers

    def test_failed_fetch_is_fatal(self, make_resolver, client, tmp_path, device_doc):
        client.fetch.side_effect = ServerError("nope", status_code=404)
        resolver = make_resolver()

        with pytest.raises(ResolutionError):
            resolver.resolve_wireguard(Device(**device_doc))

        assert resolver.wireguard_machine.state is ResolutionState.FATAL
        assert not (tmp_path / "wireguard.yaml").exists()

    def test_failed_save_is_fatal(self, make_resolver, client, tmp_path, device_doc, wireguard_doc):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        client.fetch.return_value = WireGuard(**wireguard_doc)
        resolver = make_resolver(wireguard_file=str(blocker / "wireguard.yaml"))

        with pytest.raises(ResolutionError, match="Unable to save"):
            resolver.resolve_wireguard(Device(**device_doc))
        assert resolver.wireguard_machine.state is ResolutionState.FATAL


# === Both ===

def test_resolve_returns_frozen_pair(make_resolver, write_yaml, device_doc, wireguard_doc):
    write_yaml("device.yaml", device_doc)
    write_yaml("wireguard.yaml", wireguard_doc)

    config = make_resolver().resolve()

    assert isinstance(config, ProvisionedConfig)
    assert config.device.uuid == config.wireguard.device_uuid
    with pytest.raises(AttributeError):
        config.device = Device()


def test_wireguard_is_not_attempted_after_device_failure(make_resolver, client, write_yaml, device_doc, wireguard_doc):
    write_yaml("device.yaml", dict(device_doc, fleet_uuid=""))
    write_yaml("wireguard.yaml", wireguard_doc)
    resolver = make_resolver()

    with pytest.raises(ResolutionError):
        resolver.resolve()

    assert resolver.wireguard_machine.state is ResolutionState.LOADING
    client.fetch.assert_not_called()


def test_resolved_records_are_logged_with_structured_data(make_resolver, write_yaml, device_doc, wireguard_doc):
    write_yaml("device.yaml", device_doc)
    write_yaml("wireguard.yaml", wireguard_doc)

    with patch("rdagent.agent.resolver.logger") as mock_logger:
        make_resolver().resolve()

    extras = [c.kwargs["extra"]["extra_data"] for c in mock_logger.info.call_args_list if "extra" in c.kwargs]
    assert extras[0]["fleet_uuid"] == device_doc["fleet_uuid"]
    assert extras[1]["interface"]["private_key"] == wireguard_doc["interface"]["private_key"]


def test_close_releases_client(make_resolver, client):
    make_resolver().close()
    client.close.assert_called_once()
