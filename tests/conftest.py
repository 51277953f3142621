"""
Pytest configuration and fixtures.

This file ensures proper path setup for imports and provides sample
Device/WireGuard documents.
"""

import sys
from pathlib import Path

import pytest
import yaml

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


DEVICE_UUID = "7b0c5a8e-2f7d-4c1e-9a43-5d1e0f6b2c9a"
WIREGUARD_UUID = "c3f1d2a4-8b6e-4f0a-b1c2-3d4e5f6a7b8c"


@pytest.fixture
def device_doc(tmp_path):
    return {
        "created_at": 1700000000,
        "uuid": DEVICE_UUID,
        "fleet_uuid": "fleet-42",
        "api_url": "https://api.example.com/device",
        "file": str(tmp_path / "device.yaml"),
    }


@pytest.fixture
def wireguard_doc(tmp_path):
    return {
        "created_at": 1700000000,
        "uuid": WIREGUARD_UUID,
        "device_uuid": DEVICE_UUID,
        "interface": {
            "private_key": "yAnz5TF+lXXJte14tji3zlMNq+hd2rYUIgJBgB3fBmk=",
            "address": "10.8.0.2/32",
            "listen_port": 51820,
        },
        "peers": [
            {
                "public_key": "xTIBA5rboUvnH4htodjb6e697QjLERt1NAB4mZqp8Dg=",
                "allowed_ips": ["10.8.0.1/32", "10.8.0.0/24"],
                "endpoint": "hub.example.com:51820",
            }
        ],
        "api_url": "https://api.example.com/wireguard",
        "file": str(tmp_path / "wireguard.yaml"),
        "wireguard_file": str(tmp_path / "rd0.conf"),
    }


@pytest.fixture
def write_yaml(tmp_path):
    """Write a mapping to a YAML file under tmp_path and return its path."""
    def _write(name, data):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return path
    return _write
