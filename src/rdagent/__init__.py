"""
rdagent: Edge Provisioning Agent

Resolves a device identity and a WireGuard peer configuration from local
documents or the fleet control plane, materializes the tunnel configuration
and announces device liveness to the hub.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
