from .models import Device, Interface, Peer, WireGuard
from .validation import ValidationErrorKind

__all__ = ["Device", "Interface", "Peer", "WireGuard", "ValidationErrorKind"]
