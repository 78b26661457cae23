"""Cross-domain relay: rate-signal monitor and delivery channel."""

from __future__ import annotations

from .channel import DeliveryChannel, Envelope
from .monitor import RelayMonitor

__all__ = ["DeliveryChannel", "Envelope", "RelayMonitor"]
