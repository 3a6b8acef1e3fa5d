"""Ports (interfaces) used by the notifier orchestrator.

Ports define the minimal contract for delivery adapters so the orchestrator
can be exercised with a fake client in tests and a pooled HTTP client in
production.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Protocol


class SerializableMessage(Protocol):
    """Anything that can be rendered to its JSON wire form."""

    def to_dict(self) -> dict[str, Any]:
        ...


class MessageDeliveryPort(Protocol):
    """Delivery operation required by the orchestrator.

    Implementations raise ``DeliveryError`` on any failure.
    """

    async def send(
        self,
        webhook_url: str,
        message: SerializableMessage,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        ...
