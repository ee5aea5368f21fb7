"""DeliveryChannel protocol: interface for outbound message delivery."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class DeliveryChannel(Protocol):
    """Protocol for platforms that need replies pushed explicitly."""

    @property
    def name(self) -> str:
        """Unique channel identifier (e.g. 'whatsapp')."""
        ...

    async def send(self, to: str, message: str) -> bool:
        """Send a plain text message. Returns True on success."""
        ...
