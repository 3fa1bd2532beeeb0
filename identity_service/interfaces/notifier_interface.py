"""
Notifier interface for outbound verification and reset messages.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class INotifier(Protocol):
    """Protocol for the outbound notification channel."""

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        timeout: Optional[float] = None
    ) -> bool:
        """
        Deliver a message.

        Args:
            to: Recipient address
            subject: Message subject
            html_body: HTML message body
            timeout: Seconds the caller is willing to wait (optional)

        Returns:
            True if delivered, False otherwise. Never raises for delivery
            failures.
        """
        ...
