"""Fake DeliveryPort implementation for testing."""

from relwatch.core.ports import DeliveryPort


class FakeDeliveryPort(DeliveryPort):
    """In-memory delivery adapter for testing.

    Captures all payloads sent through this port for test assertions.
    """

    def __init__(self):
        """Initialize with empty delivery history."""
        self.sent: list[str] = []
        self.send_call_count = 0
        self.fail_on_call: int | None = None  # 1-based call number that fails
        self.should_fail = False

    async def send(self, payload: str) -> bool:
        """Record the payload; report failure when configured to."""
        self.send_call_count += 1
        if self.should_fail or self.send_call_count == self.fail_on_call:
            return False
        self.sent.append(payload)
        return True

    def reset(self) -> None:
        """Reset all collected payloads and state."""
        self.sent.clear()
        self.send_call_count = 0
        self.fail_on_call = None
        self.should_fail = False
