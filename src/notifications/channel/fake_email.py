"""Fake email adapter: records sent emails for testing."""

from uuid import uuid4

from notifications.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.raise_error = False
        self.failure_reason = "Email delivery failed"

    def configure(self, should_succeed: bool = True, raise_error: bool = False, failure_reason: str = "Email delivery failed"):
        self.should_succeed = should_succeed
        self.raise_error = raise_error
        self.failure_reason = failure_reason

    def send(self, to: str, subject: str, body: str) -> dict:
        if self.raise_error:
            raise ConnectionError(self.failure_reason)
        if not self.should_succeed:
            return {"success": False, "message_id": None, "error": self.failure_reason}

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append({"message_id": message_id, "to": to, "subject": subject, "body": body})
        return {"success": True, "message_id": message_id}

    def reset(self):
        """Clear sent emails (useful between tests)."""
        self.sent_emails.clear()
        self.should_succeed = True
        self.raise_error = False
        self.failure_reason = "Email delivery failed"
