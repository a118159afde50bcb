import logging
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


class ConsoleEmailService:
    """Email sender used when no real provider is configured; writes to the log instead."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        message = {"to": to_email, "subject": subject, "tags": list(tags or [])}
        self.sent.append(message)
        logger.info("[console email] to=%s subject=%s tags=%s", to_email, subject, message["tags"])
        return {"id": None, "provider": "console"}
