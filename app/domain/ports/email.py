from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True, slots=True)
class EmailSendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailDispatcher(Protocol):
    """Outbound email transport used by the auth flows."""

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> EmailSendResult:
        ...
