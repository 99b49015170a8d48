"""Captured network responses produced during one navigation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEDUP_RESPONSE_ID = "resp_dedup"


@dataclass
class CapturedResponse:
    """A single intercepted response, tagged with its source.

    Exactly one of ``data`` (parsed JSON) or ``text`` (raw body when JSON
    parsing failed) is meaningful; ``is_json`` says which.
    """

    response_id: str
    response_url: str
    request_method: str
    timestamp: str
    data: Any = None
    text: str | None = None
    is_json: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the ``_response*`` wire keys used by clients."""
        entry: dict[str, Any] = {
            "_responseId": self.response_id,
            "_responseUrl": self.response_url,
            "_requestMethod": self.request_method,
            "_timestamp": self.timestamp,
        }
        if self.is_json:
            entry["data"] = self.data
        else:
            entry["text"] = self.text
        return entry


@dataclass
class CaptureResult:
    """Outcome of one capture session."""

    responses: list[dict[str, Any]] = field(default_factory=list)
    total_matched: int = 0
    unique_count: int = 0
