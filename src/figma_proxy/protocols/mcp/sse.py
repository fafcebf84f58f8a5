"""Server-Sent-Events framing for MCP streamable-HTTP responses."""

from __future__ import annotations

DATA_PREFIX = "data: "


def extract_data(body: str) -> str | None:
    """Return the payload of the first ``data:`` line in *body*.

    Lines are trimmed before matching.  ``None`` means the body carries no
    event data (a plain JSON reply, an empty stream, ...).
    """
    for line in body.split("\n"):
        line = line.strip()
        if line.startswith(DATA_PREFIX):
            return line[len(DATA_PREFIX):]
    return None


def frame_message(payload: str, event: str = "message") -> str:
    """Frame *payload* as a single SSE event."""
    return f"event: {event}\ndata: {payload}\n\n"
