from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from hostel.schemas.booking import BookingDraft, PricingSummary

DRAFT_KEY = "booking-flow:draft"
SUMMARY_KEY = "booking-flow:summary"


class _Session(BaseModel):
    touched_at: datetime
    entries: dict[str, Any] = {}


class DraftStore:
    """Session-scoped cache for in-progress wizard state.

    Values are held in their serialized (JSON-ready) form, so reading a draft
    back always goes through the persisted-shape parser. Writes are
    last-write-wins.
    """

    def __init__(self, max_sessions: int = 1000) -> None:
        self._sessions: dict[str, _Session] = {}
        self._max_sessions = max_sessions

    def _evict(self) -> None:
        if len(self._sessions) <= self._max_sessions:
            return
        # Drop least recently touched sessions first
        oldest = sorted(self._sessions.items(), key=lambda kv: kv[1].touched_at)
        while len(self._sessions) > self._max_sessions and oldest:
            self._sessions.pop(oldest.pop(0)[0], None)

    def get(self, session_id: str, key: str) -> Any | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return session.entries.get(key)

    def set(self, session_id: str, key: str, value: Any) -> None:
        now = datetime.now(timezone.utc)
        # Re-inserted so dict order matches touch order when timestamps tie
        session = self._sessions.pop(session_id, None) or _Session(touched_at=now)
        self._sessions[session_id] = session
        session.entries[key] = value
        session.touched_at = now
        self._evict()

    def remove(self, session_id: str, key: str) -> None:
        if session := self._sessions.get(session_id):
            session.entries.pop(key, None)

    def clear(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def get_draft(self, session_id: str) -> BookingDraft | None:
        raw = self.get(session_id, DRAFT_KEY)
        if raw is None:
            return None
        return BookingDraft.model_validate(raw)

    def set_draft(self, session_id: str, draft: BookingDraft) -> None:
        self.set(session_id, DRAFT_KEY, draft.model_dump(mode="json"))

    def get_summary(self, session_id: str) -> PricingSummary | None:
        raw = self.get(session_id, SUMMARY_KEY)
        if raw is None:
            return None
        return PricingSummary.model_validate(raw)

    def set_summary(self, session_id: str, summary: PricingSummary) -> None:
        self.set(session_id, SUMMARY_KEY, summary.model_dump(mode="json"))

    def discard(self, session_id: str) -> None:
        """Drop the draft and its cached summary, keeping the session."""
        self.remove(session_id, DRAFT_KEY)
        self.remove(session_id, SUMMARY_KEY)
