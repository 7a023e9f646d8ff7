"""
auth/sessions.py -- Server-side admin sessions with identifier rotation.

Security design decisions:
  [S1] Fixation: establish_session never adopts an identifier the client
       brought. Any presented id is deleted, a new session is created, and its
       id is immediately rotated. Both writes are committed before the handle
       is returned, so the response can never carry an id the store does not
       know.

  [S2] Fail closed: require_session raises Unauthorized for a missing, unknown
       or idle-expired id. There is no anonymous fallback.

  [S3] Lookup and activity update are two explicit steps. require_session is
       read-only; record_activity writes last_seen. A handler that only reads
       can skip the write.

Layer rule: no imports from api/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from uuid import UUID

from auth.errors import Unauthorized
from auth.models import SessionHandle, SessionRecord
from auth.store import SessionStore
from core.database import from_iso

logger = logging.getLogger("mailomat.auth")


class SessionManager:
    def __init__(self, store: SessionStore) -> None:
        self.store = store

    async def establish_session(self, principal_id: UUID, presented_session_id: str | None = None) -> SessionHandle:
        """Create a fresh session for principal_id and return its rotated identifier."""
        if presented_session_id:
            # [S1] -- whatever the client presented is never reused
            await self.store.delete(presented_session_id)

        initial_id = await self.store.create(principal_id)
        rotated_id = await self.store.rotate(initial_id)
        if rotated_id is None:
            # Only possible if the row vanished between create and rotate.
            logger.error("Session for principal %s disappeared before rotation", principal_id)
            raise Unauthorized("session could not be established")

        record = await self.store.get(rotated_id)
        if record is None:
            raise Unauthorized("session could not be established")
        logger.info("Session established for principal %s", principal_id)
        return SessionHandle(session_id=record.session_id, principal_id=principal_id, first_seen=record.first_seen)

    async def require_session(self, session_id: str | None) -> SessionRecord:
        """Return the live session for session_id or raise Unauthorized. [S2]"""
        if not session_id:
            raise Unauthorized("no session cookie")
        record = await self.store.get(session_id)
        if record is None:
            raise Unauthorized("unknown or expired session")
        return record

    async def record_activity(self, record: SessionRecord) -> SessionRecord:
        """Persist a new last_seen for record and return the updated record. [S3]"""
        stamped = await self.store.touch(record.session_id)
        if stamped is None:
            raise Unauthorized("session ended during request")
        return replace(record, last_seen=from_iso(stamped))

    async def end_session(self, session_id: str | None) -> None:
        """Logout. Unknown ids are ignored."""
        if session_id and await self.store.delete(session_id):
            logger.info("Session ended")

    async def purge_expired(self) -> int:
        removed = await self.store.purge_expired()
        if removed:
            logger.info("Purged %d expired session(s)", removed)
        return removed
