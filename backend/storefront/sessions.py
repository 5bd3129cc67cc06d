"""
Server-side HTTP session stores.

The cookie only carries an opaque session id; everything else lives here.
Each storage backend exposes one of these through ``Storage.session_store``.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import sessionmaker

from storefront import models
from storefront.utils import utcnow

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    @abstractmethod
    def get(self, sid: str) -> Optional[Dict[str, Any]]:
        """Session data for ``sid``, or None when missing or expired."""

    @abstractmethod
    def set(self, sid: str, data: Dict[str, Any], expires_at: datetime) -> None:
        ...

    @abstractmethod
    def destroy(self, sid: str) -> None:
        ...

    @abstractmethod
    def prune(self) -> int:
        """Drop expired sessions; returns how many were removed."""


class MemorySessionStore(SessionStore):
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._sessions: Dict[str, Tuple[Dict[str, Any], datetime]] = {}
        self._clock = clock

    def get(self, sid):
        entry = self._sessions.get(sid)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at <= self._clock():
            del self._sessions[sid]
            return None
        return dict(data)

    def set(self, sid, data, expires_at):
        self.prune()
        self._sessions[sid] = (dict(data), expires_at)

    def destroy(self, sid):
        self._sessions.pop(sid, None)

    def prune(self):
        now = self._clock()
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at <= now]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug("Pruned %d expired sessions", len(expired))
        return len(expired)


class DatabaseSessionStore(SessionStore):
    """Sessions kept in the ``sessions`` table."""

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow):
        self._session_factory = session_factory
        self._clock = clock

    def get(self, sid):
        with self._session_factory() as db:
            row = db.get(models.HttpSession, sid)
            if row is None:
                return None
            if row.expires_at <= self._clock():
                db.delete(row)
                db.commit()
                return None
            return dict(row.data)

    def set(self, sid, data, expires_at):
        with self._session_factory() as db:
            row = db.get(models.HttpSession, sid)
            if row is None:
                db.add(models.HttpSession(sid=sid, data=dict(data), expires_at=expires_at))
            else:
                row.data = dict(data)
                row.expires_at = expires_at
            db.commit()

    def destroy(self, sid):
        with self._session_factory() as db:
            db.query(models.HttpSession).filter(models.HttpSession.sid == sid).delete()
            db.commit()

    def prune(self):
        with self._session_factory() as db:
            removed = (
                db.query(models.HttpSession)
                .filter(models.HttpSession.expires_at <= self._clock())
                .delete()
            )
            db.commit()
        if removed:
            logger.debug("Pruned %d expired sessions", removed)
        return removed
