"""Remote session pooling with lazy idle eviction.

Locking Strategy:
- `_lock`: Protects the `_sessions` OrderedDict. Held only for table
  mutations, never while a session connects or runs a command.
- Each RemoteSession serializes its own commands.

LRU Eviction:
- Uses OrderedDict with move_to_end() for O(1) LRU tracking
- When the pool is full, the least recently used unleased session is closed
- If every session is leased, acquire raises PoolExhaustedError
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any

from ssh_explorer.models import ConnectionTarget
from ssh_explorer.protocols import ChannelConnector
from ssh_explorer.services.errors import PoolExhaustedError
from ssh_explorer.services.session import RemoteSession

logger = logging.getLogger(__name__)


class SessionPool:
    """At most one RemoteSession per connection target."""

    def __init__(
        self,
        connector: ChannelConnector,
        idle_timeout: int = 300,
        max_size: int = 16,
        reconnect_budget: int = 3,
        transfer_timeout: float | None = 120.0,
    ) -> None:
        """Initialize pool with idle timeout and size limits.

        Args:
            connector: Opens channels for new sessions
            idle_timeout: Seconds before unleased idle sessions are closed
                by the background cleanup task (0 disables it)
            max_size: Maximum number of sessions (must be > 0)
            reconnect_budget: Passed to each RemoteSession
            transfer_timeout: Passed to each RemoteSession

        Raises:
            ValueError: If max_size is not positive
        """
        if max_size <= 0:
            raise ValueError(f"max_size must be > 0, got {max_size}")

        self.idle_timeout = idle_timeout
        self.max_size = max_size
        self._connector = connector
        self._reconnect_budget = reconnect_budget
        self._transfer_timeout = transfer_timeout
        self._sessions: OrderedDict[str, RemoteSession] = OrderedDict()
        self._lock = asyncio.Lock()
        self._cleanup_task: asyncio.Task[Any] | None = None

        logger.info(
            "SessionPool initialized (idle_timeout=%ds, max_size=%d)",
            idle_timeout,
            max_size,
        )

    def _evict_lru_locked(self) -> list[RemoteSession]:
        """Pop least recently used unleased sessions until there is room."""
        evicted: list[RemoteSession] = []
        while len(self._sessions) >= self.max_size:
            key = next((k for k, s in self._sessions.items() if s.leases == 0), None)
            if key is None:
                raise PoolExhaustedError(
                    f"All {self.max_size} sessions are in use; release one first"
                )
            logger.info(
                "Pool at capacity (%d/%d), evicting LRU: %s",
                len(self._sessions),
                self.max_size,
                key,
            )
            evicted.append(self._sessions.pop(key))
        return evicted

    async def acquire(self, target: ConnectionTarget) -> RemoteSession:
        """Get the session for a target, creating it if needed.

        A closed or exhausted session is replaced by a fresh one built from
        ``target``, which may carry updated credentials.

        Raises:
            PoolExhaustedError: If the pool is full and every session is leased
        """
        to_close: list[RemoteSession] = []

        try:
            async with self._lock:
                session = self._sessions.get(target.key)

                if session is not None and not (session.is_closed or session.exhausted):
                    session.leases += 1
                    session.touch()
                    self._sessions.move_to_end(target.key)
                    logger.debug(
                        "Reusing session for %s (pool_size=%d)",
                        target.key,
                        len(self._sessions),
                    )
                    return session

                if session is not None:
                    logger.info(
                        "Replacing %s session for %s",
                        "closed" if session.is_closed else "exhausted",
                        target.key,
                    )
                    to_close.append(self._sessions.pop(target.key))

                to_close.extend(self._evict_lru_locked())

                session = RemoteSession(
                    target,
                    self._connector,
                    reconnect_budget=self._reconnect_budget,
                    transfer_timeout=self._transfer_timeout,
                )
                session.leases = 1
                self._sessions[target.key] = session

                logger.info(
                    "Created session for %s (pool_size=%d/%d)",
                    target.key,
                    len(self._sessions),
                    self.max_size,
                )
        finally:
            for old in to_close:
                old.close()

        if self.idle_timeout > 0 and (self._cleanup_task is None or self._cleanup_task.done()):
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.debug("Started session cleanup task")

        return session

    async def release(
        self, target: ConnectionTarget, session: RemoteSession | None = None
    ) -> None:
        """Mark the caller done with a target's session.

        Sessions with no outstanding leases become eligible for eviction.

        Args:
            target: Target the session was acquired for
            session: The session the caller acquired. When it has since been
                replaced in the pool, only its own lease count changes.
        """
        async with self._lock:
            current = self._sessions.get(target.key)
            if session is not None and session is not current:
                logger.debug("Released replaced session for %s", target.key)
                session.leases = max(0, session.leases - 1)
                return
            if current is None:
                logger.debug("No session to release for %s (not in pool)", target.key)
                return
            current.leases = max(0, current.leases - 1)
            current.touch()

    @asynccontextmanager
    async def session(self, target: ConnectionTarget) -> AsyncIterator[RemoteSession]:
        """Acquire a session for the duration of a block."""
        session = await self.acquire(target)
        try:
            yield session
        finally:
            await self.release(target, session)

    async def evict_idle(self, max_idle: float | timedelta) -> int:
        """Close unleased sessions unused for longer than ``max_idle``.

        Args:
            max_idle: Seconds or timedelta

        Returns:
            Number of sessions evicted
        """
        if not isinstance(max_idle, timedelta):
            max_idle = timedelta(seconds=max_idle)
        cutoff = datetime.now() - max_idle

        async with self._lock:
            expired = [
                key
                for key, session in self._sessions.items()
                if session.leases == 0 and session.last_used < cutoff
            ]
            evicted = [self._sessions.pop(key) for key in expired]

        for session in evicted:
            logger.info(
                "Closing idle session %s (pool_size=%d)",
                session.target.key,
                len(self._sessions),
            )
            session.close()

        return len(evicted)

    async def _cleanup_loop(self) -> None:
        """Periodically evict idle sessions."""
        interval = max(self.idle_timeout // 2, 1)
        logger.debug("Cleanup loop started (interval=%ds)", interval)
        while True:
            await asyncio.sleep(interval)
            await self.evict_idle(self.idle_timeout)

            if not self._sessions:
                logger.debug("Cleanup loop stopped - no sessions remaining")
                break

    async def remove(self, target: ConnectionTarget) -> None:
        """Close and forget the session for a target, if any."""
        async with self._lock:
            session = self._sessions.pop(target.key, None)

        if session is None:
            logger.debug("No session to remove for %s (not in pool)", target.key)
            return
        logger.info("Removing session %s (pool_size=%d)", target.key, len(self._sessions))
        session.close()

    async def close_all(self) -> None:
        """Close all sessions and stop the cleanup task."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        if sessions:
            logger.info("Closing all %d session(s)", len(sessions))
        for session in sessions:
            session.close()

        if self._cleanup_task and not self._cleanup_task.done():
            self._cleanup_task.cancel()
            logger.debug("Cleanup task cancelled")

    @property
    def pool_size(self) -> int:
        """Return the current number of sessions in the pool."""
        return len(self._sessions)

    @property
    def active_targets(self) -> list[str]:
        """Return keys of targets with pooled sessions."""
        return list(self._sessions.keys())
