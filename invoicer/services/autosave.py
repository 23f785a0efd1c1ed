import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable

from invoicer.config import settings
from invoicer.schemas.party import PartySnapshot

logger = logging.getLogger(__name__)

class SaveStatus(str, Enum):
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"

class PartyAutosave:
    def __init__(
        self,
        save: Callable[[PartySnapshot, object], Awaitable[object]],
        delay: float | None = None,
        min_name_length: int | None = None,
        saved_clear_after: float | None = None,
        error_clear_after: float | None = None,
    ):
        self.save = save
        self.delay = settings.AUTOSAVE_DELAY_SECONDS if delay is None else delay
        self.min_name_length = settings.AUTOSAVE_MIN_NAME_LENGTH if min_name_length is None else min_name_length
        self.saved_clear_after = settings.AUTOSAVE_SAVED_CLEAR_SECONDS if saved_clear_after is None else saved_clear_after
        self.error_clear_after = settings.AUTOSAVE_ERROR_CLEAR_SECONDS if error_clear_after is None else error_clear_after
        self.profile_id = None
        self.status: dict[str, SaveStatus] = {}
        self.last_activity = time.monotonic()
        self._timers: dict[str, asyncio.Task] = {}
        self._clears: dict[str, asyncio.TimerHandle] = {}

    @property
    def pending(self) -> list[str]:
        return [field for field, task in self._timers.items() if not task.done()]

    @property
    def idle(self) -> bool:
        return not self.pending and not self.status

    def field_changed(self, field: str, snapshot: PartySnapshot) -> asyncio.Task:
        self.last_activity = time.monotonic()
        previous = self._timers.get(field)
        if previous is not None and not previous.done():
            previous.cancel()
        task = asyncio.create_task(self._delayed_save(field, snapshot))
        self._timers[field] = task
        return task

    async def _delayed_save(self, field: str, snapshot: PartySnapshot):
        await asyncio.sleep(self.delay)
        await self.save_now(field, snapshot)

    async def save_now(self, field: str, snapshot: PartySnapshot):
        if not snapshot.name or len(snapshot.name) < self.min_name_length:
            return

        self._set_status(field, SaveStatus.SAVING)
        try:
            profile = await self.save(snapshot, self.profile_id)
        except Exception as e:
            logger.warning(f"Autosave of '{field}' for '{snapshot.name}' failed: {e}")
            self._set_status(field, SaveStatus.ERROR, self.error_clear_after)
            return

        if profile is not None:
            self.profile_id = profile.id
        self._set_status(field, SaveStatus.SAVED, self.saved_clear_after)

    def _set_status(self, field: str, status: SaveStatus, clear_after: float | None = None):
        handle = self._clears.pop(field, None)
        if handle is not None:
            handle.cancel()
        self.status[field] = status
        if clear_after is not None:
            self._clears[field] = asyncio.get_running_loop().call_later(clear_after, self.clear_status, field)

    def clear_status(self, field: str):
        handle = self._clears.pop(field, None)
        if handle is not None:
            handle.cancel()
        self.status.pop(field, None)

    def cancel(self):
        """Drop every pending write, e.g. when the form is abandoned."""
        for task in self._timers.values():
            if not task.done():
                task.cancel()
        self._timers.clear()
        for handle in self._clears.values():
            handle.cancel()
        self._clears.clear()

    async def wait(self):
        tasks = [task for task in self._timers.values() if not task.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


class AutosaveRegistry:
    """One autosave per (form session, party kind)."""

    def __init__(self, factories: dict[str, Callable[[], PartyAutosave]], idle_ttl: float | None = None):
        self.factories = factories
        self.idle_ttl = settings.AUTOSAVE_SESSION_TTL_SECONDS if idle_ttl is None else idle_ttl
        self._sessions: dict[tuple[str, str], PartyAutosave] = {}

    def __len__(self):
        return len(self._sessions)

    def get(self, session_id: str, kind: str) -> PartyAutosave:
        if kind not in self.factories:
            raise KeyError(kind)
        self.evict_idle()
        key = (session_id, kind)
        if key not in self._sessions:
            self._sessions[key] = self.factories[kind]()
        return self._sessions[key]

    def find(self, session_id: str, kind: str) -> PartyAutosave | None:
        self.evict_idle()
        return self._sessions.get((session_id, kind))

    def evict_idle(self) -> int:
        # Forms that stopped editing keep their profile id until the ttl runs out.
        cutoff = time.monotonic() - self.idle_ttl
        keys = [
            key for key, autosave in self._sessions.items()
            if autosave.idle and autosave.last_activity <= cutoff
        ]
        for key in keys:
            self._sessions.pop(key).cancel()
        if keys:
            logger.info(f"Evicted {len(keys)} idle autosave sessions")
        return len(keys)

    def discard(self, session_id: str) -> int:
        keys = [key for key in self._sessions if key[0] == session_id]
        for key in keys:
            self._sessions.pop(key).cancel()
        return len(keys)

    def cancel_all(self):
        for autosave in self._sessions.values():
            autosave.cancel()
        self._sessions.clear()
