import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx
import structlog

from ..config import settings
from ..errors import ChecklistError
from ..schemas.checklist import BadgeResult


logger = structlog.get_logger(__name__)


class BadgeState(str, Enum):
    unknown = "unknown"
    checking = "checking"
    valid = "valid"
    invalid = "invalid"


class BadgeWatcher:
    """
    Debounced badge lookup driven by keystrokes.

    Every ``update`` supersedes the previous one: the pending lookup is
    cancelled and a new generation number is issued. A lookup result is only
    applied if its generation is still the latest, so a slow answer for "12"
    can never overwrite the answer for "123".
    """

    def __init__(
        self,
        lookup: Callable[[str], Awaitable[BadgeResult]],
        delay: Optional[float] = None,
        min_length: Optional[int] = None,
    ):
        self._lookup = lookup
        self.delay = settings.badge_debounce_ms / 1000.0 if delay is None else delay
        self.min_length = settings.badge_min_length if min_length is None else min_length
        self.badge = ""
        self.state = BadgeState.unknown
        self.display_name: Optional[str] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_valid(self) -> bool:
        return self.state == BadgeState.valid

    @property
    def generation(self) -> int:
        return self._generation

    def update(self, badge: str) -> None:
        badge = badge or ""
        self.badge = badge
        self._generation += 1
        self.cancel()
        self.display_name = None

        if len(badge) < self.min_length:
            self.state = BadgeState.unknown
            return

        self.state = BadgeState.checking
        self._task = asyncio.get_running_loop().create_task(self._run(badge, self._generation))

    def cancel(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Block until the current lookup (if any) has settled."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})

    async def _run(self, badge: str, generation: int) -> None:
        await asyncio.sleep(self.delay)
        try:
            result = await self._lookup(badge)
        except (ChecklistError, httpx.HTTPError) as e:
            logger.warning("badge_lookup_failed", error=str(e))
            result = BadgeResult(authorized=False)

        if generation != self._generation:
            logger.debug("badge_lookup_stale", generation=generation, current=self._generation)
            return
        self.state = BadgeState.valid if result.authorized else BadgeState.invalid
        self.display_name = result.display_name if result.authorized else None
