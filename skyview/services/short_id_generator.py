"""Short ID Generator — collision-checked random identifiers.

Invariants:
    - At most MAX_SHORT_ID_ATTEMPTS draws per generate()/claim(), counting both
      lookup collisions and insert conflicts
    - generate() returns an id that was absent from the repository at lookup time
    - claim() returns only after the insert itself succeeded, so two concurrent
      creates that drew the same free id both end up with distinct rows
    - Exhaustion raises ResourceExhaustedError (never loops forever)
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from skyview.core.domain_types import ShortId
from skyview.core.errors import ResourceExhaustedError, ShortIdConflictError
from skyview.core.repository_protocols import ViewerStateRepository
from skyview.core.short_id import MAX_SHORT_ID_ATTEMPTS, random_short_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _unused(short_id: ShortId) -> ShortId:
    return short_id


class ShortIdGenerator:

    def __init__(
        self,
        repository: ViewerStateRepository,
        max_attempts: int = MAX_SHORT_ID_ATTEMPTS,
        draw: Callable[[], ShortId] = random_short_id,
    ):
        self._repository = repository
        self._max_attempts = max_attempts
        self._draw = draw

    async def generate(self) -> ShortId:
        return await self.claim(_unused)

    async def claim(self, insert: Callable[[ShortId], Awaitable[T]]) -> T:
        """Draw ids until `insert(candidate)` succeeds.

        A candidate already in the repository, or one the unique index rejects
        with ShortIdConflictError, costs one attempt.
        """
        for attempt in range(1, self._max_attempts + 1):
            candidate = self._draw()
            if await self._repository.find_by_short_id(candidate) is not None:
                self._log_collision(candidate, attempt, "lookup")
                continue
            try:
                return await insert(candidate)
            except ShortIdConflictError:
                self._log_collision(candidate, attempt, "insert")
        raise ResourceExhaustedError("viewer short ID", self._max_attempts)

    @staticmethod
    def _log_collision(candidate: ShortId, attempt: int, stage: str) -> None:
        logger.warning(
            f"Short ID collision at {stage} on attempt {attempt}",
            extra={"short_id": candidate, "attempt": attempt},
        )
