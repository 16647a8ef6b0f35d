# perftracker/background.py – écritures "fire-and-forget" (cache & base)

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Set

log = logging.getLogger(__name__)


class BackgroundTasks:
    """
    Détache des coroutines d'écriture hors du chemin critique.

    Chaque tâche a son propre timeout ; les erreurs sont loguées, jamais
    propagées à l'appelant.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, label: str) -> asyncio.Task:
        task = asyncio.create_task(self._run(coro, label))
        # référence forte tant que la tâche tourne
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, coro: Awaitable, label: str) -> None:
        try:
            await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError:
            log.warning(f"Background write '{label}' timed out after {self.timeout:.1f}s")
        except Exception as e:
            log.error(f"Background write '{label}' failed: {e}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Attend la fin de toutes les écritures en cours (arrêt, tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
