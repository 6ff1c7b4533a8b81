"""Per-session lifecycle timers backed by asyncio tasks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

TimerCallback = Callable[[str], Awaitable[None]]


@dataclass
class LifecycleTimers:
    """Schedules delayed callbacks keyed by session id and timer name."""

    _tasks: dict[str, dict[str, asyncio.Task[None]]] = field(
        default_factory=dict, init=False
    )

    def schedule(
        self, session_id: str, name: str, delay: float, callback: TimerCallback
    ) -> asyncio.Task[None]:
        """Run ``callback(session_id)`` after ``delay`` seconds.

        Scheduling a timer with a name already in use for the session replaces
        the previous one.
        """
        timers = self._tasks.setdefault(session_id, {})
        previous = timers.pop(name, None)
        if previous is not None and previous is not asyncio.current_task():
            previous.cancel()
        task = asyncio.create_task(
            self._run(session_id, name, delay, callback),
            name=f"{name}:{session_id}",
        )
        timers[name] = task
        return task

    def pending(self, session_id: str) -> list[str]:
        """Return the names of timers still waiting for a session."""
        return [
            name
            for name, task in self._tasks.get(session_id, {}).items()
            if not task.done()
        ]

    def cancel(self, session_id: str) -> None:
        """Cancel every timer of a session, except the one calling this."""
        current = asyncio.current_task()
        for task in self._tasks.pop(session_id, {}).values():
            if task is not current:
                task.cancel()

    async def cancel_all(self) -> None:
        """Cancel every scheduled timer and wait for them to finish."""
        current = asyncio.current_task()
        tasks = [
            task
            for timers in self._tasks.values()
            for task in timers.values()
            if task is not current
        ]
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(
        self, session_id: str, name: str, delay: float, callback: TimerCallback
    ) -> None:
        await asyncio.sleep(delay)
        timers = self._tasks.get(session_id, {})
        if timers.get(name) is asyncio.current_task():
            del timers[name]
            if not timers:
                self._tasks.pop(session_id, None)
        try:
            await callback(session_id)
        except Exception:
            logger.exception(
                "Lifecycle timer failed",
                extra={"session_id": session_id, "timer": name},
            )
