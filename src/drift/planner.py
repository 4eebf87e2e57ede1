"""Focus Queue planner - caches, regenerates and serves today's plan.

The plan lives on the task rows themselves (focus_date / focus_order). A plan
is "cached" when at least one task carries today's focus_date; rows from any
other day are stale and simply ignored.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from .core.focus import (
    CACHED_REASONING,
    FocusQueue,
    FocusSelection,
    TaskSummary,
    TimeContext,
    closest_due_selection,
    fallback_selection,
    focus_date_for,
    order_cached,
    sanitize_selection,
)
from .core.tasks import Status, Task, TaskPatch
from .ports.ranking_oracle import OracleError, RankingOracle
from .ports.task_store import StoreError, TaskStore

logger = logging.getLogger(__name__)

Observer = Callable[[FocusQueue], Any]


class PlanState(Enum):
    NO_PLAN = "no_plan"
    CACHED = "cached"
    GENERATING = "generating"


async def call_blocking(func: Callable, *args, timeout: float) -> Any:
    """Run a blocking oracle call in a worker thread, bounded by a timeout."""
    return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)


class FocusQueuePlanner:
    """
    Serves today's Focus Queue, regenerating it through the ranking oracle.

    At most one generation runs at a time: callers arriving while one is in
    flight share its result instead of starting a second clear/rewrite.
    """

    def __init__(
        self,
        store: TaskStore,
        oracle: RankingOracle | None = None,
        clock: Callable[[], datetime] | None = None,
        oracle_timeout: float = 60,
        fallback_size: int = 5,
    ):
        self.store = store
        self.oracle = oracle
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.oracle_timeout = oracle_timeout
        self.fallback_size = fallback_size
        self._observers: list[Observer] = []
        self._write_lock = asyncio.Lock()
        self._inflight: asyncio.Future | None = None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register a callback for new queues. Returns an unsubscribe function."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def state(self) -> PlanState:
        if self._inflight is not None and not self._inflight.done():
            return PlanState.GENERATING
        today = focus_date_for(self.clock())
        return PlanState.CACHED if self.store.get_by_focus_date(today) else PlanState.NO_PLAN

    async def get_cached(self) -> FocusQueue | None:
        """Today's stored plan, or None when nothing is flagged for today."""
        now = self.clock()
        focused = self.store.get_by_focus_date(focus_date_for(now))
        if not focused:
            return None
        return FocusQueue(
            task_ids=[t.id for t in order_cached(focused)],
            reasoning=CACHED_REASONING,
            generated_at=now,
        )

    async def generate_and_cache(self) -> FocusQueue:
        """Rank active tasks, persist the ranking as today's plan and return it."""
        if self._inflight is not None and not self._inflight.done():
            logger.info("[FocusQueue] Generation already in flight, joining it")
            return await asyncio.shield(self._inflight)

        self._inflight = asyncio.ensure_future(self._generate())
        return await asyncio.shield(self._inflight)

    async def initialize_on_startup(self) -> FocusQueue | None:
        """
        Serve the cached plan or build one.

        Store failures are fatal and propagate; anything else that goes wrong
        while generating is logged and yields None so startup can continue.
        """
        logger.info("[FocusQueue] Initializing on startup...")
        cached = await self.get_cached()
        if cached:
            logger.info("[FocusQueue] Using cached queue from today")
            return cached

        try:
            return await self.generate_and_cache()
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"[FocusQueue] Failed to generate on startup: {e}")
            return None

    async def regenerate(self) -> None:
        """Throw away today's selection and push a freshly generated queue to observers."""
        logger.info("[FocusQueue] Regenerating at check-in time...")
        await self.generate_and_cache()

    async def _select(self, active: list[Task], now: datetime) -> FocusSelection:
        if self.oracle is None:
            return closest_due_selection(active, self.fallback_size)

        candidates = [TaskSummary.from_task(t, now) for t in active]
        try:
            selection = await call_blocking(
                self.oracle.select_focus_tasks,
                candidates,
                TimeContext.at(now),
                timeout=self.oracle_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[FocusQueue] Planning timed out after {self.oracle_timeout}s, using fallback")
            return fallback_selection(active, self.fallback_size)
        except OracleError as e:
            logger.warning(f"[FocusQueue] Planning failed ({e}), using fallback")
            return fallback_selection(active, self.fallback_size)
        except Exception as e:
            logger.error(f"[FocusQueue] Unexpected oracle error: {e}")
            return fallback_selection(active, self.fallback_size)

        task_ids = sanitize_selection(selection.task_ids, active)
        if active and not task_ids:
            logger.warning("[FocusQueue] Oracle selected no known tasks, using fallback")
            return fallback_selection(active, self.fallback_size)
        if len(task_ids) != len(selection.task_ids):
            logger.warning("[FocusQueue] Dropped unknown or repeated ids from oracle response")
        return FocusSelection(task_ids=task_ids, reasoning=selection.reasoning)

    async def _generate(self) -> FocusQueue:
        logger.info("[FocusQueue] Generating new focus queue...")
        now = self.clock()
        today = focus_date_for(now)

        active = self.store.get_by_status(Status.ACTIVE)
        selection = await self._select(active, now)

        async with self._write_lock:
            try:
                self._clear(today)
                for order, task_id in enumerate(selection.task_ids):
                    self.store.update(task_id, TaskPatch(focus_date=today, focus_order=order))
            except StoreError:
                self._discard_partial(today)
                raise

        queue = FocusQueue(
            task_ids=list(selection.task_ids),
            reasoning=selection.reasoning,
            generated_at=self.clock(),
        )
        logger.info(f"[FocusQueue] Generated queue with {len(queue)} tasks")
        self._notify(queue)
        return queue

    def _clear(self, today: str) -> None:
        for task in self.store.get_by_focus_date(today):
            self.store.update(task.id, TaskPatch(focus_date=None, focus_order=None))

    def _discard_partial(self, today: str) -> None:
        # A half-written plan would be served as cached; leave the day unplanned
        try:
            self._clear(today)
        except StoreError as e:
            logger.error(f"[FocusQueue] Could not discard partial plan: {e}")

    def _notify(self, queue: FocusQueue) -> None:
        for observer in list(self._observers):
            try:
                observer(queue)
            except Exception as e:
                logger.error(f"[FocusQueue] Observer failed: {e}")
