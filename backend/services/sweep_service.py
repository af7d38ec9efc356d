"""Expiry sweep: clears unavailability windows whose end date has passed."""

from __future__ import annotations

import threading
from datetime import date
from threading import RLock
from typing import Optional, Protocol

from backend.domain.availability import is_expired
from backend.domain.intervals import DayLike, to_day
from backend.domain.models import SweepResult, WindowedEntity
from backend.repository.data_repository import DataRepository, RepositoryError
from backend.utils.clock import Clock, utc_today
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class SweepError(Exception):
    """Base exception for expiry sweep failures."""


class SweepFailedError(SweepError):
    """Raised when the store fails mid-sweep; callers may retry later."""


class WindowRepository(Protocol):
    def find_entities_with_expired_window(self, reference_date: date) -> list[WindowedEntity]:
        ...

    def clear_window(self, entity_id: int) -> None:
        ...


class ExpirySweeper:
    """Finds expired windows and clears both bounds.

    The clearing write is absolute (both bounds set to NULL), so two sweeps
    racing on the same listing both succeed and leave the same state.
    Start-only windows never expire and are left untouched.
    """

    def __init__(
        self,
        repository: Optional[WindowRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or utc_today
        self._lock = RLock()
        self._last_result: SweepResult | None = None

    @property
    def last_result(self) -> SweepResult | None:
        with self._lock:
            return self._last_result

    def sweep(self, reference_date: Optional[DayLike] = None) -> SweepResult:
        day = to_day(reference_date) if reference_date is not None else self._clock()

        try:
            candidates = self._repository.find_entities_with_expired_window(day)
        except RepositoryError as exc:
            raise SweepFailedError(f"Could not load expired windows: {exc}") from exc

        cleared_ids: list[int] = []
        for entity in candidates:
            if not is_expired(entity.window, day):
                continue
            try:
                self._repository.clear_window(entity.entity_id)
            except RepositoryError as exc:
                raise SweepFailedError(
                    f"Could not clear window of listing {entity.entity_id} "
                    f"after clearing {len(cleared_ids)}: {exc}"
                ) from exc
            cleared_ids.append(entity.entity_id)

        result = SweepResult(
            reference_date=day,
            cleared_count=len(cleared_ids),
            cleared_ids=cleared_ids,
        )
        with self._lock:
            self._last_result = result
        if cleared_ids:
            logger.info("Cleared %s expired windows as of %s: %s", len(cleared_ids), day, cleared_ids)
        else:
            logger.debug("No expired windows as of %s", day)
        return result

    def sweep_quietly(self, reference_date: Optional[DayLike] = None) -> SweepResult | None:
        """Sweep for a read path: failures are logged and reported as None."""
        try:
            return self.sweep(reference_date)
        except SweepError as exc:
            logger.warning("Expiry sweep failed; continuing with unswept data: %s", exc)
            return None


class SweepScheduler:
    """Runs the sweep on a background daemon thread at a fixed interval."""

    def __init__(self, sweeper: ExpirySweeper, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._sweeper = sweeper
        self._interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="expiry-sweep",
            daemon=True,
        )
        self._thread.start()
        logger.info("Expiry sweep scheduled every %s seconds", self._interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self._sweeper.sweep_quietly()
            self._stop_event.wait(self._interval_seconds)
