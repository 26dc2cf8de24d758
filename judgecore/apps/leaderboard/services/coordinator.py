# judgecore/apps/leaderboard/services/coordinator.py
"""
Coordina los pedidos de recálculo del leaderboard dentro del proceso.

- Single-flight por concurso: si llega un pedido mientras otro corre, se
  marca como pendiente y el que está corriendo hace UNA pasada más.
- Un fallo se registra y se reintenta con backoff (Timer); nunca se propaga
  a quien pidió el recálculo (p. ej. submit_review).
- Los deltas de cada pasada exitosa se entregan al notifier configurado.
"""
from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence, Set

from django.conf import settings
from django.db import close_old_connections

from judgecore.apps.contests.models import Contest
from ..notifier import RankChangeNotifier, get_notifier
from .ranker import ContestNotFound, LeaderboardRanker, RankDelta

logger = logging.getLogger(__name__)


def _run_in_thread(fn: Callable, *args) -> None:
    # Hilo del Timer: usa su propia conexión a la BD y hay que liberarla al final
    try:
        fn(*args)
    finally:
        close_old_connections()


def _start_timer(delay: float, fn: Callable, *args) -> None:
    t = threading.Timer(delay, _run_in_thread, args=(fn,) + args)
    t.daemon = True
    t.start()


class RecomputeCoordinator:

    def __init__(
        self,
        ranker: Optional[LeaderboardRanker] = None,
        notifier: Optional[RankChangeNotifier] = None,
        retry_delays: Optional[Sequence[float]] = None,
        schedule: Optional[Callable[..., None]] = None,
    ):
        self.ranker = ranker or LeaderboardRanker()
        self._notifier = notifier
        self.retry_delays = tuple(
            settings.LEADERBOARD_RECOMPUTE_RETRY_DELAYS if retry_delays is None else retry_delays
        )
        self.schedule = schedule or _start_timer

        self._lock = threading.Lock()
        self._running: Set[int] = set()
        self._pending: Set[int] = set()

    @property
    def notifier(self) -> RankChangeNotifier:
        if self._notifier is None:
            self._notifier = get_notifier()
        return self._notifier

    def is_running(self, contest_id: int) -> bool:
        with self._lock:
            return contest_id in self._running

    def request(self, contest_id: int, attempt: int = 0) -> Optional[List[RankDelta]]:
        """
        Pide un recálculo. Devuelve los deltas de la última pasada hecha en este
        hilo, o None si se coalesció con uno en curso o si falló.
        """
        with self._lock:
            if contest_id in self._running:
                self._pending.add(contest_id)
                logger.debug("Recálculo del concurso %s ya en curso; queda pendiente", contest_id)
                return None
            self._running.add(contest_id)

        deltas: Optional[List[RankDelta]] = None
        try:
            while True:
                with self._lock:
                    self._pending.discard(contest_id)
                deltas = self._run_once(contest_id, attempt)
                with self._lock:
                    if contest_id not in self._pending:
                        self._running.discard(contest_id)
                        return deltas
                attempt = 0
        except BaseException:
            with self._lock:
                self._running.discard(contest_id)
                self._pending.discard(contest_id)
            raise

    def _run_once(self, contest_id: int, attempt: int) -> Optional[List[RankDelta]]:
        try:
            deltas = self.ranker.recompute(contest_id)
        except ContestNotFound:
            logger.warning("Recálculo descartado: el concurso %s no existe", contest_id)
            return None
        except Exception:
            logger.exception("Falló el recálculo del leaderboard del concurso %s (intento %d)", contest_id, attempt + 1)
            self._schedule_retry(contest_id, attempt)
            return None

        if deltas:
            try:
                self.notifier.notify(contest_id, deltas)
            except Exception:
                logger.exception("El notifier falló con %d deltas del concurso %s", len(deltas), contest_id)
        return deltas

    def _schedule_retry(self, contest_id: int, attempt: int) -> None:
        if attempt >= len(self.retry_delays):
            logger.error(
                "Se agotaron los reintentos del concurso %s; lo corregirá el próximo recálculo programado",
                contest_id,
            )
            return
        delay = self.retry_delays[attempt]
        logger.info("Reintento del recálculo del concurso %s en %ss", contest_id, delay)
        self.schedule(delay, self._retry, contest_id, attempt + 1)

    def _retry(self, contest_id: int, attempt: int) -> None:
        self.request(contest_id, attempt=attempt)


@lru_cache(maxsize=1)
def get_coordinator() -> RecomputeCoordinator:
    return RecomputeCoordinator()


def request_recompute(contest_id: int) -> Optional[List[RankDelta]]:
    return get_coordinator().request(contest_id)


def recompute_active_contests(
    coordinator: Optional[RecomputeCoordinator] = None,
    contest_ids: Optional[Sequence[int]] = None,
) -> Dict[int, Optional[int]]:
    """
    Tarea programada (cron): recalcula cada concurso activo.
    Devuelve {contest_id: cantidad de cambios} (None si esa pasada falló o quedó pendiente).
    """
    coordinator = coordinator or get_coordinator()
    if contest_ids is None:
        contest_ids = list(
            Contest.objects.filter(status__in=settings.LEADERBOARD_ACTIVE_CONTEST_STATUSES)
            .order_by("id")
            .values_list("id", flat=True)
        )

    results: Dict[int, Optional[int]] = {}
    for contest_id in contest_ids:
        deltas = coordinator.request(contest_id)
        results[contest_id] = None if deltas is None else len(deltas)
    return results
