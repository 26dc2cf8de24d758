# judgecore/apps/leaderboard/services/ranker.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.db import transaction

from judgecore.apps.contests.models import Contest
from judgecore.apps.scoring.models import CompetitorAggregate
from ..models import LeaderboardEntry

logger = logging.getLogger(__name__)

_FAR_FUTURE = datetime.max.replace(tzinfo=dt_timezone.utc)


class ContestNotFound(Exception):
    def __init__(self, contest_id):
        super().__init__(f"No existe el concurso {contest_id}")
        self.contest_id = contest_id


@dataclass(frozen=True)
class Standing:
    competitor_id: int
    rank: int
    score: int
    problems_solved: int
    last_accepted_at: Optional[datetime]


@dataclass(frozen=True)
class RankDelta:
    contest_id: int
    competitor_id: int
    new_rank: int
    old_rank: Optional[int]
    new_score: int
    old_score: int

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------- Utilidades ----------

def _standing_key(a: CompetitorAggregate) -> Tuple:
    """
    Orden total del leaderboard:
      1. mayor puntaje
      2. última aceptada más temprana
      3. id de competidor menor
    Un last_accepted_at nulo (dato inconsistente) va después de cualquier fecha.
    """
    last = a.last_accepted_at
    return (-a.total_score, last is None, last or _FAR_FUTURE, a.competitor_id)


def rank_aggregates(aggregates: Iterable[CompetitorAggregate]) -> List[Standing]:
    """Ranking denso 1..N; los competidores sin problemas resueltos quedan fuera."""
    solved = [a for a in aggregates if a.problems_solved_count > 0]
    solved.sort(key=_standing_key)
    return [
        Standing(
            competitor_id=a.competitor_id,
            rank=idx,
            score=a.total_score,
            problems_solved=a.problems_solved_count,
            last_accepted_at=a.last_accepted_at,
        )
        for idx, a in enumerate(solved, start=1)
    ]


def diff_standings(
    contest_id: int,
    standings: List[Standing],
    previous: Dict[int, LeaderboardEntry],
) -> List[RankDelta]:
    """Solo las filas cuyo rank o puntaje cambió (las nuevas cuentan como cambio)."""
    deltas: List[RankDelta] = []
    for s in standings:
        old = previous.get(s.competitor_id)
        old_rank = old.rank if old else None
        old_score = old.score if old else 0
        if old_rank != s.rank or old_score != s.score:
            deltas.append(
                RankDelta(
                    contest_id=contest_id,
                    competitor_id=s.competitor_id,
                    new_rank=s.rank,
                    old_rank=old_rank,
                    new_score=s.score,
                    old_score=old_score,
                )
            )
    return deltas


def _same_entries(standings: List[Standing], previous: Dict[int, LeaderboardEntry]) -> bool:
    if len(standings) != len(previous):
        return False
    for s in standings:
        e = previous.get(s.competitor_id)
        if e is None:
            return False
        if (e.rank, e.score, e.problems_solved, e.last_accepted_at) != (
            s.rank, s.score, s.problems_solved, s.last_accepted_at
        ):
            return False
    return True


# ---------- Servicio ----------

class LeaderboardRanker:
    """
    Recalcula el leaderboard de un concurso desde los acumulados actuales.
    Es idempotente: el resultado depende solo del estado de los acumulados,
    no del historial de revisiones ni del orden en que llegaron.
    """

    def recompute(self, contest_id: int) -> List[RankDelta]:
        with transaction.atomic():
            # Lock del concurso: un solo recálculo a la vez entre procesos
            contest = Contest.objects.select_for_update().filter(pk=contest_id).first()
            if contest is None:
                raise ContestNotFound(contest_id)

            standings = rank_aggregates(
                CompetitorAggregate.objects.filter(contest_id=contest_id, problems_solved_count__gt=0)
            )
            previous = {e.competitor_id: e for e in LeaderboardEntry.objects.filter(contest_id=contest_id)}
            deltas = diff_standings(contest_id, standings, previous)

            if not _same_entries(standings, previous):
                # Reemplazo del set completo dentro de la misma transacción
                LeaderboardEntry.objects.filter(contest_id=contest_id).delete()
                LeaderboardEntry.objects.bulk_create(
                    [
                        LeaderboardEntry(
                            contest_id=contest_id,
                            competitor_id=s.competitor_id,
                            rank=s.rank,
                            score=s.score,
                            problems_solved=s.problems_solved,
                            last_accepted_at=s.last_accepted_at,
                        )
                        for s in standings
                    ]
                )

        logger.info(
            "Leaderboard del concurso %s recalculado: %d posiciones, %d cambios",
            contest_id, len(standings), len(deltas),
        )
        return deltas
