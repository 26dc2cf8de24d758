# judgecore/apps/scoring/aggregator.py
"""
Regla de puntaje por "mejor intento por problema".

Solo decide cuál debe ser el nuevo acumulado; no toca la BD.
La persistencia (bloqueo de fila, guardado) vive en judging.services.reviews.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class ScoreTotals:
    total_score: int = 0
    problems_solved_count: int = 0
    last_accepted_at: Optional[datetime] = None


def apply_accepted_score(
    current: ScoreTotals,
    problem_id: int,
    prior_best: Optional[int],
    new_score: int,
    accepted_at: Optional[datetime] = None,
) -> ScoreTotals:
    """
    Aplica una revisión ACEPTADA al acumulado del competidor.

    - prior_best=None  -> primera aceptada del problema: suma puntaje y +1 resuelto.
    - new_score > prior_best -> reemplaza el mejor anterior (resueltos no cambia).
    - new_score <= prior_best -> puntaje y resueltos sin cambios.

    Toda aceptada mueve last_accepted_at a accepted_at, mejore o no el puntaje.
    """
    if new_score < 0:
        raise ValueError(f"Puntaje negativo para el problema {problem_id}: {new_score}")

    last_accepted_at = accepted_at or current.last_accepted_at

    if prior_best is None:
        return replace(
            current,
            total_score=current.total_score + new_score,
            problems_solved_count=current.problems_solved_count + 1,
            last_accepted_at=last_accepted_at,
        )

    if new_score <= prior_best:
        return replace(current, last_accepted_at=last_accepted_at)

    return replace(
        current,
        total_score=current.total_score - prior_best + new_score,
        last_accepted_at=last_accepted_at,
    )


def replay_accepted_scores(
    accepted: Iterable[Tuple[int, int, Optional[datetime]]],
    start: ScoreTotals = ScoreTotals(),
) -> Tuple[ScoreTotals, Dict[int, int]]:
    """
    Reaplica (problem_id, score, accepted_at) en orden y devuelve
    (acumulado final, mejor puntaje por problema).
    """
    totals = start
    best_by_problem: Dict[int, int] = {}
    for problem_id, score, accepted_at in accepted:
        prior = best_by_problem.get(problem_id)
        totals = apply_accepted_score(totals, problem_id, prior, score, accepted_at)
        if prior is None or score > prior:
            best_by_problem[problem_id] = score
    return totals, best_by_problem
