# judgecore/apps/scoring/services.py
from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from django.db import transaction

from judgecore.apps.contests.models import Contest
from judgecore.apps.judging.models import Review, ACCEPTED
from .aggregator import ScoreTotals, replay_accepted_scores
from .models import CompetitorAggregate

logger = logging.getLogger(__name__)


def rebuild_aggregates(contest_id: int) -> Dict[int, ScoreTotals]:
    """
    Reconstruye los acumulados de un concurso desde las revisiones aceptadas.

    Reaplica cada revisión en el orden en que se registró con la misma regla
    de mejor intento, así el resultado coincide con el cálculo incremental.
    Útil para reparar datos tras una carga manual o una migración.
    Devuelve {competitor_id: ScoreTotals}.
    """
    rebuilt: Dict[int, ScoreTotals] = {}
    with transaction.atomic():
        # Bloquea el concurso para no pisar un recálculo en curso
        Contest.objects.select_for_update().get(pk=contest_id)

        existing = {
            a.competitor_id: a
            for a in CompetitorAggregate.objects.select_for_update().filter(contest_id=contest_id)
        }

        # Lectura con los acumulados ya bloqueados
        reviews = (
            Review.objects.filter(
                correct=True,
                submission__contest_id=contest_id,
                submission__status=ACCEPTED,
            )
            .select_related("submission")
            .order_by("reviewed_at", "id")
        )
        by_competitor: Dict[int, List[Tuple[int, int, object]]] = {}
        for r in reviews:
            sub = r.submission
            by_competitor.setdefault(sub.competitor_id, []).append((sub.problem_id, r.score_awarded, r.reviewed_at))

        for competitor_id, accepted in by_competitor.items():
            totals, _best = replay_accepted_scores(accepted)
            aggregate = existing.pop(competitor_id, None)
            if aggregate is None:
                aggregate, _ = CompetitorAggregate.objects.select_for_update().get_or_create(
                    contest_id=contest_id, competitor_id=competitor_id
                )
            aggregate.set_totals(totals)
            aggregate.save()
            rebuilt[competitor_id] = totals

        # Acumulados sin ninguna aceptada: vuelven a cero
        for aggregate in existing.values():
            aggregate.set_totals(ScoreTotals())
            aggregate.save()
            rebuilt[aggregate.competitor_id] = ScoreTotals()

    logger.info("Acumulados reconstruidos para el concurso %s: %d competidores", contest_id, len(rebuilt))
    return rebuilt
