# judgecore/apps/judging/services/reviews.py
"""
Procesamiento de un veredicto de juez.

Todo el paso "revisión -> estado de la submission -> acumulado del competidor"
ocurre en una sola transacción. El recálculo del leaderboard se pide recién
después del commit y nunca hace fallar la revisión.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Avg, Count, Max, Q
from django.utils import timezone

from judgecore.apps.contests.models import ContestProblem
from judgecore.apps.leaderboard.services.coordinator import request_recompute
from judgecore.apps.scoring.aggregator import ScoreTotals, apply_accepted_score
from judgecore.apps.scoring.models import CompetitorAggregate

from ..exceptions import (
    InvalidScore,
    ProblemNotInContest,
    ReviewConflict,
    StorageUnavailable,
    SubmissionNotFound,
)
from ..models import Review, Submission, ACCEPTED, REJECTED, UNDER_REVIEW

logger = logging.getLogger(__name__)


@dataclass
class ReviewResult:
    review: Review
    submission: Submission
    # None si la revisión fue rechazada y el competidor aún no tenía acumulado
    aggregate: Optional[CompetitorAggregate]
    previous_totals: ScoreTotals
    totals: ScoreTotals

    @property
    def aggregate_changed(self) -> bool:
        return self.previous_totals != self.totals


# -------------------------------
# Validaciones
# -------------------------------
def _coerce_score(score_awarded: Any) -> int:
    # bool es int en Python; un True/False como puntaje es un error del llamador
    if isinstance(score_awarded, bool):
        raise InvalidScore("El puntaje debe ser un entero.")
    try:
        value = int(score_awarded)
    except (TypeError, ValueError, ArithmeticError):
        raise InvalidScore("El puntaje debe ser un entero.") from None
    # int() trunca float, Decimal y Fraction: solo se aceptan valores enteros exactos
    if not isinstance(score_awarded, str) and value != score_awarded:
        raise InvalidScore("El puntaje debe ser un entero.")
    return value


def _max_score_for(submission: Submission) -> int:
    max_score = (
        ContestProblem.objects.filter(contest_id=submission.contest_id, problem_id=submission.problem_id)
        .values_list("max_score", flat=True)
        .first()
    )
    if max_score is None:
        raise ProblemNotInContest(submission.contest_id, submission.problem_id)
    return max_score


def _check_reviewable(submission: Submission, reviewer_id: int) -> None:
    if submission.status != UNDER_REVIEW:
        raise ReviewConflict(
            f"La submission {submission.pk} no está en revisión (estado {submission.status})"
        )
    if submission.assigned_reviewer_id != reviewer_id:
        raise ReviewConflict(f"La submission {submission.pk} no fue tomada por el juez {reviewer_id}")


def _check_score(score: int, max_score: int) -> None:
    if score < 0 or score > max_score:
        raise InvalidScore(f"El puntaje debe estar entre 0 y {max_score}.")


# -------------------------------
# Acumulado
# -------------------------------
def _prior_best(submission: Submission) -> Optional[int]:
    """Mejor puntaje aceptado previo del competidor en este problema (None si nunca lo resolvió)."""
    return (
        Review.objects.filter(
            correct=True,
            submission__status=ACCEPTED,
            submission__contest_id=submission.contest_id,
            submission__competitor_id=submission.competitor_id,
            submission__problem_id=submission.problem_id,
        )
        .exclude(submission_id=submission.pk)
        .aggregate(best=Max("score_awarded"))["best"]
    )


def _apply_to_aggregate(
    submission: Submission, score: int, accepted_at
) -> Tuple[CompetitorAggregate, ScoreTotals, ScoreTotals]:
    aggregate, _ = CompetitorAggregate.objects.get_or_create(
        contest_id=submission.contest_id,
        competitor_id=submission.competitor_id,
    )
    # Bloqueo por (concurso, competidor): dos revisiones del mismo competidor se serializan aquí
    aggregate = CompetitorAggregate.objects.select_for_update().get(pk=aggregate.pk)

    previous = aggregate.totals()
    totals = apply_accepted_score(previous, submission.problem_id, _prior_best(submission), score, accepted_at)
    if totals != previous:
        aggregate.set_totals(totals)
        aggregate.save(update_fields=["total_score", "problems_solved_count", "last_accepted_at", "updated_at"])
    return aggregate, previous, totals


# -------------------------------
# Entrada pública
# -------------------------------
def submit_review(
    submission_id: int,
    reviewer_id: int,
    correct: bool,
    score_awarded: int,
    remarks: Optional[str] = "",
) -> ReviewResult:
    """
    Registra el veredicto del juez para una submission.

    Errores (ninguno deja cambios en la BD):
      - SubmissionNotFound / ProblemNotInContest
      - ReviewConflict: no está UNDER_REVIEW, otro juez, o ya tiene revisión
      - InvalidScore: fuera de [0, max_score]
      - StorageUnavailable: la BD falló a mitad; se revirtió todo, reintentar
    """
    submission = Submission.objects.filter(pk=submission_id).first()
    if submission is None:
        raise SubmissionNotFound(submission_id)
    _check_reviewable(submission, reviewer_id)
    max_score = _max_score_for(submission)
    score = _coerce_score(score_awarded)
    _check_score(score, max_score)

    try:
        with transaction.atomic():
            # Re-chequeo con la fila bloqueada: el segundo de dos jueces concurrentes cae aquí
            submission = Submission.objects.select_for_update().filter(pk=submission_id).first()
            if submission is None:
                raise SubmissionNotFound(submission_id)
            _check_reviewable(submission, reviewer_id)
            if Review.objects.filter(submission_id=submission_id).exists():
                raise ReviewConflict(f"La submission {submission_id} ya tiene una revisión")

            now = timezone.now()
            submission.status = ACCEPTED if correct else REJECTED
            submission.save(update_fields=["status", "updated_at"])

            review = Review.objects.create(
                submission=submission,
                reviewer_id=reviewer_id,
                correct=bool(correct),
                score_awarded=score,
                remarks=remarks or "",
                reviewed_at=now,
            )

            if correct:
                aggregate, previous, totals = _apply_to_aggregate(submission, score, now)
            else:
                aggregate = CompetitorAggregate.objects.filter(
                    contest_id=submission.contest_id,
                    competitor_id=submission.competitor_id,
                ).first()
                previous = totals = aggregate.totals() if aggregate else ScoreTotals()

            contest_id = submission.contest_id
            transaction.on_commit(lambda: _trigger_recompute(contest_id))
    except IntegrityError as exc:
        # OneToOne de Review: otra transacción insertó la revisión primero
        raise ReviewConflict(f"La submission {submission_id} ya tiene una revisión") from exc
    except DatabaseError as exc:
        logger.exception("Error de BD registrando la revisión de la submission %s", submission_id)
        raise StorageUnavailable(f"No se pudo registrar la revisión de la submission {submission_id}") from exc

    logger.info(
        "Submission %s %s por el juez %s (%s pts); acumulado %s -> %s",
        submission_id, submission.status, reviewer_id, score,
        previous.total_score, totals.total_score,
    )
    return ReviewResult(
        review=review,
        submission=submission,
        aggregate=aggregate,
        previous_totals=previous,
        totals=totals,
    )


def _trigger_recompute(contest_id: int) -> None:
    # El coordinador ya registra y reintenta sus fallas; esto es solo la última barrera
    try:
        request_recompute(contest_id)
    except Exception:
        logger.exception("No se pudo pedir el recálculo del leaderboard del concurso %s", contest_id)


# -------------------------------
# Consultas
# -------------------------------
def review_for_submission(submission_id: int) -> Optional[Review]:
    return Review.objects.filter(submission_id=submission_id).select_related("submission", "reviewer").first()


def reviews_by_judge(reviewer_id: int, limit: Optional[int] = None) -> List[Review]:
    qs = (
        Review.objects.filter(reviewer_id=reviewer_id)
        .select_related("submission", "submission__problem")
        .order_by("-reviewed_at", "-id")
    )
    if limit:
        qs = qs[:limit]
    return list(qs)


def reviews_for_competitor(competitor_id: int, contest_id: Optional[int] = None) -> List[Review]:
    qs = Review.objects.filter(submission__competitor_id=competitor_id)
    if contest_id is not None:
        qs = qs.filter(submission__contest_id=contest_id)
    return list(qs.select_related("submission", "submission__problem").order_by("-reviewed_at", "-id"))


def judge_statistics(reviewer_id: int) -> Dict[str, Any]:
    stats = Review.objects.filter(reviewer_id=reviewer_id).aggregate(
        total=Count("id"),
        accepted=Count("id", filter=Q(correct=True)),
        average=Avg("score_awarded"),
    )
    total = stats["total"] or 0
    accepted = stats["accepted"] or 0
    return {
        "total_reviews": total,
        "accepted_reviews": accepted,
        "rejected_reviews": total - accepted,
        "average_score": round(float(stats["average"] or 0), 2),
    }
