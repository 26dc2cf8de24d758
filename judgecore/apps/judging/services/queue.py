# judgecore/apps/judging/services/queue.py
"""
Cola de jueces: un juez toma (claim) una submission PENDING y la pasa a UNDER_REVIEW.
Solo quien la tomó puede luego emitir el veredicto (ver services.reviews).
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from django.db.models import Count, Q
from django.utils import timezone

from ..exceptions import ReviewConflict, SubmissionNotFound
from ..models import Submission, PENDING, UNDER_REVIEW

logger = logging.getLogger(__name__)


def judge_queue(contest_id: Optional[int] = None) -> List[Submission]:
    """Submissions pendientes y sin juez, la más antigua primero (FIFO)."""
    qs = Submission.objects.filter(status=PENDING, assigned_reviewer__isnull=True)
    if contest_id is not None:
        qs = qs.filter(contest_id=contest_id)
    return list(qs.select_related("contest", "problem", "competitor").order_by("submitted_at", "id"))


def claim_submission(submission_id: int, reviewer_id: int) -> Submission:
    """
    Toma una submission para revisión.
    El UPDATE es condicional (PENDING y sin juez), así dos jueces no pueden tomar la misma.
    Volver a tomar una submission propia que ya está en revisión no es error.
    """
    updated = Submission.objects.filter(
        pk=submission_id,
        status=PENDING,
        assigned_reviewer__isnull=True,
    ).update(status=UNDER_REVIEW, assigned_reviewer_id=reviewer_id, updated_at=timezone.now())

    submission = Submission.objects.filter(pk=submission_id).select_related("problem", "contest").first()
    if submission is None:
        raise SubmissionNotFound(submission_id)

    if updated:
        logger.info("Submission %s tomada por el juez %s", submission_id, reviewer_id)
        return submission

    if submission.status == UNDER_REVIEW and submission.assigned_reviewer_id == reviewer_id:
        return submission
    if submission.assigned_reviewer_id not in (None, reviewer_id):
        raise ReviewConflict(f"La submission {submission_id} ya está siendo revisada por otro juez")
    raise ReviewConflict(f"La submission {submission_id} ya no está pendiente ({submission.status})")


def release_submission(submission_id: int, reviewer_id: int) -> bool:
    """Devuelve a la cola una submission que el juez no puede terminar."""
    released = Submission.objects.filter(
        pk=submission_id,
        assigned_reviewer_id=reviewer_id,
        status=UNDER_REVIEW,
    ).update(status=PENDING, assigned_reviewer=None, updated_at=timezone.now())
    if released:
        logger.info("Submission %s liberada por el juez %s", submission_id, reviewer_id)
    return released > 0


def active_submissions(reviewer_id: int) -> List[Submission]:
    return list(
        Submission.objects.filter(assigned_reviewer_id=reviewer_id, status=UNDER_REVIEW)
        .select_related("contest", "problem", "competitor")
        .order_by("submitted_at", "id")
    )


def queue_statistics(contest_id: Optional[int] = None) -> Dict[str, int]:
    qs = Submission.objects.all()
    if contest_id is not None:
        qs = qs.filter(contest_id=contest_id)
    stats = qs.aggregate(
        pending=Count("id", filter=Q(status=PENDING)),
        under_review=Count("id", filter=Q(status=UNDER_REVIEW)),
        total=Count("id"),
    )
    return {
        "pending_count": stats["pending"] or 0,
        "under_review_count": stats["under_review"] or 0,
        "total_submissions": stats["total"] or 0,
    }
