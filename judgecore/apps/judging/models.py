# judgecore/apps/judging/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

PENDING = "PENDING"
UNDER_REVIEW = "UNDER_REVIEW"
ACCEPTED = "ACCEPTED"
REJECTED = "REJECTED"

STATUS_CHOICES = (
    (PENDING, "Pendiente"),
    (UNDER_REVIEW, "En revisión"),
    (ACCEPTED, "Aceptada"),
    (REJECTED, "Rechazada"),
)

# Estados terminales: ninguna transición sale de aquí
TERMINAL_STATUSES = (ACCEPTED, REJECTED)


class Submission(models.Model):
    """
    Intento de un competidor sobre un problema del concurso.
    Flujo: PENDING -> UNDER_REVIEW (un juez la toma) -> ACCEPTED | REJECTED.
    """
    contest = models.ForeignKey("contests.Contest", on_delete=models.CASCADE, related_name="submissions")
    problem = models.ForeignKey("contests.Problem", on_delete=models.CASCADE, related_name="submissions")
    competitor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="submissions",
    )
    # Juez que tomó la submission (claim); solo él puede emitir el veredicto
    assigned_reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True, related_name="claimed_submissions",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=PENDING)
    code_text = models.TextField(blank=True, default="")

    submitted_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("submitted_at", "id")
        indexes = [
            models.Index(fields=("contest", "competitor", "problem", "status"), name="submission_best_lookup"),
            models.Index(fields=("status", "submitted_at"), name="submission_queue"),
        ]

    def __str__(self) -> str:
        return f"#{self.pk} · {self.competitor} · {self.problem} · {self.status}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Review(models.Model):
    """
    Veredicto del juez para UNA submission (1:1). Se crea una vez y no se modifica.
    """
    submission = models.OneToOneField(Submission, on_delete=models.CASCADE, related_name="review")
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reviews_given",
    )
    correct = models.BooleanField()
    score_awarded = models.PositiveIntegerField(default=0)
    remarks = models.TextField(blank=True, default="")
    reviewed_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ("-reviewed_at", "-id")

    def __str__(self) -> str:
        verdict = "OK" if self.correct else "NO"
        return f"Review #{self.pk} · submission #{self.submission_id} · {verdict} · {self.score_awarded} pts"
