from __future__ import annotations

from django.conf import settings
from django.db import models

from .aggregator import ScoreTotals


class CompetitorAggregate(models.Model):
    """
    Acumulado por (concurso, competidor).
    total_score = suma del MEJOR puntaje aceptado de cada problema resuelto.
    Solo lo modifica el pipeline de revisión (y el rebuild de reparación).
    """
    contest = models.ForeignKey("contests.Contest", on_delete=models.CASCADE, related_name="aggregates")
    competitor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="contest_aggregates",
    )

    total_score = models.PositiveIntegerField(default=0)
    problems_solved_count = models.PositiveIntegerField(default=0)
    last_accepted_at = models.DateTimeField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=("contest", "competitor"), name="uniq_contest_competitor_aggregate"),
        ]
        ordering = ("contest", "-total_score", "last_accepted_at", "competitor")

    def __str__(self) -> str:
        return f"{self.contest} · {self.competitor} · {self.total_score} pts / {self.problems_solved_count}"

    def totals(self) -> ScoreTotals:
        return ScoreTotals(
            total_score=self.total_score,
            problems_solved_count=self.problems_solved_count,
            last_accepted_at=self.last_accepted_at,
        )

    def set_totals(self, totals: ScoreTotals) -> None:
        self.total_score = totals.total_score
        self.problems_solved_count = totals.problems_solved_count
        self.last_accepted_at = totals.last_accepted_at
