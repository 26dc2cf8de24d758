from __future__ import annotations

from django.conf import settings
from django.db import models


class LeaderboardEntry(models.Model):
    """
    Posición materializada de un competidor en el concurso.
    Estado derivado: cada recálculo reemplaza el set completo del concurso.
    """
    contest = models.ForeignKey("contests.Contest", on_delete=models.CASCADE, related_name="leaderboard_entries")
    competitor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="leaderboard_entries",
    )

    rank = models.PositiveIntegerField()
    score = models.PositiveIntegerField(default=0)
    problems_solved = models.PositiveIntegerField(default=0)
    last_accepted_at = models.DateTimeField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=("contest", "competitor"), name="uniq_leaderboard_competitor"),
            # Ranking denso y sin empates: un rank por concurso
            models.UniqueConstraint(fields=("contest", "rank"), name="uniq_leaderboard_rank"),
        ]
        ordering = ("contest", "rank")
        verbose_name_plural = "leaderboard entries"

    def __str__(self) -> str:
        return f"{self.contest} · #{self.rank} · {self.competitor} · {self.score} pts"
