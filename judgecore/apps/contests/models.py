from __future__ import annotations

from django.db import models
from django.core.exceptions import ValidationError
from django.utils.text import slugify


class Contest(models.Model):
    STATUS_CHOICES = (
        ("PLANNED", "Planned"),
        ("RUNNING", "Running"),
        ("ENDED", "Ended"),
        ("CANCELLED", "Cancelled"),
    )

    name = models.CharField(max_length=160)
    slug = models.SlugField(unique=True)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="PLANNED")

    start_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-start_time", "name")

    def __str__(self) -> str:
        return self.name

    def clean(self):
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValidationError("end_time no puede ser anterior a start_time")

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)


class Problem(models.Model):
    title = models.CharField(max_length=200)
    statement = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("title", "id")

    def __str__(self) -> str:
        return self.title


class ContestProblem(models.Model):
    """
    Puntaje máximo de un problema dentro de un concurso.
    Es solo lectura para el pipeline de revisión: lo usa para validar el puntaje otorgado.
    """
    contest = models.ForeignKey(Contest, on_delete=models.CASCADE, related_name="problem_points")
    problem = models.ForeignKey(Problem, on_delete=models.CASCADE, related_name="contest_points")
    max_score = models.PositiveIntegerField(default=100)
    order = models.PositiveIntegerField(default=1, help_text="Orden del problema dentro del concurso (1..N).")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=("contest", "problem"), name="uniq_contest_problem"),
        ]
        ordering = ("contest", "order")

    def __str__(self) -> str:
        return f"{self.contest.name} · P{self.order} · {self.problem.title} ({self.max_score} pts)"
