# judgecore/apps/judging/exceptions.py
from __future__ import annotations

from django.core.exceptions import ValidationError


class ReviewError(Exception):
    """Base de los errores del pipeline de revisión."""


class NotFound(ReviewError):
    pass


class SubmissionNotFound(NotFound):
    def __init__(self, submission_id):
        super().__init__(f"No existe la submission {submission_id}")
        self.submission_id = submission_id


class ProblemNotInContest(NotFound):
    def __init__(self, contest_id, problem_id):
        super().__init__(f"El problema {problem_id} no pertenece al concurso {contest_id}")
        self.contest_id = contest_id
        self.problem_id = problem_id


class ReviewConflict(ReviewError):
    """La submission no está en un estado que permita la operación (o perdió una carrera)."""


class InvalidScore(ReviewError, ValidationError):
    def __init__(self, message: str):
        ReviewError.__init__(self, message)
        ValidationError.__init__(self, message, code="invalid_score")

    def __str__(self) -> str:
        return self.message


class StorageUnavailable(ReviewError):
    """Falla de BD dentro de la transacción; nada quedó escrito, se puede reintentar."""
