# judgecore/apps/judging/management/commands/seed_demo_contest.py
from __future__ import annotations

import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils.text import slugify

from judgecore.apps.contests.models import Contest, Problem, ContestProblem
from judgecore.apps.judging.models import Submission
from judgecore.apps.judging.services.queue import claim_submission
from judgecore.apps.judging.services.reviews import submit_review
from judgecore.apps.leaderboard.services.coordinator import get_coordinator


def ensure_demo_user(username: str):
    User = get_user_model()
    user, created = User.objects.get_or_create(username=username, defaults={"email": f"{username}@example.com"})
    if created or not user.has_usable_password():
        user.set_password("Pass1234!")
        user.save()
    return user


class Command(BaseCommand):
    help = (
        "Crea un concurso DEMO con problemas, competidores y submissions, y las revisa "
        "con el flujo real (claim -> submit_review) para poblar acumulados y leaderboard."
    )

    def add_arguments(self, parser):
        parser.add_argument("--contest", type=str, default="Copa Demo")
        parser.add_argument("--slug", type=str, default="")
        parser.add_argument("--problems", type=int, default=4)
        parser.add_argument("--competitors", type=int, default=8)
        parser.add_argument("--submissions", type=int, default=30)
        parser.add_argument("--seed", type=int, default=2025, help="Semilla para resultados reproducibles")

    def handle(self, *args, **opts):
        rng = random.Random(opts["seed"])
        name: str = opts["contest"]
        slug: str = opts["slug"] or slugify(name)

        # 1) Concurso y problemas
        contest, created = Contest.objects.get_or_create(slug=slug, defaults={"name": name, "status": "RUNNING"})
        if not created:
            self.stdout.write(self.style.WARNING(f"El concurso '{slug}' ya existía; se agregan submissions nuevas."))

        points = []
        for i in range(1, opts["problems"] + 1):
            cp = ContestProblem.objects.filter(contest=contest, order=i).select_related("problem").first()
            if cp is None:
                problem = Problem.objects.create(title=f"Problema {i}")
                cp = ContestProblem.objects.create(contest=contest, problem=problem, order=i, max_score=100 * ((i + 1) // 2))
            points.append(cp)

        # 2) Usuarios
        judge = ensure_demo_user("judge")
        competitors = [ensure_demo_user(f"competitor{i:02d}") for i in range(1, opts["competitors"] + 1)]

        # 3) Submissions -> claim -> veredicto
        accepted = rejected = 0
        for _ in range(opts["submissions"]):
            cp = rng.choice(points)
            sub = Submission.objects.create(
                contest=contest, problem=cp.problem, competitor=rng.choice(competitors), code_text="# demo"
            )
            claim_submission(sub.pk, judge.pk)
            correct = rng.random() < 0.6
            score = rng.randint(cp.max_score // 3, cp.max_score) if correct else 0
            submit_review(sub.pk, judge.pk, correct, score, remarks="" if correct else "Respuesta incorrecta")
            if correct:
                accepted += 1
            else:
                rejected += 1

        # 4) Leaderboard
        deltas = get_coordinator().request(contest.pk)

        self.stdout.write(self.style.SUCCESS(
            f"OK => Concurso={contest.slug} (id={contest.pk}), problemas={len(points)}, "
            f"competidores={len(competitors)}, aceptadas={accepted}, rechazadas={rejected}, "
            f"cambios de ranking={len(deltas or [])}"
        ))
