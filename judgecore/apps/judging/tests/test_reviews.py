from __future__ import annotations

import random
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import IntegrityError, OperationalError
from django.db.models import Max
from django.test import TestCase

from judgecore.apps.judging.exceptions import (
    InvalidScore,
    ProblemNotInContest,
    ReviewConflict,
    StorageUnavailable,
    SubmissionNotFound,
)
from judgecore.apps.judging.models import Review, ACCEPTED, REJECTED, UNDER_REVIEW, PENDING
from judgecore.apps.judging.services import reviews as review_service
from judgecore.apps.judging.services.reviews import (
    judge_statistics,
    review_for_submission,
    reviews_by_judge,
    reviews_for_competitor,
    submit_review,
)
from judgecore.apps.contests.models import Problem
from judgecore.apps.leaderboard.models import LeaderboardEntry
from judgecore.apps.scoring.aggregator import ScoreTotals
from judgecore.apps.scoring.models import CompetitorAggregate
from judgecore.apps.scoring.services import rebuild_aggregates
from .factories import add_problem, make_contest, make_submission, make_user

RECOMPUTE = "judgecore.apps.judging.services.reviews.request_recompute"
MAX_SCORE = "judgecore.apps.judging.services.reviews._max_score_for"


class SubmitReviewTest(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.contest = make_contest()
        cls.p = add_problem(cls.contest, "P", max_score=100, order=1)
        cls.q = add_problem(cls.contest, "Q", max_score=100, order=2)
        cls.alice = make_user("alice")
        cls.judge = make_user("judge")
        cls.other_judge = make_user("judge2")

    def _review(self, competitor, problem, correct, score, remarks=""):
        sub = make_submission(self.contest, problem, competitor, reviewer=self.judge)
        return submit_review(sub.pk, self.judge.pk, correct, score, remarks)

    def _aggregate(self, competitor):
        return CompetitorAggregate.objects.get(contest=self.contest, competitor=competitor)

    # ---------- Escenarios de mejor intento ----------

    def test_first_accepted_review(self):
        result = self._review(self.alice, self.p, True, 60)

        self.assertEqual(result.submission.status, ACCEPTED)
        self.assertTrue(result.review.correct)
        self.assertEqual(result.review.score_awarded, 60)
        self.assertEqual(result.previous_totals, ScoreTotals())
        agg = self._aggregate(self.alice)
        self.assertEqual((agg.total_score, agg.problems_solved_count), (60, 1))
        self.assertEqual(agg.last_accepted_at, result.review.reviewed_at)

    def test_better_resubmission_replaces_score(self):
        self._review(self.alice, self.p, True, 60)
        result = self._review(self.alice, self.p, True, 90)

        agg = self._aggregate(self.alice)
        self.assertEqual((agg.total_score, agg.problems_solved_count), (90, 1))
        self.assertTrue(result.aggregate_changed)

    def test_worse_resubmission_keeps_score_and_moves_last_accepted(self):
        self._review(self.alice, self.p, True, 60)
        self._review(self.alice, self.p, True, 90)

        result = self._review(self.alice, self.p, True, 40)

        after = self._aggregate(self.alice)
        self.assertEqual((after.total_score, after.problems_solved_count), (90, 1))
        self.assertEqual(after.last_accepted_at, result.review.reviewed_at)
        self.assertEqual(result.previous_totals.total_score, result.totals.total_score)
        self.assertTrue(result.aggregate_changed)
        # La submission igual queda ACCEPTED con su revisión
        self.assertEqual(result.submission.status, ACCEPTED)

    def test_two_problems_sum(self):
        self._review(self.alice, self.p, True, 70)
        self._review(self.alice, self.q, True, 100)
        agg = self._aggregate(self.alice)
        self.assertEqual((agg.total_score, agg.problems_solved_count), (170, 2))

    def test_rejected_review_leaves_aggregate(self):
        result = self._review(self.alice, self.p, False, 0, remarks="WA en el caso 3")

        self.assertEqual(result.submission.status, REJECTED)
        self.assertIsNone(result.aggregate)
        self.assertFalse(CompetitorAggregate.objects.filter(competitor=self.alice).exists())

        self._review(self.alice, self.p, True, 50)
        result = self._review(self.alice, self.q, False, 0)
        self.assertEqual(result.aggregate.total_score, 50)
        self.assertEqual(self._aggregate(self.alice).problems_solved_count, 1)

    # ---------- Precondiciones ----------

    def test_second_review_of_same_submission_conflicts(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        submit_review(sub.pk, self.judge.pk, True, 60)

        with self.assertRaises(ReviewConflict):
            submit_review(sub.pk, self.judge.pk, True, 100)

        agg = self._aggregate(self.alice)
        self.assertEqual((agg.total_score, agg.problems_solved_count), (60, 1))
        self.assertEqual(Review.objects.filter(submission=sub).count(), 1)

    def test_rejected_submission_is_terminal(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        submit_review(sub.pk, self.judge.pk, False, 0)
        with self.assertRaises(ReviewConflict):
            submit_review(sub.pk, self.judge.pk, True, 100)
        sub.refresh_from_db()
        self.assertEqual(sub.status, REJECTED)

    def test_score_above_max_is_validation_error(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)

        with self.assertRaises(InvalidScore) as ctx:
            submit_review(sub.pk, self.judge.pk, True, 150)

        self.assertIsInstance(ctx.exception, ValidationError)
        sub.refresh_from_db()
        self.assertEqual(sub.status, UNDER_REVIEW)
        self.assertFalse(Review.objects.exists())
        self.assertFalse(CompetitorAggregate.objects.exists())

    def test_negative_and_non_integer_scores(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        for bad in (-1, 12.5, Decimal("12.5"), "12.5", "abc", None, True, float("nan")):
            with self.assertRaises(InvalidScore):
                submit_review(sub.pk, self.judge.pk, True, bad)
        self.assertFalse(Review.objects.exists())

    def test_boundaries_are_valid(self):
        self.assertEqual(self._review(self.alice, self.p, True, 0).review.score_awarded, 0)
        self.assertEqual(self._review(self.alice, self.q, True, 100).review.score_awarded, 100)

    def test_integral_decimal_is_accepted(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        result = submit_review(sub.pk, self.judge.pk, True, Decimal("12"))
        self.assertEqual(result.review.score_awarded, 12)

    def test_missing_submission(self):
        with self.assertRaises(SubmissionNotFound):
            submit_review(424242, self.judge.pk, True, 10)

    def test_missing_submission_is_reported_before_bad_score(self):
        with self.assertRaises(SubmissionNotFound):
            submit_review(424242, self.judge.pk, True, "abc")
        with self.assertRaises(SubmissionNotFound):
            submit_review(424242, self.judge.pk, True, 500)

    def test_pending_submission_cannot_be_reviewed(self):
        sub = make_submission(self.contest, self.p, self.alice)
        self.assertEqual(sub.status, PENDING)
        with self.assertRaises(ReviewConflict):
            submit_review(sub.pk, self.judge.pk, True, 10)

    def test_only_assigned_judge_can_review(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        with self.assertRaises(ReviewConflict):
            submit_review(sub.pk, self.other_judge.pk, True, 10)
        sub.refresh_from_db()
        self.assertEqual(sub.status, UNDER_REVIEW)

    def test_problem_outside_contest(self):
        loose = Problem.objects.create(title="Suelto")
        sub = make_submission(self.contest, loose, self.alice, reviewer=self.judge)
        with self.assertRaises(ProblemNotInContest):
            submit_review(sub.pk, self.judge.pk, True, 10)

    def test_existing_review_conflicts_even_if_status_lags(self):
        # Simula una revisión concurrente ya insertada
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        Review.objects.create(submission=sub, reviewer=self.judge, correct=True, score_awarded=10)
        with self.assertRaises(ReviewConflict):
            submit_review(sub.pk, self.judge.pk, True, 20)
        self.assertFalse(CompetitorAggregate.objects.exists())

    # ---------- Atomicidad ----------

    def test_storage_failure_rolls_back_everything(self):
        self._review(self.alice, self.p, True, 60)
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)

        with mock.patch(
            "judgecore.apps.judging.services.reviews._apply_to_aggregate",
            side_effect=OperationalError("database is locked"),
        ):
            with self.assertRaises(StorageUnavailable):
                submit_review(sub.pk, self.judge.pk, True, 95)

        sub.refresh_from_db()
        self.assertEqual(sub.status, UNDER_REVIEW)
        self.assertFalse(Review.objects.filter(submission=sub).exists())
        self.assertEqual(self._aggregate(self.alice).total_score, 60)

        # Reintento tras la falla: ahora sí pasa
        submit_review(sub.pk, self.judge.pk, True, 95)
        self.assertEqual(self._aggregate(self.alice).total_score, 95)

    # ---------- Recálculo tras el commit ----------

    def test_recompute_requested_after_commit(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        with mock.patch(RECOMPUTE) as recompute:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                submit_review(sub.pk, self.judge.pk, True, 60)
        self.assertEqual(len(callbacks), 1)
        recompute.assert_called_once_with(self.contest.pk)

    def test_failed_review_does_not_request_recompute(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        with mock.patch(RECOMPUTE) as recompute:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(InvalidScore):
                    submit_review(sub.pk, self.judge.pk, True, 101)
        self.assertEqual(callbacks, [])
        recompute.assert_not_called()

    def test_recompute_failure_does_not_fail_review(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        with mock.patch(RECOMPUTE, side_effect=RuntimeError("ranker caído")):
            with self.captureOnCommitCallbacks(execute=True):
                result = submit_review(sub.pk, self.judge.pk, True, 60)
        self.assertEqual(result.submission.status, ACCEPTED)
        self.assertEqual(self._aggregate(self.alice).total_score, 60)

    def test_end_to_end_updates_leaderboard(self):
        bob = make_user("bob")
        with self.captureOnCommitCallbacks(execute=True):
            self._review(self.alice, self.p, True, 60)
        with self.captureOnCommitCallbacks(execute=True):
            self._review(bob, self.p, True, 80)

        entries = list(LeaderboardEntry.objects.filter(contest=self.contest).order_by("rank"))
        self.assertEqual([(e.competitor_id, e.rank, e.score) for e in entries], [(bob.pk, 1, 80), (self.alice.pk, 2, 60)])

    # ---------- Invariantes ----------

    def test_random_sequence_keeps_sum_of_best_invariant(self):
        rng = random.Random(7)
        competitors = [self.alice, make_user("bob"), make_user("carol")]
        for _ in range(40):
            self._review(rng.choice(competitors), rng.choice([self.p, self.q]), rng.random() < 0.7, rng.randint(0, 100))

        incremental = {a.competitor_id: a.totals() for a in CompetitorAggregate.objects.filter(contest=self.contest)}
        for competitor in competitors:
            best = (
                Review.objects.filter(correct=True, submission__competitor=competitor, submission__contest=self.contest)
                .values("submission__problem_id")
                .annotate(best=Max("score_awarded"))
            )
            expected_total = sum(row["best"] for row in best)
            totals = incremental.get(competitor.pk, ScoreTotals())
            self.assertEqual(totals.total_score, expected_total)
            self.assertEqual(totals.problems_solved_count, len(best))

        # La reconstrucción desde revisiones coincide con el cálculo incremental
        rebuilt = rebuild_aggregates(self.contest.pk)
        self.assertEqual(rebuilt, incremental)


class ConcurrentReviewTest(TestCase):
    """
    Carreras entre revisiones: la otra revisión se commitea entre los chequeos
    previos y el bloqueo de filas de submit_review.
    """

    @classmethod
    def setUpTestData(cls):
        cls.contest = make_contest()
        cls.p = add_problem(cls.contest, "P", max_score=100, order=1)
        cls.q = add_problem(cls.contest, "Q", max_score=100, order=2)
        cls.alice = make_user("alice")
        cls.judge = make_user("judge")

    def _race(self, competing):
        """Corre `competing` una sola vez, después de los chequeos sin lock."""
        real_max_score = review_service._max_score_for
        ran = []

        def interleave(submission):
            if not ran:
                ran.append(True)
                competing()
            return real_max_score(submission)

        return mock.patch(MAX_SCORE, side_effect=interleave)

    def test_second_verdict_on_same_submission_loses(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)

        with self._race(lambda: submit_review(sub.pk, self.judge.pk, True, 60)):
            with self.assertRaises(ReviewConflict):
                submit_review(sub.pk, self.judge.pk, True, 100)

        self.assertEqual(Review.objects.filter(submission=sub).count(), 1)
        self.assertEqual(Review.objects.get(submission=sub).score_awarded, 60)
        agg = CompetitorAggregate.objects.get(contest=self.contest, competitor=self.alice)
        self.assertEqual((agg.total_score, agg.problems_solved_count), (60, 1))

    def test_reviews_of_same_competitor_do_not_lose_updates(self):
        first = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)
        second = make_submission(self.contest, self.q, self.alice, reviewer=self.judge)

        with self._race(lambda: submit_review(second.pk, self.judge.pk, True, 40)):
            result = submit_review(first.pk, self.judge.pk, True, 60)

        # El acumulado se relee bajo lock: incluye la revisión que ganó la carrera
        self.assertEqual(result.previous_totals.total_score, 40)
        agg = CompetitorAggregate.objects.get(contest=self.contest, competitor=self.alice)
        self.assertEqual((agg.total_score, agg.problems_solved_count), (100, 2))
        self.assertEqual(agg.last_accepted_at, result.review.reviewed_at)

    def test_unique_review_violation_becomes_conflict(self):
        sub = make_submission(self.contest, self.p, self.alice, reviewer=self.judge)

        with mock.patch.object(Review.objects, "create", side_effect=IntegrityError("duplicate key")):
            with self.assertRaises(ReviewConflict):
                submit_review(sub.pk, self.judge.pk, True, 60)

        sub.refresh_from_db()
        self.assertEqual(sub.status, UNDER_REVIEW)
        self.assertFalse(CompetitorAggregate.objects.exists())


class ReviewQueriesTest(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.contest = make_contest()
        cls.p = add_problem(cls.contest, "P")
        cls.alice = make_user("alice")
        cls.judge = make_user("judge")

        for correct, score in ((True, 40), (False, 0), (True, 95)):
            sub = make_submission(cls.contest, cls.p, cls.alice, reviewer=cls.judge)
            submit_review(sub.pk, cls.judge.pk, correct, score)
        cls.last_sub = sub

    def test_review_for_submission(self):
        review = review_for_submission(self.last_sub.pk)
        self.assertEqual(review.score_awarded, 95)
        self.assertIsNone(review_for_submission(999999))

    def test_reviews_by_judge_newest_first(self):
        reviews = reviews_by_judge(self.judge.pk)
        self.assertEqual([r.score_awarded for r in reviews], [95, 0, 40])
        self.assertEqual(len(reviews_by_judge(self.judge.pk, limit=1)), 1)

    def test_reviews_for_competitor(self):
        self.assertEqual(len(reviews_for_competitor(self.alice.pk)), 3)
        self.assertEqual(reviews_for_competitor(self.alice.pk, contest_id=self.contest.pk + 1), [])

    def test_judge_statistics(self):
        self.assertEqual(
            judge_statistics(self.judge.pk),
            {"total_reviews": 3, "accepted_reviews": 2, "rejected_reviews": 1, "average_score": 45.0},
        )
