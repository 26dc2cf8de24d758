from django.core.management.base import BaseCommand, CommandError

from judgecore.apps.contests.models import Contest
from judgecore.apps.leaderboard.services.coordinator import get_coordinator
from judgecore.apps.scoring.services import rebuild_aggregates


class Command(BaseCommand):
    help = "Reconstruye los acumulados de un concurso desde sus revisiones aceptadas y recalcula el leaderboard."

    def add_arguments(self, parser):
        parser.add_argument("--contest", type=int, required=True, help="ID del concurso")
        parser.add_argument("--no-recompute", action="store_true", help="No recalcular el leaderboard al terminar")

    def handle(self, *args, **opts):
        contest_id = opts["contest"]
        if not Contest.objects.filter(pk=contest_id).exists():
            raise CommandError(f"No se encontró el concurso id={contest_id}")

        rebuilt = rebuild_aggregates(contest_id)
        for competitor_id, totals in sorted(rebuilt.items()):
            self.stdout.write(
                f" - competidor {competitor_id}: {totals.total_score} pts, "
                f"{totals.problems_solved_count} resueltos"
            )
        self.stdout.write(self.style.SUCCESS(f"✓ {len(rebuilt)} acumulados reconstruidos (concurso {contest_id})"))

        if not opts["no_recompute"]:
            deltas = get_coordinator().request(contest_id)
            if deltas is None:
                self.stdout.write(self.style.WARNING("El recálculo del leaderboard quedó pendiente (ver logs)."))
            else:
                self.stdout.write(self.style.SUCCESS(f"✓ Leaderboard recalculado: {len(deltas)} cambios"))
