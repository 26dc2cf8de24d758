from django.core.management.base import BaseCommand

from judgecore.apps.leaderboard.services.coordinator import recompute_active_contests


class Command(BaseCommand):
    help = (
        "Recalcula el leaderboard de los concursos activos (o de los indicados). "
        "Pensado para correr desde cron o un timer del sistema."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--contest", type=int, action="append", dest="contests", default=None,
            help="ID de concurso (se puede repetir). Por defecto: todos los activos.",
        )

    def handle(self, *args, **opts):
        results = recompute_active_contests(contest_ids=opts["contests"])
        if not results:
            self.stdout.write(self.style.WARNING("No hay concursos activos para recalcular."))
            return

        failed = 0
        for contest_id, changes in results.items():
            if changes is None:
                failed += 1
                self.stderr.write(self.style.ERROR(f"✗ Concurso {contest_id}: recálculo fallido o pendiente (ver logs)"))
            else:
                self.stdout.write(f" - Concurso {contest_id}: {changes} cambios")

        msg = f"✓ Leaderboards recalculados: {len(results) - failed}/{len(results)}"
        self.stdout.write(self.style.SUCCESS(msg) if not failed else self.style.WARNING(msg))
