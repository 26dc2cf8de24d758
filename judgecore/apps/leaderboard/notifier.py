# judgecore/apps/leaderboard/notifier.py
"""
Salida hacia la capa de transporte (websocket, pub/sub...).
El core solo entrega la lista de deltas; quién la retransmite se configura
con settings.LEADERBOARD_NOTIFIER.
"""
from __future__ import annotations

import logging
from typing import Sequence

from django.conf import settings
from django.utils.module_loading import import_string

from .signals import leaderboard_updated

logger = logging.getLogger(__name__)


class RankChangeNotifier:
    def notify(self, contest_id: int, deltas: Sequence) -> None:
        raise NotImplementedError


class SignalNotifier(RankChangeNotifier):
    """Publica la señal `leaderboard_updated`; el transporte se conecta como receiver."""

    def notify(self, contest_id: int, deltas: Sequence) -> None:
        leaderboard_updated.send(sender=self.__class__, contest_id=contest_id, deltas=list(deltas))


class LoggingNotifier(RankChangeNotifier):
    def notify(self, contest_id: int, deltas: Sequence) -> None:
        for d in deltas:
            logger.info(
                "Concurso %s · competidor %s: rank %s -> %s, puntaje %s -> %s",
                contest_id, d.competitor_id, d.old_rank, d.new_rank, d.old_score, d.new_score,
            )


def get_notifier() -> RankChangeNotifier:
    return import_string(settings.LEADERBOARD_NOTIFIER)()
