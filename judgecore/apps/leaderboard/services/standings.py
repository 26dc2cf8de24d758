# judgecore/apps/leaderboard/services/standings.py
from __future__ import annotations

from typing import List, Optional, Tuple

from django.conf import settings

from ..models import LeaderboardEntry


def contest_standings(
    contest_id: int,
    limit: Optional[int] = None,
    offset: int = 0,
    competitor_id: Optional[int] = None,
) -> Tuple[List[LeaderboardEntry], int]:
    """Página del leaderboard persistido, por rank. Devuelve (filas, total)."""
    qs = LeaderboardEntry.objects.filter(contest_id=contest_id)
    if competitor_id is not None:
        qs = qs.filter(competitor_id=competitor_id)
    total = qs.count()

    limit = limit or settings.LEADERBOARD_PAGE_SIZE
    offset = max(offset, 0)
    entries = list(qs.select_related("competitor").order_by("rank")[offset:offset + limit])
    return entries, total


def competitor_position(contest_id: int, competitor_id: int) -> Optional[LeaderboardEntry]:
    return (
        LeaderboardEntry.objects.filter(contest_id=contest_id, competitor_id=competitor_id)
        .select_related("competitor")
        .first()
    )
