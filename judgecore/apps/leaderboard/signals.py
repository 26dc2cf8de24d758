from django.dispatch import Signal

# Enviada tras un recálculo con cambios.
# kwargs: contest_id (int), deltas (list[RankDelta])
leaderboard_updated = Signal()
