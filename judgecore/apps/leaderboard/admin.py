from __future__ import annotations

from django.contrib import admin

from .models import LeaderboardEntry


@admin.register(LeaderboardEntry)
class LeaderboardEntryAdmin(admin.ModelAdmin):
    list_display = ("contest", "rank", "competitor", "score", "problems_solved", "last_accepted_at")
    list_filter = ("contest",)
    search_fields = ("competitor__username",)
    ordering = ("contest", "rank")

    # Derivado de los acumulados: se regenera con `recompute_leaderboards`
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
