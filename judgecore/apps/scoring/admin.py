from __future__ import annotations

from django.contrib import admin

from .models import CompetitorAggregate


@admin.register(CompetitorAggregate)
class CompetitorAggregateAdmin(admin.ModelAdmin):
    list_display = ("competitor", "contest", "total_score", "problems_solved_count", "last_accepted_at", "updated_at")
    list_filter = ("contest",)
    search_fields = ("competitor__username",)
    raw_id_fields = ("contest", "competitor")
    # Estado derivado: se edita solo vía revisiones o `rebuild_aggregates`
    readonly_fields = ("total_score", "problems_solved_count", "last_accepted_at", "updated_at")
