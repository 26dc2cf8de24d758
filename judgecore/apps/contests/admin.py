from __future__ import annotations

from django.contrib import admin

from .models import Contest, Problem, ContestProblem


class ContestProblemInline(admin.TabularInline):
    model = ContestProblem
    extra = 0
    fields = ("order", "problem", "max_score")
    raw_id_fields = ("problem",)


@admin.register(Contest)
class ContestAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "status", "start_time", "end_time", "problems_count")
    list_filter = ("status",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [ContestProblemInline]

    def problems_count(self, obj: Contest) -> int:
        return obj.problem_points.count()
    problems_count.short_description = "Problemas"


@admin.register(Problem)
class ProblemAdmin(admin.ModelAdmin):
    list_display = ("title", "created_at")
    search_fields = ("title",)
