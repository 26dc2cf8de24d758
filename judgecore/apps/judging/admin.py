from __future__ import annotations

from django.contrib import admin

from .models import Submission, Review


class ReviewInline(admin.StackedInline):
    model = Review
    extra = 0
    can_delete = False
    fields = ("reviewer", "correct", "score_awarded", "remarks", "reviewed_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        # Los veredictos se registran solo vía submit_review
        return False


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("id", "contest", "problem", "competitor", "status", "assigned_reviewer", "submitted_at")
    list_filter = ("contest", "status")
    search_fields = ("competitor__username", "assigned_reviewer__username")
    raw_id_fields = ("contest", "problem", "competitor", "assigned_reviewer")
    readonly_fields = ("status", "updated_at")
    inlines = [ReviewInline]

    def has_delete_permission(self, request, obj=None):
        # Borrarla arrastra su Review y dejaría el acumulado desfasado
        return False


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "submission", "reviewer", "correct", "score_awarded", "reviewed_at")
    list_filter = ("correct", "submission__contest")
    search_fields = ("reviewer__username", "submission__competitor__username")
    readonly_fields = ("submission", "reviewer", "correct", "score_awarded", "remarks", "reviewed_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
