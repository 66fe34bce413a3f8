from django.contrib import messages
from django.contrib.admin import ModelAdmin, TabularInline

from django_movedocs.exceptions import InvalidDuration
from django_movedocs.models import NotificationModel, NotificationReadModel, NotificationModelValidationError


class NotificationReadModelInLine(TabularInline):
    extra = 0
    model = NotificationReadModel
    fields = [
        'user',
        'read_at'
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class NotificationModelAdmin(ModelAdmin):
    list_display = [
        'title',
        'notification_type',
        'priority',
        'lifecycle_status',
        'notification_group',
        'read',
        'created'
    ]
    list_filter = [
        'notification_type',
        'priority',
        'lifecycle_status',
        'read'
    ]
    search_fields = [
        'title',
        'message',
        'notification_group'
    ]
    readonly_fields = [
        'lifecycle_status',
        'extended_until',
        'read',
        'read_at'
    ]
    filter_horizontal = [
        'recipients'
    ]
    actions = [
        'extend_30_days',
        'archive',
        'flag_for_review'
    ]
    inlines = [
        NotificationReadModelInLine
    ]

    # ACTIONS....
    def extend_30_days(self, request, queryset):
        for obj in queryset:
            try:
                obj.extend_lifecycle(extend_days=30, reason=f'Extended by {request.user}.', commit=True)
            except (InvalidDuration, NotificationModelValidationError) as e:
                messages.error(
                    request=request,
                    message=e.message
                )

    def archive(self, request, queryset):
        for obj in queryset:
            try:
                obj.archive(commit=True)
            except NotificationModelValidationError as e:
                messages.error(
                    request=request,
                    message=e.message
                )

    def flag_for_review(self, request, queryset):
        flagged = queryset.flag_for_review()
        messages.info(
            request=request,
            message=f'{flagged} notifications flagged for review.'
        )
