from django.contrib import messages
from django.contrib.admin import ModelAdmin, TabularInline

from django_movedocs.models import (
    ReceiptModel, PaymentEventModel, ReceiptVersionModel,
    ReceiptModelValidationError
)


class PaymentEventModelInLine(TabularInline):
    extra = 0
    model = PaymentEventModel
    fields = [
        'amount',
        'date_paid',
        'method',
        'reference',
        'received_by',
        'notes'
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ReceiptVersionModelInLine(TabularInline):
    extra = 0
    model = ReceiptVersionModel
    fields = [
        'version_number',
        'edited_by',
        'edited_at',
        'changes',
        'reason'
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ReceiptModelAdmin(ModelAdmin):
    """
    Receipts are created, edited and paid through the receipt commands so their ledger and version history stay
    consistent. The admin is read only except for the refund and cancel actions.
    """
    list_display = [
        'receipt_number',
        'receipt_type',
        'client_name',
        'currency',
        'total_amount',
        'amount_paid',
        'payment_status',
        'version',
        'created'
    ]
    list_filter = [
        'receipt_type',
        'currency',
        'status_override'
    ]
    search_fields = [
        'receipt_number',
        'client_name',
        'client_phone'
    ]
    actions = [
        'mark_as_refunded',
        'mark_as_cancelled',
        'mark_as_delete'
    ]
    inlines = [
        PaymentEventModelInLine,
        ReceiptVersionModelInLine
    ]

    def get_queryset(self, request):
        qs = ReceiptModel.objects.for_user(user_model=request.user)
        ordering = self.get_ordering(request)
        if ordering:
            qs = qs.order_by(*ordering)
        return qs.select_related('created_by')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        # deletes go through the mark_as_delete action, receipts with payments are kept.
        return False

    def payment_status(self, obj: ReceiptModel):
        return obj.get_payment_status()

    # ACTIONS....
    def mark_as_refunded(self, request, queryset):
        for obj in queryset:
            try:
                obj.mark_as_refunded(commit=True)
            except ReceiptModelValidationError as e:
                messages.error(
                    request=request,
                    message=e.message
                )

    def mark_as_cancelled(self, request, queryset):
        for obj in queryset:
            try:
                obj.mark_as_cancelled(commit=True)
            except ReceiptModelValidationError as e:
                messages.error(
                    request=request,
                    message=e.message
                )

    def mark_as_delete(self, request, queryset):
        for obj in queryset:
            try:
                obj.mark_as_delete(user_model=request.user)
            except ReceiptModelValidationError as e:
                messages.error(
                    request=request,
                    message=e.message
                )
