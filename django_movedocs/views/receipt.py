"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""

from django.http import JsonResponse
from django.views.generic import View

from django_movedocs.exceptions import ConcurrentModification, ValidationFailed
from django_movedocs.io.ledger import PAYMENT_STATUS_CHOICES
from django_movedocs.io.receipt_policy import TYPE_FIELDS
from django_movedocs.models import ReceiptModel
from django_movedocs.views.mixins import (
    LoginRequiredMixIn, StaffRequiredMixIn, JsonPayloadMixIn, MoveDocsAPIErrorMixIn,
)


class ReceiptModelModelViewQuerySetMixIn:
    queryset = None
    pk_url_kwarg = 'receipt_pk'

    def get_queryset(self):
        if self.queryset is None:
            self.queryset = ReceiptModel.objects.for_user(
                user_model=self.request.user
            ).select_related('created_by')
        return self.queryset

    def get_object(self) -> ReceiptModel:
        return self.get_queryset().get(uuid__exact=self.kwargs[self.pk_url_kwarg])

    def check_revision(self, receipt_model: ReceiptModel, payload: dict):
        """
        Clients may send the revision they loaded. A stale revision fails before any validation.
        """
        revision = payload.pop('revision', None)
        if revision is not None and str(revision) != str(receipt_model.revision):
            raise ConcurrentModification(
                message=f'Receipt {receipt_model.receipt_number} was modified. Reload and try again.'
            )


class ReceiptModelListCreateAPIView(LoginRequiredMixIn,
                                    MoveDocsAPIErrorMixIn,
                                    JsonPayloadMixIn,
                                    ReceiptModelModelViewQuerySetMixIn,
                                    View):
    http_method_names = ['get', 'post']
    CREATE_FIELDS = (
        'receipt_type',
        'client',
        'currency',
        'payment_method',
        'date_due',
        'locations',
        'signatures',
        'notes',
        'move_type',
    ) + TYPE_FIELDS

    def get(self, request, *args, **kwargs):
        receipt_qs = self.get_queryset()

        status = request.GET.get('status')
        if status:
            if status not in dict(PAYMENT_STATUS_CHOICES):
                raise ValidationFailed({'status': [f'{status} is not a valid payment status.']})
            receipt_qs = getattr(receipt_qs, status)()

        receipt_type = request.GET.get('type')
        if receipt_type:
            receipt_qs = receipt_qs.of_type(receipt_type)

        return JsonResponse({
            'results': [r.to_dict() for r in receipt_qs]
        })

    def post(self, request, *args, **kwargs):
        payload = self.get_payload()
        unknown = sorted(set(payload) - set(self.CREATE_FIELDS))
        if unknown:
            raise ValidationFailed({k: ['This field cannot be set.'] for k in unknown})

        receipt_model = ReceiptModel()
        receipt_model.configure(
            receipt_type=payload.get('receipt_type'),
            client=payload.get('client', dict()),
            user_model=request.user,
            type_fields={k: payload[k] for k in TYPE_FIELDS if k in payload},
            currency=payload.get('currency'),
            payment_method=payload.get('payment_method'),
            date_due=payload.get('date_due'),
            locations=payload.get('locations'),
            signatures=payload.get('signatures'),
            notes=payload.get('notes'),
            move_type=payload.get('move_type'),
            commit=True
        )
        return JsonResponse({
            'results': receipt_model.to_dict()
        }, status=201)


class ReceiptModelDetailAPIView(LoginRequiredMixIn,
                                MoveDocsAPIErrorMixIn,
                                ReceiptModelModelViewQuerySetMixIn,
                                View):
    http_method_names = ['get']

    def get(self, request, *args, **kwargs):
        receipt_model = self.get_object()
        return JsonResponse({
            'results': receipt_model.to_dict()
        })


class ReceiptModelUpdateAPIView(LoginRequiredMixIn,
                                MoveDocsAPIErrorMixIn,
                                JsonPayloadMixIn,
                                ReceiptModelModelViewQuerySetMixIn,
                                View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        receipt_model = self.get_object()
        payload = self.get_payload()
        self.check_revision(receipt_model, payload)

        changes = payload.get('changes')
        if not isinstance(changes, dict):
            raise ValidationFailed({'changes': ['Changes must be a JSON object.']})

        version_model = receipt_model.update(
            changes=changes,
            user_model=request.user,
            reason=payload.get('reason'),
            commit=True
        )
        return JsonResponse({
            'results': receipt_model.to_dict(),
            'version_created': version_model is not None
        })


class ReceiptModelAddPaymentAPIView(LoginRequiredMixIn,
                                    MoveDocsAPIErrorMixIn,
                                    JsonPayloadMixIn,
                                    ReceiptModelModelViewQuerySetMixIn,
                                    View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        receipt_model = self.get_object()
        payload = self.get_payload()
        self.check_revision(receipt_model, payload)

        if payload.get('amount') is None:
            raise ValidationFailed({'amount': ['Amount is required.']})

        receipt_model.add_payment(
            amount=payload['amount'],
            method=payload.get('method'),
            user_model=request.user,
            reference=payload.get('reference'),
            notes=payload.get('notes'),
            commit=True
        )
        return JsonResponse({
            'results': receipt_model.get_payment_dict()
        }, status=201)


class ReceiptModelActionMarkAsAPIView(LoginRequiredMixIn,
                                      StaffRequiredMixIn,
                                      MoveDocsAPIErrorMixIn,
                                      ReceiptModelModelViewQuerySetMixIn,
                                      View):
    http_method_names = ['post']
    action_name = None

    def post(self, request, *args, **kwargs):
        if self.action_name not in ('mark_as_refunded', 'mark_as_cancelled'):
            raise ValueError(f'Invalid action {self.action_name}.')
        receipt_model = self.get_object()
        getattr(receipt_model, self.action_name)(commit=True)
        return JsonResponse({
            'results': receipt_model.to_dict()
        })


class ReceiptModelDeleteAPIView(LoginRequiredMixIn,
                                StaffRequiredMixIn,
                                MoveDocsAPIErrorMixIn,
                                JsonPayloadMixIn,
                                ReceiptModelModelViewQuerySetMixIn,
                                View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        receipt_model = self.get_object()
        self.check_revision(receipt_model, self.get_payload())
        receipt_number = receipt_model.receipt_number
        receipt_model.mark_as_delete(user_model=request.user)
        return JsonResponse({
            'results': {
                'receipt_number': receipt_number,
                'deleted': True
            }
        })


class ReceiptModelStatsAPIView(LoginRequiredMixIn,
                               MoveDocsAPIErrorMixIn,
                               ReceiptModelModelViewQuerySetMixIn,
                               View):
    http_method_names = ['get']

    def get(self, request, *args, **kwargs):
        return JsonResponse({
            'results': self.get_queryset().get_stats(period=request.GET.get('period') or None)
        })
