"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""

from django.http import JsonResponse
from django.views.generic import View

from django_movedocs.models import NotificationModel
from django_movedocs.views.mixins import (
    LoginRequiredMixIn, StaffRequiredMixIn, JsonPayloadMixIn, MoveDocsAPIErrorMixIn,
)


class NotificationModelViewQuerySetMixIn:
    queryset = None
    pk_url_kwarg = 'notification_pk'

    def get_queryset(self):
        if self.queryset is None:
            if self.request.user.is_staff or self.request.user.is_superuser:
                self.queryset = NotificationModel.objects.all()
            else:
                self.queryset = NotificationModel.objects.for_recipient(user_model=self.request.user)
        return self.queryset.prefetch_related('read_by_users')

    def get_object(self) -> NotificationModel:
        return self.get_queryset().get(uuid__exact=self.kwargs[self.pk_url_kwarg])


class NotificationModelListAPIView(LoginRequiredMixIn,
                                   MoveDocsAPIErrorMixIn,
                                   View):
    http_method_names = ['get']

    def get(self, request, *args, **kwargs):
        notification_qs = NotificationModel.objects.for_recipient(user_model=request.user)
        if request.GET.get('unread') in ('1', 'true'):
            notification_qs = notification_qs.exclude(read_by_users__user=request.user)
        notification_qs = notification_qs.prefetch_related('recipients', 'read_by_users')
        return JsonResponse({
            'results': [n.to_dict(user_model=request.user) for n in notification_qs],
            'unread_count': NotificationModel.objects.unread_count(user_model=request.user)
        })


class NotificationModelMarkReadAPIView(LoginRequiredMixIn,
                                       MoveDocsAPIErrorMixIn,
                                       NotificationModelViewQuerySetMixIn,
                                       View):
    http_method_names = ['post']
    action_name = 'mark_read'

    def post(self, request, *args, **kwargs):
        if self.action_name not in ('mark_read', 'mark_unread'):
            raise ValueError(f'Invalid action {self.action_name}.')
        notification_model = self.get_object()
        getattr(notification_model, self.action_name)(request.user)
        notification_model = NotificationModel.objects.prefetch_related(
            'recipients', 'read_by_users'
        ).get(uuid__exact=notification_model.uuid)
        return JsonResponse({
            'results': notification_model.to_dict(user_model=request.user)
        })


class NotificationModelExtendAPIView(LoginRequiredMixIn,
                                     StaffRequiredMixIn,
                                     MoveDocsAPIErrorMixIn,
                                     JsonPayloadMixIn,
                                     NotificationModelViewQuerySetMixIn,
                                     View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        notification_model = self.get_object()
        payload = self.get_payload()
        notification_model.extend_lifecycle(
            extend_days=payload.get('days'),
            reason=payload.get('reason'),
            commit=True
        )
        return JsonResponse({
            'results': notification_model.to_dict(user_model=request.user)
        })


class NotificationModelBulkDeleteReadAPIView(LoginRequiredMixIn,
                                             StaffRequiredMixIn,
                                             MoveDocsAPIErrorMixIn,
                                             JsonPayloadMixIn,
                                             View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        payload = self.get_payload()
        result = NotificationModel.objects.all().bulk_delete_read_by_all(confirm=payload.get('confirm') is True)
        return JsonResponse({
            'results': result
        })


class NotificationModelGroupStatsAPIView(LoginRequiredMixIn,
                                         StaffRequiredMixIn,
                                         MoveDocsAPIErrorMixIn,
                                         View):
    http_method_names = ['get']

    def get(self, request, *args, **kwargs):
        return JsonResponse({
            'results': NotificationModel.objects.all().group_stats()
        })


class NotificationModelSystemHealthAPIView(LoginRequiredMixIn,
                                           StaffRequiredMixIn,
                                           MoveDocsAPIErrorMixIn,
                                           View):
    http_method_names = ['get']

    def get(self, request, *args, **kwargs):
        return JsonResponse({
            'results': NotificationModel.objects.all().system_health()
        })


class NotificationModelMarkAllReadAPIView(LoginRequiredMixIn,
                                          MoveDocsAPIErrorMixIn,
                                          View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        marked_count = NotificationModel.objects.all().mark_all_read(user_model=request.user)
        return JsonResponse({
            'results': {
                'marked_count': marked_count,
                'unread_count': NotificationModel.objects.unread_count(user_model=request.user)
            }
        })


class NotificationModelDeleteAPIView(LoginRequiredMixIn,
                                     StaffRequiredMixIn,
                                     MoveDocsAPIErrorMixIn,
                                     NotificationModelViewQuerySetMixIn,
                                     View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        notification_model = self.get_object()
        notification_id = str(notification_model.uuid)
        notification_model.mark_as_delete(user_model=request.user)
        return JsonResponse({
            'results': {
                'uuid': notification_id,
                'deleted': True
            }
        })


class NotificationModelCleanupAPIView(LoginRequiredMixIn,
                                      StaffRequiredMixIn,
                                      MoveDocsAPIErrorMixIn,
                                      JsonPayloadMixIn,
                                      View):
    http_method_names = ['post']

    def post(self, request, *args, **kwargs):
        payload = self.get_payload()
        result = NotificationModel.objects.all().cleanup_older_than(
            days=payload.get('days'),
            confirm=payload.get('confirm') is True
        )
        return JsonResponse({
            'results': result
        })
