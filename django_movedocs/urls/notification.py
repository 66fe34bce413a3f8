from django.urls import path

from django_movedocs import views

urlpatterns = [
    path('',
         views.NotificationModelListAPIView.as_view(),
         name='notification-list'),
    path('mark-all-read/',
         views.NotificationModelMarkAllReadAPIView.as_view(),
         name='notification-mark-all-read'),
    path('<uuid:notification_pk>/mark-read/',
         views.NotificationModelMarkReadAPIView.as_view(action_name='mark_read'),
         name='notification-mark-read'),
    path('<uuid:notification_pk>/mark-unread/',
         views.NotificationModelMarkReadAPIView.as_view(action_name='mark_unread'),
         name='notification-mark-unread'),
    path('<uuid:notification_pk>/extend/',
         views.NotificationModelExtendAPIView.as_view(),
         name='notification-extend'),

    # ADMIN...
    path('<uuid:notification_pk>/delete/',
         views.NotificationModelDeleteAPIView.as_view(),
         name='notification-delete'),
    path('bulk-delete-read/',
         views.NotificationModelBulkDeleteReadAPIView.as_view(),
         name='notification-bulk-delete-read'),
    path('cleanup/',
         views.NotificationModelCleanupAPIView.as_view(),
         name='notification-cleanup'),
    path('group-stats/',
         views.NotificationModelGroupStatsAPIView.as_view(),
         name='notification-group-stats'),
    path('system-health/',
         views.NotificationModelSystemHealthAPIView.as_view(),
         name='notification-system-health'),
]
