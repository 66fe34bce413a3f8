from django.urls import path

from django_movedocs import views

urlpatterns = [
    path('',
         views.ReceiptModelListCreateAPIView.as_view(),
         name='receipt-list'),
    path('stats/',
         views.ReceiptModelStatsAPIView.as_view(),
         name='receipt-stats'),
    path('<uuid:receipt_pk>/',
         views.ReceiptModelDetailAPIView.as_view(),
         name='receipt-detail'),
    path('<uuid:receipt_pk>/update/',
         views.ReceiptModelUpdateAPIView.as_view(),
         name='receipt-update'),
    path('<uuid:receipt_pk>/payment/',
         views.ReceiptModelAddPaymentAPIView.as_view(),
         name='receipt-add-payment'),
    path('<uuid:receipt_pk>/delete/',
         views.ReceiptModelDeleteAPIView.as_view(),
         name='receipt-delete'),

    # ACTIONS...
    path('<uuid:receipt_pk>/action/mark-as-refunded/',
         views.ReceiptModelActionMarkAsAPIView.as_view(action_name='mark_as_refunded'),
         name='receipt-action-mark-as-refunded'),
    path('<uuid:receipt_pk>/action/mark-as-cancelled/',
         views.ReceiptModelActionMarkAsAPIView.as_view(action_name='mark_as_cancelled'),
         name='receipt-action-mark-as-cancelled'),
]
