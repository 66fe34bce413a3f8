from django.contrib import admin

from django_movedocs.admin.notification import NotificationModelAdmin
from django_movedocs.admin.receipt import ReceiptModelAdmin
from django_movedocs.models import ReceiptModel, NotificationModel

admin.site.register(ReceiptModel, ReceiptModelAdmin)
admin.site.register(NotificationModel, NotificationModelAdmin)
