import uuid
from decimal import Decimal

import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DocumentSequenceModel',
            fields=[
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('year', models.SmallIntegerField(validators=[django.core.validators.MinValueValidator(limit_value=1900)],
                                                  verbose_name='Year')),
                ('key', models.CharField(choices=[('receipt', 'Receipt')], max_length=10)),
                ('sequence', models.BigIntegerField(default=0,
                                                    validators=[django.core.validators.MinValueValidator(limit_value=0)])),
            ],
            options={
                'indexes': [models.Index(fields=['key'], name='dmd_sequence_key_idx')],
                'unique_together': {('year', 'key')},
            },
        ),
        migrations.CreateModel(
            name='ReceiptModel',
            fields=[
                ('client_name', models.CharField(max_length=150, verbose_name='Client Name')),
                ('client_phone', models.CharField(max_length=30, verbose_name='Client Phone Number')),
                ('client_email', models.EmailField(blank=True, max_length=254, null=True, verbose_name='Client Email')),
                ('client_address', models.CharField(blank=True, max_length=255, null=True,
                                                    verbose_name='Client Address')),
                ('client_gender', models.CharField(blank=True, max_length=20, null=True, verbose_name='Client Gender')),
                ('markdown_notes', models.TextField(blank=True, null=True, verbose_name='Markdown Notes')),
                ('created', models.DateTimeField(auto_now_add=True)),
                ('updated', models.DateTimeField(auto_now=True, null=True, blank=True)),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('receipt_number', models.CharField(blank=True, editable=False, max_length=30, null=True, unique=True,
                                                    verbose_name='Receipt Number')),
                ('receipt_type', models.CharField(choices=[('item', 'Item Receipt'),
                                                           ('commitment', 'Commitment Receipt'),
                                                           ('final', 'Final Receipt'),
                                                           ('one_time', 'One Time Payment Receipt')],
                                                  max_length=10, verbose_name='Receipt Type')),
                ('move_type', models.CharField(blank=True, choices=[('international', 'International'),
                                                                    ('residential', 'Residential'),
                                                                    ('office', 'Office')],
                                               max_length=15, null=True, verbose_name='Move Type')),
                ('location_from', models.CharField(blank=True, max_length=255, null=True, verbose_name='Moving From')),
                ('location_to', models.CharField(blank=True, max_length=255, null=True, verbose_name='Moving To')),
                ('moving_date', models.DateField(blank=True, null=True, verbose_name='Moving Date')),
                ('terms', models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder,
                                           verbose_name='Receipt Terms')),
                ('currency', models.CharField(choices=[('UGX', 'Ugandan Shilling'), ('USD', 'US Dollar')],
                                              default='UGX', max_length=3, verbose_name='Currency')),
                ('payment_method', models.CharField(blank=True, choices=[('cash', 'Cash'),
                                                                         ('bank_transfer', 'Bank Transfer'),
                                                                         ('mobile_money', 'Mobile Money')],
                                                    max_length=20, null=True, verbose_name='Payment Method')),
                ('date_due', models.DateField(blank=True, null=True, verbose_name='Due Date')),
                ('total_amount', models.DecimalField(decimal_places=2, default=0, max_digits=20,
                                                     validators=[
                                                         django.core.validators.MinValueValidator(limit_value=0)],
                                                     verbose_name='Total Amount')),
                ('amount_paid', models.DecimalField(decimal_places=2, default=0, editable=False, max_digits=20,
                                                    validators=[
                                                        django.core.validators.MinValueValidator(limit_value=0)],
                                                    verbose_name='Amount Paid')),
                ('status_override', models.CharField(blank=True, choices=[('refunded', 'Refunded'),
                                                                          ('cancelled', 'Cancelled')],
                                                     editable=False, max_length=10, null=True,
                                                     verbose_name='Status Override')),
                ('date_status_override', models.DateField(blank=True, editable=False, null=True,
                                                          verbose_name='Status Override Date')),
                ('signed_received_by', models.CharField(blank=True, max_length=150, null=True,
                                                        verbose_name='Received By')),
                ('signed_received_by_title', models.CharField(blank=True, max_length=150, null=True,
                                                              verbose_name='Received By Title')),
                ('signed_client_name', models.CharField(blank=True, max_length=150, null=True,
                                                        verbose_name='Client Signature Name')),
                ('signature_date', models.DateField(default=django.utils.timezone.localdate,
                                                    verbose_name='Signature Date')),
                ('version', models.PositiveIntegerField(default=1, editable=False, verbose_name='Version')),
                ('revision', models.PositiveIntegerField(default=0, editable=False, verbose_name='Revision')),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT,
                                                 related_name='receipts_created', to=settings.AUTH_USER_MODEL,
                                                 verbose_name='Created By')),
            ],
            options={
                'verbose_name': 'Receipt',
                'verbose_name_plural': 'Receipts',
                'ordering': ['-created'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['receipt_type'], name='dmd_receipt_type_idx'),
                    models.Index(fields=['date_due'], name='dmd_receipt_date_due_idx'),
                    models.Index(fields=['status_override'], name='dmd_receipt_override_idx'),
                    models.Index(fields=['created_by'], name='dmd_receipt_created_by_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PaymentEventModel',
            fields=[
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=20,
                                               validators=[django.core.validators.MinValueValidator(
                                                   limit_value=Decimal('0.01'))],
                                               verbose_name='Amount')),
                ('date_paid', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Date Paid')),
                ('method', models.CharField(choices=[('cash', 'Cash'),
                                                     ('bank_transfer', 'Bank Transfer'),
                                                     ('mobile_money', 'Mobile Money')],
                                            max_length=20, verbose_name='Payment Method')),
                ('reference', models.CharField(blank=True, max_length=100, null=True, verbose_name='Reference')),
                ('notes', models.TextField(blank=True, null=True, verbose_name='Notes')),
                ('created', models.DateTimeField(auto_now_add=True)),
                ('receipt_model', models.ForeignKey(editable=False, on_delete=django.db.models.deletion.CASCADE,
                                                    related_name='payment_history',
                                                    to='django_movedocs.receiptmodel', verbose_name='Receipt')),
                ('received_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT,
                                                  related_name='payments_received', to=settings.AUTH_USER_MODEL,
                                                  verbose_name='Received By')),
            ],
            options={
                'verbose_name': 'Payment Event',
                'verbose_name_plural': 'Payment Events',
                'ordering': ['date_paid', 'created'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['receipt_model', 'date_paid'], name='dmd_payment_receipt_date_idx'),
                    models.Index(fields=['received_by'], name='dmd_payment_received_by_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReceiptVersionModel',
            fields=[
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('version_number', models.PositiveIntegerField(verbose_name='Version Number')),
                ('edited_at', models.DateTimeField(auto_now_add=True, verbose_name='Edited At')),
                ('changes', models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder,
                                             verbose_name='Changes')),
                ('reason', models.TextField(blank=True, null=True, verbose_name='Reason')),
                ('edited_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT,
                                                related_name='receipt_versions', to=settings.AUTH_USER_MODEL,
                                                verbose_name='Edited By')),
                ('receipt_model', models.ForeignKey(editable=False, on_delete=django.db.models.deletion.CASCADE,
                                                    related_name='versions', to='django_movedocs.receiptmodel',
                                                    verbose_name='Receipt')),
            ],
            options={
                'verbose_name': 'Receipt Version',
                'verbose_name_plural': 'Receipt Versions',
                'ordering': ['version_number'],
                'abstract': False,
                'unique_together': {('receipt_model', 'version_number')},
            },
        ),
        migrations.CreateModel(
            name='NotificationModel',
            fields=[
                ('created', models.DateTimeField(auto_now_add=True)),
                ('updated', models.DateTimeField(auto_now=True, null=True, blank=True)),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('notification_type', models.CharField(choices=[('document_created', 'Documents Created'),
                                                                ('document_updated', 'Documents Updated'),
                                                                ('document_deleted', 'Documents Deleted'),
                                                                ('quotation_expired', 'Quotations Expired'),
                                                                ('quotation_converted', 'Quotations Converted'),
                                                                ('payment_received', 'Payments Received'),
                                                                ('payment_overdue', 'Payments Overdue'),
                                                                ('user_created', 'Users Created'),
                                                                ('user_updated', 'Users Updated'),
                                                                ('user_role_changed', 'User Roles Changed'),
                                                                ('user_deleted', 'Users Deleted'),
                                                                ('profile_incomplete', 'Incomplete Profiles'),
                                                                ('system_maintenance', 'System Maintenance'),
                                                                ('backup_completed', 'Backups Completed'),
                                                                ('security_alert', 'Security Alerts')],
                                                       max_length=30, verbose_name='Notification Type')),
                ('title', models.CharField(max_length=200, verbose_name='Title')),
                ('message', models.TextField(verbose_name='Message')),
                ('priority', models.CharField(choices=[('low', 'Low'), ('normal', 'Normal'), ('high', 'High'),
                                                       ('urgent', 'Urgent')],
                                              default='normal', max_length=10, verbose_name='Priority')),
                ('lifecycle_status', models.CharField(choices=[('active', 'Active'), ('extended', 'Extended'),
                                                               ('archived', 'Archived'),
                                                               ('pending_review', 'Pending Review')],
                                                      default='active', max_length=15,
                                                      verbose_name='Lifecycle Status')),
                ('extended_until', models.DateTimeField(blank=True, null=True, verbose_name='Extended Until')),
                ('extension_reason', models.TextField(blank=True, null=True, verbose_name='Extension Reason')),
                ('notification_group', models.CharField(blank=True, max_length=100, null=True,
                                                        verbose_name='Notification Group')),
                ('action_url', models.CharField(blank=True, max_length=255, null=True, verbose_name='Action URL')),
                ('action_text', models.CharField(blank=True, max_length=50, null=True, verbose_name='Action Text')),
                ('metadata', models.JSONField(blank=True, default=dict,
                                              encoder=django.core.serializers.json.DjangoJSONEncoder,
                                              verbose_name='Metadata')),
                ('expires_at', models.DateTimeField(blank=True, null=True, verbose_name='Expires At')),
                ('admin_managed', models.BooleanField(default=False, verbose_name='Admin Managed')),
                ('reminder_sent_at', models.DateTimeField(blank=True, null=True, verbose_name='Reminder Sent At')),
                ('read', models.BooleanField(default=False, verbose_name='Read By All')),
                ('read_at', models.DateTimeField(blank=True, null=True, verbose_name='Read By All At')),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                                            related_name='notifications_sent', to=settings.AUTH_USER_MODEL,
                                            verbose_name='Actor')),
                ('recipients', models.ManyToManyField(blank=True, related_name='notifications',
                                                      to=settings.AUTH_USER_MODEL, verbose_name='Recipients')),
            ],
            options={
                'verbose_name': 'Notification',
                'verbose_name_plural': 'Notifications',
                'ordering': ['-created'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['notification_type', 'notification_group'], name='dmd_notif_type_group_idx'),
                    models.Index(fields=['lifecycle_status'], name='dmd_notif_lifecycle_idx'),
                    models.Index(fields=['created'], name='dmd_notif_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='NotificationReadModel',
            fields=[
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('read_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Read At')),
                ('notification_model', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                                         related_name='read_by_users',
                                                         to='django_movedocs.notificationmodel',
                                                         verbose_name='Notification')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                           related_name='notification_reads', to=settings.AUTH_USER_MODEL,
                                           verbose_name='User')),
            ],
            options={
                'verbose_name': 'Notification Read',
                'verbose_name_plural': 'Notification Reads',
                'abstract': False,
                'indexes': [models.Index(fields=['user'], name='dmd_notif_read_user_idx')],
                'unique_together': {('notification_model', 'user')},
            },
        ),
    ]
