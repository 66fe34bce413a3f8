"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>

The NotificationModel holds internal notifications about document and user lifecycle events. A notification targets
an explicit set of recipients and tracks read state per recipient through NotificationReadModel records. The
legacy single-reader ``read`` flag is kept for compatibility and always equals "read by all recipients".

Notifications move through the following lifecycle states:

    * active: the default state.
    * extended: an administrator extended the notification lifetime until extended_until.
    * pending_review: the notification outlived the review window and awaits an administrator.
    * archived: the notification is kept for reference only.

Administrative read models (group statistics and system health) are computed over immutable snapshots, see
:mod:`django_movedocs.io.notifications`.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from uuid import uuid4

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models, transaction
from django.db.models import Q
from django.utils.timezone import now as global_now
from django.utils.translation import gettext_lazy as _

from django_movedocs.exceptions import ConfirmationRequired, InvalidDuration, ValidationFailed
from django_movedocs.io.notifications import (
    NOTIFICATION_TYPE_CHOICES, NOTIFICATION_TYPE_DISPLAY, PRIORITY_CHOICES, PRIORITY_NORMAL, LIFECYCLE_CHOICES,
    LIFECYCLE_ACTIVE, LIFECYCLE_EXTENDED, LIFECYCLE_ARCHIVED, LIFECYCLE_PENDING_REVIEW, NotificationSnapshot,
    compute_group_stats, compute_system_health, select_read_by_all,
)
from django_movedocs.models.mixins import CreateUpdateMixIn, LoggingMixIn
from django_movedocs.models.utils import lazy_loader
from django_movedocs.settings import (
    DJANGO_MOVEDOCS_NOTIFICATION_REVIEW_DAYS, DJANGO_MOVEDOCS_NOTIFICATION_MAX_EXTEND_DAYS,
    DJANGO_MOVEDOCS_NOTIFICATION_CLEANUP_DAYS,
)

logger = logging.getLogger('django_movedocs.notifications')


class NotificationModelValidationError(ValidationError):
    pass


def validate_days(days, message) -> int:
    if isinstance(days, bool):
        raise InvalidDuration(message=message)
    try:
        days = int(days)
    except (TypeError, ValueError):
        raise InvalidDuration(message=message)
    if days <= 0:
        raise InvalidDuration(message=message)
    return days


class NotificationModelQuerySet(models.QuerySet):
    """
    A custom defined QuerySet for the NotificationModel.
    """

    def for_recipient(self, user_model):
        return self.filter(recipients=user_model)

    def unread_for(self, user_model):
        """
        Notifications addressed to user_model which user_model has not read yet.
        """
        return self.for_recipient(user_model).exclude(read_by_users__user=user_model)

    def unread_count(self, user_model) -> int:
        return self.unread_for(user_model).count()

    def of_type(self, notification_type: str):
        return self.filter(notification_type__exact=notification_type)

    def active(self):
        return self.filter(lifecycle_status__exact=LIFECYCLE_ACTIVE)

    def extended(self):
        return self.filter(lifecycle_status__exact=LIFECYCLE_EXTENDED)

    def archived(self):
        return self.filter(lifecycle_status__exact=LIFECYCLE_ARCHIVED)

    def pending_review(self):
        return self.filter(lifecycle_status__exact=LIFECYCLE_PENDING_REVIEW)

    def snapshots(self) -> List[NotificationSnapshot]:
        """
        Evaluates the QuerySet into immutable snapshots. Results in three DB queries.
        """
        qs = self.prefetch_related('recipients', 'read_by_users')
        return [n.get_snapshot() for n in qs]

    def group_stats(self, sample_size: Optional[int] = None) -> List[Dict]:
        return [s.to_dict() for s in compute_group_stats(self.snapshots(), sample_size=sample_size)]

    def system_health(self, now: Optional[datetime] = None) -> Dict:
        return compute_system_health(self.snapshots(), now=now or global_now()).to_dict()

    def flag_for_review(self, now: Optional[datetime] = None, review_days: Optional[int] = None) -> int:
        """
        Moves stale notifications to pending_review: active notifications created before the review window and
        extended notifications past their extension.

        Returns
        -------
        int
            Number of notifications flagged.
        """
        now = now or global_now()
        if review_days is None:
            review_days = DJANGO_MOVEDOCS_NOTIFICATION_REVIEW_DAYS
        cutoff = now - timedelta(days=review_days)
        flagged = self.filter(
            Q(lifecycle_status__exact=LIFECYCLE_ACTIVE, created__lt=cutoff) |
            Q(lifecycle_status__exact=LIFECYCLE_EXTENDED, extended_until__lt=now)
        ).update(lifecycle_status=LIFECYCLE_PENDING_REVIEW, updated=now)
        if flagged:
            logger.info(f'{flagged} notifications flagged for review.')
        return flagged

    def mark_all_read(self, user_model, now: Optional[datetime] = None) -> int:
        """
        Records that user_model read every notification in the QuerySet addressed to user_model. Notifications
        already read by user_model keep their original read time.

        Returns
        -------
        int
            Number of notifications newly marked as read.
        """
        now = now or global_now()
        NotificationReadModel = lazy_loader.get_notification_read_model()
        with transaction.atomic():
            unread_ids = list(self.unread_for(user_model).values_list('uuid', flat=True))
            NotificationReadModel.objects.bulk_create([
                NotificationReadModel(notification_model_id=uuid, user=user_model, read_at=now) for uuid in unread_ids
            ], ignore_conflicts=True)
            for notification_model in self.model.objects.filter(
                    uuid__in=unread_ids
            ).prefetch_related('recipients', 'read_by_users'):
                notification_model._sync_read_flag()
        if unread_ids:
            logger.info(f'{user_model} marked {len(unread_ids)} notifications as read.')
        return len(unread_ids)

    def cleanup_older_than(self, days: Optional[int] = None, confirm: bool = False,
                           now: Optional[datetime] = None) -> Dict:
        """
        Permanently deletes every notification in the QuerySet created more than days ago, read or not. This
        operation is irreversible.

        Parameters
        ----------
        days: int
            Age in days. Defaults to DJANGO_MOVEDOCS_NOTIFICATION_CLEANUP_DAYS.
        confirm: bool
            Must be True. Explicit confirmation of an irreversible deletion.
        now: datetime
            Reference time. Defaults to the current time.

        Returns
        -------
        dict
            {'deleted_count': number of notifications deleted, 'cutoff': the creation time limit}

        Raises
        ------
        InvalidDuration
            If days is not a positive whole number.
        ConfirmationRequired
            If confirm is not True. Nothing is deleted.
        """
        if days is None:
            days = DJANGO_MOVEDOCS_NOTIFICATION_CLEANUP_DAYS
        days = validate_days(days, message=_('Cleanup days must be a positive whole number.'))
        if confirm is not True:
            raise ConfirmationRequired(
                message=_('Deleting notifications older than %s days is irreversible and must be confirmed.') % days
            )

        cutoff = (now or global_now()) - timedelta(days=days)
        _deleted_total, deleted = self.filter(created__lt=cutoff).delete()
        deleted_count = deleted.get(self.model._meta.label, 0)
        logger.warning(f'{deleted_count} notifications older than {days} days were deleted.')
        return {
            'deleted_count': deleted_count,
            'cutoff': cutoff
        }

    def bulk_delete_read_by_all(self, confirm: bool = False) -> Dict:
        """
        Permanently deletes every notification in the QuerySet read by all of its recipients. Notifications with
        at least one recipient that has not read them are never deleted. This operation is irreversible.

        Parameters
        ----------
        confirm: bool
            Must be True. Explicit confirmation of an irreversible deletion.

        Returns
        -------
        dict
            {'deleted_count': number of notifications deleted}

        Raises
        ------
        ConfirmationRequired
            If confirm is not True. Nothing is deleted.
        """
        if confirm is not True:
            raise ConfirmationRequired(
                message=_('Deleting notifications read by all recipients is irreversible and must be confirmed.')
            )

        with transaction.atomic():
            locked_qs = self.select_for_update()
            read_by_all_ids = select_read_by_all(locked_qs.snapshots())
            deleted_count = 0
            if read_by_all_ids:
                _deleted_total, deleted = self.model.objects.filter(uuid__in=read_by_all_ids).delete()
                deleted_count = deleted.get(self.model._meta.label, 0)

        logger.warning(f'{deleted_count} notifications read by all recipients were deleted.')
        return {
            'deleted_count': deleted_count
        }


class NotificationModelManager(models.Manager):

    def notify(self,
               notification_type: str,
               title: str,
               message: str,
               recipients,
               priority: str = PRIORITY_NORMAL,
               actor=None,
               notification_group: Optional[str] = None,
               action_url: Optional[str] = None,
               action_text: Optional[str] = None,
               metadata: Optional[Dict] = None,
               expires_at: Optional[datetime] = None,
               admin_managed: bool = False):
        """
        Creates a notification addressed to an explicit set of recipients.

        Parameters
        ----------
        notification_type: str
            One of NOTIFICATION_TYPE_CHOICES.
        title: str
            Short notification title.
        message: str
            Notification body.
        recipients: iterable of UserModel
            The intended recipient set. Determines when the notification is read by all.
        priority: str
            One of PRIORITY_CHOICES. Defaults to normal.
        actor: UserModel
            Optional user that triggered the notification.

        Returns
        -------
        NotificationModel
            The created notification.

        Raises
        ------
        ValidationFailed
            If the type, priority or title are invalid.
        """
        errors = dict()
        if notification_type not in NOTIFICATION_TYPE_DISPLAY:
            errors['notification_type'] = [f'{notification_type} is not a valid notification type.']
        if priority not in dict(PRIORITY_CHOICES):
            errors['priority'] = [f'{priority} is not a valid priority.']
        if not title:
            errors['title'] = ['Title is required.']
        if not message:
            errors['message'] = ['Message is required.']
        if errors:
            raise ValidationFailed(errors)

        recipients = list(recipients)
        with transaction.atomic():
            notification_model = self.create(
                notification_type=notification_type,
                title=title,
                message=message,
                priority=priority,
                actor=actor,
                notification_group=notification_group or None,
                action_url=action_url,
                action_text=action_text,
                metadata=metadata or dict(),
                expires_at=expires_at,
                admin_managed=admin_managed
            )
            notification_model.recipients.set(recipients)

        notification_model.send_log(
            msg=f'Notification {notification_model.uuid} ({notification_type}) sent to {len(recipients)} recipients.',
            level=logging.INFO)
        return notification_model

    def broadcast(self, notification_type: str, title: str, message: str, **kwargs):
        """
        Creates a notification addressed to every active user. The recipient set is fixed at creation time: users
        activated afterwards are not recipients.
        """
        return self.notify(
            notification_type=notification_type,
            title=title,
            message=message,
            recipients=get_user_model().objects.filter(is_active=True),
            **kwargs
        )


class NotificationModelAbstract(CreateUpdateMixIn, LoggingMixIn):
    """
    Attributes
    ----------
    uuid: UUID
        Primary key. Defaults to uuid4().
    notification_type: str
        One of NOTIFICATION_TYPE_CHOICES.
    priority: str
        One of PRIORITY_CHOICES.
    lifecycle_status: str
        One of LIFECYCLE_CHOICES. Defaults to active.
    extended_until: datetime
        When lifecycle_status is extended, the time the extension lapses.
    notification_group: str
        Optional name used to group related notifications in the statistics.
    recipients: UserModel
        The intended recipient set.
    read: bool
        Legacy read flag. True when every recipient read the notification.
    """
    LOGGER_NAME_ATTRIBUTE = 'LOGGER_NAME'
    LOGGER_NAME = 'django_movedocs.notifications'

    uuid = models.UUIDField(default=uuid4, editable=False, primary_key=True)
    notification_type = models.CharField(max_length=30,
                                         choices=NOTIFICATION_TYPE_CHOICES,
                                         verbose_name=_('Notification Type'))
    title = models.CharField(max_length=200, verbose_name=_('Title'))
    message = models.TextField(verbose_name=_('Message'))
    priority = models.CharField(max_length=10,
                                choices=PRIORITY_CHOICES,
                                default=PRIORITY_NORMAL,
                                verbose_name=_('Priority'))
    lifecycle_status = models.CharField(max_length=15,
                                        choices=LIFECYCLE_CHOICES,
                                        default=LIFECYCLE_ACTIVE,
                                        verbose_name=_('Lifecycle Status'))
    extended_until = models.DateTimeField(null=True, blank=True, verbose_name=_('Extended Until'))
    extension_reason = models.TextField(null=True, blank=True, verbose_name=_('Extension Reason'))
    notification_group = models.CharField(max_length=100, null=True, blank=True,
                                          verbose_name=_('Notification Group'))

    recipients = models.ManyToManyField(settings.AUTH_USER_MODEL,
                                        blank=True,
                                        related_name='notifications',
                                        verbose_name=_('Recipients'))
    actor = models.ForeignKey(settings.AUTH_USER_MODEL,
                              on_delete=models.SET_NULL,
                              null=True,
                              blank=True,
                              related_name='notifications_sent',
                              verbose_name=_('Actor'))

    action_url = models.CharField(max_length=255, null=True, blank=True, verbose_name=_('Action URL'))
    action_text = models.CharField(max_length=50, null=True, blank=True, verbose_name=_('Action Text'))
    metadata = models.JSONField(encoder=DjangoJSONEncoder, default=dict, blank=True, verbose_name=_('Metadata'))
    expires_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Expires At'))
    admin_managed = models.BooleanField(default=False, verbose_name=_('Admin Managed'))
    reminder_sent_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Reminder Sent At'))

    read = models.BooleanField(default=False, verbose_name=_('Read By All'))
    read_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Read By All At'))

    objects = NotificationModelManager.from_queryset(queryset_class=NotificationModelQuerySet)()

    class Meta:
        abstract = True
        ordering = ['-created']
        verbose_name = _('Notification')
        verbose_name_plural = _('Notifications')
        indexes = [
            models.Index(fields=['notification_type', 'notification_group'], name='dmd_notif_type_group_idx'),
            models.Index(fields=['lifecycle_status'], name='dmd_notif_lifecycle_idx'),
            models.Index(fields=['created'], name='dmd_notif_created_idx'),
        ]

    def __str__(self):
        return f'{self.get_notification_type_display()}: {self.title}'

    # STATE...
    def is_active(self) -> bool:
        return self.lifecycle_status == LIFECYCLE_ACTIVE

    def is_extended(self) -> bool:
        return self.lifecycle_status == LIFECYCLE_EXTENDED

    def is_archived(self) -> bool:
        return self.lifecycle_status == LIFECYCLE_ARCHIVED

    def is_pending_review(self) -> bool:
        return self.lifecycle_status == LIFECYCLE_PENDING_REVIEW

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at is not None and self.expires_at < (now or global_now())

    def can_extend(self) -> bool:
        return not self.is_archived()

    def can_archive(self) -> bool:
        return not self.is_archived()

    def is_recipient(self, user_model) -> bool:
        return self.recipients.filter(pk=user_model.pk).exists()

    def is_read_by(self, user_model) -> bool:
        return self.read_by_users.filter(user=user_model).exists()

    def is_read_by_all(self) -> bool:
        return self.get_snapshot().is_read_by_all()

    def get_snapshot(self) -> NotificationSnapshot:
        return NotificationSnapshot(
            uuid=self.uuid,
            notification_type=self.notification_type,
            title=self.title,
            message=self.message,
            priority=self.priority,
            lifecycle_status=self.lifecycle_status,
            created=self.created,
            notification_group=self.notification_group,
            extended_until=self.extended_until,
            recipient_ids=frozenset(u.pk for u in self.recipients.all()),
            read_by_ids=frozenset(r.user_id for r in self.read_by_users.all())
        )

    # READ STATE...
    def _sync_read_flag(self):
        # read state changed, prefetched readers are stale.
        getattr(self, '_prefetched_objects_cache', dict()).pop('read_by_users', None)
        read_by_all = self.is_read_by_all()
        if read_by_all != self.read:
            self.read = read_by_all
            self.read_at = global_now() if read_by_all else None
            self.save(update_fields=['read', 'read_at', 'updated'])

    def mark_read(self, user_model):
        """
        Records that user_model read the notification. Marking an already read notification is a no-op.

        Parameters
        ----------
        user_model
            The UserModel reading the notification.

        Returns
        -------
        NotificationModel
            The notification.
        """
        with transaction.atomic():
            NotificationReadModel = lazy_loader.get_notification_read_model()
            _read_model, created = NotificationReadModel.objects.get_or_create(
                notification_model=self,
                user=user_model
            )
            if created:
                self._sync_read_flag()
        return self

    def mark_unread(self, user_model):
        """
        Removes the read record of user_model, if any. Marking an unread notification is a no-op.
        """
        with transaction.atomic():
            deleted, _deleted_by_model = self.read_by_users.filter(user=user_model).delete()
            if deleted:
                self._sync_read_flag()
        return self

    # LIFECYCLE...
    def extend_lifecycle(self,
                         extend_days: int,
                         reason: Optional[str] = None,
                         now: Optional[datetime] = None,
                         commit: bool = False):
        """
        Extends the notification lifetime by extend_days counted from now.

        Parameters
        ----------
        extend_days: int
            Number of days. Must be greater than zero and not greater than
            DJANGO_MOVEDOCS_NOTIFICATION_MAX_EXTEND_DAYS.
        reason: str
            Optional reason for the extension.
        now: datetime
            Reference time. Defaults to the current time.
        commit: bool
            Commits the extension into the DB.

        Raises
        ------
        InvalidDuration
            If extend_days is not a positive whole number within the allowed maximum.
        """
        extend_days = validate_days(extend_days, message=_('Extension days must be a positive whole number.'))
        if extend_days > DJANGO_MOVEDOCS_NOTIFICATION_MAX_EXTEND_DAYS:
            raise InvalidDuration(
                message=_('Extension days cannot exceed %s.') % DJANGO_MOVEDOCS_NOTIFICATION_MAX_EXTEND_DAYS
            )
        if not self.can_extend():
            raise NotificationModelValidationError(message=_('Archived notifications cannot be extended.'))

        self.extended_until = (now or global_now()) + timedelta(days=extend_days)
        self.extension_reason = reason
        self.lifecycle_status = LIFECYCLE_EXTENDED

        if commit:
            self.save(update_fields=['extended_until', 'extension_reason', 'lifecycle_status', 'updated'])
            self.send_log(msg=f'Notification {self.uuid} extended until {self.extended_until}.', level=logging.INFO)
        return self

    def archive(self, commit: bool = False):
        if not self.can_archive():
            raise NotificationModelValidationError(message=_('Notification is already archived.'))
        self.lifecycle_status = LIFECYCLE_ARCHIVED
        if commit:
            self.save(update_fields=['lifecycle_status', 'updated'])
        return self

    def mark_as_delete(self, user_model=None, **kwargs):
        """
        Permanently deletes the notification and its read records.
        """
        notification_id = self.uuid
        self.delete(**kwargs)
        self.send_log(msg=f'Notification {notification_id} deleted by {user_model}.', level=logging.WARNING)

    def to_dict(self, user_model=None) -> Dict:
        snapshot = self.get_snapshot()
        data = {
            'uuid': str(self.uuid),
            'type': self.notification_type,
            'title': self.title,
            'message': self.message,
            'priority': self.priority,
            'lifecycle_status': self.lifecycle_status,
            'extended_until': self.extended_until,
            'extension_reason': self.extension_reason,
            'notification_group': self.notification_group,
            'action_url': self.action_url,
            'action_text': self.action_text,
            'metadata': self.metadata,
            'expires_at': self.expires_at,
            'is_expired': self.is_expired(),
            'read_by_all': snapshot.is_read_by_all(),
            'read_by_users': [
                {'user_id': r.user_id, 'read_at': r.read_at} for r in self.read_by_users.all()
            ],
            'created': self.created,
        }
        if user_model is not None:
            data['is_read'] = snapshot.is_read_by(user_model.pk)
        return data


class NotificationReadModelAbstract(models.Model):
    uuid = models.UUIDField(default=uuid4, editable=False, primary_key=True)
    notification_model = models.ForeignKey('django_movedocs.NotificationModel',
                                           on_delete=models.CASCADE,
                                           related_name='read_by_users',
                                           verbose_name=_('Notification'))
    user = models.ForeignKey(settings.AUTH_USER_MODEL,
                             on_delete=models.CASCADE,
                             related_name='notification_reads',
                             verbose_name=_('User'))
    read_at = models.DateTimeField(default=global_now, verbose_name=_('Read At'))

    class Meta:
        abstract = True
        verbose_name = _('Notification Read')
        verbose_name_plural = _('Notification Reads')
        unique_together = [
            ('notification_model', 'user')
        ]
        indexes = [
            models.Index(fields=['user'], name='dmd_notif_read_user_idx'),
        ]

    def __str__(self):
        return f'{self.user_id} read {self.notification_model_id} at {self.read_at}'


class NotificationModel(NotificationModelAbstract):
    """
    Base NotificationModel from Abstract.
    """


class NotificationReadModel(NotificationReadModelAbstract):
    """
    Base NotificationReadModel from Abstract.
    """
