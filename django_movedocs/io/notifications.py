"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>

Notification read models.

The admin views over notifications are computed from immutable :class:`NotificationSnapshot` instances, never from
live model instances. A list of snapshots may be shared across threads and aggregated concurrently; the results
describe the snapshot, which may already be stale by the time they are displayed.

A notification is *read by all* when its intended recipient set is not empty and every intended recipient has
read it. Reads by users outside the recipient set are ignored.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional

from django_movedocs.settings import DJANGO_MOVEDOCS_GROUP_SAMPLE_SIZE, DJANGO_MOVEDOCS_HEALTH_LEVELS

NOTIFICATION_TYPE_CHOICES = [
    ('document_created', 'Documents Created'),
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
    ('security_alert', 'Security Alerts'),
]

NOTIFICATION_TYPE_DISPLAY = dict(NOTIFICATION_TYPE_CHOICES)

PRIORITY_LOW = 'low'
PRIORITY_NORMAL = 'normal'
PRIORITY_HIGH = 'high'
PRIORITY_URGENT = 'urgent'

PRIORITY_CHOICES = [
    (PRIORITY_LOW, 'Low'),
    (PRIORITY_NORMAL, 'Normal'),
    (PRIORITY_HIGH, 'High'),
    (PRIORITY_URGENT, 'Urgent'),
]

LIFECYCLE_ACTIVE = 'active'
LIFECYCLE_EXTENDED = 'extended'
LIFECYCLE_ARCHIVED = 'archived'
LIFECYCLE_PENDING_REVIEW = 'pending_review'

LIFECYCLE_CHOICES = [
    (LIFECYCLE_ACTIVE, 'Active'),
    (LIFECYCLE_EXTENDED, 'Extended'),
    (LIFECYCLE_ARCHIVED, 'Archived'),
    (LIFECYCLE_PENDING_REVIEW, 'Pending Review'),
]

HEALTH_EXCELLENT = 'excellent'
HEALTH_GOOD = 'good'
HEALTH_WARNING = 'warning'
HEALTH_CRITICAL = 'critical'

UNGROUPED_DISPLAY_NAME = 'Ungrouped'


@dataclass(frozen=True)
class NotificationSnapshot:
    uuid: str
    notification_type: str
    title: str
    message: str
    priority: str
    lifecycle_status: str
    created: datetime
    notification_group: Optional[str] = None
    extended_until: Optional[datetime] = None
    recipient_ids: FrozenSet = field(default_factory=frozenset)
    read_by_ids: FrozenSet = field(default_factory=frozenset)

    def is_read_by(self, user_id) -> bool:
        return user_id in self.read_by_ids

    def is_read_by_all(self) -> bool:
        return bool(self.recipient_ids) and self.recipient_ids <= self.read_by_ids


def is_read_by_all(snapshot: NotificationSnapshot) -> bool:
    return snapshot.is_read_by_all()


def select_read_by_all(snapshots: Iterable[NotificationSnapshot]) -> List:
    """Identifiers of every notification in snapshots that is read by all of its intended recipients."""
    return [s.uuid for s in snapshots if s.is_read_by_all()]


def get_group_display_name(group_name: Optional[str]) -> str:
    if not group_name:
        return UNGROUPED_DISPLAY_NAME
    return group_name.replace('_', ' ').replace('-', ' ').strip().title()


@dataclass
class GroupStat:
    group_name: Optional[str]
    display_name: str
    notification_count: int = 0
    read_count: int = 0
    unread_count: int = 0
    latest_created: Optional[datetime] = None
    oldest_created: Optional[datetime] = None
    sample_notifications: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'group_name': self.group_name,
            'display_name': self.display_name,
            'notification_count': self.notification_count,
            'read_count': self.read_count,
            'unread_count': self.unread_count,
            'latest_created': self.latest_created.isoformat() if self.latest_created else None,
            'oldest_created': self.oldest_created.isoformat() if self.oldest_created else None,
            'sample_notifications': self.sample_notifications,
        }


@dataclass
class TypeGroupStat:
    notification_type: str
    description: str
    count: int = 0
    notification_count: int = 0
    read_count: int = 0
    unread_count: int = 0
    latest_activity: Optional[datetime] = None
    oldest_activity: Optional[datetime] = None
    groups: List[GroupStat] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'type': self.notification_type,
            'description': self.description,
            'count': self.count,
            'notification_count': self.notification_count,
            'read_count': self.read_count,
            'unread_count': self.unread_count,
            'latest_activity': self.latest_activity.isoformat() if self.latest_activity else None,
            'oldest_activity': self.oldest_activity.isoformat() if self.oldest_activity else None,
            'groups': [g.to_dict() for g in self.groups],
        }


def _build_group_stat(group_name: Optional[str],
                      snapshots: List[NotificationSnapshot],
                      sample_size: int) -> GroupStat:
    read_count = sum(1 for s in snapshots if s.is_read_by_all())
    created = [s.created for s in snapshots]
    by_recent = sorted(snapshots, key=lambda s: s.created, reverse=True)
    return GroupStat(
        group_name=group_name,
        display_name=get_group_display_name(group_name),
        notification_count=len(snapshots),
        read_count=read_count,
        unread_count=len(snapshots) - read_count,
        latest_created=max(created),
        oldest_created=min(created),
        sample_notifications=[
            {
                'title': s.title,
                'message': s.message,
                'created': s.created.isoformat(),
                'priority': s.priority,
                'is_read': s.is_read_by_all()
            } for s in by_recent[:sample_size]
        ]
    )


def compute_group_stats(snapshots: Iterable[NotificationSnapshot],
                        sample_size: Optional[int] = None) -> List[TypeGroupStat]:
    """
    Groups notifications by type and, within each type, by notification group.

    Parameters
    ----------
    snapshots: iterable of NotificationSnapshot
        The notifications to aggregate.
    sample_size: int
        Maximum number of sample notifications reported per group.
        Defaults to DJANGO_MOVEDOCS_GROUP_SAMPLE_SIZE.

    Returns
    -------
    list of TypeGroupStat
        One entry per notification type, most active type first. ``count`` is the number of distinct groups of the
        type (notifications without a group form one group). ``read_count`` only counts notifications read by all
        of their recipients, every other notification counts toward ``unread_count``.
    """
    if sample_size is None:
        sample_size = DJANGO_MOVEDOCS_GROUP_SAMPLE_SIZE

    by_type: Dict[str, Dict[Optional[str], List[NotificationSnapshot]]] = defaultdict(lambda: defaultdict(list))
    for s in snapshots:
        by_type[s.notification_type][s.notification_group or None].append(s)

    stats = list()
    for notification_type, groups in by_type.items():
        group_stats = [
            _build_group_stat(group_name, group_snapshots, sample_size)
            for group_name, group_snapshots in groups.items()
        ]
        group_stats.sort(key=lambda g: g.latest_created, reverse=True)

        notification_count = sum(g.notification_count for g in group_stats)
        read_count = sum(g.read_count for g in group_stats)
        stats.append(TypeGroupStat(
            notification_type=notification_type,
            description=NOTIFICATION_TYPE_DISPLAY.get(notification_type, get_group_display_name(notification_type)),
            count=len(group_stats),
            notification_count=notification_count,
            read_count=read_count,
            unread_count=notification_count - read_count,
            latest_activity=max(g.latest_created for g in group_stats),
            oldest_activity=min(g.oldest_created for g in group_stats),
            groups=group_stats
        ))

    stats.sort(key=lambda t: (-t.notification_count, t.notification_type))
    return stats


@dataclass
class SystemHealth:
    score: int
    level: str
    issues: List[str] = field(default_factory=list)
    alerts: List[Dict] = field(default_factory=list)
    total_notifications: int = 0
    active_count: int = 0
    pending_review_count: int = 0
    read_by_all_count: int = 0

    def to_dict(self) -> Dict:
        return {
            'health_score': self.score,
            'level': self.level,
            'issues': self.issues,
            'alerts': self.alerts,
            'total_notifications': self.total_notifications,
            'active_count': self.active_count,
            'pending_review_count': self.pending_review_count,
            'read_by_all_count': self.read_by_all_count,
        }


def get_health_level(score: int, levels: Optional[Dict[str, int]] = None) -> str:
    levels = levels or DJANGO_MOVEDOCS_HEALTH_LEVELS
    if score >= levels[HEALTH_EXCELLENT]:
        return HEALTH_EXCELLENT
    if score >= levels[HEALTH_GOOD]:
        return HEALTH_GOOD
    if score >= levels[HEALTH_WARNING]:
        return HEALTH_WARNING
    return HEALTH_CRITICAL


def compute_system_health(snapshots: Iterable[NotificationSnapshot],
                          now: Optional[datetime] = None,
                          levels: Optional[Dict[str, int]] = None) -> SystemHealth:
    """
    Scores the notification backlog.

    The score is the share of live notifications (active or extended) among all notifications that are either
    live or pending review, scaled to 0-100. Archived notifications do not affect the score. With nothing live and
    nothing pending review the system is healthy (100).

    Parameters
    ----------
    snapshots: iterable of NotificationSnapshot
        The notifications to evaluate.
    now: datetime
        Reference time used to detect lapsed extensions. Lapsed extensions are not checked when omitted.
    levels: dict
        Minimum scores for the excellent, good and warning levels. Defaults to DJANGO_MOVEDOCS_HEALTH_LEVELS.

    Returns
    -------
    SystemHealth
        Score, level, human-readable issues and advisory alerts.
    """
    snapshots = list(snapshots)
    live = [s for s in snapshots if s.lifecycle_status in (LIFECYCLE_ACTIVE, LIFECYCLE_EXTENDED)]
    pending_review = [s for s in snapshots if s.lifecycle_status == LIFECYCLE_PENDING_REVIEW]
    read_by_all = [s for s in snapshots if s.is_read_by_all()]

    considered = len(live) + len(pending_review)
    score = 100 if not considered else round(100 * len(live) / considered)
    level = get_health_level(score, levels)

    issues = list()
    alerts = list()

    if pending_review:
        issues.append(f'{len(pending_review)} notifications are pending review.')
        alerts.append({
            'level': HEALTH_CRITICAL if level == HEALTH_CRITICAL else HEALTH_WARNING,
            'message': f'{len(pending_review)} notifications are waiting for administrative review.',
            'action': 'review_pending'
        })

    if now:
        lapsed = [
            s for s in live
            if s.lifecycle_status == LIFECYCLE_EXTENDED and s.extended_until and s.extended_until < now
        ]
        if lapsed:
            issues.append(f'{len(lapsed)} extended notifications are past their extension.')
            alerts.append({
                'level': HEALTH_WARNING,
                'message': f'{len(lapsed)} notification extensions have lapsed.',
                'action': 'review_extended'
            })

    if read_by_all:
        alerts.append({
            'level': 'info',
            'message': f'{len(read_by_all)} notifications were read by all recipients and can be cleaned up.',
            'action': 'bulk_delete_read'
        })

    return SystemHealth(
        score=score,
        level=level,
        issues=issues,
        alerts=alerts,
        total_notifications=len(snapshots),
        active_count=len(live),
        pending_review_count=len(pending_review),
        read_by_all_count=len(read_by_all)
    )
