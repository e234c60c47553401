import logging
from datetime import timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.db.models import Exists, OuterRef
from django.urls import reverse
from django.utils import timezone

from . import breeding
from .models import (Organization, NotificationPreference, Notification, Farrowing,
    BreedingAttempt, HealthRecord, MatrixTreatment, ScheduledTask)

logger = logging.getLogger(__name__)


def members_of(organization):
    return get_user_model().objects.filter(memberships__organization=organization, is_active=True).distinct()


def notify(user, notification_type, title, message, organization=None, link_url='', dedupe_key='', scheduled_for=None):
    """Create an in-app notification unless the user opted out or already has it."""
    preference = NotificationPreference.for_user(user)
    if not preference.allows(notification_type):
        return None
    if dedupe_key and Notification.objects.filter(user=user, dedupe_key=dedupe_key).exists():
        return None
    return Notification.objects.create(
        user=user,
        organization=organization,
        notification_type=notification_type,
        title=title,
        message=message,
        link_url=link_url,
        dedupe_key=dedupe_key,
        scheduled_for=scheduled_for or timezone.now(),
    )


# --- EVENT CHECKS (cron) ---
def _reminder_days(value):
    return set(NotificationPreference.parse_days(value)) | {0}


def _farrowing_alerts(organization, user, preference, today):
    days = _reminder_days(preference.farrowing_reminder_days)
    window_end = today + timedelta(days=max(days))
    created = 0
    farrowings = Farrowing.objects.filter(
        organization=organization,
        actual_farrowing_date__isnull=True,
        expected_farrowing_date__gte=today,
        expected_farrowing_date__lte=window_end,
    ).select_related('sow')
    for farrowing in farrowings:
        days_until = (farrowing.expected_farrowing_date - today).days
        if days_until not in days:
            continue
        when = 'today' if days_until == 0 else f"in {days_until} day{'s' if days_until != 1 else ''}"
        if notify(
            user, 'farrowing',
            title=f"Farrowing due {when}",
            message=f"{farrowing.sow.display_name} is expected to farrow on {farrowing.expected_farrowing_date:%b %d}.",
            organization=organization,
            link_url=reverse('farrowing_list'),
            dedupe_key=f"farrowing-{farrowing.id}-{days_until}",
        ):
            created += 1
    return created


def _pregnancy_check_alerts(organization, user, preference, today):
    days = _reminder_days(preference.pregnancy_check_reminder_days)
    created = 0
    attempts = BreedingAttempt.objects.filter(
        organization=organization,
        result='pending',
        pregnancy_confirmed__isnull=True,
        breeding_date__lte=today - timedelta(days=breeding.PREGNANCY_CHECK_DAYS - max(days)),
        breeding_date__gte=today - timedelta(days=breeding.PREGNANCY_CHECK_WINDOW_END),
    ).select_related('sow')
    for attempt in attempts:
        days_until_check = breeding.PREGNANCY_CHECK_DAYS - (today - attempt.breeding_date).days
        if days_until_check > 0 and days_until_check not in days:
            continue
        if notify(
            user, 'pregnancy_check',
            title="Pregnancy check due",
            message=f"{attempt.sow.display_name} was bred on {attempt.breeding_date:%b %d}; check between day "
                    f"{breeding.PREGNANCY_CHECK_DAYS} and {breeding.PREGNANCY_CHECK_WINDOW_END}.",
            organization=organization,
            link_url=reverse('bred_sows'),
            dedupe_key=f"pregnancy-check-{attempt.id}-{max(days_until_check, 0)}",
        ):
            created += 1
    return created


def _weaning_alerts(organization, user, preference, today):
    days = _reminder_days(preference.weaning_reminder_days)
    created = 0
    farrowings = Farrowing.objects.filter(
        organization=organization,
        actual_farrowing_date__isnull=False,
        moved_out_of_farrowing_date__isnull=True,
        actual_farrowing_date__gte=today - timedelta(days=breeding.WEANING_AGE_DAYS),
        actual_farrowing_date__lte=today - timedelta(days=breeding.WEANING_AGE_DAYS - max(days)),
    ).select_related('sow')
    for farrowing in farrowings:
        days_until = (farrowing.expected_weaning_date - today).days
        if days_until not in days:
            continue
        when = 'today' if days_until == 0 else f"in {days_until} day{'s' if days_until != 1 else ''}"
        if notify(
            user, 'weaning',
            title=f"Litter ready to wean {when}",
            message=f"{farrowing.sow.display_name}'s litter reaches {breeding.WEANING_AGE_DAYS} days on {farrowing.expected_weaning_date:%b %d}.",
            organization=organization,
            link_url=reverse('farrowing_list'),
            dedupe_key=f"weaning-{farrowing.id}-{days_until}",
        ):
            created += 1
    return created


def _breeding_alerts(organization, user, preference, today):
    """Remind about weaned sows due back in heat today or tomorrow."""
    created = 0
    rebred = BreedingAttempt.objects.filter(
        sow=OuterRef('sow'), breeding_date__gte=OuterRef('moved_out_of_farrowing_date'),
    )
    farrowings = Farrowing.objects.filter(
        organization=organization,
        sow__status='active',
        moved_out_of_farrowing_date__gte=today - timedelta(days=breeding.WEAN_TO_HEAT_DAYS),
        moved_out_of_farrowing_date__lte=today - timedelta(days=breeding.WEAN_TO_HEAT_DAYS - 1),
    ).exclude(Exists(rebred)).select_related('sow')
    for farrowing in farrowings:
        heat_date = breeding.expected_return_to_heat(farrowing.moved_out_of_farrowing_date)
        when = 'today' if heat_date == today else 'tomorrow'
        if notify(
            user, 'breeding',
            title=f"Sow expected in heat {when}",
            message=f"{farrowing.sow.display_name} was weaned on {farrowing.moved_out_of_farrowing_date:%b %d} "
                    f"and should return to heat around {heat_date:%b %d}.",
            organization=organization,
            link_url=reverse('sow_detail', args=[farrowing.sow_id]),
            dedupe_key=f"breeding-{farrowing.id}",
        ):
            created += 1
    return created


def _matrix_alerts(organization, user, preference, today):
    created = 0
    treatments = MatrixTreatment.objects.filter(
        organization=organization,
        bred=False,
        actual_heat_date__isnull=True,
        expected_heat_date__gte=today,
        expected_heat_date__lte=today + timedelta(days=1),
    ).select_related('sow')
    for treatment in treatments:
        when = 'today' if treatment.expected_heat_date == today else 'tomorrow'
        if notify(
            user, 'matrix',
            title=f"Matrix heat expected {when}",
            message=f"{treatment.sow.display_name} ({treatment.batch_name}) should show heat on "
                    f"{treatment.expected_heat_date:%b %d}.",
            organization=organization,
            link_url=reverse('matrix_batch_detail', args=[treatment.batch_name]),
            dedupe_key=f"matrix-{treatment.id}",
        ):
            created += 1
    return created


def _vaccination_alerts(organization, user, preference, today):
    days = _reminder_days(preference.vaccination_reminder_days)
    created = 0
    records = HealthRecord.objects.filter(
        organization=organization,
        record_type='vaccination',
        next_due_date__gte=today,
        next_due_date__lte=today + timedelta(days=max(days)),
    ).select_related('sow', 'boar', 'piglet')
    for record in records:
        days_until = (record.next_due_date - today).days
        if days_until not in days:
            continue
        if notify(
            user, 'vaccination',
            title=f"{record.title} due",
            message=f"{record.animal_label} is due for {record.title} on {record.next_due_date:%b %d}.",
            organization=organization,
            link_url=reverse('health_list'),
            dedupe_key=f"vaccination-{record.id}-{days_until}",
        ):
            created += 1
    return created


def _task_alerts(organization, user, preference, today):
    created = 0
    tasks = ScheduledTask.objects.filter(organization=organization, is_completed=False, due_date=today).select_related('sow')
    for task in tasks:
        subject = f" for {task.sow.display_name}" if task.sow else ''
        if notify(
            user, 'tasks',
            title="Task due today",
            message=f"{task.task_name}{subject}",
            organization=organization,
            link_url=reverse('task_list'),
            dedupe_key=f"task-{task.id}",
        ):
            created += 1
    return created


EVENT_CHECKS = [_farrowing_alerts, _pregnancy_check_alerts, _weaning_alerts, _breeding_alerts, _matrix_alerts,
                _vaccination_alerts, _task_alerts]


def check_event_notifications(today=None):
    today = today or timezone.now().date()
    created = 0
    for organization in Organization.objects.all():
        farm_settings = organization.farm_settings if hasattr(organization, 'farm_settings') else None
        for user in members_of(organization):
            preference = NotificationPreference.for_user(user)
            for check in EVENT_CHECKS:
                if check is _task_alerts and farm_settings and not farm_settings.task_reminders_enabled:
                    continue
                created += check(organization, user, preference, today)
    logger.info("Created %d event notification(s) for %s", created, today)
    return created


# --- DELIVERY ---
def _local_time(preference, now):
    try:
        zone = ZoneInfo(preference.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        zone = ZoneInfo(settings.TIME_ZONE)
    return now.astimezone(zone).time()


def send_email(notification):
    if not notification.user.email:
        return False
    try:
        send_mail(
            notification.title,
            notification.message,
            settings.DEFAULT_FROM_EMAIL,
            [notification.user.email],
        )
        return True
    except Exception as e:
        logger.error("Email delivery failed for notification %s: %s", notification.id, e)
        return False


def send_push(notification):
    url = getattr(settings, 'PUSH_WEBHOOK_URL', '')
    if not url:
        return False
    payload = {
        'user_id': notification.user_id,
        'title': notification.title,
        'body': notification.message,
        'url': notification.link_url,
        'type': notification.notification_type,
    }
    try:
        r = requests.post(url, json=payload, timeout=5)
        r.raise_for_status()
        return True
    except requests.RequestException as e:
        logger.error("Push delivery failed for notification %s: %s", notification.id, e)
        return False


def process_notifications(now=None):
    """Deliver due, unsent notifications. Returns (sent, deferred) counts.

    Delivery is deferred during the user's quiet hours and when every
    enabled channel fails, so the next run picks the notification up again.
    """
    now = now or timezone.now()
    sent = deferred = 0
    due = Notification.objects.filter(sent_at__isnull=True, scheduled_for__lte=now).select_related('user', 'organization')
    for notification in due:
        preference = NotificationPreference.for_user(notification.user)
        if preference.in_quiet_hours(_local_time(preference, now)):
            deferred += 1
            continue

        org_settings = getattr(notification.organization, 'farm_settings', None) if notification.organization else None
        email_allowed = preference.email_enabled and not preference.email_daily_digest
        if org_settings is not None and not org_settings.email_notifications_enabled:
            email_allowed = False

        attempted = delivered = 0
        if email_allowed and notification.user.email:
            attempted += 1
            delivered += send_email(notification)
        if preference.push_enabled and getattr(settings, 'PUSH_WEBHOOK_URL', ''):
            attempted += 1
            delivered += send_push(notification)

        if attempted and not delivered:
            deferred += 1
            continue
        notification.sent_at = now
        notification.save(update_fields=['sent_at'])
        sent += 1
    logger.info("Delivered %d notification(s), deferred %d", sent, deferred)
    return sent, deferred


def send_daily_digests(today=None):
    """Email each digest subscriber one summary of the day's notifications."""
    today = today or timezone.localdate()
    sent = 0
    preferences = NotificationPreference.objects.filter(email_enabled=True, email_daily_digest=True).select_related('user')
    for preference in preferences:
        user = preference.user
        if not user.email:
            continue
        todays = Notification.objects.filter(user=user, created_at__date=today).order_by('created_at')
        if not todays.exists():
            continue
        lines = [f"- {n.title}: {n.message}" for n in todays]
        try:
            send_mail(
                f"Your farm digest for {today:%b %d, %Y}",
                "\n".join(lines),
                settings.DEFAULT_FROM_EMAIL,
                [user.email],
            )
            sent += 1
        except Exception as e:
            logger.error("Digest delivery failed for %s: %s", user.email, e)
    return sent
