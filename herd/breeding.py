"""Breeding-cycle date rules for swine.

Gestation, pregnancy-check timing, Matrix heat synchronisation and weaning
age are all fixed day counts from a known event date. Everything here is
pure; callers pass ``today`` explicitly where the answer depends on it.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

GESTATION_DAYS = 114
PREGNANCY_CHECK_DAYS = 18
PREGNANCY_CHECK_WINDOW_END = 21
DEFAULT_DAYS_UNTIL_HEAT = 5
WEANING_AGE_DAYS = 21
# Weaned sows usually come back into heat about a week later
WEAN_TO_HEAT_DAYS = 7


def expected_farrowing_date(breeding_date):
    return breeding_date + timedelta(days=GESTATION_DAYS)


def expected_heat_date(administration_date, days_until_heat=DEFAULT_DAYS_UNTIL_HEAT):
    return administration_date + timedelta(days=days_until_heat)


def expected_weaning_date(farrowing_date):
    return farrowing_date + timedelta(days=WEANING_AGE_DAYS)


def expected_return_to_heat(weaning_date):
    return weaning_date + timedelta(days=WEAN_TO_HEAT_DAYS)


def task_due_date(event_date, days_offset):
    return event_date + timedelta(days=days_offset)


def is_gilt(farrowing_count):
    """A female that has never farrowed is a gilt."""
    return farrowing_count == 0


def needs_pregnancy_check(days_since_breeding, pregnancy_confirmed, result='pending'):
    if pregnancy_confirmed is not None or result != 'pending':
        return False
    return days_since_breeding >= PREGNANCY_CHECK_DAYS


def pregnancy_check_window(days_since_breeding):
    if days_since_breeding < PREGNANCY_CHECK_DAYS:
        return 'too_early'
    if days_since_breeding <= PREGNANCY_CHECK_WINDOW_END:
        return 'optimal'
    return 'overdue'


def days_until_label(days, event='heat'):
    if days < 0:
        return f"{abs(days)} day{'s' if abs(days) != 1 else ''} overdue"
    if days == 0:
        return "Due today"
    return f"{days} day{'s' if days != 1 else ''} until {event}"


@dataclass
class BreedingStatus:
    is_bred: bool = False
    breeding_date: Optional[date] = None
    days_since_breeding: Optional[int] = None
    status_label: str = 'Open'
    pregnancy_confirmed: Optional[bool] = None
    needs_pregnancy_check: bool = False


def breeding_status(attempt, today):
    """Summarise a sow's most recent breeding attempt as of ``today``.

    A sow that was checked and found open is reported as not bred, so she
    shows up as ready to re-breed.
    """
    if attempt is None or attempt.result == 'not_pregnant':
        return BreedingStatus()

    days = (today - attempt.breeding_date).days
    if attempt.result == 'pregnant' or attempt.pregnancy_confirmed:
        label = 'Pregnant'
    elif needs_pregnancy_check(days, attempt.pregnancy_confirmed, attempt.result):
        label = 'Needs pregnancy check'
    else:
        label = 'Bred'

    return BreedingStatus(
        is_bred=True,
        breeding_date=attempt.breeding_date,
        days_since_breeding=days,
        status_label=label,
        pregnancy_confirmed=attempt.pregnancy_confirmed,
        needs_pregnancy_check=needs_pregnancy_check(days, attempt.pregnancy_confirmed, attempt.result),
    )
