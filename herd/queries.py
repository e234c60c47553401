"""Read models for list and dashboard pages.

These flatten the joins a page needs into one annotated queryset (or a
small list of dicts) per organization.
"""
from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Exists, OuterRef, Q, Subquery, Sum

from . import breeding
from .models import (Sow, BreedingAttempt, Farrowing, HousingUnit, MatrixTreatment, ScheduledTask,
    ExpenseRecord, IncomeRecord)

# California Prop 12: 24 sq ft of usable floor space per breeding pig
PROP12_MIN_SQ_FT = 24

SOW_FILTERS = ['all', 'active', 'sows', 'gilts', 'culled', 'sold']


def sow_list(organization, status_filter='all', search=''):
    latest = BreedingAttempt.objects.filter(sow=OuterRef('pk')).order_by('-breeding_date', '-id')
    active_farrowing = Farrowing.objects.filter(
        sow=OuterRef('pk'),
        actual_farrowing_date__isnull=False,
        moved_out_of_farrowing_date__isnull=True,
    )
    sows = Sow.objects.filter(organization=organization).select_related('housing_unit').annotate(
        farrowing_total=Count('farrowings', filter=Q(farrowings__actual_farrowing_date__isnull=False), distinct=True),
        in_farrowing=Exists(active_farrowing),
        latest_breeding_date=Subquery(latest.values('breeding_date')[:1]),
        latest_breeding_result=Subquery(latest.values('result')[:1]),
    )

    if status_filter == 'active':
        sows = sows.filter(status='active')
    elif status_filter == 'sows':
        sows = sows.filter(status='active', farrowing_total__gt=0)
    elif status_filter == 'gilts':
        sows = sows.filter(status='active', farrowing_total=0)
    elif status_filter in ('culled', 'sold'):
        sows = sows.filter(status=status_filter)

    if search:
        sows = sows.filter(
            Q(ear_tag__icontains=search) | Q(name__icontains=search) | Q(breed__icontains=search)
        )
    return sows


def sow_filter_counts(organization):
    counts = {name: 0 for name in SOW_FILTERS}
    rows = Sow.objects.filter(organization=organization).annotate(
        farrowing_total=Count('farrowings', filter=Q(farrowings__actual_farrowing_date__isnull=False))
    ).values_list('status', 'farrowing_total')
    for status, farrowing_total in rows:
        counts['all'] += 1
        if status == 'active':
            counts['active'] += 1
            counts['gilts' if breeding.is_gilt(farrowing_total) else 'sows'] += 1
        elif status in counts:
            counts[status] += 1
    return counts


def housing_occupancy(organization):
    units = HousingUnit.objects.filter(organization=organization).annotate(
        occupants=Count('sows', filter=Q(sows__status='active'))
    ).order_by('name')
    result = []
    for unit in units:
        unit.free_capacity = max(unit.capacity - unit.occupants, 0)
        unit.over_capacity = unit.occupants > unit.capacity
        if unit.square_footage and unit.occupants:
            unit.space_per_animal = round(unit.square_footage / unit.occupants, 1)
            unit.prop12_compliant = unit.space_per_animal >= PROP12_MIN_SQ_FT
        else:
            unit.space_per_animal = None
            unit.prop12_compliant = True
        result.append(unit)
    return result


def matrix_batches(organization, today):
    batches = {}
    treatments = MatrixTreatment.objects.filter(organization=organization).select_related('sow').order_by('batch_name', 'sow__ear_tag')
    for treatment in treatments:
        batch = batches.setdefault(treatment.batch_name, {
            'batch_name': treatment.batch_name,
            'administration_date': treatment.administration_date,
            'expected_heat_date': treatment.expected_heat_date,
            'treatments': [],
        })
        batch['treatments'].append(treatment)
        batch['administration_date'] = min(batch['administration_date'], treatment.administration_date)
        batch['expected_heat_date'] = min(batch['expected_heat_date'], treatment.expected_heat_date)

    for batch in batches.values():
        items = batch['treatments']
        bred = sum(1 for t in items if t.bred)
        batch['sow_count'] = len(items)
        batch['bred_count'] = bred
        batch['pending_count'] = len(items) - bred
        batch['bred_percentage'] = round(bred * 100 / len(items))
        batch['days_until_heat'] = (batch['expected_heat_date'] - today).days
        batch['days_label'] = breeding.days_until_label(batch['days_until_heat'])
    return sorted(batches.values(), key=lambda b: b['expected_heat_date'], reverse=True)


def bred_sows(organization, today):
    """Current breeding attempts that have not yet produced a litter."""
    attempts = BreedingAttempt.objects.filter(
        organization=organization,
        sow__status='active',
        result__in=['pending', 'pregnant'],
        farrowing__isnull=False,
        farrowing__actual_farrowing_date__isnull=True,
    ).select_related('sow', 'boar', 'farrowing').order_by('breeding_date')
    rows = []
    for attempt in attempts:
        days = (today - attempt.breeding_date).days
        attempt.days_since = days
        attempt.check_window = breeding.pregnancy_check_window(days)
        attempt.check_due = breeding.needs_pregnancy_check(days, attempt.pregnancy_confirmed, attempt.result)
        attempt.days_to_farrowing = (attempt.farrowing.expected_farrowing_date - today).days
        rows.append(attempt)
    return rows


def budget_progress(budget):
    expenses = ExpenseRecord.objects.filter(
        organization=budget.organization,
        is_deleted=False,
        expense_date__gte=budget.start_date,
        expense_date__lte=budget.end_date,
    ).values('expense_category').annotate(total=Sum('amount'))
    actual_by_category = {row['expense_category']: row['total'] or Decimal('0') for row in expenses}

    lines = []
    for category, label in ExpenseRecord.CATEGORIES:
        budgeted = budget.category_budgets()[category]
        actual = actual_by_category.get(category, Decimal('0'))
        lines.append({
            'category': category,
            'label': label,
            'budgeted': budgeted,
            'actual': actual,
            'remaining': budgeted - actual,
            'percent': round(actual * 100 / budgeted) if budgeted else 0,
            'over_budget': actual > budgeted,
        })

    revenue = IncomeRecord.objects.filter(
        organization=budget.organization,
        is_deleted=False,
        income_date__gte=budget.start_date,
        income_date__lte=budget.end_date,
    ).aggregate(total=Sum('total_amount'))['total'] or Decimal('0')

    total_actual = sum((line['actual'] for line in lines), Decimal('0'))
    total_budget = budget.total_budget
    return {
        'budget': budget,
        'lines': lines,
        'total_budget': total_budget,
        'total_actual': total_actual,
        'total_percent': round(total_actual * 100 / total_budget) if total_budget else 0,
        'revenue': revenue,
        'revenue_percent': round(revenue * 100 / budget.revenue_target) if budget.revenue_target else 0,
        'net': revenue - total_actual,
    }


def dashboard_alerts(organization, today):
    week = today + timedelta(days=7)
    pregnancy_checks = [a for a in bred_sows(organization, today) if a.check_due]
    farrowings_due = Farrowing.objects.filter(
        organization=organization,
        actual_farrowing_date__isnull=True,
        expected_farrowing_date__lte=week,
    ).select_related('sow').order_by('expected_farrowing_date')
    heats_due = MatrixTreatment.objects.filter(
        organization=organization,
        bred=False,
        actual_heat_date__isnull=True,
        expected_heat_date__lte=today + timedelta(days=2),
        expected_heat_date__gte=today - timedelta(days=3),
    ).select_related('sow').order_by('expected_heat_date')
    overdue_tasks = ScheduledTask.objects.filter(
        organization=organization, is_completed=False, due_date__lt=today
    ).select_related('sow').order_by('due_date')
    crowded_units = [u for u in housing_occupancy(organization) if u.over_capacity]
    return {
        'pregnancy_checks': pregnancy_checks,
        'farrowings_due': farrowings_due,
        'heats_due': heats_due,
        'overdue_tasks': overdue_tasks,
        'crowded_units': crowded_units,
        'has_alerts': bool(pregnancy_checks) or farrowings_due.exists() or heats_due.exists()
                      or overdue_tasks.exists() or bool(crowded_units),
    }
