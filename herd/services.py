"""Multi-step farm workflows.

Each function validates its inputs, performs its writes inside a single
transaction and raises ``WorkflowError`` with a user-facing message when a
farm rule is violated. Views catch the error and show it as a message.
"""
import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import F
from django.urls import reverse
from django.utils import timezone

from . import breeding
from .exceptions import WorkflowError
from .models import (Organization, Membership, FarmSettings, Sow, Boar, BreedingAttempt, Farrowing,
    Piglet, MatrixTreatment, Protocol, ScheduledTask, LocationHistory, HealthRecord,
    TransferRequest)
from .notifications import notify

logger = logging.getLogger(__name__)


def _today(today=None):
    return today or timezone.now().date()


# --- ORGANIZATIONS ---
@transaction.atomic
def create_organization(user, name):
    name = (name or '').strip()
    if not name:
        raise WorkflowError('Farm name is required')
    organization = Organization.objects.create(name=name)
    Membership.objects.create(organization=organization, user=user, role='owner')
    FarmSettings.objects.create(organization=organization, farm_name=name)
    logger.info("Organization %s created by %s", organization.id, user)
    return organization


# --- PROTOCOLS ---
def expand_protocols(organization, trigger_event, event_date, sow=None, farrowing=None):
    """Instantiate every task of the active protocols for ``trigger_event``."""
    protocols = Protocol.objects.filter(
        organization=organization, trigger_event=trigger_event, is_active=True
    ).prefetch_related('tasks')
    created = []
    for protocol in protocols:
        for task in protocol.tasks.all():
            created.append(ScheduledTask.objects.create(
                organization=organization,
                protocol=protocol,
                protocol_task=task,
                sow=sow,
                farrowing=farrowing,
                task_name=task.task_name,
                description=task.description,
                due_date=breeding.task_due_date(event_date, task.days_offset),
            ))
    if created:
        logger.info("Scheduled %d task(s) from %s protocols", len(created), trigger_event)
    return created


def delete_protocol(protocol):
    outstanding = protocol.outstanding_task_count
    if outstanding:
        raise WorkflowError(
            f"Cannot delete this protocol: {outstanding} scheduled task{'s' if outstanding != 1 else ''} "
            f"still outstanding. Complete them or deactivate the protocol instead."
        )
    protocol.delete()


def complete_task(task, notes=''):
    task.is_completed = True
    task.completed_at = timezone.now()
    task.completed_notes = notes or ''
    task.save(update_fields=['is_completed', 'completed_at', 'completed_notes'])
    return task


def reopen_task(task):
    task.is_completed = False
    task.completed_at = None
    task.save(update_fields=['is_completed', 'completed_at'])
    return task


# --- BREEDING ---
def record_breeding(sow, breeding_method, breeding_date, breeding_time, boar=None, boar_description='',
                    notes='', matrix_treatment=None, today=None):
    today = _today(today)
    boar_description = (boar_description or '').strip()
    notes = (notes or '').strip()

    if sow.status != 'active':
        raise WorkflowError(f'{sow.display_name} is not active and cannot be bred')
    if boar is None and not boar_description:
        raise WorkflowError('Select a boar or describe the boar/semen used')
    if boar is not None and boar.organization_id != sow.organization_id:
        raise WorkflowError('Selected boar does not belong to this farm')
    if matrix_treatment is not None and matrix_treatment.sow_id != sow.id:
        raise WorkflowError('Matrix treatment belongs to a different sow')
    if not breeding_date:
        raise WorkflowError('Breeding date is required')
    if breeding_date > today:
        raise WorkflowError('Breeding date cannot be in the future')
    if breeding_time is None:
        raise WorkflowError('Breeding time is required')
    uses_straw = boar is not None and boar.is_ai_semen
    if uses_straw and (boar.semen_straws or 0) < 1:
        raise WorkflowError('Insufficient semen straws available')

    if boar is None:
        prefix = 'AI Semen' if breeding_method == 'ai' else 'Boar'
        notes = f"{prefix}: {boar_description}" + (f"\n{notes}" if notes else '')

    with transaction.atomic():
        attempt = BreedingAttempt.objects.create(
            organization=sow.organization,
            sow=sow,
            boar=boar,
            boar_description=boar_description,
            breeding_method='ai' if uses_straw else breeding_method,
            breeding_date=breeding_date,
            breeding_time=breeding_time,
            matrix_treatment=matrix_treatment,
            notes=notes,
        )
        farrowing = Farrowing.objects.create(
            organization=sow.organization,
            sow=sow,
            breeding_attempt=attempt,
            boar=boar,
            breeding_date=breeding_date,
        )
        if matrix_treatment is not None:
            matrix_treatment.bred = True
            matrix_treatment.breeding_date = breeding_date
            matrix_treatment.save(update_fields=['bred', 'breeding_date'])
        if uses_straw:
            Boar.objects.filter(pk=boar.pk).update(semen_straws=F('semen_straws') - 1)
            boar.refresh_from_db(fields=['semen_straws'])
        expand_protocols(sow.organization, 'breeding', breeding_date, sow=sow, farrowing=farrowing)

    logger.info("Breeding recorded for sow %s on %s", sow.id, breeding_date)
    return attempt


def mark_matrix_bred(treatment, breeding_date=None, today=None):
    breeding_date = breeding_date or _today(today)
    if treatment.bred:
        raise WorkflowError(f'{treatment.sow.display_name} is already marked as bred')
    if breeding_date < treatment.administration_date:
        raise WorkflowError('Breeding date cannot be before the Matrix administration date')
    with transaction.atomic():
        treatment.bred = True
        treatment.breeding_date = breeding_date
        if treatment.actual_heat_date is None:
            treatment.actual_heat_date = breeding_date
        treatment.save(update_fields=['bred', 'breeding_date', 'actual_heat_date'])
        expand_protocols(treatment.organization, 'breeding', breeding_date, sow=treatment.sow)
    return treatment


def check_pregnancy(attempt, pregnant, check_date, notes='', today=None):
    today = _today(today)
    if check_date > today:
        raise WorkflowError('Check date cannot be in the future')
    if check_date < attempt.breeding_date:
        raise WorkflowError('Check date cannot be before the breeding date')

    line = f"Pregnancy confirmed on {check_date}" if pregnant else f"Returned to heat on {check_date}"
    if notes:
        line = f"{line}: {notes.strip()}"

    with transaction.atomic():
        attempt.pregnancy_confirmed = pregnant
        attempt.result = 'pregnant' if pregnant else 'not_pregnant'
        attempt.pregnancy_check_date = check_date
        attempt.notes = f"{attempt.notes}\n{line}" if attempt.notes else line
        attempt.save(update_fields=['pregnancy_confirmed', 'result', 'pregnancy_check_date', 'notes'])
        if not pregnant:
            # Open sow: drop the pending farrowing so she can be re-bred.
            Farrowing.objects.filter(breeding_attempt=attempt, actual_farrowing_date__isnull=True).delete()
    return attempt


# --- FARROWING & PIGLETS ---
def record_litter(farrowing, actual_farrowing_date, live_piglets, stillborn=0, mummified=0,
                  housing_unit=None, notes='', today=None):
    today = _today(today)
    if farrowing.has_farrowed:
        raise WorkflowError('A litter has already been recorded for this farrowing')
    if actual_farrowing_date > today:
        raise WorkflowError('Farrowing date cannot be in the future')
    if actual_farrowing_date < farrowing.breeding_date:
        raise WorkflowError('Farrowing date cannot be before the breeding date')
    for label, value in (('Live piglets', live_piglets), ('Stillborn', stillborn), ('Mummified', mummified)):
        if value is not None and value < 0:
            raise WorkflowError(f'{label} cannot be negative')
    if housing_unit is not None and housing_unit.unit_type != 'farrowing':
        raise WorkflowError(f'{housing_unit.name} is not a farrowing unit')

    with transaction.atomic():
        farrowing.actual_farrowing_date = actual_farrowing_date
        farrowing.live_piglets = live_piglets
        farrowing.stillborn = stillborn or 0
        farrowing.mummified = mummified or 0
        if notes:
            farrowing.notes = f"{farrowing.notes}\n{notes}" if farrowing.notes else notes
        farrowing.save()

        attempt = farrowing.breeding_attempt
        if attempt is not None and attempt.result == 'pending':
            attempt.result = 'pregnant'
            attempt.pregnancy_confirmed = True
            attempt.save(update_fields=['result', 'pregnancy_confirmed'])

        if housing_unit is not None and farrowing.sow.housing_unit_id != housing_unit.id:
            assign_housing(farrowing.sow, housing_unit, actual_farrowing_date)

        expand_protocols(farrowing.organization, 'farrowing', actual_farrowing_date,
                         sow=farrowing.sow, farrowing=farrowing)
    logger.info("Litter recorded for farrowing %s: %s live", farrowing.id, live_piglets)
    return farrowing


def create_piglets(farrowing, piglets=None):
    """Create nursing piglets for a recorded litter.

    ``piglets`` is an optional list of dicts with any of ``ear_tag``, ``sex``,
    ``birth_weight``, ``right_ear_notch`` and ``left_ear_notch``. Missing
    notches default to the farm's current litter number (right) and the
    piglet's sequence in the litter (left).
    """
    if not farrowing.has_farrowed:
        raise WorkflowError('Record the litter before creating piglets')
    remaining = (farrowing.live_piglets or 0) - farrowing.piglets.count()
    if remaining <= 0:
        raise WorkflowError('All piglets for this litter have already been created')
    if piglets is None:
        piglets = [{} for _ in range(remaining)]
    if not piglets:
        raise WorkflowError('No piglets to create')
    if len(piglets) > remaining:
        raise WorkflowError(f"Only {remaining} piglet{'s' if remaining != 1 else ''} left to create for this litter")

    with transaction.atomic():
        farm_settings = FarmSettings.objects.select_for_update().get_or_create(organization=farrowing.organization)[0]
        litter_number = farm_settings.ear_notch_current_litter
        existing = farrowing.piglets.filter(status='nursing').count()
        created = []
        for index, data in enumerate(piglets):
            right = data.get('right_ear_notch')
            left = data.get('left_ear_notch')
            created.append(Piglet.objects.create(
                organization=farrowing.organization,
                farrowing=farrowing,
                ear_tag=data.get('ear_tag') or '',
                sex=data.get('sex') or 'unknown',
                birth_weight=data.get('birth_weight'),
                right_ear_notch=litter_number if right in (None, '') else right,
                left_ear_notch=existing + index + 1 if left in (None, '') else left,
                status='nursing',
            ))
        farm_settings.ear_notch_current_litter = litter_number + 1
        farm_settings.save(update_fields=['ear_notch_current_litter'])
    return created


def wean_litter(farrowing, weaning_date, weights=None, today=None):
    """Wean a litter and move the sow out of farrowing.

    Nursing piglets already on record are marked weaned; any shortfall against
    the live count is inserted as weaned piglets. ``weights`` is an optional
    list of weaning weights applied in piglet order.
    """
    today = _today(today)
    if not farrowing.has_farrowed:
        raise WorkflowError('Record the litter before weaning')
    if farrowing.moved_out_of_farrowing_date is not None:
        raise WorkflowError('This litter has already been weaned')
    if weaning_date > today:
        raise WorkflowError('Weaning date cannot be in the future')
    if weaning_date < farrowing.actual_farrowing_date:
        raise WorkflowError('Weaning date cannot be before the farrowing date')
    weights = list(weights or [])

    with transaction.atomic():
        weaned = []
        nursing = list(farrowing.piglets.filter(status='nursing'))
        missing = max((farrowing.live_piglets or 0) - farrowing.piglets.count(), 0)
        for index, piglet in enumerate(nursing):
            piglet.status = 'weaned'
            piglet.weaned_date = weaning_date
            if index < len(weights) and weights[index] is not None:
                piglet.weaning_weight = weights[index]
            piglet.save(update_fields=['status', 'weaned_date', 'weaning_weight'])
            weaned.append(piglet)
        for offset in range(missing):
            index = len(nursing) + offset
            weaned.append(Piglet.objects.create(
                organization=farrowing.organization,
                farrowing=farrowing,
                status='weaned',
                weaned_date=weaning_date,
                weaning_weight=weights[index] if index < len(weights) else None,
            ))
        farrowing.moved_out_of_farrowing_date = weaning_date
        farrowing.save(update_fields=['moved_out_of_farrowing_date'])
        expand_protocols(farrowing.organization, 'weaning', weaning_date, sow=farrowing.sow, farrowing=farrowing)
    logger.info("Weaned %d piglet(s) from farrowing %s", len(weaned), farrowing.id)
    return weaned


# --- MATRIX ---
def record_matrix_treatment(sows, administration_date, batch_name='', days_until_heat=breeding.DEFAULT_DAYS_UNTIL_HEAT,
                            dosage='', lot_number='', notes=''):
    sows = list(sows)
    if not sows:
        raise WorkflowError('Select at least one sow')
    if days_until_heat is None or days_until_heat < 0:
        raise WorkflowError('Days until heat must be zero or more')
    batch_name = (batch_name or '').strip() or f"Matrix-{administration_date.isoformat()}"
    heat_date = breeding.expected_heat_date(administration_date, days_until_heat)

    with transaction.atomic():
        treatments = [
            MatrixTreatment.objects.create(
                organization=sow.organization,
                sow=sow,
                batch_name=batch_name,
                administration_date=administration_date,
                expected_heat_date=heat_date,
                dosage=dosage,
                lot_number=lot_number,
                notes=notes,
            )
            for sow in sows
        ]
    return treatments


# --- HOUSING ---
def assign_housing(sow, unit, move_in_date=None, today=None):
    move_in_date = move_in_date or _today(today)
    if unit.organization_id != sow.organization_id:
        raise WorkflowError('Housing unit does not belong to this farm')
    if sow.housing_unit_id == unit.id:
        raise WorkflowError(f'{sow.display_name} is already in {unit.name}')
    if unit.occupant_count >= unit.capacity:
        logger.warning("Housing unit %s is at capacity (%s); assigning sow %s anyway", unit.id, unit.capacity, sow.id)

    with transaction.atomic():
        LocationHistory.objects.filter(sow=sow, moved_out_date__isnull=True).update(moved_out_date=move_in_date)
        LocationHistory.objects.create(sow=sow, housing_unit=unit, moved_in_date=move_in_date)
        sow.housing_unit = unit
        sow.housing_move_in_date = move_in_date
        sow.save(update_fields=['housing_unit', 'housing_move_in_date'])
    return sow


def remove_from_housing(sow, move_out_date=None, today=None):
    move_out_date = move_out_date or _today(today)
    with transaction.atomic():
        LocationHistory.objects.filter(sow=sow, moved_out_date__isnull=True).update(moved_out_date=move_out_date)
        sow.housing_unit = None
        sow.housing_move_in_date = None
        sow.save(update_fields=['housing_unit', 'housing_move_in_date'])
    return sow


def delete_housing_unit(unit):
    if unit.sows.exists():
        raise WorkflowError(f'Cannot delete {unit.name} while animals are housed in it. Move them first.')
    unit.delete()


# --- HEALTH ---
def bulk_vaccinate(sows, vaccine_name, record_date, dosage='', administered_by='', next_due_date=None, notes=''):
    sows = list(sows)
    vaccine_name = (vaccine_name or '').strip()
    if not sows:
        raise WorkflowError('Select at least one animal')
    if not vaccine_name:
        raise WorkflowError('Vaccine name is required')
    if next_due_date is not None and next_due_date < record_date:
        raise WorkflowError('Next due date cannot be before the vaccination date')

    with transaction.atomic():
        records = [
            HealthRecord.objects.create(
                organization=sow.organization,
                sow=sow,
                record_type='vaccination',
                record_date=record_date,
                title=vaccine_name,
                description=notes,
                medication=vaccine_name,
                dosage=dosage,
                administered_by=administered_by,
                next_due_date=next_due_date,
            )
            for sow in sows
        ]
    logger.info("Vaccinated %d sow(s) with %s", len(records), vaccine_name)
    return records


# --- TRANSFERS ---
def request_transfer(animal, from_user, to_user_email, message='', retain_records=False):
    email = (to_user_email or '').strip().lower()
    try:
        validate_email(email)
    except ValidationError:
        raise WorkflowError('Please enter a valid email address')
    if from_user.email and email == from_user.email.lower():
        raise WorkflowError('You cannot transfer an animal to yourself')
    field = 'sow' if isinstance(animal, Sow) else 'boar'
    if TransferRequest.objects.filter(status='pending', **{field: animal}).exists():
        raise WorkflowError('This animal already has a pending transfer request')

    transfer = TransferRequest.objects.create(
        organization=animal.organization,
        from_user=from_user,
        to_user_email=email,
        message=message,
        retain_records=retain_records,
        **{field: animal},
    )
    recipient = get_user_model().objects.filter(email__iexact=email).first()
    if recipient is not None:
        notify(
            recipient, 'transfers',
            title="Incoming animal transfer",
            message=f"{animal.organization.name} wants to transfer {animal.display_name} to you.",
            link_url=reverse('transfer_list'),
            dedupe_key=f"transfer-{transfer.id}",
        )
    logger.info("Transfer %s requested for %s %s", transfer.id, field, animal.id)
    return transfer


def _check_recipient(transfer, user):
    if transfer.status != 'pending':
        raise WorkflowError('This transfer is no longer pending')
    if not user.email or user.email.lower() != transfer.to_user_email.lower():
        raise WorkflowError('This transfer was not sent to you')


def accept_transfer(transfer, user, organization=None):
    """Move the animal and its history into the recipient's farm.

    With ``retain_records`` the sending farm keeps an archived copy of the
    animal marked as sold.
    """
    _check_recipient(transfer, user)
    if organization is None:
        membership = user.memberships.select_related('organization').order_by('joined_at').first()
        organization = membership.organization if membership else None
    if organization is None:
        raise WorkflowError('Create a farm before accepting transfers')
    if not Membership.objects.filter(organization=organization, user=user).exists():
        raise WorkflowError('You are not a member of that farm')
    if organization.id == transfer.organization_id:
        raise WorkflowError('This animal already belongs to that farm')

    animal = transfer.animal
    model = type(animal)
    if model.objects.filter(organization=organization, ear_tag__iexact=animal.ear_tag).exists():
        raise WorkflowError(f'Ear tag "{animal.ear_tag}" already exists in your herd')

    with transaction.atomic():
        source = animal.organization
        if isinstance(animal, Sow):
            LocationHistory.objects.filter(sow=animal, moved_out_date__isnull=True).update(moved_out_date=timezone.now().date())
            animal.housing_unit = None
            animal.housing_move_in_date = None
            if animal.dam_id and not animal.dam_name:
                animal.dam_name = animal.dam.display_name
            if animal.sire_id and not animal.sire_name:
                animal.sire_name = animal.sire.display_name
            animal.dam = None
            animal.sire = None
            for related in (BreedingAttempt, Farrowing, MatrixTreatment, ScheduledTask, HealthRecord):
                related.objects.filter(sow=animal).update(organization=organization)
            Piglet.objects.filter(farrowing__sow=animal).update(organization=organization)
        else:
            HealthRecord.objects.filter(boar=animal).update(organization=organization)
        animal.organization = organization
        animal.save()

        if transfer.retain_records:
            archived = model.objects.get(pk=animal.pk)
            archived.pk = None
            archived.id = None
            archived._state.adding = True
            archived.organization = source
            archived.status = 'sold'
            archived.photo = None
            archived.notes = f"Transferred to {user.email} on {timezone.now().date()}"
            archived.save()

        transfer.status = 'accepted'
        transfer.responded_at = timezone.now()
        transfer.save(update_fields=['status', 'responded_at'])
    logger.info("Transfer %s accepted into organization %s", transfer.id, organization.id)
    return animal


def reject_transfer(transfer, user):
    _check_recipient(transfer, user)
    transfer.status = 'rejected'
    transfer.responded_at = timezone.now()
    transfer.save(update_fields=['status', 'responded_at'])
    return transfer


def cancel_transfer(transfer, user):
    if transfer.status != 'pending':
        raise WorkflowError('This transfer is no longer pending')
    if transfer.from_user_id != user.id:
        raise WorkflowError('Only the sender can cancel this transfer')
    transfer.status = 'cancelled'
    transfer.save(update_fields=['status'])
    return transfer


# --- SETTINGS ---
def reset_ear_notch_counter(farm_settings, today=None):
    farm_settings.ear_notch_current_litter = 1
    farm_settings.ear_notch_last_reset_date = _today(today)
    farm_settings.save(update_fields=['ear_notch_current_litter', 'ear_notch_last_reset_date'])
    return farm_settings
