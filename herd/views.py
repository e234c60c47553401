from django.shortcuts import render, get_object_or_404, redirect
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal
from django.db.models import Sum
from django.http import JsonResponse
from django.views.decorators.http import require_POST
from django.urls import reverse
from django.contrib import messages
from django.contrib.auth import login, logout
import json
import logging
import qrcode
from io import BytesIO
import base64

from . import breeding, exports, importers, queries, services
from .exceptions import WorkflowError
from .forms import (SignupForm, OrganizationForm, SowForm, BoarForm, SowDocumentForm, RecordBreedingForm,
    PregnancyCheckForm, RecordLitterForm, CreatePigletsForm, WeanLitterForm, MatrixTreatmentForm, ProtocolForm,
    ProtocolTaskForm, HousingUnitForm, AssignHousingForm, HealthRecordForm, BulkVaccinateForm, ExpenseForm,
    IncomeForm, BudgetForm, TransferRequestForm, FarmSettingsForm, NotificationPreferenceForm, MAX_UPLOAD_SIZE)
from .models import (Membership, FarmSettings, Sow, SowDocument, Boar, BreedingAttempt, Farrowing, Piglet,
    MatrixTreatment, Protocol, ProtocolTask, ScheduledTask, HousingUnit, HealthRecord, Budget, ExpenseRecord,
    IncomeRecord, TransferRequest, NotificationPreference, Notification)

logger = logging.getLogger(__name__)


# --- HELPER FUNCTIONS ---
def get_org_object(request, model, pk):
    """Fetch a row owned by the current farm or 404."""
    return get_object_or_404(model, pk=pk, organization=request.organization)


def is_ajax(request):
    return request.headers.get('X-Requested-With') == 'XMLHttpRequest' or request.content_type == 'application/json'


def form_errors(form):
    return '; '.join(
        f"{form.fields[field].label or field}: {', '.join(errors)}" if field in form.fields else ', '.join(errors)
        for field, errors in form.errors.items()
    )


# --- ACCOUNTS ---
def signup(request):
    if request.method == 'POST':
        form = SignupForm(request.POST)
        if form.is_valid():
            user = form.save(commit=False)
            user.email = form.cleaned_data['email']
            user.save()
            organization = services.create_organization(user, form.cleaned_data['farm_name'])
            login(request, user)
            request.session['organization_id'] = organization.id
            messages.success(request, f'Welcome! {organization.name} is ready.')
            return redirect('index')
    else:
        form = SignupForm()
    return render(request, 'herd/signup.html', {'form': form})


def logout_view(request):
    logout(request)
    return redirect('login')


def create_organization(request):
    if request.method == 'POST':
        form = OrganizationForm(request.POST)
        if form.is_valid():
            try:
                organization = services.create_organization(request.user, form.cleaned_data['name'])
            except WorkflowError as e:
                messages.error(request, str(e))
            else:
                request.session['organization_id'] = organization.id
                messages.success(request, f'{organization.name} created.')
                return redirect('index')
    else:
        form = OrganizationForm()
    return render(request, 'herd/organization_form.html', {'form': form})


@require_POST
def switch_organization(request, organization_id):
    membership = get_object_or_404(Membership, organization_id=organization_id, user=request.user)
    request.session['organization_id'] = membership.organization_id
    messages.success(request, f'Switched to {membership.organization.name}.')
    return redirect('index')


# --- DASHBOARD ---
def index(request):
    organization = request.organization
    today = timezone.now().date()
    alerts = queries.dashboard_alerts(organization, today)

    sows = Sow.objects.filter(organization=organization)
    month_start = today.replace(day=1)
    context = {
        'today': today,
        'alerts': alerts,
        'active_sow_count': sows.filter(status='active').count(),
        'boar_count': Boar.objects.filter(organization=organization, status='active').count(),
        'nursing_count': Piglet.objects.filter(organization=organization, status='nursing').count(),
        'bred_count': len(queries.bred_sows(organization, today)),
        'tasks_today': ScheduledTask.objects.filter(organization=organization, is_completed=False, due_date=today).select_related('sow'),
        'month_expenses': ExpenseRecord.objects.filter(organization=organization, is_deleted=False, expense_date__gte=month_start).aggregate(Sum('amount'))['amount__sum'] or 0,
        'month_income': IncomeRecord.objects.filter(organization=organization, is_deleted=False, income_date__gte=month_start).aggregate(Sum('total_amount'))['total_amount__sum'] or 0,
    }
    return render(request, 'herd/index.html', context)


def calendar_dashboard(request):
    organization = request.organization
    events = []

    for f in Farrowing.objects.filter(organization=organization, actual_farrowing_date__isnull=True).select_related('sow'):
        events.append({
            'title': f"Due: {f.sow.display_name}",
            'start': f.expected_farrowing_date.isoformat(),
            'color': '#9C27B0',
            'url': reverse('sow_detail', args=[f.sow_id]),
        })

    for t in MatrixTreatment.objects.filter(organization=organization, bred=False).select_related('sow'):
        events.append({
            'title': f"Heat: {t.sow.display_name}",
            'start': t.expected_heat_date.isoformat(),
            'color': '#E91E63',
            'url': reverse('matrix_batch_detail', args=[t.batch_name]),
        })

    for task in ScheduledTask.objects.filter(organization=organization, is_completed=False).select_related('sow'):
        target = f": {task.sow.display_name}" if task.sow else ''
        events.append({
            'title': f"{task.task_name}{target}",
            'start': task.due_date.isoformat(),
            'color': '#f44336' if task.is_overdue else '#2196F3',
            'url': reverse('task_list'),
        })

    for record in HealthRecord.objects.filter(organization=organization, next_due_date__isnull=False).select_related('sow', 'boar', 'piglet'):
        events.append({
            'title': f"{record.get_record_type_display()}: {record.animal_label}",
            'start': record.next_due_date.isoformat(),
            'color': '#FF5722',
            'url': reverse('health_list'),
        })

    return render(request, 'herd/calendar.html', {'events_json': json.dumps(events)})


# --- SOWS ---
def sow_list(request):
    status_filter = request.GET.get('filter', 'all')
    if status_filter not in queries.SOW_FILTERS:
        status_filter = 'all'
    search = request.GET.get('q', '').strip()
    context = {
        'sows': queries.sow_list(request.organization, status_filter, search),
        'filter': status_filter,
        'filters': queries.SOW_FILTERS,
        'counts': queries.sow_filter_counts(request.organization),
        'q': search,
    }
    return render(request, 'herd/sow_list.html', context)


def add_sow(request):
    if request.method == 'POST':
        form = SowForm(request.POST, request.FILES, organization=request.organization)
        if form.is_valid():
            sow = form.save(commit=False)
            sow.organization = request.organization
            sow.save()
            messages.success(request, f'{sow.display_name} added to herd!')
            return redirect('sow_detail', sow_id=sow.id)
    else:
        form = SowForm(organization=request.organization)
    return render(request, 'herd/sow_form.html', {'form': form})


def sow_detail(request, sow_id):
    sow = get_org_object(request, Sow, sow_id)

    if request.method == 'POST' and 'photo' in request.FILES:
        uploaded = request.FILES['photo']
        if uploaded.size > MAX_UPLOAD_SIZE:
            messages.error(request, "Image too large. Maximum size is 10MB.")
            return redirect('sow_detail', sow_id=sow.id)
        sow.photo = uploaded
        sow.save()
        messages.success(request, 'Profile photo updated.')
        return redirect('sow_detail', sow_id=sow.id)

    today = timezone.now().date()
    attempts = sow.breeding_attempts.select_related('boar').all()
    farrowings = sow.farrowings.prefetch_related('piglets').all()
    context = {
        'sow': sow,
        'today': today,
        'status': breeding.breeding_status(attempts.first(), today),
        'attempts': attempts,
        'farrowings': farrowings,
        'health_records': sow.health_records.all()[:20],
        'matrix_treatments': sow.matrix_treatments.all()[:10],
        'tasks': sow.scheduled_tasks.filter(is_completed=False),
        'documents': sow.documents.all(),
        'location_history': sow.location_history.select_related('housing_unit').all(),
        'offspring': Sow.objects.filter(dam=sow),
        'pending_transfer': sow.transfer_requests.filter(status='pending').first(),
        'document_form': SowDocumentForm(),
        'breeding_form': RecordBreedingForm(organization=request.organization, initial={'sow': sow, 'breeding_date': today}),
        'check_form': PregnancyCheckForm(initial={'check_date': today}),
        'transfer_form': TransferRequestForm(),
        'total_live': sum(f.live_piglets or 0 for f in farrowings),
    }
    return render(request, 'herd/sow_detail.html', context)


def edit_sow(request, sow_id):
    sow = get_org_object(request, Sow, sow_id)
    if request.method == 'POST':
        form = SowForm(request.POST, request.FILES, instance=sow, organization=request.organization)
        if form.is_valid():
            form.save()
            messages.success(request, f'{sow.display_name} updated.')
            return redirect('sow_detail', sow_id=sow.id)
    else:
        form = SowForm(instance=sow, organization=request.organization)
    return render(request, 'herd/sow_form.html', {'form': form, 'sow': sow})


@require_POST
def delete_sow(request, sow_id):
    sow = get_org_object(request, Sow, sow_id)
    name = sow.display_name
    sow.delete()
    messages.success(request, f'{name} deleted.')
    return redirect('sow_list')


@require_POST
def update_sow_status(request, sow_id):
    sow = get_org_object(request, Sow, sow_id)
    status = request.POST.get('status')
    if status not in dict(Sow.STATUS_CHOICES):
        messages.error(request, 'Status must be: active, culled, or sold')
        return redirect('sow_detail', sow_id=sow.id)
    sow.status = status
    sow.save(update_fields=['status'])
    if status != 'active' and sow.housing_unit_id:
        services.remove_from_housing(sow)
    messages.success(request, f'Status updated to {sow.get_status_display()}.')
    return redirect('sow_detail', sow_id=sow.id)


@require_POST
def add_sow_document(request, sow_id):
    sow = get_org_object(request, Sow, sow_id)
    form = SowDocumentForm(request.POST, request.FILES)
    if form.is_valid():
        doc = form.save(commit=False)
        doc.sow = sow
        doc.save()
        messages.success(request, f'Document uploaded for {sow.display_name}.')
    else:
        messages.error(request, form_errors(form))
    return redirect('sow_detail', sow_id=sow.id)


@require_POST
def delete_sow_document(request, doc_id):
    doc = get_object_or_404(SowDocument, pk=doc_id, sow__organization=request.organization)
    sow_id = doc.sow_id
    doc.file.delete()
    doc.delete()
    messages.success(request, 'Document deleted.')
    return redirect('sow_detail', sow_id=sow_id)


def stall_card(request, sow_id):
    sow = get_org_object(request, Sow, sow_id)
    sow_url = request.build_absolute_uri(reverse('sow_detail', args=[sow.id]))

    qr = qrcode.QRCode(version=1, error_correction=qrcode.constants.ERROR_CORRECT_L, box_size=10, border=4)
    qr.add_data(sow_url)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    img_str = base64.b64encode(buffer.getvalue()).decode()

    today = timezone.now().date()
    return render(request, 'herd/stall_card.html', {
        'sow': sow,
        'qr_code': img_str,
        'status': breeding.breeding_status(sow.current_breeding, today),
        'farrowing': sow.farrowings.filter(actual_farrowing_date__isnull=True).first(),
    })


def export_sows_csv(request):
    return exports.export_sows_csv(request.organization)


def import_sows(request):
    context = {}
    if request.method == 'POST':
        uploaded = request.FILES.get('file')
        if not uploaded:
            messages.error(request, 'Choose a .csv or .xlsx file to import.')
            return redirect('import_sows')
        if uploaded.size > MAX_UPLOAD_SIZE:
            messages.error(request, 'File too large. Maximum size is 10MB.')
            return redirect('import_sows')
        try:
            rows = importers.read_spreadsheet(uploaded)
        except WorkflowError as e:
            messages.error(request, str(e))
            return redirect('import_sows')

        validated = importers.validate_rows(request.organization, rows)
        invalid = [r for r in validated if r['errors']]
        if request.POST.get('confirm') or not invalid:
            summary = importers.import_sows(request.organization, validated, timezone.now().date())
            text = f"Imported {summary['successful']} sow(s)"
            if summary['failed']:
                text += f", {summary['failed']} failed"
            if summary['skipped']:
                text += f", {summary['skipped']} skipped"
            if summary['successful']:
                messages.success(request, text + '.')
            else:
                messages.error(request, text + '.')
            context['summary'] = summary
        context.update({'validated': validated, 'invalid': invalid, 'valid_count': len(validated) - len(invalid)})
    return render(request, 'herd/sow_import.html', context)


def import_template(request, file_format):
    return exports.import_template(file_format)


# --- BOARS ---
def boar_list(request):
    boars = Boar.objects.filter(organization=request.organization)
    boar_type = request.GET.get('type')
    if boar_type in dict(Boar.BOAR_TYPES):
        boars = boars.filter(boar_type=boar_type)
    return render(request, 'herd/boar_list.html', {'boars': boars, 'type': boar_type})


def add_boar(request):
    initial = {'boar_type': request.GET.get('type', 'live')}
    if request.method == 'POST':
        form = BoarForm(request.POST, request.FILES, organization=request.organization)
        if form.is_valid():
            boar = form.save(commit=False)
            boar.organization = request.organization
            boar.save()
            messages.success(request, f'{boar.display_name} added.')
            return redirect('boar_detail', boar_id=boar.id)
    else:
        form = BoarForm(organization=request.organization, initial=initial)
    return render(request, 'herd/boar_form.html', {'form': form})


def boar_detail(request, boar_id):
    boar = get_org_object(request, Boar, boar_id)
    attempts = boar.breeding_attempts.select_related('sow').all()
    settled = attempts.filter(result='pregnant').count()
    checked = attempts.exclude(result='pending').count()
    context = {
        'boar': boar,
        'attempts': attempts,
        'farrowings': boar.farrowings.filter(actual_farrowing_date__isnull=False).select_related('sow'),
        'conception_rate': round(settled * 100 / checked) if checked else None,
        'transfer_form': TransferRequestForm(),
        'pending_transfer': boar.transfer_requests.filter(status='pending').first(),
    }
    return render(request, 'herd/boar_detail.html', context)


def edit_boar(request, boar_id):
    boar = get_org_object(request, Boar, boar_id)
    if request.method == 'POST':
        form = BoarForm(request.POST, request.FILES, instance=boar, organization=request.organization)
        if form.is_valid():
            form.save()
            messages.success(request, f'{boar.display_name} updated.')
            return redirect('boar_detail', boar_id=boar.id)
    else:
        form = BoarForm(instance=boar, organization=request.organization)
    return render(request, 'herd/boar_form.html', {'form': form, 'boar': boar})


@require_POST
def delete_boar(request, boar_id):
    boar = get_org_object(request, Boar, boar_id)
    name = boar.display_name
    boar.delete()
    messages.success(request, f'{name} deleted.')
    return redirect('boar_list')


def export_boars_csv(request):
    return exports.export_boars_csv(request.organization)


# --- BREEDING ---
def breeding_dashboard(request):
    today = timezone.now().date()
    form = RecordBreedingForm(organization=request.organization, initial={'breeding_date': today, 'sow': request.GET.get('sow')})
    attempts = BreedingAttempt.objects.filter(organization=request.organization).select_related('sow', 'boar')[:50]
    return render(request, 'herd/breeding.html', {'form': form, 'attempts': attempts, 'today': today})


def bred_sows(request):
    today = timezone.now().date()
    rows = queries.bred_sows(request.organization, today)
    window = request.GET.get('window')
    if window in ('too_early', 'optimal', 'overdue'):
        rows = [r for r in rows if r.check_window == window and r.result == 'pending']
    context = {
        'attempts': rows,
        'window': window,
        'today': today,
        'check_form': PregnancyCheckForm(initial={'check_date': today}),
        'check_days': breeding.PREGNANCY_CHECK_DAYS,
        'check_window_end': breeding.PREGNANCY_CHECK_WINDOW_END,
    }
    return render(request, 'herd/bred_sows.html', context)


@require_POST
def record_breeding(request):
    form = RecordBreedingForm(request.POST, organization=request.organization)
    next_url = request.POST.get('next') or reverse('breeding_dashboard')
    if not form.is_valid():
        messages.error(request, form_errors(form))
        return redirect(next_url)
    data = form.cleaned_data
    try:
        attempt = services.record_breeding(
            sow=data['sow'],
            breeding_method=data['breeding_method'],
            breeding_date=data['breeding_date'],
            breeding_time=data['breeding_time'],
            boar=data['boar'],
            boar_description=data['boar_description'],
            notes=data['notes'],
            matrix_treatment=data['matrix_treatment'],
        )
    except WorkflowError as e:
        logger.info("Breeding not recorded for sow %s: %s", data["sow"].id, e)
        messages.error(request, str(e))
        return redirect(next_url)
    messages.success(
        request,
        f'Breeding recorded for {attempt.sow.display_name}. Expected farrowing {attempt.expected_farrowing_date:%b %d, %Y}.'
    )
    return redirect(next_url)


@require_POST
def pregnancy_check(request, attempt_id):
    attempt = get_org_object(request, BreedingAttempt, attempt_id)
    form = PregnancyCheckForm(request.POST)
    next_url = request.POST.get('next') or reverse('bred_sows')
    if not form.is_valid():
        messages.error(request, form_errors(form))
        return redirect(next_url)
    try:
        services.check_pregnancy(attempt, form.cleaned_data['pregnant'], form.cleaned_data['check_date'], form.cleaned_data['notes'])
    except WorkflowError as e:
        messages.error(request, str(e))
        return redirect(next_url)
    if attempt.pregnancy_confirmed:
        messages.success(request, f'{attempt.sow.display_name} confirmed pregnant.')
    else:
        messages.success(request, f'{attempt.sow.display_name} marked open and ready to re-breed.')
    return redirect(next_url)


def export_breeding_csv(request):
    return exports.export_breeding_csv(request.organization)


# --- FARROWINGS ---
def farrowing_list(request):
    organization = request.organization
    today = timezone.now().date()
    upcoming = Farrowing.objects.filter(
        organization=organization, actual_farrowing_date__isnull=True,
        breeding_attempt__result__in=['pending', 'pregnant'],
    ).select_related('sow', 'boar').order_by('expected_farrowing_date')
    active = Farrowing.objects.filter(
        organization=organization, actual_farrowing_date__isnull=False, moved_out_of_farrowing_date__isnull=True,
    ).select_related('sow').prefetch_related('piglets').order_by('actual_farrowing_date')
    for f in active:
        f.age_days = (today - f.actual_farrowing_date).days
        f.nursing_count = sum(1 for p in f.piglets.all() if p.status == 'nursing')
        f.ready_to_wean = f.age_days >= breeding.WEANING_AGE_DAYS
    recent = Farrowing.objects.filter(
        organization=organization, moved_out_of_farrowing_date__isnull=False,
    ).select_related('sow').order_by('-moved_out_of_farrowing_date')[:20]
    context = {
        'today': today,
        'upcoming': upcoming,
        'active': active,
        'recent': recent,
        'litter_form': RecordLitterForm(organization=organization, initial={'actual_farrowing_date': today}),
        'piglets_form': CreatePigletsForm(),
        'wean_form': WeanLitterForm(initial={'weaning_date': today}),
        'farm_settings': FarmSettings.for_organization(organization),
    }
    return render(request, 'herd/farrowings.html', context)


@require_POST
def record_litter(request, farrowing_id):
    farrowing = get_org_object(request, Farrowing, farrowing_id)
    form = RecordLitterForm(request.POST, organization=request.organization)
    if not form.is_valid():
        messages.error(request, form_errors(form))
        return redirect('farrowing_list')
    data = form.cleaned_data
    try:
        services.record_litter(
            farrowing, data['actual_farrowing_date'], data['live_piglets'],
            stillborn=data['stillborn'] or 0, mummified=data['mummified'] or 0,
            housing_unit=data['housing_unit'], notes=data['notes'],
        )
    except WorkflowError as e:
        messages.error(request, str(e))
        return redirect('farrowing_list')
    messages.success(request, f'Litter recorded for {farrowing.sow.display_name}: {farrowing.live_piglets} born alive.')
    return redirect('farrowing_list')


@require_POST
def create_piglets(request, farrowing_id):
    farrowing = get_org_object(request, Farrowing, farrowing_id)
    form = CreatePigletsForm(request.POST)
    if not form.is_valid():
        messages.error(request, form_errors(form))
        return redirect('farrowing_list')
    count = form.cleaned_data['count']
    try:
        piglets = services.create_piglets(farrowing, [{} for _ in range(count)] if count else None)
    except WorkflowError as e:
        messages.error(request, str(e))
        return redirect('farrowing_list')
    messages.success(request, f'{len(piglets)} piglet(s) created with litter notch {piglets[0].right_ear_notch}.')
    return redirect('farrowing_list')


@require_POST
def wean_litter(request, farrowing_id):
    farrowing = get_org_object(request, Farrowing, farrowing_id)
    form = WeanLitterForm(request.POST)
    if not form.is_valid():
        messages.error(request, form_errors(form))
        return redirect('farrowing_list')
    try:
        weaned = services.wean_litter(farrowing, form.cleaned_data['weaning_date'], form.cleaned_data['weights'])
    except WorkflowError as e:
        messages.error(request, str(e))
        return redirect('farrowing_list')
    messages.success(request, f'{len(weaned)} piglet(s) weaned from {farrowing.sow.display_name}.')
    return redirect('farrowing_list')


# --- PIGLETS ---
def piglet_list(request, status='nursing'):
    piglets = Piglet.objects.filter(organization=request.organization, status=status).select_related('farrowing__sow')
    return render(request, 'herd/piglet_list.html', {
        'piglets': piglets,
        'status': status,
        'status_choices': Piglet.STATUS_CHOICES,
    })


@require_POST
def update_piglet_status(request, piglet_id):
    piglet = get_org_object(request, Piglet, piglet_id)
    status = request.POST.get('status')
    if status not in dict(Piglet.STATUS_CHOICES):
        messages.error(request, 'Invalid piglet status.')
    else:
        piglet.status = status
        if status == 'weaned' and not piglet.weaned_date:
            piglet.weaned_date = timezone.now().date()
        piglet.save()
        messages.success(request, f'Piglet {piglet.identifier} marked {piglet.get_status_display().lower()}.')
    return redirect(request.POST.get('next') or reverse('piglet_list'))


def export_piglets_csv(request):
    return exports.export_piglets_csv(request.organization)


# --- MATRIX ---
def matrix_batches(request):
    today = timezone.now().date()
    batches = queries.matrix_batches(request.organization, today)
    context = {
        'batches': batches,
        'total_treated': sum(b['sow_count'] for b in batches),
        'total_bred': sum(b['bred_count'] for b in batches),
        'upcoming_heats': sum(1 for b in batches if 0 <= b['days_until_heat'] <= 7),
    }
    return render(request, 'herd/matrix_batches.html', context)


def record_matrix(request):
    today = timezone.now().date()
    if request.method == 'POST':
        form = MatrixTreatmentForm(request.POST, organization=request.organization)
        if form.is_valid():
            data = form.cleaned_data
            try:
                treatments = services.record_matrix_treatment(
                    data['sows'], data['administration_date'], batch_name=data['batch_name'],
                    days_until_heat=data['days_until_heat'], dosage=data['dosage'],
                    lot_number=data['lot_number'], notes=data['notes'],
                )
            except WorkflowError as e:
                messages.error(request, str(e))
            else:
                batch_name = treatments[0].batch_name
                messages.success(request, f'Matrix recorded for {len(treatments)} sow(s) in batch {batch_name}.')
                return redirect('matrix_batch_detail', batch_name=batch_name)
    else:
        form = MatrixTreatmentForm(organization=request.organization, initial={'administration_date': today})
    return render(request, 'herd/matrix_form.html', {'form': form})


def matrix_batch_detail(request, batch_name):
    today = timezone.now().date()
    batch = next((b for b in queries.matrix_batches(request.organization, today) if b['batch_name'] == batch_name), None)
    if batch is None:
        messages.error(request, f'Batch {batch_name} not found.')
        return redirect('matrix_batches')
    for treatment in batch['treatments']:
        treatment.days_label = breeding.days_until_label((treatment.expected_heat_date - today).days)
    return render(request, 'herd/matrix_batch_detail.html', {'batch': batch, 'today': today})


@require_POST
def mark_matrix_bred(request, treatment_id):
    treatment = get_org_object(request, MatrixTreatment, treatment_id)
    try:
        services.mark_matrix_bred(treatment)
    except WorkflowError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, f'{treatment.sow.display_name} marked as bred.')
    return redirect('matrix_batch_detail', batch_name=treatment.batch_name)


# --- PROTOCOLS ---
def protocol_list(request):
    if request.method == 'POST':
        form = ProtocolForm(request.POST)
        if form.is_valid():
            protocol = form.save(commit=False)
            protocol.organization = request.organization
            protocol.save()
            messages.success(request, f'Protocol "{protocol.name}" created. Add its tasks below.')
            return redirect('protocol_detail', protocol_id=protocol.id)
        messages.error(request, form_errors(form))
    protocols = Protocol.objects.filter(organization=request.organization).prefetch_related('tasks')
    return render(request, 'herd/protocol_list.html', {'protocols': protocols, 'form': ProtocolForm()})


def protocol_detail(request, protocol_id):
    protocol = get_org_object(request, Protocol, protocol_id)
    if request.method == 'POST':
        form = ProtocolTaskForm(request.POST)
        if form.is_valid():
            task = form.save(commit=False)
            task.protocol = protocol
            task.save()
            messages.success(request, 'Task added.')
            return redirect('protocol_detail', protocol_id=protocol.id)
        messages.error(request, form_errors(form))
    return render(request, 'herd/protocol_detail.html', {
        'protocol': protocol,
        'tasks': protocol.tasks.all(),
        'task_form': ProtocolTaskForm(),
        'outstanding': protocol.outstanding_task_count,
    })


@require_POST
def delete_protocol_task(request, task_id):
    task = get_object_or_404(ProtocolTask, pk=task_id, protocol__organization=request.organization)
    protocol_id = task.protocol_id
    task.delete()
    messages.success(request, 'Task removed.')
    return redirect('protocol_detail', protocol_id=protocol_id)


@require_POST
def toggle_protocol(request, protocol_id):
    protocol = get_org_object(request, Protocol, protocol_id)
    protocol.is_active = not protocol.is_active
    protocol.save(update_fields=['is_active'])
    messages.success(request, f'Protocol {"activated" if protocol.is_active else "deactivated"}.')
    return redirect('protocol_list')


@require_POST
def delete_protocol(request, protocol_id):
    protocol = get_org_object(request, Protocol, protocol_id)
    try:
        services.delete_protocol(protocol)
    except WorkflowError as e:
        messages.error(request, str(e))
        return redirect('protocol_detail', protocol_id=protocol.id)
    messages.success(request, 'Protocol deleted.')
    return redirect('protocol_list')


# --- TASKS ---
TASK_FILTERS = ['pending', 'overdue', 'completed', 'all']


def task_list(request):
    today = timezone.now().date()
    task_filter = request.GET.get('filter', 'pending')
    tasks = ScheduledTask.objects.filter(organization=request.organization).select_related('sow', 'protocol')
    if task_filter == 'pending':
        tasks = tasks.filter(is_completed=False)
    elif task_filter == 'overdue':
        tasks = tasks.filter(is_completed=False, due_date__lt=today)
    elif task_filter == 'completed':
        tasks = tasks.filter(is_completed=True).order_by('-completed_at')
    else:
        task_filter = 'all'
    return render(request, 'herd/task_list.html', {
        'tasks': tasks,
        'filter': task_filter,
        'filters': TASK_FILTERS,
        'today': today,
    })


@require_POST
def complete_task(request, task_id):
    task = get_org_object(request, ScheduledTask, task_id)
    services.complete_task(task, request.POST.get('notes', ''))
    if is_ajax(request):
        return JsonResponse({'status': 'success', 'completed': True})
    messages.success(request, f'"{task.task_name}" completed.')
    return redirect(request.POST.get('next') or reverse('task_list'))


@require_POST
def reopen_task(request, task_id):
    task = get_org_object(request, ScheduledTask, task_id)
    services.reopen_task(task)
    if is_ajax(request):
        return JsonResponse({'status': 'success', 'completed': False})
    messages.success(request, f'"{task.task_name}" reopened.')
    return redirect(request.POST.get('next') or reverse('task_list'))


# --- HOUSING ---
def housing_list(request):
    if request.method == 'POST':
        form = HousingUnitForm(request.POST)
        if form.is_valid():
            unit = form.save(commit=False)
            unit.organization = request.organization
            unit.save()
            messages.success(request, f'{unit.name} added.')
            return redirect('housing_list')
        messages.error(request, form_errors(form))
    units = queries.housing_occupancy(request.organization)
    unhoused = Sow.objects.filter(organization=request.organization, status='active', housing_unit__isnull=True)
    return render(request, 'herd/housing.html', {
        'units': units,
        'unhoused': unhoused,
        'form': HousingUnitForm(),
        'assign_form': AssignHousingForm(organization=request.organization),
        'prop12_min': queries.PROP12_MIN_SQ_FT,
    })


@require_POST
def delete_housing_unit(request, unit_id):
    unit = get_org_object(request, HousingUnit, unit_id)
    try:
        services.delete_housing_unit(unit)
    except WorkflowError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, 'Housing unit deleted.')
    return redirect('housing_list')


@require_POST
def assign_housing(request):
    form = AssignHousingForm(request.POST, organization=request.organization)
    next_url = request.POST.get('next') or reverse('housing_list')
    if not form.is_valid():
        messages.error(request, form_errors(form))
        return redirect(next_url)
    sow, unit = form.cleaned_data['sow'], form.cleaned_data['housing_unit']
    try:
        services.assign_housing(sow, unit, form.cleaned_data['move_in_date'])
    except WorkflowError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, f'{sow.display_name} moved to {unit.name}.')
        if unit.occupant_count > unit.capacity:
            messages.warning(request, f'{unit.name} is now over capacity ({unit.occupant_count}/{unit.capacity}).')
    return redirect(next_url)


@require_POST
def remove_from_housing(request, sow_id):
    sow = get_org_object(request, Sow, sow_id)
    services.remove_from_housing(sow)
    messages.success(request, f'{sow.display_name} removed from housing.')
    return redirect(request.POST.get('next') or reverse('housing_list'))


# --- HEALTH ---
def health_list(request):
    if request.method == 'POST':
        form = HealthRecordForm(request.POST, organization=request.organization)
        if form.is_valid():
            record = form.save(commit=False)
            record.organization = request.organization
            record.save()
            messages.success(request, 'Health record added.')
            return redirect('health_list')
        messages.error(request, form_errors(form))
    records = HealthRecord.objects.filter(organization=request.organization).select_related('sow', 'boar', 'piglet')
    record_type = request.GET.get('type')
    if record_type in dict(HealthRecord.RECORD_TYPES):
        records = records.filter(record_type=record_type)
    today = timezone.now().date()
    return render(request, 'herd/health.html', {
        'records': records[:100],
        'type': record_type,
        'record_types': HealthRecord.RECORD_TYPES,
        'due_soon': HealthRecord.objects.filter(
            organization=request.organization, next_due_date__gte=today, next_due_date__lte=today + timedelta(days=14)
        ).select_related('sow', 'boar'),
        'form': HealthRecordForm(organization=request.organization, initial={'record_date': today}),
    })


def bulk_vaccinate(request):
    today = timezone.now().date()
    if request.method == 'POST':
        form = BulkVaccinateForm(request.POST, organization=request.organization)
        if form.is_valid():
            data = form.cleaned_data
            try:
                records = services.bulk_vaccinate(
                    data['sows'], data['vaccine_name'], data['record_date'], dosage=data['dosage'],
                    administered_by=data['administered_by'], next_due_date=data['next_due_date'], notes=data['notes'],
                )
            except WorkflowError as e:
                messages.error(request, str(e))
            else:
                messages.success(request, f'{data["vaccine_name"]} recorded for {len(records)} sow(s).')
                return redirect('health_list')
    else:
        form = BulkVaccinateForm(organization=request.organization, initial={'record_date': today})
    return render(request, 'herd/bulk_vaccinate.html', {'form': form})


@require_POST
def delete_health_record(request, record_id):
    record = get_org_object(request, HealthRecord, record_id)
    record.delete()
    messages.success(request, 'Health record deleted.')
    return redirect('health_list')


# --- FINANCE ---
def finance_dashboard(request):
    organization = request.organization
    if request.method == 'POST':
        action = request.POST.get('action')
        if action == 'expense':
            form = ExpenseForm(request.POST, organization=organization)
            label = 'Expense'
        else:
            form = IncomeForm(request.POST)
            label = 'Income'
        if form.is_valid():
            record = form.save(commit=False)
            record.organization = organization
            record.save()
            messages.success(request, f'{label} recorded.')
        else:
            messages.error(request, form_errors(form))
        return redirect('finance_dashboard')

    expenses = ExpenseRecord.objects.filter(organization=organization, is_deleted=False).select_related('sow')
    income = IncomeRecord.objects.filter(organization=organization, is_deleted=False)
    total_expense = expenses.aggregate(Sum('amount'))['amount__sum'] or Decimal('0')
    total_income = income.aggregate(Sum('total_amount'))['total_amount__sum'] or Decimal('0')

    today = timezone.now().date()
    month_start = today.replace(day=1)
    by_category = expenses.values('expense_category').annotate(total=Sum('amount')).order_by('-total')
    category_labels = dict(ExpenseRecord.CATEGORIES)

    context = {
        'expenses': expenses[:50],
        'income': income[:50],
        'total_expense': total_expense,
        'total_income': total_income,
        'net_profit': total_income - total_expense,
        'month_expense': expenses.filter(expense_date__gte=month_start).aggregate(Sum('amount'))['amount__sum'] or 0,
        'month_income': income.filter(income_date__gte=month_start).aggregate(Sum('total_amount'))['total_amount__sum'] or 0,
        'by_category': [{'label': category_labels.get(r['expense_category'], r['expense_category']), 'total': r['total']} for r in by_category],
        'expense_form': ExpenseForm(organization=organization, initial={'expense_date': today}),
        'income_form': IncomeForm(initial={'income_date': today}),
        'active_budget': Budget.objects.filter(organization=organization, status='active', start_date__lte=today, end_date__gte=today).first(),
    }
    return render(request, 'herd/finance.html', context)


@require_POST
def delete_expense(request, expense_id):
    expense = get_org_object(request, ExpenseRecord, expense_id)
    expense.is_deleted = True
    expense.save(update_fields=['is_deleted'])
    messages.success(request, 'Expense deleted.')
    return redirect('finance_dashboard')


@require_POST
def delete_income(request, income_id):
    income = get_org_object(request, IncomeRecord, income_id)
    income.is_deleted = True
    income.save(update_fields=['is_deleted'])
    messages.success(request, 'Income record deleted.')
    return redirect('finance_dashboard')


def export_expenses_csv(request):
    return exports.export_expenses_csv(request.organization)


def budget_list(request):
    if request.method == 'POST':
        form = BudgetForm(request.POST)
        if form.is_valid():
            budget = form.save(commit=False)
            budget.organization = request.organization
            budget.save()
            messages.success(request, f'Budget "{budget.budget_name}" created.')
            return redirect('budget_detail', budget_id=budget.id)
        messages.error(request, form_errors(form))
    else:
        form = BudgetForm()
    budgets = [queries.budget_progress(b) for b in Budget.objects.filter(organization=request.organization)]
    return render(request, 'herd/budget_list.html', {'budgets': budgets, 'form': form})


def budget_detail(request, budget_id):
    budget = get_org_object(request, Budget, budget_id)
    return render(request, 'herd/budget_detail.html', {'progress': queries.budget_progress(budget)})


def edit_budget(request, budget_id):
    budget = get_org_object(request, Budget, budget_id)
    if request.method == 'POST':
        form = BudgetForm(request.POST, instance=budget)
        if form.is_valid():
            form.save()
            messages.success(request, 'Budget updated.')
            return redirect('budget_detail', budget_id=budget.id)
    else:
        form = BudgetForm(instance=budget)
    return render(request, 'herd/budget_form.html', {'form': form, 'budget': budget})


@require_POST
def delete_budget(request, budget_id):
    budget = get_org_object(request, Budget, budget_id)
    budget.delete()
    messages.success(request, 'Budget deleted.')
    return redirect('budget_list')


# --- TRANSFERS ---
def transfer_list(request):
    email = (request.user.email or '').lower()
    incoming = TransferRequest.objects.filter(to_user_email__iexact=email).select_related('sow', 'boar', 'organization', 'from_user') if email else TransferRequest.objects.none()
    outgoing = TransferRequest.objects.filter(organization=request.organization).select_related('sow', 'boar')
    return render(request, 'herd/transfers.html', {
        'incoming': incoming,
        'outgoing': outgoing,
        'memberships': Membership.objects.filter(user=request.user).select_related('organization'),
    })


def request_transfer(request, animal_type, animal_id):
    model = Sow if animal_type == 'sow' else Boar
    animal = get_org_object(request, model, animal_id)
    detail_url = reverse('sow_detail' if animal_type == 'sow' else 'boar_detail', args=[animal.id])
    if request.method == 'POST':
        form = TransferRequestForm(request.POST)
        if form.is_valid():
            try:
                services.request_transfer(
                    animal, request.user, form.cleaned_data['to_user_email'],
                    message=form.cleaned_data['message'], retain_records=form.cleaned_data['retain_records'],
                )
            except WorkflowError as e:
                messages.error(request, str(e))
            else:
                messages.success(request, f'Transfer request sent to {form.cleaned_data["to_user_email"]}.')
                return redirect('transfer_list')
        else:
            messages.error(request, form_errors(form))
        return redirect(detail_url)
    return render(request, 'herd/transfer_form.html', {'form': TransferRequestForm(), 'animal': animal, 'animal_type': animal_type})


@require_POST
def accept_transfer(request, transfer_id):
    transfer = get_object_or_404(TransferRequest, pk=transfer_id)
    organization = request.organization
    chosen = request.POST.get('organization_id')
    if chosen:
        membership = get_object_or_404(Membership, organization_id=chosen, user=request.user)
        organization = membership.organization
    try:
        animal = services.accept_transfer(transfer, request.user, organization)
    except WorkflowError as e:
        logger.info("Transfer %s not accepted by %s: %s", transfer.id, request.user, e)
        messages.error(request, str(e))
        return redirect('transfer_list')
    messages.success(request, f'{animal.display_name} transferred to {organization.name}.')
    return redirect('transfer_list')


@require_POST
def reject_transfer(request, transfer_id):
    transfer = get_object_or_404(TransferRequest, pk=transfer_id)
    try:
        services.reject_transfer(transfer, request.user)
    except WorkflowError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, 'Transfer rejected.')
    return redirect('transfer_list')


@require_POST
def cancel_transfer(request, transfer_id):
    transfer = get_org_object(request, TransferRequest, transfer_id)
    try:
        services.cancel_transfer(transfer, request.user)
    except WorkflowError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, 'Transfer cancelled.')
    return redirect('transfer_list')


# --- SETTINGS ---
def farm_settings(request):
    settings_obj = FarmSettings.for_organization(request.organization)
    if request.method == 'POST':
        form = FarmSettingsForm(request.POST, instance=settings_obj)
        if form.is_valid():
            form.save()
            messages.success(request, 'Settings updated.')
            return redirect('farm_settings')
    else:
        form = FarmSettingsForm(instance=settings_obj)
    return render(request, 'herd/settings.html', {
        'form': form,
        'members': Membership.objects.filter(organization=request.organization).select_related('user'),
    })


@require_POST
def reset_ear_notch(request):
    services.reset_ear_notch_counter(FarmSettings.for_organization(request.organization))
    messages.success(request, 'Ear notch litter counter reset to 1.')
    return redirect('farm_settings')


def notification_preferences(request):
    preference = NotificationPreference.for_user(request.user)
    if request.method == 'POST':
        form = NotificationPreferenceForm(request.POST, instance=preference)
        if form.is_valid():
            form.save()
            messages.success(request, 'Notification preferences saved.')
            return redirect('notification_preferences')
    else:
        form = NotificationPreferenceForm(instance=preference)
    return render(request, 'herd/notification_preferences.html', {'form': form})


# --- NOTIFICATIONS ---
def notification_list(request):
    notifications = Notification.objects.filter(user=request.user)
    if request.GET.get('unread'):
        notifications = notifications.filter(is_read=False)
    return render(request, 'herd/notifications.html', {'notifications': notifications[:100]})


@require_POST
def mark_notification_read(request, notification_id):
    notification = get_object_or_404(Notification, pk=notification_id, user=request.user)
    notification.is_read = True
    notification.save(update_fields=['is_read'])
    if is_ajax(request):
        return JsonResponse({'status': 'success'})
    if notification.link_url:
        return redirect(notification.link_url)
    return redirect('notification_list')


@require_POST
def mark_all_notifications_read(request):
    updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
    if is_ajax(request):
        return JsonResponse({'status': 'success', 'updated': updated})
    messages.success(request, 'All notifications marked as read.')
    return redirect('notification_list')


def api_notifications(request):
    unread = Notification.objects.filter(user=request.user, is_read=False)[:20]
    return JsonResponse({
        'unread_count': Notification.objects.filter(user=request.user, is_read=False).count(),
        'notifications': [
            {'id': n.id, 'title': n.title, 'message': n.message, 'url': n.link_url,
             'type': n.notification_type, 'created_at': n.created_at.isoformat()}
            for n in unread
        ],
    })


@require_POST
def api_update_task(request, task_id):
    try:
        data = json.loads(request.body)
        if not isinstance(data, dict):
            return JsonResponse({'status': 'error', 'message': 'Expected a JSON object'}, status=400)
        task = get_org_object(request, ScheduledTask, task_id)
        if data.get('completed'):
            services.complete_task(task, data.get('notes', ''))
        else:
            services.reopen_task(task)
        return JsonResponse({'status': 'success', 'completed': task.is_completed})
    except (ValueError, TypeError) as e:
        return JsonResponse({'status': 'error', 'message': str(e)}, status=400)
