from django.conf import settings
from django.db import models
from django.utils import timezone
from datetime import date, timedelta
from decimal import Decimal

from . import breeding


# --- ORGANIZATION ---
class Organization(models.Model):
    name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Membership(models.Model):
    ROLE_CHOICES = [('owner', 'Owner'), ('admin', 'Admin'), ('member', 'Member')]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='member')
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('organization', 'user')

    def __str__(self):
        return f"{self.user} @ {self.organization} ({self.role})"


# --- SETTINGS MODEL ---
class FarmSettings(models.Model):
    WEIGHT_UNITS = [('kg', 'Kilograms'), ('lbs', 'Pounds')]
    MEASUREMENT_UNITS = [('feet', 'Feet'), ('meters', 'Meters')]

    organization = models.OneToOneField(Organization, on_delete=models.CASCADE, related_name='farm_settings')
    farm_name = models.CharField(max_length=200, default="My Farm")
    timezone = models.CharField(max_length=64, default='America/Los_Angeles')
    weight_unit = models.CharField(max_length=4, choices=WEIGHT_UNITS, default='kg')
    measurement_unit = models.CharField(max_length=6, choices=MEASUREMENT_UNITS, default='feet')
    prop12_compliance_enabled = models.BooleanField(default=False, help_text="Track California Prop 12 space requirements")
    email_notifications_enabled = models.BooleanField(default=True)
    task_reminders_enabled = models.BooleanField(default=True)
    ear_notch_current_litter = models.PositiveIntegerField(default=1, help_text="Right-ear notch given to the next litter")
    ear_notch_last_reset_date = models.DateField(null=True, blank=True)

    class Meta:
        verbose_name_plural = "Farm settings"

    def __str__(self):
        return self.farm_name

    @classmethod
    def for_organization(cls, organization):
        farm_settings, _ = cls.objects.get_or_create(organization=organization)
        return farm_settings


# --- HOUSING ---
class HousingUnit(models.Model):
    UNIT_TYPES = [
        ('breeding', 'Breeding'), ('gestation', 'Gestation'),
        ('farrowing', 'Farrowing'), ('hospital', 'Hospital'),
        ('quarantine', 'Quarantine'), ('other', 'Other'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='housing_units')
    name = models.CharField(max_length=100)
    unit_type = models.CharField(max_length=12, choices=UNIT_TYPES, default='other')
    capacity = models.PositiveIntegerField(default=1)
    square_footage = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.get_unit_type_display()})"

    @property
    def occupant_count(self):
        return self.sows.filter(status='active').count()

    @property
    def is_over_capacity(self):
        return self.occupant_count > self.capacity


# --- ANIMALS ---
class Boar(models.Model):
    STATUS_CHOICES = [('active', 'Active'), ('culled', 'Culled'), ('sold', 'Sold')]
    BOAR_TYPES = [('live', 'Live Boar'), ('ai_semen', 'AI Semen')]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='boars')
    ear_tag = models.CharField(max_length=50)
    name = models.CharField(max_length=100, blank=True)
    breed = models.CharField(max_length=100)
    birth_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active')
    boar_type = models.CharField(max_length=10, choices=BOAR_TYPES, default='live')
    semen_straws = models.PositiveIntegerField(null=True, blank=True, help_text="Straws on hand (AI semen only)")
    supplier = models.CharField(max_length=200, blank=True)
    photo = models.ImageField(upload_to='boars/', blank=True, null=True)
    right_ear_notch = models.PositiveIntegerField(null=True, blank=True)
    left_ear_notch = models.PositiveIntegerField(null=True, blank=True)
    registration_number = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['ear_tag']
        unique_together = ('organization', 'ear_tag')

    def __str__(self):
        return f"{self.display_name} ({self.get_boar_type_display()})"

    @property
    def display_name(self):
        return self.name or self.ear_tag

    @property
    def is_ai_semen(self):
        return self.boar_type == 'ai_semen'


class Sow(models.Model):
    STATUS_CHOICES = [('active', 'Active'), ('culled', 'Culled'), ('sold', 'Sold')]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='sows')
    ear_tag = models.CharField(max_length=50)
    name = models.CharField(max_length=100, blank=True)
    birth_date = models.DateField()
    breed = models.CharField(max_length=100)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active')
    photo = models.ImageField(upload_to='sows/', blank=True, null=True)
    right_ear_notch = models.PositiveIntegerField(null=True, blank=True, help_text="Litter number")
    left_ear_notch = models.PositiveIntegerField(null=True, blank=True, help_text="Individual number")
    registration_number = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    housing_unit = models.ForeignKey(HousingUnit, null=True, blank=True, on_delete=models.SET_NULL, related_name='sows')
    housing_move_in_date = models.DateField(null=True, blank=True)

    # Pedigree Fields
    sire = models.ForeignKey(Boar, null=True, blank=True, on_delete=models.SET_NULL, related_name='daughters', verbose_name="Sire (Father)")
    dam = models.ForeignKey('self', null=True, blank=True, on_delete=models.SET_NULL, related_name='daughters', verbose_name="Dam (Mother)")
    sire_name = models.CharField(max_length=100, blank=True)
    dam_name = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        unique_together = ('organization', 'ear_tag')

    def __str__(self):
        return f"{self.display_name} ({self.status})"

    @property
    def display_name(self):
        return self.name or self.ear_tag

    @property
    def display_age(self):
        total_days = (date.today() - self.birth_date).days
        months = total_days // 30
        years, months = divmod(months, 12)
        if years > 0:
            return f"{years}y {months}m"
        return f"{months}m"

    @property
    def farrowing_count(self):
        return self.farrowings.filter(actual_farrowing_date__isnull=False).count()

    @property
    def is_gilt(self):
        return breeding.is_gilt(self.farrowing_count)

    @property
    def current_breeding(self):
        return self.breeding_attempts.order_by('-breeding_date', '-id').first()

    @property
    def breeding_status(self):
        return breeding.breeding_status(self.current_breeding, date.today())

    @property
    def active_farrowing(self):
        return self.farrowings.filter(
            actual_farrowing_date__isnull=False,
            moved_out_of_farrowing_date__isnull=True,
        ).first()

    @property
    def ear_notch_display(self):
        if self.right_ear_notch is None and self.left_ear_notch is None:
            return ''
        return f"{self.right_ear_notch if self.right_ear_notch is not None else '-'}-{self.left_ear_notch if self.left_ear_notch is not None else '-'}"


class SowDocument(models.Model):
    DOC_TYPES = [
        ('Registration', 'Registration Papers'),
        ('Vet Report', 'Vet Report'),
        ('Receipt', 'Purchase Receipt'),
        ('Certificate', 'Certificate'),
        ('Other', 'Other'),
    ]

    sow = models.ForeignKey(Sow, on_delete=models.CASCADE, related_name='documents')
    file = models.FileField(upload_to='sow_documents/')
    title = models.CharField(max_length=200)
    doc_type = models.CharField(max_length=20, choices=DOC_TYPES, default='Other')
    date_uploaded = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date_uploaded']

    def __str__(self):
        return f"{self.sow.display_name} - {self.title}"

    @property
    def file_extension(self):
        return self.file.name.split('.')[-1].lower() if '.' in self.file.name else ''


class LocationHistory(models.Model):
    sow = models.ForeignKey(Sow, on_delete=models.CASCADE, related_name='location_history')
    housing_unit = models.ForeignKey(HousingUnit, on_delete=models.CASCADE, related_name='location_history')
    moved_in_date = models.DateField(default=timezone.now)
    moved_out_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ['-moved_in_date']
        verbose_name_plural = "Location history"

    def __str__(self):
        return f"{self.sow.display_name} in {self.housing_unit.name}"

    @property
    def is_active(self):
        return self.moved_out_date is None


# --- MATRIX ---
class MatrixTreatment(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='matrix_treatments')
    sow = models.ForeignKey(Sow, on_delete=models.CASCADE, related_name='matrix_treatments')
    batch_name = models.CharField(max_length=100)
    administration_date = models.DateField(default=timezone.now)
    expected_heat_date = models.DateField(blank=True, null=True, help_text="Auto-calculated (5 days) if left blank")
    actual_heat_date = models.DateField(null=True, blank=True)
    bred = models.BooleanField(default=False)
    breeding_date = models.DateField(null=True, blank=True)
    dosage = models.CharField(max_length=50, blank=True)
    lot_number = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['-expected_heat_date']

    def __str__(self):
        return f"{self.batch_name}: {self.sow.display_name}"

    def save(self, *args, **kwargs):
        if not self.expected_heat_date and self.administration_date:
            self.expected_heat_date = breeding.expected_heat_date(self.administration_date)
        super().save(*args, **kwargs)

    @property
    def is_pending(self):
        return not self.bred and self.actual_heat_date is None


# --- BREEDING ---
class BreedingAttempt(models.Model):
    METHOD_CHOICES = [('natural', 'Natural'), ('ai', 'Artificial Insemination')]
    RESULT_CHOICES = [('pending', 'Pending'), ('pregnant', 'Pregnant'), ('not_pregnant', 'Not Pregnant')]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='breeding_attempts')
    sow = models.ForeignKey(Sow, on_delete=models.CASCADE, related_name='breeding_attempts')
    boar = models.ForeignKey(Boar, null=True, blank=True, on_delete=models.SET_NULL, related_name='breeding_attempts')
    boar_description = models.CharField(max_length=200, blank=True, help_text="Boar or semen not tracked in the system")
    breeding_method = models.CharField(max_length=10, choices=METHOD_CHOICES, default='natural')
    breeding_date = models.DateField()
    breeding_time = models.TimeField(null=True, blank=True)
    result = models.CharField(max_length=15, choices=RESULT_CHOICES, default='pending')
    pregnancy_confirmed = models.BooleanField(null=True, blank=True)
    pregnancy_check_date = models.DateField(null=True, blank=True)
    matrix_treatment = models.ForeignKey(MatrixTreatment, null=True, blank=True, on_delete=models.SET_NULL, related_name='breeding_attempts')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-breeding_date']

    def __str__(self):
        return f"{self.sow.display_name} x {self.sire_label} on {self.breeding_date}"

    @property
    def sire_label(self):
        if self.boar:
            return self.boar.display_name
        return self.boar_description or 'Unknown'

    @property
    def days_since_breeding(self):
        return (date.today() - self.breeding_date).days

    @property
    def expected_farrowing_date(self):
        return breeding.expected_farrowing_date(self.breeding_date)

    @property
    def needs_pregnancy_check(self):
        return breeding.needs_pregnancy_check(self.days_since_breeding, self.pregnancy_confirmed, self.result)

    @property
    def pregnancy_check_window(self):
        return breeding.pregnancy_check_window(self.days_since_breeding)


class Farrowing(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='farrowings')
    sow = models.ForeignKey(Sow, on_delete=models.CASCADE, related_name='farrowings')
    breeding_attempt = models.OneToOneField(BreedingAttempt, null=True, blank=True, on_delete=models.SET_NULL, related_name='farrowing')
    boar = models.ForeignKey(Boar, null=True, blank=True, on_delete=models.SET_NULL, related_name='farrowings')
    breeding_date = models.DateField()
    expected_farrowing_date = models.DateField(blank=True, null=True, help_text="Auto-calculated (114 days) if left blank")
    actual_farrowing_date = models.DateField(null=True, blank=True)
    live_piglets = models.PositiveIntegerField(null=True, blank=True)
    stillborn = models.PositiveIntegerField(null=True, blank=True)
    mummified = models.PositiveIntegerField(null=True, blank=True)
    moved_out_of_farrowing_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-expected_farrowing_date']

    def __str__(self):
        return f"{self.sow.display_name} - due {self.expected_farrowing_date}"

    def save(self, *args, **kwargs):
        if not self.expected_farrowing_date and self.breeding_date:
            self.expected_farrowing_date = breeding.expected_farrowing_date(self.breeding_date)
        super().save(*args, **kwargs)

    @property
    def has_farrowed(self):
        return self.actual_farrowing_date is not None

    @property
    def is_active(self):
        return self.has_farrowed and self.moved_out_of_farrowing_date is None

    @property
    def total_born(self):
        return (self.live_piglets or 0) + (self.stillborn or 0) + (self.mummified or 0)

    @property
    def days_until_due(self):
        return (self.expected_farrowing_date - date.today()).days

    @property
    def expected_weaning_date(self):
        if self.actual_farrowing_date:
            return breeding.expected_weaning_date(self.actual_farrowing_date)
        return None


class Piglet(models.Model):
    SEX_CHOICES = [('male', 'Male'), ('female', 'Female'), ('unknown', 'Unknown')]
    STATUS_CHOICES = [('nursing', 'Nursing'), ('weaned', 'Weaned'), ('sold', 'Sold'), ('died', 'Died')]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='piglets')
    farrowing = models.ForeignKey(Farrowing, on_delete=models.CASCADE, related_name='piglets')
    ear_tag = models.CharField(max_length=50, blank=True)
    right_ear_notch = models.PositiveIntegerField(null=True, blank=True, help_text="Litter number")
    left_ear_notch = models.PositiveIntegerField(null=True, blank=True, help_text="Sequence number in litter")
    sex = models.CharField(max_length=7, choices=SEX_CHOICES, default='unknown')
    birth_weight = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    weaning_weight = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=7, choices=STATUS_CHOICES, default='nursing')
    weaned_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['right_ear_notch', 'left_ear_notch', 'id']

    def __str__(self):
        return f"Piglet {self.identifier} ({self.status})"

    @property
    def identifier(self):
        if self.ear_tag:
            return self.ear_tag
        if self.right_ear_notch is not None or self.left_ear_notch is not None:
            return f"{self.right_ear_notch}-{self.left_ear_notch}"
        return f"#{self.pk}"


# --- PROTOCOLS & TASKS ---
class Protocol(models.Model):
    TRIGGER_EVENTS = [('farrowing', 'Farrowing'), ('breeding', 'Breeding'), ('weaning', 'Weaning')]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='protocols')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    trigger_event = models.CharField(max_length=10, choices=TRIGGER_EVENTS, default='farrowing')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} (on {self.get_trigger_event_display()})"

    @property
    def outstanding_task_count(self):
        return self.scheduled_tasks.filter(is_completed=False).count()


class ProtocolTask(models.Model):
    protocol = models.ForeignKey(Protocol, on_delete=models.CASCADE, related_name='tasks')
    task_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    days_offset = models.IntegerField(default=0, help_text="Days after the trigger event")
    is_required = models.BooleanField(default=True)
    task_order = models.IntegerField(default=0)

    class Meta:
        ordering = ['days_offset', 'task_order']

    def __str__(self):
        return f"{self.task_name} (day {self.days_offset})"


class ScheduledTask(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='scheduled_tasks')
    protocol = models.ForeignKey(Protocol, null=True, blank=True, on_delete=models.SET_NULL, related_name='scheduled_tasks')
    protocol_task = models.ForeignKey(ProtocolTask, null=True, blank=True, on_delete=models.SET_NULL, related_name='scheduled_tasks')
    sow = models.ForeignKey(Sow, null=True, blank=True, on_delete=models.CASCADE, related_name='scheduled_tasks')
    farrowing = models.ForeignKey(Farrowing, null=True, blank=True, on_delete=models.CASCADE, related_name='scheduled_tasks')
    task_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    due_date = models.DateField()
    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_notes = models.TextField(blank=True)

    class Meta:
        ordering = ['due_date', 'id']

    def __str__(self):
        return f"{self.task_name} due {self.due_date}"

    @property
    def is_overdue(self):
        return not self.is_completed and self.due_date < date.today()


# --- HEALTH ---
class HealthRecord(models.Model):
    RECORD_TYPES = [
        ('vaccination', 'Vaccination'), ('treatment', 'Treatment'),
        ('checkup', 'Checkup'), ('injury', 'Injury'),
        ('illness', 'Illness'), ('other', 'Other'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='health_records')
    sow = models.ForeignKey(Sow, null=True, blank=True, on_delete=models.CASCADE, related_name='health_records')
    boar = models.ForeignKey(Boar, null=True, blank=True, on_delete=models.CASCADE, related_name='health_records')
    piglet = models.ForeignKey(Piglet, null=True, blank=True, on_delete=models.CASCADE, related_name='health_records')
    record_type = models.CharField(max_length=12, choices=RECORD_TYPES, default='vaccination')
    record_date = models.DateField(default=timezone.now)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    medication = models.CharField(max_length=200, blank=True)
    dosage = models.CharField(max_length=100, blank=True)
    administered_by = models.CharField(max_length=100, blank=True)
    next_due_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ['-record_date']

    def __str__(self):
        return f"{self.animal_label} - {self.title}"

    @property
    def animal_label(self):
        animal = self.sow or self.boar
        if animal:
            return animal.display_name
        if self.piglet:
            return f"Piglet {self.piglet.identifier}"
        return "Herd"


# --- FINANCE ---
class Budget(models.Model):
    STATUS_CHOICES = [('active', 'Active'), ('closed', 'Closed')]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='budgets')
    budget_name = models.CharField(max_length=200)
    start_date = models.DateField()
    end_date = models.DateField()
    feed_budget = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    veterinary_budget = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    facilities_budget = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    utilities_budget = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    other_budget = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    revenue_target = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active')
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.budget_name} ({self.start_date} - {self.end_date})"

    @property
    def total_budget(self):
        return (self.feed_budget + self.veterinary_budget + self.facilities_budget
                + self.utilities_budget + self.other_budget)

    def category_budgets(self):
        return {
            'feed': self.feed_budget,
            'veterinary': self.veterinary_budget,
            'facilities': self.facilities_budget,
            'utilities': self.utilities_budget,
            'other': self.other_budget,
        }


class ExpenseRecord(models.Model):
    CATEGORIES = [
        ('feed', 'Feed'), ('veterinary', 'Veterinary'),
        ('facilities', 'Facilities'), ('utilities', 'Utilities'),
        ('other', 'Other'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='expenses')
    expense_date = models.DateField(default=timezone.now)
    expense_category = models.CharField(max_length=12, choices=CATEGORIES, default='other')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    vendor = models.CharField(max_length=200, blank=True)
    description = models.CharField(max_length=200, blank=True)
    sow = models.ForeignKey(Sow, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses', help_text="Optional: link expense to a specific sow")
    is_deleted = models.BooleanField(default=False)

    class Meta:
        ordering = ['-expense_date']

    def __str__(self):
        return f"{self.expense_date} - {self.get_expense_category_display()}: ${self.amount}"


class IncomeRecord(models.Model):
    INCOME_TYPES = [
        ('piglet_sale', 'Piglet Sale'), ('sow_sale', 'Sow Sale'),
        ('boar_sale', 'Boar Sale'), ('breeding_fee', 'Breeding Fee'),
        ('other', 'Other'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='income')
    income_date = models.DateField(default=timezone.now)
    income_type = models.CharField(max_length=12, choices=INCOME_TYPES, default='other')
    quantity = models.PositiveIntegerField(default=1)
    price_per_unit = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True, help_text="Quantity x price if left blank")
    buyer = models.CharField(max_length=200, blank=True)
    description = models.CharField(max_length=200, blank=True)
    is_deleted = models.BooleanField(default=False)

    class Meta:
        ordering = ['-income_date']

    def __str__(self):
        return f"{self.income_date} - {self.get_income_type_display()}: ${self.total_amount}"

    def save(self, *args, **kwargs):
        if self.total_amount is None and self.price_per_unit is not None:
            self.total_amount = self.price_per_unit * self.quantity
        super().save(*args, **kwargs)


# --- TRANSFERS ---
class TransferRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'), ('accepted', 'Accepted'),
        ('rejected', 'Rejected'), ('cancelled', 'Cancelled'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='outgoing_transfers')
    sow = models.ForeignKey(Sow, null=True, blank=True, on_delete=models.CASCADE, related_name='transfer_requests')
    boar = models.ForeignKey(Boar, null=True, blank=True, on_delete=models.CASCADE, related_name='transfer_requests')
    from_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sent_transfers')
    to_user_email = models.EmailField()
    message = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    retain_records = models.BooleanField(default=False, help_text="Keep a copy of the animal's records after transfer")
    created_at = models.DateTimeField(auto_now_add=True)
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Transfer of {self.animal.display_name} to {self.to_user_email} ({self.status})"

    @property
    def animal(self):
        return self.sow or self.boar

    @property
    def animal_type(self):
        return 'sow' if self.sow_id else 'boar'


# --- NOTIFICATIONS ---
class NotificationPreference(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notification_preference')

    # Channels
    push_enabled = models.BooleanField(default=True)
    email_enabled = models.BooleanField(default=True)
    email_daily_digest = models.BooleanField(default=False)
    sms_enabled = models.BooleanField(default=False)
    phone_number = models.CharField(max_length=20, blank=True)

    # Notification types
    notify_farrowing = models.BooleanField(default=True)
    notify_breeding = models.BooleanField(default=True)
    notify_pregnancy_check = models.BooleanField(default=True)
    notify_weaning = models.BooleanField(default=True)
    notify_vaccination = models.BooleanField(default=True)
    notify_health_records = models.BooleanField(default=True)
    notify_matrix = models.BooleanField(default=False)
    notify_tasks = models.BooleanField(default=True)
    notify_transfers = models.BooleanField(default=False)
    notify_compliance = models.BooleanField(default=True)

    # Timing
    quiet_hours_start = models.TimeField(null=True, blank=True)
    quiet_hours_end = models.TimeField(null=True, blank=True)
    timezone = models.CharField(max_length=64, default='America/Los_Angeles')

    # Reminder timing (days before event, comma separated)
    farrowing_reminder_days = models.CharField(max_length=50, default='7,3,1')
    pregnancy_check_reminder_days = models.CharField(max_length=50, default='1')
    weaning_reminder_days = models.CharField(max_length=50, default='3,1')
    vaccination_reminder_days = models.CharField(max_length=50, default='7,3,1')

    def __str__(self):
        return f"Notification preferences for {self.user}"

    @classmethod
    def for_user(cls, user):
        preference, _ = cls.objects.get_or_create(user=user)
        return preference

    def allows(self, notification_type):
        return getattr(self, f'notify_{notification_type}', True)

    def in_quiet_hours(self, at_time):
        start, end = self.quiet_hours_start, self.quiet_hours_end
        if start is None or end is None:
            return False
        if start <= end:
            return start <= at_time < end
        # Window wraps past midnight
        return at_time >= start or at_time < end

    @staticmethod
    def parse_days(value):
        days = []
        for part in (value or '').split(','):
            part = part.strip()
            if part.isdigit():
                days.append(int(part))
        return sorted(set(days), reverse=True)


class Notification(models.Model):
    TYPES = [
        ('farrowing', 'Farrowing'), ('breeding', 'Breeding'),
        ('pregnancy_check', 'Pregnancy Check'), ('weaning', 'Weaning'),
        ('vaccination', 'Vaccination'), ('health_records', 'Health'),
        ('tasks', 'Task'), ('transfers', 'Transfer'),
        ('compliance', 'Compliance'), ('matrix', 'Matrix'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    organization = models.ForeignKey(Organization, null=True, blank=True, on_delete=models.CASCADE, related_name='notifications')
    notification_type = models.CharField(max_length=20, choices=TYPES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    link_url = models.CharField(max_length=200, blank=True)
    dedupe_key = models.CharField(max_length=200, blank=True, db_index=True)
    scheduled_for = models.DateTimeField(default=timezone.now)
    sent_at = models.DateTimeField(null=True, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} - {self.title}"
