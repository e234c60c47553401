from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.forms import UserCreationForm

from . import breeding
from .models import (Sow, Boar, SowDocument, HousingUnit, MatrixTreatment, Protocol, ProtocolTask,
    HealthRecord, Budget, ExpenseRecord, IncomeRecord, FarmSettings, NotificationPreference)

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MB

DATE_WIDGET = forms.DateInput(attrs={'type': 'date', 'class': 'form-control'})
TIME_WIDGET = forms.TimeInput(attrs={'type': 'time', 'class': 'form-control'})


def _check_upload_size(upload):
    if upload and hasattr(upload, 'size') and upload.size > MAX_UPLOAD_SIZE:
        raise forms.ValidationError("File too large. Maximum size is 10MB.")
    return upload


def _animal_label(obj):
    label = obj.ear_tag
    if obj.name:
        label += f" - {obj.name}"
    return label


# --- ACCOUNTS ---
class SignupForm(UserCreationForm):
    email = forms.EmailField(required=True, widget=forms.EmailInput(attrs={'class': 'form-control'}))
    farm_name = forms.CharField(max_length=200, widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Hilltop Swine'}))

    class Meta(UserCreationForm.Meta):
        model = get_user_model()
        fields = ('username', 'email')

    def clean_email(self):
        email = self.cleaned_data['email'].strip().lower()
        if get_user_model().objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("An account with this email already exists.")
        return email


class OrganizationForm(forms.Form):
    name = forms.CharField(max_length=200, label="Farm name", widget=forms.TextInput(attrs={'class': 'form-control'}))


# --- ANIMALS ---
class SowForm(forms.ModelForm):
    class Meta:
        model = Sow
        fields = ['ear_tag', 'name', 'birth_date', 'breed', 'status', 'photo', 'right_ear_notch', 'left_ear_notch',
                  'registration_number', 'sire', 'dam', 'sire_name', 'dam_name', 'notes']
        widgets = {
            'ear_tag': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. S-101'}),
            'name': forms.TextInput(attrs={'class': 'form-control'}),
            'birth_date': DATE_WIDGET,
            'breed': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Yorkshire'}),
            'status': forms.Select(attrs={'class': 'form-select'}),
            'photo': forms.FileInput(attrs={'class': 'form-control'}),
            'right_ear_notch': forms.NumberInput(attrs={'class': 'form-control', 'min': 0}),
            'left_ear_notch': forms.NumberInput(attrs={'class': 'form-control', 'min': 0}),
            'registration_number': forms.TextInput(attrs={'class': 'form-control'}),
            'sire': forms.Select(attrs={'class': 'form-select'}),
            'dam': forms.Select(attrs={'class': 'form-select'}),
            'sire_name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Sire not in herd'}),
            'dam_name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Dam not in herd'}),
            'notes': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.organization = organization
        self.fields['sire'].queryset = Boar.objects.filter(organization=organization)
        dams = Sow.objects.filter(organization=organization)
        if self.instance.pk:
            dams = dams.exclude(pk=self.instance.pk)
        self.fields['dam'].queryset = dams
        for field_name in ['dam', 'sire']:
            self.fields[field_name].label_from_instance = _animal_label

    def clean_ear_tag(self):
        ear_tag = self.cleaned_data['ear_tag'].strip()
        clash = Sow.objects.filter(organization=self.organization, ear_tag__iexact=ear_tag).exclude(pk=self.instance.pk)
        if clash.exists():
            raise forms.ValidationError(f'A sow with ear tag "{ear_tag}" already exists.')
        return ear_tag

    def clean_photo(self):
        return _check_upload_size(self.cleaned_data.get('photo'))


class BoarForm(forms.ModelForm):
    class Meta:
        model = Boar
        fields = ['ear_tag', 'name', 'breed', 'birth_date', 'status', 'boar_type', 'semen_straws', 'supplier',
                  'photo', 'right_ear_notch', 'left_ear_notch', 'registration_number', 'notes']
        widgets = {
            'ear_tag': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. B-7'}),
            'name': forms.TextInput(attrs={'class': 'form-control'}),
            'breed': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Duroc'}),
            'birth_date': DATE_WIDGET,
            'status': forms.Select(attrs={'class': 'form-select'}),
            'boar_type': forms.Select(attrs={'class': 'form-select'}),
            'semen_straws': forms.NumberInput(attrs={'class': 'form-control', 'min': 0}),
            'supplier': forms.TextInput(attrs={'class': 'form-control'}),
            'photo': forms.FileInput(attrs={'class': 'form-control'}),
            'right_ear_notch': forms.NumberInput(attrs={'class': 'form-control', 'min': 0}),
            'left_ear_notch': forms.NumberInput(attrs={'class': 'form-control', 'min': 0}),
            'registration_number': forms.TextInput(attrs={'class': 'form-control'}),
            'notes': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.organization = organization

    def clean_ear_tag(self):
        ear_tag = self.cleaned_data['ear_tag'].strip()
        clash = Boar.objects.filter(organization=self.organization, ear_tag__iexact=ear_tag).exclude(pk=self.instance.pk)
        if clash.exists():
            raise forms.ValidationError(f'A boar with ear tag "{ear_tag}" already exists.')
        return ear_tag

    def clean_photo(self):
        return _check_upload_size(self.cleaned_data.get('photo'))

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('boar_type') == 'ai_semen' and cleaned.get('semen_straws') is None:
            self.add_error('semen_straws', "Enter the number of straws on hand for AI semen.")
        return cleaned


class SowDocumentForm(forms.ModelForm):
    class Meta:
        model = SowDocument
        fields = ['title', 'doc_type', 'file']
        widgets = {
            'title': forms.TextInput(attrs={'class': 'form-control'}),
            'doc_type': forms.Select(attrs={'class': 'form-select'}),
            'file': forms.FileInput(attrs={'class': 'form-control'}),
        }

    def clean_file(self):
        return _check_upload_size(self.cleaned_data.get('file'))


# --- BREEDING ---
class RecordBreedingForm(forms.Form):
    sow = forms.ModelChoiceField(queryset=Sow.objects.none(), widget=forms.Select(attrs={'class': 'form-select'}))
    breeding_method = forms.ChoiceField(choices=[('natural', 'Natural'), ('ai', 'Artificial Insemination')],
                                        widget=forms.Select(attrs={'class': 'form-select'}))
    boar = forms.ModelChoiceField(queryset=Boar.objects.none(), required=False, widget=forms.Select(attrs={'class': 'form-select'}))
    boar_description = forms.CharField(max_length=200, required=False, label="Other boar / semen",
                                       widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Neighbour boar, purchased semen...'}))
    breeding_date = forms.DateField(widget=DATE_WIDGET)
    breeding_time = forms.TimeField(widget=TIME_WIDGET)
    matrix_treatment = forms.ModelChoiceField(queryset=MatrixTreatment.objects.none(), required=False, widget=forms.HiddenInput)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['sow'].queryset = Sow.objects.filter(organization=organization, status='active').order_by('ear_tag')
        self.fields['boar'].queryset = Boar.objects.filter(organization=organization, status='active')
        self.fields['matrix_treatment'].queryset = MatrixTreatment.objects.filter(organization=organization, bred=False)
        self.fields['sow'].label_from_instance = _animal_label
        self.fields['boar'].label_from_instance = self._boar_label

    @staticmethod
    def _boar_label(obj):
        label = _animal_label(obj)
        if obj.is_ai_semen:
            label += f" (AI, {obj.semen_straws or 0} straws)"
        return label


class PregnancyCheckForm(forms.Form):
    pregnant = forms.TypedChoiceField(choices=[('yes', 'Pregnant'), ('no', 'Not pregnant')],
                                      coerce=lambda v: v == 'yes', widget=forms.RadioSelect)
    check_date = forms.DateField(widget=DATE_WIDGET)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))


class RecordLitterForm(forms.Form):
    actual_farrowing_date = forms.DateField(widget=DATE_WIDGET)
    live_piglets = forms.IntegerField(min_value=0, widget=forms.NumberInput(attrs={'class': 'form-control'}))
    stillborn = forms.IntegerField(min_value=0, required=False, initial=0, widget=forms.NumberInput(attrs={'class': 'form-control'}))
    mummified = forms.IntegerField(min_value=0, required=False, initial=0, widget=forms.NumberInput(attrs={'class': 'form-control'}))
    housing_unit = forms.ModelChoiceField(queryset=HousingUnit.objects.none(), required=False,
                                          label="Move to farrowing unit", widget=forms.Select(attrs={'class': 'form-select'}))
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['housing_unit'].queryset = HousingUnit.objects.filter(organization=organization, unit_type='farrowing')


class CreatePigletsForm(forms.Form):
    count = forms.IntegerField(min_value=1, required=False, help_text="Leave blank to create the whole litter",
                               widget=forms.NumberInput(attrs={'class': 'form-control'}))


class WeanLitterForm(forms.Form):
    weaning_date = forms.DateField(widget=DATE_WIDGET)
    weights = forms.CharField(required=False, help_text="Optional weaning weights in piglet order, comma separated",
                              widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': '6.2, 5.9, 6.4'}))

    def clean_weights(self):
        raw = self.cleaned_data.get('weights', '')
        weights = []
        for part in raw.split(','):
            part = part.strip()
            if not part:
                continue
            try:
                value = float(part)
            except ValueError:
                raise forms.ValidationError(f'"{part}" is not a number.')
            if value <= 0:
                raise forms.ValidationError("Weights must be greater than 0.")
            weights.append(round(value, 2))
        return weights


# --- MATRIX ---
class MatrixTreatmentForm(forms.Form):
    sows = forms.ModelMultipleChoiceField(queryset=Sow.objects.none(), widget=forms.CheckboxSelectMultiple)
    batch_name = forms.CharField(max_length=100, required=False, help_text="Defaults to Matrix-<date>",
                                 widget=forms.TextInput(attrs={'class': 'form-control'}))
    administration_date = forms.DateField(widget=DATE_WIDGET)
    days_until_heat = forms.IntegerField(min_value=0, initial=breeding.DEFAULT_DAYS_UNTIL_HEAT,
                                         widget=forms.NumberInput(attrs={'class': 'form-control'}))
    dosage = forms.CharField(max_length=50, required=False, widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. 6.8 ml'}))
    lot_number = forms.CharField(max_length=50, required=False, widget=forms.TextInput(attrs={'class': 'form-control'}))
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['sows'].queryset = Sow.objects.filter(organization=organization, status='active').order_by('ear_tag')
        self.fields['sows'].label_from_instance = _animal_label


# --- PROTOCOLS ---
class ProtocolForm(forms.ModelForm):
    class Meta:
        model = Protocol
        fields = ['name', 'description', 'trigger_event', 'is_active']
        widgets = {
            'name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Piglet processing'}),
            'description': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
            'trigger_event': forms.Select(attrs={'class': 'form-select'}),
            'is_active': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
        }


class ProtocolTaskForm(forms.ModelForm):
    class Meta:
        model = ProtocolTask
        fields = ['task_name', 'description', 'days_offset', 'is_required', 'task_order']
        widgets = {
            'task_name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Iron injection'}),
            'description': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
            'days_offset': forms.NumberInput(attrs={'class': 'form-control'}),
            'is_required': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
            'task_order': forms.NumberInput(attrs={'class': 'form-control'}),
        }


# --- HOUSING ---
class HousingUnitForm(forms.ModelForm):
    class Meta:
        model = HousingUnit
        fields = ['name', 'unit_type', 'capacity', 'square_footage', 'notes']
        widgets = {
            'name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Crate 4'}),
            'unit_type': forms.Select(attrs={'class': 'form-select'}),
            'capacity': forms.NumberInput(attrs={'class': 'form-control', 'min': 1}),
            'square_footage': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'notes': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
        }


class AssignHousingForm(forms.Form):
    sow = forms.ModelChoiceField(queryset=Sow.objects.none(), widget=forms.Select(attrs={'class': 'form-select'}))
    housing_unit = forms.ModelChoiceField(queryset=HousingUnit.objects.none(), widget=forms.Select(attrs={'class': 'form-select'}))
    move_in_date = forms.DateField(required=False, widget=DATE_WIDGET)

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['sow'].queryset = Sow.objects.filter(organization=organization, status='active').order_by('ear_tag')
        self.fields['sow'].label_from_instance = _animal_label
        self.fields['housing_unit'].queryset = HousingUnit.objects.filter(organization=organization)


# --- HEALTH ---
class HealthRecordForm(forms.ModelForm):
    class Meta:
        model = HealthRecord
        fields = ['sow', 'boar', 'record_type', 'record_date', 'title', 'description', 'medication', 'dosage',
                  'administered_by', 'next_due_date']
        widgets = {
            'sow': forms.Select(attrs={'class': 'form-select'}),
            'boar': forms.Select(attrs={'class': 'form-select'}),
            'record_type': forms.Select(attrs={'class': 'form-select'}),
            'record_date': DATE_WIDGET,
            'title': forms.TextInput(attrs={'class': 'form-control'}),
            'description': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
            'medication': forms.TextInput(attrs={'class': 'form-control'}),
            'dosage': forms.TextInput(attrs={'class': 'form-control'}),
            'administered_by': forms.TextInput(attrs={'class': 'form-control'}),
            'next_due_date': DATE_WIDGET,
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['sow'].queryset = Sow.objects.filter(organization=organization, status='active')
        self.fields['boar'].queryset = Boar.objects.filter(organization=organization, status='active')
        self.fields['sow'].label_from_instance = _animal_label
        self.fields['boar'].label_from_instance = _animal_label

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('sow') and cleaned.get('boar'):
            raise forms.ValidationError("Choose either a sow or a boar, not both.")
        return cleaned


class BulkVaccinateForm(forms.Form):
    sows = forms.ModelMultipleChoiceField(queryset=Sow.objects.none(), widget=forms.CheckboxSelectMultiple)
    vaccine_name = forms.CharField(max_length=200, widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Parvo/Lepto/Ery'}))
    record_date = forms.DateField(widget=DATE_WIDGET)
    dosage = forms.CharField(max_length=100, required=False, widget=forms.TextInput(attrs={'class': 'form-control'}))
    administered_by = forms.CharField(max_length=100, required=False, widget=forms.TextInput(attrs={'class': 'form-control'}))
    next_due_date = forms.DateField(required=False, widget=DATE_WIDGET)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['sows'].queryset = Sow.objects.filter(organization=organization, status='active').order_by('ear_tag')
        self.fields['sows'].label_from_instance = _animal_label


# --- FINANCE ---
class ExpenseForm(forms.ModelForm):
    class Meta:
        model = ExpenseRecord
        fields = ['expense_date', 'expense_category', 'amount', 'vendor', 'description', 'sow']
        widgets = {
            'expense_date': DATE_WIDGET,
            'expense_category': forms.Select(attrs={'class': 'form-select'}),
            'amount': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': 0}),
            'vendor': forms.TextInput(attrs={'class': 'form-control'}),
            'description': forms.TextInput(attrs={'class': 'form-control'}),
            'sow': forms.Select(attrs={'class': 'form-select'}),
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['sow'].queryset = Sow.objects.filter(organization=organization)
        self.fields['sow'].label_from_instance = _animal_label

    def clean_amount(self):
        amount = self.cleaned_data['amount']
        if amount <= 0:
            raise forms.ValidationError("Amount must be greater than 0.")
        return amount


class IncomeForm(forms.ModelForm):
    class Meta:
        model = IncomeRecord
        fields = ['income_date', 'income_type', 'quantity', 'price_per_unit', 'total_amount', 'buyer', 'description']
        widgets = {
            'income_date': DATE_WIDGET,
            'income_type': forms.Select(attrs={'class': 'form-select'}),
            'quantity': forms.NumberInput(attrs={'class': 'form-control', 'min': 1}),
            'price_per_unit': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'total_amount': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'buyer': forms.TextInput(attrs={'class': 'form-control'}),
            'description': forms.TextInput(attrs={'class': 'form-control'}),
        }

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('total_amount') is None and cleaned.get('price_per_unit') is None:
            raise forms.ValidationError("Enter a price per unit or a total amount.")
        return cleaned


class BudgetForm(forms.ModelForm):
    class Meta:
        model = Budget
        fields = ['budget_name', 'start_date', 'end_date', 'feed_budget', 'veterinary_budget', 'facilities_budget',
                  'utilities_budget', 'other_budget', 'revenue_target', 'status', 'notes']
        widgets = {
            'budget_name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. 2025 Operating'}),
            'start_date': DATE_WIDGET,
            'end_date': DATE_WIDGET,
            'feed_budget': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'veterinary_budget': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'facilities_budget': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'utilities_budget': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'other_budget': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'revenue_target': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'status': forms.Select(attrs={'class': 'form-select'}),
            'notes': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
        }

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get('start_date'), cleaned.get('end_date')
        if start and end and end < start:
            self.add_error('end_date', "End date must be on or after the start date.")
        return cleaned


# --- TRANSFERS ---
class TransferRequestForm(forms.Form):
    to_user_email = forms.EmailField(label="Recipient email", widget=forms.EmailInput(attrs={'class': 'form-control'}))
    message = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))
    retain_records = forms.BooleanField(required=False, label="Keep a copy of this animal's records",
                                        widget=forms.CheckboxInput(attrs={'class': 'form-check-input'}))


# --- SETTINGS ---
class FarmSettingsForm(forms.ModelForm):
    class Meta:
        model = FarmSettings
        fields = ['farm_name', 'timezone', 'weight_unit', 'measurement_unit', 'prop12_compliance_enabled',
                  'email_notifications_enabled', 'task_reminders_enabled', 'ear_notch_current_litter']
        widgets = {
            'farm_name': forms.TextInput(attrs={'class': 'form-control'}),
            'timezone': forms.TextInput(attrs={'class': 'form-control'}),
            'weight_unit': forms.Select(attrs={'class': 'form-select'}),
            'measurement_unit': forms.Select(attrs={'class': 'form-select'}),
            'prop12_compliance_enabled': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
            'email_notifications_enabled': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
            'task_reminders_enabled': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
            'ear_notch_current_litter': forms.NumberInput(attrs={'class': 'form-control', 'min': 1}),
        }


class NotificationPreferenceForm(forms.ModelForm):
    REMINDER_FIELDS = ['farrowing_reminder_days', 'pregnancy_check_reminder_days', 'weaning_reminder_days',
                       'vaccination_reminder_days']

    class Meta:
        model = NotificationPreference
        exclude = ['user']
        widgets = {
            'quiet_hours_start': TIME_WIDGET,
            'quiet_hours_end': TIME_WIDGET,
            'phone_number': forms.TextInput(attrs={'class': 'form-control', 'placeholder': '+1 555 123 4567'}),
            'timezone': forms.TextInput(attrs={'class': 'form-control'}),
        }

    def clean(self):
        cleaned = super().clean()
        for field in self.REMINDER_FIELDS:
            value = cleaned.get(field, '')
            parts = [p.strip() for p in value.split(',') if p.strip()]
            if any(not p.isdigit() for p in parts):
                self.add_error(field, "Use whole days separated by commas, e.g. 7,3,1")
            else:
                cleaned[field] = ','.join(str(d) for d in NotificationPreference.parse_days(value))
        if cleaned.get('sms_enabled') and not cleaned.get('phone_number'):
            self.add_error('phone_number', "A phone number is required for SMS notifications.")
        return cleaned
