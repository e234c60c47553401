from django.contrib import admin
from .models import (Organization, Membership, FarmSettings, HousingUnit, LocationHistory, Sow, SowDocument, Boar,
    BreedingAttempt, Farrowing, Piglet, MatrixTreatment, Protocol, ProtocolTask, ScheduledTask, HealthRecord,
    Budget, ExpenseRecord, IncomeRecord, TransferRequest, NotificationPreference, Notification)


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ('name', 'created_at')
    search_fields = ('name',)
    inlines = [MembershipInline]

@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ('user', 'organization', 'role', 'joined_at')
    list_filter = ('role',)

@admin.register(FarmSettings)
class FarmSettingsAdmin(admin.ModelAdmin):
    list_display = ('farm_name', 'organization', 'weight_unit', 'ear_notch_current_litter')

@admin.register(HousingUnit)
class HousingUnitAdmin(admin.ModelAdmin):
    list_display = ('name', 'organization', 'unit_type', 'capacity', 'occupant_count', 'is_over_capacity')
    list_filter = ('unit_type',)
    search_fields = ('name',)

@admin.register(LocationHistory)
class LocationHistoryAdmin(admin.ModelAdmin):
    list_display = ('sow', 'housing_unit', 'moved_in_date', 'moved_out_date')
    list_filter = ('housing_unit',)

@admin.register(Sow)
class SowAdmin(admin.ModelAdmin):
    list_display = ('ear_tag', 'name', 'organization', 'breed', 'status', 'display_age', 'farrowing_count', 'housing_unit')
    list_filter = ('status', 'breed', 'organization')
    search_fields = ('ear_tag', 'name', 'registration_number')
    autocomplete_fields = ['dam']

@admin.register(SowDocument)
class SowDocumentAdmin(admin.ModelAdmin):
    list_display = ('title', 'sow', 'doc_type', 'date_uploaded')
    list_filter = ('doc_type',)

@admin.register(Boar)
class BoarAdmin(admin.ModelAdmin):
    list_display = ('ear_tag', 'name', 'organization', 'breed', 'boar_type', 'semen_straws', 'status')
    list_filter = ('boar_type', 'status')
    search_fields = ('ear_tag', 'name', 'supplier')

@admin.register(BreedingAttempt)
class BreedingAttemptAdmin(admin.ModelAdmin):
    list_display = ('sow', 'sire_label', 'breeding_method', 'breeding_date', 'result', 'pregnancy_check_date')
    list_filter = ('result', 'breeding_method')
    search_fields = ('sow__ear_tag', 'sow__name', 'boar_description')

@admin.register(Farrowing)
class FarrowingAdmin(admin.ModelAdmin):
    list_display = ('sow', 'breeding_date', 'expected_farrowing_date', 'actual_farrowing_date', 'live_piglets', 'moved_out_of_farrowing_date')
    list_filter = ('expected_farrowing_date',)
    search_fields = ('sow__ear_tag', 'sow__name')

@admin.register(Piglet)
class PigletAdmin(admin.ModelAdmin):
    list_display = ('identifier', 'farrowing', 'sex', 'status', 'birth_weight', 'weaning_weight')
    list_filter = ('status', 'sex')

@admin.register(MatrixTreatment)
class MatrixTreatmentAdmin(admin.ModelAdmin):
    list_display = ('batch_name', 'sow', 'administration_date', 'expected_heat_date', 'bred')
    list_filter = ('bred', 'batch_name')


class ProtocolTaskInline(admin.TabularInline):
    model = ProtocolTask
    extra = 1


@admin.register(Protocol)
class ProtocolAdmin(admin.ModelAdmin):
    list_display = ('name', 'organization', 'trigger_event', 'is_active')
    list_filter = ('trigger_event', 'is_active')
    inlines = [ProtocolTaskInline]

@admin.register(ScheduledTask)
class ScheduledTaskAdmin(admin.ModelAdmin):
    list_display = ('task_name', 'sow', 'due_date', 'is_completed')
    list_filter = ('is_completed', 'due_date')
    search_fields = ('task_name',)

@admin.register(HealthRecord)
class HealthRecordAdmin(admin.ModelAdmin):
    list_display = ('record_date', 'animal_label', 'record_type', 'title', 'next_due_date')
    list_filter = ('record_type', 'record_date')
    search_fields = ('title', 'medication')

@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ('budget_name', 'organization', 'start_date', 'end_date', 'total_budget', 'status')
    list_filter = ('status',)

@admin.register(ExpenseRecord)
class ExpenseRecordAdmin(admin.ModelAdmin):
    list_display = ('expense_date', 'expense_category', 'amount', 'vendor', 'is_deleted')
    list_filter = ('expense_category', 'is_deleted')
    search_fields = ('vendor', 'description')

@admin.register(IncomeRecord)
class IncomeRecordAdmin(admin.ModelAdmin):
    list_display = ('income_date', 'income_type', 'quantity', 'total_amount', 'buyer', 'is_deleted')
    list_filter = ('income_type', 'is_deleted')

@admin.register(TransferRequest)
class TransferRequestAdmin(admin.ModelAdmin):
    list_display = ('animal', 'organization', 'to_user_email', 'status', 'created_at')
    list_filter = ('status',)

@admin.register(NotificationPreference)
class NotificationPreferenceAdmin(admin.ModelAdmin):
    list_display = ('user', 'push_enabled', 'email_enabled', 'sms_enabled')

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'notification_type', 'title', 'scheduled_for', 'sent_at', 'is_read')
    list_filter = ('notification_type', 'is_read')
