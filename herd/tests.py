from django.test import TestCase, Client
from django.urls import reverse
from django.utils import timezone
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command, CommandError
from django.contrib.auth import get_user_model
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from io import BytesIO, StringIO
from unittest import mock
from zoneinfo import ZoneInfo
import pandas as pd
import requests

from . import breeding, importers, notifications, queries, services
from .exceptions import WorkflowError
from .models import (
    Organization, Membership, FarmSettings, HousingUnit, LocationHistory, Sow, Boar,
    BreedingAttempt, Farrowing, Piglet, MatrixTreatment, Protocol, ProtocolTask, ScheduledTask,
    HealthRecord, Budget, ExpenseRecord, IncomeRecord, TransferRequest, NotificationPreference,
    Notification
)

User = get_user_model()


def today():
    return timezone.now().date()


class FarmTestMixin:
    """Creates a farmer, their farm and one sow."""
    def make_farm(self):
        self.user = User.objects.create_user('farmer', 'farmer@example.com', 'pass12345')
        self.organization = services.create_organization(self.user, 'Hilltop Swine')
        self.sow = Sow.objects.create(
            organization=self.organization, ear_tag='S-1', name='Bella',
            breed='Yorkshire', birth_date=date(2022, 3, 15)
        )

    def breed(self, sow=None, days_ago=30, **kwargs):
        kwargs.setdefault('boar_description', 'Neighbour boar')
        return services.record_breeding(
            sow or self.sow, 'natural', today() - timedelta(days=days_ago), time(8, 0), **kwargs
        )

    def farrow(self, days_ago=10, live=3, **kwargs):
        attempt = self.breed(days_ago=days_ago + 114)
        return services.record_litter(attempt.farrowing, today() - timedelta(days=days_ago), live, **kwargs)


# =====================
# RULES
# =====================

class BreedingRulesTest(TestCase):
    def test_expected_farrowing_date(self):
        self.assertEqual(breeding.expected_farrowing_date(date(2024, 1, 1)), date(2024, 4, 24))

    def test_expected_heat_date_default(self):
        self.assertEqual(breeding.expected_heat_date(date(2024, 3, 1)), date(2024, 3, 6))

    def test_expected_heat_date_custom(self):
        self.assertEqual(breeding.expected_heat_date(date(2024, 3, 1), 7), date(2024, 3, 8))

    def test_expected_weaning_date(self):
        self.assertEqual(breeding.expected_weaning_date(date(2024, 5, 1)), date(2024, 5, 22))

    def test_expected_return_to_heat(self):
        self.assertEqual(breeding.expected_return_to_heat(date(2024, 5, 22)), date(2024, 5, 29))

    def test_is_gilt(self):
        self.assertTrue(breeding.is_gilt(0))
        self.assertFalse(breeding.is_gilt(1))

    def test_pregnancy_check_window_edges(self):
        self.assertEqual(breeding.pregnancy_check_window(17), 'too_early')
        self.assertEqual(breeding.pregnancy_check_window(18), 'optimal')
        self.assertEqual(breeding.pregnancy_check_window(21), 'optimal')
        self.assertEqual(breeding.pregnancy_check_window(22), 'overdue')

    def test_needs_pregnancy_check(self):
        self.assertFalse(breeding.needs_pregnancy_check(17, None))
        self.assertTrue(breeding.needs_pregnancy_check(18, None))
        self.assertFalse(breeding.needs_pregnancy_check(30, True))
        self.assertFalse(breeding.needs_pregnancy_check(30, None, 'not_pregnant'))

    def test_days_until_label(self):
        self.assertEqual(breeding.days_until_label(-2), "2 days overdue")
        self.assertEqual(breeding.days_until_label(-1), "1 day overdue")
        self.assertEqual(breeding.days_until_label(0), "Due today")
        self.assertEqual(breeding.days_until_label(1), "1 day until heat")
        self.assertEqual(breeding.days_until_label(4), "4 days until heat")


class BreedingStatusTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_no_attempt_is_open(self):
        status = breeding.breeding_status(None, today())
        self.assertFalse(status.is_bred)
        self.assertEqual(status.status_label, 'Open')

    def test_recent_breeding_is_bred(self):
        attempt = self.breed(days_ago=5)
        status = breeding.breeding_status(attempt, today())
        self.assertTrue(status.is_bred)
        self.assertEqual(status.status_label, 'Bred')
        self.assertEqual(status.days_since_breeding, 5)

    def test_needs_check_after_18_days(self):
        attempt = self.breed(days_ago=19)
        status = breeding.breeding_status(attempt, today())
        self.assertEqual(status.status_label, 'Needs pregnancy check')
        self.assertTrue(status.needs_pregnancy_check)

    def test_confirmed_is_pregnant(self):
        attempt = self.breed(days_ago=25)
        services.check_pregnancy(attempt, True, today())
        status = breeding.breeding_status(attempt, today())
        self.assertEqual(status.status_label, 'Pregnant')

    def test_returned_to_heat_is_open(self):
        attempt = self.breed(days_ago=25)
        services.check_pregnancy(attempt, False, today())
        self.assertFalse(breeding.breeding_status(attempt, today()).is_bred)


# =====================
# MODELS
# =====================

class SowModelTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_str(self):
        self.assertEqual(str(self.sow), "Bella (active)")

    def test_display_name_falls_back_to_ear_tag(self):
        sow = Sow.objects.create(organization=self.organization, ear_tag='S-2', breed='Duroc', birth_date=date(2023, 1, 1))
        self.assertEqual(sow.display_name, 'S-2')

    def test_display_age(self):
        self.assertIn("y", self.sow.display_age)

    def test_gilt_until_first_litter(self):
        self.assertTrue(self.sow.is_gilt)
        self.breed()
        self.assertTrue(self.sow.is_gilt)
        self.assertEqual(self.sow.farrowing_count, 0)
        self.farrow()
        self.assertFalse(self.sow.is_gilt)
        self.assertEqual(self.sow.farrowing_count, 1)

    def test_ear_notch_display(self):
        self.assertEqual(self.sow.ear_notch_display, '')
        self.sow.right_ear_notch = 4
        self.sow.left_ear_notch = 2
        self.assertEqual(self.sow.ear_notch_display, '4-2')

    def test_ear_tag_unique_per_farm(self):
        other = services.create_organization(self.user, 'Second Farm')
        Sow.objects.create(organization=other, ear_tag='S-1', breed='Duroc', birth_date=date(2023, 1, 1))
        self.assertEqual(Sow.objects.filter(ear_tag='S-1').count(), 2)


class FarrowingModelTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_auto_expected_date(self):
        f = Farrowing.objects.create(organization=self.organization, sow=self.sow, breeding_date=date(2024, 1, 1))
        self.assertEqual(f.expected_farrowing_date, date(2024, 4, 24))

    def test_manual_expected_date_preserved(self):
        f = Farrowing.objects.create(
            organization=self.organization, sow=self.sow,
            breeding_date=date(2024, 1, 1), expected_farrowing_date=date(2024, 4, 20)
        )
        self.assertEqual(f.expected_farrowing_date, date(2024, 4, 20))

    def test_total_born(self):
        f = Farrowing(live_piglets=10, stillborn=1, mummified=2)
        self.assertEqual(f.total_born, 13)


class MatrixTreatmentModelTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_auto_heat_date(self):
        t = MatrixTreatment.objects.create(
            organization=self.organization, sow=self.sow, batch_name='B1', administration_date=date(2024, 6, 1)
        )
        self.assertEqual(t.expected_heat_date, date(2024, 6, 6))
        self.assertTrue(t.is_pending)


class IncomeRecordModelTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_total_from_unit_price(self):
        income = IncomeRecord.objects.create(
            organization=self.organization, income_type='piglet_sale', quantity=4, price_per_unit=Decimal('75.00')
        )
        self.assertEqual(income.total_amount, Decimal('300.00'))

    def test_explicit_total_kept(self):
        income = IncomeRecord.objects.create(
            organization=self.organization, quantity=4, price_per_unit=Decimal('75.00'), total_amount=Decimal('280.00')
        )
        self.assertEqual(income.total_amount, Decimal('280.00'))


class BudgetModelTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_total_budget(self):
        budget = Budget.objects.create(
            organization=self.organization, budget_name='2024', start_date=date(2024, 1, 1), end_date=date(2024, 12, 31),
            feed_budget=Decimal('1000'), veterinary_budget=Decimal('200'), other_budget=Decimal('50')
        )
        self.assertEqual(budget.total_budget, Decimal('1250'))


class NotificationPreferenceModelTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user('n', 'n@example.com', 'pass12345')

    def test_parse_days(self):
        self.assertEqual(NotificationPreference.parse_days('1, 7,3,x,3'), [7, 3, 1])
        self.assertEqual(NotificationPreference.parse_days(''), [])

    def test_allows(self):
        pref = NotificationPreference.for_user(self.user)
        self.assertTrue(pref.allows('farrowing'))
        self.assertFalse(pref.allows('matrix'))

    def test_quiet_hours_same_day(self):
        pref = NotificationPreference(quiet_hours_start=time(9, 0), quiet_hours_end=time(17, 0))
        self.assertTrue(pref.in_quiet_hours(time(12, 0)))
        self.assertFalse(pref.in_quiet_hours(time(17, 0)))

    def test_quiet_hours_wrap_midnight(self):
        pref = NotificationPreference(quiet_hours_start=time(22, 0), quiet_hours_end=time(6, 0))
        self.assertTrue(pref.in_quiet_hours(time(23, 30)))
        self.assertTrue(pref.in_quiet_hours(time(5, 0)))
        self.assertFalse(pref.in_quiet_hours(time(12, 0)))

    def test_no_quiet_hours(self):
        self.assertFalse(NotificationPreference().in_quiet_hours(time(3, 0)))


# =====================
# WORKFLOWS
# =====================

class OrganizationServiceTest(TestCase):
    def test_create_organization(self):
        user = User.objects.create_user('owner', 'owner@example.com', 'pass12345')
        org = services.create_organization(user, '  Creek Farm ')
        self.assertEqual(org.name, 'Creek Farm')
        self.assertEqual(Membership.objects.get(organization=org).role, 'owner')
        self.assertEqual(FarmSettings.objects.get(organization=org).farm_name, 'Creek Farm')

    def test_blank_name_rejected(self):
        user = User.objects.create_user('owner', 'owner@example.com', 'pass12345')
        with self.assertRaises(WorkflowError):
            services.create_organization(user, '  ')
        self.assertEqual(Organization.objects.count(), 0)


class RecordBreedingTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()
        self.ai = Boar.objects.create(
            organization=self.organization, ear_tag='AI-1', name='Titan', breed='Duroc',
            boar_type='ai_semen', semen_straws=2
        )

    def test_creates_attempt_and_farrowing(self):
        attempt = self.breed(days_ago=3)
        self.assertEqual(attempt.result, 'pending')
        self.assertEqual(attempt.farrowing.expected_farrowing_date, attempt.breeding_date + timedelta(days=114))
        self.assertEqual(attempt.notes, 'Boar: Neighbour boar')

    def test_ai_description_prefix(self):
        attempt = services.record_breeding(self.sow, 'ai', today(), time(7, 30), boar_description='Purchased semen', notes='Good heat')
        self.assertEqual(attempt.notes, 'AI Semen: Purchased semen\nGood heat')

    def test_ai_boar_uses_a_straw(self):
        attempt = services.record_breeding(self.sow, 'natural', today(), time(7, 30), boar=self.ai)
        self.ai.refresh_from_db()
        self.assertEqual(self.ai.semen_straws, 1)
        self.assertEqual(attempt.breeding_method, 'ai')
        self.assertEqual(attempt.sire_label, 'Titan')

    def test_no_straws_left(self):
        self.ai.semen_straws = 0
        self.ai.save()
        with self.assertRaisesMessage(WorkflowError, 'Insufficient semen straws available'):
            services.record_breeding(self.sow, 'ai', today(), time(7, 30), boar=self.ai)
        self.assertEqual(BreedingAttempt.objects.count(), 0)

    def test_requires_boar_or_description(self):
        with self.assertRaisesMessage(WorkflowError, 'Select a boar or describe the boar/semen used'):
            services.record_breeding(self.sow, 'natural', today(), time(7, 30))

    def test_future_date_rejected(self):
        with self.assertRaisesMessage(WorkflowError, 'Breeding date cannot be in the future'):
            self.breed(days_ago=-2)

    def test_time_required(self):
        with self.assertRaisesMessage(WorkflowError, 'Breeding time is required'):
            services.record_breeding(self.sow, 'natural', today(), None, boar_description='x')

    def test_inactive_sow_rejected(self):
        self.sow.status = 'culled'
        self.sow.save()
        with self.assertRaisesMessage(WorkflowError, 'Bella is not active and cannot be bred'):
            self.breed()
        self.assertEqual(Farrowing.objects.count(), 0)

    def test_marks_matrix_treatment_bred(self):
        treatment = services.record_matrix_treatment([self.sow], today() - timedelta(days=5))[0]
        self.breed(days_ago=0, matrix_treatment=treatment)
        treatment.refresh_from_db()
        self.assertTrue(treatment.bred)
        self.assertEqual(treatment.breeding_date, today())

    def test_matrix_treatment_of_another_sow_rejected(self):
        other = Sow.objects.create(organization=self.organization, ear_tag='S-2', breed='Duroc', birth_date=date(2023, 1, 1))
        treatment = services.record_matrix_treatment([other], today() - timedelta(days=5))[0]
        with self.assertRaisesMessage(WorkflowError, 'Matrix treatment belongs to a different sow'):
            self.breed(days_ago=0, matrix_treatment=treatment)
        treatment.refresh_from_db()
        self.assertFalse(treatment.bred)
        self.assertEqual(BreedingAttempt.objects.count(), 0)

    def test_breeding_protocol_expanded(self):
        protocol = Protocol.objects.create(organization=self.organization, name='Check', trigger_event='breeding')
        ProtocolTask.objects.create(protocol=protocol, task_name='Ultrasound', days_offset=21)
        attempt = self.breed(days_ago=2)
        task = ScheduledTask.objects.get()
        self.assertEqual(task.due_date, attempt.breeding_date + timedelta(days=21))
        self.assertEqual(task.sow, self.sow)


class PregnancyCheckTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()
        self.attempt = self.breed(days_ago=20)

    def test_confirm_pregnant(self):
        services.check_pregnancy(self.attempt, True, today())
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.result, 'pregnant')
        self.assertTrue(self.attempt.pregnancy_confirmed)
        self.assertIn(f"Pregnancy confirmed on {today()}", self.attempt.notes)
        self.assertTrue(Farrowing.objects.filter(breeding_attempt=self.attempt).exists())

    def test_not_pregnant_drops_farrowing(self):
        services.check_pregnancy(self.attempt, False, today(), notes='Standing heat')
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.result, 'not_pregnant')
        self.assertIn(f"Returned to heat on {today()}: Standing heat", self.attempt.notes)
        self.assertFalse(Farrowing.objects.filter(breeding_attempt=self.attempt).exists())
        self.assertTrue(self.sow.is_gilt)

    def test_check_before_breeding_rejected(self):
        with self.assertRaises(WorkflowError):
            services.check_pregnancy(self.attempt, True, self.attempt.breeding_date - timedelta(days=1))


class LitterWorkflowTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()
        self.attempt = self.breed(days_ago=120)
        self.farrowing = self.attempt.farrowing

    def test_record_litter(self):
        services.record_litter(self.farrowing, today() - timedelta(days=5), 10, stillborn=1)
        self.farrowing.refresh_from_db()
        self.attempt.refresh_from_db()
        self.assertEqual(self.farrowing.live_piglets, 10)
        self.assertEqual(self.farrowing.total_born, 11)
        self.assertEqual(self.attempt.result, 'pregnant')
        self.assertTrue(self.farrowing.is_active)

    def test_record_litter_twice_rejected(self):
        services.record_litter(self.farrowing, today(), 10)
        with self.assertRaises(WorkflowError):
            services.record_litter(self.farrowing, today(), 9)

    def test_litter_moves_sow_to_farrowing_unit(self):
        crate = HousingUnit.objects.create(organization=self.organization, name='Crate 1', unit_type='farrowing')
        services.record_litter(self.farrowing, today(), 8, housing_unit=crate)
        self.sow.refresh_from_db()
        self.assertEqual(self.sow.housing_unit, crate)

    def test_non_farrowing_unit_rejected(self):
        pen = HousingUnit.objects.create(organization=self.organization, name='Pen A', unit_type='gestation')
        with self.assertRaisesMessage(WorkflowError, 'Pen A is not a farrowing unit'):
            services.record_litter(self.farrowing, today(), 8, housing_unit=pen)

    def test_farrowing_protocol_schedules_tasks(self):
        protocol = Protocol.objects.create(organization=self.organization, name='Processing', trigger_event='farrowing')
        ProtocolTask.objects.create(protocol=protocol, task_name='Iron shot', days_offset=3)
        ProtocolTask.objects.create(protocol=protocol, task_name='Tail dock', days_offset=1)
        farrow_date = today() - timedelta(days=2)
        services.record_litter(self.farrowing, farrow_date, 8)
        tasks = ScheduledTask.objects.filter(farrowing=self.farrowing)
        self.assertEqual(tasks.count(), 2)
        self.assertEqual(tasks.get(task_name='Iron shot').due_date, farrow_date + timedelta(days=3))
        with self.assertRaises(WorkflowError):
            services.delete_protocol(protocol)

    def test_inactive_protocol_ignored(self):
        protocol = Protocol.objects.create(organization=self.organization, name='Off', trigger_event='farrowing', is_active=False)
        ProtocolTask.objects.create(protocol=protocol, task_name='Nothing', days_offset=0)
        services.record_litter(self.farrowing, today(), 8)
        self.assertEqual(ScheduledTask.objects.count(), 0)


class PigletWorkflowTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()
        self.farrowing = self.farrow(days_ago=21, live=3)

    def test_create_piglets_assigns_notches(self):
        piglets = services.create_piglets(self.farrowing)
        self.assertEqual([p.right_ear_notch for p in piglets], [1, 1, 1])
        self.assertEqual([p.left_ear_notch for p in piglets], [1, 2, 3])
        self.assertEqual(FarmSettings.for_organization(self.organization).ear_notch_current_litter, 2)

    def test_create_more_than_live_rejected(self):
        with self.assertRaisesMessage(WorkflowError, 'Only 3 piglets left to create for this litter'):
            services.create_piglets(self.farrowing, [{}, {}, {}, {}])

    def test_create_after_all_created_rejected(self):
        services.create_piglets(self.farrowing)
        with self.assertRaisesMessage(WorkflowError, 'All piglets for this litter have already been created'):
            services.create_piglets(self.farrowing)

    def test_unrecorded_litter_rejected(self):
        attempt = self.breed(days_ago=30)
        with self.assertRaisesMessage(WorkflowError, 'Record the litter before creating piglets'):
            services.create_piglets(attempt.farrowing)

    def test_wean_updates_and_fills_shortfall(self):
        services.create_piglets(self.farrowing, [{}, {}])
        weaned = services.wean_litter(self.farrowing, today(), weights=[6.5, 6.1, 5.8])
        self.assertEqual(len(weaned), 3)
        self.assertEqual(Piglet.objects.filter(farrowing=self.farrowing, status='weaned').count(), 3)
        self.assertEqual(Piglet.objects.filter(farrowing=self.farrowing, weaning_weight=Decimal('5.80')).count(), 1)
        self.farrowing.refresh_from_db()
        self.assertEqual(self.farrowing.moved_out_of_farrowing_date, today())
        self.assertFalse(self.farrowing.is_active)

    def test_wean_twice_rejected(self):
        services.wean_litter(self.farrowing, today())
        with self.assertRaisesMessage(WorkflowError, 'This litter has already been weaned'):
            services.wean_litter(self.farrowing, today())

    def test_reset_ear_notch_counter(self):
        services.create_piglets(self.farrowing)
        farm_settings = services.reset_ear_notch_counter(FarmSettings.for_organization(self.organization))
        self.assertEqual(farm_settings.ear_notch_current_litter, 1)
        self.assertEqual(farm_settings.ear_notch_last_reset_date, today())


class MatrixWorkflowTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()
        self.sow2 = Sow.objects.create(organization=self.organization, ear_tag='S-2', breed='Landrace', birth_date=date(2023, 1, 1))

    def test_batch_defaults(self):
        administered = date(2024, 6, 1)
        treatments = services.record_matrix_treatment([self.sow, self.sow2], administered)
        self.assertEqual(len(treatments), 2)
        self.assertEqual(treatments[0].batch_name, 'Matrix-2024-06-01')
        self.assertEqual(treatments[0].expected_heat_date, date(2024, 6, 6))

    def test_empty_selection_rejected(self):
        with self.assertRaisesMessage(WorkflowError, 'Select at least one sow'):
            services.record_matrix_treatment([], today())

    def test_mark_bred(self):
        treatment = services.record_matrix_treatment([self.sow], today() - timedelta(days=5))[0]
        services.mark_matrix_bred(treatment)
        self.assertTrue(treatment.bred)
        self.assertEqual(treatment.actual_heat_date, today())
        with self.assertRaises(WorkflowError):
            services.mark_matrix_bred(treatment)

    def test_batches_summary(self):
        admin_date = today() - timedelta(days=2)
        treatments = services.record_matrix_treatment([self.sow, self.sow2], admin_date, batch_name='June')
        services.mark_matrix_bred(treatments[0])
        batch = queries.matrix_batches(self.organization, today())[0]
        self.assertEqual(batch['batch_name'], 'June')
        self.assertEqual(batch['sow_count'], 2)
        self.assertEqual(batch['bred_count'], 1)
        self.assertEqual(batch['bred_percentage'], 50)
        self.assertEqual(batch['days_until_heat'], 3)
        self.assertEqual(batch['days_label'], '3 days until heat')


class HousingWorkflowTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()
        self.pen = HousingUnit.objects.create(organization=self.organization, name='Pen A', unit_type='gestation',
                                              capacity=1, square_footage=Decimal('20'))
        self.crate = HousingUnit.objects.create(organization=self.organization, name='Crate 1', unit_type='farrowing')

    def test_assign_records_history(self):
        services.assign_housing(self.sow, self.pen, date(2024, 1, 1))
        services.assign_housing(self.sow, self.crate, date(2024, 2, 1))
        history = LocationHistory.objects.filter(sow=self.sow)
        self.assertEqual(history.count(), 2)
        self.assertEqual(history.get(housing_unit=self.pen).moved_out_date, date(2024, 2, 1))
        self.assertIsNone(history.get(housing_unit=self.crate).moved_out_date)

    def test_assign_same_unit_rejected(self):
        services.assign_housing(self.sow, self.pen)
        with self.assertRaisesMessage(WorkflowError, 'Bella is already in Pen A'):
            services.assign_housing(self.sow, self.pen)

    def test_over_capacity_allowed_and_flagged(self):
        sow2 = Sow.objects.create(organization=self.organization, ear_tag='S-2', breed='Duroc', birth_date=date(2023, 1, 1))
        services.assign_housing(self.sow, self.pen)
        services.assign_housing(sow2, self.pen)
        self.assertTrue(self.pen.is_over_capacity)
        unit = next(u for u in queries.housing_occupancy(self.organization) if u.id == self.pen.id)
        self.assertTrue(unit.over_capacity)
        self.assertEqual(unit.space_per_animal, Decimal('10.0'))
        self.assertFalse(unit.prop12_compliant)

    def test_remove_from_housing(self):
        services.assign_housing(self.sow, self.pen)
        services.remove_from_housing(self.sow)
        self.assertIsNone(self.sow.housing_unit)
        self.assertIsNotNone(LocationHistory.objects.get(sow=self.sow).moved_out_date)

    def test_delete_occupied_unit_rejected(self):
        services.assign_housing(self.sow, self.pen)
        with self.assertRaisesMessage(WorkflowError, 'Cannot delete Pen A while animals are housed in it. Move them first.'):
            services.delete_housing_unit(self.pen)
        services.delete_housing_unit(self.crate)
        self.assertFalse(HousingUnit.objects.filter(pk=self.crate.pk).exists())


class BulkVaccinateTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_one_record_per_sow(self):
        sow2 = Sow.objects.create(organization=self.organization, ear_tag='S-2', breed='Duroc', birth_date=date(2023, 1, 1))
        records = services.bulk_vaccinate([self.sow, sow2], 'Parvo', today(), next_due_date=today() + timedelta(days=180))
        self.assertEqual(len(records), 2)
        self.assertEqual(HealthRecord.objects.filter(record_type='vaccination', title='Parvo').count(), 2)

    def test_due_before_record_rejected(self):
        with self.assertRaises(WorkflowError):
            services.bulk_vaccinate([self.sow], 'Parvo', today(), next_due_date=today() - timedelta(days=1))


class TransferWorkflowTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()
        self.buyer = User.objects.create_user('buyer', 'buyer@example.com', 'pass12345')
        self.buyer_farm = services.create_organization(self.buyer, 'Buyer Farm')

    def test_request_notifies_recipient(self):
        NotificationPreference.objects.create(user=self.buyer, notify_transfers=True)
        services.request_transfer(self.sow, self.user, 'Buyer@Example.com')
        transfer = TransferRequest.objects.get()
        self.assertEqual(transfer.to_user_email, 'buyer@example.com')
        self.assertEqual(Notification.objects.filter(user=self.buyer, notification_type='transfers').count(), 1)

    def test_request_validation(self):
        with self.assertRaisesMessage(WorkflowError, 'Please enter a valid email address'):
            services.request_transfer(self.sow, self.user, 'not-an-email')
        with self.assertRaisesMessage(WorkflowError, 'You cannot transfer an animal to yourself'):
            services.request_transfer(self.sow, self.user, 'farmer@example.com')
        services.request_transfer(self.sow, self.user, 'buyer@example.com')
        with self.assertRaisesMessage(WorkflowError, 'This animal already has a pending transfer request'):
            services.request_transfer(self.sow, self.user, 'buyer@example.com')

    def test_accept_moves_animal_and_history(self):
        attempt = self.breed(days_ago=10)
        transfer = services.request_transfer(self.sow, self.user, 'buyer@example.com')
        services.accept_transfer(transfer, self.buyer)
        self.sow.refresh_from_db()
        attempt.refresh_from_db()
        self.assertEqual(self.sow.organization, self.buyer_farm)
        self.assertEqual(attempt.organization, self.buyer_farm)
        self.assertEqual(TransferRequest.objects.get().status, 'accepted')
        self.assertFalse(Sow.objects.filter(organization=self.organization).exists())

    def test_accept_with_retained_records(self):
        transfer = services.request_transfer(self.sow, self.user, 'buyer@example.com', retain_records=True)
        services.accept_transfer(transfer, self.buyer)
        archived = Sow.objects.get(organization=self.organization)
        self.assertEqual(archived.ear_tag, 'S-1')
        self.assertEqual(archived.status, 'sold')

    def test_accept_by_wrong_user_rejected(self):
        transfer = services.request_transfer(self.sow, self.user, 'buyer@example.com')
        with self.assertRaisesMessage(WorkflowError, 'This transfer was not sent to you'):
            services.accept_transfer(transfer, self.user)

    def test_ear_tag_clash_rejected(self):
        Sow.objects.create(organization=self.buyer_farm, ear_tag='s-1', breed='Duroc', birth_date=date(2023, 1, 1))
        transfer = services.request_transfer(self.sow, self.user, 'buyer@example.com')
        with self.assertRaises(WorkflowError):
            services.accept_transfer(transfer, self.buyer)
        self.sow.refresh_from_db()
        self.assertEqual(self.sow.organization, self.organization)

    def test_reject_and_cancel(self):
        transfer = services.request_transfer(self.sow, self.user, 'buyer@example.com')
        with self.assertRaises(WorkflowError):
            services.cancel_transfer(transfer, self.buyer)
        services.reject_transfer(transfer, self.buyer)
        self.assertEqual(transfer.status, 'rejected')
        with self.assertRaisesMessage(WorkflowError, 'This transfer is no longer pending'):
            services.cancel_transfer(transfer, self.user)


# =====================
# QUERIES
# =====================

class QueryTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_sow_filter_counts(self):
        sow2 = Sow.objects.create(organization=self.organization, ear_tag='S-2', breed='Duroc', birth_date=date(2023, 1, 1))
        Sow.objects.create(organization=self.organization, ear_tag='S-3', breed='Duroc', birth_date=date(2023, 1, 1), status='sold')
        self.breed(sow=sow2)
        self.farrow()
        counts = queries.sow_filter_counts(self.organization)
        self.assertEqual(counts['all'], 3)
        self.assertEqual(counts['active'], 2)
        self.assertEqual(counts['gilts'], 1)
        self.assertEqual(counts['sows'], 1)
        self.assertEqual(counts['sold'], 1)
        self.assertEqual(list(queries.sow_list(self.organization, 'sows')), [self.sow])

    def test_bred_gilt_stays_a_gilt(self):
        self.breed(days_ago=30)
        counts = queries.sow_filter_counts(self.organization)
        self.assertEqual((counts['gilts'], counts['sows']), (1, 0))
        self.assertEqual(list(queries.sow_list(self.organization, 'gilts')), [self.sow])
        self.assertEqual(queries.sow_list(self.organization, 'sows').count(), 0)

    def test_sow_list_filters_and_search(self):
        Sow.objects.create(organization=self.organization, ear_tag='S-2', name='Rosie', breed='Duroc', birth_date=date(2023, 1, 1))
        self.assertEqual(list(queries.sow_list(self.organization, 'all', 'ros').values_list('ear_tag', flat=True)), ['S-2'])
        self.assertEqual(queries.sow_list(self.organization, 'gilts').count(), 2)

    def test_bred_sows_check_window(self):
        self.breed(days_ago=19)
        row = queries.bred_sows(self.organization, today())[0]
        self.assertEqual(row.check_window, 'optimal')
        self.assertTrue(row.check_due)
        self.assertEqual(row.days_to_farrowing, 114 - 19)

    def test_bred_sows_excludes_open_and_farrowed(self):
        attempt = self.breed(days_ago=25)
        services.check_pregnancy(attempt, False, today())
        self.assertEqual(queries.bred_sows(self.organization, today()), [])

    def test_budget_progress(self):
        budget = Budget.objects.create(
            organization=self.organization, budget_name='2024', start_date=date(2024, 1, 1), end_date=date(2024, 12, 31),
            feed_budget=Decimal('100'), revenue_target=Decimal('1000')
        )
        ExpenseRecord.objects.create(organization=self.organization, expense_date=date(2024, 3, 1), expense_category='feed', amount=Decimal('150'))
        ExpenseRecord.objects.create(organization=self.organization, expense_date=date(2025, 3, 1), expense_category='feed', amount=Decimal('999'))
        ExpenseRecord.objects.create(organization=self.organization, expense_date=date(2024, 3, 1), expense_category='feed', amount=Decimal('50'), is_deleted=True)
        IncomeRecord.objects.create(organization=self.organization, income_date=date(2024, 5, 1), total_amount=Decimal('500'))
        progress = queries.budget_progress(budget)
        feed = next(line for line in progress['lines'] if line['category'] == 'feed')
        self.assertEqual(feed['actual'], Decimal('150'))
        self.assertTrue(feed['over_budget'])
        self.assertEqual(progress['revenue'], Decimal('500'))
        self.assertEqual(progress['revenue_percent'], 50)
        self.assertEqual(progress['net'], Decimal('350'))

    def test_dashboard_alerts(self):
        self.breed(days_ago=20)
        alerts = queries.dashboard_alerts(self.organization, today())
        self.assertTrue(alerts['has_alerts'])
        self.assertEqual(len(alerts['pregnancy_checks']), 1)


# =====================
# IMPORT
# =====================

class SowImportTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def upload(self, content, name='sows.csv'):
        return SimpleUploadedFile(name, content.encode(), content_type='text/csv')

    def test_read_csv(self):
        rows = importers.read_spreadsheet(self.upload("Ear Tag,Breed,Birth Date\nS-9,Duroc,2023-02-01\n"))
        self.assertEqual(rows[0]['ear_tag'], 'S-9')
        self.assertEqual(rows[0]['birth_date'], '2023-02-01')

    def test_missing_columns(self):
        with self.assertRaisesMessage(WorkflowError, 'Missing required columns: birth_date'):
            importers.read_spreadsheet(self.upload("ear_tag,breed\nS-9,Duroc\n"))

    def test_legacy_xls_rejected(self):
        with self.assertRaises(WorkflowError):
            importers.read_spreadsheet(self.upload("x", name='sows.xls'))

    def test_wrong_extension_rejected(self):
        with self.assertRaisesMessage(WorkflowError, 'Please upload a .csv or .xlsx file'):
            importers.read_spreadsheet(self.upload("x", name='sows.txt'))

    def test_validate_rows(self):
        rows = importers.read_spreadsheet(self.upload(
            "ear_tag,breed,birth_date,status,right_ear_notch\n"
            "S-1,Duroc,2023-01-01,active,\n"
            "S-5,,01/02/2023,pregnant,\n"
            "S-6,Duroc,2023-01-01,,x\n"
            "s-6,Duroc,2023-01-01,,\n"
        ))
        results = importers.validate_rows(self.organization, rows)
        self.assertEqual(results[0]['errors'], ['Ear tag "S-1" already exists in database'])
        self.assertIn('Invalid birth date format (use YYYY-MM-DD)', results[1]['errors'])
        self.assertIn('Breed is required', results[1]['errors'])
        self.assertIn('Status must be: active, culled, or sold', results[1]['errors'])
        self.assertEqual(results[2]['errors'], ['Right ear notch must be a number'])
        self.assertEqual(results[3]['errors'], ['Duplicate ear tag in file (row 4)'])

    def test_import_generates_missing_tags(self):
        rows = importers.read_spreadsheet(self.upload("ear_tag,breed,birth_date\n,Duroc,2023-01-01\n,Duroc,2023-01-02\n"))
        summary = importers.import_sows(self.organization, importers.validate_rows(self.organization, rows), date(2024, 7, 4))
        self.assertEqual(summary['successful'], 2)
        tags = set(Sow.objects.filter(ear_tag__startswith='AUTO-').values_list('ear_tag', flat=True))
        self.assertEqual(tags, {'AUTO-20240704-0001', 'AUTO-20240704-0002'})

    def test_import_counts_failed_rows(self):
        rows = importers.read_spreadsheet(self.upload("ear_tag,breed,birth_date\nS-7,Duroc,2023-01-01\nS-8,,2023-01-01\n"))
        summary = importers.import_sows(self.organization, importers.validate_rows(self.organization, rows), today())
        self.assertEqual(summary['successful'], 1)
        self.assertEqual(summary['failed'], 1)

    def test_status_is_case_sensitive(self):
        rows = importers.read_spreadsheet(self.upload("ear_tag,breed,birth_date,status\nS-7,Duroc,2023-01-01,Active\n"))
        results = importers.validate_rows(self.organization, rows)
        self.assertEqual(results[0]['errors'], ['Status must be: active, culled, or sold'])

    def test_oversized_ear_notch_rejected(self):
        rows = importers.read_spreadsheet(self.upload(
            "ear_tag,breed,birth_date,right_ear_notch\n"
            "S-9,Duroc,2023-01-01,99999999999999999999\n"
            "S-10,Duroc,2023-01-01,3\n"
        ))
        results = importers.validate_rows(self.organization, rows)
        self.assertEqual(results[0]['errors'], [f'Right ear notch must be at most {importers.MAX_EAR_NOTCH}'])
        summary = importers.import_sows(self.organization, results, today())
        self.assertEqual((summary['successful'], summary['failed']), (1, 1))
        self.assertTrue(Sow.objects.filter(ear_tag='S-10', right_ear_notch=3).exists())

    def test_database_error_fails_row_and_continues(self):
        rows = importers.read_spreadsheet(self.upload("ear_tag,breed,birth_date\nS-9,Duroc,2023-01-01\nS-10,Duroc,2023-01-01\n"))
        results = importers.validate_rows(self.organization, rows)
        original_create = Sow.objects.create

        def create(**kwargs):
            if kwargs['ear_tag'] == 'S-9':
                raise OverflowError('value too large')
            return original_create(**kwargs)

        with mock.patch.object(Sow.objects, 'create', side_effect=create):
            summary = importers.import_sows(self.organization, results, today())
        self.assertEqual((summary['successful'], summary['failed'], summary['skipped']), (1, 1, 0))
        self.assertEqual(summary['errors'], ['Row 2: value too large'])
        self.assertTrue(Sow.objects.filter(ear_tag='S-10').exists())

    def xlsx_upload(self, frame):
        buffer = BytesIO()
        frame.to_excel(buffer, index=False, engine='openpyxl')
        return SimpleUploadedFile(
            'sows.xlsx', buffer.getvalue(),
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )

    def test_read_xlsx_with_date_and_number_cells(self):
        frame = pd.DataFrame({
            'Ear Tag': ['S-20', 'NA'],
            'Breed': ['Duroc', 'Hampshire'],
            'Birth Date': [datetime(2023, 2, 1), datetime(2023, 3, 5)],
            'Right Ear Notch': [4, 7],
        })
        rows = importers.read_spreadsheet(self.xlsx_upload(frame))
        self.assertTrue(rows[0]['birth_date'].startswith('2023-02-01'))
        self.assertEqual(rows[0]['right_ear_notch'], '4')
        self.assertEqual(rows[1]['ear_tag'], 'NA')
        results = importers.validate_rows(self.organization, rows)
        self.assertEqual([r['errors'] for r in results], [[], []])
        summary = importers.import_sows(self.organization, results, today())
        self.assertEqual(summary['successful'], 2)
        sow = Sow.objects.get(ear_tag='S-20')
        self.assertEqual(sow.birth_date, date(2023, 2, 1))
        self.assertEqual(sow.right_ear_notch, 4)
        self.assertTrue(Sow.objects.filter(ear_tag='NA', breed='Hampshire').exists())


# =====================
# NOTIFICATIONS
# =====================

class NotificationTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_notify_respects_opt_out(self):
        NotificationPreference.objects.create(user=self.user, notify_farrowing=False)
        self.assertIsNone(notifications.notify(self.user, 'farrowing', 'Due', 'Soon'))
        self.assertEqual(Notification.objects.count(), 0)

    def test_notify_dedupes(self):
        notifications.notify(self.user, 'tasks', 'A', 'B', dedupe_key='task-1')
        notifications.notify(self.user, 'tasks', 'A', 'B', dedupe_key='task-1')
        self.assertEqual(Notification.objects.count(), 1)

    def test_farrowing_reminder(self):
        self.breed(days_ago=114 - 7)
        created = notifications.check_event_notifications(today())
        self.assertGreaterEqual(created, 1)
        self.assertTrue(Notification.objects.filter(user=self.user, notification_type='farrowing').exists())
        # Same day again creates nothing new
        self.assertEqual(notifications.check_event_notifications(today()), 0)

    def test_return_to_heat_reminder_after_weaning(self):
        farrowing = self.farrow(days_ago=27)
        services.wean_litter(farrowing, today() - timedelta(days=6))
        notifications.check_event_notifications(today())
        note = Notification.objects.get(notification_type='breeding')
        self.assertEqual(note.title, 'Sow expected in heat tomorrow')
        self.assertEqual(note.dedupe_key, f'breeding-{farrowing.id}')
        notifications.check_event_notifications(today() + timedelta(days=1))
        self.assertEqual(Notification.objects.filter(notification_type='breeding').count(), 1)

    def test_no_heat_reminder_once_rebred(self):
        farrowing = self.farrow(days_ago=28)
        services.wean_litter(farrowing, today() - timedelta(days=7))
        self.breed(days_ago=0)
        notifications.check_event_notifications(today())
        self.assertFalse(Notification.objects.filter(notification_type='breeding').exists())

    def test_matrix_heat_reminder_is_opt_in(self):
        services.record_matrix_treatment([self.sow], today() - timedelta(days=4))
        notifications.check_event_notifications(today())
        self.assertFalse(Notification.objects.filter(notification_type='matrix').exists())
        NotificationPreference.objects.filter(user=self.user).update(notify_matrix=True)
        notifications.check_event_notifications(today())
        note = Notification.objects.get(notification_type='matrix')
        self.assertEqual(note.title, 'Matrix heat expected tomorrow')

    def test_task_reminder_respects_farm_setting(self):
        ScheduledTask.objects.create(organization=self.organization, task_name='Feed check', due_date=today())
        FarmSettings.objects.filter(organization=self.organization).update(task_reminders_enabled=False)
        notifications.check_event_notifications(today())
        self.assertFalse(Notification.objects.filter(notification_type='tasks').exists())
        FarmSettings.objects.filter(organization=self.organization).update(task_reminders_enabled=True)
        notifications.check_event_notifications(today())
        self.assertTrue(Notification.objects.filter(notification_type='tasks').exists())

    def test_process_sends_email(self):
        notifications.notify(self.user, 'tasks', 'Task due', 'Feed check', organization=self.organization)
        with self.settings(PUSH_WEBHOOK_URL=''):
            sent, deferred = notifications.process_notifications()
        self.assertEqual((sent, deferred), (1, 0))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Task due')
        self.assertIsNotNone(Notification.objects.get().sent_at)

    def test_process_defers_in_quiet_hours(self):
        NotificationPreference.objects.create(
            user=self.user, timezone='UTC', quiet_hours_start=time(9, 0), quiet_hours_end=time(11, 0)
        )
        now = datetime(2025, 1, 15, 10, 0, tzinfo=ZoneInfo('UTC'))
        notifications.notify(self.user, 'tasks', 'Task due', 'Feed check', scheduled_for=now - timedelta(hours=1))
        sent, deferred = notifications.process_notifications(now)
        self.assertEqual((sent, deferred), (0, 1))
        self.assertIsNone(Notification.objects.get().sent_at)

    def test_digest_users_skip_individual_email(self):
        NotificationPreference.objects.create(user=self.user, email_daily_digest=True)
        notifications.notify(self.user, 'tasks', 'Task due', 'Feed check')
        with self.settings(PUSH_WEBHOOK_URL=''):
            notifications.process_notifications()
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(notifications.send_daily_digests(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_push_failure_defers(self):
        NotificationPreference.objects.create(user=self.user, email_enabled=False)
        notifications.notify(self.user, 'tasks', 'Task due', 'Feed check')
        with self.settings(PUSH_WEBHOOK_URL='https://push.example.com/hook'):
            with mock.patch('herd.notifications.requests.post', side_effect=requests.ConnectionError('down')):
                sent, deferred = notifications.process_notifications()
        self.assertEqual((sent, deferred), (0, 1))

    def test_push_success(self):
        NotificationPreference.objects.create(user=self.user, email_enabled=False)
        notifications.notify(self.user, 'tasks', 'Task due', 'Feed check')
        with self.settings(PUSH_WEBHOOK_URL='https://push.example.com/hook'):
            with mock.patch('herd.notifications.requests.post') as post:
                sent, _ = notifications.process_notifications()
        self.assertEqual(sent, 1)
        self.assertEqual(post.call_args.kwargs['json']['title'], 'Task due')


class ManagementCommandTest(FarmTestMixin, TestCase):
    def setUp(self):
        self.make_farm()

    def test_check_event_notifications(self):
        out = StringIO()
        call_command('check_event_notifications', date=today().isoformat(), stdout=out)
        self.assertIn('notification(s)', out.getvalue())

    def test_check_event_notifications_bad_date(self):
        with self.assertRaises(CommandError):
            call_command('check_event_notifications', date='15/01/2025', stdout=StringIO())

    def test_process_notifications(self):
        out = StringIO()
        with self.settings(PUSH_WEBHOOK_URL=''):
            call_command('process_notifications', digest=True, stdout=out)
        self.assertIn('Delivered 0', out.getvalue())
        self.assertIn('digest', out.getvalue())


# =====================
# VIEW TESTS
# =====================

class ViewTestBase(FarmTestMixin, TestCase):
    """Base class with a logged-in farmer."""
    def setUp(self):
        self.make_farm()
        self.client = Client()
        self.client.force_login(self.user)

    def messages_of(self, response):
        return [str(m) for m in response.context.get('messages', [])]


class AccessGateTest(TestCase):
    def test_anonymous_redirected_to_login(self):
        response = self.client.get(reverse('index'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('login'), response['Location'])

    def test_login_page_loads(self):
        response = self.client.get(reverse('login'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'SwineOS')

    def test_user_without_farm_sent_to_create(self):
        user = User.objects.create_user('new', 'new@example.com', 'pass12345')
        self.client.force_login(user)
        response = self.client.get(reverse('sow_list'))
        self.assertRedirects(response, reverse('create_organization'), fetch_redirect_response=False)

    def test_signup_creates_farm(self):
        response = self.client.post(reverse('signup'), {
            'username': 'newfarmer', 'email': 'new@example.com', 'farm_name': 'Pine Ridge',
            'password1': 'Sw1ne-Passw0rd!', 'password2': 'Sw1ne-Passw0rd!',
        })
        self.assertEqual(response.status_code, 302)
        org = Organization.objects.get(name='Pine Ridge')
        self.assertTrue(Membership.objects.filter(organization=org, user__username='newfarmer', role='owner').exists())


class OrganizationViewTest(ViewTestBase):
    def test_cannot_see_other_farm_sow(self):
        other_user = User.objects.create_user('other', 'other@example.com', 'pass12345')
        other_org = services.create_organization(other_user, 'Other Farm')
        sow = Sow.objects.create(organization=other_org, ear_tag='X-1', breed='Duroc', birth_date=date(2023, 1, 1))
        response = self.client.get(reverse('sow_detail', args=[sow.id]))
        self.assertEqual(response.status_code, 404)

    def test_switch_organization(self):
        second = services.create_organization(self.user, 'Second Farm')
        response = self.client.post(reverse('switch_organization', args=[second.id]))
        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.client.session['organization_id'], second.id)
        response = self.client.get(reverse('sow_list'))
        self.assertNotContains(response, 'Bella')

    def test_switch_requires_membership(self):
        other_user = User.objects.create_user('other', 'other@example.com', 'pass12345')
        other_org = services.create_organization(other_user, 'Other Farm')
        response = self.client.post(reverse('switch_organization', args=[other_org.id]))
        self.assertEqual(response.status_code, 404)


class DashboardViewTests(ViewTestBase):
    def test_index(self):
        response = self.client.get(reverse('index'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Hilltop Swine')

    def test_index_shows_alerts(self):
        self.breed(days_ago=20)
        response = self.client.get(reverse('index'))
        self.assertContains(response, 'Pregnancy check due')

    def test_calendar(self):
        self.breed(days_ago=20)
        response = self.client.get(reverse('calendar_dashboard'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Due: Bella')

    def test_list_pages_load(self):
        for name in ['sow_list', 'boar_list', 'breeding_dashboard', 'bred_sows', 'farrowing_list', 'piglet_list',
                     'weaned_piglets', 'matrix_batches', 'record_matrix', 'protocol_list', 'task_list',
                     'housing_list', 'health_list', 'bulk_vaccinate', 'finance_dashboard', 'budget_list',
                     'transfer_list', 'farm_settings', 'notification_preferences', 'notification_list',
                     'import_sows', 'add_sow', 'add_boar']:
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, 200, name)


class SowViewTest(ViewTestBase):
    def test_sow_list_filter(self):
        response = self.client.get(reverse('sow_list'), {'filter': 'gilts'})
        self.assertContains(response, 'Bella')
        response = self.client.get(reverse('sow_list'), {'filter': 'sold'})
        self.assertNotContains(response, 'Bella')

    def test_add_sow(self):
        response = self.client.post(reverse('add_sow'), {
            'ear_tag': 'S-2', 'name': 'Rosie', 'birth_date': '2023-04-01', 'breed': 'Duroc', 'status': 'active',
        }, follow=True)
        self.assertTrue(Sow.objects.filter(ear_tag='S-2', organization=self.organization).exists())
        self.assertIn('Rosie added to herd!', self.messages_of(response))

    def test_add_sow_duplicate_tag(self):
        response = self.client.post(reverse('add_sow'), {
            'ear_tag': 's-1', 'birth_date': '2023-04-01', 'breed': 'Duroc', 'status': 'active',
        })
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'A sow with ear tag')
        self.assertEqual(Sow.objects.count(), 1)

    def test_detail_loads(self):
        self.breed(days_ago=5)
        response = self.client.get(reverse('sow_detail', args=[self.sow.id]))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Bella')
        self.assertContains(response, 'Neighbour boar')

    def test_edit_sow(self):
        response = self.client.post(reverse('edit_sow', args=[self.sow.id]), {
            'ear_tag': 'S-1', 'name': 'Bella II', 'birth_date': '2022-03-15', 'breed': 'Yorkshire', 'status': 'active',
        })
        self.assertEqual(response.status_code, 302)
        self.sow.refresh_from_db()
        self.assertEqual(self.sow.name, 'Bella II')

    def test_update_status_unhouses(self):
        pen = HousingUnit.objects.create(organization=self.organization, name='Pen A')
        services.assign_housing(self.sow, pen)
        response = self.client.post(reverse('update_sow_status', args=[self.sow.id]), {'status': 'culled'}, follow=True)
        self.sow.refresh_from_db()
        self.assertEqual(self.sow.status, 'culled')
        self.assertIsNone(self.sow.housing_unit)
        self.assertIn('Status updated to Culled.', self.messages_of(response))

    def test_update_status_invalid(self):
        response = self.client.post(reverse('update_sow_status', args=[self.sow.id]), {'status': 'pregnant'}, follow=True)
        self.assertIn('Status must be: active, culled, or sold', self.messages_of(response))

    def test_delete_sow(self):
        response = self.client.post(reverse('delete_sow', args=[self.sow.id]))
        self.assertEqual(response.status_code, 302)
        self.assertEqual(Sow.objects.count(), 0)

    def test_delete_requires_post(self):
        response = self.client.get(reverse('delete_sow', args=[self.sow.id]))
        self.assertEqual(response.status_code, 405)
        self.assertEqual(Sow.objects.count(), 1)

    def test_stall_card(self):
        response = self.client.get(reverse('stall_card', args=[self.sow.id]))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'data:image/png;base64,')

    def test_upload_document(self):
        upload = SimpleUploadedFile('papers.pdf', b'%PDF-1.4', content_type='application/pdf')
        response = self.client.post(reverse('add_sow_document', args=[self.sow.id]), {
            'title': 'Registration', 'doc_type': 'Registration', 'file': upload,
        })
        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.sow.documents.count(), 1)
        self.sow.documents.first().file.delete()


class ImportViewTest(ViewTestBase):
    def test_import_valid_file(self):
        upload = SimpleUploadedFile('sows.csv', b"ear_tag,breed,birth_date\nS-9,Duroc,2023-02-01\n", content_type='text/csv')
        response = self.client.post(reverse('import_sows'), {'file': upload}, follow=True)
        self.assertTrue(Sow.objects.filter(ear_tag='S-9').exists())
        self.assertIn('Imported 1 sow(s).', self.messages_of(response))

    def test_invalid_rows_need_confirmation(self):
        upload = SimpleUploadedFile('sows.csv', b"ear_tag,breed,birth_date\nS-9,Duroc,2023-02-01\nS-10,,2023-02-01\n", content_type='text/csv')
        response = self.client.post(reverse('import_sows'), {'file': upload})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Breed is required')
        self.assertFalse(Sow.objects.filter(ear_tag='S-9').exists())

    def test_confirmed_import_skips_invalid(self):
        upload = SimpleUploadedFile('sows.csv', b"ear_tag,breed,birth_date\nS-9,Duroc,2023-02-01\nS-10,,2023-02-01\n", content_type='text/csv')
        response = self.client.post(reverse('import_sows'), {'file': upload, 'confirm': '1'}, follow=True)
        self.assertTrue(Sow.objects.filter(ear_tag='S-9').exists())
        self.assertIn('Imported 1 sow(s), 1 failed.', self.messages_of(response))

    def test_template_downloads(self):
        response = self.client.get(reverse('import_template', args=['csv']))
        self.assertEqual(response['Content-Type'], 'text/csv')
        response = self.client.get(reverse('import_template', args=['xlsx']))
        self.assertIn('sow_import_template.xlsx', response['Content-Disposition'])


class BoarViewTest(ViewTestBase):
    def test_add_ai_semen_requires_straws(self):
        response = self.client.post(reverse('add_boar'), {
            'ear_tag': 'AI-1', 'breed': 'Duroc', 'status': 'active', 'boar_type': 'ai_semen',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Boar.objects.count(), 0)

    def test_add_boar(self):
        response = self.client.post(reverse('add_boar'), {
            'ear_tag': 'B-1', 'name': 'Hamlet', 'breed': 'Hampshire', 'status': 'active', 'boar_type': 'live',
        })
        self.assertEqual(response.status_code, 302)
        boar = Boar.objects.get()
        response = self.client.get(reverse('boar_detail', args=[boar.id]))
        self.assertContains(response, 'Hamlet')

    def test_conception_rate(self):
        boar = Boar.objects.create(organization=self.organization, ear_tag='B-1', breed='Duroc')
        attempt = services.record_breeding(self.sow, 'natural', today() - timedelta(days=25), time(8, 0), boar=boar)
        services.check_pregnancy(attempt, True, today())
        response = self.client.get(reverse('boar_detail', args=[boar.id]))
        self.assertEqual(response.context['conception_rate'], 100)


class BreedingViewTest(ViewTestBase):
    def test_record_breeding(self):
        response = self.client.post(reverse('record_breeding'), {
            'sow': self.sow.id, 'breeding_method': 'natural', 'boar_description': 'Neighbour boar',
            'breeding_date': (today() - timedelta(days=1)).isoformat(), 'breeding_time': '08:00',
        }, follow=True)
        self.assertEqual(BreedingAttempt.objects.count(), 1)
        self.assertTrue(any(m.startswith('Breeding recorded for Bella. Expected farrowing') for m in self.messages_of(response)))

    def test_record_breeding_error_shown(self):
        response = self.client.post(reverse('record_breeding'), {
            'sow': self.sow.id, 'breeding_method': 'natural',
            'breeding_date': today().isoformat(), 'breeding_time': '08:00',
        }, follow=True)
        self.assertEqual(BreedingAttempt.objects.count(), 0)
        self.assertIn('Select a boar or describe the boar/semen used', self.messages_of(response))

    def test_record_breeding_requires_post(self):
        response = self.client.get(reverse('record_breeding'))
        self.assertEqual(response.status_code, 405)

    def test_pregnancy_check(self):
        attempt = self.breed(days_ago=20)
        response = self.client.post(reverse('pregnancy_check', args=[attempt.id]), {
            'pregnant': 'no', 'check_date': today().isoformat(),
        })
        self.assertEqual(response.status_code, 302)
        attempt.refresh_from_db()
        self.assertEqual(attempt.result, 'not_pregnant')

    def test_bred_sows_window_filter(self):
        self.breed(days_ago=10)
        response = self.client.get(reverse('bred_sows'), {'window': 'overdue'})
        self.assertEqual(len(response.context['attempts']), 0)
        response = self.client.get(reverse('bred_sows'), {'window': 'too_early'})
        self.assertEqual(len(response.context['attempts']), 1)


class FarrowingViewTest(ViewTestBase):
    def test_record_litter_create_piglets_and_wean(self):
        attempt = self.breed(days_ago=140)
        farrowing = attempt.farrowing
        farrow_date = today() - timedelta(days=25)
        response = self.client.post(reverse('record_litter', args=[farrowing.id]), {
            'actual_farrowing_date': farrow_date.isoformat(), 'live_piglets': '4', 'stillborn': '0', 'mummified': '0',
        })
        self.assertEqual(response.status_code, 302)
        farrowing.refresh_from_db()
        self.assertEqual(farrowing.live_piglets, 4)

        response = self.client.get(reverse('farrowing_list'))
        active = list(response.context['active'])
        self.assertTrue(active[0].ready_to_wean)

        self.client.post(reverse('create_piglets', args=[farrowing.id]), {'count': '2'})
        self.assertEqual(Piglet.objects.filter(farrowing=farrowing).count(), 2)

        self.client.post(reverse('wean_litter', args=[farrowing.id]), {
            'weaning_date': today().isoformat(), 'weights': '6.1, 5.9',
        })
        self.assertEqual(Piglet.objects.filter(farrowing=farrowing, status='weaned').count(), 4)

    def test_wean_bad_weights(self):
        farrowing = self.farrow()
        response = self.client.post(reverse('wean_litter', args=[farrowing.id]), {
            'weaning_date': today().isoformat(), 'weights': '6.1, heavy',
        }, follow=True)
        self.assertTrue(any('is not a number' in m for m in self.messages_of(response)))
        farrowing.refresh_from_db()
        self.assertIsNone(farrowing.moved_out_of_farrowing_date)

    def test_update_piglet_status(self):
        farrowing = self.farrow()
        piglet = services.create_piglets(farrowing)[0]
        self.client.post(reverse('update_piglet_status', args=[piglet.id]), {'status': 'sold'})
        piglet.refresh_from_db()
        self.assertEqual(piglet.status, 'sold')


class MatrixViewTest(ViewTestBase):
    def test_record_matrix(self):
        response = self.client.post(reverse('record_matrix'), {
            'sows': [self.sow.id], 'batch_name': 'Spring', 'administration_date': today().isoformat(),
            'days_until_heat': '5',
        })
        self.assertRedirects(response, reverse('matrix_batch_detail', args=['Spring']))
        response = self.client.get(reverse('matrix_batch_detail', args=['Spring']))
        self.assertContains(response, '5 days until heat')

    def test_unknown_batch_redirects(self):
        response = self.client.get(reverse('matrix_batch_detail', args=['Nope']))
        self.assertRedirects(response, reverse('matrix_batches'))

    def test_mark_bred(self):
        treatment = services.record_matrix_treatment([self.sow], today() - timedelta(days=5), batch_name='Spring')[0]
        self.client.post(reverse('mark_matrix_bred', args=[treatment.id]))
        treatment.refresh_from_db()
        self.assertTrue(treatment.bred)


class ProtocolViewTest(ViewTestBase):
    def test_create_protocol_and_task(self):
        response = self.client.post(reverse('protocol_list'), {
            'name': 'Processing', 'trigger_event': 'farrowing', 'is_active': 'on',
        })
        protocol = Protocol.objects.get()
        self.assertRedirects(response, reverse('protocol_detail', args=[protocol.id]))
        response = self.client.post(reverse('protocol_detail', args=[protocol.id]), {
            'task_name': 'Iron shot', 'days_offset': '3', 'is_required': 'on', 'task_order': '0',
        }, follow=True)
        self.assertEqual(protocol.tasks.count(), 1)
        self.assertIn('Task added.', self.messages_of(response))

    def test_delete_protocol_refused_with_outstanding_tasks(self):
        protocol = Protocol.objects.create(organization=self.organization, name='P', trigger_event='farrowing')
        ScheduledTask.objects.create(organization=self.organization, protocol=protocol, task_name='T', due_date=today())
        response = self.client.post(reverse('delete_protocol', args=[protocol.id]), follow=True)
        self.assertTrue(Protocol.objects.filter(pk=protocol.pk).exists())
        self.assertTrue(any('1 scheduled task still outstanding' in m for m in self.messages_of(response)))

    def test_delete_protocol(self):
        protocol = Protocol.objects.create(organization=self.organization, name='P', trigger_event='farrowing')
        response = self.client.post(reverse('delete_protocol', args=[protocol.id]), follow=True)
        self.assertFalse(Protocol.objects.exists())
        self.assertIn('Protocol deleted.', self.messages_of(response))

    def test_toggle_protocol(self):
        protocol = Protocol.objects.create(organization=self.organization, name='P')
        self.client.post(reverse('toggle_protocol', args=[protocol.id]))
        protocol.refresh_from_db()
        self.assertFalse(protocol.is_active)


class TaskViewTest(ViewTestBase):
    def setUp(self):
        super().setUp()
        self.task = ScheduledTask.objects.create(organization=self.organization, sow=self.sow, task_name='Iron shot',
                                                 due_date=today() - timedelta(days=1))

    def test_overdue_filter(self):
        response = self.client.get(reverse('task_list'), {'filter': 'overdue'})
        self.assertContains(response, 'Iron shot')

    def test_complete_and_reopen(self):
        self.client.post(reverse('complete_task', args=[self.task.id]), {'notes': 'Done at 9'})
        self.task.refresh_from_db()
        self.assertTrue(self.task.is_completed)
        self.assertEqual(self.task.completed_notes, 'Done at 9')
        self.client.post(reverse('reopen_task', args=[self.task.id]))
        self.task.refresh_from_db()
        self.assertFalse(self.task.is_completed)

    def test_complete_task_ajax(self):
        response = self.client.post(
            reverse('complete_task', args=[self.task.id]),
            HTTP_X_REQUESTED_WITH='XMLHttpRequest'
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['completed'])

    def test_api_update_task(self):
        response = self.client.post(
            reverse('api_update_task', args=[self.task.id]),
            data='{"completed": true, "notes": "ok"}', content_type='application/json'
        )
        self.assertEqual(response.json()['status'], 'success')
        self.task.refresh_from_db()
        self.assertTrue(self.task.is_completed)

    def test_api_update_task_bad_json(self):
        response = self.client.post(
            reverse('api_update_task', args=[self.task.id]), data='not json', content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['status'], 'error')

    def test_api_update_task_rejects_non_object(self):
        response = self.client.post(
            reverse('api_update_task', args=[self.task.id]), data='[]', content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)
        self.task.refresh_from_db()
        self.assertFalse(self.task.is_completed)


class HousingViewTest(ViewTestBase):
    def test_add_unit_and_assign(self):
        self.client.post(reverse('housing_list'), {'name': 'Crate 1', 'unit_type': 'farrowing', 'capacity': '1'})
        unit = HousingUnit.objects.get()
        response = self.client.post(reverse('assign_housing'), {'sow': self.sow.id, 'housing_unit': unit.id}, follow=True)
        self.sow.refresh_from_db()
        self.assertEqual(self.sow.housing_unit, unit)
        self.assertIn('Bella moved to Crate 1.', self.messages_of(response))

    def test_over_capacity_warning(self):
        unit = HousingUnit.objects.create(organization=self.organization, name='Pen A', capacity=1)
        sow2 = Sow.objects.create(organization=self.organization, ear_tag='S-2', breed='Duroc', birth_date=date(2023, 1, 1))
        services.assign_housing(sow2, unit)
        response = self.client.post(reverse('assign_housing'), {'sow': self.sow.id, 'housing_unit': unit.id}, follow=True)
        self.assertTrue(any('over capacity' in m for m in self.messages_of(response)))

    def test_delete_unit(self):
        unit = HousingUnit.objects.create(organization=self.organization, name='Pen A')
        response = self.client.post(reverse('delete_housing_unit', args=[unit.id]), follow=True)
        self.assertFalse(HousingUnit.objects.exists())
        self.assertIn('Housing unit deleted.', self.messages_of(response))


class HealthViewTest(ViewTestBase):
    def test_add_health_record(self):
        response = self.client.post(reverse('health_list'), {
            'sow': self.sow.id, 'record_type': 'treatment', 'record_date': today().isoformat(), 'title': 'Lameness',
        }, follow=True)
        self.assertEqual(HealthRecord.objects.count(), 1)
        self.assertIn('Health record added.', self.messages_of(response))

    def test_bulk_vaccinate(self):
        response = self.client.post(reverse('bulk_vaccinate'), {
            'sows': [self.sow.id], 'vaccine_name': 'Parvo', 'record_date': today().isoformat(),
        })
        self.assertRedirects(response, reverse('health_list'))
        self.assertEqual(HealthRecord.objects.get().medication, 'Parvo')

    def test_delete_requires_post(self):
        record = HealthRecord.objects.create(organization=self.organization, sow=self.sow, title='Check')
        response = self.client.get(reverse('delete_health_record', args=[record.id]))
        self.assertEqual(response.status_code, 405)


class FinanceViewTest(ViewTestBase):
    def test_add_expense(self):
        response = self.client.post(reverse('finance_dashboard'), {
            'action': 'expense', 'expense_date': today().isoformat(), 'expense_category': 'feed', 'amount': '42.50',
        }, follow=True)
        self.assertEqual(ExpenseRecord.objects.get().amount, Decimal('42.50'))
        self.assertIn('Expense recorded.', self.messages_of(response))

    def test_add_income(self):
        response = self.client.post(reverse('finance_dashboard'), {
            'action': 'income', 'income_date': today().isoformat(), 'income_type': 'piglet_sale',
            'quantity': '5', 'price_per_unit': '60',
        }, follow=True)
        self.assertEqual(IncomeRecord.objects.get().total_amount, Decimal('300.00'))
        self.assertIn('Income recorded.', self.messages_of(response))

    def test_soft_delete_expense(self):
        expense = ExpenseRecord.objects.create(organization=self.organization, amount=Decimal('10'))
        self.client.post(reverse('delete_expense', args=[expense.id]))
        expense.refresh_from_db()
        self.assertTrue(expense.is_deleted)
        response = self.client.get(reverse('finance_dashboard'))
        self.assertEqual(response.context['total_expense'], Decimal('0'))

    def test_budget_crud(self):
        response = self.client.post(reverse('budget_list'), {
            'budget_name': '2025', 'start_date': '2025-01-01', 'end_date': '2025-12-31',
            'feed_budget': '500', 'veterinary_budget': '0', 'facilities_budget': '0', 'utilities_budget': '0',
            'other_budget': '0', 'revenue_target': '0', 'status': 'active',
        })
        budget = Budget.objects.get()
        self.assertRedirects(response, reverse('budget_detail', args=[budget.id]))
        self.assertEqual(self.client.get(reverse('budget_detail', args=[budget.id])).status_code, 200)
        self.client.post(reverse('delete_budget', args=[budget.id]))
        self.assertFalse(Budget.objects.exists())

    def test_budget_end_before_start(self):
        self.client.post(reverse('budget_list'), {
            'budget_name': 'Bad', 'start_date': '2025-12-31', 'end_date': '2025-01-01',
            'feed_budget': '0', 'veterinary_budget': '0', 'facilities_budget': '0', 'utilities_budget': '0',
            'other_budget': '0', 'revenue_target': '0', 'status': 'active',
        })
        self.assertFalse(Budget.objects.exists())


class TransferViewTest(ViewTestBase):
    def setUp(self):
        super().setUp()
        self.buyer = User.objects.create_user('buyer', 'buyer@example.com', 'pass12345')
        self.buyer_farm = services.create_organization(self.buyer, 'Buyer Farm')

    def test_request_and_accept(self):
        response = self.client.post(reverse('request_transfer', args=['sow', self.sow.id]), {
            'to_user_email': 'buyer@example.com', 'message': 'She is yours',
        }, follow=True)
        self.assertIn('Transfer request sent to buyer@example.com.', self.messages_of(response))
        transfer = TransferRequest.objects.get()

        buyer_client = Client()
        buyer_client.force_login(self.buyer)
        response = buyer_client.get(reverse('transfer_list'))
        self.assertContains(response, 'Bella')
        buyer_client.post(reverse('accept_transfer', args=[transfer.id]))
        self.sow.refresh_from_db()
        self.assertEqual(self.sow.organization, self.buyer_farm)

    def test_cancel(self):
        transfer = services.request_transfer(self.sow, self.user, 'buyer@example.com')
        response = self.client.post(reverse('cancel_transfer', args=[transfer.id]), follow=True)
        self.assertIn('Transfer cancelled.', self.messages_of(response))

    def test_reject(self):
        transfer = services.request_transfer(self.sow, self.user, 'buyer@example.com')
        buyer_client = Client()
        buyer_client.force_login(self.buyer)
        response = buyer_client.post(reverse('reject_transfer', args=[transfer.id]), follow=True)
        self.assertIn('Transfer rejected.', [str(m) for m in response.context['messages']])


class SettingsViewTest(ViewTestBase):
    def test_update_settings(self):
        response = self.client.post(reverse('farm_settings'), {
            'farm_name': 'Renamed Farm', 'timezone': 'America/Chicago', 'weight_unit': 'lbs',
            'measurement_unit': 'feet', 'ear_notch_current_litter': '7',
        }, follow=True)
        self.assertIn('Settings updated.', self.messages_of(response))
        self.assertEqual(FarmSettings.for_organization(self.organization).weight_unit, 'lbs')

    def test_reset_ear_notch(self):
        FarmSettings.objects.filter(organization=self.organization).update(ear_notch_current_litter=9)
        response = self.client.post(reverse('reset_ear_notch'), follow=True)
        self.assertIn('Ear notch litter counter reset to 1.', self.messages_of(response))
        self.assertEqual(FarmSettings.for_organization(self.organization).ear_notch_current_litter, 1)

    def test_notification_preferences(self):
        response = self.client.post(reverse('notification_preferences'), {
            'push_enabled': 'on', 'email_enabled': 'on', 'notify_farrowing': 'on', 'timezone': 'UTC',
            'farrowing_reminder_days': '1, 7, 3', 'pregnancy_check_reminder_days': '1',
            'weaning_reminder_days': '3,1', 'vaccination_reminder_days': '7',
        }, follow=True)
        self.assertIn('Notification preferences saved.', self.messages_of(response))
        self.assertEqual(NotificationPreference.for_user(self.user).farrowing_reminder_days, '7,3,1')

    def test_notification_preferences_sms_needs_phone(self):
        response = self.client.post(reverse('notification_preferences'), {
            'sms_enabled': 'on', 'timezone': 'UTC', 'farrowing_reminder_days': '7',
            'pregnancy_check_reminder_days': '1', 'weaning_reminder_days': '1', 'vaccination_reminder_days': '1',
        })
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'A phone number is required for SMS notifications.')


class NotificationViewTest(ViewTestBase):
    def test_api_notifications(self):
        notifications.notify(self.user, 'tasks', 'Task due', 'Feed check')
        data = self.client.get(reverse('api_notifications')).json()
        self.assertEqual(data['unread_count'], 1)
        self.assertEqual(data['notifications'][0]['title'], 'Task due')

    def test_mark_read(self):
        n = notifications.notify(self.user, 'tasks', 'Task due', 'Feed check', link_url='/tasks/')
        response = self.client.post(reverse('mark_notification_read', args=[n.id]))
        self.assertRedirects(response, '/tasks/', fetch_redirect_response=False)
        n.refresh_from_db()
        self.assertTrue(n.is_read)

    def test_mark_all_read(self):
        notifications.notify(self.user, 'tasks', 'A', 'B')
        notifications.notify(self.user, 'farrowing', 'C', 'D')
        self.client.post(reverse('mark_all_notifications_read'))
        self.assertFalse(Notification.objects.filter(is_read=False).exists())


class CSVExportTest(ViewTestBase):
    def test_exports(self):
        for name, filename in [('export_sows', 'sows_export.csv'), ('export_boars', 'boars_export.csv'),
                               ('export_piglets', 'piglets_export.csv'), ('export_breeding', 'breeding_export.csv'),
                               ('export_expenses', 'expenses_export.csv')]:
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response['Content-Type'], 'text/csv')
            self.assertIn(filename, response['Content-Disposition'])

    def test_sow_export_scoped_to_farm(self):
        other_user = User.objects.create_user('other', 'other@example.com', 'pass12345')
        other_org = services.create_organization(other_user, 'Other Farm')
        Sow.objects.create(organization=other_org, ear_tag='X-1', breed='Duroc', birth_date=date(2023, 1, 1))
        content = self.client.get(reverse('export_sows')).content.decode()
        self.assertIn('S-1', content)
        self.assertNotIn('X-1', content)
