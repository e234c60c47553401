import csv
from io import BytesIO

import pandas as pd
from django.http import HttpResponse

from .importers import IMPORT_COLUMNS, EXAMPLE_ROW
from .models import Sow, Boar, Piglet, BreedingAttempt, ExpenseRecord

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _csv_response(filename):
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response, csv.writer(response)


def export_sows_csv(organization):
    response, writer = _csv_response('sows_export.csv')
    writer.writerow(['Ear Tag', 'Name', 'Breed', 'Status', 'Birth Date', 'Age', 'Parity', 'Right Notch',
                     'Left Notch', 'Registration', 'Housing', 'Sire', 'Dam', 'Notes'])
    sows = Sow.objects.filter(organization=organization).select_related('housing_unit', 'sire', 'dam').order_by('ear_tag')
    for sow in sows:
        writer.writerow([
            sow.ear_tag, sow.name, sow.breed, sow.status, sow.birth_date, sow.display_age,
            sow.farrowing_count,
            sow.right_ear_notch if sow.right_ear_notch is not None else '',
            sow.left_ear_notch if sow.left_ear_notch is not None else '',
            sow.registration_number,
            sow.housing_unit.name if sow.housing_unit else '',
            sow.sire.display_name if sow.sire else sow.sire_name,
            sow.dam.display_name if sow.dam else sow.dam_name,
            sow.notes,
        ])
    return response


def export_boars_csv(organization):
    response, writer = _csv_response('boars_export.csv')
    writer.writerow(['Ear Tag', 'Name', 'Breed', 'Type', 'Status', 'Semen Straws', 'Supplier', 'Birth Date', 'Notes'])
    for boar in Boar.objects.filter(organization=organization):
        writer.writerow([
            boar.ear_tag, boar.name, boar.breed, boar.get_boar_type_display(), boar.status,
            boar.semen_straws if boar.semen_straws is not None else '',
            boar.supplier, boar.birth_date or '', boar.notes,
        ])
    return response


def export_piglets_csv(organization):
    response, writer = _csv_response('piglets_export.csv')
    writer.writerow(['Identifier', 'Dam', 'Farrowed', 'Right Notch', 'Left Notch', 'Sex', 'Status',
                     'Birth Weight', 'Weaning Weight', 'Weaned Date'])
    piglets = Piglet.objects.filter(organization=organization).select_related('farrowing__sow')
    for p in piglets:
        writer.writerow([
            p.identifier, p.farrowing.sow.ear_tag, p.farrowing.actual_farrowing_date or '',
            p.right_ear_notch if p.right_ear_notch is not None else '',
            p.left_ear_notch if p.left_ear_notch is not None else '',
            p.sex, p.status, p.birth_weight or '', p.weaning_weight or '', p.weaned_date or '',
        ])
    return response


def export_breeding_csv(organization):
    response, writer = _csv_response('breeding_export.csv')
    writer.writerow(['Sow', 'Sire', 'Method', 'Breeding Date', 'Result', 'Check Date', 'Expected Farrowing', 'Notes'])
    attempts = BreedingAttempt.objects.filter(organization=organization).select_related('sow', 'boar')
    for a in attempts:
        writer.writerow([
            a.sow.ear_tag, a.sire_label, a.get_breeding_method_display(), a.breeding_date,
            a.get_result_display(), a.pregnancy_check_date or '', a.expected_farrowing_date, a.notes,
        ])
    return response


def export_expenses_csv(organization):
    response, writer = _csv_response('expenses_export.csv')
    writer.writerow(['Date', 'Category', 'Amount', 'Vendor', 'Description', 'Sow'])
    expenses = ExpenseRecord.objects.filter(organization=organization, is_deleted=False).select_related('sow')
    for e in expenses:
        writer.writerow([
            e.expense_date, e.get_expense_category_display(), e.amount, e.vendor, e.description,
            e.sow.ear_tag if e.sow else '',
        ])
    return response


def import_template(file_format):
    if file_format == 'xlsx':
        buffer = BytesIO()
        pd.DataFrame([EXAMPLE_ROW], columns=IMPORT_COLUMNS).to_excel(
            buffer, index=False, sheet_name='Sows', engine='openpyxl'
        )
        response = HttpResponse(buffer.getvalue(), content_type=XLSX_CONTENT_TYPE)
        response['Content-Disposition'] = 'attachment; filename="sow_import_template.xlsx"'
        return response

    response, writer = _csv_response('sow_import_template.csv')
    writer.writerow(IMPORT_COLUMNS)
    writer.writerow(EXAMPLE_ROW)
    return response
