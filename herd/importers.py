import logging
import re
from datetime import datetime

import pandas as pd
from django.db import DatabaseError, IntegrityError, transaction

from .exceptions import WorkflowError
from .models import Sow

logger = logging.getLogger(__name__)

IMPORT_COLUMNS = ['ear_tag', 'name', 'birth_date', 'breed', 'status', 'right_ear_notch',
                  'left_ear_notch', 'registration_number', 'notes']
REQUIRED_COLUMNS = ['birth_date', 'breed']
VALID_STATUSES = ['active', 'culled', 'sold']
# Largest value an integer column holds
MAX_EAR_NOTCH = 2**31 - 1
EXAMPLE_ROW = ['S-001', 'Bella', '2023-01-15', 'Yorkshire', 'active', '1', '1', 'REG-12345', 'Purchased from local breeder']

# Excel cells read as text keep a midnight time part
DATE_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})(?:[ T]00:00:00)?$')


def read_spreadsheet(uploaded_file):
    """Load an uploaded .csv or .xlsx file into a list of row dicts.

    Every cell is read as text; blank cells become empty strings and header
    names are normalised to lower_snake_case.
    """
    name = uploaded_file.name.lower()
    try:
        if name.endswith('.csv'):
            df = pd.read_csv(uploaded_file, dtype=str, keep_default_na=False)
        elif name.endswith('.xlsx'):
            df = pd.read_excel(uploaded_file, dtype=str, keep_default_na=False, engine='openpyxl')
        elif name.endswith('.xls'):
            raise WorkflowError('Legacy .xls workbooks are not supported. Save the file as .xlsx or .csv')
        else:
            raise WorkflowError('Please upload a .csv or .xlsx file')
    except WorkflowError:
        raise
    except Exception as e:
        logger.warning("Could not parse import file %s: %s", uploaded_file.name, e)
        raise WorkflowError(f'Could not read the file: {e}')

    df.columns = [str(c).strip().lower().replace(' ', '_') for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise WorkflowError(f"Missing required columns: {', '.join(missing)}")
    df = df.fillna('')

    rows = []
    for record in df.to_dict(orient='records'):
        row = {column: str(record.get(column, '')).strip() for column in IMPORT_COLUMNS}
        if any(row.values()):
            rows.append(row)
    if not rows:
        raise WorkflowError('The file has no data rows')
    return rows


def parse_birth_date(value):
    match = DATE_RE.match(value)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), '%Y-%m-%d').date()
    except ValueError:
        return None


def validate_rows(organization, rows):
    """Check each row and return a list of ``{'row', 'data', 'errors'}`` dicts.

    Row numbers count the header as row 1. Ear tags are compared
    case-insensitively against the herd and against earlier rows.
    """
    existing = {tag.lower() for tag in Sow.objects.filter(organization=organization).values_list('ear_tag', flat=True)}
    seen = {}
    results = []
    for index, row in enumerate(rows):
        row_number = index + 2
        errors = []

        if not row['birth_date']:
            errors.append('Birth date is required')
        elif parse_birth_date(row['birth_date']) is None:
            errors.append('Invalid birth date format (use YYYY-MM-DD)')

        if not row['breed']:
            errors.append('Breed is required')

        if row['status'] and row['status'] not in VALID_STATUSES:
            errors.append('Status must be: active, culled, or sold')

        tag = row['ear_tag'].lower()
        if tag:
            if tag in existing:
                errors.append(f'Ear tag "{row["ear_tag"]}" already exists in database')
            elif tag in seen:
                errors.append(f'Duplicate ear tag in file (row {seen[tag]})')
            else:
                seen[tag] = row_number

        for field, label in (('right_ear_notch', 'Right'), ('left_ear_notch', 'Left')):
            if not row[field]:
                continue
            if not (row[field].isascii() and row[field].isdigit()):
                errors.append(f'{label} ear notch must be a number')
            elif int(row[field]) > MAX_EAR_NOTCH:
                errors.append(f'{label} ear notch must be at most {MAX_EAR_NOTCH}')

        results.append({'row': row_number, 'data': row, 'errors': errors})
    return results


def _auto_tag_factory(organization, today):
    prefix = f"AUTO-{today:%Y%m%d}-"
    taken = set(Sow.objects.filter(organization=organization, ear_tag__startswith=prefix).values_list('ear_tag', flat=True))
    counter = 0

    def next_tag():
        nonlocal counter
        while True:
            counter += 1
            tag = f"{prefix}{counter:04d}"
            if tag not in taken:
                taken.add(tag)
                return tag

    return next_tag


def import_sows(organization, validated, today):
    """Insert valid rows one at a time and tally the outcome.

    Invalid rows and rows the database rejects count as failed. A row whose
    ear tag was taken after validation is skipped.
    """
    summary = {'successful': 0, 'failed': 0, 'skipped': 0, 'errors': []}
    next_tag = _auto_tag_factory(organization, today)

    for result in validated:
        if result['errors']:
            summary['failed'] += 1
            continue
        row = result['data']
        try:
            with transaction.atomic():
                Sow.objects.create(
                    organization=organization,
                    ear_tag=row['ear_tag'] or next_tag(),
                    name=row['name'],
                    birth_date=parse_birth_date(row['birth_date']),
                    breed=row['breed'],
                    status=row['status'] or 'active',
                    right_ear_notch=int(row['right_ear_notch']) if row['right_ear_notch'] else None,
                    left_ear_notch=int(row['left_ear_notch']) if row['left_ear_notch'] else None,
                    registration_number=row['registration_number'],
                    notes=row['notes'],
                )
            summary['successful'] += 1
        except IntegrityError:
            summary['skipped'] += 1
            summary['errors'].append(f"Row {result['row']}: ear tag already exists, skipped")
        except (DatabaseError, ValueError, OverflowError) as e:
            summary['failed'] += 1
            summary['errors'].append(f"Row {result['row']}: {e}")
            logger.warning("Sow import row %s failed: %s", result['row'], e)

    logger.info("Sow import for organization %s: %s", organization.id,
                {k: v for k, v in summary.items() if k != 'errors'})
    return summary
