# member_import.py
"""
member_import.py - Spreadsheet rows -> scored EmployeeRecords

Validates a batch of raw rows (column name -> text), reports one error string
per malformed row, and scores the valid rows through the risk engine. A bad
row never aborts the batch.

Row numbering in messages assumes a header row: the first data row is "Row 2".

Check order per row (first failure wins):
    header aliases -> required fields -> numeric fields -> gender, smoking,
    exercise, family history, stress -> blood pressure -> score
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from config import DEFAULT_DEPARTMENT, EMAIL_DOMAIN, IMPORT_WARNING_PREVIEW
from input_normalization import (
    as_int_if_integral,
    clean_text,
    map_row_headers,
    parse_blood_pressure,
    parse_enum,
    parse_number,
    parse_past_diseases,
    slugify,
)
from member_models import EmployeeInput, ImportResult
from risk_engine import build_record
from wellness_constants import ENUM_IMPORT_FIELDS, NUMERIC_IMPORT_FIELDS, REQUIRED_IMPORT_FIELDS

logger = logging.getLogger(__name__)

HEADER_ROW_OFFSET = 1

_FIELD_LABELS = {
    "full_name": "full name",
    "gender": "gender",
    "age": "age",
    "bmi": "bmi",
    "blood_pressure": "blood pressure",
    "fasting_glucose": "fasting glucose",
    "cholesterol": "cholesterol",
    "smoking_status": "smoking status",
    "exercise_frequency": "exercise frequency",
    "family_history": "family history",
    "stress_level": "stress level",
}


class RowValidationError(ValueError):
    """One row failed validation; the message is user-facing."""


def _row_label(index: int) -> str:
    return f"Row {index + 1 + HEADER_ROW_OFFSET}"


def parse_member_row(row: dict[str, Any], index: int) -> EmployeeInput:
    """
    Validate one raw row. Raises RowValidationError with a single message on the
    first failing check.
    """
    label = _row_label(index)
    fields = map_row_headers(row)

    missing = [f for f in REQUIRED_IMPORT_FIELDS if not clean_text(fields.get(f))]
    if missing:
        names = ", ".join(_FIELD_LABELS[f] for f in missing)
        raise RowValidationError(f"{label}: missing required field(s): {names}")

    numbers: dict[str, float] = {}
    bad_numbers: list[str] = []
    for f in NUMERIC_IMPORT_FIELDS:
        value = parse_number(fields.get(f))
        if value is None:
            bad_numbers.append(_FIELD_LABELS[f])
        else:
            numbers[f] = value
    weight: Optional[float] = None
    if clean_text(fields.get("weight")):
        weight = parse_number(fields.get("weight"))
        if weight is None:
            bad_numbers.append("weight")
    if bad_numbers:
        raise RowValidationError(f"{label}: invalid numeric value(s) for {', '.join(bad_numbers)}")

    enums: dict[str, str] = {}
    for f, table in ENUM_IMPORT_FIELDS:
        raw = clean_text(fields.get(f))
        parsed = parse_enum(table, raw)
        if parsed is None:
            raise RowValidationError(f'{label}: invalid {table} value "{raw}"')
        enums[f] = parsed

    raw_bp = clean_text(fields.get("blood_pressure"))
    reading = parse_blood_pressure(raw_bp)
    if reading is None:
        raise RowValidationError(f'{label}: invalid blood pressure value "{raw_bp}" (expected systolic/diastolic)')
    systolic, diastolic = reading

    full_name = clean_text(fields.get("full_name"))
    email = clean_text(fields.get("email")) or f"{slugify(full_name) or f'imported-{index + 1}'}@{EMAIL_DOMAIN}"

    return EmployeeInput(
        full_name=full_name,
        email=email,
        department=clean_text(fields.get("department")) or DEFAULT_DEPARTMENT,
        gender=enums["gender"],
        age=as_int_if_integral(numbers["age"]),
        bmi=numbers["bmi"],
        blood_pressure=f"{systolic}/{diastolic}",
        fasting_glucose=numbers["fasting_glucose"],
        cholesterol=numbers["cholesterol"],
        smoking_status=enums["smoking_status"],
        exercise_frequency=enums["exercise_frequency"],
        family_history=enums["family_history"],
        stress_level=enums["stress_level"],
        past_diseases=parse_past_diseases(fields.get("past_diseases")),
        weight=weight,
    )


def parse_imported_members(rows: Sequence[dict[str, Any]]) -> ImportResult:
    """Validate and score every row; collect one error per bad row."""
    result = ImportResult()
    for index, row in enumerate(rows):
        try:
            data = parse_member_row(dict(row), index)
        except RowValidationError as e:
            result.errors.append(str(e))
            continue
        result.members.append(build_record(f"imported-{index + 1}", data))

    logger.info("Imported %d member(s); %d row(s) rejected", len(result.members), len(result.errors))
    return result


def read_spreadsheet_rows(path: Path) -> Optional[list[dict[str, str]]]:
    """
    Read the first sheet of an .xlsx/.xls workbook, or a .csv file, as text rows.

    Returns None when the workbook has no sheets at all.

    Raises:
        FileNotFoundError: the file does not exist.
        ValueError: unsupported extension.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    ext = path.suffix.lower()
    if ext in (".xlsx", ".xls"):
        with pd.ExcelFile(path, engine="openpyxl" if ext == ".xlsx" else None) as xls:
            if not xls.sheet_names:
                return None
            df = pd.read_excel(xls, sheet_name=xls.sheet_names[0], dtype=str, keep_default_na=False)
    elif ext == ".csv":
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
        except pd.errors.EmptyDataError:
            return []
    else:
        raise ValueError(f"Unsupported file type: {ext}")

    logger.info("Loaded %d row(s) from %s", len(df), path)
    return df.to_dict(orient="records")


def import_members_from_spreadsheet(path: Path) -> ImportResult:
    rows = read_spreadsheet_rows(path)
    if rows is None:
        return ImportResult(errors=["The uploaded file has no sheets."])
    if not rows:
        return ImportResult(errors=["No rows found in the first sheet."])
    return parse_imported_members(rows)


def summarize_import_errors(errors: Sequence[str], limit: int = IMPORT_WARNING_PREVIEW) -> list[str]:
    """First `limit` messages, plus a "+N more warnings" line when truncated."""
    shown = list(errors[:limit])
    hidden = len(errors) - len(shown)
    if hidden > 0:
        shown.append(f"+{hidden} more warnings")
    return shown
