# Copyright 2026 Justin Cook
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Turns raw backend records into display records.

Everything here is pure: no I/O, and the raw record is never mutated.
Formatting problems degrade to best-effort text, they never raise.
"""

import re
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from academic_cv.categories import (
    CategorySpec, FieldSpec, get_category,
    DATE, YEAR, CURRENCY, FLAG,
)
from academic_cv.config import DEFAULT_INSTITUTION
from academic_cv.models import DisplayRecord, Subject

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
CURRENCY_GLYPH = "₹"

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_BARE_YEAR = re.compile(r"^\d{4}$")

# Tried in order after the ISO prefix check
_DATE_FORMATS = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %Y",
    "%b %Y",
    "%Y-%m",
)

_TRUTHY = {"1", "true", "yes", "y"}


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def pick_first(raw: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """Returns the first non-null, non-empty value among the candidate keys, else None."""
    for key in candidates:
        value = raw.get(key)
        if not is_empty(value):
            return value
    return None


def _as_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def show_value(value: Any, fallback: str = NOT_AVAILABLE) -> str:
    """The shared sentinel rule: empty/None becomes `fallback`, anything else is stringified."""
    if is_empty(value):
        return fallback
    return _as_text(value)


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    match = _ISO_PREFIX.match(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: Any, fallback: str = NOT_AVAILABLE) -> str:
    """
    Renders a date as dd/mm/yyyy.
    Unparseable input already shaped dd/mm/yyyy passes through; anything else
    is returned as text.
    """
    if is_empty(value):
        return fallback
    parsed = parse_date(value)
    if parsed:
        return parsed.strftime("%d/%m/%Y")
    # Covers dd/mm/yyyy strings that do not parse (e.g. 31/02/2023) unchanged
    return _as_text(value)


def format_year(value: Any, fallback: str = NOT_AVAILABLE) -> str:
    if is_empty(value):
        return fallback
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    text = _as_text(value)
    if _BARE_YEAR.match(text):
        return text
    parsed = parse_date(value)
    if parsed:
        return str(parsed.year)
    return text


def _to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None
    if isinstance(value, str):
        cleaned = value.replace(CURRENCY_GLYPH, "").replace(",", "").replace("Rs.", "").strip()
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None
    return None


def format_currency(value: Any, fallback: str = NOT_AVAILABLE) -> str:
    """50000 -> '₹ 50,000'. Non-numeric input renders the fallback."""
    amount = _to_decimal(value)
    if amount is None:
        return fallback
    if amount == amount.to_integral_value():
        return f"{CURRENCY_GLYPH} {int(amount):,}"
    return f"{CURRENCY_GLYPH} {amount:,.2f}"


def format_flag(value: Any) -> str:
    if isinstance(value, str):
        return "Yes" if value.strip().lower() in _TRUTHY else "No"
    return "Yes" if value else "No"


def _missing_value(spec: FieldSpec, raw: Mapping[str, Any], fallback: str) -> str:
    if spec.missing is None:
        return fallback
    if callable(spec.missing):
        replacement = spec.missing(raw)
        return fallback if replacement is None else replacement
    return spec.missing


def normalize_field(spec: FieldSpec, raw: Mapping[str, Any], fallback: str = NOT_AVAILABLE) -> str:
    value = pick_first(raw, spec.candidates)

    if value is None:
        return _missing_value(spec, raw, fallback)
    if spec.kind == FLAG:
        return format_flag(value)

    if spec.kind == DATE:
        return format_date(value, fallback)
    if spec.kind == YEAR:
        return format_year(value, fallback)
    if spec.kind == CURRENCY:
        return format_currency(value, fallback)
    # TEXT and BADGE
    return show_value(value, fallback)


def normalize(
    category: Union[str, CategorySpec],
    raw: Mapping[str, Any],
    fallback: str = NOT_AVAILABLE,
) -> DisplayRecord:
    """
    Resolves every attribute of the category's display schema from a raw record.
    Every attribute is present in the result, in schema order.
    """
    spec = get_category(category) if isinstance(category, str) else category
    return {f.name: normalize_field(f, raw, fallback) for f in spec.fields}


def normalize_records(
    category: Union[str, CategorySpec],
    raws: Iterable[Any],
    fallback: str = NOT_AVAILABLE,
) -> Tuple[DisplayRecord, ...]:
    """Normalizes a sequence in source order, skipping entries that are not records."""
    spec = get_category(category) if isinstance(category, str) else category
    records: List[DisplayRecord] = []
    for raw in raws or ():
        if not isinstance(raw, Mapping):
            logger.debug(f"Skipping non-record entry in {spec.id}: {raw!r}")
            continue
        records.append(normalize(spec, raw, fallback))
    return tuple(records)


def _nested_name(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("name")
    return value


def normalize_subject(raw_profile: Mapping[str, Any], institution: str = DEFAULT_INSTITUTION) -> Optional[Subject]:
    """
    Builds the Subject from a profile payload.

    Accepts the profile service envelope ({teacherInfo, designation, department})
    or a flat personal-info mapping. Returns None when no name can be found.
    """
    if not isinstance(raw_profile, Mapping):
        return None

    info = raw_profile.get("teacherInfo")
    if not isinstance(info, Mapping):
        info = raw_profile

    name = pick_first(info, ("name",))
    if name is None:
        parts = [info.get(k) for k in ("fname", "mname", "lname")]
        name = " ".join(str(p).strip() for p in parts if not is_empty(p))
        honorific = info.get("Abbri")
        if name and not is_empty(honorific):
            name = f"{str(honorific).strip()} {name}"
    if not name:
        return None

    def text(*keys, source=info) -> str:
        return show_value(pick_first(source, keys), "")

    designation = _nested_name(raw_profile.get("designation")) or pick_first(info, ("designation", "DesignationName"))
    department = _nested_name(raw_profile.get("department")) or pick_first(info, ("department", "DepartmentName"))

    return Subject(
        name=str(name).strip(),
        designation=show_value(designation, ""),
        department=show_value(department, ""),
        faculty=text("faculty", "FacultyName"),
        institution=text("institution") or institution,
        email=text("email_id", "email"),
        phone=text("phone_no", "phone"),
        address=text("address", "Address"),
        date_of_birth=format_date(pick_first(info, ("DOB", "dob", "dateOfBirth", "date_of_birth")), ""),
        nationality=text("nationality"),
        orcid=text("ORCHID_ID", "orcid"),
        google_scholar=text("googleScholar", "google_scholar"),
        research_gate=text("researchGate", "research_gate"),
        profile_image=pick_first(info, ("ProfileImage", "profileImage")),
    )
