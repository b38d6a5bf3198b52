"""Person record loading and date handling utilities."""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
import json
import logging
from pathlib import Path
import re

from ged4py import GedcomReader

from models import GENDERS, Person, PersonId

logger = logging.getLogger("famforest.parsing")


# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

_QUALIFIER_RE = re.compile(
    r"^(ABOUT|ABT\.?|BEFORE|BEF\.?|AFTER|AFT\.?|EST\.?|CAL\.?|FROM|TO|BET\.?|CIRCA|CA\.?|AROUND):?\s*",
    flags=re.IGNORECASE,
)

# Field order per pattern: y year, m month number, M month name, d day
_DATE_PATTERNS = [
    # 1975-01-01, 1746-00-00, 1975-01-01T00:00:00.000Z
    (re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$"), "ymd"),
    (re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$"), "ymd"),
    (re.compile(r"^(\d{4})-(\d{1,2})$"), "ym"),
    # 25 NOV 1954, 02 May1838, 11 Aug. 1968
    (re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?,?\s*(\d{4})$"), "dMy"),
    # April 17, 1850, SEPT. 17,1910, Oct.12,1929
    (re.compile(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$"), "Mdy"),
    # NOV 1954, May, 1837
    (re.compile(r"^([A-Za-z]+)\.?,?\s*(\d{4})$"), "My"),
    # 01-27-1920, 05/15/1923, 04 05 1911
    (re.compile(r"^(\d{1,2})[-/\s](\d{1,2})[-/\s](\d{4})$"), "mdy"),
    (re.compile(r"^(\d{4})$"), "y"),
]


def parse_birth_date(value) -> date | None:
    """
    Parse a birth date into a date object.
    Returns None for missing, malformed or impossible dates.

    Accepts ISO dates and timestamps as produced by web clients, plus the
    free-form phrases found in GEDCOM exports ("ABT 1905", "JAN 1905",
    "(April 17, 1850)", "(1789?)"). Missing month or day default to 1.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    s = str(value).strip().strip("()").rstrip("?")
    s = _QUALIFIER_RE.sub("", s).strip()
    if not s:
        return None

    for pattern, order in _DATE_PATTERNS:
        match = pattern.match(s)
        if not match:
            continue

        parts = {"y": None, "m": 1, "d": 1}
        for key, raw in zip(order, match.groups()):
            if key == "M":
                month = MONTH_MAP.get(raw.upper().rstrip("."))
                if month is None:
                    break
                parts["m"] = month
            else:
                parts[key] = int(raw)
        else:
            # "00" month or day means unknown
            try:
                return date(parts["y"], parts["m"] or 1, parts["d"] or 1)
            except ValueError:
                return None

    return None


def parse_date_string(value) -> str | None:
    """Parse a date into ISO format (YYYY-MM-DD), or None if it cannot be parsed."""
    parsed = parse_birth_date(value)
    return parsed.isoformat() if parsed else None


def birth_sort_key(person: Person) -> tuple:
    """Chronological sort key; undated people sort after every dated one."""
    born = parse_birth_date(person.birth_date)
    if born is None:
        return (1, date.max)
    return (0, born)


# ============================================================================
# Record coercion
# ============================================================================


def _clean_ref(value) -> PersonId | None:
    if value is None:
        return None
    s = str(value).strip()
    return PersonId(s) if s else None


def _normalize_gender(value) -> str:
    g = str(value or "").strip().lower()
    if g in ("m", "male"):
        return "male"
    if g in ("f", "female"):
        return "female"
    return g if g in GENDERS else "other"


def _pick(record: Mapping, *keys):
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def person_from_record(record: Mapping) -> Person | None:
    """
    Build a Person from a loosely-typed record (camelCase or snake_case keys).
    Returns None when the record has no usable id. Unknown fields are ignored.
    """
    if not isinstance(record, Mapping):
        raise TypeError(f"Person record must be a mapping, got {type(record).__name__}")

    person_id = _clean_ref(record.get("id"))
    if person_id is None:
        return None

    alive = _pick(record, "alive", "isAlive")
    name = _pick(record, "name")

    return Person(
        id=person_id,
        name=str(name).strip() if name and str(name).strip() else "Unknown",
        gender=_normalize_gender(record.get("gender")),
        birth_date=parse_date_string(_pick(record, "birthDate", "birth_date")),
        alive=alive is not False,
        father_id=_clean_ref(_pick(record, "fatherId", "father_id")),
        mother_id=_clean_ref(_pick(record, "motherId", "mother_id")),
        spouse_id=_clean_ref(_pick(record, "spouseId", "spouse_id")),
        image_url=_pick(record, "imageUrl", "image_url"),
    )


def normalize_records(records: Iterable) -> list[Person]:
    """Coerce records into people, skipping records without an id and repeated ids."""
    people: list[Person] = []
    seen: set[str] = set()

    for index, record in enumerate(records):
        person = record if isinstance(record, Person) else person_from_record(record)
        if person is None:
            logger.warning("Skipping record %d: missing id", index)
            continue
        if person.id in seen:
            logger.warning("Skipping record %d: duplicate id %r", index, person.id)
            continue
        seen.add(person.id)
        people.append(person)

    return people


def load_people(filepath: Path) -> list[Person]:
    """Load people from a JSON array, or an object holding a "people" array."""
    with open(filepath, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, Mapping):
        data = data.get("people")
    if not isinstance(data, list):
        raise ValueError(f"{filepath}: expected a JSON array of person records")

    return normalize_records(data)


# ============================================================================
# GEDCOM import
# ============================================================================


def extract_person_id(xref_id: str) -> PersonId:
    """Turn a GEDCOM xref like '@I123@' into a person id ('I123')."""
    return PersonId(xref_id.strip().strip("@"))


def extract_name(indi) -> str:
    """Extract a display name from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return "Unknown"

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_rec.value, tuple):
        parts = [p for p in name_rec.value if p]
        return " ".join(parts) if parts else "Unknown"

    # Fallback: string format "Given /Surname/"
    return " ".join(str(name_rec.value).replace("/", " ").split()) or "Unknown"


def extract_event_date(indi, tag: str) -> str | None:
    """Extract the date of an event tag (BIRT, DEAT) as a string."""
    event = indi.sub_tag(tag)
    if event is None:
        return None

    date_rec = event.sub_tag("DATE")
    # ged4py may return DateValue objects
    if date_rec and date_rec.value:
        return str(date_rec.value)
    return None


def read_gedcom(filepath: Path) -> list[Person]:
    """
    Read people from a GEDCOM file.

    HUSB/WIFE of a family become the father/mother of each CHIL, and the
    couple point at each other as spouses (a person's first family wins).
    Non-standard tags are ignored.
    """
    reader = GedcomReader(str(filepath))

    records: dict[str, dict] = {}
    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue

        sex_rec = rec.sub_tag("SEX")
        records[extract_person_id(rec.xref_id)] = {
            "id": extract_person_id(rec.xref_id),
            "name": extract_name(rec),
            "gender": sex_rec.value if sex_rec else None,
            "birthDate": extract_event_date(rec, "BIRT"),
            "alive": rec.sub_tag("DEAT") is None,
        }

    for rec in reader.records0("FAM"):
        husb = rec.sub_tag("HUSB")
        wife = rec.sub_tag("WIFE")

        father_id = extract_person_id(husb.xref_id) if husb and husb.xref_id else None
        mother_id = extract_person_id(wife.xref_id) if wife and wife.xref_id else None

        if father_id in records and mother_id in records:
            records[father_id].setdefault("spouseId", mother_id)
            records[mother_id].setdefault("spouseId", father_id)

        for child in rec.sub_tags("CHIL"):
            if not child.xref_id:
                continue
            child_rec = records.get(extract_person_id(child.xref_id))
            if child_rec is None:
                continue
            if father_id:
                child_rec.setdefault("fatherId", father_id)
            if mother_id:
                child_rec.setdefault("motherId", mother_id)

    return normalize_records(records.values())
