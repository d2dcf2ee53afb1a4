"""
Normalization and validation of submitted catalog forms.

Every function here is pure: it takes the raw submitted values (strings,
lists of strings, or missing keys) and returns a ``CleanedForm`` holding
the trimmed values to echo back into the form, the typed values ready to
be stored, and a list of per-field ``ValidationError`` entries.

Escaping free text for HTML is left to the template engine.
"""

import re
from dataclasses import dataclass, field
from datetime import date

NAME_MAX_LENGTH = 100
ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
INSTANCE_STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")
DEFAULT_STATUS = "Maintenance"


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


@dataclass
class CleanedForm:
    values: dict
    data: dict
    errors: list = field(default_factory=list)

    @property
    def is_valid(self):
        return not self.errors


def clean_text(value):
    """Returns the value as a string with surrounding whitespace removed."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        # A repeated single-valued field keeps its first submission
        value = value[0] if value else ""
    return str(value).strip()


def parse_date(value):
    """Parses an ISO YYYY-MM-DD string, raising ValueError when it is not one."""
    if not ISO_DATE.fullmatch(value):
        raise ValueError(f"not an ISO date: {value!r}")
    return date.fromisoformat(value)


def as_id_list(value):
    """Coerces a missing, scalar or repeated selection into a list of identifiers."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [item for item in (clean_text(v) for v in value) if item]


def _require(cleaned, name, message):
    if not cleaned.values[name]:
        cleaned.errors.append(ValidationError(name, message))
        return False
    return True


def _optional_date(cleaned, name):
    raw = cleaned.values[name]
    if not raw:
        cleaned.data[name] = None
        return
    try:
        cleaned.data[name] = parse_date(raw)
    except ValueError:
        cleaned.data[name] = None
        cleaned.errors.append(ValidationError(name, "Invalid date"))


def validate_author(form):
    names = {"first_name": "First name", "family_name": "Family name"}
    values = {key: clean_text(form.get(key))
              for key in ("first_name", "family_name", "date_of_birth", "date_of_death")}
    cleaned = CleanedForm(values=values, data={})

    for key, label in names.items():
        if not _require(cleaned, key, f"{label} must be specified."):
            continue
        if not values[key].isalnum():
            cleaned.errors.append(ValidationError(key, f"{label} has non-alphanumeric characters."))
        elif len(values[key]) > NAME_MAX_LENGTH:
            cleaned.errors.append(
                ValidationError(key, f"{label} must be at most {NAME_MAX_LENGTH} characters."))
        cleaned.data[key] = values[key]

    _optional_date(cleaned, "date_of_birth")
    _optional_date(cleaned, "date_of_death")

    birth, death = cleaned.data["date_of_birth"], cleaned.data["date_of_death"]
    if birth and death and death < birth:
        cleaned.errors.append(
            ValidationError("date_of_death", "Date of death cannot be before birth date."))
    return cleaned


def validate_genre(form):
    cleaned = CleanedForm(values={"name": clean_text(form.get("name"))}, data={})
    if _require(cleaned, "name", "Genre name required"):
        cleaned.data["name"] = cleaned.values["name"]
    return cleaned


def validate_book(form):
    """Validates a book form; author and genre references are only checked for shape."""
    values = {key: clean_text(form.get(key)) for key in ("title", "author", "summary", "isbn")}
    values["genre"] = as_id_list(form.get("genre"))
    cleaned = CleanedForm(values=values, data={"genre": list(values["genre"])})

    messages = {
        "title": "Title must not be empty.",
        "author": "Author must not be empty.",
        "summary": "Summary must not be empty.",
        "isbn": "ISBN must not be empty",
    }
    for key, message in messages.items():
        if _require(cleaned, key, message):
            cleaned.data[key] = values[key]
    return cleaned


def validate_book_instance(form):
    values = {key: clean_text(form.get(key)) for key in ("book", "imprint", "status", "due_back")}
    cleaned = CleanedForm(values=values, data={})

    if _require(cleaned, "book", "Book must be specified"):
        cleaned.data["book"] = values["book"]
    if _require(cleaned, "imprint", "Imprint must be specified"):
        cleaned.data["imprint"] = values["imprint"]

    status = values["status"] or DEFAULT_STATUS
    if status not in INSTANCE_STATUSES:
        cleaned.errors.append(ValidationError("status", "Invalid status"))
    cleaned.data["status"] = status

    _optional_date(cleaned, "due_back")
    return cleaned
