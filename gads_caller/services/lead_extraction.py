"""
Lead field extraction - pull a name and phone out of lead webhook payloads.

Lead form providers (Google Ads lead forms, WordPress form plugins, Zapier
relays) all shape their payloads differently, so this works on plain
mappings and tries each known shape in priority order:

1. Google Ads user_column_data
2. Flat top-level keys
3. Nested form_fields object
4. Bracket-style form_fields[...] keys
5. first_name + last_name
"""
import logging
from collections.abc import Mapping
from typing import Any

from gads_caller.schemas.lead import LeadFields

logger = logging.getLogger(__name__)

FLAT_NAME_KEYS = (
    "name",
    "full_name",
    "fullname",
    "your-name",
    "yourname",
    "first_name",
    "last_name",
    "lastname",
)
FLAT_PHONE_KEYS = ("phone", "phone_number", "phonenumber", "tel", "your-phone", "yourphone")

# Split-name keys resolve to the combined first/last name, not the single part
SPLIT_NAME_KEYS = ("first_name", "last_name", "lastname")

FORM_FIELDS_NAME_KEYS = ("name", "full_name", "fullname")
FORM_FIELDS_PHONE_KEYS = ("phone", "phone_number", "tel")

BRACKET_NAME_KEYS = ("form_fields[name]",)
BRACKET_PHONE_KEYS = ("form_fields[phone]", "form_fields[phone_number]")


def _as_text(value: Any) -> str:
    if value is None or value is False:
        return ""
    return str(value).strip()


def _get_value(payload: Mapping, key: str) -> str:
    """Trimmed string value of a top-level key; lists contribute their first element."""
    raw = payload.get(key)
    if isinstance(raw, list):
        return _as_text(raw[0]) if raw else ""
    if isinstance(raw, Mapping):
        return ""
    return _as_text(raw)


def _first_value(payload: Mapping, keys: tuple) -> str:
    for key in keys:
        value = _get_value(payload, key)
        if value:
            return value
    return ""


def _combined_name(payload: Mapping) -> str:
    first = _get_value(payload, "first_name")
    last = _get_value(payload, "last_name") or _get_value(payload, "lastname")
    return " ".join(part for part in (first, last) if part).strip()


def _from_user_column_data(payload: Mapping) -> tuple[str, str]:
    columns = payload.get("user_column_data")
    if not isinstance(columns, list):
        return "", ""

    name = phone = ""
    for column in columns:
        if not isinstance(column, Mapping):
            continue
        column_id = _as_text(column.get("column_id")).lower()
        value = _as_text(column.get("string_value"))
        if not value:
            string_values = column.get("stringValues")
            if isinstance(string_values, list):
                value = " ".join(str(v) for v in string_values).strip()
        if not value:
            continue
        if not name and ("name" in column_id or column_id == "full_name"):
            name = value
        if not phone and "phone" in column_id:
            phone = value
    return name, phone


def _from_flat_keys(payload: Mapping) -> tuple[str, str]:
    name = ""
    for key in FLAT_NAME_KEYS:
        if _get_value(payload, key):
            name = _combined_name(payload) if key in SPLIT_NAME_KEYS else _get_value(payload, key)
            break
    return name, _first_value(payload, FLAT_PHONE_KEYS)


def _from_form_fields(payload: Mapping) -> tuple[str, str]:
    form_fields = payload.get("form_fields")
    if not isinstance(form_fields, Mapping):
        return "", ""
    return (
        _first_value(form_fields, FORM_FIELDS_NAME_KEYS),
        _first_value(form_fields, FORM_FIELDS_PHONE_KEYS),
    )


def _from_bracket_keys(payload: Mapping) -> tuple[str, str]:
    return _first_value(payload, BRACKET_NAME_KEYS), _first_value(payload, BRACKET_PHONE_KEYS)


def extract_lead_fields(payload: Any) -> LeadFields:
    """
    Extract the lead's name and phone. The first non-empty match per field
    wins; missing fields come back as empty strings, never None.
    """
    if not isinstance(payload, Mapping):
        return LeadFields()

    name = phone = ""
    for source in (_from_user_column_data, _from_flat_keys, _from_form_fields, _from_bracket_keys):
        found_name, found_phone = source(payload)
        name = name or found_name
        phone = phone or found_phone
        if name and phone:
            break

    if not name:
        name = _combined_name(payload)

    return LeadFields(name=name.strip(), phone=phone.strip())
