# utils/contacts.py - search/update helpers shared by the client runners
import re
from typing import Any, Dict, List, Optional

from lundimatin_client import is_blank

SEARCHABLE_FIELDS = ("nom", "adresse", "ville", "tel", "email", "code_postal")
UPDATABLE_FIELDS = ("nom", "tel", "email", "adresse", "code_postal", "ville")
DEFAULT_SORT = "-nom"

_DIGITS = re.compile(r"\A\d+\Z", re.ASCII)


def build_search_params(sort: Optional[str] = None, limit=None) -> Dict[str, Any]:
    """Query parameters for ``GET clients``: field list, sort spec and optional limit."""
    params: Dict[str, Any] = {
        "fields": ",".join(SEARCHABLE_FIELDS),
        "sort": sort if not is_blank(sort) else DEFAULT_SORT,
    }
    if not is_blank(limit):
        params["limit"] = limit
    return params


def extract_contacts(envelope: Any) -> List[Dict[str, Any]]:
    if not isinstance(envelope, dict):
        return []
    payload = envelope.get("datas") or envelope.get("data") or []
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        return []
    return [contact for contact in payload if isinstance(contact, dict)]


def extract_warnings(envelope: Any) -> List[Any]:
    if not isinstance(envelope, dict):
        return []
    warnings = envelope.get("warnings") or []
    return warnings if isinstance(warnings, list) else [warnings]


def filter_contacts(contacts: List[Dict[str, Any]], search_term: Optional[str]) -> List[Dict[str, Any]]:
    # the API has no free-text search, so matching happens on the listed payload
    if is_blank(search_term):
        return contacts
    needle = search_term.lower()
    return [
        contact for contact in contacts
        if any(needle in str(contact.get(field) or "").lower() for field in SEARCHABLE_FIELDS)
    ]


def build_update_params(form: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    form = form or {}
    return {field: form[field] for field in UPDATABLE_FIELDS if not is_blank(form.get(field))}


def validate_contact_params(form: Optional[Dict[str, Any]]) -> List[str]:
    form = form or {}
    errors = []

    tel = form.get("tel")
    if not is_blank(tel) and not _DIGITS.match(str(tel)):
        errors.append("Telephone must contain only numbers")

    code_postal = form.get("code_postal")
    if not is_blank(code_postal) and not _DIGITS.match(str(code_postal)):
        errors.append("Postal code must contain only numbers")

    email = form.get("email")
    if not is_blank(email) and "@" not in str(email):
        errors.append("Email must contain @ symbol")

    return errors
