"""
Rule-table validation and sanitization of submitted form fields.

A rule table maps each field name to an ordered list of ``Rule`` entries.
Sanitizing rules (trim, escape, clean, ...) rewrite the value; checking
rules (min_length, iso_date, ...) append an error when they fail. Every
rule runs in declaration order and the sanitized values are returned
whether or not any check failed, so a redisplayed form shows the cleaned
input.
"""

from collections import namedtuple
from dataclasses import dataclass

import bleach
from dateutil.parser import isoparse
from markupsafe import escape

Rule = namedtuple("Rule", ["kind", "params", "message"])

# Same minimal tag set the description fields have always allowed
ALLOWED_TAGS = {"b", "i", "u", "em", "strong", "p", "br", "ul", "ol", "li"}


def rule(kind, message=None, **params):
    return Rule(kind, params, message)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class _Failed(Exception):
    pass


class _Skip(Exception):
    pass


# --- Rule implementations ---
def _trim(value, params):
    return value.strip()


def _escape(value, params):
    return str(escape(value))


def _clean(value, params):
    return bleach.clean(value, tags=params.get("tags", ALLOWED_TAGS), strip=True)


def _default(value, params):
    return value if value else params["value"]


def _min_length(value, params):
    if len(value) < params["min"]:
        raise _Failed
    return value


def _max_length(value, params):
    if len(value) > params["max"]:
        raise _Failed
    return value


def _alphanumeric(value, params):
    if not (value.isascii() and value.isalnum()):
        raise _Failed
    return value


def _one_of(value, params):
    if value not in params["choices"]:
        raise _Failed
    return value


def _iso_date(value, params):
    try:
        return isoparse(value).date()
    except ValueError:
        raise _Failed from None


def _integer(value, params):
    # Empty values are left to min_length
    if value == "":
        return value
    if not (value.isascii() and value.isdigit()):
        raise _Failed
    number = int(value)
    if number < params.get("min", 0) or ("max" in params and number > params["max"]):
        raise _Failed
    return number


def _optional(value, params):
    if not value:
        raise _Skip
    return value


RULE_KINDS = {
    "trim": _trim,
    "escape": _escape,
    "clean": _clean,
    "default": _default,
    "min_length": _min_length,
    "max_length": _max_length,
    "alphanumeric": _alphanumeric,
    "one_of": _one_of,
    "iso_date": _iso_date,
    "integer": _integer,
    "optional": _optional,
}


def _raw_value(form, field, many):
    if many:
        if hasattr(form, "getlist"):
            return form.getlist(field)
        value = form.get(field)
        if value is None:
            return []
        return [value] if isinstance(value, str) else list(value)
    value = form.get(field)
    return "" if value is None else value


def _run(rules, value):
    """Apply ``rules`` to a single scalar value; return (value, messages)."""
    messages = []
    for r in rules:
        if r.kind == "many":
            continue
        try:
            value = RULE_KINDS[r.kind](value, r.params)
        except _Skip:
            return None, messages
        except _Failed:
            messages.append(r.message or f"Invalid value ({r.kind})")
    return value, messages


def validate(rules, form):
    """Validate and sanitize ``form`` against a rule table.

    Args:
        rules: Mapping of field name to an ordered list of ``Rule``.
        form: Submitted fields; a dict or a werkzeug ``MultiDict``.

    Returns:
        ``(values, errors)``: the sanitized value of every field in the
        table, and an ordered list of ``FieldError`` (empty on success).
    """
    values = {}
    errors = []
    for field, field_rules in rules.items():
        many = any(r.kind == "many" for r in field_rules)
        raw = _raw_value(form, field, many)
        if many:
            cleaned = []
            for item in raw:
                item_value, messages = _run(field_rules, item)
                if item_value is not None:
                    cleaned.append(item_value)
                errors.extend(FieldError(field, m) for m in messages)
            values[field] = cleaned
        else:
            value, messages = _run(field_rules, raw)
            values[field] = value
            errors.extend(FieldError(field, m) for m in messages)
    return values, errors
