"""
Field validation and sanitization for form input.

Both halves are pure: they read a mapping of raw field values and return
new data without touching the input. A missing field reads as "".
"""
from collections import namedtuple
from datetime import date

from markupsafe import Markup, escape

FieldError = namedtuple("FieldError", ["field", "message"])

Rule = namedtuple("Rule", ["field", "check", "message"])


def _value(fields, name):
    value = fields.get(name)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def required(field, message):
    return Rule(field, lambda v: bool(v.strip()), message)


def min_length(field, length, message):
    # Count characters as typed, not as escaped by sanitize().
    return Rule(field, lambda v: len(Markup(v.strip()).unescape()) >= length, message)


def optional_date(field, message):
    return Rule(field, lambda v: not v.strip() or parse_date(v) is not None, message)


def one_of(field, choices, message):
    return Rule(field, lambda v: v in choices, message)


def parse_date(value):
    """ISO ``YYYY-MM-DD`` to a date, or None when blank or malformed."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def validate(fields, rules):
    """Return one FieldError per failing rule, in rule order."""
    return [
        FieldError(rule.field, rule.message)
        for rule in rules
        if not rule.check(_value(fields, rule.field))
    ]


def sanitize(fields, names):
    """
    Copy ``fields`` with each named field HTML-escaped and then trimmed.

    The order matters: stored values were produced escape-first, so
    re-sanitizing them must give the same text.
    """
    clean = dict(fields)
    for name in names:
        clean[name] = str(escape(_value(fields, name))).strip()
    return clean
