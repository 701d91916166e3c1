import re

DEFAULT_COUNTRY_CODE = "40"

_DIALABLE_RE = re.compile(r'^\+\d{8,15}$')

def normalize_phone(phone: str) -> str:
    """Normalize a free-form Romanian phone number to +40... (E.164-like).

    Heuristic only, never rejects: anything unrecognised gets the default
    country code prepended and the gateway decides.
    """
    # Remove spaces, dashes, parentheses
    clean = re.sub(r'[\s\-\(\)]', '', phone or "")

    if clean.startswith('+'):
        return clean

    # National mobile format: 0721234567
    if clean.startswith('07') and len(clean) == 10:
        return f"+{DEFAULT_COUNTRY_CODE}{clean[1:]}"

    # Doubled trunk prefix: 00721234567
    if clean.startswith('007') and len(clean) == 11:
        return f"+{DEFAULT_COUNTRY_CODE}{clean[2:]}"

    # Country code without the plus: 40721234567
    if clean.startswith(DEFAULT_COUNTRY_CODE) and len(clean) == 11:
        return f"+{clean}"

    return f"+{DEFAULT_COUNTRY_CODE}{clean}"

def is_dialable(phone: str) -> bool:
    """Check a normalized number is '+' followed by 8-15 digits"""
    if not phone:
        return False
    return bool(_DIALABLE_RE.match(phone))
