import re

PHONE_MIN_DIGITS = 8
PHONE_MAX_DIGITS = 15

def normalize_phone(phone: str) -> str:
    # Phones are stored as bare digits, country code included
    return re.sub(r'[^0-9]', '', phone or "")

def validate_phone(phone: str) -> str:
    clean = normalize_phone(phone)
    if not clean:
        raise ValueError("Phone number is required.")
    if len(clean) < PHONE_MIN_DIGITS:
        raise ValueError(f"Phone number is too short (minimum {PHONE_MIN_DIGITS} digits).")
    if len(clean) > PHONE_MAX_DIGITS:
        raise ValueError(f"Phone number is too long (maximum {PHONE_MAX_DIGITS} digits).")
    return clean
