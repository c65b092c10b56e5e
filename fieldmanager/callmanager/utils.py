import re

E164_PATTERN = re.compile(r'^\+\d{10,15}$')


def normalize_phone_number(value, country='US'):
    """
    Normalize a phone number to '+<digits>'.

    Ten digit US numbers get the +1 country code. Returns None when the
    result is not 10-15 digits.
    """
    if value is None:
        return None
    raw = str(value).strip()
    digits = re.sub(r'\D', '', raw)
    if not raw.startswith('+') and country == 'US' and len(digits) == 10:
        digits = '1' + digits
    normalized = f'+{digits}'
    if not E164_PATTERN.match(normalized):
        return None
    return normalized


def us_area_code(phone_number):
    """Area code of a +1 number, '' otherwise"""
    if phone_number and phone_number.startswith('+1') and len(phone_number) == 12:
        return phone_number[2:5]
    return ''
