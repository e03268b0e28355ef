import re
from unidecode import unidecode


def slugify(text):
    if not text or not isinstance(text, str):
        raise ValueError("slugify() requires a non-empty string")
    text = unidecode(text).lower()
    text = re.sub(r'[^a-z0-9]+', '-', text).strip('-')
    if not text:
        raise ValueError("slugify() requires a non-empty string with at least one letter or digit")
    return text
