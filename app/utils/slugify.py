import re
from unidecode import unidecode

MAX_SLUG_LENGTH = 50


def slugify(text):
    text = unidecode(text).lower()
    text = re.sub(r'[^a-z0-9]+', '-', text).strip('-')
    return text[:MAX_SLUG_LENGTH].rstrip('-')
