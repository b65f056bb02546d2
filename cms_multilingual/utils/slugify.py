import re

from unidecode import unidecode

FALLBACK_SLUG = "n-a"


def slugify(text):
    """Transliterate `text` to ASCII and collapse it into a lower-case, hyphenated slug."""
    if not text or not isinstance(text, str):
        raise ValueError("Slug source must be a non-empty string")
    text = unidecode(text).lower()
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return text or FALLBACK_SLUG


def first_free_slug(base: str, taken: set[str]) -> str:
    """Return `base`, or `base-2`, `base-3`, ... whichever is not in `taken`."""
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"
