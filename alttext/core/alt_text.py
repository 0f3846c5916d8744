"""Alt-text quality rules."""

import re

GENERIC_ALT_PATTERNS = [
    re.compile(r"^image$", re.IGNORECASE),
    re.compile(r"^picture$", re.IGNORECASE),
    re.compile(r"^photo$", re.IGNORECASE),
    re.compile(r"^img$", re.IGNORECASE),
    re.compile(r"^\.(jpg|jpeg|png|gif|svg|webp)$", re.IGNORECASE),
    re.compile(r"^\d+$"),
    re.compile(r"^[a-f0-9]{8,}$", re.IGNORECASE),  # hash-like
    re.compile(r"^placeholder$", re.IGNORECASE),
    re.compile(r"^spacer$", re.IGNORECASE),
    re.compile(r"^divider$", re.IGNORECASE),
]


def is_generic_alt_text(alt: str) -> bool:
    """True when alt text says nothing about the image (\"image\", \"12345\", a hash...)."""
    stripped = alt.strip()
    return any(p.match(stripped) for p in GENERIC_ALT_PATTERNS)


def needs_description(alt: str | None) -> bool:
    """True iff alt text is absent, blank, or generic."""
    if alt is None or not alt.strip():
        return True
    return is_generic_alt_text(alt)
