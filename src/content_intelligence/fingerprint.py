"""
Content fingerprinting for deduplication.

A fingerprint is a deterministic identity derived from normalized text:
identical normalized text always yields the same fingerprint, anything else
yields a different one. There is no fuzzy matching.
"""

import hashlib
import re

FINGERPRINT_LENGTH = 32

# Lines appended by share sheets and mail clients
_BOILERPLATE_LINE = re.compile(
    r"^\s*(sent from my \w+.*|shared via .*|get outlook for \w+.*|--\s*)$",
    re.IGNORECASE | re.MULTILINE,
)
_TRACKING_PARAM = re.compile(r"([?&])(utm_[a-z]+|fbclid|gclid|mc_eid|ref_src)=[^&\s#]*", re.IGNORECASE)
_URL_FRAGMENT = re.compile(r"(https?://[^\s#]+)#\S*", re.IGNORECASE)
_PUNCTUATION = re.compile(r"[^\w\s]", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_HORIZONTAL_SPACE = re.compile(r"[ \t\u00a0]+")
_BLANK_LINES = re.compile(r"\n\s*\n\s*\n+")
_DOUBLE_QUOTES = re.compile(r"[\u201c\u201d]")
_SINGLE_QUOTES = re.compile(r"[\u2018\u2019]")


def clean_text(text: str) -> str:
    """
    Tidy extracted text before chunking.

    Keeps paragraph structure (single blank lines) so the chunker can still
    find natural boundaries.
    """
    if not text:
        return ""

    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = _DOUBLE_QUOTES.sub('"', cleaned)
    cleaned = _SINGLE_QUOTES.sub("'", cleaned)
    cleaned = _HORIZONTAL_SPACE.sub(" ", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    cleaned = _BLANK_LINES.sub("\n\n", cleaned)
    return cleaned.strip()


def normalize_text(text: str) -> str:
    """
    Normalize text for fingerprinting.

    Lower-cases, strips volatile boilerplate (share-sheet footers, tracking
    query parameters, URL fragments), removes punctuation and collapses
    whitespace.
    """
    if not text:
        return ""

    normalized = text.lower()
    normalized = _BOILERPLATE_LINE.sub(" ", normalized)
    normalized = _URL_FRAGMENT.sub(r"\1", normalized)
    normalized = _TRACKING_PARAM.sub(r"\1", normalized)
    normalized = _PUNCTUATION.sub("", normalized)
    normalized = _WHITESPACE.sub(" ", normalized)
    return normalized.strip()


def generate_fingerprint(text: str) -> str:
    """
    Generate the deterministic fingerprint of a text.

    Args:
        text: Raw or cleaned text

    Returns:
        Hex string of FINGERPRINT_LENGTH characters
    """
    normalized = normalize_text(text)
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]
