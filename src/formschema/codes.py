"""Form code normalization and code-derived metadata."""

from __future__ import annotations

import re
from pathlib import Path

CATEGORY_BY_PREFIX: dict[str, str] = {
    "SC": "small_claims/general",
    "FL": "family_law/general",
    "DV": "family_law/domestic_violence",
    "CH": "restraining_orders/civil_harassment",
    "EA": "restraining_orders/elder_abuse",
    "GV": "restraining_orders/gun_violence",
    "WV": "restraining_orders/workplace_violence",
    "SV": "restraining_orders/school_violence",
    "GC": "guardianship/general",
    "JV": "juvenile/general",
    "CR": "criminal/general",
    "DE": "probate/decedent",
    "TR": "civil/traffic",
    "NC": "civil/name_change",
    "MC": "civil/miscellaneous",
    "CIV": "civil/general",
    "EJ": "civil/enforcement",
    "FW": "administrative/fee_waiver",
    "POS": "administrative/service",
    "SUM": "administrative/service",
    "SUBP": "civil/discovery",
    "INT": "civil/discovery",
    "DISC": "civil/discovery",
    "APP": "administrative/general",
    "CARE": "civil/care",
    "HC": "civil/habeas_corpus",
    "MIL": "civil/military",
    "PLD": "civil/pleading",
    "WG": "civil/wage_garnishment",
}
DEFAULT_CATEGORY = "general"

_CODE_PARTS = re.compile(r"^([A-Za-z]+)(\d+)([A-Za-z]*)$")


def normalize(code: str | None) -> str:
    """Normalize a form code to `PREFIX-NUMBER[SUFFIX]`.

    Examples: `sc100 -> SC-100`, `fl300a -> FL-300A`, `DV-109 -> DV-109`.

    Args:
        code (str | None): Raw form code.

    Returns:
        str: Canonical code, or an empty string for blank input.
    """
    if code is None or not str(code).strip():
        return ""
    raw = str(code).strip()
    if "-" in raw:
        return re.sub(r"[^A-Z0-9-]", "", raw.upper())

    match = _CODE_PARTS.match(re.sub(r"[^A-Za-z0-9]", "", raw))
    if match is None:
        return raw.upper()
    prefix, number, suffix = match.groups()
    return f"{prefix.upper()}-{number}{suffix.upper()}"


def from_filename(filename: str | Path | None) -> str:
    """Extract the normalized form code from a template filename."""
    if filename is None or not str(filename).strip():
        return ""
    return normalize(Path(filename).stem)


def to_filename(code: str) -> str:
    """Return the filename stem of a code (`SC-100 -> sc100`)."""
    return normalize(code).lower().replace("-", "")


def extract_prefix(code: str | None) -> str | None:
    """Return the alphabetic prefix of a code (`SC-100 -> SC`)."""
    if code is None or not str(code).strip():
        return None
    match = re.match(r"^([A-Z]+)", normalize(code))
    return match.group(1) if match else None


def extract_number(code: str) -> int:
    """Return the numeric part of a code, 0 when there is none."""
    match = re.search(r"(\d+)", normalize(code))
    return int(match.group(1)) if match else 0


def infer_category(code: str) -> str:
    """Return the category slug implied by the code prefix."""
    prefix = normalize(code).split("-")[0].upper()
    return CATEGORY_BY_PREFIX.get(prefix, DEFAULT_CATEGORY)


def infer_title(code: str) -> str:
    """Return a placeholder title (`SC-100 -> SC 100 Form`)."""
    parts = normalize(code).split("-")
    return f"{parts[0]} {parts[-1]} Form"
