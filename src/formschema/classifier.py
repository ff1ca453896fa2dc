"""Regex-table classification of raw PDF field names.

Every function here is pure: the same raw name always yields the same
result, independent of any PDF library.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING

from formschema.typing.enums import ControlKind, FieldType
from formschema.typing.models import ClassifiedField

if TYPE_CHECKING:
    from formschema.typing.models import FieldDescriptor

_I = re.IGNORECASE

# Evaluated in order; the first category with a matching pattern wins.
TYPE_PATTERNS: tuple[tuple[FieldType, tuple[re.Pattern[str], ...]], ...] = (
    (
        FieldType.SIGNATURE,
        (
            re.compile(r"signature", _I),
            re.compile(r"sig$", _I),
            re.compile(r"sig[^a-z]", _I),
            re.compile(r"\bsign\b", _I),
            re.compile(r"attorney.*sign", _I),
            re.compile(r"petitioner.*sign", _I),
            re.compile(r"respondent.*sign", _I),
        ),
    ),
    (
        FieldType.DATE,
        (
            re.compile(r"date", _I),
            re.compile(r"\bdob\b", _I),
            re.compile(r"birth.*date", _I),
            re.compile(r"expir", _I),
            re.compile(r"issued", _I),
            re.compile(r"served", _I),
        ),
    ),
    (
        FieldType.EMAIL,
        (
            re.compile(r"email", _I),
            re.compile(r"e-mail", _I),
            re.compile(r"electronic.*mail", _I),
        ),
    ),
    (
        FieldType.TEL,
        (
            re.compile(r"phone", _I),
            re.compile(r"tel(?:ephone)?", _I),
            re.compile(r"fax", _I),
            re.compile(r"mobile", _I),
            re.compile(r"cell", _I),
            re.compile(r"contact.*number", _I),
        ),
    ),
    (
        FieldType.CURRENCY,
        (
            re.compile(r"amount", _I),
            re.compile(r"fee", _I),
            re.compile(r"cost", _I),
            re.compile(r"payment", _I),
            re.compile(r"\$\d"),
            re.compile(r"dollar", _I),
            re.compile(r"money", _I),
            re.compile(r"price", _I),
            re.compile(r"total.*due", _I),
            re.compile(r"balance", _I),
            re.compile(r"income", _I),
            re.compile(r"expense", _I),
            re.compile(r"asset.*value", _I),
            re.compile(r"debt", _I),
            re.compile(r"rent", _I),
            re.compile(r"mortgage", _I),
            re.compile(r"salary", _I),
            re.compile(r"wage", _I),
        ),
    ),
    (
        FieldType.ADDRESS,
        (
            re.compile(r"address", _I),
            re.compile(r"street", _I),
            re.compile(r"city", _I),
            re.compile(r"state", _I),
            re.compile(r"zip", _I),
            re.compile(r"postal", _I),
            re.compile(r"mailing", _I),
            re.compile(r"residence", _I),
            re.compile(r"location", _I),
        ),
    ),
    (
        FieldType.CHECKBOX,
        (
            re.compile(r"^checkbox", _I),
            re.compile(r"\bchk\b", _I),
            re.compile(r"check.*box", _I),
            re.compile(r"^cb[_\d]", _I),
            re.compile(r"\byes\b.*\bno\b", _I),
        ),
    ),
    (
        FieldType.NUMBER,
        (
            re.compile(r"\bage\b", _I),
            re.compile(r"\byear\b.*born", _I),
            re.compile(r"number.*child", _I),
            re.compile(r"count", _I),
            re.compile(r"quantity", _I),
            re.compile(r"\bnum\b", _I),
        ),
    ),
)

PII_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, _I)
    for pattern in (
        r"ssn",
        r"social.*security",
        r"birth.*date",
        r"date.*birth",
        r"\bdob\b",
        r"driver.*license",
        r"license.*number",
        r"passport",
        r"alien.*number",
        r"immigration",
        r"bank.*account",
        r"credit.*card",
        r"routing.*number",
        r"minor.*name",
        r"child.*name",
        r"victim.*name",
        r"protected.*person",
        r"dependent.*name",
        r"medical.*record",
        r"health.*info",
        r"employment.*history",
        r"financial.*account",
    )
)

# Utility controls and layout artifacts that never carry user data.
SKIP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^Save$", _I),
    re.compile(r"^Print$", _I),
    re.compile(r"^Reset(Form)?$", _I),
    re.compile(r"^Clear$", _I),
    re.compile(r"^Submit$", _I),
    re.compile(r"^WhiteOut", _I),
    re.compile(r"^NoticeHeader", _I),
    re.compile(r"^NoticeFooter", _I),
    re.compile(r"^#pageSet", _I),
    re.compile(r"^#subform", _I),
    re.compile(r"^\[.*\]$"),
    re.compile(r"^Page\d+$", _I),
    re.compile(r"^Header$", _I),
    re.compile(r"^Footer$", _I),
    re.compile(r"^FormTitle$", _I),
    re.compile(r"^Instructions$", _I),
    re.compile(r"^PrintButton", _I),
    re.compile(r"^SaveButton", _I),
    re.compile(r"^ResetButton", _I),
    re.compile(r"^ClearButton", _I),
    re.compile(r"^Barcode", _I),
    re.compile(r"^QRCode", _I),
    re.compile(r"^Logo$", _I),
    re.compile(r"^Seal$", _I),
    re.compile(r"^Watermark", _I),
)

_SEGMENT_SPLIT = re.compile(r"[.\[\]]")
_INDEX = re.compile(r"\[\d+\]")
_OFF_STATE = "off"


def _segments(name: str) -> list[str]:
    return [part for part in _SEGMENT_SPLIT.split(name) if part.strip()]


def _last_segment(name: str) -> str:
    """Return the last non-numeric hierarchical segment of a raw name."""
    meaningful = [part for part in _segments(name) if not part.isdigit()]
    return meaningful[-1] if meaningful else name


def _titleize(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def _split_case(text: str, separator: str) -> str:
    text = re.sub(r"([a-z])([A-Z])", rf"\1{separator}\2", text)
    return re.sub(r"([A-Z]+)([A-Z][a-z])", rf"\1{separator}\2", text)


def button_on_states(options: Sequence[str]) -> list[str]:
    """Return the non-`Off` appearance states of a button."""
    return [option for option in options if option.strip().lstrip("/").lower() != _OFF_STATE]


@lru_cache(maxsize=4096)
def _type_from_name(name: str) -> FieldType:
    for field_type, patterns in TYPE_PATTERNS:
        if any(pattern.search(name) for pattern in patterns):
            return field_type
    return FieldType.TEXT


def classify(name: str, reported_kind: ControlKind | None = None, options: Sequence[str] = ()) -> FieldType:
    """Map a raw field name and backend control kind to a semantic type.

    Button and choice controls win outright; text controls fall through to the
    name pattern table. A button exposing several on-states is a radio group.

    Args:
        name (str): Raw hierarchical PDF field name.
        reported_kind (ControlKind | None): Backend-reported control kind.
        options (Sequence[str]): Backend-reported options or appearance states.

    Returns:
        FieldType: Semantic type, `text` when nothing matches.
    """
    match reported_kind:
        case ControlKind.BUTTON:
            return FieldType.RADIO if len(button_on_states(options)) > 1 else FieldType.CHECKBOX
        case ControlKind.CHOICE:
            return FieldType.SELECT
        case _:
            return _type_from_name(name)


def skip_field(name: str) -> bool:
    """Return whether a raw name denotes a boilerplate control."""
    return any(pattern.search(name) for pattern in SKIP_PATTERNS)


def pii_field(name: str, known_pii_fields: Collection[str] = ()) -> bool:
    """Return whether a raw name looks personally identifying. Advisory only."""
    if name in known_pii_fields:
        return True
    return any(pattern.search(name) for pattern in PII_PATTERNS)


def humanize_label(name: str) -> str:
    """Build a display label from a raw field name.

    `DV-140[0].Page1[0].Name[0] -> Name`, `PlaintiffName -> Plaintiff Name`.

    Args:
        name (str): Raw hierarchical PDF field name.

    Returns:
        str: Title-cased label.
    """
    segment = _last_segment(name)
    cleaned = re.sub(r"\d+$", "", _INDEX.sub("", segment))
    words = re.sub(r"[_\-.]", " ", _split_case(cleaned, " "))
    label = _titleize(" ".join(words.split()))
    return label or _titleize(segment)


def sanitize_name(name: str) -> str:
    """Build a stable snake_case identifier from a raw field name.

    `DV-140[0].Page1[0].Name[0] -> name`, `FillText123 -> fill_text123`.

    Args:
        name (str): Raw hierarchical PDF field name.

    Returns:
        str: Lower-case identifier made of `[a-z0-9_]`.
    """
    segment = _INDEX.sub("", _last_segment(name))
    snake = re.sub(r"[^a-zA-Z0-9]", "_", _split_case(segment, "_"))
    snake = re.sub(r"_+", "_", snake).strip("_").lower()
    return snake or "field"


def detect_section(name: str) -> str | None:
    """Return a humanized section hint from a hierarchical name.

    Only names with at least three segments qualify; the first middle segment
    that is not a page, numeric or `#` marker is used.

    Args:
        name (str): Raw hierarchical PDF field name.

    Returns:
        str | None: Section title, or None when the name carries no hint.
    """
    parts = _segments(name)
    if len(parts) < 3:
        return None
    for part in parts[1:-1]:
        if re.match(r"^Page\d+$", part, _I) or part.isdigit() or part.startswith("#"):
            continue
        return humanize_label(part)
    return None


def classify_descriptor(descriptor: FieldDescriptor) -> ClassifiedField:
    """Attach semantic type and PII flag to an extracted descriptor."""
    return ClassifiedField(
        descriptor=descriptor,
        field_type=classify(descriptor.name, descriptor.kind, descriptor.options),
        pii=pii_field(descriptor.name),
    )
