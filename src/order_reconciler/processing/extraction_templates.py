"""
Extraction templates for service-order documents.

A template is a rule table: for every field it lists the regex patterns to
try, in priority order. Each pattern is case-insensitive and has exactly
one capturing group holding the value. Templates carry the signature
substrings that select them; a template without signatures is a catch-all.

New vendor layouts are supported by defining another ``ExtractionTemplate``
and registering it with the ``TemplateSelector`` ahead of the catch-all.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Dict, Final, Iterable, Pattern, Tuple

from ..models.data_structures import (
    FIELD_BRAND,
    FIELD_CHASSIS,
    FIELD_MODEL,
    FIELD_ODOMETER,
    FIELD_PLATE,
    FIELD_YEAR,
    META_ORDER_TYPE,
    META_STATUS,
    META_TECHNICIAN,
    TOTAL_ORDER,
    TOTAL_PARTS,
    TOTAL_SERVICES,
)

PatternChain = Tuple[Pattern[str], ...]

TAG_VENDOR_A_PREVENTIVE: Final[str] = "vendor_a_preventive"
TAG_GENERIC: Final[str] = "generic"

# Character classes for free-text values on a single normalized line
_FREE_TEXT_CHARS: Final[str] = r"A-Za-zÀ-ÿ0-9 .\-"
_NAME_CHARS: Final[str] = r"A-Za-zÀ-ÿ .\-"
_AMOUNT: Final[str] = r"([0-9][0-9.,]*)"

# Words that open a label, including multi-word ones such as "ANO VEÍCULO:"
# or "Quilometragem do Veículo:"
_LABEL_WORDS: Final[str] = (
    r"(?:placa|marca|modelo|ano|km|chassi|hod[oô]metro|quilometragem"
    r"|situa[cç][aã]o|status|colaborador|total)"
)


def _free_text(chars: str = _FREE_TEXT_CHARS) -> str:
    """
    Capture group for a label's free-text value.

    The normalized document is one line, so the value stops before the next
    ``Label:`` token, before a known label word starting a multi-word label
    (``ANO VEÍCULO:``), at the first character outside ``chars``, or at the
    end of the text. A label word without a colon, as in ``GOL 1.0 TOTAL
    FLEX``, stays part of the value.
    """
    return (
        rf"([{chars}]+?)"
        rf"(?=\s+[^\s:]+\s*:"
        rf"|\s+{_LABEL_WORDS}(?:\s+d[aeo])?(?:\s+[^\s:]+)?\s*:"
        rf"|[^{chars}]|$)"
    )


def compile_chain(*patterns: str) -> PatternChain:
    """Compile patterns case-insensitively, preserving priority order."""
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


@dataclass(frozen=True)
class ExtractionTemplate:
    """
    Rule table governing field extraction for one document layout.

    Attributes:
        tag: Identifier copied into ``StructuredRecord.source_type``.
        vehicle_fields: Ordered mapping of vehicle field key to pattern chain.
        signatures: Lowercase substrings whose presence selects the template.
            Empty for the catch-all template.
        metadata_fields: Pattern chains for order metadata. Empty when the
            layout carries no order metadata.
        totals_fields: Pattern chains for monetary totals.
        extract_line_items: Whether billed lines are scanned from raw text.
    """

    tag: str
    vehicle_fields: Dict[str, PatternChain]
    signatures: Tuple[str, ...] = ()
    metadata_fields: Dict[str, PatternChain] = field(default_factory=dict)
    totals_fields: Dict[str, PatternChain] = field(default_factory=dict)
    extract_line_items: bool = False

    @property
    def is_catch_all(self) -> bool:
        return not self.signatures

    @property
    def has_metadata(self) -> bool:
        return bool(self.metadata_fields)

    def matches(self, lowered_text: str) -> bool:
        """True if any signature occurs in the lowercased document text."""
        return any(signature in lowered_text for signature in self.signatures)

    def with_signatures(self, extra: Iterable[str]) -> "ExtractionTemplate":
        """Return a copy whose signatures also include ``extra``."""
        merged = list(self.signatures)
        for signature in extra:
            lowered = signature.strip().lower()
            if lowered and lowered not in merged:
                merged.append(lowered)
        return dataclasses.replace(self, signatures=tuple(merged))


VENDOR_A_PREVENTIVE: Final[ExtractionTemplate] = ExtractionTemplate(
    tag=TAG_VENDOR_A_PREVENTIVE,
    signatures=("bosch", "ordem bosch", "preventiva"),
    vehicle_fields={
        FIELD_PLATE: compile_chain(
            r"PLACA:\s*([A-Z0-9\-]{4,8})",
            r"Ve[íi]culo:\s*([A-Z0-9\-]+)",
        ),
        FIELD_BRAND: compile_chain(r"Marca[:\s]*([A-Za-z0-9\-]+)"),
        FIELD_MODEL: compile_chain(
            r"Modelo[:\s]*" + _free_text(),
            r"Ve[íi]culo:\s*[A-Z0-9\-]+\s*-\s*" + _free_text(),
        ),
        FIELD_YEAR: compile_chain(r"\bAno[:\s]*([0-9]{4})"),
        FIELD_ODOMETER: compile_chain(
            r"\bKM:?\s*([0-9][0-9.,]*)",
            r"Hod[oô]metro:?\s*([0-9][0-9.,]*)",
        ),
        FIELD_CHASSIS: compile_chain(r"CHASSI:?\s*([A-Z0-9]+)"),
    },
    metadata_fields={
        META_ORDER_TYPE: compile_chain(r"(Preventiva|Corretiva)"),
        META_STATUS: compile_chain(
            r"Situa[cç][aã]o:?\s*" + _free_text(),
            r"Status:?\s*" + _free_text(),
        ),
        META_TECHNICIAN: compile_chain(r"Colaborador:?\s*" + _free_text(_NAME_CHARS)),
    },
    totals_fields={
        TOTAL_PARTS: compile_chain(
            r"Pe[cç]as?:?\s*R\$\s*" + _AMOUNT,
            r"pecas[:\s]*" + _AMOUNT,
        ),
        TOTAL_SERVICES: compile_chain(
            r"Servi[cç]os?:?\s*R\$\s*" + _AMOUNT,
            r"servi[cç]os[:\s]*" + _AMOUNT,
        ),
        TOTAL_ORDER: compile_chain(
            r"Total\s*da\s*OS:?\s*R\$\s*" + _AMOUNT,
            r"os_total[:\s]*R?\$?\s*" + _AMOUNT,
        ),
    },
    extract_line_items=True,
)


GENERIC: Final[ExtractionTemplate] = ExtractionTemplate(
    tag=TAG_GENERIC,
    vehicle_fields={
        FIELD_PLATE: compile_chain(
            r"PLACA:\s*([A-Z0-9\-]{5,7})",
            r"Ve[íi]culo:\s*([A-Z0-9\-]+)",
        ),
        FIELD_MODEL: compile_chain(
            r"MODELO\s*VE[ÍI]CULO:\s*" + _free_text(),
            r"Modelo:\s*" + _free_text(),
            r"Ve[íi]culo:\s*[A-Z0-9\-]+\s*-\s*([A-Z0-9 ]+?)(?=\s+[^\s:]+\s*:|[^A-Z0-9 ]|$)",
        ),
        FIELD_YEAR: compile_chain(
            r"\bAno:\s*([0-9]{4})",
            r"ANO\s*VE[ÍI]CULO:\s*([0-9]{4})",
        ),
        FIELD_ODOMETER: compile_chain(
            r"\bKM:?\s*([0-9][0-9.,]*)",
            r"Quilometragem\s+do\s+Ve[íi]culo:\s*([0-9][0-9.,]*)",
            r"KM\s*ATUAL:\s*([0-9][0-9.,]*)",
        ),
        FIELD_CHASSIS: compile_chain(r"CHASSI:?\s*([A-Z0-9]+)"),
    },
    totals_fields={
        TOTAL_ORDER: compile_chain(
            r"Total\s*da\s*OS:\s*R\$\s*" + _AMOUNT,
            r"os_total\s*R\$\s*" + _AMOUNT,
        ),
    },
)


DEFAULT_TEMPLATES: Final[Tuple[ExtractionTemplate, ...]] = (
    VENDOR_A_PREVENTIVE,
    GENERIC,
)
