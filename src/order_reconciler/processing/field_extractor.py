"""
Field extraction module for the Order Reconciler.

Turns the page texts of a service-order document into a ``StructuredRecord``:

1. Pages are joined with line breaks (kept for line-item scanning) and the
   join is normalized into a single line (used for label patterns).
2. The ``TemplateSelector`` picks a vendor template or the generic one.
3. Every field of the template is resolved through its ordered pattern
   chain; the first pattern that matches wins.
4. Vendor templates additionally yield order metadata, billed line items and
   parsed monetary totals.

Extraction never fails on unmatched patterns: a field nobody recognizes is
simply None in the record.

Typical usage example:
    >>> extractor = FieldExtractor()
    >>> record = extractor.extract(["PLACA: ABC1234 Modelo: Uno Ano: 2018"])
    >>> record.vehicle.placa
    'ABC1234'
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..models.data_structures import (
    LineItem,
    OrderMetadata,
    OrderTotals,
    StructuredRecord,
    VEHICLE_FIELDS,
    VehicleInfo,
)
from ..utils.text_utils import (
    NBSP,
    clean_text_value,
    collapse_spaces,
    normalize_whitespace,
    parse_locale_decimal,
)
from .extraction_templates import (
    DEFAULT_TEMPLATES,
    TAG_VENDOR_A_PREVENTIVE,
    ExtractionTemplate,
    PatternChain,
)
from .template_selector import TemplateSelector

logger = logging.getLogger(__name__)

FieldExtractorFn = Callable[[str], Optional[str]]

# Description followed by an amount at line end: thousands groups of three
# digits and exactly two decimals
LINE_ITEM_PATTERN = re.compile(
    r"^(.+?)\s+(?:R\$\s*)?"
    r"([0-9]{1,3}(?:\.[0-9]{3})+,[0-9]{2}|[0-9]+[.,][0-9]{2})\s*$",
    re.IGNORECASE,
)


def regex_extractor(pattern: Pattern[str]) -> FieldExtractorFn:
    """Wrap a one-group pattern as a fallible extractor returning the value."""

    def extract(text: str) -> Optional[str]:
        match = pattern.search(text)
        if not match:
            return None
        return clean_text_value(match.group(1))

    return extract


def first_match(extractors: Iterable[FieldExtractorFn], text: str) -> Optional[str]:
    """
    Return the first non-None result of an ordered list of extractors.

    Args:
        extractors: Extractors in priority order.
        text: Text handed to every extractor.

    Returns:
        The first value found, or None if every extractor came up empty.
    """
    for extractor in extractors:
        value = extractor(text)
        if value is not None:
            return value
    return None


def extract_from_chain(chain: PatternChain, text: str) -> Optional[str]:
    """Apply a template pattern chain to text."""
    return first_match((regex_extractor(pattern) for pattern in chain), text)


def extract_line_items(raw_text: str) -> List[LineItem]:
    """
    Collect billed lines from line-oriented document text.

    A line qualifies when it ends with an amount (optional ``R$``, pt-BR
    separators, exactly two decimals) preceded by a description. Other lines
    are skipped.

    Args:
        raw_text: Document text with its line breaks preserved.

    Returns:
        Line items in document order.
    """
    items: List[LineItem] = []
    for line in raw_text.splitlines():
        stripped = line.replace(NBSP, " ").strip()
        if not stripped:
            continue

        match = LINE_ITEM_PATTERN.match(stripped)
        if not match:
            continue

        value = parse_locale_decimal(match.group(2))
        if value is None:
            continue

        items.append(
            LineItem(description=collapse_spaces(match.group(1)), total_value=value)
        )

    return items


@dataclass
class ExtractorConfig:
    """
    Configuration for field extraction behavior.

    Attributes:
        extra_vendor_signatures: Additional lowercase substrings that select
            the vendor template (e.g. a dealership name printed on its orders).
        extract_line_items: Scan billed lines when the template supports it.
        max_line_items: Upper bound on collected line items (0 = unlimited).
    """

    extra_vendor_signatures: Tuple[str, ...] = ()
    extract_line_items: bool = True
    max_line_items: int = 0

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        self.extra_vendor_signatures = tuple(self.extra_vendor_signatures)
        for signature in self.extra_vendor_signatures:
            if not isinstance(signature, str) or not signature.strip():
                raise ValueError(
                    f"extra_vendor_signatures must be non-empty strings, "
                    f"got {signature!r}"
                )

        if self.max_line_items < 0:
            raise ValueError(
                f"max_line_items must be non-negative, got {self.max_line_items}"
            )


class FieldExtractor:
    """
    Extracts a structured vehicle/service record from document text.

    The extractor holds only immutable configuration and compiled patterns,
    so one instance can be shared freely between calls and threads.

    Attributes:
        config: Extraction configuration.
        selector: Template selector used for every document.

    Example:
        >>> extractor = FieldExtractor(ExtractorConfig())
        >>> record = extractor.extract(page_texts)
        >>> print(record.source_type, record.vehicle.placa)
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        selector: Optional[TemplateSelector] = None,
    ) -> None:
        self.config = config or ExtractorConfig()

        if selector is None:
            selector = TemplateSelector(self._build_templates())
        self.selector = selector

        logger.debug(
            f"FieldExtractor initialized with templates "
            f"{[t.tag for t in self.selector.templates]}"
        )

    def _build_templates(self) -> List[ExtractionTemplate]:
        templates = list(DEFAULT_TEMPLATES)
        if self.config.extra_vendor_signatures:
            templates = [
                t.with_signatures(self.config.extra_vendor_signatures)
                if t.tag == TAG_VENDOR_A_PREVENTIVE
                else t
                for t in templates
            ]
        return templates

    def extract(self, pages: Sequence[Optional[str]]) -> StructuredRecord:
        """
        Extract a structured record from per-page document text.

        Args:
            pages: Text of every page, in page order. Line breaks inside a page
                are kept for line-item scanning.

        Returns:
            StructuredRecord built by the selected template.
        """
        if isinstance(pages, str):
            pages = [pages]
        raw_text = "\n".join(page or "" for page in pages)
        text = normalize_whitespace(raw_text)

        template = self.selector.select(text)
        record = self.extract_with_template(template, text, raw_text)

        found = sum(1 for value in record.vehicle.to_dict().values() if value)
        logger.info(
            f"Extracted record with template '{template.tag}': "
            f"{found} vehicle field(s), {len(record.line_items)} line item(s)"
        )
        return record

    def extract_text(self, text: str) -> StructuredRecord:
        """Extract from a single block of text (one page)."""
        return self.extract([text])

    def extract_with_template(
        self, template: ExtractionTemplate, text: str, raw_text: Optional[str] = None
    ) -> StructuredRecord:
        """
        Apply one template to already-normalized text.

        Args:
            template: Template whose rules are applied.
            text: Normalized single-line document text.
            raw_text: Line-oriented text for line items; defaults to ``text``.

        Returns:
            StructuredRecord tagged with the template's tag.
        """
        vehicle_values = self._extract_fields(template.vehicle_fields, text)
        vehicle = VehicleInfo(
            **{k: v for k, v in vehicle_values.items() if k in VEHICLE_FIELDS}
        )

        order_metadata = None
        if template.has_metadata:
            order_metadata = OrderMetadata(
                **self._extract_fields(template.metadata_fields, text)
            )

        line_items: Tuple[LineItem, ...] = ()
        if template.extract_line_items and self.config.extract_line_items:
            items = extract_line_items(raw_text if raw_text is not None else text)
            if self.config.max_line_items:
                items = items[: self.config.max_line_items]
            line_items = tuple(items)

        totals = OrderTotals(**self._extract_totals(template.totals_fields, text))

        return StructuredRecord(
            source_type=template.tag,
            vehicle=vehicle,
            order_metadata=order_metadata,
            line_items=line_items,
            totals=totals,
            raw_text=text,
        )

    def _extract_fields(
        self, rules: Dict[str, PatternChain], text: str
    ) -> Dict[str, Optional[str]]:
        values: Dict[str, Optional[str]] = {}
        for field_name, chain in rules.items():
            values[field_name] = extract_from_chain(chain, text)
            if values[field_name] is None:
                logger.debug(f"No pattern matched field '{field_name}'")
        return values

    def _extract_totals(
        self, rules: Dict[str, PatternChain], text: str
    ) -> Dict[str, Optional[Decimal]]:
        totals: Dict[str, Optional[Decimal]] = {}
        for total_name, chain in rules.items():
            raw_value = extract_from_chain(chain, text)
            totals[total_name] = parse_locale_decimal(raw_value)
            if raw_value is not None and totals[total_name] is None:
                logger.debug(f"Could not parse {total_name} value {raw_value!r}")
        return totals
