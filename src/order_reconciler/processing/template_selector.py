"""
Template selection for service-order documents.

Chooses which ``ExtractionTemplate`` governs field extraction by looking for
vendor signature substrings in the lowercased document text. Templates are
checked in registration order and the first one whose signature occurs
wins; the catch-all template applies when nothing else does.
"""

import logging
from typing import List, Optional, Sequence

from .extraction_templates import DEFAULT_TEMPLATES, GENERIC, ExtractionTemplate

logger = logging.getLogger(__name__)


class TemplateSelector:
    """
    Ordered registry of extraction templates.

    Attributes:
        templates: Vendor templates in precedence order.
        fallback: Catch-all template used when no signature matches.

    Example:
        >>> selector = TemplateSelector()
        >>> selector.select("Ordem BOSCH - Preventiva").tag
        'vendor_a_preventive'
    """

    def __init__(
        self,
        templates: Optional[Sequence[ExtractionTemplate]] = None,
        fallback: Optional[ExtractionTemplate] = None,
    ) -> None:
        candidates = list(DEFAULT_TEMPLATES if templates is None else templates)

        catch_alls = [t for t in candidates if t.is_catch_all]
        self.templates: List[ExtractionTemplate] = [
            t for t in candidates if not t.is_catch_all
        ]

        if fallback is None:
            fallback = catch_alls[0] if catch_alls else GENERIC
        if not fallback.is_catch_all:
            raise ValueError(
                f"Fallback template '{fallback.tag}' must not define signatures"
            )
        self.fallback = fallback

        logger.debug(
            f"TemplateSelector initialized with {len(self.templates)} vendor "
            f"template(s), fallback '{self.fallback.tag}'"
        )

    def register(
        self, template: ExtractionTemplate, position: Optional[int] = None
    ) -> None:
        """
        Add a vendor template.

        Args:
            template: Template with at least one signature.
            position: Precedence slot; appended (lowest precedence) if None.

        Raises:
            ValueError: If the template has no signatures or its tag is taken.
        """
        if template.is_catch_all:
            raise ValueError(
                f"Template '{template.tag}' has no signatures; "
                "only one catch-all template is allowed"
            )
        if any(t.tag == template.tag for t in self.templates):
            raise ValueError(f"Template '{template.tag}' is already registered")

        if position is None:
            self.templates.append(template)
        else:
            self.templates.insert(position, template)

    def select(self, text: str) -> ExtractionTemplate:
        """
        Pick the template for a normalized document text.

        Args:
            text: Merged, whitespace-normalized document text.

        Returns:
            The first vendor template whose signature occurs in the text,
            otherwise the fallback template.
        """
        lowered = text.lower()
        for template in self.templates:
            if template.matches(lowered):
                logger.debug(f"Selected template '{template.tag}'")
                return template

        logger.debug(f"No vendor signature found, using '{self.fallback.tag}'")
        return self.fallback
