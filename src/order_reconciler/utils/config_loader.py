"""Configuration loading and validation for the order reconciler.

This module loads the reconciler configuration from a YAML file, merges it
over the built-in defaults and turns each section into the dataclass the
corresponding component expects.

The file has four optional sections:

    extraction:  extra_vendor_signatures, extract_line_items, max_line_items
    matching:    field_weights, odometer_tolerance, odometer_basis,
                 max_differences
    pdf:         max_file_size_mb, max_pages, sort_text
    logging:     level

Typical usage example:
    config = Config.load("config/reconciler_config.yaml")
    errors = Config.validate(config)
    if errors:
        raise ConfigurationError(f"Configuration invalid: {errors}")
    matcher = RecordMatcher(config.matcher_config())
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .error_handlers import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/reconciler_config.yaml"

_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "extraction": {
        "extra_vendor_signatures": [],
        "extract_line_items": True,
        "max_line_items": 0,
    },
    "matching": {
        "field_weights": {},
        "odometer_tolerance": 0.10,
        "odometer_basis": "smaller",
        "max_differences": 10,
    },
    "pdf": {
        "max_file_size_mb": 50,
        "max_pages": 20,
        "sort_text": True,
    },
    "logging": {
        "level": "INFO",
    },
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _check_sections(config_dict: Dict[Any, Any]) -> None:
    unknown = [key for key in config_dict if key not in _DEFAULTS]
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration sections: {unknown}", config_key=str(unknown[0])
        )


class SystemConfig:
    """Container for reconciler configuration sections.

    Attributes:
        extraction: Field extraction settings.
        matching: Record matching settings.
        pdf: PDF reading settings.
        logging: Logging settings.
        source_path: File the configuration was read from, None for defaults.
    """

    def __init__(
        self, source_path: Optional[str] = None, **config_dict: Dict[str, Any]
    ) -> None:
        """Initialize SystemConfig from a configuration dictionary.

        Sections missing from ``config_dict`` take the built-in defaults;
        keys missing from a section take the default for that key.

        Raises:
            ConfigurationError: If a section is not a mapping or is unknown.
        """
        _check_sections(config_dict)

        merged = copy.deepcopy(_DEFAULTS)
        for section, values in config_dict.items():
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigurationError(
                    f"Configuration section '{section}' must be a mapping",
                    config_key=section,
                )
            merged[section].update(values)

        self.source_path = source_path
        self.extraction: Dict[str, Any] = merged["extraction"]
        self.matching: Dict[str, Any] = merged["matching"]
        self.pdf: Dict[str, Any] = merged["pdf"]
        self.logging: Dict[str, Any] = merged["logging"]

    def extractor_config(self):
        """Build the ``ExtractorConfig`` for the extraction section."""
        from ..processing.field_extractor import ExtractorConfig

        values = dict(self.extraction)
        values["extra_vendor_signatures"] = tuple(
            values.get("extra_vendor_signatures") or ()
        )
        return _build_section("extraction", ExtractorConfig, values)

    def matcher_config(self):
        """Build the ``MatcherConfig`` for the matching section."""
        from ..matching.record_matcher import MatcherConfig

        values = dict(self.matching)
        values["field_weights"] = dict(values.get("field_weights") or {})
        return _build_section("matching", MatcherConfig, values)

    def pdf_reader_config(self):
        """Build the ``PDFReaderConfig`` for the pdf section."""
        from ..processing.pdf_text_reader import PDFReaderConfig

        return _build_section("pdf", PDFReaderConfig, dict(self.pdf))

    @property
    def log_level(self) -> str:
        return str(self.logging.get("level", "INFO")).upper()


def _build_section(section: str, config_cls: type, values: Dict[str, Any]):
    try:
        return config_cls(**values)
    except TypeError as e:
        raise ConfigurationError(
            f"Invalid keys in '{section}' section: {e}",
            config_key=section,
            original_error=e,
        ) from e
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value in '{section}' section: {e}",
            config_key=section,
            original_error=e,
        ) from e


class Config:
    """Static utility class for loading and validating configuration files."""

    @staticmethod
    def load(config_path: Optional[Union[str, Path]] = None) -> SystemConfig:
        """Load reconciler configuration from a YAML file.

        Args:
            config_path: Path to the YAML file. When None, the project's
                ``config/reconciler_config.yaml`` is used if present and the
                built-in defaults otherwise.

        Returns:
            SystemConfig with file values merged over the defaults.

        Raises:
            FileNotFoundError: If an explicitly given file does not exist.
            ConfigurationError: If the file is not valid YAML or does not
                contain a dictionary.
        """
        if config_path is None:
            # Project root is 4 levels up from this file
            project_root = Path(__file__).parent.parent.parent.parent
            config_file_path = project_root / DEFAULT_CONFIG_PATH
            if not config_file_path.exists():
                logger.debug("No configuration file found, using defaults")
                return SystemConfig()
        else:
            config_file_path = Path(config_path)
            if not config_file_path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found: {config_file_path}"
                )

        try:
            with open(config_file_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse configuration file: {config_file_path}",
                original_error=e,
            ) from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration file must contain a YAML dictionary"
            )

        _check_sections(config_dict)

        logger.info(f"Loaded configuration from {config_file_path}")
        return SystemConfig(source_path=str(config_file_path), **config_dict)

    @staticmethod
    def validate(config: SystemConfig) -> List[str]:
        """Validate every configuration section.

        Builds each component configuration and collects the problems found
        instead of stopping at the first one.

        Args:
            config: SystemConfig object to validate.

        Returns:
            List of error messages. Empty list if the configuration is valid.
        """
        errors: List[str] = []

        for build in (
            config.extractor_config,
            config.matcher_config,
            config.pdf_reader_config,
        ):
            try:
                build()
            except ConfigurationError as e:
                errors.append(e.message)

        if config.log_level not in _LOG_LEVELS:
            errors.append(
                f"Invalid logging level {config.logging.get('level')!r}; "
                f"expected one of {list(_LOG_LEVELS)}"
            )

        return errors
