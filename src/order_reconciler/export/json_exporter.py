"""JSON Exporter Module.

This module writes extracted records, match reports and full reconciliation
results to JSON files or strings.

Example:
    >>> exporter = JSONExporter(json_format="pretty")
    >>> exporter.export(report, "output/report.json")
"""

import dataclasses
import json
import logging
import tempfile
import time
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Literal, Union

from ..utils.error_handlers import ExportError


logger = logging.getLogger(__name__)

JSONFormat = Literal["pretty", "compact"]


class ReconcilerJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for reconciler data structures.

    Handles serialization of:
    - Decimal amounts -> floats
    - datetime/date cells -> ISO 8601 strings
    - objects exposing ``to_dict`` -> their dictionaries
    - other dataclasses -> dictionaries
    - Path objects -> strings

    Example:
        >>> json.dumps(report, cls=ReconcilerJSONEncoder)
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif hasattr(obj, "to_dict"):
            return obj.to_dict()
        elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        elif isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


class JSONExporter:
    """Exports reconciler results to JSON.

    Accepts any object with a ``to_dict`` method (``StructuredRecord``,
    ``MatchReport``, ``ReconciliationResult``) or a plain dictionary.

    Attributes:
        json_format: ``pretty`` (indented) or ``compact``.
    """

    def __init__(self, json_format: JSONFormat = "pretty") -> None:
        if json_format not in ("pretty", "compact"):
            raise ValueError(
                f"json_format must be 'pretty' or 'compact', got {json_format!r}"
            )
        self.json_format = json_format
        logger.debug(f"JSONExporter initialized ({json_format})")

    @property
    def indent(self):
        return 2 if self.json_format == "pretty" else None

    def format_result(self, data: Any) -> Dict[str, Any]:
        """Convert a result object into a JSON-ready dictionary."""
        if isinstance(data, dict):
            return data
        if hasattr(data, "to_dict"):
            return data.to_dict()
        raise TypeError(f"Cannot export object of type {type(data).__name__}")

    def export(self, data: Any, output_path: Union[str, Path]) -> Path:
        """Export a result object to a JSON file.

        The file is written through a temporary file in the same directory,
        so an interrupted export never leaves a partial file behind. Parent
        directories are created as needed.

        Args:
            data: Record, report, reconciliation result or dictionary.
            output_path: Destination path.

        Returns:
            Path of the written file.

        Raises:
            ExportError: If serialization or the file write fails.
        """
        start_time = time.time()
        output_path = Path(output_path)

        try:
            json_data = self.format_result(data)
            self._write_json_file_atomic(json_data, output_path)
        except (TypeError, ValueError) as e:
            error_msg = f"Failed to serialize result for {output_path}: {e}"
            logger.error(error_msg)
            raise ExportError(
                error_msg, source_id=str(output_path), original_error=e
            ) from e
        except OSError as e:
            error_msg = f"Failed to write JSON to {output_path}: {e}"
            logger.error(error_msg)
            raise ExportError(
                error_msg, source_id=str(output_path), original_error=e
            ) from e

        duration = time.time() - start_time
        file_size = output_path.stat().st_size / 1024  # KB
        logger.info(
            f"Exported JSON to {output_path} ({file_size:.2f} KB in {duration:.2f}s)"
        )
        return output_path

    def export_to_string(self, data: Any, pretty: bool = False) -> str:
        """Serialize a result object to a JSON string.

        Raises:
            ExportError: If serialization fails.
        """
        try:
            return json.dumps(
                self.format_result(data),
                indent=2 if pretty else None,
                cls=ReconcilerJSONEncoder,
                ensure_ascii=False,
            )
        except (TypeError, ValueError) as e:
            error_msg = f"Failed to serialize result: {e}"
            logger.error(error_msg)
            raise ExportError(error_msg, original_error=e) from e

    def _write_json_file_atomic(self, data: Dict[str, Any], output_path: Path) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=output_path.parent,
            delete=False,
            suffix=".tmp",
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)

            try:
                json.dump(
                    data,
                    tmp_file,
                    indent=self.indent,
                    cls=ReconcilerJSONEncoder,
                    ensure_ascii=False,
                )
                tmp_file.flush()
            except Exception:
                tmp_file.close()
                tmp_path.unlink(missing_ok=True)
                raise

        tmp_path.replace(output_path)
