"""
Column mapping for reference tables.

Resolves, for every compared vehicle field, which spreadsheet column holds
its value. An explicit user mapping wins when its target column exists
(case-insensitive exact name match); remaining fields fall back to keyword
heuristics over the lowercased column names, first column in table order
winning.

A mapping entry pointing at a column that does not exist is ignored and the
field is left to the heuristics. Nothing here raises on bad caller input.
"""

import logging
from typing import Dict, Final, Mapping, Optional, Sequence, Tuple

from ..models.data_structures import (
    FIELD_CHASSIS,
    FIELD_MODEL,
    FIELD_ODOMETER,
    FIELD_PLATE,
    FIELD_YEAR,
    MATCH_FIELDS,
    resolve_field_key,
)
from ..utils.text_utils import contains_any

logger = logging.getLogger(__name__)

ColumnMap = Dict[str, Optional[str]]

DEFAULT_FIELD_KEYWORDS: Final[Dict[str, Tuple[str, ...]]] = {
    FIELD_PLATE: ("placa",),
    FIELD_MODEL: ("modelo", "carro", "veiculo"),
    FIELD_YEAR: ("ano",),
    FIELD_ODOMETER: ("km", "quilom", "hod", "hodomet"),
    FIELD_CHASSIS: ("chassi",),
}


class ColumnMapper:
    """
    Maps logical vehicle fields onto reference-table columns.

    Attributes:
        fields: Field keys to resolve, in heuristic evaluation order.
        field_keywords: Lowercase keywords searched in column names per field.

    Example:
        >>> mapper = ColumnMapper()
        >>> mapper.resolve(["Placa", "Modelo do carro", "Ano"])
        {'placa': 'Placa', 'modelo': 'Modelo do carro', 'ano': 'Ano',
         'km_atual': None, 'chassi': None}
    """

    def __init__(
        self,
        field_keywords: Optional[Mapping[str, Sequence[str]]] = None,
        fields: Sequence[str] = MATCH_FIELDS,
    ) -> None:
        keywords = DEFAULT_FIELD_KEYWORDS if field_keywords is None else field_keywords
        self.fields: Tuple[str, ...] = tuple(fields)
        self.field_keywords: Dict[str, Tuple[str, ...]] = {
            key: tuple(word.lower() for word in keywords.get(key, ()))
            for key in self.fields
        }

    def resolve(
        self,
        columns: Sequence[str],
        column_mapping: Optional[Mapping[str, Optional[str]]] = None,
    ) -> ColumnMap:
        """
        Build the column map for one reference table.

        Args:
            columns: Column names of the table, in table order.
            column_mapping: Optional explicit ``field -> column`` mapping. Keys
                may be report keys (``placa``) or English names (``plate``).

        Returns:
            Mapping of every field key to a column name or None.
        """
        column_map: ColumnMap = {key: None for key in self.fields}

        if column_mapping:
            self._apply_explicit_mapping(column_map, columns, column_mapping)

        for column in columns:
            if not isinstance(column, str):
                continue
            lowered = column.lower()
            for key in self.fields:
                if column_map[key] is None and contains_any(
                    lowered, self.field_keywords[key]
                ):
                    column_map[key] = column

        unresolved = [key for key, column in column_map.items() if column is None]
        if unresolved:
            logger.debug(f"Unresolved fields after column mapping: {unresolved}")

        return column_map

    def _apply_explicit_mapping(
        self,
        column_map: ColumnMap,
        columns: Sequence[str],
        column_mapping: Mapping[str, Optional[str]],
    ) -> None:
        by_lower = {}
        for column in columns:
            if isinstance(column, str):
                by_lower.setdefault(column.lower(), column)

        for raw_key, target in column_mapping.items():
            key = resolve_field_key(raw_key) if isinstance(raw_key, str) else None
            if key not in column_map:
                logger.debug(f"Ignoring mapping for unknown field {raw_key!r}")
                continue
            if not target or not isinstance(target, str):
                continue

            column = by_lower.get(target.lower())
            if column is None:
                logger.debug(
                    f"Mapped column {target!r} for field '{key}' not in table; "
                    "falling back to heuristics"
                )
                continue
            column_map[key] = column
