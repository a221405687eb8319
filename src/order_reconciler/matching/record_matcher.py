"""
Weighted record matching for the Order Reconciler.

Scores every row of a reference table against the vehicle fields of an
extracted ``StructuredRecord`` and reports the best-scoring row together with
the fields where it disagrees with the document.

Per-field rules and default weights:

    placa     5  case-insensitive equality
    modelo    3  case-insensitive substring in either direction
    ano       2  text equality after normalization
    km_atual  1  relative difference below the odometer tolerance (10%)
    chassi    2  case-insensitive equality

A field missing on either side scores 0 and is never reported as a
mismatch. Rows are ranked by total score, ties keeping table order.

The odometer difference is divided by the smaller of the two readings by
default, not by the table reading alone; ``odometer_basis="reference"``
selects the table reading.

Classes:
    MatcherConfig: Weights and tolerances for scoring.
    RecordMatcher: Scores, ranks and reports.

Typical usage example:
    matcher = RecordMatcher()
    report = matcher.match(record, rows, columns, {"placa": "Veículo"})
    print(report.comparison_note)
"""

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Final,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from ..models.data_structures import (
    FIELD_CHASSIS,
    FIELD_MODEL,
    FIELD_ODOMETER,
    FIELD_PLATE,
    FIELD_YEAR,
    MATCH_FIELDS,
    FieldDifference,
    FieldScore,
    MatchReport,
    RowScore,
    StructuredRecord,
    VehicleInfo,
    resolve_field_key,
)
from ..utils.text_utils import normalize_cell_value, parse_locale_number, stringify_value
from .column_mapper import ColumnMap, ColumnMapper
from .report_builder import DEFAULT_MAX_DIFFERENCES, ReportBuilder

logger = logging.getLogger(__name__)

# A rule returns True/False, or None when the values cannot be compared
FieldRule = Callable[[Any, Any], Optional[bool]]
RecordLike = Union[StructuredRecord, VehicleInfo, Mapping[str, Any]]

DEFAULT_FIELD_WEIGHTS: Final[Dict[str, float]] = {
    FIELD_PLATE: 5,
    FIELD_MODEL: 3,
    FIELD_YEAR: 2,
    FIELD_ODOMETER: 1,
    FIELD_CHASSIS: 2,
}
DEFAULT_ODOMETER_TOLERANCE: Final[float] = 0.10

# Which reading the odometer difference is measured against
ODOMETER_BASIS_SMALLER: Final[str] = "smaller"
ODOMETER_BASIS_REFERENCE: Final[str] = "reference"


def equals_ignore_case(excel_value: Any, pdf_value: Any) -> bool:
    return stringify_value(excel_value).upper() == stringify_value(pdf_value).upper()


def contains_either_way(excel_value: Any, pdf_value: Any) -> bool:
    pdf_text = stringify_value(pdf_value).lower()
    excel_text = stringify_value(excel_value).lower()
    return excel_text in pdf_text or pdf_text in excel_text


def equals_exact(excel_value: Any, pdf_value: Any) -> bool:
    return stringify_value(excel_value) == stringify_value(pdf_value)


def within_relative_tolerance(
    tolerance: float, basis: str = ODOMETER_BASIS_SMALLER
) -> FieldRule:
    """
    Build a numeric rule accepting readings closer than ``tolerance``.

    The difference is divided by the smaller of the two readings (``smaller``)
    or by the reference reading (``reference``), never by less than 1. The
    comparison is strict: a difference of exactly ``tolerance`` fails.

    Args:
        tolerance: Relative tolerance, e.g. 0.10 for 10%.
        basis: ``smaller`` or ``reference``.

    Returns:
        Rule yielding None when either value is not a finite number.
    """

    def rule(excel_value: Any, pdf_value: Any) -> Optional[bool]:
        excel_number = parse_locale_number(excel_value)
        pdf_number = parse_locale_number(pdf_value)
        if excel_number is None or pdf_number is None:
            return None

        if basis == ODOMETER_BASIS_REFERENCE:
            denominator = max(1.0, excel_number)
        else:
            denominator = max(1.0, min(excel_number, pdf_number))

        return abs(excel_number - pdf_number) / denominator < tolerance

    return rule


@dataclass
class MatcherConfig:
    """Weights and tolerances used to score reference rows.

    Attributes:
        field_weights: Points awarded per matched field. Missing keys take
            the defaults (placa 5, modelo 3, ano 2, km_atual 1, chassi 2).
        odometer_tolerance: Relative odometer difference below which readings
            match. Must be in (0.0, 1.0]. Default: 0.10.
        odometer_basis: ``smaller`` measures the difference against the
            smaller reading, ``reference`` against the table reading.
            Default: ``smaller``.
        max_differences: Maximum mismatches sampled into the report.
            Default: 10.

    Raises:
        ValueError: If a weight is negative or names an unknown field, or if
            the tolerance, basis or difference limit is invalid.
    """

    field_weights: Optional[Dict[str, float]] = None
    odometer_tolerance: float = DEFAULT_ODOMETER_TOLERANCE
    odometer_basis: str = ODOMETER_BASIS_SMALLER
    max_differences: int = DEFAULT_MAX_DIFFERENCES

    def __post_init__(self) -> None:
        weights = dict(DEFAULT_FIELD_WEIGHTS)
        for raw_key, weight in (self.field_weights or {}).items():
            key = resolve_field_key(raw_key)
            if key not in DEFAULT_FIELD_WEIGHTS:
                raise ValueError(f"Unknown field in field_weights: {raw_key!r}")
            if weight < 0:
                raise ValueError(
                    f"Weight for '{key}' must be non-negative, got {weight}"
                )
            weights[key] = weight
        self.field_weights = weights

        if not 0.0 < self.odometer_tolerance <= 1.0:
            raise ValueError(
                f"odometer_tolerance must be in (0.0, 1.0], "
                f"got {self.odometer_tolerance}"
            )

        if self.odometer_basis not in (ODOMETER_BASIS_SMALLER, ODOMETER_BASIS_REFERENCE):
            raise ValueError(
                f"odometer_basis must be '{ODOMETER_BASIS_SMALLER}' or "
                f"'{ODOMETER_BASIS_REFERENCE}', got {self.odometer_basis!r}"
            )

        if self.max_differences < 0:
            raise ValueError(
                f"max_differences must be non-negative, got {self.max_differences}"
            )

    @property
    def max_total_score(self) -> float:
        return sum(self.field_weights.values())


class RecordMatcher:
    """
    Ranks reference rows against an extracted record.

    The matcher keeps no state between calls; every ``match`` builds its
    column map, scores and report from the arguments alone.

    Attributes:
        config: Matching configuration.
        column_mapper: Resolves table columns for each field.
        report_builder: Packages the ranked rows into a report.
        rules: Comparison rule per field key.

    Example:
        >>> matcher = RecordMatcher()
        >>> report = matcher.match(record, rows, ["Placa", "Modelo", "Ano"])
        >>> report.best_row_index
        0
    """

    def __init__(
        self,
        config: Optional[MatcherConfig] = None,
        column_mapper: Optional[ColumnMapper] = None,
        report_builder: Optional[ReportBuilder] = None,
    ) -> None:
        self.config = config or MatcherConfig()
        self.column_mapper = column_mapper or ColumnMapper()
        self.report_builder = report_builder or ReportBuilder(
            self.config.max_differences
        )
        self.rules: Dict[str, FieldRule] = {
            FIELD_PLATE: equals_ignore_case,
            FIELD_MODEL: contains_either_way,
            FIELD_YEAR: equals_exact,
            FIELD_ODOMETER: within_relative_tolerance(
                self.config.odometer_tolerance, self.config.odometer_basis
            ),
            FIELD_CHASSIS: equals_ignore_case,
        }

    def match(
        self,
        record: RecordLike,
        rows: Sequence[Mapping[str, Any]],
        columns: Sequence[str],
        column_mapping: Optional[Mapping[str, Optional[str]]] = None,
    ) -> MatchReport:
        """
        Find the reference row that best matches the record.

        Args:
            record: Extracted record, its ``VehicleInfo``, or a plain mapping
                of vehicle fields (optionally nested under ``vehicle``).
            rows: Reference rows in table order.
            columns: Column names valid for the rows.
            column_mapping: Optional explicit ``field -> column`` mapping.

        Returns:
            MatchReport describing the best row and its differences.
        """
        column_map = self.column_mapper.resolve(columns, column_mapping)
        logger.debug(f"Resolved column map: {column_map}")

        ranked = self.rank_rows(record, rows, column_map)
        return self.report_builder.build(ranked, total_rows=len(rows))

    def rank_rows(
        self,
        record: RecordLike,
        rows: Sequence[Mapping[str, Any]],
        column_map: ColumnMap,
    ) -> List[RowScore]:
        """
        Score every row and order them best first.

        Rows with equal totals keep their table order.
        """
        vehicle = self._vehicle_values(record)
        scored = [
            self.score_row(vehicle, row, column_map, row_index)
            for row_index, row in enumerate(rows)
        ]
        return sorted(scored, key=lambda result: result.total_score, reverse=True)

    def score_row(
        self,
        vehicle: Mapping[str, Any],
        row: Mapping[str, Any],
        column_map: ColumnMap,
        row_index: int,
    ) -> RowScore:
        """
        Score one reference row.

        Args:
            vehicle: Vehicle field values keyed by field key.
            row: Reference row.
            column_map: Resolved columns per field.
            row_index: 0-based position of the row in the table.

        Returns:
            RowScore with per-field scores and mismatches in field order.
        """
        field_scores: Dict[str, FieldScore] = {}
        mismatches: List[FieldDifference] = []
        total = 0

        for key in MATCH_FIELDS:
            weight = self.config.field_weights[key]
            column = column_map.get(key)

            original_excel = self._cell(row, column)
            original_pdf = vehicle.get(key)
            excel_value = normalize_cell_value(original_excel)
            pdf_value = normalize_cell_value(original_pdf)

            matched = False
            if excel_value is not None and pdf_value is not None:
                verdict = self.rules[key](excel_value, pdf_value)
                if verdict is True:
                    matched = True
                elif verdict is False:
                    mismatches.append(
                        FieldDifference(
                            field=key,
                            excel_value=original_excel,
                            pdf_value=original_pdf,
                        )
                    )

            score = weight if matched else 0
            total += score
            field_scores[key] = FieldScore(score=score, max=weight, matched=matched)

        logger.debug(
            f"Row {row_index}: score {total}, "
            f"{len(mismatches)} mismatch(es)"
        )

        return RowScore(
            row_index=row_index,
            total_score=total,
            field_scores=field_scores,
            mismatches=tuple(mismatches),
            row=row,
        )

    @staticmethod
    def _cell(row: Mapping[str, Any], column: Optional[str]) -> Any:
        if column is None or not isinstance(row, Mapping):
            return None
        return row.get(column)

    @staticmethod
    def _vehicle_values(record: RecordLike) -> Dict[str, Any]:
        if isinstance(record, StructuredRecord):
            return record.vehicle.to_dict()
        if isinstance(record, VehicleInfo):
            return record.to_dict()
        if not isinstance(record, Mapping):
            return {}

        source: Any = record
        for nested_key in ("vehicle", "veiculo"):
            if nested_key in record:
                source = record[nested_key]
                break

        if isinstance(source, VehicleInfo):
            return source.to_dict()
        if not isinstance(source, Mapping):
            return {}

        values: Dict[str, Any] = {}
        for raw_key, value in source.items():
            key = resolve_field_key(raw_key) if isinstance(raw_key, str) else None
            if key is not None and key not in values:
                values[key] = value
        return values
