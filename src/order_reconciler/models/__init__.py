"""Data models for the order reconciler."""

from .data_structures import (
    FIELD_ALIASES,
    MATCH_FIELDS,
    VEHICLE_FIELDS,
    FieldDifference,
    FieldScore,
    LineItem,
    MatchReport,
    OrderMetadata,
    OrderTotals,
    ReferenceTable,
    RowScore,
    StructuredRecord,
    VehicleInfo,
    resolve_field_key,
)

__all__ = [
    "FIELD_ALIASES",
    "MATCH_FIELDS",
    "VEHICLE_FIELDS",
    "FieldDifference",
    "FieldScore",
    "LineItem",
    "MatchReport",
    "OrderMetadata",
    "OrderTotals",
    "ReferenceTable",
    "RowScore",
    "StructuredRecord",
    "VehicleInfo",
    "resolve_field_key",
]
