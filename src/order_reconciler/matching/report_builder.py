"""
Report assembly for record matching.

Turns ranked row scores into the ``MatchReport`` handed back to callers.
"""

import logging
from typing import Final, Mapping, Sequence

from ..models.data_structures import MatchReport, RowScore

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIFFERENCES: Final[int] = 10
NO_MATCH_NOTE: Final[str] = "Nenhuma correspondência encontrada"
BEST_MATCH_NOTE: Final[str] = "Melhor correspondência na linha {position} (score {score})"


def _format_score(score: float) -> str:
    if isinstance(score, float) and score.is_integer():
        return str(int(score))
    return str(score)


class ReportBuilder:
    """
    Builds a ``MatchReport`` from ranked rows.

    Attributes:
        max_differences: Maximum number of mismatches sampled from the best row.
    """

    def __init__(self, max_differences: int = DEFAULT_MAX_DIFFERENCES) -> None:
        if max_differences < 0:
            raise ValueError(
                f"max_differences must be non-negative, got {max_differences}"
            )
        self.max_differences = max_differences

    def build(self, ranked: Sequence[RowScore], total_rows: int) -> MatchReport:
        """
        Assemble the report.

        Args:
            ranked: Row scores, best first.
            total_rows: Number of rows in the reference table.

        Returns:
            MatchReport for the top-ranked row, or an empty report when there
            are no rows.
        """
        if not ranked:
            logger.info(f"No candidate rows among {total_rows} reference rows")
            return MatchReport(
                total_rows=total_rows,
                best_row_index=None,
                best_row_data=None,
                match_score=0,
                comparison_note=NO_MATCH_NOTE,
                sample_differences=(),
                field_scores={},
            )

        best = ranked[0]
        note = BEST_MATCH_NOTE.format(
            position=best.row_index + 1, score=_format_score(best.total_score)
        )
        logger.info(note)

        return MatchReport(
            total_rows=total_rows,
            best_row_index=best.row_index,
            best_row_data=dict(best.row) if isinstance(best.row, Mapping) else None,
            match_score=best.total_score,
            comparison_note=note,
            sample_differences=tuple(best.mismatches[: self.max_differences]),
            field_scores=dict(best.field_scores),
        )
