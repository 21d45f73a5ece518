"""
Batch orchestrator - validates arbitrarily long row sequences in fixed-size chunks.

Each chunk is one model call. Results come back tagged with their position
inside the chunk and are translated to the row's position in the full input,
then reassembled in input order.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from salessuite.errors import PartialBatchLossError, ValidationInputError
from salessuite.models import ValidationRow

logger = logging.getLogger(__name__)

# Rows per model call
CHUNK_SIZE = 25

Row = Dict[str, str]
ChunkValidator = Callable[[List[Row]], List[dict]]
ProgressCallback = Callable[[int, int, int], None]


@dataclass
class ChunkOutcome:
    """Translated results for one chunk; ``missing`` holds global indices with no result."""
    start: int
    size: int
    rows: List[ValidationRow] = field(default_factory=list)
    missing: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


@dataclass
class BatchValidationResult:
    rows: List[ValidationRow]
    missing_indices: List[int] = field(default_factory=list)
    chunk_count: int = 0

    @property
    def complete(self) -> bool:
        return not self.missing_indices

    def summary(self) -> dict:
        invalid = sum(1 for r in self.rows if not r.is_valid)
        return {
            'total': len(self.rows),
            'valid': len(self.rows) - invalid,
            'invalid': invalid,
            'missing': len(self.missing_indices),
        }


def chunk_rows(rows: Sequence[Row], chunk_size: int = CHUNK_SIZE) -> List[Tuple[int, List[Row]]]:
    """
    Split rows into contiguous chunks.

    Args:
        rows: Full row sequence.
        chunk_size: Maximum rows per chunk.

    Returns:
        List of (start index, chunk rows); the last chunk may be smaller.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    return [
        (start, list(rows[start:start + chunk_size]))
        for start in range(0, len(rows), chunk_size)
    ]


def _local_index(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def translate_chunk(start: int, size: int, results: List[dict]) -> ChunkOutcome:
    """
    Map chunk-local results to global indices.

    Out-of-range, non-integral and duplicate indices are discarded; the rows
    they should have covered are reported as missing. No result is invented.
    """
    outcome = ChunkOutcome(start=start, size=size)
    seen = set()

    for result in results:
        local = _local_index(result.get('originalIndex'))
        if local is None or not 0 <= local < size:
            logger.warning(
                f"Discarding result with invalid index {result.get('originalIndex')!r} "
                f"for chunk at {start} (size {size})"
            )
            continue
        if local in seen:
            logger.warning(f"Discarding duplicate result for row {start + local}")
            continue
        seen.add(local)
        outcome.rows.append(ValidationRow(
            original_index=start + local,
            is_valid=result['isValid'],
            issues=list(result['issues']),
        ))

    outcome.missing = [start + i for i in range(size) if i not in seen]
    if outcome.missing:
        logger.warning(
            f"Chunk at {start}: {len(outcome.missing)} of {size} rows missing from model response"
        )
    return outcome


def validate_rows(
    rows: Sequence[Row],
    validate_chunk: ChunkValidator,
    *,
    chunk_size: int = CHUNK_SIZE,
    allow_partial: bool = False,
    on_progress: Optional[ProgressCallback] = None,
) -> BatchValidationResult:
    """
    Validate every row, one model call per chunk.

    Args:
        rows: Row dicts (e.g. parsed CSV rows).
        validate_chunk: Called with one chunk; returns result dicts carrying
            chunk-local ``originalIndex``, ``isValid`` and ``issues``.
        chunk_size: Rows per call.
        allow_partial: Return rows the model skipped as ``missing_indices``
            instead of raising.
        on_progress: Called before each chunk with (first row, last row, total), 1-based.

    Returns:
        BatchValidationResult with rows sorted by original index.

    Raises:
        ValidationInputError: If rows is empty.
        PartialBatchLossError: If any row got no result and ``allow_partial`` is False.
        AIServiceError: If any chunk call fails; no partial result is returned.
    """
    if not rows:
        raise ValidationInputError("No rows to validate")

    chunks = chunk_rows(rows, chunk_size)
    total = len(rows)
    logger.info(f"Validating {total} rows in {len(chunks)} chunks of up to {chunk_size}")

    outcomes = []
    for start, chunk in chunks:
        if on_progress:
            on_progress(start + 1, start + len(chunk), total)
        logger.debug(f"Validating rows {start + 1}-{start + len(chunk)} of {total}")

        results = validate_chunk(chunk)
        outcomes.append(translate_chunk(start, len(chunk), results))

    validated = sorted(
        (row for outcome in outcomes for row in outcome.rows),
        key=lambda r: r.original_index,
    )
    missing = [index for outcome in outcomes for index in outcome.missing]
    result = BatchValidationResult(rows=validated, missing_indices=missing, chunk_count=len(chunks))

    logger.info(
        f"Validation complete: {len(validated)} of {total} rows returned, "
        f"{result.summary()['invalid']} invalid"
    )

    if missing and not allow_partial:
        raise PartialBatchLossError(missing, partial_result=result)
    return result
