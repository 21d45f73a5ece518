"""
Unit tests for the batch orchestrator.
Tests chunking, index translation, reassembly order and partial-loss handling.
"""
import pytest
from unittest.mock import MagicMock

from salessuite.errors import PartialBatchLossError, ProviderError, ValidationInputError
from salessuite.services.batch_orchestrator import (
    CHUNK_SIZE,
    chunk_rows,
    translate_chunk,
    validate_rows,
)


def make_rows(n):
    return [{'Name': f'Company {i}', 'Email': f'c{i}@example.com'} for i in range(n)]


def echo_validator(chunk):
    """Fake model: every row valid, results in chunk order."""
    return [{'originalIndex': i, 'isValid': True, 'issues': []} for i in range(len(chunk))]


class TestChunkRows:
    """Tests for chunk_rows."""

    def test_default_chunk_size_is_25(self):
        assert CHUNK_SIZE == 25

    def test_sixty_rows_split_25_25_10(self):
        """N=60, C=25 gives three chunks of 25, 25 and 10."""
        chunks = chunk_rows(make_rows(60), 25)

        assert [len(chunk) for _, chunk in chunks] == [25, 25, 10]
        assert [start for start, _ in chunks] == [0, 25, 50]

    def test_global_row_40_is_chunk_2_local_15(self):
        rows = make_rows(60)
        chunks = chunk_rows(rows, 25)

        start, chunk = chunks[1]
        assert chunk[15] is rows[40]
        assert start + 15 == 40

    def test_exact_multiple_has_no_empty_chunk(self):
        assert [len(c) for _, c in chunk_rows(make_rows(50), 25)] == [25, 25]

    def test_invalid_chunk_size_rejected(self):
        with pytest.raises(ValueError):
            chunk_rows(make_rows(3), 0)


class TestTranslateChunk:
    """Tests for chunk-local to global index translation."""

    def test_offsets_local_indices(self):
        outcome = translate_chunk(25, 3, [
            {'originalIndex': 2, 'isValid': False, 'issues': ['Email invalid format']},
            {'originalIndex': 0, 'isValid': True, 'issues': []},
            {'originalIndex': 1, 'isValid': True, 'issues': []},
        ])

        assert outcome.complete
        assert sorted(r.original_index for r in outcome.rows) == [25, 26, 27]

    def test_out_of_range_and_duplicates_count_as_missing(self):
        outcome = translate_chunk(0, 3, [
            {'originalIndex': 0, 'isValid': True, 'issues': []},
            {'originalIndex': 0, 'isValid': False, 'issues': ['dup']},
            {'originalIndex': 7, 'isValid': True, 'issues': []},
        ])

        assert [r.original_index for r in outcome.rows] == [0]
        assert outcome.rows[0].is_valid is True
        assert outcome.missing == [1, 2]
        assert not outcome.complete

    def test_integral_float_index_accepted(self):
        outcome = translate_chunk(10, 1, [{'originalIndex': 0.0, 'isValid': True, 'issues': []}])
        assert outcome.rows[0].original_index == 10


class TestValidateRows:
    """Tests for validate_rows end to end with a fake chunk validator."""

    def test_batch_identity(self):
        """Complete chunks give len(output) == N and output[i].originalIndex == i."""
        for n, c in [(1, 25), (24, 25), (25, 25), (26, 25), (60, 25), (101, 7)]:
            result = validate_rows(make_rows(n), echo_validator, chunk_size=c)

            assert len(result.rows) == n
            assert [r.original_index for r in result.rows] == list(range(n))
            assert result.complete

    def test_out_of_order_results_are_reassembled_in_input_order(self):
        def reversed_validator(chunk):
            return list(reversed(echo_validator(chunk)))

        result = validate_rows(make_rows(60), reversed_validator, chunk_size=25)

        assert [r.original_index for r in result.rows] == list(range(60))

    def test_one_call_per_chunk_with_chunk_rows(self):
        rows = make_rows(60)
        validator = MagicMock(side_effect=echo_validator)

        result = validate_rows(rows, validator, chunk_size=25)

        assert validator.call_count == 3
        assert result.chunk_count == 3
        assert validator.call_args_list[2][0][0] == rows[50:60]

    def test_row_40_verdict_lands_at_global_40(self):
        def flag_local_15(chunk):
            results = echo_validator(chunk)
            if len(chunk) == 25:
                results[15] = {'originalIndex': 15, 'isValid': False, 'issues': ['Phone invalid']}
            return results

        result = validate_rows(make_rows(60), flag_local_15, chunk_size=25)

        invalid = [r.original_index for r in result.rows if not r.is_valid]
        assert invalid == [15, 40]
        assert result.rows[40].issues == ['Phone invalid']

    def test_missing_rows_raise_partial_batch_loss(self):
        def drops_last(chunk):
            return echo_validator(chunk)[:-1]

        with pytest.raises(PartialBatchLossError) as exc_info:
            validate_rows(make_rows(30), drops_last, chunk_size=25)

        error = exc_info.value
        assert error.missing_indices == [24, 29]
        assert len(error.partial_result.rows) == 28
        assert '2 rows' in error.user_message

    def test_allow_partial_returns_missing_indices(self):
        def drops_first(chunk):
            return echo_validator(chunk)[1:]

        result = validate_rows(make_rows(30), drops_first, chunk_size=25, allow_partial=True)

        assert result.missing_indices == [0, 25]
        assert not result.complete
        assert len(result.rows) == 28
        assert result.summary() == {'total': 28, 'valid': 28, 'invalid': 0, 'missing': 2}

    def test_chunk_failure_fails_whole_batch(self):
        calls = []

        def fails_second(chunk):
            calls.append(chunk)
            if len(calls) == 2:
                raise ProviderError()
            return echo_validator(chunk)

        with pytest.raises(ProviderError):
            validate_rows(make_rows(60), fails_second, chunk_size=25)

        # No further chunks after the failure
        assert len(calls) == 2

    def test_empty_rows_rejected_before_any_call(self):
        validator = MagicMock()

        with pytest.raises(ValidationInputError):
            validate_rows([], validator)

        validator.assert_not_called()

    def test_progress_reports_one_based_ranges(self):
        progress = []

        validate_rows(make_rows(60), echo_validator, chunk_size=25,
                      on_progress=lambda a, b, n: progress.append((a, b, n)))

        assert progress == [(1, 25, 60), (26, 50, 60), (51, 60, 60)]
