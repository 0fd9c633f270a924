"""Tests for the chunker."""

import types

import pytest

from stat_batcher.chunker import chunks
from stat_batcher.models import MAX_CHUNK


def test_empty_input_yields_no_chunks():
    assert list(chunks([])) == []


def test_small_input_single_chunk():
    assert list(chunks([1, 2, 3])) == [[1, 2, 3]]


def test_exact_multiple_has_no_trailing_empty_chunk():
    result = list(chunks(list(range(2 * MAX_CHUNK))))
    assert [len(c) for c in result] == [MAX_CHUNK, MAX_CHUNK]


def test_one_past_boundary_keeps_last_item():
    items = list(range(MAX_CHUNK + 1))
    result = list(chunks(items))
    assert [len(c) for c in result] == [MAX_CHUNK, 1]
    assert result[-1] == [MAX_CHUNK]


def test_one_below_boundary_keeps_last_item():
    items = list(range(MAX_CHUNK - 1))
    result = list(chunks(items))
    assert len(result) == 1
    assert result[0][-1] == MAX_CHUNK - 2


@pytest.mark.parametrize("n", [1, 7, 999, 1000, 1001, 2103, 3000])
def test_chunk_count_and_order(n):
    items = list(range(n))
    result = list(chunks(items))
    assert len(result) == -(-n // MAX_CHUNK)
    assert all(0 < len(c) <= MAX_CHUNK for c in result)
    assert [x for c in result for x in c] == items


def test_2103_items_split_1000_1000_103():
    result = list(chunks(list(range(2103))))
    assert [len(c) for c in result] == [1000, 1000, 103]


def test_chunks_is_lazy():
    assert isinstance(chunks([1, 2]), types.GeneratorType)


def test_custom_size():
    assert list(chunks([1, 2, 3, 4, 5], size=2)) == [[1, 2], [3, 4], [5]]


def test_non_positive_size_rejected():
    with pytest.raises(ValueError):
        list(chunks([1], size=0))
