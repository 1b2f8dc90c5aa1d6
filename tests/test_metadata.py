from __future__ import annotations

import dataclasses

import pytest

from rlm_protocol.errors import InvalidContextError
from rlm_protocol.metadata import ContextKind, ContextMetadata, describe_context


def test_describes_text_context() -> None:
    metadata = describe_context("abcde")

    assert metadata == ContextMetadata(lengths=(5,), total_length=5, kind=ContextKind.STR)


def test_describes_empty_list_as_single_zero_chunk() -> None:
    metadata = describe_context([])

    assert metadata.lengths == (0,)
    assert metadata.total_length == 0
    assert metadata.kind is ContextKind.LIST


def test_describes_list_of_strings() -> None:
    metadata = describe_context(["ab", "cde"])

    assert metadata.lengths == (2, 3)
    assert metadata.total_length == 5
    assert metadata.kind is ContextKind.LIST


def test_measures_non_text_chunks_by_rendered_json() -> None:
    metadata = describe_context([{"a": 1}, [1, 2], 10, None])

    # {"a":1} / [1,2] / 10 / null
    assert metadata.lengths == (7, 5, 2, 4)
    assert metadata.total_length == 18


def test_describes_mapping_values_in_order() -> None:
    metadata = describe_context({"first": "xyz", "second": ["a"], "third": ""})

    assert metadata.kind is ContextKind.DICT
    assert metadata.lengths == (3, 5, 0)
    assert metadata.total_length == 8


def test_empty_mapping_has_no_chunks() -> None:
    metadata = describe_context({})

    assert metadata.lengths == ()
    assert metadata.total_length == 0
    assert metadata.kind is ContextKind.DICT


def test_tuple_contexts_are_treated_as_lists() -> None:
    assert describe_context(("a", "bb")).lengths == (1, 2)


def test_metadata_is_a_snapshot() -> None:
    context = ["aa", "bbb"]
    metadata = describe_context(context)

    context.append("cccc")
    context[0] = "a" * 50

    assert metadata.lengths == (2, 3)
    assert metadata.total_length == 5
    with pytest.raises(dataclasses.FrozenInstanceError):
        metadata.total_length = 0  # type: ignore[misc]


@pytest.mark.parametrize("context", [42, None, b"bytes", {"a", "b"}, 3.5])
def test_rejects_unsupported_context_shapes(context: object) -> None:
    with pytest.raises(InvalidContextError):
        describe_context(context)  # type: ignore[arg-type]


def test_invalid_context_error_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="got int"):
        describe_context(7)  # type: ignore[arg-type]
