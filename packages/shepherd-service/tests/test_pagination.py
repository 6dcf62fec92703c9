"""Continuation cursor handling."""

from __future__ import annotations

import base64

import pytest

from shepherd_service.pagination import (
    InvalidCursorError,
    PaginationOpts,
    decode_cursor,
    encode_cursor,
)


def test_missing_cursor_starts_at_first_item():
    assert decode_cursor(None) == 0
    assert decode_cursor("") == 0


def test_cursor_is_opaque_and_url_safe():
    cursor = encode_cursor(40)
    assert cursor.isascii()
    assert not set(cursor) & set("+/= ")
    assert decode_cursor(cursor) == 40


@pytest.mark.parametrize(
    "cursor",
    [
        "not base64 at all!",
        base64.urlsafe_b64encode(b"[1, 2]").decode(),
        base64.urlsafe_b64encode(b'{"o": -1}').decode(),
        base64.urlsafe_b64encode(b'{"o": "3"}').decode(),
        base64.urlsafe_b64encode(b'{"o": true}').decode(),
        base64.urlsafe_b64encode(b'{"offset": 3}').decode(),
        "é",
    ],
)
def test_malformed_cursors_are_rejected(cursor):
    with pytest.raises(InvalidCursorError):
        decode_cursor(cursor)


@pytest.mark.parametrize("num_items", [0, -1])
def test_page_size_must_be_positive(num_items):
    with pytest.raises(ValueError, match="num_items"):
        PaginationOpts(num_items=num_items)


def test_page_size_of_one_is_accepted():
    assert PaginationOpts(num_items=1).num_items == 1
