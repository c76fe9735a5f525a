"""Tests for FilterValidator."""

from __future__ import annotations

import logging

import pytest

from tablespec.exceptions import FilterValidationError
from tablespec.query.validator import FilterValidator


def test_keeps_declared_fields(users) -> None:
    filters = {"name": "Ann", "/email": "%@x.org", "id": 3, "date_created": None}
    assert FilterValidator().validate(filters, users) == filters


def test_keeps_two_part_aliases(users) -> None:
    filters = {"u.name": "Ann", "/o.total": "gt;10"}
    assert FilterValidator().validate(filters, users) == filters


def test_drops_unknown_fields_with_warning(users, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="tablespec.query.validator"):
        kept = FilterValidator().validate({"name": "Ann", "nmae": "Bob"}, users)
    assert kept == {"name": "Ann"}
    assert "nmae" in caplog.text
    assert "Did you mean: name" in caplog.text


def test_drops_three_part_paths(users) -> None:
    assert FilterValidator().validate({"a.b.c": 1}, users) == {}


def test_validates_marker_groups_recursively(users) -> None:
    filters = {"/": {"name": "Ann", "bogus": 1, "/age": "gt;3"}}
    assert FilterValidator().validate(filters, users) == {
        "/": {"name": "Ann", "/age": "gt;3"}
    }


def test_drops_marker_group_left_empty(users) -> None:
    assert FilterValidator().validate({"/": {"bogus": 1}}, users) == {}


def test_marker_only_key_with_scalar_is_dropped(users) -> None:
    assert FilterValidator().validate({"/": "x"}, users) == {}


def test_on_drop_callback(users) -> None:
    dropped: list[FilterValidationError] = []
    FilterValidator(on_drop=dropped.append).validate({"emial": "x"}, users)
    assert [e.invalid_field for e in dropped] == ["emial"]
    assert dropped[0].suggestions == ["email"]


def test_strict_mode_raises(users) -> None:
    with pytest.raises(FilterValidationError) as exc_info:
        FilterValidator(strict=True).validate({"/nmae": "x"}, users)
    assert exc_info.value.table == "users"
    assert exc_info.value.to_dict()["suggestions"] == ["name"]
