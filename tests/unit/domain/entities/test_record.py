"""Unit tests for record entity helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from crudbase.domain.entities.record import (
    apply_patch,
    build_record,
    collection_names,
    is_valid_document,
    matches_filter,
    seed_document,
    to_iso,
)

T0 = "2024-01-02T03:04:05.678Z"
T1 = "2024-01-02T03:04:06.000Z"


def test_to_iso_uses_millisecond_precision_and_z_suffix():
    moment = datetime(2024, 1, 2, 3, 4, 5, 678912, tzinfo=timezone.utc)

    assert to_iso(moment) == "2024-01-02T03:04:05.678Z"


def test_to_iso_converts_to_utc():
    moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))

    assert to_iso(moment) == "2024-01-02T03:04:05.000Z"


def test_build_record_assigns_identity_and_timestamps():
    record = build_record({"name": "Jane Doe"}, "1-abc", T0)

    assert record == {
        "name": "Jane Doe",
        "id": "1-abc",
        "createdAt": T0,
        "updatedAt": T0,
    }


def test_build_record_ignores_client_identity():
    record = build_record(
        {"id": "forged", "createdAt": "1999-01-01T00:00:00.000Z", "name": "x"},
        "1-abc",
        T0,
    )

    assert record["id"] == "1-abc"
    assert record["createdAt"] == T0


def test_build_record_copies_nested_values():
    data = {"tags": ["a"]}
    record = build_record(data, "1-abc", T0)

    data["tags"].append("b")
    assert record["tags"] == ["a"]


def test_apply_patch_is_shallow_merge():
    existing = build_record({"name": "Jane", "email": "jane@example.com"}, "1-abc", T0)

    updated = apply_patch(existing, {"name": "Janet", "age": 30}, T1)

    assert updated["name"] == "Janet"
    assert updated["email"] == "jane@example.com"
    assert updated["age"] == 30
    assert updated["updatedAt"] == T1


def test_apply_patch_protects_identity_fields():
    existing = build_record({"name": "Jane"}, "1-abc", T0)

    updated = apply_patch(existing, {"id": "other", "createdAt": T1}, T1)

    assert updated["id"] == "1-abc"
    assert updated["createdAt"] == T0


def test_apply_patch_never_moves_updated_at_backwards():
    existing = build_record({"name": "Jane"}, "1-abc", T1)

    updated = apply_patch(existing, {"name": "Janet"}, T0)

    assert updated["updatedAt"] == T1
    assert updated["updatedAt"] >= updated["createdAt"]


def test_apply_patch_does_not_mutate_existing():
    existing = build_record({"name": "Jane"}, "1-abc", T0)

    apply_patch(existing, {"name": "Janet"}, T1)

    assert existing["name"] == "Jane"


@pytest.mark.parametrize(
    "filters, expected",
    [
        (None, True),
        ({}, True),
        ({"role": "admin"}, True),
        ({"role": "user"}, False),
        ({"age": "30"}, True),
        ({"active": "true"}, True),
        ({"nickname": "null"}, True),
        ({"missing": "x"}, False),
        ({"role": "admin", "age": "31"}, False),
    ],
)
def test_matches_filter(filters, expected):
    record = {"role": "admin", "age": 30, "active": True, "nickname": None}

    assert matches_filter(record, filters) is expected


def test_collection_names_skip_metadata():
    document = {"users": [], "metadata": {"version": "1.0.0"}, "posts": [{}]}

    assert collection_names(document) == ["users", "posts"]


@pytest.mark.parametrize(
    "document, expected",
    [
        ({"users": []}, True),
        ({"users": [{"id": "1"}], "metadata": {"created": T0}}, True),
        ({}, True),
        ([], False),
        ({"users": {}}, False),
        ({"users": ["not-a-record"]}, False),
        ("text", False),
    ],
)
def test_is_valid_document(document, expected):
    assert is_valid_document(document) is expected


def test_seed_document_has_default_collections():
    assert seed_document() == {"users": [], "posts": [], "comments": []}


def test_seed_document_with_metadata():
    document = seed_document({"created": T0, "version": "1.0.0"})

    assert document["metadata"] == {"created": T0, "version": "1.0.0"}
    assert collection_names(document) == ["users", "posts", "comments"]
