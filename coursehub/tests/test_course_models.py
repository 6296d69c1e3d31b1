from __future__ import annotations

from decimal import Decimal

import pytest

from coursehub.courses.models import Course, UpstreamCourse, parse_price


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("19.90", Decimal("19.90")),
        ("10", Decimal(10)),
        (" 5.5 ", Decimal("5.5")),
        ("not-a-number", Decimal(0)),
        ("", Decimal(0)),
        (None, Decimal(0)),
        ("NaN", Decimal(0)),
        ("Infinity", Decimal(0)),
        ("1e400", Decimal(0)),
        ("-1e400", Decimal(0)),
        ("1e300", Decimal("1e300")),
    ],
)
def test_parse_price_is_lenient(raw, expected):
    assert parse_price(raw) == expected


def test_upstream_course_coerces_loose_scalars():
    record = UpstreamCourse.model_validate(
        {"id": 42, "title": None, "price": 19.9, "old_price": "29.90", "extra": "x"}
    )
    assert record.id == "42"
    assert record.title == ""
    assert record.price == "19.9"
    assert record.old_price == "29.90"


def test_upstream_course_rejects_nested_values():
    with pytest.raises(ValueError):
        UpstreamCourse.model_validate({"id": {"nested": True}})


def test_to_course_stamps_institution_and_parses_prices():
    record = UpstreamCourse(
        id="c1", title="A", type="POS", price="19.90", old_price="not-a-number"
    )
    result = record.to_course(7)
    assert result.institution_id == "7"
    assert result.price == Decimal("19.90")
    assert float(result.price) == pytest.approx(19.90)
    assert result.old_price == 0
    assert result.type == "POS"


def test_course_serializes_with_wire_names_and_numeric_prices():
    payload = Course(
        id="c1", title="A", institution_id="3", price=Decimal("10"), old_price=Decimal("20.5")
    ).model_dump(mode="json", by_alias=True)
    assert payload == {
        "id": "c1",
        "title": "A",
        "ie": "3",
        "category": "",
        "type": "",
        "thumb": "",
        "link": "",
        "price": 10.0,
        "old_price": 20.5,
    }


def test_course_is_read_only():
    item = Course(id="c1")
    with pytest.raises(ValueError):
        item.title = "changed"  # type: ignore[misc]


def test_non_scalar_prices_become_zero_but_other_fields_stay_strict():
    record = UpstreamCourse.model_validate(
        {"id": "c1", "price": {"amount": "10"}, "old_price": ["20"]}
    )
    assert record.to_course(1).price == 0
    assert record.to_course(1).old_price == 0

    with pytest.raises(ValueError):
        UpstreamCourse.model_validate({"id": "c1", "title": ["A"]})


def test_out_of_range_price_serializes_as_a_number():
    item = UpstreamCourse(id="c1", price="1e400").to_course(1)
    assert item.model_dump(mode="json", by_alias=True)["price"] == 0.0
