"""Tests for personal number parsing and rendering."""

import pytest
from pydantic import BaseModel, ValidationError

from bankid_client import InvalidPersonalNumber, PersonalNumber
from bankid_client import personal_number as pnr_module


def test_parse_twelve_digits():
    pnr = PersonalNumber.parse("198710101234")
    assert pnr.year == 1987
    assert pnr.month == 10
    assert pnr.day == 10
    assert pnr.serial == 1234


@pytest.mark.parametrize("text", ["19871010-1234", "19871010 1234"])
def test_parse_with_separator_gives_same_value(text):
    assert PersonalNumber.parse(text) == PersonalNumber.parse("198710101234")


def test_render_zero_pads_every_field():
    pnr = PersonalNumber(year=1999, month=1, day=3, serial=101)
    assert str(pnr) == "199901030101"
    assert pnr.render() == "199901030101"


@pytest.mark.parametrize(
    "text", ["198710101234", "200001010000", "191212319999", "202402290042"]
)
def test_canonical_text_round_trips(text):
    assert PersonalNumber.parse(text).render() == text
    assert PersonalNumber.parse(PersonalNumber.parse(text).render()).render() == text


@pytest.mark.parametrize("text", ["8710101234", "871010-1234", "871010 1234"])
def test_two_digit_year_is_rejected(text):
    with pytest.raises(InvalidPersonalNumber) as excinfo:
        PersonalNumber.parse(text)
    assert "two-digit year" in excinfo.value.reason


@pytest.mark.parametrize(
    "text",
    [
        "",
        "1987101012",
        "19871010123",
        "198710101234 ",
        " 198710101234",
        "1987101012345",
        "19871010-12345",
        "198710101234567",
    ],
)
def test_wrong_length_or_shape_is_rejected(text):
    with pytest.raises(InvalidPersonalNumber):
        PersonalNumber.parse(text)


@pytest.mark.parametrize(
    "text",
    [
        "1987101O1234",
        "19871010+1234",
        "1987-1010-1234",
        "19871010_1234",
        "１９８７10101234",
        "-98710101234",
    ],
)
def test_non_digits_are_rejected(text):
    with pytest.raises(InvalidPersonalNumber):
        PersonalNumber.parse(text)


@pytest.mark.parametrize(
    "text", ["098710101234", "198700101234", "198713101234", "198710001234", "198710321234"]
)
def test_out_of_range_fields_are_rejected(text):
    with pytest.raises(InvalidPersonalNumber) as excinfo:
        PersonalNumber.parse(text)
    assert "out of range" in excinfo.value.reason


def test_non_text_is_rejected():
    with pytest.raises(InvalidPersonalNumber):
        PersonalNumber.parse(198710101234)


def test_unexpected_capture_shape_is_reported(monkeypatch):
    monkeypatch.setattr(pnr_module, "_split_groups", lambda digits: ("1987", "10"))
    with pytest.raises(InvalidPersonalNumber) as excinfo:
        PersonalNumber.parse("198710101234")
    assert excinfo.value.reason == "unexpected capture shape"


def test_invalid_personal_number_is_a_value_error():
    with pytest.raises(ValueError):
        PersonalNumber.parse("not a number")


def test_is_valid():
    assert PersonalNumber.is_valid("19871010-1234")
    assert not PersonalNumber.is_valid("8710101234")


def test_masked_hides_serial():
    assert PersonalNumber.parse("198710101234").masked() == "19871010****"


def test_equality_and_hashing():
    first = PersonalNumber.parse("198710101234")
    second = PersonalNumber.parse("19871010-1234")
    other = PersonalNumber.parse("198710101235")
    assert first == second
    assert first != other
    assert len({first, second, other}) == 2


def test_is_immutable():
    pnr = PersonalNumber.parse("198710101234")
    with pytest.raises(ValidationError):
        pnr.year = 1990


def test_direct_construction_is_range_checked():
    with pytest.raises(ValidationError):
        PersonalNumber(year=87, month=10, day=10, serial=1234)
    with pytest.raises(ValidationError):
        PersonalNumber(year=1987, month=10, day=10, serial=12345)


class _Holder(BaseModel):
    pnr: PersonalNumber


def test_embeds_in_models_as_canonical_text():
    holder = _Holder.model_validate({"pnr": "19871010-1234"})
    assert holder.pnr == PersonalNumber.parse("198710101234")
    assert holder.model_dump() == {"pnr": "198710101234"}
    assert holder.model_dump_json() == '{"pnr":"198710101234"}'


def test_embedded_invalid_text_fails_validation():
    with pytest.raises(ValidationError):
        _Holder.model_validate({"pnr": "8710101234"})
