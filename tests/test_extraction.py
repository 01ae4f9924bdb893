"""Tests for quantity extractors."""

from niblet.services.extraction import extract_number, extract_weight, kg_to_lbs


def test_extract_weight_reads_pounds() -> None:
    quantity = extract_weight("I weigh 182.5 lbs this morning")

    assert quantity is not None
    assert quantity.value == 182.5
    assert quantity.unit == "lbs"


def test_extract_weight_converts_kilograms() -> None:
    quantity = extract_weight("Scale says 70 kg")

    assert quantity is not None
    assert quantity.value == 154.3
    assert quantity.unit == "kg"


def test_extract_weight_accepts_spelled_out_units() -> None:
    assert extract_weight("down to 150 pounds").value == 150.0
    assert extract_weight("80 kilograms today").value == 176.4
    assert extract_weight("160LB").value == 160.0


def test_extract_weight_uses_first_match() -> None:
    quantity = extract_weight("went from 190 lbs to 185 lbs")

    assert quantity.value == 190.0


def test_extract_weight_requires_unit_by_default() -> None:
    assert extract_weight("I weigh 150 today") is None
    assert extract_weight("no numbers here") is None


def test_extract_weight_default_unit_reads_bare_number() -> None:
    assert extract_weight("I weigh 150 today", default_unit="lbs").value == 150.0
    assert extract_weight("I weigh 70 today", default_unit="kg").value == 154.3
    assert extract_weight("I weigh a lot", default_unit="kg") is None


def test_extract_number_returns_first_number() -> None:
    assert extract_number("about 5.5 feet, 70 inches") == 5.5
    assert extract_number("70") == 70.0
    assert extract_number("seventy") is None


def test_kg_to_lbs_rounds_to_one_decimal() -> None:
    assert kg_to_lbs(100) == 220.5
