"""Reference code generation."""

from datetime import datetime

from appro.services.references import generate_reference, is_valid_reference

JAN_2024 = datetime(2024, 1, 20)


def test_increments_highest_suffix_of_the_month():
    existing = ["APP-202401-001", "APP-202401-002"]
    assert generate_reference(existing, JAN_2024) == "APP-202401-003"


def test_first_reference_of_the_month():
    assert generate_reference([], JAN_2024) == "APP-202401-001"


def test_other_months_and_garbage_are_ignored():
    existing = ["APP-202312-041", "APP-202401-abc", "XYZ-202401-009", "", "APP-202401-007"]
    assert generate_reference(existing, JAN_2024) == "APP-202401-008"


def test_gaps_do_not_get_refilled():
    assert generate_reference(["APP-202401-001", "APP-202401-010"], JAN_2024) == "APP-202401-011"


def test_suffix_grows_past_three_digits():
    assert generate_reference(["APP-202401-999"], JAN_2024) == "APP-202401-1000"


def test_deterministic_and_custom_prefix():
    existing = ["CMD-202401-004"]
    assert generate_reference(existing, JAN_2024, prefix="CMD") == "CMD-202401-005"
    assert generate_reference(existing, JAN_2024, prefix="CMD") == "CMD-202401-005"


def test_is_valid_reference():
    assert is_valid_reference("APP-202401-003")
    assert not is_valid_reference("APP-2024-003")
    assert not is_valid_reference("app-202401-003")
