import pytest

from app.common.errors import InvalidInput
from app.features.levels.normalization import (
    is_first_level,
    level_number,
    level_sort_key,
    normalize_class_level,
    normalize_level,
)


@pytest.mark.parametrize("raw", ["Level 1", "level 01", " 1 ", "1", 1, "LEVEL-1"])
def test_level_spellings_collapse(raw):
    assert normalize_level(raw) == "1"


def test_free_text_level_is_trimmed_not_rejected():
    assert normalize_level("  Intro ") == "Intro"
    assert level_number("Intro") is None


@pytest.mark.parametrize("raw", [None, "", "   ", True])
def test_missing_level_rejected(raw):
    with pytest.raises(InvalidInput):
        normalize_level(raw)


def test_class_level_required():
    assert normalize_class_level(" 6th ") == "6th"
    with pytest.raises(InvalidInput):
        normalize_class_level("  ")


def test_sort_key_orders_numbers_before_text():
    levels = ["10", "intro", "2", "Level 1", "Advanced"]
    assert sorted(levels, key=level_sort_key) == ["Level 1", "2", "10", "Advanced", "intro"]


def test_is_first_level():
    assert is_first_level("Level 1") is True
    assert is_first_level("2") is False
    assert is_first_level("") is False
