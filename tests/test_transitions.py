import pytest

from app.common.errors import InvalidInput
from app.features.progress.transitions import apply_progress_patch, is_finished


def test_new_row_starts_locked():
    assert apply_progress_patch(None, None, {}) == ("locked", False)


def test_status_moves_forward_only():
    assert apply_progress_patch("locked", False, {"status": "in_progress"}) == ("in_progress", False)
    assert apply_progress_patch("completed", False, {"status": "in_progress"}) == ("completed", False)
    assert apply_progress_patch("in_progress", False, {"status": "locked"}) == ("in_progress", False)


def test_qualified_is_sticky_and_forces_completed():
    assert apply_progress_patch("in_progress", False, {"qualified": True}) == ("completed", True)
    assert apply_progress_patch("completed", True, {"qualified": False, "status": "in_progress"}) == ("completed", True)


def test_patches_commute():
    a = {"status": "in_progress"}
    b = {"status": "completed", "qualified": True}
    one = apply_progress_patch(*apply_progress_patch("locked", False, a), b)
    two = apply_progress_patch(*apply_progress_patch("locked", False, b), a)
    assert one == two == ("completed", True)


def test_reapplying_a_patch_is_a_no_op():
    patch = {"status": "completed", "qualified": True}
    once = apply_progress_patch("locked", False, patch)
    assert apply_progress_patch(*once, patch) == once


def test_unknown_status_rejected():
    with pytest.raises(InvalidInput):
        apply_progress_patch("archived", False, {})
    with pytest.raises(InvalidInput):
        apply_progress_patch("locked", False, {"status": "done"})


def test_is_finished():
    assert is_finished("completed", True) is True
    assert is_finished("completed", False) is False
    assert is_finished("in_progress", True) is False
