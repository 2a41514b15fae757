import pytest

from spoonjoy.domains.step.dependencies import (
    format_step_list,
    deletion_error,
    reorder_error,
    clean_step_references,
)


@pytest.mark.parametrize(
    "step_nums, expected",
    [
        ([3], "Step 3"),
        ([4, 3], "Steps 3 and 4"),
        ([5, 3, 4], "Steps 3, 4, and 5"),
    ],
)
def test_format_step_list(step_nums, expected):
    assert format_step_list(step_nums) == expected


def test_deletion_allowed_without_dependents():
    assert deletion_error(2, []) is None


def test_deletion_names_every_dependent():
    assert deletion_error(2, [3, 4]) == "Cannot delete Step 2 because it is used by Steps 3 and 4"


def test_move_down_blocked_by_dependent():
    # Step 2 feeds step 3; moving 2 down to 3 would put it after its consumer
    assert reorder_error(2, 3, dependent_step_nums=[3], dependency_step_nums=[]) == (
        "Cannot move Step 2 to position 3 because Step 3 uses its output"
    )


def test_move_up_blocked_by_dependency():
    assert reorder_error(3, 2, dependent_step_nums=[], dependency_step_nums=[2]) == (
        "Cannot move Step 3 to position 2 because it uses output from Step 2"
    )


def test_unrelated_dependencies_do_not_block():
    assert reorder_error(3, 2, dependent_step_nums=[5], dependency_step_nums=[1]) is None
    assert reorder_error(2, 3, dependent_step_nums=[4], dependency_step_nums=[1]) is None


def test_clean_step_references_dedupes_and_drops_forward_refs():
    assert clean_step_references([2, 1, 2, None, 5, 0], current_step_num=3) == [1, 2]
