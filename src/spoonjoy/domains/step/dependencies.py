"""
Rules for the "uses output of" links between steps of one recipe.

A step may only consume the output of an earlier step, so any operation that
moves or removes a step must not leave a dependency pointing forward or at a
step that no longer exists. The functions here are pure: they take the step
numbers already loaded by the repository and return an error message, or
``None`` when the operation is allowed.
"""


def format_step_list(step_nums: list[int]) -> str:
    """``[3]`` -> "Step 3", ``[3, 4]`` -> "Steps 3 and 4", ``[3, 4, 5]`` -> "Steps 3, 4, and 5"."""
    nums = sorted(step_nums)
    if len(nums) == 1:
        return f"Step {nums[0]}"
    if len(nums) == 2:
        return f"Steps {nums[0]} and {nums[1]}"
    all_but_last = ", ".join(str(n) for n in nums[:-1])
    return f"Steps {all_but_last}, and {nums[-1]}"


def deletion_error(step_num: int, dependent_step_nums: list[int]) -> str | None:
    if not dependent_step_nums:
        return None
    return f"Cannot delete Step {step_num} because it is used by {format_step_list(dependent_step_nums)}"


def reorder_error(
    step_num: int,
    new_position: int,
    dependent_step_nums: list[int],
    dependency_step_nums: list[int],
) -> str | None:
    """Check moving ``step_num`` to ``new_position``.

    ``dependent_step_nums`` are the steps using this step's output (they block a
    move forward past them); ``dependency_step_nums`` are the steps this one
    uses (they block a move backward past them).
    """
    prefix = f"Cannot move Step {step_num} to position {new_position} because"

    if new_position > step_num:
        blocking = [n for n in dependent_step_nums if n <= new_position]
        if blocking:
            verb = "uses" if len(blocking) == 1 else "use"
            return f"{prefix} {format_step_list(blocking)} {verb} its output"

    if new_position < step_num:
        blocking = [n for n in dependency_step_nums if n >= new_position]
        if blocking:
            return f"{prefix} it uses output from {format_step_list(blocking)}"

    return None


def clean_step_references(values: list[int | None], current_step_num: int) -> list[int]:
    """De-duplicated, ordered references that point strictly before ``current_step_num``."""
    return sorted({n for n in values if n is not None and 0 < n < current_step_num})
