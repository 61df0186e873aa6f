"""
Collapse runs of adjacent slots into display blocks for proportional rendering.
"""

from typing import List, Sequence, Tuple

from .models import DisplayBlock, Slot


def is_groupable(previous: Slot, current: Slot) -> bool:
    """
    Check whether two adjacent slots render as one block.

    Peak slots always merge with each other, whoever booked them. Outside
    peak time only slots of the same member in the same state (use or
    charge) merge; free slots stay separate.
    """
    if previous.peak_time or current.peak_time:
        return previous.peak_time and current.peak_time

    if not previous.member_name or previous.member_name != current.member_name:
        return False

    return bool(previous.charge_time) == bool(current.charge_time)


def display_class_for(height: int) -> str:
    return f"slot-height-{height}"


def _finalize(first: Slot, height: int) -> DisplayBlock:
    return DisplayBlock(
        day_index=first.day_index,
        slot_index=first.slot_index,
        height=height,
        member_name=first.member_name,
        charge_time=first.charge_time,
        peak_time=first.peak_time,
        is_available_for_use=first.is_available_for_use,
        is_available_for_charging=first.is_available_for_charging,
        display_class=display_class_for(height)
    )


def group_slots(slots: Sequence[Slot]) -> Tuple[DisplayBlock, ...]:
    """
    Merge one day's slots, in index order, into display blocks.

    Example:
        [A, A, A(charge), free, free] -> heights [2, 1, 1, 1]
    """
    if not slots:
        return ()

    ordered = sorted(slots, key=lambda s: s.slot_index)
    blocks: List[DisplayBlock] = []

    first = ordered[0]
    previous = first
    height = 1

    for current in ordered[1:]:
        if is_groupable(previous, current):
            height += 1
        else:
            blocks.append(_finalize(first, height))
            first = current
            height = 1
        previous = current

    blocks.append(_finalize(first, height))
    return tuple(blocks)
