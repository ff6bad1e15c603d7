from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple, TypeVar

R = TypeVar("R")
M = TypeVar("M")


def fold_rows(
    rows: Iterable[Tuple[R, Optional[M]]],
    root_key: Callable[[R], Hashable] = id,
    member_key: Callable[[M], Hashable] = id,
) -> List[Tuple[R, List[M]]]:
    """
    Collapse (root, member) rows produced by a to-many join into one entry per root.

    Roots keep their first-seen order; each root's members are deduplicated by
    `member_key` and keep their first-seen order too. A `None` member (outer join
    with no match) yields the root with an empty collection.
    """
    slots: Dict[Hashable, Tuple[R, List[M], set]] = {}

    for root, member in rows:
        key = root_key(root)
        slot = slots.get(key)
        if slot is None:
            slot = (root, [], set())
            slots[key] = slot

        if member is None:
            continue

        mkey = member_key(member)
        if mkey in slot[2]:
            continue
        slot[2].add(mkey)
        slot[1].append(member)

    return [(root, members) for root, members, _ in slots.values()]
