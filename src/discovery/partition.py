"""
Assignment of discovered tables to connector tasks.

Tables are split into contiguous slices in listing order. With n tables
and k groups every group gets n // k tables and the first n % k groups
get one more, so [a, b, c, d, e] over 2 tasks is [a, b, c] and [d, e].
The same ordered list and task count always yield the same assignment.
"""

from typing import Sequence, TypeVar

from .table_id import TableId

T = TypeVar("T")


def group_partitions(elements: Sequence[T], num_groups: int) -> list[list[T]]:
    """
    Split elements into num_groups contiguous groups of near-equal size.

    Args:
        elements: Ordered elements to split
        num_groups: Number of groups to produce

    Returns:
        num_groups lists whose concatenation is elements; trailing groups
        are empty when num_groups exceeds len(elements)

    Raises:
        ValueError: If num_groups is not positive
    """
    if num_groups <= 0:
        raise ValueError(f"Number of groups must be positive, got {num_groups}")

    per_group, leftover = divmod(len(elements), num_groups)
    groups = []
    start = 0
    for index in range(num_groups):
        size = per_group + (1 if index < leftover else 0)
        groups.append(list(elements[start:start + size]))
        start += size

    return groups


def assign_tables(
    tables: Sequence[TableId], max_tasks: int, query_mode: bool = False
) -> list[list[TableId]]:
    """
    Group tables into at most max_tasks task assignments.

    Args:
        tables: Current filtered tables in listing order
        max_tasks: Maximum number of tasks
        query_mode: The connector runs a single custom query

    Returns:
        One list per task. In query mode this is a single empty list,
        which tells the task to run the query. Otherwise there are
        min(max_tasks, len(tables)) non-empty groups, none if there are
        no tables.

    Raises:
        ValueError: If max_tasks is less than 1
    """
    if max_tasks < 1:
        raise ValueError(f"max_tasks must be at least 1, got {max_tasks}")

    if query_mode:
        return [[]]

    if not tables:
        return []

    return group_partitions(tables, min(max_tasks, len(tables)))
