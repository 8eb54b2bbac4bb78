"""Natural ordering of chromosome labels.

Used when reporting per-chromosome results so that Chr2 is listed
before Chr10.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def natural_sort_key(chrom: str) -> tuple:
    """Sort key that compares digit runs numerically.

    Examples:
        >>> natural_sort_key("Chr9") < natural_sort_key("Chr11")
        True
        >>> natural_sort_key("scaffold_2") < natural_sort_key("scaffold_10")
        True
    """
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
        for part in re.split(r"(\d+)", str(chrom))
        if part
    )


def sort_chromosomes(chroms: Iterable[str]) -> list[str]:
    """Return unique chromosome labels in natural order.

    Examples:
        >>> sort_chromosomes(["Chr10", "Chr2", "Chr2", "Chr1"])
        ['Chr1', 'Chr2', 'Chr10']
    """
    return sorted(set(chroms), key=natural_sort_key)
