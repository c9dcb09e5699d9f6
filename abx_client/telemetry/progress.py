"""Terminal progress bars for the recovery scan and the export."""
from __future__ import annotations

from tqdm import tqdm


def progress_bar(total: int, desc: str, *, enabled: bool = True, unit: str = "msg") -> tqdm:
    """Return a ``tqdm`` bar; a disabled bar still accepts ``update`` calls."""

    return tqdm(
        total=total,
        desc=desc,
        unit=unit,
        dynamic_ncols=True,
        disable=not enabled,
    )


__all__ = ["progress_bar"]
