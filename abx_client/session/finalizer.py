"""Final ordering of the collected dataset."""
from __future__ import annotations

from operator import attrgetter
from typing import List

from abx_client.protocol.codec import MarketMessage

from .state import SessionState


def finalize(session: SessionState) -> List[MarketMessage]:
    """Sort ``session.message_log`` ascending by sequence number and return it.

    ``list.sort`` is stable and no deduplication is needed because
    :meth:`SessionState.record` never admits a sequence number twice.
    """

    session.message_log.sort(key=attrgetter("sequence_num"))
    return session.message_log


__all__ = ["finalize"]
