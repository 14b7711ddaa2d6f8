"""
System clock adapter - Implements Clock protocol.

Ledger timestamps are whole seconds since the Unix epoch.
"""

import time


class SystemClock:
    """
    Implements Clock protocol via the host wall clock.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def now(self) -> int:
        return int(time.time())
