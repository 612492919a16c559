from __future__ import annotations

from typing import AsyncContextManager, Protocol


class LeasePort(Protocol):
    def hold(self, name: str) -> AsyncContextManager[None]:
        """
        Hold the named lease for the duration of the block.
        Raises LeaseNotAcquired if it stays busy past the wait budget.
        """
