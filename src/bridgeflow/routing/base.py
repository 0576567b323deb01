"""Abstract pricing interface for AMM router backends."""

import logging
from abc import ABC, abstractmethod
from enum import Enum

logger = logging.getLogger(__name__)


class RouterBackend(str, Enum):
    """Which of the two configured routers produced a quote."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class PricingBackend(ABC):
    """A router that can price a swap path and execute it.

    Implementations perform reads only; the swap itself is encoded into the
    bridge batch and executed by the settlement contract.
    """

    @property
    @abstractmethod
    def backend_id(self) -> RouterBackend:
        """Slot this backend occupies in the quote engine."""
        pass

    @property
    @abstractmethod
    def router_address(self) -> str:
        """Checksummed router contract address (the swap step's target)."""
        pass

    @abstractmethod
    async def get_amounts_out(self, amount_in: int, path: list[str]) -> list[int]:
        """
        Expected output for every hop of a path.

        Args:
            amount_in: Input amount in base units of path[0]
            path: Token addresses, input first

        Returns:
            One amount per path element; the last one is the output

        Raises:
            Any exception on revert or transport failure
        """
        pass

    @property
    def name(self) -> str:
        return f"{self.backend_id.value}:{self.router_address}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(backend={self.backend_id.value}, router={self.router_address})"
