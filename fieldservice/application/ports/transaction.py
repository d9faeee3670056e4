"""Port interface for grouping several repository writes into one unit."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager


class Transaction(ABC):
    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager:
        """Scope whose writes are all undone if the block raises.

        Nothing is committed on exit; the caller still owns the outer commit.
        """
        ...
