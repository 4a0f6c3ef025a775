from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterator


class CompletionStream(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def stream(self, prompt: str) -> Iterator[str]:
        """Send one user-role prompt and yield text deltas in arrival order."""
