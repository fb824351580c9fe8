"""
Provider base - the capability a loop iteration invokes
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union


class Provider(ABC):
    """
    A named, invokable agent.

    ``run`` receives the prompt for one iteration and the working directory
    and returns the agent's output. Failures are raised as ``ProviderError``.
    Implementations must be cancellable: when the awaiting task is cancelled
    any external work is torn down before ``CancelledError`` propagates.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def run(self, prompt: str, work_dir: Union[str, Path]) -> str:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
