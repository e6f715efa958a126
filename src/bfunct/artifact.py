from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Optional

from .config import Limits, load_limits
from .state import ByteSource

if TYPE_CHECKING:
    from .functions import FunctionTable


@dataclass(frozen=True)
class ExecutionReport:
    output: bytes
    steps: int
    tape_ptr: int
    input_consumed: int


class CompiledArtifact(ABC):
    """A runnable compiled program. Backends differ only in representation."""

    backend: ClassVar[str]

    def __init__(self, limits: Optional[Limits] = None):
        self.limits = limits if limits is not None else load_limits()

    @classmethod
    @abstractmethod
    def from_source(cls, source: str, table: Optional["FunctionTable"] = None,
                    limits: Optional[Limits] = None) -> "CompiledArtifact":
        ...

    @property
    @abstractmethod
    def function_count(self) -> int:
        ...

    @abstractmethod
    def execute(self, input: Optional[ByteSource] = None, expected: Optional[ByteSource] = None) -> ExecutionReport:
        """
        Run the entry function once over a fresh machine.

        When expected is given, every written byte is compared against it as
        it is produced. Raises a Trap subclass on any execution failure.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} backend={self.backend} functions={self.function_count}>"
