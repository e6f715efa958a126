from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Sequence

from .lexer import Function, split_functions


@dataclass(frozen=True)
class FunctionTable:
    """Function id (1..N) -> Function. The last function is the entry point."""

    functions: Sequence[Function]

    def __post_init__(self) -> None:
        if not self.functions:
            raise ValueError('a function table needs at least one function')
        for expected, fn in enumerate(self.functions, start=1):
            if fn.ident != expected:
                raise ValueError(f"function ids must be 1..N in order, got {fn.ident} at slot {expected}")

    def __len__(self) -> int:
        return len(self.functions)

    def __iter__(self) -> Iterator[Function]:
        return iter(self.functions)

    def __contains__(self, ident: object) -> bool:
        return isinstance(ident, int) and 1 <= ident <= len(self.functions)

    def __getitem__(self, ident: int) -> Function:
        if ident not in self:
            raise KeyError(ident)
        return self.functions[ident - 1]

    @property
    def entry(self) -> Function:
        return self.functions[-1]

    def entry_points(self) -> Dict[int, int]:
        """Function id -> index of the '/' opening its body."""
        return {fn.ident: fn.start for fn in self.functions}


def build_function_table(source: str, *, max_functions: Optional[int] = None) -> FunctionTable:
    return FunctionTable(functions=tuple(split_functions(source, max_functions=max_functions)))
