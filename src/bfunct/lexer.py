from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .config import DEFAULT_MAX_FUNCTIONS
from .errors import make_invalid_character, make_no_functions, make_too_many_functions

log = logging.getLogger(__name__)


class Opcode(str, Enum):
    MOVE_RIGHT = '>'
    MOVE_LEFT = '<'
    INCREMENT = '+'
    DECREMENT = '-'
    WRITE = '.'
    READ = ','
    CALL = '@'
    FUNCTION_BOUNDARY = '/'


BOUNDARY = Opcode.FUNCTION_BOUNDARY.value
ALLOWED = frozenset(op.value for op in Opcode)


@dataclass(frozen=True)
class Function:
    ident: int
    start: int  # index of the '/' that opens the body
    body: Tuple[Opcode, ...]

    @property
    def source(self) -> str:
        return ''.join(op.value for op in self.body)


def tokenize(source: str) -> List[Opcode]:
    """Validate the character set and return every opcode, boundaries included."""
    out: List[Opcode] = []
    for i, ch in enumerate(source):
        if ch not in ALLOWED:
            raise make_invalid_character(source=source, position=i)
        out.append(Opcode(ch))
    return out


def split_functions(source: str, *, max_functions: Optional[int] = None) -> List[Function]:
    """
    Partition source into function bodies.

    Each '/' opens a new function; anything before the first '/' belongs to
    no function and is dropped after validation. Function ids are assigned
    1..N in source order.

    Raises:
        TooManyFunctions: more than max_functions separators. Checked first.
        InvalidCharacter: a byte outside the operator set.
        NoFunctionsDefined: no separator at all.
    """
    limit = DEFAULT_MAX_FUNCTIONS if max_functions is None else max_functions
    count = source.count(BOUNDARY)
    if count > limit:
        raise make_too_many_functions(count=count, limit=limit)

    ops = tokenize(source)
    if count == 0:
        raise make_no_functions()

    functions: List[Function] = []
    start = -1
    body: List[Opcode] = []
    for i, op in enumerate(ops):
        if op is Opcode.FUNCTION_BOUNDARY:
            if start >= 0:
                functions.append(Function(ident=len(functions) + 1, start=start, body=tuple(body)))
            elif body:
                log.debug("dropping %d leading op(s) outside any function", len(body))
            start = i
            body = []
            continue
        body.append(op)
    functions.append(Function(ident=len(functions) + 1, start=start, body=tuple(body)))

    log.debug("split %d function(s) from %d source chars", len(functions), len(source))
    return functions
