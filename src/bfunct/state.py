from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .config import Limits
from .errors import make_capacity_exceeded

ByteSource = Union[str, bytes, bytearray]


def as_bytes(data: Optional[ByteSource]) -> bytes:
    if data is None:
        return b''
    if isinstance(data, str):
        return data.encode('utf-8')
    return bytes(data)


def check_capacity(stream: str, data: bytes, capacity: int) -> bytes:
    if len(data) > capacity:
        raise make_capacity_exceeded(stream=stream, length=len(data), capacity=capacity)
    return data


@dataclass
class MachineState:
    """Tape, streams and call bookkeeping for one execution pass."""

    limits: Limits
    tape: bytearray = field(init=False)
    tape_ptr: int = 0
    input: bytes = b''
    input_len: int = 0
    input_ptr: int = 0
    output: bytearray = field(init=False)
    output_ptr: int = 0
    expected: Optional[bytes] = None
    depth: int = 0
    steps: int = 0

    def __post_init__(self) -> None:
        self.tape = bytearray(self.limits.tape_size)
        self.output = bytearray(self.limits.output_size)

    @classmethod
    def for_input(
        cls,
        data: Optional[ByteSource],
        limits: Limits,
        expected: Optional[ByteSource] = None,
    ) -> "MachineState":
        raw = check_capacity('input', as_bytes(data), limits.input_size)
        state = cls(limits=limits)
        state.load_input(raw)
        if expected is not None:
            state.expected = check_capacity('expected output', as_bytes(expected), limits.output_size)
        return state

    def load_input(self, raw: bytes) -> None:
        # Zero-padded to capacity; reads stop at the literal length.
        self.input = raw + bytes(self.limits.input_size - len(raw))
        self.input_len = len(raw)
        self.input_ptr = 0

    def produced(self) -> bytes:
        return bytes(self.output[:self.output_ptr])
