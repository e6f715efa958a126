from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional


class ErrorKind(str, Enum):
    INVALID_CHARACTER = 'InvalidCharacter'
    NO_FUNCTIONS_DEFINED = 'NoFunctionsDefined'
    TOO_MANY_FUNCTIONS = 'TooManyFunctions'
    INPUT_EXHAUSTED = 'InputExhausted'
    OUTPUT_MISMATCH = 'OutputMismatch'
    UNDEFINED_FUNCTION_CALL = 'UndefinedFunctionCall'
    UNBALANCED_CALL_STACK = 'UnbalancedCallStack'
    CALL_STACK_OVERFLOW = 'CallStackOverflow'
    OUTPUT_OVERFLOW = 'OutputOverflow'
    STEP_LIMIT_EXCEEDED = 'StepLimitExceeded'
    ILLEGAL_INSTRUCTION = 'IllegalInstruction'
    CAPACITY_EXCEEDED = 'CapacityExceeded'


def _build_context(source: str, position: int, *, context: int = 16) -> str:
    start = max(0, position - context)
    end = min(len(source), position + context + 1)
    snippet = source[start:end].replace('\n', ' ').replace('\t', ' ')
    lead = '...' if start > 0 else ''
    tail = '...' if end < len(source) else ''
    caret = ' ' * (len(lead) + position - start) + '^'
    return f"  {lead}{snippet}{tail}\n  {caret}"


def _hint_for(kind: ErrorKind) -> Optional[str]:
    if kind is ErrorKind.INVALID_CHARACTER:
        return 'Only > < + - . , @ and / are allowed. Comments and whitespace are not.'
    if kind is ErrorKind.NO_FUNCTIONS_DEFINED:
        return 'Start every function with "/". The last function is the entry point.'
    if kind is ErrorKind.TOO_MANY_FUNCTIONS:
        return 'A call target is one cell, so at most 255 functions can be addressed.'
    if kind is ErrorKind.UNDEFINED_FUNCTION_CALL:
        return 'The current cell must hold an id in 1..N before "@". Id 0 is reserved.'
    if kind is ErrorKind.UNBALANCED_CALL_STACK:
        return 'Calling the entry function runs it to the end of the program without returning.'
    return None


def _byte(value: Optional[int]) -> str:
    return 'end of stream' if value is None else f"0x{value:02x}"


@dataclass
class BrainfunctError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class CompileError(BrainfunctError):
    """A program does not do what was promised. Always fatal to the build."""

    kind: ClassVar[ErrorKind]


class ParseError(CompileError):
    pass


class Trap(CompileError):
    """Execution-time failure raised while verifying a compiled artifact."""


@dataclass
class InvalidCharacter(ParseError):
    kind: ClassVar[ErrorKind] = ErrorKind.INVALID_CHARACTER
    position: int
    character: str


@dataclass
class NoFunctionsDefined(ParseError):
    kind: ClassVar[ErrorKind] = ErrorKind.NO_FUNCTIONS_DEFINED


@dataclass
class TooManyFunctions(ParseError):
    kind: ClassVar[ErrorKind] = ErrorKind.TOO_MANY_FUNCTIONS
    count: int
    limit: int


@dataclass
class CapacityExceeded(CompileError):
    kind: ClassVar[ErrorKind] = ErrorKind.CAPACITY_EXCEEDED
    stream: str
    length: int
    capacity: int


@dataclass
class InputExhausted(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.INPUT_EXHAUSTED
    position: int


@dataclass
class OutputMismatch(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.OUTPUT_MISMATCH
    position: int
    expected_byte: Optional[int]
    actual_byte: Optional[int]


@dataclass
class UndefinedFunctionCall(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.UNDEFINED_FUNCTION_CALL
    function_id: int


@dataclass
class UnbalancedCallStack(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.UNBALANCED_CALL_STACK
    depth: int


@dataclass
class CallStackOverflow(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.CALL_STACK_OVERFLOW
    depth: int


@dataclass
class OutputOverflow(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.OUTPUT_OVERFLOW
    capacity: int


@dataclass
class StepLimitExceeded(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.STEP_LIMIT_EXCEEDED
    steps: int


@dataclass
class IllegalInstruction(Trap):
    kind: ClassVar[ErrorKind] = ErrorKind.ILLEGAL_INSTRUCTION
    position: int
    opcode: int


def _format(kind: ErrorKind, text: str, ctx: Optional[str] = None) -> str:
    hint = _hint_for(kind)
    ctx_block = f"\n{ctx}" if ctx else ""
    hint_block = f"\nHint: {hint}" if hint else ""
    return f"{kind.value}: {text}{ctx_block}{hint_block}"


def make_invalid_character(*, source: str, position: int) -> InvalidCharacter:
    ch = source[position]
    return InvalidCharacter(
        message=_format(ErrorKind.INVALID_CHARACTER, f"{ch!r} at index {position}", _build_context(source, position)),
        position=position,
        character=ch,
    )


def make_no_functions() -> NoFunctionsDefined:
    return NoFunctionsDefined(message=_format(ErrorKind.NO_FUNCTIONS_DEFINED, 'program defines no functions'))


def make_too_many_functions(*, count: int, limit: int) -> TooManyFunctions:
    return TooManyFunctions(
        message=_format(ErrorKind.TOO_MANY_FUNCTIONS, f"{count} functions declared, at most {limit} allowed"),
        count=count,
        limit=limit,
    )


def make_capacity_exceeded(*, stream: str, length: int, capacity: int) -> CapacityExceeded:
    return CapacityExceeded(
        message=_format(ErrorKind.CAPACITY_EXCEEDED, f"{stream} is {length} bytes, capacity is {capacity}"),
        stream=stream,
        length=length,
        capacity=capacity,
    )


def make_input_exhausted(*, position: int) -> InputExhausted:
    return InputExhausted(
        message=_format(ErrorKind.INPUT_EXHAUSTED, f"read at input offset {position} after the input was consumed"),
        position=position,
    )


def make_output_mismatch(*, position: int, expected_byte: Optional[int], actual_byte: Optional[int]) -> OutputMismatch:
    return OutputMismatch(
        message=_format(
            ErrorKind.OUTPUT_MISMATCH,
            f"output offset {position}: expected {_byte(expected_byte)}, got {_byte(actual_byte)}",
        ),
        position=position,
        expected_byte=expected_byte,
        actual_byte=actual_byte,
    )


def make_undefined_call(*, function_id: int, function_count: int) -> UndefinedFunctionCall:
    return UndefinedFunctionCall(
        message=_format(
            ErrorKind.UNDEFINED_FUNCTION_CALL,
            f"call to function {function_id}, program defines 1..{function_count}",
        ),
        function_id=function_id,
    )


def make_unbalanced(*, depth: int) -> UnbalancedCallStack:
    if depth == 0:
        text = 'return with an empty call stack'
    else:
        text = f"program ended with {depth} pending return(s)"
    return UnbalancedCallStack(message=_format(ErrorKind.UNBALANCED_CALL_STACK, text), depth=depth)


def make_call_stack_overflow(*, depth: int) -> CallStackOverflow:
    return CallStackOverflow(
        message=_format(ErrorKind.CALL_STACK_OVERFLOW, f"call depth exceeded {depth}"),
        depth=depth,
    )


def make_output_overflow(*, capacity: int) -> OutputOverflow:
    return OutputOverflow(
        message=_format(ErrorKind.OUTPUT_OVERFLOW, f"more than {capacity} bytes written"),
        capacity=capacity,
    )


def make_step_limit(*, steps: int) -> StepLimitExceeded:
    return StepLimitExceeded(
        message=_format(ErrorKind.STEP_LIMIT_EXCEEDED, f"gave up after {steps} steps"),
        steps=steps,
    )


def make_illegal_instruction(*, position: int, opcode: int) -> IllegalInstruction:
    return IllegalInstruction(
        message=_format(ErrorKind.ILLEGAL_INSTRUCTION, f"byte 0x{opcode:02x} at instruction {position}"),
        position=position,
        opcode=opcode,
    )
