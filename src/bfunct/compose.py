"""
Composition backend.

Every function compiles on its own into a chain of primitive operations.
Primitives thread one MachineState by reference: each mutates the shared
state and hands the same object back. A chain is a left fold of its
primitives over the state; `call` descends into another chain.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .artifact import CompiledArtifact, ExecutionReport
from .config import Limits
from .errors import (
    make_call_stack_overflow,
    make_input_exhausted,
    make_output_mismatch,
    make_output_overflow,
    make_step_limit,
    make_unbalanced,
    make_undefined_call,
)
from .functions import FunctionTable, build_function_table
from .lexer import Function, Opcode
from .state import ByteSource, MachineState

log = logging.getLogger(__name__)

Primitive = Callable[[MachineState], MachineState]


def _tick(state: MachineState) -> None:
    limit = state.limits.max_steps
    if limit and state.steps >= limit:
        raise make_step_limit(steps=state.steps)
    state.steps += 1


def move_right(state: MachineState) -> MachineState:
    _tick(state)
    state.tape_ptr += 1
    if state.tape_ptr >= len(state.tape):
        state.tape_ptr = 0
    return state


def move_left(state: MachineState) -> MachineState:
    _tick(state)
    state.tape_ptr -= 1
    if state.tape_ptr < 0:
        state.tape_ptr = len(state.tape) - 1
    return state


def increment(state: MachineState) -> MachineState:
    _tick(state)
    state.tape[state.tape_ptr] = (state.tape[state.tape_ptr] + 1) & 0xFF
    return state


def decrement(state: MachineState) -> MachineState:
    _tick(state)
    state.tape[state.tape_ptr] = (state.tape[state.tape_ptr] - 1) & 0xFF
    return state


def read(state: MachineState) -> MachineState:
    _tick(state)
    if state.input_ptr >= state.input_len:
        raise make_input_exhausted(position=state.input_ptr)
    state.tape[state.tape_ptr] = state.input[state.input_ptr]
    state.input_ptr += 1
    return state


def write(state: MachineState) -> MachineState:
    _tick(state)
    value = state.tape[state.tape_ptr]
    pos = state.output_ptr
    if state.expected is not None:
        if pos >= len(state.expected):
            raise make_output_mismatch(position=pos, expected_byte=None, actual_byte=value)
        if state.expected[pos] != value:
            raise make_output_mismatch(position=pos, expected_byte=state.expected[pos], actual_byte=value)
    if pos >= len(state.output):
        raise make_output_overflow(capacity=len(state.output))
    state.output[pos] = value
    state.output_ptr = pos + 1
    return state


def end_of_program(state: MachineState) -> MachineState:
    # The entry body runs to the end of the program; reached inside a call it never returns.
    if state.depth != 0:
        raise make_unbalanced(depth=state.depth)
    return state


def call(state: MachineState) -> MachineState:
    # Dispatch needs the frame stack, so run_chains handles this op itself.
    raise RuntimeError('call is only valid inside run_chains')


_PRIMITIVES: Dict[Opcode, Primitive] = {
    Opcode.MOVE_RIGHT: move_right,
    Opcode.MOVE_LEFT: move_left,
    Opcode.INCREMENT: increment,
    Opcode.DECREMENT: decrement,
    Opcode.READ: read,
    Opcode.WRITE: write,
    Opcode.CALL: call,
}

Chain = Tuple[Primitive, ...]


def _enter(state: MachineState, chains: Dict[int, Chain]) -> Chain:
    _tick(state)
    ident = state.tape[state.tape_ptr]
    target = chains.get(ident)
    if target is None:
        raise make_undefined_call(function_id=ident, function_count=len(chains))
    if state.depth >= state.limits.call_stack_size:
        raise make_call_stack_overflow(depth=state.depth)
    state.depth += 1
    return target


def run_chains(chains: Dict[int, Chain], entry: int, state: MachineState) -> MachineState:
    """
    Fold the entry chain over state, descending into callees.

    Return points live on an explicit frame stack of (chain, pc) pairs, so
    call depth is bounded by call_stack_size rather than host recursion.
    """
    frames: List[Tuple[Chain, int]] = []
    ops, pc = chains[entry], 0
    while True:
        if pc == len(ops):
            if not frames:
                return state
            _tick(state)
            state.depth -= 1
            ops, pc = frames.pop()
            continue
        op = ops[pc]
        pc += 1
        if op is call:
            target = _enter(state, chains)
            frames.append((ops, pc))
            ops, pc = target, 0
            continue
        state = op(state)


def compile_function(fn: Function, *, entry: bool = False) -> Chain:
    ops = [_PRIMITIVES[op] for op in fn.body]
    if entry:
        ops.append(end_of_program)
    return tuple(ops)


class ComposedProgram(CompiledArtifact):
    backend = 'compose'

    def __init__(self, table: FunctionTable, limits: Optional[Limits] = None):
        super().__init__(limits)
        self.table = table
        self.entry = table.entry.ident
        self.chains: Dict[int, Chain] = {
            fn.ident: compile_function(fn, entry=fn.ident == self.entry) for fn in table
        }
        log.debug("compose: %d chains, entry func%d", len(self.chains), self.entry)

    @classmethod
    def from_source(cls, source: str, table: Optional[FunctionTable] = None,
                    limits: Optional[Limits] = None) -> "ComposedProgram":
        if table is None:
            max_functions = None if limits is None else limits.max_functions
            table = build_function_table(source, max_functions=max_functions)
        return cls(table, limits)

    @property
    def function_count(self) -> int:
        return len(self.table)

    def execute(self, input: Optional[ByteSource] = None, expected: Optional[ByteSource] = None) -> ExecutionReport:
        state = MachineState.for_input(input, self.limits, expected)
        run_chains(self.chains, self.entry, state)
        return ExecutionReport(
            output=state.produced(),
            steps=state.steps,
            tape_ptr=state.tape_ptr,
            input_consumed=state.input_ptr,
        )
