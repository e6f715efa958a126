"""
Tape-VM backend.

The whole program is kept as one flat byte array. Function bodies are
sub-ranges of it, each opened by a '/' that doubles as the return
instruction of the body before it. A call jumps to the byte after the
callee's '/', and the explicit call stack holds return addresses.

The hot loop is a numba kernel over numpy arrays; it stops with a code and
the Python side turns that code into a typed error.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
from numba import njit

from .artifact import CompiledArtifact, ExecutionReport
from .config import Limits
from .errors import (
    make_call_stack_overflow,
    make_illegal_instruction,
    make_input_exhausted,
    make_output_mismatch,
    make_output_overflow,
    make_step_limit,
    make_unbalanced,
    make_undefined_call,
)
from .functions import FunctionTable, build_function_table
from .state import ByteSource, as_bytes, check_capacity

log = logging.getLogger(__name__)

STOP_DONE = 0
STOP_INPUT_EXHAUSTED = 1
STOP_OUTPUT_MISMATCH = 2
STOP_OUTPUT_OVERRUN = 3
STOP_OUTPUT_OVERFLOW = 4
STOP_UNDEFINED_CALL = 5
STOP_STACK_OVERFLOW = 6
STOP_RETURN_EMPTY = 7
STOP_UNBALANCED_END = 8
STOP_STEP_LIMIT = 9
STOP_ILLEGAL = 10


@njit(cache=True)
def run_loop(operations, call_table, main_index, tape, input_buf, input_len,
             output, expected, check_inline, call_stack, max_steps):
    """
    Execute from main_index + 1 until the end of the array or a trap.

    Returns (stop, ip, tape_ptr, input_ptr, output_ptr, stack_head, steps, detail).
    """
    op_size = len(operations)
    func_count = len(call_table) - 1
    tape_len = len(tape)
    out_cap = len(output)
    stack_cap = len(call_stack)
    expected_len = len(expected)

    stop = STOP_DONE
    detail = 0
    tape_ptr = 0
    input_ptr = 0
    output_ptr = 0
    stack_head = 0
    steps = 0
    ip = main_index + 1

    while True:
        if ip >= op_size:
            if stack_head != 0:
                stop = STOP_UNBALANCED_END
            break
        if max_steps > 0 and steps >= max_steps:
            stop = STOP_STEP_LIMIT
            break

        command = operations[ip]

        if command == 62:  # '>'
            tape_ptr += 1
            if tape_ptr >= tape_len:
                tape_ptr = 0
        elif command == 60:  # '<'
            tape_ptr -= 1
            if tape_ptr < 0:
                tape_ptr = tape_len - 1
        elif command == 43:  # '+'
            tape[tape_ptr] = (tape[tape_ptr] + 1) & 255
        elif command == 45:  # '-'
            tape[tape_ptr] = (tape[tape_ptr] - 1) & 255
        elif command == 44:  # ','
            if input_ptr >= input_len:
                stop = STOP_INPUT_EXHAUSTED
                break
            tape[tape_ptr] = input_buf[input_ptr]
            input_ptr += 1
        elif command == 46:  # '.'
            value = int(tape[tape_ptr])
            if check_inline:
                if output_ptr >= expected_len:
                    stop = STOP_OUTPUT_OVERRUN
                    detail = value
                    break
                if int(expected[output_ptr]) != value:
                    stop = STOP_OUTPUT_MISMATCH
                    detail = value
                    break
            if output_ptr >= out_cap:
                stop = STOP_OUTPUT_OVERFLOW
                break
            output[output_ptr] = value
            output_ptr += 1
        elif command == 64:  # '@'
            callee = int(tape[tape_ptr])
            if callee == 0 or callee > func_count:
                stop = STOP_UNDEFINED_CALL
                detail = callee
                break
            if stack_head >= stack_cap:
                stop = STOP_STACK_OVERFLOW
                break
            call_stack[stack_head] = ip
            stack_head += 1
            ip = call_table[callee]
        elif command == 47:  # '/'
            if stack_head == 0:
                stop = STOP_RETURN_EMPTY
                break
            stack_head -= 1
            ip = call_stack[stack_head]
        else:
            stop = STOP_ILLEGAL
            detail = int(command)
            break

        ip += 1
        steps += 1

    return stop, ip, tape_ptr, input_ptr, output_ptr, stack_head, steps, detail


class TapeProgram(CompiledArtifact):
    backend = 'tapevm'

    def __init__(
        self,
        operations: bytes,
        call_table: Sequence[int],
        main_index: int,
        limits: Optional[Limits] = None,
        table: Optional[FunctionTable] = None,
    ):
        super().__init__(limits)
        if not call_table or call_table[0] != -1:
            raise ValueError('call_table slot 0 is reserved and must be -1')
        if not 0 <= main_index < len(operations) or operations[main_index] != ord('/'):
            raise ValueError(f"main_index {main_index} does not point at a function boundary")
        self.operations = bytes(operations)
        self.call_table = tuple(int(i) for i in call_table)
        self.main_index = int(main_index)
        self.table = table
        self._ops_arr = np.frombuffer(self.operations, dtype=np.uint8).copy()
        self._calls_arr = np.array(self.call_table, dtype=np.int64)

    @classmethod
    def from_source(cls, source: str, table: Optional[FunctionTable] = None,
                    limits: Optional[Limits] = None) -> "TapeProgram":
        if table is None:
            max_functions = None if limits is None else limits.max_functions
            table = build_function_table(source, max_functions=max_functions)
        starts = table.entry_points()
        call_table = [-1] + [starts[ident] for ident in range(1, len(table) + 1)]
        program = cls(
            operations=source.encode('ascii'),
            call_table=call_table,
            main_index=table.entry.start,
            limits=limits,
            table=table,
        )
        log.debug("tapevm: %d ops, %d functions, main at %d",
                  len(program.operations), program.function_count, program.main_index)
        return program

    @property
    def function_count(self) -> int:
        return len(self.call_table) - 1

    def execute(self, input: Optional[ByteSource] = None, expected: Optional[ByteSource] = None) -> ExecutionReport:
        limits = self.limits
        raw_in = check_capacity('input', as_bytes(input), limits.input_size)
        check_inline = expected is not None
        raw_expected = check_capacity('expected output', as_bytes(expected), limits.output_size)

        tape = np.zeros(limits.tape_size, dtype=np.uint8)
        input_buf = np.zeros(limits.input_size, dtype=np.uint8)
        input_buf[:len(raw_in)] = np.frombuffer(raw_in, dtype=np.uint8)
        output = np.zeros(limits.output_size, dtype=np.uint8)
        expected_arr = np.frombuffer(raw_expected, dtype=np.uint8).copy()
        call_stack = np.zeros(limits.call_stack_size, dtype=np.int64)

        stop, ip, tape_ptr, input_ptr, output_ptr, stack_head, steps, detail = run_loop(
            self._ops_arr, self._calls_arr, self.main_index, tape, input_buf, len(raw_in),
            output, expected_arr, check_inline, call_stack, limits.max_steps,
        )

        if stop != STOP_DONE:
            log.debug("tapevm trap %d at ip=%d after %d steps", stop, ip, steps)
            raise self._trap(stop, ip, input_ptr, output_ptr, stack_head, steps, detail, raw_expected)

        return ExecutionReport(
            output=output[:output_ptr].tobytes(),
            steps=int(steps),
            tape_ptr=int(tape_ptr),
            input_consumed=int(input_ptr),
        )

    def _trap(self, stop, ip, input_ptr, output_ptr, stack_head, steps, detail, expected):
        if stop == STOP_INPUT_EXHAUSTED:
            return make_input_exhausted(position=int(input_ptr))
        if stop == STOP_OUTPUT_MISMATCH:
            return make_output_mismatch(position=int(output_ptr), expected_byte=expected[output_ptr],
                                        actual_byte=int(detail))
        if stop == STOP_OUTPUT_OVERRUN:
            return make_output_mismatch(position=int(output_ptr), expected_byte=None, actual_byte=int(detail))
        if stop == STOP_OUTPUT_OVERFLOW:
            return make_output_overflow(capacity=self.limits.output_size)
        if stop == STOP_UNDEFINED_CALL:
            return make_undefined_call(function_id=int(detail), function_count=self.function_count)
        if stop == STOP_STACK_OVERFLOW:
            return make_call_stack_overflow(depth=int(stack_head))
        if stop == STOP_RETURN_EMPTY:
            return make_unbalanced(depth=0)
        if stop == STOP_UNBALANCED_END:
            return make_unbalanced(depth=int(stack_head))
        if stop == STOP_STEP_LIMIT:
            return make_step_limit(steps=int(steps))
        return make_illegal_instruction(position=int(ip), opcode=int(detail))
