"""
Flat-array VM: layout of the generated program and every trap path.
"""

import pytest

from bfunct.config import Limits
from bfunct.errors import (
    CallStackOverflow,
    IllegalInstruction,
    InputExhausted,
    OutputMismatch,
    OutputOverflow,
    StepLimitExceeded,
    UnbalancedCallStack,
    UndefinedFunctionCall,
)
from bfunct.tapevm import TapeProgram


def test_layout_keeps_boundaries():
    program = TapeProgram.from_source('/+./,@')
    assert program.operations == b'/+./,@'
    assert program.call_table == (-1, 0, 3)
    assert program.main_index == 3
    assert program.function_count == 2


def test_single_function_runs():
    report = TapeProgram.from_source('/+.').execute()
    assert report.output == b'\x01'
    assert report.steps == 2


def test_call_and_return():
    report = TapeProgram.from_source('/+./,@').execute(b'\x01')
    assert report.output == b'\x02'
    assert report.input_consumed == 1
    # ',' '@' '+' '.' '/'
    assert report.steps == 5


def test_leading_fragment_never_runs():
    report = TapeProgram.from_source('+++/.').execute()
    assert report.output == b'\x00'


def test_cell_wraps_both_ways():
    assert TapeProgram.from_source('/-.').execute().output == b'\xff'
    assert TapeProgram.from_source('/' + '+' * 256 + '.').execute().output == b'\x00'


def test_tape_pointer_wraps(small_limits):
    program = TapeProgram.from_source('/>>>>+.', limits=small_limits)
    report = program.execute()
    assert report.output == b'\x01'
    assert report.tape_ptr == 0

    report = TapeProgram.from_source('/<+.', limits=small_limits).execute()
    assert report.tape_ptr == 3


def test_tape_pointer_wraps_at_full_capacity():
    report = TapeProgram.from_source('/' + '>' * 65536 + '+.').execute()
    assert report.tape_ptr == 0
    assert report.output == b'\x01'


def test_read_past_input_traps():
    with pytest.raises(InputExhausted) as exc:
        TapeProgram.from_source('/,,').execute(b'a')
    assert exc.value.position == 1


def test_inline_mismatch():
    with pytest.raises(OutputMismatch) as exc:
        TapeProgram.from_source('/+.').execute(expected=b'\x02')
    err = exc.value
    assert (err.position, err.expected_byte, err.actual_byte) == (0, 2, 1)


def test_write_past_expected():
    with pytest.raises(OutputMismatch) as exc:
        TapeProgram.from_source('/..').execute(expected=b'\x00')
    err = exc.value
    assert (err.position, err.expected_byte, err.actual_byte) == (1, None, 0)


def test_call_to_reserved_id():
    with pytest.raises(UndefinedFunctionCall) as exc:
        TapeProgram.from_source('/@').execute()
    assert exc.value.function_id == 0


def test_call_past_last_function():
    with pytest.raises(UndefinedFunctionCall) as exc:
        TapeProgram.from_source('/+./+++@').execute()
    assert exc.value.function_id == 3


def test_calling_entry_leaves_stack_unbalanced():
    # main reads 2 and re-enters itself, the nested main reads 1 and calls
    # function 1, then runs off the end of the program one frame deep.
    with pytest.raises(UnbalancedCallStack) as exc:
        TapeProgram.from_source('/,/,@').execute(b'\x02\x01\x03')
    assert exc.value.depth == 1


def test_return_with_empty_stack():
    program = TapeProgram(b'/+/', (-1, 0), 0)
    with pytest.raises(UnbalancedCallStack) as exc:
        program.execute()
    assert exc.value.depth == 0


def test_unbounded_recursion_overflows(small_limits):
    with pytest.raises(CallStackOverflow) as exc:
        TapeProgram.from_source('/@/+@', limits=small_limits).execute()
    assert exc.value.depth == small_limits.call_stack_size


def test_unbounded_recursion_overflows_default_stack():
    with pytest.raises(CallStackOverflow) as exc:
        TapeProgram.from_source('/@/+@').execute()
    assert exc.value.depth == 65536


def test_output_capacity(small_limits):
    with pytest.raises(OutputOverflow):
        TapeProgram.from_source('/' + '.' * 9, limits=small_limits).execute()


def test_step_budget():
    program = TapeProgram.from_source('/+++.', limits=Limits(max_steps=3))
    with pytest.raises(StepLimitExceeded) as exc:
        program.execute()
    assert exc.value.steps == 3


def test_illegal_byte_traps():
    program = TapeProgram(b'/x', (-1, 0), 0)
    with pytest.raises(IllegalInstruction) as exc:
        program.execute()
    assert exc.value.position == 1
    assert exc.value.opcode == ord('x')


def test_rejects_bad_layout():
    with pytest.raises(ValueError):
        TapeProgram(b'/+', (0,), 0)
    with pytest.raises(ValueError):
        TapeProgram(b'+/', (-1, 1), 0)
