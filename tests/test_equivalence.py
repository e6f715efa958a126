"""
Both backends must agree on output and on the kind of every trap.
"""

import pytest

from bfunct.compose import ComposedProgram
from bfunct.config import Limits
from bfunct.errors import Trap
from bfunct.tapevm import TapeProgram

PROGRAMS = [
    ('/+.', b''),
    ('/+./,@', b'\x01'),
    ('+++/.', b''),
    ('/-.', b''),
    ('/>+>++>+++<<<.>.>.>.', b''),
    ('/,.,.,.', b'abc'),
    # f1 prints the cell, f2 bumps and prints, main dispatches on input bytes
    ('/./+./,@,@,@.', b'\x01\x02\x01'),
    # f1 calls f2, f2 calls f3, nested returns
    ('/++@/+++@/.>./,@', b'\x01'),
    ('/,', b''),
    ('/@', b''),
    ('/,/,@', b'\x02\x01\x03'),
    ('/+./+++@', b''),
    ('/' * 200 + ',@.', b'\xc8'),
]


def _outcome(artifact, data):
    try:
        report = artifact.execute(data)
    except Trap as e:
        return ('trap', type(e).__name__)
    return ('ok', report.output, report.steps, report.tape_ptr, report.input_consumed)


@pytest.mark.parametrize('program,data', PROGRAMS)
def test_backends_agree(program, data):
    vm = _outcome(TapeProgram.from_source(program), data)
    composed = _outcome(ComposedProgram.from_source(program), data)
    assert vm == composed


@pytest.mark.parametrize('program,data', PROGRAMS)
def test_backends_agree_on_tiny_machine(program, data):
    limits = Limits(tape_size=2, input_size=4, output_size=2, call_stack_size=2, max_steps=12)
    vm = _outcome(TapeProgram.from_source(program, limits=limits), data)
    composed = _outcome(ComposedProgram.from_source(program, limits=limits), data)
    assert vm == composed


@pytest.mark.parametrize('depth', [600, 5000])
def test_deep_calls_agree(depth):
    # function 2 calls itself once per 2 it reads
    program, data = '//>,@/,@', b'\x02' * depth + b'\x01'
    vm = _outcome(TapeProgram.from_source(program), data)
    composed = _outcome(ComposedProgram.from_source(program), data)
    assert vm == composed
    assert vm[0] == 'ok'


def test_runaway_recursion_agrees():
    vm = _outcome(TapeProgram.from_source('/@/+@'), b'')
    composed = _outcome(ComposedProgram.from_source('/@/+@'), b'')
    assert vm == composed == ('trap', 'CallStackOverflow')
