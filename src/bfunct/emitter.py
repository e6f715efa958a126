"""
Artifact emitter.

Serializes a verified artifact into a Python module that can be dropped
into a larger build. The module depends only on the bfunct runtime and
exposes run(input=b'') -> bytes.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from .artifact import CompiledArtifact, ExecutionReport
from .compose import ComposedProgram
from .config import Limits
from .lexer import Opcode
from .tapevm import TapeProgram

log = logging.getLogger(__name__)

_CHUNK = 64

_PRIMITIVE_NAMES = {
    Opcode.MOVE_RIGHT: 'move_right',
    Opcode.MOVE_LEFT: 'move_left',
    Opcode.INCREMENT: 'increment',
    Opcode.DECREMENT: 'decrement',
    Opcode.READ: 'read',
    Opcode.WRITE: 'write',
    Opcode.CALL: 'call',
}


def _header(artifact: CompiledArtifact, report: Optional[ExecutionReport],
            input_len: Optional[int], expected_len: Optional[int]) -> List[str]:
    lines = [f'"""Brainfunct artifact ({artifact.backend} backend).', '']
    lines.append(f"Functions: {artifact.function_count}")
    if report is not None:
        lines.append(f"Verified: {input_len} input byte(s), {expected_len} expected byte(s), "
                     f"{report.steps} step(s).")
    lines.append('')
    lines.append('Generated file, do not edit.')
    lines.append('"""')
    return lines


def _limits_literal(limits: Limits) -> List[str]:
    out = ["LIMITS = Limits("]
    out.extend(f"    {k}={v}," for k, v in asdict(limits).items())
    out.append(")")
    return out


def _bytes_literal(name: str, data: bytes) -> List[str]:
    if len(data) <= _CHUNK:
        return [f"{name} = {data!r}"]
    out = [f"{name} = ("]
    for i in range(0, len(data), _CHUNK):
        out.append(f"    {data[i:i + _CHUNK]!r}")
    out.append(")")
    return out


def _int_rows(name: str, values) -> List[str]:
    out = [f"{name} = ("]
    for i in range(0, len(values), 16):
        out.append('    ' + ' '.join(f"{v}," for v in values[i:i + 16]))
    out.append(")")
    return out


def _emit_tapevm(program: TapeProgram) -> List[str]:
    lines = [
        'from bfunct.config import Limits',
        'from bfunct.tapevm import TapeProgram',
        '',
    ]
    lines.extend(_bytes_literal('OPERATIONS', program.operations))
    lines.extend(_int_rows('CALL_TABLE', program.call_table))
    lines.append(f"MAIN_INDEX = {program.main_index}")
    lines.extend(_limits_literal(program.limits))
    lines.append('')
    lines.append('ARTIFACT = TapeProgram(OPERATIONS, CALL_TABLE, MAIN_INDEX, limits=LIMITS)')
    lines.append('')
    lines.append('')
    lines.append("def run(input=b''):")
    lines.append('    return ARTIFACT.execute(input).output')
    return lines


def _emit_compose(program: ComposedProgram) -> List[str]:
    lines = [
        'from bfunct.compose import (',
        '    call,',
        '    decrement,',
        '    end_of_program,',
        '    increment,',
        '    move_left,',
        '    move_right,',
        '    read,',
        '    run_chains,',
        '    write,',
        ')',
        'from bfunct.config import Limits',
        'from bfunct.state import MachineState',
    ]
    entry = program.table.entry.ident
    for fn in program.table:
        names = [_PRIMITIVE_NAMES[op] for op in fn.body]
        if fn.ident == entry:
            names.append('end_of_program')
        lines.append('')
        lines.append(f"FUNC{fn.ident} = (")
        lines.extend(f"    {name}," for name in names)
        lines.append(")")
    lines.append('')
    lines.append('FUNCTIONS = {')
    lines.extend(f"    {fn.ident}: FUNC{fn.ident}," for fn in program.table)
    lines.append('}')
    lines.append(f"ENTRY = {entry}")
    lines.extend(_limits_literal(program.limits))
    lines.append('')
    lines.append('')
    lines.append("def run(input=b''):")
    lines.append('    state = MachineState.for_input(input, LIMITS)')
    lines.append('    run_chains(FUNCTIONS, ENTRY, state)')
    lines.append('    return state.produced()')
    return lines


def emit(artifact: CompiledArtifact, report: Optional[ExecutionReport] = None, *,
         input_len: Optional[int] = None, expected_len: Optional[int] = None) -> str:
    if isinstance(artifact, TapeProgram):
        body = _emit_tapevm(artifact)
    elif isinstance(artifact, ComposedProgram):
        body = _emit_compose(artifact)
    else:
        raise TypeError(f"cannot emit artifact of type {type(artifact).__name__}")
    lines = _header(artifact, report, input_len, expected_len)
    lines.append('')
    lines.extend(body)
    return '\n'.join(lines) + '\n'


def write_artifact(path: str | Path, source: str, *, encoding: str = 'utf-8') -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(source, encoding=encoding)
    log.info("wrote artifact %s (%d bytes)", p, len(source))
    return p
