from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Type

from .artifact import CompiledArtifact, ExecutionReport
from .compose import ComposedProgram
from .config import Limits, load_limits
from .emitter import emit, write_artifact
from .functions import build_function_table
from .state import ByteSource, as_bytes
from .tapevm import TapeProgram
from .verifier import verify

log = logging.getLogger(__name__)

BACKENDS: Dict[str, Type[CompiledArtifact]] = {
    TapeProgram.backend: TapeProgram,
    ComposedProgram.backend: ComposedProgram,
}


@dataclass(frozen=True)
class CompileOptions:
    backend: str = TapeProgram.backend
    limits: Optional[Limits] = None

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(f"unknown backend {self.backend!r}, choose one of {sorted(BACKENDS)}")


@dataclass(frozen=True)
class CompileResult:
    artifact: CompiledArtifact
    report: ExecutionReport
    source: str


def generate(program: str, *, options: Optional[CompileOptions] = None) -> CompiledArtifact:
    """Parse and generate code without verifying it."""
    opts = options or CompileOptions()
    limits = opts.limits or load_limits()
    table = build_function_table(program, max_functions=limits.max_functions)
    return BACKENDS[opts.backend].from_source(program, table=table, limits=limits)


def compile_string(program: str, input: ByteSource = b'', expected: ByteSource = b'', *,
                   options: Optional[CompileOptions] = None) -> CompileResult:
    """
    Compile program and verify it against input/expected.

    Returns a CompileResult only when the program produced exactly
    expected; every other outcome raises a CompileError subclass.
    """
    artifact = generate(program, options=options)
    raw_in = as_bytes(input)
    raw_expected = as_bytes(expected)
    report = verify(artifact, raw_in, raw_expected)
    source = emit(artifact, report, input_len=len(raw_in), expected_len=len(raw_expected))
    return CompileResult(artifact=artifact, report=report, source=source)


def compile_file(path: str | Path, input: ByteSource = b'', expected: ByteSource = b'', *,
                 options: Optional[CompileOptions] = None, encoding: str = "utf-8") -> CompileResult:
    p = Path(path)
    return compile_string(p.read_text(encoding=encoding), input, expected, options=options)


def build_file(path: str | Path, input: ByteSource, expected: ByteSource, out_path: str | Path, *,
               options: Optional[CompileOptions] = None, encoding: str = "utf-8") -> CompileResult:
    """Compile, verify and, only if that succeeded, write the artifact module."""
    result = compile_file(path, input, expected, options=options, encoding=encoding)
    write_artifact(out_path, result.source)
    return result
