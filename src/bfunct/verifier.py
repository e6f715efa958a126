from __future__ import annotations

import logging
from typing import Optional

from .artifact import CompiledArtifact, ExecutionReport
from .errors import make_output_mismatch
from .state import ByteSource, as_bytes, check_capacity

log = logging.getLogger(__name__)


def first_difference(actual: bytes, expected: bytes) -> Optional[int]:
    for i, (a, e) in enumerate(zip(actual, expected)):
        if a != e:
            return i
    if len(actual) != len(expected):
        return min(len(actual), len(expected))
    return None


def execute(artifact: CompiledArtifact, input: Optional[ByteSource] = None) -> ExecutionReport:
    """Run without an expected stream; output is only buffered."""
    return artifact.execute(input)


def verify(artifact: CompiledArtifact, input: Optional[ByteSource], expected: Optional[ByteSource]) -> ExecutionReport:
    """
    Run artifact on input and require its output to equal expected exactly.

    Writes are checked as they happen, and the complete stream is compared
    again afterwards so a program that stops short is caught too. Any
    failure raises a CompileError subclass; nothing is retried.
    """
    want = check_capacity('expected output', as_bytes(expected), artifact.limits.output_size)
    try:
        report = artifact.execute(input, expected=want)
    except Exception as exc:
        log.warning("verification failed (%s): %s", artifact.backend, type(exc).__name__)
        raise

    pos = first_difference(report.output, want)
    if pos is not None:
        exp_b = want[pos] if pos < len(want) else None
        act_b = report.output[pos] if pos < len(report.output) else None
        log.warning("verification failed (%s): output differs at %d", artifact.backend, pos)
        raise make_output_mismatch(position=pos, expected_byte=exp_b, actual_byte=act_b)

    log.info("verified %s artifact: %d output byte(s), %d step(s)",
             artifact.backend, len(report.output), report.steps)
    return report
