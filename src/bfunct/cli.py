from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .api import BACKENDS, CompileOptions, compile_string, generate
from .emitter import write_artifact
from .errors import BrainfunctError
from .verifier import execute


def unescape(text: str) -> bytes:
    """Turn a command line literal such as '\\x01abc' into bytes."""
    return text.encode('utf-8').decode('unicode_escape').encode('latin-1')


def _read_stream(literal: Optional[str], path: Optional[str]) -> bytes:
    if path is not None:
        return Path(path).read_bytes()
    if literal is not None:
        return unescape(literal)
    return b''


def _add_streams(p: argparse.ArgumentParser, *, expected: bool) -> None:
    p.add_argument('-i', '--input', help='input bytes, backslash escapes allowed')
    p.add_argument('--input-file', help='read input bytes from a file')
    if expected:
        p.add_argument('-e', '--expected', help='expected output bytes, backslash escapes allowed')
        p.add_argument('--expected-file', help='read expected output bytes from a file')


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bfunctc',
        description='Compile Brainfunct programs and verify them against a fixed input/output pair.',
    )
    parser.add_argument('-v', '--verbose', action='count', default=0, help='-v for info, -vv for debug logs')
    parser.add_argument('-b', '--backend', choices=sorted(BACKENDS), default='tapevm')
    sub = parser.add_subparsers(dest='command', required=True)

    p_build = sub.add_parser('build', help='verify and write the artifact module')
    p_build.add_argument('program')
    _add_streams(p_build, expected=True)
    p_build.add_argument('-o', '--output', required=True, help='path of the generated Python module')

    p_check = sub.add_parser('check', help='verify only')
    p_check.add_argument('program')
    _add_streams(p_check, expected=True)

    p_run = sub.add_parser('run', help='execute without an expected output')
    p_run.add_argument('program')
    _add_streams(p_run, expected=False)
    p_run.add_argument('--hex', action='store_true', help='print output as hex')

    return parser


def _configure_logging(verbose: int) -> None:
    # Without -v, warnings still reach stderr through logging's last-resort handler.
    if not verbose:
        return
    level = logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    options = CompileOptions(backend=args.backend)

    try:
        source = Path(args.program).read_text(encoding='utf-8')
    except FileNotFoundError:
        print(f"Couldn't find file {args.program}", file=sys.stderr)
        return 1

    try:
        data = _read_stream(args.input, args.input_file)
        expected = _read_stream(getattr(args, 'expected', None), getattr(args, 'expected_file', None))
    except UnicodeError as e:
        parser.error(f"cannot turn stream literal into bytes: {e}")

    try:
        if args.command == 'run':
            artifact = generate(source, options=options)
            report = execute(artifact, data)
            if args.hex:
                print(report.output.hex(' '))
            else:
                sys.stdout.buffer.write(report.output)
                sys.stdout.flush()
            return 0

        start = time.time()
        result = compile_string(source, data, expected, options=options)
        end = time.time()
    except BrainfunctError as e:
        print(str(e), file=sys.stderr)
        return 1

    print(f"Verification took {(end - start) * 1000:.2f} ms "
          f"({result.report.steps} steps, {result.artifact.function_count} functions)")

    if args.command == 'build':
        path = write_artifact(args.output, result.source)
        print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
