import pytest

from bfunct.api import CompileOptions, build_file, compile_string, generate
from bfunct.emitter import emit
from bfunct.errors import OutputMismatch

BACKEND_NAMES = ['tapevm', 'compose']


def _load(source):
    namespace = {}
    exec(compile(source, '<artifact>', 'exec'), namespace)
    return namespace


@pytest.mark.parametrize('backend', BACKEND_NAMES)
def test_emitted_module_runs(backend):
    result = compile_string('/+./,@', b'\x01', b'\x02', options=CompileOptions(backend=backend))
    module = _load(result.source)
    assert module['run'](b'\x01') == b'\x02'


@pytest.mark.parametrize('backend', BACKEND_NAMES)
def test_header_records_verification(backend):
    result = compile_string('/+./,@', b'\x01', b'\x02', options=CompileOptions(backend=backend))
    assert f"({backend} backend)" in result.source
    assert 'Functions: 2' in result.source
    assert 'Verified: 1 input byte(s), 1 expected byte(s), 5 step(s).' in result.source


def test_tapevm_module_carries_layout():
    module = _load(compile_string('/+./,@', b'\x01', b'\x02').source)
    assert module['OPERATIONS'] == b'/+./,@'
    assert module['CALL_TABLE'] == (-1, 0, 3)
    assert module['MAIN_INDEX'] == 3
    assert module['ARTIFACT'].function_count == 2


def test_long_programs_are_chunked():
    program = '/' + '+' * 300 + '.'
    source = emit(generate(program))
    assert max(len(line) for line in source.splitlines()) < 100
    assert _load(source)['run']() == bytes([300 % 256])


def test_compose_module_defines_one_function_each():
    source = emit(generate('/+/-/.', options=CompileOptions(backend='compose')))
    for name in ('FUNC1 = (', 'FUNC2 = (', 'FUNC3 = ('):
        assert name in source
    assert 'ENTRY = 3' in source
    # once in the import block, once closing the entry chain
    assert source.count('    end_of_program,') == 2


def test_emit_rejects_foreign_artifacts():
    with pytest.raises(TypeError):
        emit(object())


def test_compose_module_survives_deep_calls():
    program, data = '//>,@/,@', b'\x02' * 600 + b'\x01'
    result = compile_string(program, data, b'', options=CompileOptions(backend='compose'))
    assert _load(result.source)['run'](data) == b''


def test_build_file_writes_only_after_verification(tmp_path):
    src = tmp_path / 'echo.bfn'
    src.write_text('/,.', encoding='utf-8')
    out = tmp_path / 'gen' / 'echo_artifact.py'

    with pytest.raises(OutputMismatch):
        build_file(src, b'a', b'b', out)
    assert not out.exists()

    build_file(src, b'a', b'a', out)
    assert _load(out.read_text(encoding='utf-8'))['run'](b'z') == b'z'
