import pytest

from bfunct.config import DEFAULT_CAPACITY, Limits, load_limits, reset_cache


def test_defaults():
    limits = load_limits()
    assert limits.tape_size == DEFAULT_CAPACITY == 65536
    assert limits.call_stack_size == 65536
    assert limits.max_functions == 255
    assert limits.max_steps == 0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('BRAINFUNCT_TAPE_SIZE', '0x10')
    monkeypatch.setenv('BRAINFUNCT_MAX_STEPS', '1000')
    reset_cache()
    limits = load_limits()
    assert limits.tape_size == 16
    assert limits.max_steps == 1000


def test_environment_values_are_clamped(monkeypatch):
    monkeypatch.setenv('BRAINFUNCT_CALL_STACK_SIZE', '-5')
    monkeypatch.setenv('BRAINFUNCT_MAX_FUNCTIONS', '9000')
    monkeypatch.setenv('BRAINFUNCT_INPUT_SIZE', 'lots')
    reset_cache()
    limits = load_limits()
    assert limits.call_stack_size == 1
    assert limits.max_functions == 255
    assert limits.input_size == DEFAULT_CAPACITY


def test_limits_validation():
    with pytest.raises(ValueError):
        Limits(tape_size=0)
    with pytest.raises(ValueError):
        Limits(max_functions=256)
    with pytest.raises(ValueError):
        Limits(max_steps=-1)
    assert Limits().with_overrides(tape_size=8).tape_size == 8
