from .api import BACKENDS, CompileOptions, CompileResult, build_file, compile_file, compile_string, generate
from .artifact import CompiledArtifact, ExecutionReport
from .compose import ComposedProgram
from .config import Limits, load_limits
from .errors import BrainfunctError, CompileError, ErrorKind, ParseError, Trap
from .functions import FunctionTable, build_function_table
from .lexer import Opcode, split_functions, tokenize
from .tapevm import TapeProgram
from .verifier import execute, verify

__all__ = [
    'BACKENDS',
    'CompileOptions',
    'CompileResult',
    'build_file',
    'compile_file',
    'compile_string',
    'generate',
    'CompiledArtifact',
    'ExecutionReport',
    'ComposedProgram',
    'TapeProgram',
    'Limits',
    'load_limits',
    'BrainfunctError',
    'CompileError',
    'ErrorKind',
    'ParseError',
    'Trap',
    'FunctionTable',
    'build_function_table',
    'Opcode',
    'split_functions',
    'tokenize',
    'execute',
    'verify',
]
