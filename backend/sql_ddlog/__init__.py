"""SQL to DDlog translation: IR types, program model and session translator."""

from .ir_types import (
    IRType,
    make_bit_vector,
    make_signed,
    make_type,
    same_type_strict,
)
from .ir_expressions import (
    LiteralExpr,
    FieldRef,
    BinaryOp,
    UnaryOp,
    Call,
    Cast,
    StructExpr,
)
from .program import (
    Program,
    RecordType,
    Field,
    Relation,
    Rule,
    FunctionDef,
)
from .errors import (
    TranslationError,
    UnsupportedConstructError,
    TypeMismatchError,
    UnknownRelationError,
    UnknownColumnError,
    DuplicateDeclarationError,
    DDlogError,
    DDlogNotFoundError,
    DDlogCompileError,
)
from .generator import program_to_text, render_type
from .library import generate_sql_library, write_library
from .translator import Translator, SymbolEntry
from .validator import validate_query, ValidationResult
from .compiler import compile_program, CompileResult

__all__ = [
    "IRType",
    "make_bit_vector",
    "make_signed",
    "make_type",
    "same_type_strict",
    "LiteralExpr",
    "FieldRef",
    "BinaryOp",
    "UnaryOp",
    "Call",
    "Cast",
    "StructExpr",
    "Program",
    "RecordType",
    "Field",
    "Relation",
    "Rule",
    "FunctionDef",
    "TranslationError",
    "UnsupportedConstructError",
    "TypeMismatchError",
    "UnknownRelationError",
    "UnknownColumnError",
    "DuplicateDeclarationError",
    "DDlogError",
    "DDlogNotFoundError",
    "DDlogCompileError",
    "program_to_text",
    "render_type",
    "generate_sql_library",
    "write_library",
    "Translator",
    "SymbolEntry",
    "validate_query",
    "ValidationResult",
    "compile_program",
    "CompileResult",
]
