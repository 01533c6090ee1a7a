"""
DDlog Generator - Renders IR declarations as canonical DDlog text.

Output is consumed by the ddlog compiler, which parses it strictly; rendering
must be deterministic for a given program.
"""

import re
from typing import List
from .ir_types import IRType
from .ir_expressions import BinaryOp, Call, Cast, FieldRef, LiteralExpr, StructExpr, UnaryOp
from .program import (
    Condition,
    Field,
    FunctionDef,
    Program,
    RecordType,
    Relation,
    RelationLookup,
    Rule,
)

# Library functions that turn temporal literal text into values
TEMPORAL_CONSTRUCTORS = {
    'date': 'sql_date',
    'time': 'sql_time',
    'datetime': 'sql_datetime',
}

# Words the ddlog parser does not accept as field names
DDLOG_KEYWORDS = frozenset({
    'and', 'apply', 'as', 'bigint', 'bit', 'bool', 'break', 'continue',
    'default', 'double', 'else', 'extern', 'false', 'float', 'for',
    'function', 'if', 'import', 'in', 'index', 'input', 'key', 'match',
    'multiset', 'mut', 'not', 'on', 'or', 'output', 'primary', 'relation',
    'return', 'signed', 'skip', 'stream', 'string', 'transformer', 'true',
    'type', 'typedef', 'var',
})

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_valid_field_name(name: str) -> bool:
    """Whether `name` can be emitted verbatim as a DDlog field name."""
    return bool(IDENTIFIER.match(name)) and name not in DDLOG_KEYWORDS and name != '_'


def render_type(t: IRType) -> str:
    """Render a type, wrapping nullable types in Option<>."""
    name = t.canonical_name()
    if t.nullable:
        return f"Option<{name}>"
    return name


def render_literal(lit: LiteralExpr) -> str:
    """Render a literal value for its declared type."""
    if lit.value is None:
        return "None{}"
    base = format_value(lit.type, lit.value)
    if lit.type.nullable:
        return f"Some{{{base}}}"
    return base


def format_value(t: IRType, value) -> str:
    """Format a non-null value of base type `t`."""
    if t.kind == 'bool':
        return "true" if value else "false"
    elif t.kind == 'signed':
        sign = "-" if value < 0 else ""
        return f"{sign}{t.width}'sd{abs(value)}"
    elif t.kind == 'bit':
        return f"{t.width}'d{value}"
    elif t.kind == 'double':
        sign = "-" if value < 0 else ""
        return f"{sign}64'f{repr(abs(float(value)))}"
    elif t.kind == 'string':
        return quote_string(value)
    elif t.is_temporal:
        return f"{TEMPORAL_CONSTRUCTORS[t.kind]}({quote_string(value)})"
    raise ValueError(f"Cannot render a literal of type {t.canonical_name()}")


def quote_string(value: str) -> str:
    """Quote a string as a DDlog string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def render_expression(expr) -> str:
    """Render an IR expression."""
    if isinstance(expr, LiteralExpr):
        return render_literal(expr)
    elif isinstance(expr, FieldRef):
        return f"{expr.var}.{expr.field}"
    elif isinstance(expr, BinaryOp):
        return f"({render_expression(expr.left)} {expr.op} {render_expression(expr.right)})"
    elif isinstance(expr, UnaryOp):
        if expr.op == 'not':
            return f"(not {render_expression(expr.operand)})"
        return f"(-{render_expression(expr.operand)})"
    elif isinstance(expr, Call):
        args = ", ".join(render_expression(a) for a in expr.args)
        return f"{expr.function}({args})"
    elif isinstance(expr, Cast):
        return f"({render_expression(expr.operand)} as {expr.type.canonical_name()})"
    elif isinstance(expr, StructExpr):
        fields = ", ".join(f".{name} = {render_expression(value)}" for name, value in expr.fields)
        return f"{expr.type_name}{{{fields}}}"
    raise ValueError(f"Unknown expression node: {type(expr).__name__}")


def render_node(node) -> str:
    """Render a single declaration or body atom."""
    if isinstance(node, Field):
        return f"{node.name}:{render_type(node.type)}"
    elif isinstance(node, RecordType):
        fields = ", ".join(render_node(f) for f in node.fields)
        return f"typedef {node.name} = {node.name}{{{fields}}}"
    elif isinstance(node, Relation):
        return f"{node.direction} relation {node.name}[{node.record}]"
    elif isinstance(node, RelationLookup):
        return f"{node.relation}[{node.var}]"
    elif isinstance(node, Condition):
        return render_expression(node.expr)
    elif isinstance(node, Rule):
        body = ", ".join(render_node(item) for item in node.body)
        head = f"{node.head_relation}[{render_expression(node.head)}]"
        if not body:
            return f"{head}."
        return f"{head} :- {body}."
    elif isinstance(node, FunctionDef):
        params = ", ".join(f"{p.name}: {p.type}" for p in node.params)
        return f"function {node.name}({params}): {node.result} = {node.body}"
    raise ValueError(f"Unknown IR node: {type(node).__name__}")


def program_to_text(program: Program) -> str:
    """
    Convert a Program to DDlog source.

    Sections are emitted in a fixed order (imports, types, functions,
    relations, rules), one declaration per line, with a blank line between
    non-empty sections.
    """
    sections: List[List[str]] = [
        [f"import {name}" for name in program.imports],
        [render_node(r) for r in program.records],
        [render_node(f) for f in program.functions],
        [render_node(r) for r in program.relations],
        [render_node(r) for r in program.rules],
    ]
    blocks = ["".join(line + "\n" for line in lines) for lines in sections if lines]
    return "\n".join(blocks)
