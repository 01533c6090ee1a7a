"""
Generation of the `sqlop` DDlog library.

Generated programs call these helpers whenever an operand may be NULL: they
implement SQL's three-valued logic over `Option<>` values. The library does
not depend on any schema, so it is built once per process.
"""

import functools
import logging
from pathlib import Path
from typing import FrozenSet, List, Union
from .ir_types import BIGINT, DOUBLE, IRType
from .program import FunctionDef, FunctionParam, Program

logger = logging.getLogger(__name__)

LIBRARY_NAME = "sqlop"

COMPARISON_OPS = {
    '==': 'eq',
    '!=': 'neq',
    '<': 'lt',
    '<=': 'lte',
    '>': 'gt',
    '>=': 'gte',
}

ARITHMETIC_OPS = {
    '+': 'plus',
    '-': 'minus',
    '*': 'times',
    '/': 'div',
    '%': 'mod',
}

BOOLEAN_OPS = {
    'and': 'b_and',
    'or': 'b_or',
}

# Types produced by the schema mapping that need nullable arithmetic
ARITHMETIC_TYPES = [BIGINT, DOUBLE]

# Operand shapes: N = nullable, R = regular
NULLABLE_SHAPES = ('NN', 'NR', 'RN')


def type_suffix(t: IRType) -> str:
    """Identifier-safe form of a type name, e.g. signed<64> -> signed64."""
    return t.canonical_name().replace('<', '').replace('>', '')


def shape_of(left_nullable: bool, right_nullable: bool) -> str:
    return ('N' if left_nullable else 'R') + ('N' if right_nullable else 'R')


def comparison_function(op: str, shape: str) -> str:
    return f"a_{COMPARISON_OPS[op]}_{shape}"


def arithmetic_function(op: str, t: IRType, shape: str) -> str:
    return f"a_{ARITHMETIC_OPS[op]}_{type_suffix(t)}_{shape}"


def negate_function(t: IRType) -> str:
    return f"a_neg_{type_suffix(t)}_N"


def boolean_function(op: str, shape: str) -> str:
    return f"{BOOLEAN_OPS[op]}_{shape}"


def concat_function(shape: str) -> str:
    return f"s_concat_{shape}"


def _binary(name: str, op: str, left_type: str, right_type: str, result_type: str, shape: str) -> FunctionDef:
    """Lift a native binary operator to Option<> operands."""
    if shape == 'NN':
        body = f"match ((left, right)) {{ (Some{{l}}, Some{{r}}) -> Some{{l {op} r}}, _ -> None }}"
    elif shape == 'NR':
        body = f"match (left) {{ Some{{l}} -> Some{{l {op} right}}, None -> None }}"
    else:
        body = f"match (right) {{ Some{{r}} -> Some{{left {op} r}}, None -> None }}"
    params = [
        FunctionParam(name='left', type=f"Option<{left_type}>" if shape[0] == 'N' else left_type),
        FunctionParam(name='right', type=f"Option<{right_type}>" if shape[1] == 'N' else right_type),
    ]
    return FunctionDef(name=name, params=params, result=f"Option<{result_type}>", body=body)


def _boolean_functions() -> List[FunctionDef]:
    functions = [
        FunctionDef(
            name='unwrapBool',
            params=[FunctionParam(name='b', type='Option<bool>')],
            result='bool',
            body="match (b) { Some{true} -> true, _ -> false }",
        ),
        FunctionDef(
            name='is_null',
            params=[FunctionParam(name='x', type="Option<'T>")],
            result='bool',
            body="match (x) { None -> true, _ -> false }",
        ),
        FunctionDef(
            name='b_and_NN',
            params=[FunctionParam(name='left', type='Option<bool>'), FunctionParam(name='right', type='Option<bool>')],
            result='Option<bool>',
            body=(
                "match ((left, right)) { (Some{false}, _) -> Some{false}, (_, Some{false}) -> Some{false}, "
                "(Some{true}, Some{true}) -> Some{true}, _ -> None }"
            ),
        ),
        FunctionDef(
            name='b_or_NN',
            params=[FunctionParam(name='left', type='Option<bool>'), FunctionParam(name='right', type='Option<bool>')],
            result='Option<bool>',
            body=(
                "match ((left, right)) { (Some{true}, _) -> Some{true}, (_, Some{true}) -> Some{true}, "
                "(Some{false}, Some{false}) -> Some{false}, _ -> None }"
            ),
        ),
    ]
    for op, prefix in BOOLEAN_OPS.items():
        functions.append(FunctionDef(
            name=f"{prefix}_NR",
            params=[FunctionParam(name='left', type='Option<bool>'), FunctionParam(name='right', type='bool')],
            result='Option<bool>',
            body=f"{prefix}_NN(left, Some{{right}})",
        ))
        functions.append(FunctionDef(
            name=f"{prefix}_RN",
            params=[FunctionParam(name='left', type='bool'), FunctionParam(name='right', type='Option<bool>')],
            result='Option<bool>',
            body=f"{prefix}_NN(Some{{left}}, right)",
        ))
    functions.append(FunctionDef(
        name='b_not_N',
        params=[FunctionParam(name='b', type='Option<bool>')],
        result='Option<bool>',
        body="match (b) { Some{x} -> Some{not x}, None -> None }",
    ))
    return functions


def _comparison_functions() -> List[FunctionDef]:
    return [
        _binary(comparison_function(op, shape), op, "'T", "'T", 'bool', shape)
        for op in COMPARISON_OPS
        for shape in NULLABLE_SHAPES
    ]


def _arithmetic_functions() -> List[FunctionDef]:
    functions = []
    for t in ARITHMETIC_TYPES:
        name = t.canonical_name()
        for op in ARITHMETIC_OPS:
            if op == '%' and t.kind == 'double':
                continue
            for shape in NULLABLE_SHAPES:
                functions.append(_binary(arithmetic_function(op, t, shape), op, name, name, name, shape))
        functions.append(FunctionDef(
            name=negate_function(t),
            params=[FunctionParam(name='x', type=f"Option<{name}>")],
            result=f"Option<{name}>",
            body="match (x) { Some{v} -> Some{-v}, None -> None }",
        ))
    return functions


def _string_functions() -> List[FunctionDef]:
    return [
        _binary(concat_function(shape), '++', 'string', 'string', 'string', shape)
        for shape in NULLABLE_SHAPES
    ]


def _temporal_functions() -> List[FunctionDef]:
    return [
        FunctionDef(
            name=name,
            params=[FunctionParam(name='s', type='string')],
            result=result,
            body=f"result_unwrap_or_default({parser}(s))",
        )
        for name, result, parser in (
            ('sql_date', 'Date', 'string2date'),
            ('sql_time', 'Time', 'string2time'),
            ('sql_datetime', 'DateTime', 'string2datetime'),
        )
    ]


@functools.lru_cache(maxsize=1)
def _build_library() -> Program:
    program = Program(imports=['time'])
    for group in (
        _boolean_functions(),
        _comparison_functions(),
        _arithmetic_functions(),
        _string_functions(),
        _temporal_functions(),
    ):
        for function in group:
            program.add_function(function)
    logger.info(f"[SqlLibrary] Generated {LIBRARY_NAME} with {len(program.functions)} functions")
    return program


def generate_sql_library() -> Program:
    """
    Return the `sqlop` library program.

    Built on first use and cached for the rest of the process; every call
    returns an independent copy with identical content.
    """
    return _build_library().model_copy(deep=True)


@functools.lru_cache(maxsize=1)
def library_function_names() -> FrozenSet[str]:
    return frozenset(f.name for f in _build_library().functions)


def write_library(directory: Union[str, Path]) -> Path:
    """Write `sqlop.dl` into `directory` for the ddlog compiler's -L path."""
    path = Path(directory) / f"{LIBRARY_NAME}.dl"
    generate_sql_library().to_file(path)
    logger.info(f"[SqlLibrary] Wrote {path}")
    return path
