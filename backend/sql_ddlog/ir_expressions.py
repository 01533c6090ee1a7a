"""Pydantic models for typed DDlog IR expressions.

Every expression carries its IRType, fixed when the translator builds it.
"""

from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional, Tuple, Union
from .ir_types import IRType


class _Expr(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: IRType

    def __str__(self) -> str:
        # Import here to avoid circular imports
        from .generator import render_expression
        return render_expression(self)


class LiteralExpr(_Expr):
    """A constant. `value` is None for a typed SQL NULL."""
    kind: Literal['literal'] = 'literal'
    value: Optional[Union[bool, int, float, str]] = None  # bool must come before int to prevent coercion


class FieldRef(_Expr):
    """Field `field` of the row bound to variable `var`."""
    kind: Literal['field'] = 'field'
    var: str
    field: str


class BinaryOp(_Expr):
    kind: Literal['binary'] = 'binary'
    op: Literal['==', '!=', '<', '<=', '>', '>=', '+', '-', '*', '/', '%', '++', 'and', 'or']
    left: 'Expression'
    right: 'Expression'


class UnaryOp(_Expr):
    kind: Literal['unary'] = 'unary'
    op: Literal['not', '-']
    operand: 'Expression'


class Call(_Expr):
    """Call of a DDlog function, usually one of the sqlop library helpers."""
    kind: Literal['call'] = 'call'
    function: str
    args: List['Expression']


class Cast(_Expr):
    """Numeric conversion `(operand as type)`."""
    kind: Literal['cast'] = 'cast'
    operand: 'Expression'


class StructExpr(_Expr):
    """Record constructor `TypeName{.field = expr, ...}`; records are not scalar, so no IRType."""
    kind: Literal['struct'] = 'struct'
    type: Optional[IRType] = None
    type_name: str
    fields: List[Tuple[str, 'Expression']]


Expression = Union[LiteralExpr, FieldRef, BinaryOp, UnaryOp, Call, Cast, StructExpr]

for _model in (BinaryOp, UnaryOp, Call, Cast, StructExpr):
    _model.model_rebuild()
