"""Pydantic models for the DDlog IR type system.

Every scalar type a SQL schema can declare maps onto one IRType value. The
model is a closed tagged union: `kind` selects the variant and `width` is
the only structural payload (bit vectors). Nullability is an attribute
layered on top of the base type and does not take part in equality.
"""

from pydantic import BaseModel, ConfigDict, model_validator
from typing import Literal, Optional

TypeKind = Literal['bool', 'bit', 'signed', 'string', 'double', 'date', 'time', 'datetime']

BOUNDED_KINDS = ('bit', 'signed')
NUMERIC_KINDS = ('bit', 'signed', 'double')
TEMPORAL_KINDS = ('date', 'time', 'datetime')

# Base names as they appear in DDlog source
_SIMPLE_NAMES = {
    'bool': 'bool',
    'string': 'string',
    'double': 'double',
    'date': 'Date',
    'time': 'Time',
    'datetime': 'DateTime',
}


class IRType(BaseModel):
    """A DDlog scalar type.

    Equality and hashing only look at `kind` and `width`: a nullable and a
    non-nullable `signed<64>` compare equal. Use `same_type_strict` where the
    nullability attribute matters.
    """
    model_config = ConfigDict(frozen=True)

    kind: TypeKind
    width: Optional[int] = None  # Only for 'bit' and 'signed'
    nullable: bool = False
    origin: Optional[int] = None  # Index into the translator's source log, diagnostics only

    @model_validator(mode='after')
    def _check_width(self):
        if self.kind in BOUNDED_KINDS:
            if self.width is None or self.width <= 0:
                raise ValueError(f"{self.kind} type requires a positive width, got {self.width}")
        elif self.width is not None:
            raise ValueError(f"{self.kind} type does not take a width")
        return self

    def __eq__(self, other):
        if not isinstance(other, IRType):
            return NotImplemented
        return self.kind == other.kind and self.width == other.width

    def __hash__(self):
        return hash((self.kind, self.width))

    @property
    def is_numeric(self) -> bool:
        return self.kind in NUMERIC_KINDS

    @property
    def is_bounded(self) -> bool:
        return self.kind in BOUNDED_KINDS

    @property
    def is_temporal(self) -> bool:
        return self.kind in TEMPORAL_KINDS

    def with_nullable(self, nullable: bool) -> 'IRType':
        """Return a copy of this type with the given nullability."""
        return self.model_copy(update={'nullable': nullable})

    def with_width(self, width: int) -> 'IRType':
        """Return a bit vector of the same kind with a new width, keeping nullability."""
        if not self.is_bounded:
            raise TypeError(f"with_width is only defined for bit vector types, not {self.kind}")
        return IRType(kind=self.kind, width=width, nullable=self.nullable, origin=self.origin)

    def canonical_name(self) -> str:
        """Base DDlog type name, without the Option<> wrapper."""
        if self.kind == 'bit':
            return f"bit<{self.width}>"
        if self.kind == 'signed':
            return f"signed<{self.width}>"
        return _SIMPLE_NAMES[self.kind]

    def zero(self):
        """Additive identity, typed exactly like this type."""
        return self._identity(0)

    def one(self):
        """Multiplicative identity, typed exactly like this type."""
        return self._identity(1)

    def _identity(self, value: int):
        # Import here to avoid circular imports
        from .ir_expressions import LiteralExpr

        if not self.is_numeric:
            raise TypeError(f"{self.canonical_name()} has no numeric identity elements")
        if self.kind == 'double':
            return LiteralExpr(type=self, value=float(value))
        return LiteralExpr(type=self, value=value)


def make_bit_vector(width: int, nullable: bool = False, origin: Optional[int] = None) -> IRType:
    """Unsigned bit vector `bit<width>`; raises ValueError if width <= 0."""
    return IRType(kind='bit', width=width, nullable=nullable, origin=origin)


def make_signed(width: int, nullable: bool = False, origin: Optional[int] = None) -> IRType:
    """Signed bit vector `signed<width>`; raises ValueError if width <= 0."""
    return IRType(kind='signed', width=width, nullable=nullable, origin=origin)


def make_type(kind: TypeKind, nullable: bool = False, origin: Optional[int] = None) -> IRType:
    return IRType(kind=kind, nullable=nullable, origin=origin)


def same_type_strict(left: IRType, right: IRType) -> bool:
    """Type equality that also compares nullability."""
    return left == right and left.nullable == right.nullable


# SQL integer family
BIGINT = make_signed(64)
BOOL = make_type('bool')
STRING = make_type('string')
DOUBLE = make_type('double')
DATE = make_type('date')
TIME = make_type('time')
DATETIME = make_type('datetime')
