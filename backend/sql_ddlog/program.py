"""Pydantic models for DDlog program declarations."""

from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field as PydanticField
from typing import List, Literal, Optional, Union
from .ir_types import IRType, same_type_strict
from .ir_expressions import Expression, StructExpr
from .errors import DuplicateDeclarationError

# Modules every generated program imports
DEFAULT_IMPORTS = ['fp', 'time', 'sql', 'sqlop']


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        # Import here to avoid circular imports
        from .generator import render_node
        return render_node(self)


class Field(_Node):
    """A named, typed field of a record type."""
    name: str
    type: IRType


class RecordType(_Node):
    """Row shape of a table or view: `typedef T = T{...}`."""
    name: str
    fields: List[Field]

    def field(self, name: str) -> Optional[Field]:
        """Case-insensitive field lookup, matching SQL identifier rules."""
        for f in self.fields:
            if f.name.lower() == name.lower():
                return f
        return None

    def same_structure(self, other: 'RecordType') -> bool:
        if self.name != other.name or len(self.fields) != len(other.fields):
            return False
        return all(
            a.name == b.name and same_type_strict(a.type, b.type)
            for a, b in zip(self.fields, other.fields)
        )


class Relation(_Node):
    name: str
    direction: Literal['input', 'output']
    record: str  # RecordType name


class RelationLookup(_Node):
    """Body atom binding each row of `relation` to `var`."""
    relation: str
    var: str


class Condition(_Node):
    """Boolean body atom; `expr` must be a non-nullable bool."""
    expr: Expression


class Rule(_Node):
    """`head_relation[head] :- body.`"""
    head_relation: str
    head: StructExpr
    body: List[Union[RelationLookup, Condition]]


class FunctionParam(_Node):
    name: str
    type: str  # Rendered DDlog type; may use type variables such as 'T


class FunctionDef(_Node):
    """One-line DDlog function definition."""
    name: str
    params: List[FunctionParam]
    result: str
    body: str


class Program(BaseModel):
    """An append-only DDlog program.

    Declarations keep their first-declared order; `serialize` is a pure
    function of the accumulated state.
    """
    imports: List[str] = PydanticField(default_factory=lambda: list(DEFAULT_IMPORTS))
    records: List[RecordType] = PydanticField(default_factory=list)
    functions: List[FunctionDef] = PydanticField(default_factory=list)
    relations: List[Relation] = PydanticField(default_factory=list)
    rules: List[Rule] = PydanticField(default_factory=list)

    def find_record(self, name: str) -> Optional[RecordType]:
        for record in self.records:
            if record.name == name:
                return record
        return None

    def find_relation(self, name: str) -> Optional[Relation]:
        for relation in self.relations:
            if relation.name == name:
                return relation
        return None

    def check_record(self, record: RecordType) -> bool:
        """Return True if `record` still has to be added.

        Raises DuplicateDeclarationError if another record with the same name
        but a different structure already exists.
        """
        existing = self.find_record(record.name)
        if existing is None:
            return True
        if not existing.same_structure(record):
            raise DuplicateDeclarationError(
                f"Type {record.name} is already declared with a different structure"
            )
        return False

    def check_relation(self, relation: Relation) -> None:
        if self.find_relation(relation.name) is not None:
            raise DuplicateDeclarationError(f"Relation {relation.name} is already declared")

    def add_record(self, record: RecordType) -> None:
        if self.check_record(record):
            self.records.append(record)

    def add_function(self, function: FunctionDef) -> None:
        if any(f.name == function.name for f in self.functions):
            raise DuplicateDeclarationError(f"Function {function.name} is already declared")
        self.functions.append(function)

    def add_relation(self, relation: Relation) -> None:
        self.check_relation(relation)
        self.relations.append(relation)

    def add_rule(self, rule: Rule) -> None:
        self.rules.append(rule)

    def serialize(self) -> str:
        # Import here to avoid circular imports
        from .generator import program_to_text
        return program_to_text(self)

    def to_file(self, path: Union[str, Path]) -> Path:
        """Write the serialized program to `path` and return the path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.serialize(), encoding='utf-8')
        return path

    def __str__(self) -> str:
        return self.serialize()
