"""SQL to DDlog translator using sqlglot ASTs.

A Translator is one translation session: it owns the symbol table of declared
tables and views and the Program being built. Each statement is translated
atomically; a failing statement leaves the program and symbol table as they
were. Only the diagnostic source log records it.
"""

import datetime
import logging
import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError
from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional, Tuple
from config import SQL_DIALECT
from .errors import (
    DuplicateDeclarationError,
    TranslationError,
    TypeMismatchError,
    UnknownColumnError,
    UnknownRelationError,
    UnsupportedConstructError,
)
from .generator import is_valid_field_name, render_type
from .ir_expressions import BinaryOp, Call, Cast, Expression, FieldRef, LiteralExpr, StructExpr, UnaryOp
from .ir_types import BIGINT, BOOL, DATE, DATETIME, DOUBLE, STRING, TIME, IRType
from .library import (
    arithmetic_function,
    boolean_function,
    comparison_function,
    concat_function,
    generate_sql_library,
    library_function_names,
    negate_function,
    shape_of,
)
from .program import Condition, Field, Program, RecordType, Relation, RelationLookup, Rule
from .validator import check_supported

logger = logging.getLogger(__name__)

# SQL column types, keyed by sqlglot DataType.Type name
COLUMN_TYPES: Dict[str, IRType] = {
    'TINYINT': BIGINT,
    'SMALLINT': BIGINT,
    'MEDIUMINT': BIGINT,
    'INT': BIGINT,
    'BIGINT': BIGINT,
    'CHAR': STRING,
    'NCHAR': STRING,
    'VARCHAR': STRING,
    'NVARCHAR': STRING,
    'TEXT': STRING,
    'BOOLEAN': BOOL,
    'FLOAT': DOUBLE,
    'DOUBLE': DOUBLE,
    'DATE': DATE,
    'TIME': TIME,
    'DATETIME': DATETIME,
    'TIMESTAMP': DATETIME,
}

COMPARISONS = {
    exp.EQ: '==',
    exp.NEQ: '!=',
    exp.LT: '<',
    exp.LTE: '<=',
    exp.GT: '>',
    exp.GTE: '>=',
}

ARITHMETIC = {
    exp.Add: '+',
    exp.Sub: '-',
    exp.Mul: '*',
    exp.Div: '/',
    exp.Mod: '%',
}

TEMPORAL_PARSERS = {
    'date': datetime.date.fromisoformat,
    'time': datetime.time.fromisoformat,
    'datetime': datetime.datetime.fromisoformat,
}


class SymbolEntry(BaseModel):
    """A declared table or view."""
    model_config = ConfigDict(frozen=True)

    name: str
    relation: Relation
    record: RecordType


class _Source(BaseModel):
    """A FROM item bound to a rule variable."""
    model_config = ConfigDict(frozen=True)

    var: str
    alias: str
    entry: SymbolEntry


def table_relation_name(name: str) -> str:
    return f"R{name}"


def table_type_name(name: str) -> str:
    return f"T{name}"


class Translator:
    """Translates a sequence of SQL statements into one DDlog program."""

    def __init__(self, dialect: Optional[str] = None):
        self.dialect = dialect or SQL_DIALECT
        self.program = Program()
        self.symbols: Dict[str, SymbolEntry] = {}
        self.sources: List[str] = []  # Text of every statement seen, failed ones included; indexed by IRType.origin
        self._anonymous_views = 0
        self._origin: Optional[int] = None

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    def translate(self, statement: exp.Expression):
        """
        Translate one parsed statement and add the result to the program.

        Args:
            statement: sqlglot AST of a CREATE TABLE, CREATE VIEW or SELECT

        Returns:
            The input Relation for CREATE TABLE, the Rule for views and queries

        Raises:
            TranslationError: The statement cannot be translated; the session
                is unchanged.
        """
        self._origin = len(self.sources)
        text = statement.sql(dialect=self.dialect)
        self.sources.append(text)

        try:
            if isinstance(statement, exp.Create):
                kind = (statement.args.get("kind") or "").upper()
                if kind == "TABLE":
                    node = self._translate_create_table(statement)
                elif kind == "VIEW":
                    node = self._translate_create_view(statement)
                else:
                    raise UnsupportedConstructError(f"CREATE {kind} is not supported", [f"CREATE_{kind}"])
            elif isinstance(statement, (exp.Select, exp.Union, exp.Intersect, exp.Except)):
                node = self._translate_query(None, statement)
            else:
                kind = type(statement).__name__.upper()
                raise UnsupportedConstructError(f"Statement {kind} is not supported", [kind])
        except TranslationError as e:
            if e.statement is None:
                e.statement = text
            logger.warning(f"[Translator] Statement {self._origin} rejected: {e.message}")
            raise
        finally:
            self._origin = None

        logger.info(f"[Translator] Translated statement {len(self.sources) - 1}: {node}")
        return node

    def translate_sql(self, sql: str):
        """Parse a single SQL statement and translate it."""
        try:
            ast = sqlglot.parse_one(sql, read=self.dialect)
        except SqlglotError as e:
            raise UnsupportedConstructError(f"Failed to parse SQL: {str(e)}", ["PARSE_ERROR"], statement=sql)
        return self.translate(ast)

    def translate_script(self, script: str) -> list:
        """
        Translate every statement of a ';'-separated script, in order.

        Stops at the first failing statement; statements before it stay
        translated.
        """
        try:
            statements = sqlglot.parse(script, read=self.dialect)
        except SqlglotError as e:
            raise UnsupportedConstructError(f"Failed to parse SQL: {str(e)}", ["PARSE_ERROR"], statement=script)
        return [self.translate(s) for s in statements if s is not None]

    def get_program(self) -> Program:
        """Snapshot of the program built so far."""
        return self.program.model_copy(deep=True)

    def lookup(self, name: str) -> Optional[SymbolEntry]:
        return self.symbols.get(name.lower())

    def source_of(self, origin: Optional[int]) -> Optional[str]:
        """Statement text an IR type originated from."""
        if origin is None or not 0 <= origin < len(self.sources):
            return None
        return self.sources[origin]

    @staticmethod
    def generate_library() -> Program:
        return generate_sql_library()

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _translate_create_table(self, create: exp.Create) -> Relation:
        schema = create.this
        if create.expression is not None or not isinstance(schema, exp.Schema):
            raise UnsupportedConstructError("CREATE TABLE must declare its columns", ["CREATE_TABLE_AS"])

        name = schema.this.name
        fields: List[Field] = []
        seen = set()
        for column_def in schema.expressions:
            if not isinstance(column_def, exp.ColumnDef):
                # Table constraints (keys, checks) do not change the row type
                logger.debug(f"[Translator] Ignoring table constraint {column_def.sql()}")
                continue
            self._check_field_name(column_def.name)
            if column_def.name.lower() in seen:
                raise DuplicateDeclarationError(f"Column {column_def.name} declared twice in table {name}")
            seen.add(column_def.name.lower())
            fields.append(Field(name=column_def.name, type=self._column_type(column_def)))

        record = RecordType(name=table_type_name(name), fields=fields)
        relation = Relation(name=table_relation_name(name), direction='input', record=record.name)
        self._commit(name, record, relation)
        return relation

    @staticmethod
    def _check_field_name(name: str) -> None:
        if not is_valid_field_name(name):
            raise UnsupportedConstructError(
                f"Column name {name!r} is a DDlog keyword or not a plain identifier", ["RESERVED_IDENTIFIER"]
            )

    def _column_type(self, column_def: exp.ColumnDef) -> IRType:
        data_type = column_def.args.get("kind")
        if not isinstance(data_type, exp.DataType):
            raise UnsupportedConstructError(
                f"Column {column_def.name} has no type", ["UNTYPED_COLUMN"]
            )
        base = COLUMN_TYPES.get(data_type.this.name)
        if base is None:
            raise UnsupportedConstructError(
                f"Column type {data_type.sql()} of {column_def.name} is not supported",
                [f"TYPE_{data_type.this.name}"],
            )

        not_null = any(
            isinstance(c.kind, exp.NotNullColumnConstraint) and not c.kind.args.get("allow_null")
            for c in column_def.constraints
        )
        return IRType(kind=base.kind, width=base.width, nullable=not not_null, origin=self._origin)

    def _translate_create_view(self, create: exp.Create) -> Rule:
        target = create.this
        column_names = None
        if isinstance(target, exp.Schema):
            column_names = [c.name for c in target.expressions]
            target = target.this
        if create.expression is None:
            raise UnsupportedConstructError("CREATE VIEW without a query", ["EMPTY_VIEW"])
        return self._translate_query(target.name, create.expression, column_names)

    def _translate_query(
        self,
        name: Optional[str],
        query: exp.Expression,
        column_names: Optional[List[str]] = None,
    ) -> Rule:
        check_supported(query)
        anonymous = name is None
        if anonymous:
            counter = self._next_anonymous()
            name = f"tmp{counter}"
        if name.lower() in self.symbols:
            raise DuplicateDeclarationError(f"Table or view {name} is already declared")

        scope, join_conditions = self._resolve_from(query)
        outputs = self._translate_projection(query, scope)

        if column_names is not None:
            if len(column_names) != len(outputs):
                raise TypeMismatchError(
                    f"View {name} names {len(column_names)} columns but its query produces {len(outputs)}"
                )
            outputs = [(new, value) for new, (_, value) in zip(column_names, outputs)]

        seen = set()
        for field_name, _ in outputs:
            self._check_field_name(field_name)
            if field_name.lower() in seen:
                raise DuplicateDeclarationError(f"Column {field_name} appears twice in view {name}")
            seen.add(field_name.lower())

        conditions = [self._predicate(c, scope) for c in join_conditions]
        where = query.args.get("where")
        if where is not None:
            conditions.append(self._predicate(where.this, scope))

        record = RecordType(
            name=table_type_name(name),
            fields=[Field(name=field_name, type=value.type) for field_name, value in outputs],
        )
        relation = Relation(name=table_relation_name(name), direction='output', record=record.name)
        head = StructExpr(type_name=record.name, fields=outputs)
        body = [RelationLookup(relation=s.entry.relation.name, var=s.var) for s in scope]
        body.extend(Condition(expr=c) for c in conditions)
        rule = Rule(head_relation=relation.name, head=head, body=body)

        self._commit(name, record, relation, rule)
        if anonymous:
            self._anonymous_views = counter + 1
        return rule

    def _next_anonymous(self) -> int:
        """First tmp<n> suffix not taken by a declared table or view."""
        counter = self._anonymous_views
        while f"tmp{counter}" in self.symbols:
            counter += 1
        return counter

    def _commit(self, name: str, record: RecordType, relation: Relation, rule: Optional[Rule] = None) -> None:
        """Add a declaration to the session; all checks run before any change."""
        key = name.lower()
        if key in self.symbols:
            raise DuplicateDeclarationError(f"Table or view {name} is already declared")
        new_record = self.program.check_record(record)
        self.program.check_relation(relation)

        if new_record:
            self.program.add_record(record)
        self.program.add_relation(relation)
        if rule is not None:
            self.program.add_rule(rule)
        self.symbols[key] = SymbolEntry(name=name, relation=relation, record=record)
        logger.debug(f"[Translator] Program now:\n{self.program.serialize()}")

    # ------------------------------------------------------------------
    # FROM and projection
    # ------------------------------------------------------------------

    def _resolve_from(self, select: exp.Select) -> Tuple[List[_Source], List[exp.Expression]]:
        """Bind each FROM/JOIN table to a variable v0, v1, ... in order."""
        from_clause = select.args.get("from") or select.find(exp.From)
        joins = select.args.get("joins") or []
        tables = [from_clause.this] + [j.this for j in joins]

        scope: List[_Source] = []
        for index, table in enumerate(tables):
            entry = self.lookup(table.name)
            if entry is None:
                raise UnknownRelationError(f"Unknown table or view {table.name}")
            alias = table.alias_or_name
            if any(s.alias.lower() == alias.lower() for s in scope):
                raise DuplicateDeclarationError(f"Table name {alias} appears twice in FROM; use an alias")
            scope.append(_Source(var=f"v{index}", alias=alias, entry=entry))

        conditions = [j.args["on"] for j in joins if j.args.get("on") is not None]
        return scope, conditions

    def _translate_projection(self, select: exp.Select, scope: List[_Source]) -> List[Tuple[str, Expression]]:
        outputs: List[Tuple[str, Expression]] = []
        for index, item in enumerate(select.expressions):
            alias = None
            node = item
            if isinstance(item, exp.Alias):
                alias = item.alias
                node = item.this

            if isinstance(node, exp.Star):
                for source in scope:
                    outputs.extend(self._expand(source))
            elif isinstance(node, exp.Column) and isinstance(node.this, exp.Star):
                outputs.extend(self._expand(self._source_for(node.table, scope)))
            else:
                value = self._expression(node, scope)
                if value is None:
                    raise UnsupportedConstructError("A bare NULL column has no type", ["UNTYPED_NULL"])
                if alias:
                    field_name = alias
                elif isinstance(node, exp.Column):
                    field_name = node.name
                else:
                    field_name = f"col{index}"
                outputs.append((field_name, value))
        return outputs

    @staticmethod
    def _expand(source: _Source) -> List[Tuple[str, Expression]]:
        return [
            (f.name, FieldRef(type=f.type, var=source.var, field=f.name))
            for f in source.entry.record.fields
        ]

    @staticmethod
    def _source_for(qualifier: str, scope: List[_Source]) -> _Source:
        for source in scope:
            if source.alias.lower() == qualifier.lower():
                return source
        raise UnknownColumnError(f"Unknown table {qualifier} in column reference")

    def _resolve_column(self, column: exp.Column, scope: List[_Source]) -> FieldRef:
        sources = [self._source_for(column.table, scope)] if column.table else scope
        matches = []
        for source in sources:
            found = source.entry.record.field(column.name)
            if found is not None:
                matches.append((source, found))

        if not matches:
            raise UnknownColumnError(f"Unknown column {column.sql()}")
        if len(matches) > 1:
            raise UnknownColumnError(f"Column {column.name} is ambiguous")
        source, found = matches[0]
        return FieldRef(type=found.type, var=source.var, field=found.name)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _predicate(self, node: exp.Expression, scope: List[_Source]) -> Expression:
        """
        Translate a WHERE/ON condition into a two-valued DDlog boolean.

        A nullable condition goes through unwrapBool, so a NULL outcome
        filters the row out, as it does in SQL.
        """
        value = self._expression(node, scope)
        if value is None:
            value = LiteralExpr(type=BOOL.with_nullable(True), value=None)
        if value.type.kind != 'bool':
            raise TypeMismatchError(f"Condition {node.sql()} has type {render_type(value.type)}, expected bool")
        if value.type.nullable:
            return Call(type=BOOL, function='unwrapBool', args=[value])
        return value

    def _expression(self, node: exp.Expression, scope: List[_Source]) -> Optional[Expression]:
        """Translate an expression; returns None for an untyped NULL literal."""
        if isinstance(node, exp.Paren):
            return self._expression(node.this, scope)
        if isinstance(node, exp.Null):
            return None
        if isinstance(node, exp.Column):
            if isinstance(node.this, exp.Star):
                raise UnsupportedConstructError("t.* is only allowed in the select list", ["STAR_EXPRESSION"])
            return self._resolve_column(node, scope)
        if isinstance(node, exp.Literal):
            return self._literal(node)
        if isinstance(node, exp.Boolean):
            return LiteralExpr(type=BOOL, value=bool(node.this))
        if isinstance(node, exp.Cast):
            return self._cast(node, scope)

        if type(node) in COMPARISONS:
            left, right = self._operands(node.this, node.expression, scope)
            return self._compare(COMPARISONS[type(node)], left, right)
        if type(node) in ARITHMETIC:
            left, right = self._operands(node.this, node.expression, scope)
            return self._arithmetic(ARITHMETIC[type(node)], left, right)
        if isinstance(node, exp.DPipe):
            left, right = self._operands(node.this, node.expression, scope)
            return self._concat(left, right)
        if isinstance(node, (exp.And, exp.Or)):
            left, right = self._operands(node.this, node.expression, scope, default=BOOL)
            return self._logical('and' if isinstance(node, exp.And) else 'or', left, right)
        if isinstance(node, exp.Not):
            operand = self._expression(node.this, scope)
            if operand is None:
                operand = LiteralExpr(type=BOOL.with_nullable(True), value=None)
            return self._not(operand)
        if isinstance(node, exp.Neg):
            if isinstance(node.this, exp.Literal) and not node.this.is_string:
                # Fold before range checking so the most negative integer fits
                return self._literal(node.this, negate=True)
            return self._negate(self._expression(node.this, scope))
        if isinstance(node, exp.Is):
            return self._is_null(node, scope)
        if isinstance(node, exp.Between):
            low = self._compare('>=', *self._operands(node.this, node.args["low"], scope))
            high = self._compare('<=', *self._operands(node.this, node.args["high"], scope))
            return self._logical('and', low, high)
        if isinstance(node, exp.In):
            return self._in_list(node, scope)

        kind = type(node).__name__.upper()
        raise UnsupportedConstructError(f"Expression {node.sql()} is not supported", [kind])

    def _literal(self, node: exp.Literal, negate: bool = False) -> LiteralExpr:
        if node.is_string:
            return LiteralExpr(type=STRING, value=node.this)
        sign = -1 if negate else 1
        if node.is_int:
            return self._fit(LiteralExpr(type=BIGINT, value=sign * int(node.this)))
        return LiteralExpr(type=DOUBLE, value=sign * float(node.this))

    def _cast(self, node: exp.Cast, scope: List[_Source]) -> Expression:
        """Casts of literals (DATE '2020-01-01') and identity casts."""
        target = COLUMN_TYPES.get(node.to.this.name)
        if target is None:
            raise UnsupportedConstructError(f"Cast to {node.to.sql()} is not supported", ["CAST"])
        value = self._expression(node.this, scope)
        if value is None:
            return LiteralExpr(type=target.with_nullable(True), value=None)
        if isinstance(value, LiteralExpr):
            coerced = self._coerce(value, target)
            if coerced.type == target:
                return coerced
        elif value.type == target:
            return value
        raise UnsupportedConstructError(
            f"Cast of {render_type(value.type)} to {render_type(target)} is not supported", ["CAST"]
        )

    def _operands(
        self,
        left_node: exp.Expression,
        right_node: exp.Expression,
        scope: List[_Source],
        default: Optional[IRType] = None,
    ) -> Tuple[Expression, Expression]:
        """Translate both operands of a binary operator.

        Literals take the type of the other operand and untyped NULLs become
        nullable literals of that type.
        """
        left = self._expression(left_node, scope)
        right = self._expression(right_node, scope)

        if left is None and right is None:
            if default is None:
                raise UnsupportedConstructError("Operator applied to two NULLs has no type", ["UNTYPED_NULL"])
            left = right = LiteralExpr(type=default.with_nullable(True), value=None)
        elif left is None:
            left = LiteralExpr(type=right.type.with_nullable(True), value=None)
        elif right is None:
            right = LiteralExpr(type=left.type.with_nullable(True), value=None)

        if isinstance(left, LiteralExpr):
            left = self._coerce(left, right.type)
        if isinstance(right, LiteralExpr):
            right = self._coerce(right, left.type)
        return left, right

    def _coerce(self, literal: LiteralExpr, target: IRType) -> LiteralExpr:
        """Retype a literal to `target` when SQL would convert it implicitly."""
        if literal.value is None or literal.type == target:
            return literal
        source = literal.type.kind
        value = literal.value

        if target.is_bounded and source in ('signed', 'bit') and isinstance(value, int):
            return self._fit(LiteralExpr(type=target.with_nullable(False), value=value))
        if target.kind == 'double' and source in ('signed', 'bit', 'double'):
            return LiteralExpr(type=DOUBLE, value=float(value))
        if target.is_temporal and source == 'string':
            try:
                TEMPORAL_PARSERS[target.kind](value)
            except ValueError:
                raise TypeMismatchError(f"'{value}' is not a valid {target.canonical_name()} literal")
            return LiteralExpr(type=target.with_nullable(False), value=value)
        return literal

    @staticmethod
    def _fit(literal: LiteralExpr) -> LiteralExpr:
        """Check that an integer literal fits in its bit vector type."""
        width = literal.type.width
        if literal.type.kind == 'signed':
            low, high = -(1 << (width - 1)), (1 << (width - 1)) - 1
        else:
            low, high = 0, (1 << width) - 1
        if not low <= literal.value <= high:
            raise TypeMismatchError(
                f"Literal {literal.value} does not fit in {literal.type.canonical_name()}"
            )
        return literal

    @staticmethod
    def _is_null_literal(value: Expression) -> bool:
        return isinstance(value, LiteralExpr) and value.value is None

    def _unify(self, left: Expression, right: Expression) -> Tuple[Expression, Expression, IRType]:
        """Bring numeric operands to a common type, widening the narrower one."""
        if left.type == right.type:
            return left, right, left.type
        if left.type.is_bounded and left.type.kind == right.type.kind:
            wide = max(left.type.width, right.type.width)
            left = self._widen(left, wide)
            right = self._widen(right, wide)
            return left, right, left.type.with_nullable(False)
        raise TypeMismatchError(
            f"Incompatible operand types {render_type(left.type)} and {render_type(right.type)}"
        )

    def _widen(self, value: Expression, width: int) -> Expression:
        if value.type.width == width:
            return value
        if self._is_null_literal(value):
            return LiteralExpr(type=value.type.with_width(width), value=None)
        if value.type.nullable:
            raise TypeMismatchError(f"Cannot widen nullable {render_type(value.type)} to width {width}")
        return Cast(type=value.type.with_width(width), operand=value)

    def _compare(self, op: str, left: Expression, right: Expression) -> Expression:
        left, right, _ = self._unify(left, right)
        if self._is_null_literal(left) or self._is_null_literal(right):
            return LiteralExpr(type=BOOL.with_nullable(True), value=None)
        if not (left.type.nullable or right.type.nullable):
            return BinaryOp(type=BOOL, op=op, left=left, right=right)
        shape = shape_of(left.type.nullable, right.type.nullable)
        return Call(type=BOOL.with_nullable(True), function=comparison_function(op, shape), args=[left, right])

    def _arithmetic(self, op: str, left: Expression, right: Expression) -> Expression:
        for value in (left, right):
            if not value.type.is_numeric:
                raise TypeMismatchError(f"Operator {op} expects numbers, got {render_type(value.type)}")
        left, right, base = self._unify(left, right)
        if op == '%' and base.kind == 'double':
            raise TypeMismatchError("Operator % is not defined for double")

        nullable = left.type.nullable or right.type.nullable
        result = base.with_nullable(nullable)
        if self._is_null_literal(left) or self._is_null_literal(right):
            return LiteralExpr(type=result, value=None)
        if not nullable:
            return BinaryOp(type=result, op=op, left=left, right=right)
        function = arithmetic_function(op, base, shape_of(left.type.nullable, right.type.nullable))
        return self._library_call(function, result, [left, right])

    def _concat(self, left: Expression, right: Expression) -> Expression:
        for value in (left, right):
            if value.type.kind != 'string':
                raise TypeMismatchError(f"Operator || expects strings, got {render_type(value.type)}")
        nullable = left.type.nullable or right.type.nullable
        if self._is_null_literal(left) or self._is_null_literal(right):
            return LiteralExpr(type=STRING.with_nullable(True), value=None)
        if not nullable:
            return BinaryOp(type=STRING, op='++', left=left, right=right)
        function = concat_function(shape_of(left.type.nullable, right.type.nullable))
        return self._library_call(function, STRING.with_nullable(True), [left, right])

    def _logical(self, op: str, left: Expression, right: Expression) -> Expression:
        for value in (left, right):
            if value.type.kind != 'bool':
                raise TypeMismatchError(f"Operator {op} expects booleans, got {render_type(value.type)}")
        if not (left.type.nullable or right.type.nullable):
            return BinaryOp(type=BOOL, op=op, left=left, right=right)
        function = boolean_function(op, shape_of(left.type.nullable, right.type.nullable))
        return self._library_call(function, BOOL.with_nullable(True), [left, right])

    def _not(self, operand: Expression) -> Expression:
        if operand.type.kind != 'bool':
            raise TypeMismatchError(f"NOT expects a boolean, got {render_type(operand.type)}")
        if self._is_null_literal(operand):
            return operand
        if isinstance(operand, LiteralExpr):
            return LiteralExpr(type=operand.type, value=not operand.value)
        if not operand.type.nullable:
            return UnaryOp(type=BOOL, op='not', operand=operand)
        return self._library_call('b_not_N', BOOL.with_nullable(True), [operand])

    def _negate(self, operand: Optional[Expression]) -> Expression:
        if operand is None:
            raise UnsupportedConstructError("Negation of NULL has no type", ["UNTYPED_NULL"])
        if operand.type.kind not in ('signed', 'double'):
            raise TypeMismatchError(f"Unary minus expects a signed number, got {render_type(operand.type)}")
        if isinstance(operand, LiteralExpr):
            if operand.value is None:
                return operand
            negated = LiteralExpr(type=operand.type, value=-operand.value)
            return self._fit(negated) if operand.type.is_bounded else negated
        if not operand.type.nullable:
            return UnaryOp(type=operand.type, op='-', operand=operand)
        return self._library_call(negate_function(operand.type), operand.type, [operand])

    def _is_null(self, node: exp.Is, scope: List[_Source]) -> Expression:
        """`x IS NULL`; newer sqlglot parses `IS NOT NULL` as Is(negate=True)."""
        if not isinstance(node.expression, exp.Null):
            raise UnsupportedConstructError(f"Expression {node.sql()} is not supported", ["IS"])
        negate = bool(node.args.get("negate"))
        value = self._expression(node.this, scope)
        if value is None or self._is_null_literal(value):
            return LiteralExpr(type=BOOL, value=not negate)
        if not value.type.nullable:
            return LiteralExpr(type=BOOL, value=negate)
        test = Call(type=BOOL, function='is_null', args=[value])
        if negate:
            return UnaryOp(type=BOOL, op='not', operand=test)
        return test

    def _in_list(self, node: exp.In, scope: List[_Source]) -> Expression:
        """`x IN (a, b)` becomes `x = a OR x = b`."""
        if node.args.get("query") is not None or not node.expressions:
            raise UnsupportedConstructError(f"Expression {node.sql()} is not supported", ["IN_SUBQUERY"])
        result = None
        for item in node.expressions:
            equal = self._compare('==', *self._operands(node.this, item, scope))
            result = equal if result is None else self._logical('or', result, equal)
        return result

    @staticmethod
    def _library_call(function: str, result: IRType, args: List[Expression]) -> Call:
        if function not in library_function_names():
            raise UnsupportedConstructError(
                f"No library operator {function} for these operand types", ["NULLABLE_OPERATOR"]
            )
        return Call(type=result, function=function, args=args)
