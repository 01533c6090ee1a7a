"""Detection of SQL query features that have no DDlog translation rule.

Core Principle: a query is either translated completely or rejected with the
full list of offending features. Nothing is silently dropped.
"""

from sqlglot import exp
from typing import List, Optional, Set
from pydantic import BaseModel
from .errors import UnsupportedConstructError


class ValidationResult(BaseModel):
    """Result of query validation."""
    supported: bool
    errors: List[str] = []
    unsupportedFeatures: List[str] = []
    hint: Optional[str] = None


def validate_query(select: exp.Expression) -> ValidationResult:
    """
    Check whether a query can be translated into a single DDlog rule.

    Args:
        select: Parsed query (sqlglot AST)

    Returns:
        ValidationResult with supported=True, or the unsupported features found
    """
    if not isinstance(select, exp.Select):
        kind = type(select).__name__.upper()
        return ValidationResult(
            supported=False,
            errors=[f"Query must be a plain SELECT, got {kind}"],
            unsupportedFeatures=[kind],
            hint=_generate_hint([kind]),
        )

    unsupported: Set[str] = set()
    unsupported.update(_check_unsupported_nodes(select))
    unsupported.update(_check_unsupported_clauses(select))
    unsupported.update(_check_joins(select))

    if unsupported:
        feature_list = sorted(unsupported)
        return ValidationResult(
            supported=False,
            errors=[f"Query contains unsupported features: {', '.join(feature_list)}"],
            unsupportedFeatures=feature_list,
            hint=_generate_hint(feature_list),
        )

    return ValidationResult(supported=True)


def check_supported(select: exp.Expression) -> None:
    """Raise UnsupportedConstructError unless `validate_query` accepts the query."""
    result = validate_query(select)
    if not result.supported:
        raise UnsupportedConstructError(
            result.errors[0],
            result.unsupportedFeatures,
            hint=result.hint,
        )


def _check_unsupported_nodes(select: exp.Select) -> Set[str]:
    """Check for node types anywhere in the query."""
    unsupported: Set[str] = set()

    for node in select.walk():
        if node is not select and isinstance(node, exp.Select):
            unsupported.add("SUBQUERY")
        elif isinstance(node, exp.Subquery):
            unsupported.add("SUBQUERY")
        elif isinstance(node, (exp.CTE, exp.With)):
            unsupported.add("CTE")
        elif isinstance(node, exp.Union):
            unsupported.add("UNION")
        elif isinstance(node, exp.Intersect):
            unsupported.add("INTERSECT")
        elif isinstance(node, exp.Except):
            unsupported.add("EXCEPT")
        elif isinstance(node, exp.Window):
            unsupported.add("WINDOW_FUNCTION")
        elif isinstance(node, exp.Case):
            unsupported.add("CASE")
        elif isinstance(node, exp.AggFunc):
            unsupported.add("AGGREGATE")
        elif isinstance(node, (exp.Like, exp.ILike)):
            unsupported.add("LIKE")
        elif isinstance(node, exp.Exists):
            unsupported.add("EXISTS")

    return unsupported


def _check_unsupported_clauses(select: exp.Select) -> Set[str]:
    """Clauses that change multiplicity or ordering of the result."""
    unsupported: Set[str] = set()

    for clause, feature in (
        ("group", "GROUP_BY"),
        ("having", "HAVING"),
        ("order", "ORDER_BY"),
        ("limit", "LIMIT"),
        ("offset", "OFFSET"),
        ("qualify", "QUALIFY"),
    ):
        if select.args.get(clause):
            unsupported.add(feature)

    from_clause = select.args.get("from") or select.find(exp.From)
    if not from_clause:
        unsupported.add("NO_FROM")
    elif not isinstance(from_clause.this, exp.Table):
        unsupported.add("COMPLEX_FROM")

    return unsupported


def _check_joins(select: exp.Select) -> Set[str]:
    """Only inner, cross and comma joins map onto a rule body."""
    unsupported: Set[str] = set()

    for join_node in select.args.get("joins") or []:
        # NATURAL, ASOF and friends join on columns the query never names
        if join_node.method:
            unsupported.add(f"{join_node.method.upper()}_JOIN")
        if join_node.side:
            unsupported.add(f"{join_node.side.upper()}_JOIN")
        elif join_node.kind and join_node.kind.upper() not in ("INNER", "CROSS"):
            unsupported.add(f"{join_node.kind.upper()}_JOIN")
        if join_node.args.get("using"):
            unsupported.add("JOIN_USING")
        if not isinstance(join_node.this, exp.Table):
            unsupported.add("COMPLEX_FROM")

    return unsupported


def _generate_hint(unsupported_features: List[str]) -> str:
    """Generate helpful hint based on unsupported features."""
    if any(f.endswith("_JOIN") for f in unsupported_features):
        return "Only inner and cross joins with explicit ON conditions can be translated; rewrite outer and natural joins as separate views."
    elif "AGGREGATE" in unsupported_features or "GROUP_BY" in unsupported_features:
        return "Aggregation is not translated; compute aggregates downstream of the DDlog program."
    elif "SUBQUERY" in unsupported_features or "CTE" in unsupported_features:
        return "Define each subquery or CTE as its own view and reference it by name."
    elif "ORDER_BY" in unsupported_features or "LIMIT" in unsupported_features:
        return "DDlog relations are unordered sets; remove ORDER BY and LIMIT."
    else:
        return "Rewrite the query using projections, inner joins and WHERE filters only."
