"""Tests for CREATE VIEW and SELECT translation into DDlog rules."""

import pytest
import sqlglot
from sqlglot import exp
from sql_ddlog import (
    DuplicateDeclarationError,
    Rule,
    TypeMismatchError,
    UnknownColumnError,
    UnknownRelationError,
    UnsupportedConstructError,
)
from conftest import IMPORTS, RELATIONS, TABLES, TABLES_WITH_NULL

T1_FIELDS = ".column1 = v0.column1, .column2 = v0.column2, .column3 = v0.column3, .column4 = v0.column4"


def rule_text(translator, sql: str) -> str:
    return str(translator.translate_sql(sql))


class TestSelectStar:
    """Test the filtered view over every column of t1."""

    def test_nullable_filter_program(self, nullable_translator):
        rule = nullable_translator.translate_sql("create view v1 as select * from t1 where column1 = 10")
        assert isinstance(rule, Rule)

        expected_rule = f"Rv1[Tv1{{{T1_FIELDS}}}] :- Rt1[v0], unwrapBool(a_eq_NR(v0.column1, 64'sd10))."
        assert str(rule) == expected_rule
        assert nullable_translator.get_program().serialize() == (
            IMPORTS + "\n"
            + TABLES_WITH_NULL
            + "typedef Tv1 = Tv1{column1:Option<signed<64>>, column2:Option<string>, "
            "column3:Option<bool>, column4:Option<double>}\n"
            + "\n"
            + RELATIONS
            + "output relation Rv1[Tv1]\n"
            + "\n"
            + expected_rule + "\n"
        )

    def test_not_null_filter_program(self, translator):
        translator.translate_sql("create view v1 as select * from t1 where column1 = 10")
        expected_rule = f"Rv1[Tv1{{{T1_FIELDS}}}] :- Rt1[v0], (v0.column1 == 64'sd10)."
        assert translator.get_program().serialize() == (
            IMPORTS + "\n"
            + TABLES
            + "typedef Tv1 = Tv1{column1:signed<64>, column2:string, column3:bool, column4:double}\n"
            + "\n"
            + RELATIONS
            + "output relation Rv1[Tv1]\n"
            + "\n"
            + expected_rule + "\n"
        )

    def test_view_without_filter(self, translator):
        assert rule_text(translator, "create view v0 as select * from t2") == \
            "Rv0[Tv0{.column1 = v0.column1}] :- Rt2[v0]."

    def test_qualified_star(self, translator):
        assert rule_text(translator, "create view v as select t2.* from t1, t2") == \
            "Rv[Tv{.column1 = v1.column1}] :- Rt1[v0], Rt2[v1]."

    def test_view_is_registered(self, translator):
        translator.translate_sql("create view v1 as select column1 from t1")
        entry = translator.lookup("V1")
        assert entry.relation.direction == 'output'
        assert entry.record.name == "Tv1"


class TestProjection:
    """Test naming and typing of output columns."""

    def test_alias_and_expression_names(self, translator):
        assert rule_text(translator, "create view v as select column1 as a, column1 + 1 from t1") == \
            "Rv[Tv{.a = v0.column1, .col1 = (v0.column1 + 64'sd1)}] :- Rt1[v0]."

    def test_view_column_list(self, translator):
        assert rule_text(translator, "create view v3(a, b) as select column1, column2 from t1") == \
            "Rv3[Tv3{.a = v0.column1, .b = v0.column2}] :- Rt1[v0]."

    def test_expression_types_in_record(self, nullable_translator):
        nullable_translator.translate_sql(
            "create view v as select column1 * 2 as doubled, column2 || 'x' as s, column1 is null as missing from t1"
        )
        record = nullable_translator.lookup("v").record
        assert record.fields[0].type.nullable is True
        assert record.fields[0].type.canonical_name() == "signed<64>"
        assert record.fields[1].type.nullable is True
        assert record.fields[2].type.nullable is False
        assert "typedef Tv = Tv{doubled:Option<signed<64>>, s:Option<string>, missing:bool}" in \
            nullable_translator.get_program().serialize()

    def test_view_over_view(self, translator):
        translator.translate_sql("create view v1 as select column1 from t1 where column1 > 0")
        assert rule_text(translator, "create view v4 as select column1 from v1") == \
            "Rv4[Tv4{.column1 = v0.column1}] :- Rv1[v0]."

    def test_identity_cast(self, translator):
        assert rule_text(translator, "create view v as select cast(column1 as bigint) as c from t2") == \
            "Rv[Tv{.c = v0.column1}] :- Rt2[v0]."


class TestJoins:
    """Test inner and cross joins."""

    def test_inner_join(self, translator):
        sql = "create view v2 as select t1.column1, t2.column1 as c2 from t1 join t2 on t1.column1 = t2.column1"
        assert rule_text(translator, sql) == \
            "Rv2[Tv2{.column1 = v0.column1, .c2 = v1.column1}] :- Rt1[v0], Rt2[v1], (v0.column1 == v1.column1)."

    def test_join_with_where(self, translator):
        sql = (
            "create view v as select t2.column1 from t1 inner join t2 on t1.column1 = t2.column1 "
            "where t1.column3"
        )
        assert rule_text(translator, sql) == \
            "Rv[Tv{.column1 = v1.column1}] :- Rt1[v0], Rt2[v1], (v0.column1 == v1.column1), v0.column3."

    def test_self_join_with_aliases(self, translator):
        sql = "select a.column1 from t1 a, t1 b where a.column1 = b.column1"
        assert rule_text(translator, sql) == \
            "Rtmp0[Ttmp0{.column1 = v0.column1}] :- Rt1[v0], Rt1[v1], (v0.column1 == v1.column1)."

    def test_nullable_join_condition(self, nullable_translator):
        sql = "create view v as select t1.column2 from t1 join t2 on t1.column1 = t2.column1"
        assert rule_text(nullable_translator, sql) == \
            "Rv[Tv{.column2 = v0.column2}] :- Rt1[v0], Rt2[v1], unwrapBool(a_eq_NN(v0.column1, v1.column1))."


class TestPredicates:
    """Test WHERE translation, with and without NULLs."""

    @pytest.mark.parametrize("where,expected", [
        ("column1 <> 3", "(v0.column1 != 64'sd3)"),
        ("column1 >= 3 and column3", "((v0.column1 >= 64'sd3) and v0.column3)"),
        ("column1 < 3 or not column3", "((v0.column1 < 64'sd3) or (not v0.column3))"),
        ("column1 between 1 and 5", "((v0.column1 >= 64'sd1) and (v0.column1 <= 64'sd5))"),
        ("column1 in (1, 2)", "((v0.column1 == 64'sd1) or (v0.column1 == 64'sd2))"),
        ("column2 = 'a\"b'", "(v0.column2 == \"a\\\"b\")"),
        ("column4 > 1", "(v0.column4 > 64'f1.0)"),
        ("column4 <= 2.5", "(v0.column4 <= 64'f2.5)"),
        ("column1 % 2 = 0", "((v0.column1 % 64'sd2) == 64'sd0)"),
        ("column2 is null", "false"),
        ("column2 is not null", "true"),
        ("column1 >= -9223372036854775808", "(v0.column1 >= -64'sd9223372036854775808)"),
        ("true", "true"),
    ])
    def test_not_null_predicates(self, translator, where, expected):
        assert rule_text(translator, f"select column1 from t1 where {where}") == \
            f"Rtmp0[Ttmp0{{.column1 = v0.column1}}] :- Rt1[v0], {expected}."

    @pytest.mark.parametrize("where,expected", [
        ("column1 = 10", "unwrapBool(a_eq_NR(v0.column1, 64'sd10))"),
        ("10 < column1", "unwrapBool(a_lt_RN(64'sd10, v0.column1))"),
        ("column3", "unwrapBool(v0.column3)"),
        ("not column3", "unwrapBool(b_not_N(v0.column3))"),
        ("column1 = 1 and column3", "unwrapBool(b_and_NN(a_eq_NR(v0.column1, 64'sd1), v0.column3))"),
        ("column3 or true", "unwrapBool(b_or_NR(v0.column3, true))"),
        ("column1 + 1 > 2", "unwrapBool(a_gt_NR(a_plus_signed64_NR(v0.column1, 64'sd1), 64'sd2))"),
        ("column4 - 1 < 0", "unwrapBool(a_lt_NR(a_minus_double_NR(v0.column4, 64'f1.0), 64'f0.0))"),
        (
            "column1 in (1, 2)",
            "unwrapBool(b_or_NN(a_eq_NR(v0.column1, 64'sd1), a_eq_NR(v0.column1, 64'sd2)))",
        ),
        ("column2 is null", "is_null(v0.column2)"),
        ("column2 is not null", "(not is_null(v0.column2))"),
        ("column2 || 'x' = 'ax'", "unwrapBool(a_eq_NR(s_concat_NR(v0.column2, \"x\"), \"ax\"))"),
        ("column1 = null", "unwrapBool(None{})"),
        ("null", "unwrapBool(None{})"),
    ])
    def test_nullable_predicates(self, nullable_translator, where, expected):
        assert rule_text(nullable_translator, f"select column1 from t1 where {where}") == \
            f"Rtmp0[Ttmp0{{.column1 = v0.column1}}] :- Rt1[v0], {expected}."

    @pytest.mark.parametrize("negated", [
        exp.Is(this=exp.column("column2"), expression=exp.Null(), negate=True),
        exp.Not(this=exp.Is(this=exp.column("column2"), expression=exp.Null())),
    ])
    def test_is_not_null_shapes(self, translator, nullable_translator, negated):
        nullable = sqlglot.parse_one("select column1 from t1").where(negated.copy())
        assert str(nullable_translator.translate(nullable)).endswith(", (not is_null(v0.column2)).")
        not_null = sqlglot.parse_one("select column1 from t1").where(negated.copy())
        assert str(translator.translate(not_null)).endswith(", true.")

    def test_negative_literal(self, translator):
        assert "(v0.column1 > -64'sd5)" in rule_text(translator, "select column1 from t1 where column1 > -5")

    def test_negated_column(self, nullable_translator):
        assert "a_neg_signed64_N(v0.column1)" in \
            rule_text(nullable_translator, "select -column1 as n from t1")

    def test_temporal_literals(self, translator):
        rule = rule_text(translator, "select d from t3 where d = '2020-01-01' and dt > '2020-01-01 10:00:00'")
        assert "(v0.d == sql_date(\"2020-01-01\"))" in rule
        assert "(v0.dt > sql_datetime(\"2020-01-01 10:00:00\"))" in rule

    def test_typed_date_literal(self, translator):
        assert "(v0.d < sql_date(\"2021-06-30\"))" in \
            rule_text(translator, "select d from t3 where d < date '2021-06-30'")


class TestAnonymousViews:
    """Test naming of bare SELECT statements."""

    def test_sequential_names(self, translator):
        assert rule_text(translator, "select column1 from t2") == \
            "Rtmp0[Ttmp0{.column1 = v0.column1}] :- Rt2[v0]."
        assert rule_text(translator, "select column1 from t2 where column1 = 1").startswith("Rtmp1[Ttmp1{")
        text = translator.get_program().serialize()
        assert "output relation Rtmp0[Ttmp0]\noutput relation Rtmp1[Ttmp1]\n" in text

    def test_failed_select_does_not_consume_a_name(self, translator):
        with pytest.raises(UnknownColumnError):
            translator.translate_sql("select nope from t2")
        assert rule_text(translator, "select column1 from t2").startswith("Rtmp0[")

    def test_declared_tmp_names_are_skipped(self, translator):
        translator.translate_sql("create view tmp0 as select column1 from t2")
        translator.translate_sql("create view tmp2 as select column1 from t2")
        assert rule_text(translator, "select column1 from t2").startswith("Rtmp1[")
        assert rule_text(translator, "select column1 from t2").startswith("Rtmp3[")
        assert rule_text(translator, "select column1 from t2").startswith("Rtmp4[")

    def test_anonymous_view_can_be_queried(self, translator):
        translator.translate_sql("select column1 from t2")
        assert rule_text(translator, "create view v as select column1 from tmp0") == \
            "Rv[Tv{.column1 = v0.column1}] :- Rtmp0[v0]."


class TestViewErrors:
    """Test rejected queries; a failed statement leaves the session unchanged."""

    @pytest.mark.parametrize("sql,error", [
        ("select * from nope", UnknownRelationError),
        ("select nope from t1", UnknownColumnError),
        ("select x.column1 from t1", UnknownColumnError),
        ("select column1 from t1, t2", UnknownColumnError),
        ("select * from t1, t1", DuplicateDeclarationError),
        ("select column1, column1 from t1", DuplicateDeclarationError),
        ("select * from t1 join t2 on t1.column1 = t2.column1", DuplicateDeclarationError),
        ("create view t1 as select column1 from t2", DuplicateDeclarationError),
        ("create view v(a) as select column1, column2 from t1", TypeMismatchError),
        ("select column1 from t1 where column1 = 'abc'", TypeMismatchError),
        ("select column1 from t1 where column2", TypeMismatchError),
        ("select column1 from t1 where column1 and column3", TypeMismatchError),
        ("select column2 + 1 from t1", TypeMismatchError),
        ("select column4 % 2 from t1", TypeMismatchError),
        ("select column1 || 'x' from t1", TypeMismatchError),
        ("select column1 from t1 where column1 = 9223372036854775808", TypeMismatchError),
        ("select column1 from t1 where column1 = -9223372036854775809", TypeMismatchError),
        ("select d from t3 where d = '2020-13-45'", TypeMismatchError),
        ("select column1 from t1 where column1 = column4", TypeMismatchError),
    ])
    def test_rejected(self, translator, sql, error):
        before = translator.get_program().serialize()
        with pytest.raises(error):
            translator.translate_sql(sql)
        assert translator.get_program().serialize() == before
        assert len(translator.symbols) == 3

    @pytest.mark.parametrize("sql,feature", [
        ("select column1, count(*) from t1 group by column1", "GROUP_BY"),
        ("select count(*) from t1", "AGGREGATE"),
        ("select column1 from t1 order by column1", "ORDER_BY"),
        ("select column1 from t1 limit 3", "LIMIT"),
        ("select t1.column1 from t1 left join t2 on t1.column1 = t2.column1", "LEFT_JOIN"),
        ("select column1 from t1 where column1 in (select column1 from t2)", "SUBQUERY"),
        ("select column1 from t1 union select column1 from t2", "UNION"),
        ("select case when column3 then 1 else 0 end from t1", "CASE"),
        ("select column1 from t1 where column2 like 'a%'", "LIKE"),
        ("select 1", "NO_FROM"),
        ("select t1.column2 from t1 natural join t2", "NATURAL_JOIN"),
    ])
    def test_unsupported_features(self, translator, sql, feature):
        with pytest.raises(UnsupportedConstructError) as exc_info:
            translator.translate_sql(sql)
        assert feature in exc_info.value.features
        assert exc_info.value.hint
        assert len(translator.symbols) == 3

    def test_keyword_output_column(self, translator):
        with pytest.raises(UnsupportedConstructError) as exc_info:
            translator.translate_sql('create view v as select column1 as "match" from t1')
        assert exc_info.value.features == ["RESERVED_IDENTIFIER"]
        assert translator.lookup("v") is None

    def test_duplicate_view(self, translator):
        translator.translate_sql("create view v1 as select column1 from t1")
        with pytest.raises(DuplicateDeclarationError):
            translator.translate_sql("create view V1 as select column1 from t2")
        assert translator.get_program().serialize().count("output relation") == 1

    def test_error_carries_statement(self, translator):
        with pytest.raises(UnknownRelationError) as exc_info:
            translator.translate_sql("select * from missing")
        assert "missing" in exc_info.value.statement
        assert "(in: " in str(exc_info.value)
