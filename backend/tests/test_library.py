"""Tests for the generated sqlop library."""

import re
from sql_ddlog import Translator, generate_sql_library, write_library
from sql_ddlog.library import LIBRARY_NAME, library_function_names


class TestLibraryContent:
    """Test the functions the library declares."""

    def test_unwrap_bool(self):
        text = generate_sql_library().serialize()
        assert "function unwrapBool(b: Option<bool>): bool = match (b) { Some{true} -> true, _ -> false }" in text

    def test_imports_only_time(self):
        lib = generate_sql_library()
        assert lib.imports == ['time']
        assert lib.records == []
        assert lib.relations == []
        assert lib.rules == []

    def test_comparison_shapes(self):
        names = library_function_names()
        for op in ('eq', 'neq', 'lt', 'lte', 'gt', 'gte'):
            for shape in ('NN', 'NR', 'RN'):
                assert f"a_{op}_{shape}" in names

    def test_nullable_comparison_body(self):
        text = generate_sql_library().serialize()
        assert (
            "function a_eq_NR(left: Option<'T>, right: 'T): Option<bool> = "
            "match (left) { Some{l} -> Some{l == right}, None -> None }"
        ) in text

    def test_arithmetic(self):
        names = library_function_names()
        assert "a_plus_signed64_NN" in names
        assert "a_mod_signed64_RN" in names
        assert "a_div_double_NR" in names
        assert "a_mod_double_NN" not in names
        assert "a_neg_double_N" in names

    def test_temporal_constructors(self):
        text = generate_sql_library().serialize()
        assert "function sql_date(s: string): Date = result_unwrap_or_default(string2date(s))" in text
        assert "sql_time" in library_function_names()
        assert "sql_datetime" in library_function_names()

    def test_names_are_unique(self):
        functions = generate_sql_library().functions
        assert len({f.name for f in functions}) == len(functions)


class TestLibraryCache:
    """The library is built once and handed out as independent copies."""

    def test_identical_content(self):
        assert generate_sql_library().serialize() == generate_sql_library().serialize()

    def test_copies_are_independent(self):
        first = generate_sql_library()
        first.functions.clear()
        assert len(generate_sql_library().functions) == len(library_function_names())

    def test_translator_exposes_library(self):
        assert Translator.generate_library().serialize() == generate_sql_library().serialize()

    def test_write_library(self, tmp_path):
        path = write_library(tmp_path)
        assert path.name == f"{LIBRARY_NAME}.dl"
        assert path.read_text() == generate_sql_library().serialize()


def test_generated_calls_resolve(nullable_translator):
    """Every function called by a nullable translation is declared by the library."""
    statements = [
        "select column1 from t1 where column1 = 1 and not column3",
        "select column1 * 2 + 1 as a, -column4 as b, column2 || 'x' as c from t1",
        "select column1 from t1 where column1 in (1, 2) or column2 is null",
        "select column1 from t1 where column4 / 2 >= 1.5 and column1 % 3 <> 0",
        "select d from t3 where d = '2020-01-01'",
    ]
    called = set()
    for sql in statements:
        called.update(re.findall(r"([A-Za-z_][A-Za-z0-9_]*)\(", str(nullable_translator.translate_sql(sql))))
    assert called
    assert called <= library_function_names()
