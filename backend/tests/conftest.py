"""Shared fixtures for the SQL to DDlog translator tests."""

import pytest
from sql_ddlog import Translator

IMPORTS = (
    "import fp\n"
    "import time\n"
    "import sql\n"
    "import sqlop\n"
)

TABLES = (
    "typedef Tt1 = Tt1{column1:signed<64>, column2:string, column3:bool, column4:double}\n"
    "typedef Tt2 = Tt2{column1:signed<64>}\n"
    "typedef Tt3 = Tt3{d:Date, t:Time, dt:DateTime}\n"
)

TABLES_WITH_NULL = (
    "typedef Tt1 = Tt1{column1:Option<signed<64>>, column2:Option<string>, column3:Option<bool>, column4:Option<double>}\n"
    "typedef Tt2 = Tt2{column1:Option<signed<64>>}\n"
    "typedef Tt3 = Tt3{d:Option<Date>, t:Option<Time>, dt:Option<DateTime>}\n"
)

RELATIONS = (
    "input relation Rt1[Tt1]\n"
    "input relation Rt2[Tt2]\n"
    "input relation Rt3[Tt3]\n"
)


def create_statements(with_nulls: bool) -> list:
    nulls = "" if with_nulls else " not null"
    return [
        f"create table t1(column1 integer{nulls},\n"
        f" column2 varchar(36){nulls},\n"
        f" column3 boolean{nulls},\n"
        f" column4 real{nulls})",
        f"create table t2(column1 integer{nulls})",
        f"create table t3(d date{nulls},\n"
        f" t time{nulls},\n"
        f" dt datetime{nulls})",
    ]


def create_input_tables(with_nulls: bool) -> Translator:
    translator = Translator()
    for statement in create_statements(with_nulls):
        translator.translate_sql(statement)
    return translator


@pytest.fixture
def translator():
    """Session with t1, t2, t3 declared NOT NULL."""
    return create_input_tables(with_nulls=False)


@pytest.fixture
def nullable_translator():
    """Session with t1, t2, t3 declared without constraints."""
    return create_input_tables(with_nulls=True)
