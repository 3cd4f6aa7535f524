"""Round trips through a real SQLite database."""
import datetime
import decimal

import miniorm as db
import pytest
from miniorm.exceptions import ConnectionFailure, TypeConversionError

from tests.fixtures.sqlite import create_sqlite_db


def test_integer_text_boolean_round_trip(sqlite_db):
    db.insert(sqlite_db, 'INSERT INTO person (name, age, active) VALUES (?, ?, ?)',
              'Ada', 36, True)
    row = db.select(sqlite_db, 'SELECT name, age, active FROM person',
                    types={'name': str, 'age': int, 'active': bool}).one()
    assert row.to_dict() == {'name': 'Ada', 'age': 36, 'active': True}


def test_override_is_case_insensitive(sqlite_db):
    db.insert(sqlite_db, 'INSERT INTO person (name, age) VALUES (?, ?)', 'Ada', 36)
    row = db.select(sqlite_db, 'SELECT name, age FROM person', types={'AGE': str}).one()
    assert row['age'] == '36'
    assert row['Name'] == 'Ada'


def test_wildcard_override(sqlite_db):
    db.insert(sqlite_db, 'INSERT INTO person (name, age) VALUES (?, ?)', 'Ada', 36)
    row = db.select(sqlite_db, 'SELECT id, age FROM person', types={None: str}).one()
    assert row.to_dict() == {'id': '1', 'age': '36'}


def test_dates_decimals_and_blobs(sqlite_db):
    born = datetime.date(1990, 5, 1)
    updated = datetime.datetime(2024, 1, 2, 3, 4, 5)
    db.insert(sqlite_db,
              'INSERT INTO person (name, balance, born, updated, photo) VALUES (?, ?, ?, ?, ?)',
              'Ada', decimal.Decimal('12.50'), born, updated, b'\x89PNG')
    row = db.select(sqlite_db, 'SELECT balance, born, updated, photo FROM person',
                    types={'balance': decimal.Decimal, 'born': datetime.date}).one()
    assert row['balance'] == decimal.Decimal('12.50')
    assert row['born'] == born
    assert row['updated'] == updated
    assert row['photo'] == b'\x89PNG'


def test_null_column_extracts_none(sqlite_db):
    db.insert(sqlite_db, 'INSERT INTO person (name) VALUES (?)', 'Ada')
    row = db.select(sqlite_db, 'SELECT age, active, born FROM person',
                    types={'age': int, 'active': bool, 'born': datetime.date}).one()
    assert row.to_dict() == {'age': None, 'active': None, 'born': None}


def test_null_parameter(sqlite_db):
    db.insert(sqlite_db, 'INSERT INTO person (name, age) VALUES (?, ?)', 'Ada', None)
    assert db.select(sqlite_db, 'SELECT count(*) FROM person WHERE age IS NULL').scalar() == 1


def test_explicit_null_parameter(sqlite_explicit_null_db):
    db.insert(sqlite_explicit_null_db, 'INSERT INTO person (name, age) VALUES (?, ?)', 'Ada', None)
    result = db.select(sqlite_explicit_null_db, 'SELECT age FROM person WHERE name = ?', 'Ada')
    assert result.scalar() is None


def test_placeholder_styles_are_interchangeable(sqlite_db):
    db.insert(sqlite_db, 'INSERT INTO person (name, age) VALUES (%s, %s)', 'Ada', 36)
    assert db.select(sqlite_db, 'SELECT age FROM person WHERE name = ?', 'Ada').scalar() == 36


def test_empty_result(sqlite_db):
    result = db.select(sqlite_db, 'SELECT * FROM person')
    assert result.first() is None
    assert result.list() == []


def test_to_dataframe(sqlite_db):
    db.execute_many(sqlite_db, 'INSERT INTO person (name, age) VALUES (?, ?)',
                    [('Ada', 36), ('Grace', 45)])
    df = db.select(sqlite_db, 'SELECT name, age FROM person ORDER BY id').to_dataframe()
    assert list(df.columns) == ['name', 'age']
    assert df['age'].tolist() == [36, 45]


def test_resultset_map(sqlite_db):
    db.execute_many(sqlite_db, 'INSERT INTO person (name) VALUES (?)', [('Ada',), ('Grace',)])
    names = db.select(sqlite_db, 'SELECT name FROM person ORDER BY id').map(lambda row: row['name'])
    assert names.list() == ['Ada', 'Grace']


def test_conversion_failure_returns_connection(tmp_path):
    cn = create_sqlite_db(tmp_path / 'pooled.db', use_pool=True)
    db.insert(cn, 'INSERT INTO person (name) VALUES (?)', 'not a number')
    with pytest.raises(TypeConversionError):
        db.select(cn, 'SELECT name FROM person', types={'name': int})
    assert cn.engine.pool.checkedout() == 0
    assert db.select(cn, 'SELECT count(*) FROM person').scalar() == 1


def test_unreachable_database_is_connection_failure(tmp_path):
    cn = db.connect({'drivername': 'sqlite', 'database': str(tmp_path / 'missing' / 'x.db')})
    with pytest.raises(ConnectionFailure):
        db.select(cn, 'SELECT 1')


def test_bytes_override_on_integer_column_fails(sqlite_db):
    db.insert(sqlite_db, 'INSERT INTO person (name, age) VALUES (?, ?)', 'Ada', 5)
    with pytest.raises(TypeConversionError):
        db.select(sqlite_db, 'SELECT age FROM person', types={'age': bytes})


def test_comment_with_question_mark_is_not_a_placeholder(sqlite_db):
    assert db.select(sqlite_db, 'SELECT 1 AS x -- really?\n').scalar() == 1
    assert db.select(sqlite_db, 'SELECT /* why? */ ? AS x', 2).scalar() == 2
