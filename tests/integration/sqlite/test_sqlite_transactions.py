"""Transactions against a file-backed SQLite database."""
import miniorm as db
import pytest
from miniorm.exceptions import DatabaseError

from tests.fixtures.sqlite import create_sqlite_db


def count_people(cn):
    return db.select(cn, 'SELECT count(*) FROM person').scalar()


def test_commit_then_close(sqlite_db):
    tx = db.transaction(sqlite_db)
    try:
        db.insert(tx, 'INSERT INTO person (name) VALUES (?)', 'Ada')
        db.insert(tx, 'INSERT INTO person (name) VALUES (?)', 'Grace')
        tx.commit()
    finally:
        tx.close()
    assert count_people(sqlite_db) == 2


def test_rollback(sqlite_db):
    tx = db.transaction(sqlite_db)
    try:
        db.insert(tx, 'INSERT INTO person (name) VALUES (?)', 'Ada')
        assert count_people(tx) == 1
        tx.rollback()
    finally:
        tx.close()
    assert count_people(sqlite_db) == 0


def test_uncommitted_changes_not_visible_outside(sqlite_db):
    tx = db.transaction(sqlite_db)
    try:
        db.insert(tx, 'INSERT INTO person (name) VALUES (?)', 'Ada')
        assert count_people(sqlite_db) == 0
        tx.commit()
        assert count_people(sqlite_db) == 1
    finally:
        tx.close()


def test_context_manager_commits(sqlite_db):
    with db.transaction(sqlite_db) as tx:
        db.execute(tx, 'INSERT INTO person (name, age) VALUES (?, ?)', 'Ada', 36)
        db.execute(tx, 'UPDATE person SET age = ? WHERE name = ?', 37, 'Ada')
    assert tx.closed
    assert db.select(sqlite_db, 'SELECT age FROM person').scalar() == 37


def test_context_manager_rolls_back_on_error(sqlite_db):
    with pytest.raises(ValueError), db.transaction(sqlite_db) as tx:
        db.execute(tx, 'INSERT INTO person (name) VALUES (?)', 'Ada')
        raise ValueError('abort')
    assert count_people(sqlite_db) == 0


def test_failed_batch_rolled_back(sqlite_db):
    with pytest.raises(DatabaseError), db.transaction(sqlite_db) as tx:
        db.execute_many(tx, 'INSERT INTO person (name) VALUES (?)', [('a',), (None,)])
    assert count_people(sqlite_db) == 0


def test_keys_inside_transaction(sqlite_db):
    with db.transaction(sqlite_db) as tx:
        keys = db.execute_many(tx, 'INSERT INTO person (name) VALUES (?)',
                               [('a',), ('b',), ('c',)], generated_column='id')
    assert keys == [1, 2, 3]
    assert count_people(sqlite_db) == 3


def test_closed_transaction_rejects_statements(sqlite_db):
    tx = db.transaction(sqlite_db)
    tx.close()
    with pytest.raises(DatabaseError):
        db.execute(tx, 'INSERT INTO person (name) VALUES (?)', 'Ada')
    with pytest.raises(DatabaseError):
        tx.commit()


def test_pooled_connection_back_in_autocommit_after_transaction(tmp_path):
    cn = create_sqlite_db(tmp_path / 'pooled.db', use_pool=True)
    with db.transaction(cn) as tx:
        db.execute(tx, 'INSERT INTO person (name) VALUES (?)', 'Ada')
    db.execute(cn, 'INSERT INTO person (name) VALUES (?)', 'Grace')
    assert cn.engine.pool.checkedout() == 0
    assert count_people(cn) == 2
