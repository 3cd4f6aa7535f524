"""Unit tests for placeholder handling.

Tests the public API:
- standardize_placeholders(sql, placeholder) - Convert %s <-> ?
- cast_placeholders(sql, casts) - Wrap placeholders in CAST
- has_placeholders(sql) / count_placeholders(sql)
- has_returning(sql) - RETURNING outside literals
- quote_identifier(name) - Quote table/column names
"""
import pytest
from miniorm.sql import TokenType, cast_placeholders, count_placeholders
from miniorm.sql import has_placeholders, has_returning, quote_identifier
from miniorm.sql import standardize_placeholders, strip_trailing_comments, tokenize_sql


class TestStandardizePlaceholders:

    @pytest.mark.parametrize(('sql', 'placeholder', 'expected'), [
        ('SELECT * FROM t WHERE a = %s AND b = %s', '?',
         'SELECT * FROM t WHERE a = ? AND b = ?'),
        ('SELECT * FROM t WHERE a = ? AND b = ?', '%s',
         'SELECT * FROM t WHERE a = %s AND b = %s'),
        ("SELECT '?' AS q, name FROM t WHERE a = ?", '%s',
         "SELECT '?' AS q, name FROM t WHERE a = %s"),
        ("SELECT 'it''s %s' FROM t WHERE a = %s", '?',
         "SELECT 'it''s %s' FROM t WHERE a = ?"),
        ('SELECT 1', '?', 'SELECT 1'),
        ('SELECT ? -- why?\nFROM t', '%s', 'SELECT %s -- why?\nFROM t'),
        ('SELECT /* a = %s */ %s', '?', 'SELECT /* a = %s */ ?'),
    ], ids=['pg_to_sqlite', 'sqlite_to_pg', 'literal_question_mark',
            'escaped_quote_literal', 'no_placeholders', 'line_comment', 'block_comment'])
    def test_conversion(self, sql, placeholder, expected):
        assert standardize_placeholders(sql, placeholder) == expected

    def test_empty_sql(self):
        assert standardize_placeholders('', '?') == ''


class TestCastPlaceholders:

    def test_wraps_selected_positions(self):
        sql = 'INSERT INTO t (a, b, c) VALUES (?, ?, ?)'
        assert cast_placeholders(sql, {1: 'INTEGER'}) == \
            'INSERT INTO t (a, b, c) VALUES (?, CAST(? AS INTEGER), ?)'

    def test_skips_literals_when_counting(self):
        sql = "SELECT '?', %s, %s"
        assert cast_placeholders(sql, {0: 'INTEGER'}) == "SELECT '?', CAST(%s AS INTEGER), %s"

    def test_no_casts_returns_sql(self):
        sql = 'SELECT ?'
        assert cast_placeholders(sql, {}) is sql


class TestPlaceholderDetection:

    @pytest.mark.parametrize(('sql', 'expected'), [
        ('SELECT * FROM t WHERE a = %s', True),
        ('SELECT * FROM t WHERE a = ?', True),
        ('SELECT * FROM t WHERE a = %(a)s', True),
        ("SELECT '?' FROM t", False),
        ("SELECT * FROM t WHERE name LIKE 'a%%'", False),
        (None, False),
    ], ids=['percent_s', 'qmark', 'named', 'literal_only', 'escaped_percent', 'none'])
    def test_has_placeholders(self, sql, expected):
        assert has_placeholders(sql) is expected

    def test_count_ignores_literals(self):
        assert count_placeholders("SELECT ?, '?', ?") == 2

    @pytest.mark.parametrize(('sql', 'expected'), [
        ('SELECT 1 AS x -- really?\n', 0),
        ('SELECT 1 -- a = %s', 0),
        ('SELECT /* ?\n%s */ ?', 1),
        ("SELECT '-- ?', ?", 1),
        ("SELECT ? -- don't\nFROM t WHERE a = ?", 2),
    ], ids=['line_comment', 'line_comment_at_end', 'multiline_block_comment',
            'dashes_in_literal', 'quote_in_comment'])
    def test_count_ignores_comments(self, sql, expected):
        assert count_placeholders(sql) == expected

    def test_tokenize_preserves_text(self):
        sql = "SELECT 'a' || ? FROM t"
        tokens = tokenize_sql(sql)
        assert ''.join(t.text for t in tokens) == sql
        assert [t.type for t in tokens if t.type != TokenType.SQL_TEXT] == [
            TokenType.STRING_LITERAL, TokenType.POSITIONAL_PH]


@pytest.mark.parametrize(('sql', 'expected'), [
    ('INSERT INTO t (a) VALUES (?) RETURNING id', True),
    ('insert into t (a) values (?) returning id, a', True),
    ("INSERT INTO t (a) VALUES ('RETURNING')", False),
    ('INSERT INTO t (returning_flag) VALUES (?)', False),
    ('INSERT INTO t (a) VALUES (?) -- RETURNING id', False),
], ids=['upper', 'lower', 'in_literal', 'identifier_prefix', 'in_comment'])
def test_has_returning(sql, expected):
    assert has_returning(sql) is expected


@pytest.mark.parametrize(('sql', 'expected'), [
    ('SELECT 1 -- note', 'SELECT 1 '),
    ('SELECT 1 /* a */\n-- b\n', 'SELECT 1 '),
    ("SELECT '-- kept'", "SELECT '-- kept'"),
    ('SELECT /* inner */ 1', 'SELECT /* inner */ 1'),
], ids=['line', 'stacked', 'literal', 'inner'])
def test_strip_trailing_comments(sql, expected):
    assert strip_trailing_comments(sql) == expected


def test_quote_identifier():
    assert quote_identifier('name') == '"name"'
    assert quote_identifier('we"ird') == '"we""ird"'
