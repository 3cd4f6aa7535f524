"""
SQL placeholder handling.

Statements are tokenized once so that placeholders inside string literals and
comments are never touched:

- `standardize_placeholders()` - Convert %s <-> ? for the dialect
- `cast_placeholders()` - Wrap selected positional placeholders in CAST(...)
- `has_placeholders()` - Check if SQL has placeholders
- `has_returning()` - Check for a RETURNING clause outside literals
- `strip_trailing_comments()` - Remove comments ending a statement
- `quote_identifier()` - Quote table/column names
"""
import re
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types identified during SQL parsing."""
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    COMMENT = auto()
    POSITIONAL_PH = auto()      # %s or ?
    NAMED_PH = auto()           # %(name)s


@dataclass(slots=True)
class Token:
    """Token from SQL parsing."""
    type: TokenType
    text: str
    start: int
    end: int


_TOKENIZE = re.compile(r"""
    (?P<comment>--[^\n]*|/\*.*?\*/)
    |(?P<string>'(?:[^']|'')*'|"(?:[^"]|"")*")
    |(?P<escaped>%%)
    |(?P<named>%\((?P<pname>[^)]+)\)s)
    |(?P<percent_s>%s)
    |(?P<qmark>\?)
""", re.VERBOSE | re.DOTALL)

_HAS_PLACEHOLDER = re.compile(r'%s|\?|%\([^)]+\)s')

_RETURNING = re.compile(r'\bRETURNING\b', re.IGNORECASE)


def tokenize_sql(sql: str) -> list[Token]:
    """Parse SQL into tokens in a single pass.

    Parameters
        sql: SQL query string

    Returns
        List of tokens preserving all SQL text
    """
    tokens = []
    last_end = 0

    for match in _TOKENIZE.finditer(sql):
        start, end = match.span()

        if start > last_end:
            tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:start], last_end, start))

        if match.group('comment'):
            ttype = TokenType.COMMENT
        elif match.group('string'):
            ttype = TokenType.STRING_LITERAL
        elif match.group('escaped'):
            ttype = TokenType.SQL_TEXT
        elif match.group('named'):
            ttype = TokenType.NAMED_PH
        else:
            ttype = TokenType.POSITIONAL_PH

        tokens.append(Token(ttype, match.group(0), start, end))
        last_end = end

    if last_end < len(sql):
        tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:], last_end, len(sql)))

    return tokens


def has_placeholders(sql: str | None) -> bool:
    """Check if SQL has any parameter placeholders.
    """
    if not sql:
        return False

    if '%' not in sql and '?' not in sql:
        return False

    return any(t.type in {TokenType.POSITIONAL_PH, TokenType.NAMED_PH}
               for t in tokenize_sql(sql))


def count_placeholders(sql: str) -> int:
    """Number of positional placeholders outside string literals and comments.
    """
    return sum(1 for t in tokenize_sql(sql) if t.type == TokenType.POSITIONAL_PH)


def standardize_placeholders(sql: str, placeholder: str) -> str:
    """Rewrite every positional placeholder to `placeholder` (%s or ?).

    Parameters
        sql: SQL query string
        placeholder: The dialect's positional placeholder

    Returns
        SQL with standardized placeholders
    """
    if not sql or not _HAS_PLACEHOLDER.search(sql):
        return sql

    result = []
    for token in tokenize_sql(sql):
        if token.type == TokenType.POSITIONAL_PH:
            result.append(placeholder)
        else:
            result.append(token.text)
    return ''.join(result)


def cast_placeholders(sql: str, casts: dict[int, str]) -> str:
    """Wrap positional placeholders in ``CAST(<ph> AS <type>)``.

    Parameters
        sql: SQL with positional placeholders
        casts: 0-based placeholder index -> SQL type name

    Returns
        SQL with the selected placeholders cast
    """
    if not casts:
        return sql

    result = []
    index = 0
    for token in tokenize_sql(sql):
        if token.type == TokenType.POSITIONAL_PH:
            sql_type = casts.get(index)
            if sql_type is None:
                result.append(token.text)
            else:
                result.append(f'CAST({token.text} AS {sql_type})')
            index += 1
        else:
            result.append(token.text)
    return ''.join(result)


def strip_trailing_comments(sql: str) -> str:
    """Drop comments and whitespace after the last statement text.
    """
    tokens = tokenize_sql(sql)
    while tokens and (tokens[-1].type == TokenType.COMMENT
                      or (tokens[-1].type == TokenType.SQL_TEXT and not tokens[-1].text.strip())):
        tokens.pop()
    return ''.join(t.text for t in tokens)


def has_returning(sql: str) -> bool:
    """Check for a RETURNING clause outside string literals.
    """
    return any(t.type == TokenType.SQL_TEXT and _RETURNING.search(t.text)
               for t in tokenize_sql(sql))


def quote_identifier(identifier: str) -> str:
    """Safely quote a database identifier.
    """
    return '"' + identifier.replace('"', '""') + '"'
