"""Lexical primitives of the query language.

The grammar in :mod:`scanql.sql.grammar` never tokenizes the text upfront,
it scans it one character at a time. This module collects the character
classes and the fixed words the grammar has to recognise, so that the
grammar rules can focus on structure.

>>> is_ident_start("_"), is_ident_char("9"), is_ident_start("9")
(True, True, False)
>>> join_string_segments('"foo""bar"')
'foobar'
"""

END_OF_INPUT = "\x00"
"""Sentinel appended to the scanned text to mark its end."""

SPACES = (" ", "\t", "\r\n", "\n", "\r")

KEYWORDS = ("select", "group by", "filters", "order by", "desc", "limit")
"""Words that can never be used as identifiers.

A keyword only counts as such when it's not immediately
followed by another identifier character, so ``descending``
is a perfectly valid column name.
"""

OPERATORS = ("=", "!=", "<=", ">=", "<", ">", "matches")
"""Filter operators, in the order the grammar tries them."""

SIMPLE_ESCAPES = ("'", '"', "?", "\\", "a", "b", "f", "n", "r", "t", "v")

QUOTE = '"'
ESCAPE = "\\"


def is_letter(c: str) -> bool:
    """ASCII letters only, identifiers are not unicode aware."""
    return "a" <= c <= "z" or "A" <= c <= "Z"


def is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def is_octal_digit(c: str) -> bool:
    return "0" <= c <= "7"


def is_hex_digit(c: str) -> bool:
    return is_digit(c) or "a" <= c <= "f" or "A" <= c <= "F"


def is_sign(c: str) -> bool:
    return c in ("-", "+")


def is_ident_start(c: str) -> bool:
    """Check if ``c`` can be the first character of an identifier."""
    return is_letter(c) or c == "_"


def is_ident_char(c: str) -> bool:
    """Check if ``c`` can be part of an identifier after the first character."""
    return is_letter(c) or is_digit(c) or c == "_"


def join_string_segments(text: str) -> str:
    """Turn the text of a quoted string literal into its value.

    A string literal can be made of multiple adjacent quoted
    segments, like ``"foo""bar"``, which are joined together.
    Escape sequences are preserved as they are written,
    only the quotes delimiting the segments are removed.

    The text is expected to have been already recognised by the grammar,
    so any unescaped quote is a segment delimiter.
    """
    chars = []
    escaped = False
    for c in text:
        if escaped:
            chars.append(c)
            escaped = False
        elif c == ESCAPE:
            chars.append(c)
            escaped = True
        elif c != QUOTE:
            chars.append(c)
    return "".join(chars)
