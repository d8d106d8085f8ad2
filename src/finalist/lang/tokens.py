"""Tokenizer: lexes Java-like source into a flat token list."""

from __future__ import annotations


# Token type constants
TK_INT = "INT"
TK_FLOAT = "FLOAT"
TK_STRING = "STRING"
TK_CHAR = "CHAR"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "abstract",
    "boolean",
    "break",
    "byte",
    "case",
    "catch",
    "char",
    "class",
    "continue",
    "default",
    "do",
    "double",
    "else",
    "extends",
    "false",
    "final",
    "finally",
    "float",
    "for",
    "if",
    "implements",
    "instanceof",
    "int",
    "long",
    "native",
    "new",
    "null",
    "private",
    "protected",
    "public",
    "return",
    "short",
    "static",
    "strictfp",
    "super",
    "switch",
    "synchronized",
    "this",
    "throw",
    "throws",
    "transient",
    "true",
    "try",
    "void",
    "volatile",
    "while",
}

# Multi-character operators, sorted by length descending for greedy matching.
# '>' is always lexed alone so that nested generics close cleanly; the parser
# glues adjacent '>' tokens back into shift operators.
MULTI_OPS: list[str] = [
    "<<=",
    "...",
    "->",
    "::",
    "++",
    "--",
    "&&",
    "||",
    "<=",
    ">=",
    "==",
    "!=",
    "<<",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
]

SINGLE_OPS: set[str] = {
    "+",
    "-",
    "*",
    "/",
    "%",
    "&",
    "|",
    "^",
    "~",
    "!",
    "<",
    ">",
    "=",
    "(",
    ")",
    "[",
    "]",
    "{",
    "}",
    ",",
    ";",
    ":",
    ".",
    "?",
    "@",
}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "0": "\0",
}


class TokenizeError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_hex(c: str) -> bool:
    return (c >= "0" and c <= "9") or (c >= "a" and c <= "f") or (c >= "A" and c <= "F")


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_" or c == "$"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def _process_escape(src: str, pos: int, line: int, col: int) -> tuple[str, int]:
    """Process escape after backslash. Returns (resolved_char, new_pos)."""
    if pos >= len(src):
        raise TokenizeError("unexpected end of literal in escape", line, col)
    c = src[pos]
    if c in ESCAPE_MAP:
        return ESCAPE_MAP[c], pos + 1
    if c == "u":
        end = pos + 1
        while end < len(src) and src[end] == "u":
            end += 1
        digits = src[end : end + 4]
        if len(digits) != 4 or not all(_is_hex(d) for d in digits):
            raise TokenizeError("invalid unicode escape", line, col)
        return chr(int(digits, 16)), end + 4
    raise TokenizeError("invalid escape: \\" + c, line, col)


def tokenize(source: str) -> list[Token]:
    """Tokenize source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r" or c == "\f":
            pos += 1
            col += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        # Block comment: /* ... */
        if c == "/" and pos + 1 < length and source[pos + 1] == "*":
            start_line = line
            start_col = col
            pos += 2
            col += 2
            while pos < length and not (
                source[pos] == "*" and pos + 1 < length and source[pos + 1] == "/"
            ):
                if source[pos] == "\n":
                    line += 1
                    col = 1
                else:
                    col += 1
                pos += 1
            if pos >= length:
                raise TokenizeError("unterminated block comment", start_line, start_col)
            pos += 2
            col += 2
            continue

        start_pos = pos
        start_line = line
        start_col = col

        # Number: hex int, int, or float (with Java suffixes)
        if _is_digit(c) or (c == "." and pos + 1 < length and _is_digit(source[pos + 1])):
            if (
                c == "0"
                and pos + 1 < length
                and (source[pos + 1] == "x" or source[pos + 1] == "X")
            ):
                pos += 2
                col += 2
                hex_start = pos
                while pos < length and (_is_hex(source[pos]) or source[pos] == "_"):
                    pos += 1
                    col += 1
                if pos == hex_start:
                    raise TokenizeError("hex literal needs digits", start_line, start_col)
                if pos < length and (source[pos] == "L" or source[pos] == "l"):
                    pos += 1
                    col += 1
                tokens.append(Token(TK_INT, source[start_pos:pos], start_line, start_col))
                continue

            is_float = False
            while pos < length and (_is_digit(source[pos]) or source[pos] == "_"):
                pos += 1
                col += 1
            if pos < length and source[pos] == ".":
                if pos + 1 < length and _is_digit(source[pos + 1]):
                    is_float = True
                    pos += 1
                    col += 1
                    while pos < length and (_is_digit(source[pos]) or source[pos] == "_"):
                        pos += 1
                        col += 1
                elif pos + 1 >= length or not _is_alpha(source[pos + 1]):
                    # "1." is a float; "1.foo" is not our business
                    is_float = True
                    pos += 1
                    col += 1
            if pos < length and (source[pos] == "e" or source[pos] == "E"):
                is_float = True
                pos += 1
                col += 1
                if pos < length and (source[pos] == "+" or source[pos] == "-"):
                    pos += 1
                    col += 1
                if pos >= length or not _is_digit(source[pos]):
                    raise TokenizeError("invalid float exponent", start_line, start_col)
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            if pos < length and source[pos] in "fFdD":
                is_float = True
                pos += 1
                col += 1
            elif not is_float and pos < length and (source[pos] == "L" or source[pos] == "l"):
                pos += 1
                col += 1
            raw = source[start_pos:pos]
            if is_float:
                tokens.append(Token(TK_FLOAT, raw, start_line, start_col))
            else:
                tokens.append(Token(TK_INT, raw, start_line, start_col))
            continue

        # String literal: "..."
        if c == '"':
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    raise TokenizeError(
                        "unterminated string literal", start_line, start_col
                    )
                if source[pos] == "\\":
                    pos += 1
                    col += 1
                    before = pos
                    ch, pos = _process_escape(source, pos, start_line, col)
                    col += pos - before
                    chars.append(ch)
                else:
                    chars.append(source[pos])
                    pos += 1
                    col += 1
            if pos >= length:
                raise TokenizeError(
                    "unterminated string literal", start_line, start_col
                )
            pos += 1  # skip closing "
            col += 1
            tokens.append(Token(TK_STRING, "".join(chars), start_line, start_col))
            continue

        # Char literal: '...'
        if c == "'":
            pos += 1
            col += 1
            if pos >= length or source[pos] == "\n":
                raise TokenizeError("unterminated char literal", start_line, start_col)
            if source[pos] == "\\":
                pos += 1
                col += 1
                before = pos
                char_value, pos = _process_escape(source, pos, start_line, col)
                col += pos - before
            elif source[pos] == "'":
                raise TokenizeError("empty char literal", start_line, start_col)
            else:
                char_value = source[pos]
                pos += 1
                col += 1
            if pos >= length or source[pos] != "'":
                raise TokenizeError("unterminated char literal", start_line, start_col)
            pos += 1  # skip closing '
            col += 1
            tokens.append(Token(TK_CHAR, char_value, start_line, start_col))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
                col += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, start_line, start_col))
            else:
                tokens.append(Token(TK_IDENT, word, start_line, start_col))
            continue

        # Multi-character operators
        matched = False
        for op in MULTI_OPS:
            op_len = len(op)
            if pos + op_len <= length and source[pos : pos + op_len] == op:
                tokens.append(Token(TK_OP, op, start_line, start_col))
                pos += op_len
                col += op_len
                matched = True
                break
        if matched:
            continue

        # Single-character operators
        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        raise TokenizeError("unexpected character: " + repr(c), line, col)

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
