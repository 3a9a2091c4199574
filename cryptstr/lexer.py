import ast
from enum import Enum

from cryptstr.errors import ManifestError


class TokenType(Enum):
    GROUP = "GROUP"
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    BYTES = "BYTES"
    EQUALS = "="
    COLON = ":"
    COMMA = ","
    SEMICOLON = ";"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    EOF = "EOF"


SINGLE_CHAR_TOKENS = {
    '=': TokenType.EQUALS,
    ':': TokenType.COLON,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
    '[': TokenType.LEFT_BRACKET,
    ']': TokenType.RIGHT_BRACKET,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
}

QUOTES = '"\''


class Token:
    def __init__(self, type: TokenType, value, line: int, column: int):
        self.type = type
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self):
        return f"Token({self.type.name}, line={self.line}, column={self.column})"


class Lexer:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.current_char = self.text[0] if text else None
        self.line = 1
        self.column = 1

    def advance(self):
        self.pos += 1
        if self.current_char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        if self.pos > len(self.text) - 1:
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def peek(self):
        pos = self.pos + 1
        return self.text[pos] if pos < len(self.text) else None

    def skip_whitespace(self):
        while self.current_char and self.current_char.isspace():
            self.advance()

    def skip_comment(self):
        while self.current_char and self.current_char != '\n':
            self.advance()

    def get_identifier(self):
        result = ''
        valid_chars = '_.-'
        while self.current_char and (self.current_char.isalnum() or self.current_char in valid_chars):
            result += self.current_char
            self.advance()
        return result

    def get_literal(self, line: int, column: int) -> Token:
        """Read a quoted string or bytes literal using Python literal syntax."""
        start = self.pos
        is_bytes = self.current_char in 'bB'
        if is_bytes:
            self.advance()
        quote = self.current_char
        self.advance()
        while self.current_char != quote:
            if self.current_char is None or self.current_char == '\n':
                raise ManifestError("Unterminated literal", line, column)
            if self.current_char == '\\':
                self.advance()
                if self.current_char is None:
                    raise ManifestError("Unterminated literal", line, column)
            self.advance()
        self.advance()
        raw = self.text[start:self.pos]
        try:
            value = ast.literal_eval(raw)
        except (ValueError, SyntaxError) as exc:
            raise ManifestError(f"Invalid literal {raw}: {exc}", line, column) from exc
        return Token(TokenType.BYTES if is_bytes else TokenType.STRING, value, line, column)

    def get_next_token(self) -> Token:
        while self.current_char:
            if self.current_char.isspace():
                self.skip_whitespace()
                continue

            if self.current_char == '#':
                self.skip_comment()
                continue

            line, column = self.line, self.column

            if self.current_char in QUOTES or (self.current_char in 'bB' and self.peek() in tuple(QUOTES)):
                return self.get_literal(line, column)

            if self.current_char.isalnum() or self.current_char in '_.-':
                value = self.get_identifier()
                if value.lower() == 'group':
                    return Token(TokenType.GROUP, value, line, column)
                return Token(TokenType.IDENTIFIER, value, line, column)

            token_type = SINGLE_CHAR_TOKENS.get(self.current_char)
            if token_type is not None:
                char = self.current_char
                self.advance()
                return Token(token_type, char, line, column)

            raise ManifestError(f"Invalid character: {self.current_char}", line, column)

        return Token(TokenType.EOF, '', self.line, self.column)
