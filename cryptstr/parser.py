from dataclasses import dataclass, field
from typing import List, Optional, Union
from cryptstr.errors import ManifestError
from cryptstr.lexer import Lexer, TokenType, Token

@dataclass
class Entry:
    identifier: str
    value: Union[str, bytes]
    options: List[str]
    declared_length: Optional[int] = None
    line: int = 0

    @property
    def char_type(self):
        return bytes if isinstance(self.value, bytes) else str

@dataclass
class Group:
    name: str
    entries: List[Entry] = field(default_factory=list)
    line: int = 0

class Parser:
    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.current_token = self.lexer.get_next_token()

    def error(self, message: str, token: Token = None):
        token = token or self.current_token
        return ManifestError(message, token.line, token.column)

    def eat(self, token_type: TokenType) -> Token:
        token = self.current_token
        if token.type == token_type:
            self.current_token = self.lexer.get_next_token()
            return token
        raise self.error(f"Expected {token_type.value}, got {token.type.value}")

    def parse_length(self) -> int:
        self.eat(TokenType.LEFT_PAREN)
        token = self.eat(TokenType.IDENTIFIER)
        try:
            length = int(token.value, 0)
        except ValueError:
            raise self.error(f"Declared length must be a number, got {token.value}", token) from None
        if length < 0:
            raise self.error("Declared length must not be negative", token)
        self.eat(TokenType.RIGHT_PAREN)
        return length

    def parse_entry(self) -> Entry:
        start = self.eat(TokenType.LEFT_BRACKET)
        identifier = self.eat(TokenType.IDENTIFIER).value

        declared_length = None
        if self.current_token.type == TokenType.LEFT_PAREN:
            declared_length = self.parse_length()

        self.eat(TokenType.EQUALS)
        if self.current_token.type == TokenType.BYTES:
            value = self.eat(TokenType.BYTES).value
        else:
            value = self.eat(TokenType.STRING).value
        self.eat(TokenType.RIGHT_BRACKET)
        self.eat(TokenType.COLON)

        options = []
        options.append(self.eat(TokenType.IDENTIFIER).value)

        while self.current_token.type == TokenType.COMMA:
            self.eat(TokenType.COMMA)
            options.append(self.eat(TokenType.IDENTIFIER).value)

        self.eat(TokenType.SEMICOLON)

        return Entry(identifier, value, options, declared_length, start.line)

    def parse_group(self) -> Group:
        if self.current_token.type == TokenType.EOF:
            raise EOFError()

        start = self.eat(TokenType.GROUP)
        group_name = self.eat(TokenType.IDENTIFIER).value
        self.eat(TokenType.LEFT_BRACE)

        entries = []
        while self.current_token.type != TokenType.RIGHT_BRACE:
            if self.current_token.type == TokenType.LEFT_BRACKET:
                entries.append(self.parse_entry())
            elif self.current_token.type == TokenType.EOF:
                raise self.error("Unexpected end of file: missing closing brace")
            else:
                raise self.error(f"Unexpected {self.current_token.type.value} in group {group_name}")

        self.eat(TokenType.RIGHT_BRACE)
        return Group(group_name, entries, start.line)
