from .errors import (
    CryptStrError,
    SizeMismatch,
    OutOfRange,
    DuplicationError,
    ViewReleasedError,
    ManifestError,
)
from .memory import memset, memzero, ZeroingAllocator
from .ctstr import FixedString, make_fixed_string
from .transform import Transform, XorTransform, KeystreamTransform, apply_transform
from .secure_view import SecureView, ViewState
from .obfuscated import ObfuscatedString, crypt
from .parser import Parser, Entry, Group
from .lexer import Lexer, TokenType, Token
from .formatter import ManifestFormatter, ModuleFormatter
from .validators import KeyValidator, EntryValidator
from .manifest import LiteralManifest

__all__ = [
    'CryptStrError',
    'SizeMismatch',
    'OutOfRange',
    'DuplicationError',
    'ViewReleasedError',
    'ManifestError',
    'memset',
    'memzero',
    'ZeroingAllocator',
    'FixedString',
    'make_fixed_string',
    'Transform',
    'XorTransform',
    'KeystreamTransform',
    'apply_transform',
    'SecureView',
    'ViewState',
    'ObfuscatedString',
    'crypt',
    'Parser',
    'Entry',
    'Group',
    'Lexer',
    'TokenType',
    'Token',
    'ManifestFormatter',
    'ModuleFormatter',
    'KeyValidator',
    'EntryValidator',
    'LiteralManifest',
]
