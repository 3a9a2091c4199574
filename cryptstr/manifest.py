import hashlib
import logging
import marshal
import os
import platform
import secrets
from typing import Callable, List, Optional, Tuple

from filelock import FileLock

from cryptstr import config
from cryptstr.errors import CryptStrError, ManifestError
from cryptstr.formatter import ManifestFormatter, ModuleFormatter
from cryptstr.lexer import Lexer
from cryptstr.obfuscated import ObfuscatedString, crypt
from cryptstr.parser import Entry, Group, Parser
from cryptstr.transform import KEYSTREAM_KEY_SIZE, transform_from_options
from cryptstr.validators import EntryValidator

logger = logging.getLogger(__name__)

BuiltGroup = Tuple[str, List[Tuple[str, ObfuscatedString]]]


def _random_keystream_key() -> bytes:
    return secrets.token_bytes(KEYSTREAM_KEY_SIZE)


class LiteralManifest:
    """
    The set of literals to embed, grouped by namespace.

    A manifest is loaded from a ``.cryptstr`` file, validated, obfuscated
    with build() and written out as a Python module with save_module().
    """

    def __init__(self, key_factory: Callable[[], bytes] = None):
        self.groups: List[Group] = []
        self.formatter = ManifestFormatter()
        self.module_formatter = ModuleFormatter()
        self.validator = EntryValidator()
        self._key_factory = key_factory or _random_keystream_key
        self._loaded_file: Optional[str] = None

    def _secure_file_permissions(self, filepath: str):
        if platform.system() != "Windows":
            os.chmod(filepath, 0o600)

    def _check_suffix(self, filepath: str):
        if not str(filepath).endswith(config.MANIFEST_SUFFIX):
            raise ValueError(f"Invalid file format. Only {config.MANIFEST_SUFFIX} files are supported")

    # Loading

    def load_file(self, filepath: str):
        self._check_suffix(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
        self.load_text(text)
        self._loaded_file = str(filepath)

    def load_text(self, text: str):
        parser = Parser(Lexer(text))
        groups = []
        while True:
            try:
                groups.append(parser.parse_group())
            except EOFError:
                break
        for group in groups:
            self.add_group(group)
        logger.debug("loaded %d groups", len(groups))

    # Validation

    def validate_group_name(self, group: Group):
        message = self.validator.check_identifier(group.name)
        if message is not None:
            raise ManifestError(message, group.line)

    def validate_entry(self, entry: Entry):
        for message in (self.validator.check_identifier(entry.identifier),
                        self.validator.check_options(entry.options)):
            if message is not None:
                raise ManifestError(message, entry.line)

    # Lookup and editing

    def get_group(self, group_name: str) -> Optional[Group]:
        """Retrieve a group by its name"""
        for group in self.groups:
            if group.name == group_name:
                return group
        return None

    def get_entry(self, identifier: str) -> Optional[Entry]:
        """Retrieve an entry by its identifier"""
        for group in self.groups:
            for entry in group.entries:
                if entry.identifier == identifier:
                    return entry
        return None

    def entries(self) -> List[Tuple[str, Entry]]:
        return [(group.name, entry) for group in self.groups for entry in group.entries]

    def add_group(self, group: Group):
        self.validate_group_name(group)
        target = self.get_group(group.name)
        if target is None:
            target = Group(group.name, [], group.line)
            self.groups.append(target)
        for entry in group.entries:
            self.add_entry(target.name, entry)

    def add_entry(self, group_name: str, entry: Entry):
        """Add an entry with validation"""
        self.validate_entry(entry)

        if self.get_entry(entry.identifier) is not None:
            raise ManifestError(f"Entry with identifier '{entry.identifier}' already exists", entry.line)

        group = self.get_group(group_name)
        if group is None:
            group = Group(name=group_name, entries=[])
            self.validate_group_name(group)
            self.groups.append(group)
        group.entries.append(entry)

    def delete_entry(self, group_name: str, identifier: str) -> bool:
        """Delete an entry from a specific group"""
        group = self.get_group(group_name)
        if group is None:
            return False
        for i, entry in enumerate(group.entries):
            if entry.identifier == identifier:
                group.entries.pop(i)
                return True
        return False

    # Obfuscation and output

    def build_entry(self, entry: Entry) -> ObfuscatedString:
        try:
            transform = transform_from_options(entry.options, self._key_factory)
            obfuscated = crypt(transform, entry.value, entry.declared_length)
        except (CryptStrError, ValueError) as exc:
            raise ManifestError(f"{entry.identifier}: {exc}", entry.line) from exc

        with obfuscated.decode() as view:
            if view != entry.value:
                raise ManifestError(f"{entry.identifier}: transform does not restore the literal", entry.line)
        return obfuscated

    def build(self) -> List[BuiltGroup]:
        built = []
        for group in self.groups:
            literals = [(entry.identifier, self.build_entry(entry)) for entry in group.entries]
            built.append((group.name, literals))
        return built

    def render_module(self, source_name: str = None) -> str:
        source_name = source_name or os.path.basename(self._loaded_file or "<memory>")
        return self.module_formatter.format_module(source_name, self.build())

    def save_module(self, filepath: str, source_name: str = None):
        content = self.render_module(source_name)
        self._atomic_write(str(filepath), content)
        logger.info("wrote %s", filepath)

    def to_text(self) -> str:
        lines = []
        for group in self.groups:
            group_entries = [self.formatter.format_entry(entry) for entry in group.entries]
            lines.append(self.formatter.format_group(group.name, group_entries))
        return "\n\n".join(lines) + "\n"

    def save_file(self, filepath: str):
        self._check_suffix(filepath)
        self._atomic_write(str(filepath), self.to_text())

    def _lock_path(self, filepath: str) -> str:
        # one lock per output file, kept out of the output directory
        digest = hashlib.sha256(os.path.abspath(filepath).encode("utf-8")).hexdigest()[:16]
        config.LOCK_DIR.mkdir(parents=True, exist_ok=True)
        return str(config.LOCK_DIR / f"{digest}.lock")

    def _atomic_write(self, filepath: str, content: str):
        temp_path = f"{filepath}.tmp"
        with FileLock(self._lock_path(filepath), timeout=config.LOCK_TIMEOUT):
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    f.write(content)

                self._secure_file_permissions(temp_path)
                os.replace(temp_path, filepath)
                self._secure_file_permissions(filepath)

            finally:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)

    def create_manifest_file(self, filepath: str):
        if not str(filepath).endswith(config.MANIFEST_SUFFIX):
            filepath = f"{filepath}{config.MANIFEST_SUFFIX}"

        if os.path.exists(filepath):
            raise FileExistsError("Manifest file already exists")

        # Create empty file with basic structure
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write("# cryptstr literal manifest\n\n")

        self._loaded_file = str(filepath)
        return filepath

    # Artifact checks

    def find_leaks(self, artifact: bytes) -> List[str]:
        """Identifiers whose plaintext occurs verbatim in ``artifact``."""
        leaks = []
        for _, entry in self.entries():
            if len(entry.value) < config.LEAK_SCAN_MIN_LENGTH:
                continue
            if isinstance(entry.value, bytes):
                needles = [entry.value]
            else:
                needles = [entry.value.encode('utf-8'), entry.value.encode('utf-16-le')]
            if any(needle in artifact for needle in needles):
                leaks.append(entry.identifier)
        return leaks

    def scan_artifact(self, filepath: str) -> List[str]:
        """
        Check a generated module for plaintext, both in its source bytes and
        in the code object it compiles to.
        """
        with open(filepath, 'rb') as f:
            data = f.read()
        leaks = self.find_leaks(data)
        if str(filepath).endswith('.py'):
            code = compile(data, str(filepath), 'exec')
            leaks.extend(name for name in self.find_leaks(marshal.dumps(code)) if name not in leaks)
        return leaks
