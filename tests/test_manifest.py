import importlib.util
import os

import pytest

from cryptstr import (
    Entry,
    Lexer,
    LiteralManifest,
    ManifestError,
    ObfuscatedString,
    Parser,
    SizeMismatch,
    TokenType,
)
from cryptstr.formatter import ManifestFormatter

KEY = bytes(range(32))


def fixed_key():
    return KEY


def import_module_from(path):
    spec = importlib.util.spec_from_file_location(path.stem, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestLexer:

    def test_tokens(self):
        lexer = Lexer('group g { [A(3) = "abc"]:xor,0x1337; } # trailing')
        types = []
        while True:
            token = lexer.get_next_token()
            types.append(token.type)
            if token.type == TokenType.EOF:
                break
        assert types == [
            TokenType.GROUP, TokenType.IDENTIFIER, TokenType.LEFT_BRACE,
            TokenType.LEFT_BRACKET, TokenType.IDENTIFIER, TokenType.LEFT_PAREN,
            TokenType.IDENTIFIER, TokenType.RIGHT_PAREN, TokenType.EQUALS,
            TokenType.STRING, TokenType.RIGHT_BRACKET, TokenType.COLON,
            TokenType.IDENTIFIER, TokenType.COMMA, TokenType.IDENTIFIER,
            TokenType.SEMICOLON, TokenType.RIGHT_BRACE, TokenType.EOF,
        ]

    def test_literal_values(self):
        lexer = Lexer('"a\\"b\\n" b\'\\x7fELF\'')
        text = lexer.get_next_token()
        data = lexer.get_next_token()
        assert (text.type, text.value) == (TokenType.STRING, 'a"b\n')
        assert (data.type, data.value) == (TokenType.BYTES, b"\x7fELF")

    def test_positions(self):
        lexer = Lexer('# comment\n  group')
        token = lexer.get_next_token()
        assert (token.line, token.column) == (2, 3)

    def test_unterminated_literal(self):
        with pytest.raises(ManifestError) as excinfo:
            Lexer('"abc').get_next_token()
        assert excinfo.value.line == 1
        assert str(excinfo.value).startswith("line 1, column 1: ")

    def test_invalid_character(self):
        with pytest.raises(ManifestError):
            Lexer('$').get_next_token()


class TestParser:

    def test_parse_group(self, manifest_text):
        parser = Parser(Lexer(manifest_text))
        group = parser.parse_group()
        assert group.name == "protocol"
        assert [e.identifier for e in group.entries] == ["FIRST_MARKER", "SECOND_MARKER"]
        first, second = group.entries
        assert first.value == "FIRST CRYPTED STRING"
        assert first.options == ["xor", "0x1337"]
        assert first.declared_length is None
        assert second.declared_length == 21
        assert second.line == 4

        binary = parser.parse_group()
        assert binary.entries[0].value == b"\x7fELF"
        assert binary.entries[0].char_type is bytes
        with pytest.raises(EOFError):
            parser.parse_group()

    @pytest.mark.parametrize("text", [
        'group g { [A = "x"]:xor; ',
        'group g { [A = "x"] xor; }',
        'group g { [A = x]:xor; }',
        'group g { [A(abc) = "x"]:xor; }',
        'group g { [A(-1) = "x"]:xor; }',
        'group g { A }',
        '[A = "x"]:xor;',
    ])
    def test_syntax_errors(self, text):
        parser = Parser(Lexer(text))
        with pytest.raises(ManifestError):
            parser.parse_group()


class TestLiteralManifest:

    def test_load_file(self, manifest_file):
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        assert [g.name for g in manifest.groups] == ["protocol", "binary"]
        assert manifest.get_entry("ELF_MAGIC").value == b"\x7fELF"
        assert manifest.get_group("missing") is None

    def test_wrong_suffix(self, tmp_path):
        with pytest.raises(ValueError):
            LiteralManifest().load_file(str(tmp_path / "literals.txt"))

    def test_duplicate_identifier(self):
        manifest = LiteralManifest()
        with pytest.raises(ManifestError) as excinfo:
            manifest.load_text('group a { [X = "1"]:xor; }\ngroup b { [X = "2"]:xor; }')
        assert excinfo.value.line == 2

    @pytest.mark.parametrize("text", [
        'group a { [class = "1"]:xor; }',
        'group a { [_hidden = "1"]:xor; }',
        'group a { [X = "1"]:rot13; }',
        'group a-b { [X = "1"]:xor; }',
    ])
    def test_invalid_entries(self, text):
        with pytest.raises(ManifestError):
            LiteralManifest().load_text(text)

    def test_add_and_delete_entry(self):
        manifest = LiteralManifest()
        manifest.add_entry("labels", Entry("INTERNAL", "internal label", ["xor"]))
        assert manifest.get_group("labels").entries[0].identifier == "INTERNAL"
        with pytest.raises(ManifestError):
            manifest.add_entry("other", Entry("INTERNAL", "again", ["xor"]))
        assert manifest.delete_entry("labels", "INTERNAL")
        assert not manifest.delete_entry("labels", "INTERNAL")
        assert not manifest.delete_entry("missing", "INTERNAL")

    def test_build_round_trip(self, manifest_text):
        manifest = LiteralManifest(key_factory=fixed_key)
        manifest.load_text(manifest_text)
        built = dict(manifest.build())
        literals = dict(built["protocol"])
        assert isinstance(literals["FIRST_MARKER"], ObfuscatedString)
        with literals["SECOND_MARKER"].decode() as view:
            assert view == "SECOND CRYPTED STRING"
        with dict(built["binary"])["ELF_MAGIC"].decode() as view:
            assert view == b"\x7fELF"

    def test_astral_literal_builds(self):
        manifest = LiteralManifest()
        manifest.load_text('group g { [SMILE = "hi \U0001F600"]:xor; }')
        literals = dict(dict(manifest.build())["g"])
        with literals["SMILE"].decode() as view:
            assert view == "hi \U0001F600"

    def test_size_mismatch_aborts_build(self):
        manifest = LiteralManifest()
        manifest.load_text('group a {\n    [X(5) = "HELLO DOG"]:xor;\n}')
        with pytest.raises(ManifestError) as excinfo:
            manifest.build()
        assert isinstance(excinfo.value.__cause__, SizeMismatch)
        assert excinfo.value.line == 2
        assert str(excinfo.value).startswith("line 2: X: ")

    def test_invalid_key_aborts_build(self):
        manifest = LiteralManifest()
        manifest.load_text('group a { [X = "HELLO"]:xor,0x1300; }')
        with pytest.raises(ManifestError):
            manifest.build()

    def test_to_text_round_trips(self, manifest_text):
        manifest = LiteralManifest()
        manifest.load_text(manifest_text)
        reloaded = LiteralManifest()
        reloaded.load_text(manifest.to_text())

        def summary(m):
            return [(group, e.identifier, e.value, e.options, e.declared_length) for group, e in m.entries()]

        assert summary(reloaded) == summary(manifest)


class TestGeneratedModule:

    def test_module_imports_and_decodes(self, manifest_file, tmp_path):
        manifest = LiteralManifest(key_factory=fixed_key)
        manifest.load_file(str(manifest_file))
        output = tmp_path / "generated_literals.py"
        manifest.save_module(str(output))

        module = import_module_from(output)
        assert module.__all__ == ["protocol", "binary"]
        with module.protocol.FIRST_MARKER.decode() as view:
            assert view == "FIRST CRYPTED STRING"
        with module.binary.SESSION_LABEL.decode() as view:
            assert view == "internal-session-label"
        assert module.protocol.FIRST_MARKER.cipher_view() != module.protocol.SECOND_MARKER.cipher_view()

    def test_module_holds_no_plaintext(self, manifest_file, tmp_path):
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        output = tmp_path / "generated_literals.py"
        manifest.save_module(str(output))

        source = output.read_text(encoding="utf-8")
        assert "FIRST CRYPTED STRING" not in source
        assert source.startswith("# Generated by cryptstr from literals.cryptstr")
        assert manifest.scan_artifact(str(output)) == []

    def test_scan_reports_plaintext(self, manifest_file, tmp_path):
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        leaky = tmp_path / "leaky.py"
        leaky.write_text('MARKER = "FIRST CRYPTED STRING"\nLABEL = b"internal-session-label"\n')
        assert manifest.scan_artifact(str(leaky)) == ["FIRST_MARKER", "SESSION_LABEL"]

    def test_edited_module_fails_on_import(self, manifest_file, tmp_path):
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        source = manifest.render_module()
        broken = tmp_path / "broken_literals.py"
        broken.write_text(source.replace("        20,\n", "        19,\n", 1))
        with pytest.raises(SizeMismatch):
            import_module_from(broken)

    def test_no_lock_file_beside_output(self, manifest_file, tmp_path):
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        manifest.save_module(str(tmp_path / "generated_literals.py"))
        manifest.save_file(str(manifest_file))
        assert sorted(p.name for p in tmp_path.iterdir()) == ["generated_literals.py", "literals.cryptstr"]

    @pytest.mark.skipif(os.name != "posix", reason="permission bits are POSIX only")
    def test_output_permissions(self, manifest_file, tmp_path):
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        output = tmp_path / "generated_literals.py"
        manifest.save_module(str(output))
        assert output.stat().st_mode & 0o777 == 0o600


class TestManifestFormatter:

    def test_format_entry(self):
        formatter = ManifestFormatter()
        assert formatter.format_entry(Entry("A", "abc", ["xor", "0x1337"])) == "[A = 'abc']:xor,0x1337;"
        assert formatter.format_entry(Entry("B", b"\x00", ["keystream"], 1)) == "[B(1) = b'\\x00']:keystream;"

    def test_format_group(self):
        text = ManifestFormatter().format_group("g", ["[A = 'a']:xor;"])
        assert text == "group g {\n    [A = 'a']:xor;\n}"
