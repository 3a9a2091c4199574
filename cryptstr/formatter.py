from typing import List, Sequence, Tuple

from cryptstr import config
from cryptstr.obfuscated import ObfuscatedString
from cryptstr.parser import Entry
from cryptstr.transform import KeystreamTransform, XorTransform


class ManifestFormatter:
    """
    Handles the formatting of literal entries and groups according to the .cryptstr file format
    """
    def __init__(self):
        self.group = "group"
        self.indent = "    "

    def format_entry(self, entry: Entry) -> str:
        """Formats a single literal entry"""
        length = f"({entry.declared_length})" if entry.declared_length is not None else ""
        options = ",".join(entry.options)
        return f"[{entry.identifier}{length} = {entry.value!r}]:{options};"

    def format_group(self, group_name: str, entries: List[str]) -> str:
        """Formats a complete group with its entries"""
        lines = [f"{self.group} {group_name} {{"]
        indented_entries = [self.indent + entry for entry in entries]
        lines.extend(indented_entries)
        lines.append("}")
        return "\n".join(lines)


class ModuleFormatter:
    """
    Writes the Python module holding the obfuscated literals.

    Each manifest group becomes a class namespace, each entry a class
    attribute built with ObfuscatedString.from_ordinals(). Only cipher
    ordinals and transform parameters are written.
    """
    def __init__(self, ordinals_per_line: int = 8):
        self.indent = "    "
        self.ordinals_per_line = ordinals_per_line

    def format_transform(self, transform) -> str:
        if isinstance(transform, XorTransform):
            return f"XorTransform({transform.key:#x})"
        if isinstance(transform, KeystreamTransform):
            return f"KeystreamTransform(bytes.fromhex({transform.key.hex()!r}))"
        raise ValueError(f"cannot write {type(transform).__name__} to a module")

    def format_ordinals(self, ordinals: Sequence[int], depth: int) -> List[str]:
        pad = self.indent * depth
        if not ordinals:
            return [f"{pad}(),"]
        lines = [f"{pad}("]
        for start in range(0, len(ordinals), self.ordinals_per_line):
            chunk = ordinals[start:start + self.ordinals_per_line]
            lines.append(pad + self.indent + " ".join(f"{o:#x}," for o in chunk))
        lines.append(f"{pad}),")
        return lines

    def format_literal(self, identifier: str, obfuscated: ObfuscatedString) -> List[str]:
        pad = self.indent * 2
        cipher = obfuscated.cipher_view()
        lines = [f"{self.indent}{identifier} = ObfuscatedString.from_ordinals("]
        lines.append(f"{pad}{self.format_transform(obfuscated.transform)},")
        lines.extend(self.format_ordinals(cipher.ordinals(), 2))
        lines.append(f"{pad}{cipher.char_type.__name__},")
        lines.append(f"{pad}{cipher.size()},")
        lines.append(f"{self.indent})")
        return lines

    def format_group(self, group_name: str, literals: List[Tuple[str, ObfuscatedString]]) -> str:
        lines = [f"class {group_name}:"]
        if not literals:
            lines.append(f"{self.indent}pass")
        for identifier, obfuscated in literals:
            lines.extend(self.format_literal(identifier, obfuscated))
        return "\n".join(lines)

    def format_module(self, source_name: str, groups: List[Tuple[str, List[Tuple[str, ObfuscatedString]]]]) -> str:
        header = [
            config.GENERATED_HEADER.format(source=source_name),
            "from cryptstr import KeystreamTransform, ObfuscatedString, XorTransform",
            "",
            f"__all__ = [{', '.join(repr(name) for name, _ in groups)}]",
        ]
        blocks = ["\n".join(header)]
        blocks.extend(self.format_group(name, literals) for name, literals in groups)
        return "\n\n\n".join(blocks) + "\n"
