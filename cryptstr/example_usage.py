import sys

from rich.console import Console
from rich.markup import escape

from cryptstr import XorTransform, crypt, make_fixed_string

console = Console()

# simple XOR by key transform, applied when this module is imported
transform = XorTransform(0x1337)

# crypt() builds an ObfuscatedString; only the transformed data is kept
crypted1 = crypt(transform, "FIRST CRYPTED STRING")
crypted2 = crypt(transform, "SECOND CRYPTED STRING")

# plain fixed strings, range-checked and comparable
plain1 = make_fixed_string("HELLO DOG")
plain2 = make_fixed_string("HELLO CAT")
equal1 = make_fixed_string("HELLO")
equal2 = make_fixed_string("HELLO")


def demonstrate_obfuscated_strings():
    console.print("\n[cyan]Decoded literals:[/cyan]")
    console.print("-" * 50)

    # decode() returns a SecureView; leaving the with block zeroes its buffer
    with crypted1.decode() as dec1, crypted2.decode() as dec2:
        dec1.render(sys.stdout)
        sys.stdout.write("\n")
        dec2.render(sys.stdout)
        sys.stdout.write("\n")
        console.print(f"[dim]str(view) stays masked: {escape(str(dec1))}[/dim]")

    console.print("-" * 50)

    # obfuscated data can be compared without decoding
    assert crypted1.cipher_view() != crypted2.cipher_view(), "strings should not be equal"

    # indexed access is always range-checked
    assert plain1[0] == plain2[0] and plain1[1] == plain2[1] and plain1[2] == plain2[2], "must be equal"
    assert equal1 == equal2, "must be equal"
    console.print("[green]Fixed string checks passed[/green]")


if __name__ == "__main__":
    demonstrate_obfuscated_strings()
