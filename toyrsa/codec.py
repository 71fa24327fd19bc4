"""Maps text to integer blocks below an RSA modulus and back.

Blocks are base-36 numerals over the symbols 0-9 and A-Z (case does not
matter on input). A block of k symbols is below 36**k < 2**(6k), so sizing
blocks to (bits(n) - 1) // 6 symbols keeps every block strictly below n.

Rendering a block value back to text cannot restore leading zero-valued
symbols: "0AB" and "AB" encode to the same number and both decode to "AB".
Letters never have value zero, so text kept to letters (see ``prepare``)
always comes back unchanged.

Example:
    >>> n = Bn(2) ** 25
    >>> block_size(n)
    4
    >>> split("HELLOWORLD", n)
    ['HELL', 'OWOR', 'LD']
    >>> encode_block("HELL")
    812073
    >>> decode_block(812073)
    'HELL'
"""

import math
import re

from .bn import Bn
from .errors import InvalidBlockCharacter

import pytest


SYMBOLS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
RADIX = len(SYMBOLS)
SYMBOL_BITS = int(math.ceil(math.log(RADIX) / math.log(2)))

_BLOCK_RE = re.compile(r"\A[0-9A-Za-z]+\Z")
_NOT_LETTER_RE = re.compile(r"[^A-Za-z]")


def prepare(text):
    """Upper-cases text and drops every character that is not a letter.

    Example:
        >>> prepare("Hello, World 42!")
        'HELLOWORLD'
    """
    return _NOT_LETTER_RE.sub("", text.upper())


def block_size(n):
    """The number of symbols that fit in one block below modulus n, at
    least 1."""
    n = Bn.from_num(n)
    size = (n.num_bits() - 1) // SYMBOL_BITS
    return size if size > 0 else 1


def split(text, n):
    """Cuts text into consecutive blocks of block_size(n) symbols. The last
    block may be shorter."""
    size = block_size(n)
    return [text[i:i + size] for i in range(0, len(text), size)]


def to_radix(value, radix=RADIX):
    """Renders a non-negative integer in the given radix (2 to 36), using
    upper case letters for digits above 9."""
    if not 2 <= radix <= RADIX:
        raise ValueError("Radix must be between 2 and %d" % RADIX)

    value = int(value)
    if value < 0:
        raise ValueError("Cannot render negative value %d" % value)
    if value == 0:
        return SYMBOLS[0]

    digits = []
    while value:
        value, rem = divmod(value, radix)
        digits.append(SYMBOLS[rem])
    return "".join(reversed(digits))


def from_radix(text, radix=RADIX):
    """Parses a numeral in the given radix (2 to 36), any case. Only the
    symbols 0-9 and A-Z are accepted: no sign, spaces or underscores."""
    if not 2 <= radix <= RADIX:
        raise ValueError("Radix must be between 2 and %d" % RADIX)
    if not _BLOCK_RE.match(text):
        raise ValueError("Not a base %d numeral: %r" % (radix, text))
    return Bn(int(text, radix))


def encode_block(block):
    """The integer value of block read as a base-36 numeral."""
    if not _BLOCK_RE.match(block):
        bad = [c for c in block if not _BLOCK_RE.match(c)]
        raise InvalidBlockCharacter("Block %r holds symbols outside [A-Za-z0-9]: %r" %
                                    (block, bad))
    return from_radix(block, RADIX)


def decode_block(value):
    """The base-36 text of a block value, in upper case."""
    return to_radix(value, RADIX)


# --- TESTS ---


def test_symbol_bits():
    assert RADIX == 36
    assert SYMBOL_BITS == 6


def test_block_size():
    assert block_size(Bn(3233)) == 1
    assert block_size(3233) == 1
    assert block_size(Bn(2) ** 25) == 4
    assert block_size(Bn(2) ** 24 - 1) == 3
    assert block_size(Bn(2)) == 1
    assert block_size(Bn(1)) == 1

    # Depends on the bit length only
    assert block_size(Bn(2) ** 100) == block_size(Bn(2) ** 101 - 1) == 16


def test_split():
    n = Bn(2) ** 25
    assert split("HELLOWORLD", n) == ["HELL", "OWOR", "LD"]
    assert split("HELL", n) == ["HELL"]
    assert split("", n) == []
    assert split("AB", Bn(3233)) == ["A", "B"]


def test_blocks_fit():
    for bits in range(2, 200, 7):
        n = Bn(2) ** (bits - 1) + 1
        size = block_size(n)
        text = "Z" * (3 * size + 1)
        for block in split(text, n):
            assert len(block) <= size
            if (n.num_bits() - 1) // SYMBOL_BITS > 0:
                assert encode_block(block) < n


def test_encode_decode():
    assert encode_block("A") == 10
    assert encode_block("z") == 35
    assert encode_block("10") == 36
    assert encode_block("hell") == encode_block("HELL")
    assert decode_block(Bn(10)) == "A"
    assert decode_block(0) == "0"
    assert decode_block(encode_block("Hello")) == "HELLO"


def test_leading_zero_symbols_are_lost():
    assert decode_block(encode_block("00AB")) == "AB"


def test_bad_blocks():
    with pytest.raises(InvalidBlockCharacter) as excinfo:
        encode_block("HELLO WORLD")
    assert "' '" in str(excinfo.value)

    with pytest.raises(InvalidBlockCharacter):
        encode_block("café")

    with pytest.raises(InvalidBlockCharacter):
        encode_block("")

    with pytest.raises(ValueError):
        encode_block("AB-C")

    # Characters whose upper case form is several symbols
    with pytest.raises(InvalidBlockCharacter) as excinfo:
        encode_block(u"AB\ufb06")
    assert repr(u"\ufb06") in str(excinfo.value)


def test_radix():
    assert to_radix(255, 16) == "FF"
    assert to_radix(Bn(2790), 10) == "2790"
    assert from_radix("ff", 16) == 255
    assert from_radix("2790", 10) == 2790
    big = Bn(7) ** 500
    assert from_radix(to_radix(big, 36), 36) == big

    with pytest.raises(ValueError):
        to_radix(-1)
    with pytest.raises(ValueError):
        to_radix(10, 37)

    for text in ["1_0", "-5", "+7", " 7", "", u"\u0661", "G"]:
        with pytest.raises(ValueError):
            from_radix(text, 16 if text == "G" else 10)


def test_prepare():
    assert prepare("") == ""
    assert prepare("abc") == "ABC"
    assert prepare("a1 b2\nc3!") == "ABC"
    assert prepare("12345") == ""
