"""Textbook RSA over base-36 text blocks.

No padding is applied: the same plaintext under the same key always
gives the same ciphertext, and a dropped or reordered block decrypts to
wrong text without any error. Decryption is not constant time.

Example:
    >>> from toyrsa.keys import PublicKey, PrivateKey
    >>> pub = PublicKey(3233, 17)
    >>> priv = PrivateKey(3233, 2753, 61, 53)
    >>> encrypt_block(65, pub)
    2790
    >>> decrypt_block(2790, priv)
    65
    >>> decrypt(encrypt("Hi there", pub), priv)
    'HITHERE'
"""

from .bn import Bn
from .codec import prepare, split, encode_block, decode_block
from .errors import InvalidBlockCharacter

import pytest


def encrypt_block(value, pub):
    """value ** e mod n. The value must already be below n."""
    return Bn.from_num(value).mod_pow(pub.e, pub.n)


def decrypt_block(value, priv):
    """value ** d mod n."""
    return Bn.from_num(value).mod_pow(priv.d, priv.n)


def encrypt(text, pub, clean=True):
    """Encrypts text block by block and returns the list of ciphertext
    numbers, in block order.

    With clean set (the default) the text is first upper-cased and cut down
    to its letters. Otherwise it is encoded as given, which allows digits
    but raises InvalidBlockCharacter on anything else.
    """
    if clean:
        text = prepare(text)

    return [encrypt_block(encode_block(block), pub) for block in split(text, pub.n)]


def decrypt(values, priv):
    """Decrypts a sequence of ciphertext numbers and joins the decoded
    blocks, with no separator."""
    return "".join(decode_block(decrypt_block(c, priv)) for c in values)


# --- TESTS ---


def _textbook():
    from .keys import PublicKey, PrivateKey
    return PublicKey(3233, 17), PrivateKey(3233, 2753, 61, 53)


def _multi_block():
    # p, q of 13 bits give a 25 or 26 bit modulus: 4 symbols per block
    from .keys import PublicKey, PrivateKey
    p, q = Bn(7919), Bn(7907)
    phi = (p - 1) * (q - 1)
    e = Bn(65537)
    return PublicKey(p * q, e), PrivateKey(p * q, e.mod_inverse(phi), p, q)


def test_textbook_blocks():
    pub, priv = _textbook()
    assert encrypt_block(65, pub) == 2790
    assert decrypt_block(2790, priv) == 65
    assert decrypt_block(Bn(2790), priv) == Bn(65)


def test_empty():
    pub, priv = _textbook()
    assert encrypt("", pub) == []
    assert encrypt("1234 !!", pub) == []
    assert decrypt([], priv) == ""


def test_roundtrip_single_symbol_blocks():
    pub, priv = _textbook()
    cipher = encrypt("Attack at dawn", pub)
    assert len(cipher) == len("ATTACKATDAWN")
    assert all(c < pub.n for c in cipher)
    assert decrypt(cipher, priv) == "ATTACKATDAWN"


def test_multi_block():
    from .codec import block_size
    pub, priv = _multi_block()
    assert block_size(pub.n) == 4

    cipher = encrypt("HelloWorld", pub)
    assert len(cipher) == 3
    assert [decode_block(decrypt_block(c, priv)) for c in cipher] == ["HELL", "OWOR", "LD"]
    assert decrypt(cipher, priv) == "HELLOWORLD"


def test_block_order_matters():
    pub, priv = _multi_block()
    cipher = encrypt("HELLOWORLD", pub)
    assert decrypt(list(reversed(cipher)), priv) == "LDOWORHELL"
    assert decrypt(cipher[1:], priv) == "OWORLD"


def test_deterministic():
    pub, _ = _multi_block()
    assert encrypt("SAMETEXT", pub) == encrypt("sametext", pub)


def test_unclean_text():
    pub, priv = _multi_block()

    # Digits survive, except leading zero symbols of a block
    assert decrypt(encrypt("AB12CD34", pub, clean=False), priv) == "AB12CD34"
    assert decrypt(encrypt("0ABC", pub, clean=False), priv) == "ABC"

    with pytest.raises(InvalidBlockCharacter):
        encrypt("AB CD", pub, clean=False)


def test_generated_keys_roundtrip():
    from .keygen import generate_keys
    from .codec import block_size

    text = "The quick brown fox jumps over the lazy dog" * 5
    for digits in [2, 5, 20, 64]:
        pub, priv = generate_keys(digits)
        cipher = encrypt(text, pub)
        assert all(c < pub.n for c in cipher)
        assert len(cipher) == -(-len(prepare(text)) // block_size(pub.n))
        assert decrypt(cipher, priv) == prepare(text)


def test_threads():
    import threading
    from .keygen import generate_keys

    pub, priv = generate_keys(30)
    errors = []

    def worker(i):
        text = "MESSAGE" + "XYZ"[i % 3] * i
        for _ in range(10):
            if decrypt(encrypt(text, pub), priv) != text:
                errors.append(i)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
