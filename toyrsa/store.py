"""Reading and writing keys, ciphertexts and plaintexts as files.

Key files hold one msgpack-packed key (see ``toyrsa.pack``). Ciphertext
files hold one number per line, in block order, in decimal by default.
"""

from .codec import prepare, to_radix, from_radix
from .errors import ToyRSAError
from .keys import PublicKey, PrivateKey
from . import pack

import msgpack

import pytest


def save_key(key, filename):
    """Writes a PublicKey or PrivateKey to filename."""
    if not isinstance(key, (PublicKey, PrivateKey)):
        raise TypeError("Not a key: %r" % (key,))

    with open(filename, "wb") as f:
        f.write(pack.encode(key))


def load_key(filename, kind=None):
    """Reads a key written by save_key. When kind is given (PublicKey or
    PrivateKey) any other content raises ToyRSAError."""
    with open(filename, "rb") as f:
        data = f.read()

    try:
        key = pack.decode(data)
    except (ValueError, msgpack.exceptions.UnpackException) as e:
        raise ToyRSAError("%s does not hold a packed key: %s" % (filename, e))

    expected = kind or (PublicKey, PrivateKey)
    if not isinstance(key, expected):
        raise ToyRSAError("%s holds %s, not a %s" % (
            filename, type(key).__name__,
            kind.__name__ if kind else "key"))
    return key


def save_ciphertext(values, filename, radix=10):
    """Writes the ciphertext numbers to filename, one per line."""
    with open(filename, "w") as f:
        for c in values:
            f.write(to_radix(c, radix) + "\n")


def load_ciphertext(filename, radix=10):
    """Reads ciphertext numbers written by save_ciphertext, in order.
    Blank lines are skipped."""
    values = []
    with open(filename, encoding="utf-8") as f:
        try:
            lines = list(f)
        except UnicodeDecodeError as e:
            raise ToyRSAError("%s is not a text file: %s" % (filename, e))

        for lineno, line in enumerate(lines, 1):
            line = line.strip()
            if not line:
                continue
            try:
                values.append(from_radix(line, radix))
            except ValueError:
                raise ToyRSAError("%s:%d: not a base %d number: %r" %
                                  (filename, lineno, radix, line))
    return values


def load_plaintext(filename):
    """Reads a UTF-8 text file, upper-cased and cut down to its letters."""
    with open(filename, encoding="utf-8") as f:
        try:
            text = f.read()
        except UnicodeDecodeError as e:
            raise ToyRSAError("%s is not a text file: %s" % (filename, e))
    return prepare(text)


# --- TESTS ---


def test_key_files(tmpdir):
    pub = PublicKey(3233, 17)
    priv = PrivateKey(3233, 2753, 61, 53)

    pub_file = str(tmpdir.join("pub.key"))
    priv_file = str(tmpdir.join("priv.key"))
    save_key(pub, pub_file)
    save_key(priv, priv_file)

    assert load_key(pub_file) == pub
    assert load_key(priv_file, PrivateKey) == priv
    assert isinstance(load_key(pub_file, PublicKey), PublicKey)

    with pytest.raises(ToyRSAError) as excinfo:
        load_key(pub_file, PrivateKey)
    assert "PrivateKey" in str(excinfo.value)

    with pytest.raises(TypeError):
        save_key((3233, 17), pub_file)


def test_not_a_key(tmpdir):
    junk = tmpdir.join("junk.key")
    junk.write_binary(pack.encode([1, 2, 3]))
    with pytest.raises(ToyRSAError):
        load_key(str(junk))

    junk.write_binary(b"\xc1")
    with pytest.raises(ToyRSAError):
        load_key(str(junk))

    junk.write_binary(b"")
    with pytest.raises(ToyRSAError):
        load_key(str(junk))

    # Key records with the wrong fields
    junk.write_binary(msgpack.packb(msgpack.ExtType(1, msgpack.packb([1, 2, 3]))))
    with pytest.raises(ToyRSAError):
        load_key(str(junk))

    junk.write_binary(msgpack.packb(msgpack.ExtType(2, msgpack.packb([u"n", 1, 2, 3]))))
    with pytest.raises(ToyRSAError):
        load_key(str(junk))


def test_generated_key_files(tmpdir):
    from .keygen import generate_keys

    pub, priv = generate_keys(50)
    save_key(pub, str(tmpdir.join("pub.key")))
    save_key(priv, str(tmpdir.join("priv.key")))

    pub2 = load_key(str(tmpdir.join("pub.key")))
    priv2 = load_key(str(tmpdir.join("priv.key")))
    assert (int(pub2.n), int(pub2.e)) == (int(pub.n), int(pub.e))
    assert [int(x) for x in priv2] == [int(x) for x in priv]


def test_ciphertext_files(tmpdir):
    values = [2790, 0, 3232, 7 ** 300]
    for radix in [10, 36]:
        name = str(tmpdir.join("cipher%d.txt" % radix))
        save_ciphertext(values, name, radix)
        assert load_ciphertext(name, radix) == values

    with open(str(tmpdir.join("cipher10.txt"))) as f:
        assert f.read().split("\n")[:3] == ["2790", "0", "3232"]


def test_ciphertext_blank_and_bad_lines(tmpdir):
    f = tmpdir.join("c.txt")
    f.write("12\n\n  34 \n")
    assert load_ciphertext(str(f)) == [12, 34]

    f.write("12\nxyz\n")
    with pytest.raises(ToyRSAError) as excinfo:
        load_ciphertext(str(f))
    assert ":2:" in str(excinfo.value)

    # Signs, underscores and other digit forms are not ciphertext numbers
    for line in ["1_0", "-5", "+7", "\u0661\u0662"]:
        f.write_binary((u"12\n%s\n" % line).encode("utf-8"))
        with pytest.raises(ToyRSAError) as excinfo:
            load_ciphertext(str(f))
        assert ":2:" in str(excinfo.value)

    f.write_binary(b"\xff\xfe\x80")
    with pytest.raises(ToyRSAError):
        load_ciphertext(str(f))


def test_plaintext(tmpdir):
    f = tmpdir.join("plain.txt")
    f.write("Hello, World!\nSecond line 2.\n")
    assert load_plaintext(str(f)) == "HELLOWORLDSECONDLINE"

    f.write_binary(u"Caf\u00e9 ol\u00e9".encode("utf-8"))
    assert load_plaintext(str(f)) == "CAFOL"

    f.write_binary(b"\xff\xfe\x80abc")
    with pytest.raises(ToyRSAError) as excinfo:
        load_plaintext(str(f))
    assert "not a text file" in str(excinfo.value)


def test_file_roundtrip(tmpdir):
    from .cipher import encrypt, decrypt

    pub = PublicKey(3233, 17)
    priv = PrivateKey(3233, 2753, 61, 53)
    name = str(tmpdir.join("msg.txt"))
    save_ciphertext(encrypt("meet me at noon", pub), name)
    assert decrypt(load_ciphertext(name), priv) == "MEETMEATNOON"
