"""RSA key records.

Keys are immutable named tuples of ``Bn`` values. Plain ints are accepted
on construction and converted.

Example:
    >>> pub = PublicKey(3233, 17)
    >>> pub.n
    3233
    >>> priv = PrivateKey(n=3233, d=2753, p=61, q=53)
    >>> priv.phi
    3120
    >>> check_pair(pub, priv)
    True
"""

from collections import namedtuple

from .bn import Bn
from .errors import ToyRSAError

import pytest


def _as_bn(name, value):
    ret = Bn.from_num(value)
    if ret is NotImplemented:
        raise TypeError("Key field %s must be an integer, not %r" % (name, value))
    return ret


class PublicKey(namedtuple("PublicKey", ["n", "e"])):
    """The public half of a key pair: modulus n and exponent e."""

    __slots__ = ()

    def __new__(cls, n, e):
        return super(PublicKey, cls).__new__(cls, _as_bn("n", n), _as_bn("e", e))


class PrivateKey(namedtuple("PrivateKey", ["n", "d", "p", "q"])):
    """The private half of a key pair: modulus n, exponent d and the two
    prime factors p and q of n."""

    __slots__ = ()

    def __new__(cls, n, d, p, q):
        return super(PrivateKey, cls).__new__(
            cls, _as_bn("n", n), _as_bn("d", d), _as_bn("p", p), _as_bn("q", q))

    @property
    def phi(self):
        """The totient (p-1)(q-1)."""
        return (self.p - 1) * (self.q - 1)


def check_pair(pub, priv):
    """Checks that pub and priv are two halves of one key pair. Returns True
    or raises ToyRSAError naming the first relation that does not hold."""
    if priv.p == priv.q:
        raise ToyRSAError("The prime factors are equal")
    if priv.p * priv.q != priv.n:
        raise ToyRSAError("p * q does not match the private modulus")
    if pub.n != priv.n:
        raise ToyRSAError("The public and private moduli differ")

    phi = priv.phi
    if pub.e.gcd(phi) != 1:
        raise ToyRSAError("e is not coprime to phi")
    if (pub.e * priv.d) % phi != 1:
        raise ToyRSAError("e * d is not 1 modulo phi")
    return True


# --- TESTS ---


def test_fields_are_bn():
    pub = PublicKey(3233, 17)
    assert isinstance(pub.n, Bn) and isinstance(pub.e, Bn)
    assert pub == PublicKey(Bn(3233), Bn(17))
    assert pub.n == 3233 and pub.e == 17

    priv = PrivateKey(3233, 2753, 61, 53)
    assert all(isinstance(x, Bn) for x in priv)
    assert priv.phi == 3120


def test_immutable():
    pub = PublicKey(3233, 17)
    with pytest.raises(AttributeError):
        pub.e = 3

    priv = PrivateKey(3233, 2753, 61, 53)
    with pytest.raises(AttributeError):
        priv.d = 1


def test_bad_field():
    with pytest.raises(TypeError) as excinfo:
        PublicKey("3233", 17)
    assert "n" in str(excinfo.value)


def test_check_pair():
    pub = PublicKey(3233, 17)
    assert check_pair(pub, PrivateKey(3233, 2753, 61, 53))

    with pytest.raises(ToyRSAError) as excinfo:
        check_pair(pub, PrivateKey(3233, 2754, 61, 53))
    assert "e * d" in str(excinfo.value)

    with pytest.raises(ToyRSAError):
        check_pair(PublicKey(3233, 18), PrivateKey(3233, 2753, 61, 53))

    with pytest.raises(ToyRSAError):
        check_pair(PublicKey(3599, 17), PrivateKey(3233, 2753, 61, 53))

    with pytest.raises(ToyRSAError):
        check_pair(pub, PrivateKey(3233, 2753, 61, 59))

    with pytest.raises(ToyRSAError):
        check_pair(PublicKey(3721, 17), PrivateKey(3721, 2753, 61, 61))
