"""RSA key pair generation.

Example:
    >>> from toyrsa.rand import SequenceSource
    >>> src = SequenceSource(primes=[61, 53], integers=[17])
    >>> pub, priv = generate_keys(2, source=src)
    >>> pub
    PublicKey(n=3233, e=17)
    >>> priv.d
    2753
"""

import math

from .errors import InvalidKeySize, NonCoprimeExponent, DrawLimitExceeded, NoInverse
from .keys import PublicKey, PrivateKey, check_pair
from .rand import default_source, SequenceSource

import pytest


MIN_DIGITS = 2


def bit_length_for(digits):
    """The bit length of primes with about digits decimal digits,
    floor(digits * log2(10)).

    Example:
        >>> bit_length_for(2), bit_length_for(10), bit_length_for(100)
        (6, 33, 332)
    """
    return int(digits * (math.log(10) / math.log(2)))


class KeyGenerator(object):
    """Builds key pairs from a random source.

    The two rejection loops (drawing q distinct from p, and drawing e
    coprime to phi) end with probability 1 but have no iteration bound.
    Passing max_draws caps each loop; DrawLimitExceeded is raised when the
    cap is hit.
    """

    def __init__(self, source=None, max_draws=None):
        self.source = source if source is not None else default_source()
        self.max_draws = max_draws

    def _draws(self, what):
        draws = 0
        while True:
            draws += 1
            if self.max_draws is not None and draws > self.max_draws:
                raise DrawLimitExceeded("No acceptable %s after %d draws" %
                                        (what, self.max_draws))
            yield draws

    def generate(self, digits):
        """Returns a (PublicKey, PrivateKey) pair whose primes have about
        digits decimal digits. Digit counts of 1 or less are raised to 2."""
        if isinstance(digits, bool) or not isinstance(digits, int):
            raise InvalidKeySize("The number of digits must be an integer, not %r" % (digits,))

        if digits < MIN_DIGITS:
            digits = MIN_DIGITS
        bits = bit_length_for(digits)

        p = self.source.prime(bits)
        for _ in self._draws("distinct prime q"):
            q = self.source.prime(bits)
            if q != p:
                break

        n = p * q
        phi = (p - 1) * (q - 1)

        for _ in self._draws("public exponent coprime to phi"):
            e = self.source.integer(bits)
            if e.gcd(phi) == 1:
                break

        try:
            d = e.mod_inverse(phi)
        except NoInverse as ex:
            raise NonCoprimeExponent("e = %r has no inverse modulo phi = %r" % (e, phi)) from ex

        return PublicKey(n, e), PrivateKey(n, d, p, q)


def generate_keys(digits, source=None):
    """Generate a key pair with primes of about digits decimal digits."""
    return KeyGenerator(source).generate(digits)


# --- TESTS ---


def test_textbook_pair():
    src = SequenceSource(primes=[61, 53], integers=[17])
    pub, priv = KeyGenerator(src).generate(2)
    assert pub.n == priv.n == 3233
    assert priv.phi == 3120
    assert pub.e == 17
    assert priv.d == 2753
    assert (priv.p, priv.q) == (61, 53)


def test_redraws():
    # q equal to p is drawn again, e sharing a factor with phi is drawn again
    src = SequenceSource(primes=[61, 61, 61, 53], integers=[40, 15, 39, 17])
    pub, priv = generate_keys(2, source=src)
    assert priv.q == 53
    assert pub.e == 17
    assert check_pair(pub, priv)


def test_digit_clamp():
    for digits in [1, 0, -5]:
        src = SequenceSource(primes=[61, 53], integers=[17])
        pub, _ = generate_keys(digits, source=src)
        assert pub.n == 3233


def test_bits_requested():
    asked = []

    class Recorder(SequenceSource):
        def prime(self, bits):
            asked.append(bits)
            return SequenceSource.prime(self, bits)

    generate_keys(1, source=Recorder(primes=[61, 53], integers=[17]))
    assert asked == [6, 6]


def test_invalid_size():
    with pytest.raises(InvalidKeySize):
        generate_keys(2.5)
    with pytest.raises(InvalidKeySize):
        generate_keys("10")
    with pytest.raises(InvalidKeySize):
        generate_keys(True)


def test_draw_limit():
    src = SequenceSource(primes=[61, 61, 61, 61], integers=[17])
    with pytest.raises(DrawLimitExceeded):
        KeyGenerator(src, max_draws=3).generate(2)

    src = SequenceSource(primes=[61, 53], integers=[2, 4, 6])
    with pytest.raises(DrawLimitExceeded):
        KeyGenerator(src, max_draws=3).generate(2)


def test_non_coprime_exponent(monkeypatch):
    from .bn import Bn

    def no_inverse(self, m):
        raise NoInverse("No inverse")

    monkeypatch.setattr(Bn, "mod_inverse", no_inverse)
    src = SequenceSource(primes=[61, 53], integers=[17])
    with pytest.raises(NonCoprimeExponent):
        generate_keys(2, source=src)


def test_generated_algebra():
    for digits in [2, 3, 10, 40]:
        pub, priv = generate_keys(digits)
        assert priv.p != priv.q
        assert priv.p.is_prime() and priv.q.is_prime()
        assert priv.p.num_bits() == bit_length_for(digits)
        assert priv.p * priv.q == pub.n == priv.n
        assert pub.e.gcd(priv.phi) == 1
        assert (pub.e * priv.d) % priv.phi == 1
        assert check_pair(pub, priv)
