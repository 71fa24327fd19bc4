"""Random sources for key generation and the self-test loop.

A source is any object with three methods:

    prime(bits)    -- a probable prime of exactly bits bits
    integer(bits)  -- a random integer of exactly bits bits
    below(bound)   -- a random integer in [0, bound)

all returning ``Bn`` values. Sources are passed explicitly to the code that
consumes randomness, so tests can swap in a ``SequenceSource``.

``OpenSSLSource`` draws from the OpenSSL DRBG, which OpenSSL 1.1 and later
lock internally; one instance can be shared by threads. A source with its
own state (such as ``SequenceSource``) is not thread safe: lock it, or give
each thread its own instance.
"""

from .bn import Bn
from .errors import ToyRSAError

import pytest


class OpenSSLSource(object):
    """Cryptographically secure randomness from OpenSSL."""

    def prime(self, bits):
        return Bn.get_prime(bits)

    def integer(self, bits):
        return Bn.random_bits(bits)

    def below(self, bound):
        return Bn.from_num(bound).random()


class SequenceSource(object):
    """Replays fixed values, in order, for deterministic runs.

    Example:
        >>> src = SequenceSource(primes=[61, 53], integers=[17])
        >>> src.prime(6), src.prime(6), src.integer(6)
        (61, 53, 17)
    """

    def __init__(self, primes=(), integers=(), below=()):
        self._primes = iter(primes)
        self._integers = iter(integers)
        self._below = iter(below)

    def _next(self, it, what):
        try:
            return Bn.from_num(next(it))
        except StopIteration:
            raise ToyRSAError("SequenceSource ran out of %s" % what)

    def prime(self, bits):
        # pylint: disable=unused-argument
        return self._next(self._primes, "primes")

    def integer(self, bits):
        # pylint: disable=unused-argument
        return self._next(self._integers, "integers")

    def below(self, bound):
        value = self._next(self._below, "bounded values")
        if not 0 <= value < bound:
            raise ToyRSAError("Replayed value %r is not below %r" % (value, bound))
        return value


_default = None


def default_source():
    """The shared OpenSSLSource."""
    global _default  # pylint: disable=global-statement
    if _default is None:
        _default = OpenSSLSource()
    return _default


# --- TESTS ---


def test_openssl_source():
    src = OpenSSLSource()
    p = src.prime(32)
    assert p.num_bits() == 32
    assert p.is_prime()
    assert src.integer(40).num_bits() == 40
    for _ in range(20):
        assert 0 <= src.below(7) < 7
    assert default_source() is default_source()


def test_sequence_source():
    src = SequenceSource(primes=[61, 53], integers=[4, 17], below=[3])
    assert src.prime(6) == 61
    assert src.prime(6) == 53
    assert src.integer(6) == 4
    assert src.integer(6) == 17
    assert src.below(10) == 3

    with pytest.raises(ToyRSAError) as excinfo:
        src.prime(6)
    assert "primes" in str(excinfo.value)


def test_sequence_source_bound():
    src = SequenceSource(below=[12])
    with pytest.raises(ToyRSAError):
        src.below(10)
