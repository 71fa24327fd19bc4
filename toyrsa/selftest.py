"""Randomised end to end checks: generate keys, encrypt random text,
decrypt it again and compare."""

from .codec import prepare, to_radix, from_radix
from .cipher import encrypt, decrypt
from .keygen import KeyGenerator
from .rand import default_source
from . import pack

import pytest


class SelfTestResult(object):
    """Outcome of a self-test run."""

    def __init__(self):
        self.cases_run = 0
        self.failures = []

    @property
    def ok(self):
        return not self.failures

    def __repr__(self):
        return "SelfTestResult(cases_run=%d, failures=%d)" % (self.cases_run, len(self.failures))


def random_plaintext(source, max_bits=4096):
    """The letters of a random number of up to max_bits bits written in
    base 36. May be empty."""
    bits = 1 + int(source.below(max_bits))
    value = source.below(1 << bits)
    return prepare(to_radix(value, 36))


def run_case(digits, plaintext, source=None):
    """One round trip: keys of the given size, packed and unpacked, then
    plaintext through encryption, a base-36 text form of each block and
    decryption. Returns the decrypted text."""
    pub, priv = KeyGenerator(source).generate(digits)
    pub, priv = pack.decode(pack.encode([pub, priv]))

    cipher = encrypt(plaintext, pub)
    carried = [from_radix(to_radix(c, 36), 36) for c in cipher]
    return decrypt(carried, priv)


def run(cases, source=None, min_digits=10, max_digits=609, max_plaintext_bits=4096, report=None):
    """Runs up to cases round trips with random key sizes in
    [min_digits, max_digits] and random plaintexts. Stops at the first
    failure."""
    if source is None:
        source = default_source()
    if min_digits > max_digits:
        raise ValueError("min_digits is above max_digits")

    result = SelfTestResult()
    for i in range(cases):
        digits = min_digits + int(source.below(max_digits - min_digits + 1))
        plaintext = random_plaintext(source, max_plaintext_bits)
        if report:
            report("Case %d: %d digit primes, %d letters" % (i + 1, digits, len(plaintext)))

        decrypted = run_case(digits, plaintext, source)
        result.cases_run += 1

        if decrypted != plaintext:
            result.failures.append((digits, plaintext, decrypted))
            if report:
                report("Not equal! Decrypted: %s" % decrypted)
            break

    if report:
        report("All tests succeeded..." if result.ok else "Test case failed...")
    return result


# --- TESTS ---


def test_run_small():
    lines = []
    result = run(5, min_digits=2, max_digits=30, max_plaintext_bits=512, report=lines.append)
    assert result.ok
    assert result.cases_run == 5
    assert lines[-1] == "All tests succeeded..."
    assert len(lines) == 6


def test_run_case_fixed():
    from .rand import SequenceSource
    src = SequenceSource(primes=[61, 53], integers=[17])
    assert run_case(2, "HELLO", src) == "HELLO"


def test_random_plaintext():
    from .rand import SequenceSource
    # 8 bits, value 35 ('Z'); then 8 bits, value 5 (a digit, dropped)
    src = SequenceSource(below=[7, 35, 7, 5])
    assert random_plaintext(src, 8) == "Z"
    assert random_plaintext(src, 8) == ""


def test_failure_is_reported(monkeypatch):
    import sys
    module = sys.modules[__name__]
    monkeypatch.setattr(module, "run_case", lambda digits, text, source=None: text + "X")

    lines = []
    result = run(3, min_digits=2, max_digits=3, max_plaintext_bits=16, report=lines.append)
    assert not result.ok
    assert result.cases_run == 1
    assert result.failures[0][2].endswith("X")
    assert lines[-1] == "Test case failed..."


def test_bad_bounds():
    with pytest.raises(ValueError):
        run(1, min_digits=20, max_digits=10)
