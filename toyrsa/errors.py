"""Exceptions raised by toyrsa. All derive from ToyRSAError."""


class ToyRSAError(Exception):
    """Base class of all toyrsa errors."""


class BnError(ToyRSAError):
    """An OpenSSL big number call failed."""

    def __init__(self, msg, errors=None):
        ToyRSAError.__init__(self, msg)
        self.errors = errors or []


class NoInverse(BnError):
    """The modular inverse does not exist (the inputs are not coprime)."""


class InvalidKeySize(ToyRSAError):
    """The requested number of key digits is not usable."""


class NonCoprimeExponent(ToyRSAError):
    """The public exponent has no inverse modulo the totient."""


class InvalidBlockCharacter(ToyRSAError, ValueError):
    """A text block holds a symbol outside the base-36 alphabet."""


class DrawLimitExceeded(ToyRSAError):
    """A capped rejection sampling loop ran out of draws."""
