from .bindings import _FFI, _C, _OPENSSL_VERSION, OpenSSLVersion, Const, get_errors, openssl_free
from .errors import BnError, NoInverse

import threading
from functools import wraps
from copy import copy, deepcopy

import pytest


def force_Bn(n):
    """A decorator that coerces the nth input to be a Big Number"""

    def convert_nth(f):
        @wraps(f)
        def new_f(*args, **kwargs):
            if n < len(args) and not isinstance(args[n], Bn):
                other = Bn.from_num(args[n])
                if other is NotImplemented:
                    return NotImplemented
                args = args[:n] + (other,) + args[n + 1:]

            return f(*args, **kwargs)

        return new_f
    return convert_nth


def _check(return_val):
    """Checks the return code of the C calls"""
    if return_val is True or (isinstance(return_val, int) and return_val == 1):
        return

    errs = get_errors()
    raise BnError("BN exception: %s" % errs, errs)


class BnCtx(object):
    """ A Bn Context for use by the toyrsa library """

    __slots__ = ['bnctx', '_C']

    def __init__(self):
        self._C = _C
        self.bnctx = self._C.BN_CTX_new()
        _check(self.bnctx != _FFI.NULL)

    def __del__(self):
        if self.bnctx is not None:
            self._C.BN_CTX_free(self.bnctx)


_thread_local = threading.local()


def get_ctx():
    """The BN_CTX of the calling thread (BN_CTX objects are not shared)."""
    try:
        return _thread_local.ctx
    except AttributeError:
        _thread_local.ctx = BnCtx()
        return _thread_local.ctx


class Bn(object):
    """The core Big Number class.
         It supports all comparisons (<, <=, ==, !=, >=, >),
         arithmetic operations (+, -, *, //, %, divmod, pow)
         and copy operations (copy and deep copy). The other
         operand may be a native python integer of any size. """

    __C = _C

    # We know this class will keep minimal state
    __slots__ = ['bn']

    # -- static methods

    @staticmethod
    def from_num(num):
        if isinstance(num, Bn):
            return num
        elif isinstance(num, int):
            return Bn(num)
        else:
            return NotImplemented

    @staticmethod
    def from_decimal(sdec):
        """Creates a Big Number from a decimal string.

        Args:
            sdec (string): numeric string possibly starting with minus.

        Example:
            >>> hundred = Bn.from_decimal("100")
            >>> str(hundred)
            '100'

        """

        ptr = _FFI.new("BIGNUM **")
        read_bytes = _C.BN_dec2bn(ptr, sdec.encode("utf8"))
        try:
            if read_bytes == 0 or read_bytes != len(sdec):
                raise BnError("BN Error: %r is not a decimal number" % (sdec,))

            ret = Bn()
            _C.BN_copy(ret.bn, ptr[0])
            return ret
        finally:
            if ptr[0] != _FFI.NULL:
                _C.BN_clear_free(ptr[0])

    @staticmethod
    def from_binary(sbin):
        """Creates a Big Number from a byte sequence representing the number
        in Big-endian 8 bit atoms. Only positive values can be represented.

        Example:
            >>> Bn.from_binary(b"\\x01\\x02\\x03")
            66051
        """
        ret = Bn()
        _check(_C.BN_bin2bn(sbin, len(sbin), ret.bn) != _FFI.NULL)
        return ret

    @staticmethod
    def get_prime(bits, safe=0):
        """
        Builds a probable prime Big Number of exactly bits bits, drawn with
        the OpenSSL random generator.

        Args:
                bits (int) -- the number of bits, at least 2.
                safe (int) -- 1 for a safe prime, otherwise 0.

        """
        if bits < 2:
            raise BnError("Cannot generate a prime of %d bits" % bits)
        _check(safe in [0, 1])

        ret = Bn()
        _check(
            _C.BN_generate_prime_ex(
                ret.bn,
                bits,
                safe,
                _FFI.NULL,
                _FFI.NULL,
                _FFI.NULL))
        return ret

    @staticmethod
    def random_bits(bits, top=Const.BN_RAND_TOP_ONE, bottom=Const.BN_RAND_BOTTOM_ANY):
        """Returns a cryptographically strong random number. By default the
        top bit is set, so the result has exactly bits bits.

        Example:
            >>> Bn.random_bits(20).num_bits()
            20
        """
        if bits < 1:
            raise BnError("Cannot draw a number of %d bits" % bits)

        rnd = Bn()
        _check(_C.BN_rand(rnd.bn, bits, top, bottom))
        return rnd

    ## -- methods

    def __init__(self, num=0):
        'Allocate a Big Number structure, initialized with an integer or zero.'
        if not isinstance(num, int):
            raise TypeError("Cannot coerce %r into a Bn." % (num,))

        self.bn = _C.BN_new()
        _check(self.bn != _FFI.NULL)

        if num == 0:
            return

        mag = abs(num)
        data = mag.to_bytes((mag.bit_length() + 7) // 8, "big")
        _check(_C.BN_bin2bn(data, len(data), self.bn) != _FFI.NULL)

        if num < 0:
            self._set_neg(1)

    def _set_neg(self, sign=1):
        # """Sets the sign to "-" (1) or "+" (0)"""
        if not (sign == 0 or sign == 1):
            raise BnError("Sign has to be 0 or 1.")
        _C.BN_set_negative(self.bn, sign)

    def copy(self):
        """Returns a copy of the Bn object."""
        return self.__copy__()

    def __copy__(self):
        other = Bn()
        _check(_C.BN_copy(other.bn, self.bn) != _FFI.NULL)
        return other

    def __deepcopy__(self, memento):
        # pylint: disable=unused-argument
        return self.__copy__()

    def __del__(self):
        # 'Deallocate all resources of the big number'
        bn = getattr(self, "bn", None)
        if bn is not None:
            self.__C.BN_clear_free(bn)

    def _cmp(self, other):
        other = Bn.from_num(other)
        if other is NotImplemented:
            return NotImplemented
        return int(_C.BN_cmp(self.bn, other.bn))

    def __lt__(self, other):
        c = self._cmp(other)
        return c if c is NotImplemented else c < 0

    def __le__(self, other):
        c = self._cmp(other)
        return c if c is NotImplemented else c <= 0

    def __eq__(self, other):
        c = self._cmp(other)
        return c if c is NotImplemented else c == 0

    def __ne__(self, other):
        c = self._cmp(other)
        return c if c is NotImplemented else c != 0

    def __gt__(self, other):
        c = self._cmp(other)
        return c if c is NotImplemented else c > 0

    def __ge__(self, other):
        c = self._cmp(other)
        return c if c is NotImplemented else c >= 0

    def __hash__(self):
        return hash(int(self))

    def __bool__(self):
        return self.num_bits() != 0

    # Export in different representations

    def __repr__(self):
        # 'The representation of the number as a decimal string'
        buf = _C.BN_bn2dec(self.bn)
        _check(buf != _FFI.NULL)
        try:
            return _FFI.string(buf).decode('utf8')
        finally:
            openssl_free(buf)

    def int(self):
        """A native python integer representation of the Big Number.
             Synonym for int(bn).
        """
        return self.__int__()

    def __int__(self):
        mag = int.from_bytes(abs(self).binary(), "big")
        return -mag if self.is_negative() else mag

    def __index__(self):
        return self.__int__()

    def binary(self):
        """Returns a byte sequence storing the absolute value of the Big
        Number in Big-Endian format (with 8 bit atoms). Negative numbers
        cannot be represented.

        Example:
            >>> Bn(66051).binary() == b"\\x01\\x02\\x03"
            True
        """
        if self.is_negative():
            raise BnError("Cannot represent negative numbers")

        size = (self.num_bits() + 7) // 8
        bin_string = _FFI.new("unsigned char[]", size)

        l = _C.BN_bn2bin(self.bn, bin_string)
        assert int(l) == size
        return bytes(_FFI.buffer(bin_string)[:])

    def random(self):
        """Returns a cryptographically strong random number 0 <= rnd < self.

        Example:
            >>> r = Bn(100).random()
            >>> 0 <= r < 100
            True

        """
        rnd = Bn()
        _check(_C.BN_rand_range(rnd.bn, self.bn))
        return rnd

    # ---------- Arithmetic --------------

    def __neg__(self):
        ret = copy(self)
        ret._set_neg(0 if self.is_negative() else 1)
        return ret

    def __abs__(self):
        ret = copy(self)
        ret._set_neg(0)
        return ret

    @force_Bn(1)
    def __add__(self, other):
        r = Bn()
        _check(_C.BN_add(r.bn, self.bn, other.bn))
        return r

    __radd__ = __add__

    @force_Bn(1)
    def __sub__(self, other):
        r = Bn()
        _check(_C.BN_sub(r.bn, self.bn, other.bn))
        return r

    @force_Bn(1)
    def __rsub__(self, other):
        return other.__sub__(self)

    @force_Bn(1)
    def __mul__(self, other):
        r = Bn()
        _check(_C.BN_mul(r.bn, self.bn, other.bn, get_ctx().bnctx))
        return r

    __rmul__ = __mul__

    @force_Bn(1)
    def __divmod__(self, other):
        """Quotient rounds towards zero, like C."""
        if not other:
            raise ZeroDivisionError("Bn division by zero")

        dv = Bn()
        rem = Bn()
        _check(_C.BN_div(dv.bn, rem.bn, self.bn, other.bn, get_ctx().bnctx))
        return (dv, rem)

    @force_Bn(1)
    def __rdivmod__(self, other):
        return other.__divmod__(self)

    def __floordiv__(self, other):
        res = self.__divmod__(other)
        return res if res is NotImplemented else res[0]

    @force_Bn(1)
    def __rfloordiv__(self, other):
        return other.__floordiv__(self)

    @force_Bn(1)
    def __mod__(self, other):
        """The remainder, always non-negative."""
        if not other:
            raise ZeroDivisionError("Bn modulo by zero")

        rem = Bn()
        _check(_C.BN_nnmod(rem.bn, self.bn, other.bn, get_ctx().bnctx))
        return rem

    @force_Bn(1)
    def __rmod__(self, other):
        return other.__mod__(self)

    def __pow__(self, other, modulo=None):
        other = Bn.from_num(other)
        if other is NotImplemented:
            return NotImplemented

        res = Bn()
        ctx = get_ctx().bnctx
        if modulo is None:
            _check(_C.BN_exp(res.bn, self.bn, other.bn, ctx))
        else:
            modulo = Bn.from_num(modulo)
            if modulo is NotImplemented:
                return NotImplemented
            if not modulo:
                raise ZeroDivisionError("Bn modular exponentiation by zero")
            _check(_C.BN_mod_exp(res.bn, self.bn, other.bn, modulo.bn, ctx))

        return res

    @force_Bn(1)
    def __rpow__(self, other):
        return other.__pow__(self)

    def mod_pow(self, other, m):
        """ Performs the modular exponentiation of self ** other % m.

            Example:
                >>> Bn(65).mod_pow(17, 3233)
                2790

        """
        return self.__pow__(other, m)

    @force_Bn(1)
    def gcd(self, other):
        """Returns the greatest common divisor of self and other.

        Example:
            >>> Bn(17).gcd(3120)
            1
        """
        r = Bn()
        _check(_C.BN_gcd(r.bn, self.bn, other.bn, get_ctx().bnctx))
        return r

    @force_Bn(1)
    def mod_inverse(self, m):
        """
        mod_inverse(m)
        Compute the inverse mod m, such that self * res == 1 mod m.
        Raises NoInverse when self and m are not coprime.

        Example:

            >>> Bn(17).mod_inverse(m = Bn(3120))
            2753

        """
        res = Bn()
        ret = _C.BN_mod_inverse(res.bn, self.bn, m.bn, get_ctx().bnctx)
        if ret == _FFI.NULL:
            errs = get_errors()
            raise NoInverse("No inverse of %r modulo %r" % (self, m), errs)

        return res

    def is_prime(self):
        """Returns True if the number is prime, with negligible prob. of error."""

        ctx = get_ctx().bnctx
        if _OPENSSL_VERSION == OpenSSLVersion.V3:
            res = int(_C.BN_check_prime(self.bn, ctx, _FFI.NULL))
        else:
            res = int(_C.BN_is_prime_ex(self.bn, 0, ctx, _FFI.NULL))

        if res == 0:
            return False
        if res == 1:
            return True
        raise BnError("Primality test failure %s" % res, get_errors())

    def is_odd(self):
        """Returns True if the number is odd."""
        return bool(_C.BN_is_odd(self.bn))

    def is_negative(self):
        return bool(_C.BN_is_negative(self.bn))

    def num_bits(self):
        """Returns the number of bits representing this Big Number"""
        return int(_C.BN_num_bits(self.bn))


# ---------- Tests ------------


def test_bn_constructors():
    assert Bn.from_decimal("100") == 100
    assert Bn.from_decimal("-100") == -100

    with pytest.raises(BnError) as excinfo:
        Bn.from_decimal("100ABC")
    assert 'BN Error' in str(excinfo.value)

    with pytest.raises(BnError):
        Bn.from_decimal("")

    with pytest.raises(BnError) as excinfo:
        Bn(-100).binary()
    assert 'negative' in str(excinfo.value)

    assert Bn.from_binary(Bn(100).binary()) == Bn(100)
    assert Bn.from_binary(Bn(100).binary()) == 100

    with pytest.raises(TypeError):
        Bn(1.5)

    with pytest.raises(BnError) as excinfo:
        _check(False)
    assert 'BN' in str(excinfo.value)

    assert int(Bn(-100)) == -100
    assert repr(Bn(5)) == str(Bn(5)) == "5"
    assert range(10)[Bn(4)] == 4

    d = {Bn(5): 5, Bn(6): 6}
    assert Bn(5) in d
    assert 5 in d


def test_bn_large_values():
    big = 3 ** 2000 + 12345
    assert int(Bn(big)) == big
    assert int(Bn(-big)) == -big
    assert Bn(big) == big
    assert str(Bn(big)) == str(big)
    assert Bn.from_decimal(str(big)) == big
    assert Bn(big).num_bits() == big.bit_length()


def test_bn_prime():
    p = Bn.get_prime(128)
    assert p > Bn(0)
    assert p.is_prime()
    assert not Bn(16).is_prime()
    assert Bn(61).is_prime()
    assert p.num_bits() == 128

    small = Bn.get_prime(6)
    assert small.num_bits() == 6
    assert small.is_prime()

    with pytest.raises(BnError):
        Bn.get_prime(1)


def test_bn_random():
    for bits in [1, 6, 7, 64, 300]:
        assert Bn.random_bits(bits).num_bits() == bits

    assert 0 <= Bn(15).random() < 15

    with pytest.raises(BnError):
        Bn.random_bits(0)


def test_bn_arithmetic():
    assert (Bn(1) + Bn(1) == Bn(2))
    assert (Bn(1) + 1 == Bn(2))
    assert (Bn(1) + Bn(-1) == Bn(0))
    assert (Bn(-1) * Bn(-1) == Bn(1))
    assert (Bn(10) * Bn(10) == Bn(100))
    assert (Bn(10) - Bn(10) == Bn(0))
    assert (Bn(10) - Bn(100) == Bn(-90))
    assert (Bn(10) + (-Bn(10)) == Bn(0))
    assert (Bn(10) - (-Bn(10)) == Bn(20))
    assert -Bn(-10) == 10
    assert abs(Bn(-10)) == 10

    assert divmod(Bn(10), Bn(3)) == (Bn(3), Bn(1))
    assert Bn(10) // Bn(3) == Bn(3)
    assert Bn(10) % Bn(3) == Bn(1)
    assert Bn(-1) % Bn(3) == Bn(2)

    with pytest.raises(ZeroDivisionError):
        Bn(10) // 0
    with pytest.raises(ZeroDivisionError):
        Bn(10) % 0

    assert Bn(2) ** Bn(8) == Bn(2 ** 8)
    assert pow(Bn(2), Bn(8), Bn(27)) == Bn(2 ** 8 % 27)
    assert pow(Bn(2), 8, 27) == 2 ** 8 % 27
    assert Bn(65).mod_pow(17, 3233) == 2790
    assert Bn(2790).mod_pow(2753, 3233) == 65

    assert Bn(3).mod_inverse(16) == 11
    assert Bn(17).gcd(3120) == 1
    assert Bn(18).gcd(3120) == 6

    with pytest.raises(NoInverse) as excinfo:
        Bn(3).mod_inverse(0)
    assert 'No inverse' in str(excinfo.value)

    with pytest.raises(NoInverse):
        Bn(6).mod_inverse(Bn(3120))

    assert get_errors() == []


def test_bn_right_arithmetic():
    assert (1 + Bn(1) == Bn(2))
    assert (-1 * Bn(-1) == Bn(1))
    assert (10 * Bn(10) == Bn(100))
    assert (10 - Bn(10) == Bn(0))
    assert (10 - Bn(100) == Bn(-90))
    assert divmod(10, Bn(3)) == (Bn(3), Bn(1))
    assert 10 // Bn(3) == Bn(3)
    assert 10 % Bn(3) == Bn(1)
    assert 2 ** Bn(8) == Bn(2 ** 8)
    assert 100 == Bn(100)


def test_bn_allocate():
    n0 = Bn(10)

    assert str(Bn()) == "0"
    assert str(Bn(1)) == "1"
    assert str(Bn(-1)) == "-1"

    assert int(Bn(5)) == 5
    assert Bn(5).int() == 5

    o0 = copy(n0)
    o1 = deepcopy(n0)
    assert o0 == n0
    assert o1 == n0
    assert n0.copy() == n0

    assert not Bn()
    assert not Bn(0)
    assert Bn(1)
    assert Bn(-1)


def test_bn_cmp():
    assert Bn(1) < Bn(2)
    assert Bn(1) <= Bn(2)
    assert Bn(2) <= Bn(2)
    assert Bn(2) == Bn(2)
    assert Bn(3) > 2
    assert Bn(2) >= 2
    assert Bn(2) != "2"
    assert not (Bn(2) == None)  # pylint: disable=singleton-comparison


def test_odd():
    assert Bn(1).is_odd()
    assert Bn(3).is_odd()
    assert not Bn(0).is_odd()
    assert not Bn(2).is_odd()
    assert Bn(100).num_bits() == 7
