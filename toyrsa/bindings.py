"""ABI level cffi bindings to the OpenSSL big number (BN) functions.

The library is opened at import time with ``ffi.dlopen``, so no C compiler
is needed to install toyrsa. See ``_compat.load_libcrypto`` for where the
library is looked up.
"""

import cffi

from ._compat import load_libcrypto, get_openssl_version, OpenSSLVersion  # pylint: disable=unused-import


_FFI = cffi.FFI()

_FFI.cdef("""
typedef struct bignum_st BIGNUM;
typedef struct bignum_ctx BN_CTX;
typedef struct bn_gencb_st BN_GENCB;

unsigned long OpenSSL_version_num(void);
unsigned long SSLeay(void);
const char *OpenSSL_version(int type);

unsigned long ERR_get_error(void);
void CRYPTO_free(void *ptr, const char *file, int line);

BN_CTX *BN_CTX_new(void);
void BN_CTX_free(BN_CTX *c);

BIGNUM *BN_new(void);
void BN_clear_free(BIGNUM *a);
BIGNUM *BN_copy(BIGNUM *a, const BIGNUM *b);

int BN_cmp(const BIGNUM *a, const BIGNUM *b);
void BN_set_negative(BIGNUM *b, int n);
int BN_is_negative(const BIGNUM *b);
int BN_is_odd(const BIGNUM *a);
int BN_num_bits(const BIGNUM *a);

int BN_add(BIGNUM *r, const BIGNUM *a, const BIGNUM *b);
int BN_sub(BIGNUM *r, const BIGNUM *a, const BIGNUM *b);
int BN_mul(BIGNUM *r, const BIGNUM *a, const BIGNUM *b, BN_CTX *ctx);
int BN_div(BIGNUM *dv, BIGNUM *rem, const BIGNUM *m, const BIGNUM *d, BN_CTX *ctx);
int BN_nnmod(BIGNUM *r, const BIGNUM *m, const BIGNUM *d, BN_CTX *ctx);
int BN_exp(BIGNUM *r, const BIGNUM *a, const BIGNUM *p, BN_CTX *ctx);
int BN_mod_exp(BIGNUM *r, const BIGNUM *a, const BIGNUM *p, const BIGNUM *m, BN_CTX *ctx);
int BN_gcd(BIGNUM *r, const BIGNUM *a, const BIGNUM *b, BN_CTX *ctx);
BIGNUM *BN_mod_inverse(BIGNUM *ret, const BIGNUM *a, const BIGNUM *n, BN_CTX *ctx);

char *BN_bn2dec(const BIGNUM *a);
int BN_dec2bn(BIGNUM **a, const char *str);
BIGNUM *BN_bin2bn(const unsigned char *s, int len, BIGNUM *ret);
int BN_bn2bin(const BIGNUM *a, unsigned char *to);

int BN_rand(BIGNUM *rnd, int bits, int top, int bottom);
int BN_rand_range(BIGNUM *rnd, const BIGNUM *range);
int BN_generate_prime_ex(BIGNUM *ret, int bits, int safe, const BIGNUM *add,
    const BIGNUM *rem, BN_GENCB *cb);
int BN_is_prime_ex(const BIGNUM *p, int nchecks, BN_CTX *ctx, BN_GENCB *cb);
int BN_check_prime(const BIGNUM *p, BN_CTX *ctx, BN_GENCB *cb);
""")

_C = load_libcrypto(_FFI)
_OPENSSL_VERSION = get_openssl_version(_C, warn=True)


# Store constants
class Const:
    OPENSSL_VERSION = 0
    BN_RAND_TOP_ANY = -1
    BN_RAND_TOP_ONE = 0
    BN_RAND_BOTTOM_ANY = 0
    BN_RAND_BOTTOM_ODD = 1


def version():
    """The version string of the loaded OpenSSL library."""
    if _OPENSSL_VERSION == OpenSSLVersion.V1_0:
        return "OpenSSL 0x%x" % _C.SSLeay()

    cstr = _C.OpenSSL_version(Const.OPENSSL_VERSION)
    return _FFI.string(cstr).decode("utf8")


def openssl_free(ptr):
    """Frees memory handed out by OpenSSL (the OPENSSL_free macro)."""
    _C.CRYPTO_free(ptr, _FFI.NULL, 0)


def get_errors():
    """Drains and returns the OpenSSL error queue of this thread."""
    errors = []
    err = _C.ERR_get_error()
    while err != 0:
        errors += [err]
        err = _C.ERR_get_error()
    assert isinstance(errors, list)
    return errors


# --- TESTS ---


def test_version():
    print(version())
    assert version()
    assert "OpenSSL" in version() or "LibreSSL" in version()


def test_errors():
    assert get_errors() == []


def test_multithread():
    import threading
    from .bn import Bn

    p = Bn.from_decimal("2305843009213693951")
    failures = []

    def worker():
        for _ in range(50):
            x = Bn(2) + (p - 3).random()
            if pow(x, p - 1, p) != 1:
                failures.append(x)

    threads = []
    for _ in range(20):
        t = threading.Thread(target=worker)
        threads.append(t)
        t.start()

    for t in threads:
        t.join()

    assert failures == []
