import os
import warnings


LIBCRYPTO_ENV = "TOYRSA_LIBCRYPTO"

_LIBCRYPTO_NAMES = [
    "crypto",
    "libcrypto.so.3",
    "libcrypto.so.1.1",
    "libcrypto.3.dylib",
    "libcrypto.1.1.dylib",
    "libcrypto-3-x64",
    "libcrypto-1_1-x64",
]


class OpenSSLVersion:
    V1_0 = "1_0"
    V1_1 = "1_1"
    V3 = "3"


def libcrypto_candidates():
    """The library names tried in order, starting with $TOYRSA_LIBCRYPTO."""
    names = list(_LIBCRYPTO_NAMES)
    override = os.environ.get(LIBCRYPTO_ENV)
    if override:
        names.insert(0, override)
    return names


def load_libcrypto(ffi):
    """Opens the OpenSSL crypto library through the cdefs of ffi."""
    tried = []
    for name in libcrypto_candidates():
        try:
            return ffi.dlopen(name)
        except OSError as e:
            tried += ["%s (%s)" % (name, e)]

    raise OSError("Cannot load libcrypto, tried: %s. Set %s to its path." %
                  (", ".join(tried), LIBCRYPTO_ENV))


def get_openssl_version(lib, warn=False):
    """Returns the OpenSSL version that is used for bindings."""

    try:
        full_version = lib.OpenSSL_version_num()
    except AttributeError:
        full_version = lib.SSLeay()

    if full_version >> 28 >= 3:
        return OpenSSLVersion.V3

    version = full_version >> 20
    if version == 0x101:
        return OpenSSLVersion.V1_1
    elif version == 0x100:
        if warn:
            warnings.warn(
                "System OpenSSL version (0x%x) is not supported. "
                "Please upgrade to OpenSSL v1.1 or v3" % version)
        return OpenSSLVersion.V1_0
    else:
        if warn:
            warnings.warn(
                "System OpenSSL version is not recognised: 0x%x. "
                "Attempting to use in OpenSSL v1.1 mode." % version)
        return OpenSSLVersion.V1_1


# --- TESTS ---


class _FakeLib(object):
    def __init__(self, num):
        self.num = num

    def OpenSSL_version_num(self):
        return self.num


def test_version_codes():
    assert get_openssl_version(_FakeLib(0x30000020)) == OpenSSLVersion.V3
    assert get_openssl_version(_FakeLib(0x30200000)) == OpenSSLVersion.V3
    assert get_openssl_version(_FakeLib(0x1010117f)) == OpenSSLVersion.V1_1
    assert get_openssl_version(_FakeLib(0x100020ff)) == OpenSSLVersion.V1_0


def test_version_warnings():
    import pytest
    with pytest.warns(UserWarning):
        get_openssl_version(_FakeLib(0x100020ff), warn=True)
    with pytest.warns(UserWarning):
        get_openssl_version(_FakeLib(0x0090819f), warn=True)


def test_env_override(monkeypatch):
    monkeypatch.setenv(LIBCRYPTO_ENV, "/opt/ssl/lib/libcrypto.so")
    names = libcrypto_candidates()
    assert names[0] == "/opt/ssl/lib/libcrypto.so"
    assert "crypto" in names


def test_load_failure(monkeypatch):
    import pytest

    class NoLib(object):
        def dlopen(self, name):
            raise OSError("missing %s" % name)

    monkeypatch.setenv(LIBCRYPTO_ENV, "nowhere")
    with pytest.raises(OSError) as excinfo:
        load_libcrypto(NoLib())
    assert LIBCRYPTO_ENV in str(excinfo.value)
