"""The module provides functions to pack and unpack toyrsa Bn, PublicKey and
PrivateKey structures with msgpack.

Example:
    >>> # Define a custom class, encoder and decoder
    >>> class CustomType:
    ...     def __eq__(self, other):
    ...         return isinstance(other, CustomType)
    >>>
    >>> def enc_custom(obj):
    ...     return b''
    >>>
    >>> def dec_custom(data):
    ...     return CustomType()
    >>>
    >>> register_coders(CustomType, 10, enc_custom, dec_custom)
    >>>
    >>> # Define a structure
    >>> pub = PublicKey(3233, 17)
    >>> custom_obj = CustomType()
    >>> test_data = [pub, pub.n, custom_obj]
    >>>
    >>> # Encode and decode custom structure
    >>> packed = encode(test_data)
    >>> x = decode(packed)
    >>> assert x == test_data
    >>> _init_coders()

"""

import msgpack

from .bn import Bn
from .keys import PublicKey, PrivateKey

import pytest

__all__ = ["encode", "decode", "register_coders"]

_pack_reg = {}
_unpack_reg = {}


def register_coders(cls, num, enc_func, dec_func):
    """ Register a new type for encoding and decoding.
    Take a class type, a number, an encoding and a decoding function."""

    if num in _unpack_reg or cls in _pack_reg:
        raise Exception("Class or number already in use.")

    coders = (cls, num, enc_func, dec_func)
    _pack_reg[cls] = coders
    _unpack_reg[num] = coders


def bn_enc(obj):
    if obj < 0:
        neg = b"-"
        data = (-obj).binary()
    else:
        neg = b"+"
        data = obj.binary()
    return neg + data


def bn_dec(data):
    num = Bn.from_binary(data[1:])
    if data[0:1] == b"-":
        return -num
    return num


def _fields_enc(obj):
    # Keys are packed as the list of their fields
    return msgpack.packb(list(obj), default=default, use_bin_type=True)


def _fields_dec(data, cls):
    fields = msgpack.unpackb(data, ext_hook=ext_hook, raw=False)
    if not isinstance(fields, list) or len(fields) != len(cls._fields):
        raise ValueError("%s needs %d fields, got %r" % (cls.__name__, len(cls._fields), fields))
    try:
        return cls(*fields)
    except TypeError as e:
        raise ValueError(str(e))


def pub_dec(data):
    return _fields_dec(data, PublicKey)


def priv_dec(data):
    return _fields_dec(data, PrivateKey)


def _init_coders():
    global _pack_reg, _unpack_reg  # pylint: disable=global-statement
    _pack_reg, _unpack_reg = {}, {}
    register_coders(Bn, 0, bn_enc, bn_dec)
    register_coders(PublicKey, 1, _fields_enc, pub_dec)
    register_coders(PrivateKey, 2, _fields_enc, priv_dec)


# Register default coders
_init_coders()


def default(obj):
    # strict_types hands over plain tuples too
    if type(obj) is tuple:
        return list(obj)

    # Keys are tuples, so look for the exact type first
    coders = _pack_reg.get(type(obj))
    if coders is None:
        for T in _pack_reg:
            if isinstance(obj, T):
                coders = _pack_reg[T]
                break

    if coders is not None:
        _, num, enc, _ = coders
        return msgpack.ExtType(num, enc(obj))

    raise TypeError("Unknown type: %r" % (type(obj),))


def make_encoder(out_encoder=None):
    if out_encoder is None:
        return default
    else:
        def new_encoder(obj):
            try:
                return default(obj)
            except TypeError:
                return out_encoder(obj)
        return new_encoder


def ext_hook(code, data):
    if code in _unpack_reg:
        _, _, _, dec = _unpack_reg[code]
        return dec(data)

    # Other
    return msgpack.ExtType(code, data)


def make_decoder(custom_decoder=None):
    if custom_decoder is None:
        return ext_hook
    else:
        def new_decoder(code, data):
            out = ext_hook(code, data)
            if not isinstance(out, msgpack.ExtType):
                return out
            else:
                return custom_decoder(code, data)
        return new_decoder


def encode(structure, custom_encoder=None):
    """ Encode a structure containing toyrsa objects to a binary format. May define a custom encoder for user classes. """
    encoder = make_encoder(custom_encoder)
    packed_data = msgpack.packb(structure, default=encoder, use_bin_type=True, strict_types=True)
    return packed_data


def decode(packed_data, custom_decoder=None):
    """ Decode a binary byte sequence into a structure containing toyrsa objects. May define a custom decoder for custom classes. """
    decoder = make_decoder(custom_decoder)
    structure = msgpack.unpackb(
        packed_data,
        ext_hook=decoder,
        raw=False,
        strict_map_key=False)
    return structure

# --- TESTS ---


def test_basic():
    x = [b'spam', u'egg']
    packed = msgpack.packb(x, use_bin_type=True)
    y = msgpack.unpackb(packed, raw=False)
    assert x == y


def test_bn():
    bn1, bn2 = Bn(1), Bn(2)
    big = Bn(3) ** 700
    test_data = [bn1, bn2, -bn1, -bn2, Bn(0), big]
    x = decode(encode(test_data))
    assert x == test_data
    assert all(isinstance(v, Bn) for v in x)


def test_keys():
    pub = PublicKey(3233, 17)
    priv = PrivateKey(3233, 2753, 61, 53)
    x = decode(encode([pub, priv]))
    assert x == [pub, priv]
    assert isinstance(x[0], PublicKey)
    assert isinstance(x[1], PrivateKey)
    assert isinstance(x[1].q, Bn)


def test_key_alone():
    priv = PrivateKey(3233, 2753, 61, 53)
    x = decode(encode(priv))
    assert isinstance(x, PrivateKey)
    assert x == priv


def test_enc_dec_dict():
    pub = PublicKey(3233, 17)
    test_data = {pub.n: [pub, u"public"]}
    x = decode(encode(test_data))
    assert x[Bn(3233)] == test_data[pub.n]


def test_enc_dec_custom():

    class CustomClass:
        def __eq__(self, other):
            return isinstance(other, CustomClass)

    def enc_CustomClass(obj):
        if isinstance(obj, CustomClass):
            return msgpack.ExtType(11, b'')
        raise TypeError("Unknown type: %r" % (obj,))

    def dec_CustomClass(code, data):
        if code == 11:
            return CustomClass()

        return msgpack.ExtType(code, data)

    pub = PublicKey(3233, 17)
    test_data = [pub, pub.e, CustomClass()]
    packed = encode(test_data, enc_CustomClass)
    x = decode(packed, dec_CustomClass)
    assert x == test_data


def test_streaming():
    pub = PublicKey(3233, 17)
    priv = PrivateKey(3233, 2753, 61, 53)
    data = encode(pub) + encode(priv)

    Up = msgpack.Unpacker(ext_hook=make_decoder(), raw=False)
    Up.feed(data)
    assert list(Up) == [pub, priv]


def test_plain_tuple():
    assert decode(encode((Bn(1), 2))) == [Bn(1), 2]


def test_bad_key_fields():
    for code, fields in [(1, [1, 2, 3]), (2, [1, 2]), (1, 5), (1, [u"n", 17])]:
        packed = msgpack.packb(msgpack.ExtType(code, msgpack.packb(fields)))
        with pytest.raises(ValueError):
            decode(packed)


def test_unknown_type():
    with pytest.raises(TypeError):
        encode([object()])


def test_register_twice():
    with pytest.raises(Exception) as excinfo:
        register_coders(Bn, 5, bn_enc, bn_dec)
    assert "already in use" in str(excinfo.value)
