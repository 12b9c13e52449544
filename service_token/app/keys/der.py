"""
Minimal DER writer for wrapping bare private keys in PKCS#8.

Only the handful of constructs needed for the PrivateKeyInfo envelope are
implemented. Inner key bytes are copied verbatim and never parsed.
"""

TAG_INTEGER = 0x02
TAG_OCTET_STRING = 0x04
TAG_SEQUENCE = 0x30

# INTEGER 0 (PrivateKeyInfo version)
VERSION_ZERO = bytes([TAG_INTEGER, 0x01, 0x00])

# SEQUENCE { OID 1.2.840.10045.2.1 (id-ecPublicKey), OID 1.2.840.10045.3.1.7 (prime256v1) }
EC_P256_ALGORITHM_IDENTIFIER = bytes([
    0x30, 0x13,
    0x06, 0x07, 0x2A, 0x86, 0x48, 0xCE, 0x3D, 0x02, 0x01,
    0x06, 0x08, 0x2A, 0x86, 0x48, 0xCE, 0x3D, 0x03, 0x01, 0x07,
])

# SEQUENCE { OID 1.2.840.113549.1.1.1 (rsaEncryption), NULL }
RSA_ALGORITHM_IDENTIFIER = bytes([
    0x30, 0x0D,
    0x06, 0x09, 0x2A, 0x86, 0x48, 0x86, 0xF7, 0x0D, 0x01, 0x01, 0x01,
    0x05, 0x00,
])


def encode_length(length: int) -> bytes:
    """Encode a DER length in short form (< 128) or long form."""
    if length < 0:
        raise ValueError(f"DER length cannot be negative: {length}")
    if length < 0x80:
        return bytes([length])
    num_bytes = (length.bit_length() + 7) // 8
    return bytes([0x80 | num_bytes]) + length.to_bytes(num_bytes, "big")


def encode_tlv(tag: int, value: bytes) -> bytes:
    return bytes([tag]) + encode_length(len(value)) + value


def octet_string(content: bytes) -> bytes:
    return encode_tlv(TAG_OCTET_STRING, content)


def sequence(*elements: bytes) -> bytes:
    return encode_tlv(TAG_SEQUENCE, b"".join(elements))


def wrap_pkcs8(algorithm_identifier: bytes, private_key: bytes) -> bytes:
    """Build ``PrivateKeyInfo`` around an already-encoded private key."""
    return sequence(VERSION_ZERO, algorithm_identifier, octet_string(private_key))


def sec1_to_pkcs8(sec1_key: bytes) -> bytes:
    """Rewrap a SEC1 ``ECPrivateKey`` (P-256) as PKCS#8."""
    return wrap_pkcs8(EC_P256_ALGORITHM_IDENTIFIER, sec1_key)


def pkcs1_to_pkcs8(pkcs1_key: bytes) -> bytes:
    """Rewrap a PKCS#1 ``RSAPrivateKey`` as PKCS#8."""
    return wrap_pkcs8(RSA_ALGORITHM_IDENTIFIER, pkcs1_key)
