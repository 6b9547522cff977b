""" Generation, canonical byte form and signatures for encryption and signing keys. """
import typing
import logging
from hashlib import sha256

import ecdsa
from ecdsa.der import UnexpectedDER
from ecdsa.keys import MalformedPointError, BadSignatureError
from ecdsa.curves import UnknownCurveError
from ecdsa.util import sigencode_der, sigdecode_der
from coincurve import PrivateKey, PublicKey

from mpenc.error import (
    KeyEncodingError, KeyDecodingError, KeyGenerationError, InvalidSignatureError
)

log = logging.getLogger(__name__)

PRIVATE_ENCRYPTION_KEY = 'private encryption key'
PUBLIC_ENCRYPTION_KEY = 'public encryption key'
PRIVATE_SIGNING_KEY = 'private signing key'
PUBLIC_SIGNING_KEY = 'public signing key'

SIGNING_CURVE = ecdsa.SECP256k1
SECRET_SIZE = 32
PUBKEY_SIZE = 33

_DER_ERRORS = (UnexpectedDER, MalformedPointError, UnknownCurveError, ValueError)


def generate_encryption_pair() -> typing.Tuple[PrivateKey, PublicKey]:
    try:
        private_key = PrivateKey()
    except (OSError, NotImplementedError) as e:
        raise KeyGenerationError('encryption') from e
    return private_key, private_key.public_key


def generate_signing_pair() -> typing.Tuple[ecdsa.SigningKey, ecdsa.VerifyingKey]:
    try:
        private_key = ecdsa.SigningKey.generate(curve=SIGNING_CURVE, hashfunc=sha256)
    except (OSError, NotImplementedError) as e:
        raise KeyGenerationError('signing') from e
    return private_key, private_key.get_verifying_key()


def _require_bytes(kind, data):
    if not isinstance(data, (bytes, bytearray)):
        raise KeyDecodingError(kind, 'key must be raw bytes')
    if not data:
        raise KeyDecodingError(kind, 'no key data')


def encode_private_encryption_key(private_key: PrivateKey) -> bytes:
    """ Return the secret scalar as 32 big-endian bytes. """
    if not isinstance(private_key, PrivateKey):
        raise KeyEncodingError(PRIVATE_ENCRYPTION_KEY, f'expected coincurve PrivateKey, got {type(private_key)}')
    secret = private_key.secret
    if len(secret) != SECRET_SIZE:
        raise KeyEncodingError(PRIVATE_ENCRYPTION_KEY, 'secret is not 32 bytes')
    return secret


def decode_private_encryption_key(data: bytes) -> PrivateKey:
    _require_bytes(PRIVATE_ENCRYPTION_KEY, data)
    if len(data) != SECRET_SIZE:
        raise KeyDecodingError(PRIVATE_ENCRYPTION_KEY, f'private key must be 32 bytes, got {len(data)}')
    try:
        return PrivateKey(bytes(data))
    except ValueError as e:
        raise KeyDecodingError(PRIVATE_ENCRYPTION_KEY, str(e)) from e


def encode_public_encryption_key(public_key: PublicKey) -> bytes:
    """ Return the compressed 33 byte SEC1 point. """
    if not isinstance(public_key, PublicKey):
        raise KeyEncodingError(PUBLIC_ENCRYPTION_KEY, f'expected coincurve PublicKey, got {type(public_key)}')
    try:
        return public_key.format(compressed=True)
    except ValueError as e:
        raise KeyEncodingError(PUBLIC_ENCRYPTION_KEY, str(e)) from e


def decode_public_encryption_key(data: bytes) -> PublicKey:
    _require_bytes(PUBLIC_ENCRYPTION_KEY, data)
    if len(data) != PUBKEY_SIZE:
        raise KeyDecodingError(PUBLIC_ENCRYPTION_KEY, f'pubkey must be 33 bytes, got {len(data)}')
    if data[0] not in (2, 3):
        raise KeyDecodingError(PUBLIC_ENCRYPTION_KEY, 'invalid pubkey prefix byte')
    try:
        return PublicKey(bytes(data))
    except ValueError as e:
        raise KeyDecodingError(PUBLIC_ENCRYPTION_KEY, str(e)) from e


def encode_private_signing_key(private_key: ecdsa.SigningKey) -> bytes:
    if not isinstance(private_key, ecdsa.SigningKey):
        raise KeyEncodingError(PRIVATE_SIGNING_KEY, f'expected ecdsa SigningKey, got {type(private_key)}')
    try:
        return private_key.to_der()
    except (ValueError, UnknownCurveError) as e:
        raise KeyEncodingError(PRIVATE_SIGNING_KEY, str(e)) from e


def decode_private_signing_key(data: bytes) -> ecdsa.SigningKey:
    _require_bytes(PRIVATE_SIGNING_KEY, data)
    try:
        private_key = ecdsa.SigningKey.from_der(bytes(data), hashfunc=sha256)
    except _DER_ERRORS as e:
        raise KeyDecodingError(PRIVATE_SIGNING_KEY, str(e)) from e
    if private_key.curve != SIGNING_CURVE:
        raise KeyDecodingError(PRIVATE_SIGNING_KEY, f'unsupported curve {private_key.curve.name}')
    return private_key


def encode_public_signing_key(public_key: ecdsa.VerifyingKey) -> bytes:
    if not isinstance(public_key, ecdsa.VerifyingKey):
        raise KeyEncodingError(PUBLIC_SIGNING_KEY, f'expected ecdsa VerifyingKey, got {type(public_key)}')
    try:
        return public_key.to_der()
    except (ValueError, UnknownCurveError) as e:
        raise KeyEncodingError(PUBLIC_SIGNING_KEY, str(e)) from e


def decode_public_signing_key(data: bytes) -> ecdsa.VerifyingKey:
    _require_bytes(PUBLIC_SIGNING_KEY, data)
    try:
        public_key = ecdsa.VerifyingKey.from_der(bytes(data), hashfunc=sha256)
    except _DER_ERRORS as e:
        raise KeyDecodingError(PUBLIC_SIGNING_KEY, str(e)) from e
    if public_key.curve != SIGNING_CURVE:
        raise KeyDecodingError(PUBLIC_SIGNING_KEY, f'unsupported curve {public_key.curve.name}')
    return public_key


def sign(private_key: ecdsa.SigningKey, data: bytes) -> bytes:
    """ Deterministic (RFC 6979) DER encoded ECDSA signature over SHA-256 of data. """
    return private_key.sign_deterministic(data, hashfunc=sha256, sigencode=sigencode_der)


def verify(public_key: ecdsa.VerifyingKey, signature: bytes, data: bytes):
    try:
        public_key.verify(signature, data, hashfunc=sha256, sigdecode=sigdecode_der)
    except (BadSignatureError, UnexpectedDER) as e:
        log.debug("signature verification failed: %s", e)
        raise InvalidSignatureError() from e
