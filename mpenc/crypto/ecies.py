import os
import typing
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.backends import default_backend
from coincurve import PrivateKey, PublicKey

from mpenc.error import KeyUnwrapError

NONCE_SIZE = 12
TAG_SIZE = 16
EPHEMERAL_KEY_SIZE = 33
WRAP_INFO = b'mpenc ecies key wrap'


def derive_key(shared_secret: bytes, ephemeral_public_key: bytes) -> bytes:
    kdf = HKDF(
        algorithm=hashes.SHA256(), length=32, salt=None,
        info=WRAP_INFO + ephemeral_public_key, backend=default_backend()
    )
    return kdf.derive(shared_secret)


def aes_gcm_encrypt(key: bytes, plaintext: bytes, aad: typing.Optional[bytes] = None) -> bytes:
    nonce = os.urandom(NONCE_SIZE)
    return nonce + AESGCM(key).encrypt(nonce, plaintext, aad)


def aes_gcm_decrypt(key: bytes, data: bytes, aad: typing.Optional[bytes] = None) -> bytes:
    """ Raises InvalidTag if data is too short, altered or sealed under another key. """
    if len(data) < NONCE_SIZE + TAG_SIZE:
        raise InvalidTag()
    return AESGCM(key).decrypt(data[:NONCE_SIZE], data[NONCE_SIZE:], aad)


def wrap_key(public_key: PublicKey, key: bytes) -> bytes:
    """
    Encrypt a symmetric key for the holder of public_key:

        ephemeral public key (33) + nonce (12) + AES-256-GCM ciphertext and tag

    The AES key is HKDF-SHA256 of the ECDH secret between a fresh ephemeral
    key and the recipient, bound to the ephemeral public key.
    """
    ephemeral = PrivateKey()
    ephemeral_public_key = ephemeral.public_key.format(compressed=True)
    shared_secret = ephemeral.ecdh(public_key.format(compressed=True))
    return ephemeral_public_key + aes_gcm_encrypt(derive_key(shared_secret, ephemeral_public_key), key)


def unwrap_key(private_key: PrivateKey, wrapped: bytes) -> bytes:
    ephemeral_public_key, sealed = wrapped[:EPHEMERAL_KEY_SIZE], wrapped[EPHEMERAL_KEY_SIZE:]
    try:
        shared_secret = private_key.ecdh(ephemeral_public_key)
        return aes_gcm_decrypt(derive_key(shared_secret, ephemeral_public_key), sealed)
    except (ValueError, InvalidTag) as e:
        raise KeyUnwrapError() from e
