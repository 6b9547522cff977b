import os
import typing
import hashlib
import logging

import ecdsa
from cryptography.exceptions import InvalidTag
from coincurve import PrivateKey, PublicKey

from mpenc.stream import merge_bytes, split_bytes, encode_map, decode_map, get_from_map_key, IDENTIFIER_SIZE
from mpenc.crypto.keys import sign, verify, encode_public_encryption_key
from mpenc.crypto.ecies import wrap_key, unwrap_key, aes_gcm_encrypt, aes_gcm_decrypt
from mpenc.error import (
    MalformedEnvelopeError, RecipientNotFoundError, DuplicateRecipientError,
    NoRecipientsError, DecryptionError
)

log = logging.getLogger(__name__)

CONTENT_KEY_SIZE = 32


def recipient_id(public_key: PublicKey) -> bytes:
    """ Return the recipient's identifier, the first 4 bytes of SHA-256 of its compressed public key. """
    return hashlib.sha256(encode_public_encryption_key(public_key)).digest()[:IDENTIFIER_SIZE]


def _split(envelope: bytes) -> typing.Tuple[bytes, bytes, bytes]:
    components = split_bytes(envelope)
    if len(components) != 3:
        raise MalformedEnvelopeError(len(components))
    ciphertext, keys, signature = components
    return ciphertext, keys, signature


def seal(plaintext: bytes, recipients: typing.Iterable[PublicKey], signing_key: ecdsa.SigningKey) -> bytes:
    """
    Encrypt plaintext once and make it recoverable by every recipient.

    The envelope frames three blobs: the content ciphertext, the keyed stream
    of per-recipient wrapped content keys and a signature over the first two.
    """
    content_key = os.urandom(CONTENT_KEY_SIZE)
    wrapped_keys = {}
    for public_key in recipients:
        identifier = recipient_id(public_key)
        if identifier in wrapped_keys:
            raise DuplicateRecipientError(identifier)
        wrapped_keys[identifier] = wrap_key(public_key, content_key)
    if not wrapped_keys:
        raise NoRecipientsError()
    ciphertext = aes_gcm_encrypt(content_key, plaintext)
    keys = encode_map(wrapped_keys)
    signature = sign(signing_key, merge_bytes([ciphertext, keys]))
    log.debug("sealed %i bytes for %i recipients", len(plaintext), len(wrapped_keys))
    return merge_bytes([ciphertext, keys, signature])


def open_envelope(envelope: bytes, private_key: PrivateKey, verifying_key: ecdsa.VerifyingKey) -> bytes:
    ciphertext, keys, signature = _split(envelope)
    verify(verifying_key, signature, merge_bytes([ciphertext, keys]))
    identifier = recipient_id(private_key.public_key)
    wrapped = get_from_map_key(identifier, keys)
    if wrapped is None:
        raise RecipientNotFoundError(identifier)
    content_key = unwrap_key(private_key, wrapped)
    try:
        plaintext = aes_gcm_decrypt(content_key, ciphertext)
    except InvalidTag as e:
        raise DecryptionError() from e
    log.debug("opened envelope for recipient %s", identifier.hex())
    return plaintext


def list_recipients(envelope: bytes) -> typing.List[bytes]:
    _, keys, _ = _split(envelope)
    return list(decode_map(keys))
