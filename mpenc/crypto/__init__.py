from .keys import (
    generate_encryption_pair, generate_signing_pair,
    encode_private_encryption_key, decode_private_encryption_key,
    encode_public_encryption_key, decode_public_encryption_key,
    encode_private_signing_key, decode_private_signing_key,
    encode_public_signing_key, decode_public_signing_key,
    sign, verify
)
from .ecies import wrap_key, unwrap_key
