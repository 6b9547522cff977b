from .base import BaseError, identifier_hex


class CodecError(BaseError):
    """
    Errors encoding or decoding framed byte streams.
    """


class FramingError(CodecError):
    """
    Malformed or truncated stream.
    """

    def __init__(self, message, offset):
        self.offset = offset
        super().__init__(f"{message} (at byte {offset})")


class TruncatedHeaderError(FramingError):

    def __init__(self, offset, expected, remaining):
        self.expected = expected
        self.remaining = remaining
        super().__init__(
            f"Record header needs {expected} bytes but only {remaining} remain.", offset
        )


class TruncatedPayloadError(FramingError):

    def __init__(self, offset, length, remaining):
        self.length = length
        self.remaining = remaining
        super().__init__(
            f"Record declares {length} payload bytes but only {remaining} remain.", offset
        )


class DuplicateIdentifierError(FramingError):
    """
    Keyed stream carries more than one record for the same identifier.
    """

    def __init__(self, offset, identifier):
        self.identifier = identifier
        super().__init__(f"Identifier '{identifier_hex(identifier)}' appears more than once.", offset)


class InvalidIdentifierError(CodecError, ValueError):

    def __init__(self, identifier, size):
        self.identifier = identifier
        self.size = size
        super().__init__(f"Identifier must be {size} raw bytes, got {identifier!r}.")


class KeyMaterialError(BaseError):
    """
    Errors converting, generating or using key material.
    """


class KeyEncodingError(KeyMaterialError):

    def __init__(self, kind, reason):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Cannot encode {kind}: {reason}")


class KeyDecodingError(KeyMaterialError):

    def __init__(self, kind, reason):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Cannot decode {kind}: {reason}")


class KeyGenerationError(KeyMaterialError):
    """
    Such as when the operating system entropy source is unavailable.
    """

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Failed to generate {kind} key pair.")


class KeyUnwrapError(KeyMaterialError):
    """
    Wrapped key is truncated, tampered with or was wrapped for another key.
    """

    def __init__(self):
        super().__init__("Wrapped key could not be unwrapped with this private key.")


class KeyFileExistsError(KeyMaterialError):
    """
    Generating keys would replace key files already on disk.
    """

    def __init__(self, paths):
        self.paths = paths
        super().__init__(
            f"Key files already exist, pass --overwrite-keys to replace them: {', '.join(paths)}"
        )


class EnvelopeError(BaseError):
    """
    Errors sealing or opening an envelope.
    """


class MalformedEnvelopeError(EnvelopeError):

    def __init__(self, components):
        self.components = components
        super().__init__(f"Envelope must have 3 components, found {components}.")


class InvalidSignatureError(EnvelopeError):

    def __init__(self):
        super().__init__("Envelope signature is invalid.")


class RecipientNotFoundError(EnvelopeError):

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"No wrapped key for recipient '{identifier_hex(identifier)}' in envelope.")


class DuplicateRecipientError(EnvelopeError):

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"More than one recipient maps to identifier '{identifier_hex(identifier)}'.")


class NoRecipientsError(EnvelopeError):

    def __init__(self):
        super().__init__("At least one recipient is required.")


class DecryptionError(EnvelopeError):

    def __init__(self):
        super().__init__("Envelope content failed authenticated decryption.")


class ConfigurationError(BaseError):
    """
    Configuration errors.
    """


class ConfigReadError(ConfigurationError):
    """
    When starting with explicitly provided config file path but file doesn't exist.
    """

    def __init__(self, path):
        self.path = path
        super().__init__(f"Cannot find provided configuration file '{path}'.")


class ConfigParseError(ConfigurationError):
    """
    When starting with explicitly provided config file path but file fails to parse.
    """

    def __init__(self, path):
        self.path = path
        super().__init__(f"Failed to parse the configuration file '{path}'.")


class UnsupportedConfigFormatError(ConfigurationError):

    def __init__(self, path, extensions):
        self.path = path
        self.extensions = extensions
        super().__init__(
            f"Configuration file '{path}' must be YAML ({', '.join(extensions)})."
        )


class InvalidSettingError(ConfigurationError, ValueError):

    def __init__(self, setting, reason):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Setting '{setting}' {reason}.")
