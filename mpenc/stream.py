import io
import struct
import typing
import logging

from mpenc.error import (
    TruncatedHeaderError, TruncatedPayloadError, DuplicateIdentifierError, InvalidIdentifierError
)

log = logging.getLogger(__name__)

IDENTIFIER_SIZE = 4
LENGTH_SIZE = 8
KEYED_HEADER_SIZE = IDENTIFIER_SIZE + LENGTH_SIZE


def check_identifier(identifier) -> bytes:
    if not isinstance(identifier, (bytes, bytearray)) or len(identifier) != IDENTIFIER_SIZE:
        raise InvalidIdentifierError(identifier, IDENTIFIER_SIZE)
    return bytes(identifier)


class DataStream:
    """ Reader/writer for length prefixed records over an in-memory buffer. """

    length = struct.Struct('>Q')

    def __init__(self, data=None):
        self.data = io.BytesIO(data)
        self.size = len(data) if data is not None else 0

    def reset(self):
        self.data.seek(0)

    def get_bytes(self) -> bytes:
        return self.data.getvalue()

    def tell(self) -> int:
        return self.data.tell()

    @property
    def remaining(self) -> int:
        return self.size - self.data.tell()

    @property
    def at_end(self) -> bool:
        return self.remaining == 0

    def read(self, size: int) -> bytes:
        remaining = self.remaining
        if size > remaining:
            raise TruncatedPayloadError(self.tell(), size, remaining)
        return self.data.read(size)

    def write(self, data: bytes):
        self.data.write(data)
        self.size = max(self.size, self.data.tell())

    def skip(self, size: int):
        self.data.seek(size, io.SEEK_CUR)

    def _require_header(self, size: int):
        remaining = self.remaining
        if remaining < size:
            raise TruncatedHeaderError(self.tell(), size, remaining)

    def _read_length(self) -> int:
        length = self.length.unpack(self.read(self.length.size))[0]
        remaining = self.remaining
        if length > remaining:
            raise TruncatedPayloadError(self.tell(), length, remaining)
        return length

    def write_length(self, size: int):
        self.write(self.length.pack(size))

    def read_identifier(self) -> bytes:
        self._require_header(IDENTIFIER_SIZE)
        return self.read(IDENTIFIER_SIZE)

    def write_identifier(self, identifier: bytes):
        self.write(check_identifier(identifier))

    def read_blob(self) -> bytes:
        self._require_header(LENGTH_SIZE)
        return self.read(self._read_length())

    def write_blob(self, blob: bytes):
        if not isinstance(blob, (bytes, bytearray)):
            raise TypeError('blob must be raw bytes')
        self.write_length(len(blob))
        self.write(blob)

    def read_keyed_header(self) -> typing.Tuple[bytes, int]:
        """ Read the identifier and payload length of the next keyed record. """
        self._require_header(KEYED_HEADER_SIZE)
        identifier = self.read_identifier()
        return identifier, self._read_length()

    def read_keyed_blob(self) -> typing.Tuple[bytes, bytes]:
        identifier, length = self.read_keyed_header()
        return identifier, self.read(length)

    def write_keyed_blob(self, identifier: bytes, blob: bytes):
        self.write_identifier(identifier)
        self.write_blob(blob)


def merge_bytes(blobs: typing.Iterable[bytes]) -> bytes:
    """
    Frame an ordered sequence of blobs into one stream, each blob prefixed
    with its length as an 8 byte big-endian unsigned integer.
    """
    stream = DataStream()
    for blob in blobs:
        stream.write_blob(blob)
    return stream.get_bytes()


def iter_split_bytes(data: bytes) -> typing.Iterator[bytes]:
    stream = DataStream(data)
    while not stream.at_end:
        yield stream.read_blob()


def split_bytes(data: bytes) -> typing.List[bytes]:
    """
    Recover the exact sequence of blobs framed by `merge_bytes`.

    Raises a `FramingError` if the stream is truncated or carries trailing
    bytes that do not form a complete record.
    """
    return list(iter_split_bytes(data))


def encode_map(mapping: typing.Mapping[bytes, bytes]) -> bytes:
    """
    Frame a mapping of 4 byte identifiers to blobs. Records are written in
    the mapping's iteration order, which carries no meaning on decode.
    """
    stream = DataStream()
    for identifier, blob in mapping.items():
        stream.write_keyed_blob(identifier, blob)
    return stream.get_bytes()


def iter_map_records(data: bytes) -> typing.Iterator[typing.Tuple[bytes, bytes]]:
    stream = DataStream(data)
    while not stream.at_end:
        yield stream.read_keyed_blob()


def decode_map(data: bytes) -> typing.Dict[bytes, bytes]:
    """
    Materialize every record of a keyed stream. A stream repeating an
    identifier is rejected rather than resolved in favor of either record.
    """
    result = {}
    stream = DataStream(data)
    while not stream.at_end:
        offset = stream.tell()
        identifier, blob = stream.read_keyed_blob()
        if identifier in result:
            raise DuplicateIdentifierError(offset, identifier)
        result[identifier] = blob
    return result


def get_from_map_key(target: bytes, data: bytes) -> typing.Optional[bytes]:
    """
    Scan a keyed stream for `target` and return its blob, or None when no
    record carries it. Payloads of other records are skipped, not copied,
    and scanning stops at the first match.
    """
    target = check_identifier(target)
    stream = DataStream(data)
    scanned = 0
    while not stream.at_end:
        identifier, length = stream.read_keyed_header()
        if identifier == target:
            return stream.read(length)
        stream.skip(length)
        scanned += 1
    log.debug("identifier %s not found in %i records", target.hex(), scanned)
    return None
