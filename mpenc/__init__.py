__version__ = "0.1.0"
from mpenc.stream import (
    DataStream, merge_bytes, split_bytes, iter_split_bytes,
    encode_map, decode_map, iter_map_records, get_from_map_key
)
