"""
Binary cache of upstream metadata and parsed mappings.

The file starts with a null-terminated header, a u32 version and the name of the
compression ('' or 'lz4-block'), followed by a msgpack document.
A cache belongs to a single generation run and is loaded and saved explicitly.
"""
import logging
import os
from typing import Callable, Dict

import msgpack
from lz4.block import compress as lz4_compress, decompress as lz4_decompress, LZ4BlockError

from . import FieldData, JavaClass, MethodData, MethodSignature, MappingsError
from .mappings import Mappings

logger = logging.getLogger(__name__)

HEADER = "mappingsgen cache"
VERSION = 1
COMPRESSIONS = ("", "lz4-block")

class CacheError(MappingsError):
    pass

def encode_mappings(mappings: Mappings) -> dict:
    return {
        "classes": [
            [original.internal_name, renamed.internal_name]
            for original, renamed in mappings.classes.items()
        ],
        "fields": [
            [original.declaring_class.internal_name, original.name,
             renamed.declaring_class.internal_name, renamed.name]
            for original, renamed in mappings.fields.items()
        ],
        "methods": [
            [original.declaring_class.internal_name, original.name, original.signature.descriptor,
             renamed.declaring_class.internal_name, renamed.name, renamed.signature.descriptor]
            for original, renamed in mappings.methods.items()
        ],
    }

def decode_mappings(data: dict) -> Mappings:
    try:
        classes = [(JavaClass(original), JavaClass(renamed)) for original, renamed in data["classes"]]
        fields = [
            (FieldData(JavaClass(original_class), original_name), FieldData(JavaClass(renamed_class), renamed_name))
            for original_class, original_name, renamed_class, renamed_name in data["fields"]
        ]
        methods = [
            (
                MethodData(JavaClass(original_class), original_name, MethodSignature.parse(original_sig)),
                MethodData(JavaClass(renamed_class), renamed_name, MethodSignature.parse(renamed_sig))
            )
            for original_class, original_name, original_sig, renamed_class, renamed_name, renamed_sig
            in data["methods"]
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise CacheError(f"Invalid cached mappings: {e}") from e
    return Mappings(classes, methods, fields)

class CacheDecoder:
    """Decoder for the binary cache container"""
    __slots__ = "data", "data_view", "index"
    def __init__(self, data):
        # NOTE: We are forced to read everything into memory by the lz4 implementation
        assert isinstance(data, (bytes, bytearray)), f"Unexpected data: {repr(data)}"
        self.data = data
        # NOTE: Taking a memoryview allows O(1) slicing, which would otherwise imply a copy
        # However, we still need to keep the underlying bytes object for utilities like 'index'
        self.data_view = memoryview(data)
        self.index = 0

    def _take(self, amount) -> memoryview:
        old_index = self.index
        end_index = old_index + amount
        if end_index > len(self.data):
            raise CacheError("Insufficent data!")
        self.index = end_index
        return self.data_view[old_index:end_index]

    def read_uint(self, amount):
        return int.from_bytes(self._take(amount), 'big')

    def read_string(self):
        length = self.read_uint(2)
        try:
            return str(self._take(length), 'utf-8')
        except UnicodeError as e:
            raise CacheError(f"Invalid {length} byte string!") from e

    def read_u32(self):
        return self.read_uint(4)

    def read_nullterm(self):
        try:
            end = self.data.index(b'\0', self.index)
            result = str(self.data_view[self.index:end], 'utf-8')
        except (ValueError, UnicodeError) as e:
            raise CacheError("Unable to read null terminated string!") from e
        self.index = end + 1  # Jump one past the null terminator
        return result

    def decode(self) -> dict:
        try:
            header = self.read_nullterm()
        except CacheError as e:
            raise CacheError("Invalid header!") from e.__cause__
        if header != HEADER:
            raise CacheError(f"Unexpected header: {header}")
        version = self.read_u32()
        if version != VERSION:
            raise CacheError(f"Unexpected version: {version}")
        compression = self.read_string()
        payload = self.data_view[self.index:]
        if compression == "":
            # Continue to treat uncompressed data as-is
            pass
        elif compression == "lz4-block":
            try:
                payload = lz4_decompress(payload)
            except (LZ4BlockError, ValueError) as e:
                raise CacheError("Corrupt lz4 data") from e
        else:
            raise CacheError(f"Unsupported compression: {compression}")
        try:
            result = msgpack.unpackb(payload, raw=False)
        except (ValueError, msgpack.UnpackException) as e:
            raise CacheError("Corrupt cache payload") from e
        if not isinstance(result, dict):
            raise CacheError(f"Unexpected payload: {type(result)}")
        return result

def encode_cache(document: dict, compression="lz4-block") -> bytes:
    if compression not in COMPRESSIONS:
        raise CacheError(f"Unsupported compression: {compression}")
    payload = msgpack.packb(document, use_bin_type=True)
    if compression == "lz4-block":
        payload = lz4_compress(payload)
    encoded_compression = compression.encode('utf-8')
    return b"".join((
        HEADER.encode('utf-8'), b'\0',
        VERSION.to_bytes(4, 'big'),
        len(encoded_compression).to_bytes(2, 'big'), encoded_compression,
        payload
    ))

class MappingsCache:
    """
    Everything a generation run remembers between invocations.

    names holds plain name tables (like mcp's fields and methods) and
    mappings holds already parsed mappings by key.
    """
    __slots__ = "names", "mappings"
    names: Dict[str, Dict[str, str]]
    mappings: Dict[str, Mappings]
    def __init__(self):
        self.names = {}
        self.mappings = {}

    def get_mappings(self, key: str, loader: Callable[[], Mappings]) -> Mappings:
        try:
            return self.mappings[key]
        except KeyError:
            pass
        result = loader()
        self.mappings[key] = result
        return result

    def to_document(self) -> dict:
        return {
            "names": self.names,
            "mappings": {key: encode_mappings(value) for key, value in self.mappings.items()},
        }

    @staticmethod
    def from_document(document: dict) -> "MappingsCache":
        cache = MappingsCache()
        cache.names = {key: dict(value) for key, value in document.get("names", {}).items()}
        cache.mappings = {key: decode_mappings(value) for key, value in document.get("mappings", {}).items()}
        return cache

    @staticmethod
    def load(path) -> "MappingsCache":
        """Load the cache at path, or return an empty cache if there isn't one"""
        if not os.path.exists(path):
            logger.info("No cache at %s, starting fresh", path)
            return MappingsCache()
        logger.info("Reading cache %s", path)
        with open(path, 'rb') as f:
            data = f.read()
        return MappingsCache.from_document(CacheDecoder(data).decode())

    def save(self, path, compression="lz4-block"):
        data = encode_cache(self.to_document(), compression)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)
