"""Unit tests for the binary mappings cache."""

from pathlib import Path

import pytest

from mappingsgen.cache import CacheDecoder, CacheError, MappingsCache, encode_cache
from mappingsgen.mappings import Mappings


def _populated(mappings: Mappings) -> MappingsCache:
    cache = MappingsCache()
    cache.names["mcp-fields"] = {"field_1_c": "hardness"}
    cache.mappings["srg"] = mappings
    return cache


@pytest.mark.parametrize("compression", ["lz4-block", ""])
def test_save_then_load(tmp_path: Path, obf2srg: Mappings, compression: str) -> None:
    path = tmp_path / "cache" / "mappings.bin"

    _populated(obf2srg).save(path, compression)
    loaded = MappingsCache.load(path)

    assert loaded.names == {"mcp-fields": {"field_1_c": "hardness"}}
    assert loaded.mappings == {"srg": obf2srg}


def test_document_holds_names_and_mappings(obf2srg: Mappings) -> None:
    document = _populated(obf2srg).to_document()

    assert sorted(document) == ["mappings", "names"]


def test_missing_file_gives_empty_cache(tmp_path: Path) -> None:
    cache = MappingsCache.load(tmp_path / "missing.bin")

    assert cache.names == {}
    assert cache.mappings == {}


def test_get_mappings_loads_once(obf2srg: Mappings) -> None:
    cache = MappingsCache()
    calls = []

    def loader() -> Mappings:
        calls.append(1)
        return obf2srg

    assert cache.get_mappings("srg", loader) is obf2srg
    assert cache.get_mappings("srg", loader) is obf2srg
    assert len(calls) == 1


def test_decoder_reads_header() -> None:
    data = encode_cache({"names": {}}, compression="")

    assert data.startswith(b"mappingsgen cache\0\0\0\0\x01\0\0")
    assert CacheDecoder(data).decode() == {"names": {}}


@pytest.mark.parametrize(
    "data",
    [
        b"no terminator",
        b"other cache\0\0\0\0\x01\0\0",
        b"mappingsgen cache\0\0\0\0\x02\0\0",
        b"mappingsgen cache\0\0\0",
        b"mappingsgen cache\0\0\0\0\x01\0\x03zip",
        b"mappingsgen cache\0\0\0\0\x01\0\x09lz4-block\xff\xff",
    ],
)
def test_decoder_rejects_invalid_data(data: bytes) -> None:
    with pytest.raises(CacheError):
        CacheDecoder(data).decode()


def test_unknown_compression_is_rejected() -> None:
    with pytest.raises(CacheError):
        encode_cache({}, compression="zstd")


def test_invalid_cached_mappings(tmp_path: Path) -> None:
    path = tmp_path / "mappings.bin"
    path.write_bytes(encode_cache({"mappings": {"srg": {"classes": [["a"]]}}}))

    with pytest.raises(CacheError):
        MappingsCache.load(path)
