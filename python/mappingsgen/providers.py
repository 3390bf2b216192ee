"""
Readers for the mappings each upstream source publishes.

Every reader takes an already downloaded file and returns parsed Mappings,
fetching the files is left to the caller.
"""
import csv
import gzip
import io
import logging
import zipfile
from os import PathLike
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

from . import FieldData, MethodData
from .mappings import Mappings
from .srg import CompactSrgMappingsDecoder, SrgMappingsDecoder
from .tiny import TinyMappings
from .tsrg import classes_to_mappings, parse_tsrg

logger = logging.getLogger(__name__)

PathType = Union[str, PathLike]

def _read_lines(path: PathType) -> List[str]:
    path = Path(path)
    if path.suffix == ".gz":
        with gzip.open(path, "rt", encoding="utf-8") as f:
            return f.read().splitlines()
    return path.read_text(encoding="utf-8").splitlines()

def read_srg(path: PathType) -> Mappings:
    logger.info("Reading srg mappings from %s", path)
    return SrgMappingsDecoder(_read_lines(path)).decode()

def read_csrg(path: PathType) -> Mappings:
    logger.info("Reading compact srg mappings from %s", path)
    return CompactSrgMappingsDecoder(_read_lines(path)).decode()

def read_tsrg(path: PathType) -> Mappings:
    logger.info("Reading tsrg mappings from %s", path)
    return classes_to_mappings(parse_tsrg(_read_lines(path)))

def read_tiny(path: PathType) -> Dict[str, Mappings]:
    """Read tiny v1 (optionally gzipped), one Mappings per namespace"""
    logger.info("Reading tiny mappings from %s", path)
    return TinyMappings.parse(_read_lines(path)).to_all_mappings()

def _parse_names(rows: Iterable[List[str]]) -> Dict[str, str]:
    rows = iter(rows)
    next(rows, None)  # Column definitions
    return {row[0]: row[1] for row in rows if len(row) >= 2}

def read_mcp_names(path: PathType) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Read the srg -> mcp name tables from fields.csv and methods.csv.

    path may be the exported zip or a directory holding both files.
    """
    path = Path(path)
    tables = {}
    if path.is_dir():
        for name in ("fields.csv", "methods.csv"):
            with open(path / name, newline="", encoding="utf-8") as f:
                tables[name] = _parse_names(csv.reader(f))
    else:
        with zipfile.ZipFile(path) as archive:
            for name in ("fields.csv", "methods.csv"):
                with archive.open(name) as raw:
                    tables[name] = _parse_names(csv.reader(io.TextIOWrapper(raw, encoding="utf-8", newline="")))
    field_names, method_names = tables["fields.csv"], tables["methods.csv"]
    if not field_names or not method_names:
        raise ValueError(f"Unable to locate mcp names in {path}")
    return field_names, method_names

def mcp_mappings(obf2srg: Mappings, field_names: Dict[str, str], method_names: Dict[str, str]) -> Mappings:
    """Rename the srg members of obf->srg mappings to their mcp names, giving obf->mcp"""
    def rename_method(method: MethodData) -> str:
        return method_names.get(method.name, method.name)
    def rename_field(field: FieldData) -> str:
        return field_names.get(field.name, field.name)
    return obf2srg.transform(rename_method=rename_method, rename_field=rename_field)

_READERS = {
    ".srg": read_srg,
    ".csrg": read_csrg,
    ".tsrg": read_tsrg,
}

def read_mappings(path: PathType, namespace: str) -> Mappings:
    """Pick a reader by file suffix; for tiny files namespace selects the column"""
    name = Path(path).name
    if name.endswith((".tiny", ".tiny.gz")):
        by_namespace = read_tiny(path)
        try:
            return by_namespace[namespace]
        except KeyError:
            raise ValueError(f"No {namespace} namespace in {path}: {sorted(by_namespace)}") from None
    try:
        reader = _READERS[Path(path).suffix]
    except KeyError:
        raise ValueError(f"Unknown mappings format: {path}") from None
    return reader(path)
