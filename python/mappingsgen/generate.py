"""
Write every output of one generation run: the srg/tsrg pair matrix, the merged tiny
table and the json summary.
"""
import json
import logging
from os import PathLike
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from .mappings import Mappings, mapping_matrix
from .srg import srg_lines
from .tiny import TinyMappings
from .tsrg import from_srg, to_tsrg

logger = logging.getLogger(__name__)

def short_name(name: str) -> str:
    return name.rsplit('.', 1)[-1]

def _member_name(member) -> str:
    return f"{short_name(member.declaring_class.name)}.{member.name}"

def json_summary(version: str, named_mappings: Sequence[Tuple[str, Mappings]]) -> dict:
    """
    Group the names of every obfuscated symbol across namespaces.

    Each class becomes ``{"obf": "a", "srg": "Block", ...}`` and each member
    ``{"obf": "a.b", "srg": "Block.field_1", ...}``, all using short names.
    """
    classes: Dict[object, Dict[str, str]] = {}
    fields: Dict[object, Dict[str, str]] = {}
    methods: Dict[object, Dict[str, str]] = {}
    for namespace, mappings in named_mappings:
        logger.info("%s: generating json for %s", version, namespace)
        for original, renamed in mappings.classes.items():
            classes.setdefault(original, {"obf": short_name(original.name)})[namespace] = short_name(renamed.name)
        for original, renamed in mappings.fields.items():
            fields.setdefault(original, {"obf": _member_name(original)})[namespace] = _member_name(renamed)
        for original, renamed in mappings.methods.items():
            methods.setdefault(original, {"obf": _member_name(original)})[namespace] = _member_name(renamed)
    return {
        "minecraftVersion": version,
        "classes": list(classes.values()),
        "fields": list(fields.values()),
        "methods": list(methods.values()),
    }

def merge_tiny(named_mappings: Sequence[Tuple[str, Mappings]]) -> TinyMappings:
    tiny = TinyMappings()
    for namespace, mappings in named_mappings:
        tiny.add_mappings(namespace, mappings)
    return tiny

def _write_lines(path: Path, lines: List[str]):
    with open(path, "w", encoding="utf-8") as output:
        for line in lines:
            output.write(line)
            output.write("\n")

def write_version(
    mappings_folder: Union[str, PathLike],
    version: str,
    named_mappings: Sequence[Tuple[str, Mappings]]
) -> Path:
    """
    Write all the mappings of a version into ``<mappings_folder>/<version>/``.

    named_mappings are (namespace, obf->namespace mappings) pairs, in declaration order.
    Each file is fully rendered before it's opened for writing.
    """
    output_folder = Path(mappings_folder, version)
    output_folder.mkdir(parents=True, exist_ok=True)

    for file_name, mappings in mapping_matrix(named_mappings):
        lines = srg_lines(mappings.strip_duplicates())
        logger.info("%s: writing mappings to %s.srg", version, file_name)
        _write_lines(output_folder / f"{file_name}.srg", lines)
        tsrg = to_tsrg(from_srg(lines))
        logger.info("%s: writing mappings to %s.tsrg", version, file_name)
        _write_lines(output_folder / f"{file_name}.tsrg", tsrg)

    tiny = merge_tiny(named_mappings)
    tiny_lines = tiny.to_lines()
    logger.info("%s: writing tiny mappings to %s.tiny", version, version)
    _write_lines(output_folder / f"{version}.tiny", tiny_lines)

    summary = json.dumps(json_summary(version, named_mappings))
    (output_folder / f"{version}.json").write_text(summary, encoding="utf-8")
    return output_folder
