"""
The tree shaped TSRG format, and conversion between it and flat SRG.

A class line ``obf deobf`` is followed by indented member lines,
``obf deobf`` for fields and ``obf obfSignature deobf`` for methods.
"""
import logging
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from . import (
    DescriptorError, FieldData, JavaClass, MalformedRecordError, MethodData, MethodSignature,
    UnresolvedReferenceError, remap_descriptor, split_member
)
from .mappings import Mappings, MappingsBuilder

logger = logging.getLogger(__name__)

@dataclass
class TSrgField:
    obf: str
    deobf: str

    def __str__(self):
        return f"{self.obf} {self.deobf}"

@dataclass
class TSrgMethod:
    obf: str
    obf_sig: str
    deobf: str

    def __str__(self):
        return f"{self.obf} {self.obf_sig} {self.deobf}"

    def deobf_signature(self, class_names: Dict[str, str]) -> str:
        return remap_descriptor(self.obf_sig, class_names)

@dataclass
class TSrgClass:
    obf: str
    deobf: str
    fields: List[TSrgField] = field(default_factory=list)
    methods: List[TSrgMethod] = field(default_factory=list)

    def __str__(self):
        return f"{self.obf} {self.deobf}"

def parse_tsrg(lines: Iterable[str]) -> List[TSrgClass]:
    classes = []
    current_class: Optional[TSrgClass] = None
    for line_number, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        if line.startswith("#") or not line.strip():
            continue
        parts = line.split()
        if line[0] in "\t ":
            if current_class is None:
                raise UnresolvedReferenceError("Member without a class", line_number, line)
            if len(parts) == 2:
                current_class.fields.append(TSrgField(parts[0], parts[1]))
            elif len(parts) == 3:
                try:
                    MethodSignature.parse(parts[1])
                except DescriptorError as e:
                    raise MalformedRecordError(str(e), line_number, line) from e
                current_class.methods.append(TSrgMethod(parts[0], parts[1], parts[2]))
            else:
                raise MalformedRecordError(f"Expected 2 or 3 parts, got {len(parts)}", line_number, line)
        else:
            if len(parts) != 2:
                raise MalformedRecordError(f"Class definition has {len(parts)} parts", line_number, line)
            current_class = TSrgClass(parts[0], parts[1])
            classes.append(current_class)
    return classes

def _class_names(classes: Iterable[TSrgClass]) -> Dict[str, str]:
    return {clazz.obf: clazz.deobf for clazz in classes}

def to_srg(classes: List[TSrgClass]) -> List[str]:
    """Flatten the classes into sorted SRG lines"""
    class_names = _class_names(classes)
    output = []
    for clazz in classes:
        if clazz.obf != clazz.deobf:
            output.append(f"CL: {clazz.obf} {clazz.deobf}")
        for member in clazz.fields:
            output.append(f"FD: {clazz.obf}/{member.obf} {clazz.deobf}/{member.deobf}")
        for method in clazz.methods:
            deobf_sig = method.deobf_signature(class_names)
            output.append(
                f"MD: {clazz.obf}/{method.obf} {method.obf_sig} "
                f"{clazz.deobf}/{method.deobf} {deobf_sig}"
            )
    return sorted(line for line in output if line)

def _split_owner(text, line_number, line) -> Tuple[str, str]:
    try:
        return split_member(text)
    except MalformedRecordError:
        raise MalformedRecordError(f"Expected owner/member: {repr(text)}", line_number, line) from None

def from_srg(lines: Iterable[str]) -> List[TSrgClass]:
    """
    Group SRG lines back into TSRG classes.

    Members whose class hasn't been declared (yet) get a class synthesized for them,
    so any ordering of the lines is accepted.
    """
    classes: List[TSrgClass] = []
    by_obf: Dict[str, TSrgClass] = {}
    by_names: Dict[Tuple[str, str], TSrgClass] = {}

    def lookup(obf_class, deobf_class):
        try:
            return by_names[obf_class, deobf_class]
        except KeyError:
            clazz = TSrgClass(obf_class, deobf_class)
            classes.append(clazz)
            by_obf.setdefault(obf_class, clazz)
            by_names[obf_class, deobf_class] = clazz
            return clazz

    for line_number, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        kind = line[:4]
        parts = line[4:].split()
        if kind == "CL: ":
            if len(parts) != 2:
                raise MalformedRecordError("Expected 2 parts for class", line_number, line)
            obf, deobf = parts
            if obf not in by_obf:
                lookup(obf, deobf)
        elif kind == "FD: ":
            if len(parts) != 2:
                raise MalformedRecordError("Expected 2 parts for field", line_number, line)
            obf_class, obf = _split_owner(parts[0], line_number, line)
            deobf_class, deobf = _split_owner(parts[1], line_number, line)
            lookup(obf_class, deobf_class).fields.append(TSrgField(obf, deobf))
        elif kind == "MD: ":
            if len(parts) != 4:
                raise MalformedRecordError("Expected 4 parts for method", line_number, line)
            obf_class, obf = _split_owner(parts[0], line_number, line)
            deobf_class, deobf = _split_owner(parts[2], line_number, line)
            lookup(obf_class, deobf_class).methods.append(TSrgMethod(obf, parts[1], deobf))
        elif line.strip() and not line.startswith("#") and kind != "PK: ":
            raise MalformedRecordError(f"Unknown record type {repr(kind)}", line_number, line)
    return classes

def to_tsrg(classes: Iterable[TSrgClass]) -> List[str]:
    output = []
    for clazz in classes:
        output.append(str(clazz))
        for member in clazz.fields:
            output.append(f"\t{member}")
        for method in clazz.methods:
            output.append(f"\t{method}")
    return output

def classes_from_mappings(mappings: Mappings) -> List[TSrgClass]:
    """Group the mappings into TSRG classes, by original class"""
    classes: Dict[JavaClass, TSrgClass] = {}

    def lookup(original: JavaClass) -> TSrgClass:
        try:
            return classes[original]
        except KeyError:
            renamed = mappings[original]
            clazz = TSrgClass(original.internal_name, renamed.internal_name)
            classes[original] = clazz
            return clazz

    for original in mappings.classes:
        lookup(original)
    for original, renamed in mappings.fields.items():
        lookup(original.declaring_class).fields.append(TSrgField(original.name, renamed.name))
    for original, renamed in mappings.methods.items():
        lookup(original.declaring_class).methods.append(
            TSrgMethod(original.name, original.signature.descriptor, renamed.name)
        )
    return list(classes.values())

def classes_to_mappings(classes: Iterable[TSrgClass]) -> Mappings:
    builder = MappingsBuilder()
    for clazz in classes:
        original_class = JavaClass(clazz.obf)
        if clazz.obf != clazz.deobf:
            builder.classes[original_class] = JavaClass(clazz.deobf)
        for member in clazz.fields:
            builder.field_names[FieldData(original_class, member.obf)] = member.deobf
        for method in clazz.methods:
            original = MethodData(original_class, method.obf, MethodSignature.parse(method.obf_sig))
            builder.method_names[original] = method.deobf
    return builder.build()

def _read_lines(path: Union[str, PathLike]) -> List[str]:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Mappings file not found: {path}")
    return path.read_text(encoding="utf-8").splitlines()

def tsrg_file_to_srg(tsrg_file: Union[str, PathLike], srg_file: Union[str, PathLike]) -> List[TSrgClass]:
    classes = parse_tsrg(_read_lines(tsrg_file))
    lines = to_srg(classes)
    logger.info("Writing %d srg lines to %s", len(lines), srg_file)
    Path(srg_file).write_text("\n".join(lines), encoding="utf-8")
    return classes

def srg_file_to_tsrg(srg_file: Union[str, PathLike], tsrg_file: Union[str, PathLike]) -> List[TSrgClass]:
    classes = from_srg(_read_lines(srg_file))
    lines = to_tsrg(classes)
    logger.info("Writing %d tsrg classes to %s", len(classes), tsrg_file)
    Path(tsrg_file).write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return classes
