"""
Merge several obf->namespace mappings into one multi-namespace tiny (v1) table.

Every entry is keyed by its obfuscated identity and carries one name per namespace.
"""
import logging
from abc import ABCMeta, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from . import (
    UNKNOWN_FIELD_DESCRIPTOR, DescriptorError, FieldData, JavaClass, JavaType,
    MalformedRecordError, MethodData, MethodSignature, remap_descriptor
)
from .mappings import BiMap, Mappings

logger = logging.getLogger(__name__)

TINY_HEADER = "v1"
OFFICIAL_NAMESPACE = "official"
# Yarn publishes its names under 'named'
NAMESPACE_LABELS = {"named": "yarn"}

class EntryMapping(metaclass=ABCMeta):
    __slots__ = "source", "names"
    source: str
    names: Dict[str, str]

    @property
    @abstractmethod
    def kind(self) -> str:
        pass

    @property
    @abstractmethod
    def columns(self) -> Tuple[str, ...]:
        """The identity columns that precede the per-namespace names"""

    def add(self, namespace: str, name: str) -> "EntryMapping":
        self.names[namespace] = name
        return self

    def get(self, namespace: str) -> Optional[str]:
        return self.names.get(namespace)

    def to_line(self, namespaces: Iterable[str]) -> str:
        renamed = (self.names.get(namespace, self.source) for namespace in namespaces)
        line = "\t".join((self.kind, *self.columns, *renamed))
        return line.replace('.', '/')

class ClassEntry(EntryMapping):
    __slots__ = ()
    def __init__(self, source, names=None):
        self.source = source
        self.names = names if names is not None else {}

    @property
    def kind(self):
        return "CLASS"

    @property
    def columns(self):
        return self.source,

    def __repr__(self):
        return f"ClassEntry({self.source!r}, {self.names!r})"

class MemberEntry(EntryMapping):
    __slots__ = "source_class", "desc"
    source_class: str
    desc: str
    def __init__(self, source_class, source, desc, names=None):
        self.source_class = source_class
        self.source = source
        self.desc = desc
        self.names = names if names is not None else {}

    @property
    def columns(self):
        return self.source_class, self.desc, self.source

    def __repr__(self):
        return f"{type(self).__name__}({self.source_class!r}, {self.source!r}, {self.desc!r}, {self.names!r})"

class FieldEntry(MemberEntry):
    __slots__ = ()

    @property
    def kind(self):
        return "FIELD"

class MethodEntry(MemberEntry):
    __slots__ = ()

    @property
    def kind(self):
        return "METHOD"

class TinyMappings:
    __slots__ = "namespaces", "classes", "fields", "methods"
    namespaces: List[str]
    classes: Dict[str, ClassEntry]
    fields: Dict[Tuple[str, str, str], FieldEntry]
    methods: Dict[Tuple[str, str, str], MethodEntry]
    def __init__(self, namespaces=()):
        self.namespaces = list(namespaces)
        self.classes = {}
        self.fields = {}
        self.methods = {}

    def get_class(self, source: str) -> ClassEntry:
        try:
            return self.classes[source]
        except KeyError:
            entry = ClassEntry(source)
            self.classes[source] = entry
            return entry

    def get_field(self, source_class: str, source: str, desc: str) -> FieldEntry:
        key = source_class, source, desc
        try:
            return self.fields[key]
        except KeyError:
            entry = FieldEntry(source_class, source, desc)
            self.fields[key] = entry
            return entry

    def get_method(self, source_class: str, source: str, desc: str) -> MethodEntry:
        key = source_class, source, desc
        try:
            return self.methods[key]
        except KeyError:
            entry = MethodEntry(source_class, source, desc)
            self.methods[key] = entry
            return entry

    def add_mappings(self, namespace: str, mappings: Mappings):
        """Record the target names of obf->namespace mappings under the namespace"""
        if namespace in self.namespaces:
            raise ValueError(f"Duplicate namespace: {namespace}")
        self.namespaces.append(namespace)
        logger.info("tiny: starting conversion for %s", namespace)
        for original, renamed in mappings.classes.items():
            self.get_class(original.internal_name).add(namespace, renamed.internal_name)
        for original, renamed in mappings.fields.items():
            # NOTE: Field types aren't part of our mappings, so every field shares the placeholder
            self.get_field(
                original.declaring_class.internal_name,
                original.name,
                UNKNOWN_FIELD_DESCRIPTOR
            ).add(namespace, renamed.name)
        for original, renamed in mappings.methods.items():
            self.get_method(
                original.declaring_class.internal_name,
                original.name,
                original.signature.descriptor
            ).add(namespace, renamed.name)

    @property
    def entries(self) -> Iterable[EntryMapping]:
        yield from self.classes.values()
        yield from self.fields.values()
        yield from self.methods.values()

    def to_lines(self) -> List[str]:
        header = "\t".join((TINY_HEADER, OFFICIAL_NAMESPACE, *self.namespaces))
        lines = [header]
        lines.extend(entry.to_line(self.namespaces) for entry in self.entries)
        return lines

    @staticmethod
    def parse(lines: Iterable[str]) -> "TinyMappings":
        """Parse tiny v1, whose first column is always the official (obfuscated) namespace"""
        result: Optional[TinyMappings] = None
        for line_number, line in enumerate(lines, start=1):
            line = line.rstrip("\r\n")
            if not line or line.startswith("#"):
                continue
            parts = line.split("\t")
            if result is None:
                if len(parts) < 2 or parts[0] != TINY_HEADER or parts[1] != OFFICIAL_NAMESPACE:
                    raise MalformedRecordError(
                        f"Expected a tiny v1 header starting with the {OFFICIAL_NAMESPACE} namespace",
                        line_number, line
                    )
                result = TinyMappings(parts[2:])
                continue
            kind = parts[0]
            if kind == "CLASS":
                if len(parts) < 2 or not parts[1]:
                    raise MalformedRecordError("Missing class name", line_number, line)
                entry = result.get_class(parts[1])
                names = parts[2:]
            elif kind in ("FIELD", "METHOD"):
                if len(parts) < 4:
                    raise MalformedRecordError(f"Expected at least 4 columns for {kind}", line_number, line)
                if not parts[1] or not parts[3]:
                    raise MalformedRecordError(f"Missing owner or name for {kind}", line_number, line)
                lookup = result.get_field if kind == "FIELD" else result.get_method
                entry = lookup(parts[1], parts[3], parts[2])
                names = parts[4:]
            else:
                raise MalformedRecordError(f"Unknown entry kind {repr(kind)}", line_number, line)
            if len(names) > len(result.namespaces):
                raise MalformedRecordError("More names than namespaces", line_number, line)
            # Columns holding the source name are the fallback for a missing name
            for namespace, name in zip(result.namespaces, names):
                if name and name != entry.source:
                    entry.add(namespace, name)
        if result is None:
            raise MalformedRecordError("Missing tiny header")
        return result

    def to_mappings(self, namespace: str) -> Mappings:
        """
        Rebuild the obf->namespace mappings from the entries that have a name in it.

        Member owners and signatures are renamed through the class table.
        Entries with descriptors we can't parse are skipped with a warning.
        """
        class_names: Dict[str, str] = {}
        for entry in self.classes.values():
            if namespace in entry.names:
                class_names[entry.source] = entry.names[namespace].replace('.', '/')
        classes = BiMap(
            (JavaClass(original), JavaClass(renamed)) for original, renamed in class_names.items()
        )
        fields = []
        for entry in self.fields.values():
            if namespace not in entry.names:
                continue
            try:
                if entry.desc != UNKNOWN_FIELD_DESCRIPTOR:
                    JavaType.parse(entry.desc)
                original = FieldData(JavaClass(entry.source_class), entry.source)
            except DescriptorError as e:
                logger.warning("Skipping field %s/%s: %s", entry.source_class, entry.source, e)
                continue
            renamed_class = JavaClass(class_names.get(entry.source_class, entry.source_class))
            fields.append((original, FieldData(renamed_class, entry.names[namespace])))
        methods = []
        for entry in self.methods.values():
            if namespace not in entry.names:
                continue
            try:
                signature = MethodSignature.parse(entry.desc)
                renamed_signature = MethodSignature.parse(remap_descriptor(entry.desc, class_names))
            except DescriptorError as e:
                logger.warning("Skipping method %s/%s: %s", entry.source_class, entry.source, e)
                continue
            original = MethodData(JavaClass(entry.source_class), entry.source, signature)
            renamed_class = JavaClass(class_names.get(entry.source_class, entry.source_class))
            renamed = MethodData(renamed_class, entry.names[namespace], renamed_signature)
            methods.append((original, renamed))
        return Mappings(classes, methods, fields)

    def to_all_mappings(self) -> Dict[str, Mappings]:
        result = {}
        for namespace in self.namespaces:
            mappings = self.to_mappings(namespace)
            label = NAMESPACE_LABELS.get(namespace, namespace)
            logger.info(
                "tiny %s: parsed class=%d field=%d method=%d",
                label, len(mappings.classes), len(mappings.fields), len(mappings.methods)
            )
            result[label] = mappings
        return result
