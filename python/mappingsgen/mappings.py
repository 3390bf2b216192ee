import logging
from collections import abc
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import AmbiguousRenameError, FieldData, JavaArray, JavaClass, JavaPrimitive, JavaType, MethodData

logger = logging.getLogger(__name__)

_MISSING = object()

class BiMap(abc.Mapping):
    """
    Read-only injective map.

    Every value has exactly one key, so the map can be inverted without loss.
    Any conflicting insertion raises AmbiguousRenameError instead of silently
    keeping one of the entries.
    """
    __slots__ = "_forward", "_inverse"
    def __init__(self, entries=()):
        self._forward = {}
        self._inverse = {}
        if isinstance(entries, abc.Mapping):
            entries = entries.items()
        for key, value in entries:
            self._put(key, value)

    def _put(self, key, value):
        existing = self._forward.get(key, _MISSING)
        if existing is not _MISSING:
            if existing == value:
                return
            raise AmbiguousRenameError(f"{key!r} is renamed to both {existing!r} and {value!r}")
        previous = self._inverse.get(value, _MISSING)
        if previous is not _MISSING:
            raise AmbiguousRenameError(f"{previous!r} and {key!r} are both renamed to {value!r}")
        self._forward[key] = value
        self._inverse[value] = key

    def __getitem__(self, key):
        return self._forward[key]

    def __iter__(self):
        return iter(self._forward)

    def __len__(self):
        return len(self._forward)

    def __repr__(self):
        return f"BiMap({self._forward!r})"

    def key_of(self, value, default=None):
        return self._inverse.get(value, default)

    def inverse(self) -> "BiMap":
        result = BiMap()
        result._forward = dict(self._inverse)
        result._inverse = dict(self._forward)
        return result

class Mappings:
    """
    A renaming from a source namespace to a target namespace.

    Classes, fields and methods are each kept in a BiMap, so two distinct
    source symbols can never share a target symbol within one category.
    Member targets carry their renamed owner and renamed signature.
    """
    __slots__ = "classes", "methods", "fields"
    classes: BiMap
    methods: BiMap
    fields: BiMap
    def __init__(self, classes=(), methods=(), fields=()):
        self.classes = classes if isinstance(classes, BiMap) else BiMap(classes)
        self.methods = methods if isinstance(methods, BiMap) else BiMap(methods)
        self.fields = fields if isinstance(fields, BiMap) else BiMap(fields)

    def __eq__(self, other):
        if isinstance(other, Mappings):
            return self.classes == other.classes \
                and self.methods == other.methods \
                and self.fields == other.fields
        return NotImplemented

    def __repr__(self):
        return f"Mappings(classes={len(self.classes)}, methods={len(self.methods)}, fields={len(self.fields)})"

    def _remap_class(self, original: JavaClass) -> JavaClass:
        return self.classes.get(original, original)

    def __getitem__(self, key):
        if isinstance(key, JavaType):
            if isinstance(key, JavaClass):
                # Lookup the remapped class, returning the original if missing
                return self.classes.get(key, key)
            elif isinstance(key, (JavaPrimitive, JavaArray)):
                return key.map_class(self._remap_class)
            else:
                raise TypeError(f"Unexpected JavaType: {repr(key)}")
        elif isinstance(key, MethodData):
            result = self.methods.get(key)
            if result is not None:
                return result
            # Unmapped methods keep their name, but their types still follow the classes
            return key.map_class(self._remap_class)
        elif isinstance(key, FieldData):
            result = self.fields.get(key)
            if result is not None:
                return result
            return key.map_class(self._remap_class)
        else:
            raise TypeError(f"Unexpected key type: {repr(key)}")

    def inverted(self) -> "Mappings":
        return Mappings(self.classes.inverse(), self.methods.inverse(), self.fields.inverse())

    @staticmethod
    def chain(*mappings: "Mappings") -> "Mappings":
        """
        Chain mappings that share intermediate namespaces, A->B then B->C giving A->C.

        Every entry of the first mappings is looked up in the next one. Entries the
        next mappings don't know about pass through under their current name.
        """
        if not mappings:
            raise ValueError("Nothing to chain")
        result = mappings[0]
        for second in mappings[1:]:
            result = Mappings(
                ((original, second[renamed]) for original, renamed in result.classes.items()),
                ((original, second[renamed]) for original, renamed in result.methods.items()),
                ((original, second[renamed]) for original, renamed in result.fields.items())
            )
        return result

    def transform(
        self,
        rename_class: Optional[Callable[[JavaClass], JavaClass]] = None,
        rename_method: Optional[Callable[[MethodData], str]] = None,
        rename_field: Optional[Callable[[FieldData], str]] = None
    ) -> "Mappings":
        """
        Rename the target side of these mappings, keeping the source side.

        rename_method and rename_field receive the current target member and return
        its new name. Member owners and signatures follow rename_class, which leaves
        them alone when it isn't given.
        """
        if rename_class is None:
            rename_class = _identity
        classes = ((original, rename_class(renamed)) for original, renamed in self.classes.items())
        methods = []
        for original, renamed in self.methods.items():
            name = rename_method(renamed) if rename_method is not None else renamed.name
            methods.append((original, renamed.map_class(rename_class).with_name(name)))
        fields = []
        for original, renamed in self.fields.items():
            name = rename_field(renamed) if rename_field is not None else renamed.name
            fields.append((original, renamed.map_class(rename_class).with_name(name)))
        return Mappings(classes, methods, fields)

    def strip_duplicates(self) -> "Mappings":
        """Drop the entries that don't actually rename anything"""
        return Mappings(
            ((original, renamed) for original, renamed in self.classes.items() if original != renamed),
            ((original, renamed) for original, renamed in self.methods.items() if original.name != renamed.name),
            ((original, renamed) for original, renamed in self.fields.items() if original.name != renamed.name)
        )

def _identity(value):
    return value

class MappingsBuilder:
    __slots__ = "classes", "method_names", "field_names"
    classes: Dict[JavaClass, JavaClass]
    method_names: Dict[MethodData, str]
    field_names: Dict[FieldData, str]
    def __init__(self):
        self.classes = {}
        self.method_names = {}
        self.field_names = {}

    def build(self) -> Mappings:
        classes = BiMap(self.classes)
        def remap_class(original):
            return classes.get(original, original)
        methods = (
            (original, original.map_class(remap_class).with_name(name))
            for original, name in self.method_names.items()
        )
        fields = (
            (original, original.map_class(remap_class).with_name(name))
            for original, name in self.field_names.items()
        )
        return Mappings(classes, methods, fields)

def mapping_matrix(named_mappings: Sequence[Tuple[str, Mappings]]) -> List[Tuple[str, Mappings]]:
    """
    Expand obf->namespace mappings into every pair of namespaces.

    For each namespace 'a' (in the given order) this yields 'obf2a', 'a2obf' and
    then 'a2b' for every other namespace 'b'.
    """
    inverted = [mappings.inverted() for _, mappings in named_mappings]
    result = []
    for index, (namespace, obf2a) in enumerate(named_mappings):
        a2obf = inverted[index]
        result.append((f"obf2{namespace}", obf2a))
        result.append((f"{namespace}2obf", a2obf))
        for other_index, (other, obf2b) in enumerate(named_mappings):
            if other_index != index:
                logger.debug("Chaining %s2obf with obf2%s", namespace, other)
                result.append((f"{namespace}2{other}", Mappings.chain(a2obf, obf2b)))
    return result
