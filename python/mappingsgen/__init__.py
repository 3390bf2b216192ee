from typing import Callable, Mapping, Tuple
from abc import ABCMeta, abstractmethod
from enum import Enum, unique
from sys import intern
import re

UNKNOWN_FIELD_DESCRIPTOR = "Lunk;"

class MappingsError(Exception):
    pass

class MalformedRecordError(MappingsError, ValueError):
    """A record with the wrong shape, optionally pointing at the offending line"""
    def __init__(self, message, line_number=None, line=None):
        if line_number is not None:
            message = f"Parse error on line {line_number}: {message}\n{line}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line

class UnresolvedReferenceError(MalformedRecordError):
    pass

class AmbiguousRenameError(MappingsError, ValueError):
    pass

class DescriptorError(MappingsError, ValueError):
    pass

class JavaType(metaclass=ABCMeta):
    @property
    @abstractmethod
    def descriptor(self) -> str:
        pass

    @abstractmethod
    def map_class(self, func: Callable[["JavaClass"], "JavaClass"]) -> "JavaType":
        pass

    def __repr__(self):
        return f"JavaType.parse({repr(self.descriptor)})"

    @staticmethod
    def parse(text) -> "JavaType":
        value, actual_length = JavaType.partially_parse_descriptor(text)
        if actual_length < len(text):
            raise DescriptorError(f"Unexpected trailing {repr(text[actual_length:])}: {text}")
        return value

    @staticmethod
    def partially_parse_descriptor(text) -> Tuple["JavaType", int]:
        try:
            first_char = text[0]
        except IndexError:
            raise DescriptorError("Empty descriptor!") from None
        if first_char == 'L':
            end = text.find(";")
            if end < 0:
                raise DescriptorError(f"Missing ending semicolon for class descriptor: {text}")
            if end == 1:
                raise DescriptorError(f"Empty class name: {text}")
            return JavaClass(text[1:end]), end + 1
        elif first_char == '[':
            element_descriptor = text.lstrip("[")
            dimensions = len(text) - len(element_descriptor)
            element_type, element_size = JavaType.partially_parse_descriptor(element_descriptor)
            if element_type == VOID:
                raise DescriptorError(f"Void array: {text}")
            return JavaArray(dimensions, element_type), dimensions + element_size
        else:
            try:
                return JavaPrimitive(PrimitiveType(first_char)), 1
            except ValueError:
                raise DescriptorError(f"Invalid descriptor: {text}") from None

class JavaArray(JavaType):
    __slots__ = "dimensions", "element_type"
    def __init__(self, dimensions, element_type):
        assert dimensions >= 1
        assert not isinstance(element_type, JavaArray)
        self.dimensions = dimensions
        self.element_type = element_type

    def __eq__(self, other):
        if isinstance(other, JavaArray):
            return self.element_type == other.element_type and self.dimensions == other.dimensions
        elif isinstance(other, JavaType):
            return False
        else:
            return NotImplemented

    def __hash__(self):
        return hash(self.element_type) + self.dimensions

    def map_class(self, func):
        element_type = self.element_type.map_class(func)
        if element_type is self.element_type:
            return self
        return JavaArray(self.dimensions, element_type)

    @property
    def descriptor(self):
        return ("[" * self.dimensions) + self.element_type.descriptor

@unique
class PrimitiveType(Enum):
    BYTE = 'B'
    SHORT = 'S'
    INT = 'I'
    LONG = 'J'
    FLOAT = 'F'
    DOUBLE = 'D'
    CHAR = 'C'
    BOOLEAN = 'Z'
    VOID = 'V'

    @property
    def descriptor(self):
        return self.value

class JavaPrimitive(JavaType):
    __slots__ = "primitive",
    def __init__(self, primitive):
        assert isinstance(primitive, PrimitiveType)
        self.primitive = primitive

    def __hash__(self):
        return hash(self.primitive)

    def __eq__(self, other):
        if isinstance(other, JavaPrimitive):
            return self.primitive == other.primitive
        elif isinstance(other, JavaType):
            return False
        else:
            return NotImplemented

    def map_class(self, func):
        return self  # Primitives are never renamed

    @property
    def descriptor(self):
        return self.primitive.descriptor

VOID = JavaPrimitive(PrimitiveType.VOID)

class JavaClass(JavaType):
    __slots__ = "internal_name",
    def __init__(self, internal_name):
        assert internal_name, "Empty class name"
        # Accept both 'java.lang.String' and 'java/lang/String'
        self.internal_name = intern(internal_name.replace('.', '/'))

    def __hash__(self):
        return hash(self.internal_name)

    def __eq__(self, other):
        if isinstance(other, JavaClass):
            return self.internal_name == other.internal_name
        elif isinstance(other, JavaType):
            return False
        else:
            return NotImplemented

    def __repr__(self):
        return f"JavaClass({repr(self.internal_name)})"

    def map_class(self, func):
        return func(self)

    @property
    def name(self) -> str:
        return self.internal_name.replace('/', '.')

    @property
    def descriptor(self):
        return f"L{self.internal_name};"

class MethodSignature:
    __slots__ = "descriptor", "return_type", "parameter_types"
    descriptor: str
    return_type: JavaType
    parameter_types: Tuple[JavaType, ...]
    def __init__(self, return_type, parameter_types, descriptor=None):
        parameter_types = tuple(parameter_types)
        if descriptor is None:
            descriptor_parts = ["("]
            for parameter in parameter_types:
                assert parameter != VOID, "Void parameter"
                descriptor_parts.append(parameter.descriptor)
            descriptor_parts.append(")")
            descriptor_parts.append(return_type.descriptor)
            descriptor = "".join(descriptor_parts)
        self.descriptor = intern(descriptor) # NOTE: Intern descriptors too
        self.return_type = return_type
        self.parameter_types = parameter_types

    def __hash__(self):
        return hash(self.descriptor)

    def __eq__(self, other):
        if isinstance(other, MethodSignature):
            return self.descriptor == other.descriptor
        return NotImplemented

    def __repr__(self):
        return f"MethodSignature.parse({repr(self.descriptor)})"

    def map_class(self, func: Callable[["JavaClass"], "JavaClass"]) -> "MethodSignature":
        return MethodSignature(
            self.return_type.map_class(func),
            (parameter.map_class(func) for parameter in self.parameter_types)
        )

    @staticmethod
    def parse(descriptor):
        if not descriptor or descriptor[0] != '(':
            raise DescriptorError(f"Missing opening paren: {descriptor}")
        parameter_end = descriptor.find(')')
        if parameter_end < 0:
            raise DescriptorError(f"Missing closing paren: {descriptor}")
        index = 1
        parameter_types = []
        while index < parameter_end:
            parameter_type, size = JavaType.partially_parse_descriptor(descriptor[index:parameter_end])
            if parameter_type == VOID:
                raise DescriptorError(f"Void parameter #{len(parameter_types)}: {descriptor}")
            parameter_types.append(parameter_type)
            index += size
        return_type = JavaType.parse(descriptor[parameter_end + 1:])
        return MethodSignature(return_type, parameter_types, descriptor)

class MethodData:
    __slots__ = "declaring_class", "name", "signature"
    declaring_class: JavaClass
    name: str
    signature: MethodSignature
    def __init__(self, declaring_class, name, signature):
        assert type(declaring_class) is JavaClass, f"Unexpected class: {repr(declaring_class)}"
        assert type(signature) is MethodSignature, f"Unexpected signature: {repr(signature)}"
        self.declaring_class = declaring_class
        self.name = intern(name)
        self.signature = signature

    def __eq__(self, other):
        if isinstance(other, MethodData):
            return self.declaring_class.internal_name == other.declaring_class.internal_name \
                and self.name == other.name \
                and self.signature.descriptor == other.signature.descriptor
        else:
            return NotImplemented

    def __hash__(self):
        return hash((self.declaring_class.internal_name, self.name, self.signature.descriptor))

    def __repr__(self):
        return f"MethodData({self.internal_name}{self.signature.descriptor})"

    def with_name(self, name) -> "MethodData":
        return MethodData(self.declaring_class, name, self.signature)

    def map_class(self, func) -> "MethodData":
        return MethodData(func(self.declaring_class), self.name, self.signature.map_class(func))

    @property
    def internal_name(self):
        return f"{self.declaring_class.internal_name}/{self.name}"

class FieldData:
    __slots__ = "declaring_class", "name"
    declaring_class: JavaClass
    name: str
    def __init__(self, declaring_class, name):
        assert type(declaring_class) is JavaClass, f"Unexpected class: {repr(declaring_class)}"
        self.declaring_class = declaring_class
        self.name = intern(name)

    def __eq__(self, other):
        if isinstance(other, FieldData):
            return other.declaring_class.internal_name == self.declaring_class.internal_name and self.name == other.name
        else:
            return NotImplemented

    def __hash__(self):
        return hash((self.declaring_class.internal_name, self.name))

    def __repr__(self):
        return f"FieldData({self.internal_name})"

    def with_name(self, name) -> "FieldData":
        return FieldData(self.declaring_class, name)

    def map_class(self, func) -> "FieldData":
        return FieldData(func(self.declaring_class), self.name)

    @property
    def internal_name(self):
        return f"{self.declaring_class.internal_name}/{self.name}"

_CLASS_REFERENCE = re.compile(r"L([^;]+);")

def remap_descriptor(descriptor: str, class_names: Mapping[str, str]) -> str:
    """
    Substitute every embedded ``L<name>;`` reference found in class_names.

    Names are internal ('/' separated). References missing from the table are
    kept as-is, so partially mapped inner classes survive.
    """
    if not class_names:
        return descriptor
    def replace(match):
        original = match.group(1)
        return f"L{class_names.get(original, original)};"
    return _CLASS_REFERENCE.sub(replace, descriptor)

def split_member(text) -> Tuple[str, str]:
    """Split 'owner/member' on the last '/'"""
    index = text.rfind('/')
    if index <= 0:
        raise MalformedRecordError(f"Expected owner/member: {repr(text)}")
    return text[:index], text[index + 1:]

from .mappings import BiMap, Mappings, MappingsBuilder, mapping_matrix
