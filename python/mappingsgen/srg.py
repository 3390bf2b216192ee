from io import StringIO, TextIOBase
from typing import Iterable, List

from . import (
    FieldData, JavaClass, MalformedRecordError, MethodData, MethodSignature, split_member
)
from .mappings import Mappings, MappingsBuilder

class SrgMappingsEncoder:
    __slots__ = "output",
    def __init__(self, output: TextIOBase):
        self.output = output

    def encode(self, mappings: Mappings):
        output = self.output
        for original, renamed in mappings.classes.items():
            output.write("CL: ")
            output.write(original.internal_name)
            output.write(" ")
            output.write(renamed.internal_name)
            output.write("\n")
        for original, renamed in mappings.fields.items():
            output.write("FD: ")
            output.write(original.internal_name)
            output.write(" ")
            output.write(renamed.internal_name)
            output.write("\n")
        for original, renamed in mappings.methods.items():
            output.write("MD: ")
            output.write(original.internal_name)
            output.write(' ')
            output.write(original.signature.descriptor)
            output.write(' ')
            output.write(renamed.internal_name)
            output.write(' ')
            output.write(renamed.signature.descriptor)
            output.write('\n')

def srg_lines(mappings: Mappings) -> List[str]:
    """The SRG lines of the mappings, sorted so the output is reproducible"""
    buffer = StringIO()
    SrgMappingsEncoder(buffer).encode(mappings)
    return sorted(line for line in buffer.getvalue().split("\n") if line)

class SrgMappingsDecoder:
    """Decoder for flat SRG ('CL:', 'FD:', 'MD:' and ignored 'PK:' lines)"""
    __slots__ = "lines",
    def __init__(self, lines: Iterable[str]):
        self.lines = lines

    def decode(self) -> Mappings:
        classes = []
        fields = []
        methods = []
        for line_number, line in enumerate(self.lines, start=1):
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue
            kind = line[:4]
            parts = line[4:].split()
            try:
                if kind == "PK: ":
                    continue
                elif kind == "CL: ":
                    if len(parts) != 2:
                        raise MalformedRecordError("Expected 2 parts for class", line_number, line)
                    classes.append((JavaClass(parts[0]), JavaClass(parts[1])))
                elif kind == "FD: ":
                    if len(parts) != 2:
                        raise MalformedRecordError("Expected 2 parts for field", line_number, line)
                    original_class, original_name = split_member(parts[0])
                    renamed_class, renamed_name = split_member(parts[1])
                    fields.append((
                        FieldData(JavaClass(original_class), original_name),
                        FieldData(JavaClass(renamed_class), renamed_name)
                    ))
                elif kind == "MD: ":
                    if len(parts) != 4:
                        raise MalformedRecordError("Expected 4 parts for method", line_number, line)
                    original_class, original_name = split_member(parts[0])
                    renamed_class, renamed_name = split_member(parts[2])
                    methods.append((
                        MethodData(JavaClass(original_class), original_name, MethodSignature.parse(parts[1])),
                        MethodData(JavaClass(renamed_class), renamed_name, MethodSignature.parse(parts[3]))
                    ))
                else:
                    raise MalformedRecordError(f"Unknown record type {repr(kind)}", line_number, line)
            except MalformedRecordError as e:
                if e.line_number is None:
                    raise MalformedRecordError(str(e), line_number, line) from e
                raise
            except ValueError as e:
                raise MalformedRecordError(str(e), line_number, line) from e
        return Mappings(classes, methods, fields)

class CompactSrgMappingsDecoder:
    """
    Decoder for compact SRG, as used by spigot's build data.

    Only the original names of members are written out,
    so the renamed owners and signatures come from the class lines.
    """
    __slots__ = "lines",
    def __init__(self, lines: Iterable[str]):
        self.lines = lines

    def decode(self) -> Mappings:
        builder = MappingsBuilder()
        for line_number, line in enumerate(self.lines, start=1):
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue
            parts = line.split()
            try:
                if len(parts) == 2:
                    builder.classes[JavaClass(parts[0])] = JavaClass(parts[1])
                elif len(parts) == 3:
                    field = FieldData(JavaClass(parts[0]), parts[1])
                    builder.field_names[field] = parts[2]
                elif len(parts) == 4:
                    method = MethodData(JavaClass(parts[0]), parts[1], MethodSignature.parse(parts[2]))
                    builder.method_names[method] = parts[3]
                else:
                    raise MalformedRecordError(f"Unexpected {len(parts)} parts", line_number, line)
            except MalformedRecordError:
                raise
            except ValueError as e:
                raise MalformedRecordError(str(e), line_number, line) from e
        return builder.build()
