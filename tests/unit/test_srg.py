"""Unit tests for flat and compact SRG encoding and decoding."""

from io import StringIO

import pytest

from mappingsgen import FieldData, JavaClass, MalformedRecordError, MethodData, MethodSignature
from mappingsgen.mappings import Mappings
from mappingsgen.srg import CompactSrgMappingsDecoder, SrgMappingsDecoder, SrgMappingsEncoder, srg_lines


def test_srg_lines_are_sorted(obf2srg: Mappings) -> None:
    assert srg_lines(obf2srg) == [
        "CL: a net/minecraft/block/Block",
        "CL: b net/minecraft/world/World",
        "FD: a/c net/minecraft/block/Block/field_1_c",
        "MD: a/d (Lb;I)La; net/minecraft/block/Block/func_2_d "
        "(Lnet/minecraft/world/World;I)Lnet/minecraft/block/Block;",
    ]


def test_encoder_writes_one_line_per_entry(obf2srg: Mappings) -> None:
    output = StringIO()

    SrgMappingsEncoder(output).encode(obf2srg)

    assert output.getvalue().count("\n") == 4
    assert output.getvalue().startswith("CL: a net/minecraft/block/Block\n")


def test_decoder_round_trips_encoded_lines(obf2srg: Mappings) -> None:
    assert SrgMappingsDecoder(srg_lines(obf2srg)).decode() == obf2srg


def test_decoder_skips_packages_comments_and_blank_lines() -> None:
    lines = ["# joined.srg", "PK: ./ net/minecraft/src", "", "CL: a b\r\n"]

    mappings = SrgMappingsDecoder(lines).decode()

    assert dict(mappings.classes) == {JavaClass("a"): JavaClass("b")}


@pytest.mark.parametrize(
    "lines, line_number",
    [
        (["CL: a"], 1),
        (["CL: a b", "XX: a b"], 2),
        (["CL: a b", "FD: a/b"], 2),
        (["FD: ab cd"], 1),
        (["MD: a/b (V b/c ()V"], 1),
        (["MD: a/b (I)V b/c"], 1),
    ],
)
def test_decoder_reports_malformed_lines(lines, line_number) -> None:
    with pytest.raises(MalformedRecordError) as excinfo:
        SrgMappingsDecoder(lines).decode()

    assert excinfo.value.line_number == line_number


def test_compact_decoder_derives_member_targets() -> None:
    lines = [
        "a net/Block",
        "a c hardness",
        "a d (La;I)V getBlock",
    ]

    mappings = CompactSrgMappingsDecoder(lines).decode()

    block = JavaClass("net/Block")
    assert mappings.classes[JavaClass("a")] == block
    assert mappings.fields[FieldData(JavaClass("a"), "c")] == FieldData(block, "hardness")
    original = MethodData(JavaClass("a"), "d", MethodSignature.parse("(La;I)V"))
    assert mappings.methods[original] == MethodData(block, "getBlock", MethodSignature.parse("(Lnet/Block;I)V"))


def test_compact_decoder_rejects_wrong_part_count() -> None:
    with pytest.raises(MalformedRecordError) as excinfo:
        CompactSrgMappingsDecoder(["a b", "a b c d e"]).decode()

    assert excinfo.value.line_number == 2
