"""Unit tests for writing the per-version output folder."""

import json
from pathlib import Path

from mappingsgen.generate import json_summary, short_name, write_version
from mappingsgen.mappings import Mappings
from mappingsgen.srg import srg_lines


def test_short_name_keeps_last_segment() -> None:
    assert short_name("net.minecraft.block.Block") == "Block"
    assert short_name("a") == "a"


def test_write_version_writes_every_pair(tmp_path: Path, obf2srg: Mappings, obf2spigot: Mappings) -> None:
    output_folder = write_version(tmp_path, "1.14", [("srg", obf2srg), ("spigot", obf2spigot)])

    assert output_folder == tmp_path / "1.14"
    expected = {"1.14.tiny", "1.14.json"}
    for pair in ("obf2srg", "srg2obf", "srg2spigot", "obf2spigot", "spigot2obf", "spigot2srg"):
        expected.update((f"{pair}.srg", f"{pair}.tsrg"))
    assert {path.name for path in output_folder.iterdir()} == expected
    obf2srg_text = (output_folder / "obf2srg.srg").read_text(encoding="utf-8")
    assert obf2srg_text == "\n".join(srg_lines(obf2srg)) + "\n"


def test_write_version_chains_namespaces(tmp_path: Path, obf2srg: Mappings, obf2spigot: Mappings) -> None:
    output_folder = write_version(tmp_path, "1.14", [("srg", obf2srg), ("spigot", obf2spigot)])

    srg2spigot = (output_folder / "srg2spigot.srg").read_text(encoding="utf-8").splitlines()
    assert (
        "MD: net/minecraft/block/Block/func_2_d (Lnet/minecraft/world/World;I)Lnet/minecraft/block/Block; "
        "net/minecraft/server/BlockBase/getType (Lnet/minecraft/server/World;I)Lnet/minecraft/server/BlockBase;"
    ) in srg2spigot
    spigot2srg = (output_folder / "spigot2srg.tsrg").read_text(encoding="utf-8").splitlines()
    assert spigot2srg[:3] == [
        "net/minecraft/server/BlockBase net/minecraft/block/Block",
        "\tstrength field_1_c",
        "\tgetType (Lnet/minecraft/server/World;I)Lnet/minecraft/server/BlockBase; func_2_d",
    ]


def test_write_version_merges_tiny(tmp_path: Path, obf2srg: Mappings, obf2spigot: Mappings) -> None:
    output_folder = write_version(tmp_path, "1.14", [("srg", obf2srg), ("spigot", obf2spigot)])

    tiny = (output_folder / "1.14.tiny").read_text(encoding="utf-8").splitlines()
    assert tiny[0] == "v1\tofficial\tsrg\tspigot"
    assert "FIELD\ta\tLunk;\tc\tfield_1_c\tstrength" in tiny


def test_write_version_strips_identity_entries(tmp_path: Path, obf2srg: Mappings) -> None:
    identity = obf2srg.transform(rename_field=lambda field: "c")

    output_folder = write_version(tmp_path, "1.14", [("srg", identity)])

    assert not any(
        line.startswith("FD:") for line in (output_folder / "obf2srg.srg").read_text(encoding="utf-8").splitlines()
    )


def test_json_summary_groups_short_names(tmp_path: Path, obf2srg: Mappings, obf2spigot: Mappings) -> None:
    output_folder = write_version(tmp_path, "1.14", [("srg", obf2srg), ("spigot", obf2spigot)])

    summary = json.loads((output_folder / "1.14.json").read_text(encoding="utf-8"))

    assert summary == json_summary("1.14", [("srg", obf2srg), ("spigot", obf2spigot)])
    assert summary["minecraftVersion"] == "1.14"
    assert {"obf": "a", "srg": "Block", "spigot": "BlockBase"} in summary["classes"]
    assert summary["fields"] == [{"obf": "a.c", "srg": "Block.field_1_c", "spigot": "BlockBase.strength"}]
    assert summary["methods"] == [{"obf": "a.d", "srg": "Block.func_2_d", "spigot": "BlockBase.getType"}]
