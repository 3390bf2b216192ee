import sys
from pathlib import Path

import pytest


def _add_src_to_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "python"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


_add_src_to_path()

from mappingsgen import FieldData, JavaClass, MethodData, MethodSignature  # noqa: E402
from mappingsgen.mappings import Mappings  # noqa: E402


def _method(owner: JavaClass, name: str, descriptor: str) -> MethodData:
    return MethodData(owner, name, MethodSignature.parse(descriptor))


@pytest.fixture
def obf2srg() -> Mappings:
    a, b = JavaClass("a"), JavaClass("b")
    block = JavaClass("net/minecraft/block/Block")
    world = JavaClass("net/minecraft/world/World")
    return Mappings(
        classes={a: block, b: world},
        fields={FieldData(a, "c"): FieldData(block, "field_1_c")},
        methods={
            _method(a, "d", "(Lb;I)La;"): _method(
                block, "func_2_d", "(Lnet/minecraft/world/World;I)Lnet/minecraft/block/Block;"
            ),
        },
    )


@pytest.fixture
def obf2spigot() -> Mappings:
    a, b = JavaClass("a"), JavaClass("b")
    block = JavaClass("net/minecraft/server/BlockBase")
    world = JavaClass("net/minecraft/server/World")
    return Mappings(
        classes={a: block, b: world},
        fields={FieldData(a, "c"): FieldData(block, "strength")},
        methods={
            _method(a, "d", "(Lb;I)La;"): _method(
                block, "getType", "(Lnet/minecraft/server/World;I)Lnet/minecraft/server/BlockBase;"
            ),
        },
    )
