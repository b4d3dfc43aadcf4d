import dataclasses

import pytest

from wasmhost.config import Config, bswap16, bswap32, bswap64, detect_arch


def test_defaults_match_documented_limits():
    cfg = Config()
    assert cfg.code_page_align_size == 4096
    assert cfg.max_function_stack_height == 2000
    assert cfg.max_function_slots == 4000
    assert cfg.max_constant_table_size == 120
    assert cfg.profiler_slot_mask == 0xFFFF
    assert cfg.fixed_heap is None
    assert cfg.has_float is True
    assert cfg.log_native_stack is False


def test_replace_keeps_other_fields():
    cfg = dataclasses.replace(Config(), max_function_stack_height=64, code_page_align_size=1024)
    assert cfg.max_function_stack_height == 64
    assert cfg.code_page_align_size == 1024
    assert cfg.max_function_slots == Config().max_function_slots


def test_config_is_frozen():
    cfg = Config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.has_float = False  # type: ignore[misc]
    assert cfg.has_float is True


@pytest.mark.parametrize("align", [0, 3, 1000, -4096])
def test_bad_alignment_rejected(align):
    with pytest.raises(ValueError):
        Config(code_page_align_size=align)


def test_bad_fixed_heap_rejected():
    with pytest.raises(ValueError):
        Config(fixed_heap=0)


@pytest.mark.parametrize(
    "machine, expected",
    [
        ("x86_64", "x86_64"),
        ("AMD64", "x86_64"),
        ("i686", "i386"),
        ("aarch64", "arm64-v8a"),
        ("arm64", "arm64-v8a"),
        ("armv6l", "arm"),
        ("ppc64le", "ppc64le"),
        ("s390x", "s390x"),
        ("wasm32", "wasm"),
        ("something-odd", "unknown"),
    ],
)
def test_detect_arch(machine, expected):
    assert detect_arch(machine) == expected


def test_detect_arch_host_is_known_name():
    assert detect_arch() == detect_arch(None)
    assert isinstance(detect_arch(), str) and detect_arch() != ""


@pytest.mark.parametrize("data", [b"\x12\x34", b"\x00\xff", b"\xab\xcd"])
def test_bswap16_reverses_bytes(data):
    assert bswap16(int.from_bytes(data, "big")) == int.from_bytes(data, "little")


@pytest.mark.parametrize("data", [b"\x11\x22\x33\x44", b"\x00\x00\x00\x01", b"\xde\xad\xbe\xef"])
def test_bswap32_reverses_bytes(data):
    assert bswap32(int.from_bytes(data, "big")) == int.from_bytes(data, "little")


@pytest.mark.parametrize("data", [bytes(range(8)), b"\xff" + b"\x00" * 7])
def test_bswap64_reverses_bytes(data):
    assert bswap64(int.from_bytes(data, "big")) == int.from_bytes(data, "little")


@pytest.mark.parametrize("x", [0, 1, 0x7FFF, 0xFFFF, 0x1234])
def test_bswap16_round_trip(x):
    assert bswap16(bswap16(x)) == x


@pytest.mark.parametrize("x", [0, 0xFFFFFFFF, 0x01020304, 0x80000000])
def test_bswap32_round_trip(x):
    assert bswap32(bswap32(x)) == x


@pytest.mark.parametrize("x", [0, 2**64 - 1, 0x0102030405060708])
def test_bswap64_round_trip(x):
    assert bswap64(bswap64(x)) == x