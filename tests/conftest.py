"""
Shared fixtures for ULog tests.

The library only decodes, so the byte layouts used by the tests are built
here by hand with struct.pack.
"""

import struct

import pytest


MAGIC = bytes([0x55, 0x4C, 0x6F, 0x67, 0x01, 0x12, 0x35])


class UlogBytes:
    """Builders for raw ULog byte sequences."""

    # Offset of the first record in a file built by file():
    # header (16) + flag bits record (3 + 19)
    FIRST_RECORD_OFFSET = 38

    @staticmethod
    def header(version: int = 1, timestamp: int = 0) -> bytes:
        return MAGIC + struct.pack("<BQ", version, timestamp)

    @staticmethod
    def record(tag: str, body: bytes, size: int = None) -> bytes:
        """[u16 size][u8 tag][body]; size defaults to len(body)."""
        if size is None:
            size = len(body)
        return struct.pack("<H", size) + tag.encode("ascii") + body

    @classmethod
    def flag_bits(
        cls,
        compat: bytes = bytes(8),
        incompat: bytes = bytes(8),
        offsets: bytes = bytes(3),
    ) -> bytes:
        return cls.record("B", compat + incompat + offsets)

    @classmethod
    def format(cls, text: str) -> bytes:
        return cls.record("F", text.encode("utf-8"))

    @classmethod
    def info(cls, key: str, value: bytes) -> bytes:
        k = key.encode("utf-8")
        return cls.record("I", bytes([len(k)]) + k + value)

    @classmethod
    def info_multiple(cls, key: str, value: bytes, continued: int = 0) -> bytes:
        k = key.encode("utf-8")
        return cls.record("M", bytes([continued, len(k)]) + k + value)

    @classmethod
    def parameter(cls, key: str, value: bytes) -> bytes:
        k = key.encode("utf-8")
        return cls.record("P", bytes([len(k)]) + k + value)

    @classmethod
    def parameter_default(cls, key: str, value: bytes, default_types: int = 1) -> bytes:
        k = key.encode("utf-8")
        return cls.record("Q", bytes([default_types, len(k)]) + k + value)

    @classmethod
    def add_logged(cls, msg_id: int, name: str, multi_id: int = 0) -> bytes:
        return cls.record("A", struct.pack("<BH", multi_id, msg_id) + name.encode("utf-8"))

    @classmethod
    def remove_logged(cls, msg_id: int) -> bytes:
        return cls.record("R", struct.pack("<H", msg_id))

    @classmethod
    def data(cls, msg_id: int, payload: bytes) -> bytes:
        return cls.record("D", struct.pack("<H", msg_id) + payload)

    @classmethod
    def logging(cls, level: int, timestamp: int, text: str) -> bytes:
        return cls.record("L", struct.pack("<BQ", level, timestamp) + text.encode("utf-8"))

    @classmethod
    def logging_tagged(cls, level: int, tag: int, timestamp: int, text: str) -> bytes:
        return cls.record(
            "C", struct.pack("<BHQ", level, tag, timestamp) + text.encode("utf-8")
        )

    @classmethod
    def sync(cls, magic: int = 0x81) -> bytes:
        return cls.record("S", bytes([magic]))

    @classmethod
    def dropout(cls, duration: int) -> bytes:
        return cls.record("O", struct.pack("<H", duration))

    @classmethod
    def file(cls, *records: bytes, version: int = 1, timestamp: int = 0) -> bytes:
        """Header + zeroed flag bits + records."""
        return cls.header(version, timestamp) + cls.flag_bits() + b"".join(records)


@pytest.fixture
def ub() -> type[UlogBytes]:
    """The ULog byte builders."""
    return UlogBytes


@pytest.fixture
def sample_records(ub) -> list[bytes]:
    """One record of every type, in a plausible order."""
    return [
        ub.format("vehicle_attitude:uint64_t timestamp;float[4] q;"),
        ub.info("sys_name", b"PX4"),
        ub.info_multiple("perf_top", b"part1", continued=0),
        ub.parameter("MC_ROLL_P", struct.pack("<f", 6.5)),
        ub.parameter_default("MC_ROLL_P", struct.pack("<f", 6.5), default_types=3),
        ub.add_logged(7, "vehicle_attitude", multi_id=1),
        ub.data(7, bytes(range(24))),
        ub.logging(ord("6"), 1_000_000, "Armed"),
        ub.logging_tagged(ord("4"), 12, 2_000_000, "Low battery"),
        ub.sync(0x81),
        ub.dropout(250),
        ub.remove_logged(7),
    ]


@pytest.fixture
def sample_ulog(ub, sample_records) -> bytes:
    """A complete ULog file containing every record type."""
    return ub.file(*sample_records, version=1, timestamp=123456789)


@pytest.fixture
def sample_ulog_file(tmp_path, sample_ulog):
    """sample_ulog written to disk."""
    path = tmp_path / "flight.ulg"
    path.write_bytes(sample_ulog)
    return path
