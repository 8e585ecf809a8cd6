"""
Unit tests for keysums and checksums
"""

import io

import pytest

from core.exceptions import ChecksumError
from indexer.keysum import (
    KEYSUM_ALPHABET,
    KEYSUM_WIDTH,
    base36,
    checksum_file,
    crypto_checksums,
    file_keysum,
    keysum,
)


class CountingStream(io.BytesIO):
    """BytesIO that records how many bytes were handed out"""

    def __init__(self, data):
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size=-1):
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


class TestKeysum:

    def test_deterministic(self):
        assert keysum(["sample.zip", "1000"]) == keysum(["sample.zip", "1000"])
        assert file_keysum("sample.zip", 1000) == keysum(["sample.zip", "1000"])

    def test_differs_by_filename(self):
        assert file_keysum("sample.zip", 1000) != file_keysum("sample2.zip", 1000)

    def test_differs_by_size(self):
        assert file_keysum("sample.zip", 1000) != file_keysum("sample.zip", 1001)

    def test_part_order_matters(self):
        assert keysum(["a", "b"]) != keysum(["b", "a"])

    def test_fixed_width_base36(self):
        for i in range(200):
            value = file_keysum(f"file{i}.wad", i * 17)
            assert len(value) == KEYSUM_WIDTH
            assert set(value) <= set(KEYSUM_ALPHABET)

    def test_no_collisions_in_small_sample(self):
        values = {file_keysum(f"map{i:02d}.wad", size) for i in range(50) for size in range(0, 2000, 100)}

        assert len(values) == 50 * 20


class TestBase36:

    @pytest.mark.parametrize("value,expected", [(0, "0"), (9, "9"), (10, "a"), (35, "z"), (36, "10"), (1295, "zz")])
    def test_values(self, value, expected):
        assert base36(value) == expected

    def test_negative(self):
        with pytest.raises(ValueError):
            base36(-1)


class TestCryptoChecksums:

    def test_known_vectors(self):
        empty = crypto_checksums(io.BytesIO(b""))
        abc = crypto_checksums(io.BytesIO(b"abc"))

        assert empty.md5 == "d41d8cd98f00b204e9800998ecf8427e"
        assert empty.sha == "da39a3ee5e6b4b0d3255bfef95601890afd80709"
        assert abc.md5 == "900150983cd24fb0d6963f7d28e17f72"
        assert abc.sha == "a9993e364706816aba3e25717850c26c9cd0d89d"

    def test_deterministic(self):
        data = bytes(range(256)) * 100

        first = crypto_checksums(io.BytesIO(data))
        second = crypto_checksums(io.BytesIO(data))

        assert (first.md5, first.sha) == (second.md5, second.sha)

    def test_one_bit_changes_both_digests(self):
        data = bytearray(b"PWAD" + bytes(1000))
        flipped = bytearray(data)
        flipped[500] ^= 0x01

        a = crypto_checksums(io.BytesIO(bytes(data)))
        b = crypto_checksums(io.BytesIO(bytes(flipped)))

        assert a.md5 != b.md5
        assert a.sha != b.sha

    def test_stream_read_once(self):
        data = b"x" * (3 * 1024 * 1024 + 17)
        stream = CountingStream(data)

        crypto_checksums(stream)

        assert stream.bytes_read == len(data)

    def test_reports_elapsed_time(self):
        result = crypto_checksums(io.BytesIO(b"abc"))

        assert result.elapsed >= 0.0

    def test_checksum_file(self, tmp_path):
        path = tmp_path / "abc.bin"
        path.write_bytes(b"abc")

        result = checksum_file(path)

        assert result.md5 == "900150983cd24fb0d6963f7d28e17f72"

    def test_checksum_missing_file(self, tmp_path):
        with pytest.raises(ChecksumError) as exc_info:
            checksum_file(tmp_path / "missing.zip")

        assert "missing.zip" in exc_info.value.context["path"]
