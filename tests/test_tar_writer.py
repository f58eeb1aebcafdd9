import io
import tarfile

from helmdesigner.modules.packaging.tar_writer import (
    BLOCK_SIZE, build_header, checksum, write_tar
)
from helmdesigner.modules.templates.schemas import ChartFile

FILES = [
    ChartFile(path="demo/Chart.yaml", content="apiVersion: v2\nname: demo\n"),
    ChartFile(path="demo/values.yaml", content=""),
    ChartFile(path="demo/templates/deployment-api.yaml", content="x" * 1500),
    ChartFile(path="demo/templates/unicode.yaml", content="greeting: héllo ✓\n"),
]


def _read(data: bytes):
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:") as archive:
        return [(m, archive.extractfile(m).read()) for m in archive.getmembers()]


def test_round_trip_with_standard_tar_reader():
    members = _read(write_tar(FILES, mtime=1700000000))
    assert [(m.name, body) for m, body in members] == [
        (f.path, f.content.encode("utf-8")) for f in FILES
    ]
    for member, _ in members:
        assert member.isfile()
        assert member.mode == 0o644
        assert member.uid == 0
        assert member.gid == 0
        assert member.mtime == 1700000000


def test_layout_is_block_aligned_with_two_block_trailer():
    data = write_tar(FILES, mtime=0)
    assert len(data) % BLOCK_SIZE == 0
    assert data[-2 * BLOCK_SIZE:] == b"\0" * (2 * BLOCK_SIZE)
    # 4 headers, content blocks of 1, 0, 3 and 1, then the trailer
    assert len(data) == (4 + 1 + 0 + 3 + 1 + 2) * BLOCK_SIZE


def test_empty_archive_is_only_the_trailer():
    assert write_tar([]) == b"\0" * 1024


def test_header_fields():
    header = build_header("demo/Chart.yaml", 26, 8)
    assert len(header) == BLOCK_SIZE
    assert header[100:108] == b"0000644\0"
    assert header[124:136] == b"00000000032\0"
    assert header[136:148] == b"00000000010\0"
    assert header[156:157] == b"0"
    assert header[257:265] == b"ustar\x0000"
    assert header[148:156] == b"%06o\0 " % checksum(header)
    assert int(header[148:154], 8) == checksum(header)


def test_long_names_are_truncated():
    name = "demo/templates/" + "a" * 120 + ".yaml"
    members = _read(write_tar([(name, "x")], mtime=0))
    assert members[0][0].name == name[:100]


def test_accepts_path_content_tuples_and_bytes():
    members = _read(write_tar([("a.txt", b"\x00\x01"), ("b.txt", "b")], mtime=0))
    assert [body for _, body in members] == [b"\x00\x01", b"b"]


def test_same_input_same_bytes():
    assert write_tar(FILES, mtime=5) == write_tar(FILES, mtime=5)
