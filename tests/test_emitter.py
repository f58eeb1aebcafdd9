import gzip
import io
import tarfile

from helmdesigner.modules.charts.assembler import assemble_files
from helmdesigner.modules.packaging.emitter import (
    CONTENT_TYPE, build_package, decode_package, gzip_bytes
)


def test_package_round_trips_through_gzip_and_tar(demo_template, demo_version):
    package = build_package(demo_template, demo_version, mtime=1700000000)
    assert package.filename == "demo-1.0.0.tgz"
    with tarfile.open(fileobj=io.BytesIO(package.content), mode="r:gz") as archive:
        extracted = [(m.name, archive.extractfile(m).read().decode("utf-8")) for m in archive.getmembers()]
    expected = [(f.path, f.content) for f in assemble_files(demo_template, demo_version)]
    assert extracted == expected


def test_package_is_reproducible_with_fixed_mtime(demo_template, demo_version):
    first = build_package(demo_template, demo_version, mtime=42)
    second = build_package(demo_template, demo_version, mtime=42)
    assert first.content == second.content


def test_base64_delivery_form(demo_template, demo_version):
    package = build_package(demo_template, demo_version, mtime=0)
    assert decode_package(package.to_base64()) == package.content


def test_download_headers(demo_template, demo_version):
    package = build_package(demo_template, demo_version)
    assert CONTENT_TYPE == "application/gzip"
    assert package.content_disposition == 'attachment; filename="demo-1.0.0.tgz"'


def test_gzip_bytes():
    data = b"chart" * 100
    compressed = gzip_bytes(data, mtime=0)
    assert compressed[:2] == b"\x1f\x8b"
    assert gzip.decompress(compressed) == data
