import base64
import gzip
import logging
from typing import Optional

from pydantic import BaseModel

from helmdesigner.modules.charts.assembler import assemble_files, package_filename
from helmdesigner.modules.packaging.tar_writer import write_tar
from helmdesigner.modules.templates.schemas import Template, ChartVersion

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/gzip"


class ChartPackage(BaseModel):
    filename: str
    content: bytes

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'

    def to_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


def gzip_bytes(data: bytes, mtime: Optional[int] = None) -> bytes:
    return gzip.compress(data, compresslevel=9, mtime=mtime)


def decode_package(encoded: str) -> bytes:
    """Raw .tgz bytes from the base64 delivery form."""
    return base64.b64decode(encoded)


def build_package(template: Template, version: ChartVersion, mtime: Optional[int] = None) -> ChartPackage:
    """Assemble the chart-template files for a version and pack them as ``{slug}-{version}.tgz``."""
    files = assemble_files(template, version)
    tar = write_tar(files, mtime=mtime)
    content = gzip_bytes(tar, mtime=mtime)
    filename = package_filename(template, version)
    logger.info(f"Built {filename}: {len(files)} files, {len(content)} bytes")
    return ChartPackage(filename=filename, content=content)
