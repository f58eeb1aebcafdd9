from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional

from helmdesigner.modules.templates.schemas import ChartFile


class ChartRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PackageRequest(ChartRequest):
    registry_password: Optional[str] = None


class ManifestPreviewRequest(PackageRequest):
    release_name: Optional[str] = None
    namespace: Optional[str] = None


class ChartFilesResponse(ChartRequest):
    files: List[ChartFile]


class PackageResponse(ChartRequest):
    filename: str
    content_base64: str
