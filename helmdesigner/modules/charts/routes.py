from fastapi import APIRouter, Depends
from fastapi.responses import Response
from helmdesigner.database.supabase_client import get_supabase
from helmdesigner.modules.charts.schemas import (
    ChartFilesResponse, ManifestPreviewRequest, PackageRequest, PackageResponse
)
from helmdesigner.modules.charts.service import ChartService
from helmdesigner.modules.packaging.emitter import CONTENT_TYPE
from helmdesigner.core.dependencies import get_current_user_id
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/templates/{template_id}/versions/{version_id}", tags=["charts"])


def get_chart_service(supabase: Client = Depends(get_supabase)) -> ChartService:
    return ChartService(supabase)


@router.get("/files", response_model=ChartFilesResponse)
async def get_chart_files(
    template_id: str,
    version_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ChartService = Depends(get_chart_service),
):
    """Chart-template files for a version"""
    return service.get_chart_files(template_id, version_id, user_data)


@router.post("/manifests", response_model=ChartFilesResponse)
async def preview_manifests(
    template_id: str,
    version_id: str,
    request: ManifestPreviewRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: ChartService = Depends(get_chart_service),
):
    """Resolved Kubernetes manifests for a release name and namespace"""
    return service.get_manifests(template_id, version_id, request, user_data)


@router.get("/package")
async def download_package(
    template_id: str,
    version_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ChartService = Depends(get_chart_service),
):
    """Download `{slug}-{version}.tgz`"""
    package = service.build_package(template_id, version_id, user_data)
    return Response(
        content=package.content,
        media_type=CONTENT_TYPE,
        headers={"Content-Disposition": package.content_disposition},
    )


@router.post("/package", response_model=PackageResponse, response_model_by_alias=True)
async def package_chart(
    template_id: str,
    version_id: str,
    request: PackageRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: ChartService = Depends(get_chart_service),
):
    """
    Package a version with an optional registry password and return the
    archive base64-encoded. The password is used for this package only and
    is never stored.
    """
    return service.build_package_base64(template_id, version_id, user_data, request.registry_password)
