from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from supabase import Client

from helmdesigner.config import settings
from helmdesigner.database.supabase_client import get_service_supabase
from helmdesigner.modules.packaging.emitter import CONTENT_TYPE
from helmdesigner.modules.registry.auth import (
    ServiceAccount, ServiceAccountService, get_service_account_service, require_service_account
)
from helmdesigner.modules.registry.service import RegistryService

router = APIRouter(prefix="/helm-registry", tags=["helm-registry"])

INDEX_CONTENT_TYPE = "application/x-yaml"


def get_registry_service(
    supabase: Client = Depends(get_service_supabase),
    accounts: ServiceAccountService = Depends(get_service_account_service),
) -> RegistryService:
    return RegistryService(supabase, accounts)


def registry_base_url(request: Request) -> str:
    if settings.registry_base_url:
        return settings.registry_base_url.rstrip("/")
    return f"{str(request.base_url).rstrip('/')}{router.prefix}"


@router.get("/index.yaml")
async def get_aggregate_index(
    request: Request,
    account: ServiceAccount = Depends(require_service_account),
    service: RegistryService = Depends(get_registry_service),
):
    """Repository index across every template the service account can access."""
    body = service.get_index(account, registry_base_url(request))
    return Response(content=body, media_type=INDEX_CONTENT_TYPE)


@router.get("/{template_id}/index.yaml")
async def get_template_index(
    template_id: str,
    request: Request,
    account: ServiceAccount = Depends(require_service_account),
    service: RegistryService = Depends(get_registry_service),
):
    """Repository index for a single template"""
    body = service.get_index(account, registry_base_url(request), template_id=template_id)
    return Response(content=body, media_type=INDEX_CONTENT_TYPE)


@router.get("/{template_id}")
async def get_template_index_root(
    template_id: str,
    request: Request,
    account: ServiceAccount = Depends(require_service_account),
    service: RegistryService = Depends(get_registry_service),
):
    body = service.get_index(account, registry_base_url(request), template_id=template_id)
    return Response(content=body, media_type=INDEX_CONTENT_TYPE)


@router.get("/{template_id}/charts/{chart_file}")
async def download_chart(
    template_id: str,
    chart_file: str,
    account: ServiceAccount = Depends(require_service_account),
    service: RegistryService = Depends(get_registry_service),
):
    """Generate and return `{slug}-{version}.tgz` on demand"""
    package = service.get_chart(account, template_id, chart_file)
    return Response(
        content=package.content,
        media_type=CONTENT_TYPE,
        headers={"Content-Disposition": package.content_disposition},
    )
