from fastapi import APIRouter, Depends
from helmdesigner.database.supabase_client import get_supabase
from helmdesigner.modules.templates.schemas import Template, TlsValidationRequest
from helmdesigner.modules.templates.service import TemplateService
from helmdesigner.modules.templates.tls_utils import TlsValidationResult
from helmdesigner.core.dependencies import get_current_user_id
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/templates", tags=["templates"])


def get_template_service(supabase: Client = Depends(get_supabase)) -> TemplateService:
    return TemplateService(supabase)


@router.post("/tls/validate", response_model=TlsValidationResult)
async def validate_tls(
    request: TlsValidationRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: TemplateService = Depends(get_template_service),
):
    """Check a PEM certificate/key pair and report its validity window"""
    return service.validate_tls(request)


@router.get("/{template_id}", response_model=Template, response_model_by_alias=True)
async def get_template(
    template_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: TemplateService = Depends(get_template_service),
):
    """Get a template with services, config maps, secrets, ingresses and versions"""
    return service.get_template(template_id, user_data)
