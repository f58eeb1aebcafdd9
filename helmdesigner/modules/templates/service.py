from supabase import Client
from fastapi import HTTPException
from typing import Dict
import logging

from helmdesigner.core.dependencies import check_template_access
from helmdesigner.modules.templates.repository import TemplateRepository
from helmdesigner.modules.templates.schemas import ChartVersion, Template, TlsValidationRequest
from helmdesigner.modules.templates.tls_utils import TlsValidationResult, validate_tls_inputs

logger = logging.getLogger(__name__)


class TemplateService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.repository = TemplateRepository(supabase)

    def get_template(self, template_id: str, user_data: Dict) -> Template:
        """Load a template with all its children, checking the caller may read it"""
        try:
            template = self.repository.load(template_id)
            if template is None:
                raise HTTPException(status_code=404, detail="Template not found")
            check_template_access(template, user_data)
            return template
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Failed to load template {template_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_version(self, template: Template, version_id: str) -> ChartVersion:
        for version in template.versions:
            if version.id == version_id:
                return version
        raise HTTPException(status_code=404, detail="Version not found")

    def validate_tls(self, request: TlsValidationRequest) -> TlsValidationResult:
        result = validate_tls_inputs(request.cert, request.key)
        if not result.is_valid:
            logger.info(f"TLS validation failed: {'; '.join(result.errors)}")
        return result
