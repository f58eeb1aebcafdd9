from supabase import Client
from fastapi import HTTPException
from typing import Dict, Optional, Tuple
import logging

from helmdesigner.config import settings
from helmdesigner.modules.charts.assembler import assemble_files
from helmdesigner.modules.charts.rendered import render_manifests
from helmdesigner.modules.charts.schemas import (
    ChartFilesResponse, ManifestPreviewRequest, PackageResponse
)
from helmdesigner.modules.packaging.emitter import ChartPackage, build_package
from helmdesigner.modules.templates.schemas import ChartVersion, Template
from helmdesigner.modules.templates.service import TemplateService

logger = logging.getLogger(__name__)


class ChartService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.templates = TemplateService(supabase)

    def _resolve(self, template_id: str, version_id: str, user_data: Dict) -> Tuple[Template, ChartVersion]:
        template = self.templates.get_template(template_id, user_data)
        return template, self.templates.get_version(template, version_id)

    def get_chart_files(self, template_id: str, version_id: str, user_data: Dict) -> ChartFilesResponse:
        """Chart-template files (Chart.yaml, values.yaml, templates/*) for the file-tree preview"""
        try:
            template, version = self._resolve(template_id, version_id, user_data)
            return ChartFilesResponse(files=assemble_files(template, version))
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Failed to assemble chart for template {template_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_manifests(
        self, template_id: str, version_id: str, request: ManifestPreviewRequest, user_data: Dict
    ) -> ChartFilesResponse:
        """Fully resolved manifests, as `helm template` would print them"""
        try:
            template, version = self._resolve(template_id, version_id, user_data)
            version = version.with_registry_password(request.registry_password)
            files = render_manifests(
                template,
                version,
                release_name=request.release_name or settings.preview_release_name,
                namespace=request.namespace or settings.preview_namespace,
            )
            return ChartFilesResponse(files=files)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Failed to render manifests for template {template_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def build_package(
        self, template_id: str, version_id: str, user_data: Dict, registry_password: Optional[str] = None
    ) -> ChartPackage:
        try:
            template, version = self._resolve(template_id, version_id, user_data)
            return build_package(template, version.with_registry_password(registry_password))
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Failed to package chart for template {template_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def build_package_base64(
        self, template_id: str, version_id: str, user_data: Dict, registry_password: Optional[str] = None
    ) -> PackageResponse:
        package = self.build_package(template_id, version_id, user_data, registry_password)
        return PackageResponse(filename=package.filename, content_base64=package.to_base64())
