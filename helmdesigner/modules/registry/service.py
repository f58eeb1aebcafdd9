from supabase import Client
from fastapi import HTTPException
from typing import Optional
import logging

from helmdesigner.modules.charts.assembler import chart_slug
from helmdesigner.modules.packaging.emitter import ChartPackage, build_package
from helmdesigner.modules.registry.auth import ServiceAccount, ServiceAccountService
from helmdesigner.modules.registry.index import build_index, render_index_yaml
from helmdesigner.modules.templates.repository import TemplateRepository
from helmdesigner.modules.templates.schemas import Template

logger = logging.getLogger(__name__)

CHART_SUFFIX = ".tgz"


def parse_chart_filename(chart_file: str, slug: str) -> Optional[str]:
    """Version name from ``{slug}-{version}.tgz``, or None when the file is not this chart's."""
    prefix = f"{slug}-"
    if not chart_file.endswith(CHART_SUFFIX) or not chart_file.startswith(prefix):
        return None
    version_name = chart_file[len(prefix):-len(CHART_SUFFIX)]
    return version_name or None


class RegistryService:
    def __init__(self, supabase: Client, accounts: Optional[ServiceAccountService] = None):
        self.supabase = supabase
        self.repository = TemplateRepository(supabase)
        self.accounts = accounts or ServiceAccountService(supabase)

    def _accessible_template(self, account: ServiceAccount, template_id: str) -> Template:
        """Access is checked before existence so unknown ids are indistinguishable from forbidden ones."""
        if not self.accounts.has_template_access(account.service_account_id, template_id):
            logger.info(f"Service account {account.service_account_id} denied access to template {template_id}")
            raise HTTPException(status_code=403, detail="Access denied to this template")
        template = self.repository.load(template_id)
        if template is None:
            raise HTTPException(status_code=404, detail="Template not found")
        return template

    def get_index(self, account: ServiceAccount, base_url: str, template_id: Optional[str] = None) -> str:
        """index.yaml for one template, or for every template the account can pull."""
        try:
            if template_id:
                templates = [self._accessible_template(account, template_id)]
            else:
                ids = self.accounts.accessible_template_ids(account.service_account_id)
                templates = self.repository.load_many(ids)
            logger.info(
                f"Serving index for service account {account.service_account_id}: {len(templates)} template(s)"
            )
            return render_index_yaml(build_index(templates, base_url))
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Failed to build index: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_chart(self, account: ServiceAccount, template_id: str, chart_file: str) -> ChartPackage:
        """Regenerate the requested chart package; nothing is cached between requests."""
        try:
            template = self._accessible_template(account, template_id)
            version_name = parse_chart_filename(chart_file, chart_slug(template.name))
            if version_name is None:
                raise HTTPException(status_code=404, detail="Chart not found")
            version = template.find_version(version_name)
            if version is None:
                logger.info(f"Version {version_name} not found for template {template_id}")
                raise HTTPException(status_code=404, detail="Version not found")
            logger.info(f"Generating {chart_file} for template {template_id}")
            return build_package(template, version)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Failed to generate chart {chart_file}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
