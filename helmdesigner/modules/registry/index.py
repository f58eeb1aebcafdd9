"""Helm chart repository ``index.yaml`` documents."""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import yaml

from helmdesigner.modules.charts.assembler import chart_slug, package_filename
from helmdesigner.modules.templates.schemas import Template

DEFAULT_DESCRIPTION = "A Helm chart for Kubernetes"
DEFAULT_APP_VERSION = "1.0.0"


def rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def chart_url(base_url: str, template: Template, version) -> str:
    return f"{base_url.rstrip('/')}/{template.id}/charts/{package_filename(template, version)}"


def index_entries(template: Template, base_url: str, generated: datetime) -> List[Dict[str, Any]]:
    slug = chart_slug(template.name)
    return [
        {
            "apiVersion": "v2",
            "name": slug,
            "version": version.version_name,
            "appVersion": version.app_version or DEFAULT_APP_VERSION,
            "description": template.description or DEFAULT_DESCRIPTION,
            "type": "application",
            "created": rfc3339(version.created_at or generated),
            "urls": [chart_url(base_url, template, version)],
        }
        for version in template.versions
    ]


def build_index(templates: Iterable[Template], base_url: str, generated: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Repository index across any number of templates. Templates sharing a slug
    share one entry list; templates without versions are not listed. An empty
    input still yields a valid document with an empty ``entries`` map.
    """
    generated = generated or datetime.now(timezone.utc)
    entries: Dict[str, List[Dict[str, Any]]] = {}
    for template in templates:
        versions = index_entries(template, base_url, generated)
        if versions:
            entries.setdefault(chart_slug(template.name), []).extend(versions)
    return {"apiVersion": "v1", "entries": entries, "generated": rfc3339(generated)}


def render_index_yaml(index: Dict[str, Any]) -> str:
    return yaml.safe_dump(index, sort_keys=False, default_flow_style=False)
