from supabase import Client
from helmdesigner.modules.templates.schemas import (
    Template, Service, ConfigMap, TLSSecret, OpaqueSecret, Ingress, ChartVersion
)
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

LEGACY_DEFAULT_HOST = "example.com"


def service_from_row(row: Dict[str, Any]) -> Service:
    data = dict(row)
    data["liveness_path"] = row.get("liveness_path") or "/health"
    data["readiness_path"] = row.get("readiness_path") or "/ready"
    if row.get("replicas") is None:
        data.pop("replicas", None)
    return Service.model_validate(data)


def ingress_from_row(row: Dict[str, Any]) -> Ingress:
    """Map an ingress row, migrating the legacy flat-rules and single-TLS columns."""
    rules = row.get("rules") or []
    hosts: List[Dict[str, Any]] = []
    if rules:
        first = rules[0]
        if isinstance(first, dict) and "path" in first and "serviceName" in first and "hostname" not in first:
            hosts = [{"hostname": row.get("default_host") or LEGACY_DEFAULT_HOST, "paths": rules}]
        else:
            hosts = rules

    tls = row.get("tls")
    if not tls:
        tls = []
        if row.get("tls_enabled") and row.get("tls_secret_name"):
            hostnames = [h["hostname"] for h in hosts]
            if hostnames:
                tls = [{"secretName": row["tls_secret_name"], "hosts": hostnames}]

    return Ingress.model_validate({
        "id": row.get("id", ""),
        "template_id": row.get("template_id", ""),
        "name": row["name"],
        "mode": row.get("mode") or "nginx-gateway",
        "hosts": hosts,
        "tls": tls,
    })


def version_from_row(row: Dict[str, Any]) -> ChartVersion:
    return ChartVersion.model_validate(row)


def template_from_rows(
    template_row: Dict[str, Any],
    services: List[Dict[str, Any]],
    config_maps: List[Dict[str, Any]],
    tls_secrets: List[Dict[str, Any]],
    opaque_secrets: List[Dict[str, Any]],
    ingresses: List[Dict[str, Any]],
    versions: List[Dict[str, Any]],
) -> Template:
    data = dict(template_row)
    data["visibility"] = template_row.get("visibility") or "private"
    data.update({
        "services": [service_from_row(r) for r in services],
        "config_maps": [ConfigMap.model_validate(r) for r in config_maps],
        "tls_secrets": [TLSSecret.model_validate(r) for r in tls_secrets],
        "opaque_secrets": [OpaqueSecret.model_validate(r) for r in opaque_secrets],
        "ingresses": [ingress_from_row(r) for r in ingresses],
        "versions": [version_from_row(r) for r in versions],
    })
    return Template.model_validate(data)


class TemplateRepository:
    """Loads a template together with all of its relations from Supabase."""

    RELATION_TABLES = ("services", "config_maps", "tls_secrets", "opaque_secrets", "ingresses", "chart_versions")

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _children(self, table: str, template_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table(table)\
            .select("*")\
            .eq("template_id", template_id)\
            .order("created_at", desc=False)\
            .execute()
        return result.data or []

    def get_template_row(self, template_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("templates").select("*").eq("id", template_id).maybe_single().execute()
        if result is None or not result.data:
            return None
        return result.data

    def load(self, template_id: str) -> Optional[Template]:
        """Template with services, config maps, secrets, ingresses and versions, or None."""
        row = self.get_template_row(template_id)
        if row is None:
            return None
        relations = {table: self._children(table, template_id) for table in self.RELATION_TABLES}
        logger.debug(
            f"Loaded template {template_id}: "
            + ", ".join(f"{len(rows)} {table}" for table, rows in relations.items())
        )
        return template_from_rows(
            row,
            services=relations["services"],
            config_maps=relations["config_maps"],
            tls_secrets=relations["tls_secrets"],
            opaque_secrets=relations["opaque_secrets"],
            ingresses=relations["ingresses"],
            versions=relations["chart_versions"],
        )

    def load_many(self, template_ids: List[str]) -> List[Template]:
        """Load several templates in the given order, skipping ids that no longer exist."""
        templates = []
        for template_id in template_ids:
            template = self.load(template_id)
            if template is None:
                logger.warning(f"Template {template_id} is accessible but no longer exists")
                continue
            templates.append(template)
        return templates
