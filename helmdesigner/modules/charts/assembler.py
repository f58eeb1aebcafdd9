import re
from typing import Callable, Dict, List, NamedTuple, Optional

from helmdesigner.modules.charts import renderers
from helmdesigner.modules.charts.values import build_values, nginx_enabled, redis_enabled
from helmdesigner.modules.charts.yaml_formatter import format_yaml
from helmdesigner.modules.templates.schemas import Template, ChartVersion, ChartFile

_WHITESPACE_RUN = re.compile(r"\s+")


def chart_slug(name: str) -> str:
    """Chart name, archive folder and download stem: lowercase, whitespace runs -> one hyphen."""
    return _WHITESPACE_RUN.sub("-", name.strip().lower())


def package_filename(template: Template, version: ChartVersion) -> str:
    return f"{chart_slug(template.name)}-{version.version_name}.tgz"


class ManifestEntry(NamedTuple):
    filename: str
    resource: str
    name: Optional[str] = None


def manifest_plan(template: Template, version: ChartVersion) -> List[ManifestEntry]:
    """
    Ordered ``templates/`` entries for a template and version.
    Both the chart-template files and the rendered preview follow this order.
    """
    plan: List[ManifestEntry] = []
    for svc in template.services:
        plan.append(ManifestEntry(f"{svc.kind.lower()}-{svc.name}.yaml", "workload", svc.name))
        plan.append(ManifestEntry(f"service-{svc.name}.yaml", "service", svc.name))
    for cm in template.config_maps:
        plan.append(ManifestEntry(f"configmap-{cm.name}.yaml", "configmap", cm.name))
    plan.append(ManifestEntry("secret-registry.yaml", "registry-secret"))
    for secret in template.tls_secrets:
        plan.append(ManifestEntry(f"secret-tls-{secret.name}.yaml", "tls-secret", secret.name))
    for secret in template.opaque_secrets:
        plan.append(ManifestEntry(f"secret-{secret.name}.yaml", "opaque-secret", secret.name))
    if nginx_enabled(template, version):
        plan += [
            ManifestEntry("configmap-nginx-gateway.yaml", "nginx-configmap"),
            ManifestEntry("deployment-nginx-gateway.yaml", "nginx-deployment"),
            ManifestEntry("service-nginx-gateway.yaml", "nginx-service"),
        ]
    if redis_enabled(template, version):
        plan += [
            ManifestEntry("deployment-redis.yaml", "redis-deployment"),
            ManifestEntry("service-redis.yaml", "redis-service"),
        ]
    for ing in template.ingresses:
        plan.append(ManifestEntry(f"ingress-{ing.name}.yaml", "ingress", ing.name))
    return plan


def _chart_template_renderers(template: Template) -> Dict[str, Callable[[Optional[str]], str]]:
    return {
        "workload": lambda name: renderers.render_workload(name, template),
        "service": lambda name: renderers.render_service(name, template),
        "configmap": lambda name: renderers.render_config_map(name, template),
        "registry-secret": lambda _: renderers.render_registry_secret(template),
        "tls-secret": lambda name: renderers.render_tls_secret(name, template),
        "opaque-secret": lambda name: renderers.render_opaque_secret(name, template),
        "nginx-configmap": lambda _: renderers.render_nginx_config_map(template),
        "nginx-deployment": lambda _: renderers.render_nginx_deployment(),
        "nginx-service": lambda _: renderers.render_nginx_service(),
        "redis-deployment": lambda _: renderers.render_redis_deployment(),
        "redis-service": lambda _: renderers.render_redis_service(),
        "ingress": lambda name: renderers.render_ingress(name, template),
    }


def render_values_yaml(template: Template, version: ChartVersion) -> str:
    return format_yaml(build_values(template, version))


def assemble_files(template: Template, version: ChartVersion) -> List[ChartFile]:
    """
    Chart-template mode file list: Chart.yaml, values.yaml, then every manifest
    in emission order, each path prefixed with the chart slug. Empty documents
    (definitions removed mid-generation) are left out.
    """
    slug = chart_slug(template.name)
    files = [
        ChartFile(path=f"{slug}/Chart.yaml", content=renderers.render_chart_yaml(template, version, slug)),
        ChartFile(path=f"{slug}/values.yaml", content=render_values_yaml(template, version)),
    ]
    render = _chart_template_renderers(template)
    for entry in manifest_plan(template, version):
        content = render[entry.resource](entry.name)
        if not content:
            continue
        files.append(ChartFile(path=f"{slug}/templates/{entry.filename}", content=content))
    return files
