import base64
from typing import Any, Dict, List, Optional

from helmdesigner.modules.templates.schemas import Template, ChartVersion, Service

DEFAULT_IMAGE_TAG = "latest"


def _merged_flag(override: Optional[bool], default: bool) -> bool:
    # An explicit False on the version wins; only None falls through to the template
    return default if override is None else override


def nginx_enabled(template: Template, version: ChartVersion) -> bool:
    return _merged_flag(version.values.enable_nginx_gateway, template.enable_nginx_gateway)


def redis_enabled(template: Template, version: ChartVersion) -> bool:
    return _merged_flag(version.values.enable_redis, template.enable_redis)


def b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _with_defaults(keys, supplied: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {k.name: k.default_value for k in keys if k.default_value is not None}
    merged.update(supplied or {})
    return merged


def service_env(service: Service, version: ChartVersion) -> Dict[str, str]:
    """Every declared env var gets an entry; the workload indexes each name directly."""
    merged = _with_defaults(service.env_vars, version.values.env_values.get(service.name))
    env = {e.name: merged.get(e.name, "") for e in service.env_vars}
    env.update(merged)
    return env


def image_tag(service: Service, version: ChartVersion) -> str:
    return version.values.image_tags.get(service.name) or DEFAULT_IMAGE_TAG


def config_map_data(template: Template, version: ChartVersion, name: str) -> Dict[str, str]:
    config_map = template.find_config_map(name)
    keys = config_map.keys if config_map else []
    return _with_defaults(keys, version.values.config_map_values.get(name))


def opaque_secret_data(template: Template, version: ChartVersion, name: str) -> Dict[str, str]:
    secret = template.find_opaque_secret(name)
    keys = secret.keys if secret else []
    return _with_defaults(keys, version.values.opaque_secret_values.get(name))


def tls_secret_pair(template: Template, version: ChartVersion, name: str) -> Dict[str, str]:
    """Version-supplied cert/key, else the static pair stored on the secret definition."""
    supplied = version.values.tls_secret_values.get(name)
    if supplied is not None and (supplied.crt or supplied.key):
        return {"crt": supplied.crt, "key": supplied.key}
    secret = template.find_tls_secret(name)
    if secret is not None and secret.cert and secret.key:
        return {"crt": secret.cert, "key": secret.key}
    return {"crt": "", "key": ""}


def _ingress_values(template: Template) -> Dict[str, Any]:
    ingress: Dict[str, Any] = {}
    for ing in template.ingresses:
        hosts: List[Dict[str, Any]] = [
            {
                "host": h.hostname,
                "paths": [{"path": p.path, "serviceName": p.service_name} for p in h.paths],
            }
            for h in ing.hosts
        ]
        tls = [{"secretName": t.secret_name, "hosts": list(t.hosts)} for t in ing.tls]
        ingress[ing.name] = {"hosts": hosts, "tls": tls}
    return ingress


def build_values(template: Template, version: ChartVersion) -> Dict[str, Any]:
    """
    Merge the template definition with one version's runtime values into the
    values.yaml mapping. Every service, config map, secret and ingress defined
    on the template gets an entry, whether or not the version supplied values.
    Secret material is base64-encoded so it can be dropped into Secret ``data``.
    """
    values: Dict[str, Any] = {
        "global": {
            "sharedPort": template.shared_port,
            "registry": {
                "url": template.registry_url,
                "project": template.registry_project,
                "password": version.values.registry_password,
            },
        },
        "services": {},
        "configMaps": {},
        "tlsSecrets": {},
        "opaqueSecrets": {},
        "ingress": _ingress_values(template),
        "nginx": {"enabled": nginx_enabled(template, version)},
        "redis": {"enabled": redis_enabled(template, version)},
    }

    for svc in template.services:
        values["services"][svc.name] = {
            "imageTag": image_tag(svc, version),
            "env": service_env(svc, version),
            "livenessPath": svc.liveness_path,
            "readinessPath": svc.readiness_path,
        }

    for cm in template.config_maps:
        values["configMaps"][cm.name] = config_map_data(template, version, cm.name)

    for secret in template.tls_secrets:
        pair = tls_secret_pair(template, version, secret.name)
        values["tlsSecrets"][secret.name] = {"crt": b64(pair["crt"]), "key": b64(pair["key"])}

    for secret in template.opaque_secrets:
        data = opaque_secret_data(template, version, secret.name)
        values["opaqueSecrets"][secret.name] = {k: b64(v) for k, v in data.items()}

    return values
