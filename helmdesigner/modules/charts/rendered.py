"""Rendered-manifest mode: fully substituted manifests for human preview.

Given a release name, namespace and one chart version, every value the
chart-template files leave to Helm is resolved here. The output is never
packaged; installable charts always come from ``assembler.assemble_files``.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import yaml

from helmdesigner.modules.charts.assembler import chart_slug, manifest_plan
from helmdesigner.modules.charts.renderers import NGINX_GATEWAY, NGINX_IMAGE, REDIS_IMAGE, REDIS_PORT, gateway_routes
from helmdesigner.modules.charts.values import (
    b64, config_map_data, image_tag, opaque_secret_data, service_env, tls_secret_pair
)
from helmdesigner.modules.templates.schemas import Template, ChartVersion, ChartFile, Service


class ManifestDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True


def _str_representer(dumper, data):
    style = "|" if "\n" in data else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


ManifestDumper.add_representer(str, _str_representer)


def dump_manifest(manifest: Dict[str, Any]) -> str:
    return yaml.dump(manifest, Dumper=ManifestDumper, sort_keys=False, default_flow_style=False)


class ManifestRenderer:
    """Builds resolved manifests for one (template, version, release) triple."""

    def __init__(self, template: Template, version: ChartVersion, release_name: str, namespace: str):
        self.template = template
        self.version = version
        self.release_name = release_name
        self.namespace = namespace
        self.slug = chart_slug(template.name)

    def _name(self, suffix: str) -> str:
        return f"{self.release_name}-{suffix}"

    def _metadata(self, suffix: str, labels: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"name": self._name(suffix), "namespace": self.namespace}
        if labels:
            metadata["labels"] = labels
        return metadata

    def _service_port(self, service: Service) -> int:
        if service.is_external and service.custom_ports:
            return service.custom_ports[0].port
        return self.template.shared_port

    def _image(self, service: Service) -> str:
        if service.is_external and service.image:
            return service.image
        parts = (self.template.registry_url, self.template.registry_project, service.name)
        return "/".join(p for p in parts if p) + f":{image_tag(service, self.version)}"

    def workload(self, name: str) -> Optional[Dict[str, Any]]:
        service = self.template.find_service(name)
        if service is None:
            return None

        if service.is_external and service.custom_ports:
            ports = [{"name": p.name, "containerPort": p.port} for p in service.custom_ports]
        else:
            ports = [{"containerPort": self.template.shared_port}]
        container: Dict[str, Any] = {"name": service.name, "image": self._image(service), "ports": ports}

        if service.env_vars:
            env = service_env(service, self.version)
            container["env"] = [{"name": e.name, "value": env.get(e.name, "")} for e in service.env_vars]
        env_from = [{"configMapRef": {"name": self._name(s.config_map_name)}} for s in service.config_map_env_sources]
        env_from += [{"secretRef": {"name": self._name(s.secret_name)}} for s in service.secret_env_sources]
        if env_from:
            container["envFrom"] = env_from

        if service.health_check_enabled:
            port = self._service_port(service)
            container["livenessProbe"] = {
                "httpGet": {"path": service.liveness_path, "port": port},
                "initialDelaySeconds": 30,
                "periodSeconds": 10,
            }
            container["readinessProbe"] = {
                "httpGet": {"path": service.readiness_path, "port": port},
                "initialDelaySeconds": 5,
                "periodSeconds": 5,
            }

        pod_spec: Dict[str, Any] = {}
        if not service.is_external:
            pod_spec["imagePullSecrets"] = [{"name": self._name("registry-secret")}]
        pod_spec["containers"] = [container]

        spec: Dict[str, Any] = {}
        if service.kind != "DaemonSet":
            spec["replicas"] = service.replicas if service.is_external else 1
        if service.kind == "StatefulSet":
            spec["serviceName"] = self._name(service.name)
        spec["selector"] = {"matchLabels": {"app": service.name}}
        spec["template"] = {"metadata": {"labels": {"app": service.name}}, "spec": pod_spec}

        labels = {"app": service.name, "chart": f"{self.slug}-{self.version.version_name}"}
        return {
            "apiVersion": "apps/v1",
            "kind": service.kind,
            "metadata": self._metadata(service.name, labels),
            "spec": spec,
        }

    def service(self, name: str) -> Optional[Dict[str, Any]]:
        service = self.template.find_service(name)
        if service is None:
            return None
        if service.is_external and service.custom_ports:
            ports = [
                {"name": p.name, "port": p.port, "targetPort": p.port, "protocol": "TCP"}
                for p in service.custom_ports
            ]
        else:
            port = self.template.shared_port
            ports = [{"port": port, "targetPort": port, "protocol": "TCP"}]
        return self._cluster_ip(service.name, service.name, ports)

    def _cluster_ip(self, suffix: str, app: str, ports: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": self._metadata(suffix, {"app": app}),
            "spec": {"type": "ClusterIP", "ports": ports, "selector": {"app": app}},
        }

    def config_map(self, name: str) -> Optional[Dict[str, Any]]:
        if self.template.find_config_map(name) is None:
            return None
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": self._metadata(name),
            "data": config_map_data(self.template, self.version, name),
        }

    def registry_secret(self, _: Optional[str] = None) -> Dict[str, Any]:
        credentials = self.template.registry_secret
        config = {
            "auths": {
                self.template.registry_url: {
                    "username": credentials.username,
                    "password": self.version.values.registry_password or "",
                    "email": credentials.email or "",
                }
            }
        }
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": self._metadata("registry-secret"),
            "type": "kubernetes.io/dockerconfigjson",
            "data": {".dockerconfigjson": b64(json.dumps(config))},
        }

    def tls_secret(self, name: str) -> Optional[Dict[str, Any]]:
        if self.template.find_tls_secret(name) is None:
            return None
        pair = tls_secret_pair(self.template, self.version, name)
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": self._metadata(name),
            "type": "kubernetes.io/tls",
            "data": {"tls.crt": b64(pair["crt"]), "tls.key": b64(pair["key"])},
        }

    def opaque_secret(self, name: str) -> Optional[Dict[str, Any]]:
        if self.template.find_opaque_secret(name) is None:
            return None
        data = opaque_secret_data(self.template, self.version, name)
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": self._metadata(name),
            "type": "Opaque",
            "data": {k: b64(v) for k, v in data.items()},
        }

    def nginx_config_map(self, _: Optional[str] = None) -> Dict[str, Any]:
        port = self.template.shared_port
        blocks = [
            "\n".join([
                f"    location {path} {{",
                f"        proxy_pass http://{self._name(service_name)}:{port};",
                "        proxy_set_header Host $host;",
                "        proxy_set_header X-Real-IP $remote_addr;",
                "        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;",
                "        proxy_set_header X-Forwarded-Proto $scheme;",
                "    }",
            ])
            for path, service_name in gateway_routes(self.template)
        ]
        conf = f"server {{\n    listen {port};\n    server_name _;\n"
        if blocks:
            conf += "\n" + "\n\n".join(blocks) + "\n"
        conf += "}\n"
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": self._metadata(f"{NGINX_GATEWAY}-config"),
            "data": {"default.conf": conf},
        }

    def nginx_deployment(self, _: Optional[str] = None) -> Dict[str, Any]:
        container = {
            "name": "nginx",
            "image": NGINX_IMAGE,
            "ports": [{"containerPort": self.template.shared_port}],
            "volumeMounts": [{"name": "nginx-config", "mountPath": "/etc/nginx/conf.d"}],
        }
        volumes = [{"name": "nginx-config", "configMap": {"name": self._name(f"{NGINX_GATEWAY}-config")}}]
        return self._simple_deployment(NGINX_GATEWAY, container, volumes)

    def nginx_service(self, _: Optional[str] = None) -> Dict[str, Any]:
        port = self.template.shared_port
        return self._cluster_ip(NGINX_GATEWAY, NGINX_GATEWAY, [{"port": port, "targetPort": port, "protocol": "TCP"}])

    def redis_deployment(self, _: Optional[str] = None) -> Dict[str, Any]:
        container = {"name": "redis", "image": REDIS_IMAGE, "ports": [{"containerPort": REDIS_PORT}]}
        return self._simple_deployment("redis", container)

    def redis_service(self, _: Optional[str] = None) -> Dict[str, Any]:
        return self._cluster_ip("redis", "redis", [{"port": REDIS_PORT, "targetPort": REDIS_PORT, "protocol": "TCP"}])

    def _simple_deployment(self, app: str, container: Dict[str, Any], volumes=None) -> Dict[str, Any]:
        pod_spec: Dict[str, Any] = {"containers": [container]}
        if volumes:
            pod_spec["volumes"] = volumes
        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": self._metadata(app, {"app": app}),
            "spec": {
                "replicas": 1,
                "selector": {"matchLabels": {"app": app}},
                "template": {"metadata": {"labels": {"app": app}}, "spec": pod_spec},
            },
        }

    def ingress_backend(self, mode: str, service_name: str) -> str:
        if mode == "nginx-gateway":
            return self._name(NGINX_GATEWAY)
        return self._name(service_name)

    def ingress(self, name: str) -> Optional[Dict[str, Any]]:
        ingress = self.template.find_ingress(name)
        if ingress is None:
            return None
        port = self.template.shared_port
        rules = [
            {
                "host": host.hostname,
                "http": {
                    "paths": [
                        {
                            "path": p.path,
                            "pathType": "Prefix",
                            "backend": {
                                "service": {
                                    "name": self.ingress_backend(ingress.mode, p.service_name),
                                    "port": {"number": port},
                                }
                            },
                        }
                        for p in host.paths
                    ]
                },
            }
            for host in ingress.hosts
        ]
        spec: Dict[str, Any] = {}
        if ingress.tls:
            spec["tls"] = [{"hosts": list(t.hosts), "secretName": self._name(t.secret_name)} for t in ingress.tls]
        spec["rules"] = rules
        metadata = self._metadata(name)
        metadata["annotations"] = {"kubernetes.io/ingress.class": "nginx"}
        return {"apiVersion": "networking.k8s.io/v1", "kind": "Ingress", "metadata": metadata, "spec": spec}

    def builders(self) -> Dict[str, Callable[[Optional[str]], Optional[Dict[str, Any]]]]:
        return {
            "workload": self.workload,
            "service": self.service,
            "configmap": self.config_map,
            "registry-secret": self.registry_secret,
            "tls-secret": self.tls_secret,
            "opaque-secret": self.opaque_secret,
            "nginx-configmap": self.nginx_config_map,
            "nginx-deployment": self.nginx_deployment,
            "nginx-service": self.nginx_service,
            "redis-deployment": self.redis_deployment,
            "redis-service": self.redis_service,
            "ingress": self.ingress,
        }


def render_manifests(
    template: Template,
    version: ChartVersion,
    release_name: str,
    namespace: str,
) -> List[ChartFile]:
    """Resolved manifests in the same order and under the same paths as the chart templates."""
    renderer = ManifestRenderer(template, version, release_name, namespace)
    builders = renderer.builders()
    files = []
    for entry in manifest_plan(template, version):
        manifest = builders[entry.resource](entry.name)
        if manifest is None:
            continue
        files.append(ChartFile(path=f"{renderer.slug}/templates/{entry.filename}", content=dump_manifest(manifest)))
    return files
