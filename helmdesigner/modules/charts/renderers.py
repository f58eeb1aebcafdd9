"""Chart-template mode renderers.

Each function returns one Kubernetes manifest as text for the chart's
``templates/`` directory. Names, labels and other definition data are baked in;
anything that must vary per ``helm install`` stays a literal ``{{ ... }}``
directive for Helm to evaluate. Nothing here parses or evaluates directives.
"""

from typing import List

from helmdesigner.modules.charts.yaml_formatter import format_scalar
from helmdesigner.modules.templates.schemas import Template, ChartVersion, Service

RELEASE = "{{ .Release.Name }}"
ROOT_RELEASE = "{{ $.Release.Name }}"
SHARED_PORT = "{{ .Values.global.sharedPort }}"
ROOT_SHARED_PORT = "{{ $.Values.global.sharedPort }}"
CHART_LABEL = "{{ .Chart.Name }}-{{ .Chart.Version }}"
REGISTRY_SECRET = f"{RELEASE}-registry-secret"
NGINX_GATEWAY = "nginx-gateway"
NGINX_IMAGE = "nginx:alpine"
REDIS_IMAGE = "redis:alpine"
REDIS_PORT = 6379


def _go_string(value: str) -> str:
    """Quote a value as a Go template string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def values_ref(section: str, name: str) -> str:
    """Hyphen-safe reference to a user-named entry under ``.Values.<section>``."""
    return f"(index .Values.{section} {_go_string(name)})"


def _document(lines: List[str]) -> str:
    return "\n".join(lines) + "\n"


def _guarded(flag: str, lines: List[str]) -> List[str]:
    return [f"{{{{- if .Values.{flag}.enabled }}}}"] + lines + ["{{- end }}"]


def render_chart_yaml(template: Template, version: ChartVersion, slug: str) -> str:
    description = template.description or "A Helm chart for Kubernetes"
    app_version = version.app_version or "1.0.0"
    return _document([
        "apiVersion: v2",
        f"name: {slug}",
        f"description: {format_scalar(description)}",
        "type: application",
        f"version: {version.version_name}",
        f'appVersion: "{app_version}"',
    ])


def _container_ports(service: Service) -> List[str]:
    if service.is_external and service.custom_ports:
        lines = []
        for port in service.custom_ports:
            lines += [
                f"            - name: {port.name}",
                f"              containerPort: {port.port}",
            ]
        return lines
    return [f"            - containerPort: {SHARED_PORT}"]


def _probe_port(service: Service) -> str:
    if service.is_external and service.custom_ports:
        return str(service.custom_ports[0].port)
    return SHARED_PORT


def _image(service: Service, template: Template) -> str:
    if service.is_external and service.image:
        return f'"{service.image}"'
    repository = "/".join(p for p in (template.registry_url, template.registry_project, service.name) if p)
    return f'"{repository}:{{{{ {values_ref("services", service.name)}.imageTag }}}}"'


def render_workload(service_name: str, template: Template) -> str:
    """Deployment, StatefulSet or DaemonSet for one service; empty when the service is unknown."""
    service = template.find_service(service_name)
    if service is None:
        return ""

    svc_values = values_ref("services", service.name)
    spec = []
    if service.kind != "DaemonSet":
        spec.append(f"  replicas: {service.replicas if service.is_external else 1}")
    if service.kind == "StatefulSet":
        spec.append(f"  serviceName: {RELEASE}-{service.name}")

    pod_spec = []
    if not service.is_external:
        pod_spec += [
            "      imagePullSecrets:",
            f"        - name: {REGISTRY_SECRET}",
        ]
    pod_spec += [
        "      containers:",
        f"        - name: {service.name}",
        f"          image: {_image(service, template)}",
        "          ports:",
    ]
    pod_spec += _container_ports(service)

    if service.env_vars:
        pod_spec.append("          env:")
        for env in service.env_vars:
            pod_spec += [
                f"            - name: {env.name}",
                f"              value: {{{{ index {svc_values}.env {_go_string(env.name)} | quote }}}}",
            ]

    if service.config_map_env_sources or service.secret_env_sources:
        pod_spec.append("          envFrom:")
        for source in service.config_map_env_sources:
            pod_spec += [
                "            - configMapRef:",
                f"                name: {RELEASE}-{source.config_map_name}",
            ]
        for source in service.secret_env_sources:
            pod_spec += [
                "            - secretRef:",
                f"                name: {RELEASE}-{source.secret_name}",
            ]

    if service.health_check_enabled:
        port = _probe_port(service)
        pod_spec += [
            "          livenessProbe:",
            "            httpGet:",
            f"              path: {service.liveness_path}",
            f"              port: {port}",
            "            initialDelaySeconds: 30",
            "            periodSeconds: 10",
            "          readinessProbe:",
            "            httpGet:",
            f"              path: {service.readiness_path}",
            f"              port: {port}",
            "            initialDelaySeconds: 5",
            "            periodSeconds: 5",
        ]

    return _document([
        "apiVersion: apps/v1",
        f"kind: {service.kind}",
        "metadata:",
        f"  name: {RELEASE}-{service.name}",
        "  labels:",
        f"    app: {service.name}",
        f"    chart: {CHART_LABEL}",
        "spec:",
        *spec,
        "  selector:",
        "    matchLabels:",
        f"      app: {service.name}",
        "  template:",
        "    metadata:",
        "      labels:",
        f"        app: {service.name}",
        "    spec:",
        *pod_spec,
    ])


def render_service(service_name: str, template: Template) -> str:
    service = template.find_service(service_name)
    if service is None:
        return ""

    if service.is_external and service.custom_ports:
        ports = []
        for port in service.custom_ports:
            ports += [
                f"    - name: {port.name}",
                f"      port: {port.port}",
                f"      targetPort: {port.port}",
                "      protocol: TCP",
            ]
    else:
        ports = [
            f"    - port: {SHARED_PORT}",
            f"      targetPort: {SHARED_PORT}",
            "      protocol: TCP",
        ]

    return _document([
        "apiVersion: v1",
        "kind: Service",
        "metadata:",
        f"  name: {RELEASE}-{service.name}",
        "  labels:",
        f"    app: {service.name}",
        "spec:",
        "  type: ClusterIP",
        "  ports:",
        *ports,
        "  selector:",
        f"    app: {service.name}",
    ])


def render_config_map(config_map_name: str, template: Template) -> str:
    if template.find_config_map(config_map_name) is None:
        return ""
    return _document([
        "apiVersion: v1",
        "kind: ConfigMap",
        "metadata:",
        f"  name: {RELEASE}-{config_map_name}",
        "data:",
        f"  {{{{- range $key, $value := {values_ref('configMaps', config_map_name)} }}}}",
        "  {{ $key }}: {{ $value | quote }}",
        "  {{- end }}",
    ])


def render_registry_secret(template: Template) -> str:
    """Image pull secret; the password only ever comes from values at install time."""
    username = _go_string(template.registry_secret.username or "")
    email = _go_string(template.registry_secret.email or "")
    auths = r'"{\"auths\": {\"%s\": {\"username\": \"%s\", \"password\": \"%s\", \"email\": \"%s\"}}}"'
    return _document([
        "apiVersion: v1",
        "kind: Secret",
        "metadata:",
        f"  name: {REGISTRY_SECRET}",
        "type: kubernetes.io/dockerconfigjson",
        "data:",
        f"  .dockerconfigjson: {{{{ printf {auths} .Values.global.registry.url {username} "
        f"(.Values.global.registry.password | default \"\") {email} | b64enc }}}}",
    ])


def render_tls_secret(secret_name: str, template: Template) -> str:
    if template.find_tls_secret(secret_name) is None:
        return ""
    ref = values_ref("tlsSecrets", secret_name)
    return _document([
        "apiVersion: v1",
        "kind: Secret",
        "metadata:",
        f"  name: {RELEASE}-{secret_name}",
        "type: kubernetes.io/tls",
        "data:",
        f"  tls.crt: {{{{ {ref}.crt }}}}",
        f"  tls.key: {{{{ {ref}.key }}}}",
    ])


def render_opaque_secret(secret_name: str, template: Template) -> str:
    if template.find_opaque_secret(secret_name) is None:
        return ""
    return _document([
        "apiVersion: v1",
        "kind: Secret",
        "metadata:",
        f"  name: {RELEASE}-{secret_name}",
        "type: Opaque",
        "data:",
        f"  {{{{- range $key, $value := {values_ref('opaqueSecrets', secret_name)} }}}}",
        "  {{ $key }}: {{ $value }}",
        "  {{- end }}",
    ])


def gateway_routes(template: Template):
    """(path, service name) for every route of every source-built service, in template order."""
    return [
        (route.path, svc.name)
        for svc in template.services
        if not svc.is_external
        for route in svc.routes
    ]


def render_nginx_config_map(template: Template) -> str:
    blocks = []
    for path, service_name in gateway_routes(template):
        blocks.append("\n".join([
            f"        location {path} {{",
            f"            proxy_pass http://{RELEASE}-{service_name}:{SHARED_PORT};",
            "            proxy_set_header Host $host;",
            "            proxy_set_header X-Real-IP $remote_addr;",
            "            proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;",
            "            proxy_set_header X-Forwarded-Proto $scheme;",
            "        }",
        ]))

    lines = [
        "apiVersion: v1",
        "kind: ConfigMap",
        "metadata:",
        f"  name: {RELEASE}-{NGINX_GATEWAY}-config",
        "data:",
        "  default.conf: |",
        "    server {",
        f"        listen {SHARED_PORT};",
        "        server_name _;",
    ]
    if blocks:
        lines += [""] + "\n\n".join(blocks).split("\n")
    lines.append("    }")
    return _document(_guarded("nginx", lines))


def render_nginx_deployment() -> str:
    return _document(_guarded("nginx", [
        "apiVersion: apps/v1",
        "kind: Deployment",
        "metadata:",
        f"  name: {RELEASE}-{NGINX_GATEWAY}",
        "  labels:",
        f"    app: {NGINX_GATEWAY}",
        "spec:",
        "  replicas: 1",
        "  selector:",
        "    matchLabels:",
        f"      app: {NGINX_GATEWAY}",
        "  template:",
        "    metadata:",
        "      labels:",
        f"        app: {NGINX_GATEWAY}",
        "    spec:",
        "      containers:",
        "        - name: nginx",
        f"          image: {NGINX_IMAGE}",
        "          ports:",
        f"            - containerPort: {SHARED_PORT}",
        "          volumeMounts:",
        "            - name: nginx-config",
        "              mountPath: /etc/nginx/conf.d",
        "      volumes:",
        "        - name: nginx-config",
        "          configMap:",
        f"            name: {RELEASE}-{NGINX_GATEWAY}-config",
    ]))


def render_nginx_service() -> str:
    return _document(_guarded("nginx", [
        "apiVersion: v1",
        "kind: Service",
        "metadata:",
        f"  name: {RELEASE}-{NGINX_GATEWAY}",
        "  labels:",
        f"    app: {NGINX_GATEWAY}",
        "spec:",
        "  type: ClusterIP",
        "  ports:",
        f"    - port: {SHARED_PORT}",
        f"      targetPort: {SHARED_PORT}",
        "      protocol: TCP",
        "  selector:",
        f"    app: {NGINX_GATEWAY}",
    ]))


def render_redis_deployment() -> str:
    return _document(_guarded("redis", [
        "apiVersion: apps/v1",
        "kind: Deployment",
        "metadata:",
        f"  name: {RELEASE}-redis",
        "  labels:",
        "    app: redis",
        "spec:",
        "  replicas: 1",
        "  selector:",
        "    matchLabels:",
        "      app: redis",
        "  template:",
        "    metadata:",
        "      labels:",
        "        app: redis",
        "    spec:",
        "      containers:",
        "        - name: redis",
        f"          image: {REDIS_IMAGE}",
        "          ports:",
        f"            - containerPort: {REDIS_PORT}",
    ]))


def render_redis_service() -> str:
    return _document(_guarded("redis", [
        "apiVersion: v1",
        "kind: Service",
        "metadata:",
        f"  name: {RELEASE}-redis",
        "  labels:",
        "    app: redis",
        "spec:",
        "  type: ClusterIP",
        "  ports:",
        f"    - port: {REDIS_PORT}",
        f"      targetPort: {REDIS_PORT}",
        "      protocol: TCP",
        "  selector:",
        "    app: redis",
    ]))


def ingress_backend(mode: str) -> str:
    """Backend service name inside the ingress ``range .paths`` loop."""
    if mode == "nginx-gateway":
        return f"{ROOT_RELEASE}-{NGINX_GATEWAY}"
    return f"{ROOT_RELEASE}-{{{{ .serviceName }}}}"


def render_ingress(ingress_name: str, template: Template) -> str:
    ingress = template.find_ingress(ingress_name)
    if ingress is None:
        return ""
    ref = values_ref("ingress", ingress_name)
    return _document([
        "apiVersion: networking.k8s.io/v1",
        "kind: Ingress",
        "metadata:",
        f"  name: {RELEASE}-{ingress_name}",
        "  annotations:",
        "    kubernetes.io/ingress.class: nginx",
        "spec:",
        f"  {{{{- with {ref}.tls }}}}",
        "  tls:",
        "    {{- range . }}",
        "    - hosts:",
        "        {{- range .hosts }}",
        "        - {{ . | quote }}",
        "        {{- end }}",
        f"      secretName: {ROOT_RELEASE}-{{{{ .secretName }}}}",
        "    {{- end }}",
        "  {{- end }}",
        "  rules:",
        f"    {{{{- range {ref}.hosts }}}}",
        "    - host: {{ .host | quote }}",
        "      http:",
        "        paths:",
        "          {{- range .paths }}",
        "          - path: {{ .path }}",
        "            pathType: Prefix",
        "            backend:",
        "              service:",
        f"                name: {ingress_backend(ingress.mode)}",
        "                port:",
        f"                  number: {ROOT_SHARED_PORT}",
        "          {{- end }}",
        "    {{- end }}",
    ])
