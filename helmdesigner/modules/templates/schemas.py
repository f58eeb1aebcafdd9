"""Domain types for chart templates and their versioned values.

Rows arrive from Supabase in snake_case while the JSON columns (routes, env
vars, ingress rules, version values) are stored camelCase by the designer UI,
so every model accepts both spellings.
"""

import re
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DNS_LABEL_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")

IngressMode = Literal["nginx-gateway", "direct-services"]
TemplateVisibility = Literal["private", "public"]


class DomainModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Route(DomainModel):
    path: str


class EnvVarSchema(DomainModel):
    name: str
    description: Optional[str] = None
    required: bool = False
    default_value: Optional[str] = None


class ConfigMapEnvSource(DomainModel):
    config_map_name: str


class SecretEnvSource(DomainModel):
    secret_name: str


class ServicePort(DomainModel):
    name: str
    port: int = Field(ge=1, le=65535)


class Service(DomainModel):
    id: str = ""
    template_id: str = ""
    name: str
    routes: List[Route] = Field(default_factory=list)
    env_vars: List[EnvVarSchema] = Field(default_factory=list)
    health_check_enabled: bool = True
    liveness_path: str = "/health"
    readiness_path: str = "/ready"
    config_map_env_sources: List[ConfigMapEnvSource] = Field(default_factory=list)
    secret_env_sources: List[SecretEnvSource] = Field(default_factory=list)
    use_stateful_set: bool = False
    # External (prebuilt image) services
    is_external: bool = False
    image: Optional[str] = None
    custom_ports: List[ServicePort] = Field(default_factory=list)
    replicas: int = Field(default=1, ge=0)
    use_daemon_set: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if len(v) > 63 or not DNS_LABEL_PATTERN.match(v):
            raise ValueError(
                f"Service name '{v}' must be a DNS label (lowercase alphanumerics and hyphens)"
            )
        return v

    @field_validator("routes", "env_vars", "config_map_env_sources", "secret_env_sources", "custom_ports", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []

    @property
    def kind(self) -> str:
        if self.is_external and self.use_daemon_set:
            return "DaemonSet"
        if self.use_stateful_set:
            return "StatefulSet"
        return "Deployment"


class ConfigMapKey(DomainModel):
    name: str
    description: Optional[str] = None
    default_value: Optional[str] = None


class ConfigMap(DomainModel):
    id: str = ""
    template_id: str = ""
    name: str
    keys: List[ConfigMapKey] = Field(default_factory=list)

    @field_validator("keys", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []


class OpaqueSecretKey(ConfigMapKey):
    pass


class OpaqueSecret(DomainModel):
    id: str = ""
    template_id: str = ""
    name: str
    type: Literal["opaque"] = "opaque"
    keys: List[OpaqueSecretKey] = Field(default_factory=list)

    @field_validator("keys", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []


class RegistrySecret(DomainModel):
    """Pull credentials for the template's registry. The password is never persisted."""
    name: str = "registry-credentials"
    type: Literal["registry"] = "registry"
    server: str = ""
    username: str = ""
    email: Optional[str] = None


class TLSSecret(DomainModel):
    id: str = ""
    template_id: str = ""
    name: str
    type: Literal["tls"] = "tls"
    cert: Optional[str] = None
    key: Optional[str] = None
    not_before: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class IngressPath(DomainModel):
    path: str
    service_name: str


class IngressHost(DomainModel):
    hostname: str
    paths: List[IngressPath] = Field(default_factory=list)


class IngressTLS(DomainModel):
    secret_name: str
    hosts: List[str] = Field(default_factory=list)


class Ingress(DomainModel):
    id: str = ""
    template_id: str = ""
    name: str
    mode: IngressMode = "nginx-gateway"
    hosts: List[IngressHost] = Field(default_factory=list)
    tls: List[IngressTLS] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_tls_hosts(self) -> "Ingress":
        known = {h.hostname for h in self.hosts}
        seen: Dict[str, str] = {}
        for entry in self.tls:
            for hostname in entry.hosts:
                if hostname not in known:
                    raise ValueError(
                        f"TLS secret '{entry.secret_name}' references unknown host '{hostname}'"
                    )
                if hostname in seen:
                    raise ValueError(
                        f"Host '{hostname}' is covered by both '{seen[hostname]}' and '{entry.secret_name}'"
                    )
                seen[hostname] = entry.secret_name
        return self


class TLSSecretValue(DomainModel):
    crt: str = ""
    key: str = ""


class ChartVersionValues(DomainModel):
    image_tags: Dict[str, str] = Field(default_factory=dict)
    env_values: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    config_map_values: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    tls_secret_values: Dict[str, TLSSecretValue] = Field(default_factory=dict)
    opaque_secret_values: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    enable_nginx_gateway: Optional[bool] = None
    enable_redis: Optional[bool] = None
    registry_password: Optional[str] = None

    @field_validator(
        "image_tags", "env_values", "config_map_values", "tls_secret_values", "opaque_secret_values",
        mode="before",
    )
    @classmethod
    def none_as_empty(cls, v):
        return v or {}

    def to_storage(self) -> Dict:
        """Serialized form for persisting or cloning; the registry password never leaves memory."""
        return self.model_dump(by_alias=True, exclude={"registry_password"}, exclude_none=True)


class ChartVersion(DomainModel):
    id: str = ""
    template_id: str = ""
    version_name: str
    app_version: Optional[str] = None
    release_notes: Optional[str] = None
    values: ChartVersionValues = Field(default_factory=ChartVersionValues)
    created_at: Optional[datetime] = None

    @field_validator("values", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or {}

    def with_registry_password(self, password: Optional[str]) -> "ChartVersion":
        """Copy carrying a generation-time registry password."""
        values = self.values.model_copy(update={"registry_password": password})
        return self.model_copy(update={"values": values})


class Template(DomainModel):
    """A template together with its definition children and release history."""
    id: str = ""
    name: str
    description: str = ""
    shared_port: int = Field(default=8080, ge=1, le=65535)
    registry_url: str = ""
    registry_project: str = ""
    registry_secret: RegistrySecret = Field(default_factory=RegistrySecret)
    enable_nginx_gateway: bool = False
    enable_redis: bool = False
    visibility: TemplateVisibility = "private"
    readme: Optional[str] = None
    user_id: Optional[str] = None
    services: List[Service] = Field(default_factory=list)
    config_maps: List[ConfigMap] = Field(default_factory=list)
    tls_secrets: List[TLSSecret] = Field(default_factory=list)
    opaque_secrets: List[OpaqueSecret] = Field(default_factory=list)
    ingresses: List[Ingress] = Field(default_factory=list)
    versions: List[ChartVersion] = Field(default_factory=list)

    @field_validator("description", "registry_url", "registry_project", mode="before")
    @classmethod
    def none_as_blank(cls, v):
        return v or ""

    @field_validator("registry_secret", mode="before")
    @classmethod
    def none_as_default_secret(cls, v):
        return v or {}

    def find_version(self, version_name: str) -> Optional[ChartVersion]:
        """Exact version-name lookup; no semver range matching."""
        for version in self.versions:
            if version.version_name == version_name:
                return version
        return None

    def find_service(self, name: str) -> Optional[Service]:
        return next((s for s in self.services if s.name == name), None)

    def find_config_map(self, name: str) -> Optional[ConfigMap]:
        return next((c for c in self.config_maps if c.name == name), None)

    def find_tls_secret(self, name: str) -> Optional[TLSSecret]:
        return next((s for s in self.tls_secrets if s.name == name), None)

    def find_opaque_secret(self, name: str) -> Optional[OpaqueSecret]:
        return next((s for s in self.opaque_secrets if s.name == name), None)

    def find_ingress(self, name: str) -> Optional[Ingress]:
        return next((i for i in self.ingresses if i.name == name), None)


class ChartFile(BaseModel):
    path: str
    content: str


class TlsValidationRequest(DomainModel):
    cert: str = ""
    key: str = ""
