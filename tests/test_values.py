import base64

import pytest
import yaml

from conftest import make_template, make_version
from helmdesigner.modules.charts.assembler import assemble_files, render_values_yaml
from helmdesigner.modules.charts.values import build_values, nginx_enabled, redis_enabled


def test_demo_values(demo_template, demo_version):
    values = build_values(demo_template, demo_version)
    assert list(values) == [
        "global", "services", "configMaps", "tlsSecrets", "opaqueSecrets", "ingress", "nginx", "redis"
    ]
    assert values["global"]["sharedPort"] == 8080
    assert values["global"]["registry"] == {"url": "reg.io", "project": "team", "password": None}
    assert values["services"]["api"]["imageTag"] == "v3"
    assert values["services"]["api"]["livenessPath"] == "/health"
    assert values["nginx"] == {"enabled": False}


def test_missing_image_tag_defaults_to_latest(demo_template):
    values = build_values(demo_template, make_version(values={}))
    assert values["services"]["api"]["imageTag"] == "latest"


def test_env_defaults_are_overridden_by_version_values():
    template = make_template(services=[{
        "name": "api",
        "envVars": [{"name": "LOG_LEVEL", "defaultValue": "info"}, {"name": "DB_HOST"}],
    }])
    version = make_version(values={"envValues": {"api": {"DB_HOST": "db"}}})
    assert build_values(template, version)["services"]["api"]["env"] == {"LOG_LEVEL": "info", "DB_HOST": "db"}


def test_every_defined_entity_gets_an_entry():
    template = make_template(
        config_maps=[{"name": "settings", "keys": [{"name": "MODE", "defaultValue": "prod"}]}],
        tls_secrets=[{"name": "web-tls"}],
        opaque_secrets=[{"name": "creds", "keys": [{"name": "TOKEN"}]}],
    )
    values = build_values(template, make_version(values={}))
    assert values["configMaps"] == {"settings": {"MODE": "prod"}}
    assert values["tlsSecrets"] == {"web-tls": {"crt": "", "key": ""}}
    assert values["opaqueSecrets"] == {"creds": {}}


def test_secret_material_is_base64_encoded():
    template = make_template(
        tls_secrets=[{"name": "web-tls"}],
        opaque_secrets=[{"name": "creds", "keys": [{"name": "TOKEN"}]}],
    )
    version = make_version(values={
        "tlsSecretValues": {"web-tls": {"crt": "CERT", "key": "KEY"}},
        "opaqueSecretValues": {"creds": {"TOKEN": "s3cret"}},
    })
    values = build_values(template, version)
    assert base64.b64decode(values["tlsSecrets"]["web-tls"]["crt"]) == b"CERT"
    assert base64.b64decode(values["opaqueSecrets"]["creds"]["TOKEN"]) == b"s3cret"


def test_static_tls_pair_used_when_version_supplies_none():
    template = make_template(tls_secrets=[{"name": "web-tls", "cert": "STATIC-CERT", "key": "STATIC-KEY"}])
    values = build_values(template, make_version(values={}))
    assert base64.b64decode(values["tlsSecrets"]["web-tls"]["key"]) == b"STATIC-KEY"


def test_registry_password_is_emitted_only_when_supplied(demo_template, demo_version):
    assert "password" not in render_values_yaml(demo_template, demo_version)
    with_password = demo_version.with_registry_password("hunter2")
    parsed = yaml.safe_load(render_values_yaml(demo_template, with_password))
    assert parsed["global"]["registry"]["password"] == "hunter2"
    assert demo_version.values.registry_password is None


@pytest.mark.parametrize(
    "template_flag, version_flag, expected",
    [
        (True, False, False),
        (True, None, True),
        (False, True, True),
        (False, None, False),
    ],
)
def test_three_state_flag_merge(template_flag, version_flag, expected):
    template = make_template(enable_nginx_gateway=template_flag, enable_redis=template_flag)
    version = make_version(values={"enableNginxGateway": version_flag, "enableRedis": version_flag})
    assert nginx_enabled(template, version) is expected
    assert redis_enabled(template, version) is expected

    values = build_values(template, version)
    assert values["nginx"]["enabled"] is expected
    assert values["redis"]["enabled"] is expected

    paths = [f.path for f in assemble_files(template, version)]
    assert ("demo/templates/deployment-nginx-gateway.yaml" in paths) is expected
    assert ("demo/templates/service-redis.yaml" in paths) is expected


def test_values_yaml_parses(demo_template, demo_version):
    parsed = yaml.safe_load(render_values_yaml(demo_template, demo_version))
    assert parsed["services"]["api"]["imageTag"] == "v3"
    assert parsed["redis"]["enabled"] is False


def test_declared_env_without_default_or_value_is_an_empty_string():
    template = make_template(services=[{"name": "api", "envVars": [{"name": "DB_HOST"}]}])
    version = make_version(values={})
    assert build_values(template, version)["services"]["api"]["env"] == {"DB_HOST": ""}
    parsed = yaml.safe_load(render_values_yaml(template, version))
    assert parsed["services"]["api"]["env"] == {"DB_HOST": ""}
