import re

import pytest
import yaml

from conftest import make_template, make_version
from helmdesigner.modules.charts.assembler import (
    assemble_files, chart_slug, manifest_plan, package_filename
)


def test_demo_chart_has_exactly_five_files(demo_template, demo_version):
    files = assemble_files(demo_template, demo_version)
    assert [f.path for f in files] == [
        "demo/Chart.yaml",
        "demo/values.yaml",
        "demo/templates/deployment-api.yaml",
        "demo/templates/service-api.yaml",
        "demo/templates/secret-registry.yaml",
    ]
    chart_yaml = files[0].content
    assert "version: 1.0.0" in chart_yaml
    assert "name: demo" in chart_yaml


@pytest.mark.parametrize(
    "name, slug",
    [
        ("My Cool App", "my-cool-app"),
        ("My   App", "my-app"),
        ("Demo", "demo"),
        ("  Padded Name ", "padded-name"),
    ],
)
def test_chart_slug(name, slug):
    assert chart_slug(name) == slug


def test_package_filename(demo_template, demo_version):
    assert package_filename(demo_template, demo_version) == "demo-1.0.0.tgz"


def test_full_emission_order():
    template = make_template(
        services=[{"name": "api", "routes": [{"path": "/v1"}]}, {"name": "worker"}],
        config_maps=[{"name": "settings"}],
        tls_secrets=[{"name": "web-tls"}],
        opaque_secrets=[{"name": "creds"}],
        ingresses=[{"name": "public", "hosts": [{"hostname": "a.com"}]}],
        enable_nginx_gateway=True,
        enable_redis=True,
    )
    paths = [f.path.split("/", 2)[-1] for f in assemble_files(template, make_version())]
    assert paths == [
        "Chart.yaml",
        "values.yaml",
        "deployment-api.yaml",
        "service-api.yaml",
        "deployment-worker.yaml",
        "service-worker.yaml",
        "configmap-settings.yaml",
        "secret-registry.yaml",
        "secret-tls-web-tls.yaml",
        "secret-creds.yaml",
        "configmap-nginx-gateway.yaml",
        "deployment-nginx-gateway.yaml",
        "service-nginx-gateway.yaml",
        "deployment-redis.yaml",
        "service-redis.yaml",
        "ingress-public.yaml",
    ]


def test_workload_filename_follows_kind():
    template = make_template(services=[
        {"name": "db", "useStatefulSet": True},
        {"name": "agent", "isExternal": True, "image": "agent:1", "useDaemonSet": True},
    ])
    filenames = [e.filename for e in manifest_plan(template, make_version(values={}))]
    assert "statefulset-db.yaml" in filenames
    assert "daemonset-agent.yaml" in filenames


def test_assembly_is_deterministic(demo_template, demo_version):
    assert assemble_files(demo_template, demo_version) == assemble_files(demo_template, demo_version)


def test_nginx_and_redis_files_absent_when_disabled(demo_template, demo_version):
    paths = " ".join(f.path for f in assemble_files(demo_template, demo_version))
    assert "nginx" not in paths
    assert "redis" not in paths


def test_every_env_lookup_in_the_workload_resolves_against_values():
    template = make_template(services=[{
        "name": "api",
        "envVars": [{"name": "DB_HOST"}, {"name": "LOG_LEVEL", "defaultValue": "info"}],
    }])
    files = {f.path: f.content for f in assemble_files(template, make_version(values={}))}
    values = yaml.safe_load(files["demo/values.yaml"])
    lookups = re.findall(
        r'index \(index \.Values\.services "([^"]+)"\)\.env "([^"]+)"',
        files["demo/templates/deployment-api.yaml"],
    )
    assert lookups == [("api", "DB_HOST"), ("api", "LOG_LEVEL")]
    for service_name, env_name in lookups:
        env = values["services"][service_name]["env"]
        assert isinstance(env, dict)
        assert env_name in env
    assert values["services"]["api"]["env"] == {"DB_HOST": "", "LOG_LEVEL": "info"}
