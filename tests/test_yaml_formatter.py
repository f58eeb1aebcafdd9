import yaml

from helmdesigner.modules.charts.yaml_formatter import format_scalar, format_yaml


def test_scalars():
    assert format_scalar(True) == "true"
    assert format_scalar(False) == "false"
    assert format_scalar(8080) == "8080"
    assert format_scalar("plain") == "plain"
    assert format_scalar("http://reg.io") == '"http://reg.io"'


def test_nested_mapping_indents_two_spaces():
    text = format_yaml({"global": {"sharedPort": 8080, "registry": {"url": "reg.io"}}})
    assert text == "global:\n  sharedPort: 8080\n  registry:\n    url: reg.io\n"


def test_none_entries_are_dropped():
    text = format_yaml({"registry": {"url": "reg.io", "password": None}})
    assert "password" not in text


def test_scalar_sequence():
    assert format_yaml({"hosts": ["a.com", "b.com"]}) == "hosts:\n  - a.com\n  - b.com\n"


def test_sequence_of_mappings_is_valid_yaml():
    value = {
        "hosts": [
            {"host": "a.com", "paths": [{"path": "/x", "serviceName": "api"}]},
            {"host": "b.com", "paths": []},
        ],
        "enabled": False,
    }
    parsed = yaml.safe_load(format_yaml(value))
    assert parsed["hosts"][0] == {"host": "a.com", "paths": [{"path": "/x", "serviceName": "api"}]}
    assert parsed["hosts"][1]["host"] == "b.com"
    assert parsed["enabled"] is False


def test_colon_strings_survive_parsing():
    parsed = yaml.safe_load(format_yaml({"url": "https://reg.io:5000/team"}))
    assert parsed["url"] == "https://reg.io:5000/team"


def test_formatting_is_deterministic():
    value = {"b": 1, "a": {"z": [1, 2], "y": "v:1"}}
    assert format_yaml(value) == format_yaml(value)
    # insertion order, not sorted
    assert format_yaml(value).index("b:") < format_yaml(value).index("a:")


def test_empty_strings_stay_strings():
    assert format_scalar("") == '""'
    assert yaml.safe_load(format_yaml({"env": {"DB_HOST": ""}})) == {"env": {"DB_HOST": ""}}
