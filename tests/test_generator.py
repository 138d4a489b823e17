import shutil

import pytest
import yaml

from embedded_mock.generator import generate_config, read_specification
from embedded_mock.loader import load_config_dirs


def test_generates_openapi_config_per_specification(petstore_spec, resources):
    target = generate_config([petstore_spec, resources / "swagger-orders.yaml"])
    try:
        assert (target / "petstore-simple.yaml").is_file()
        config = yaml.safe_load((target / "petstore-simple-config.yaml").read_text())
        assert config == {"plugin": "openapi", "specFile": "petstore-simple.yaml"}

        configs = load_config_dirs([str(target)])
        assert [c.plugin for c in configs] == ["openapi", "openapi"]
        assert {c.content["specFile"] for c in configs} == {"petstore-simple.yaml", "swagger-orders.yaml"}
    finally:
        shutil.rmtree(target)


def test_rejects_document_without_version_key(resources):
    with pytest.raises(ValueError, match="openapi"):
        generate_config([resources / "not-a-spec.yaml"])


def test_rejects_malformed_yaml(tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("openapi: [unclosed\n")

    with pytest.raises(ValueError):
        read_specification(broken)


def test_rejects_duplicate_names(petstore_spec, tmp_path):
    copy = tmp_path / petstore_spec.name
    shutil.copyfile(petstore_spec, copy)

    with pytest.raises(ValueError, match="Duplicate"):
        generate_config([petstore_spec, copy])


def test_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        generate_config([tmp_path / "nope.yaml"])


def test_accepts_json_documents(tmp_path):
    spec = tmp_path / "api.json"
    spec.write_text('{"openapi": "3.0.0", "info": {"title": "t", "version": "1"}, "paths": {}}')

    target = generate_config([spec])
    try:
        assert (target / "api-config.yaml").is_file()
    finally:
        shutil.rmtree(target)
