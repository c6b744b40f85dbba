import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from mixport.utils.config import EngineConfig, engine_config_from_env, load_config_data, load_engine_config


def test_defaults():
    config = EngineConfig()

    assert config.max_concurrent_jobs == 3
    assert config.max_job_duration_seconds == 600.0
    assert config.artifact_mode == "deferred"
    assert config.profiles_path is None


def test_env_overrides():
    config = engine_config_from_env(
        {
            "MIXPORT_MAX_CONCURRENT_JOBS": "5",
            "MIXPORT_MAX_JOB_DURATION_SECONDS": "30",
            "MIXPORT_ARTIFACT_MODE": "filesystem",
            "MIXPORT_OUTPUT_DIR": "/tmp/exports",
            "MIXPORT_LOG_EVENTS": "false",
        }
    )

    assert config.max_concurrent_jobs == 5
    assert config.max_job_duration_seconds == 30.0
    assert config.artifact_mode == "filesystem"
    assert config.output_dir == Path("/tmp/exports")
    assert config.log_events is False


def test_env_config_file_is_the_base(tmp_path):
    path = tmp_path / "engine.json"
    path.write_text(json.dumps({"max_concurrent_jobs": 2, "max_job_duration_seconds": 10}), encoding="utf-8")

    config = engine_config_from_env({"MIXPORT_CONFIG": str(path), "MIXPORT_MAX_CONCURRENT_JOBS": "4"})

    assert config.max_concurrent_jobs == 4
    assert config.max_job_duration_seconds == 10.0


def test_load_yaml_config(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "engine.yaml"
    path.write_text("max_concurrent_jobs: 8\nartifact_mode: object_storage\n", encoding="utf-8")

    config = load_engine_config(path)

    assert config.max_concurrent_jobs == 8
    assert config.artifact_mode == "object_storage"


def test_empty_yaml_reads_as_empty_mapping(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")

    assert load_config_data(path) == {}


@pytest.mark.parametrize(
    "data",
    [{"max_concurrent_jobs": 0}, {"artifact_mode": "carrier_pigeon"}, {"unknown_key": 1}],
)
def test_invalid_config_is_rejected(data):
    with pytest.raises(ValidationError):
        EngineConfig.model_validate(data)
