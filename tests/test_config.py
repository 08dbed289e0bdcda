from __future__ import annotations

import pytest

from demucs_cli.core.config import ProcessOptions, normalize_bitrate


@pytest.mark.parametrize("value, expected", [("320k", "320"), ("192", "192"), (256, "256"), ("128kbps", "128")])
def test_normalize_bitrate(value, expected):
    assert normalize_bitrate(value) == expected


def test_normalize_bitrate_rejects_garbage():
    with pytest.raises(ValueError):
        normalize_bitrate("high")


@pytest.mark.parametrize("kwargs", [
    {"device": "tpu"},
    {"format": "ogg"},
    {"concurrency": 0},
    {"timeout": 0},
    {"mp3_bitrate": "fast"},
    {"env_name": ""},
])
def test_invalid_options(kwargs):
    with pytest.raises(ValueError):
        ProcessOptions(**kwargs)


def test_options_are_frozen():
    options = ProcessOptions()
    with pytest.raises(Exception):
        options.device = "cuda"


def test_replace_ignores_none():
    options = ProcessOptions(model="htdemucs").replace(model=None, device="mps", concurrency=2)
    assert options.model == "htdemucs"
    assert options.device == "mps"
    assert options.concurrency == 2


def test_yaml_round_trip(tmp_path):
    options = ProcessOptions(env_name="sep", device="cuda", model="htdemucs_ft", output_dir="stems",
                             format="mp3", mp3_bitrate="320k", concurrency=3, timeout=900.0)
    path = tmp_path / "cfg.yaml"
    options.to_yaml(path)
    assert ProcessOptions.from_yaml(path) == options


def test_yaml_partial_uses_defaults(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("demucs:\n  device: cuda\n  mp3_bitrate: 192\nprocessing:\n  jobs: 2\n")
    options = ProcessOptions.from_yaml(path)
    assert options.env_name == "demucs"
    assert options.device == "cuda"
    assert options.mp3_bitrate == "192"
    assert options.concurrency == 2
    assert options.timeout is None


def test_yaml_empty_file(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("")
    assert ProcessOptions.from_yaml(path) == ProcessOptions()


def test_yaml_not_a_mapping(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        ProcessOptions.from_yaml(path)


def test_yaml_null_values_use_defaults(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("processing:\n  jobs: null\n  verbose: null\n  timeout: null\n")
    options = ProcessOptions.from_yaml(path)
    assert options.concurrency == 1
    assert options.verbose is False
    assert options.timeout is None


@pytest.mark.parametrize("body", [
    "processing:\n  jobs: 2.7\n",
    "processing:\n  jobs: '2'\n",
    "processing:\n  jobs: true\n",
    "processing:\n  dry_run: 'false'\n",
    "processing:\n  verbose: 1\n",
    "processing:\n  timeout: soon\n",
])
def test_yaml_wrong_types_rejected(tmp_path, body):
    path = tmp_path / "cfg.yaml"
    path.write_text(body)
    with pytest.raises(ValueError):
        ProcessOptions.from_yaml(path)


def test_yaml_integer_timeout_accepted(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("processing:\n  timeout: 600\n")
    assert ProcessOptions.from_yaml(path).timeout == 600.0


@pytest.mark.parametrize("value", [True, False])
def test_bool_concurrency_rejected(value):
    with pytest.raises(ValueError):
        ProcessOptions(concurrency=value)
