import json

import pytest

from grainscope.config.constants import load_pipeline_config, save_pipeline_config
from grainscope.core.models.pipeline_config import PipelineConfig


def test_default_config_is_valid():
    assert PipelineConfig().validate() == (True, None)


def test_weights_must_sum_to_one():
    config = PipelineConfig()
    config.image_blur.laplacian_weight = 0.9
    is_valid, error = config.validate()
    assert not is_valid
    assert "pesos" in error


def test_invalid_polarity_is_rejected():
    config = PipelineConfig()
    config.contour.polarity = "sideways"
    assert not config.validate()[0]


def test_from_dict_partial_sections_use_defaults():
    config = PipelineConfig.from_dict({
        "_comment": "ignorado",
        "restoration": {"rl_iterations": 5},
        "dedup": {"strategy_priority": ["BLOB", "CONTOUR", "WATERSHED"]},
        "parallel_detection": True,
    })
    assert config.restoration.rl_iterations == 5
    assert config.restoration.unsharp_amount == 1.5
    assert config.dedup.strategy_priority == ("BLOB", "CONTOUR", "WATERSHED")
    assert config.parallel_detection is True


@pytest.mark.parametrize("data", [
    {"unknown_section": {}},
    {"restoration": {"not_a_param": 1}},
    {"restoration": {"rl_iterations": 0}},
])
def test_from_dict_rejects_bad_input(data):
    with pytest.raises(ValueError):
        PipelineConfig.from_dict(data)


def test_dict_round_trip():
    config = PipelineConfig()
    config.contour.polarity = "dark"
    config.enhance.edge_weight = 0.3
    assert PipelineConfig.from_dict(config.to_dict()) == config


def test_load_missing_file_returns_defaults(tmp_path):
    config = load_pipeline_config(str(tmp_path / "missing.json"))
    assert config == PipelineConfig()


def test_load_invalid_file_returns_defaults(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ no es json", encoding="utf-8")
    assert load_pipeline_config(str(path)) == PipelineConfig()


def test_load_valid_file(tmp_path):
    path = tmp_path / "pipeline.json"
    path.write_text(json.dumps({"object_blur": {"laplacian_threshold": 80.0}}), encoding="utf-8")
    assert load_pipeline_config(str(path)).object_blur.laplacian_threshold == 80.0


def test_bundled_defaults_file_loads():
    assert load_pipeline_config().validate()[0]


def test_save_then_load(tmp_path):
    path = tmp_path / "saved.json"
    config = PipelineConfig()
    config.blob.max_radius = 70
    assert save_pipeline_config(config, str(path))
    assert load_pipeline_config(str(path)) == config


def test_save_refuses_invalid_config(tmp_path):
    config = PipelineConfig()
    config.restoration.nsr_min = 0.0
    path = tmp_path / "invalid.json"
    assert not save_pipeline_config(config, str(path))
    assert not path.exists()


@pytest.mark.parametrize("section, key, value", [
    ("contour", "min_solidity", 1.5),
    ("blob", "blur_size", 4),
    ("watershed", "marker_distance_ratio", 1.0),
])
def test_detection_parameters_are_validated(section, key, value):
    config = PipelineConfig()
    setattr(getattr(config, section), key, value)
    assert not config.validate()[0]


def test_detection_defaults():
    config = PipelineConfig()
    assert config.contour.min_solidity == 0.3
    assert config.blob.blur_size == 5
    assert config.watershed.marker_distance_ratio == 0.7
