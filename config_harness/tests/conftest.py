"""
Pytest configuration for config harness tests
"""

import shutil
from pathlib import Path

import pytest

from config_harness.runtime import (
    ModelConfig,
    RepositoryWalker,
    build_platform_config_map,
    get_initializer,
)

TESTDATA_DIR = Path(__file__).parent / "testdata"

MODEL_CONFIG_SANITY = "testdata/model_config_sanity"
AUTOFILL_SANITY = "testdata/autofill_sanity"


@pytest.fixture(autouse=True)
def no_visible_gpus(monkeypatch):
    """Run every test as if on a CPU-only host."""
    monkeypatch.delenv("CUDA_VISIBLE_DEVICES", raising=False)


@pytest.fixture
def source_root(tmp_path) -> Path:
    """Copy the checked-in fixture repositories into a scratch source root."""
    shutil.copytree(TESTDATA_DIR, tmp_path / "testdata")
    return tmp_path


@pytest.fixture
def make_walker(source_root):
    """Build a walker over the scratch fixture repositories."""

    def _make(fmt, **kwargs) -> RepositoryWalker:
        kwargs.setdefault("metrics_enabled", False)
        return RepositoryWalker(
            source_root,
            get_initializer(fmt),
            model_config_sanity_rpath=MODEL_CONFIG_SANITY,
            autofill_sanity_rpath=AUTOFILL_SANITY,
            **kwargs,
        )

    return _make


@pytest.fixture
def platform_map():
    return build_platform_config_map()


@pytest.fixture
def make_model(tmp_path):
    """
    Create a model directory under tmp_path.

    Args to the returned factory:
        name: directory name
        config: config.yaml text, or None for no file
        artifacts: paths created under the version directory; a trailing
            '/' creates a directory
        goldens: golden file name -> content
    """

    def _make(name, config=None, artifacts=(), goldens=None) -> Path:
        model_path = tmp_path / "repo" / name
        model_path.mkdir(parents=True)
        if config is not None:
            (model_path / "config.yaml").write_text(config)
        for artifact in artifacts:
            target = model_path / "1" / artifact
            if artifact.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.touch()
        for golden_name, text in (goldens or {}).items():
            with open(model_path / golden_name, "w", newline="") as f:
                f.write(text)
        return model_path

    return _make


@pytest.fixture
def float32_config() -> ModelConfig:
    """A normalized, valid graphdef configuration."""
    return ModelConfig.model_validate(
        {
            "name": "float32_model",
            "platform": "tensorflow_graphdef",
            "version_policy": {"latest": {"num_versions": 1}},
            "max_batch_size": 8,
            "input": [{"name": "INPUT0", "data_type": "TYPE_FP32", "dims": [16]}],
            "output": [{"name": "OUTPUT0", "data_type": "TYPE_FP32", "dims": [16]}],
            "instance_group": [{"name": "float32_model_0", "kind": "KIND_CPU", "count": 1}],
        }
    )


def failure_summary(report) -> str:
    """Describe failed models for assertion messages."""
    lines = [f"{report.base_path.name}: {report.models_failed} failed"]
    for outcome in report.failures:
        lines.append(f"  {outcome.model_name}: expected {outcome.match.exemplar_name!r}")
        lines.append(f"    actual: {outcome.actual!r}")
    return "\n".join(lines)
