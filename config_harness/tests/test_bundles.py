"""
Tests for Bundle Initializers
"""

import pytest

from config_harness.runtime.bundles import (
    BUNDLE_INITIALIZERS,
    BundleFormat,
    BundleInitializer,
    CustomBundleInitializer,
    NetDefBundleInitializer,
    get_initializer,
)
from config_harness.runtime.errors import BundleInitError, ErrorCode
from config_harness.runtime.models import Platform
from config_harness.runtime.platforms import (
    CustomBundleSourceAdapterConfig,
    NetDefBundleSourceAdapterConfig,
)


def _initialize(fmt, version_path, config):
    get_initializer(fmt).initialize(version_path, config)


def _raises(fmt, version_path, config, code):
    with pytest.raises(BundleInitError) as exc_info:
        _initialize(fmt, version_path, config)
    assert exc_info.value.code == code
    return exc_info.value


@pytest.fixture
def version_path(tmp_path):
    path = tmp_path / "model" / "1"
    path.mkdir(parents=True)
    return path


class TestRegistry:
    """Tests for the closed set of bundle formats."""

    def test_one_initializer_per_format(self):
        assert set(BUNDLE_INITIALIZERS) == set(BundleFormat)
        for initializer in BUNDLE_INITIALIZERS.values():
            assert isinstance(initializer, BundleInitializer)

    def test_platforms_are_distinct(self):
        platforms = [i.platform for i in BUNDLE_INITIALIZERS.values()]
        assert sorted(p.value for p in platforms) == sorted(Platform.values())

    def test_lookup_by_name_or_enum(self):
        assert get_initializer("plan") is get_initializer(BundleFormat.PLAN)

    def test_unknown_format(self):
        with pytest.raises(BundleInitError) as exc_info:
            get_initializer("onnx")
        assert exc_info.value.code == ErrorCode.INIT_UNKNOWN_FORMAT
        assert "graphdef" in exc_info.value.message


class TestCommonChecks:
    """Tests shared by every format."""

    @pytest.mark.parametrize("fmt", [f.value for f in BundleFormat])
    def test_missing_version_directory(self, tmp_path, float32_config, fmt):
        error = _raises(fmt, tmp_path / "1", float32_config, ErrorCode.INIT_VERSION_NOT_FOUND)
        assert str(error) == "[INIT_VERSION_NOT_FOUND] unable to find version directory 1 for float32_model"

    @pytest.mark.parametrize("fmt", ["savedmodel", "netdef", "plan", "custom"])
    def test_platform_mismatch(self, version_path, float32_config, fmt):
        error = _raises(fmt, version_path, float32_config, ErrorCode.INIT_PLATFORM_MISMATCH)
        assert str(error).startswith(
            "[INIT_PLATFORM_MISMATCH] unexpected platform type tensorflow_graphdef for float32_model, expecting "
        )

    def test_default_model_filename_is_honored(self, version_path, float32_config):
        (version_path / "frozen.pb").touch()
        float32_config.default_model_filename = "frozen.pb"

        _initialize("graphdef", version_path, float32_config)

    def test_missing_model_file(self, version_path, float32_config):
        error = _raises("graphdef", version_path, float32_config, ErrorCode.INIT_MODEL_FILE_NOT_FOUND)
        assert "model.graphdef" in error.message


class TestGraphDef:
    def test_file_present(self, version_path, float32_config):
        (version_path / "model.graphdef").touch()
        _initialize("graphdef", version_path, float32_config)

    def test_directory_is_not_a_graphdef(self, version_path, float32_config):
        (version_path / "model.graphdef").mkdir()
        _raises("graphdef", version_path, float32_config, ErrorCode.INIT_MODEL_FILE_NOT_FOUND)


class TestSavedModel:
    @pytest.fixture(autouse=True)
    def savedmodel_config(self, float32_config):
        float32_config.platform = "tensorflow_savedmodel"

    @pytest.mark.parametrize("filename", ["saved_model.pb", "saved_model.pbtxt"])
    def test_directory_with_saved_model(self, version_path, float32_config, filename):
        (version_path / "model.savedmodel").mkdir()
        (version_path / "model.savedmodel" / filename).touch()
        _initialize("savedmodel", version_path, float32_config)

    def test_file_instead_of_directory(self, version_path, float32_config):
        (version_path / "model.savedmodel").touch()
        _raises("savedmodel", version_path, float32_config, ErrorCode.INIT_MODEL_FILE_NOT_FOUND)

    def test_empty_directory(self, version_path, float32_config):
        (version_path / "model.savedmodel").mkdir()
        _raises("savedmodel", version_path, float32_config, ErrorCode.INIT_INVALID_ARTIFACT)


class TestNetDef:
    @pytest.fixture(autouse=True)
    def netdef_config(self, float32_config):
        float32_config.platform = "caffe2_netdef"

    def test_both_nets_present(self, version_path, float32_config):
        (version_path / "model.netdef").touch()
        (version_path / "init_model.netdef").touch()
        _initialize("netdef", version_path, float32_config)

    def test_missing_init_net(self, version_path, float32_config):
        (version_path / "model.netdef").touch()
        error = _raises("netdef", version_path, float32_config, ErrorCode.INIT_MODEL_FILE_NOT_FOUND)
        assert "init_model.netdef" in error.message

    def test_requires_tensors(self, version_path, float32_config):
        (version_path / "model.netdef").touch()
        (version_path / "init_model.netdef").touch()
        float32_config.output = []
        error = _raises("netdef", version_path, float32_config, ErrorCode.INIT_TENSOR_MISSING)
        assert str(error) == (
            "[INIT_TENSOR_MISSING] caffe2_netdef model float32_model must specify "
            "at least one input and one output"
        )

    def test_custom_init_prefix(self, version_path, float32_config):
        (version_path / "model.netdef").touch()
        (version_path / "startup_model.netdef").touch()
        initializer = NetDefBundleInitializer(NetDefBundleSourceAdapterConfig(init_model_prefix="startup_"))

        initializer.initialize(version_path, float32_config)


class TestPlan:
    @pytest.fixture(autouse=True)
    def plan_config(self, float32_config):
        float32_config.platform = "tensorrt_plan"

    def test_plan_present(self, version_path, float32_config):
        (version_path / "model.plan").touch()
        _initialize("plan", version_path, float32_config)

    def test_requires_tensors(self, version_path, float32_config):
        (version_path / "model.plan").touch()
        float32_config.input = []
        _raises("plan", version_path, float32_config, ErrorCode.INIT_TENSOR_MISSING)


class TestCustom:
    @pytest.fixture(autouse=True)
    def custom_config(self, float32_config):
        float32_config.platform = "custom"

    def test_library_present(self, version_path, float32_config):
        (version_path / "libcustom.so").touch()
        _initialize("custom", version_path, float32_config)

    def test_tensors_not_required(self, version_path, float32_config):
        (version_path / "libcustom.so").touch()
        float32_config.input = []
        float32_config.output = []
        _initialize("custom", version_path, float32_config)

    def test_not_a_shared_library(self, version_path, float32_config):
        (version_path / "custom.py").touch()
        float32_config.default_model_filename = "custom.py"
        _raises("custom", version_path, float32_config, ErrorCode.INIT_INVALID_ARTIFACT)

    def test_configured_suffixes(self, version_path, float32_config):
        (version_path / "libcustom.dylib").touch()
        float32_config.default_model_filename = "libcustom.dylib"
        initializer = CustomBundleInitializer(
            CustomBundleSourceAdapterConfig(library_suffixes=(".so", ".dylib"))
        )

        initializer.initialize(version_path, float32_config)
