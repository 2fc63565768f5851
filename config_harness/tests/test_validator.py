"""
Tests for the Configuration Validator
"""

import pytest

from config_harness.runtime.errors import ConfigValidationError, ErrorCode
from config_harness.runtime.models import (
    DataType,
    DynamicBatching,
    InstanceGroup,
    InstanceGroupKind,
    ModelInput,
    ModelOutput,
)
from config_harness.runtime.validator import validate_model_config


def _raises(config, code, expected_platform=""):
    with pytest.raises(ConfigValidationError) as exc_info:
        validate_model_config(config, expected_platform)
    assert exc_info.value.code == code
    return exc_info.value


class TestIdentity:
    """Tests for name and platform rules."""

    def test_valid_config_passes(self, float32_config):
        validate_model_config(float32_config)

    def test_missing_name(self, float32_config):
        float32_config.name = ""
        _raises(float32_config, ErrorCode.VAL_MISSING_REQUIRED_FIELD)

    def test_missing_platform(self, float32_config):
        float32_config.platform = ""
        error = _raises(float32_config, ErrorCode.VAL_MISSING_REQUIRED_FIELD)
        assert error.context.field_name == "platform"

    def test_expected_platform_matches(self, float32_config):
        validate_model_config(float32_config, "tensorflow_graphdef")

    def test_expected_platform_mismatch(self, float32_config):
        error = _raises(float32_config, ErrorCode.VAL_PLATFORM_MISMATCH, "tensorrt_plan")
        assert error.context.expected == "tensorrt_plan"
        assert error.context.actual == "tensorflow_graphdef"

    def test_unknown_platform(self, float32_config):
        float32_config.platform = "onnxruntime_onnx"
        error = _raises(float32_config, ErrorCode.VAL_UNKNOWN_PLATFORM)
        assert "onnxruntime_onnx" in str(error)

    def test_missing_version_policy(self, float32_config):
        float32_config.version_policy = None
        _raises(float32_config, ErrorCode.VAL_MISSING_REQUIRED_FIELD)


class TestBatching:
    """Tests for max_batch_size and dynamic batching rules."""

    def test_negative_max_batch_size(self, float32_config):
        float32_config.max_batch_size = -1
        error = _raises(float32_config, ErrorCode.VAL_FIELD_OUT_OF_RANGE)
        assert str(error) == (
            "[VAL_FIELD_OUT_OF_RANGE] 'max_batch_size' must be non-negative value for float32_model"
        )

    def test_dynamic_batching_needs_batching(self, float32_config):
        float32_config.max_batch_size = 0
        float32_config.dynamic_batching = DynamicBatching()
        _raises(float32_config, ErrorCode.VAL_INVALID_BATCHING)

    @pytest.mark.parametrize("size", [0, 9])
    def test_preferred_size_out_of_range(self, float32_config, size):
        float32_config.dynamic_batching = DynamicBatching(preferred_batch_size=[4, size])
        _raises(float32_config, ErrorCode.VAL_INVALID_BATCHING)

    def test_negative_queue_delay(self, float32_config):
        float32_config.dynamic_batching = DynamicBatching(max_queue_delay_microseconds=-5)
        _raises(float32_config, ErrorCode.VAL_INVALID_BATCHING)

    def test_valid_dynamic_batching(self, float32_config):
        float32_config.dynamic_batching = DynamicBatching(
            preferred_batch_size=[4, 8], max_queue_delay_microseconds=100
        )
        validate_model_config(float32_config)


class TestInstanceGroups:
    """Tests for instance group rules."""

    def test_zero_count(self, float32_config):
        float32_config.instance_group = [InstanceGroup(name="g", kind=InstanceGroupKind.KIND_CPU, count=0)]
        _raises(float32_config, ErrorCode.VAL_INVALID_INSTANCE_GROUP)

    def test_gpu_group_without_gpus(self, float32_config):
        float32_config.instance_group = [InstanceGroup(name="g", kind=InstanceGroupKind.KIND_GPU)]
        error = _raises(float32_config, ErrorCode.VAL_INVALID_INSTANCE_GROUP)
        assert "KIND_GPU" in error.message

    def test_cpu_group_with_gpus(self, float32_config):
        float32_config.instance_group = [InstanceGroup(name="g", kind=InstanceGroupKind.KIND_CPU, gpus=[0])]
        _raises(float32_config, ErrorCode.VAL_INVALID_INSTANCE_GROUP)

    def test_gpu_group_with_gpus(self, float32_config):
        float32_config.instance_group = [InstanceGroup(name="g", kind=InstanceGroupKind.KIND_GPU, gpus=[0])]
        validate_model_config(float32_config)


class TestTensors:
    """Tests for input and output tensor rules."""

    def test_unnamed_input(self, float32_config):
        float32_config.input = [ModelInput(data_type=DataType.TYPE_FP32, dims=[1])]
        _raises(float32_config, ErrorCode.VAL_INVALID_TENSOR)

    def test_duplicate_output(self, float32_config):
        output = ModelOutput(name="OUTPUT0", data_type=DataType.TYPE_FP32, dims=[1])
        float32_config.output = [output, output]
        error = _raises(float32_config, ErrorCode.VAL_INVALID_TENSOR)
        assert "more than once" in error.message

    def test_same_name_across_input_and_output_is_allowed(self, float32_config):
        float32_config.output = [ModelOutput(name="INPUT0", data_type=DataType.TYPE_FP32, dims=[1])]
        validate_model_config(float32_config)

    def test_invalid_data_type(self, float32_config):
        float32_config.input = [ModelInput(name="INPUT0", dims=[1])]
        _raises(float32_config, ErrorCode.VAL_INVALID_TENSOR)

    def test_missing_dims(self, float32_config):
        float32_config.output = [ModelOutput(name="OUTPUT0", data_type=DataType.TYPE_FP32)]
        error = _raises(float32_config, ErrorCode.VAL_INVALID_TENSOR)
        assert error.context.field_name == "output.dims"

    @pytest.mark.parametrize("dims", [[0], [3, -2]])
    def test_bad_dims(self, float32_config, dims):
        float32_config.input = [ModelInput(name="INPUT0", data_type=DataType.TYPE_FP32, dims=dims)]
        _raises(float32_config, ErrorCode.VAL_INVALID_TENSOR)

    def test_variable_dims(self, float32_config):
        float32_config.input = [ModelInput(name="INPUT0", data_type=DataType.TYPE_FP32, dims=[-1, 3])]
        validate_model_config(float32_config)

    def test_no_tensors_is_valid(self, float32_config):
        float32_config.input = []
        float32_config.output = []
        validate_model_config(float32_config)
