"""
Config Harness Runtime - Configuration Validator

Validates a normalized ModelConfig against the platform rules every
served model must satisfy.

Validation is performed in stages:
1. Identity (name, platform, expected platform)
2. Version policy and batching limits
3. Instance groups
4. Input and output tensors

Unlike contract validation of a whole model directory, the first
violated rule is raised immediately; the harness reports a single
failure description per model.
"""

from __future__ import annotations

import logging
from typing import Sequence, Union

from config_harness.runtime.errors import ErrorCode, validation_error
from config_harness.runtime.models import (
    DataType,
    InstanceGroupKind,
    ModelConfig,
    ModelInput,
    ModelOutput,
    is_known_platform,
)

logger = logging.getLogger(__name__)


def validate_model_config(config: ModelConfig, expected_platform: str = "") -> None:
    """
    Validate a normalized configuration.

    Args:
        config: Normalized model configuration
        expected_platform: Platform the config must use; empty accepts any

    Raises:
        ConfigValidationError: first rule the configuration violates
    """
    if not config.name:
        raise validation_error(
            ErrorCode.VAL_MISSING_REQUIRED_FIELD,
            "model configuration must specify 'name'",
            field_name="name",
        )

    if not config.platform:
        raise validation_error(
            ErrorCode.VAL_MISSING_REQUIRED_FIELD,
            f"must specify platform for model '{config.name}'",
            model_name=config.name,
            field_name="platform",
        )

    if expected_platform and config.platform != expected_platform:
        raise validation_error(
            ErrorCode.VAL_PLATFORM_MISMATCH,
            f"expected model of type {expected_platform} for {config.name}",
            model_name=config.name,
            platform=config.platform,
            expected=expected_platform,
            actual=config.platform,
        )

    if not is_known_platform(config.platform):
        raise validation_error(
            ErrorCode.VAL_UNKNOWN_PLATFORM,
            f"unexpected platform type {config.platform} for {config.name}",
            model_name=config.name,
            platform=config.platform,
        )

    if config.version_policy is None or not config.version_policy.is_set:
        raise validation_error(
            ErrorCode.VAL_MISSING_REQUIRED_FIELD,
            f"must specify 'version policy' for {config.name}",
            model_name=config.name,
            field_name="version_policy",
        )

    if config.max_batch_size < 0:
        raise validation_error(
            ErrorCode.VAL_FIELD_OUT_OF_RANGE,
            f"'max_batch_size' must be non-negative value for {config.name}",
            model_name=config.name,
            field_name="max_batch_size",
            actual=str(config.max_batch_size),
        )

    _validate_dynamic_batching(config)
    _validate_instance_groups(config)
    _validate_tensors(config, config.input, "input")
    _validate_tensors(config, config.output, "output")

    logger.debug("Model configuration valid", extra={"model_name": config.name})


def _validate_dynamic_batching(config: ModelConfig) -> None:
    batching = config.dynamic_batching
    if batching is None:
        return

    if config.max_batch_size == 0:
        raise validation_error(
            ErrorCode.VAL_INVALID_BATCHING,
            f"dynamic batching requires 'max_batch_size' > 0 for {config.name}",
            model_name=config.name,
            field_name="dynamic_batching",
        )

    for size in batching.preferred_batch_size:
        if size < 1 or size > config.max_batch_size:
            raise validation_error(
                ErrorCode.VAL_INVALID_BATCHING,
                f"dynamic batching preferred size must be positive and can't exceed "
                f"max_batch_size {config.max_batch_size} for {config.name}",
                model_name=config.name,
                field_name="dynamic_batching.preferred_batch_size",
                actual=str(size),
            )

    if batching.max_queue_delay_microseconds < 0:
        raise validation_error(
            ErrorCode.VAL_INVALID_BATCHING,
            f"dynamic batching 'max_queue_delay_microseconds' must be non-negative for {config.name}",
            model_name=config.name,
            field_name="dynamic_batching.max_queue_delay_microseconds",
        )


def _validate_instance_groups(config: ModelConfig) -> None:
    for group in config.instance_group:
        if group.count < 1:
            raise validation_error(
                ErrorCode.VAL_INVALID_INSTANCE_GROUP,
                f"instance group {group.name} of model {config.name} "
                f"must specify 'count' >= 1",
                model_name=config.name,
                field_name="instance_group.count",
                actual=str(group.count),
            )

        if group.kind == InstanceGroupKind.KIND_GPU and not group.gpus:
            raise validation_error(
                ErrorCode.VAL_INVALID_INSTANCE_GROUP,
                f"instance group {group.name} of model {config.name} "
                f"has kind KIND_GPU but no GPUs are available",
                model_name=config.name,
                field_name="instance_group.gpus",
            )

        if group.kind == InstanceGroupKind.KIND_CPU and group.gpus:
            raise validation_error(
                ErrorCode.VAL_INVALID_INSTANCE_GROUP,
                f"instance group {group.name} of model {config.name} "
                f"has kind KIND_CPU but specifies one or more GPUs",
                model_name=config.name,
                field_name="instance_group.gpus",
            )


def _validate_tensors(
    config: ModelConfig,
    tensors: Sequence[Union[ModelInput, ModelOutput]],
    kind: str,
) -> None:
    seen = set()
    for tensor in tensors:
        if not tensor.name:
            raise validation_error(
                ErrorCode.VAL_INVALID_TENSOR,
                f"model {kind} must specify 'name' for {config.name}",
                model_name=config.name,
                field_name=f"{kind}.name",
            )

        if tensor.name in seen:
            raise validation_error(
                ErrorCode.VAL_INVALID_TENSOR,
                f"model {kind} '{tensor.name}' is specified more than once for {config.name}",
                model_name=config.name,
                field_name=f"{kind}.name",
            )
        seen.add(tensor.name)

        if tensor.data_type == DataType.TYPE_INVALID:
            raise validation_error(
                ErrorCode.VAL_INVALID_TENSOR,
                f"model {kind} '{tensor.name}' must specify 'data_type' for {config.name}",
                model_name=config.name,
                field_name=f"{kind}.data_type",
            )

        if not tensor.dims:
            raise validation_error(
                ErrorCode.VAL_INVALID_TENSOR,
                f"model {kind} '{tensor.name}' must specify 'dims' for {config.name}",
                model_name=config.name,
                field_name=f"{kind}.dims",
            )

        for dim in tensor.dims:
            if dim < 1 and dim != -1:
                raise validation_error(
                    ErrorCode.VAL_INVALID_TENSOR,
                    f"model {kind} '{tensor.name}' dimension must be integer >= 1, "
                    f"or -1 to indicate a variable-size dimension, for {config.name}",
                    model_name=config.name,
                    field_name=f"{kind}.dims",
                    actual=str(dim),
                )
