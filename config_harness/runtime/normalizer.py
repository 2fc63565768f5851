"""
Config Harness Runtime - Configuration Normalizer

Produces a fully-specified ModelConfig for a model directory.

Normalization is performed in stages:
1. Read config.yaml (or start empty when autofill is enabled)
2. Autofill name and platform from the directory and its artifacts
3. Resolve the platform against the platform config map
4. Fill defaults: version policy, model filename, instance groups

The first failing stage raises a NormalizationError; nothing is
partially returned.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Sequence

import yaml

from config_harness.runtime.errors import ErrorCode, normalization_error
from config_harness.runtime.models import (
    MODEL_CONFIG_FILENAME,
    PLATFORM_DEFAULT_FILENAMES,
    InstanceGroup,
    InstanceGroupKind,
    LatestVersionPolicy,
    ModelConfig,
    Platform,
    VersionPolicy,
    read_model_config,
)
from config_harness.runtime.platforms import PlatformConfigMap, unpack_adapter_config

logger = logging.getLogger(__name__)

# Artifact probes in detection order. savedmodel is a directory, so it is
# checked before the single-file formats.
_PLATFORM_PROBES = (
    (Platform.TENSORFLOW_SAVEDMODEL, True),
    (Platform.TENSORFLOW_GRAPHDEF, False),
    (Platform.CAFFE2_NETDEF, False),
    (Platform.TENSORRT_PLAN, False),
    (Platform.CUSTOM, False),
)


def visible_gpus() -> list[int]:
    """
    Return the GPU ids visible to this process.

    Reads CUDA_VISIBLE_DEVICES; unset, empty or "-1" means no GPUs.
    """
    raw = os.environ.get("CUDA_VISIBLE_DEVICES", "").strip()
    if not raw or raw == "-1":
        return []
    devices = [part for part in raw.split(",") if part.strip()]
    return list(range(len(devices)))


def normalize_model_config(
    model_path: Path,
    platform_map: PlatformConfigMap,
    autofill: bool,
    gpus: Optional[Sequence[int]] = None,
) -> ModelConfig:
    """
    Read and normalize the configuration of the model at model_path.

    Args:
        model_path: Model directory (contains config.yaml and version dirs)
        platform_map: Platform identifier -> packed adapter config
        autofill: Derive unspecified fields from on-disk artifacts
        gpus: GPU ids to assign to GPU instance groups (default: visible_gpus())

    Returns:
        Normalized ModelConfig

    Raises:
        NormalizationError: configuration cannot be read or completed
    """
    model_path = Path(model_path)
    config = _read_or_empty(model_path, autofill)

    if autofill:
        if not config.name:
            config.name = model_path.name
        if not config.platform:
            config.platform = _detect_platform(model_path, config)

    if not config.platform:
        raise normalization_error(
            ErrorCode.NORM_PLATFORM_MISSING,
            f"must specify platform for model '{config.name}'",
            model_name=config.name,
            path=model_path,
            field_name="platform",
        )

    if config.platform not in platform_map:
        raise normalization_error(
            ErrorCode.NORM_UNKNOWN_PLATFORM,
            f"unexpected platform type {config.platform} for {config.name}",
            model_name=config.name,
            platform=config.platform,
            path=model_path,
        )

    platform = Platform(config.platform)
    adapter = unpack_adapter_config(platform_map, platform)

    if config.version_policy is None or not config.version_policy.is_set:
        config.version_policy = VersionPolicy(latest=LatestVersionPolicy(num_versions=1))

    if autofill and adapter.enable_autofill and not config.default_model_filename:
        config.default_model_filename = PLATFORM_DEFAULT_FILENAMES[platform]

    _normalize_instance_groups(config, list(visible_gpus() if gpus is None else gpus))

    logger.debug(
        "Normalized model configuration",
        extra={"model_name": config.name, "platform": config.platform, "autofill": autofill},
    )
    return config


def _read_or_empty(model_path: Path, autofill: bool) -> ModelConfig:
    config_path = model_path / MODEL_CONFIG_FILENAME
    if not config_path.is_file():
        if not autofill:
            raise normalization_error(
                ErrorCode.NORM_CONFIG_NOT_FOUND,
                f"unable to find {MODEL_CONFIG_FILENAME} for {model_path.name}",
                model_name=model_path.name,
                path=config_path,
            )
        return ModelConfig()

    try:
        return read_model_config(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise normalization_error(
            ErrorCode.NORM_PARSE_FAILED,
            f"failed to parse model configuration for {model_path.name}: {e}",
            model_name=model_path.name,
            path=config_path,
            cause=e,
        ) from e


def _detect_platform(model_path: Path, config: ModelConfig) -> str:
    """Pick the platform whose default artifact exists in a version dir."""
    if not model_path.is_dir():
        raise normalization_error(
            ErrorCode.NORM_AUTOFILL_FAILED,
            f"unable to autofill model '{config.name}', model path is not a directory",
            model_name=config.name,
            path=model_path,
        )
    version_dirs = sorted(
        p for p in model_path.iterdir() if p.is_dir() and p.name.isdigit()
    )
    for version_dir in version_dirs:
        for platform, is_dir in _PLATFORM_PROBES:
            filename = config.default_model_filename or PLATFORM_DEFAULT_FILENAMES[platform]
            candidate = version_dir / filename
            if (is_dir and candidate.is_dir()) or (not is_dir and candidate.is_file()):
                logger.debug(
                    "Detected platform from artifact",
                    extra={"model_name": config.name, "platform": platform.value, "path": str(candidate)},
                )
                return platform.value

    raise normalization_error(
        ErrorCode.NORM_AUTOFILL_FAILED,
        f"unable to autofill platform for model '{config.name}', no recognized model artifact",
        model_name=config.name,
        path=model_path,
        field_name="platform",
    )


def _normalize_instance_groups(config: ModelConfig, gpus: list[int]) -> None:
    if not config.instance_group:
        kind = InstanceGroupKind.KIND_GPU if gpus else InstanceGroupKind.KIND_CPU
        config.instance_group = [InstanceGroup(kind=kind, count=1)]

    groups = []
    for index, group in enumerate(config.instance_group):
        update = {}
        if not group.name:
            update["name"] = f"{config.name}_{index}"
        if group.kind == InstanceGroupKind.KIND_GPU and not group.gpus:
            update["gpus"] = list(gpus)
        groups.append(group.model_copy(update=update) if update else group)
    config.instance_group = groups
