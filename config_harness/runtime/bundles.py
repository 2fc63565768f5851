"""
Config Harness Runtime - Bundle Initializers

A bundle initializer simulates loading one model version for a serving
format: it checks that the normalized configuration and the artifacts in
the version directory agree. It never deserializes the model itself.

The set of formats is closed; every BundleFormat has exactly one
initializer registered in BUNDLE_INITIALIZERS.

Usage:
    from config_harness.runtime.bundles import get_initializer

    initializer = get_initializer("graphdef")
    initializer.initialize(model_path / "1", config)  # raises BundleInitError
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

from config_harness.runtime.errors import ErrorCode, bundle_error
from config_harness.runtime.models import ModelConfig, Platform
from config_harness.runtime.platforms import (
    CustomBundleSourceAdapterConfig,
    NetDefBundleSourceAdapterConfig,
)

logger = logging.getLogger(__name__)


class BundleFormat(Enum):
    """Model bundle formats the harness can initialize."""

    GRAPHDEF = "graphdef"
    SAVEDMODEL = "savedmodel"
    NETDEF = "netdef"
    PLAN = "plan"
    CUSTOM = "custom"


class BundleInitializer(ABC):
    """
    Initializes the bundle for one model version.

    Subclasses set platform and implement _check_artifacts().
    """

    platform: Platform

    def initialize(self, version_path: Path, config: ModelConfig) -> None:
        """
        Initialize the bundle at version_path using config.

        Raises:
            BundleInitError: version directory, platform or artifacts
                do not match what the format needs
        """
        version_path = Path(version_path)
        if not version_path.is_dir():
            raise bundle_error(
                ErrorCode.INIT_VERSION_NOT_FOUND,
                f"unable to find version directory {version_path.name} for {config.name}",
                model_name=config.name,
                platform=config.platform,
                path=version_path,
            )

        if config.platform != self.platform.value:
            raise bundle_error(
                ErrorCode.INIT_PLATFORM_MISMATCH,
                f"unexpected platform type {config.platform} for {config.name}, "
                f"expecting {self.platform.value}",
                model_name=config.name,
                platform=config.platform,
            )

        model_file = version_path / self.model_filename(config)
        self._check_artifacts(model_file, config)

        logger.debug(
            "Bundle initialized",
            extra={
                "model_name": config.name,
                "platform": config.platform,
                "path": str(model_file),
            },
        )

    def model_filename(self, config: ModelConfig) -> str:
        return config.default_model_filename or self.platform.default_model_filename

    @abstractmethod
    def _check_artifacts(self, model_file: Path, config: ModelConfig) -> None:
        """Check the artifacts for this format, raising BundleInitError."""

    def _require_file(self, path: Path, config: ModelConfig) -> None:
        if not path.is_file():
            raise bundle_error(
                ErrorCode.INIT_MODEL_FILE_NOT_FOUND,
                f"unable to find model file {path.name} for {config.name}",
                model_name=config.name,
                platform=config.platform,
                path=path,
            )

    def _require_tensors(self, config: ModelConfig) -> None:
        if not config.input or not config.output:
            raise bundle_error(
                ErrorCode.INIT_TENSOR_MISSING,
                f"{self.platform.value} model {config.name} must specify "
                f"at least one input and one output",
                model_name=config.name,
                platform=config.platform,
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(platform={self.platform.value})"


class GraphDefBundleInitializer(BundleInitializer):
    platform = Platform.TENSORFLOW_GRAPHDEF

    def _check_artifacts(self, model_file: Path, config: ModelConfig) -> None:
        self._require_file(model_file, config)


class SavedModelBundleInitializer(BundleInitializer):
    platform = Platform.TENSORFLOW_SAVEDMODEL

    SAVED_MODEL_FILENAMES = ("saved_model.pb", "saved_model.pbtxt")

    def _check_artifacts(self, model_file: Path, config: ModelConfig) -> None:
        if not model_file.is_dir():
            raise bundle_error(
                ErrorCode.INIT_MODEL_FILE_NOT_FOUND,
                f"unable to find SavedModel directory {model_file.name} for {config.name}",
                model_name=config.name,
                platform=config.platform,
                path=model_file,
            )
        if not any((model_file / name).is_file() for name in self.SAVED_MODEL_FILENAMES):
            raise bundle_error(
                ErrorCode.INIT_INVALID_ARTIFACT,
                f"SavedModel directory {model_file.name} for {config.name} "
                f"contains no saved_model.pb or saved_model.pbtxt",
                model_name=config.name,
                platform=config.platform,
                path=model_file,
            )


class NetDefBundleInitializer(BundleInitializer):
    platform = Platform.CAFFE2_NETDEF

    def __init__(self, adapter_config: Optional[NetDefBundleSourceAdapterConfig] = None):
        self.adapter_config = adapter_config or NetDefBundleSourceAdapterConfig()

    def _check_artifacts(self, model_file: Path, config: ModelConfig) -> None:
        self._require_file(model_file, config)
        init_file = model_file.with_name(self.adapter_config.init_model_prefix + model_file.name)
        self._require_file(init_file, config)
        self._require_tensors(config)


class PlanBundleInitializer(BundleInitializer):
    platform = Platform.TENSORRT_PLAN

    def _check_artifacts(self, model_file: Path, config: ModelConfig) -> None:
        self._require_file(model_file, config)
        self._require_tensors(config)


class CustomBundleInitializer(BundleInitializer):
    platform = Platform.CUSTOM

    def __init__(self, adapter_config: Optional[CustomBundleSourceAdapterConfig] = None):
        self.adapter_config = adapter_config or CustomBundleSourceAdapterConfig()

    def _check_artifacts(self, model_file: Path, config: ModelConfig) -> None:
        self._require_file(model_file, config)
        if model_file.suffix not in self.adapter_config.library_suffixes:
            raise bundle_error(
                ErrorCode.INIT_INVALID_ARTIFACT,
                f"custom model {config.name} must be a shared library, got {model_file.name}",
                model_name=config.name,
                platform=config.platform,
                path=model_file,
            )


BUNDLE_INITIALIZERS: Mapping[BundleFormat, BundleInitializer] = MappingProxyType(
    {
        BundleFormat.GRAPHDEF: GraphDefBundleInitializer(),
        BundleFormat.SAVEDMODEL: SavedModelBundleInitializer(),
        BundleFormat.NETDEF: NetDefBundleInitializer(),
        BundleFormat.PLAN: PlanBundleInitializer(),
        BundleFormat.CUSTOM: CustomBundleInitializer(),
    }
)


def get_initializer(fmt: Union[BundleFormat, str]) -> BundleInitializer:
    """
    Resolve the initializer for a bundle format.

    Raises:
        BundleInitError: unknown format name
    """
    try:
        return BUNDLE_INITIALIZERS[BundleFormat(fmt)]
    except ValueError as e:
        raise bundle_error(
            ErrorCode.INIT_UNKNOWN_FORMAT,
            f"unknown bundle format '{fmt}', expected one of "
            f"{', '.join(f.value for f in BundleFormat)}",
        ) from e
