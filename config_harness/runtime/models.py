"""
Config Harness Runtime - Data Models

This module defines the model configuration schema the harness normalizes,
validates and dumps, together with the platform identifiers and the
text serialization used for config.yaml files and golden outputs.

The debug representation is deterministic: fields are emitted in
declaration order and instance_group, whose content depends on the GPUs
visible to the process, is always last.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# CONSTANTS - Fixture layout
# =============================================================================

# Configuration file inside each model directory
MODEL_CONFIG_FILENAME = "config.yaml"

# Version directory the harness initializes bundles from
MODEL_VERSION_DIRNAME = "1"

# Prefix of golden output entries inside a model directory
EXPECTED_PREFIX = "expected"


# =============================================================================
# ENUMS - Platforms and tensor properties
# =============================================================================


class Platform(Enum):
    """Model-serving platform identifiers."""

    TENSORFLOW_GRAPHDEF = "tensorflow_graphdef"
    TENSORFLOW_SAVEDMODEL = "tensorflow_savedmodel"
    CAFFE2_NETDEF = "caffe2_netdef"
    TENSORRT_PLAN = "tensorrt_plan"
    CUSTOM = "custom"

    @property
    def default_model_filename(self) -> str:
        """Artifact name looked up when default_model_filename is unset."""
        return PLATFORM_DEFAULT_FILENAMES[self]

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(p.value for p in cls)


PLATFORM_DEFAULT_FILENAMES = {
    Platform.TENSORFLOW_GRAPHDEF: "model.graphdef",
    Platform.TENSORFLOW_SAVEDMODEL: "model.savedmodel",
    Platform.CAFFE2_NETDEF: "model.netdef",
    Platform.TENSORRT_PLAN: "model.plan",
    Platform.CUSTOM: "libcustom.so",
}


def is_known_platform(platform: str) -> bool:
    """Check if platform is one of the supported identifiers."""
    return platform in Platform.values()


class DataType(Enum):
    """Tensor element data types."""

    TYPE_INVALID = "TYPE_INVALID"
    TYPE_BOOL = "TYPE_BOOL"
    TYPE_UINT8 = "TYPE_UINT8"
    TYPE_UINT16 = "TYPE_UINT16"
    TYPE_UINT32 = "TYPE_UINT32"
    TYPE_UINT64 = "TYPE_UINT64"
    TYPE_INT8 = "TYPE_INT8"
    TYPE_INT16 = "TYPE_INT16"
    TYPE_INT32 = "TYPE_INT32"
    TYPE_INT64 = "TYPE_INT64"
    TYPE_FP16 = "TYPE_FP16"
    TYPE_FP32 = "TYPE_FP32"
    TYPE_FP64 = "TYPE_FP64"
    TYPE_STRING = "TYPE_STRING"


class InputFormat(Enum):
    """Image layout hint for input tensors."""

    FORMAT_NONE = "FORMAT_NONE"
    FORMAT_NHWC = "FORMAT_NHWC"
    FORMAT_NCHW = "FORMAT_NCHW"


class InstanceGroupKind(Enum):
    """Where instances of a model execute."""

    KIND_GPU = "KIND_GPU"
    KIND_CPU = "KIND_CPU"


# =============================================================================
# CONFIGURATION SCHEMA
# =============================================================================


class ModelInput(BaseModel):
    """Input tensor definition."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    data_type: DataType = DataType.TYPE_INVALID
    format: Optional[InputFormat] = None
    dims: list[int] = Field(default_factory=list)


class ModelOutput(BaseModel):
    """Output tensor definition."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    data_type: DataType = DataType.TYPE_INVALID
    dims: list[int] = Field(default_factory=list)
    label_filename: Optional[str] = None


class LatestVersionPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    num_versions: int = 1


class AllVersionPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SpecificVersionPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    versions: list[int] = Field(default_factory=list)


class VersionPolicy(BaseModel):
    """Which versions of a model are served. At most one policy is set."""

    model_config = ConfigDict(extra="forbid")

    latest: Optional[LatestVersionPolicy] = None
    all: Optional[AllVersionPolicy] = None
    specific: Optional[SpecificVersionPolicy] = None

    @model_validator(mode="after")
    def _single_policy(self) -> "VersionPolicy":
        chosen = [p for p in (self.latest, self.all, self.specific) if p is not None]
        if len(chosen) > 1:
            raise ValueError("version_policy must set only one of latest, all, specific")
        return self

    @property
    def is_set(self) -> bool:
        return any(p is not None for p in (self.latest, self.all, self.specific))


class DynamicBatching(BaseModel):
    model_config = ConfigDict(extra="forbid")

    preferred_batch_size: list[int] = Field(default_factory=list)
    max_queue_delay_microseconds: int = 0


class InstanceGroup(BaseModel):
    """A group of model instances sharing an execution kind."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    kind: InstanceGroupKind = InstanceGroupKind.KIND_GPU
    count: int = 1
    gpus: list[int] = Field(default_factory=list)


class ModelConfig(BaseModel):
    """
    Normalized configuration for one model.

    Field order is the order of the debug representation; keep
    instance_group last.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = ""
    platform: str = ""
    version_policy: Optional[VersionPolicy] = None
    max_batch_size: int = 0
    input: list[ModelInput] = Field(default_factory=list)
    output: list[ModelOutput] = Field(default_factory=list)
    default_model_filename: str = ""
    dynamic_batching: Optional[DynamicBatching] = None
    instance_group: list[InstanceGroup] = Field(default_factory=list)

    def debug_string(self) -> str:
        """Return the deterministic textual dump compared to golden files."""
        return _dump(self.model_dump(mode="json", exclude_none=True))

    @classmethod
    def from_text(cls, text: str) -> "ModelConfig":
        """
        Parse a configuration from YAML text.

        Raises:
            yaml.YAMLError: text is not valid YAML
            ValueError: text is not a mapping or does not match the schema
        """
        data = yaml.safe_load(text)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("model configuration must be a YAML mapping")
        return cls.model_validate(data)

    def to_text(self) -> str:
        """Serialize only the fields that were explicitly set."""
        return _dump(self.model_dump(mode="json", exclude_unset=True, exclude_none=True))


def _dump(data: dict[str, Any]) -> str:
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def read_model_config(path: Path) -> ModelConfig:
    """Read a configuration file written in the config.yaml text format."""
    with open(path, "r", encoding="utf-8") as f:
        return ModelConfig.from_text(f.read())


def write_model_config(path: Path, config: ModelConfig) -> None:
    """Write a configuration file, replacing any existing content."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(config.to_text())
