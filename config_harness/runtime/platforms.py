"""
Config Harness Runtime - Platform Config Registry

Builds the mapping from platform identifier to the platform's bundle
source adapter configuration. The normalizer receives this map and
recovers the concrete adapter config for a model's platform.

Adapter configs are stored packed: the wrapper only knows the type name
and the serialized payload, and unpack() checks the requested type
before decoding.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from config_harness.runtime.errors import ErrorCode, PlatformConfigError, ErrorContext
from config_harness.runtime.models import Platform

TYPE_URL_PREFIX = "type.config-harness/"


# =============================================================================
# ADAPTER CONFIGS - One per platform
# =============================================================================


class BundleSourceAdapterConfig(BaseModel):
    """Settings shared by every bundle source adapter."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    enable_autofill: bool = True


class GraphDefBundleSourceAdapterConfig(BundleSourceAdapterConfig):
    allow_soft_placement: bool = True
    gpu_memory_fraction: float = 0.0


class SavedModelBundleSourceAdapterConfig(BundleSourceAdapterConfig):
    allow_soft_placement: bool = True
    gpu_memory_fraction: float = 0.0
    saved_model_tags: tuple[str, ...] = ("serve",)


class NetDefBundleSourceAdapterConfig(BundleSourceAdapterConfig):
    init_model_prefix: str = "init_"


class PlanBundleSourceAdapterConfig(BundleSourceAdapterConfig):
    # TensorRT plans carry their own tensor metadata only once deserialized
    enable_autofill: bool = False


class CustomBundleSourceAdapterConfig(BundleSourceAdapterConfig):
    enable_autofill: bool = False
    library_suffixes: tuple[str, ...] = Field(default=(".so",))


ADAPTER_CONFIG_TYPES: Mapping[Platform, Type[BundleSourceAdapterConfig]] = MappingProxyType(
    {
        Platform.TENSORFLOW_GRAPHDEF: GraphDefBundleSourceAdapterConfig,
        Platform.TENSORFLOW_SAVEDMODEL: SavedModelBundleSourceAdapterConfig,
        Platform.CAFFE2_NETDEF: NetDefBundleSourceAdapterConfig,
        Platform.TENSORRT_PLAN: PlanBundleSourceAdapterConfig,
        Platform.CUSTOM: CustomBundleSourceAdapterConfig,
    }
)

AdapterT = TypeVar("AdapterT", bound=BundleSourceAdapterConfig)


# =============================================================================
# PACKED CONFIG
# =============================================================================


@dataclass(frozen=True)
class PlatformConfig:
    """An adapter config packed behind its type name."""

    type_url: str
    value: str

    @classmethod
    def pack(cls, config: BundleSourceAdapterConfig) -> "PlatformConfig":
        return cls(
            type_url=TYPE_URL_PREFIX + type(config).__name__,
            value=config.model_dump_json(),
        )

    @property
    def type_name(self) -> str:
        return self.type_url[len(TYPE_URL_PREFIX):]

    def is_type(self, config_type: Type[BundleSourceAdapterConfig]) -> bool:
        return self.type_name == config_type.__name__

    def unpack(self, config_type: Type[AdapterT]) -> AdapterT:
        """
        Decode the packed config as config_type.

        Raises:
            PlatformConfigError: packed payload is of a different type
        """
        if not self.is_type(config_type):
            raise PlatformConfigError(
                code=ErrorCode.PLAT_TYPE_MISMATCH,
                message=(
                    f"cannot unpack {self.type_name} as {config_type.__name__}"
                ),
                context=ErrorContext(
                    expected=config_type.__name__,
                    actual=self.type_name,
                ),
            )
        return config_type.model_validate_json(self.value)


PlatformConfigMap = Mapping[str, PlatformConfig]


def build_platform_config_map() -> PlatformConfigMap:
    """
    Build a fresh, read-only platform config map.

    Every platform the normalizer may resolve has an entry holding a
    default-constructed adapter config.
    """
    return MappingProxyType(
        {
            platform.value: PlatformConfig.pack(config_type())
            for platform, config_type in ADAPTER_CONFIG_TYPES.items()
        }
    )


def unpack_adapter_config(
    platform_map: PlatformConfigMap, platform: Platform
) -> BundleSourceAdapterConfig:
    """Recover the concrete adapter config for platform from the map."""
    return platform_map[platform.value].unpack(ADAPTER_CONFIG_TYPES[platform])
