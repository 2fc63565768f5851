"""
Config Harness Runtime - Model Configuration Validation

This package provides the pieces of the model configuration harness:

- build_platform_config_map: Platform -> packed adapter config registry
- normalize_model_config: Reads and completes a model's config.yaml
- validate_model_config: Checks a normalized config against platform rules
- BundleInitializer: Per-format check that artifacts match the config
- validate_init: Runs the three collaborators for one model directory
- match_candidates: Compares actual output with "expected*" golden files
- RepositoryWalker: Validates every model under a fixture repository

Usage:
    from config_harness.runtime import RepositoryWalker, get_initializer

    walker = RepositoryWalker(source_root, get_initializer("savedmodel"))
    reports = walker.validate_all("tensorflow_savedmodel")
    for report in reports:
        for outcome in report.failures:
            print(outcome.model_name, outcome.match.exemplar_name)
"""

from config_harness.runtime.models import (
    EXPECTED_PREFIX,
    MODEL_CONFIG_FILENAME,
    MODEL_VERSION_DIRNAME,
    DataType,
    DynamicBatching,
    InputFormat,
    InstanceGroup,
    InstanceGroupKind,
    ModelConfig,
    ModelInput,
    ModelOutput,
    Platform,
    VersionPolicy,
    is_known_platform,
    read_model_config,
    write_model_config,
)
from config_harness.runtime.errors import (
    HarnessError,
    NormalizationError,
    ConfigValidationError,
    BundleInitError,
    PlatformConfigError,
    FixtureError,
    ErrorCode,
    ErrorContext,
)
from config_harness.runtime.platforms import (
    PlatformConfig,
    PlatformConfigMap,
    build_platform_config_map,
    unpack_adapter_config,
)
from config_harness.runtime.normalizer import (
    normalize_model_config,
    visible_gpus,
)
from config_harness.runtime.validator import validate_model_config
from config_harness.runtime.bundles import (
    BUNDLE_INITIALIZERS,
    BundleFormat,
    BundleInitializer,
    get_initializer,
)
from config_harness.runtime.pipeline import (
    InitResult,
    ModelStage,
    validate_init,
)
from config_harness.runtime.matcher import (
    Candidate,
    MatchResult,
    is_candidate_name,
    match_candidates,
    matches_expected,
    select_candidates,
)
from config_harness.runtime.walker import (
    ModelOutcome,
    RepositoryReport,
    RepositoryWalker,
)

__all__ = [
    # Models
    "EXPECTED_PREFIX",
    "MODEL_CONFIG_FILENAME",
    "MODEL_VERSION_DIRNAME",
    "DataType",
    "DynamicBatching",
    "InputFormat",
    "InstanceGroup",
    "InstanceGroupKind",
    "ModelConfig",
    "ModelInput",
    "ModelOutput",
    "Platform",
    "VersionPolicy",
    "is_known_platform",
    "read_model_config",
    "write_model_config",
    # Errors
    "HarnessError",
    "NormalizationError",
    "ConfigValidationError",
    "BundleInitError",
    "PlatformConfigError",
    "FixtureError",
    "ErrorCode",
    "ErrorContext",
    # Platforms
    "PlatformConfig",
    "PlatformConfigMap",
    "build_platform_config_map",
    "unpack_adapter_config",
    # Collaborators
    "normalize_model_config",
    "visible_gpus",
    "validate_model_config",
    "BUNDLE_INITIALIZERS",
    "BundleFormat",
    "BundleInitializer",
    "get_initializer",
    # Pipeline
    "InitResult",
    "ModelStage",
    "validate_init",
    # Matcher
    "Candidate",
    "MatchResult",
    "is_candidate_name",
    "match_candidates",
    "matches_expected",
    "select_candidates",
    # Walker
    "ModelOutcome",
    "RepositoryReport",
    "RepositoryWalker",
]
