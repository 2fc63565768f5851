"""
Config Harness Runtime - Single-Model Validation Pipeline

Composes the three collaborators for one model directory:

    normalize -> validate -> initialize bundle (version "1") -> debug dump

Each stage runs only if the previous one succeeded. A collaborator
failure is reported verbatim as the result text; the model's debug
string is the result text on success.

Collaborators signal failure by raising HarnessError. Any other
exception is a bug in the collaborator and propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from config_harness.runtime.bundles import BundleInitializer
from config_harness.runtime.errors import HarnessError
from config_harness.runtime.models import MODEL_VERSION_DIRNAME, ModelConfig
from config_harness.runtime.normalizer import normalize_model_config
from config_harness.runtime.platforms import PlatformConfigMap, build_platform_config_map
from config_harness.runtime.validator import validate_model_config

logger = logging.getLogger(__name__)

Normalizer = Callable[[Path, PlatformConfigMap, bool], ModelConfig]
Validator = Callable[[ModelConfig, str], None]


class ModelStage(Enum):
    """
    Per-model validation stages.

    State Transitions:
        NORMALIZING -> VALIDATING -> INITIALIZING -> COMPARING -> PASSED
                                                              -> FAILED
        Any stage before COMPARING may stop early; the model still moves
        on to COMPARING with the failure text as its result.
    """

    NORMALIZING = "normalizing"
    VALIDATING = "validating"
    INITIALIZING = "initializing"
    COMPARING = "comparing"
    PASSED = "passed"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (ModelStage.PASSED, ModelStage.FAILED)


@dataclass
class InitResult:
    """
    Outcome of validate_init for one model directory.

    stage is the stage that failed, or COMPARING when every stage succeeded.
    """

    success: bool
    text: str
    stage: ModelStage
    error: Optional[HarnessError] = None
    config: Optional[ModelConfig] = None

    @classmethod
    def ok(cls, config: ModelConfig) -> "InitResult":
        return cls(
            success=True,
            text=config.debug_string(),
            stage=ModelStage.COMPARING,
            config=config,
        )

    @classmethod
    def fail(cls, stage: ModelStage, error: HarnessError) -> "InitResult":
        return cls(success=False, text=str(error), stage=stage, error=error)


def validate_init(
    model_path: Path,
    autofill: bool,
    initializer: BundleInitializer,
    normalizer: Normalizer = normalize_model_config,
    validator: Validator = validate_model_config,
) -> InitResult:
    """
    Normalize, validate and initialize the model at model_path.

    Args:
        model_path: Model directory
        autofill: Let the normalizer derive unspecified fields
        initializer: Bundle initializer for the format under test
        normalizer: Configuration normalizer collaborator
        validator: Configuration validator collaborator

    Returns:
        InitResult; text is the debug string on success or the failing
        collaborator's error description
    """
    model_path = Path(model_path)
    platform_map = build_platform_config_map()

    try:
        config = normalizer(model_path, platform_map, autofill)
    except HarnessError as e:
        return _failed(model_path, ModelStage.NORMALIZING, e)

    try:
        validator(config, "")
    except HarnessError as e:
        return _failed(model_path, ModelStage.VALIDATING, e)

    version_path = model_path / MODEL_VERSION_DIRNAME
    try:
        initializer.initialize(version_path, config)
    except HarnessError as e:
        return _failed(model_path, ModelStage.INITIALIZING, e)

    return InitResult.ok(config)


def _failed(model_path: Path, stage: ModelStage, error: HarnessError) -> InitResult:
    logger.debug(
        "Model pipeline stopped",
        extra={"model_name": model_path.name, "stage": stage.value, **error.to_log_dict()},
    )
    return InitResult.fail(stage, error)
