"""
Config Harness Runtime - Repository Walker

Walks a fixture repository (one subdirectory per model), runs the
single-model pipeline on each model and matches the result against the
model's golden files.

Per-model failures are recorded and the walk continues. Fixture
failures (base directory cannot be listed or copied, config.yaml cannot
be rewritten) raise FixtureError and stop the run.

Usage:
    from config_harness.config import get_config
    from config_harness.runtime import RepositoryWalker, get_initializer

    config = get_config()
    walker = RepositoryWalker(config.source_root, get_initializer("graphdef"))
    reports = walker.validate_all("tensorflow_graphdef")
    assert all(report.ok for report in reports)
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import yaml

from config_harness.observability import (
    record_candidates_compared,
    record_model_validation,
    record_repository_run,
)
from config_harness.observability.logging import (
    LogTimer,
    clear_current_model,
    set_current_model,
)
from config_harness.runtime.bundles import BundleInitializer
from config_harness.runtime.errors import ErrorCode, fixture_error
from config_harness.runtime.matcher import (
    MatchResult,
    list_candidate_names,
    match_candidates,
    read_candidates,
)
from config_harness.runtime.models import (
    MODEL_CONFIG_FILENAME,
    read_model_config,
    write_model_config,
)
from config_harness.runtime.normalizer import normalize_model_config
from config_harness.runtime.pipeline import (
    ModelStage,
    Normalizer,
    Validator,
    validate_init,
)
from config_harness.runtime.validator import validate_model_config

logger = logging.getLogger(__name__)

DEFAULT_MODEL_CONFIG_SANITY_RPATH = "config_harness/tests/testdata/model_config_sanity"
DEFAULT_AUTOFILL_SANITY_RPATH = "config_harness/tests/testdata/autofill_sanity"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class ModelOutcome:
    """Result of validating one model directory."""

    model_name: str
    model_path: Path
    stage: ModelStage
    actual: str
    match: MatchResult
    duration_ms: int = 0

    @property
    def passed(self) -> bool:
        return self.stage == ModelStage.PASSED

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "model_name": self.model_name,
            "stage": self.stage.value,
            "matched": self.match.matched,
            "exemplar": self.match.exemplar_name,
            "candidates_compared": self.match.candidates_compared,
            "duration_ms": self.duration_ms,
        }


@dataclass
class RepositoryReport:
    """Result of one walker pass over a fixture repository."""

    base_path: Path
    autofill: bool
    platform: str
    outcomes: list[ModelOutcome] = field(default_factory=list)

    @property
    def models_tested(self) -> int:
        return len(self.outcomes)

    @property
    def models_passed(self) -> int:
        return sum(1 for o in self.outcomes if o.passed)

    @property
    def models_failed(self) -> int:
        return self.models_tested - self.models_passed

    @property
    def failures(self) -> list[ModelOutcome]:
        return [o for o in self.outcomes if not o.passed]

    @property
    def ok(self) -> bool:
        return self.models_failed == 0

    def outcome(self, model_name: str) -> Optional[ModelOutcome]:
        for o in self.outcomes:
            if o.model_name == model_name:
                return o
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "base_path": str(self.base_path),
            "autofill": self.autofill,
            "platform": self.platform,
            "models_tested": self.models_tested,
            "models_passed": self.models_passed,
            "models_failed": self.models_failed,
        }


# =============================================================================
# WALKER
# =============================================================================


class RepositoryWalker:
    """
    Validates every model directory under a fixture repository.

    Expected directory structure:
        <source_root>/<rpath>/
        ├── model_a/
        │   ├── config.yaml          (optional)
        │   ├── 1/                   (version-1 artifacts)
        │   ├── expected             (golden output)
        │   └── expected_autofill    (alternative golden output)
        └── model_b/
            └── ...
    """

    def __init__(
        self,
        source_root: Path | str,
        initializer: BundleInitializer,
        copy_fixtures: bool = False,
        metrics_enabled: bool = True,
        normalizer: Normalizer = normalize_model_config,
        validator: Validator = validate_model_config,
        model_config_sanity_rpath: str = DEFAULT_MODEL_CONFIG_SANITY_RPATH,
        autofill_sanity_rpath: str = DEFAULT_AUTOFILL_SANITY_RPATH,
    ):
        """
        Initialize the walker.

        Args:
            source_root: Root that repository paths are resolved against
            initializer: Bundle initializer for the format under test
            copy_fixtures: Validate a temporary copy of each repository
            metrics_enabled: Record Prometheus metrics
            normalizer: Configuration normalizer collaborator
            validator: Configuration validator collaborator
            model_config_sanity_rpath: Tree used by validate_all without autofill
            autofill_sanity_rpath: Tree used by validate_all with autofill
        """
        self.source_root = Path(source_root)
        self.initializer = initializer
        self.copy_fixtures = copy_fixtures
        self.metrics_enabled = metrics_enabled
        self.normalizer = normalizer
        self.validator = validator
        self.model_config_sanity_rpath = model_config_sanity_rpath
        self.autofill_sanity_rpath = autofill_sanity_rpath

    @classmethod
    def from_config(cls, config, initializer: BundleInitializer) -> "RepositoryWalker":
        """Create a walker from a HarnessConfig."""
        return cls(
            source_root=config.source_root,
            initializer=initializer,
            copy_fixtures=config.copy_fixtures,
            metrics_enabled=config.metrics_enabled,
            model_config_sanity_rpath=config.model_config_sanity_rpath,
            autofill_sanity_rpath=config.autofill_sanity_rpath,
        )

    def validate_all(self, platform: str) -> list[RepositoryReport]:
        """
        Run both canonical postures.

        1. Explicit configs: autofill off, platform forced to platform
        2. Inferred configs: autofill on, no platform override
        """
        return [
            self.validate_one(self.model_config_sanity_rpath, autofill=False, platform=platform),
            self.validate_one(self.autofill_sanity_rpath, autofill=True, platform=""),
        ]

    def validate_one(
        self, repository_rpath: str, autofill: bool, platform: str = ""
    ) -> RepositoryReport:
        """
        Validate every model under source_root / repository_rpath.

        Raises:
            FixtureError: repository cannot be listed, or a config.yaml
                cannot be rewritten with the platform override
        """
        base_path = self.source_root / repository_rpath
        report = RepositoryReport(base_path=base_path, autofill=autofill, platform=platform)

        with self._repository(base_path) as working_path:
            with LogTimer(
                logger,
                "Repository validation",
                base_path=str(base_path),
                autofill=autofill,
                platform=platform,
            ):
                for model_name in self._list_models(working_path):
                    model_path = working_path / model_name
                    if platform:
                        self._override_platform(model_path, platform)
                    report.outcomes.append(self._validate_model(model_path, autofill))

        logger.info("Repository validation summary", extra=report.to_dict())
        if self.metrics_enabled:
            record_repository_run(autofill, report.ok)
        return report

    # -------------------------------------------------------------------------
    # Per-model validation
    # -------------------------------------------------------------------------

    def _validate_model(self, model_path: Path, autofill: bool) -> ModelOutcome:
        model_name = model_path.name
        start = time.monotonic()
        set_current_model(model_name)
        try:
            logger.info("Testing %s", model_name)
            result = validate_init(
                model_path,
                autofill,
                self.initializer,
                normalizer=self.normalizer,
                validator=self.validator,
            )

            names = list_candidate_names(model_path)
            match = match_candidates(result.text, read_candidates(model_path, names))

            stage = ModelStage.PASSED if match.passed else ModelStage.FAILED
            outcome = ModelOutcome(
                model_name=model_name,
                model_path=model_path,
                stage=stage,
                actual=result.text,
                match=match,
                duration_ms=int((time.monotonic() - start) * 1000),
            )

            if not match.passed:
                logger.error("Expected:\n%s", match.exemplar_text)
                logger.error("Actual:\n%s", result.text)

            if self.metrics_enabled:
                record_model_validation(
                    outcome=stage.value,
                    stage=result.stage.value,
                    duration_seconds=outcome.duration_ms / 1000,
                )
                record_candidates_compared(match.candidates_compared)

            return outcome
        finally:
            clear_current_model()

    # -------------------------------------------------------------------------
    # Fixture handling
    # -------------------------------------------------------------------------

    def _list_models(self, base_path: Path) -> list[str]:
        """List model directories in filesystem order."""
        try:
            with os.scandir(base_path) as entries:
                return [e.name for e in entries if e.is_dir()]
        except OSError as e:
            raise fixture_error(
                ErrorCode.FIX_LIST_FAILED,
                f"unable to list model repository {base_path}: {e}",
                path=base_path,
                cause=e,
            ) from e

    def _override_platform(self, model_path: Path, platform: str) -> None:
        """Rewrite config.yaml in place with platform, if the model has one."""
        config_path = model_path / MODEL_CONFIG_FILENAME
        if not config_path.exists():
            return

        try:
            config = read_model_config(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise fixture_error(
                ErrorCode.FIX_PARSE_FAILED,
                f"unable to parse {config_path} for platform override: {e}",
                model_name=model_path.name,
                path=config_path,
                cause=e,
            ) from e

        config.platform = platform

        try:
            write_model_config(config_path, config)
        except OSError as e:
            raise fixture_error(
                ErrorCode.FIX_WRITE_FAILED,
                f"unable to write {config_path} for platform override: {e}",
                model_name=model_path.name,
                path=config_path,
                cause=e,
            ) from e

        logger.debug(
            "Overrode model platform",
            extra={"model_name": model_path.name, "platform": platform},
        )

    @contextmanager
    def _repository(self, base_path: Path) -> Iterator[Path]:
        """Yield the directory to validate: base_path or a temporary copy."""
        if not self.copy_fixtures:
            yield base_path
            return

        with tempfile.TemporaryDirectory(prefix="config-harness-") as tmp:
            working_path = Path(tmp) / base_path.name
            try:
                shutil.copytree(base_path, working_path)
            except (OSError, shutil.Error) as e:
                raise fixture_error(
                    ErrorCode.FIX_COPY_FAILED,
                    f"unable to copy model repository {base_path}: {e}",
                    path=base_path,
                    cause=e,
                ) from e
            logger.debug(
                "Validating fixture copy",
                extra={"base_path": str(base_path), "working_path": str(working_path)},
            )
            yield working_path
