"""
Config Harness Runtime - Error Classification

This module defines the error taxonomy for the model configuration
validation harness. Errors are classified by the stage that raised them
so the harness can tell a per-model failure from a broken fixture tree:

1. Per-model failures are captured as text and attributed to one model
2. Fixture/environment failures abort the whole run
3. Every error carries structured context for logging

Error Categories:
- NormalizationError: Reading or auto-filling a model configuration
- ConfigValidationError: Normalized configuration breaks a platform rule
- BundleInitError: Model artifacts cannot be initialized for a format
- PlatformConfigError: Platform adapter configuration lookup failures
- FixtureError: Test fixture tree cannot be listed or rewritten (fatal)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class ErrorCode(Enum):
    """
    Enumeration of all error codes in the harness.

    Error code format: CATEGORY_SPECIFIC_ERROR
    Categories:
    - NORM: Normalization errors
    - VAL: Validation errors
    - INIT: Bundle initialization errors
    - PLAT: Platform adapter configuration errors
    - FIX: Fixture errors
    """

    # ==========================================================================
    # Normalization Errors (NORM_*)
    # ==========================================================================

    # config.yaml missing and autofill disabled
    NORM_CONFIG_NOT_FOUND = "NORM_CONFIG_NOT_FOUND"

    # config.yaml is not valid YAML or does not match the schema
    NORM_PARSE_FAILED = "NORM_PARSE_FAILED"

    # No platform set and none could be detected
    NORM_PLATFORM_MISSING = "NORM_PLATFORM_MISSING"

    # Platform not present in the platform config map
    NORM_UNKNOWN_PLATFORM = "NORM_UNKNOWN_PLATFORM"

    # Autofill could not derive a required field from model artifacts
    NORM_AUTOFILL_FAILED = "NORM_AUTOFILL_FAILED"

    # ==========================================================================
    # Validation Errors (VAL_*)
    # ==========================================================================

    # Required field missing from configuration
    VAL_MISSING_REQUIRED_FIELD = "VAL_MISSING_REQUIRED_FIELD"

    # Platform differs from the expected platform
    VAL_PLATFORM_MISMATCH = "VAL_PLATFORM_MISMATCH"

    # Platform not one of the supported identifiers
    VAL_UNKNOWN_PLATFORM = "VAL_UNKNOWN_PLATFORM"

    # Field value out of allowed range
    VAL_FIELD_OUT_OF_RANGE = "VAL_FIELD_OUT_OF_RANGE"

    # Input/output tensor definition invalid
    VAL_INVALID_TENSOR = "VAL_INVALID_TENSOR"

    # Instance group definition invalid
    VAL_INVALID_INSTANCE_GROUP = "VAL_INVALID_INSTANCE_GROUP"

    # Dynamic batching settings inconsistent with max_batch_size
    VAL_INVALID_BATCHING = "VAL_INVALID_BATCHING"

    # ==========================================================================
    # Bundle Initialization Errors (INIT_*)
    # ==========================================================================

    # Version directory not found
    INIT_VERSION_NOT_FOUND = "INIT_VERSION_NOT_FOUND"

    # Configuration platform does not match the bundle format
    INIT_PLATFORM_MISMATCH = "INIT_PLATFORM_MISMATCH"

    # Model artifact named by default_model_filename not found
    INIT_MODEL_FILE_NOT_FOUND = "INIT_MODEL_FILE_NOT_FOUND"

    # Artifact exists but has the wrong shape for the format
    INIT_INVALID_ARTIFACT = "INIT_INVALID_ARTIFACT"

    # Format requires input/output tensors that are not configured
    INIT_TENSOR_MISSING = "INIT_TENSOR_MISSING"

    # Unknown bundle format requested
    INIT_UNKNOWN_FORMAT = "INIT_UNKNOWN_FORMAT"

    # ==========================================================================
    # Platform Config Errors (PLAT_*)
    # ==========================================================================

    # Packed adapter config holds a different type than requested
    PLAT_TYPE_MISMATCH = "PLAT_TYPE_MISMATCH"

    # ==========================================================================
    # Fixture Errors (FIX_*)
    # ==========================================================================

    # Base directory cannot be listed
    FIX_LIST_FAILED = "FIX_LIST_FAILED"

    # Configuration file cannot be parsed during platform override
    FIX_PARSE_FAILED = "FIX_PARSE_FAILED"

    # Configuration file cannot be written during platform override
    FIX_WRITE_FAILED = "FIX_WRITE_FAILED"

    # Fixture tree cannot be copied
    FIX_COPY_FAILED = "FIX_COPY_FAILED"

    def is_fatal(self) -> bool:
        """Check if error aborts the whole run instead of one model."""
        return self.category == "FIX"

    @property
    def category(self) -> str:
        """Return error category (NORM, VAL, INIT, PLAT, FIX)."""
        return self.value.split("_")[0]


@dataclass
class ErrorContext:
    """
    Additional context for error reporting.

    Provides structured information for logging and debugging.
    """

    model_name: Optional[str] = None
    platform: Optional[str] = None
    path: Optional[Path] = None
    field_name: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        if self.model_name:
            result["model_name"] = self.model_name
        if self.platform:
            result["platform"] = self.platform
        if self.path:
            result["path"] = str(self.path)
        if self.field_name:
            result["field"] = self.field_name
        if self.expected:
            result["expected"] = self.expected
        if self.actual:
            result["actual"] = self.actual
        if self.details:
            result.update(self.details)
        return result


class HarnessError(Exception):
    """
    Base exception for all harness errors.

    All errors include:
    - Error code for programmatic handling
    - Human-readable message
    - Structured context for logging
    - Timestamp
    - Fatal flag
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.cause = cause
        self.fatal = code.is_fatal()
        self.timestamp = datetime.utcnow()

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_code": self.code.value,
            "error_category": self.code.category,
            "message": self.message,
            "fatal": self.fatal,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary optimized for structured logging.

        Flattens context into top level for easier log querying.
        """
        result = {
            "error_code": self.code.value,
            "error_message": self.message,
            "fatal": self.fatal,
        }
        result.update(self.context.to_dict())
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class NormalizationError(HarnessError):
    """
    Error while producing a normalized model configuration.

    Raised when config.yaml cannot be read, or when autofill cannot
    derive a field the configuration needs.
    """


class ConfigValidationError(HarnessError):
    """
    Error validating a normalized configuration.

    The configuration parsed, but breaks a structural or platform rule.
    """


class BundleInitError(HarnessError):
    """
    Error initializing a model bundle from its version directory.

    Bundle errors mean the configuration and the on-disk artifacts
    disagree for the requested format.
    """


class PlatformConfigError(HarnessError):
    """Error unpacking a platform adapter configuration."""


class FixtureError(HarnessError):
    """
    Error preparing the fixture tree.

    Fixture errors are fatal: without a correctly prepared tree no
    per-model result is meaningful, so the run stops.
    """


# =============================================================================
# Error Builder Functions
# =============================================================================


def normalization_error(
    code: ErrorCode,
    message: str,
    model_name: Optional[str] = None,
    platform: Optional[str] = None,
    path: Optional[Path] = None,
    field_name: Optional[str] = None,
    cause: Optional[Exception] = None,
    **details: Any,
) -> NormalizationError:
    """Factory function for creating NormalizationError with context."""
    return NormalizationError(
        code=code,
        message=message,
        context=ErrorContext(
            model_name=model_name,
            platform=platform,
            path=path,
            field_name=field_name,
            details=details,
        ),
        cause=cause,
    )


def validation_error(
    code: ErrorCode,
    message: str,
    model_name: Optional[str] = None,
    platform: Optional[str] = None,
    field_name: Optional[str] = None,
    expected: Optional[str] = None,
    actual: Optional[str] = None,
    **details: Any,
) -> ConfigValidationError:
    """Factory function for creating ConfigValidationError with context."""
    return ConfigValidationError(
        code=code,
        message=message,
        context=ErrorContext(
            model_name=model_name,
            platform=platform,
            field_name=field_name,
            expected=expected,
            actual=actual,
            details=details,
        ),
    )


def bundle_error(
    code: ErrorCode,
    message: str,
    model_name: Optional[str] = None,
    platform: Optional[str] = None,
    path: Optional[Path] = None,
    cause: Optional[Exception] = None,
    **details: Any,
) -> BundleInitError:
    """Factory function for creating BundleInitError with context."""
    return BundleInitError(
        code=code,
        message=message,
        context=ErrorContext(
            model_name=model_name,
            platform=platform,
            path=path,
            details=details,
        ),
        cause=cause,
    )


def fixture_error(
    code: ErrorCode,
    message: str,
    model_name: Optional[str] = None,
    path: Optional[Path] = None,
    cause: Optional[Exception] = None,
    **details: Any,
) -> FixtureError:
    """Factory function for creating FixtureError with context."""
    return FixtureError(
        code=code,
        message=message,
        context=ErrorContext(
            model_name=model_name,
            path=path,
            details=details,
        ),
        cause=cause,
    )
