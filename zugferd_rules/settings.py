"""
Settings

Validation settings loaded from YAML and checked with Pydantic, plus the
loguru setup that also captures the standard library records of the
validation modules.

Example settings.yaml:
    tolerance: "0.01"
    default_tier: basicwl
    disabled_rules:
      - BR-12
"""

from __future__ import annotations

import logging
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ValidationError, field_validator

from .profiles import ConformanceTier


class SettingsError(Exception):
    """Settings file missing, unreadable or invalid."""


class ValidationSettings(BaseModel):
    """
    Settings for InvoiceValidator.

    tolerance: largest absolute difference between amounts still considered equal
    default_tier: tier checked when validate() is called without one
    disabled_rules: implemented rule ids to skip
    catalogue_path: alternative rule catalogue file
    """
    tolerance: Decimal = Decimal('0.01')
    default_tier: Optional[str] = None
    disabled_rules: List[str] = []
    catalogue_path: Optional[Path] = None

    @field_validator('tolerance')
    @classmethod
    def validate_tolerance(cls, v):
        """Tolerance must be a finite, non-negative amount."""
        if not v.is_finite() or v < 0:
            raise ValueError(f'Tolerance must be a non-negative amount, got {v}')
        return v

    @field_validator('default_tier')
    @classmethod
    def validate_default_tier(cls, v):
        """Default tier must name a known conformance tier."""
        if v is None:
            return None
        return ConformanceTier.parse(v).label

    @field_validator('disabled_rules')
    @classmethod
    def validate_disabled_rules(cls, v):
        """Rule ids are upper case, e.g. BR-CO-10."""
        return [str(rule_id).strip().upper() for rule_id in v]

    @property
    def tier(self) -> Optional[ConformanceTier]:
        return ConformanceTier.parse(self.default_tier) if self.default_tier else None


def load_settings(path: Path) -> ValidationSettings:
    """
    Load settings from a YAML file.

    Raises:
        SettingsError: If the file cannot be read or fails validation
    """
    logger.info(f"Loading settings from: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Failed to load settings {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")

    try:
        settings = ValidationSettings(**data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {path}: {e}") from e

    if settings.catalogue_path and not settings.catalogue_path.is_absolute():
        settings = settings.model_copy(
            update={'catalogue_path': Path(path).parent / settings.catalogue_path}
        )

    return settings

PACKAGE_LOGGER = 'zugferd_rules'


class LoguruInterceptHandler(logging.Handler):
    """Forward standard library records from the validation modules to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.bind(source=record.name).opt(exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    sink: Any = None,
) -> None:
    """
    Send all package logging through loguru.

    The gate, the rule engine and the pipeline log through the standard
    library; their records are intercepted under the 'zugferd_rules'
    logger so one call configures both.

    Args:
        verbose: Log DEBUG instead of INFO on the console sink
        log_file: Optional file receiving every record, rotated at 10 MB
        sink: Console sink, defaults to stderr
    """
    logger.remove()
    logger.configure(extra={'source': PACKAGE_LOGGER})

    sink = sink if sink is not None else sys.stderr
    log_level = "DEBUG" if verbose else "INFO"
    logger.add(
        sink,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=log_level,
        colorize=sink is sys.stderr,
    )

    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[source]} | {message}",
            level="DEBUG",
            rotation="10 MB",
        )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if isinstance(handler, LoguruInterceptHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(LoguruInterceptHandler())
    package_logger.setLevel(logging.DEBUG if verbose or log_file else logging.INFO)
    package_logger.propagate = False

    logger.debug(f"Logging configured (verbose={verbose}, log_file={log_file})")
