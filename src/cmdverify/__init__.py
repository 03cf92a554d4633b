"""Incremental verification of commands referenced in documentation."""

from __future__ import annotations

__version__ = "0.1.0"

from .classifiers import ClassifierChain, classify_command
from .config import VerifyConfig, load_configuration
from .errors import CommandVerifyError, ConfigurationError, KnowledgeBaseError
from .models import Category, Classification, CommandEntry, Summary
from .verification import VerificationReport, run_verification

__all__ = [
    "Category",
    "Classification",
    "ClassifierChain",
    "CommandEntry",
    "CommandVerifyError",
    "ConfigurationError",
    "KnowledgeBaseError",
    "Summary",
    "VerificationReport",
    "VerifyConfig",
    "__version__",
    "classify_command",
    "load_configuration",
    "run_verification",
]
