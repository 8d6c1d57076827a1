"""Modules package for the conversational engine."""
from .responses import CATEGORY_TABLE, Category, CategoryRule, ConfigurationError, validate_table
from .classifier import IntentClassifier
from .selector import ResponseSelector
from .backend import BackendClient, BackendState

__all__ = [
    "CATEGORY_TABLE",
    "Category",
    "CategoryRule",
    "ConfigurationError",
    "validate_table",
    "IntentClassifier",
    "ResponseSelector",
    "BackendClient",
    "BackendState",
]
