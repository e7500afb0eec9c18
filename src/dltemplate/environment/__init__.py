"""dltemplate environment — configuration, loaders, bindings and errors."""

from dltemplate.environment.bindings import validate, validate_bindings
from dltemplate.environment.core import Environment, Loader
from dltemplate.environment.exceptions import (
    BindingError,
    ErrorCode,
    InvalidIdentifierError,
    RequiredValueError,
    ReservedNameError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplatePathError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from dltemplate.environment.loaders import DictLoader, FileSystemLoader

__all__ = [
    "BindingError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "InvalidIdentifierError",
    "Loader",
    "RequiredValueError",
    "ReservedNameError",
    "SourceSnippet",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplatePathError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "build_source_snippet",
    "validate",
    "validate_bindings",
]
