"""dltemplate compiler — directive passes, section resolution, code generation."""

from dltemplate.compiler.core import Compiler
from dltemplate.compiler.directives import PASSES, translate
from dltemplate.compiler.sections import resolve_directive

__all__ = [
    "PASSES",
    "Compiler",
    "resolve_directive",
    "translate",
]
