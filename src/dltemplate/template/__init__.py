"""dltemplate Template package — compiled views ready for execution."""

from dltemplate.template.core import Template
from dltemplate.template.helpers import OutputBuffer
from dltemplate.utils.html import Markup

__all__ = [
    "Markup",
    "OutputBuffer",
    "Template",
]
