"""Prompt framing module.

Turns a stored conversation into the directive sent to the model.
The preamble text is externalized to a file for easy customization and
can be overridden by placing files in the working directory.
"""

from .framer import FramingDirective, PersonaConfig, PromptFramer, load_preamble

__all__ = [
    "FramingDirective",
    "PersonaConfig",
    "PromptFramer",
    "load_preamble",
]
