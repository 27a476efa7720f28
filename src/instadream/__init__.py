"""InstaDream - AI-generated Instagram posts from guided or free-form prompts."""

__version__ = "0.1.0"

from instadream.core.config import InstadreamConfig, config
from instadream.core.prompt_builder import CompositionRequest, compose, preview, validate

__all__ = [
    "CompositionRequest",
    "InstadreamConfig",
    "compose",
    "config",
    "preview",
    "validate",
]
