"""Core functionality for Instagram post generation.

This module provides the core components of InstaDream:

- **Prompt templates**: the fixed subject/background/lighting/mood catalog
- **Prompt builder**: composition, validation and preview of image prompts
- **Posts database**: SQLite history of generated posts
- **External clients**: Replicate images, Gemini captions, S3-compatible storage
- **InstadreamConfig**: Configuration management using Pydantic Settings

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with INSTADREAM_ in .env files

2. **Prompt Layer** (prompt_templates.py, prompt_builder.py):
   - Pure, stateless functions over an immutable catalog
   - Safe to call concurrently; no I/O

3. **Collaborator Layer** (posts_db.py, storage.py, image_client.py,
   caption_client.py):
   - Thin wrappers over SQLite, boto3 and httpx
   - Raise typed errors; no retries or caching

Usage Example
-------------
    from instadream.core import CompositionRequest, compose

    prompt = compose(
        CompositionRequest(base_prompt="a cup of coffee", lighting="golden_hour")
    )
"""

from instadream.core.config import InstadreamConfig, config
from instadream.core.prompt_builder import (
    CompositionRequest,
    PromptPreview,
    ValidationResult,
    catalog_snapshot,
    compose,
    preview,
    validate,
)
from instadream.core.prompt_templates import Facet, TemplateOption, list_all, lookup

__all__ = [
    "CompositionRequest",
    "Facet",
    "InstadreamConfig",
    "PromptPreview",
    "TemplateOption",
    "ValidationResult",
    "catalog_snapshot",
    "compose",
    "config",
    "list_all",
    "lookup",
    "preview",
    "validate",
]
