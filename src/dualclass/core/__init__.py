"""Core functionality for lesson generation.

This package provides the building blocks used by the web service:

- **DualClassConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)
- **ModelClient**: Text and image calls against the Gemini API
- **Prompt compilation**: Pure functions that assemble every prompt
- **Asset stores**: Demo fixtures and generated images on disk

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration, all settings prefixed with DUALCLASS_
   - Static, fixture and generated-image directories resolved on startup

2. **Model Layer** (model_client.py, json_extraction.py):
   - Lazily created ``google-genai`` client
   - Fenced-JSON extraction from free-text answers
   - Failures normalised to ``ModelError``

3. **Support Utilities**:
   - prompt_builder.py: metaphor, error-mirror and illustration prompts
   - asset_store.py: fixture lookup and generated-image persistence
   - exceptions.py: the ``DualClassError`` hierarchy

Usage Example
-------------
::

    from dualclass.core import ModelClient, config

    client = ModelClient(config)
    json_text = await client.generate_metaphor("Docker Containers", "Surfer")
"""

from dualclass.core.config import DualClassConfig, config
from dualclass.core.exceptions import DualClassError, ModelError
from dualclass.core.model_client import ModelClient

__all__ = [
    "DualClassConfig",
    "DualClassError",
    "ModelClient",
    "ModelError",
    "config",
]
