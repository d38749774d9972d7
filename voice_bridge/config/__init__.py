"""
Configuration module for the meeting voice bridge.

Key components:
- constants: Application-wide constants such as callback paths, DTMF building blocks,
  session lifetime and the event names of both streaming vocabularies.
- logging_config: Console and rotating-file logging for the ``voice_bridge`` logger.

Runtime overrides come from environment variables (optionally loaded from a ``.env``
file by ``voice_bridge.main``):

```python
from voice_bridge.config.constants import LOGGER_NAME, MEDIA_STREAM_PATH
from voice_bridge.config.logging_config import configure_logging

logger = configure_logging()
logger.info(f"Media streams are accepted on {MEDIA_STREAM_PATH}")
```
"""
