import os
import sys

# Add repo root to Python import path so `import candle_cache...` works
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import uvicorn

from candle_cache.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "candle_cache.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
