import os
import platform
import time
from typing import Any, Dict

BUILD_VERSION = os.getenv("BUILD_VERSION", "dev")
GIT_SHA = os.getenv("GIT_SHA", "unknown")


async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "version": BUILD_VERSION,
        "git": GIT_SHA,
        "ts": time.time(),
        "runtime": {
            "python": platform.python_version(),
        },
    }
