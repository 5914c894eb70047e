"""
Configuration for a single archive run.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional


DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "markdown-archiver (+https://pypi.org/project/markdown-archiver/)"


class FailurePolicy(Enum):
    """What to do when one image cannot be fetched or encoded."""

    FALLBACK = "fallback"    # substitute the placeholder image and carry on
    PROPAGATE = "propagate"  # abort the whole run with the first failure


class RuntimeMode(Enum):
    """Host runtime, used to pick the binary-to-text encoding strategy."""

    SERVER = "server"
    BROWSER = "browser"

    @classmethod
    def detect(cls) -> "RuntimeMode":
        """
        Classify the running interpreter.

        Pyodide (CPython compiled to WebAssembly) reports ``emscripten`` as
        its platform; anything else is treated as a regular server runtime.
        """
        if sys.platform == "emscripten":
            return cls.BROWSER
        return cls.SERVER


@dataclass
class ArchiverOptions:
    """Holds the settings for one archive run."""
    failure_policy: FailurePolicy = FailurePolicy.FALLBACK
    runtime_mode: Optional[RuntimeMode] = None  # None = detect when the pipeline is built
    max_concurrency: Optional[int] = None       # None = one task per image, no cap
    timeout: float = DEFAULT_TIMEOUT            # seconds, per request
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True

    def __post_init__(self):
        if isinstance(self.failure_policy, str):
            self.failure_policy = FailurePolicy(self.failure_policy)
        if isinstance(self.runtime_mode, str):
            self.runtime_mode = RuntimeMode(self.runtime_mode)
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError(
                f"max_concurrency must be a positive integer, got {self.max_concurrency}"
            )
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def resolve_runtime_mode(self) -> RuntimeMode:
        """Return the configured runtime mode, detecting it if unset."""
        if self.runtime_mode is None:
            return RuntimeMode.detect()
        return self.runtime_mode
