"""Build metadata, stamped by the release pipeline through the environment."""

from __future__ import annotations

import os

from depsentinel import __version__

BUILD_VERSION = os.environ.get("DEPSENTINEL_BUILD_VERSION", __version__)
BUILD_TIME = os.environ.get("DEPSENTINEL_BUILD_TIME", "unknown")
BUILD_COMMIT = os.environ.get("DEPSENTINEL_BUILD_COMMIT", "unknown")
