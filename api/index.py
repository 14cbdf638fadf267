"""Serverless entrypoint exposing the household API as ``app``."""

import sys
from pathlib import Path

_src = str(Path(__file__).resolve().parent.parent / "src")
if _src not in sys.path:
    sys.path.append(_src)

from aisle_be_back.api.asgi import app  # noqa: E402

handler = app
