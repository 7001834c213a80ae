"""Pure building blocks of the data layer: classification, merge, listeners."""
from __future__ import annotations
