"""fiesta_bench.io

Filesystem contracts: where results go and how they are written.
"""

from __future__ import annotations
