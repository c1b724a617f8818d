"""fiesta_bench

Core package for the smart-contract-fiesta batch driver.

Why this exists
---------------
The runtime (``pipeline``) launches one analyzer process per corpus item and
records how each run ended. The pieces that every stage has to agree on live
here:

* domain types (tasks, source bundles, outcomes, result records)
* IO/layout rules (where results go, and how a row is rendered)

The CLI and :mod:`pipeline.wiring` stay thin composition roots that wire these
together.
"""

from __future__ import annotations
