"""pipeline.execution

The execution layer is split into:

* :mod:`pipeline.execution.monitor`   - one analyzer process per task, under a deadline
* :mod:`pipeline.execution.dispatch`  - bounded fan-out / fan-in over monitors
* :mod:`pipeline.execution.channel`   - the outcome stream and its stop signal
* :mod:`pipeline.execution.collector` - classify, record, report
* :mod:`pipeline.execution.batch`     - one whole run on one event loop
"""

from __future__ import annotations

from .batch import BatchSummary, execute_batch, run_batch

__all__ = ["BatchSummary", "execute_batch", "run_batch"]
