"""
Error boundary for individual analyses.

Each analysis (one contrast, one moderator, one subgroup) runs behind this
boundary so a failure is captured as a tagged AnalysisResult instead of
aborting its siblings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional

import numpy as np

from beliefmeta.exceptions import InsufficientDataError, ModelFitError
from beliefmeta.models import AnalysisResult, AnalysisStatus
from beliefmeta.utils.structured_log import log_analysis

_log = logging.getLogger(__name__)

_FIT_ERRORS = (ModelFitError, np.linalg.LinAlgError, FloatingPointError, ZeroDivisionError)


def _size_of(value: Any) -> int:
    k = getattr(value, "k", None)
    if isinstance(k, int):
        return k
    if isinstance(value, (list, tuple, dict)):
        return len(value)
    return 0


def run_analysis(
    key: str,
    fn: Callable[..., Any],
    *args: Any,
    section: Optional[str] = None,
    **kwargs: Any,
) -> AnalysisResult:
    """Execute one analysis and tag its outcome."""
    try:
        value = fn(*args, **kwargs)
    except InsufficientDataError as exc:
        _log.info("%s: insufficient data (%s)", key, exc)
        log_analysis(section or "", key, AnalysisStatus.INSUFFICIENT_DATA.value, n=exc.n, message=str(exc))
        return AnalysisResult(
            key=key,
            status=AnalysisStatus.INSUFFICIENT_DATA,
            message=str(exc),
            n=exc.n,
        )
    except _FIT_ERRORS as exc:
        _log.warning("%s: model fit failed: %s", key, exc)
        log_analysis(section or "", key, AnalysisStatus.FIT_FAILURE.value, message=str(exc))
        return AnalysisResult(
            key=key,
            status=AnalysisStatus.FIT_FAILURE,
            message=f"{type(exc).__name__}: {exc}",
        )

    n = _size_of(value)
    log_analysis(section or "", key, AnalysisStatus.OK.value, n=n)
    return AnalysisResult(key=key, status=AnalysisStatus.OK, value=value, n=n)
