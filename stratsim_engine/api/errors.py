"""
Translation of engine errors into HTTP errors.
"""

from fastapi import HTTPException

from stratsim_engine.errors import (
    BacktestError,
    DataUnavailableError,
    StrategyExecutionError,
    StrategyNotFoundError,
    ValidationError,
)

STATUS_BY_ERROR: list[tuple[type[BacktestError], int]] = [
    (ValidationError, 400),
    (StrategyNotFoundError, 404),
    (DataUnavailableError, 422),
    (StrategyExecutionError, 500),
]


def to_http_exception(error: BacktestError) -> HTTPException:
    """Map an engine error to an HTTPException carrying its message."""
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
