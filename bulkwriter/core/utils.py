"""
Bulk Writer Core Utilities

Shared utility functions used across the core module.
These utilities provide identifier quoting, validation, result conversion
and a small parallel helper.
"""

import concurrent.futures
from typing import Any, Dict, List, Optional, Union

from bulkwriter.core.types import WriteStrategy, OperationResult
from bulkwriter.core.exceptions import ValidationError, BulkWriterError


def quote_identifier(name: str) -> str:
    """Quote a MySQL identifier with backticks, doubling embedded backticks."""
    return "`" + name.replace("`", "``") + "`"


def unquote_identifier(quoted: str) -> str:
    """Reverse :func:`quote_identifier`."""
    if len(quoted) < 2 or not (quoted.startswith("`") and quoted.endswith("`")):
        raise ValidationError(f"Not a quoted identifier: {quoted!r}")
    return quoted[1:-1].replace("``", "`")


def validate_write_strategy(strategy: Union[str, WriteStrategy]) -> WriteStrategy:
    """Validate and convert write strategy string to enum."""
    if isinstance(strategy, WriteStrategy):
        return strategy
    # Accept the statement names as aliases
    strategy_mapping = {
        'LOAD_DATA': WriteStrategy.LOAD_DATA,
        'LOAD-DATA': WriteStrategy.LOAD_DATA,
        'INFILE': WriteStrategy.LOAD_DATA,
        'REPLACE': WriteStrategy.REPLACE,
    }

    strategy_upper = str(strategy).upper()
    if strategy_upper in strategy_mapping:
        return strategy_mapping[strategy_upper]

    valid_strategies = [s.value for s in WriteStrategy]
    raise ValidationError(f"Invalid write strategy '{strategy}'. Valid strategies: {valid_strategies}")


def validate_positive_int(value: Any, param_name: str) -> int:
    """Validate that a parameter is a positive integer."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid value for {param_name}: {value}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid value for {param_name}: {value}")
    if number <= 0:
        raise ValidationError(f"{param_name} must be greater than zero, got {number}")
    return number


def validate_non_negative_int(value: Any, param_name: str) -> int:
    """Validate that a parameter is zero or a positive integer."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid value for {param_name}: {value}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid value for {param_name}: {value}")
    if number < 0:
        raise ValidationError(f"{param_name} must not be negative, got {number}")
    return number


def validate_required_params(params: Dict[str, Any], required: List[str]) -> None:
    """Validate that required parameters are present and not None."""
    missing = []
    for param in required:
        if param not in params or params[param] is None:
            missing.append(param)

    if missing:
        raise ValidationError(f"Missing required parameters: {', '.join(missing)}")


def create_success_result(message: str, data: Any = None, record_count: int = None) -> OperationResult:
    """Create a successful operation result."""
    return OperationResult(
        success=True,
        message=message,
        data=data,
        record_count=record_count
    )


def create_error_result(message: str, error_details: str = None) -> OperationResult:
    """Create an error operation result."""
    return OperationResult(
        success=False,
        message=message,
        error_details=error_details
    )


def handle_exception(e: Exception, operation: str) -> OperationResult:
    """Handle exceptions and convert to operation result."""
    if isinstance(e, BulkWriterError):
        return create_error_result(e.message, e.details)
    else:
        return create_error_result(
            f"Error during {operation}: {str(e)}",
            str(type(e).__name__)
        )


def process_in_parallel(func, items: List[Any], max_workers: int) -> List[Any]:
    """Process items in parallel using the provided function.

    The order of ``items`` is preserved in the returned list. The first
    exception raised by any worker is re-raised after all futures have
    completed.

    Args:
        func: Function to apply to each item.
        items: List of items to process.
        max_workers: Maximum number of parallel workers.

    Returns:
        List of results in the same order as ``items``.
    """
    if not items:
        return []

    results: List[Any] = [None] * len(items)
    first_exc: Optional[BaseException] = None

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(func, item): index for index, item in enumerate(items)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except BaseException as exc:  # noqa: BLE001 - propagate first failure
                if first_exc is None:
                    first_exc = exc

    if first_exc is not None:
        raise first_exc

    return results
