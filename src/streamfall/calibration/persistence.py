"""Save and load calibration artifacts as pickled ``(result, optimizer)`` pairs."""

import logging
import pickle
import uuid
from pathlib import Path
from typing import Optional, Tuple, Union

from streamfall.core.constants import ModelDefaults
from streamfall.core.exceptions import FileOperationError, streamfall_error_handler
from streamfall.optimization.optimizer import OptimizationResult, Optimizer

logger = logging.getLogger(__name__)


def _temporary_path() -> Path:
    return Path.cwd() / f"{ModelDefaults.TEMP_FILE_PREFIX}{uuid.uuid4().hex[:12]}{ModelDefaults.TEMP_FILE_SUFFIX}"


def save_calibration(
    result: OptimizationResult,
    optimizer: Optimizer,
    path: Optional[Union[str, Path]] = None,
) -> Path:
    """Write a calibration result and its optimizer handle to ``path``.

    A ``./temp<random>.tmp`` file is used when no path is given. The
    optimizer's objective, callback and cancellation token are not saved.

    Returns:
        Path the artifact was written to

    Raises:
        FileOperationError: If the file cannot be written
    """
    path = Path(path) if path is not None else _temporary_path()
    with streamfall_error_handler(f"saving calibration to {path}", logger, error_type=FileOperationError):
        with open(path, 'wb') as f:
            pickle.dump((result, optimizer), f)

    logger.debug(f"Saved calibration to {path}")
    return path


def load_calibration(path: Union[str, Path]) -> Tuple[OptimizationResult, Optimizer]:
    """Read a ``(result, optimizer)`` pair written by ``save_calibration``.

    Raises:
        FileOperationError: If the file is missing or not a calibration artifact
    """
    path = Path(path)
    with streamfall_error_handler(f"loading calibration from {path}", logger, error_type=FileOperationError):
        with open(path, 'rb') as f:
            data = pickle.load(f)

    if not (isinstance(data, tuple) and len(data) == 2):
        raise FileOperationError(f"{path} does not contain a calibration result and optimizer")

    return data
