# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""Types shared by evaluation metric modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple, Union

import numpy as np
import pandas as pd

ArrayLike = Union[np.ndarray, pd.Series, list]
MetricFunction = Callable[[ArrayLike, ArrayLike], float]


@dataclass(frozen=True)
class MetricInfo:
    """Metadata for a performance metric."""

    name: str
    full_name: str
    range: Tuple[float, float]
    optimal: float
    direction: str
    description: str
    reference: str
