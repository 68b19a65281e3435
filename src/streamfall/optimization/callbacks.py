"""Cooperative cancellation and early-stop callbacks for optimizer runs."""

import logging
import threading
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from .optimizer import Optimizer

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe flag checked by the optimizer between steps."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        self._event.clear()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


def create_callback(
    target_fitness: float,
    token: Optional[CancellationToken] = None,
) -> Callable[['Optimizer'], None]:
    """Build a per-step callback that stops the run once the target is beaten.

    The run is stopped when the running best fitness is strictly lower than
    ``target_fitness``, by cancelling ``token`` or, when no token is given,
    the optimizer's own.
    """

    def callback(optimizer: 'Optimizer') -> None:
        if optimizer.best_fitness < target_fitness:
            logger.debug(
                f"Best fitness {optimizer.best_fitness:.4f} beats target "
                f"{target_fitness:.4f}, stopping"
            )
            if token is not None:
                token.cancel()
            else:
                optimizer.shutdown()

    return callback
