import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


def best_effort(description: str, action: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
    """Run a secondary action whose failure must not affect the caller.

    Returns True when the action completed, False when it raised. Failures
    are logged with the description and never retried.
    """
    try:
        action(*args, **kwargs)
    except Exception as e:
        logger.error("%s failed (non-critical): %s", description, e, exc_info=True)
        return False
    return True
