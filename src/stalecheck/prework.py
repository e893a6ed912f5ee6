from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from .context import BuildContext


def run_prework(context: "BuildContext") -> None:
    """Prepare the environment imports are looked up in.

    Strings are module names, imported and bound under their last dotted
    component; callables receive the environment dict.
    """
    for step in context.prework:
        if isinstance(step, str):
            logger.info(f"prework: import {step}")
            module = importlib.import_module(step)
            context.envir[step.rsplit(".", 1)[-1]] = module
        elif callable(step):
            logger.info(f"prework: {getattr(step, '__name__', repr(step))}")
            step(context.envir)
        else:
            raise TypeError(f"prework steps must be module names or callables, got {type(step).__name__}")
