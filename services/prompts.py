"""Interactive yes/skip/no confirmation for upgrade steps."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from services.upgrade_logging import FILE_ONLY

LOGGER = logging.getLogger(__name__)


class StepAnswer(Enum):
    YES = "yes"
    SKIP = "skip"
    NO = "no"


REASK_HINT = "Please answer y, s or n."

_ANSWERS = {
    "y": StepAnswer.YES,
    "yes": StepAnswer.YES,
    "s": StepAnswer.SKIP,
    "skip": StepAnswer.SKIP,
    "n": StepAnswer.NO,
    "no": StepAnswer.NO,
}


def ask_step(name: str, input_fn: Optional[Callable[[str], str]] = None) -> StepAnswer:
    """Ask whether to run the named step, re-asking until the answer is understood.

    End of input counts as ``no`` so a closed terminal never runs a step.
    """
    input_fn = input_fn or input
    prompt = f"Run step '{name}'? [y]es/[s]kip/[n]o: "
    while True:
        try:
            reply = input_fn(prompt)
        except EOFError:
            LOGGER.info("%s(end of input)", prompt, extra=FILE_ONLY)
            return StepAnswer.NO
        LOGGER.info("%s%s", prompt, reply, extra=FILE_ONLY)
        answer = _ANSWERS.get(reply.strip().lower())
        if answer is not None:
            return answer
        print(REASK_HINT)
        LOGGER.info(REASK_HINT, extra=FILE_ONLY)
