"""Stratified sampling of a question bank into a session queue."""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from .records import QuestionRecord

__all__ = ["DEFAULT_QUOTA", "group_by_subtopic", "build_session_queue"]

logger = logging.getLogger(__name__)

DEFAULT_QUOTA = 2


def group_by_subtopic(
    bank: Sequence[QuestionRecord],
) -> Dict[str, List[QuestionRecord]]:
    """Group records by subtopic, keeping first-seen subtopic order."""

    groups: Dict[str, List[QuestionRecord]] = defaultdict(list)
    for record in bank:
        groups[record.subtopic].append(record)
    return dict(groups)


def build_session_queue(
    bank: Sequence[QuestionRecord],
    *,
    quota: int = DEFAULT_QUOTA,
    rng: Optional[random.Random] = None,
) -> tuple[QuestionRecord, ...]:
    """Draw up to ``quota`` records per subtopic and shuffle the result.

    Each subtopic contributes ``min(quota, len(group))`` records sampled
    without replacement. The concatenated selection is then shuffled as a
    whole, so the presentation order does not follow subtopic grouping.
    Passing a seeded ``rng`` makes both steps reproducible.
    """

    if quota < 0:
        raise ValueError("quota must be >= 0")
    rnd = rng if rng is not None else random.Random()

    selected: List[QuestionRecord] = []
    for subtopic, group in group_by_subtopic(bank).items():
        picked = rnd.sample(group, min(quota, len(group)))
        logger.debug(
            "Sampled subtopic",
            extra={
                "subtopic": subtopic,
                "available": len(group),
                "selected": len(picked),
            },
        )
        selected.extend(picked)

    rnd.shuffle(selected)
    logger.info(
        "Built session queue",
        extra={"queue_size": len(selected), "quota": quota},
    )
    return tuple(selected)
