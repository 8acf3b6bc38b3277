# selector.py
"""Per-robot choice of which color the camera should follow."""
from __future__ import annotations

import math
from typing import Optional

from loguru import logger

from camera_direction.common import Candidate, CandidateReport, SelectionResult
from camera_direction.tracker import TrackStore


def select_target(
    report: CandidateReport,
    tracks: TrackStore,
    elapsed: float,
    min_blob_size: int,
) -> SelectionResult:
    """Pick the candidate whose track has the lowest score.

    Candidates smaller than ``min_blob_size`` are ignored. Ties go to the
    earliest candidate in the report. An empty report, a report with no
    surviving candidate, or a non-finite winning bearing yields bearing 0
    and no color.
    """
    robot_id = report.robot_id
    if not report.candidates:
        logger.warning(f"[Selector] roomba{robot_id}: candidate list is empty")
        return SelectionResult(robot_id, 0.0)

    best: Optional[Candidate] = None
    best_score = math.inf
    for cand in report.candidates:
        if cand.blob_size < min_blob_size:
            continue
        tracks.advance(cand.color, elapsed)
        score = tracks.score(cand.color)
        # Untracked colors score inf; they still win when nothing better survives.
        if best is None or score < best_score:
            best, best_score = cand, score

    if best is None:
        logger.warning(f"[Selector] roomba{robot_id}: no candidate reaches {min_blob_size}px")
        return SelectionResult(robot_id, 0.0)

    if not math.isfinite(best.bearing):
        logger.warning(f"[Selector] roomba{robot_id}: {best.color.value}'s bearing is {best.bearing}")
        return SelectionResult(robot_id, 0.0)

    logger.info(f"[Selector] roomba{robot_id}: camera direction to {best.color.value} (score={best_score:.4f})")
    return SelectionResult(robot_id, best.bearing, best.color)
