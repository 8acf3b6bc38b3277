import math
import random
from typing import Dict, List

from camera_direction.common import Candidate, CandidateReport, Color
from camera_direction.config import FusionConfig
from camera_direction.selector import select_target
from camera_direction.tracker import TrackStore


class StubTracks:
    """Fixed scores per color; records advance calls."""

    def __init__(self, scores: Dict[Color, float]):
        self.scores = scores
        self.advanced: List[Color] = []

    def advance(self, color: Color, elapsed: float) -> None:
        self.advanced.append(color)

    def score(self, color: Color) -> float:
        return self.scores.get(color, math.inf)


def test_empty_report_defaults_to_zero() -> None:
    result = select_target(CandidateReport(robot_id=2), StubTracks({}), 1.0, 300)

    assert result.robot_id == 2
    assert result.bearing == 0.0
    assert result.color is None


def test_all_candidates_below_min_blob_size() -> None:
    tracks = StubTracks({Color.GREEN: 0.1})
    report = CandidateReport(1, [Candidate(Color.GREEN, 299, 0.4), Candidate(Color.RED, 10, -0.2)])

    result = select_target(report, tracks, 1.0, 300)

    assert (result.bearing, result.color) == (0.0, None)
    assert tracks.advanced == []


def test_lowest_score_wins() -> None:
    tracks = StubTracks({Color.GREEN: 0.2, Color.BLUE: 0.5})
    report = CandidateReport(1, [Candidate(Color.GREEN, 400, 0.3), Candidate(Color.BLUE, 500, -0.1)])

    result = select_target(report, tracks, 1.0, 300)

    assert result.color == Color.GREEN
    assert result.bearing == 0.3
    assert tracks.advanced == [Color.GREEN, Color.BLUE]


def test_small_blob_cannot_win_on_fresh_score() -> None:
    tracks = StubTracks({Color.GREEN: 0.01, Color.BLUE: 0.5})
    report = CandidateReport(1, [Candidate(Color.GREEN, 100, 0.3), Candidate(Color.BLUE, 500, -0.1)])

    result = select_target(report, tracks, 1.0, 300)

    assert result.color == Color.BLUE
    assert result.bearing == -0.1


def test_tie_goes_to_first_seen() -> None:
    tracks = StubTracks({Color.YELLOW: 0.3, Color.ORANGE: 0.3})
    report = CandidateReport(1, [Candidate(Color.ORANGE, 400, 0.7), Candidate(Color.YELLOW, 400, -0.7)])

    assert select_target(report, tracks, 1.0, 300).color == Color.ORANGE


def test_untracked_colors_still_produce_a_winner() -> None:
    report = CandidateReport(1, [Candidate(Color.RED, 400, 0.5), Candidate(Color.BLUE, 400, 0.1)])

    result = select_target(report, StubTracks({}), 1.0, 300)

    assert result.color == Color.RED
    assert result.bearing == 0.5


def test_non_finite_winning_bearing_defaults_to_zero(log_records) -> None:
    tracks = StubTracks({Color.GREEN: 0.1, Color.BLUE: 0.5})
    report = CandidateReport(1, [Candidate(Color.GREEN, 400, math.nan), Candidate(Color.BLUE, 400, 0.2)])

    result = select_target(report, tracks, 1.0, 300)

    assert (result.bearing, result.color) == (0.0, None)
    assert any(r["level"].name == "WARNING" and "green" in r["message"] for r in log_records)


def test_winner_score_is_minimum_over_random_reports() -> None:
    rng = random.Random(7)
    colors = list(Color)
    for _ in range(200):
        scores = {c: rng.choice([0.1, 0.2, 0.3, rng.random()]) for c in colors}
        cands = [Candidate(rng.choice(colors), rng.randint(300, 900), rng.uniform(-1, 1)) for _ in range(rng.randint(1, 6))]

        result = select_target(CandidateReport(1, cands), StubTracks(scores), 1.0, 300)

        best = min(scores[c.color] for c in cands)
        first = next(c for c in cands if scores[c.color] == best)
        assert result.color == first.color
        assert result.bearing == first.bearing


def test_selection_advances_real_tracks() -> None:
    store = TrackStore(FusionConfig())
    store.fuse(Color.GREEN, (0.0, 0.0), 0.0)
    store.fuse(Color.BLUE, (1.0, 0.0), 2.0)
    report = CandidateReport(1, [Candidate(Color.GREEN, 400, 0.3), Candidate(Color.BLUE, 400, -0.1)])

    result = select_target(report, store, 2.0, 300)

    # Green has been predicting for 2 s, blue was just measured
    assert result.color == Color.BLUE
    assert store.get(Color.GREEN).last_time == 2.0
