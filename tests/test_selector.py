"""Tests for tapcam.selector and tapcam.session."""
from __future__ import annotations

import pytest

from tapcam.models import CalibrationHints, CalibrationPoint, Candidate
from tapcam.selector import CandidateSelector
from tapcam.session import DetectionSession
from tapcam.stationary import StationaryTracker
from tapcam.trajectory import TrajectoryTracker


def blob(x: float, y: float, pixels: int = 100) -> Candidate:
    return Candidate(x=x, y=y, radius=30.0, brightness=160.0, pixel_count=pixels, circularity=1.0)


@pytest.fixture
def selector() -> CandidateSelector:
    return CandidateSelector()


@pytest.fixture
def moving_trajectory() -> TrajectoryTracker:
    traj = TrajectoryTracker()
    for i, x in enumerate((0, 10, 20)):
        traj.add(x, 0, i)
    return traj


# --- CandidateSelector.score ----------------------------------------------

class TestScore:
    def test_base_score_is_pixel_count(self, selector):
        score = selector.score(blob(10, 10, 123), None, TrajectoryTracker(), StationaryTracker())
        assert score == pytest.approx(123.0)

    def test_stationary_penalty(self, selector):
        stationary = StationaryTracker()
        for frame in range(5):
            stationary.update([blob(100, 100)], frame)
        score = selector.score(blob(100, 100), None, TrajectoryTracker(), stationary)
        assert score == pytest.approx(10.0)

    def test_hard_stationary_rejected(self, selector):
        stationary = StationaryTracker()
        for frame in range(10):
            stationary.update([blob(100, 100)], frame)
        assert selector.score(blob(100, 100), None, TrajectoryTracker(), stationary) is None

    def test_prediction_near(self, selector, moving_trajectory):
        score = selector.score(blob(30, 0), None, moving_trajectory, StationaryTracker())
        assert score == pytest.approx(300.0)

    def test_prediction_mid(self, selector, moving_trajectory):
        score = selector.score(blob(100, 0), None, moving_trajectory, StationaryTracker())
        assert score == pytest.approx(150.0)

    def test_prediction_far(self, selector, moving_trajectory):
        score = selector.score(blob(300, 0), None, moving_trajectory, StationaryTracker())
        assert score == pytest.approx(30.0)

    def test_slow_trajectory_ignored(self, selector):
        traj = TrajectoryTracker()
        for i, x in enumerate((0, 2, 4)):
            traj.add(x, 0, i)
        assert selector.score(blob(300, 0), None, traj, StationaryTracker()) == pytest.approx(100.0)

    def test_continuity(self, selector):
        traj, stationary = TrajectoryTracker(), StationaryTracker()
        assert selector.score(blob(30, 0), (0, 0), traj, stationary) == pytest.approx(200.0)
        assert selector.score(blob(100, 0), (0, 0), traj, stationary) == pytest.approx(120.0)
        assert selector.score(blob(400, 0), (0, 0), traj, stationary) == pytest.approx(100.0)

    def test_jump_onto_static_zone_rejected(self, selector):
        stationary = StationaryTracker()
        for frame in range(6):
            stationary.update([blob(400, 0)], frame)
        assert selector.score(blob(400, 0), (0, 0), TrajectoryTracker(), stationary) is None

    def test_exclude_hint(self, selector):
        hints = CalibrationHints(exclude=CalibrationPoint(100, 100))
        traj, stationary = TrajectoryTracker(), StationaryTracker()
        assert selector.score(blob(110, 100), None, traj, stationary, hints) is None
        assert selector.score(blob(200, 100), None, traj, stationary, hints) == pytest.approx(20.0)
        assert selector.score(blob(300, 100), None, traj, stationary, hints) == pytest.approx(100.0)

    def test_exclude_radius_widens_zone(self, selector):
        hints = CalibrationHints(exclude=CalibrationPoint(100, 100, radius=90))
        assert selector.score(blob(180, 100), None, TrajectoryTracker(), StationaryTracker(), hints) is None

    def test_target_hint(self, selector):
        hints = CalibrationHints(target=CalibrationPoint(0, 0))
        traj, stationary = TrajectoryTracker(), StationaryTracker()
        assert selector.score(blob(50, 0), None, traj, stationary, hints) == pytest.approx(150.0)
        assert selector.score(blob(150, 0), None, traj, stationary, hints) == pytest.approx(100.0)


# --- CandidateSelector.select ---------------------------------------------

class TestSelect:
    def test_no_candidates(self, selector):
        assert selector.select([], None, TrajectoryTracker(), StationaryTracker()) is None

    def test_largest_wins(self, selector):
        small, big = blob(0, 0, 50), blob(300, 300, 80)
        assert selector.select([small, big], None, TrajectoryTracker(), StationaryTracker()) is big

    def test_tie_keeps_first(self, selector):
        first, second = blob(0, 0), blob(300, 300)
        assert selector.select([first, second], None, TrajectoryTracker(), StationaryTracker()) is first

    def test_all_rejected(self, selector):
        hints = CalibrationHints(exclude=CalibrationPoint(0, 0))
        assert selector.select([blob(5, 5)], None, TrajectoryTracker(), StationaryTracker(), hints) is None

    def test_rank_order(self, selector):
        ranked = selector.rank([blob(0, 0, 10), blob(100, 100, 30)], None, TrajectoryTracker(), StationaryTracker())
        assert [r.score for r in ranked] == [30.0, 10.0]


# --- DetectionSession -----------------------------------------------------

class TestDetectionSession:
    def test_static_glyph_never_beats_moving_indicator(self):
        session = DetectionSession()
        fixed = blob(100, 100, 200)
        picks = []
        for frame in range(30):
            mover = blob(300 + 20 * frame, 300, 100)
            picks.append((session.process([fixed, mover]), mover))
        for frame, (picked, mover) in enumerate(picks):
            if frame >= 4:
                assert picked is mover
        assert picks[0][0] is fixed

    def test_lone_static_glyph_dropped(self):
        session = DetectionSession()
        fixed = blob(100, 100)
        picks = [session.process([fixed]) for _ in range(12)]
        assert all(p is fixed for p in picks[:9])
        assert all(p is None for p in picks[9:])

    def test_trajectory_only_records_selection(self):
        session = DetectionSession()
        session.process([])
        session.process([blob(10, 10)])
        assert len(session.trajectory) == 1
        assert session.last_position == (10, 10)
        assert session.frame_index == 2

    def test_calibration_exclude(self):
        session = DetectionSession()
        session.set_calibration(exclude=CalibrationPoint(100, 100))
        assert session.process([blob(100, 100)]) is None
        session.clear_calibration()
        assert session.calibration.is_empty

    def test_reset(self):
        session = DetectionSession()
        for _ in range(3):
            session.process([blob(50, 50)])
        session.reset()
        assert session.frame_index == 0
        assert session.last_position is None
        assert len(session.stationary) == 0
        assert len(session.trajectory) == 0

    def test_process_frame(self, disc_frame):
        session = DetectionSession()
        candidates, selected = session.process_frame(disc_frame([(200, 200, 30)]))
        assert len(candidates) == 1
        assert selected is candidates[0]
