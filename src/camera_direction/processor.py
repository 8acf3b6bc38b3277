# processor.py
"""Glue logic that wires observations → tracks → selection → robots."""
from __future__ import annotations

import functools
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Set

from loguru import logger

from camera_direction.arbiter import DetectorState, ResourceArbiter
from camera_direction.common import (
    CandidateReport,
    Color,
    Marker,
    PositionObservation,
    RigidTransform,
    SelectionResult,
)
from camera_direction.config import CoordinatorConfig, FusionConfig
from camera_direction.exceptions import CameraDirectionError, TransformUnavailable, UnknownRobotError
from camera_direction.live_tuning import RuntimeParamWatcher
from camera_direction.selector import select_target
from camera_direction.tracker import TrackStore
from camera_direction.transforms import TransformBuffer
from camera_direction.visualizer import StalenessVisualizer

MarkerSink = Callable[[List[Marker]], None]

_STOP = object()


class CameraDirectionCoordinator:
    """The main high-level orchestrator.

    Owns the track store and every robot's detector state. Inbound events are
    handled one at a time; only the detector toggles may leave the dispatch
    thread, on one single-worker executor per robot.
    """

    def __init__(
        self,
        fusion_cfg: FusionConfig,
        coordinator_cfg: CoordinatorConfig,
        links: Dict[int, Any],
        *,
        marker_sink: Optional[MarkerSink] = None,
        param_watcher: Optional[RuntimeParamWatcher] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        # Save configs
        self.fusion_cfg = fusion_cfg
        self.coordinator_cfg = coordinator_cfg

        # Build sub-systems
        self.tracks = TrackStore(fusion_cfg)
        self.transforms = TransformBuffer(fusion_cfg.transform_max_age_s)
        self.visualizer = StalenessVisualizer(fusion_cfg)
        self.links = dict(links)
        self.marker_sink = marker_sink
        self.param_watcher = param_watcher

        self.detector_states: Dict[int, DetectorState] = {}
        self._arbiters: Dict[int, ResourceArbiter] = {}
        for robot_id in range(1, coordinator_cfg.robot_count + 1):
            state = DetectorState(robot_id)
            self.detector_states[robot_id] = state
            if robot_id in self.links:
                self._arbiters[robot_id] = ResourceArbiter(self.links[robot_id], state)

        self._executors: Dict[int, ThreadPoolExecutor] = {}
        self._pending: Dict[int, Future] = {}
        self._desired: Dict[int, Color] = {}
        self._running: Set[int] = set()
        self._arb_lock = threading.Lock()

        self._clock = clock
        self._start = clock()
        self._events: "queue.Queue[Any]" = queue.Queue()

        if self.param_watcher is not None:
            self.param_watcher.apply_to(self.fusion_cfg)

    # ---------------------------------------------------------------------
    #                              Helpers
    # ---------------------------------------------------------------------
    def elapsed(self) -> float:
        return self._clock() - self._start

    def _check_robot(self, robot_id: int) -> None:
        if not 1 <= robot_id <= self.coordinator_cfg.robot_count:
            raise UnknownRobotError(robot_id, self.coordinator_cfg.robot_count)

    def _apply_runtime_params(self) -> None:
        changed = self.param_watcher.apply_to(self.fusion_cfg)
        if changed:
            self.transforms.max_age_s = self.fusion_cfg.transform_max_age_s
            logger.info(f"[Runtime] Parameters updated: {', '.join(changed)}")

    # ---------------------------------------------------------------------
    #                           Event handlers
    # ---------------------------------------------------------------------
    def handle_transform(self, transform: RigidTransform) -> None:
        self._check_robot(transform.robot_id)
        self.transforms.set(transform, self.elapsed())

    def handle_position(self, obs: PositionObservation) -> bool:
        """Fuse one camera-frame sample. Returns False when it was dropped."""
        self._check_robot(obs.robot_id)
        now = self.elapsed()
        try:
            wx, wy, _ = self.transforms.transform(obs, now)
        except TransformUnavailable as exc:
            logger.warning(f"[Ingest] Dropping {obs.color.value} sample: {exc}")
            return False
        self.tracks.fuse(obs.color, (wx, wy), now)
        logger.debug(f"[Ingest] roomba{obs.robot_id} sees {obs.color.value} at ({wx:.2f}, {wy:.2f})")
        return True

    def handle_candidates(self, report: CandidateReport) -> SelectionResult:
        self._check_robot(report.robot_id)
        result = select_target(report, self.tracks, self.elapsed(), self.fusion_cfg.min_blob_size)
        self.publish_angle(result.robot_id, result.bearing)
        if result.color is not None:
            self._arbitrate(result.robot_id, result.color)
        return result

    def on_timer(self) -> List[Marker]:
        if self.param_watcher is not None and self.param_watcher.maybe_reload():
            self._apply_runtime_params()
        now = self.elapsed()
        markers = self.visualizer.render(self.tracks, now, stamp=now)
        if self.marker_sink is not None:
            self.marker_sink(markers)
        return markers

    def dispatch(self, event: Any) -> None:
        """Route one inbound event; a bad event is logged and dropped."""
        try:
            if isinstance(event, PositionObservation):
                self.handle_position(event)
            elif isinstance(event, CandidateReport):
                self.handle_candidates(event)
            elif isinstance(event, RigidTransform):
                self.handle_transform(event)
            else:
                logger.warning(f"[Processor] Unknown event type {type(event).__name__}")
        except (CameraDirectionError, ValueError) as exc:
            logger.error(f"[Processor] Dropped {type(event).__name__}: {exc}")

    # ---------------------------------------------------------------------
    #                              Outputs
    # ---------------------------------------------------------------------
    def publish_angle(self, robot_id: int, bearing: float) -> None:
        link = self.links.get(robot_id)
        if link is None:
            logger.debug(f"[Processor] roomba{robot_id} has no link, angle {bearing:.3f} not sent")
            return
        link.point(bearing)

    def _arbitrate(self, robot_id: int, color: Color) -> Optional[Future]:
        arbiter = self._arbiters.get(robot_id)
        if arbiter is None:
            return None
        if not self.coordinator_cfg.background_arbitration:
            arbiter.arbitrate(color)
            return None
        with self._arb_lock:
            # At most one job per robot; it always works on the newest winner.
            self._desired[robot_id] = color
            if robot_id in self._running:
                return self._pending.get(robot_id)
            self._running.add(robot_id)
            executor = self._executors.get(robot_id)
            if executor is None:
                executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"arbiter-roomba{robot_id}")
                self._executors[robot_id] = executor
            future = executor.submit(self._arbitrate_latest, robot_id, arbiter)
            self._pending[robot_id] = future
        future.add_done_callback(functools.partial(self._log_arbitration_failure, robot_id))
        return future

    def _arbitrate_latest(self, robot_id: int, arbiter: ResourceArbiter) -> None:
        try:
            while True:
                with self._arb_lock:
                    color = self._desired.pop(robot_id, None)
                    if color is None:
                        self._running.discard(robot_id)
                        return
                arbiter.arbitrate(color)
        except BaseException:
            with self._arb_lock:
                self._running.discard(robot_id)
            raise

    @staticmethod
    def _log_arbitration_failure(robot_id: int, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"[Arbiter] roomba{robot_id}: arbitration worker failed: {exc!r}")

    def wait_for_arbitration(self, timeout: Optional[float] = None, robot_id: Optional[int] = None) -> None:
        """Block until the queued toggle rounds (of one robot, or all) have finished."""
        with self._arb_lock:
            if robot_id is None:
                futures = list(self._pending.values())
            else:
                futures = [self._pending[robot_id]] if robot_id in self._pending else []
        for future in futures:
            future.result(timeout=timeout)

    # ---------------------------------------------------------------------
    #                          Dispatch stream
    # ---------------------------------------------------------------------
    def post(self, event: Any) -> None:
        self._events.put(event)

    def stop(self) -> None:
        """Ask `run` to return once every event posted so far is handled."""
        self._events.put(_STOP)

    def run(self) -> None:
        """Process events in arrival order and tick the markers at the update rate."""
        logger.info(
            f"[Processor] Running: {self.coordinator_cfg.robot_count} robots, "
            f"{self.fusion_cfg.update_rate_hz} Hz markers"
        )
        next_tick = time.monotonic()
        try:
            while True:
                try:
                    event = self._events.get(timeout=max(0.0, next_tick - time.monotonic()))
                except queue.Empty:
                    event = None
                if event is _STOP:
                    break
                if event is not None:
                    self.dispatch(event)
                now = time.monotonic()
                if now >= next_tick:
                    self.on_timer()
                    next_tick = now + 1.0 / self.fusion_cfg.update_rate_hz
        except KeyboardInterrupt:
            logger.info("[Processor] Stopped by user.")
        finally:
            self.close()

    def close(self) -> None:
        for executor in self._executors.values():
            executor.shutdown(wait=True)
        self._executors.clear()
        self._pending.clear()
        self._desired.clear()

    def __enter__(self) -> "CameraDirectionCoordinator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
