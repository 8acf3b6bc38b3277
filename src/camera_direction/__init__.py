"""Multi-robot camera direction coordinator – re-export high-level API."""
from .processor import CameraDirectionCoordinator        # noqa: F401
from .config import (                                    # noqa: F401
    CoordinatorConfig, FusionConfig, RobotLinkConfig,
)
from .common import (                                    # noqa: F401
    Candidate, CandidateReport, Color, Marker, MarkerAction,
    PositionObservation, RigidTransform, SelectionResult,
)
from .exceptions import TransformUnavailable             # noqa: F401
