# eye_tracking/__init__.py
"""Eye-center tracking package – re-export high-level API."""
from .processor import EyeTrackingProcessor        # noqa: F401
from .pipeline import FramePipeline, PipelineState  # noqa: F401
from .eye_center import EyeCenterEstimator          # noqa: F401
from .helpers import TemporalSmoother               # noqa: F401
from .handoff import HandoffQueue                   # noqa: F401
from .common import (                               # noqa: F401
    END_OF_STREAM, Frame, Point, Rect, Space,
    AcquisitionFailure, DegenerateRegion, HandoffFailure, ModelLoadFailure,
)
from .config import (                               # noqa: F401
    CameraConfig, DetectorConfig, EyeCenterConfig,
    EyeRegionConfig, PipelineConfig, SmoothingConfig,
)
