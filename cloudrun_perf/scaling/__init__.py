"""Cloud Run instance scaling management."""
from .scaling_spec import ScalingSpec, ScalingSpecError
from .gcloud_scaler import GcloudScaler, ScalingStatus

__all__ = [
    'ScalingSpec',
    'ScalingSpecError',
    'GcloudScaler',
    'ScalingStatus'
]
