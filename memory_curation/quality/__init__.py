from .aggregator import MediaQualityAggregator, QualityReport
from . import face_metrics

__all__ = ["MediaQualityAggregator", "QualityReport", "face_metrics"]
