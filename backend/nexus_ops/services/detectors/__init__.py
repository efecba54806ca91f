"""Signal Detectors

스냅샷 -> 후보 제안 목록. 부수효과 없음.
"""

from nexus_ops.services.detectors.base import (
    DetectorConfig,
    ForecastCascadeSnapshot,
    PlannedDemand,
    ProductionNeedSnapshot,
    PurchaseNeedSnapshot,
    ReleaseReadySnapshot,
)
from nexus_ops.services.detectors.forecast_cascade import detect_forecast_cascade
from nexus_ops.services.detectors.production_need import detect_production_need
from nexus_ops.services.detectors.purchase_need import detect_purchase_need
from nexus_ops.services.detectors.release_ready import detect_release_ready

__all__ = [
    "DetectorConfig",
    "ForecastCascadeSnapshot",
    "PlannedDemand",
    "ProductionNeedSnapshot",
    "PurchaseNeedSnapshot",
    "ReleaseReadySnapshot",
    "detect_forecast_cascade",
    "detect_production_need",
    "detect_purchase_need",
    "detect_release_ready",
]
