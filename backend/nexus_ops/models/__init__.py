from nexus_ops.models.operations import (
    BillOfMaterials,
    BOMMaterial,
    FinishedInventory,
    ForecastPlan,
    InboundPOLine,
    InboundPurchaseOrder,
    OutboundOrder,
    OutboundOrderLine,
    PurchaseDraft,
    RawInventory,
    RawMaterial,
    Vendor,
    WorkOrder,
)
from nexus_ops.models.suggestion import (
    ForecastCascadePayload,
    ImpactedWorkOrder,
    PurchasePayload,
    ReceivedMaterial,
    RelatedIds,
    ReleaseWorkOrderPayload,
    Suggestion,
    SuggestionCandidate,
    UrgencySignals,
    WorkOrderPayload,
)

__all__ = [
    "BOMMaterial",
    "BillOfMaterials",
    "FinishedInventory",
    "ForecastCascadePayload",
    "ForecastPlan",
    "ImpactedWorkOrder",
    "InboundPOLine",
    "InboundPurchaseOrder",
    "OutboundOrder",
    "OutboundOrderLine",
    "PurchaseDraft",
    "PurchasePayload",
    "RawInventory",
    "RawMaterial",
    "ReceivedMaterial",
    "RelatedIds",
    "ReleaseWorkOrderPayload",
    "Suggestion",
    "SuggestionCandidate",
    "UrgencySignals",
    "Vendor",
    "WorkOrder",
    "WorkOrderPayload",
]
