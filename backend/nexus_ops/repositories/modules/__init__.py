"""모듈별 데이터 제공자 (tenant 스코프 projection + 고정 쓰기 연산)"""

from nexus_ops.repositories.modules.inbound import InboundProvider
from nexus_ops.repositories.modules.outbound import OutboundProvider
from nexus_ops.repositories.modules.plan import PlanProvider
from nexus_ops.repositories.modules.production import ProductionProvider

__all__ = [
    "InboundProvider",
    "OutboundProvider",
    "PlanProvider",
    "ProductionProvider",
]
