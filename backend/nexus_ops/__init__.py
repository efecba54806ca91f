"""Nexus Ops - 교차 모듈 Command Center 백엔드"""

__version__ = "0.1.0"
