from nexus_ops.schemas.common import ErrorResponse

__all__ = ["ErrorResponse"]
