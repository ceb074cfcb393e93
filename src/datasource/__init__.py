from .handler import CloudLoggingDatasource, to_frame
from .models import DataQuery, DataResponse, HealthCheckResult, LogFrame, QueryModel, ResourceResponse

__all__ = [
    "CloudLoggingDatasource",
    "DataQuery",
    "DataResponse",
    "HealthCheckResult",
    "LogFrame",
    "QueryModel",
    "ResourceResponse",
    "to_frame",
]
