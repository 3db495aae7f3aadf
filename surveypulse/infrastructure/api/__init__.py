from .analytics_client import AnalyticsApiClient, AnalyticsApiError, ApiResult

__all__ = ["AnalyticsApiClient", "AnalyticsApiError", "ApiResult"]
