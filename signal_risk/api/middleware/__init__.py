from signal_risk.api.middleware.request_context import RequestContextMiddleware
from signal_risk.api.middleware.timeout import TimeoutMiddleware

__all__ = ["RequestContextMiddleware", "TimeoutMiddleware"]
