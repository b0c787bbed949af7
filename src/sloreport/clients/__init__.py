from sloreport.clients.base import PermanentHTTPError, RetryableHTTPError
from sloreport.clients.dynatrace import DynatraceClient

__all__ = ["DynatraceClient", "PermanentHTTPError", "RetryableHTTPError"]
