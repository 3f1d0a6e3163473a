from .client import InsightClient, classify_http_error
from .engine import GeminiInsightEngine, GenerationConfig, InsightEngine, InsightHTTPError, extract_text
from .fallback import FallbackResponder

__all__ = [
    "InsightClient",
    "classify_http_error",
    "GeminiInsightEngine",
    "GenerationConfig",
    "InsightEngine",
    "InsightHTTPError",
    "extract_text",
    "FallbackResponder",
]
