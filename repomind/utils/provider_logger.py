"""
Utility for logging embedding/generation provider interactions.
Records the call, its input size, the model and how long it took.
"""

import logging
from typing import Any, Dict, Optional


class ProviderCallLogger:
    """Utility class for logging provider API interactions."""

    def __init__(self, logger_name: str = "repomind.provider"):
        """Initialize with a specific logger."""
        self.logger = logging.getLogger(logger_name)

    def log_api_call(
        self,
        method: str,
        model: Optional[str],
        request: Dict[str, Any],
        response: Any,
        duration_ms: float,
    ) -> None:
        """
        Log a completed provider call.

        Prompts and vectors are summarized by size, never logged in full.

        Args:
            method: Provider endpoint (e.g. 'chat.completions.create')
            model: Model the call was made against
            request: Request payload
            response: Value extracted from the provider response
            duration_ms: Request duration in milliseconds
        """
        self.logger.debug(
            f"Provider call {method} | Model: {model} | Request: {self._summarize(request)} | "
            f"Response: {self._describe(response)} | Duration: {duration_ms:.2f}ms"
        )

    def log_api_failure(self, method: str, model: Optional[str], error: BaseException,
                        duration_ms: float) -> None:
        """Log a provider call that raised or returned an unusable body."""
        self.logger.error(
            f"Provider call {method} failed | Model: {model} | {error} (took {duration_ms:.2f}ms)"
        )

    def _summarize(self, request: Dict[str, Any]) -> Dict[str, str]:
        return {key: self._describe(value) for key, value in request.items()}

    @staticmethod
    def _describe(value: Any) -> str:
        if isinstance(value, str):
            return f"{len(value)} chars"
        if isinstance(value, list):
            return f"list[{len(value)}]"
        return repr(value)


# Global logger instance
provider_logger = ProviderCallLogger()
