from .provider_logger import ProviderCallLogger, provider_logger

__all__ = ["ProviderCallLogger", "provider_logger"]
