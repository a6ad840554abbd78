"""
repomind - ask questions about a local code repository, answered from its own files.
"""

__version__ = "0.1.0"

from .main import PromptContext, RepoMind

__all__ = ["PromptContext", "RepoMind"]
