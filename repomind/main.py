"""Main interface for repomind."""

import os
import sys
import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Any

from .config.llms import OllamaProvider, get_embeddings, get_provider
from .config.settings import Config
from .core.errors import IndexWriteError, RepomindError
from .core.models import INDEX_FILENAME, VECTOR_INDEX_FILENAME, RepositoryIndex
from .core.prompt_builder import assemble_prompt
from .core.repository_parser import build_index, find_index_file, load_index, read_file
from .core.retriever import CodeRetriever
from .core.vector_store import build_embedding_index, load_embedding_index

logger = logging.getLogger(__name__)

PREVIEW_LINES = 10


@dataclass
class PromptContext:
    """A prompt ready for the generation provider plus where its context came from."""
    prompt: str
    used_files: List[str] = field(default_factory=list)
    root_dir: Optional[str] = None
    strategy: Optional[str] = None


class RepoMind:
    """Main class tying indexing, retrieval and generation together."""

    def __init__(self, config: Optional[Config] = None, provider: Optional[OllamaProvider] = None):
        """Initialize repomind.

        Args:
            config: Configuration (read from the environment when omitted)
            provider: Generation/embedding provider
        """
        self.config = config or Config()
        self.provider = provider or get_provider(self.config.ollama)
        self.embeddings = get_embeddings(self.provider)
        self.retriever = CodeRetriever(
            embeddings=self.embeddings,
            max_files=self.config.index.max_files,
            max_chars_per_file=self.config.index.max_chars_per_file,
            top_k_chunks=self.config.index.top_k_chunks,
        )

    def index_repository(self, repo_path: str, output_path: Optional[str] = None,
                         extra_extensions: Optional[Sequence[str]] = None,
                         with_embeddings: bool = False) -> Dict[str, Any]:
        """Index a repository and, optionally, embed its chunks.

        Args:
            repo_path: Repository root
            output_path: Index file location (defaults to <root>/.repomind-index.json)
            extra_extensions: Extensions indexed on top of the defaults
            with_embeddings: Also build <root>/.repomind-vec.json

        Returns:
            Dictionary with the index, its path and the embedded chunks (or None)

        Raises:
            IndexWriteError, EmbeddingWriteError, ProviderError
        """
        index = build_index(
            repo_path,
            extra_extensions=extra_extensions,
            output_path=output_path,
            respect_gitignore=self.config.index.respect_gitignore,
        )
        index_path = output_path or os.path.join(index.root, INDEX_FILENAME)

        chunks = None
        if with_embeddings:
            chunks = build_embedding_index(
                index.root,
                index,
                self.embeddings,
                chunk_size=self.config.index.chunk_size,
                max_chunks_per_file=self.config.index.max_chunks_per_file,
                max_workers=self.config.index.embed_workers,
            )

        return {
            'index': index,
            'index_path': index_path,
            'chunks': chunks,
        }

    def locate_index(self, start_dir: Optional[str] = None) -> Optional[RepositoryIndex]:
        """Find and load the nearest index at or above ``start_dir``.

        An index file that cannot be parsed counts as no index.
        """
        index_path = find_index_file(start_dir or os.getcwd())
        if index_path is None:
            return None
        try:
            return load_index(index_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable index {index_path}: {e}")
            return None

    def build_prompt(self, question: str, start_dir: Optional[str] = None) -> PromptContext:
        """Retrieve context for a question and assemble the provider prompt.

        Args:
            question: User question
            start_dir: Directory the index is searched from (defaults to cwd)

        Returns:
            PromptContext with the prompt and the files used
        """
        index = self.locate_index(start_dir)
        if index is None:
            logger.info("No repository index found; answering from the question only")
            return PromptContext(prompt=assemble_prompt(question, [], index_available=False))

        embedding_chunks = load_embedding_index(Path(index.root) / VECTOR_INDEX_FILENAME)
        result = self.retriever.retrieve(question, index, embedding_chunks)

        return PromptContext(
            prompt=assemble_prompt(question, result.snippets),
            used_files=result.used_files,
            root_dir=index.root,
            strategy=result.strategy,
        )

    def ask(self, question: str, model: Optional[str] = None,
            start_dir: Optional[str] = None) -> Dict[str, Any]:
        """Answer a question about the repository.

        Returns:
            Dictionary with the answer and the PromptContext it was built from
        """
        context = self.build_prompt(question, start_dir)
        answer = self.provider.generate(model or self.config.ollama.model, context.prompt)
        return {
            'answer': answer,
            'context': context,
        }

    def get_status(self, start_dir: Optional[str] = None) -> Dict[str, Any]:
        """Report which indexes are reachable from ``start_dir``."""
        index = self.locate_index(start_dir)
        if index is None:
            return {'has_index': False}

        chunks = load_embedding_index(Path(index.root) / VECTOR_INDEX_FILENAME)
        return {
            'has_index': True,
            'root': index.root,
            'generated_at': index.generated_at.isoformat(),
            'files': len(index.entries),
            'has_embeddings': bool(chunks),
            'chunks': len(chunks) if chunks else 0,
        }


def print_used_files(context: PromptContext) -> None:
    """List context files with a short preview of each."""
    base_dir = context.root_dir or os.getcwd()
    print("📎 Using context from files:\n")
    for rel_path in context.used_files:
        abs_path = os.path.join(base_dir, rel_path)
        display_path = os.path.relpath(abs_path) if os.path.isabs(abs_path) else abs_path
        print(f"   {display_path}:1")

        read = read_file(abs_path)
        if read.ok:
            lines = read.content.split('\n')
            for line in lines[:PREVIEW_LINES]:
                print(f"     {line}")
            if len(lines) > PREVIEW_LINES:
                print("     ...")
        print()


def _cmd_index(app: RepoMind, args) -> int:
    print(f"📚 Building index for: {args.path}")
    try:
        result = app.index_repository(
            args.path,
            output_path=args.output,
            extra_extensions=args.ext,
            with_embeddings=args.with_embeddings,
        )
    except IndexWriteError as e:
        print(f"⚠️ Indexed {len(e.index.entries)} files but could not save them: {e}")
        return 1
    except (RepomindError, ValueError) as e:
        print(f"❌ Failed to build index: {e}")
        return 1

    print(f"✅ Indexed {len(result['index'].entries)} files.")
    print(f"📄 Index written to: {result['index_path']}")
    if result['chunks'] is not None:
        print(f"📐 Embedded {len(result['chunks'])} chunks into {VECTOR_INDEX_FILENAME}")
    return 0


def _cmd_ask(app: RepoMind, args) -> int:
    question = " ".join(args.question)

    if not app.provider.health_check():
        print(f"❌ Cannot reach Ollama at {app.config.ollama.base_url}")
        print("   Make sure Ollama is running: ollama serve")
        return 1

    try:
        context = app.build_prompt(question)
        if context.used_files:
            print_used_files(context)
        else:
            print("ℹ️ No index or matching files found; answering from question only.\n")

        model = args.model or app.config.ollama.model
        print(f"🤔 Thinking with model {model}...")
        answer = app.provider.generate(model, context.prompt)
    except RepomindError as e:
        print(f"❌ Error talking to local LLM: {e}")
        return 1

    print("\n=== repomind ===\n")
    print(answer.strip())
    print()
    return 0


def _cmd_status(app: RepoMind, args) -> int:
    status = app.get_status()
    if not status['has_index']:
        print("❌ No repository index found")
        print("Use 'repomind index /path/to/repo' to index a repository")
        return 1

    print(f"✅ Repository is indexed: {status['root']}")
    print(f"📄 Files: {status['files']}")
    print(f"🕐 Last indexed: {status['generated_at']}")
    if status['has_embeddings']:
        print(f"📐 Embedded chunks: {status['chunks']}")
    else:
        print("📐 No embedding index; questions use path keyword search")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='repomind',
        description='Local AI assistant to explore and understand your code repositories.',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    ask = subparsers.add_parser('ask', help='Ask a question about the repository')
    ask.add_argument('question', nargs='+', help='The question to ask')
    ask.add_argument('-m', '--model', help='Ollama model name (default: REPOMIND_MODEL or llama3)')

    index = subparsers.add_parser('index', help='Index a repository for context-aware questions')
    index.add_argument('path', nargs='?', default='.', help='Path to repository (default: .)')
    index.add_argument('-o', '--output',
                       help='Path to index JSON file (default: .repomind-index.json in repo root)')
    index.add_argument('-e', '--ext', nargs='+',
                       help='Extra file extensions to include (e.g. .md .yml)')
    index.add_argument('--with-embeddings', action='store_true',
                       help='Also build an embedding index using Ollama (writes .repomind-vec.json)')

    subparsers.add_parser('status', help='Show the index reachable from the current directory')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI interface."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        app = RepoMind()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1

    commands = {
        'ask': _cmd_ask,
        'index': _cmd_index,
        'status': _cmd_status,
    }
    return commands[args.command](app, args)


if __name__ == "__main__":
    sys.exit(main())
