"""Prompt assembly for the generation provider."""

from typing import Sequence

from langchain_core.documents import Document
from langchain_core.prompts import PromptTemplate


NO_INDEX_TEMPLATE = PromptTemplate.from_template(
    "You are a helpful assistant for answering questions about code. "
    "No repository index is available, so rely only on the question.\n\n"
    "Question: {question}"
)

NO_MATCH_TEMPLATE = PromptTemplate.from_template(
    "You are a helpful assistant for answering questions about this codebase. "
    "No specific files matched the question keywords; answer based only on the question.\n\n"
    "Question: {question}"
)

CONTEXT_TEMPLATE = PromptTemplate.from_template(
    "You are a helpful assistant for answering questions about this codebase.\n"
    "You are given a set of file snippets as context. Use them when relevant, "
    "but do not hallucinate details that are not supported by the snippets.\n\n"
    "Context:\n"
    "{context}\n\n"
    "Question: {question}\n\n"
    "Answer in a concise way and, when useful, mention which files you are using."
)

SNIPPET_DELIMITER = "-----"


def format_snippet(snippet: Document) -> str:
    """Render one snippet as a labeled block.

    Snippets from the embedding index carry their character range in the label.
    """
    metadata = snippet.metadata
    label = f"FILE: {metadata['source']}"
    if 'start' in metadata and 'end' in metadata:
        label += f" [{metadata['start']}-{metadata['end']}]"
    return f"{label}\n{SNIPPET_DELIMITER}\n{snippet.page_content}\n{SNIPPET_DELIMITER}"


def assemble_prompt(question: str, snippets: Sequence[Document], index_available: bool = True) -> str:
    """Build the text sent to the generation provider.

    Args:
        question: User question
        snippets: Retrieved snippets, in rank order
        index_available: Whether a repository index was found at all

    Returns:
        Prompt text for one of three cases: no index, no matching files, or
        question with context
    """
    if not index_available:
        return NO_INDEX_TEMPLATE.format(question=question)
    if not snippets:
        return NO_MATCH_TEMPLATE.format(question=question)

    context = "\n\n".join(format_snippet(snippet) for snippet in snippets)
    return CONTEXT_TEMPLATE.format(context=context, question=question)
