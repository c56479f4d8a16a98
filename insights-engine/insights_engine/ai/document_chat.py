"""
Chat over uploaded research documents.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .client import CompletionClient

logger = logging.getLogger(__name__)

CHAT_MODES = ("chat", "summarize", "key-findings", "compare", "meta-analysis")

# Per-document text budget when documents are inlined into the system prompt
MAX_DOCUMENT_CHARS = 12000

META_ANALYSIS_PROMPT = """You are a research meta-analyst. Analyze the {count} selected documents as a cohesive body of research and generate a comprehensive meta-analysis report with the following structure:

## Executive Summary
Provide a high-level overview of the collective research

## Research Overview
- Total number of studies analyzed
- Research timeframe and contexts
- Primary research domains and themes

## Methodology Analysis
- Common methodological approaches
- Sample sizes and study designs
- Data collection methods

## Key Findings Synthesis
- Convergent findings across studies
- Divergent or conflicting results
- Statistical significance patterns
- Effect sizes and outcomes

## Trends and Patterns
- Temporal trends in the research
- Geographical or contextual patterns
- Evolution of findings over time

## Limitations and Gaps
- Common limitations across studies
- Research gaps identified
- Areas requiring further investigation

## Practical Implications
- Real-world applications
- Recommendations for practitioners
- Policy implications

## Conclusion
Synthesize the overall contribution of this body of research"""


@dataclass
class ChatDocument:
    """A document as seen by the chat prompt builder."""
    filename: str
    text: Optional[str] = None


def build_prompts(
    mode: str,
    message: Optional[str],
    document_count: int,
    single_document: bool,
) -> Dict[str, str]:
    """
    Pick the system and user prompt for a chat mode.

    Args:
        mode: One of CHAT_MODES
        message: User question (required in chat mode)
        document_count: Number of selected documents
        single_document: True when the user asks about one specific document

    Returns:
        Dict with "system" and "user" keys

    Raises:
        ValueError: Unknown mode, missing message, or too few documents
    """
    if mode not in CHAT_MODES:
        raise ValueError(f"Unknown chat mode '{mode}'. Expected one of {CHAT_MODES}")

    if mode == "summarize":
        if single_document:
            system = ("You are a research assistant. Provide a comprehensive summary of the research document, "
                      "including: 1) Main objectives, 2) Methodology, 3) Key findings, 4) Conclusions, "
                      "5) Implications. Be detailed but concise.")
        else:
            system = ("You are a research assistant. Provide a comprehensive summary synthesizing all uploaded "
                      "research documents. Identify common themes, methodologies, and key findings across the papers.")
        return {"system": system, "user": "Please provide a detailed summary of the document(s)."}

    if mode == "key-findings":
        if single_document:
            system = ("You are a research assistant. Extract and list the key findings from the research document. "
                      "Focus on: 1) Main discoveries, 2) Statistical significance, 3) Novel contributions, "
                      "4) Practical implications. Use bullet points for clarity.")
        else:
            system = ("You are a research assistant. Extract and synthesize key findings across all research "
                      "documents. Identify patterns, contradictions, and consensus findings.")
        return {"system": system, "user": "Please extract the key findings from the document(s)."}

    if mode == "compare":
        if document_count < 2:
            raise ValueError("At least 2 documents required for comparison")
        system = ("You are a research assistant performing comparative analysis. Compare the selected research "
                  "documents focusing on: 1) Research objectives and questions, 2) Methodologies used, "
                  "3) Key findings and results, 4) Conclusions and implications, 5) Strengths and limitations. "
                  "Highlight similarities, differences, and complementary insights.")
        return {
            "system": system,
            "user": f"Please provide a detailed comparative analysis of {document_count} research documents.",
        }

    if mode == "meta-analysis":
        if document_count < 2:
            raise ValueError("At least 2 documents required for meta-analysis")
        return {
            "system": META_ANALYSIS_PROMPT.format(count=document_count),
            "user": f"Please generate a comprehensive meta-analysis report for these {document_count} research documents.",
        }

    if not message:
        raise ValueError("Message is required for chat mode")
    if single_document:
        system = ("You are a helpful research assistant. Answer questions about the specific research document "
                  "the user is asking about. Be precise and cite relevant sections when possible.")
    else:
        system = ("You are a helpful research assistant. Answer questions by synthesizing information across all "
                  "uploaded research documents. Provide comprehensive answers and cite which documents you are "
                  "referencing when relevant.")
    return {"system": system, "user": message}


def _documents_block(documents: List[ChatDocument]) -> str:
    parts = []
    for idx, doc in enumerate(documents, 1):
        body = (doc.text or "")[:MAX_DOCUMENT_CHARS] or "(binary document, content not available)"
        parts.append(f"[Document {idx}] {doc.filename}\n{body}")
    return "\n\n".join(parts)


async def chat_with_documents(
    documents: List[ChatDocument],
    mode: str = "chat",
    message: Optional[str] = None,
    history: Optional[List[Dict[str, str]]] = None,
    single_document: bool = False,
    client: Optional[CompletionClient] = None,
) -> str:
    """
    Run one turn of document chat.

    Args:
        documents: Selected documents (text is inlined when available)
        mode: chat, summarize, key-findings, compare or meta-analysis
        message: User question for chat mode
        history: Prior turns as [{"role", "content"}], replayed in order
        single_document: Use the single-document wording of the prompts
        client: Completion client

    Returns:
        str: Assistant reply
    """
    prompts = build_prompts(mode, message, len(documents), single_document)

    system = prompts["system"]
    if documents:
        system = f"{system}\n\nDOCUMENTS:\n{_documents_block(documents)}"

    messages = [{"role": "system", "content": system}]
    for turn in history or []:
        messages.append({"role": turn["role"], "content": turn["content"]})
    messages.append({"role": "user", "content": prompts["user"]})

    client = client or CompletionClient()
    logger.info(f"Document chat: mode={mode}, documents={len(documents)}, history={len(history or [])}")

    reply = await client.complete(
        messages=messages,
        temperature=0.7,
        max_tokens=2000,
        failure_message="AI service error",
    )
    return reply or "I couldn't generate a response."
