"""
Vitalis - Prompt Assembly
==========================
Stateless string construction for the RAG pipeline: no I/O, no failure
modes.  Templates live in ``vitalis.config.prompt_templates``.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence

from vitalis.config.prompt_templates import DEFAULT_CATEGORY, DEFAULT_SOURCE, DISCLAIMERS, GROUNDED_PROMPT_TEMPLATE, HEALTH_INFO_PROMPT_TEMPLATE, NO_CONTEXT_PLACEHOLDER
from vitalis.src.core.models import RetrievedMatch

# Picks one disclaimer; swap in a deterministic chooser for tests.
DisclaimerChooser = Callable[[Sequence[str]], str]


def build_grounded_prompt(query: str, matches: Sequence[RetrievedMatch]) -> str:
    """Wrap the matched passages (blank-line separated) and the query in the assistant instruction."""
    context = "\n\n".join(match.passage.text for match in matches)
    return GROUNDED_PROMPT_TEMPLATE.format(context=context, query=query)


def format_for_context(matches: Sequence[RetrievedMatch]) -> str:
    """
    Number each match as a citable block::

        [Source 1 - WHO Guidelines (exercise)]
        Regular cardiovascular exercise ...
    """
    if not matches:
        return NO_CONTEXT_PLACEHOLDER

    blocks: list[str] = []
    for i, match in enumerate(matches, 1):
        source = match.passage.source or DEFAULT_SOURCE
        category = match.passage.category or DEFAULT_CATEGORY
        blocks.append(f"[Source {i} - {source} ({category})]\n{match.passage.text}")
    return "\n\n".join(blocks)


def build_health_info_prompt(topic: str, matches: Sequence[RetrievedMatch]) -> str:
    return HEALTH_INFO_PROMPT_TEMPLATE.format(topic=topic, context=format_for_context(matches))


def append_disclaimer(answer: str, choose: DisclaimerChooser = random.choice) -> str:
    """Append one of the canonical ``DISCLAIMERS`` (picked by *choose*) to *answer*."""
    return answer + choose(DISCLAIMERS)
