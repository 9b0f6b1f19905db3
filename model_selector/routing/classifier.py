"""
Task Classifier - Sort a turn's text into a model category.

Phase 1: ordered keyword rules (cheap, offline, explainable).
Phase 2 (optional): when no rule fired and the text is long enough to be
worth it, ask a small LLM for a category. Anything that goes wrong on the
LLM path, or any answer outside the closed category set, means "simple".
"""

import asyncio
import json
import logging
import re
from typing import Optional

from model_selector.config import SelectorConfig
from model_selector.models.enums import ClassificationSource
from model_selector.models.routing import Classification
from model_selector.routing.signals import SIMPLE_CATEGORY, build_rules, match_rules
from model_selector.utils.protocols import LLMClientProtocol


logger = logging.getLogger(__name__)


CATEGORY_DESCRIPTIONS = {
    "simple": "Chit-chat, quick answers, lookups. No upgrade needed.",
    "planning": "Design, research, strategy, comparing options, writing proposals.",
    "coding": "Writing, debugging or reviewing code and scripts.",
    "complex": "Multi-step orchestration, system architecture, migrations, delegating to sub-agents.",
    "security": "Security audits, vulnerability analysis, threat modelling.",
}

CLASSIFIER_SYSTEM_PROMPT = """You are a task classifier for a model router.
Read the user's message and answer with exactly one category name from this list:

{categories}

Answer with the bare category name only. If unsure, answer "simple".
"""


class TaskClassifier:
    """
    Classifies turn text into one of the configured categories.

    The keyword path is synchronous and deterministic; `aclassify` adds the
    optional semantic fallback.
    """

    def __init__(
        self,
        config: SelectorConfig,
        llm_client: Optional[LLMClientProtocol] = None,
    ):
        """
        Args:
            config: Selector configuration (categories, signals, rule order)
            llm_client: Client for the semantic fallback; None disables it
        """
        self.config = config
        self.categories = config.categories
        self.rules = build_rules(config.signals, config.category_order)
        self.llm_client = llm_client

    def classify(self, text: str) -> str:
        """Keyword-only classification."""
        return self.classify_detailed(text).category

    def classify_detailed(self, text: str) -> Classification:
        match = match_rules(text or "", self.rules)
        if match:
            category, signal = match
            return Classification(
                category=category,
                source=ClassificationSource.KEYWORD,
                matched_signal=signal,
            )
        return Classification(category=SIMPLE_CATEGORY, source=ClassificationSource.DEFAULT)

    async def aclassify(self, text: str) -> str:
        """Keyword classification with the semantic fallback."""
        return (await self.aclassify_detailed(text)).category

    async def aclassify_detailed(self, text: str) -> Classification:
        result = self.classify_detailed(text)
        if result.source == ClassificationSource.KEYWORD:
            return result

        if not self._should_use_semantic(text):
            return result

        category = await self._semantic_classify(text)
        if category is None:
            return result

        logger.info(f"Semantic classification: {category}")
        return Classification(category=category, source=ClassificationSource.SEMANTIC)

    def _should_use_semantic(self, text: str) -> bool:
        semantic = self.config.semantic
        if not semantic.enabled or self.llm_client is None:
            return False
        return len((text or "").strip()) >= semantic.min_length

    async def _semantic_classify(self, text: str) -> Optional[str]:
        """Ask the LLM for a category; None when unavailable or invalid."""
        semantic = self.config.semantic
        categories = "\n".join(
            f"- {c}: {CATEGORY_DESCRIPTIONS.get(c, c)}" for c in self.categories
        )

        try:
            response = await asyncio.wait_for(
                self.llm_client.complete(
                    model=semantic.model,
                    messages=[
                        {"role": "system", "content": CLASSIFIER_SYSTEM_PROMPT.format(categories=categories)},
                        {"role": "user", "content": text},
                    ],
                    temperature=0.0,
                    max_tokens=20,
                ),
                timeout=semantic.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Semantic classification timed out after {semantic.timeout_seconds}s")
            return None
        except Exception as e:
            logger.warning(f"Semantic classification failed: {e}")
            return None

        category = self._parse_category(response.content)
        if category is None:
            logger.warning(f"Semantic classifier returned an unknown category: {response.content!r}")
        return category

    def _parse_category(self, content: str) -> Optional[str]:
        """Extract a category name from the LLM answer, validated against the closed set."""
        content = (content or "").strip()

        if "```" in content:
            content = content.split("```")[1].removeprefix("json").strip()

        if content.startswith("{"):
            try:
                content = str(json.loads(content).get("category", ""))
            except (json.JSONDecodeError, AttributeError):
                return None

        first_line = content.lower().split("\n")[0]
        for word in re.findall(r"[a-z_\-]+", first_line):
            if word in self.categories:
                return word
        return None
