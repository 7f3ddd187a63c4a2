"""
Answer synthesis with any casual-llm provider.
"""

import logging
from typing import Optional

from casual_llm import LLMProvider, SystemMessage, UserMessage

from content_intelligence.completion.protocol import PromptContext
from content_intelligence.completion.prompts import ANSWER_SYSTEM_PROMPT, ANSWER_USER_PROMPT

logger = logging.getLogger(__name__)


class LLMCompletionProvider:
    """
    CompletionProvider backed by a casual_llm.LLMProvider (OpenAI, Ollama, etc.).

    Example:
        >>> from casual_llm import create_provider, ModelConfig, Provider
        >>> llm = create_provider(ModelConfig(name="gpt-4o-mini", provider=Provider.OPENAI))
        >>> completion = LLMCompletionProvider(llm, model_name="gpt-4o-mini")
        >>> answer = await completion.complete(prompt_context)
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        model_name: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 600,
    ):
        """
        Initialize the completion provider.

        Args:
            llm_provider: LLM provider instance
            model_name: Name of the model (for logging)
            system_prompt: Optional custom system prompt; may use the {intent} placeholder
            temperature: Sampling temperature
            max_tokens: Maximum answer length in tokens
        """
        self.llm_provider = llm_provider
        self.model_name = model_name
        self.system_prompt = system_prompt or ANSWER_SYSTEM_PROMPT
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.llm_call_count = 0
        self.llm_failure_count = 0

        logger.info(
            f"LLMCompletionProvider initialized: model={model_name}, "
            f"custom_prompt={system_prompt is not None}"
        )

    async def complete(self, prompt_context: PromptContext) -> str:
        messages = [
            SystemMessage(content=self.system_prompt.format(intent=prompt_context.intent)),
            UserMessage(
                content=ANSWER_USER_PROMPT.format(
                    query=prompt_context.query, context=prompt_context.context
                )
            ),
        ]

        self.llm_call_count += 1
        try:
            response = await self.llm_provider.chat(
                messages,
                response_format="text",
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception:
            self.llm_failure_count += 1
            raise

        answer = (response.content or "").strip()
        logger.debug(
            f"Completion from {self.model_name}: {len(answer)} chars "
            f"for {len(prompt_context.source_ids)} sources"
        )
        return answer

    def get_metrics(self) -> dict:
        return {
            "llm_call_count": self.llm_call_count,
            "llm_failure_count": self.llm_failure_count,
        }
