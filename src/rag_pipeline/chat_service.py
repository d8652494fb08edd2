"""Chat model client used for answer generation and source analysis."""

from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from src.utils.logging import get_logger

from .config import RAGConfig

logger = get_logger(__name__)


def get_model(config: RAGConfig) -> OpenAIChatModel:
    """Get the configured LLM model.

    Args:
        config: Configuration with LLM_CHOICE, LLM_BASE_URL and LLM_API_KEY
            values (defaults: gpt-4o-mini on the OpenAI API).

    Returns:
        OpenAIChatModel configured with the settings.

    Examples:
        >>> model = get_model(get_config())
    """
    return OpenAIChatModel(
        config.llm_choice,
        provider=OpenAIProvider(base_url=config.llm_base_url, api_key=config.llm_api_key),
    )


class ChatService:
    """Single-shot completion client.

    Every call is independent: no conversation history is carried between
    prompts, the full retrieved context travels with each question.
    """

    def __init__(self, config: RAGConfig, agent: Agent | None = None):
        """Initialize chat service.

        Args:
            config: Configuration object with chat model settings.
            agent: Pre-built agent. Built from ``config`` when omitted.
        """
        self.config = config
        self.agent = agent or Agent(get_model(config))
        logger.info("chat_service_initialized", model=config.llm_choice)

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the generated text verbatim.

        Args:
            prompt: Full prompt including instructions and context.

        Returns:
            Generated text.

        Raises:
            Exception: If the model call fails.
        """
        try:
            result = await self.agent.run(prompt)
            text = str(result.output)
            logger.info(
                "chat_completion_generated",
                prompt_length=len(prompt),
                response_length=len(text),
            )
            return text

        except Exception as e:
            logger.exception(
                "chat_completion_failed",
                prompt_length=len(prompt),
                error_type=type(e).__name__,
            )
            raise
