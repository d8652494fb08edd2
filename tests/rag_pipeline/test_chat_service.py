"""Unit tests for chat service."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.rag_pipeline.chat_service import ChatService, get_model
from src.rag_pipeline.config import RAGConfig


@pytest.mark.unit
class TestChatService:
    """Test suite for ChatService class."""

    def test_get_model_uses_config(self, config: RAGConfig) -> None:
        """Test model construction from LLM settings."""
        with (
            patch("src.rag_pipeline.chat_service.OpenAIProvider") as mock_provider,
            patch("src.rag_pipeline.chat_service.OpenAIChatModel") as mock_model,
        ):
            get_model(config)

            mock_provider.assert_called_once_with(
                base_url="https://api.openai.com/v1", api_key="test_key"
            )
            mock_model.assert_called_once_with(
                "gpt-4o-mini", provider=mock_provider.return_value
            )

    @pytest.mark.asyncio
    async def test_complete_returns_output(self, config: RAGConfig) -> None:
        """Test one prompt returns the agent output verbatim."""
        agent = MagicMock()
        agent.run = AsyncMock(return_value=MagicMock(output="The answer [Source 1]."))
        service = ChatService(config, agent=agent)

        text = await service.complete("prompt text")

        assert text == "The answer [Source 1]."
        agent.run.assert_awaited_once_with("prompt text")

    @pytest.mark.asyncio
    async def test_complete_failure(self, config: RAGConfig) -> None:
        """Test model errors are re-raised."""
        agent = MagicMock()
        agent.run = AsyncMock(side_effect=Exception("Model unavailable"))
        service = ChatService(config, agent=agent)

        with pytest.raises(Exception, match="Model unavailable"):
            await service.complete("prompt text")
