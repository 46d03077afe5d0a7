"""Unit tests for GeminiAdapter — genai is mocked."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from stage_agent.adapters.llm.gemini_adapter import GeminiAdapter, LLMConfigurationError
from stage_agent.ports.outbound import LLMPort


@pytest.fixture
def mock_genai():
    with patch("stage_agent.adapters.llm.gemini_adapter.genai") as genai:
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=MagicMock(text="  hello  "))
        genai.GenerativeModel.return_value = model
        yield genai


class TestGeminiAdapter:
    def test_implements_port(self):
        assert isinstance(GeminiAdapter(api_key="k"), LLMPort)

    def test_is_configured(self):
        assert GeminiAdapter(api_key="k").is_configured is True
        assert GeminiAdapter(api_key="").is_configured is False

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, mock_genai):
        with pytest.raises(LLMConfigurationError):
            await GeminiAdapter(api_key="").execute("hi")
        mock_genai.GenerativeModel.assert_not_called()

    @pytest.mark.asyncio
    async def test_execute(self, mock_genai):
        adapter = GeminiAdapter(api_key="k", model="gemini-test")
        text = await adapter.execute("hi", system_prompt="be kind")
        assert text == "hello"
        mock_genai.configure.assert_called_once_with(api_key="k")
        args, kwargs = mock_genai.GenerativeModel.call_args
        assert args[0] == "gemini-test"
        assert kwargs["system_instruction"] == "be kind"

    @pytest.mark.asyncio
    async def test_configures_once(self, mock_genai):
        adapter = GeminiAdapter(api_key="k")
        await adapter.execute("a")
        await adapter.execute("b")
        assert mock_genai.configure.call_count == 1

    @pytest.mark.asyncio
    async def test_model_override(self, mock_genai):
        await GeminiAdapter(api_key="k", model="m1").execute("hi", model="m2")
        assert mock_genai.GenerativeModel.call_args[0][0] == "m2"

    @pytest.mark.asyncio
    async def test_empty_response_raises(self, mock_genai):
        mock_genai.GenerativeModel.return_value.generate_content_async = AsyncMock(
            return_value=MagicMock(text="")
        )
        with pytest.raises(Exception, match="empty response"):
            await GeminiAdapter(api_key="k").execute("hi")
