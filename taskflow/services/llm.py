import logging
import re
import time
from collections.abc import Callable
from typing import Any, Literal

from llama_index.core import PromptTemplate
from llama_index.core.llms import LLM, ChatMessage, ChatResponse
from opentelemetry import metrics, trace
from opentelemetry.trace import StatusCode
from pydantic import BaseModel, ValidationError, field_validator

from taskflow.services.prompts import load_prompt


logger = logging.getLogger(__name__)

_MARKDOWN_JSON_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def _strip_markdown_json(text: str) -> str:
    """Strip markdown code fences if present, pass through clean JSON as-is."""
    text = text.strip()
    m = _MARKDOWN_JSON_RE.match(text)
    return m.group(1).strip() if m else text


meter = metrics.get_meter("gen_ai.client")
tracer = trace.get_tracer("gen_ai.client")

token_usage = meter.create_histogram(
    name="gen_ai.client.token.usage",
    description="Number of tokens used",
    unit="{token}",
)

operation_duration = meter.create_histogram(
    name="gen_ai.client.operation.duration",
    description="GenAI operation duration",
    unit="s",
)

error_counter = meter.create_counter(
    name="gen_ai.client.error.count",
    description="GenAI operation errors",
    unit="1",
)

PROVIDER_SEMCONV_NAMES: dict[str, str] = {
    "openai": "openai",
    "google": "gcp.gemini",
    "anthropic": "anthropic",
}

PROVIDER_SERVERS: dict[str, str] = {
    "openai": "api.openai.com",
    "gcp.gemini": "generativelanguage.googleapis.com",
    "anthropic": "api.anthropic.com",
}


class AssistantError(Exception):
    """The model call failed or its reply could not be used."""


class PriorityResult(BaseModel):
    priority: Literal["low", "medium", "high"]
    reason: str

    @field_validator("priority", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class SummaryResult(BaseModel):
    summary: str


def create_llm(
    provider: str = "openai",
    model: str = "gpt-4o",
    temperature: float = 0.3,
    api_key: str = "",
    timeout: float = 30.0,
) -> LLM:
    if provider == "openai":
        from llama_index.llms.openai import OpenAI

        return OpenAI(model=model, temperature=temperature, api_key=api_key, timeout=timeout)

    if provider == "google":
        from llama_index.llms.google_genai import GoogleGenAI

        return GoogleGenAI(model=model, temperature=temperature, api_key=api_key)

    if provider == "anthropic":
        from llama_index.llms.anthropic import Anthropic

        return Anthropic(model=model, temperature=temperature, api_key=api_key, timeout=timeout)

    raise ValueError(f"Unknown LLM provider: {provider!r}. Choose from: openai, google, anthropic")


class AssistantClient:
    """Prioritize and summarize tasks through a chat model.

    Every failure, from transport errors to a reply that does not fit the
    expected shape, is raised as :class:`AssistantError`. Nothing is retried
    and nothing is guessed.

    Args:
        provider: ``openai``, ``google`` or ``anthropic``.
        model: Model name passed to the provider.
        llm: Prebuilt llama-index LLM. When omitted, ``llm_factory`` builds
            one on first use so the app can boot without credentials.
    """

    def __init__(
        self,
        provider: str,
        model: str,
        llm: LLM | None = None,
        llm_factory: Callable[[], LLM] | None = None,
    ) -> None:
        self.provider = PROVIDER_SEMCONV_NAMES.get(provider, provider)
        self.model = model
        self._llm = llm
        self._llm_factory = llm_factory

    @classmethod
    def from_config(cls, config: Any) -> "AssistantClient":
        provider = config["LLM_PROVIDER"]
        api_keys = {
            "openai": config.get("OPENAI_API_KEY", ""),
            "google": config.get("GOOGLE_API_KEY", ""),
            "anthropic": config.get("ANTHROPIC_API_KEY", ""),
        }

        def factory() -> LLM:
            return create_llm(
                provider=provider,
                model=config["LLM_MODEL"],
                temperature=config["LLM_TEMPERATURE"],
                api_key=api_keys.get(provider, ""),
                timeout=config["LLM_TIMEOUT"],
            )

        return cls(provider=provider, model=config["LLM_MODEL"], llm_factory=factory)

    @property
    def llm(self) -> LLM:
        if self._llm is None:
            if self._llm_factory is None:
                raise AssistantError("No language model configured")
            self._llm = self._llm_factory()
        return self._llm

    def prioritize(self, title: str, description: str) -> PriorityResult:
        prompt = load_prompt("prioritize")
        user_prompt = PromptTemplate(prompt.user).format(title=title, description=description or "")
        raw = self._chat(prompt.system, user_prompt, endpoint="prioritize", json_output=True)
        try:
            return PriorityResult.model_validate_json(_strip_markdown_json(raw))
        except ValidationError as e:
            self._count_error("prioritize", e)
            raise AssistantError(f"Unusable prioritization reply: {e.error_count()} errors") from e

    def summarize(self, description: str) -> SummaryResult:
        prompt = load_prompt("summarize")
        user_prompt = PromptTemplate(prompt.user).format(description=description)
        raw = self._chat(prompt.system, user_prompt, endpoint="summarize", json_output=False)
        summary = raw.strip().strip('"').strip()
        if not summary:
            self._count_error("summarize", None)
            raise AssistantError("Empty summary reply")
        return SummaryResult(summary=summary)

    def _chat(self, system_prompt: str, user_prompt: str, endpoint: str, json_output: bool) -> str:
        server_address = PROVIDER_SERVERS.get(self.provider, "")

        with tracer.start_as_current_span(f"gen_ai.chat {self.model}") as span:
            span.set_attribute("gen_ai.operation.name", "chat")
            span.set_attribute("gen_ai.request.model", self.model)
            span.set_attribute("gen_ai.provider.name", self.provider)
            if server_address:
                span.set_attribute("server.address", server_address)
                span.set_attribute("server.port", 443)
            span.set_attribute("gen_ai.output.type", "json" if json_output else "text")
            span.set_attribute("endpoint", endpoint)

            start = time.perf_counter()
            try:
                messages = [
                    ChatMessage(role="system", content=system_prompt),
                    ChatMessage(role="user", content=user_prompt),
                ]
                chat_kwargs: dict[str, Any] = {}
                if json_output and self.provider == "openai":
                    chat_kwargs["response_format"] = {"type": "json_object"}
                elif json_output and self.provider == "gcp.gemini":
                    chat_kwargs["generation_config"] = {"response_mime_type": "application/json"}

                chat_response = self.llm.chat(messages, **chat_kwargs)
            except AssistantError:
                raise
            except Exception as e:
                span.record_exception(e)
                span.set_status(StatusCode.ERROR, type(e).__name__)
                self._count_error(endpoint, e)
                raise AssistantError(f"Model call failed: {type(e).__name__}") from e

            duration = time.perf_counter() - start
            span.set_attribute("gen_ai.client.operation.duration", duration)

            common_attrs: dict[str, str | int] = {
                "gen_ai.request.model": self.model,
                "gen_ai.provider.name": self.provider,
                "gen_ai.operation.name": "chat",
                "endpoint": endpoint,
            }
            operation_duration.record(duration, common_attrs)
            _record_token_metrics(chat_response, common_attrs, span)

            return str(chat_response.message.content or "")

    def _count_error(self, endpoint: str, error: Exception | None) -> None:
        error_counter.add(
            1,
            {
                "gen_ai.request.model": self.model,
                "gen_ai.provider.name": self.provider,
                "endpoint": endpoint,
                "error.type": type(error).__name__ if error else "EmptyReply",
            },
        )


def _extract_token_counts(chat_response: ChatResponse) -> tuple[int | None, int | None]:
    additional = getattr(chat_response, "additional_kwargs", None) or {}
    raw = getattr(chat_response, "raw", None)
    usage = raw.get("usage") if isinstance(raw, dict) else getattr(raw, "usage", None)

    def from_usage(*keys: str) -> Any:
        for key in keys:
            value = usage.get(key) if isinstance(usage, dict) else getattr(usage, key, None)
            if value is not None:
                return value
        return None

    input_tokens = (
        additional.get("prompt_tokens")
        or additional.get("input_tokens")
        or from_usage("prompt_tokens", "input_tokens")
    )
    output_tokens = (
        additional.get("completion_tokens")
        or additional.get("output_tokens")
        or from_usage("completion_tokens", "output_tokens")
    )
    return input_tokens, output_tokens


def _record_token_metrics(
    chat_response: ChatResponse, common_attrs: dict[str, str | int], span: trace.Span
) -> None:
    input_tokens, output_tokens = _extract_token_counts(chat_response)

    if input_tokens is not None and output_tokens is not None:
        span.set_attribute("gen_ai.usage.input_tokens", int(input_tokens))
        span.set_attribute("gen_ai.usage.output_tokens", int(output_tokens))
        token_usage.record(int(input_tokens), {**common_attrs, "gen_ai.token.type": "input"})
        token_usage.record(int(output_tokens), {**common_attrs, "gen_ai.token.type": "output"})
    else:
        logger.debug("Token usage unavailable; token metrics not recorded for this call")
