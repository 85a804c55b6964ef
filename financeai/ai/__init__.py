import json
import os
import urllib.request
import logging
from dataclasses import dataclass
from typing import List, Protocol

from huggingface_hub import InferenceClient
from abc import ABC, abstractmethod

# -----------------------------------------------------------------------------
# Configure basic debug logging (caller can override)
# -----------------------------------------------------------------------------
logging.basicConfig(level=os.getenv("LLM_DEBUG", "INFO").upper())
logger = logging.getLogger(__name__)

_OLLAMA_URL = "http://localhost:11434/api/chat"
_OPENAI_URL = "https://api.openai.com/v1/chat/completions"

# Reply length and sampling shared by every provider.
MAX_TOKENS = 500
TEMPERATURE = 0.7

FALLBACK_REPLY = (
    "I'm having trouble connecting to my AI assistant right now. Please try again "
    "in a moment, or feel free to ask about your spending patterns, budgeting tips, "
    "or any financial questions you have!"
)


class LLMProvider(Protocol):
    """Anything that turns a chat history into the advisor's next reply."""

    def generate(self, messages: List[dict]) -> str:
        """Return the assistant reply for ``[{"role": ..., "content": ...}, ...]``."""


@dataclass
class LLMClient:
    """Delegates advisor conversations to a provider, chosen from the env by default."""
    provider: LLMProvider | None = None

    def __post_init__(self) -> None:
        if self.provider is None:
            self.provider = get_provider_from_env()

    def chat(self, messages: List[dict]) -> str:
        logger.debug("Sending %d messages to %s", len(messages), type(self.provider).__name__)
        return self.provider.generate(messages)


# -----------------------------------------------------------------------------
# Hugging Face Inference API provider
# -----------------------------------------------------------------------------

@dataclass
class HuggingFaceProvider:
    model: str
    token: str | None = None
    inference_provider: str = "cerebras"
    max_tokens: int = MAX_TOKENS
    temperature: float = TEMPERATURE

    def __post_init__(self) -> None:
        self._client = InferenceClient(provider=self.inference_provider, api_key=self.token)

    def generate(self, messages: List[dict]) -> str:
        out = self._client.chat_completion(
            messages=messages,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if not out.choices:
            raise RuntimeError("no response from Hugging Face")
        return (out.choices[0].message.content or "").strip()


# -----------------------------------------------------------------------------
# OpenAI Chat Completions provider
# -----------------------------------------------------------------------------

@dataclass
class OpenAIProvider:
    model: str
    api_key: str
    max_tokens: int = MAX_TOKENS
    temperature: float = TEMPERATURE
    url: str = _OPENAI_URL

    def generate(self, messages: List[dict]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        data = json.dumps(payload).encode()
        req = urllib.request.Request(self.url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("Authorization", f"Bearer {self.api_key}")
        with urllib.request.urlopen(req) as resp:
            resp_data = json.load(resp)
        choices = resp_data.get("choices") or []
        if not choices:
            raise RuntimeError("no response from OpenAI")
        return choices[0]["message"]["content"].strip()


# -----------------------------------------------------------------------------
# Ollama provider for a locally hosted model
# -----------------------------------------------------------------------------

@dataclass
class OllamaProvider:
    model: str
    url: str = _OLLAMA_URL
    temperature: float = TEMPERATURE

    def _post(self, payload: dict) -> dict:
        data = json.dumps(payload).encode()
        logger.debug("Ollama ▶ POST %s (%d messages)", self.url, len(payload["messages"]))
        req = urllib.request.Request(self.url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")

        with urllib.request.urlopen(req) as resp:
            raw = resp.read().decode()
            logger.debug("Ollama ◀ %s", raw)
            return json.loads(raw)

    def generate(self, messages: List[dict]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": self.temperature, "num_predict": MAX_TOKENS},
        }
        resp_data = self._post(payload)

        # /api/chat answers with a message object; older builds send a bare string.
        msg = resp_data.get("message", "")
        if isinstance(msg, dict):
            msg = msg.get("content", "")
        if not isinstance(msg, str):
            raise RuntimeError(f"Unexpected Ollama response format: {resp_data}")
        return msg.strip()


class BaseAIOutput(ABC):
    """Composable layer for building prompts and parsing LLM responses."""

    fallback = FALLBACK_REPLY

    @abstractmethod
    def build_messages(self, *args, **kwargs) -> List[dict]:
        """Return chat messages describing the task."""

    def post_process(self, response: str) -> str:
        return response

    def ask(self, messages: List[dict], client: LLMClient | None = None) -> str:
        try:
            client = client or LLMClient()
            out = client.chat(messages)
        except Exception as e:
            logger.warning("Error contacting LLM: %s", e)
            return self.fallback
        return self.post_process(out)


# -----------------------------------------------------------------------------
# Helper utilities
# -----------------------------------------------------------------------------

def get_provider_from_env() -> LLMProvider:
    provider = os.environ.get("FINANCEAI_LLM_PROVIDER", "openai").lower()

    if provider == "huggingface":
        token = os.environ.get("HF_API_TOKEN")
        model = os.environ.get("FINANCEAI_LLM_MODEL", "Qwen/Qwen3-32B")
        backend = os.environ.get("FINANCEAI_HF_PROVIDER", "cerebras")
        return HuggingFaceProvider(model=model, token=token, inference_provider=backend)

    if provider == "ollama":
        model = os.environ.get("FINANCEAI_LLM_MODEL", "phi3:mini")
        url = os.environ.get("OLLAMA_URL", _OLLAMA_URL)
        return OllamaProvider(model=model, url=url)

    # Default → OpenAI
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY not set")
    model = os.environ.get("FINANCEAI_LLM_MODEL", "gpt-3.5-turbo")
    return OpenAIProvider(model=model, api_key=api_key)
