"""Provider adapters: one request/response shape per vendor family.

Each adapter turns a provider config and a prompt pair into a concrete HTTP
request, and pulls the generated text back out of the JSON response. Custom
providers are described entirely by their stored templates and handled by
``TemplateAdapter``.
"""
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import aiohttp

from api.models.provider import AiProviderModel, ProviderKindEnum
from shared.utils import resolve_api_key

PLACEHOLDER_API_KEY = "{{API_KEY}}"
PLACEHOLDER_MODEL = "{{MODEL}}"
PLACEHOLDER_SYSTEM_PROMPT = "{{SYSTEM_PROMPT}}"
PLACEHOLDER_USER_PROMPT = "{{USER_PROMPT}}"

PATH_TOKEN_PATTERN = re.compile(r"[^.\[\]]+")
LENGTH_CHECK_PATTERN = re.compile(r"^(.*)\.length\s*>\s*0$")


class ProviderCallError(Exception):
    """Provider returned an error status or an unusable response."""


@dataclass
class ProviderRequest:
    """Concrete HTTP request for a provider call."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    json_body: Optional[Any] = None


def parse_path(path: str) -> List[Union[str, int]]:
    """Split ``choices[0].message.content`` into ``['choices', 0, 'message', 'content']``."""
    tokens: List[Union[str, int]] = []
    for token in PATH_TOKEN_PATTERN.findall(path or ""):
        tokens.append(int(token) if token.isdigit() else token)
    return tokens


def extract_path(payload: Any, path: str) -> Any:
    """Follow a response path through nested dicts and lists."""
    value = payload
    for token in parse_path(path):
        if isinstance(token, int) and isinstance(value, list) and -len(value) <= token < len(value):
            value = value[token]
        elif isinstance(value, dict) and str(token) in value:
            value = value[str(token)]
        else:
            raise ProviderCallError(f"Path '{path}' not found in response")
    return value


def check_success_condition(payload: Any, condition: Optional[str]) -> bool:
    """
    Evaluate a stored success condition against a response.

    The condition is a ``&&``-joined list of paths that must all resolve to a
    truthy value. Legacy expressions such as
    ``response.choices && response.choices.length > 0`` are accepted.
    """
    if not condition:
        return True

    for clause in condition.split("&&"):
        clause = clause.strip()
        match = LENGTH_CHECK_PATTERN.match(clause)
        if match:
            clause = match.group(1).strip()
        if clause == "response":
            clause = ""
        elif clause.startswith("response."):
            clause = clause[len("response."):]

        try:
            value = extract_path(payload, clause)
        except ProviderCallError:
            return False
        if not value:
            return False
    return True


def substitute_placeholders(template: Any, values: Dict[str, str]) -> Any:
    """Replace placeholders in every string of a JSON-like structure."""
    if isinstance(template, str):
        result = template
        for placeholder, value in values.items():
            result = result.replace(placeholder, value)
        return result
    if isinstance(template, list):
        return [substitute_placeholders(item, values) for item in template]
    if isinstance(template, dict):
        return {key: substitute_placeholders(value, values) for key, value in template.items()}
    return template


def _chat_messages(system_prompt: str, user_prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt}
    ]


class ProviderAdapter(ABC):
    """Builds requests for, and reads responses from, one provider family."""

    default_response_path = ""

    def placeholder_values(
        self,
        provider: AiProviderModel,
        api_key: str,
        system_prompt: str,
        user_prompt: str
    ) -> Dict[str, str]:
        return {
            PLACEHOLDER_API_KEY: api_key,
            PLACEHOLDER_MODEL: provider.model,
            PLACEHOLDER_SYSTEM_PROMPT: system_prompt,
            PLACEHOLDER_USER_PROMPT: user_prompt
        }

    def build_headers(self, provider: AiProviderModel, values: Dict[str, str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(substitute_placeholders(provider.headers or {}, values))
        return headers

    @abstractmethod
    def build_body(self, provider: AiProviderModel, values: Dict[str, str]) -> Optional[Any]:
        """Request body for a prompt pair."""

    def build_request(
        self,
        provider: AiProviderModel,
        api_key: str,
        system_prompt: str,
        user_prompt: str
    ) -> ProviderRequest:
        values = self.placeholder_values(provider, api_key, system_prompt, user_prompt)
        return ProviderRequest(
            method=(provider.method or "POST").upper(),
            url=provider.endpoint,
            headers=self.build_headers(provider, values),
            json_body=self.build_body(provider, values)
        )

    def extract_content(self, provider: AiProviderModel, payload: Any) -> str:
        if not check_success_condition(payload, provider.success_condition):
            raise ProviderCallError(f"Response failed condition: {provider.success_condition}")

        content = extract_path(payload, provider.response_path or self.default_response_path)
        if not isinstance(content, str):
            content = json.dumps(content, ensure_ascii=False)
        if not content.strip():
            raise ProviderCallError("Extracted content is empty")
        return content


class OpenAICompatibleAdapter(ProviderAdapter):
    """Chat-completions APIs (OpenRouter, Groq, Hugging Face router, Bytez)."""

    default_response_path = "choices[0].message.content"

    def build_headers(self, provider: AiProviderModel, values: Dict[str, str]) -> Dict[str, str]:
        headers = super().build_headers(provider, values)
        api_key = values[PLACEHOLDER_API_KEY]
        if api_key and not any(key.lower() == "authorization" for key in headers):
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def build_body(self, provider: AiProviderModel, values: Dict[str, str]) -> Optional[Any]:
        if provider.body_template:
            # Keeps vendor extras such as max_tokens
            return substitute_placeholders(provider.body_template, values)
        return {
            "model": provider.model,
            "messages": _chat_messages(values[PLACEHOLDER_SYSTEM_PROMPT], values[PLACEHOLDER_USER_PROMPT])
        }


class OllamaAdapter(ProviderAdapter):
    """Local Ollama chat endpoint."""

    default_response_path = "message.content"

    def build_body(self, provider: AiProviderModel, values: Dict[str, str]) -> Optional[Any]:
        return {
            "model": provider.model,
            "messages": _chat_messages(values[PLACEHOLDER_SYSTEM_PROMPT], values[PLACEHOLDER_USER_PROMPT]),
            "stream": False
        }


class TemplateAdapter(ProviderAdapter):
    """Providers described only by their stored header/body templates."""

    def build_body(self, provider: AiProviderModel, values: Dict[str, str]) -> Optional[Any]:
        if provider.body_template is None:
            return None
        return substitute_placeholders(provider.body_template, values)


ADAPTERS: Dict[str, ProviderAdapter] = {
    ProviderKindEnum.OPENAI_COMPATIBLE.value: OpenAICompatibleAdapter(),
    ProviderKindEnum.LOCAL.value: OllamaAdapter(),
    ProviderKindEnum.CUSTOM.value: TemplateAdapter(),
}


def adapter_for(provider: AiProviderModel) -> ProviderAdapter:
    """Pick the adapter for a provider's type."""
    return ADAPTERS[ProviderKindEnum(provider.type).value]


async def call_provider(
    session: aiohttp.ClientSession,
    provider: AiProviderModel,
    system_prompt: str,
    user_prompt: str
) -> str:
    """Send one prompt to a provider and return the generated text."""
    adapter = adapter_for(provider)
    request = adapter.build_request(
        provider,
        resolve_api_key(provider.api_key),
        system_prompt,
        user_prompt
    )

    async with session.request(
        request.method,
        request.url,
        headers=request.headers,
        json=request.json_body
    ) as response:
        body = await response.read()
        if response.status >= 400:
            text = body.decode("utf-8", errors="replace")
            raise ProviderCallError(f"HTTP {response.status}: {text[:200]}")

    try:
        payload = json.loads(body)
    except ValueError as e:
        # Covers undecodable bytes as well as malformed JSON
        raise ProviderCallError(f"Invalid JSON response: {e}") from e

    return adapter.extract_content(provider, payload)
