"""Vendor presets used to test a provider before it is saved."""
from typing import Any, Dict, Optional

from api.models.provider import AiProviderModel

_CHAT_BODY = {
    "model": "{{MODEL}}",
    "messages": [
        {"role": "system", "content": "{{SYSTEM_PROMPT}}"},
        {"role": "user", "content": "{{USER_PROMPT}}"}
    ]
}

PRESETS: Dict[str, Dict[str, Any]] = {
    "OpenRouter": {
        "name": "OpenRouter",
        "type": "openai-compatible",
        "provider_category": "paid",
        "endpoint": "https://openrouter.ai/api/v1/chat/completions",
        "model": "google/gemini-2.0-flash-001",
        "headers": {
            "Authorization": "Bearer {{API_KEY}}",
            "HTTP-Referer": "https://newsbyte-bd.com",
            "X-Title": "NewsByte Admin"
        },
        "body_template": _CHAT_BODY,
        "response_path": "choices[0].message.content",
        "success_condition": "response.choices && response.choices.length > 0",
        "timeout_ms": 30000,
        "priority": 3,
        "description": "OpenRouter Generic Aggregator"
    },
    "Ollama": {
        "name": "Ollama Local",
        "type": "local",
        "provider_category": "local",
        "endpoint": "http://localhost:11434/api/chat",
        "model": "llama3.2",
        "response_path": "message.content",
        "success_condition": "response.message && response.message.content",
        "timeout_ms": 45000,
        "priority": 10,
        "description": "Local Ollama Instance (No API Key Required)"
    },
    "Bytez": {
        "name": "Bytez API",
        "type": "openai-compatible",
        "provider_category": "paid",
        "endpoint": "https://api.bytez.com/v1/chat/completions",
        "model": "openai-community/gpt-2",
        # Bytez takes the raw key, no Bearer prefix
        "headers": {"Authorization": "{{API_KEY}}"},
        "body_template": {**_CHAT_BODY, "stream": False},
        "response_path": "choices[0].message.content",
        "success_condition": "response.choices && response.choices.length > 0",
        "timeout_ms": 60000,
        "priority": 4,
        "description": "Bytez Unified Model API"
    },
    "Groq": {
        "name": "Groq Cloud",
        "type": "openai-compatible",
        "provider_category": "paid",
        "endpoint": "https://api.groq.com/openai/v1/chat/completions",
        "model": "llama-3.3-70b-versatile",
        "body_template": _CHAT_BODY,
        "response_path": "choices[0].message.content",
        "success_condition": "response.choices && response.choices.length > 0",
        "timeout_ms": 30000,
        "priority": 5,
        "description": "Groq - The Fast AI Inference"
    },
    "HuggingFace": {
        "name": "Hugging Face",
        "type": "openai-compatible",
        "provider_category": "free",
        "endpoint": "https://router.huggingface.co/v1/chat/completions",
        "model": "openai/gpt-oss-20b",
        "body_template": {**_CHAT_BODY, "max_tokens": 500, "stream": False},
        "response_path": "choices[0].message.content",
        "success_condition": "response.choices && response.choices.length > 0",
        "timeout_ms": 45000,
        "priority": 6,
        "description": "Hugging Face Inference API"
    },
}


def provider_from_preset(preset_name: str, config: Optional[Dict[str, Any]] = None) -> Optional[AiProviderModel]:
    """Build an unsaved provider from a preset plus user overrides, or None for unknown presets."""
    preset = PRESETS.get(preset_name)
    if preset is None:
        return None

    config = config or {}
    return AiProviderModel.model_validate({
        **preset,
        "_id": "test-provider",
        "apiKey": config.get("apiKey") or "",
        "model": config.get("model") or preset["model"],
        "endpoint": config.get("endpoint") or preset["endpoint"],
        "enabled": True,
        "priority": 0
    })
