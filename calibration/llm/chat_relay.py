from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from calibration import config

logger = logging.getLogger(__name__)

ALLOWED_ROLES = ("user", "assistant")

CHAT_ERROR_MESSAGE = (
    "Lo siento, no pude conectarme con el asistente en este momento. "
    "Por favor intenta nuevamente más tarde."
)
EMPTY_COMPLETION_MESSAGE = "No pude generar una respuesta."

SYSTEM_PROMPT = """Eres un asistente de calibración de desempeño para managers de Falabella.
Tu rol es ayudar a los managers a:
- Consultar evaluaciones de su equipo
- Identificar alertas y casos especiales
- Comparar desempeño entre colaboradores y años
- Preparar reuniones de calibración

Datos del equipo 2024:

| Nombre | Potencial | Etiqueta | Jefe Directo | Competencias |
|--------|-----------|----------|--------------|--------------|
| Anibal Retamal | 2.5 | Medio (Calibrado) | 2.88 Cumple Parcial | 2.88 |
| Alvaro Marquez | 2.4 | Bajo (Calibrado) | 3.13 Cumple Satisfactorio | 3.38 Sobresaliente |
| Paula Roa | 2.5 | Medio (Calibrado) | 3.75 Sobresaliente | 3.75 Sobresaliente |
| Angeles Zuñiga | 3.0 | Medio + | 3.38 Sobresaliente | 3.14 Cumple Satisfactorio |

Competencias detalladas:
- Anibal: Somos un solo equipo: 3.0 | Nos movemos ágilmente: 3.0 | Nos apasionamos por cliente: 2.5 | Cuidamos futuro: 3.0
- Alvaro: Somos un solo equipo: 3.33 | Nos movemos ágilmente: 3.33 | Nos apasionamos por cliente: 3.5 | Cuidamos futuro: 3.33
- Paula: Somos un solo equipo: 4.0 | Nos movemos ágilmente: 3.5 | Nos apasionamos por cliente: 3.5 | Cuidamos futuro: 4.0
- Angeles: Somos un solo equipo: 3.25 | Nos movemos ágilmente: 3.19 | Nos apasionamos por cliente: 3.19 | Cuidamos futuro: 2.94

Alertas:
- Alvaro Marquez: Potencial Bajo (2.4), requiere plan de desarrollo
- Anibal Retamal: "Nos apasionamos por cliente" bajo (2.5)

Resumen:
- Total: 4 colaboradores
- Promedio potencial: 2.6
- Mejor evaluado: Paula Roa (competencias 3.75)
- Requiere atención: Alvaro Marquez (potencial bajo)

Responde en español, de forma concisa y profesional. Usa tablas markdown cuando sea útil."""


class ChatRequestError(ValueError):
    """The conversation turns sent by the caller are malformed."""


class ChatRelayError(RuntimeError):
    """The completion endpoint could not produce an answer."""


def validate_turns(messages: Any) -> List[Dict[str, str]]:
    """Check caller turns and return them as plain ``{role, content}`` dicts."""
    if not isinstance(messages, (list, tuple)) or not messages:
        raise ChatRequestError("messages must be a non-empty list of {role, content} turns")

    turns: List[Dict[str, str]] = []
    for idx, turn in enumerate(messages):
        if not isinstance(turn, dict):
            raise ChatRequestError(f"Turn {idx} is not an object")
        role = turn.get("role")
        content = turn.get("content")
        if role not in ALLOWED_ROLES:
            raise ChatRequestError(f"Turn {idx} has unsupported role {role!r}")
        if not isinstance(content, str):
            raise ChatRequestError(f"Turn {idx} content must be text")
        turns.append({"role": role, "content": content})
    return turns


def build_payload(turns: Sequence[Dict[str, str]], *, model: Optional[str] = None) -> Dict[str, Any]:
    return {
        "model": model or config.LLM_MODEL,
        "messages": [{"role": "system", "content": SYSTEM_PROMPT}, *turns],
        "temperature": config.LLM_TEMPERATURE,
        "max_tokens": config.LLM_MAX_TOKENS,
        "stream": False,
    }


def request_completion(turns: Sequence[Dict[str, str]], *, url: Optional[str] = None,
                       timeout: Optional[float] = None) -> str:
    """Single POST to the completion endpoint. Raises ChatRelayError on any failure."""
    target = url or config.LLM_CHAT_URL
    try:
        response = requests.post(target, json=build_payload(turns), timeout=timeout or config.LLM_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise ChatRelayError(f"Completion endpoint {target} failed: {exc}") from exc

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None
    return (content or "").strip() or EMPTY_COMPLETION_MESSAGE


def relay_chat(messages: Any, *, url: Optional[str] = None) -> str:
    """Forward a conversation to the LLM behind the fixed calibration preamble.

    Malformed turns raise ChatRequestError before any network call. Endpoint
    failures are logged and answered with CHAT_ERROR_MESSAGE; there is no retry.
    """
    turns = validate_turns(messages)
    try:
        return request_completion(turns, url=url)
    except ChatRelayError as exc:
        logger.error("LLM relay error: %s", exc)
        return CHAT_ERROR_MESSAGE


__all__ = [
    "CHAT_ERROR_MESSAGE",
    "EMPTY_COMPLETION_MESSAGE",
    "SYSTEM_PROMPT",
    "ChatRelayError",
    "ChatRequestError",
    "build_payload",
    "relay_chat",
    "request_completion",
    "validate_turns",
]
