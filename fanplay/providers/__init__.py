"""Engine gateway factory."""

from typing import Any, Dict, List, Protocol

from fanplay.models import EngineReply


class EngineGateway(Protocol):
    """What AnalysisSession needs from an engine: one call, raw text plus grounding."""

    async def invoke(
        self,
        parts: List[Dict[str, Any]],
        instruction: str,
        schema: Dict[str, Any],
        enable_search: bool = True,
    ) -> EngineReply:
        ...


def create_gateway(provider: str = "gemini", **kwargs) -> EngineGateway:
    """Factory function to create an engine gateway based on provider name.

    Args:
        provider: Provider name ("gemini")
        **kwargs: Passed to the gateway constructor (api_key, model, timeout, ...)

    Returns:
        EngineGateway instance

    Raises:
        ValueError: If the provider is not supported or not configured
    """
    provider = provider.lower()

    if provider == "gemini":
        from fanplay.providers.gemini import GeminiGateway
        return GeminiGateway(**kwargs)
    else:
        raise ValueError(
            f"Unsupported provider: '{provider}'. "
            f"Supported providers are: 'gemini'"
        )


__all__ = ["create_gateway", "EngineGateway"]
