"""
Provider registry - maps provider names to provider instances
"""

from typing import Dict, List, Optional

from taskloop.providers.base import Provider
from taskloop.providers.cli_provider import ClaudeProvider, KimiProvider, OpenCodeProvider


class ProviderRegistry:
    """Name-to-provider lookup used by the engine and for eager validation."""

    def __init__(self):
        self._providers: Dict[str, Provider] = {}

    def register(self, provider: Provider) -> None:
        self._providers[provider.name] = provider

    def get(self, name: str) -> Optional[Provider]:
        return self._providers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def list(self) -> List[str]:
        """Registered names, sorted."""
        return sorted(self._providers)

    def format_models(self, configured: str) -> str:
        """
        Render the provider list, marking the configured one.

        Example::

              * claude (configured)
              - kimi
              - opencode
        """
        lines = []
        for name in self.list():
            if name == configured:
                lines.append(f"  * {name} (configured)")
            else:
                lines.append(f"  - {name}")
        return "\n".join(lines)


def default_registry(timeout_seconds: float = 0) -> ProviderRegistry:
    """Registry holding the built-in CLI providers."""
    registry = ProviderRegistry()
    registry.register(ClaudeProvider(timeout_seconds))
    registry.register(OpenCodeProvider(timeout_seconds))
    registry.register(KimiProvider(timeout_seconds))
    return registry
