"""
Health Check

Performs connectivity checks for the configured judgment providers.
"""

from __future__ import annotations

from pte_scoring_core.domain.entities import HealthStatus
from pte_scoring_core.infrastructure.providers.base import ProviderAdapter


def health_check_provider(provider: ProviderAdapter) -> HealthStatus:
    """
    Execute a health check for a single provider.

    Adapters already report failures as ok=False; anything that still escapes
    is converted the same way.

    Args:
        provider: Provider adapter to check

    Returns:
        HealthStatus: Health check result
    """
    try:
        return provider.health()
    except Exception as e:
        return HealthStatus(provider=provider.name, ok=False, error=str(e)[:200])


def run_health_check(
    providers: list[ProviderAdapter],
    verbose: bool = True,
) -> tuple[list[str], list[HealthStatus]]:
    """
    Execute health checks for all providers.

    Args:
        providers: Provider adapters to check
        verbose: Print a progress line per provider

    Returns:
        tuple: (list of available provider names, list of all check results)
    """
    if verbose:
        print("=== Provider Health Check ===\n")
    results = []
    available = []

    for provider in providers:
        if verbose:
            print(f"  {provider.name}... ", end="", flush=True)
        result = health_check_provider(provider)
        results.append(result)

        if result.ok:
            available.append(provider.name)
            if verbose:
                model = f", {result.model}" if result.model else ""
                print(f"OK ({result.latency_ms}ms{model})")
        elif verbose:
            # Display only the first 100 characters of the error message
            error_short = result.error[:100] if result.error else "Unknown error"
            print("FAILED")
            print(f"    Error: {error_short}")

    if verbose:
        print()
    return available, results
