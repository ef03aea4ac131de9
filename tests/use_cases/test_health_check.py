"""
ヘルスチェックのテスト
"""

from pte_scoring_core.domain.entities import HealthStatus
from pte_scoring_core.infrastructure.providers.unavailable import UnavailableProvider
from pte_scoring_core.use_cases.health_check import health_check_provider, run_health_check


class _StubProvider:
    """health() の結果だけを返すプロバイダー"""

    def __init__(self, name, status=None, error=None):
        self.name = name
        self._status = status
        self._error = error

    def health(self):
        if self._error is not None:
            raise self._error
        return self._status


class TestHealthCheckProvider:
    def test_ok(self):
        status = HealthStatus(provider="openai", ok=True, latency_ms=120)
        assert health_check_provider(_StubProvider("openai", status)) is status

    def test_escaped_exception_becomes_failure(self):
        result = health_check_provider(_StubProvider("gemini", error=RuntimeError("socket closed")))
        assert result.ok is False
        assert result.provider == "gemini"
        assert result.error == "socket closed"


class TestRunHealthCheck:
    def test_available_names(self):
        providers = [
            _StubProvider("openai", HealthStatus(provider="openai", ok=True, latency_ms=90, model="gpt-4o-mini")),
            UnavailableProvider("claude", "ANTHROPIC_API_KEY is not set"),
        ]
        available, results = run_health_check(providers, verbose=False)
        assert available == ["openai"]
        assert [r.provider for r in results] == ["openai", "claude"]

    def test_verbose_output(self, capsys):
        providers = [
            _StubProvider("openai", HealthStatus(provider="openai", ok=True, latency_ms=90, model="gpt-4o-mini")),
            UnavailableProvider("claude", "ANTHROPIC_API_KEY is not set"),
        ]
        run_health_check(providers)
        out = capsys.readouterr().out
        assert "=== Provider Health Check ===" in out
        assert "openai... OK (90ms, gpt-4o-mini)" in out
        assert "claude... FAILED" in out
        assert "ANTHROPIC_API_KEY is not set" in out

    def test_no_providers(self):
        available, results = run_health_check([], verbose=False)
        assert available == []
        assert results == []
