"""
Tests for the deployment health check script.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from shared.retry import RetryError
from scripts.check_health import UnhealthyError, main, wait_until_healthy


def _transport(statuses):
    """Mock transport answering with the given status codes in order."""
    responses = iter(statuses)
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        status = next(responses)
        if status is None:
            raise httpx.ConnectError("connection refused", request=request)
        state = "healthy" if status == 200 else "unhealthy"
        return httpx.Response(status, json={"status": state})

    return httpx.MockTransport(handler), seen


class TestHealthCheck:
    """Test cases for the health polling loop."""

    @pytest.mark.asyncio
    async def test_healthy_on_first_attempt(self):
        transport, seen = _transport([200])
        sleep = AsyncMock()

        payload = await wait_until_healthy(
            "http://localhost/health", attempts=3, interval=5, transport=transport, sleep=sleep
        )

        assert payload == {"status": "healthy"}
        assert seen == ["http://localhost/health"]
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_until_healthy(self):
        transport, seen = _transport([None, 503, 200])
        sleep = AsyncMock()

        payload = await wait_until_healthy(
            "http://localhost/health", attempts=5, interval=5, transport=transport, sleep=sleep
        )

        assert payload["status"] == "healthy"
        assert len(seen) == 3
        assert [call.args[0] for call in sleep.await_args_list] == [5, 5]

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        transport, seen = _transport([503, 503, 503])
        sleep = AsyncMock()

        with pytest.raises(RetryError) as exc_info:
            await wait_until_healthy(
                "http://localhost/health", attempts=3, interval=1, transport=transport, sleep=sleep
            )

        assert len(seen) == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_exception, UnhealthyError)
        assert exc_info.value.last_exception.payload == {"status": "unhealthy"}

    @pytest.mark.asyncio
    async def test_initial_delay(self):
        transport, _ = _transport([200])
        sleep = AsyncMock()

        await wait_until_healthy(
            "http://localhost/health", initial_delay=10, transport=transport, sleep=sleep
        )

        sleep.assert_awaited_once_with(10)

    def test_main_exit_codes(self):
        with patch('scripts.check_health.wait_until_healthy', new=AsyncMock(return_value={"status": "healthy"})):
            assert main(["--url", "http://localhost/health", "--attempts", "1"]) == 0

        failure = RetryError("failed", UnhealthyError(503, {"status": "unhealthy"}), 1)
        with patch('scripts.check_health.wait_until_healthy', new=AsyncMock(side_effect=failure)):
            assert main(["--url", "http://localhost/health", "--attempts", "1"]) == 1
