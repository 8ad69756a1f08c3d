#!/usr/bin/env python3
"""
Verify a freshly deployed catalog stack by polling its health endpoint.

Run after the containers are restarted. Each attempt issues one GET against
the health URL; the script exits 0 on the first HTTP 200 and 1 once every
attempt has failed, printing the last health payload it saw.
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, Optional

import httpx

from shared.logging import configure_logging, get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception

logger = get_logger("deploy.health_check")


class UnhealthyError(Exception):
    """Health endpoint answered with a non-200 status."""

    def __init__(self, status_code: int, payload: Optional[Dict[str, Any]]):
        super().__init__(f"health endpoint returned {status_code}")
        self.status_code = status_code
        self.payload = payload


def _payload(response: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        return response.json()
    except ValueError:
        return None


async def wait_until_healthy(
    url: str,
    *,
    attempts: int = 12,
    interval: float = 5.0,
    initial_delay: float = 0.0,
    timeout: float = 5.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep=asyncio.sleep,
) -> Dict[str, Any]:
    """Poll ``url`` until it answers 200, with a fixed delay between attempts."""
    config = RetryConfig(
        max_attempts=attempts,
        base_delay=interval,
        max_delay=interval,
        jitter=False,
        backoff_strategy="fixed",
    )

    if initial_delay > 0:
        await sleep(initial_delay)

    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:

        @retry_on_exception((httpx.HTTPError, UnhealthyError), config, sleep=sleep)
        async def probe() -> Dict[str, Any]:
            response = await client.get(url)
            payload = _payload(response)
            if response.status_code != 200:
                raise UnhealthyError(response.status_code, payload)
            return payload or {}

        return await probe()


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Poll the catalog health endpoint after a deployment.")
    parser.add_argument("--url", default=os.getenv("HEALTH_URL", "http://localhost/health"), help="Health endpoint URL")
    parser.add_argument("--attempts", type=int, default=12, help="Maximum number of probes")
    parser.add_argument("--interval", type=float, default=5.0, help="Seconds between probes")
    parser.add_argument("--initial-delay", type=float, default=0.0, help="Seconds to wait before the first probe")
    parser.add_argument("--timeout", type=float, default=5.0, help="Per-request timeout in seconds")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "info"), help="Log level")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    configure_logging("deploy", args.log_level)

    logger.info("Testing health endpoint", url=args.url, attempts=args.attempts)
    try:
        payload = asyncio.run(
            wait_until_healthy(
                args.url,
                attempts=args.attempts,
                interval=args.interval,
                initial_delay=args.initial_delay,
                timeout=args.timeout,
            )
        )
    except KeyboardInterrupt:
        return 130
    except RetryError as exc:
        last = exc.last_exception
        logger.error("Health check failed", url=args.url, attempts=exc.attempts, error=str(last))
        if isinstance(last, UnhealthyError) and last.payload is not None:
            print(json.dumps(last.payload, indent=2), file=sys.stderr)
        return 1

    logger.info("Health check passed", url=args.url)
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
