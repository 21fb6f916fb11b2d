#!/usr/bin/env python3
"""
Health check script for Docker container health checks.

Checks that the FAQ search API answers on `/` and that `/api/health`
reports the database as reachable. A "degraded" status (chunk store or
embeddings down) still passes: search falls back to keyword matching.

Exit codes:
    0: Healthy
    1: Unhealthy
"""

import os
import sys
from typing import Optional

import httpx

BASE_URL = os.environ.get("HEALTHCHECK_BASE_URL", "http://localhost:8080")


def check_api_health(client: httpx.Client) -> Optional[dict]:
    """
    Fetch the health endpoint.

    Returns:
        Health status dict if the endpoint answered 200, None otherwise
    """
    try:
        response = client.get(f"{BASE_URL}/api/health", timeout=5.0)
    except httpx.HTTPError as e:
        print(f"Health check failed: {e}", file=sys.stderr)
        return None

    if response.status_code != 200:
        return None
    return response.json()


def check_root_endpoint(client: httpx.Client) -> bool:
    """Check the root endpoint for basic API responsiveness."""
    try:
        return client.get(f"{BASE_URL}/", timeout=3.0).status_code == 200
    except httpx.HTTPError:
        return False


def main() -> int:
    with httpx.Client() as client:
        if not check_root_endpoint(client):
            print("API not responding", file=sys.stderr)
            return 1

        health_data = check_api_health(client)

    if health_data is None:
        print("Health endpoint not responding", file=sys.stderr)
        return 1

    status = health_data.get("status", "unhealthy")
    services = health_data.get("services", {})

    for service, is_healthy in services.items():
        print(f"  {service}: {'UP' if is_healthy else 'DOWN'}", file=sys.stdout)

    if status in ("healthy", "degraded"):
        print(f"Health check passed: {status}", file=sys.stdout)
        return 0

    print(f"Health check failed: {status}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
