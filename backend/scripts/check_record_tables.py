from __future__ import annotations

import argparse
import socket
import sys
from urllib.parse import urlparse

import httpx

from app.core.config import get_settings


def _extract_host(url: str) -> str:
    parsed = urlparse(url.strip())
    return (parsed.hostname or "").strip()


def _table_probe_url(url: str, table: str) -> str:
    return f"{url.rstrip('/')}/rest/v1/{table.strip()}?select=id&limit=1"


def _probe_verdict(code: int) -> str:
    if 200 <= code < 300:
        return "OK"
    if code == 404:
        return "MISSING"
    if code in {401, 403}:
        return "UNAUTHORIZED"
    return "FAIL"


def _table_names(settings) -> list[str]:
    names = [
        (getattr(settings, "todos_table", "") or "todos").strip() or "todos",
        (getattr(settings, "accounts_table", "") or "accounts").strip() or "accounts",
    ]
    return list(dict.fromkeys(names))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Preflight check for the todo/account tables in Supabase")
    parser.add_argument("--timeout-sec", type=float, default=5.0, help="HTTP timeout in seconds")
    args = parser.parse_args(argv)

    settings = get_settings()
    supabase_url = str(getattr(settings, "supabase_url", None) or "").strip()
    service_key = str(getattr(settings, "supabase_service_role_key", None) or "").strip()
    host = _extract_host(supabase_url)

    print("[record-tables]")
    print(f"- SUPABASE_URL set: {'yes' if supabase_url else 'no'}")
    print(f"- SUPABASE_SERVICE_ROLE_KEY set: {'yes' if service_key else 'no'}")
    print(f"- host: {host or 'unknown'}")

    if not supabase_url or not service_key or not host:
        print("- verdict: FAIL")
        print("- reason: missing required config")
        return 1

    try:
        socket.getaddrinfo(host, 443)
        print("- dns: OK")
    except OSError as exc:
        print("- dns: FAIL")
        print(f"- reason: {type(exc).__name__}")
        return 1

    headers = {"apikey": service_key, "Authorization": f"Bearer {service_key}"}
    failed: list[str] = []
    for table in _table_names(settings):
        try:
            response = httpx.get(_table_probe_url(supabase_url, table), headers=headers, timeout=float(args.timeout_sec))
        except httpx.HTTPError as exc:
            print(f"- table {table}: FAIL ({type(exc).__name__})")
            failed.append(table)
            continue
        verdict = _probe_verdict(int(response.status_code))
        print(f"- table {table}: {verdict} (http {response.status_code})")
        if verdict != "OK":
            failed.append(table)

    if failed:
        print("- verdict: FAIL")
        print(f"- reason: tables not ready: {','.join(failed)}")
        return 1
    print("- verdict: PASS")
    return 0


if __name__ == "__main__":
    sys.exit(main())
