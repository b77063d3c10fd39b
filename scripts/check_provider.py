#!/usr/bin/env python3
"""
Check whether the relay at RELAY_URL is reachable and has a language model configured.
Prints only non-sensitive status lines:
 - READY (<model>)
 - NO_LLM (relay up, OPENAI_API_KEY missing on the relay)
 - INVALID (<status code>)
 - ERROR (<message>)
"""
import sys

import httpx

from haven import config

url = f"{config.RELAY_URL.rstrip('/')}/api/status"

try:
    with httpx.Client(timeout=10.0) as client:
        r = client.get(url)
except httpx.HTTPError as e:
    print("ERROR:", str(e))
    sys.exit(3)

if r.status_code != 200:
    print(f"INVALID: {r.status_code}")
    sys.exit(1)

data = r.json()
if data.get("using_llm"):
    print(f"READY: {data.get('model')}")
    sys.exit(0)
print("NO_LLM:", data.get("message", ""))
sys.exit(1)
