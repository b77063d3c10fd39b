#!/usr/bin/env python3
"""
Run end-to-end scenarios against a running relay (RELAY_URL).
Scenarios:
 - positive: "I'm feeling good" -> expect mood happy, no crisis
 - anxious: "I'm so worried and can't sleep" -> expect mood anxious
 - sad: "I'm feeling really sad and down" -> expect mood depressed
 - crisis: "I want to kill myself" -> expect isCrisis=True and hotline numbers in the reply
 - summary: journal-summary request -> expect a non-empty message

Prints a short PASS/FAIL for each scenario and the assistant reply.
"""
import sys
import time

import httpx

from haven import config
from haven.gateway import SUMMARY_CONVERSATION_ID

API_BASE = config.RELAY_URL.rstrip('/')

scenarios = [
    {"name": "positive", "msg": "I'm feeling good", "mood": "happy"},
    {"name": "anxious", "msg": "I'm so worried and can't sleep", "mood": "anxious"},
    {"name": "sad", "msg": "I'm feeling really sad and down", "mood": "depressed"},
    {"name": "crisis", "msg": "I want to kill myself", "crisis": True},
]

results = []

with httpx.Client(timeout=config.RELAY_TIMEOUT_SECONDS) as client:
    for sc in scenarios:
        try:
            r = client.post(f"{API_BASE}/api/chat", json={"messages": [{"role": "user", "content": sc['msg']}]})
            r.raise_for_status()
            data = r.json()
            reply = (data.get('content') or '').strip()
            note = []
            ok = bool(reply)
            if sc.get('crisis'):
                if not data.get('isCrisis'):
                    ok = False
                    note.append('expected isCrisis=True')
                if '988' not in reply or '741741' not in reply:
                    ok = False
                    note.append('crisis reply is missing hotline text')
            elif data.get('mood') != sc['mood']:
                ok = False
                note.append(f"expected mood {sc['mood']}, got {data.get('mood')}")
            results.append({'scenario': sc['name'], 'ok': ok, 'reply': reply, 'note': note})
            time.sleep(0.35)
        except httpx.HTTPError as e:
            results.append({'scenario': sc['name'], 'ok': False, 'error': str(e)})

    try:
        r = client.post(f"{API_BASE}/api/chat", json={
            "message": "Journal entry: I went for a walk and felt calmer. Summarize in two sentences.",
            "conversationId": SUMMARY_CONVERSATION_ID,
        })
        r.raise_for_status()
        summary = (r.json().get('message') or '').strip()
        results.append({'scenario': 'summary', 'ok': bool(summary), 'reply': summary, 'note': []})
    except httpx.HTTPError as e:
        results.append({'scenario': 'summary', 'ok': False, 'error': str(e)})

all_ok = True
for r in results:
    if not r.get('ok'):
        all_ok = False
    print('---')
    print('Scenario:', r.get('scenario'))
    if 'error' in r:
        print('ERROR:', r['error'])
        continue
    print('OK:' if r.get('ok') else 'FAIL:', r.get('reply'))
    if r.get('note'):
        print('Notes:', r.get('note'))

if all_ok:
    print('\nALL SCENARIOS PASS')
    sys.exit(0)
print('\nSOME SCENARIOS FAILED')
sys.exit(1)
