#!/usr/bin/env python3
"""
Smoke test for the LectureLab study-progress and chat-limit API.

Exercises every endpoint against a running deployment using a throwaway
smoke user, so real students' progress and quotas are never touched.
Usage:
    python scripts/smoke-test.py
    python scripts/smoke-test.py --base-url http://localhost:8000

Environment variables (alternative to CLI args):
    SMOKE_BASE_URL
"""

import argparse
import json
import os
import sys
import time
from urllib.request import Request, urlopen
from urllib.parse import urlencode
from urllib.error import HTTPError, URLError

# --- Formatting helpers ---

GREEN = "\033[92m"
RED = "\033[91m"
CYAN = "\033[96m"
RESET = "\033[0m"
BOLD = "\033[1m"

passed = 0
failed = 0
results = []


def ok(name, detail=""):
    global passed
    passed += 1
    msg = f"  {GREEN}PASS{RESET}  {name}"
    if detail:
        msg += f"  ({detail})"
    print(msg)
    results.append(("PASS", name))


def fail(name, detail=""):
    global failed
    failed += 1
    msg = f"  {RED}FAIL{RESET}  {name}"
    if detail:
        msg += f"  - {detail}"
    print(msg)
    results.append(("FAIL", name))


def check(name, condition, detail=""):
    (ok if condition else fail)(name, detail)


# --- HTTP helpers ---

def api_call(base, method, path, params=None, data=None, timeout=30):
    """Send a JSON request, returns (status_code, json_body | None)."""
    url = f"{base}{path}"
    if params:
        url += "?" + urlencode(params)
    encoded = json.dumps(data).encode() if data is not None else None
    headers = {"Content-Type": "application/json"} if data is not None else {}
    req = Request(url, data=encoded, headers=headers, method=method)
    try:
        with urlopen(req, timeout=timeout) as resp:
            try:
                body = json.loads(resp.read().decode())
            except (json.JSONDecodeError, ValueError):
                body = None
            return resp.status, body
    except HTTPError as e:
        try:
            body = json.loads(e.read().decode())
        except (json.JSONDecodeError, ValueError):
            body = None
        return e.code, body
    except (URLError, TimeoutError) as e:
        return 0, {"error": str(e)}


# --- Test groups ---

def test_health(base):
    print(f"\n{BOLD}Health & Connectivity{RESET}")
    code, body = api_call(base, "GET", "/health")
    check("GET /health", code == 200 and body and body.get("status") == "healthy", f"code={code}")


def test_study_progress(base, user_id, lecture_id):
    print(f"\n{BOLD}Study Progress{RESET}")
    params = {"userId": user_id, "lectureId": lecture_id}

    code, body = api_call(base, "GET", "/api/study-progress", params=params)
    total = body["studyProgress"]["totalProgress"] if code == 200 else None
    check("GET /api/study-progress (new record)", total == 0, f"code={code} total={total}")

    code, body = api_call(base, "POST", "/api/study-progress", data={
        **params, "activityType": "tab_visit", "tabName": "flashcard",
    })
    total = body["studyProgress"]["totalProgress"] if code == 200 else None
    check("POST /api/study-progress tab_visit", total == 2.5, f"code={code} total={total}")

    code, body = api_call(base, "POST", "/api/study-progress", data={
        **params, "activityType": "interaction", "tabName": "flashcard", "progressValue": 0,
    })
    flashcard = body["studyProgress"]["flashcardTabProgress"] if code == 200 else None
    check("POST /api/study-progress interaction", flashcard == 25, f"code={code} flashcard={flashcard}")

    code, body = api_call(base, "POST", "/api/study-progress", data={"userId": user_id})
    check("POST /api/study-progress rejects missing lectureId", code == 400, f"code={code}")

    code, body = api_call(base, "GET", "/api/study-progress", params=params)
    count = len(body["activities"]) if code == 200 else None
    check("GET /api/study-progress history", count == 2, f"activities={count}")

    code, body = api_call(base, "GET", f"/api/study-progress/users/{user_id}")
    count = len(body["studyProgress"]) if code == 200 else None
    check("GET /api/study-progress/users/{id}", count == 1, f"records={count}")


def test_chat_limit(base, user_id):
    print(f"\n{BOLD}Chat Limit{RESET}")

    code, body = api_call(base, "PUT", "/api/chat-limit", data={"userId": user_id, "dailyLimit": 2})
    check("PUT /api/chat-limit", code == 200 and body["chatLimit"]["dailyLimit"] == 2, f"code={code}")

    code, body = api_call(base, "GET", "/api/chat-limit", params={"userId": user_id})
    remaining = body["chatLimit"]["remainingCount"] if code == 200 else None
    check("GET /api/chat-limit", remaining == 2, f"remaining={remaining}")

    codes = [api_call(base, "POST", "/api/chat-limit", data={"userId": user_id})[0] for _ in range(3)]
    check("POST /api/chat-limit until exhausted", codes == [200, 200, 429], f"codes={codes}")

    code, body = api_call(base, "GET", "/api/chat-limit/all")
    check("GET /api/chat-limit/all", code == 200 and isinstance(body.get("chatLimits"), list), f"code={code}")


def main():
    parser = argparse.ArgumentParser(description="LectureLab API smoke test")
    parser.add_argument(
        "--base-url",
        default=os.environ.get("SMOKE_BASE_URL", "http://localhost:8000"),
        help="Base URL of the LectureLab API",
    )
    args = parser.parse_args()

    base = args.base_url.rstrip("/")
    smoke_user = f"smoke-{int(time.time())}"
    print(f"{BOLD}{CYAN}=== LectureLab Smoke Test ==={RESET}")
    print(f"Target: {base}")
    print(f"User:   {smoke_user}")

    test_health(base)
    test_study_progress(base, smoke_user, f"{smoke_user}-lecture")
    test_chat_limit(base, smoke_user)

    print(f"\n{BOLD}{'=' * 45}{RESET}")
    color = GREEN if failed == 0 else RED
    print(f"{color}{BOLD}{passed} passed{RESET}, {failed} failed, {passed + failed} total")

    if failed > 0:
        print(f"\n{RED}Failed tests:{RESET}")
        for status, name in results:
            if status == "FAIL":
                print(f"  - {name}")

    print()
    sys.exit(1 if failed > 0 else 0)


if __name__ == "__main__":
    main()
