# league_api/commentary_client.py
from __future__ import annotations

import json
from typing import Any, Dict, List

import requests

from league_api import config


class CommentaryError(Exception):
    """Raised when the commentary service call fails or is misconfigured."""
    pass


def build_prompt(rows: List[Dict[str, Any]]) -> str:
    return (
        "Act as a cricket analyst. Analyze the following standings and provide a brief, "
        f"professional commentary. Standings: {json.dumps(rows)}"
    )


def request_commentary(rows: List[Dict[str, Any]], *, deep: bool = False) -> str:
    """
    Sends the rendered standings to the configured commentary endpoint and
    returns its free-form text.

    IMPORTANT:
    - Commentary is optional; only allowed when COMMENTARY_ENABLED=1.
    - The endpoint contract is request/response only:
      POST {"prompt": str, "deep": bool} -> {"text": str}
    """
    if not config.COMMENTARY_ENABLED:
        raise CommentaryError("Commentary is disabled (set COMMENTARY_ENABLED=1 to enable).")

    if not config.COMMENTARY_API_KEY:
        raise CommentaryError("COMMENTARY_API_KEY is not configured")

    if not config.COMMENTARY_API_URL.startswith("http"):
        raise CommentaryError("COMMENTARY_API_URL must start with http/https")

    payload = {"prompt": build_prompt(rows), "deep": bool(deep)}
    headers = {"Authorization": f"Bearer {config.COMMENTARY_API_KEY}"}

    try:
        resp = requests.post(
            config.COMMENTARY_API_URL,
            json=payload,
            headers=headers,
            timeout=config.COMMENTARY_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise CommentaryError(f"Network error: {e}") from e

    if resp.status_code != 200:
        raise CommentaryError(f"HTTP {resp.status_code}: {resp.text}")

    try:
        data = resp.json()
    except ValueError as e:
        raise CommentaryError(f"Invalid JSON response: {e}") from e

    text = (data.get("text") or "").strip() if isinstance(data, dict) else ""
    return text or "No analysis available."
