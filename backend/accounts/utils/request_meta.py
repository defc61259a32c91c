from fastapi import Request
from typing import Dict, Optional


def get_request_meta(request: Request) -> Dict[str, Optional[str]]:
    """Client details recorded alongside login activity."""
    headers = request.headers
    forwarded_for = headers.get("x-forwarded-for") or headers.get("x-real-ip")
    ip = forwarded_for.split(",")[0].strip() if forwarded_for else None
    return {
        "ip": ip,
        "city": headers.get("x-vercel-ip-city"),
        "country": headers.get("x-vercel-ip-country"),
        "user_agent": headers.get("user-agent"),
    }
