from fastapi import Request

from app.utils.ip_privacy import get_client_ip


def resolve_identity(req: Request) -> str:
    """Rate-limit subject: the client address, proxy headers first."""
    return f"ip:{get_client_ip(req)}"


def rate_limit_key(policy_name: str, req: Request) -> str:
    return f"{policy_name}:{resolve_identity(req)}"
