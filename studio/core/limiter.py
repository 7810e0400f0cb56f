# studio/core/limiter.py
from slowapi import Limiter
from slowapi.util import get_remote_address
from studio.core.config import settings

def workspace_key(request) -> str:
    """Buckets requests per workspace; requests without a workspace header share a bucket per client address."""
    workspace_id = (request.headers.get("x-user-id") or "").strip()
    if workspace_id:
        return f"workspace:{workspace_id}"
    return f"addr:{get_remote_address(request)}"

limiter = Limiter(
    key_func=workspace_key,
    storage_uri=settings.LIMITER_STORAGE_URI,
    strategy="fixed-window"
)
