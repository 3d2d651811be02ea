import uuid


def new_id(prefix: str) -> str:
    """Opaque row id, e.g. 'app-1a2b3c4d5e6f'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"
