import uuid


def new_id() -> str:
    """Application-generated primary key (UUID4 as text)."""
    return str(uuid.uuid4())
