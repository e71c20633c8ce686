"""FastAPI dependencies."""
from kcheck.dependencies.actor import get_actor_id, get_optional_actor_id

__all__ = ["get_actor_id", "get_optional_actor_id"]
