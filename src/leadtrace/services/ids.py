"""Opaque identifier generation."""

import secrets


def new_id(prefix: str) -> str:
    """Generate an id like ``v_3f9a0c12b7de``."""
    return f"{prefix}_{secrets.token_hex(6)}"
