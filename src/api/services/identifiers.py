"""Public identifier generation."""

from __future__ import annotations

import secrets

# 16 random bytes encode to 22 URL-safe characters.
PUBLIC_ID_BYTES = 16


def generate_public_id(nbytes: int = PUBLIC_ID_BYTES) -> str:
    """Generate a random identifier for a stored object.

    Drawn from the URL-safe base64 alphabet. Not checked against the store;
    with 128 bits of entropy collisions are not a practical concern.

    Args:
        nbytes: Number of random bytes.

    Returns:
        URL-safe identifier.
    """
    return secrets.token_urlsafe(nbytes)
