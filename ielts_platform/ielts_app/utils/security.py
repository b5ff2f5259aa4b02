"""JWT helpers for identifying reading-test candidates."""

from __future__ import annotations

from typing import Any, Dict

from flask_jwt_extended import create_access_token


def generate_access_token(user_id, **claims: Any) -> str:
    """Create a JWT access token whose subject is the candidate's identity."""

    additional: Dict[str, Any] = dict(claims)
    return create_access_token(identity=str(user_id), additional_claims=additional or None)
