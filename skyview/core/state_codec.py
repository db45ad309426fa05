"""State Codec — reversible, URL-safe encoding of viewer state.

Invariants:
    - encode_state is deterministic: sorted keys, compact separators, no padding
    - decode_state(encode_state(s)) == s for every valid s
    - decode_state raises MalformedStateError for any structural or validation failure
"""

import base64
import binascii
import json

from skyview.core.domain_types import EncodedState
from skyview.core.errors import InvalidStateError, MalformedStateError
from skyview.core.viewer_state import ViewerState, parse_state, state_to_dict


def encode_state(state: ViewerState) -> EncodedState:
    """Serialize to canonical JSON, then base64url without '=' padding."""
    canonical = json.dumps(
        state_to_dict(state), sort_keys=True, separators=(",", ":"),
        ensure_ascii=False, allow_nan=False,
    )
    raw = base64.urlsafe_b64encode(canonical.encode("utf-8"))
    return EncodedState(raw.rstrip(b"=").decode("ascii"))


def decode_state(encoded: str) -> ViewerState:
    """Inverse of encode_state; padding is optional on input."""
    if not isinstance(encoded, str) or not encoded.strip():
        raise MalformedStateError("empty payload")
    text = encoded.strip()
    padded = text + "=" * (-len(text) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise MalformedStateError("not base64url-encoded JSON") from e
    try:
        return parse_state(payload)
    except InvalidStateError as e:
        raise MalformedStateError(e.message) from e
