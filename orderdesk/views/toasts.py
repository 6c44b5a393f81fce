import base64
import binascii
import json
import logging
from dataclasses import asdict, dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Toast:
    kind: str  # "success" | "error"
    message: str


class Toaster:
    def __init__(self):
        self._toasts: List[Toast] = []

    def success(self, message: str):
        self._toasts.append(Toast("success", message))

    def error(self, message: str):
        self._toasts.append(Toast("error", message))

    def drain(self) -> List[Toast]:
        toasts, self._toasts = self._toasts, []
        return toasts

    def __len__(self):
        return len(self._toasts)


def dump_flash(toasts: List[Toast]) -> str:
    """Encode toasts for a cookie so they survive a redirect."""
    raw = json.dumps([asdict(t) for t in toasts]).encode()
    # unpadded so the cookie value never needs quoting
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def load_flash(raw: Optional[str]) -> List[Toast]:
    if not raw:
        return []
    try:
        padded = raw + "=" * (-len(raw) % 4)
        items = json.loads(base64.urlsafe_b64decode(padded.encode()))
        return [Toast(item["kind"], item["message"]) for item in items]
    except (ValueError, KeyError, TypeError, binascii.Error):
        logger.warning("Ignoring malformed flash cookie")
        return []
