"""
User-agent sniffing used to pick PDF response headers for mobile browsers.
"""
import re
from typing import Optional

_MOBILE_RE = re.compile(r"Mobile|Android|iPhone|iPad|iPod|webOS|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)
_IOS_RE = re.compile(r"iPhone|iPad|iPod", re.IGNORECASE)


def is_mobile_device(user_agent: Optional[str]) -> bool:
    return bool(_MOBILE_RE.search(user_agent or ""))


def is_ios_device(user_agent: Optional[str]) -> bool:
    return bool(_IOS_RE.search(user_agent or ""))


def is_safari(user_agent: Optional[str]) -> bool:
    ua = user_agent or ""
    return bool(re.search(r"Safari", ua, re.IGNORECASE)) and not re.search(r"Chrome", ua, re.IGNORECASE)
