# listsearch/sessions.py
import threading
from collections import OrderedDict
from typing import Optional, Tuple

from .config import SESSION_MAX_ENTRIES


class SessionStore:
    """
    Per-caller slot for the SharePoint list url of the last searched kb,
    read back when a result card is opened. Slots are keyed by (token subject, session id)
    so a caller can't reach another caller's slot by reusing their session id.
    Oldest slots are evicted past max_entries.
    """

    def __init__(self, max_entries: int = SESSION_MAX_ENTRIES):
        self.max_entries = max_entries
        self._urls: "OrderedDict[Tuple[str, str], Optional[str]]" = OrderedDict()
        self._lock = threading.Lock()

    def set_sharepoint_url(self, owner: str, session_id: str, url: Optional[str]) -> None:
        if not session_id:
            return
        key = (owner or "", session_id)
        with self._lock:
            self._urls[key] = url
            self._urls.move_to_end(key)
            while len(self._urls) > self.max_entries:
                self._urls.popitem(last=False)

    def get_sharepoint_url(self, owner: str, session_id: str) -> Optional[str]:
        if not session_id:
            return None
        with self._lock:
            return self._urls.get((owner or "", session_id))

    def clear(self, owner: str, session_id: str) -> None:
        with self._lock:
            self._urls.pop((owner or "", session_id), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)
