"""
Local draft of the last tax calculation input
"""
import json
import os
import time
from typing import Any, Dict, Optional

from config.settings import settings
from utils import logger


class CalculationStorageService:
    """Keeps one draft in a JSON file for draft_ttl_hours"""

    def __init__(self, path: Optional[str] = None, ttl_hours: Optional[int] = None):
        self.path = path or settings.storage.draft_path
        self.ttl_seconds = (ttl_hours if ttl_hours is not None else settings.storage.draft_ttl_hours) * 3600

    def save_draft(self, data: Dict[str, Any]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump({'data': data, 'timestamp': time.time()}, f, default=str)
        logger.debug(f"Saved calculation draft to {self.path}")

    def get_draft(self) -> Optional[Dict[str, Any]]:
        """The draft data, or None when missing, unreadable or expired"""
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                stored = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Discarding unreadable calculation draft: {e}")
            self.clear_draft()
            return None

        if time.time() - float(stored.get('timestamp', 0)) > self.ttl_seconds:
            logger.info("Calculation draft expired")
            self.clear_draft()
            return None
        return stored.get('data')

    def clear_draft(self):
        if os.path.exists(self.path):
            os.remove(self.path)

    def has_draft(self) -> bool:
        return self.get_draft() is not None

    def for_user(self, user_id: str) -> 'CalculationStorageService':
        """Storage for one user's draft, next to the default file"""
        root, ext = os.path.splitext(self.path)
        return CalculationStorageService(f"{root}_{user_id}{ext}", self.ttl_seconds // 3600)


calculation_storage_service = CalculationStorageService()
