# ABOUTME: Admin-managed application settings stored as key/value rows
# ABOUTME: Values are JSON-encoded so booleans, numbers and objects round-trip intact

import json
import logging
from typing import Optional, Dict, Any, List

from database.core import utcnow

logger = logging.getLogger(__name__)


def _decode(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    raw = row.get('setting_value')
    if raw is not None:
        try:
            row['setting_value'] = json.loads(raw)
        except ValueError:
            # Rows written before values were JSON-encoded
            pass
    return row


class SettingsMixin:

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value by key, with optional default"""
        result = self.get_app_setting(key)
        return result['setting_value'] if result else default

    def get_app_setting(self, key: str) -> Optional[Dict[str, Any]]:
        """Get complete setting record"""
        return _decode(self.get_one('SELECT * FROM app_settings WHERE setting_key = ?', (key,)))

    def get_app_settings(self) -> List[Dict[str, Any]]:
        rows = self.query('SELECT * FROM app_settings ORDER BY setting_key')
        return [_decode(row) for row in rows]

    def save_app_setting(self, key: str, value: Any, description: str = None,
                         updated_by: int = None) -> Dict[str, Any]:
        """Insert or update a setting by key"""
        logger.info(f"Setting configuration: key='{key}', value={value}")
        self.update("""
            INSERT INTO app_settings (setting_key, setting_value, description, updated_by, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (setting_key) DO UPDATE SET
                setting_value = excluded.setting_value,
                description = COALESCE(excluded.description, app_settings.description),
                updated_by = excluded.updated_by,
                updated_at = excluded.updated_at
        """, (key, json.dumps(value), description, updated_by, utcnow()))
        return self.get_app_setting(key)
