# ABOUTME: Append-only log of outbound market-data API calls
# ABOUTME: Read back by the admin logs endpoint, newest first

from typing import Optional, Dict, Any, List

from database.core import utcnow


class ApiLogsMixin:

    def log_api_request(self, endpoint: str, response_time: int, success: bool,
                        error_message: str = None, user_id: int = None,
                        request_time: str = None) -> int:
        return self.insert("""
            INSERT INTO api_logs (user_id, endpoint, request_time, response_time, success, error_message)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (user_id, endpoint, request_time or utcnow(), response_time,
              1 if success else 0, error_message))

    def get_api_logs(self, user_id: Optional[int] = None, limit: int = 100) -> List[Dict[str, Any]]:
        if user_id is not None:
            return self.query(
                'SELECT * FROM api_logs WHERE user_id = ? ORDER BY request_time DESC, id DESC LIMIT ?',
                (user_id, limit)
            )
        return self.query(
            'SELECT * FROM api_logs ORDER BY request_time DESC, id DESC LIMIT ?',
            (limit,)
        )
