"""
Todoist client for escalation work items.

Uses the Todoist REST API v2:
https://developer.todoist.com/rest/v2/
"""

import logging
import os
from typing import Optional

import httpx


logger = logging.getLogger(__name__)


class TodoistTracker:
    """
    Opens Todoist tasks for approved model escalations.

    HTTP failures are logged and reported as None; the router carries
    on without tracking rather than failing the turn.
    """

    BASE_URL = "https://api.todoist.com/rest/v2"

    def __init__(
        self,
        api_token: Optional[str] = None,
        project_id: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize the Todoist tracker.

        Args:
            api_token: Todoist API token. If not provided, reads TODOIST_API_TOKEN.
            project_id: Optional project to file tasks under
            timeout: HTTP request timeout in seconds
        """
        self.api_token = api_token or os.getenv("TODOIST_API_TOKEN")
        if not self.api_token:
            raise ValueError(
                "Todoist API token required. Set TODOIST_API_TOKEN environment variable "
                "or pass api_token parameter."
            )
        self.project_id = project_id
        self.timeout = timeout

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_token}"}

    async def open_work(self, title: str, description: str = "") -> Optional[str]:
        """
        Create a task.

        Args:
            title: Task content
            description: Optional task description

        Returns:
            The new task id, None on failure
        """
        payload = {"content": title[:500]}
        if description:
            payload["description"] = description
        if self.project_id:
            payload["project_id"] = self.project_id

        task_id = None
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.BASE_URL}/tasks",
                    json=payload,
                    headers=self._headers(),
                )
                response.raise_for_status()
                task_id = response.json().get("id")
        except httpx.HTTPError as e:
            logger.warning(f"Failed to create Todoist task: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Todoist returned an unreadable task: {e}")
            return None

        if not task_id:
            return None
        logger.info(f"Opened Todoist task {task_id}")
        return str(task_id)
