import logging
import secrets
import time

import requests
from flask import current_app

from loan_portal.utils.exceptions import IntegrationError

logger = logging.getLogger(__name__)

EXTENSION_KEY = "meeting_links"


class MeetingLinkClient:
    """Creates and deletes video meeting rooms for scheduled meetings.

    When ``api_url`` is empty no remote provider is contacted and a
    placeholder room is issued, the admin shares the real room by hand.
    """

    def __init__(self, api_url=None, api_token=None, timeout=10,
                 placeholder_url="https://meet.google.com/new"):
        self.api_url = api_url.rstrip("/") if api_url else None
        self.api_token = api_token
        self.timeout = timeout
        self.placeholder_url = placeholder_url

    @classmethod
    def from_config(cls, config):
        return cls(
            api_url=config.get("MEETING_API_URL"),
            api_token=config.get("MEETING_API_TOKEN"),
            timeout=config.get("MEETING_API_TIMEOUT", 10),
            placeholder_url=config.get("MEETING_PLACEHOLDER_URL", "https://meet.google.com/new"),
        )

    def _headers(self):
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def create_meeting(self, topic, start_time, duration=60):
        if not self.api_url:
            meeting_id = f"meet-{int(time.time() * 1000)}-{secrets.token_hex(4)}"
            logger.info("Placeholder meeting %s created for %r", meeting_id, topic)
            return {
                "id": meeting_id,
                "join_url": self.placeholder_url,
                "topic": topic,
                "start_time": start_time,
                "duration": duration,
            }

        try:
            res = requests.post(
                f"{self.api_url}/meetings",
                json={"topic": topic, "start_time": start_time, "duration": duration},
                headers=self._headers(),
                timeout=self.timeout,
            )
            res.raise_for_status()
            data = res.json()
        except requests.Timeout:
            logger.warning("Meeting provider timed out after %ss", self.timeout)
            raise IntegrationError("Meeting provider timed out")
        except (requests.RequestException, ValueError) as e:
            logger.error("Meeting creation failed: %s", e)
            raise IntegrationError("Failed to create meeting")

        if not data.get("join_url"):
            raise IntegrationError("Meeting provider returned no join URL")

        return {
            "id": str(data.get("id")) if data.get("id") is not None else None,
            "join_url": data["join_url"],
            "topic": topic,
            "start_time": start_time,
            "duration": duration,
        }

    def delete_meeting(self, meeting_id):
        if not self.api_url or not meeting_id:
            # placeholder rooms just become inactive
            return True

        try:
            res = requests.delete(
                f"{self.api_url}/meetings/{meeting_id}",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning("Meeting provider timed out after %ss deleting %s", self.timeout, meeting_id)
            raise IntegrationError("Meeting provider timed out")
        except requests.RequestException as e:
            logger.error("Meeting deletion failed for %s: %s", meeting_id, e)
            raise IntegrationError("Failed to delete meeting")

        if res.status_code == 404:
            logger.info("Remote meeting %s already gone", meeting_id)
            return True
        if res.status_code >= 400:
            logger.error("Meeting deletion for %s returned %s", meeting_id, res.status_code)
            raise IntegrationError("Failed to delete meeting")
        return True


def get_meeting_link_client():
    client = current_app.extensions.get(EXTENSION_KEY)
    if client is None:
        client = MeetingLinkClient.from_config(current_app.config)
        current_app.extensions[EXTENSION_KEY] = client
    return client
