"""
LinkedIn profile posts through the Apify actor API (submit run, poll, read dataset).
"""
import asyncio
import logging
from typing import List

import httpx

from ingestion.base import LinkedInRawPost
from ingestion.http import Sleep
from services.errors import ActorRunError, FetchError

logger = logging.getLogger(__name__)

APIFY_API_URL = "https://api.apify.com/v2"


class ApifyLinkedInAdapter:
    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        actor_id: str = "harvestapi/linkedin-profile-posts",
        poll_interval: float = 2.0,
        max_poll_attempts: int = 60,
        base_url: str = APIFY_API_URL,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.token = token
        # The API addresses actors as "user~name"
        self.actor_id = actor_id.replace("/", "~")
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.base_url = base_url.rstrip("/")
        self._sleep = sleep

    async def fetch_posts(self, profile_url: str, max_posts: int = 5) -> List[LinkedInRawPost]:
        run_id = await self._start_run(profile_url, max_posts)
        logger.info(f"[LinkedIn] Started Apify run: {run_id}")

        status = await self._wait_for_run(run_id)
        if status != "SUCCEEDED":
            raise ActorRunError(f"Apify run failed with status: {status}")

        resp = await self.client.get(
            f"{self.base_url}/actor-runs/{run_id}/dataset/items",
            params={"token": self.token},
        )
        if not resp.is_success:
            raise FetchError(f"Failed to fetch dataset: {resp.status_code}", resp.status_code)

        posts: List[LinkedInRawPost] = []
        for item in resp.json():
            try:
                posts.append(LinkedInRawPost.model_validate(item))
            except ValueError as e:
                logger.warning(f"[LinkedIn] Ignoring malformed dataset item: {e}")
        return posts

    async def _start_run(self, profile_url: str, max_posts: int) -> str:
        payload = {
            "targetUrls": [profile_url],
            "maxPosts": max_posts,
            "includeReposts": True,
            "includeQuotePosts": True,
            "scrapeComments": False,
            "scrapeReactions": False,
        }
        resp = await self.client.post(
            f"{self.base_url}/acts/{self.actor_id}/runs",
            params={"token": self.token},
            json=payload,
        )
        if not resp.is_success:
            raise FetchError(f"Apify API error: {resp.status_code} - {resp.text}", resp.status_code)
        return resp.json()["data"]["id"]

    async def _wait_for_run(self, run_id: str) -> str:
        status = "RUNNING"
        attempts = 0

        while status in ("READY", "RUNNING") and attempts < self.max_poll_attempts:
            await self._sleep(self.poll_interval)
            attempts += 1

            resp = await self.client.get(
                f"{self.base_url}/actor-runs/{run_id}",
                params={"token": self.token},
            )
            if not resp.is_success:
                raise FetchError(f"Failed to check run status: {resp.status_code}", resp.status_code)

            status = resp.json()["data"]["status"]
            if attempts % 5 == 0:
                logger.info(f"[LinkedIn] Run status: {status} (attempt {attempts})")

        return status
