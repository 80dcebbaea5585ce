"""
Campaign backend: the service that receives a finished character.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import Field

from .exceptions import SubmissionFailure
from .models import CamelModel, CanonicalCharacter


logger = logging.getLogger("character-forge.backend")

FALLBACK_NARRATIVE = "*Your adventure begins...*"


class CampaignRequest(CamelModel):
    name: str = Field(min_length=1)
    module_id: str
    character_name: str
    initial_character: CanonicalCharacter


class CampaignCreated(CamelModel):
    campaign_id: str
    initial_narrative: str = FALLBACK_NARRATIVE


class CampaignBackend(Protocol):
    async def create_campaign(self, request: CampaignRequest) -> CampaignCreated:
        ...


class HttpCampaignBackend:
    """Posts campaign requests as JSON to ``{base_url}/campaigns``.

    Raises SubmissionFailure when the backend rejects the request or
    cannot be reached; the caller keeps its draft and may retry.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self._client = client

    async def create_campaign(self, request: CampaignRequest) -> CampaignCreated:
        url = f"{self.base_url}/campaigns"
        payload = request.to_payload()

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, headers=self.headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=self.headers)
            response.raise_for_status()
            data = response.json()

        except httpx.TimeoutException:
            raise SubmissionFailure(
                "The campaign server is not responding. Your character was kept; try again."
            ) from None
        except httpx.HTTPStatusError as e:
            raise SubmissionFailure(
                f"The campaign server returned HTTP {e.response.status_code}: {_error_detail(e.response)}",
                {"status_code": e.response.status_code},
            ) from None
        except httpx.RequestError as e:
            raise SubmissionFailure(f"Failed to connect to the campaign server: {e}") from None
        except ValueError:
            raise SubmissionFailure("The campaign server returned an invalid response") from None

        return _parse_created(data)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or response.reason_phrase)
    return response.reason_phrase


def _parse_created(data: Any) -> CampaignCreated:
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        data = data["data"]
    if not isinstance(data, dict):
        raise SubmissionFailure("The campaign server returned an invalid response")

    campaign_id = data.get("campaignId") or data.get("campaign_id") or data.get("id")
    if not campaign_id:
        raise SubmissionFailure("The campaign server did not return a campaign id")

    narrative = data.get("initialNarrative") or data.get("initial_narrative") or FALLBACK_NARRATIVE
    logger.info(f"Campaign created: {campaign_id}")
    return CampaignCreated(campaign_id=str(campaign_id), initial_narrative=narrative)
