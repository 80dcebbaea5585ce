"""Tests for the HTTP campaign backend."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from character_forge.backend import (
    FALLBACK_NARRATIVE,
    CampaignRequest,
    HttpCampaignBackend,
)
from character_forge.exceptions import SubmissionFailure
from character_forge.models import CanonicalCharacter, ResourcePool


def make_request() -> CampaignRequest:
    character = CanonicalCharacter(
        id="abc12345",
        module_id="classic",
        name="Ada",
        level=1,
        hp=ResourcePool(current=100, max=100),
        attributes={"strength": 12},
        race="Elf",
    )
    return CampaignRequest(
        name="Ada's Adventure",
        module_id="classic",
        character_name="Ada",
        initial_character=character,
    )


def make_backend(handler) -> HttpCampaignBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpCampaignBackend("https://play.example.com/api/", client=client, headers={"X-Player": "p1"})


class TestHttpCampaignBackend:

    @pytest.mark.anyio
    async def test_posts_camel_case_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["header"] = request.headers.get("X-Player")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"campaignId": "c-1", "initialNarrative": "Rain falls."})

        created = await make_backend(handler).create_campaign(make_request())

        assert created.campaign_id == "c-1"
        assert created.initial_narrative == "Rain falls."
        assert seen["url"] == "https://play.example.com/api/campaigns"
        assert seen["header"] == "p1"
        body = seen["body"]
        assert body["name"] == "Ada's Adventure"
        assert body["moduleId"] == "classic"
        assert body["characterName"] == "Ada"
        assert body["initialCharacter"]["moduleId"] == "classic"
        assert body["initialCharacter"]["race"] == "Elf"

    @pytest.mark.anyio
    async def test_data_envelope_and_fallback_narrative(self):
        backend = make_backend(lambda request: httpx.Response(200, json={"data": {"id": 42}}))
        created = await backend.create_campaign(make_request())
        assert created.campaign_id == "42"
        assert created.initial_narrative == FALLBACK_NARRATIVE

    @pytest.mark.anyio
    async def test_missing_campaign_id(self):
        backend = make_backend(lambda request: httpx.Response(200, json={"ok": True}))
        with pytest.raises(SubmissionFailure, match="campaign id"):
            await backend.create_campaign(make_request())

    @pytest.mark.anyio
    async def test_server_error(self):
        backend = make_backend(lambda request: httpx.Response(500, json={"error": "database down"}))
        with pytest.raises(SubmissionFailure, match="HTTP 500: database down") as exc_info:
            await backend.create_campaign(make_request())
        assert exc_info.value.details == {"status_code": 500}

    @pytest.mark.anyio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(SubmissionFailure, match="not responding"):
            await make_backend(handler).create_campaign(make_request())

    @pytest.mark.anyio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(SubmissionFailure, match="Failed to connect"):
            await make_backend(handler).create_campaign(make_request())

    @pytest.mark.anyio
    async def test_invalid_json(self):
        backend = make_backend(lambda request: httpx.Response(200, text="ok"))
        with pytest.raises(SubmissionFailure, match="invalid response"):
            await backend.create_campaign(make_request())

    @pytest.mark.anyio
    async def test_default_client(self):
        """Without an injected client a short-lived AsyncClient is used."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_response = MagicMock()
            mock_response.status_code = 200
            mock_response.json.return_value = {"campaign_id": "c-9"}

            mock_client = MagicMock()
            mock_client.post = AsyncMock(return_value=mock_response)
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=None)
            mock_client_class.return_value = mock_client

            backend = HttpCampaignBackend("https://play.example.com/api", timeout=3.0)
            created = await backend.create_campaign(make_request())

            assert created.campaign_id == "c-9"
            mock_client_class.assert_called_once_with(timeout=3.0)
            assert mock_client.post.call_args[0][0] == "https://play.example.com/api/campaigns"
