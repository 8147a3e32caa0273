"""
Tests for ReferenceLookupService against a mocked page-summary API.
"""

import httpx
import pytest

from wildlife_id.core.exceptions import ReferenceLookupError
from wildlife_id.services.reference_lookup import ReferenceLookupService

from conftest import REFERENCE_URL


def make_lookup(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ReferenceLookupService(client=client, base_url=REFERENCE_URL, timeout=1.0)


class TestReferenceLookupService:

    @pytest.mark.asyncio
    async def test_scientific_name_from_summary(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            return httpx.Response(200, json={
                "title": "White-throated dipper",
                "extract": "The white-throated dipper (Cinclus cinclus), also known as the European dipper, "
                           "is an aquatic passerine bird.",
            })

        scientific_name = await make_lookup(handler).find_scientific_name("water ouzel, dipper")

        assert scientific_name == "Cinclus cinclus"
        assert seen["path"].startswith("/api/rest_v1/page/summary/")

    def test_title_is_url_encoded(self):
        lookup = ReferenceLookupService(base_url=REFERENCE_URL + "/")

        assert lookup.summary_url("Rock Pigeon/Dove") == (
            f"{REFERENCE_URL}/page/summary/Rock%20Pigeon%2FDove"
        )

    @pytest.mark.asyncio
    async def test_summary_without_binomial(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json={"extract": "a small brown bird"}))

        assert await lookup.find_scientific_name("dipper") is None

    @pytest.mark.asyncio
    async def test_not_found(self):
        lookup = make_lookup(lambda request: httpx.Response(404, json={"title": "Not found."}))

        with pytest.raises(ReferenceLookupError):
            await lookup.find_scientific_name("dipper")

    @pytest.mark.asyncio
    async def test_missing_extract(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json={"title": "Dipper"}))

        with pytest.raises(ReferenceLookupError):
            await lookup.fetch_summary("dipper")

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ReferenceLookupError):
            await make_lookup(handler).find_scientific_name("dipper")
