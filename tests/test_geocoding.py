import httpx
import pytest

from app.core.deps import get_optional_geocoding_client
from app.services.providers.errors import GeocodingError, GeocodingNoResultsError, ProviderTransportError
from app.services.providers.geocoding_client import MapboxGeocodingClient

REVERSE_BODY = {
    "features": [
        {
            "place_name": "Strada Lipscani 1, 030031 Bucharest, Romania",
            "center": [26.1, 44.43],
            "context": [
                {"id": "postcode.123", "text": "030031"},
                {"id": "place.456", "text": "Bucharest"},
                {"id": "country.789", "text": "Romania"},
            ],
        }
    ]
}


def client_for(handler) -> MapboxGeocodingClient:
    return MapboxGeocodingClient(
        access_token="pk.test",
        base_url="https://geo.test/mapbox.places",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_geocode_returns_first_feature():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"features": [{"center": [26.1, 44.43], "place_name": "Bucharest, Romania"}]})

    result = await client_for(handler).geocode("Bucharest")

    assert result == {"coordinates": {"lat": 44.43, "lng": 26.1}, "formatted_address": "Bucharest, Romania"}
    params = seen[0].url.params
    assert params["limit"] == "1"
    assert params["types"] == "address,place"
    assert seen[0].url.path == "/mapbox.places/Bucharest.json"


@pytest.mark.asyncio
async def test_reverse_geocode_builds_context():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=REVERSE_BODY)

    result = await client_for(handler).reverse_geocode(44.43, 26.1)

    assert seen[0].url.path == "/mapbox.places/26.1,44.43.json"
    assert result["address"].startswith("Strada Lipscani")
    assert [c["type"] for c in result["context"]] == ["postcode", "place", "country"]


@pytest.mark.asyncio
async def test_no_features_raises_no_results():
    client = client_for(lambda request: httpx.Response(200, json={"features": []}))

    with pytest.raises(GeocodingNoResultsError):
        await client.geocode("Atlantis")


@pytest.mark.asyncio
async def test_error_status_and_transport():
    with pytest.raises(GeocodingError) as exc:
        await client_for(lambda request: httpx.Response(401)).geocode("x")
    assert exc.value.status_code == 401

    def unreachable(request):
        raise httpx.ConnectError("dns")

    with pytest.raises(ProviderTransportError):
        await client_for(unreachable).reverse_geocode(0, 0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"features": ["Bucharest"]},
        {"features": {"center": [26.1, 44.43]}},
        {"features": [{"center": ["east", "north"]}]},
        {"features": [{"center": None}]},
        {"features": [{"center": [26.1, 44.43, 80.0]}]},
    ],
)
async def test_unexpected_feature_shapes_raise_geocoding_error(body):
    with pytest.raises(GeocodingError):
        await client_for(lambda request: httpx.Response(200, json=body)).geocode("Bucharest")


@pytest.mark.asyncio
async def test_undecodable_body_and_redirect_loop():
    def corrupt(request):
        return httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not gzip")

    with pytest.raises(GeocodingError):
        await client_for(corrupt).geocode("Bucharest")

    def redirect_loop(request):
        raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

    with pytest.raises(ProviderTransportError):
        await client_for(redirect_loop).geocode("Bucharest")


@pytest.mark.asyncio
async def test_reverse_geocode_ignores_malformed_context():
    body = {"features": [{"place_name": 42, "context": ["postcode.1", {"id": "place.2", "text": "Bucharest"}, {"text": 7}]}]}

    result = await client_for(lambda request: httpx.Response(200, json=body)).reverse_geocode(44.43, 26.1)

    assert result == {
        "address": None,
        "context": [
            {"id": "place.2", "text": "Bucharest", "type": "place"},
            {"id": None, "text": None, "type": ""},
        ],
    }


@pytest.mark.asyncio
async def test_geocode_endpoints(api, test_app):
    def handler(request):
        if "Atlantis" in request.url.path:
            return httpx.Response(200, json={"features": []})
        return httpx.Response(200, json=REVERSE_BODY)

    test_app.dependency_overrides[get_optional_geocoding_client] = lambda: client_for(handler)

    r = await api.get("/reverse-geocode", params={"lat": 44.43, "lng": 26.1})
    assert r.status_code == 200
    assert r.json()["context"][1] == {"id": "place.456", "text": "Bucharest", "type": "place"}

    r = await api.get("/geocode", params={"address": "Lipscani"})
    assert r.status_code == 200
    assert r.json()["coordinates"] == {"lat": 44.43, "lng": 26.1}

    r = await api.get("/geocode", params={"address": "Atlantis"})
    assert r.status_code == 400
    assert r.json() == {"detail": "No results found for this address"}


@pytest.mark.asyncio
async def test_geocode_endpoint_without_token(api):
    r = await api.get("/geocode", params={"address": "Bucharest"})
    assert r.status_code == 503


@pytest.mark.asyncio
async def test_geocode_endpoint_rejects_result_without_coordinates(api, test_app):
    body = {"features": [{"center": ["east", "north"], "place_name": "Nowhere"}]}
    test_app.dependency_overrides[get_optional_geocoding_client] = lambda: client_for(
        lambda request: httpx.Response(200, json=body)
    )

    r = await api.get("/geocode", params={"address": "Nowhere"})

    assert r.status_code == 400
    assert r.json() == {"detail": "Geocoding result has no coordinates"}
