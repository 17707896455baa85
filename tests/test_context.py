"""Tests for lynx.context — the request ContextVar and per-request bag."""

import pytest

from lynx.app import App
from lynx.config import AppConfig
from lynx.context import RequestContext, current_request, get_request
from lynx.controller import BaseController
from lynx.decorators import api, get, route
from lynx.routing.route import HttpVerb, RouteDescriptor
from lynx.testing import TestClient


class TestOutsideRequest:
    def test_get_request_raises(self) -> None:
        with pytest.raises(LookupError):
            get_request()

    def test_current_request_is_none(self) -> None:
        assert current_request() is None


class TestRequestContext:
    def test_defaults(self) -> None:
        bag = RequestContext()
        assert bag.route is None
        assert bag.user is None
        assert bag.ctx == {}
        assert bag.files == {}
        assert bag.is_api is False

    def test_is_api_follows_route(self) -> None:
        descriptor = RouteDescriptor(HttpVerb.GET, "/", "x", lambda: None, is_api=True)
        assert RequestContext(route=descriptor).is_api is True


@route("/ctx")
class ContextController(BaseController):
    @get("/")
    async def same(self, request, res):
        return str(get_request().lynx is request.lynx)

    @api()
    @get("/route")
    async def matched(self, request, res):
        return {"method": request.lynx.route.method_name, "api": request.lynx.is_api}


class TestInsideRequest:
    async def test_get_request_inside_handler(self) -> None:
        app = App(AppConfig(cors_enabled=False))
        app.add_controller(ContextController)
        async with TestClient(app) as client:
            assert (await client.get("/ctx")).text == "True"

    async def test_matched_route_recorded(self) -> None:
        app = App(AppConfig(cors_enabled=False))
        app.add_controller(ContextController)
        async with TestClient(app) as client:
            data = (await client.get("/ctx/route")).json()["data"]
            assert data == {"method": "matched", "api": True}
