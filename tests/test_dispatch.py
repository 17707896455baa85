"""Tests for lynx.server.dispatcher — verifiers, arguments, envelopes, fall-through."""

import asyncio
import logging
from pathlib import Path

from lynx.app import App
from lynx.config import AppConfig
from lynx.controller import BaseController
from lynx.decorators import api, async_verify, body, get, middleware, post, route, verify
from lynx.errors import HTTPError
from lynx.middlewares.base import BLOCK_CHAIN, BaseMiddleware
from lynx.testing import TestClient
from lynx.validation import required

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _app(**overrides) -> App:
    return App(AppConfig(views_folders=(TEMPLATES_DIR,), cors_enabled=False, **overrides))


def _deny(request, res) -> bool:
    return False


def _allow(request, res) -> bool:
    return True


async def _deny_async(request, res) -> bool:
    await asyncio.sleep(0)
    return False


def _explode(request, res) -> bool:
    raise RuntimeError("verifier blew up")


@route("/")
class ParamController(BaseController):
    @get("/:id")
    async def detail(self, id, request, res):
        return f"detail {id}"

    @get("/:id/sub")
    async def sub(self, id, request, res):
        return f"sub {id}"

    @get("/:id/sub/:name")
    async def nested(self, id, name, request, res):
        return f"{id}:{name}"


class TestPathParameters:
    async def test_single_param(self) -> None:
        app = _app()
        app.add_controller(ParamController)
        async with TestClient(app) as client:
            response = await client.get("/42")
            assert response.status == 200
            assert response.text == "detail 42"

    async def test_param_with_suffix(self) -> None:
        app = _app()
        app.add_controller(ParamController)
        async with TestClient(app) as client:
            response = await client.get("/42/sub")
            assert response.text == "sub 42"

    async def test_two_params_in_order(self) -> None:
        app = _app()
        app.add_controller(ParamController)
        async with TestClient(app) as client:
            response = await client.get("/7/sub/alice")
            assert response.text == "7:alice"


class TestHandlerArguments:
    async def test_handler_may_skip_trailing_arguments(self) -> None:
        @route("/short")
        class ShortController(BaseController):
            @get("/")
            async def index(self):
                return "no args"

            @get("/:slug")
            async def slug(self, slug):
                return slug

        app = _app()
        app.add_controller(ShortController)
        async with TestClient(app) as client:
            assert (await client.get("/short")).text == "no args"
            assert (await client.get("/short/hello")).text == "hello"

    async def test_sync_handler(self) -> None:
        @route("/sync")
        class SyncController(BaseController):
            @get("/")
            def index(self, request, res):
                return "sync"

        app = _app()
        app.add_controller(SyncController)
        async with TestClient(app) as client:
            assert (await client.get("/sync")).text == "sync"

    async def test_handler_writes_to_res_directly(self) -> None:
        @route("/raw")
        class RawController(BaseController):
            @get("/")
            async def index(self, request, res):
                res.set_status(201).set_header("X-Custom", "yes")
                res.send("created")

        app = _app()
        app.add_controller(RawController)
        async with TestClient(app) as client:
            response = await client.get("/raw")
            assert response.status == 201
            assert response.header("x-custom") == "yes"
            assert response.text == "created"

    async def test_dict_result_on_page_route_is_json(self) -> None:
        @route("/data")
        class DataController(BaseController):
            @get("/")
            async def index(self, request, res):
                return {"a": 1}

        app = _app()
        app.add_controller(DataController)
        async with TestClient(app) as client:
            response = await client.get("/data")
            assert response.content_type == "application/json"
            assert response.json() == {"a": 1}


class TestVerifiers:
    async def test_rejecting_verifier_falls_through_to_404(self) -> None:
        @route("/secret")
        class SecretController(BaseController):
            @verify(_deny)
            @get("/")
            async def index(self, request, res):
                return "secret"

        app = _app()
        app.add_controller(SecretController)
        async with TestClient(app) as client:
            response = await client.get("/secret")
            assert response.status == 404
            assert "secret" not in response.text

    async def test_rejecting_verifier_lets_next_route_answer(self) -> None:
        @route("/page")
        class PageController(BaseController):
            @verify(_deny)
            @get("/")
            async def members(self, request, res):
                return "members"

            @get("/")
            async def public(self, request, res):
                return "public"

        app = _app()
        app.add_controller(PageController)
        async with TestClient(app) as client:
            assert (await client.get("/page")).text == "public"

    async def test_async_verifier(self) -> None:
        @route("/a")
        class AsyncGuarded(BaseController):
            @async_verify(_deny_async)
            @get("/")
            async def index(self, request, res):
                return "no"

        app = _app()
        app.add_controller(AsyncGuarded)
        async with TestClient(app) as client:
            assert (await client.get("/a")).status == 404

    async def test_all_verifiers_must_pass(self) -> None:
        @route("/v")
        class Chain(BaseController):
            @verify(_allow)
            @verify(_deny)
            @get("/")
            async def index(self, request, res):
                return "no"

            @verify(_allow)
            @get("/ok")
            async def ok(self, request, res):
                return "yes"

        app = _app()
        app.add_controller(Chain)
        async with TestClient(app) as client:
            assert (await client.get("/v")).status == 404
            assert (await client.get("/v/ok")).text == "yes"

    async def test_raising_verifier_counts_as_rejection(self, caplog) -> None:
        @route("/boom")
        class Fragile(BaseController):
            @verify(_explode)
            @get("/")
            async def index(self, request, res):
                return "no"

        app = _app()
        app.add_controller(Fragile)
        async with TestClient(app) as client:
            with caplog.at_level(logging.ERROR, logger="lynx.dispatcher"):
                response = await client.get("/boom")
        assert response.status == 404
        assert any("Verifier" in r.message for r in caplog.records)

    async def test_raising_async_verifier_lets_next_route_answer(self, caplog) -> None:
        async def explode_async(request, res) -> bool:
            await asyncio.sleep(0)
            raise RuntimeError("async verifier blew up")

        @route("/async-boom")
        class AsyncFragile(BaseController):
            @async_verify(explode_async)
            @get("/")
            async def guarded(self, request, res):
                return "guarded"

            @get("/")
            async def fallback(self, request, res):
                return "fallback"

        app = _app()
        app.add_controller(AsyncFragile)
        async with TestClient(app) as client:
            with caplog.at_level(logging.ERROR, logger="lynx.dispatcher"):
                response = await client.get("/async-boom")
        assert response.text == "fallback"
        assert any("explode_async" in r.getMessage() for r in caplog.records)

    async def test_async_function_under_sync_verify_is_rejected(self, caplog) -> None:
        async def allow_async(request, res) -> bool:
            return True

        @route("/mixed")
        class Mixed(BaseController):
            @verify(allow_async)
            @get("/")
            async def index(self, request, res):
                return "should not run"

        app = _app()
        app.add_controller(Mixed)
        async with TestClient(app) as client:
            with caplog.at_level(logging.ERROR, logger="lynx.dispatcher"):
                response = await client.get("/mixed")
        assert response.status == 404
        assert any("async_verify" in str(r.exc_info[1]) for r in caplog.records if r.exc_info)

    async def test_verifier_can_fill_context_bag(self) -> None:
        def tag_request(request, res) -> bool:
            request.lynx.ctx["who"] = "verifier"
            return True

        @route("/tagged")
        class Tagged(BaseController):
            @verify(tag_request)
            @get("/")
            async def index(self, request, res):
                return self.render("context", request, {"title": "T", "theme": "light"})

        app = _app()
        app.add_controller(Tagged)
        async with TestClient(app) as client:
            response = await client.get("/tagged")
            assert response.text.strip() == "<p>T|verifier|light|it</p>"


@route("/api")
class ItemsApi(BaseController):
    @api()
    @get("/items")
    async def items(self, request, res):
        return [{"id": 1}, {"id": 2}]

    @api()
    @get("/ping")
    async def ping(self, request, res):
        return True

    @api()
    @get("/nope")
    async def nope(self, request, res):
        return False

    @api()
    @get("/items/:id")
    async def item(self, id, request, res):
        raise self.error(404, f"item {id} not found")

    @api()
    @get("/crash")
    async def crash(self, request, res):
        raise ValueError("bad input")

    @get("/page")
    async def page(self, request, res):
        return "not an api"


class TestApiEnvelope:
    async def test_success_wraps_data(self) -> None:
        app = _app()
        app.add_controller(ItemsApi)
        async with TestClient(app) as client:
            response = await client.get("/api/items")
            assert response.status == 200
            assert response.content_type == "application/json"
            assert response.json() == {"success": True, "data": [{"id": 1}, {"id": 2}]}

    async def test_bool_result_is_success_flag(self) -> None:
        app = _app()
        app.add_controller(ItemsApi)
        async with TestClient(app) as client:
            assert (await client.get("/api/ping")).json() == {"success": True}
            assert (await client.get("/api/nope")).json() == {"success": False}

    async def test_http_error_keeps_status(self) -> None:
        app = _app()
        app.add_controller(ItemsApi)
        async with TestClient(app) as client:
            response = await client.get("/api/items/9")
            assert response.status == 404
            assert response.json() == {"success": False, "error": "item 9 not found"}

    async def test_plain_exception_is_400(self) -> None:
        app = _app()
        app.add_controller(ItemsApi)
        async with TestClient(app) as client:
            response = await client.get("/api/crash")
            assert response.status == 400
            assert response.json() == {"success": False, "error": "bad input"}

    async def test_page_route_in_same_controller_is_not_api(self) -> None:
        app = _app()
        app.add_controller(ItemsApi)
        async with TestClient(app) as client:
            response = await client.get("/api/page")
            assert response.content_type.startswith("text/html")
            assert response.text == "not an api"

    async def test_custom_wrapper(self) -> None:
        class Wrapper:
            def on_success(self, response):
                return {"ok": response}

            def on_error(self, error):
                return {"ko": str(error)}

        app = _app(api_response_wrapper=Wrapper())
        app.add_controller(ItemsApi)
        async with TestClient(app) as client:
            assert (await client.get("/api/ping")).json() == {"ok": True}
            assert (await client.get("/api/crash")).json() == {"ko": "bad input"}

    async def test_serialize_hook(self) -> None:
        class Point:
            def serialize(self):
                return {"x": 1}

        @route("/geo")
        class GeoApi(BaseController):
            @api()
            @get("/")
            async def index(self, request, res):
                return [Point(), Point()]

        app = _app()
        app.add_controller(GeoApi)
        async with TestClient(app) as client:
            assert (await client.get("/geo")).json() == {"success": True, "data": [{"x": 1}, {"x": 1}]}


class TestPageErrors:
    async def test_exception_renders_error_view_with_400(self, monkeypatch) -> None:
        monkeypatch.delenv("LYNX_ENV", raising=False)

        @route("/fail")
        class Failing(BaseController):
            @get("/")
            async def index(self, request, res):
                raise ValueError("kaboom")

        app = _app()
        app.add_controller(Failing)
        async with TestClient(app) as client:
            response = await client.get("/fail")
            assert response.status == 400
            assert "ValueError" in response.text
            assert "kaboom" in response.text

    async def test_http_error_status_is_kept(self) -> None:
        @route("/forbidden")
        class Forbidden(BaseController):
            @get("/")
            async def index(self, request, res):
                raise HTTPError(403, "no entry")

        app = _app()
        app.add_controller(Forbidden)
        async with TestClient(app) as client:
            response = await client.get("/forbidden")
            assert response.status == 403
            assert "no entry" in response.text

    async def test_unmatched_path_is_404_page(self) -> None:
        app = _app()
        async with TestClient(app) as client:
            response = await client.get("/nowhere")
            assert response.status == 404
            assert "404" in response.text
            assert response.content_type.startswith("text/html")


class TestSkipAndInterceptors:
    async def test_skip_falls_through(self) -> None:
        @route("/maybe")
        class First(BaseController):
            @get("/")
            async def index(self, request, res):
                return self.skip()

        @route("/maybe")
        class Second(BaseController):
            @get("/")
            async def index(self, request, res):
                return "second"

        app = _app()
        app.add_controller(First)
        app.add_controller(Second)
        async with TestClient(app) as client:
            assert (await client.get("/maybe")).text == "second"

    async def test_skip_with_nothing_after_is_404(self) -> None:
        @route("/only")
        class Only(BaseController):
            @get("/")
            async def index(self, request, res):
                return self.skip()

        app = _app()
        app.add_controller(Only)
        async with TestClient(app) as client:
            assert (await client.get("/only")).status == 404

    async def test_interceptors_run_in_order(self) -> None:
        def shout(result, request):
            return result.upper()

        async def exclaim(result, request):
            return result + "!"

        @route("/hi")
        class Hi(BaseController):
            @get("/")
            async def index(self, request, res):
                return "hi"

        app = _app(before_perform_response_interceptors=(shout, exclaim))
        app.add_controller(Hi)
        async with TestClient(app) as client:
            assert (await client.get("/hi")).text == "HI!"

    async def test_failing_interceptor_is_skipped(self, caplog) -> None:
        def broken(result, request):
            raise RuntimeError("interceptor bug")

        def tag(result, request):
            return f"[{result}]"

        @route("/hi")
        class Hi(BaseController):
            @get("/")
            async def index(self, request, res):
                return "hi"

        app = _app(before_perform_response_interceptors=(broken, tag))
        app.add_controller(Hi)
        async with TestClient(app) as client:
            with caplog.at_level(logging.ERROR, logger="lynx.dispatcher"):
                response = await client.get("/hi")
        assert response.text == "[hi]"
        assert any("interceptor" in r.message.lower() for r in caplog.records)

    async def test_interceptors_skip_api_routes(self) -> None:
        def replace(result, request):
            return "replaced"

        app = _app(before_perform_response_interceptors=(replace,))
        app.add_controller(ItemsApi)
        async with TestClient(app) as client:
            assert (await client.get("/api/ping")).json() == {"success": True}


@middleware("/*")
class ThemeMiddleware(BaseMiddleware):
    async def apply(self, request, res):
        request.lynx.ctx["who"] = "mw"
        request.lynx.ctx["theme"] = "dark"


@middleware("/admin/*")
class AdminGate(BaseMiddleware):
    async def apply(self, request, res):
        if request.headers.get("x-admin") != "yes":
            res.set_status(403).send("Forbidden")
            return BLOCK_CHAIN
        return None


@middleware("/strict/*")
class StrictGate(BaseMiddleware):
    async def apply(self, request, res):
        raise HTTPError(422, "missing header")


@route("/")
class SiteController(BaseController):
    @get("/home")
    async def home(self, request, res):
        return self.render("context", request, {"title": "Home"})

    @get("/admin/panel")
    async def panel(self, request, res):
        return "panel"

    @get("/strict/thing")
    async def thing(self, request, res):
        return "thing"


class TestMiddlewareLayers:
    async def test_context_bag_merged_into_render(self) -> None:
        app = _app()
        app.use_middleware(ThemeMiddleware)
        app.add_controller(SiteController)
        async with TestClient(app) as client:
            response = await client.get("/home")
            assert response.text.strip() == "<p>Home|mw|dark|it</p>"

    async def test_block_chain_answers(self) -> None:
        app = _app()
        app.use_middleware(AdminGate)
        app.add_controller(SiteController)
        async with TestClient(app) as client:
            blocked = await client.get("/admin/panel")
            assert blocked.status == 403
            assert blocked.text == "Forbidden"
            allowed = await client.get("/admin/panel", headers={"X-Admin": "yes"})
            assert allowed.text == "panel"

    async def test_middleware_exception_answers_with_status(self) -> None:
        app = _app()
        app.use_middleware(StrictGate)
        app.add_controller(SiteController)
        async with TestClient(app) as client:
            response = await client.get("/strict/thing")
            assert response.status == 422
            assert response.content_type.startswith("text/plain")
            assert response.text == "missing header"

    async def test_middleware_scoped_to_its_path(self) -> None:
        app = _app()
        app.use_middleware(AdminGate)
        app.add_controller(SiteController)
        async with TestClient(app) as client:
            response = await client.get("/strict/thing")
            assert response.text == "thing"


class TestControllerInitialization:
    async def test_post_constructor_runs_once_under_concurrency(self) -> None:
        calls: list[int] = []

        @route("/init")
        class Lazy(BaseController):
            async def post_constructor(self) -> None:
                calls.append(1)
                await asyncio.sleep(0.01)
                self.ready = "ready"

            @get("/")
            async def index(self, request, res):
                return self.ready

        app = _app()
        app.add_controller(Lazy)
        async with TestClient(app) as client:
            responses = await asyncio.gather(*(client.get("/init") for _ in range(5)))
        assert [r.text for r in responses] == ["ready"] * 5
        assert calls == [1]

    async def test_failed_post_constructor_is_retried(self) -> None:
        attempts: list[int] = []

        @route("/flaky")
        class Flaky(BaseController):
            async def post_constructor(self) -> None:
                attempts.append(1)
                if len(attempts) == 1:
                    raise HTTPError(503, "warming up")

            @get("/")
            async def index(self, request, res):
                return "up"

        app = _app()
        app.add_controller(Flaky)
        async with TestClient(app) as client:
            assert (await client.get("/flaky")).status == 503
            assert (await client.get("/flaky")).text == "up"
        assert len(attempts) == 2


@route("/forms")
class FormController(BaseController):
    @api()
    @body("item", {"name": [required]})
    @post("/items")
    async def create(self, item, request, res):
        return {"valid": item.is_valid, "errors": item.errors_map, "obj": item.obj}

    @body("item", {"name": [required]})
    @post("/:kind")
    async def typed(self, kind, item, request, res):
        return f"{kind}:{item.obj.get('name')}:{item.is_valid}"


class TestBodyValidation:
    async def test_valid_json_body(self) -> None:
        app = _app()
        app.add_controller(FormController)
        async with TestClient(app) as client:
            response = await client.post("/forms/items", json={"name": "lamp"})
            data = response.json()["data"]
            assert data == {"valid": True, "errors": {}, "obj": {"name": "lamp"}}

    async def test_invalid_body_reaches_handler(self) -> None:
        app = _app()
        app.add_controller(FormController)
        async with TestClient(app) as client:
            response = await client.post("/forms/items", json={})
            data = response.json()["data"]
            assert data["valid"] is False
            assert data["errors"] == {"name": "name is required"}

    async def test_messages_follow_accept_language(self) -> None:
        app = _app()
        app.add_controller(FormController)
        async with TestClient(app) as client:
            response = await client.post(
                "/forms/items",
                json={},
                headers={"Accept-Language": "it-IT,it;q=0.9"},
            )
            assert response.json()["data"]["errors"] == {"name": "name è richiesto"}

    async def test_body_follows_path_params(self) -> None:
        app = _app()
        app.add_controller(FormController)
        async with TestClient(app) as client:
            response = await client.post("/forms/widget", data={"name": "knob"})
            assert response.text == "widget:knob:True"

    async def test_oversized_json_body_is_413(self) -> None:
        app = _app(json_limit=32)
        app.add_controller(FormController)
        async with TestClient(app) as client:
            response = await client.post("/forms/items", json={"name": "x" * 100})
            assert response.status == 413
            assert response.json() == {"success": False, "error": "Request body exceeds 32 bytes"}

    async def test_oversized_form_body_on_page_route(self) -> None:
        app = _app(max_content_length=16)
        app.add_controller(FormController)
        async with TestClient(app) as client:
            response = await client.post("/forms/widget", data={"name": "k" * 64})
            assert response.status == 413
