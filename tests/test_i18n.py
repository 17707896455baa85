"""Tests for lynx.i18n — translation tables and language choice."""

import json
from pathlib import Path

from lynx.app import App
from lynx.config import AppConfig
from lynx.controller import BaseController
from lynx.decorators import get, name, route
from lynx.i18n import choose_language, load_translations, perform_translation
from lynx.testing import TestClient

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _locale(folder: Path, lang: str, table: dict[str, str]) -> None:
    folder.mkdir(parents=True, exist_ok=True)
    (folder / f"{lang}.json").write_text(json.dumps(table), encoding="utf-8")


class TestLoadTranslations:
    def test_one_table_per_file(self, tmp_path: Path) -> None:
        _locale(tmp_path, "it", {"greeting": "Ciao"})
        _locale(tmp_path, "en", {"greeting": "Hello"})
        tables = load_translations([tmp_path])
        assert tables == {"en": {"greeting": "Hello"}, "it": {"greeting": "Ciao"}}

    def test_later_folders_override(self, tmp_path: Path) -> None:
        _locale(tmp_path / "module", "it", {"greeting": "Salve", "bye": "Arrivederci"})
        _locale(tmp_path / "app", "it", {"greeting": "Ciao"})
        tables = load_translations([tmp_path / "module", tmp_path / "app"])
        assert tables["it"] == {"greeting": "Ciao", "bye": "Arrivederci"}

    def test_missing_folder_is_skipped(self, tmp_path: Path, caplog) -> None:
        assert load_translations([tmp_path / "absent"]) == {}
        assert any("does not exist" in r.message for r in caplog.records)


class TestPerformTranslation:
    TABLE = {"greeting": "Ciao", "farewell": "Addio"}

    def test_known_key(self) -> None:
        assert perform_translation("greeting", self.TABLE) == "Ciao"

    def test_unknown_key_returned_unchanged(self) -> None:
        assert perform_translation("missing", self.TABLE) == "missing"

    def test_placeholder(self) -> None:
        assert perform_translation("{{greeting}}, Boris", self.TABLE) == "Ciao, Boris"

    def test_placeholder_with_spaces(self) -> None:
        assert perform_translation("{{ farewell }}!", self.TABLE) == "Addio!"

    def test_unknown_placeholder(self) -> None:
        assert perform_translation("{{nope}} x", self.TABLE) == "{{nope}} x"

    def test_no_table(self) -> None:
        assert perform_translation("greeting", None) == "greeting"


class TestChooseLanguage:
    def test_exact_match(self) -> None:
        assert choose_language(["en", "it"], {"it", "en"}, "it") == "en"

    def test_base_language_fallback(self) -> None:
        assert choose_language(["it-IT"], {"it"}, "en") == "it"

    def test_wildcard_ignored(self) -> None:
        assert choose_language(["*"], {"en"}, "it") == "it"

    def test_default(self) -> None:
        assert choose_language(["fr"], {"en"}, "it") == "it"
        assert choose_language([], {"en"}, "it") == "it"


@route("/")
class GreetingController(BaseController):
    @name("user.detail")
    @get("/users/:id")
    async def user(self, id, request, res):
        return id

    @get("/greet")
    async def greet(self, request, res):
        return self.render("translated", request, {"params": {"id": 5}})

    @get("/plain")
    async def plain(self, request, res):
        return self.tr("greeting", request)


class TestAppTranslations:
    def _app(self, tmp_path: Path) -> App:
        _locale(tmp_path, "it", {"greeting": "Ciao"})
        _locale(tmp_path, "en", {"greeting": "Hello"})
        app = App(
            AppConfig(
                views_folders=(TEMPLATES_DIR,),
                translation_folders=(tmp_path,),
                cors_enabled=False,
            )
        )
        app.add_controller(GreetingController)
        return app

    async def test_tr_filter_follows_accept_language(self, tmp_path: Path) -> None:
        async with TestClient(self._app(tmp_path)) as client:
            english = await client.get("/greet", headers={"Accept-Language": "en-US,en;q=0.8"})
            italian = await client.get("/greet", headers={"Accept-Language": "it"})
            assert "<p>Hello</p>" in english.text
            assert "<p>Ciao</p>" in italian.text
            assert 'href="/users/5"' in english.text

    async def test_default_language(self, tmp_path: Path) -> None:
        async with TestClient(self._app(tmp_path)) as client:
            assert (await client.get("/plain", headers={"Accept-Language": "de"})).text == "Ciao"

    async def test_controller_tr(self, tmp_path: Path) -> None:
        async with TestClient(self._app(tmp_path)) as client:
            assert (await client.get("/plain", headers={"Accept-Language": "en"})).text == "Hello"

    async def test_translate_without_request(self, tmp_path: Path) -> None:
        app = self._app(tmp_path)
        async with TestClient(app):
            assert app.translate("greeting") == "Ciao"
            assert app.translations["en"]["greeting"] == "Hello"
