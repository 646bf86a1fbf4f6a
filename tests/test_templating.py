"""Tests for perch.templating — the per-request template handle."""

from pathlib import Path

import pytest
from kida import DictLoader, Environment

from perch.errors import ConfigurationError
from perch.http.response import Respond, Response
from perch.templating import Template, create_environment


def _env() -> Environment:
    return Environment(
        loader=DictLoader(
            {
                "hello.html": "<h1>Hello {{ name }}</h1>",
                "feed.xml": "<feed>{{ title }}</feed>",
            }
        )
    )


class TestTemplateHandle:
    def test_fluent_setup(self) -> None:
        tpl = Template(_env())
        assert tpl.set_template("hello.html") is tpl
        assert tpl.assign(name="World") is tpl
        assert tpl.name == "hello.html"
        assert tpl.context == {"name": "World"}

    def test_context_copy(self) -> None:
        tpl = Template(_env()).assign(name="World")
        tpl.context["name"] = "changed"
        assert tpl.context == {"name": "World"}

    def test_assign_merges(self) -> None:
        tpl = Template(_env()).assign(a=1).assign(b=2, a=3)
        assert tpl.context == {"a": 3, "b": 2}


class TestResponse:
    def test_renders_html(self) -> None:
        response = Template(_env()).set_template("hello.html").assign(name="World").response()
        assert isinstance(response, Response)
        assert response.text == "<h1>Hello World</h1>"
        assert response.content_type == "text/html; charset=utf-8"
        assert response.status == 200

    def test_custom_content_type(self) -> None:
        tpl = Template(_env()).set_template("feed.xml", "application/atom+xml")
        response = tpl.assign(title="News").response()
        assert response.content_type == "application/atom+xml"
        assert response.text == "<feed>News</feed>"

    def test_no_template_selected(self) -> None:
        with pytest.raises(ConfigurationError, match="set_template"):
            Template(_env()).response()

    def test_render_raises_respond(self) -> None:
        tpl = Template(_env()).set_template("hello.html").assign(name="Perch")
        with pytest.raises(Respond) as info:
            tpl.render()
        assert info.value.response.text == "<h1>Hello Perch</h1>"


class TestCreateEnvironment:
    def test_loads_from_directory(self, tmp_path: Path) -> None:
        (tmp_path / "page.html").write_text("<p>{{ body }}</p>", encoding="utf-8")
        env = create_environment(tmp_path)
        response = Template(env).set_template("page.html").assign(body="ok").response()
        assert response.text == "<p>ok</p>"

    def test_autoescape_default(self, tmp_path: Path) -> None:
        (tmp_path / "page.html").write_text("{{ body }}", encoding="utf-8")
        env = create_environment(tmp_path)
        response = Template(env).set_template("page.html").assign(body="<b>").response()
        assert "<b>" not in response.text
