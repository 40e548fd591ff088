# tests/test_renderer.py
"""Tests for rendering parsed templates against data contexts."""

from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List

import pytest

import stache
from stache.core.templating import TemplateRenderer, parse, render, render_string
from stache.core.templating.helpers import html_escape, stringify
from stache.exceptions import ParseError

Item = namedtuple("Item", ["name", "price"])


@dataclass
class Order:
    id: int
    items: List[Item]
    paid: bool = False


class Flaky:
    @property
    def status(self):
        raise ValueError("unreadable")


class TestTextAndVariables:
    def test_template_without_tags_renders_verbatim(self):
        source = "Plain text with <html> & 'quotes'\nand a second line.\n"
        assert render(source) == source

    def test_escaped_variable(self):
        assert render("{{v}}", {"v": "<a&b>"}) == "&lt;a&amp;b&gt;"

    def test_all_reserved_characters_are_escaped(self):
        assert render("{{v}}", {"v": "\"'&<>"}) == "&quot;&apos;&amp;&lt;&gt;"

    @pytest.mark.parametrize("source", ["{{{v}}}", "{{&v}}", "{{& v }}"])
    def test_raw_variables_are_not_escaped(self, source):
        assert render(source, {"v": "<b>"}) == "<b>"

    def test_unresolved_variable_renders_empty_and_continues(self):
        assert render("a{{missing}}b{{present}}c", {"present": "!"}) == "ab!c"

    def test_values_are_stringified(self):
        context = {"n": 42, "f": 2.5, "t": True, "no": False, "none": None}
        assert render("{{n}}|{{f}}|{{t}}|{{no}}|{{none}}", context) == "42|2.5|true|false|"

    def test_no_contexts_at_all(self):
        assert render("x{{a}}y{{#s}}z{{/s}}") == "xy"

    def test_multiple_roots_nearest_first(self):
        assert render("{{a}} {{b}}", {"a": "near"}, {"a": "far", "b": "outer"}) == "near outer"

    def test_record_context(self):
        order = Order(id=7, items=[])
        assert render("Order #{{id}}", order) == "Order #7"


class TestSections:
    def test_empty_list_renders_nothing_and_inverted_renders_once(self):
        template = parse("[{{#items}}x{{/items}}][{{^items}}none{{/items}}]")
        assert template.render({"items": []}) == "[][none]"

    def test_list_renders_once_per_element(self):
        template = parse("{{#items}}<{{name}}>{{/items}}")
        context = {"items": [{"name": "a"}, {"name": "b"}, {"name": "c"}]}
        assert template.render(context) == "<a><b><c>"

    def test_elements_shadow_outer_names_and_fall_back(self):
        template = parse("{{#items}}{{name}}@{{store}};{{/items}}")
        context = {"store": "main", "items": [{"name": "a"}, {"name": "b", "store": "annex"}, {"name": "c"}]}
        assert template.render(context) == "a@main;b@annex;c@main;"

    def test_dotted_names_inside_iteration(self):
        template = parse("{{#people}}{{address.city}},{{/people}}")
        context = {
            "address": {"city": "Outer"},
            "people": [{"address": {"city": "Oslo"}}, {"name": "no address"}, {"address": {"city": "Rome"}}],
        }
        assert template.render(context) == "Oslo,Outer,Rome,"

    def test_self_reference_over_scalar_list(self):
        assert render("{{#list}}{{.}}{{/list}}", {"list": ["a", "b"]}) == "ab"

    def test_self_reference_is_escaped(self):
        assert render("{{#list}}{{.}}{{/list}}", {"list": ["<i>"]}) == "&lt;i&gt;"

    def test_mapping_section_pushes_the_mapping(self):
        context = {"person": {"name": "Ada"}, "name": "outer"}
        assert render("{{#person}}{{name}}{{/person}}", context) == "Ada"

    def test_record_section_and_namedtuple_iteration(self):
        order = Order(id=1, items=[Item("pen", 2), Item("ink", 5)])
        source = "{{#order}}#{{id}}: {{#items}}{{name}}={{price}} {{/items}}{{/order}}"
        assert render(source, {"order": order}) == "#1: pen=2 ink=5 "

    def test_truthy_scalar_keeps_enclosing_scope(self):
        context = {"flag": "yes", "name": "outer"}
        assert render("{{#flag}}{{name}}/{{.}}{{/flag}}", context) == "outer/{&apos;flag&apos;: &apos;yes&apos;, &apos;name&apos;: &apos;outer&apos;}"

    def test_truthy_scalar_inside_iteration_uses_current_element(self):
        context = {"items": [{"name": "a", "on": True}, {"name": "b", "on": False}]}
        assert render("{{#items}}{{#on}}{{name}}{{/on}}{{/items}}", context) == "a"

    def test_truthy_scalar_in_nested_scope_sees_nearest_context(self):
        context = {"flag": True, "x": 1, "a": {"x": 2}}
        assert render("{{#a}}{{#flag}}{{x}}{{/flag}}{{/a}}", context) == "2"
        assert render("{{#a}}{{^missing}}{{x}}{{/missing}}{{/a}}", context) == "2"

    def test_zero_and_empty_string_are_truthy(self):
        assert render("{{#n}}n{{/n}}{{#s}}s{{/s}}", {"n": 0, "s": ""}) == "ns"

    @pytest.mark.parametrize("value", [False, None, [], ()])
    def test_falsy_values_trigger_inverted_section(self, value):
        assert render("{{#v}}yes{{/v}}{{^v}}no{{/v}}", {"v": value}) == "no"

    def test_missing_name_triggers_inverted_section(self):
        assert render("{{^ghost}}boo{{/ghost}}", {}) == "boo"

    def test_inverted_section_keeps_enclosing_context(self):
        context = {"items": [], "label": "nothing here"}
        assert render("{{^items}}{{label}}{{/items}}", context) == "nothing here"

    def test_nested_iterations(self):
        context = {"rows": [{"cells": [1, 2]}, {"cells": [3]}]}
        assert render("{{#rows}}[{{#cells}}{{.}}{{/cells}}]{{/rows}}", context) == "[12][3]"

    def test_standalone_section_lines(self):
        source = "list:\n{{#items}}\n- {{.}}\n{{/items}}\ndone"
        # only the newline after the opening tag is consumed
        assert render(source, {"items": ["a", "b"]}) == "list:\n- a\n- b\n\ndone"

    def test_rendering_does_not_mutate_template(self):
        template = parse("{{#items}}{{.}}{{/items}}")
        before = template.nodes
        assert template.render({"items": [1, 2]}) == "12"
        assert template.render({"items": [3]}) == "3"
        assert template.nodes == before


class TestDiagnostics:
    def test_malformed_lookup_goes_to_sink_and_renders_nothing(self):
        seen = []
        output = render("a{{status}}b", Flaky(), diagnostics=lambda name, error: seen.append((name, error)))
        assert output == "ab"
        assert seen == [("status", "ValueError: unreadable")]

    def test_malformed_section_lookup_is_reported(self):
        seen = []
        renderer = TemplateRenderer(diagnostics=lambda name, error: seen.append(name))
        assert renderer.render(parse("{{#status}}x{{/status}}!"), [Flaky()]) == "!"
        assert seen == ["status"]

    def test_default_sink_does_not_raise(self):
        assert render("[{{status}}]", Flaky()) == "[]"


class TestPublicApi:
    def test_render_accepts_source_or_template(self):
        template = stache.parse("Hi {{who}}")
        assert stache.render(template, {"who": "you"}) == "Hi you"
        assert stache.render("Hi {{who}}", {"who": "me"}) == "Hi me"

    def test_render_propagates_parse_errors(self):
        with pytest.raises(ParseError):
            render("{{#open}}never closed")

    def test_render_string_returns_error_text(self):
        assert render_string("{{#a}}x{{/b}}") == "line 1: interleaved closing tag: b"

    def test_render_string_renders_valid_templates(self):
        assert stache.render_string("{{a}}-{{b}}", {"a": 1}, {"b": 2}) == "1-2"

    def test_parse_error_is_a_stache_error(self):
        assert issubclass(stache.ParseError, stache.StacheError)

    def test_library_calls_write_nothing_to_stdout(self, capsys):
        assert stache.render_string("Hi {{n}}", {"n": "x"}) == "Hi x"
        assert stache.render_string("{{#open}}") == "line 1: section open has no closing tag"
        stache.parse("{{ {half }}").render()
        assert capsys.readouterr().out == ""

    def test_shared_template_renders_from_many_threads(self):
        template = parse("{{#rows}}{{id}}:{{#tags}}{{.}},{{/tags}};{{/rows}}")

        def render_for(n):
            rows = [{"id": i, "tags": [n, i]} for i in range(50)]
            return n, template.render({"rows": rows})

        with ThreadPoolExecutor(max_workers=20) as pool:
            results = list(pool.map(render_for, range(20)))

        for n, output in results:
            assert output == "".join(f"{i}:{n},{i},;" for i in range(50))


class TestHelpers:
    def test_html_escape_leaves_other_characters(self):
        assert html_escape("plain ünïcode / text") == "plain ünïcode / text"

    def test_stringify_bytes(self):
        assert stringify(b"caf\xc3\xa9") == "café"
