import allure
import pytest
from conftest import BaseAuditTest

from a11y_audit import TreeAccessor
from a11y_audit.colors import RGBA, extract_colors, normalize_color, parse_color, signal_hue
from a11y_audit.selectors import SelectorSyntaxError, parse_selector
from a11y_audit.tree import font_weight_value, parse_length, parse_time


@allure.feature("Style Parsing")
class TestColors:
    # CSS color values

    @allure.story("Colors")
    @allure.title("Test color syntaxes")
    @pytest.mark.parametrize("value,expected", [
        ("#abc", RGBA(170, 187, 204)),
        ("#00000080", RGBA(0, 0, 0, 128 / 255)),
        ("rgb(255, 0, 0)", RGBA(255, 0, 0)),
        ("rgba(0, 0, 0, 0.5)", RGBA(0, 0, 0, 0.5)),
        ("rgb(0 0 0 / 50%)", RGBA(0, 0, 0, 0.5)),
        ("RED", RGBA(255, 0, 0)),
        ("transparent", RGBA(0, 0, 0, 0.0)),
        ("currentcolor", None),
        ("", None),
    ])
    def test_parse_color(self, value, expected):
        # Test one color string
        assert parse_color(value) == expected

    @allure.story("Colors")
    @allure.title("Test translucent colors composite over the background")
    def test_over_and_normalize(self):
        # Test alpha blending and hex normalization
        assert RGBA(0, 0, 0, 0.5).over("#ffffff") == "#808080"
        assert RGBA(17, 34, 51).over("#ffffff") == "#112233"
        assert normalize_color("rgb(0, 95, 204)") == "#005fcc"
        assert normalize_color("rgba(0, 0, 0, 0)") is None

    @allure.story("Colors")
    @allure.title("Test colors inside compound values")
    def test_extract_colors(self):
        # Test box-shadow style values
        colors = extract_colors("0 0 0 2px rgb(0, 95, 204), 1px 1px red")
        assert [c.hex for c in colors] == ["#005fcc", "#ff0000"]
        assert extract_colors("none") == []

    @allure.story("Colors")
    @allure.title("Test signal hue classification")
    @pytest.mark.parametrize("value,expected", [
        ("#d32f2f", "red"),
        ("#2e7d32", "green"),
        ("#1976d2", None),
        ("#888888", None),
        ("transparent", None),
    ])
    def test_signal_hue(self, value, expected):
        # Test red/green detection ignores greys and blues
        assert signal_hue(value) == expected


@allure.feature("Style Parsing")
class TestUnits:
    # Lengths, durations and weights

    @allure.story("Units")
    @allure.title("Test length units resolve to pixels")
    def test_parse_length(self):
        # Test px, pt, em, rem and percent
        assert parse_length("14px") == 14
        assert parse_length("12pt") == 16
        assert parse_length("1.5em") == 24
        assert parse_length("2rem", base=10) == 20
        assert parse_length("50%") == 8
        assert parse_length("auto") is None
        assert parse_length(None) is None

    @allure.story("Units")
    @allure.title("Test longest duration in a list")
    def test_parse_time(self):
        # Test seconds, milliseconds and lists
        assert parse_time("0.2s, 300ms") == pytest.approx(0.3)
        assert parse_time("1.5s") == 1.5
        assert parse_time("") == 0.0

    @allure.story("Units")
    @allure.title("Test font weight keywords")
    def test_font_weight(self):
        # Test keyword and numeric weights
        assert font_weight_value("bold") == 700
        assert font_weight_value("600") == 600
        assert font_weight_value("heavy") == 400
        assert font_weight_value(None) == 400


@allure.feature("Tree Access")
class TestSelectors(BaseAuditTest):
    # Selector matching over descriptors

    @allure.story("Selectors")
    @allure.title("Test compound selectors and negation")
    def test_matching(self):
        # Test type, id, class, attribute operators and :not()
        field = self.doc.element("input", id="q", class_="field wide", type="search", aria_label="Search site")

        assert field.matches("input#q.field")
        assert field.matches('[class~="wide"]')
        assert field.matches('[aria-label^="Search"]')
        assert field.matches('[aria-label*="site"]')
        assert field.matches('input:not([type="hidden"])')
        assert field.matches('select, input[type="search"]')
        assert not field.matches('input:not([type="search"])')
        assert not field.matches(".narrow")

    @allure.story("Selectors")
    @allure.title("Test combinators are rejected")
    def test_unsupported_syntax(self):
        # Test descendant combinators raise
        with pytest.raises(SelectorSyntaxError):
            parse_selector("nav > a")
        with pytest.raises(SelectorSyntaxError):
            parse_selector("[aria-label")


@allure.feature("Tree Access")
class TestTreeAccessor(BaseAuditTest):
    # Unique selectors, scope and style resolution

    @allure.story("Selectors")
    @allure.title("Test unique selectors for report keys")
    def test_selector_for(self):
        # Test ids, duplicate ids and nth-of-type paths
        save = self.doc.element("button", id="save", text="Save")
        dupe_a = self.doc.element("span", id="dupe")
        dupe_b = self.doc.element("span", id="dupe")
        first = self.doc.element("p", text="One")
        second = self.doc.element("p", text="Two")
        root = self.doc.element("body", save, self.doc.element("div", dupe_a, dupe_b), first, second)
        accessor = TreeAccessor(root, self.doc.resolver)

        assert accessor.selector_for(root) == "body"
        assert accessor.selector_for(save) == "button#save"
        assert accessor.selector_for(dupe_b) == "body > div > span:nth-of-type(2)"
        assert accessor.selector_for(second) == "body > p:nth-of-type(2)"

    @allure.story("Scope")
    @allure.title("Test scope restricts audited elements")
    def test_scope(self):
        # Test scoped selection and whole-document lookups
        heading = self.doc.element("h1", text="Title")
        link = self.doc.element("a", text="Docs", href="/docs")
        root = self.doc.element("body", self.doc.element("header", heading), self.doc.element("main", link))
        accessor = TreeAccessor(root, self.doc.resolver, scope="main")

        assert accessor.select("a[href], h1") == [link]
        assert accessor.select_document("h1") == [heading]
        assert accessor.document_index(link) > accessor.document_index(heading)

    @allure.story("Styles")
    @allure.title("Test effective background and resolved style")
    def test_resolved_style(self):
        # Test translucent background over an ancestor and bold detection
        label = self.doc.element(
            "span", text="New",
            style={"background-color": "rgba(255, 255, 255, 0.5)", "font-weight": "700", "font-size": "12pt"},
        )
        root = self.doc.element("body", label, style={"background-color": "#000080"})
        accessor = TreeAccessor(root, self.doc.resolver)

        style = accessor.style(label)

        assert style.background == "#8080c0"
        assert style.own_background == "#8080c0"
        assert style.bold
        assert style.font_size == 16
        assert style.foreground == "#000000"

    @allure.story("Styles")
    @allure.title("Test hidden ancestors and unreadable styles")
    def test_rendering_and_unreadable(self):
        # Test is_rendered and unknown styles
        hidden = self.doc.element("span", text="Hidden")
        opaque = self.doc.element("p", text="Embedded", unreadable=True)
        root = self.doc.element("body", self.doc.element("div", hidden, style={"display": "none"}), opaque)
        accessor = TreeAccessor(root, self.doc.resolver)

        assert not accessor.is_rendered(hidden)
        assert accessor.is_rendered(opaque)
        assert accessor.style(opaque) is None
