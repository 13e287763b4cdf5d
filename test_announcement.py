import allure
import pytest
from conftest import BaseAuditTest

from a11y_audit import AccessibilityCategory, Clarity, Impact, Issue
from a11y_audit.announcement import (
    assess_clarity,
    audit_announcements,
    build_announcement,
    element_context,
    simulate_announcement,
    summarize_announcements,
)
from a11y_audit.results import AnnouncementResult
from a11y_core import AuditConfig


def _result(clarity: Clarity, issues: int = 0) -> AnnouncementResult:
    return AnnouncementResult(
        selector="button",
        family="buttons",
        announcement="Save, button",
        accessible_name="Save",
        role="button",
        clarity=clarity,
        issues=[
            Issue(rule="sr-buttons", message="m", impact=Impact.MINOR, category=AccessibilityCategory.SCREEN_READER)
            for _ in range(issues)
        ],
    )


@allure.feature("Screen Reader Simulation")
class TestAnnouncementText(BaseAuditTest):
    # Spoken strings: name, role, states

    @allure.story("Announcement")
    @allure.title("Test button announcement")
    def test_button(self):
        # Test name and role joined with a comma
        button = self.doc.element("button", text="Save")
        root = self.doc.element("body", button)

        result = simulate_announcement(button, "buttons", self.context(root))

        assert result.announcement == "Save, button"
        assert result.issues == []

    @allure.story("Announcement")
    @allure.title("Test checkbox announces its checked state")
    def test_checkbox_state(self):
        # Test native checked state and a wrapping label name
        checkbox = self.doc.element("input", type="checkbox", checked="")
        root = self.doc.element("body", self.doc.element("label", checkbox, text="Subscribe"))

        result = simulate_announcement(checkbox, "form-controls", self.context(root))

        assert result.announcement == "Subscribe, checkbox, checked"
        assert result.states == ["checked"]

    @allure.story("Announcement")
    @allure.title("Test heading announces its level")
    def test_heading_level(self):
        # Test "heading level N"
        heading = self.doc.element("h2", text="Products")
        root = self.doc.element("body", heading)

        result = simulate_announcement(heading, "headings", self.context(root))

        assert result.announcement == "Products, heading level 2"

    @allure.story("Announcement")
    @allure.title("Test expanded, required and invalid states")
    def test_states(self):
        # Test state ordering in the announcement
        assert build_announcement("Menu", "button", ["collapsed"]) == "Menu, button, collapsed"
        assert build_announcement("", "link", []) == "link"

        field = self.doc.element("input", aria_label="Email", required="", aria_invalid="true")
        root = self.doc.element("body", field)
        result = simulate_announcement(field, "form-controls", self.context(root))
        assert result.states == ["required", "invalid entry"]

    @allure.story("Context")
    @allure.title("Test landmark and list context")
    def test_element_context(self):
        # Test containing navigation and list
        link = self.doc.element("a", text="Pricing", href="/pricing")
        root = self.doc.element("body", self.doc.element("nav", self.doc.element("ul", self.doc.element("li", link))))

        assert element_context(link) == "navigation, list"
        assert element_context(self.doc.element("span")) is None


@allure.feature("Screen Reader Simulation")
class TestClarity(BaseAuditTest):
    # Clarity grades

    @allure.story("Clarity")
    @allure.title("Test clarity grades by name and context")
    @pytest.mark.parametrize("name,context,expected", [
        ("Save changes", None, Clarity.GOOD),
        ("Save", "form", Clarity.EXCELLENT),
        ("click here", None, Clarity.POOR),
        ("OK", None, Clarity.FAIR),
        ("", "main", Clarity.POOR),
    ])
    def test_assess_clarity(self, name, context, expected):
        # Test one name/context pair
        root = self.doc.element("body")
        assert assess_clarity(name, context, self.context(root)) == expected

    @allure.story("Clarity")
    @allure.title("Test button inside a form reads excellently")
    def test_form_context_raises_clarity(self):
        # Test context contribution end to end
        button = self.doc.element("button", text="Save")
        root = self.doc.element("body", self.doc.element("form", button))

        result = simulate_announcement(button, "buttons", self.context(root))

        assert result.context == "form"
        assert result.clarity == Clarity.EXCELLENT


@allure.feature("Screen Reader Simulation")
class TestFamilyChecks(BaseAuditTest):
    # Family-specific findings

    @allure.story("Buttons")
    @allure.title("Test unnamed button and redundant role text")
    def test_buttons(self):
        # Test button findings
        unnamed = self.doc.element("button")
        redundant = self.doc.element("button", text="Submit button")
        root = self.doc.element("body", unnamed, redundant)
        ctx = self.context(root)

        first = simulate_announcement(unnamed, "buttons", ctx)
        assert first.issues[0].message == "Button has no accessible name"
        assert first.issues[0].impact == Impact.CRITICAL
        assert first.issues[0].rule == "sr-buttons"
        assert first.clarity == Clarity.POOR

        second = simulate_announcement(redundant, "buttons", ctx)
        assert second.issues[0].message == "Button name includes redundant role text"

    @allure.story("Links")
    @allure.title("Test generic link text, bad href and new window")
    def test_links(self):
        # Test all three link findings on one element
        link = self.doc.element("a", text="click here", href="#", target="_blank")
        root = self.doc.element("body", link)

        result = simulate_announcement(link, "links", self.context(root))

        assert [issue.message for issue in result.issues] == [
            "Link has generic text",
            "Link missing valid href attribute",
            "Link opens in new window without warning",
        ]
        assert [issue.impact for issue in result.issues] == [Impact.SERIOUS, Impact.MODERATE, Impact.MINOR]
        assert result.recommendations[1] == "Provide valid href or use button element instead"

    @allure.story("Links")
    @allure.title("Test new window warning in the name")
    def test_link_warning_present(self):
        # Test a link that warns about the new tab
        link = self.doc.element("a", text="Report (opens in new tab)", href="/report.pdf", target="_blank")
        root = self.doc.element("body", link)

        assert simulate_announcement(link, "links", self.context(root)).issues == []

    @allure.story("Form Controls")
    @allure.title("Test required indication and broken describedby")
    def test_form_controls(self):
        # Test required wording and dangling aria-describedby
        field = self.doc.element("input", id="email", required="", aria_describedby="missing-hint")
        root = self.doc.element("body", self.doc.element("label", text="Email", for_="email"), field)

        result = simulate_announcement(field, "form-controls", self.context(root))

        assert [issue.message for issue in result.issues] == [
            "Required field not clearly indicated to screen readers",
            "aria-describedby references non-existent element",
        ]

    @allure.story("Images")
    @allure.title("Test missing alt, redundant alt and unnamed svg")
    def test_images(self):
        # Test image findings
        missing = self.doc.element("img", src="cat.png")
        redundant = self.doc.element("img", src="cat.png", alt="Photo of a cat")
        svg = self.doc.element("svg")
        root = self.doc.element("body", missing, redundant, svg)
        ctx = self.context(root)

        assert simulate_announcement(missing, "images", ctx).issues[0].message == "Image missing alt attribute"
        assert simulate_announcement(redundant, "images", ctx).issues[0].message == (
            "Alt text includes redundant image phrasing"
        )
        assert simulate_announcement(svg, "images", ctx).issues[0].message == "SVG missing accessible name"

    @allure.story("Images")
    @allure.title("Test unnamed role=img and image inputs")
    def test_unnamed_image_roles(self):
        # Test every image family member needs a name
        div = self.doc.element("div", role="img")
        submit = self.doc.element("input", type="image", src="go.png")
        named = self.doc.element("input", type="image", src="go.png", alt="Search")
        root = self.doc.element("body", div, submit, named)
        ctx = self.context(root)

        assert [i.message for i in simulate_announcement(div, "images", ctx).issues] == [
            "Image missing accessible name"
        ]
        assert [i.message for i in simulate_announcement(submit, "images", ctx).issues] == [
            "Image missing accessible name"
        ]
        assert simulate_announcement(named, "images", ctx).issues == []

    @allure.story("Navigation")
    @allure.title("Test unlabelled and empty navigation regions")
    def test_navigation(self):
        # Test the multiple-nav label requirement and empty navs
        primary = self.doc.element("nav", self.doc.element("a", text="Home", href="/"))
        secondary = self.doc.element("nav", aria_label="Footer")
        root = self.doc.element("body", primary, secondary)
        ctx = self.context(root)

        assert [i.message for i in simulate_announcement(primary, "navigation", ctx).issues] == [
            "Multiple navigation regions without distinguishing labels",
        ]
        assert [i.message for i in simulate_announcement(secondary, "navigation", ctx).issues] == [
            "Navigation region contains no interactive elements",
        ]

    @allure.story("Modals")
    @allure.title("Test incomplete modal and native dialog")
    def test_modals(self):
        # Test modal findings
        bare = self.doc.element("div", self.doc.element("p", text="Saved"), role="dialog")
        native = self.doc.element("dialog", self.doc.element("button", text="Close"), aria_label="Settings")
        root = self.doc.element("body", bare, native)
        ctx = self.context(root)

        assert [i.message for i in simulate_announcement(bare, "modals", ctx).issues] == [
            "Modal missing aria-modal=\"true\"",
            "Modal missing accessible name",
            "Modal contains no focusable elements",
        ]
        assert simulate_announcement(native, "modals", ctx).issues == []

    @allure.story("Locale")
    @allure.title("Test Korean generic link text")
    def test_korean_patterns(self):
        # Test the ko pattern table
        link = self.doc.element("a", text="여기를 클릭", href="/more")
        root = self.doc.element("body", link)

        result = simulate_announcement(link, "links", self.context(root, config=AuditConfig(locale="ko")))

        assert result.issues[0].message == "Link has generic text"


@allure.feature("Screen Reader Simulation")
class TestAnnouncementAudit(BaseAuditTest):
    # Family sweep and summary

    @allure.story("Audit")
    @allure.title("Test hidden and decorative elements are skipped")
    def test_audit_skips_hidden(self):
        # Test aria-hidden, presentation and unrendered elements
        root = self.doc.element(
            "body",
            self.doc.element("button", text="Save"),
            self.doc.element("button", text="Ghost", aria_hidden="true"),
            self.doc.element("button", text="Gone", style={"display": "none"}),
            self.doc.element("button", text="Layout", role="presentation"),
            self.doc.element("h1", text="Account"),
        )
        results = audit_announcements(self.context(root))

        assert [r.family for r in results] == ["buttons", "headings"]

    @allure.story("Summary")
    @allure.title("Test summary score is mean clarity minus issue penalty")
    def test_summary(self):
        # Test (100 + 20) / 2 - 5 = 55
        summary = summarize_announcements([_result(Clarity.EXCELLENT), _result(Clarity.POOR, issues=1)])

        assert summary.total == 2
        assert summary.excellent == 1
        assert summary.poor == 1
        assert summary.issues == 1
        assert summary.score == 55

    @allure.story("Summary")
    @allure.title("Test penalty is capped and score floored")
    def test_summary_penalty_cap(self):
        # Test the 50 point penalty cap
        summary = summarize_announcements([_result(Clarity.GOOD, issues=20)])
        assert summary.score == 30
        assert summarize_announcements([]).score == 100
