import allure
import pytest
from conftest import BaseAuditTest

from a11y_audit import Impact, Rect
from a11y_audit.motion import (
    analyze_motion,
    analyze_target_size,
    audit_motion,
    edge_distance,
    nearest_spacing,
    respects_reduced_motion,
    target_candidates,
)


SPINNER = {"animation-name": "spin", "animation-duration": "1s"}
INFINITE_SPINNER = dict(SPINNER, **{"animation-iteration-count": "infinite"})


@allure.feature("Motion Safety")
class TestMotion(BaseAuditTest):
    # Reduced-motion support and pause controls

    @allure.story("Reduced Motion")
    @allure.title("Test animation without a reduced-motion rule")
    def test_animation_without_media_rule(self):
        # Test one-shot animation flagged only for reduced motion
        spinner = self.doc.element("div", style=SPINNER)
        root = self.doc.element("body", spinner)

        result = analyze_motion(spinner, self.context(root))

        assert result.has_motion
        assert not result.respects_reduced_motion
        assert not result.auto_playing
        assert not result.accessible
        assert [issue.message for issue in result.issues] == [
            "Animation does not respect prefers-reduced-motion setting",
        ]

    @allure.story("Reduced Motion")
    @allure.title("Test animation with a reduced-motion rule")
    def test_animation_with_media_rule(self):
        # Test that a media rule anywhere in the document satisfies the check
        self.doc.add_media_rule("(prefers-reduced-motion: reduce)")
        spinner = self.doc.element("div", style=SPINNER)
        root = self.doc.element("body", spinner)
        ctx = self.context(root)

        assert respects_reduced_motion(ctx)
        result = analyze_motion(spinner, ctx)
        assert result.accessible
        assert result.issues == []

    @allure.story("Pause Control")
    @allure.title("Test infinite animation without a pause control")
    def test_infinite_without_pause(self):
        # Test auto-playing content is serious when it cannot be paused
        self.doc.add_media_rule("(prefers-reduced-motion: reduce)")
        banner = self.doc.element("div", style=INFINITE_SPINNER)
        root = self.doc.element("body", banner)

        result = analyze_motion(banner, self.context(root))

        assert result.auto_playing
        assert not result.can_be_paused
        assert not result.accessible
        assert result.issues[0].message == "Auto-playing content cannot be paused"
        assert result.issues[0].impact == Impact.SERIOUS

    @allure.story("Pause Control")
    @allure.title("Test sibling pause button and aria-controls")
    def test_pause_controls(self):
        # Test a labelled sibling button and a remote aria-controls button
        self.doc.add_media_rule("(prefers-reduced-motion: reduce)")
        carousel = self.doc.element("div", style=INFINITE_SPINNER)
        ticker = self.doc.element("div", style=INFINITE_SPINNER, id="ticker")
        root = self.doc.element(
            "body",
            self.doc.element("section", carousel, self.doc.element("button", text="Pause slideshow")),
            ticker,
            self.doc.element("button", text="Toggle", aria_controls="ticker"),
        )
        ctx = self.context(root)

        assert analyze_motion(carousel, ctx).accessible
        assert analyze_motion(ticker, ctx).can_be_paused

    @allure.story("Pause Control")
    @allure.title("Test autoplay video with and without controls")
    def test_autoplay_video(self):
        # Test media controls count as a pause mechanism
        bare = self.doc.element("video", autoplay="")
        controlled = self.doc.element("video", autoplay="", controls="")
        root = self.doc.element("body", bare, controlled)
        ctx = self.context(root)

        bare_result = analyze_motion(bare, ctx)
        assert [issue.impact for issue in bare_result.issues] == [Impact.MODERATE, Impact.SERIOUS]

        controlled_result = analyze_motion(controlled, ctx)
        assert controlled_result.can_be_paused
        assert len(controlled_result.issues) == 1

    @allure.story("Transitions")
    @allure.title("Test only transitions with a duration are motion")
    def test_transition_duration(self):
        # Test the browser default "all 0s" is not motion
        still = self.doc.element("div")
        fading = self.doc.element("div", style={"transition-property": "opacity", "transition-duration": "0.3s"})
        root = self.doc.element("body", still, fading)
        ctx = self.context(root)

        assert not analyze_motion(still, ctx).has_motion
        assert analyze_motion(still, ctx).accessible
        assert analyze_motion(fading, ctx).has_motion

    @allure.story("Audit")
    @allure.title("Test audit selects rendered moving elements")
    def test_audit_motion(self):
        # Test hidden and still elements are skipped
        root = self.doc.element(
            "body",
            self.doc.element("p", text="Static"),
            self.doc.element("div", style=SPINNER),
            self.doc.element("div", style=dict(SPINNER, display="none")),
            self.doc.element("marquee", text="News"),
        )
        results = audit_motion(self.context(root))

        assert len(results) == 2
        assert results[1].auto_playing


@allure.feature("Target Size")
class TestTargetSize(BaseAuditTest):
    # Minimum target size and spacing

    @allure.story("Geometry")
    @allure.title("Test edge distance and nearest spacing")
    def test_geometry(self):
        # Test the smallest edge-to-edge distance
        assert edge_distance(Rect(0, 0, 48, 48), Rect(52, 0, 48, 48)) == 4
        assert edge_distance(Rect(0, 0, 48, 48), Rect(0, 60, 48, 48)) == 12
        lone = self.doc.element("button")
        assert nearest_spacing(lone, [lone]) is None

    @allure.story("Size")
    @allure.title("Test collapsed target fails width and height")
    def test_zero_size_target(self):
        # Test a 0x0 button is undersized in both dimensions
        button = self.doc.element("button", text="Go")
        root = self.doc.element("body", button)

        result = analyze_target_size(button, self.context(root))

        assert not result.passes
        assert result.spacing is None
        assert result.adequate_spacing
        assert [issue.message for issue in result.issues] == [
            "Target width 0px is below 44px minimum",
            "Target height 0px is below 44px minimum",
        ]

    @allure.story("Size")
    @allure.title("Test single large target passes")
    def test_single_large_target(self):
        # Test a 48x48 target with no neighbors
        button = self.doc.element("button", text="Go", rect=(10, 10, 48, 48))
        root = self.doc.element("body", button)

        result = analyze_target_size(button, self.context(root))

        assert result.passes
        assert result.spacing is None
        assert result.issues == []

    @allure.story("Spacing")
    @allure.title("Test crowded and well-spaced targets")
    @pytest.mark.parametrize("gap,adequate", [(4, False), (8, True), (48, True)])
    def test_spacing(self, gap, adequate):
        # Test the 8px spacing minimum between neighbors
        first = self.doc.element("button", text="A", rect=(0, 0, 48, 48))
        second = self.doc.element("button", text="B", rect=(48 + gap, 0, 48, 48))
        root = self.doc.element("body", first, second)

        result = analyze_target_size(first, self.context(root))

        assert result.passes
        assert result.spacing == gap
        assert result.adequate_spacing is adequate
        if not adequate:
            assert result.issues[0].rule == "target-spacing"
            assert result.issues[0].impact == Impact.MINOR
            assert result.issues[0].message == f"Target spacing {gap}px is below 8px minimum"

    @allure.story("Candidates")
    @allure.title("Test only rendered interactive elements are targets")
    def test_candidates(self):
        # Test hidden controls and plain text are not measured
        root = self.doc.element(
            "body",
            self.doc.element("a", text="Home", href="/"),
            self.doc.element("p", text="Copy"),
            self.doc.element("button", text="Hidden", style={"display": "none"}),
            self.doc.element("input", type="hidden"),
        )
        candidates = target_candidates(self.context(root))

        assert [el.tag for el in candidates] == ["a"]
