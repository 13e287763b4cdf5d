import json
import random

import allure
import pytest
from conftest import BaseAuditTest

from a11y_audit import AuditEngine, AuditStatus, InMemoryViewport, WCAGLevel
from a11y_audit.fakes import InMemoryStyleResolver
from a11y_core import AuditConfig, RuleFamily, ViewportProfile
from a11y_exceptions import (
    ConfigurationError,
    DetachedRootError,
    EngineFaultError,
    StyleSourceError,
    TraversalUnavailableError,
)


# Paragraph words that never read as status indicators
WORDS = ("Order", "shipping", "total", "account", "delivery", "summary", "address", "payment", "invoice", "basket")

OUTLINE_FOCUS = {"outline-style": "solid", "outline-width": "2px", "outline-color": "#005fcc"}


class CrashingResolver(InMemoryStyleResolver):
    """Resolver whose host fails with a plain runtime error."""

    def __init__(self, document, message: str):
        super().__init__(document)
        self.message = message

    def computed_style(self, element):
        raise RuntimeError(self.message)


@allure.feature("Audit Engine")
class TestEngineRun(BaseAuditTest):
    # End-to-end runs over fake documents

    def _article(self, rng: random.Random, count: int):
        paragraphs = [
            self.doc.element("p", text=" ".join(rng.choice(WORDS) for _ in range(4)), style={"color": "#000000"})
            for _ in range(count)
        ]
        return self.doc.element("body", self.doc.element("main", *paragraphs)), paragraphs

    @allure.story("Scoring")
    @allure.title("Test clean document passes at AAA")
    def test_clean_document(self):
        # Test a document with nothing to flag
        root = self.doc.element(
            "body",
            self.doc.element(
                "main",
                self.doc.element("h1", text="Welcome"),
                self.doc.element("p", text="Your order has shipped.", style={"color": "#222222"}),
            ),
        )
        report = self.audit(root, context="home")

        assert report.status == AuditStatus.PASS
        assert report.score == 100
        assert report.wcag_level == WCAGLevel.AAA
        assert report.violations == ()
        assert report.context == "home"
        assert report.url is None
        assert report.summary.contrast.total_elements == 2

    @allure.story("Scoring")
    @allure.title("Test score never rises as defects accumulate")
    def test_defects_never_raise_score(self):
        # Test score ordering while 0..n defects are injected into one seeded tree
        rng = random.Random(2024)
        for _ in range(10):
            count = rng.randint(2, 8)
            seed = rng.random()
            order = rng.sample(range(count), count)
            kinds = [rng.choice(("contrast", "color-only")) for _ in range(count)]

            scores, violation_counts = [], []
            for injected in range(count + 1):
                root, paragraphs = self._article(random.Random(seed), count)
                for position in order[:injected]:
                    if kinds[position] == "contrast":
                        self.doc.set_style(paragraphs[position], color="#aaaaaa")
                    else:
                        paragraphs[position].attributes["class"] = "text-red"
                report = self.engine.run(root, resolver=self.doc.resolver, focus=self.doc.focus)
                scores.append(report.score)
                violation_counts.append(len(report.violations))

            assert scores == sorted(scores, reverse=True)
            assert violation_counts == sorted(violation_counts)
            assert scores[-1] < scores[0]

    @allure.story("Determinism")
    @allure.title("Test repeated runs produce the same findings")
    def test_idempotent(self):
        # Test two runs over the same tree
        root = self.doc.element(
            "body",
            self.doc.element("p", text="Faint", style={"color": "#aaaaaa"}),
            self.doc.element("button", text="Go", rect=(0, 0, 20, 20)),
        )
        first = self.engine.run(root, resolver=self.doc.resolver, focus=self.doc.focus)
        second = self.engine.run(root, resolver=self.doc.resolver, focus=self.doc.focus)

        assert first.score == second.score
        assert first.violations == second.violations
        assert first.recommendations == second.recommendations
        assert first.audit_id != second.audit_id

    @allure.story("Tab Order")
    @allure.title("Test positive tab index on a hidden element is still flagged")
    def test_hidden_positive_tabindex(self):
        # Test the tab-order finding reaches the report for an unrendered element
        root = self.doc.element(
            "body",
            self.doc.element("div", text="Skip", tabindex="5", style={"display": "none"}),
            self.doc.element("button", text="Go", focus_style=OUTLINE_FOCUS, rect=(0, 0, 88, 44)),
        )
        report = self.audit(root)

        assert ("body", "tab-order") in [(v.selector, v.rule) for v in report.violations]
        assert report.tab_order.unreachable == ["body > div"]
        assert not report.tab_order.valid

    @allure.story("Landmarks")
    @allure.title("Test duplicate main landmarks are reported once")
    def test_duplicate_main_reported_once(self):
        # Test only the structure check flags landmark multiplicity
        root = self.doc.element(
            "body",
            self.doc.element("main", self.doc.element("h1", text="Orders")),
            self.doc.element("main", self.doc.element("p", text="Archive")),
        )
        report = self.audit(root)
        landmark_violations = [v for v in report.violations if "landmark" in v.message.lower()]

        assert [(v.rule, v.message) for v in landmark_violations] == [
            ("landmark-unique", "Multiple main landmarks found (2)")
        ]
        assert report.structure.landmarks == {"main": 2}

    @allure.story("Bundles")
    @allure.title("Test per-element bundles have unique selectors")
    def test_unique_bundle_selectors(self):
        # Test nth-of-type selectors for id-less siblings
        root = self.doc.element(
            "body",
            self.doc.element("p", text="First", style={"color": "#aaaaaa"}),
            self.doc.element("p", text="Second"),
        )
        report = self.audit(root)
        selectors = [result.selector for result in report.visual]

        assert selectors == ["body > p:nth-of-type(1)", "body > p:nth-of-type(2)"]
        assert report.element("body > p:nth-of-type(1)").score == 70
        assert report.element("body > p:nth-of-type(2)").score == 100
        assert report.element("body > div") is None

    @allure.story("Report")
    @allure.title("Test report serialization layout")
    def test_report_serialization(self):
        # Test the overview / summary / sections layout
        root = self.doc.element("body", self.doc.element("p", text="Faint", style={"color": "#aaaaaa"}))
        report = self.audit(root, page_url="https://shop.example/cart")
        data = json.loads(report.to_json())

        assert set(data) == {"overview", "summary", "sections", "violations", "abstentions", "recommendations"}
        assert report.url == "https://shop.example/cart"
        assert data["overview"]["url"] == "https://shop.example/cart"
        assert data["overview"]["status"] == "warning"
        assert data["sections"]["contrast"][0]["level"] == "fail"
        assert data["violations"][0]["impact"] == "serious"
        assert data["recommendations"][0]["affected_count"] == 1


@allure.feature("Audit Engine")
class TestEngineConfiguration(BaseAuditTest):
    # Scope and rule families

    @allure.story("Scope")
    @allure.title("Test scope limits audited subtrees")
    def test_scope(self):
        # Test that a faint header is ignored when only main is audited
        root = self.doc.element(
            "body",
            self.doc.element("header", self.doc.element("p", text="Promo", style={"color": "#aaaaaa"})),
            self.doc.element("main", self.doc.element("p", text="Cart")),
        )
        report = self.audit(root, scope="main")

        assert len(report.contrast) == 1
        assert report.violations == ()

    @allure.story("Scope")
    @allure.title("Test combinator scope is a configuration error")
    def test_invalid_scope(self):
        # Test unsupported scope selectors
        root = self.doc.element("body", self.doc.element("main"))

        with pytest.raises(ConfigurationError) as excinfo:
            self.engine.run(root, resolver=self.doc.resolver, focus=self.doc.focus, scope="main > p")

        assert excinfo.value.config_key == "scope"
        assert self.engine.get_statistics()["engine_faults"] == 1

    @allure.story("Rule Families")
    @allure.title("Test disabled families produce no sections and need no focus")
    def test_disabled_families(self):
        # Test keyboard and motion switched off
        engine = AuditEngine(self.config.without(RuleFamily.KEYBOARD, RuleFamily.MOTION))
        root = self.doc.element("body", self.doc.element("button", text="Go", rect=(0, 0, 10, 10)))

        report = engine.run(root, resolver=self.doc.resolver)

        assert report.keyboard == ()
        assert report.tab_order is None
        assert report.motion == ()
        assert all(v.rule != "target-size" for v in report.violations)
        assert self.doc.focus_log == []

    @allure.story("Locale")
    @allure.title("Test unsupported locale is rejected")
    def test_unsupported_locale(self):
        # Test locale validation at configuration time
        with pytest.raises(ConfigurationError):
            AuditEngine(AuditConfig(locale="fr"))


@allure.feature("Audit Engine")
class TestEngineFocus(BaseAuditTest):
    # Focus probing side effects during runs

    @allure.story("Focus")
    @allure.title("Test focus returns to the previously focused element")
    def test_focus_restored(self):
        # Test the focus owner after a full run
        search = self.doc.element("input", type="search", aria_label="Search", rect=(0, 0, 200, 44))
        save = self.doc.element("button", text="Save", focus_style=OUTLINE_FOCUS, rect=(0, 60, 88, 44))
        root = self.doc.element("body", search, save)
        self.doc.active = search

        report = self.audit(root)

        assert self.doc.active is search
        assert report.element("body > button").focus_indicator.sufficient
        assert ("focus", save.node_id) in self.doc.focus_log

    @allure.story("Focus")
    @allure.title("Test rejected focus becomes an abstention")
    def test_focus_failure_abstains(self):
        # Test a host that refuses to focus one element
        save = self.doc.element("button", text="Save", focus_style=OUTLINE_FOCUS, rect=(0, 0, 88, 44))
        root = self.doc.element("body", save)
        self.doc.fail_focus_on.add(save.node_id)

        report = self.audit(root)

        assert [a.check for a in report.abstentions] == ["focus-indicator"]
        assert report.abstentions[0].reason.startswith("Host could not focus element")
        assert report.summary.incomplete == 1
        assert report.element("body > button").focus_indicator is None
        assert self.engine.get_statistics()["abstentions"] == 1

    @allure.story("Abstentions")
    @allure.title("Test unreadable element style abstains without penalty")
    def test_unreadable_style_abstains(self):
        # Test unknown contrast is neither pass nor fail
        root = self.doc.element("body", self.doc.element("p", text="Embedded widget", unreadable=True))

        report = self.audit(root)

        assert report.contrast == ()
        assert [a.reason for a in report.abstentions] == ["Computed style is not readable"]
        assert report.score == 100

    @allure.story("Abstentions")
    @allure.title("Test every abstention reaches the report")
    def test_all_abstentions_reported(self):
        # Test a page with many unreadable elements keeps every abstention
        paragraphs = [self.doc.element("p", text=f"Embedded {i}", unreadable=True) for i in range(120)]
        root = self.doc.element("body", *paragraphs)

        report = self.audit(root)

        assert len(report.abstentions) == 120
        assert report.summary.incomplete == 120
        assert len(report.to_dict()["abstentions"]) == 120


@allure.feature("Audit Engine")
class TestEngineFaults(BaseAuditTest):
    # Invocation-level failures

    @allure.story("Faults")
    @allure.title("Test missing style resolver")
    def test_missing_resolver(self):
        # Test capability check for the resolver
        root = self.doc.element("body")
        with pytest.raises(TraversalUnavailableError) as excinfo:
            self.engine.run(root, resolver=None, focus=self.doc.focus)
        assert excinfo.value.capability == "style_resolver"

    @allure.story("Faults")
    @allure.title("Test missing focus controller with keyboard enabled")
    def test_missing_focus(self):
        # Test capability check for focus
        root = self.doc.element("body")
        with pytest.raises(TraversalUnavailableError) as excinfo:
            self.engine.run(root, resolver=self.doc.resolver)
        assert excinfo.value.capability == "focus_controller"

    @allure.story("Faults")
    @allure.title("Test detached root")
    def test_detached_root(self):
        # Test a root removed from the document
        root = self.doc.element("body", self.doc.element("p", text="Gone"))
        self.doc.detach(root)
        with pytest.raises(DetachedRootError):
            self.engine.run(root, resolver=self.doc.resolver, focus=self.doc.focus)

    @allure.story("Faults")
    @allure.title("Test unreadable root style")
    def test_unreadable_root(self):
        # Test no style source at all
        root = self.doc.element("body", unreadable=True)
        with pytest.raises(StyleSourceError) as excinfo:
            self.engine.run(root, resolver=self.doc.resolver, focus=self.doc.focus)
        assert excinfo.value.operation == "resolve_styles"

    @allure.story("Faults")
    @allure.title("Test unexpected host error becomes an engine fault")
    def test_host_crash(self):
        # Test wrapping and chaining of plain exceptions
        root = self.doc.element("body")
        resolver = CrashingResolver(self.doc, "renderer crashed")

        with pytest.raises(EngineFaultError) as excinfo:
            self.engine.run(root, resolver=resolver, focus=self.doc.focus)

        assert type(excinfo.value) is EngineFaultError
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert "renderer crashed" in excinfo.value.message
        assert self.engine.get_statistics() == {"audits_performed": 1, "engine_faults": 1, "abstentions": 0}

    @allure.story("Faults")
    @allure.title("Test destroyed execution context is reported as detached")
    def test_host_detached_text(self):
        # Test classification of host error text
        root = self.doc.element("body")
        resolver = CrashingResolver(self.doc, "Execution context was destroyed, most likely because of a navigation")

        with pytest.raises(DetachedRootError):
            self.engine.run(root, resolver=resolver, focus=self.doc.focus)


@allure.feature("Responsive Audits")
class TestViewportProfiles(BaseAuditTest):
    # One audit per viewport profile

    @allure.story("Profiles")
    @allure.title("Test each profile is audited independently")
    def test_run_profiles(self):
        # Test small targets only on the narrow layout
        def render(profile: ViewportProfile):
            size = 32 if profile.width < 500 else 48
            return self.doc.element(
                "body",
                self.doc.element("button", text="Buy", focus_style=OUTLINE_FOCUS, rect=(0, 0, size, size)),
            )

        viewport = InMemoryViewport(render)
        reports = self.engine.run_profiles(viewport, resolver=self.doc.resolver, focus=self.doc.focus)

        assert list(reports) == ["mobile", "tablet", "desktop"]
        assert viewport.applied == ["mobile", "tablet", "desktop"]
        assert reports["mobile"].profile == "mobile"
        assert any(v.rule == "target-size" for v in reports["mobile"].violations)
        assert not any(v.rule == "target-size" for v in reports["desktop"].violations)
        assert reports["mobile"].score < reports["desktop"].score

    @allure.story("Profiles")
    @allure.title("Test explicit profile list")
    def test_explicit_profiles(self):
        # Test profiles passed by the caller
        viewport = InMemoryViewport(lambda profile: self.doc.element("body"))
        reports = self.engine.run_profiles(
            viewport,
            resolver=self.doc.resolver,
            focus=self.doc.focus,
            profiles=[self.config.viewport("desktop")],
        )
        assert list(reports) == ["desktop"]
