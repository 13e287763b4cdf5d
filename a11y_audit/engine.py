# a11y_audit/engine.py
"""
Audit engine.

Runs every enabled rule family over one rendered tree and aggregates the
results into an immutable AuditReport. A run is a single pass: analyzers are
called in a fixed order, per-element failures to read style become
abstentions, and anything that makes the whole tree unauditable is raised as
an engine fault after being logged with its context.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from a11y_core.config import AuditConfig, RuleFamily, ViewportProfile
from a11y_exceptions import (
    A11yAuditError,
    AbstentionTracker,
    ConfigurationError,
    DetachedRootError,
    StyleSourceError,
    StyleUnavailableError,
    TraversalUnavailableError,
    convert_to_engine_fault,
    create_error_context,
    get_error_correlation_id,
    log_audit_event,
    log_error_with_context,
)

from .announcement import audit_announcements, summarize_announcements
from .aria import analyze_structure, audit_aria
from .contrast import audit_color_only, audit_contrast, summarize_contrast
from .core import AuditContext, Issue
from .keyboard import (
    analyze_keyboard,
    audit_focus_management,
    audit_shortcuts,
    is_focusable,
    keyboard_candidates,
    probe_focus_indicator,
    validate_tab_order,
)
from .live_region import LiveRegionMonitor, audit_live_regions
from .motion import analyze_target_size, audit_motion, target_candidates
from .patterns import get_patterns
from .results import AuditReport, VisualAccessibilityResult
from .scorer import (
    audit_status,
    build_recommendations,
    collect_violations,
    element_score,
    overall_score,
    summarize,
    wcag_level,
)
from .selectors import SelectorSyntaxError, parse_selector
from .services import FocusController, MutationWatcher, StyleResolver, ViewportController
from .tree import ElementDescriptor, TreeAccessor


class AuditEngine:
    """
    Entry point for audits.

    Example:
        engine = AuditEngine(load_config())
        report = engine.run(root, resolver=host.resolver, focus=host.focus)
        print(report.score, report.wcag_level.value)
    """

    def __init__(self, config: Optional[AuditConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration; defaults enable every rule family

        Raises:
            ConfigurationError: If the configured locale has no pattern table
        """
        self.config = config or AuditConfig()
        self.patterns = get_patterns(self.config.locale)
        self.logger = logging.getLogger(__name__)

        self._stats = {
            "audits_performed": 0,
            "engine_faults": 0,
            "abstentions": 0,
        }

    def get_statistics(self) -> Dict[str, int]:
        return dict(self._stats)

    # Public API

    def run(
        self,
        root: ElementDescriptor,
        resolver: StyleResolver,
        focus: Optional[FocusController] = None,
        scope: Optional[str] = None,
        context: str = "document",
        page_url: Optional[str] = None,
        viewport: Optional[ViewportProfile] = None
    ) -> AuditReport:
        """
        Audit one rendered tree.

        Args:
            root: Root of the rendered tree
            resolver: Computed style source for the tree
            focus: Focus controller; required when the keyboard family is enabled
            scope: Optional selector restricting which subtrees are audited
            context: Label stored in the report (page name, component name)
            page_url: URL of the audited page, if any
            viewport: Profile the tree was rendered at, if any

        Returns:
            AuditReport for the tree

        Raises:
            DetachedRootError: If the root is no longer attached
            StyleSourceError: If no computed style can be read at all
            TraversalUnavailableError: If an enabled family needs a missing capability
            ConfigurationError: If the scope selector cannot be parsed
        """
        start_time = time.time()
        correlation_id = get_error_correlation_id()
        self._stats["audits_performed"] += 1

        try:
            self._preflight(root, resolver, focus, scope, correlation_id)
            ctx = AuditContext(
                accessor=TreeAccessor(root, resolver, scope),
                config=self.config,
                patterns=self.patterns,
                focus=focus,
                abstentions=AbstentionTracker(),
                correlation_id=correlation_id,
                page_url=page_url,
                viewport=viewport,
            )
            report = self._audit(ctx, context, start_time)
        except A11yAuditError as e:
            self._stats["engine_faults"] += 1
            e.error_context.correlation_id = correlation_id
            log_error_with_context(e, e.error_context, context_label=context)
            raise
        except Exception as e:
            self._stats["engine_faults"] += 1
            fault = convert_to_engine_fault(
                e,
                create_error_context(correlation_id, component="Audit Engine", operation="run"),
            )
            log_error_with_context(fault, fault.error_context, context_label=context)
            raise fault from e

        self._stats["abstentions"] += len(report.abstentions)
        logging.info(
            f"Accessibility audit completed: {report.status.value} "
            f"(score: {report.score}, level: {report.wcag_level.value}, "
            f"violations: {len(report.violations)}, abstentions: {len(report.abstentions)}) "
            f"in {report.execution_time_ms:.1f}ms [{report.audit_id}]"
        )
        log_audit_event(
            correlation_id,
            "audit_completed",
            level="debug",
            audit_id=report.audit_id,
            context=context,
            profile=report.profile,
            score=report.score,
            abstentions_by_check=ctx.abstentions.summary(),
        )
        return report

    def run_profiles(
        self,
        viewport: ViewportController,
        resolver: StyleResolver,
        focus: Optional[FocusController] = None,
        scope: Optional[str] = None,
        context: str = "document",
        page_url: Optional[str] = None,
        profiles: Optional[Sequence[ViewportProfile]] = None
    ) -> Dict[str, AuditReport]:
        """
        One independent audit per viewport profile, keyed by profile name.

        The controller applies each profile and hands back the root rendered
        at that size; the resolver must read styles of the current rendering.
        """
        reports: Dict[str, AuditReport] = {}
        for profile in profiles or self.config.viewports:
            root = viewport.apply(profile)
            reports[profile.name] = self.run(
                root,
                resolver,
                focus=focus,
                scope=scope,
                context=context,
                page_url=page_url,
                viewport=profile,
            )
        return reports

    def monitor(self, watcher: MutationWatcher) -> LiveRegionMonitor:
        """Live region monitor sized from configuration."""
        return LiveRegionMonitor(watcher, max_events=self.config.live_region_buffer)

    # Internals

    def _preflight(
        self,
        root: Optional[ElementDescriptor],
        resolver: Optional[StyleResolver],
        focus: Optional[FocusController],
        scope: Optional[str],
        correlation_id: str
    ):
        if resolver is None:
            raise TraversalUnavailableError(
                "style_resolver",
                error_context=create_error_context(correlation_id, component="Audit Engine"),
            )
        if root is None or not resolver.is_attached(root):
            raise DetachedRootError(
                selector=root.tag if root is not None else None,
                error_context=create_error_context(correlation_id, component="Audit Engine"),
            )
        try:
            resolver.computed_style(root)
        except StyleUnavailableError as e:
            raise StyleSourceError(
                message=f"Computed style of the root is unreadable: {e.message}",
                error_context=create_error_context(correlation_id, component="Audit Engine"),
                cause=e,
            )
        if focus is None and self.config.is_enabled(RuleFamily.KEYBOARD):
            raise TraversalUnavailableError(
                "focus_controller",
                error_context=create_error_context(correlation_id, component="Audit Engine"),
            )
        if scope:
            try:
                parse_selector(scope)
            except SelectorSyntaxError as e:
                raise ConfigurationError(
                    message=f"Invalid scope selector: {e}",
                    config_key="scope",
                    expected_format="Comma separated compound selectors without combinators",
                    cause=e,
                )

    def _audit(self, ctx: AuditContext, context: str, start_time: float) -> AuditReport:
        accessor = ctx.accessor
        bundles: Dict[str, VisualAccessibilityResult] = {}
        order: Dict[str, int] = {}

        def bundle(element: ElementDescriptor) -> VisualAccessibilityResult:
            selector = accessor.selector_for(element)
            if selector not in bundles:
                bundles[selector] = VisualAccessibilityResult(selector=selector)
                order[selector] = accessor.document_index(element)
            return bundles[selector]

        findings: List[Tuple[str, Sequence[Issue]]] = []
        root_selector = accessor.selector_for(accessor.root)
        sections = {}

        if ctx.is_enabled(RuleFamily.CONTRAST):
            contrast = audit_contrast(ctx)
            color_only = audit_color_only(ctx)
            by_selector = {accessor.selector_for(element): element for element in accessor.elements}
            for result in contrast:
                bundle(by_selector[result.selector]).contrast = result
            for result in color_only:
                bundle(by_selector[result.selector]).color_only = result
            sections["contrast"] = tuple(contrast)
            sections["color_only"] = tuple(color_only)
            findings.extend((r.selector, r.issues) for r in contrast)
            findings.extend((r.selector, r.issues) for r in color_only)

        if ctx.is_enabled(RuleFamily.KEYBOARD):
            keyboard = []
            for element in keyboard_candidates(ctx):
                result = analyze_keyboard(element, ctx)
                keyboard.append(result)
                bundle(element).keyboard = result
                findings.append((result.selector, result.issues))
                if is_focusable(element, ctx):
                    indicator = probe_focus_indicator(element, ctx)
                    if indicator is not None:
                        bundle(element).focus_indicator = indicator
                        findings.append((indicator.selector, indicator.issues))
            tab_order = validate_tab_order(ctx)
            focus_management = audit_focus_management(ctx)
            shortcuts = audit_shortcuts(ctx)
            findings.append((root_selector, tab_order.issues))
            findings.extend((r.component, r.issues) for r in focus_management)
            findings.extend((r.selector, r.issues) for r in shortcuts)
            sections.update(
                keyboard=tuple(keyboard),
                tab_order=tab_order,
                focus_management=tuple(focus_management),
                shortcuts=tuple(shortcuts),
            )

        if ctx.is_enabled(RuleFamily.ARIA):
            aria = audit_aria(ctx)
            for result in aria:
                # ARIA facts ride along on elements other families already bundled
                if result.selector in bundles:
                    bundles[result.selector].aria = result
            structure = analyze_structure(ctx)
            findings.extend((r.selector, r.issues) for r in aria)
            findings.append((root_selector, structure.issues))
            sections.update(aria=tuple(aria), structure=structure)

        if ctx.is_enabled(RuleFamily.MOTION):
            motion = audit_motion(ctx)
            by_selector = {accessor.selector_for(element): element for element in accessor.elements}
            for result in motion:
                bundle(by_selector[result.selector]).motion = result
            targets = target_candidates(ctx)
            for element in targets:
                result = analyze_target_size(element, ctx, targets)
                bundle(element).target_size = result
                findings.append((result.selector, result.issues))
            findings.extend((r.selector, r.issues) for r in motion)
            sections["motion"] = tuple(motion)

        announcements = ()
        if ctx.is_enabled(RuleFamily.ANNOUNCEMENT):
            announcements = tuple(audit_announcements(ctx))
            findings.extend((r.selector, r.issues) for r in announcements)
            sections["announcements"] = announcements

        if ctx.is_enabled(RuleFamily.LIVE_REGIONS):
            live_regions = audit_live_regions(ctx)
            findings.extend((r.selector, r.issues) for r in live_regions)
            sections["live_regions"] = tuple(live_regions)

        visual = sorted(bundles.values(), key=lambda b: order[b.selector])
        for result in visual:
            result.issues = [
                issue
                for part in (
                    result.contrast, result.focus_indicator, result.keyboard, result.aria,
                    result.color_only, result.motion, result.target_size,
                )
                if part is not None
                for issue in part.issues
            ]
            result.score = element_score(result)

        violations = collect_violations(findings)
        abstentions = ctx.abstentions.records
        contrast_results = sections.get("contrast", ())
        score = overall_score(contrast_results, visual)

        return AuditReport(
            audit_id=ctx.audit_id,
            context=context,
            timestamp=ctx.timestamp.isoformat(),
            score=score,
            wcag_level=wcag_level(violations),
            status=audit_status(violations),
            summary=summarize(
                total_elements=len(accessor.elements),
                visual=visual,
                violations=violations,
                incomplete=len(abstentions),
                contrast=summarize_contrast(list(contrast_results)),
                announcements=summarize_announcements(list(announcements)),
            ),
            profile=ctx.viewport.name if ctx.viewport else None,
            url=ctx.page_url,
            execution_time_ms=(time.time() - start_time) * 1000,
            visual=tuple(visual),
            violations=tuple(violations),
            abstentions=tuple(abstentions),
            recommendations=tuple(build_recommendations(violations, self.config.max_recommendations)),
            **sections,
        )
