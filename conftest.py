import logging
import os
import platform
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import Dict, Optional

import allure
import pytest
from dotenv import load_dotenv
from playwright.sync_api import sync_playwright

from a11y_audit import AuditContext, AuditEngine, AuditReport, ElementDescriptor, FakeDocument, TreeAccessor
from a11y_audit.patterns import get_patterns
from a11y_core import AuditConfig, load_config
from a11y_exceptions import (
    AbstentionTracker,
    ConfigurationError,
    configure_error_logging,
    create_error_context,
    log_error_with_context,
)

# Load environment variables from .env file
load_dotenv()

# Configure the package logger shared by analyzers, abstentions and engine faults
configure_error_logging(
    level=os.getenv("A11Y_LOG_LEVEL", "INFO"),
    format_type=os.getenv("A11Y_LOG_FORMAT", "json"),
)


@pytest.fixture(scope="session")
def audit_config() -> AuditConfig:
    # Session-scoped configuration from the environment; fails the session early on bad values
    try:
        return load_config()
    except ConfigurationError as e:
        correlation_id = log_error_with_context(e, e.error_context, level="error")
        raise pytest.UsageError(
            f"\n\nAudit Configuration Error [correlation_id: {correlation_id}]:\n{e.get_actionable_message()}\n\n"
            "Please check your environment configuration and try again.\n"
        )


@pytest.fixture(scope="session")
def browser_version_info() -> Dict[str, str]:
    # Fixture to get Playwright and browser version info
    try:
        playwright_version = version("playwright")
    except PackageNotFoundError:
        playwright_version = "N/A"
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch()
            browser_version = browser.version
            browser.close()
    except Exception as e:
        logging.warning(f"Could not determine browser version: {e}")
        browser_version = "N/A"
    return {
        "playwright_version": playwright_version,
        "browser_version": browser_version,
    }


@pytest.fixture(scope="session", autouse=True)
def environment_reporter(request: pytest.FixtureRequest, audit_config: AuditConfig):
    # Fixture to write environment details to a properties file for reporting
    # This runs once per session and is automatically used
    # By default, this creates environment.properties for Allure
    allure_dir = request.config.getoption("--alluredir", default=None)
    if not allure_dir or not isinstance(allure_dir, str):
        return

    ENVIRONMENT_PROPERTIES_FILENAME = "environment.properties"
    properties_file = os.path.join(allure_dir, ENVIRONMENT_PROPERTIES_FILENAME)

    # Ensure the directory exists, with permission handling
    try:
        os.makedirs(allure_dir, exist_ok=True)
    except PermissionError:
        logging.error(f"Permission denied to create report directory: {allure_dir}")
        return

    # Browser versions are only looked up when a report is actually written
    browser_version_info = request.getfixturevalue("browser_version_info")

    env_props = {
        "operating_system": f"{platform.system()} {platform.release()}",
        "python_version": sys.version.split(" ")[0],
        "playwright_version": browser_version_info["playwright_version"],
        "browser_version": browser_version_info["browser_version"],
        "audit_locale": audit_config.locale,
        "enabled_rules": ",".join(sorted(rule.value for rule in audit_config.enabled_rules)),
        "viewports": ",".join(f"{p.name}={p.width}x{p.height}" for p in audit_config.viewports),
    }

    try:
        with open(properties_file, "w") as f:
            for key, value in env_props.items():
                f.write(f"{key}={value}\n")
    except IOError as e:
        logging.error(f"Failed to write environment properties file: {e}")


# --- Allure Attachments ---


def attach_report(report: AuditReport, name: str = "Audit Report"):
    # Attach the serialized report and its headline numbers to the current allure step
    with allure.step(f"Audit {report.context}: {report.status.value} (score {report.score})"):
        allure.attach(
            report.to_json(),
            name=name,
            attachment_type=allure.attachment_type.JSON,
        )
        if report.recommendations:
            allure.attach(
                "\n".join(f"[{r.priority.value}] {r.title} ({r.affected_count})" for r in report.recommendations),
                name="Recommendations",
                attachment_type=allure.attachment_type.TEXT,
            )


# --- Base Test Class for Audit Tests ---


class BaseAuditTest:
    # Base class for audit tests to reduce boilerplate

    def setup_method(self):
        # Fresh document and engine for each test method to avoid shared caches
        self.doc = FakeDocument()
        self.config = AuditConfig()
        self.engine = AuditEngine(self.config)

    def teardown_method(self):
        self.doc = None
        self.engine = None

    def context(
        self,
        root: ElementDescriptor,
        config: Optional[AuditConfig] = None,
        scope: Optional[str] = None,
        with_focus: bool = True
    ) -> AuditContext:
        # Analyzer context over a fake tree, the same way the engine builds one
        config = config or self.config
        return AuditContext(
            accessor=TreeAccessor(root, self.doc.resolver, scope),
            config=config,
            patterns=get_patterns(config.locale),
            focus=self.doc.focus if with_focus else None,
            abstentions=AbstentionTracker(),
        )

    def audit(self, root: ElementDescriptor, engine: Optional[AuditEngine] = None, **kwargs) -> AuditReport:
        # Run the engine over a fake tree and attach the report to allure
        engine = engine or self.engine
        try:
            report = engine.run(root, resolver=self.doc.resolver, focus=self.doc.focus, **kwargs)
        except ConfigurationError as e:
            log_error_with_context(
                e,
                create_error_context(component="Audit Test", operation="audit"),
                level="warning",
            )
            raise
        attach_report(report)
        return report
