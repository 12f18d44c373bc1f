"""
Pytest fixtures for Playwright E2E tests.

This module provides fixtures for browser instances, page objects, the
readiness gate that runs before every scenario, and the mailbox
credential minted once per test session.

Browser scenarios hit the deployed site and a real mailbox, so they only
run when ``E2E_ENABLED=true``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from formprobe.config import Settings, get_settings
from formprobe.credentials import Credential, credential_from_settings
from formprobe.gmail import GmailSearch
from formprobe.mailbox import MailboxVerifier
from formprobe.readiness import ReadinessPoller

from .pages import HomePage, ProjectsPage

E2E_DIR = Path(__file__).resolve().parent


# =============================================================================
# Collection
# =============================================================================

def pytest_configure(config):
    config.addinivalue_line("markers", "e2e: browser scenario against the deployed site")
    config.addinivalue_line("markers", "mailbox: scenario that reads the relay mailbox")


def pytest_collection_modifyitems(config, items):
    """Mark browser scenarios and skip them unless E2E runs are enabled."""
    enabled = get_settings().browser.enabled
    skip = pytest.mark.skip(reason="set E2E_ENABLED=true to run browser scenarios")
    for item in items:
        if E2E_DIR not in Path(item.path).resolve().parents:
            continue
        item.add_marker(pytest.mark.e2e)
        if not enabled:
            item.add_marker(skip)


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture(scope="session")
def settings() -> Settings:
    """Settings for the whole run."""
    return get_settings()


@pytest.fixture(scope="session")
def base_url(settings: Settings) -> str:
    """Base URL of the selected deployment."""
    return settings.site.base_url


@dataclass(frozen=True)
class BrowserCapabilities:
    """Engine behaviour the scenarios depend on."""

    name: str
    # WebKit submits forms even when a minlength constraint fails
    blocks_invalid_submit: bool


@pytest.fixture(scope="session")
def browser_capabilities(settings: Settings) -> BrowserCapabilities:
    name = settings.browser.browser
    return BrowserCapabilities(name=name, blocks_invalid_submit=name != "webkit")


# =============================================================================
# Mailbox Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def mailbox_credential(settings: Settings) -> Credential:
    """
    Access token for the relay mailbox, minted once per session.

    Skips mailbox scenarios when the OAuth secrets are not configured.
    """
    client_id = settings.oauth.client_id
    if client_id is None:
        pytest.skip("CLIENT_ID, CLIENT_SECRET and REFRESH_TOKEN are required")
    return credential_from_settings(settings.oauth)


@pytest_asyncio.fixture
async def mailbox() -> AsyncGenerator[MailboxVerifier, None]:
    """Mailbox verifier backed by the Gmail API."""
    async with GmailSearch() as search:
        yield MailboxVerifier(search)


# =============================================================================
# Playwright Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def playwright() -> AsyncGenerator[Playwright, None]:
    """Create a Playwright instance."""
    async with async_playwright() as pw:
        yield pw


@pytest_asyncio.fixture
async def browser(playwright: Playwright, settings: Settings) -> AsyncGenerator[Browser, None]:
    """Launch the configured browser engine."""
    browser_type = getattr(playwright, settings.browser.browser)
    browser = await browser_type.launch(
        headless=settings.browser.headless,
        slow_mo=settings.browser.slow_mo,
    )
    yield browser
    await browser.close()


@pytest_asyncio.fixture
async def context(
    browser: Browser, settings: Settings, base_url: str
) -> AsyncGenerator[BrowserContext, None]:
    """
    Create a new browser context for each test.

    This provides isolation between tests with separate cookies,
    storage, and other browser state.
    """
    context = await browser.new_context(
        viewport={"width": 1280, "height": 720},
        base_url=base_url,
        locale="en-US",
        accept_downloads=True,
    )
    context.set_default_timeout(settings.browser.timeout)
    yield context
    await context.close()


@pytest_asyncio.fixture
async def site_ready(settings: Settings, base_url: str) -> None:
    """Wait for the site to answer before a scenario touches it."""
    poller = ReadinessPoller.for_site(
        base_url,
        settings.readiness.path,
        settings.readiness.timeout_ms,
        settings.readiness.interval_ms,
    )
    await poller.wait()


@pytest_asyncio.fixture
async def page(
    context: BrowserContext, site_ready: None, settings: Settings
) -> AsyncGenerator[Page, None]:
    """Create a new page once the site is ready."""
    page = await context.new_page()
    page.set_default_navigation_timeout(settings.browser.timeout)
    yield page
    await page.close()


# =============================================================================
# Page Object Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def home_page(page: Page, base_url: str) -> HomePage:
    """HomePage opened at the site root."""
    home = HomePage(page, base_url)
    await home.goto()
    return home


@pytest_asyncio.fixture
async def projects_page(page: Page, base_url: str) -> ProjectsPage:
    """ProjectsPage opened and reloaded."""
    projects = ProjectsPage(page, base_url)
    await projects.goto()
    return projects
