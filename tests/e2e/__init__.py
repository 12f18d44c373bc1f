"""
Website E2E Tests Package.

This package contains end-to-end tests for the personal website using
Playwright and pytest-asyncio.

Test Modules:
    - test_navigation: Profile and page links
    - test_contact_form: Contact form field validation
    - test_form_submission: Contact form email delivery (reads the mailbox)
    - test_projects: Project filter, search and source-code links

Page Objects:
    - pages/: Page Object Model classes for reusable selectors

Running Tests:
    # Run all E2E tests against the public deployment
    E2E_ENABLED=true pytest tests/e2e/

    # Run against the local compose deployment with WebKit
    E2E_ENABLED=true SITE_TARGET=local E2E_BROWSER=webkit pytest tests/e2e/

    # Run in headed mode with slow motion
    E2E_ENABLED=true E2E_HEADLESS=false E2E_SLOW_MO=500 pytest tests/e2e/

Environment Variables:
    E2E_ENABLED: Run browser scenarios (default: false)
    E2E_BROWSER: chromium, firefox or webkit (default: chromium)
    E2E_HEADLESS: Run in headless mode (default: true)
    E2E_SLOW_MO: Slow motion delay in ms (default: 0)
    E2E_TIMEOUT: Default timeout in ms (default: 40000)
    SITE_TARGET: remote or local (default: remote)
    CLIENT_ID, CLIENT_SECRET, REFRESH_TOKEN: Mailbox OAuth secrets
"""
