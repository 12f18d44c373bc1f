"""
Page Object Model classes for the website E2E tests.

These classes provide reusable selectors and methods for interacting
with the pages of the site under test.
"""

from .base_page import BasePage
from .home_page import ContactSubmission, HomePage, PostRecorder
from .projects_page import ProjectsPage

__all__ = [
    "BasePage",
    "ContactSubmission",
    "HomePage",
    "PostRecorder",
    "ProjectsPage",
]
