"""Generic page steps built on the scenario session page."""

from __future__ import annotations

import logging
import re

from behave import given, then, when
from behave.api.async_step import async_run_until_complete

from scenario_browser import StepError

logger = logging.getLogger(__name__)

STEP_TIMEOUT_SECONDS = 60


@given('the user opens "{url}"')
@when('the user opens "{url}"')
@async_run_until_complete(async_context="lifecycle", timeout=STEP_TIMEOUT_SECONDS)
async def step_open_url(context, url):
    await context.page.goto(url, wait_until="domcontentloaded")
    logger.info("Navigated to %s", context.page.url)


@then('the page title contains "{text}"')
@async_run_until_complete(async_context="lifecycle", timeout=STEP_TIMEOUT_SECONDS)
async def step_title_contains(context, text):
    title = await context.page.title()
    if text not in title:
        raise StepError(f'Expected page title to contain "{text}", got "{title}"')
    logger.info('Page title contains "%s"', text)


@then('the page URL matches "{pattern}"')
def step_url_matches(context, pattern):
    url = context.page.url
    if not re.search(pattern, url):
        raise StepError(f'Expected URL to match "{pattern}", got "{url}"')


@then('the element "{selector}" is visible')
@async_run_until_complete(async_context="lifecycle", timeout=STEP_TIMEOUT_SECONDS)
async def step_element_visible(context, selector):
    await context.page.locator(selector).first.wait_for(state="visible")
