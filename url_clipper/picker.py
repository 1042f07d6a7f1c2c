"""Interactive element picker running inside a Playwright-controlled page.

``build_picker_script`` returns JavaScript that is evaluated in the page. It
carries its own copy of the locator algorithm from ``locators.py`` because the
page cannot import Python code. Results travel back through two global slots
that ``PickerSession`` polls:

* ``window.__URL_CLIPPER_LAST_HOVER__`` updated when the pointer enters a new element
* ``window.__URL_CLIPPER_LAST_PICK__`` updated on click (``pick``) and double
  click (``confirm``, which also disables picking)
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Optional, Protocol

from playwright.async_api import ConsoleMessage, Error as PlaywrightError, Page, async_playwright

from .config import POLL_INTERVAL_SECONDS
from .locators import CSS_MAX_DEPTH, XPATH_MAX_DEPTH
from .models import Locator, PickState

logger = logging.getLogger("url_clipper")

HOVER_SLOT = "window.__URL_CLIPPER_LAST_HOVER__ || null"
PICK_SLOT = "window.__URL_CLIPPER_LAST_PICK__ || null"
CONSOLE_TAG = "[url-clipper]"

_PICKER_TEMPLATE = r"""
() => {
  const enable = __ENABLE__;

  if (window.__URL_CLIPPER_PICKER_INSTALLED__) {
    window.__URL_CLIPPER_PICKER_ENABLED__ = enable;
    console.log('[url-clipper][picker] toggle enabled=', enable);
    return { ok: true, installed: true, enabled: enable };
  }

  window.__URL_CLIPPER_PICKER_INSTALLED__ = true;
  window.__URL_CLIPPER_PICKER_ENABLED__ = enable;

  const CSS_MAX_DEPTH = __CSS_MAX_DEPTH__;
  const XPATH_MAX_DEPTH = __XPATH_MAX_DEPTH__;

  const overlay = document.createElement('div');
  overlay.id = '__url_clipper_overlay__';
  overlay.style.position = 'fixed';
  overlay.style.pointerEvents = 'none';
  overlay.style.zIndex = '2147483647';
  overlay.style.border = '2px solid #e5534b';
  overlay.style.background = 'rgba(229,83,75,0.10)';
  overlay.style.display = 'none';
  document.documentElement.appendChild(overlay);

  const cssEscape = (s) => {
    if (window.CSS && typeof CSS.escape === 'function') return CSS.escape(s);
    return String(s).replace(/[^a-zA-Z0-9_-]/g, '\\$&');
  };

  const xpathLiteral = (v) => {
    if (v.indexOf('"') === -1) return '"' + v + '"';
    if (v.indexOf("'") === -1) return "'" + v + "'";
    return 'concat(' + v.split('"').map((p) => '"' + p + '"').join(", '\"', ") + ')';
  };

  const nameTest = (name) =>
    /^[A-Za-z_][A-Za-z0-9_.\-]*$/.test(name) ? name : '*[name()=' + xpathLiteral(name) + ']';

  const elementId = (el) => {
    const value = el.getAttribute('id') || '';
    return value.trim() ? value : '';
  };

  const classTokens = (el) =>
    (el.getAttribute('class') || '').trim().split(/\s+/).filter(Boolean);

  const sameTagSiblings = (el) => {
    const parent = el.parentNode;
    if (!parent || !parent.children) return [el];
    return Array.from(parent.children).filter((c) => c.tagName === el.tagName);
  };

  const buildCssPath = (el) => {
    if (!el || el.nodeType !== 1) return '';
    const ownId = elementId(el);
    if (ownId) return '#' + cssEscape(ownId);
    if (el === document.documentElement) return 'html';

    const parts = [];
    let cur = el;
    while (cur && cur.nodeType === 1 && cur !== document.documentElement) {
      const curId = elementId(cur);
      if (curId) {
        parts.unshift('#' + cssEscape(curId));
        break;
      }
      let part = cssEscape(cur.localName.toLowerCase());
      const cls = classTokens(cur).slice(0, 2);
      if (cls.length) part += '.' + cls.map(cssEscape).join('.');
      const siblings = sameTagSiblings(cur);
      if (siblings.length > 1) part += ':nth-of-type(' + (siblings.indexOf(cur) + 1) + ')';
      parts.unshift(part);
      cur = cur.parentElement;
      if (parts.length >= CSS_MAX_DEPTH) break;
    }
    return parts.join(' > ');
  };

  const buildXPath = (el) => {
    if (!el || el.nodeType !== 1) return '';
    const ownId = elementId(el);
    if (ownId) return '//*[@id=' + xpathLiteral(ownId) + ']';

    const parts = [];
    let cur = el;
    let truncated = false;
    while (cur && cur.nodeType === 1) {
      const parent = cur.parentNode;
      if (!parent) break;
      const siblings = sameTagSiblings(cur);
      parts.unshift('/' + nameTest(cur.localName.toLowerCase()) + '[' + (siblings.indexOf(cur) + 1) + ']');
      cur = parent;
      if (parts.length >= XPATH_MAX_DEPTH) {
        truncated = cur.nodeType !== 9;
        break;
      }
    }
    const path = parts.join('');
    return truncated ? '/' + path : path;
  };

  window.__URL_CLIPPER_LOCATORS__ = { buildCssPath, buildXPath };

  const highlight = (el) => {
    const rect = el.getBoundingClientRect();
    overlay.style.left = rect.left + 'px';
    overlay.style.top = rect.top + 'px';
    overlay.style.width = rect.width + 'px';
    overlay.style.height = rect.height + 'px';
    overlay.style.display = 'block';
  };

  const targetOf = (e) => {
    const el = document.elementFromPoint(e.clientX, e.clientY);
    if (!el || el === overlay || el.nodeType !== 1) return null;
    return el;
  };

  let lastHoverEl = null;

  const onMove = (e) => {
    if (!window.__URL_CLIPPER_PICKER_ENABLED__) {
      overlay.style.display = 'none';
      return;
    }
    const el = targetOf(e);
    if (!el) return;
    highlight(el);
    if (el === lastHoverEl) return;
    lastHoverEl = el;
    const css = buildCssPath(el);
    const xpath = buildXPath(el);
    window.__URL_CLIPPER_LAST_HOVER__ = { css, xpath, ts: Date.now(), reason: 'hover' };
  };

  const publishPick = (el, reason) => {
    const css = buildCssPath(el);
    const xpath = buildXPath(el);
    window.__URL_CLIPPER_LAST_PICK__ = { css, xpath, ts: Date.now(), reason };
    console.log('[url-clipper][' + reason + ']', css, xpath);
  };

  const onClick = (e) => {
    if (!window.__URL_CLIPPER_PICKER_ENABLED__) return;
    const el = targetOf(e);
    if (!el) return;
    e.preventDefault();
    e.stopPropagation();
    publishPick(el, 'pick');
  };

  const onDblClick = (e) => {
    if (!window.__URL_CLIPPER_PICKER_ENABLED__) return;
    const el = targetOf(e);
    if (!el) return;
    e.preventDefault();
    e.stopPropagation();
    publishPick(el, 'confirm');
    window.__URL_CLIPPER_PICKER_ENABLED__ = false;
    overlay.style.display = 'none';
    console.log('[url-clipper][picker] disabled by double click');
  };

  document.addEventListener('mousemove', onMove, true);
  document.addEventListener('click', onClick, true);
  document.addEventListener('dblclick', onDblClick, true);

  console.log('[url-clipper][picker] installed, enabled=', enable);
  return { ok: true, installed: true, enabled: enable };
}
"""


def build_picker_script(enable: bool = True) -> str:
    """Return a JS arrow function that installs or toggles the picker when called.

    Playwright's ``evaluate`` invokes function sources directly.
    """
    return (
        _PICKER_TEMPLATE.replace("__ENABLE__", json.dumps(bool(enable)))
        .replace("__CSS_MAX_DEPTH__", str(CSS_MAX_DEPTH))
        .replace("__XPATH_MAX_DEPTH__", str(XPATH_MAX_DEPTH))
        .strip()
    )


class ScriptHost(Protocol):
    async def evaluate(self, expression: str) -> Any: ...


class PickerSession:
    """Host side of the picker: injects the script and polls its slots."""

    def __init__(self, page: ScriptHost, poll_interval: float = POLL_INTERVAL_SECONDS) -> None:
        self._page = page
        self.poll_interval = poll_interval
        self.enabled = True
        self.last_hover_ts = 0.0
        self.last_pick_ts = 0.0
        self.hover: Optional[PickState] = None
        self.pick: Optional[PickState] = None
        self.current: Optional[PickState] = None
        self._done = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def confirmed(self) -> bool:
        return self.pick is not None and self.pick.confirmed

    async def inject(self, enable: bool = True) -> Any:
        result = await self._page.evaluate(build_picker_script(enable))
        logger.debug("Picker injected: %s", result)
        return result

    async def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        await self.inject(enabled)
        if enabled:
            self.start_polling()
        else:
            await self.stop_polling()

    async def poll_once(self) -> bool:
        """Read both slots once; returns True when a newer value was accepted."""
        changed = False

        hover = PickState.from_payload(await self._page.evaluate(HOVER_SLOT), "hover")
        if hover is not None and hover.ts > self.last_hover_ts:
            self.last_hover_ts = hover.ts
            self.hover = self.current = hover
            changed = True
            logger.debug("Hover: css=%s xpath=%s", hover.css, hover.xpath)

        pick = PickState.from_payload(await self._page.evaluate(PICK_SLOT), "pick")
        if pick is not None and pick.ts > self.last_pick_ts:
            self.last_pick_ts = pick.ts
            self.pick = self.current = pick
            changed = True
            logger.debug("Pick (%s): css=%s xpath=%s", pick.reason, pick.css, pick.xpath)
            if pick.confirmed:
                self._done.set()
        return changed

    async def _poll_loop(self) -> None:
        while self.enabled and not self._done.is_set():
            try:
                await self.poll_once()
            except PlaywrightError as exc:
                logger.debug("Stopping picker polling: %s", exc)
                self._done.set()
                return
            await asyncio.sleep(self.poll_interval)

    def start_polling(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._poll_loop())

    async def stop_polling(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def close(self) -> None:
        """Mark the session finished without a confirmed pick (e.g. page closed)."""
        self.enabled = False
        self._done.set()

    async def wait_for_confirmation(self, timeout: Optional[float] = None) -> Optional[Locator]:
        """Poll until a double-click confirmation, close, or *timeout*."""
        self.start_polling()
        try:
            await asyncio.wait_for(self._done.wait(), timeout)
        except asyncio.TimeoutError:
            logger.info("No element confirmed within %.0fs", timeout or 0)
            return None
        finally:
            await self.stop_polling()
        if not self.confirmed:
            return None
        return self.pick.locator


def _forward_console(message: ConsoleMessage) -> None:
    if CONSOLE_TAG in message.text:
        logger.debug("page: %s", message.text)


async def pick_locator(
    url: str,
    timeout: Optional[float] = None,
    headless: bool = False,
    navigation_timeout: float = 30.0,
) -> Optional[Locator]:
    """Open *url* in Chromium and return the locator the user double-clicks."""
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        page: Page = await browser.new_page()
        page.set_default_navigation_timeout(navigation_timeout * 1000)
        session = PickerSession(page)

        async def _reinject(_page: Page) -> None:
            try:
                await session.inject(session.enabled)
            except PlaywrightError as exc:
                logger.debug("Could not re-inject picker: %s", exc)

        page.on("console", _forward_console)
        page.on("load", _reinject)
        page.on("close", lambda _page: session.close())
        try:
            logger.info("Loading %s", url)
            await page.goto(url, wait_until="domcontentloaded")
            await session.inject(True)
            logger.info("Double-click an element in the browser window to select it")
            return await session.wait_for_confirmation(timeout)
        finally:
            await browser.close()
