#  Copyright 2025 Google LLC
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

"""`remote.RemoteDriver` backed by an Appium session."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
import logging
from typing import Any, Self, TypeVar

from appium import webdriver
from appium.options.common import AppiumOptions
from appium.webdriver.webelement import WebElement
from selenium.common import exceptions as selenium_exceptions

from btpair.automation import remote
from btpair.utils import constants
from btpair.utils import errors

_T = TypeVar('_T')
_logger = logging.getLogger(__name__)


class AppiumRemoteDriver:
  """Runs blocking Appium client calls in worker threads.

  Selenium's stale element exceptions are translated to
  `errors.StaleElementError`, and "no such element" to an absent result.
  """

  def __init__(
      self, driver: webdriver.Remote, platform: constants.Platform
  ) -> None:
    self.driver = driver
    self.platform = platform

  @classmethod
  async def connect(
      cls,
      url: str,
      capabilities: Mapping[str, Any],
      platform: constants.Platform,
  ) -> Self:
    """Starts a new Appium session."""
    options = AppiumOptions()
    options.load_capabilities(dict(capabilities))
    _logger.info('Connecting to Appium server %s', url)
    driver = await asyncio.to_thread(
        webdriver.Remote, command_executor=url, options=options
    )
    return cls(driver, platform)

  async def _call(self, func: Callable[..., _T], *args: Any) -> _T:
    try:
      return await asyncio.to_thread(func, *args)
    except selenium_exceptions.StaleElementReferenceException as e:
      raise errors.StaleElementError(e.msg) from e

  def _element(self, element: remote.ElementHandle) -> WebElement:
    return self.driver.create_web_element(element.element_id)

  async def find_element(
      self, strategy: remote.SelectorStrategy, value: str
  ) -> remote.ElementHandle | None:
    try:
      web_element = await self._call(
          self.driver.find_element, strategy.value, value
      )
    except selenium_exceptions.NoSuchElementException:
      return None
    return remote.ElementHandle(web_element.id)

  async def find_elements(
      self, strategy: remote.SelectorStrategy, value: str
  ) -> list[remote.ElementHandle]:
    web_elements = await self._call(
        self.driver.find_elements, strategy.value, value
    )
    return [remote.ElementHandle(e.id) for e in web_elements]

  async def find_element_from_element(
      self,
      scope: remote.ElementHandle,
      strategy: remote.SelectorStrategy,
      value: str,
  ) -> remote.ElementHandle | None:
    try:
      web_element = await self._call(
          self._element(scope).find_element, strategy.value, value
      )
    except selenium_exceptions.NoSuchElementException:
      return None
    except errors.StaleElementError as e:
      raise errors.StaleScopeError(str(e)) from e
    return remote.ElementHandle(web_element.id)

  async def click(self, element: remote.ElementHandle) -> None:
    await self._call(self._element(element).click)

  async def send_keys(self, element: remote.ElementHandle, text: str) -> None:
    await self._call(self._element(element).send_keys, text)

  async def clear(self, element: remote.ElementHandle) -> None:
    await self._call(self._element(element).clear)

  async def get_attribute(
      self, element: remote.ElementHandle, name: str
  ) -> str | None:
    return await self._call(self._element(element).get_attribute, name)

  async def is_enabled(self, element: remote.ElementHandle) -> bool:
    return await self._call(self._element(element).is_enabled)

  async def is_displayed(self, element: remote.ElementHandle) -> bool:
    return await self._call(self._element(element).is_displayed)

  async def set_implicit_timeout(self, seconds: float) -> None:
    await self._call(self.driver.implicitly_wait, seconds)

  async def get_window_size(self) -> remote.WindowSize:
    size = await self._call(self.driver.get_window_size)
    return remote.WindowSize(width=size['width'], height=size['height'])

  async def drag(
      self, start: remote.Point, end: remote.Point, duration_seconds: float
  ) -> None:
    if self.platform == constants.Platform.IOS:
      # W3C touch actions are unreliable for drags on XCUITest.
      await self._call(
          self.driver.execute_script,
          'mobile: dragFromToForDuration',
          {
              'duration': duration_seconds,
              'fromX': start.x,
              'fromY': start.y,
              'toX': end.x,
              'toY': end.y,
          },
      )
      return
    await self._call(
        self.driver.swipe,
        int(start.x),
        int(start.y),
        int(end.x),
        int(end.y),
        int(duration_seconds * 1000),
    )

  async def press_keycode(self, keycode: int) -> None:
    await self._call(self.driver.press_keycode, keycode)

  async def activate_app(self, app_id: str) -> None:
    await self._call(self.driver.activate_app, app_id)

  async def terminate_app(self, app_id: str) -> bool:
    return await self._call(self.driver.terminate_app, app_id)

  async def take_screenshot(self) -> bytes:
    return await self._call(self.driver.get_screenshot_as_png)

  async def get_page_source(self) -> str:
    return await self._call(lambda: self.driver.page_source)

  async def quit(self) -> None:
    await self._call(self.driver.quit)
