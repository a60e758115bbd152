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

"""Element discovery and interaction on top of a remote automation session."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
import contextlib
import logging
import pathlib
from typing import Self, TypeVar

from btpair.automation import remote
from btpair.utils import constants
from btpair.utils import errors
from btpair.utils import retry

_T = TypeVar('_T')
_logger = logging.getLogger(__name__)
_Strategy = remote.SelectorStrategy
_Platform = constants.Platform

# Android key codes of digits are offset by 7 from the digit value.
_ANDROID_KEYCODE_DIGIT_OFFSET = 7


def is_stale_element(error: Exception) -> bool:
  """Whether a failure was caused by the UI changing under an operation."""
  return isinstance(error, errors.TransientUIError)


def quote(text: str) -> str:
  """Quotes a literal for XPath, which has no escape sequences."""
  has_single_quote = "'" in text
  if has_single_quote and '"' in text:
    raise ValueError(
        f'Cannot look up text containing both quote kinds by xpath: {text}'
    )
  q = '"' if has_single_quote else "'"
  return f'{q}{text}{q}'


def _text_attribute(platform: constants.Platform) -> str:
  return '@text' if platform == _Platform.ANDROID else '@name'


def _a11y_attribute(platform: constants.Platform) -> str:
  return '@content-desc' if platform == _Platform.ANDROID else '@name'


def text_xpath(platform: constants.Platform, text: str) -> str:
  return f'//*[{_text_attribute(platform)}={quote(text)}]'


def partial_text_xpath(platform: constants.Platform, text: str) -> str:
  return f'//*[contains({_text_attribute(platform)}, {quote(text)})]'


def any_text_xpath(
    platform: constants.Platform,
    texts: Sequence[str] = (),
    partial_texts: Sequence[str] = (),
) -> str:
  """XPath matching any exact text in `texts` or substring in `partial_texts`."""
  attribute = _text_attribute(platform)
  comparisons = [f'{attribute}={quote(text)}' for text in texts]
  comparisons += [
      f'contains({attribute}, {quote(text)})' for text in partial_texts
  ]
  if not comparisons:
    raise ValueError('At least one text is required')
  return f'//*[{" or ".join(comparisons)}]'


def any_a11y_xpath(
    platform: constants.Platform, accessibility_ids: Sequence[str]
) -> str:
  attribute = _a11y_attribute(platform)
  comparisons = [f'{attribute}={quote(a11y)}' for a11y in accessibility_ids]
  return f'//*[{" or ".join(comparisons)}]'


class PhoneDriver:
  """Facade over a `remote.RemoteDriver` used by settings drivers.

  The facade owns the session-wide implicit wait used by every find
  operation. Use `temporary_timeout` to change it for a block; the previous
  value is restored on every exit path.

  Element handles returned here may go stale at any time. The `*_by_*`
  helpers resolve and act in one step and retry on stale elements; the
  handle-level operations do not retry.
  """

  def __init__(
      self,
      remote_driver: remote.RemoteDriver,
      platform: constants.Platform,
  ) -> None:
    self.remote = remote_driver
    self.platform = platform
    self._implicit_wait_seconds = constants.DEFAULT_IMPLICIT_WAIT_SECONDS

  @classmethod
  async def create(
      cls,
      remote_driver: remote.RemoteDriver,
      platform: constants.Platform,
      implicit_wait_seconds: float = constants.DEFAULT_IMPLICIT_WAIT_SECONDS,
  ) -> Self:
    """Creates a facade and applies the initial implicit wait."""
    phone = cls(remote_driver, platform)
    await phone.set_implicit_wait_timeout(implicit_wait_seconds)
    return phone

  @property
  def implicit_wait_seconds(self) -> float:
    return self._implicit_wait_seconds

  async def set_implicit_wait_timeout(self, seconds: float) -> None:
    await self.remote.set_implicit_timeout(seconds)
    self._implicit_wait_seconds = seconds

  @contextlib.asynccontextmanager
  async def temporary_timeout(self, seconds: float) -> AsyncGenerator[None, None]:
    """Overrides the implicit wait inside the context."""
    previous = self._implicit_wait_seconds
    try:
      await self.set_implicit_wait_timeout(seconds)
      yield
    finally:
      await self.set_implicit_wait_timeout(previous)

  async def with_temporary_timeout(
      self, seconds: float, block: Callable[[], Awaitable[_T]]
  ) -> _T:
    """Runs `block` with a different implicit wait."""
    async with self.temporary_timeout(seconds):
      return await block()

  async def wait(self, seconds: float) -> None:
    """Waits for a fixed amount of time."""
    await asyncio.sleep(seconds)

  async def find_one(
      self, strategy: remote.SelectorStrategy, value: str
  ) -> remote.ElementHandle | None:
    return await self.remote.find_element(strategy, value)

  async def find_all(
      self, strategy: remote.SelectorStrategy, value: str
  ) -> list[remote.ElementHandle]:
    return await self.remote.find_elements(strategy, value)

  async def find_within(
      self,
      scope: remote.ElementHandle,
      strategy: remote.SelectorStrategy,
      value: str,
  ) -> remote.ElementHandle | None:
    return await self.remote.find_element_from_element(scope, strategy, value)

  async def find_by_text(self, text: str) -> remote.ElementHandle | None:
    xpath = text_xpath(self.platform, text)
    if self.platform == _Platform.ANDROID:
      return await self.find_one(_Strategy.XPATH, xpath)
    # iOS may report several elements (static text and its container).
    elements = await self.find_all(_Strategy.XPATH, xpath)
    return elements[0] if elements else None

  async def find_by_includes_text(
      self, text: str
  ) -> remote.ElementHandle | None:
    xpath = partial_text_xpath(self.platform, text)
    if self.platform == _Platform.ANDROID:
      return await self.find_one(_Strategy.XPATH, xpath)
    elements = await self.find_all(_Strategy.XPATH, xpath)
    return elements[0] if elements else None

  async def find_all_by_text(self, text: str) -> list[remote.ElementHandle]:
    return await self.find_all(_Strategy.XPATH, text_xpath(self.platform, text))

  async def find_last_by_text(self, text: str) -> remote.ElementHandle | None:
    elements = await self.find_all_by_text(text)
    return elements[-1] if elements else None

  async def find_by_any_text(
      self, texts: Sequence[str], partial_texts: Sequence[str] = ()
  ) -> remote.ElementHandle | None:
    return await self.find_one(
        _Strategy.XPATH, any_text_xpath(self.platform, texts, partial_texts)
    )

  async def find_by_a11y(
      self, accessibility_id: str
  ) -> remote.ElementHandle | None:
    return await self.find_one(_Strategy.ACCESSIBILITY_ID, accessibility_id)

  async def find_last_by_a11y(
      self, accessibility_id: str
  ) -> remote.ElementHandle | None:
    elements = await self.find_all(_Strategy.ACCESSIBILITY_ID, accessibility_id)
    return elements[-1] if elements else None

  async def find_inputs(self) -> list[remote.ElementHandle]:
    if self.platform == _Platform.ANDROID:
      return await self.find_all(_Strategy.XPATH, '//android.widget.EditText')
    return await self.find_all(
        _Strategy.XPATH,
        '//XCUIElementTypeTextField | //XCUIElementTypeSecureTextField',
    )

  async def find_input_by_a11y(
      self, accessibility_id: str, secure: bool = False
  ) -> remote.ElementHandle | None:
    if self.platform == _Platform.ANDROID:
      # Text can only be sent to the EditText inside the pressable.
      pressable = await self.find_by_a11y(accessibility_id)
      if pressable is None:
        raise errors.NotFoundError(
            f'Input {accessibility_id!r} not found, cannot enter text'
        )
      return await self.find_within(
          pressable, _Strategy.XPATH, './/android.widget.EditText'
      )
    input_type = (
        'XCUIElementTypeSecureTextField' if secure else 'XCUIElementTypeTextField'
    )
    return await self.find_one(
        _Strategy.XPATH, f'//{input_type}[@name={quote(accessibility_id)}]'
    )

  async def click(self, element: remote.ElementHandle) -> None:
    await self.remote.click(element)

  async def type_text(self, element: remote.ElementHandle, text: str) -> None:
    await self.remote.send_keys(element, text)

  async def clear_text(self, element: remote.ElementHandle) -> None:
    await self.remote.clear(element)
    if self.platform == _Platform.IOS:
      # A line feed presses RETURN, leaving the field.
      await self.type_text(element, '\n')

  async def enter(self, element: remote.ElementHandle, text: str) -> None:
    """Enters text followed by RETURN in a single command."""
    if self.platform == _Platform.IOS:
      text += '\n'
    await self.type_text(element, text)

  async def read_attribute(
      self, element: remote.ElementHandle, name: str
  ) -> str | None:
    return await self.remote.get_attribute(element, name)

  async def is_enabled(self, element: remote.ElementHandle) -> bool:
    return await self.remote.is_enabled(element)

  async def is_displayed(self, element: remote.ElementHandle) -> bool:
    return await self.remote.is_displayed(element)

  async def is_checked(self, element: remote.ElementHandle) -> bool:
    if self.platform == _Platform.IOS:
      return await self.read_attribute(element, 'value') == '1'
    return await self.read_attribute(element, 'checked') == 'true'

  async def text_of(self, element: remote.ElementHandle | None) -> str | None:
    """Returns the text of an element, or None if it is absent or stale."""
    if element is None:
      return None
    attribute = 'text' if self.platform == _Platform.ANDROID else 'value'
    try:
      return await self.read_attribute(element, attribute)
    except errors.StaleElementError:
      _logger.debug('text_of: stale element, returning None')
      return None

  async def text_of_element(
      self, strategy: remote.SelectorStrategy, value: str
  ) -> str | None:
    async def read() -> str | None:
      return await self.text_of(await self.find_one(strategy, value))

    return await retry.retry_if(
        read, is_stale_element, description=f'text_of_element({value!r})'
    )

  async def _click_found(
      self,
      finder: Callable[[], Awaitable[remote.ElementHandle | None]],
      description: str,
  ) -> None:
    async def click() -> None:
      element = await finder()
      if element is None:
        raise errors.NotFoundError(f'{description} not found, cannot click')
      await self.click(element)

    await retry.retry_if(
        click, is_stale_element, description=f'click {description}'
    )

  async def click_by_text(self, text: str) -> None:
    """Clicks the first element with the given text."""
    await self._click_found(lambda: self.find_by_text(text), repr(text))

  async def click_last_by_text(self, text: str) -> None:
    await self._click_found(lambda: self.find_last_by_text(text), repr(text))

  async def click_by_any_text(self, texts: Sequence[str]) -> None:
    await self._click_found(lambda: self.find_by_any_text(texts), repr(texts))

  async def click_by_a11y(self, accessibility_id: str) -> None:
    await self._click_found(
        lambda: self.find_by_a11y(accessibility_id), repr(accessibility_id)
    )

  async def click_by_xpath(self, xpath: str) -> None:
    await self._click_found(
        lambda: self.find_one(_Strategy.XPATH, xpath), repr(xpath)
    )

  async def click_by_id(self, resource_id: str) -> None:
    await self._click_found(
        lambda: self.find_one(_Strategy.ID, resource_id), repr(resource_id)
    )

  async def click_by_text_and_index(self, text: str, index: int) -> None:
    async def find() -> remote.ElementHandle | None:
      elements = await self.find_all_by_text(text)
      return elements[index] if -len(elements) <= index < len(elements) else None

    await self._click_found(find, f'{text!r} at index {index}')

  async def enter_by_a11y(
      self, accessibility_id: str, text: str, secure: bool = False
  ) -> None:
    async def enter() -> None:
      element = await self.find_input_by_a11y(accessibility_id, secure)
      if element is None:
        raise errors.NotFoundError(f'Input {accessibility_id!r} not found')
      await self.enter(element, text)

    await retry.retry_if(
        enter, is_stale_element, description=f'enter_by_a11y({accessibility_id!r})'
    )

  async def drag(
      self,
      start: remote.Point,
      end: remote.Point,
      duration_seconds: float = 0.5,
  ) -> None:
    await self.remote.drag(start, end, duration_seconds)

  async def scroll_down(self) -> None:
    """Swipes up by half the screen height."""
    size = await self.remote.get_window_size()
    x = size.width / 2
    await self.drag(
        remote.Point(x, 0.75 * size.height), remote.Point(x, 0.25 * size.height)
    )

  async def scroll_up(self) -> None:
    """Swipes down by half the screen height."""
    size = await self.remote.get_window_size()
    x = size.width / 2
    await self.drag(
        remote.Point(x, 0.25 * size.height), remote.Point(x, 0.75 * size.height)
    )

  async def scroll_to_a11y(self, accessibility_id: str) -> None:
    """Scrolls down until an element is found.

    Raises:
      NotFoundError: The element is still absent after the maximum number of
        scrolls.
    """
    for _ in range(constants.MAX_SCROLL_ATTEMPTS):
      if await self.find_by_a11y(accessibility_id):
        return
      await self.scroll_down()
    if not await self.find_by_a11y(accessibility_id):
      raise errors.NotFoundError(f'Failed to scroll to {accessibility_id!r}')

  async def send_digits(self, digits: str) -> None:
    """Sends digits through the numeric keyboard, which must be open."""
    for digit in digits:
      if not digit.isdigit():
        raise ValueError(f'Not a digit: {digit!r}')
      if self.platform == _Platform.ANDROID:
        await self.remote.press_keycode(
            int(digit) + _ANDROID_KEYCODE_DIGIT_OFFSET
        )
      else:
        await self.click_by_a11y(digit)
      # Digits may be received out of order without a pause.
      await self.wait(constants.DIGIT_DELAY_SECONDS)

  async def activate_app(self, app_id: str) -> None:
    await self.remote.activate_app(app_id)

  async def terminate_app(self, app_id: str) -> bool:
    return await self.remote.terminate_app(app_id)

  async def capture_diagnostics(
      self, label: str, output_dir: str | pathlib.Path
  ) -> None:
    """Writes a screenshot and the UI tree as `<label>.png` and `<label>.xml`.

    Failures are logged and never raised.
    """
    try:
      output_path = pathlib.Path(output_dir)
      output_path.mkdir(parents=True, exist_ok=True)
      screenshot = await retry.retry_if(
          self.remote.take_screenshot, is_stale_element
      )
      page_source = await retry.retry_if(
          self.remote.get_page_source, is_stale_element
      )
      (output_path / f'{label}.png').write_bytes(screenshot)
      (output_path / f'{label}.xml').write_text(page_source, encoding='utf-8')
      _logger.info('Diagnostics %s written to %s', label, output_path)
    except Exception:  # pylint: disable=broad-exception-caught
      _logger.exception('Failed to capture diagnostics %s', label)
