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

"""Capabilities of a remote device automation session."""

from __future__ import annotations

import dataclasses
import enum
from typing import Protocol


class SelectorStrategy(enum.StrEnum):
  """WebDriver locator strategies supported by Appium drivers."""

  ACCESSIBILITY_ID = 'accessibility id'
  XPATH = 'xpath'
  CLASS_NAME = 'class name'
  ID = 'id'


@dataclasses.dataclass(frozen=True)
class ElementHandle:
  """Opaque reference to a located element.

  A handle is only valid until the UI remounts the element. Operations on an
  invalidated handle raise `errors.StaleElementError`, so callers re-resolve
  handles instead of keeping them across suspension points.
  """

  element_id: str


@dataclasses.dataclass(frozen=True)
class Point:
  x: float
  y: float


@dataclasses.dataclass(frozen=True)
class WindowSize:
  width: int
  height: int


class RemoteDriver(Protocol):
  """Transport to a device automation server.

  Find operations poll until the implicit wait elapses and return None or an
  empty list when nothing matches. Operations taking a handle raise
  `errors.StaleElementError` for invalidated handles.
  """

  async def find_element(
      self, strategy: SelectorStrategy, value: str
  ) -> ElementHandle | None:
    ...

  async def find_elements(
      self, strategy: SelectorStrategy, value: str
  ) -> list[ElementHandle]:
    ...

  async def find_element_from_element(
      self, scope: ElementHandle, strategy: SelectorStrategy, value: str
  ) -> ElementHandle | None:
    """Raises `errors.StaleScopeError` when `scope` is stale."""
    ...

  async def click(self, element: ElementHandle) -> None:
    ...

  async def send_keys(self, element: ElementHandle, text: str) -> None:
    ...

  async def clear(self, element: ElementHandle) -> None:
    ...

  async def get_attribute(
      self, element: ElementHandle, name: str
  ) -> str | None:
    ...

  async def is_enabled(self, element: ElementHandle) -> bool:
    ...

  async def is_displayed(self, element: ElementHandle) -> bool:
    ...

  async def set_implicit_timeout(self, seconds: float) -> None:
    ...

  async def get_window_size(self) -> WindowSize:
    ...

  async def drag(
      self, start: Point, end: Point, duration_seconds: float
  ) -> None:
    ...

  async def press_keycode(self, keycode: int) -> None:
    ...

  async def activate_app(self, app_id: str) -> None:
    ...

  async def terminate_app(self, app_id: str) -> bool:
    ...

  async def take_screenshot(self) -> bytes:
    ...

  async def get_page_source(self) -> str:
    ...

  async def quit(self) -> None:
    ...
