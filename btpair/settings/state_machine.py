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

"""Bluetooth pairing flows on a phone's settings app.

Every vendor variant runs the same sequence of steps; the differences are
carried by a `profiles.VendorProfile`. Retries are composed explicitly in
each operation and are part of its contract. Transient UI errors never leave
this module; any other failure is raised to the caller unchanged.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

import pyee.asyncio

from btpair.automation import phone_driver
from btpair.automation import remote
from btpair.settings import profiles
from btpair.utils import constants
from btpair.utils import errors
from btpair.utils import retry

_Capability = constants.Capability
_State = constants.PairingState
_XPATH = remote.SelectorStrategy.XPATH

_SCROLL_POLICY = retry.RetryPolicy(
    max_attempts=constants.MAX_SCROLL_ATTEMPTS,
    delay_sec=constants.SETTLE_DELAY_SECONDS,
    log_exception=False,
)


@dataclasses.dataclass(frozen=True)
class PairingOptions:
  """Caller expectations about a pairing attempt.

  Attributes:
    pincode: Pin to enter when the device asks for one.
    expect_pincode: Whether the device must ask for a pin.
  """

  pincode: str | None = None
  expect_pincode: bool = False


class PairingStateMachine(pyee.asyncio.AsyncIOEventEmitter):
  """Drives the Bluetooth screen of a settings app.

  Emits `state_changed(old_state, new_state)` on every transition.

  Operations outside the capabilities of the profile raise
  `errors.UnimplementedOperationError`.
  """

  EVENT_STATE_CHANGED: ClassVar[str] = 'state_changed'
  logger: ClassVar[logging.Logger] = logging.getLogger(__name__)

  def __init__(
      self, phone: phone_driver.PhoneDriver, profile: profiles.VendorProfile
  ) -> None:
    super().__init__()
    self.phone = phone
    self.profile = profile
    self._state = _State.SETTINGS_CLOSED

  @property
  def state(self) -> constants.PairingState:
    return self._state

  def _transition(self, new_state: constants.PairingState) -> None:
    old_state = self._state
    if old_state == new_state:
      return
    self._state = new_state
    self.logger.debug('State %s -> %s', old_state.name, new_state.name)
    self.emit(self.EVENT_STATE_CHANGED, old_state, new_state)

  def _require(self, capability: constants.Capability) -> None:
    if not self.profile.supports(capability):
      raise errors.UnimplementedOperationError(
          f'{capability.name} is not supported on {self.profile.name} '
          f'{self.profile.os_version}'
      )

  async def activate_settings(self) -> None:
    self._require(_Capability.SETTINGS_APP)
    self.logger.info('[DUT] Activate settings.')
    await self.phone.activate_app(self.profile.settings_app_id)
    if self.profile.activation_settle_seconds:
      await self.phone.wait(self.profile.activation_settle_seconds)
    self._transition(_State.SETTINGS_OPEN)

  async def kill_settings(self) -> None:
    self._require(_Capability.SETTINGS_APP)
    self.logger.info('[DUT] Kill settings.')
    if not await self.phone.terminate_app(self.profile.settings_app_id):
      self.logger.debug('Settings app was not running.')
    self._transition(_State.SETTINGS_CLOSED)

  async def _click_text_scrolling(self, text: str) -> None:
    """Clicks a menu entry, scrolling down while it is off-screen."""
    await retry.retry_with_intermediate_step(
        lambda: self.phone.click_by_text(text),
        self.phone.scroll_down,
        _SCROLL_POLICY,
        description=f'click {text!r}',
    )

  async def _navigate_up(self) -> None:
    await self.phone.click_by_xpath(self.profile.navigate_up_xpath)

  async def navigate_to_bluetooth_screen(self) -> None:
    self._require(_Capability.NAVIGATION)
    self.logger.info('[DUT] Navigate to Bluetooth screen.')
    if self.profile.scroll_up_before_navigation:
      await self.phone.scroll_up()
    for text in self.profile.navigation_path:
      await self._click_text_scrolling(text)
    if self.profile.navigation_settle_seconds:
      await self.phone.wait(self.profile.navigation_settle_seconds)
    self._transition(_State.BLUETOOTH_SCREEN_OPEN)

  async def _toggle_radio(self, enabled: bool) -> None:
    switch = self.profile.radio_switch
    if enabled:
      current_xpath, target_xpath = switch.disabled_xpath, switch.enabled_xpath
    else:
      current_xpath, target_xpath = switch.enabled_xpath, switch.disabled_xpath

    async def toggle_if_needed() -> bool:
      any_state = f'{switch.enabled_xpath} | {switch.disabled_xpath}'
      if await self.phone.find_one(_XPATH, any_state) is None:
        raise errors.NotFoundError('Bluetooth switch not found')
      # The switch is rendered, so its state is known without waiting.
      async with self.phone.temporary_timeout(0):
        current = await self.phone.find_one(_XPATH, current_xpath)
      if current is None:
        return False
      if switch.toggle_xpath is not None:
        current = await self.phone.find_one(_XPATH, switch.toggle_xpath)
        if current is None:
          raise errors.NotFoundError('Bluetooth toggle not found')
      await self.phone.click(current)
      return True

    toggled = await retry.retry_if(
        toggle_if_needed,
        phone_driver.is_stale_element,
        description='toggle Bluetooth',
    )
    if not toggled:
      self.logger.info('[DUT] Bluetooth already %s.', _on_off(enabled))
      return
    if await self.phone.find_one(_XPATH, target_xpath) is None:
      raise errors.AssertionFailure(
          f'Failed to assert that Bluetooth is {_on_off(enabled)}'
      )

  async def _set_radio(self, enabled: bool) -> None:
    entered = 0
    try:
      for text in self.profile.radio_page_path:
        await self._click_text_scrolling(text)
        entered += 1
      await self._toggle_radio(enabled)
    finally:
      for _ in range(entered):
        await self._navigate_up()

  async def _no_device_connecting(self) -> bool:
    assert self.profile.connecting_text is not None
    async with self.phone.temporary_timeout(0):
      return await self.phone.find_by_text(self.profile.connecting_text) is None

  async def ensure_radio_enabled(self) -> None:
    """Enables Bluetooth unless it is already enabled.

    Raises:
      AssertionFailure: The switch did not show the enabled state after
        toggling.
      ConditionTimeoutError: Reconnecting to previous devices did not finish.
    """
    self._require(_Capability.RADIO)
    self.logger.info('[DUT] Ensure Bluetooth enabled.')
    await self._set_radio(True)
    if self.profile.connecting_text:
      # Enabling the radio reconnects previous devices, which blocks pairing.
      await retry.retry_until(
          self._no_device_connecting, description='no device connecting'
      )
    self._transition(_State.RADIO_ENABLED)

  async def ensure_radio_disabled(self) -> None:
    self._require(_Capability.RADIO)
    self.logger.info('[DUT] Ensure Bluetooth disabled.')
    await self._set_radio(False)
    self._transition(_State.RADIO_DISABLED)

  async def ensure_radio_reenabled(self) -> None:
    """Power-cycles the radio to recover a hung Bluetooth stack."""
    await self.ensure_radio_disabled()
    await self.ensure_radio_enabled()
    if self.profile.refresh_xpath:
      try:
        await self.phone.click_by_xpath(self.profile.refresh_xpath)
      except Exception:  # pylint: disable=broad-exception-caught
        self.logger.exception('[DUT] Failed to refresh device list.')

  async def find_device_details_button(
      self, label: str
  ) -> remote.ElementHandle | None:
    """Finds the details control of a paired device, if any."""
    self._require(_Capability.PAIRING)
    return await self.phone.find_one(
        _XPATH, self.profile.details_button_xpath(label)
    )

  async def _click_device_entry(self, label: str) -> None:
    async def click() -> None:
      entry = await self.phone.find_by_includes_text(label)
      if entry is None:
        raise errors.NotFoundError(f'Device {label!r} not found')
      await self.phone.click(entry)

    # The device list re-renders while scanning.
    await retry.retry_if(
        click, phone_driver.is_stale_element, description=f'click {label!r}'
    )

  async def _open_device_details(self, label: str) -> None:
    async def click() -> None:
      button = await self.find_device_details_button(label)
      if button is None:
        raise errors.NotFoundError(f'Details of {label!r} not found')
      await self.phone.click(button)

    await retry.retry_if(
        click,
        phone_driver.is_stale_element,
        description=f'open details of {label!r}',
    )

  async def _recover_pairing_request(self) -> None:
    if self.profile.pair_new_device_text:
      await self._navigate_up()
    await self.ensure_radio_reenabled()

  async def _request_pairing(self, label: str) -> None:
    """Clicks the device entry to request pairing.

    Layers, innermost first: retry on stale elements, scroll down while the
    device is off-screen, and re-enable the radio between failed requests.
    Each layer owns its own attempt budget.
    """
    profile = self.profile

    async def click_device_visible() -> None:
      await retry.retry_with_intermediate_step(
          lambda: self._click_device_entry(label),
          self.phone.scroll_down,
          _SCROLL_POLICY,
          description=f'scroll to {label!r}',
      )

    async def request() -> None:
      if profile.pair_new_device_text:
        await self.phone.click_by_text(profile.pair_new_device_text)
      if profile.scroll_to_device:
        await click_device_visible()
      else:
        await self._click_device_entry(label)

    if not profile.reenable_radio_on_request_failure:
      await request()
      return
    await retry.retry_with_intermediate_step(
        request,
        self._recover_pairing_request,
        profile.request_pairing_policy,
        description=f'request pairing with {label!r}',
    )

  async def _answer_pairing_prompt(
      self, label: str, options: PairingOptions
  ) -> None:
    """Handles a pin prompt or a pair confirmation, whichever shows up."""
    profile = self.profile
    prompts = [profile.pin_prompt_text]
    if profile.pair_confirm_text:
      prompts.append(profile.pair_confirm_text)

    async def answer() -> None:
      async with self.phone.temporary_timeout(profile.prompt_timeout_seconds):
        shown = await self.phone.find_by_any_text(
            prompts, profile.failure_texts
        )
      if shown is None:
        if options.expect_pincode:
          raise errors.ExpectedPincodeError(label)
        return
      async with self.phone.temporary_timeout(0):
        pin_prompt = await self.phone.find_by_text(profile.pin_prompt_text)
      if pin_prompt is not None:
        pincode = options.pincode or profile.default_pincode
        if not pincode:
          raise errors.PincodeRequiredError(label)
        inputs = await self.phone.find_inputs()
        if not inputs:
          raise errors.NotFoundError('Pin input not found')
        self.logger.info('[DUT] Enter pincode.')
        await self.phone.type_text(inputs[0], pincode)
        await self.phone.click_by_text(profile.pin_confirm_text)
        return
      if options.expect_pincode:
        raise errors.ExpectedPincodeError(label)
      if not profile.pair_confirm_text:
        return
      async with self.phone.temporary_timeout(0):
        confirm = await self.phone.find_by_text(profile.pair_confirm_text)
      # Otherwise a failure indicator is shown.
      if confirm is not None:
        self.logger.info('[DUT] Confirm pairing.')
        await self.phone.click(confirm)

    await retry.retry_if(
        answer,
        phone_driver.is_stale_element,
        description=f'answer pairing prompt of {label!r}',
    )

  async def _raise_if_pairing_rejected(self, label: str) -> None:
    profile = self.profile
    if not profile.failure_texts:
      return
    async with self.phone.temporary_timeout(profile.failure_timeout_seconds):
      failure = await self.phone.find_by_any_text((), profile.failure_texts)
    if failure is None:
      return
    self.logger.info('[DUT] Pairing with %s rejected.', label)
    self._transition(_State.PAIRING_FAILED)
    if profile.dismiss_failure_text:
      # A random failure may not show a dialog.
      try:
        await self.phone.click_by_text(profile.dismiss_failure_text)
      except Exception:  # pylint: disable=broad-exception-caught
        self.logger.exception('[DUT] Failed to dismiss pairing failure.')
    raise errors.PairingFailure(label)

  async def pair_device(
      self, label: str, options: PairingOptions | None = None
  ) -> None:
    """Pairs with a device from the Bluetooth screen.

    Args:
      label: Substring of the name shown for the device.
      options: Pin to use and whether a pin prompt is expected.

    Raises:
      PairingFailure: The device rejected pairing.
      PincodeRequiredError: A pin was asked for, but none is available.
      ExpectedPincodeError: A pin was expected, but not asked for.
      AssertionFailure: Pairing could not be confirmed.
    """
    self._require(_Capability.PAIRING)
    options = options or PairingOptions()
    profile = self.profile
    self.logger.info('[DUT] Pair with %s.', label)
    self._transition(_State.PAIRING_IN_FLIGHT)
    try:
      await self._request_pairing(label)
      if profile.pairing_mode_hint and await self.phone.find_by_includes_text(
          profile.pairing_mode_hint
      ):
        # Pairing randomly fails right after the device was turned on.
        self.logger.info('[DUT] Device not ready, restart Bluetooth.')
        await self.ensure_radio_reenabled()
        self._transition(_State.PAIRING_IN_FLIGHT)
        await self._request_pairing(label)
      await self._answer_pairing_prompt(label, options)
      await self._raise_if_pairing_rejected(label)
      if await self.find_device_details_button(label) is None:
        raise errors.AssertionFailure(
            f'Failed to assert that {label} is now paired'
        )
    except BaseException:
      self._transition(_State.PAIRING_FAILED)
      raise
    self._transition(_State.PAIRED)

    if profile.reconnect_after_pairing and not await self.is_device_connected(
        label
    ):
      self.logger.info('[DUT] Paired but not connected, connect manually.')
      await self.connect_device(label)

  async def is_device_connected(self, label: str) -> bool:
    """Whether a paired device is connected. Does not change the UI state."""
    self._require(_Capability.CONNECTION)
    profile = self.profile
    if profile.connection_probe == profiles.ConnectionProbe.ADJACENT_TEXT:
      return (
          await self.phone.find_one(
              _XPATH, profile.connected_indicator_xpath(label)
          )
          is not None
      )
    await self._open_device_details(label)
    try:
      return (
          await self.phone.find_by_text(profile.details_connected_text)
          is not None
      )
    finally:
      await self._navigate_up()

  async def connect_device(self, label: str) -> None:
    self._require(_Capability.CONNECTION)
    self.logger.info('[DUT] Connect %s.', label)
    await self._click_device_entry(label)
    if self.profile.confirm_connection_after_connect:
      await retry.retry_until(
          lambda: self.is_device_connected(label),
          description=f'{label!r} connected',
      )
    self._transition(_State.CONNECTED)

  async def disconnect_device(self, label: str) -> None:
    self._require(_Capability.CONNECTION)
    profile = self.profile
    self.logger.info('[DUT] Disconnect %s.', label)
    if profile.disconnect_method == profiles.DisconnectMethod.DETAILS_SCREEN:
      await self._open_device_details(label)
      try:
        if profile.disconnect_confirm_text:
          await self.phone.click_by_text(profile.disconnect_confirm_text)
      finally:
        await self._navigate_up()
    else:
      await self._click_device_entry(label)
      if profile.disconnect_confirm_text:
        await self.phone.click_by_text(profile.disconnect_confirm_text)
    self._transition(_State.DISCONNECTED)

  async def ensure_device_unpaired(self, label: str) -> None:
    """Unpairs a device unless it is not paired."""
    self._require(_Capability.UNPAIRING)
    profile = self.profile

    async def unpair() -> bool:
      button = await self.find_device_details_button(label)
      if button is None:
        return False
      await self.phone.click(button)
      if profile.unpair_settle_seconds:
        await self.phone.wait(profile.unpair_settle_seconds)
      for text in profile.unpair_texts:
        await self.phone.click_by_text(text)
      return True

    if await retry.retry_if(
        unpair, phone_driver.is_stale_element, description=f'unpair {label!r}'
    ):
      self.logger.info('[DUT] Unpaired %s.', label)
    else:
      self.logger.info('[DUT] %s is not paired.', label)
    self._transition(_State.UNPAIRED)

  async def ensure_all_devices_unpaired(self) -> int:
    """Unpairs every paired device.

    Returns:
      The number of devices unpaired.

    Raises:
      AssertionFailure: a device is still listed after being unpaired.
    """
    self._require(_Capability.UNPAIRING)
    # An empty label matches the details control of any device.
    any_details_xpath = self.profile.details_button_xpath('')
    remaining = len(await self.phone.find_all(_XPATH, any_details_xpath))
    count = 0
    while remaining:
      await self.ensure_device_unpaired('')
      count += 1
      left = len(await self.phone.find_all(_XPATH, any_details_xpath))
      if left >= remaining:
        raise errors.AssertionFailure(
            f'Failed to unpair a device, {left} still paired.'
        )
      remaining = left
    self.logger.info('[DUT] Unpaired %d devices.', count)
    self._transition(_State.UNPAIRED)
    return count

  async def allow_permission(self, permission: constants.Permission) -> None:
    self._require(_Capability.PERMISSIONS)
    self.logger.info('[DUT] Allow %s permission.', permission.name)
    await self.phone.click_by_id(self.profile.permission_button_id(permission))


def _on_off(enabled: bool) -> str:
  return 'enabled' if enabled else 'disabled'
