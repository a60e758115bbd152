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

import asyncio
from collections.abc import Callable
import dataclasses
import unittest
from unittest import mock

from absl.testing import absltest
from packaging import version

from btpair.automation import phone_driver
from btpair.automation import remote
from btpair.settings import profiles
from btpair.settings import state_machine
from btpair.tests.unit import fake_remote
from btpair.utils import constants
from btpair.utils import errors

_State = constants.PairingState
_LABEL = 'Soundboks-ABC123'


def _v(version_string: str) -> version.Version:
  return version.Version(version_string)


class PairingStateMachineTest(unittest.IsolatedAsyncioTestCase):

  async def asyncSetUp(self):
    await super().asyncSetUp()
    self.sleep = self.enterContext(
        mock.patch.object(asyncio, 'sleep', new_callable=mock.AsyncMock)
    )
    self.remote = fake_remote.FakeRemoteDriver()
    self.transitions: list[constants.PairingState] = []

  async def _machine(
      self, profile: profiles.VendorProfile
  ) -> state_machine.PairingStateMachine:
    phone = await phone_driver.PhoneDriver.create(self.remote, profile.platform)
    machine = state_machine.PairingStateMachine(phone, profile)
    machine.on(
        machine.EVENT_STATE_CHANGED,
        lambda old, new: self.transitions.append(new),
    )
    return machine

  def _add_radio(
      self,
      profile: profiles.VendorProfile,
      enabled: bool,
      on_enabled: Callable[[], object] | None = None,
      on_disabled: Callable[[], object] | None = None,
  ) -> dict[str, bool]:
    """Renders a Bluetooth switch which flips when clicked."""
    switch = profile.radio_switch
    state = {'enabled': enabled}
    rendered: list[str] = []

    def flip():
      state['enabled'] = not state['enabled']
      render()
      callback = on_enabled if state['enabled'] else on_disabled
      if callback is not None:
        callback()

    def render():
      for element_id in rendered:
        self.remote.remove(element_id)
      rendered.clear()
      if switch.toggle_xpath is not None:
        rendered.append(
            self.remote.add_xpath(switch.toggle_xpath, flip, name='switch')
        )
      xpath = switch.enabled_xpath if state['enabled'] else switch.disabled_xpath
      rendered.append(
          self.remote.add_xpath(
              xpath,
              None if switch.toggle_xpath is not None else flip,
              name='switch',
          )
      )

    render()
    return state

  def _show_paired(self, profile: profiles.VendorProfile, connected: bool):
    self.remote.add_xpath(profile.details_button_xpath(_LABEL), name='details')
    if connected and profile.connected_indicator_template:
      self.remote.add_xpath(
          profile.connected_indicator_xpath(_LABEL), name='connected'
      )

  def _actions(self) -> list[str]:
    return [e for e in self.remote.events if not e.startswith('find ')]

  async def test_activate_and_kill_settings(self):
    machine = await self._machine(profiles.stock_android(_v('12')))

    await machine.activate_settings()
    await machine.kill_settings()
    # Killing again is a no-op.
    await machine.kill_settings()

    self.assertEqual(
        self._actions(),
        [
            'activate com.android.settings',
            'terminate com.android.settings',
            'terminate com.android.settings',
        ],
    )
    self.sleep.assert_awaited_once_with(constants.SETTLE_DELAY_SECONDS)
    self.assertEqual(
        self.transitions, [_State.SETTINGS_OPEN, _State.SETTINGS_CLOSED]
    )

  async def test_navigate_scrolls_to_off_screen_entry(self):
    revealed = []

    def reveal(start, end):
      if end.y < start.y and not revealed:
        revealed.append(self.remote.add_text('Bluetooth'))

    self.remote.on_drag = reveal
    self.remote.add_text('Connections')
    machine = await self._machine(profiles.samsung(_v('11')))

    await machine.navigate_to_bluetooth_screen()

    self.assertEqual(
        self._actions(),
        ['scroll up', 'click Connections', 'scroll down', 'click Bluetooth'],
    )
    self.assertEqual(machine.state, _State.BLUETOOTH_SCREEN_OPEN)

  async def test_ensure_radio_enabled_is_noop_when_enabled(self):
    profile = profiles.samsung(_v('11'))
    self._add_radio(profile, enabled=True)
    machine = await self._machine(profile)

    await machine.ensure_radio_enabled()

    self.assertEqual(self.remote.clicks, [])
    self.assertEqual(machine.state, _State.RADIO_ENABLED)
    self.assertEqual(self.remote.implicit_timeout, 7.5)

  async def test_ensure_radio_enabled_toggles_switch(self):
    profile = profiles.samsung(_v('11'))
    radio = self._add_radio(profile, enabled=False)
    machine = await self._machine(profile)

    await machine.ensure_radio_enabled()

    self.assertEqual(self.remote.clicks, ['switch'])
    self.assertTrue(radio['enabled'])

  async def test_ensure_radio_disabled_toggles_switch(self):
    profile = profiles.lg(_v('9'))
    radio = self._add_radio(profile, enabled=True)
    machine = await self._machine(profile)

    await machine.ensure_radio_disabled()

    self.assertEqual(self.remote.clicks, ['switch'])
    self.assertFalse(radio['enabled'])
    self.assertEqual(machine.state, _State.RADIO_DISABLED)

  async def test_ensure_radio_enabled_with_separate_toggle(self):
    profile = profiles.oneplus(_v('11'))
    radio = self._add_radio(profile, enabled=False)
    machine = await self._machine(profile)

    await machine.ensure_radio_enabled()

    self.assertEqual(self.remote.clicks, ['switch'])
    self.assertTrue(radio['enabled'])

  async def test_ensure_radio_enabled_fails_when_state_not_confirmed(self):
    profile = profiles.samsung(_v('11'))
    self.remote.add_xpath(profile.radio_switch.disabled_xpath, name='switch')
    machine = await self._machine(profile)

    with self.assertRaisesRegex(errors.AssertionFailure, 'enabled'):
      await machine.ensure_radio_enabled()

  async def test_ensure_radio_enabled_retries_stale_switch(self):
    profile = profiles.samsung(_v('11'))
    self._add_radio(profile, enabled=False)
    switch_id = next(iter(self.remote.elements))
    self.remote.set_stale(switch_id)
    machine = await self._machine(profile)

    await machine.ensure_radio_enabled()

    self.assertEqual(self.remote.clicks, ['switch'])

  async def test_ensure_radio_enabled_waits_for_reconnections(self):
    profile = profiles.huawei(_v('9'))
    self._add_radio(profile, enabled=True)
    connecting = self.remote.add_text('Connecting...')
    self.remote.hide_after_finds(connecting, 2)
    machine = await self._machine(profile)

    await machine.ensure_radio_enabled()

    self.assertFalse(self.remote.has(connecting))
    self.assertEqual(self.sleep.await_count, 2)
    self.assertEqual(machine.state, _State.RADIO_ENABLED)

  async def test_radio_toggled_from_preferences_page(self):
    profile = profiles.stock_android(_v('12'))
    self.remote.add_text('Connection preferences')
    self.remote.add_text('Bluetooth')
    self.remote.add_xpath(profile.navigate_up_xpath, name='Navigate up')
    self._add_radio(profile, enabled=False)
    machine = await self._machine(profile)

    await machine.ensure_radio_enabled()

    self.assertEqual(
        self.remote.clicks,
        [
            'Connection preferences',
            'Bluetooth',
            'switch',
            'Navigate up',
            'Navigate up',
        ],
    )

  async def test_preferences_page_is_left_when_switch_missing(self):
    profile = profiles.stock_android(_v('12'))
    self.remote.add_text('Connection preferences')
    self.remote.add_text('Bluetooth')
    self.remote.add_xpath(profile.navigate_up_xpath, name='Navigate up')
    machine = await self._machine(profile)

    with self.assertRaises(errors.NotFoundError):
      await machine.ensure_radio_enabled()

    self.assertEqual(
        self.remote.clicks,
        ['Connection preferences', 'Bluetooth', 'Navigate up', 'Navigate up'],
    )

  async def test_reenable_refreshes_device_list(self):
    profile = profiles.lg(_v('9'))
    self._add_radio(profile, enabled=True)
    self.remote.add_xpath(profile.refresh_xpath, name='Refresh')
    machine = await self._machine(profile)

    await machine.ensure_radio_reenabled()

    self.assertEqual(self.remote.clicks, ['switch', 'switch', 'Refresh'])
    self.assertEqual(
        self.transitions, [_State.RADIO_DISABLED, _State.RADIO_ENABLED]
    )

  async def test_reenable_ignores_missing_refresh_button(self):
    profile = profiles.lg(_v('9'))
    self._add_radio(profile, enabled=True)
    machine = await self._machine(profile)

    with self.assertLogs(level='ERROR'):
      await machine.ensure_radio_reenabled()

    self.assertEqual(machine.state, _State.RADIO_ENABLED)

  async def test_pair_device_enters_pincode(self):
    profile = profiles.huawei(_v('9'))
    pin_input = []

    def confirm():
      self.remote.remove_text('Usually 0000 or 1234')
      self.remote.remove_text('OK')
      self._show_paired(profile, connected=True)

    def show_pin_prompt():
      self.remote.add_text('Usually 0000 or 1234')
      pin_input.append(
          self.remote.add_xpath('//android.widget.EditText', name='pin')
      )
      self.remote.add_text('OK', on_click=confirm)

    self.remote.add_text(_LABEL, on_click=show_pin_prompt)
    machine = await self._machine(profile)

    await machine.pair_device(
        _LABEL, state_machine.PairingOptions(pincode='1234')
    )

    self.assertEqual(
        self._actions(), [f'click {_LABEL}', 'type 1234', 'click OK']
    )
    self.assertEqual(self.remote.typed, {pin_input[0]: '1234'})
    self.assertIsNotNone(await machine.find_device_details_button(_LABEL))
    self.assertEqual(
        self.transitions, [_State.PAIRING_IN_FLIGHT, _State.PAIRED]
    )
    self.assertEqual(self.remote.implicit_timeout, 7.5)

  async def test_pair_device_fails_when_pin_required(self):
    profile = profiles.huawei(_v('9'))
    self.remote.add_text(
        _LABEL,
        on_click=lambda: self.remote.add_text('Usually 0000 or 1234'),
    )
    machine = await self._machine(profile)

    with self.assertRaises(errors.PincodeRequiredError) as cm:
      await machine.pair_device(_LABEL)

    self.assertEqual(cm.exception.device_label, _LABEL)
    self.assertEqual(machine.state, _State.PAIRING_FAILED)

  async def test_pair_device_uses_default_pincode(self):
    profile = profiles.samsung(_v('11'))
    pin_input = []

    def show_pin_prompt():
      self.remote.add_text('Usually 0000 or 1234')
      pin_input.append(
          self.remote.add_xpath('//android.widget.EditText', name='pin')
      )
      self.remote.add_text(
          'OK', on_click=lambda: self._show_paired(profile, connected=True)
      )

    self.remote.add_text(_LABEL, on_click=show_pin_prompt)
    machine = await self._machine(profile)

    await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.typed, {pin_input[0]: '0000'})
    self.assertEqual(machine.state, _State.PAIRED)

  async def test_pair_device_confirm_button_depends_on_version(self):
    for os_version, confirm_text in (('10', 'OK'), ('11', 'Pair')):
      with self.subTest(os_version=os_version):
        self.remote = fake_remote.FakeRemoteDriver()
        profile = profiles.samsung(_v(os_version))
        self.remote.add_text(
            _LABEL,
            on_click=lambda profile=profile, text=confirm_text: (
                self.remote.add_text(
                    text,
                    on_click=lambda: self._show_paired(profile, True),
                )
            ),
        )
        machine = await self._machine(profile)

        await machine.pair_device(_LABEL)

        self.assertEqual(self.remote.clicks, [_LABEL, confirm_text])

  async def test_pair_device_fails_when_pin_expected(self):
    profile = profiles.samsung(_v('11'))
    self.remote.add_text(_LABEL, on_click=lambda: self.remote.add_text('Pair'))
    machine = await self._machine(profile)

    with self.assertRaises(errors.ExpectedPincodeError):
      await machine.pair_device(
          _LABEL, state_machine.PairingOptions(expect_pincode=True)
      )

    self.assertEqual(self.remote.clicks, [_LABEL])

  async def test_pair_device_rejected(self):
    profile = profiles.huawei(_v('9'))
    self.remote.add_text(
        _LABEL, on_click=lambda: self.remote.add_text("Couldn't pair")
    )
    machine = await self._machine(profile)

    # Dismissing fails because no dialog is shown.
    with self.assertLogs(level='ERROR'):
      with self.assertRaises(errors.PairingFailure) as cm:
        await machine.pair_device(_LABEL)

    self.assertEqual(cm.exception.device_label, _LABEL)
    self.assertEqual(str(cm.exception), f'Failed to pair to device: {_LABEL}')
    self.assertEqual(
        self.transitions, [_State.PAIRING_IN_FLIGHT, _State.PAIRING_FAILED]
    )

  async def test_pair_device_rejection_not_masked_by_stale_dismiss(self):
    profile = profiles.stock_android(_v('12'))
    dismiss = []

    def reject():
      self.remote.add_text('An error occured during pairing with the device')
      dismiss.append(self.remote.add_text('OK'))
      self.remote.set_stale(dismiss[0], times=100)

    self.remote.add_text('Pair new device')
    self.remote.add_text(_LABEL, on_click=reject)
    machine = await self._machine(profile)

    with self.assertRaises(errors.PairingFailure):
      await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.clicks, ['Pair new device', _LABEL])

  async def test_pair_device_dismisses_rejection_dialog(self):
    profile = profiles.lg(_v('9'))

    def reject():
      self.remote.add_text('Cannot pair with Soundboks')
      self.remote.add_text('OK')

    self.remote.add_text(_LABEL, on_click=reject)
    machine = await self._machine(profile)

    with self.assertRaises(errors.PairingFailure):
      await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.clicks, [_LABEL, 'OK'])

  async def test_pair_device_fails_when_not_listed_as_paired(self):
    profile = profiles.oneplus(_v('11'))
    self.remote.add_text('Pair new device')
    self.remote.add_text(_LABEL, on_click=lambda: self.remote.add_text('Pair'))
    machine = await self._machine(profile)

    with self.assertRaisesRegex(errors.AssertionFailure, 'paired'):
      await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.clicks, ['Pair new device', _LABEL, 'Pair'])
    self.assertEqual(machine.state, _State.PAIRING_FAILED)

  async def test_pair_device_scrolls_to_device(self):
    profile = profiles.lg(_v('9'))
    pin_input = []

    def show_pin_prompt():
      self.remote.add_text('e.g. 0000 or 1234')
      pin_input.append(
          self.remote.add_xpath('//android.widget.EditText', name='pin')
      )
      self.remote.add_text(
          'Pair', on_click=lambda: self._show_paired(profile, True)
      )

    revealed = []

    def reveal(start, end):
      del start, end
      if not revealed:
        revealed.append(self.remote.add_text(_LABEL, on_click=show_pin_prompt))

    self.remote.on_drag = reveal
    machine = await self._machine(profile)

    await machine.pair_device(_LABEL)

    self.assertEqual(
        self._actions(),
        ['scroll down', f'click {_LABEL}', 'type 0000', 'click Pair'],
    )
    self.assertEqual(machine.state, _State.PAIRED)

  async def test_pair_device_retries_stale_device_entry(self):
    profile = profiles.samsung(_v('11'))
    entry = self.remote.add_text(
        _LABEL,
        on_click=lambda: self.remote.add_text(
            'Pair', on_click=lambda: self._show_paired(profile, True)
        ),
    )
    self.remote.set_stale(entry, times=3)
    machine = await self._machine(profile)

    await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.clicks, [_LABEL, 'Pair'])

  async def test_pair_device_reenables_radio_between_requests(self):
    profile = dataclasses.replace(
        profiles.samsung(_v('11')), scroll_to_device=False
    )

    def show_device():
      self.remote.add_text(
          _LABEL,
          on_click=lambda: self.remote.add_text(
              'Pair', on_click=lambda: self._show_paired(profile, True)
          ),
      )

    self._add_radio(profile, enabled=True, on_enabled=show_device)
    machine = await self._machine(profile)

    await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.clicks, ['switch', 'switch', _LABEL, 'Pair'])
    self.sleep.assert_any_await(5.0)
    self.assertEqual(
        self.transitions,
        [
            _State.PAIRING_IN_FLIGHT,
            _State.RADIO_DISABLED,
            _State.RADIO_ENABLED,
            _State.PAIRED,
        ],
    )

  async def test_pair_device_restarts_radio_when_device_not_ready(self):
    profile = profiles.huawei(_v('9'))
    requests = []

    def request():
      requests.append(_LABEL)
      if len(requests) == 1:
        self.remote.add_text('Make sure the device is in pairing mode')
      else:
        self._show_paired(profile, connected=True)

    self.remote.add_text(_LABEL, on_click=request)
    self._add_radio(
        profile,
        enabled=True,
        on_disabled=lambda: self.remote.remove_text(
            'Make sure the device is in pairing mode'
        ),
    )
    machine = await self._machine(profile)

    await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.clicks, [_LABEL, 'switch', 'switch', _LABEL])
    self.assertEqual(machine.state, _State.PAIRED)

  async def test_pair_device_connects_when_not_connected(self):
    profile = profiles.huawei(_v('9'))
    clicks = []

    def click_entry():
      clicks.append(_LABEL)
      self._show_paired(profile, connected=len(clicks) > 1)

    self.remote.add_text(_LABEL, on_click=click_entry)
    machine = await self._machine(profile)

    await machine.pair_device(_LABEL)

    self.assertEqual(self.remote.clicks, [_LABEL, _LABEL])
    self.assertEqual(
        self.transitions,
        [_State.PAIRING_IN_FLIGHT, _State.PAIRED, _State.CONNECTED],
    )

  async def test_is_device_connected_by_adjacent_text(self):
    profile = profiles.huawei(_v('9'))
    machine = await self._machine(profile)
    self._show_paired(profile, connected=False)

    self.assertFalse(await machine.is_device_connected(_LABEL))

    self._show_paired(profile, connected=True)

    self.assertTrue(await machine.is_device_connected(_LABEL))
    self.assertEqual(self.remote.clicks, [])

  async def test_is_device_connected_by_details_screen(self):
    profile = profiles.stock_android(_v('12'))
    self._show_paired(profile, connected=False)
    self.remote.add_xpath(profile.navigate_up_xpath, name='Navigate up')
    machine = await self._machine(profile)

    self.assertFalse(await machine.is_device_connected(_LABEL))

    self.remote.add_text('Disconnect')

    self.assertTrue(await machine.is_device_connected(_LABEL))
    self.assertEqual(
        self.remote.clicks,
        ['details', 'Navigate up', 'details', 'Navigate up'],
    )

  async def test_disconnect_device_from_details_screen(self):
    profile = profiles.stock_android(_v('12'))
    self._show_paired(profile, connected=False)
    self.remote.add_text('Disconnect')
    self.remote.add_xpath(profile.navigate_up_xpath, name='Navigate up')
    machine = await self._machine(profile)

    await machine.disconnect_device(_LABEL)

    self.assertEqual(
        self.remote.clicks, ['details', 'Disconnect', 'Navigate up']
    )
    self.assertEqual(machine.state, _State.DISCONNECTED)

  async def test_disconnect_device_from_list(self):
    for profile, expected_clicks in (
        (profiles.huawei(_v('9')), [_LABEL, 'OK']),
        (profiles.samsung(_v('10')), [_LABEL]),
    ):
      with self.subTest(profile=profile.name, version=str(profile.os_version)):
        self.remote = fake_remote.FakeRemoteDriver()
        self.remote.add_text(_LABEL)
        self.remote.add_text('OK')
        machine = await self._machine(profile)

        await machine.disconnect_device(_LABEL)

        self.assertEqual(self.remote.clicks, expected_clicks)

  async def test_connect_device_waits_until_connected(self):
    profile = profiles.lg(_v('9'))
    self.remote.add_text(
        _LABEL, on_click=lambda: self._show_paired(profile, connected=True)
    )
    machine = await self._machine(profile)

    await machine.connect_device(_LABEL)

    self.assertEqual(self.remote.clicks, [_LABEL])
    self.assertEqual(machine.state, _State.CONNECTED)

  async def test_connect_device_times_out(self):
    profile = profiles.lg(_v('9'))
    self.remote.add_text(_LABEL)
    machine = await self._machine(profile)

    with self.assertRaises(errors.ConditionTimeoutError):
      await machine.connect_device(_LABEL)

  async def test_connect_device_without_confirmation(self):
    profile = profiles.oneplus(_v('11'))
    self.remote.add_text(_LABEL)
    machine = await self._machine(profile)

    await machine.connect_device(_LABEL)

    self.assertEqual(self.remote.clicks, [_LABEL])

  async def test_ensure_device_unpaired(self):
    profile = profiles.stock_android(_v('12'))
    self._show_paired(profile, connected=False)
    details = next(iter(self.remote.elements))
    self.remote.add_text('Forget')
    self.remote.add_text(
        'Forget device', on_click=lambda: self.remote.remove(details)
    )
    machine = await self._machine(profile)

    await machine.ensure_device_unpaired(_LABEL)

    self.assertEqual(
        self.remote.clicks, ['details', 'Forget', 'Forget device']
    )
    self.sleep.assert_awaited_once_with(constants.SETTLE_DELAY_SECONDS)
    self.assertIsNone(await machine.find_device_details_button(_LABEL))
    self.assertEqual(machine.state, _State.UNPAIRED)

  async def test_ensure_device_unpaired_when_not_paired(self):
    machine = await self._machine(profiles.samsung(_v('11')))

    await machine.ensure_device_unpaired(_LABEL)

    self.assertEqual(self.remote.clicks, [])
    self.assertEqual(machine.state, _State.UNPAIRED)

  async def test_ensure_all_devices_unpaired_drains_list(self):
    for count in (0, 1, 3):
      with self.subTest(count=count):
        self.remote = fake_remote.FakeRemoteDriver()
        profile = profiles.samsung(_v('11'))
        details = [
            self.remote.add_xpath(
                profile.details_button_xpath(''), name=f'details {i}'
            )
            for i in range(count)
        ]
        self.remote.add_text(
            'Unpair', on_click=lambda: self.remote.remove(details.pop(0))
        )
        machine = await self._machine(profile)

        self.assertEqual(await machine.ensure_all_devices_unpaired(), count)

        self.assertEqual(self.remote.clicks.count('Unpair'), count)
        self.assertEqual(details, [])

  async def test_ensure_all_devices_unpaired_fails_when_device_stays(self):
    profile = profiles.samsung(_v('11'))
    for i in range(2):
      self.remote.add_xpath(
          profile.details_button_xpath(''), name=f'details {i}'
      )
    self.remote.add_text('Unpair')
    machine = await self._machine(profile)

    with self.assertRaisesRegex(errors.AssertionFailure, '2 still paired'):
      await machine.ensure_all_devices_unpaired()

    self.assertEqual(self.remote.clicks.count('Unpair'), 1)

  async def test_allow_permission_depends_on_version(self):
    for profile, resource_id in (
        (
            profiles.stock_android(_v('12')),
            'com.android.permissioncontroller:id/'
            'permission_allow_foreground_only_button',
        ),
        (
            profiles.huawei(_v('9')),
            'com.android.packageinstaller:id/permission_allow_button',
        ),
    ):
      with self.subTest(version=str(profile.os_version)):
        self.remote = fake_remote.FakeRemoteDriver()
        self.remote.add_element(remote.SelectorStrategy.ID, resource_id)
        machine = await self._machine(profile)

        await machine.allow_permission(constants.Permission.BLUETOOTH)

        self.assertEqual(self.remote.clicks, [resource_id])

  async def test_ios_only_supports_settings_app(self):
    machine = await self._machine(profiles.ios(_v('16.4')))

    await machine.activate_settings()
    await machine.kill_settings()

    self.assertEqual(
        self._actions(),
        [
            f'activate {constants.BUNDLE_ID_IOS_SETTINGS}',
            f'terminate {constants.BUNDLE_ID_IOS_SETTINGS}',
        ],
    )
    for operation in (
        machine.navigate_to_bluetooth_screen,
        machine.ensure_radio_enabled,
        machine.ensure_radio_disabled,
        machine.ensure_radio_reenabled,
        lambda: machine.pair_device(_LABEL),
        lambda: machine.is_device_connected(_LABEL),
        lambda: machine.connect_device(_LABEL),
        lambda: machine.disconnect_device(_LABEL),
        lambda: machine.ensure_device_unpaired(_LABEL),
        machine.ensure_all_devices_unpaired,
        lambda: machine.find_device_details_button(_LABEL),
        lambda: machine.allow_permission(constants.Permission.NOTIFICATIONS),
    ):
      with self.assertRaises(errors.UnimplementedOperationError):
        await operation()


if __name__ == '__main__':
  absltest.main()
