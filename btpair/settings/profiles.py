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

"""Vendor variants of the Bluetooth settings UI.

A `VendorProfile` is derived once from a brand and a parsed OS version and
never changes afterwards. Version-dependent differences are resolved in the
builder functions below.
"""

from __future__ import annotations

import dataclasses
import enum

from packaging import version as version_lib

from btpair.automation import phone_driver
from btpair.utils import constants
from btpair.utils import retry

_Brand = constants.Brand
_Capability = constants.Capability
_Permission = constants.Permission

_ALL_CAPABILITIES = frozenset(constants.Capability)
_PERMISSION_ALLOW_FOREGROUND_ONLY = (
    'com.android.permissioncontroller:id/permission_allow_foreground_only_button'
)
_LEGACY_PERMISSION_ALLOW = (
    'com.android.packageinstaller:id/permission_allow_button'
)
_PAIRING_FAILURE_TEXTS = ("Couldn't pair", 'An error occured during pairing')


@enum.unique
class ConnectionProbe(enum.Enum):
  # Status text rendered next to the device entry.
  ADJACENT_TEXT = enum.auto()
  # "Disconnect" button on the device details screen.
  DETAILS_SCREEN = enum.auto()


@enum.unique
class DisconnectMethod(enum.Enum):
  LIST_ENTRY = enum.auto()
  DETAILS_SCREEN = enum.auto()


@dataclasses.dataclass(frozen=True)
class RadioSwitch:
  """Locators of the Bluetooth switch.

  Attributes:
    enabled_xpath: Element present only while the radio is enabled.
    disabled_xpath: Element present only while the radio is disabled.
    toggle_xpath: Element to click to toggle the radio. If None, the matched
      state element is clicked.
  """

  enabled_xpath: str
  disabled_xpath: str
  toggle_xpath: str | None = None


SWITCH_BY_CHECKED = RadioSwitch(
    enabled_xpath="//android.widget.Switch[@checked='true']",
    disabled_xpath="//android.widget.Switch[@checked='false']",
)
SWITCH_BY_LABEL = RadioSwitch(
    enabled_xpath="//android.widget.Switch/../../*[@text='On']",
    disabled_xpath="//android.widget.Switch/../../*[@text='Off']",
    toggle_xpath='//android.widget.Switch',
)


@dataclasses.dataclass(frozen=True)
class VendorProfile:
  """Selectors, timings and branches of one settings app variant.

  Templates contain a `{label}` placeholder which is replaced by the quoted
  device label.
  """

  name: str
  brand: constants.Brand
  platform: constants.Platform
  os_version: version_lib.Version
  capabilities: frozenset[constants.Capability] = _ALL_CAPABILITIES
  settings_app_id: str = constants.PACKAGE_NAME_ANDROID_SETTINGS
  activation_settle_seconds: float = 0.0

  # Navigation.
  navigation_path: tuple[str, ...] = ()
  scroll_up_before_navigation: bool = False
  navigation_settle_seconds: float = 0.0
  navigate_up_xpath: str = "//*[@content-desc='Navigate up']"

  # Radio.
  radio_switch: RadioSwitch = SWITCH_BY_CHECKED
  radio_page_path: tuple[str, ...] = ()
  connecting_text: str | None = None
  refresh_xpath: str | None = None

  # Pairing.
  pair_new_device_text: str | None = None
  scroll_to_device: bool = False
  reenable_radio_on_request_failure: bool = False
  request_pairing_policy: retry.RetryPolicy = retry.RetryPolicy(
      max_attempts=3, delay_sec=1.0
  )
  pairing_mode_hint: str | None = None
  pin_prompt_text: str = 'Usually 0000 or 1234'
  prompt_timeout_seconds: float = 15.0
  default_pincode: str | None = None
  pin_confirm_text: str = 'OK'
  pair_confirm_text: str | None = 'Pair'
  failure_texts: tuple[str, ...] = ()
  failure_timeout_seconds: float = constants.DEFAULT_IMPLICIT_WAIT_SECONDS
  dismiss_failure_text: str | None = None
  details_button_template: str = ''
  reconnect_after_pairing: bool = False

  # Connection.
  connection_probe: ConnectionProbe = ConnectionProbe.ADJACENT_TEXT
  connected_indicator_template: str = ''
  details_connected_text: str = 'Disconnect'
  disconnect_method: DisconnectMethod = DisconnectMethod.LIST_ENTRY
  disconnect_confirm_text: str | None = None
  confirm_connection_after_connect: bool = False

  # Unpairing.
  unpair_texts: tuple[str, ...] = ('Unpair',)
  unpair_settle_seconds: float = 0.0

  permission_buttons: tuple[tuple[constants.Permission, str], ...] = ()

  def supports(self, capability: constants.Capability) -> bool:
    return capability in self.capabilities

  def details_button_xpath(self, label: str) -> str:
    return self.details_button_template.format(
        label=phone_driver.quote(label)
    )

  def connected_indicator_xpath(self, label: str) -> str:
    return self.connected_indicator_template.format(
        label=phone_driver.quote(label)
    )

  def permission_button_id(self, permission: constants.Permission) -> str:
    for candidate, resource_id in self.permission_buttons:
      if candidate == permission:
        return resource_id
    raise KeyError(f'No permission button for {permission.name} on {self.name}')


def _android_permission_buttons(
    os_version: version_lib.Version,
) -> tuple[tuple[constants.Permission, str], ...]:
  # The permission controller replaced the package installer in Android 10.
  if os_version.major < 10:
    resource_id = _LEGACY_PERMISSION_ALLOW
  else:
    resource_id = _PERMISSION_ALLOW_FOREGROUND_ONLY
  return tuple((permission, resource_id) for permission in _Permission)


def stock_android(os_version: version_lib.Version) -> VendorProfile:
  """Google Pixel settings. Verified on Pixel 3 with Android 12."""
  return VendorProfile(
      name='Stock Android',
      brand=_Brand.GOOGLE,
      platform=constants.Platform.ANDROID,
      os_version=os_version,
      activation_settle_seconds=constants.SETTLE_DELAY_SECONDS,
      navigation_path=('Connected devices',),
      scroll_up_before_navigation=True,
      navigation_settle_seconds=constants.SETTLE_DELAY_SECONDS,
      radio_page_path=('Connection preferences', 'Bluetooth'),
      connecting_text='Connecting...',
      pair_new_device_text='Pair new device',
      scroll_to_device=True,
      reenable_radio_on_request_failure=True,
      failure_texts=_PAIRING_FAILURE_TEXTS,
      failure_timeout_seconds=10.0,
      dismiss_failure_text='OK',
      details_button_template=(
          '//*[contains(@text,{label})]/../../..//*[@content-desc="Settings"]'
      ),
      connection_probe=ConnectionProbe.DETAILS_SCREEN,
      disconnect_method=DisconnectMethod.DETAILS_SCREEN,
      disconnect_confirm_text='Disconnect',
      unpair_texts=('Forget', 'Forget device'),
      unpair_settle_seconds=constants.SETTLE_DELAY_SECONDS,
      permission_buttons=_android_permission_buttons(os_version),
  )


def samsung(os_version: version_lib.Version) -> VendorProfile:
  """Samsung One UI settings. Verified on S9 (Android 10) and S21 (11)."""
  one_ui_3 = os_version.major >= 11
  return VendorProfile(
      name='Samsung',
      brand=_Brand.SAMSUNG,
      platform=constants.Platform.ANDROID,
      os_version=os_version,
      navigation_path=('Connections', 'Bluetooth'),
      scroll_up_before_navigation=True,
      scroll_to_device=True,
      reenable_radio_on_request_failure=True,
      request_pairing_policy=retry.RetryPolicy(max_attempts=3, delay_sec=5.0),
      default_pincode='0000',
      pair_confirm_text='Pair' if one_ui_3 else 'OK',
      failure_texts=('incorrect PIN',),
      details_button_template=(
          '//*[contains(@text,{label})]/../../..'
          '//*[contains(@content-desc, "Device settings")]'
      ),
      connected_indicator_template=(
          '//*[contains(@text,{label})]/..//*[@text="Connected for audio"]'
      ),
      disconnect_method=(
          DisconnectMethod.DETAILS_SCREEN
          if one_ui_3
          else DisconnectMethod.LIST_ENTRY
      ),
      disconnect_confirm_text='Disconnect' if one_ui_3 else None,
      permission_buttons=_android_permission_buttons(os_version),
  )


def huawei(os_version: version_lib.Version) -> VendorProfile:
  """Huawei EMUI settings. Verified on P10 with Android 9."""
  return VendorProfile(
      name='Huawei',
      brand=_Brand.HUAWEI,
      platform=constants.Platform.ANDROID,
      os_version=os_version,
      navigation_path=('Device connectivity', 'Bluetooth'),
      connecting_text='Connecting...',
      reenable_radio_on_request_failure=True,
      pairing_mode_hint='pairing mode',
      pair_confirm_text=None,
      failure_texts=_PAIRING_FAILURE_TEXTS,
      failure_timeout_seconds=10.0,
      dismiss_failure_text='OK',
      details_button_template=(
          '//*[contains(@text,{label})]/../../..'
          '//*[@content-desc="Details button"]'
      ),
      reconnect_after_pairing=True,
      connected_indicator_template=(
          '//*[contains(@text,{label})]/../..'
          '//*[@text="Connected for media audio"]'
      ),
      disconnect_confirm_text='OK',
      confirm_connection_after_connect=True,
      unpair_texts=('UNPAIR',),
      unpair_settle_seconds=constants.SETTLE_DELAY_SECONDS,
      permission_buttons=_android_permission_buttons(os_version),
  )


def lg(os_version: version_lib.Version) -> VendorProfile:
  """LG UX settings."""
  return VendorProfile(
      name='LG',
      brand=_Brand.LG,
      platform=constants.Platform.ANDROID,
      os_version=os_version,
      navigation_path=('Connected devices', 'Bluetooth'),
      refresh_xpath='//*[@content-desc="Refresh"]',
      scroll_to_device=True,
      reenable_radio_on_request_failure=True,
      request_pairing_policy=retry.RetryPolicy(max_attempts=3, delay_sec=5.0),
      pin_prompt_text='e.g. 0000 or 1234',
      prompt_timeout_seconds=10.0,
      default_pincode='0000',
      pin_confirm_text='Pair',
      failure_texts=('Cannot pair',),
      dismiss_failure_text='OK',
      details_button_template=(
          '//*[contains(@text,{label})]/../..//*[@content-desc="Device Settings"]'
      ),
      connected_indicator_template=(
          '//*[contains(@text,{label})]/..//*[@text="Connected to media audio"]'
      ),
      disconnect_confirm_text='Disconnect',
      confirm_connection_after_connect=True,
      permission_buttons=_android_permission_buttons(os_version),
  )


def oneplus(os_version: version_lib.Version) -> VendorProfile:
  """OnePlus OxygenOS settings."""
  return VendorProfile(
      name='OnePlus',
      brand=_Brand.ONEPLUS,
      platform=constants.Platform.ANDROID,
      os_version=os_version,
      navigation_path=('Bluetooth & Device Connection', 'Bluetooth'),
      scroll_up_before_navigation=True,
      radio_switch=SWITCH_BY_LABEL,
      pair_new_device_text='Pair new device',
      failure_texts=('incorrect PIN',),
      details_button_template=(
          '//*[contains(@text,{label})]/../../..//*[@content-desc="Settings"]'
      ),
      connected_indicator_template=(
          '//*[contains(@text,{label})]/..//*[@text="Active"]'
      ),
      disconnect_method=DisconnectMethod.DETAILS_SCREEN,
      disconnect_confirm_text='Disconnect',
      unpair_texts=('Forget', 'Forget device'),
      permission_buttons=_android_permission_buttons(os_version),
  )


def ios(os_version: version_lib.Version) -> VendorProfile:
  """iOS settings. Only the settings app lifecycle is automated."""
  return VendorProfile(
      name='iOS',
      brand=_Brand.IPHONE,
      platform=constants.Platform.IOS,
      os_version=os_version,
      capabilities=frozenset({_Capability.SETTINGS_APP}),
      settings_app_id=constants.BUNDLE_ID_IOS_SETTINGS,
  )
