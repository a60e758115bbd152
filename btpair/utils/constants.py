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

"""Constants commonly used in settings automation."""

import datetime
import enum


PACKAGE_NAME_ANDROID_SETTINGS = 'com.android.settings'
BUNDLE_ID_IOS_SETTINGS = 'com.apple.Preferences'

DEFAULT_IMPLICIT_WAIT = datetime.timedelta(milliseconds=7500)
DEFAULT_IMPLICIT_WAIT_SECONDS = DEFAULT_IMPLICIT_WAIT.total_seconds()
# Delay after a click whose effect cannot be queried right away.
SETTLE_DELAY_SECONDS = 0.5
# Delay between digits sent through the numeric keyboard.
DIGIT_DELAY_SECONDS = 0.5
MAX_SCROLL_ATTEMPTS = 10

APPIUM_BASE_PORT = 7200
DEVICE_AGENT_BASE_PORT = 8000


@enum.unique
class Brand(enum.StrEnum):
  LG = 'LG'
  IPHONE = 'iPhone'
  HUAWEI = 'Huawei'
  SAMSUNG = 'Samsung'
  ONEPLUS = 'OnePlus'
  GOOGLE = 'Google'


@enum.unique
class Platform(enum.StrEnum):
  ANDROID = 'Android'
  IOS = 'iOS'


@enum.unique
class Permission(enum.Enum):
  NOTIFICATIONS = enum.auto()
  BLUETOOTH = enum.auto()


@enum.unique
class Capability(enum.Enum):
  """Groups of settings operations a vendor variant may support."""

  SETTINGS_APP = enum.auto()
  NAVIGATION = enum.auto()
  RADIO = enum.auto()
  PAIRING = enum.auto()
  CONNECTION = enum.auto()
  UNPAIRING = enum.auto()
  PERMISSIONS = enum.auto()


@enum.unique
class PairingState(enum.Enum):
  SETTINGS_CLOSED = enum.auto()
  SETTINGS_OPEN = enum.auto()
  BLUETOOTH_SCREEN_OPEN = enum.auto()
  RADIO_ENABLED = enum.auto()
  RADIO_DISABLED = enum.auto()
  PAIRING_IN_FLIGHT = enum.auto()
  PAIRED = enum.auto()
  PAIRING_FAILED = enum.auto()
  CONNECTED = enum.auto()
  DISCONNECTED = enum.auto()
  UNPAIRED = enum.auto()
