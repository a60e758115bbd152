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

"""Session configuration of a phone under test (a "pod")."""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import json
import logging
import os
import pathlib
from typing import Any, Self

from btpair.settings import factory
from btpair.utils import constants
from btpair.utils import errors

_logger = logging.getLogger(__name__)

POD_FILE_PARAM = 'pod_file'
POD_FILE_ENV = 'POD_FILE'

_AUTOMATION_NAMES = {
    constants.Platform.ANDROID: 'UiAutomator2',
    constants.Platform.IOS: 'XCuiTest',
}
# Pod files use camel case keys.
_KEY_ALIASES = {
    'deviceName': 'device_name',
    'platformVersion': 'platform_version',
    'osVersion': 'platform_version',
    'testDevice': 'test_device',
    'portOffset': 'port_offset',
    'expectPincode': 'expect_pincode',
    'appiumHost': 'appium_host',
}
_REQUIRED_KEYS = ('udid', 'brand', 'platform_version', 'test_device')


@dataclasses.dataclass(frozen=True)
class PodConfig:
  """Target phone and device under test of a session.

  Attributes:
    udid: Unique id of the phone.
    brand: Brand of the phone.
    platform_version: OS version string of the phone.
    test_device: Label of the Bluetooth device under test.
    device_name: Name of the phone reported to Appium.
    port_offset: Offset of the ports of this session, so that several phones
      can be driven from one host.
    pincode: Pin of the device under test, if it requires one.
    expect_pincode: Whether the device under test must ask for a pin.
    appium_host: Host of the Appium server.
  """

  udid: str
  brand: constants.Brand
  platform_version: str
  test_device: str
  device_name: str = ''
  port_offset: int = 0
  pincode: str | None = None
  expect_pincode: bool = False
  appium_host: str = '127.0.0.1'

  @property
  def platform(self) -> constants.Platform:
    if self.brand == constants.Brand.IPHONE:
      return constants.Platform.IOS
    return constants.Platform.ANDROID

  @property
  def appium_port(self) -> int:
    return constants.APPIUM_BASE_PORT + self.port_offset

  @property
  def appium_url(self) -> str:
    return f'http://{self.appium_host}:{self.appium_port}'

  def appium_capabilities(self) -> dict[str, Any]:
    """W3C capabilities of the Appium session of this pod."""
    device_agent_port = constants.DEVICE_AGENT_BASE_PORT + self.port_offset
    return {
        'platformName': self.platform.value,
        'appium:automationName': _AUTOMATION_NAMES[self.platform],
        'appium:deviceName': self.device_name or self.udid,
        'appium:platformVersion': self.platform_version,
        'appium:udid': self.udid,
        'appium:systemPort': device_agent_port,
        'appium:wdaLocalPort': device_agent_port,
        'appium:autoAcceptAlerts': False,
        'appium:autoGrantPermissions': False,
        'appium:language': 'en',
        'appium:locale': 'US',
        'appium:locationServicesEnabled': True,
        'appium:showXcodeLog': False,
        'appium:newCommandTimeout': 300,
    }

  @classmethod
  def from_mapping(cls, values: Mapping[str, Any]) -> Self:
    """Builds a config from snake case or camel case keys.

    Raises:
      UnsupportedConfigurationError: A required key is missing or a value is
        invalid.
    """
    fields = {f.name for f in dataclasses.fields(cls)}
    kwargs = {}
    for key, value in values.items():
      key = _KEY_ALIASES.get(key, key)
      if key in fields:
        kwargs[key] = value
    if missing := [key for key in _REQUIRED_KEYS if key not in kwargs]:
      raise errors.UnsupportedConfigurationError(
          f'Missing pod keys: {", ".join(missing)}'
      )
    kwargs['brand'] = factory.parse_brand(kwargs['brand'])
    kwargs['platform_version'] = str(kwargs['platform_version'])
    try:
      kwargs['port_offset'] = int(kwargs.get('port_offset', 0))
    except (TypeError, ValueError) as e:
      raise errors.UnsupportedConfigurationError(
          f'Invalid port offset: {kwargs["port_offset"]!r}'
      ) from e
    if kwargs.get('pincode') is not None:
      kwargs['pincode'] = str(kwargs['pincode'])
    if 'expect_pincode' in kwargs:
      kwargs['expect_pincode'] = _parse_bool(kwargs['expect_pincode'])
    return cls(**kwargs)

  @classmethod
  def from_json_file(cls, path: str | os.PathLike[str]) -> Self:
    _logger.info('Loading pod file %s', path)
    with open(path, 'r', encoding='utf-8') as f:
      return cls.from_mapping(json.load(f))

  @classmethod
  def from_user_params(cls, user_params: Mapping[str, Any]) -> Self:
    return cls.from_mapping(user_params)

  @classmethod
  def load(cls, user_params: Mapping[str, Any]) -> Self:
    """Loads the pod of a mobly test.

    The pod file named by the `pod_file` user param, or else by the
    `POD_FILE` environment variable, takes precedence over inline params.
    """
    pod_file = user_params.get(POD_FILE_PARAM) or os.environ.get(POD_FILE_ENV)
    if pod_file:
      return cls.from_json_file(pathlib.Path(pod_file))
    return cls.from_user_params(user_params)


def _parse_bool(value: Any) -> bool:
  if isinstance(value, str):
    return value.strip().lower() in ('1', 'true', 'yes')
  return bool(value)
