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

"""Selects the settings driver variant of a phone."""

from __future__ import annotations

from collections.abc import Callable
import logging

from packaging import version as version_lib

from btpair.automation import phone_driver
from btpair.settings import profiles
from btpair.settings import state_machine
from btpair.utils import constants
from btpair.utils import errors

_logger = logging.getLogger(__name__)

ProfileBuilder = Callable[[version_lib.Version], profiles.VendorProfile]

# Version-dependent differences are resolved inside each builder.
_BUILDERS: dict[constants.Brand, ProfileBuilder] = {
    constants.Brand.GOOGLE: profiles.stock_android,
    constants.Brand.SAMSUNG: profiles.samsung,
    constants.Brand.HUAWEI: profiles.huawei,
    constants.Brand.LG: profiles.lg,
    constants.Brand.ONEPLUS: profiles.oneplus,
    constants.Brand.IPHONE: profiles.ios,
}


def parse_brand(brand: str | constants.Brand) -> constants.Brand:
  """Parses a brand by value or name, ignoring case.

  Raises:
    UnsupportedConfigurationError: The brand is unknown.
  """
  if isinstance(brand, constants.Brand):
    return brand
  normalized = brand.strip().casefold()
  for candidate in constants.Brand:
    if normalized in (candidate.value.casefold(), candidate.name.casefold()):
      return candidate
  raise errors.UnsupportedConfigurationError(f'Unknown brand: {brand!r}')


def parse_platform_version(platform_version: str) -> version_lib.Version:
  try:
    return version_lib.Version(platform_version.strip())
  except version_lib.InvalidVersion as e:
    raise errors.UnsupportedConfigurationError(
        f'Invalid platform version: {platform_version!r}'
    ) from e


def select_profile(
    brand: str | constants.Brand, platform_version: str
) -> profiles.VendorProfile:
  """Returns the vendor profile of a brand and OS version.

  Args:
    brand: Brand name, e.g. "Samsung".
    platform_version: OS version string, e.g. "11" or "12.1".

  Raises:
    UnsupportedConfigurationError: The brand is unknown or the version cannot
      be parsed.
  """
  builder = _BUILDERS[parse_brand(brand)]
  return builder(parse_platform_version(platform_version))


def create_settings_driver(
    phone: phone_driver.PhoneDriver,
    brand: str | constants.Brand,
    platform_version: str,
) -> state_machine.PairingStateMachine:
  """Creates the settings driver of a phone."""
  profile = select_profile(brand, platform_version)
  if profile.platform != phone.platform:
    raise errors.UnsupportedConfigurationError(
        f'{profile.name} requires {profile.platform}, got {phone.platform}'
    )
  _logger.info(
      'Using %s settings driver for %s %s',
      profile.name,
      profile.brand,
      profile.os_version,
  )
  return state_machine.PairingStateMachine(phone, profile)
