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

"""Exceptions raised by UI automation, pairing flows and the test harness."""


class TransientUIError(AssertionError):
  """Raised when the UI changed under an operation and it is safe to retry."""


class StaleElementError(TransientUIError):
  """Raised when an element handle no longer refers to a mounted element."""


class StaleScopeError(TransientUIError):
  """Raised when the scope element of a nested lookup went stale."""


class AssertionFailure(AssertionError):
  """Raised when an expected post-condition was not observed on the UI."""


class NotFoundError(AssertionFailure):
  """Raised when some required elements are not found."""


class ConditionTimeoutError(AssertionFailure):
  """Raised when a polled condition never became true."""


class PairingFailure(AssertionError):
  """Raised when the remote device rejected pairing."""

  def __init__(self, device_label: str) -> None:
    super().__init__(f'Failed to pair to device: {device_label}')
    self.device_label = device_label


class PincodeMismatchError(AssertionError):
  """Raised when the pin prompt does not match what the caller expected."""

  def __init__(self, device_label: str, message: str) -> None:
    super().__init__(f'{message} (device: {device_label})')
    self.device_label = device_label


class PincodeRequiredError(PincodeMismatchError):

  def __init__(self, device_label: str) -> None:
    super().__init__(
        device_label, 'Device expects a pincode, but none was given'
    )


class ExpectedPincodeError(PincodeMismatchError):

  def __init__(self, device_label: str) -> None:
    super().__init__(device_label, 'Expected to be asked for a pincode')


class UnsupportedConfigurationError(AssertionError):
  """Raised when no settings driver exists for a brand and OS version."""


class UnimplementedOperationError(NotImplementedError):
  """Raised when an operation is not supported on a brand or OS version."""


class AsyncTimeoutError(AssertionError):
  """Raised when an asynchrounous operation timeout but expected not to timeout."""


class CancelledError(AssertionError):
  """Raised when an operation is cancelled."""
