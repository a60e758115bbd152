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

"""Retry primitives for flaky asynchronous UI operations.

All primitives take a zero-argument coroutine function and are composed
explicitly at the call site, for example:

```
await retry.retry_with_intermediate_step(
    lambda: retry.retry_if(click_device, phone_driver.is_stale_element),
    phone.scroll_down,
)
```

Each invocation owns its own attempt counter; nested primitives do not share
a budget.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import dataclasses
import itertools
import logging
import math
from typing import TypeVar

from btpair.utils import errors

_T = TypeVar('_T')
_logger = logging.getLogger(__name__)

AsyncOperation = Callable[[], Awaitable[_T]]
AsyncCondition = Callable[[], Awaitable[bool]]
RecoveryStep = Callable[[], Awaitable[object]]
ErrorPredicate = Callable[[Exception], bool]


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
  """Bounds and pacing of a retry loop.

  Attributes:
    max_attempts: Total number of attempts including the first one, or None
      to retry without bound.
    delay_sec: Delay after the first failed attempt.
    backoff: Multiplier applied to the delay after every failed attempt.
    max_delay_sec: Upper bound of a single delay.
    log_exception: Whether to log failed attempts with their traceback.
  """

  max_attempts: int | None = 5
  delay_sec: float = 1.0
  backoff: float = 1.0
  max_delay_sec: float = math.inf
  log_exception: bool = True

  def __post_init__(self) -> None:
    if self.max_attempts is not None and self.max_attempts < 1:
      raise ValueError(f'max_attempts must be positive: {self.max_attempts}')
    if self.delay_sec < 0 or self.max_delay_sec < 0:
      raise ValueError('Delays must not be negative')
    if self.backoff < 1:
      raise ValueError(f'backoff must be at least 1: {self.backoff}')

  def delay_for(self, attempt: int) -> float:
    """Returns the delay after the given failed attempt (1-based)."""
    return min(self.delay_sec * self.backoff ** (attempt - 1), self.max_delay_sec)

  def has_attempts_left(self, attempt: int) -> bool:
    """Whether another attempt may follow the given attempt (1-based)."""
    return self.max_attempts is None or attempt < self.max_attempts

  @property
  def budget(self) -> str:
    return 'unbounded' if self.max_attempts is None else str(self.max_attempts)


DEFAULT_POLICY = RetryPolicy(max_attempts=5, delay_sec=1.0)
STALE_ELEMENT_POLICY = RetryPolicy(
    max_attempts=10, delay_sec=0.25, log_exception=False
)
POLL_POLICY = RetryPolicy(max_attempts=30, delay_sec=1.0, log_exception=False)


def _describe(operation: Callable[..., object], description: str | None) -> str:
  return description or getattr(operation, '__qualname__', repr(operation))


def _always(error: Exception) -> bool:
  del error
  return True


async def _retry_loop(
    operation: AsyncOperation[_T],
    is_retryable: ErrorPredicate,
    recovery_step: RecoveryStep | None,
    policy: RetryPolicy,
    description: str | None,
) -> _T:
  name = _describe(operation, description)
  for attempt in itertools.count(1):
    try:
      return await operation()
    except Exception as e:  # pylint: disable=broad-exception-caught
      if not is_retryable(e) or not policy.has_attempts_left(attempt):
        raise
      if policy.log_exception:
        _logger.exception(
            'Retrying %s, attempt %d of %s', name, attempt, policy.budget
        )
      else:
        _logger.debug(
            'Retrying %s after %r, attempt %d of %s',
            name,
            e,
            attempt,
            policy.budget,
        )
    # Failures of the recovery step propagate as-is.
    if recovery_step is not None:
      await recovery_step()
    await asyncio.sleep(policy.delay_for(attempt))
  raise AssertionError('unreachable')


async def _poll(
    condition: AsyncCondition,
    recovery_step: RecoveryStep | None,
    policy: RetryPolicy,
    description: str | None,
) -> None:
  name = _describe(condition, description)
  for attempt in itertools.count(1):
    if await condition():
      return
    if not policy.has_attempts_left(attempt):
      raise errors.ConditionTimeoutError(
          f'Condition {name} not met after {attempt} attempts'
      )
    _logger.debug(
        'Condition %s not met, attempt %d of %s', name, attempt, policy.budget
    )
    if recovery_step is not None:
      await recovery_step()
    await asyncio.sleep(policy.delay_for(attempt))


async def retry(
    operation: AsyncOperation[_T],
    policy: RetryPolicy = DEFAULT_POLICY,
    description: str | None = None,
) -> _T:
  """Runs an operation until it succeeds or the attempt budget is exhausted.

  Any exception counts as a failed attempt.

  Args:
    operation: Coroutine function to run.
    policy: Attempt limit and delays.
    description: Name of the operation in logs.

  Returns:
    The result of the first successful attempt.

  Raises:
    Exception: The failure of the last attempt.
  """
  return await _retry_loop(operation, _always, None, policy, description)


async def retry_if(
    operation: AsyncOperation[_T],
    is_retryable: ErrorPredicate,
    policy: RetryPolicy = STALE_ELEMENT_POLICY,
    description: str | None = None,
) -> _T:
  """Retries an operation only while its failures satisfy a predicate.

  A failure for which `is_retryable` returns False is raised on its first
  occurrence and never retried.

  Args:
    operation: Coroutine function to run.
    is_retryable: Classifies failures as transient.
    policy: Attempt limit and delays.
    description: Name of the operation in logs.

  Returns:
    The result of the first successful attempt.
  """
  return await _retry_loop(operation, is_retryable, None, policy, description)


async def retry_until(
    condition: AsyncCondition,
    policy: RetryPolicy = POLL_POLICY,
    description: str | None = None,
) -> None:
  """Polls a condition until it returns True.

  Exceptions raised by the condition are not retried.

  Raises:
    ConditionTimeoutError: The condition never returned True.
  """
  await _poll(condition, None, policy, description)


async def retry_with_intermediate_step(
    operation: AsyncOperation[_T],
    recovery_step: RecoveryStep,
    policy: RetryPolicy = DEFAULT_POLICY,
    description: str | None = None,
) -> _T:
  """Runs a recovery step between failed attempts of an operation.

  The recovery step is fully awaited before the next attempt starts. It is
  not run after the last attempt, and its own failures are raised
  immediately.

  Args:
    operation: Coroutine function to run.
    recovery_step: Coroutine function changing state before a new attempt.
    policy: Attempt limit and delays.
    description: Name of the operation in logs.

  Returns:
    The result of the first successful attempt.
  """
  return await _retry_loop(
      operation, _always, recovery_step, policy, description
  )


async def retry_until_with_intermediate_step(
    condition: AsyncCondition,
    recovery_step: RecoveryStep,
    policy: RetryPolicy = POLL_POLICY,
    description: str | None = None,
) -> None:
  """Polls a condition, running a recovery step after every False result.

  Raises:
    ConditionTimeoutError: The condition never returned True.
  """
  await _poll(condition, recovery_step, policy, description)
