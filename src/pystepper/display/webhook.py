"""Display surface pushing state to an HTTP endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import ClassVar

import aiohttp

from pystepper.exceptions import StepperDisplayError
from pystepper.models.display import DisplayState


class WebhookDisplay:
    """POSTs every display change as JSON.

    ``publish`` only schedules the request on the loop; delivery failures
    are logged by the background task. A newer state supersedes a request
    that has not been sent yet.
    """

    persistent: ClassVar[bool] = False

    def __init__(
        self,
        url: str,
        *,
        loop: asyncio.AbstractEventLoop,
        http_session: aiohttp.ClientSession | None = None,
        timeout: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._loop = loop
        self._external_session = http_session is not None
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._logger = logger or logging.getLogger(__name__)
        self._task: asyncio.Task[None] | None = None
        self._last: DisplayState | None = None

    def publish(self, state: DisplayState) -> None:
        if state == self._last:
            return
        self._last = state
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = self._loop.create_task(self._deliver(state))

    async def _deliver(self, state: DisplayState) -> None:
        try:
            await self.post(state)
        except asyncio.CancelledError:
            raise
        except StepperDisplayError:
            # Allow the same state to be retried on the next refresh.
            self._last = None
            self._logger.warning("Webhook display update failed", exc_info=True)
        except Exception:
            self._last = None
            self._logger.warning("Webhook display update failed unexpectedly", exc_info=True)

    async def post(self, state: DisplayState) -> None:
        """Send one state and wait for the response."""
        if self._http is None:
            self._http = aiohttp.ClientSession()
        try:
            async with self._http.post(
                self._url,
                data=state.model_dump_json(),
                headers={"content-type": "application/json"},
                timeout=self._timeout,
            ) as resp:
                if resp.status >= 300:
                    text = await resp.text()
                    raise StepperDisplayError(
                        f"HTTP {resp.status} from webhook: {text[:200]}",
                        status_code=resp.status,
                        surface="webhook",
                    )
        except StepperDisplayError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise StepperDisplayError(f"Webhook request failed: {exc}", surface="webhook") from exc
        self._logger.debug("Display posted url=%s kind=%s", self._url, state.kind)

    async def aclose(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None
