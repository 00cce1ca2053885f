"""
Delayed outbound call scheduler.

Each lead gets one call, placed after a fixed delay so upstream lead routing
can settle first. Calls live only in process memory: there is no retry and
no persistence, and a restart before the delay elapses loses the call.
Task handles are kept so a call can be cancelled, and so shutdown can
cancel everything still pending.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from gads_caller.schemas.lead import CallRequest
from gads_caller.services.elevenlabs import RAW_TEXT_LIMIT, ElevenLabsClient
from gads_caller.utils.phone import mask_phone

logger = logging.getLogger(__name__)

OUTBOUND_DELAY_SECONDS = 45.0


class CallScheduler:
    """Fire-and-forget delayed calls with retained, cancellable handles."""

    def __init__(self, delay_seconds: float = OUTBOUND_DELAY_SECONDS):
        self.delay_seconds = delay_seconds
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        client: ElevenLabsClient,
        call_request: CallRequest,
        delay_seconds: Optional[float] = None,
    ) -> asyncio.Task:
        """Schedule one call. Must be called from a running event loop."""
        delay = self.delay_seconds if delay_seconds is None else delay_seconds
        eta = datetime.now(timezone.utc) + timedelta(seconds=delay)
        logger.info(
            "Scheduling outbound call to %s in %ss (eta %s)",
            mask_phone(call_request.to_number), delay, eta.isoformat(),
            extra={"phone": mask_phone(call_request.to_number), "delay_seconds": delay},
        )

        task = asyncio.create_task(self._run(client, call_request, delay))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, client: ElevenLabsClient, call_request: CallRequest, delay: float) -> Optional[dict]:
        masked = mask_phone(call_request.to_number)
        try:
            await asyncio.sleep(delay)
            result = await client.start_outbound_call(call_request)
        except asyncio.CancelledError:
            logger.info("Scheduled outbound call to %s cancelled", masked)
            raise
        except Exception as e:
            # Nothing is waiting on this task - log and drop
            logger.error("Delayed outbound call to %s threw: %s", masked, str(e), exc_info=True)
            return None

        if result["ok"]:
            logger.info(
                "Delayed outbound call to %s succeeded: %s", masked, result["parsed_json"],
                extra={"status": result["status"]},
            )
        else:
            logger.error(
                "Delayed outbound call to %s failed: status=%s raw=%s",
                masked, result["status"], (result["raw_text"] or "")[:RAW_TEXT_LIMIT],
                extra={"status": result["status"]},
            )
        return result

    async def cancel_all(self, timeout: float = 5.0) -> int:
        """Cancel every pending call and wait for the tasks to finish."""
        tasks = list(self._tasks)
        if not tasks:
            return 0
        for task in tasks:
            task.cancel()
        await asyncio.wait(tasks, timeout=timeout)
        logger.warning("Cancelled %d pending outbound call(s)", len(tasks))
        return len(tasks)
