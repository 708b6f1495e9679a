# backend/deepl_wrapper/services/orchestrator.py
"""
Drives one document through DeepL's three-call protocol:

    upload  ->  poll status until done/error  ->  download result

State moves strictly forward:

    created -> uploaded -> polling -> done
                  |           |
                  v           v
               failed     failed | timed_out

Only the "not done yet" branch of polling is retried. Upload and download
failures are terminal and reported immediately, and a failed or timed-out job
is never resubmitted.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO

from deepl_wrapper.core.log_utils import sanitize_for_log
from deepl_wrapper.exceptions import (
    InternalError,
    ServiceError,
    TranslationFailedError,
    TranslationTimeoutError,
)
from deepl_wrapper.services.deepl_client import DeepLClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_POLL_MAX_ATTEMPTS = 60

STATUS_DONE = "done"
STATUS_ERROR = "error"


class JobState(str, Enum):
    CREATED = "created"
    UPLOADED = "uploaded"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class SourceDocument:
    filename: str
    content: bytes = field(repr=False)

    def _split(self) -> tuple[str, str]:
        dot = self.filename.rfind(".")
        # A leading dot (".env") names the file, it is not an extension.
        if dot > 0:
            return self.filename[:dot], self.filename[dot:]
        return self.filename, ""

    @property
    def stem(self) -> str:
        return self._split()[0]

    @property
    def extension(self) -> str:
        return self._split()[1]


def compute_output_name(original_name: str, target_language: str) -> str:
    """`report.docx` + `FR` -> `report_FR.docx`; `notes` + `FR` -> `notes_FR`."""
    doc = SourceDocument(filename=original_name, content=b"")
    return f"{doc.stem}_{target_language}{doc.extension}"


@dataclass
class TranslationJob:
    source: SourceDocument
    target_language: str
    source_language: str | None = None

    state: JobState = JobState.CREATED
    # Issued by DeepL on upload; they authorize every later call. Never log or return them.
    document_id: str | None = field(default=None, repr=False)
    document_key: str | None = field(default=None, repr=False)

    status_checks: int = 0
    seconds_remaining: int | None = None
    billed_characters: int | None = None
    error: ServiceError | None = field(default=None, repr=False)

    @property
    def output_name(self) -> str:
        return compute_output_name(self.source.filename, self.target_language)

    def fail(self, error: ServiceError, state: JobState = JobState.FAILED) -> ServiceError:
        self.state = state
        self.error = error
        return error


class TranslationOrchestrator:
    def __init__(
        self,
        client: DeepLClient,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        log_prefix: str = "",
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._log_prefix = log_prefix

    def _require_state(self, job: TranslationJob, expected: JobState, operation: str) -> None:
        if job.state is not expected:
            raise InternalError(
                f"Cannot {operation} a job in state '{job.state.value}' "
                f"(expected '{expected.value}')."
            )

    async def submit(self, job: TranslationJob, file_obj: IO[bytes]) -> None:
        """Upload the source document. `created -> uploaded`."""
        self._require_state(job, JobState.CREATED, "submit")
        logger.info(
            f"{self._log_prefix}Uploading '{sanitize_for_log(job.source.filename)}' "
            f"({len(job.source.content)} bytes) -> {job.target_language}"
            f"{f' from {job.source_language}' if job.source_language else ' (auto-detect)'}"
        )
        try:
            job.document_id, job.document_key = await self.client.upload_document(
                job.source.filename,
                file_obj,
                target_lang=job.target_language,
                source_lang=job.source_language,
            )
        except ServiceError as e:
            job.fail(e)
            raise
        job.state = JobState.UPLOADED
        logger.info(f"{self._log_prefix}Document accepted by DeepL.")

    async def await_completion(self, job: TranslationJob) -> None:
        """Poll the document status. `uploaded -> polling -> done | failed | timed_out`."""
        self._require_state(job, JobState.UPLOADED, "poll")
        job.state = JobState.POLLING
        started = time.monotonic()

        for attempt in range(1, self.max_attempts + 1):
            try:
                status = await self.client.get_document_status(job.document_id, job.document_key)
            except ServiceError as e:
                job.fail(e)
                raise
            job.status_checks = attempt
            job.seconds_remaining = status.seconds_remaining
            if status.billed_characters is not None:
                job.billed_characters = status.billed_characters

            if status.status == STATUS_DONE:
                job.state = JobState.DONE
                logger.info(
                    f"{self._log_prefix}Translation done after {attempt} status check(s) "
                    f"in {time.monotonic() - started:.1f}s "
                    f"(billed characters: {job.billed_characters})."
                )
                return

            if status.status == STATUS_ERROR:
                message = status.error_message or "DeepL reported an error during translation"
                logger.warning(
                    f"{self._log_prefix}DeepL reported an error on status check {attempt}: "
                    f"{sanitize_for_log(message)}"
                )
                raise job.fail(TranslationFailedError(message))

            logger.debug(
                f"{self._log_prefix}Status check {attempt}/{self.max_attempts}: "
                f"'{sanitize_for_log(status.status)}', seconds remaining: {status.seconds_remaining}"
            )
            if attempt < self.max_attempts:
                await self._sleep(self.poll_interval)

        logger.warning(
            f"{self._log_prefix}Gave up after {self.max_attempts} status checks "
            f"({time.monotonic() - started:.1f}s). DeepL may still finish the document."
        )
        raise job.fail(
            TranslationTimeoutError("Translation took too long to complete"),
            state=JobState.TIMED_OUT,
        )

    async def fetch_result(self, job: TranslationJob, destination: Path) -> int:
        """Download the translated document into `destination`. Only valid once `done`."""
        self._require_state(job, JobState.DONE, "fetch the result of")
        try:
            size = await self.client.download_document(
                job.document_id, job.document_key, destination
            )
        except ServiceError as e:
            job.fail(e)
            raise
        logger.info(f"{self._log_prefix}Downloaded translated document ({size} bytes).")
        return size

    async def run(self, job: TranslationJob, file_obj: IO[bytes], destination: Path) -> int:
        await self.submit(job, file_obj)
        await self.await_completion(job)
        return await self.fetch_result(job, destination)
