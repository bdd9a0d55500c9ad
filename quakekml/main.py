import logging
import sys
from dataclasses import dataclass
from datetime import datetime

from apscheduler.schedulers.blocking import BlockingScheduler

from quakekml.config import Settings, load_settings
from quakekml.errors import QuakeKmlError
from quakekml.logging_config import setup_logging
from quakekml.providers.base import EventSource
from quakekml.providers.kandilli import KandilliProvider
from quakekml.services.merge import meets_floor, merge
from quakekml.services.render import write_kml
from quakekml.storage.archive import ArchiveStore, JsonArchiveStore
from quakekml.utils.http import HttpClient, HttpPolicy
from quakekml.utils.timeutil import now_utc

log = logging.getLogger("main")

@dataclass(frozen=True)
class RunReport:
    fetched: int
    archived: int
    displayed: int
    rejected: int
    changed: bool
    saved: bool

def run_once(
    settings: Settings,
    *,
    source: EventSource,
    store: ArchiveStore,
    now: datetime | None = None,
) -> RunReport:
    """
    One full cycle: load archive, fetch, merge, persist, render.
    Any QuakeKmlError other than a malformed record aborts the run.
    """
    now = now or now_utc()

    existing = store.load()
    incoming = source.fetch_events()

    archived = merge(
        existing,
        incoming,
        now=now,
        retention=settings.retention,
        magnitude_floor=settings.archive_min_magnitude,
        source_offset=settings.source_offset,
    )
    for event, ex in archived.rejected:
        log.warning("Skipping record %r: %s", event.id or "<no id>", ex)

    saved = False
    if archived.changed and not settings.dry_run:
        store.save(archived.events)
        saved = True
    elif archived.changed:
        log.info("Dry run: archive changes not saved")
    else:
        log.info("Archive unchanged (%d events)", len(archived.events))

    # The map floor is independent of the archive floor, in either direction
    display = merge(
        archived.events,
        incoming,
        now=now,
        retention=settings.retention,
        magnitude_floor=settings.display_min_magnitude,
        source_offset=settings.source_offset,
    )
    reported = {id(e) for e, _ in archived.rejected}
    for event, ex in display.rejected:
        if id(event) not in reported:
            log.warning("Skipping record %r: %s", event.id or "<no id>", ex)

    shown = [e for e in display.events if meets_floor(e, settings.display_min_magnitude)]
    write_kml(settings.kml_path, shown, document_name=settings.kml_document_name)

    report = RunReport(
        fetched=len(incoming),
        archived=len(archived.events),
        displayed=len(shown),
        rejected=len(reported | {id(e) for e, _ in display.rejected}),
        changed=archived.changed,
        saved=saved,
    )
    log.info(
        "Run complete: fetched=%d archived=%d displayed=%d rejected=%d",
        report.fetched, report.archived, report.displayed, report.rejected,
    )
    return report

def _watch(settings: Settings, job) -> None:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        job,
        "interval",
        minutes=settings.watch_interval_minutes,
        next_run_time=now_utc(),
        max_instances=1,
        coalesce=True,
    )
    log.info("Refreshing every %d minutes", settings.watch_interval_minutes)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        log.info("Stopped")

def main() -> int:
    try:
        settings = load_settings()
    except (RuntimeError, ValueError) as ex:
        setup_logging()
        log.error("Invalid configuration: %s", ex)
        return 2

    setup_logging(settings.log_level)

    http = HttpClient(HttpPolicy(user_agent=settings.user_agent, timeout_seconds=settings.http_timeout_seconds))
    source = KandilliProvider(http=http, url=settings.feed_url)
    store = JsonArchiveStore(settings.archive_path)

    try:
        if settings.watch_interval_minutes <= 0:
            try:
                run_once(settings, source=source, store=store)
            except QuakeKmlError as ex:
                log.error("Run failed: %s", ex)
                return 1
            return 0

        def scheduled_job() -> None:
            try:
                run_once(settings, source=source, store=store)
            except QuakeKmlError as ex:
                log.error("Run failed: %s", ex)
            except Exception as ex:
                log.exception("Scheduled run error: %s", ex)

        _watch(settings, scheduled_job)
        return 0
    finally:
        http.close()

if __name__ == "__main__":
    sys.exit(main())
