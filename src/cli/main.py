"""CLI commands for the news digest pipeline."""

import json
import logging
import signal
import sys
import threading
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import FrameType
from typing import NoReturn

import click
import structlog

from src.digest import (
    BatchDigestCoordinator,
    DigestGenerationError,
    DigestIllustrator,
    DigestSynthesizer,
    DigestWriter,
    SynthesisResult,
)
from src.feed import FeedConfigError, FeedQuery, GNewsClient
from src.ingest import IngestionOrchestrator, RunStats
from src.ingest.orchestrator import fetch_error_message
from src.llm import LlmAuthError, create_image_client, create_llm_client
from src.observability.logging import bind_run_context, configure_logging
from src.settings import AppSettings, get_settings
from src.store import (
    ALL_TARGETS,
    Article,
    Digest,
    DigestKind,
    NewsStore,
    TargetFilter,
    Topic,
)
from src.tagging import AiTopicClassifier, ClassificationCascade, RuleClassifier
from src.taxonomy import TAXONOMY


logger = structlog.get_logger()

GLOBAL_SCOPE = "global"


@dataclass
class CliContext:
    """Shared state for sub-commands."""

    settings: AppSettings
    db_path: Path


def _open_store(obj: CliContext) -> NewsStore:
    return NewsStore(db_path=obj.db_path)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _resolve_topic(store: NewsStore, slug: str | None) -> Topic | None:
    """Resolve a ``--topic`` slug, exiting when it is unknown."""
    if slug is None:
        return None
    topic = store.get_topic_by_slug(slug)
    if topic is None:
        _fail(f"Unknown topic '{slug}'. Run 'news-digest topics' to list slugs.")
    return topic


def _build_cascade(settings: AppSettings) -> ClassificationCascade:
    rules = RuleClassifier(TAXONOMY, saturation_matches=settings.rule_saturation_matches)

    ai_classifier = None
    if settings.ai_fallback_enabled and settings.ai_configured:
        llm_client = create_llm_client(
            api_key=settings.gemini_api_key,
            model=settings.llm_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
        ai_classifier = AiTopicClassifier(llm_client, TAXONOMY)

    return ClassificationCascade(
        rules, ai_classifier, threshold=settings.ai_confidence_threshold
    )


def _build_synthesizer(settings: AppSettings, store: NewsStore) -> DigestSynthesizer:
    """Wire the synthesizer from settings.

    Raises:
        LlmAuthError: If no Gemini API key is configured.
    """
    llm_client = create_llm_client(
        api_key=settings.gemini_api_key,
        model=settings.llm_model,
        timeout_seconds=settings.llm_timeout_seconds,
    )
    title_client = create_llm_client(
        api_key=settings.gemini_api_key,
        model=settings.llm_title_model,
        timeout_seconds=settings.llm_timeout_seconds,
    )

    illustrator = None
    if settings.image_generation_enabled:
        image_client = create_image_client(
            api_key=settings.gemini_api_key,
            model=settings.image_model,
            timeout_seconds=settings.image_timeout_seconds,
        )
        illustrator = DigestIllustrator(image_client, settings.image_dir)

    return DigestSynthesizer(
        store,
        DigestWriter(llm_client, title_client, model_label=settings.llm_model),
        illustrator=illustrator,
        lookback_hours=settings.digest_lookback_hours,
        max_items=settings.digest_max_items,
    )


def _as_of(date: datetime | None) -> datetime | None:
    """Interpret a ``--date`` value (naive, day precision) as UTC."""
    return date.replace(tzinfo=UTC) if date is not None else None


def _echo_run_stats(stats: RunStats) -> None:
    click.echo("Fetch Results")
    click.echo("=" * 40)
    click.echo(f"  Fetched:        {stats.fetched}")
    click.echo(f"  Inserted:       {stats.inserted}")
    click.echo(f"  Duplicates:     {stats.duplicates}")
    click.echo(f"  Tagged by rule: {stats.tagged_by_rule}")
    click.echo(f"  Tagged by AI:   {stats.tagged_by_ai}")
    click.echo(f"  Untagged:       {stats.untagged}")
    _echo_errors(stats.errors)


def _echo_errors(errors: list[str]) -> None:
    if not errors:
        return
    click.echo("")
    click.echo(f"Errors ({len(errors)}):")
    for error in errors:
        click.echo(f"  - {error}")


def _format_synthesis(label: str, result: SynthesisResult) -> str:
    state = "new" if result.is_new else "existing"
    return (
        f"  {label}: {result.title} [{state}, {result.item_count} articles] "
        f"(id={result.digest_id})"
    )


def _echo_digest(digest: Digest, topic_names: dict[str, str]) -> None:
    scope = topic_names.get(digest.topic_id, digest.topic_id) if digest.topic_id else "Global"
    click.echo(f"{digest.title or 'Daily Digest'}")
    click.echo(f"  Scope: {scope}  Date: {digest.date.date().isoformat()}  Model: {digest.model}")
    if digest.image_url:
        click.echo(f"  Image: {digest.image_url}")
    click.echo("")
    click.echo(digest.content)


def _echo_article(article: Article, topic_names: dict[str, str]) -> None:
    topic = topic_names.get(article.topic_id, "untagged") if article.topic_id else "untagged"
    publisher = f" ({article.publisher_name})" if article.publisher_name else ""
    click.echo(f"[{article.published_at:%Y-%m-%d %H:%M}] [{topic}] {article.title}{publisher}")
    click.echo(f"    {article.url}")


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to SQLite database (default: NEWS_DB_PATH or data/news.sqlite).",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=False,
    help="Output logs in JSON format.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, db_path: Path | None, json_logs: bool, verbose: bool) -> None:
    """Tech news ingestion and digest CLI."""
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO, json_format=json_logs
    )
    settings = get_settings()
    ctx.obj = CliContext(settings=settings, db_path=db_path or settings.db_path)


@cli.command("seed-topics")
@click.pass_obj
def seed_topics(obj: CliContext) -> None:
    """Create any missing taxonomy topics."""
    with _open_store(obj) as store:
        created = store.seed_topics(TAXONOMY)
    click.echo(f"Created {created} topics ({len(TAXONOMY)} in taxonomy).")


@cli.command()
@click.option(
    "--max",
    "max_items",
    type=click.IntRange(1, 100),
    default=None,
    help="Maximum articles to request (default: INGEST_BATCH_SIZE).",
)
@click.option("--ai/--no-ai", "use_ai", default=True, help="Allow AI tagging fallback.")
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Parallel item workers.",
)
@click.pass_obj
def fetch(obj: CliContext, max_items: int | None, use_ai: bool, workers: int) -> None:
    """Fetch, deduplicate, tag, and store recent articles."""
    settings = obj.settings
    run_id = str(uuid.uuid4())
    bind_run_context(run_id)

    with _open_store(obj) as store:
        try:
            feed = GNewsClient(
                api_key=settings.gnews_api_key,
                timeout_seconds=settings.feed_timeout_seconds,
            )
        except FeedConfigError as exc:
            stats = RunStats(errors=[fetch_error_message(exc)])
        else:
            orchestrator = IngestionOrchestrator(
                store,
                feed,
                _build_cascade(settings),
                feed_query=FeedQuery(
                    query=settings.feed_query,
                    language=settings.feed_language,
                    region=settings.feed_region,
                ),
                lookback_hours=settings.ingest_lookback_hours,
                max_workers=workers,
                run_id=run_id,
            )
            stats = orchestrator.ingest(
                max_items=max_items or settings.ingest_batch_size,
                use_ai=use_ai and settings.ai_fallback_enabled,
            )

    _echo_run_stats(stats)
    if stats.fetched == 0 and stats.errors:
        sys.exit(1)


@cli.group()
def digest() -> None:
    """Generate and browse digests."""


@digest.command("generate")
@click.option("--topic", "topic_slug", default=None, help="Topic slug (default: global).")
@click.option(
    "--date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Digest date (UTC, default: today).",
)
@click.option("--force", is_flag=True, help="Replace an existing digest.")
@click.option(
    "--max-items",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum articles to summarize (default: DIGEST_MAX_ITEMS).",
)
@click.pass_obj
def digest_generate(
    obj: CliContext,
    topic_slug: str | None,
    date: datetime | None,
    force: bool,
    max_items: int | None,
) -> None:
    """Generate one daily digest."""
    bind_run_context(str(uuid.uuid4()))

    with _open_store(obj) as store:
        topic = _resolve_topic(store, topic_slug)
        try:
            synthesizer = _build_synthesizer(obj.settings, store)
            result = synthesizer.synthesize(
                topic_id=topic.id if topic else None,
                as_of=_as_of(date),
                force_regenerate=force,
                max_items=max_items,
            )
        except (LlmAuthError, DigestGenerationError) as exc:
            _fail(str(exc))

    label = topic.name if topic else "Global"
    if result is None:
        click.echo(f"No articles in the digest window for {label}; nothing generated.")
        return
    click.echo(_format_synthesis(label, result))


@digest.command("generate-all")
@click.option(
    "--date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Digest date (UTC, default: today).",
)
@click.option("--force", is_flag=True, help="Replace existing digests.")
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Parallel topic workers.",
)
@click.pass_obj
def digest_generate_all(
    obj: CliContext, date: datetime | None, force: bool, workers: int
) -> None:
    """Generate the global digest and one digest per topic."""
    bind_run_context(str(uuid.uuid4()))
    cancel_event = threading.Event()

    def _request_cancel(signum: int, frame: FrameType | None) -> None:  # noqa: ARG001
        click.echo("Cancelling: finishing in-flight digests...", err=True)
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, _request_cancel)
    try:
        with _open_store(obj) as store:
            try:
                synthesizer = _build_synthesizer(obj.settings, store)
            except LlmAuthError as exc:
                _fail(str(exc))
            coordinator = BatchDigestCoordinator(synthesizer, store, max_workers=workers)
            result = coordinator.synthesize_all(
                as_of=_as_of(date),
                force_regenerate=force,
                cancel_event=cancel_event,
            )
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    click.echo("Digest Results")
    click.echo("=" * 40)
    if result.global_result is not None:
        click.echo(_format_synthesis("Global", result.global_result))
    else:
        click.echo("  Global: none")
    for topic_result in result.topic_results:
        click.echo(_format_synthesis("Topic", topic_result))
    if result.cancelled:
        click.echo("  (cancelled before all targets ran)")
    _echo_errors(result.errors)


@digest.command("latest")
@click.option("--topic", "topic_slug", default=None, help="Topic slug (default: global).")
@click.pass_obj
def digest_latest(obj: CliContext, topic_slug: str | None) -> None:
    """Show the most recent daily digest for a scope."""
    with _open_store(obj) as store:
        topic = _resolve_topic(store, topic_slug)
        latest = store.get_latest_digest(topic.id if topic else None)
        topic_names = {t.id: t.name for t in store.list_topics()}

    if latest is None:
        click.echo("No digest found.")
        return
    _echo_digest(latest, topic_names)


@digest.command("list")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in DigestKind]),
    default=DigestKind.DAILY.value,
    show_default=True,
)
@click.option(
    "--topic",
    "topic_slug",
    default=None,
    help=f"Topic slug, or '{GLOBAL_SCOPE}' (default: all scopes).",
)
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_obj
def digest_list(obj: CliContext, kind: str, topic_slug: str | None, limit: int) -> None:
    """List digests, newest date first."""
    with _open_store(obj) as store:
        scope: TargetFilter
        if topic_slug is None:
            scope = ALL_TARGETS
        elif topic_slug == GLOBAL_SCOPE:
            scope = None
        else:
            topic = _resolve_topic(store, topic_slug)
            scope = topic.id if topic else None
        digests = store.list_digests(DigestKind(kind), topic_id=scope, limit=limit)
        topic_names = {t.id: t.name for t in store.list_topics()}

    if not digests:
        click.echo("No digests found.")
        return
    for item in digests:
        scope_name = topic_names.get(item.topic_id, "?") if item.topic_id else "Global"
        click.echo(
            f"{item.date.date().isoformat()}  {scope_name:<24}  "
            f"{item.title or 'Daily Digest'}  (id={item.id})"
        )


@cli.command()
@click.pass_obj
def topics(obj: CliContext) -> None:
    """List topics in display order."""
    with _open_store(obj) as store:
        all_topics = store.list_topics()

    if not all_topics:
        click.echo("No topics. Run 'news-digest seed-topics' first.")
        return
    for topic in all_topics:
        click.echo(f"{topic.sort_order:>2}. {topic.slug:<16} {topic.name}")


@cli.command()
@click.option("--topic", "topic_slug", default=None, help="Topic slug.")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option(
    "--hours",
    type=click.IntRange(min=1),
    default=None,
    help="Only articles published in the last N hours.",
)
@click.pass_obj
def articles(
    obj: CliContext, topic_slug: str | None, limit: int, hours: int | None
) -> None:
    """List recent articles, newest first."""
    with _open_store(obj) as store:
        topic = _resolve_topic(store, topic_slug)
        topic_id = topic.id if topic else None
        if hours is None:
            found = store.list_articles(topic_id=topic_id, limit=limit)
        else:
            found = store.find_articles_in_window(
                start=datetime.now(UTC) - timedelta(hours=hours),
                topic_id=topic_id,
                limit=limit,
            )
        topic_names = {t.id: t.slug for t in store.list_topics()}

    if not found:
        click.echo("No articles found.")
        return
    for article in found:
        _echo_article(article, topic_names)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_obj
def stats(obj: CliContext, json_output: bool) -> None:
    """Display article counts per topic and table statistics."""
    with _open_store(obj) as store:
        table_counts = store.get_stats()
        schema_version = store.get_schema_version()
        by_topic = store.get_topic_article_counts()

    if json_output:
        output = {
            "schema_version": schema_version,
            "total_articles": table_counts["articles"],
            "by_topic": [count.model_dump() for count in by_topic],
            "tables": table_counts,
        }
        click.echo(json.dumps(output, indent=2))
        return

    click.echo("News Database Statistics")
    click.echo("=" * 40)
    click.echo(f"  Schema Version: {schema_version}")
    click.echo(f"  Total Articles: {table_counts['articles']}")
    click.echo("")
    click.echo("Articles by Topic:")
    for count in by_topic:
        click.echo(f"  {count.topic}: {count.count}")
    click.echo("")
    click.echo("Table Row Counts:")
    for table, count in sorted(table_counts.items()):
        click.echo(f"  {table}: {count}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
