"""Main entry point for the vocab-forge command line tool."""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from PySide6.QtCore import QCoreApplication

from vocab_forge.coordinators import EditCoordinator, ImportCoordinator, ProcessingScheduler, RegenerationCoordinator
from vocab_forge.core import (
    AuthenticationError,
    DatasetContext,
    PermissionDeniedError,
    RemoteUnavailableError,
    User,
    ValidationError,
    ViewFilter,
)
from vocab_forge.core.dataset_context import CompletenessFilter
from vocab_forge.io import LocalCache, RemoteGateway
from vocab_forge.services import (
    AppRegistry,
    CatalogStore,
    ExportService,
    GeminiGenerationService,
    GenerationService,
    HttpGenerationService,
    IdentityAllocator,
    PermissionEvaluator,
    SessionService,
    SettingsManager,
)

logger = logging.getLogger("vocab_forge")


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the package logger."""
    package_logger = logging.getLogger("vocab_forge")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        package_logger.addHandler(handler)


@dataclass
class Application:
    """Every wired component of one session."""

    settings: SettingsManager
    cache: LocalCache
    remote: RemoteGateway
    catalog_store: CatalogStore
    app_registry: AppRegistry
    session: SessionService
    generation_service: GenerationService
    scheduler: ProcessingScheduler
    importer: ImportCoordinator
    editor: EditCoordinator
    regenerator: RegenerationCoordinator
    exporter: ExportService

    def close(self) -> None:
        self.generation_service.close()
        self.remote.close()
        self.cache.close()


def build_generation_service(settings: SettingsManager) -> GenerationService:
    if settings.get_generation_backend() == "gemini":
        api_key = settings.get_gemini_api_key()
        if not api_key:
            raise ValidationError("GEMINI_API_KEY is required for the gemini generation backend")
        return GeminiGenerationService(api_key=api_key)
    return HttpGenerationService(base_url=settings.get_api_url())


def build_application(settings: SettingsManager) -> Application:
    """
    Bootstrap following the Composition Root pattern.
    This is the only place that knows how to instantiate and wire all components.
    """
    # 1. Infrastructure
    cache = LocalCache(settings.get_db_path())
    cache.ensure_schema()
    remote = RemoteGateway(settings.get_api_url(), timeout=settings.get_request_timeout())

    # 2. Services
    permissions = PermissionEvaluator()
    catalog_store = CatalogStore(remote=remote, cache=cache, allocator=IdentityAllocator(cache))
    app_registry = AppRegistry(remote=remote, cache=cache)
    session = SessionService(remote=remote, cache=cache)
    generation_service = build_generation_service(settings)

    # 3. Coordinators (Dependency Injection)
    return Application(
        settings=settings,
        cache=cache,
        remote=remote,
        catalog_store=catalog_store,
        app_registry=app_registry,
        session=session,
        generation_service=generation_service,
        scheduler=ProcessingScheduler(catalog_store, generation_service, permissions),
        importer=ImportCoordinator(catalog_store, app_registry, session, permissions),
        editor=EditCoordinator(catalog_store, permissions),
        regenerator=RegenerationCoordinator(catalog_store, generation_service, permissions),
        exporter=ExportService(permissions),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocab-forge", description="Multi-language vocabulary catalog tool")
    parser.add_argument("--username", help="Sign in before running the command")
    parser.add_argument("--password", help="Password for --username")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_context(p: argparse.ArgumentParser) -> None:
        p.add_argument("--app", help="App name (defaults to the last used context)")
        p.add_argument("--lang", help="Target language code (defaults to the last used context)")

    process = sub.add_parser("process", help="Generate data for pending items of a context")
    add_context(process)
    process.add_argument("--limit", type=int, default=None, help="Stop after this many items")

    list_cmd = sub.add_parser("list", help="Print the items of a context")
    add_context(list_cmd)
    list_cmd.add_argument("--search", default="", help="Filter by term or English translation")
    list_cmd.add_argument(
        "--filter",
        choices=[f.value for f in CompletenessFilter],
        default=CompletenessFilter.ALL.value,
    )

    import_cmd = sub.add_parser("import", help="Import terms as pending items")
    import_cmd.add_argument("--app", required=True)
    import_cmd.add_argument("--lang", required=True)
    import_cmd.add_argument("--file", type=Path, help="Newline-delimited term file")
    import_cmd.add_argument("terms", nargs="*")

    export_cmd = sub.add_parser("export", help="Write the context view as JSON")
    add_context(export_cmd)
    export_cmd.add_argument("--out", type=Path, default=Path("."), help="Output directory")

    return parser


def _resolve_user(app: Application, args: argparse.Namespace) -> Optional[User]:
    if args.username:
        return app.session.login(args.username, args.password or "")
    return app.session.restore_session()


def _resolve_context(app: Application, args: argparse.Namespace) -> DatasetContext:
    last = app.session.last_context()
    app_name = args.app or (last.app_name if last else None)
    language = args.lang or (last.target_language if last else None)
    if not app_name or not language:
        raise ValidationError("No context selected; pass --app and --lang")
    context = DatasetContext(app_name=app_name, target_language=language)
    app.session.save_context(context)
    return context


def _read_terms(args: argparse.Namespace) -> List[str]:
    terms = list(args.terms)
    if args.file is not None:
        terms.extend(args.file.read_text(encoding="utf-8").splitlines())
    return terms


def run(app: Application, args: argparse.Namespace) -> int:
    user = _resolve_user(app, args)

    if args.command == "import":
        created = app.importer.import_terms(user, args.app, args.lang, _read_terms(args))
        print(f"Imported {len(created)} item(s)")
        return 0

    context = _resolve_context(app, args)
    if args.command == "process":
        app.catalog_store.list(context)
        app.scheduler.set_context(context)
        completed, failed = app.scheduler.process(user, max_items=args.limit)
        print(f"Completed {completed}, failed {failed}")
        return 0 if failed == 0 else 2

    items = app.catalog_store.list(context)
    if args.command == "list":
        view = ViewFilter(search=args.search, completeness=CompletenessFilter(args.filter))
        for item in view.apply(items):
            english = item.translations.get("en", "")
            print(f"{item.int_id:>5}  {item.status.value:<9}  {item.term}  {english}")
        return 0

    if args.command == "export":
        path = app.exporter.export(user, context, items, args.out)
        print(f"Exported to {path}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    qt_app.setApplicationName("Vocab Forge")
    qt_app.setOrganizationName("VocabForge")

    settings = SettingsManager()
    configure_logging(settings.get_log_level())

    try:
        app = build_application(settings)
    except ValidationError as e:
        logger.error("%s", e)
        return 1

    try:
        return run(app, args)
    except AuthenticationError as e:
        logger.error("Sign-in failed: %s", e)
        return 1
    except (PermissionDeniedError, ValidationError) as e:
        logger.error("%s", e)
        return 1
    except RemoteUnavailableError as e:
        logger.error("Server unavailable: %s", e)
        return 1
    finally:
        app.close()


if __name__ == "__main__":
    sys.exit(main())
