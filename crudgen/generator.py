# File: crudgen/generator.py
"""
crudgen - Generation Orchestrator
==================================

Drives every requested table through the pipeline::

    Fetching → Normalizing → Classifying → BuildingContext → Rendering → Done
                                                                    ↘ Failed

Workflow::

    1. Validate the request (``GenerateRequest``: non-empty, unique ids).
    2. Fan out one task per table, bounded by ``max_concurrency``.
    3. Fetch the table (and its sub-table, for ``sub``) from the catalog.
       This is the only await; ``fetch_timeout_seconds`` applies here.
    4. Normalize, classify, build the context, render. All synchronous.
    5. Merge results in request order.
    6. ZIP: hand the files to the injected packager.
       PATH: resolve ``gen_path`` and return the files to the caller.

Error handling strategy:
    - Upstream failures (fetch/normalize/classify/context) fail one table.
    - Render failures fail one file; the table's other files survive.
    - Packaging failures fail only the archive; files are still returned.
    - Nothing raises across the batch boundary except a malformed request.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from crudgen.catalog import CatalogAccessor, coerce_bundle
from crudgen.classifier import classify_columns
from crudgen.config import GeneratorConfig
from crudgen.context import build_context
from crudgen.errors import CrudgenError, NotFoundError, PackagingError, ValidationError
from crudgen.models import (
    GeneratedFile,
    GenerateError,
    GenerateRequest,
    GenerateResult,
    GenType,
    NormalizedTable,
    PipelineStage,
    RawTableBundle,
    TableOutcome,
    TplCategory,
)
from crudgen.normalizer import normalize_table
from crudgen.templates import render_context
from crudgen.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.generator")

Packager = Callable[[Sequence[GeneratedFile]], bytes]


# ---------------------------------------------------------------------------
# Per-table run record
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class TableRun:
    """Everything one table's pipeline produced."""

    table_id: int
    table_name: Optional[str] = None
    stage: PipelineStage = PipelineStage.FETCHING
    failed_stage: Optional[PipelineStage] = None
    files: List[GeneratedFile] = field(default_factory=list)
    errors: List[GenerateError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    exception: Optional[BaseException] = None
    elapsed_seconds: float = 0.0

    def advance(self, stage: PipelineStage) -> None:
        logger.debug(
            "Table %s: %s → %s",
            self.table_name or f"#{self.table_id}",
            self.stage.value,
            stage.value,
        )
        self.stage = stage

    def fail(self, exc: BaseException) -> None:
        self.failed_stage = self.stage
        self.exception = exc
        self.errors.append(
            GenerateError.from_exception(
                exc,
                table_id=self.table_id,
                table_name=self.table_name,
                stage=self.stage.value,
            )
        )
        self.stage = PipelineStage.FAILED

    def outcome(self) -> TableOutcome:
        return TableOutcome(
            table_id=self.table_id,
            table_name=self.table_name,
            stage=self.stage,
            failed_stage=self.failed_stage,
            file_count=len(self.files),
            elapsed_seconds=round(self.elapsed_seconds, 6),
        )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class CodeGenerator:
    """
    Batch orchestrator.

    Usage::

        catalog = InMemoryCatalog.from_file("tables.yaml")
        generator = CodeGenerator(catalog, packager=build_zip)
        result = generator.generate_sync(GenerateRequest(table_ids=(1, 2)))
        print(result.summary())

    The generator is reusable; every call builds fresh contexts.
    """

    def __init__(
        self,
        catalog: CatalogAccessor,
        config: Optional[GeneratorConfig] = None,
        *,
        packager: Optional[Packager] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._catalog: CatalogAccessor = catalog
        self._config: GeneratorConfig = config or GeneratorConfig()
        self._packager: Optional[Packager] = packager
        self._clock: Callable[[], datetime] = clock
        logger.debug(
            "CodeGenerator initialised: max_concurrency=%d, fetch_timeout=%s, packager=%s",
            self._config.max_concurrency,
            self._config.fetch_timeout_seconds,
            getattr(packager, "__name__", packager),
        )

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public: batch generation
    # -----------------------------------------------------------------

    async def generate(
        self, request: Union[GenerateRequest, Mapping[str, Any]]
    ) -> GenerateResult:
        """
        Run the pipeline for every requested table.

        Raises:
            pydantic.ValidationError: *request* is a mapping that does not
                form a valid ``GenerateRequest`` (e.g. empty ``tableIds``).
        """
        if not isinstance(request, GenerateRequest):
            request = GenerateRequest.model_validate(request)

        now: datetime = self._clock()
        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def bounded(table_id: int) -> TableRun:
            async with semaphore:
                return await self._run_table(table_id, now)

        with Timer("generate batch") as timer:
            runs: List[TableRun] = list(
                await asyncio.gather(*(bounded(tid) for tid in request.table_ids))
            )

        result = GenerateResult(gen_type=request.gen_type)
        for run in runs:
            result.files.extend(run.files)
            result.errors.extend(run.errors)
            result.warnings.extend(run.warnings)
            result.tables.append(run.outcome())

        if request.gen_type == GenType.ZIP:
            self._package(result)
        else:
            result.gen_path = request.gen_path or self._config.default_gen_path

        logger.info(
            "Generated %d file(s) for %d table(s) in %.3fs: %d error(s), %d warning(s).",
            len(result.files),
            len(runs),
            timer.elapsed,
            len(result.errors),
            len(result.warnings),
        )
        return result

    def generate_sync(
        self, request: Union[GenerateRequest, Mapping[str, Any]]
    ) -> GenerateResult:
        """Blocking wrapper around :meth:`generate`."""
        return asyncio.run(self.generate(request))

    # -----------------------------------------------------------------
    # Public: preview
    # -----------------------------------------------------------------

    async def preview(self, table_id: int) -> Dict[str, str]:
        """
        Render one table and return ``{file_path: content}``.

        Raises:
            CrudgenError: the table failed before rendering.
        """
        run: TableRun = await self._run_table(table_id, self._clock())
        if run.stage == PipelineStage.FAILED and run.exception is not None:
            if isinstance(run.exception, CrudgenError):
                raise run.exception
            raise CrudgenError(
                str(run.exception),
                table_id=table_id,
                table_name=run.table_name,
                stage=run.failed_stage.value if run.failed_stage else None,
            ) from run.exception
        for err in run.errors:
            logger.warning("Preview of #%d: %s", table_id, err)
        return {f.file_path: f.content for f in run.files}

    def preview_sync(self, table_id: int) -> Dict[str, str]:
        return asyncio.run(self.preview(table_id))

    # -----------------------------------------------------------------
    # Internal: one table
    # -----------------------------------------------------------------

    async def _run_table(self, table_id: int, now: datetime) -> TableRun:
        run = TableRun(table_id=table_id)
        with Timer(f"table #{table_id}") as timer:
            try:
                bundle, sub_bundle = await self._fetch(run)

                run.advance(PipelineStage.NORMALIZING)
                normalized: NormalizedTable = normalize_table(bundle, table_id)
                run.table_name = normalized.table.table_name
                run.warnings.extend(normalized.warnings)
                sub_normalized: Optional[NormalizedTable] = None
                if sub_bundle is not None:
                    sub_normalized = normalize_table(sub_bundle)
                    run.warnings.extend(sub_normalized.warnings)

                run.advance(PipelineStage.CLASSIFYING)
                classified = classify_columns(
                    normalized.columns,
                    normalized.config.options,
                    normalized.config.column_options,
                    self._config.dict_type_names,
                )

                run.advance(PipelineStage.BUILDING_CONTEXT)
                ctx = build_context(
                    normalized,
                    classified,
                    self._config,
                    sub_table=sub_normalized,
                    now=now,
                    warnings=run.warnings,
                )

                run.advance(PipelineStage.RENDERING)
                files, render_errors = render_context(ctx)
                run.files.extend(files)
                for exc in render_errors:
                    run.errors.append(GenerateError.from_exception(exc, table_id=table_id))
                run.advance(PipelineStage.DONE)
            except CrudgenError as exc:
                logger.error(
                    "Table %s failed at %s: %s",
                    run.table_name or f"#{table_id}",
                    run.stage.value,
                    exc.message,
                )
                run.fail(exc)
            except asyncio.TimeoutError:
                timeout = self._config.fetch_timeout_seconds
                logger.error("Table #%d: catalog fetch timed out after %ss", table_id, timeout)
                run.fail(asyncio.TimeoutError(f"Catalog fetch timed out after {timeout}s"))
            except Exception as exc:
                logger.error(
                    "Table %s failed unexpectedly at %s",
                    run.table_name or f"#{table_id}",
                    run.stage.value,
                    exc_info=True,
                )
                run.fail(exc)
        run.elapsed_seconds = timer.elapsed
        return run

    async def _fetch(
        self, run: TableRun
    ) -> Tuple[RawTableBundle, Optional[RawTableBundle]]:
        """Fetch the table and, for ``sub`` tables, its detail table."""
        raw: Any = await self._call_catalog(self._catalog.fetch_table, run.table_id)
        if raw is None:
            raise NotFoundError(f"Table #{run.table_id} does not exist", table_id=run.table_id)
        bundle: RawTableBundle = coerce_bundle(raw, run.table_id)
        run.table_name = bundle.raw_table.table_name

        sub_bundle: Optional[RawTableBundle] = None
        sub_name: Optional[str] = bundle.raw_table.sub_table_name
        category: str = (bundle.raw_table.tpl_category or "").strip().lower()
        if category == TplCategory.SUB.value and sub_name:
            try:
                sub_raw: Any = await self._call_catalog(self._catalog.fetch_table_by_name, sub_name)
            except NotFoundError as exc:
                raise ValidationError(
                    f"Sub-table '{sub_name}' does not exist",
                    table_id=run.table_id,
                    table_name=run.table_name,
                ) from exc
            if sub_raw is None:
                raise ValidationError(
                    f"Sub-table '{sub_name}' does not exist",
                    table_id=run.table_id,
                    table_name=run.table_name,
                )
            sub_bundle = coerce_bundle(sub_raw, run.table_id)
        return bundle, sub_bundle

    async def _call_catalog(self, method: Callable[[Any], Any], arg: Any) -> Any:
        """Invoke a sync or async catalog method; the timeout covers awaitables only."""
        value: Any = method(arg)
        if not inspect.isawaitable(value):
            return value
        timeout: Optional[float] = self._config.fetch_timeout_seconds
        if timeout is None:
            return await value
        return await asyncio.wait_for(value, timeout)

    # -----------------------------------------------------------------
    # Internal: packaging
    # -----------------------------------------------------------------

    def _package(self, result: GenerateResult) -> None:
        if not result.files:
            return
        if self._packager is None:
            result.warnings.append("ZIP requested but no packager is configured; files returned unpacked")
            return
        try:
            result.zip_buffer = self._packager(result.files)
        except Exception as exc:
            logger.error("Packaging %d file(s) failed: %s", len(result.files), exc)
            err: PackagingError = (
                exc if isinstance(exc, PackagingError) else PackagingError(f"{type(exc).__name__}: {exc}")
            )
            result.errors.append(GenerateError.from_exception(err))


__all__: List[str] = [
    "Packager",
    "TableRun",
    "CodeGenerator",
]
