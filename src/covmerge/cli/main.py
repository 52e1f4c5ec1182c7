"""covmerge CLI - merge raw coverage into one LCOV report."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from covmerge.config.loader import build_merger_config, load_logging_config
from covmerge.core.errors import ConfigError, CovMergeError, OutputWriteError
from covmerge.core.logging import configure_logging, get_logger, set_run_id
from covmerge.pipeline import run


def _split_csv(
    _ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]
) -> tuple[str, ...]:
    return tuple(part for value in values for part in value.split(",") if part)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version="0.1.0", prog_name="covmerge")
@click.option(
    "--output_file",
    "--output-file",
    "output_file",
    type=click.Path(path_type=Path),
    help="Where to write the merged LCOV report.",
)
@click.option(
    "--coverage_dir",
    "--coverage-dir",
    "coverage_dir",
    type=click.Path(path_type=Path),
    help="Directory searched recursively for .dat, .gcov and .profdata files.",
)
@click.option(
    "--reports_file",
    "--reports-file",
    "reports_file",
    type=click.Path(path_type=Path),
    help="File listing one tracefile path per line.",
)
@click.option(
    "--filter_sources",
    "--filter-sources",
    "filter_sources",
    multiple=True,
    callback=_split_csv,
    help="Drop sources whose path contains this text. Repeatable or comma-separated.",
)
@click.option(
    "--source_file_manifest",
    "--source-file-manifest",
    "source_file_manifest",
    type=click.Path(path_type=Path),
    help="Keep only the sources listed in this manifest.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML file with logging settings.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--log-json", is_flag=True, help="Render log events as JSON lines.")
@click.pass_context
def cli(
    ctx: click.Context,
    output_file: Path | None,
    coverage_dir: Path | None,
    reports_file: Path | None,
    filter_sources: tuple[str, ...],
    source_file_manifest: Path | None,
    config_path: Path | None,
    verbose: bool,
    log_json: bool,
) -> None:
    """Merge raw coverage files into a single LCOV tracefile.

    Exactly one of --coverage_dir or --reports_file selects the inputs.
    """
    configure_logging(json_format=log_json, level="DEBUG" if verbose else "INFO")
    set_run_id()

    # Flags are checked before --config or any input is read
    try:
        config = build_merger_config(
            output_file=output_file,
            coverage_dir=coverage_dir,
            reports_file=reports_file,
            filter_sources=filter_sources,
            source_file_manifest=source_file_manifest,
        )
        logging_config = load_logging_config(config_path)
    except ConfigError as e:
        get_logger("covmerge").error("run.failed", **e.to_dict())
        ctx.exit(1)

    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    if log_json:
        outputs = [o.model_copy(update={"format": "json"}) for o in logging_config.outputs]
        logging_config = logging_config.model_copy(update={"outputs": outputs})
    configure_logging(config=logging_config)
    log = get_logger("covmerge")

    try:
        outcome = run(config, log=log)
    except OutputWriteError as e:
        log.error("run.output_failed", **e.to_dict())
        ctx.exit(1)
    except CovMergeError as e:
        log.error("run.failed", **e.to_dict())
        ctx.exit(1)

    log.debug("run.done", outcome=outcome.value)
    ctx.exit(0)


def main(argv: list[str] | None = None) -> None:
    """Console entry point. Every failure, including bad flags, exits 1."""
    try:
        code = cli.main(args=argv, prog_name="covmerge", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        code = 1
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        code = 1
    sys.exit(code or 0)


if __name__ == "__main__":
    main()
