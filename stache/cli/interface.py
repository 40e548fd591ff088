# stache/cli/interface.py
import sys
from pathlib import Path
from typing import Any, Dict
from dataclasses import fields as dataclass_fields, MISSING

import click
from click_option_group import optgroup
import structlog

from stache import __version__ as app_version
from stache.config.settings import RenderConfig, ParseErrorMode, DEFAULT_PARSE_ERROR_MODE, DEFAULT_ENCODING
from stache.config.loader import load_and_merge_configs, options_from_toml, save_config_to_profile
from stache.logging_setup import configure_logging
from stache.core.output import write_to_stdout, write_to_file
from stache.core.pipeline import RenderJob
from stache.core.templating import parse_user_vars
from stache.exceptions import StacheError, ConfigError
from .console_output import print_parse_tree, print_cli_summary_output

log = structlog.get_logger(__name__)

# cli parameter name -> RenderConfig attribute name
CLI_PARAM_TO_CONFIG_ATTR: Dict[str, str] = {
    "template_path": "template_path",
    "read_from_stdin": "read_from_stdin",
    "data_files": "data_files",
    "user_vars": "user_vars",
    "output_file": "output_file",
    "parse_error_mode_str": "parse_error_mode",
    "encoding": "encoding",
    "check_only": "check_only",
    "show_tree": "show_tree",
    "console_show_summary": "console_show_summary",
    "save_profile_name": "save_profile_name",
}

def _config_defaults() -> Dict[str, Any]:
    return {
        f.name: f.default_factory() if f.default_factory is not MISSING else f.default
        for f in dataclass_fields(RenderConfig) if f.init
    }

def _coerce_option(attr: str, value: Any) -> Any:
    # values from toml arrive as plain strings/lists; cli values are mostly typed already.
    if attr in ("template_path", "output_file"):
        return Path(value) if value else None
    if attr == "data_files":
        return [Path(p) for p in value]
    if attr == "parse_error_mode":
        if isinstance(value, ParseErrorMode):
            return value
        return ParseErrorMode.from_string(value) or DEFAULT_PARSE_ERROR_MODE
    if attr == "user_vars":
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        return parse_user_vars(value)
    return value

def build_effective_config(ctx: click.Context, cli_params: Dict[str, Any]) -> RenderConfig:
    """Layers dataclass defaults, config files, the selected profile and explicit cli options."""
    effective_options = _config_defaults()
    raw_configs = load_and_merge_configs()
    effective_options.update(options_from_toml(raw_configs, cli_params.get("active_config_profile_name")))

    for param_name, attr in CLI_PARAM_TO_CONFIG_ATTR.items():
        if ctx.get_parameter_source(param_name) == click.core.ParameterSource.COMMANDLINE:
            effective_options[attr] = cli_params[param_name]

    for attr in list(effective_options):
        effective_options[attr] = _coerce_option(attr, effective_options[attr])

    if not isinstance(effective_options["parse_error_mode"], ParseErrorMode):
        raise ConfigError(f"Invalid parse error mode: {effective_options['parse_error_mode']!r}")
    return RenderConfig(**effective_options)

def _run_render_flow(config: RenderConfig):
    log.info("render_orchestration_started", template=str(config.template_path), stdin=config.read_from_stdin)
    job = RenderJob(config)
    output = job.run()

    if config.show_tree and job.template is not None:
        print_parse_tree(job.template, title=str(config.template_path or "<stdin>"))

    if config.check_only and job.parse_error is None:
        click.secho(
            f"OK: template parsed ({job.node_count} nodes, {job.section_count} sections)",
            fg="green", err=True,
        )
        return

    if config.output_file:
        write_to_file(config.output_file, output, config.encoding)
        click.echo(f"Info: Output written to: {config.output_file}", err=True)
    else:
        log.info("writing_final_output_to_stdout")
        write_to_stdout(output)

    if config.console_show_summary:
        print_cli_summary_output(job)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("template_path", required=False, type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path))
@optgroup.group("Input Options", help="Where the template and its data come from.")
@optgroup.option("--stdin", "read_from_stdin", is_flag=True, default=False, help="Read the template text from stdin.")
@optgroup.option("-d", "--data", "data_files", multiple=True, type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path), help="JSON or TOML data file used as a root context. Repeatable; the first given is searched first.")
@optgroup.option("--var", "user_vars", multiple=True, metavar="KEY=VALUE", help="Variable available to the template. Searched before any data file.")
@optgroup.option("--encoding", "encoding", default=DEFAULT_ENCODING, help=f"Encoding of template, data and output files. Default: {DEFAULT_ENCODING}.")
@optgroup.group("Output Options", help="What is produced and where it goes.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Write rendered output to this file instead of stdout.")
@optgroup.option("--on-parse-error", "parse_error_mode_str", type=click.Choice([m.value for m in ParseErrorMode]), default=DEFAULT_PARSE_ERROR_MODE.value, help=f"'raise' reports the error and exits 1, 'inline' emits the error text as output. Default: {DEFAULT_PARSE_ERROR_MODE.value}.")
@optgroup.option("--check", "check_only", is_flag=True, default=False, help="Only parse the template and report errors.")
@optgroup.option("--tree", "show_tree", is_flag=True, default=False, help="Print the parsed node tree to stderr.")
@optgroup.option("--summary/--no-summary", "console_show_summary", default=False, help="Print a render summary to stderr.")
@optgroup.group("Application Behavior", help="Configuration profiles, saving, and logging.")
@optgroup.option("--config-profile", "active_config_profile_name", default=None, help="Load a profile from config file(s).")
@optgroup.option("--save", "save_profile_name", type=str, metavar="PROFILE_NAME", default=None, help="Save options to a profile in the project's .stache.toml. Exits after saving.")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs_cli", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="stache", prog_name="stache", help="Show version and exit.")
@click.pass_context
def main_cli(ctx: click.Context, **cli_params: Any):
    """stache: render Mustache-style templates against JSON/TOML data."""

    log_level = "warning"
    if cli_params.get("verbosity_level", 0) == 1: log_level = "info"
    elif cli_params.get("verbosity_level", 0) >= 2: log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=cli_params.get("force_json_logs_cli", False))

    log.debug("cli_command_invoked", params={k: v for k, v in cli_params.items() if v is not None})

    try:
        final_config = build_effective_config(ctx, cli_params)

        if final_config.save_profile_name:
            if save_config_to_profile(final_config, final_config.save_profile_name):
                click.echo(f"Info: Profile '{final_config.save_profile_name}' saved.", err=True)
            else:
                click.echo(f"Info: Nothing to save for profile '{final_config.save_profile_name}'.", err=True)
            ctx.exit(0)

        if final_config.template_path is None and not final_config.read_from_stdin:
            raise click.UsageError("Missing template: pass TEMPLATE_PATH or --stdin.")

        _run_render_flow(final_config)

    except click.exceptions.Exit as e: raise e
    except StacheError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    except click.ClickException as e:
        log.error("click_exception_in_cli", error_type=type(e).__name__, message=str(e))
        e.show(); sys.exit(e.exit_code)
    except Exception as e:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
        sys.exit(2)
